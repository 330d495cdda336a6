"""
Command-line front end tests (rv32isim.main).
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

import rv32isim


SUM_PROGRAM = """\
# sum 1..9
addi t0, zero, 10
addi t1, zero, 0
addi t2, zero, 1
loop: add t1, t1, t2
addi t2, t2, 1
bne t2, t0, -8
sw t1, 0(zero)
lw a0, 0(zero)
"""


@pytest.fixture
def program(tmp_path):
    path = tmp_path / "sum.asm"
    path.write_text(SUM_PROGRAM, encoding="utf-8")
    return str(path)


class TestCliRun:
    def test_run(self, program, capsys):
        assert rv32isim.main([program, "--run"]) == 0
        out = capsys.readouterr().out
        assert "Stopped: FINISHED at PC=32" in out
        assert "45" in out

    def test_paced_run(self, program, capsys):
        assert rv32isim.main([program, "--run", "--delay", "1"]) == 0
        assert "Stopped: FINISHED" in capsys.readouterr().out

    def test_steps(self, program, capsys):
        assert rv32isim.main([program, "--steps", "2"]) == 0
        out = capsys.readouterr().out
        assert "ADDI x5, x0, 10 -> x5 = 10" in out
        assert "ADDI x6, x0, 0 -> x6 = 0" in out

    def test_listing_without_mode(self, program, capsys):
        assert rv32isim.main([program]) == 0
        assert "0000:  addi x5, x0, 10" in capsys.readouterr().out

    def test_timeout(self, program, capsys):
        assert rv32isim.main([program, "--run", "--max-steps", "3"]) == 0
        assert "TIMEOUT" in capsys.readouterr().out

    def test_paced_run_honors_max_steps(self, program, capsys):
        assert rv32isim.main([program, "--run", "--delay", "1", "--max-steps", "3"]) == 0
        assert "Stopped: TIMEOUT" in capsys.readouterr().out

    def test_log_file(self, program, tmp_path):
        log_path = tmp_path / "logs" / "sim.log"
        assert rv32isim.main([program, "--run", "--log-file", str(log_path)]) == 0
        text = log_path.read_text(encoding="utf-8")
        assert "Program loaded: 8 instructions" in text
        assert "| INFO    |" in text

    def test_dump_memory_and_trace(self, program, capsys):
        assert rv32isim.main([program, "--run", "--dump-memory", "2", "--trace"]) == 0
        out = capsys.readouterr().out
        assert "[  0]" in out
        assert "Program loaded: 8 instructions" in out


class TestCliExport:
    def test_export(self, program, tmp_path):
        out_path = tmp_path / "sum.txt"
        assert rv32isim.main([program, "--export", str(out_path)]) == 0
        words = out_path.read_text(encoding="utf-8").split('\n')
        assert len(words) == 8
        assert words[0] == "00000000101000000000001010010011"

    def test_export_reports_bad_lines(self, tmp_path, capsys):
        src = tmp_path / "bad.s"
        src.write_text("addi x1, x0, 1\nmul x1, x2, x3\n", encoding="utf-8")
        out_path = tmp_path / "bad.txt"
        assert rv32isim.main([str(src), "--export", str(out_path)]) == 0
        assert "Line 2:" in capsys.readouterr().err
        assert out_path.read_text(encoding="utf-8").split('\n')[1] == '0' * 32


class TestCliErrors:
    def test_missing_file(self, tmp_path, capsys):
        assert rv32isim.main([str(tmp_path / "none.asm")]) == 1
        assert "Error" in capsys.readouterr().err

    def test_undecodable_file(self, tmp_path, capsys):
        path = tmp_path / "bad.asm"
        path.write_bytes(b"addi x1, x0, 1 \xff\xfe\n")
        assert rv32isim.main([str(path)]) == 1
        assert "Error" in capsys.readouterr().err

    def test_wrong_extension(self, tmp_path):
        path = tmp_path / "prog.c"
        path.write_text("nop\n", encoding="utf-8")
        assert rv32isim.main([str(path)]) == 1

    def test_bad_memory_size(self, program):
        assert rv32isim.main([program, "--memory-words", "0"]) == 1

    def test_steps_and_run_exclusive(self, program):
        with pytest.raises(SystemExit) as exc:
            rv32isim.main([program, "--steps", "1", "--run"])
        assert exc.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            rv32isim.main(["--version"])
        assert exc.value.code == 0
        assert "rv32isim" in capsys.readouterr().out


class TestCliProfiles:
    def test_large_profile_memory(self, tmp_path, capsys):
        path = tmp_path / "far.asm"
        path.write_text("addi x1, x0, 7\nsw x1, 1000(x0)\nlw x2, 1000(x0)\n",
                        encoding="utf-8")
        assert rv32isim.main([str(path), "--run", "--profile", "large"]) == 0
        out = capsys.readouterr().out
        assert "x2 (  sp)=          7" in out

    def test_default_profile_rejects_far_address(self, tmp_path, capsys):
        path = tmp_path / "far.asm"
        path.write_text("addi x1, x0, 7\nlw x2, 1000(x0)\n", encoding="utf-8")
        assert rv32isim.main([str(path), "--run", "--trace"]) == 0
        assert "out of range" in capsys.readouterr().out
