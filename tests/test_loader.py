"""
Program loader tests: comment/directive/label filtering, ABI rewriting,
address assignment and file loading.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from rv32i_asm.loader import (
    Program, LoaderError, preprocess, preprocess_numbered, load_program, load_file,
)
from rv32i_asm.parser import Instruction


SOURCE = """
.text
.globl main
main:
    addi t0, zero, 10   # counter
loop: add x6, x6, x7 ; accumulate
@ data section marker
    bne x7, x5, -8
"""


class TestPreprocess:
    def test_filters_and_normalizes(self):
        assert preprocess(SOURCE) == [
            "addi x5, x0, 10",
            "add x6, x6, x7",
            "bne x7, x5, -8",
        ]

    def test_source_line_numbers(self):
        numbers = [n for n, _ in preprocess_numbered(SOURCE)]
        assert numbers == [5, 6, 8]

    def test_label_only_with_trailing_space(self):
        assert preprocess("end:   \nnop") == ["nop"]

    def test_comment_only_lines(self):
        assert preprocess("# header\n; another\n\n") == []

    def test_empty_source(self):
        assert preprocess("") == []


class TestLoadProgram:
    def test_addresses(self):
        program = load_program(SOURCE)
        assert len(program) == 3
        assert [line.address for line in program] == [0, 4, 8]
        assert [line.index for line in program] == [0, 1, 2]

    def test_parsed(self):
        program = load_program(SOURCE)
        assert program[0].parsed == Instruction('addi', (5, 0, 10))
        assert program[2].parsed == Instruction('bne', (7, 5, -8))

    def test_raw_is_normalized_text(self):
        program = load_program("lw a0, 0(sp)")
        assert program[0].raw == "lw x10, 0(x2)"

    def test_listing(self):
        listing = load_program(SOURCE).listing()
        assert "0004:  add x6, x6, x7" in listing

    def test_empty_program(self):
        assert len(Program()) == 0
        assert len(load_program("")) == 0


class TestLoadFile:
    def test_load_asm(self, tmp_path):
        path = tmp_path / "prog.s"
        path.write_text("addi x1, x0, 1\naddi x2, x0, 2\n", encoding="utf-8")
        program = load_file(path)
        assert len(program) == 2

    def test_accepts_txt_and_asm(self, tmp_path):
        for name in ("a.txt", "b.asm", "c.S"):
            path = tmp_path / name
            path.write_text("nop\n", encoding="utf-8")
            assert len(load_file(str(path))) == 1

    def test_rejects_other_extension(self, tmp_path):
        path = tmp_path / "prog.c"
        path.write_text("int main() {}", encoding="utf-8")
        with pytest.raises(LoaderError):
            load_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoaderError):
            load_file(tmp_path / "missing.asm")

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "bad.asm"
        path.write_bytes(b"addi x1, x0, 1 \xff\xfe\n")
        with pytest.raises(LoaderError) as exc:
            load_file(path)
        assert "Cannot read" in str(exc.value)
