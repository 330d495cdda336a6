"""
Binary encoder tests.

Expected words are hand-assembled from the RV32I base formats and split
into their fields so a failing test shows which field is wrong.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from rv32i_asm.assembler import (
    Assembler, EncodingError, NOP_WORD, assemble, encode_instruction, export_text, to_bits,
)


def _w(*fields: str) -> str:
    """Join bit fields into one word (checks the total width)."""
    word = ''.join(fields)
    assert len(word) == 32
    return word


ADDI_X5_10 = _w("000000001010", "00000", "000", "00101", "0010011")


# ─── Bit helpers ───────────────────────────

class TestBits:
    def test_positive(self):
        assert to_bits(5, 8) == "00000101"

    def test_negative_twos_complement(self):
        assert to_bits(-1, 5) == "11111"
        assert to_bits(-8, 13) == "1111111111000"

    def test_truncates(self):
        assert to_bits(0x1234, 8) == "00110100"


# ─── Per-format encodings ──────────────────

class TestEncodeFormats:
    def test_r_add(self):
        assert encode_instruction("add x6, x6, x7") == \
            _w("0000000", "00111", "00110", "000", "00110", "0110011")

    def test_r_sub_funct7(self):
        assert encode_instruction("sub x1, x2, x3") == \
            _w("0100000", "00011", "00010", "000", "00001", "0110011")

    def test_r_sra_funct7(self):
        assert encode_instruction("sra x1, x2, x3") == \
            _w("0100000", "00011", "00010", "101", "00001", "0110011")

    def test_i_addi(self):
        assert encode_instruction("addi x5, x0, 10") == ADDI_X5_10

    def test_i_negative_immediate(self):
        assert encode_instruction("addi x1, x0, -1") == \
            _w("111111111111", "00000", "000", "00001", "0010011")

    def test_i_immediate_wraps_to_field(self):
        assert encode_instruction("addi x1, x0, 4096") == \
            _w("000000000000", "00000", "000", "00001", "0010011")

    def test_shift_srai(self):
        assert encode_instruction("srai x1, x2, 3") == \
            _w("0100000", "00011", "00010", "101", "00001", "0010011")

    def test_shift_slli(self):
        assert encode_instruction("slli x1, x2, 31") == \
            _w("0000000", "11111", "00010", "001", "00001", "0010011")

    def test_load_lw(self):
        assert encode_instruction("lw x10, 0(x0)") == \
            _w("000000000000", "00000", "010", "01010", "0000011")

    def test_load_lb(self):
        assert encode_instruction("lb x1, 4(x2)") == \
            _w("000000000100", "00010", "000", "00001", "0000011")

    def test_store_sw(self):
        assert encode_instruction("sw x6, 0(x0)") == \
            _w("0000000", "00110", "00000", "010", "00000", "0100011")

    def test_store_split_immediate(self):
        # imm = 100 = 0b0000011_00100
        assert encode_instruction("sw x5, 100(x2)") == \
            _w("0000011", "00101", "00010", "010", "00100", "0100011")

    def test_branch_backward(self):
        # offset -8: imm[12]=1 imm[10:5]=111111 imm[4:1]=1100 imm[11]=1
        assert encode_instruction("bne x7, x5, -8") == \
            _w("1", "111111", "00101", "00111", "001", "1100", "1", "1100011")

    def test_branch_halt_sentinel(self):
        assert encode_instruction("beq x0, x0, 0") == \
            _w("0000000", "00000", "00000", "000", "00000", "1100011")

    def test_jal(self):
        # offset 8: imm[20]=0 imm[10:1]=0000000100 imm[11]=0 imm[19:12]=0
        assert encode_instruction("jal x1, 8") == \
            _w("0", "0000000100", "0", "00000000", "00001", "1101111")

    def test_jalr(self):
        assert encode_instruction("jalr x1, 4(x5)") == \
            _w("000000000100", "00101", "000", "00001", "1100111")

    def test_lui(self):
        assert encode_instruction("lui x1, 1") == \
            _w("00000000000000000001", "00001", "0110111")

    def test_auipc(self):
        assert encode_instruction("auipc x2, 3") == \
            _w("00000000000000000011", "00010", "0010111")

    def test_nop(self):
        assert encode_instruction("nop") == \
            _w("000000000000", "00000", "000", "00000", "0010011")

    def test_uppercase_mnemonic(self):
        assert encode_instruction("ADDI x5, x0, 10") == ADDI_X5_10

    def test_inline_comment(self):
        assert encode_instruction("addi x5, x0, 10  # ten") == ADDI_X5_10


# ─── Encoding errors ───────────────────────

class TestEncodeErrors:
    def test_unsupported(self):
        with pytest.raises(EncodingError, match="unsupported"):
            encode_instruction("mul x1, x2, x3")

    def test_bad_register(self):
        with pytest.raises(EncodingError, match="register"):
            encode_instruction("add x32, x1, x2")

    def test_bad_immediate(self):
        with pytest.raises(EncodingError, match="immediate"):
            encode_instruction("addi x1, x0, ten")

    def test_missing_operand(self):
        with pytest.raises(EncodingError, match="operands"):
            encode_instruction("add x1, x2")

    def test_empty(self):
        with pytest.raises(EncodingError):
            encode_instruction("   ")

    def test_line_number_in_message(self):
        err = EncodingError("bad", line_num=7, line_text="bad x1")
        assert str(err) == "Line 7: bad"
        assert err.line_num == 7


# ─── Whole-program assembly ────────────────

class TestAssembler:
    def test_one_word_per_instruction(self):
        result = assemble("addi x5, x0, 10\nadd x6, x6, x7\n")
        assert result.ok
        assert len(result.words) == 2
        assert result.words[0] == ADDI_X5_10

    def test_nop_substitution_and_line_numbers(self):
        src = "addi x5, x0, 10\nfoo x1, x2, x3\nadd x1, x2\n"
        result = assemble(src)
        assert not result.ok
        assert result.words == [ADDI_X5_10, NOP_WORD, NOP_WORD]
        assert len(result.errors) == 2
        assert result.errors[0].startswith("Line 2:")
        assert "foo" in result.errors[0]
        assert result.errors[1].startswith("Line 3:")

    def test_failures_carry_source_line(self):
        result = assemble("addi x5, x0, 10\nfoo x1, x2, x3\n")
        assert len(result.failures) == 1
        err = result.failures[0]
        assert isinstance(err, EncodingError)
        assert err.line_num == 2
        assert err.line_text == "foo x1, x2, x3"
        assert str(err) == result.errors[0]

    def test_line_numbers_count_skipped_lines(self):
        src = "# header\n.text\nmain:\n    bogus\n"
        result = assemble(src)
        assert result.errors[0].startswith("Line 4:")

    def test_abi_names_and_labels(self):
        result = assemble("start: addi t0, zero, 10 ; counter\n")
        assert result.words == [ADDI_X5_10]

    def test_export_text(self):
        text = export_text("addi x5, x0, 10\nnop\n")
        lines = text.split('\n')
        assert len(lines) == 2
        assert lines[0] == ADDI_X5_10
        assert all(len(line) == 32 for line in lines)

    def test_write_export(self, tmp_path):
        asm = Assembler()
        asm.assemble("addi x5, x0, 10\nbeq x0, x0, 0\n")
        path = asm.write_export(tmp_path / "out.txt")
        assert path.read_text(encoding="utf-8").split('\n')[0] == ADDI_X5_10

    def test_listing(self):
        asm = Assembler()
        asm.assemble("addi x5, x0, 10\n")
        listing = asm.get_listing()
        assert "00A00293" in listing
        assert "addi x5, x0, 10" in listing

    def test_empty_source(self):
        result = assemble("")
        assert result.ok
        assert result.words == []
        assert result.to_text() == ""
