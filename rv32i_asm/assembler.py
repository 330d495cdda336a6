"""
RV32I Binary Encoder for the datapath simulator.

Encodes assembly text into 32-bit RV32I instruction words, written out as
strings of 32 binary digits (one per instruction) for export.

Input:  Assembly text (same syntax the simulator loads)
Output: List of '0'/'1' strings, plus per-line error messages

Reference: The RISC-V Instruction Set Manual, Volume I, Section 2.2-2.3
           (base instruction formats and immediate encoding variants)

Instruction formats (bit 31 on the left):
  R : funct7[31:25] rs2[24:20] rs1[19:15] funct3[14:12] rd[11:7] opcode[6:0]
  I : imm[11:0] rs1 funct3 rd opcode
  S : imm[11:5] rs2 rs1 funct3 imm[4:0] opcode
  B : imm[12|10:5] rs2 rs1 funct3 imm[4:1|11] opcode
  U : imm[31:12] rd opcode          (the 20-bit field is given directly)
  J : imm[20|10:1|11|19:12] rd opcode

Immediates are taken as two's complement and truncated to the field width,
so out-of-range values wrap instead of failing. Lines that cannot be
encoded are replaced by an all-zero NOP word, so the exported file always
has one word per instruction line.

This path never touches the emulator: execution works from the parsed
mnemonic form, not from these words.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple, Union

from .lexer import tokenize, register_index, parse_int, strip_comment
from .loader import preprocess_numbered
from .opcodes import (
    lookup, PSEUDO_OPS,
    R, I, I_SHIFT, I_MEM, S, B, U, J,
)

__all__ = ['Assembler', 'EncodingError', 'EncodeResult', 'encode_instruction',
           'assemble', 'export_text', 'NOP_WORD', 'to_bits']

log = logging.getLogger(__name__)

# Substituted for any line that cannot be encoded
NOP_WORD = '0' * 32


class EncodingError(Exception):
    """Raised when a line cannot be encoded."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


# ──────────────────────────────────────────────
# Bit helpers
# ──────────────────────────────────────────────

def to_bits(value: int, width: int) -> str:
    """Two's complement of value, truncated to width bits, as a bit string."""
    return format(value & ((1 << width) - 1), f'0{width}b')


def _field(value: int, hi: int, lo: int) -> int:
    """Extract bits [hi:lo] of value."""
    return (value >> lo) & ((1 << (hi - lo + 1)) - 1)


# ──────────────────────────────────────────────
# Operand helpers
# ──────────────────────────────────────────────

def _reg(token: str, mnem: str) -> int:
    idx = register_index(token)
    if idx is None or not 0 <= idx <= 31:
        raise EncodingError(f"{mnem}: invalid register '{token}'")
    return idx


def _imm(token: str, mnem: str) -> int:
    value = parse_int(token)
    if value is None:
        raise EncodingError(f"{mnem}: invalid immediate '{token}'")
    return value


def _expect(operands: List[str], count: int, mnem: str):
    if len(operands) < count:
        raise EncodingError(
            f"{mnem}: expected {count} operands, got {len(operands)}")


# ──────────────────────────────────────────────
# Per-format word builders
# ──────────────────────────────────────────────

def _word_r(spec, rd, rs1, rs2) -> int:
    return (spec.funct7 << 25) | (rs2 << 20) | (rs1 << 15) | \
           (spec.funct3 << 12) | (rd << 7) | spec.opcode


def _word_i(spec, rd, rs1, imm) -> int:
    return (_field(imm, 11, 0) << 20) | (rs1 << 15) | \
           (spec.funct3 << 12) | (rd << 7) | spec.opcode


def _word_shift(spec, rd, rs1, shamt) -> int:
    return (spec.funct7 << 25) | (_field(shamt, 4, 0) << 20) | (rs1 << 15) | \
           (spec.funct3 << 12) | (rd << 7) | spec.opcode


def _word_s(spec, rs2, rs1, imm) -> int:
    return (_field(imm, 11, 5) << 25) | (rs2 << 20) | (rs1 << 15) | \
           (spec.funct3 << 12) | (_field(imm, 4, 0) << 7) | spec.opcode


def _word_b(spec, rs1, rs2, offset) -> int:
    return (_field(offset, 12, 12) << 31) | (_field(offset, 10, 5) << 25) | \
           (rs2 << 20) | (rs1 << 15) | (spec.funct3 << 12) | \
           (_field(offset, 4, 1) << 8) | (_field(offset, 11, 11) << 7) | \
           spec.opcode


def _word_u(spec, rd, imm20) -> int:
    return (_field(imm20, 19, 0) << 12) | (rd << 7) | spec.opcode


def _word_j(spec, rd, offset) -> int:
    return (_field(offset, 20, 20) << 31) | (_field(offset, 10, 1) << 21) | \
           (_field(offset, 11, 11) << 20) | (_field(offset, 19, 12) << 12) | \
           (rd << 7) | spec.opcode


def encode_instruction(line: str) -> str:
    """Encode one source line into a 32-character bit string.

    Raises EncodingError for unsupported mnemonics, bad registers,
    malformed immediates, or missing operands.
    """
    parts = tokenize(strip_comment(line))
    if not parts:
        raise EncodingError("empty line")

    mnem = parts[0].lower()
    operands = parts[1:]

    spec = lookup(mnem)
    if spec is None:
        raise EncodingError(f"unsupported instruction: {mnem}")

    if mnem in PSEUDO_OPS:
        _, fixed = PSEUDO_OPS[mnem]
        return to_bits(_word_i(spec, *fixed), 32)

    fmt = spec.fmt
    if fmt == R:
        _expect(operands, 3, mnem)
        word = _word_r(spec, _reg(operands[0], mnem), _reg(operands[1], mnem),
                       _reg(operands[2], mnem))
    elif fmt == I:
        _expect(operands, 3, mnem)
        word = _word_i(spec, _reg(operands[0], mnem), _reg(operands[1], mnem),
                       _imm(operands[2], mnem))
    elif fmt == I_SHIFT:
        _expect(operands, 3, mnem)
        word = _word_shift(spec, _reg(operands[0], mnem), _reg(operands[1], mnem),
                           _imm(operands[2], mnem))
    elif fmt == I_MEM:
        # rd, offset(rs1)
        _expect(operands, 3, mnem)
        word = _word_i(spec, _reg(operands[0], mnem), _reg(operands[2], mnem),
                       _imm(operands[1], mnem))
    elif fmt == S:
        # rs2, offset(rs1)
        _expect(operands, 3, mnem)
        word = _word_s(spec, _reg(operands[0], mnem), _reg(operands[2], mnem),
                       _imm(operands[1], mnem))
    elif fmt == B:
        _expect(operands, 3, mnem)
        word = _word_b(spec, _reg(operands[0], mnem), _reg(operands[1], mnem),
                       _imm(operands[2], mnem))
    elif fmt == U:
        _expect(operands, 2, mnem)
        word = _word_u(spec, _reg(operands[0], mnem), _imm(operands[1], mnem))
    elif fmt == J:
        _expect(operands, 2, mnem)
        word = _word_j(spec, _reg(operands[0], mnem), _imm(operands[1], mnem))
    else:
        raise EncodingError(f"{mnem}: no encoder for format {fmt}")

    return to_bits(word, 32)


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

@dataclass
class EncodeResult:
    """Encoded words (one per instruction line) and per-line error messages."""
    words: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    failures: List[EncodingError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_text(self) -> str:
        """Export artifact: newline-joined bit strings."""
        return '\n'.join(self.words)


class Assembler:
    """Whole-program encoder.

    Usage:
        asm = Assembler()
        result = asm.assemble(source_text)
        asm.write_export('program.txt')
    """

    def __init__(self):
        self.result: EncodeResult = EncodeResult()
        self._lines: List[Tuple[int, str]] = []   # (source line, cleaned text)

    def assemble(self, source: str) -> EncodeResult:
        """Encode every instruction line of source.

        Uses the same preprocessing as the program loader (comments, labels,
        directives dropped; ABI names normalized), so the export has exactly
        one word per loaded instruction.
        """
        self.result = EncodeResult()
        self._lines = preprocess_numbered(source)

        for line_num, text in self._lines:
            try:
                self.result.words.append(encode_instruction(text))
            except EncodingError as e:
                err = EncodingError(str(e), line_num=line_num, line_text=text)
                msg = str(err)
                self.result.failures.append(err)
                self.result.errors.append(msg)
                self.result.words.append(NOP_WORD)
                log.warning(msg)

        if self.result.errors:
            log.error("Encoding errors on %d lines", len(self.result.errors))
        log.info("Encoded %d instructions", len(self.result.words))
        return self.result

    def to_text(self) -> str:
        return self.result.to_text()

    def write_export(self, path: Union[str, Path]) -> Path:
        """Write the export artifact (plain text, one word per line)."""
        p = Path(path)
        p.write_text(self.to_text(), encoding='utf-8')
        log.info("Exported %d instructions to %s", len(self.result.words), p)
        return p

    def get_listing(self) -> str:
        """Return a human-readable listing: address, hex word, bits, source."""
        lines = [f"{'ADDR':>6}  {'HEX':<8}  {'BINARY':<32}  SOURCE", "-" * 72]
        for i, ((_, text), word) in enumerate(zip(self._lines, self.result.words)):
            lines.append(f"${i * 4:04X}  {int(word, 2):08X}  {word}  {text}")
        return '\n'.join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str) -> EncodeResult:
    """Encode source text, return words + errors."""
    return Assembler().assemble(source)


def export_text(source: str) -> str:
    """Encode source text, return the export artifact."""
    return assemble(source).to_text()
