"""
RV32I Binary Decoder.

Maps a 32-bit instruction word back to a parsed Instruction, with operands
in the same order the mnemonic parser produces them. The emulator never
executes from these words; the decoder exists so that the encoder and the
parser can be checked against each other (encode, decode, compare).

    decode_word('00000000101000000000001010010011')
        -> Instruction('addi', (5, 0, 10))

Immediates are sign-extended from their field width.
"""

from __future__ import annotations
from typing import Dict, Tuple, Union

from .opcodes import OPCODES, R, I, I_SHIFT, I_MEM, S, B, U, J
from .parser import Instruction

__all__ = ['decode_word', 'DecodingError', 'sign_extend']


class DecodingError(Exception):
    """Raised when a word does not match any supported encoding."""
    pass


# (opcode, funct3, funct7) -> mnemonic; funct7 is None where it is not part
# of the encoding.
_DECODE_TABLE: Dict[Tuple[int, int, object], str] = {}

for _spec in OPCODES.values():
    if _spec.fmt in (R, I_SHIFT):
        _key = (_spec.opcode, _spec.funct3, _spec.funct7)
    elif _spec.fmt in (U, J):
        _key = (_spec.opcode, None, None)
    else:
        _key = (_spec.opcode, _spec.funct3, None)
    _DECODE_TABLE[_key] = _spec.mnemonic


def sign_extend(value: int, bits: int) -> int:
    """Interpret the low `bits` of value as a two's complement number."""
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        value -= 1 << bits
    return value


def _bits(word: int, hi: int, lo: int) -> int:
    return (word >> lo) & ((1 << (hi - lo + 1)) - 1)


def _lookup(opcode: int, funct3, funct7) -> str:
    for key in ((opcode, funct3, funct7), (opcode, funct3, None), (opcode, None, None)):
        if key in _DECODE_TABLE:
            return _DECODE_TABLE[key]
    raise DecodingError(
        f"Unknown encoding: opcode={opcode:07b} funct3={funct3:03b} funct7={funct7:07b}")


def decode_word(word: Union[str, int]) -> Instruction:
    """Decode a 32-bit word (int or 32-character bit string)."""
    if isinstance(word, str):
        if len(word) != 32 or set(word) - {'0', '1'}:
            raise DecodingError(f"Not a 32-bit binary string: {word!r}")
        word = int(word, 2)

    opcode = _bits(word, 6, 0)
    rd = _bits(word, 11, 7)
    funct3 = _bits(word, 14, 12)
    rs1 = _bits(word, 19, 15)
    rs2 = _bits(word, 24, 20)
    funct7 = _bits(word, 31, 25)

    mnem = _lookup(opcode, funct3, funct7)
    fmt = OPCODES[mnem].fmt

    if fmt == R:
        return Instruction(mnem, (rd, rs1, rs2))
    if fmt == I:
        return Instruction(mnem, (rd, rs1, sign_extend(_bits(word, 31, 20), 12)))
    if fmt == I_SHIFT:
        return Instruction(mnem, (rd, rs1, rs2))   # shamt sits in the rs2 field
    if fmt == I_MEM:
        return Instruction(mnem, (rd, sign_extend(_bits(word, 31, 20), 12), rs1))
    if fmt == S:
        imm = (funct7 << 5) | rd
        return Instruction(mnem, (rs2, sign_extend(imm, 12), rs1))
    if fmt == B:
        imm = (_bits(word, 31, 31) << 12) | (_bits(word, 7, 7) << 11) | \
              (_bits(word, 30, 25) << 5) | (_bits(word, 11, 8) << 1)
        return Instruction(mnem, (rs1, rs2, sign_extend(imm, 13)))
    if fmt == U:
        return Instruction(mnem, (rd, sign_extend(_bits(word, 31, 12), 20)))
    if fmt == J:
        imm = (_bits(word, 31, 31) << 20) | (_bits(word, 19, 12) << 12) | \
              (_bits(word, 20, 20) << 11) | (_bits(word, 30, 21) << 1)
        return Instruction(mnem, (rd, sign_extend(imm, 21)))
    raise DecodingError(f"{mnem}: no decoder for format {fmt}")
