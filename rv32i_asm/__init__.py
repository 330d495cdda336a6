"""
RV32I Assembler Front End
=========================
Text-side half of the RV32I datapath simulator: everything that turns
assembly source into something the emulator or an export file can use.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌─────────────┐
    │ asm text │───>│  Loader  │───>│  Parser  │───>│ Program     │──> emulator
    │ (.s)     │    │ (clean)  │    │ (Instr.) │    │ (addr, ins) │
    └──────────┘    └──────────┘    └──────────┘    └─────────────┘
         │
         └────────>  Assembler (encoder) ──> 32-bit words ──> export .txt
                                   ^
                     Decoder ──────┘  (round-trip verification only)

    - lexer.py:     shared tokenizer, register resolver, ABI name table
    - parser.py:    one line -> Instruction(opcode, args)
    - loader.py:    source text -> Program (comments/labels/directives dropped)
    - opcodes.py:   RV32I opcode table (format, opcode, funct3, funct7, class)
    - assembler.py: one line -> 32-character bit string
    - decoder.py:   32-bit word -> Instruction
"""

__version__ = "0.3.0"

from .opcodes import InstrClass, OPCODES
from .lexer import tokenize, normalize_registers
from .parser import Instruction, parse_instruction
from .loader import Program, ProgramLine, LoaderError, load_program, load_file, preprocess
from .assembler import (
    Assembler, EncodingError, EncodeResult, encode_instruction, assemble, export_text,
    NOP_WORD,
)
from .decoder import decode_word, DecodingError


def roundtrip(line: str) -> Instruction:
    """Encode a line and decode the word again.

    For any line both paths accept, the result equals parse_instruction()
    of the normalized line (for immediates that fit their field).
    """
    return decode_word(encode_instruction(normalize_registers(line)))
