"""
Mnemonic Parser for the RV32I simulator.

Converts one cleaned source line into a structured Instruction:

    "addi x5, x0, 10"   ->  Instruction('addi', (5, 0, 10))
    "lw x10, 0(x0)"     ->  Instruction('lw', (10, 0, 0))
    "sw x6, -4(x2)"     ->  Instruction('sw', (6, -4, 2))

Operands keep their assembly order. Register operands become their index,
immediates become signed ints, malformed tokens become None. Operand count
and register range are NOT validated here; the emulator does that when it
executes the instruction, so a bad line only costs its own step.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from .lexer import tokenize, resolve_operand
from .opcodes import InstrClass, lookup

__all__ = ['Instruction', 'parse_instruction']


@dataclass(frozen=True)
class Instruction:
    """A parsed instruction: lowercase mnemonic + ordered operand values."""
    opcode: str
    args: Tuple[Optional[int], ...] = ()

    @property
    def kind(self) -> Optional[InstrClass]:
        """Execution class, or None when the emulator cannot run this opcode."""
        spec = lookup(self.opcode)
        return spec.kind if spec else None

    def __str__(self):
        return f"{self.opcode} {', '.join(str(a) for a in self.args)}".rstrip()


def parse_instruction(line: str) -> Optional[Instruction]:
    """Parse a trimmed, comment-free line. Returns None for a blank line."""
    parts = tokenize(line)
    if not parts:
        return None
    opcode = parts[0].lower()
    args = tuple(resolve_operand(tok) for tok in parts[1:])
    return Instruction(opcode, args)
