"""
RV32I Opcode Table for the datapath simulator.

Shared by the mnemonic parser, the binary encoder, the binary decoder and
the emulator's dispatch table, so all four agree on which mnemonics exist.

Encoding formats (operand order is the assembly order, not the bit order):
  R        add rd, rs1, rs2
  I        addi rd, rs1, imm12
  I_SHIFT  slli rd, rs1, shamt          (funct7 in imm[11:5])
  I_MEM    lw rd, imm12(rs1)  /  jalr rd, imm12(rs1)
  S        sw rs2, imm12(rs1)
  B        beq rs1, rs2, offset13
  U        lui rd, imm20
  J        jal rd, offset21

Reference: The RISC-V Instruction Set Manual, Volume I, Chapter 2 (RV32I)
           and Chapter 24 (RV32/64G instruction listings).
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

__all__ = ['InstrClass', 'OpSpec', 'OPCODES', 'PSEUDO_OPS', 'lookup',
           'R', 'I', 'I_SHIFT', 'I_MEM', 'S', 'B', 'U', 'J']


class InstrClass(enum.Enum):
    """Execution class of an instruction (what the datapath does with it)."""
    R = 'R'   # register-register ALU
    I = 'I'   # register-immediate ALU
    L = 'L'   # load
    S = 'S'   # store
    B = 'B'   # conditional branch
    U = 'U'   # upper immediate
    J = 'J'   # jump and link


# ──────────────────────────────────────────────
# Encoding format constants
# ──────────────────────────────────────────────

R = 'R'
I = 'I'
I_SHIFT = 'I_SHIFT'
I_MEM = 'I_MEM'
S = 'S'
B = 'B'
U = 'U'
J = 'J'

# Major opcodes (bits [6:0])
OP_REG = 0b0110011
OP_IMM = 0b0010011
OP_LOAD = 0b0000011
OP_STORE = 0b0100011
OP_BRANCH = 0b1100011
OP_JAL = 0b1101111
OP_JALR = 0b1100111
OP_LUI = 0b0110111
OP_AUIPC = 0b0010111


@dataclass(frozen=True)
class OpSpec:
    """One row of the opcode table.

    ``kind`` is None for mnemonics the encoder accepts but the
    word-oriented emulator does not execute (byte/halfword memory ops).
    """
    mnemonic: str
    fmt: str
    opcode: int
    funct3: int = 0
    funct7: int = 0
    kind: Optional[InstrClass] = None


# Format: { 'mnemonic': OpSpec }
OPCODES: Dict[str, OpSpec] = {}


def _op(mnemonic: str, fmt: str, opcode: int, funct3: int = 0,
        funct7: int = 0, kind: Optional[InstrClass] = None):
    """Register an opcode entry."""
    OPCODES[mnemonic] = OpSpec(mnemonic, fmt, opcode, funct3, funct7, kind)


# ── R-type ALU ──
_op('add',   R, OP_REG, 0b000, 0b0000000, InstrClass.R)
_op('sub',   R, OP_REG, 0b000, 0b0100000, InstrClass.R)
_op('sll',   R, OP_REG, 0b001, 0b0000000, InstrClass.R)
_op('slt',   R, OP_REG, 0b010, 0b0000000, InstrClass.R)
_op('sltu',  R, OP_REG, 0b011, 0b0000000, InstrClass.R)
_op('xor',   R, OP_REG, 0b100, 0b0000000, InstrClass.R)
_op('srl',   R, OP_REG, 0b101, 0b0000000, InstrClass.R)
_op('sra',   R, OP_REG, 0b101, 0b0100000, InstrClass.R)
_op('or',    R, OP_REG, 0b110, 0b0000000, InstrClass.R)
_op('and',   R, OP_REG, 0b111, 0b0000000, InstrClass.R)

# ── I-type ALU ──
_op('addi',  I, OP_IMM, 0b000, kind=InstrClass.I)
_op('slti',  I, OP_IMM, 0b010, kind=InstrClass.I)
_op('sltiu', I, OP_IMM, 0b011, kind=InstrClass.I)
_op('xori',  I, OP_IMM, 0b100, kind=InstrClass.I)
_op('ori',   I, OP_IMM, 0b110, kind=InstrClass.I)
_op('andi',  I, OP_IMM, 0b111, kind=InstrClass.I)
_op('slli',  I_SHIFT, OP_IMM, 0b001, 0b0000000, InstrClass.I)
_op('srli',  I_SHIFT, OP_IMM, 0b101, 0b0000000, InstrClass.I)
_op('srai',  I_SHIFT, OP_IMM, 0b101, 0b0100000, InstrClass.I)

# ── Loads (only lw executes) ──
_op('lb',    I_MEM, OP_LOAD, 0b000)
_op('lh',    I_MEM, OP_LOAD, 0b001)
_op('lw',    I_MEM, OP_LOAD, 0b010, kind=InstrClass.L)
_op('lbu',   I_MEM, OP_LOAD, 0b100)
_op('lhu',   I_MEM, OP_LOAD, 0b101)

# ── Stores (only sw executes) ──
_op('sb',    S, OP_STORE, 0b000)
_op('sh',    S, OP_STORE, 0b001)
_op('sw',    S, OP_STORE, 0b010, kind=InstrClass.S)

# ── Branches ──
_op('beq',   B, OP_BRANCH, 0b000, kind=InstrClass.B)
_op('bne',   B, OP_BRANCH, 0b001, kind=InstrClass.B)
_op('blt',   B, OP_BRANCH, 0b100, kind=InstrClass.B)
_op('bge',   B, OP_BRANCH, 0b101, kind=InstrClass.B)
_op('bltu',  B, OP_BRANCH, 0b110, kind=InstrClass.B)
_op('bgeu',  B, OP_BRANCH, 0b111, kind=InstrClass.B)

# ── Jumps / upper immediates ──
_op('jal',   J, OP_JAL, kind=InstrClass.J)
_op('jalr',  I_MEM, OP_JALR, 0b000, kind=InstrClass.J)
_op('lui',   U, OP_LUI, kind=InstrClass.U)
_op('auipc', U, OP_AUIPC, kind=InstrClass.U)


# Pseudo-instructions: mnemonic -> (real mnemonic, fixed operands)
PSEUDO_OPS: Dict[str, Tuple[str, Tuple[int, ...]]] = {
    'nop': ('addi', (0, 0, 0)),
}


def lookup(mnemonic: str) -> Optional[OpSpec]:
    """Return the OpSpec for a mnemonic (pseudo-ops resolved), or None."""
    mnemonic = mnemonic.lower()
    if mnemonic in PSEUDO_OPS:
        mnemonic = PSEUDO_OPS[mnemonic][0]
    return OPCODES.get(mnemonic)
