"""
RV32I Emulator - ALU Operations

All values are carried as Python ints holding signed 32-bit quantities.
Every result is wrapped back into the signed 32-bit range, so

    add32(0x7FFFFFFF, 0x7FFFFFFF) == -2          (0xFFFFFFFE)
    add32(0x7FFFFFFF, 1)          == -2147483648 (0x80000000)

Shift amounts use only the low 5 bits of the second operand.
srl is a logical (zero-filling) shift, sra an arithmetic one.
sltu / bltu / bgeu compare both operands as unsigned 32-bit values.
"""

MASK32 = 0xFFFFFFFF
SIGN32 = 0x80000000
SHAMT_MASK = 0x1F


def to_signed32(value: int) -> int:
    """Wrap any int into the signed 32-bit range."""
    value &= MASK32
    return value - (1 << 32) if value & SIGN32 else value


def to_unsigned32(value: int) -> int:
    """Reinterpret a value as unsigned 32-bit."""
    return value & MASK32


# ══════════════════════════════════════════════
# Arithmetic / logic
# ══════════════════════════════════════════════

def add32(a: int, b: int) -> int:
    return to_signed32(a + b)


def sub32(a: int, b: int) -> int:
    return to_signed32(a - b)


def and32(a: int, b: int) -> int:
    return to_signed32(a & b)


def or32(a: int, b: int) -> int:
    return to_signed32(a | b)


def xor32(a: int, b: int) -> int:
    return to_signed32(a ^ b)


# ══════════════════════════════════════════════
# Shifts
# ══════════════════════════════════════════════

def sll32(a: int, b: int) -> int:
    """Shift left logical."""
    return to_signed32(a << (b & SHAMT_MASK))


def srl32(a: int, b: int) -> int:
    """Shift right logical: zeros shifted in from the top."""
    return to_signed32(to_unsigned32(a) >> (b & SHAMT_MASK))


def sra32(a: int, b: int) -> int:
    """Shift right arithmetic: sign bit replicated."""
    return to_signed32(a) >> (b & SHAMT_MASK)


# ══════════════════════════════════════════════
# Compares
# ══════════════════════════════════════════════

def slt32(a: int, b: int) -> int:
    return 1 if to_signed32(a) < to_signed32(b) else 0


def sltu32(a: int, b: int) -> int:
    return 1 if to_unsigned32(a) < to_unsigned32(b) else 0


# Mnemonic -> ALU function. I-type entries take the immediate as operand B.
R_OPS = {
    'add': add32,
    'sub': sub32,
    'and': and32,
    'or': or32,
    'xor': xor32,
    'sll': sll32,
    'srl': srl32,
    'sra': sra32,
    'slt': slt32,
    'sltu': sltu32,
}

I_OPS = {
    'addi': add32,
    'andi': and32,
    'ori': or32,
    'xori': xor32,
    'slti': slt32,
    'sltiu': sltu32,
    'slli': sll32,
    'srli': srl32,
    'srai': sra32,
}


# ══════════════════════════════════════════════
# Branch conditions
# ══════════════════════════════════════════════

BRANCH_CONDITIONS = {
    'beq': lambda a, b: to_signed32(a) == to_signed32(b),
    'bne': lambda a, b: to_signed32(a) != to_signed32(b),
    'blt': lambda a, b: to_signed32(a) < to_signed32(b),
    'bge': lambda a, b: to_signed32(a) >= to_signed32(b),
    'bltu': lambda a, b: to_unsigned32(a) < to_unsigned32(b),
    'bgeu': lambda a, b: to_unsigned32(a) >= to_unsigned32(b),
}


def branch_taken(mnemonic: str, a: int, b: int) -> bool:
    """Evaluate a branch comparator by mnemonic."""
    return BRANCH_CONDITIONS[mnemonic](a, b)
