"""
RV32I Emulator - Integer Register File

Register model:
  x0        hardwired zero: always reads 0, writes silently discarded
  x1..x31   signed 32-bit general purpose registers

The program counter lives on the emulator, not here, since it is a byte
offset into the loaded program rather than an architectural register of
this file.
"""

from typing import Tuple

from ..errors import InvalidRegisterIndex
from .alu import to_signed32

NUM_REGS = 32

# Index -> preferred ABI name, for display
ABI_DISPLAY = (
    'zero', 'ra', 'sp', 'gp', 'tp', 't0', 't1', 't2',
    's0', 's1', 'a0', 'a1', 'a2', 'a3', 'a4', 'a5',
    'a6', 'a7', 's2', 's3', 's4', 's5', 's6', 's7',
    's8', 's9', 's10', 's11', 't3', 't4', 't5', 't6',
)


def check_register(idx) -> int:
    """Validate a register operand. Rejects None (malformed token) and indices outside 0-31."""
    if not isinstance(idx, int) or isinstance(idx, bool) or not 0 <= idx < NUM_REGS:
        raise InvalidRegisterIndex(f"Invalid register x{idx}")
    return idx


class Registers:
    """32 x 32-bit register file."""

    __slots__ = ('_x',)

    def __init__(self):
        self._x = [0] * NUM_REGS

    def read(self, idx: int) -> int:
        return self._x[check_register(idx)]

    def write(self, idx: int, value: int) -> bool:
        """Write a register. Returns False if the write was discarded (x0)."""
        check_register(idx)
        if idx == 0:
            return False
        self._x[idx] = to_signed32(value)
        return True

    def __getitem__(self, idx: int) -> int:
        return self.read(idx)

    def __len__(self) -> int:
        return NUM_REGS

    def snapshot(self) -> Tuple[int, ...]:
        return tuple(self._x)

    # --- Display ---

    def display(self, columns: int = 4) -> str:
        """Format the register file, `columns` registers per row."""
        cells = [f"x{i:<2}({ABI_DISPLAY[i]:>4})={v:>11}"
                 for i, v in enumerate(self._x)]
        rows = [' '.join(cells[i:i + columns]) for i in range(0, NUM_REGS, columns)]
        return '\n'.join(rows)

    def reset(self):
        """Zero every register."""
        self._x = [0] * NUM_REGS
