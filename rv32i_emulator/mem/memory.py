"""
RV32I Emulator - Word-Addressed Data Memory

Data memory is a fixed array of 32-bit words. Byte addresses map to a word
index with floor division:

    index = floor(address / 4)        (0..3 -> 0, 4..7 -> 1, -1 -> -1)

Any address whose index falls outside [0, size) is rejected with
MemoryOutOfBounds before anything is read or written. There is no byte or
halfword access; lb/lh/sb/sh are encoder-only mnemonics.

Instruction memory is separate (the loaded Program), matching the
Harvard-style single-cycle datapath.
"""

from typing import Callable, Dict, Iterable, List, Tuple

from ..errors import MemoryOutOfBounds
from ..cpu.alu import to_signed32

DEFAULT_WORDS = 64
WORD_BYTES = 4


class Memory:
    """Fixed-size word memory.

    Writes can be observed with add_watchpoint(); the callback receives
    (index, old_value, new_value).
    """

    def __init__(self, words: int = DEFAULT_WORDS):
        if words <= 0:
            raise ValueError(f"Memory size must be positive, got {words}")
        self.size = words
        self._mem: List[int] = [0] * words
        self._watchpoints: Dict[int, List[Callable]] = {}

    @property
    def size_bytes(self) -> int:
        return self.size * WORD_BYTES

    # --- Address resolution ---

    def index_for(self, address: int) -> int:
        """Resolve a byte address to a word index, rejecting out-of-range ones."""
        index = address // WORD_BYTES
        if not 0 <= index < self.size:
            raise MemoryOutOfBounds(
                f"Memory address out of range: {address} (word index {index}, "
                f"size {self.size})")
        return index

    # --- Core read/write ---

    def read_word(self, address: int) -> int:
        return self._mem[self.index_for(address)]

    def write_word(self, address: int, value: int) -> int:
        """Store a word. Returns the word index written."""
        index = self.index_for(address)
        value = to_signed32(value)
        old = self._mem[index]
        self._mem[index] = value
        for cb in self._watchpoints.get(index, ()):
            cb(index, old, value)
        return index

    def __getitem__(self, index: int) -> int:
        return self._mem[index]

    def __len__(self) -> int:
        return self.size

    # --- Bulk load ---

    def load_words(self, data: Iterable[int], base_index: int = 0):
        """Preload words starting at a word index (test fixtures, data segments)."""
        for i, value in enumerate(data):
            index = base_index + i
            if not 0 <= index < self.size:
                raise MemoryOutOfBounds(
                    f"Preload past end of memory at word index {index}")
            self._mem[index] = to_signed32(value)

    # --- Watchpoints ---

    def add_watchpoint(self, index: int, callback: Callable):
        self._watchpoints.setdefault(index, []).append(callback)

    def clear_watchpoints(self):
        self._watchpoints.clear()

    # --- Snapshot / display ---

    def snapshot(self) -> Tuple[int, ...]:
        return tuple(self._mem)

    def dump(self, count: int = None, nonzero_only: bool = False) -> str:
        """Hex dump: one word per line with byte address and signed value."""
        count = self.size if count is None else min(count, self.size)
        lines = []
        for i in range(count):
            value = self._mem[i]
            if nonzero_only and value == 0:
                continue
            lines.append(f"[{i:3d}] 0x{i * WORD_BYTES:04X}: "
                         f"0x{value & 0xFFFFFFFF:08X}  {value}")
        return '\n'.join(lines)

    def reset(self):
        """Zero all words. Watchpoints are kept."""
        self._mem = [0] * self.size
