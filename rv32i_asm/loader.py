"""
Program Loader for the RV32I simulator.

Turns raw assembly text into a Program: an ordered, immutable list of
(raw text, byte address, parsed instruction) entries.

Preprocessing, per line:
  1. strip inline comments ('#' and ';')
  2. drop blank lines, directives ('.text', '.globl main', '@...')
     and pure label lines ('loop:')
  3. strip a leading label from 'loop: add x1, x1, x2'
  4. rewrite ABI register names to xN ('a0' -> 'x10', 'fp' -> 'x8')
  5. parse; byte address = 4 * position in the filtered list

Labels are dropped, not resolved: branch and jump operands are numeric
byte displacements.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .lexer import strip_comment, normalize_registers
from .parser import Instruction, parse_instruction

__all__ = ['Program', 'ProgramLine', 'LoaderError', 'preprocess', 'preprocess_numbered',
           'load_program', 'load_file', 'SOURCE_EXTENSIONS']

log = logging.getLogger(__name__)

SOURCE_EXTENSIONS = ('.asm', '.s', '.txt')

_LABEL_ONLY_RE = re.compile(r'^\w+:\s*$')
_LEADING_LABEL_RE = re.compile(r'^\w+:\s*')


class LoaderError(Exception):
    """Raised when a program source cannot be read."""
    pass


@dataclass(frozen=True)
class ProgramLine:
    """One loaded instruction slot."""
    raw: str
    address: int
    parsed: Optional[Instruction]

    @property
    def index(self) -> int:
        return self.address // 4


@dataclass(frozen=True)
class Program:
    """Ordered instruction list. Replaced wholesale on every load."""
    lines: Tuple[ProgramLine, ...] = ()

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[ProgramLine]:
        return iter(self.lines)

    def __getitem__(self, index: int) -> ProgramLine:
        return self.lines[index]

    def listing(self) -> str:
        """Address-annotated source listing."""
        return '\n'.join(f"{line.address:04X}:  {line.raw}" for line in self.lines)


def _clean_line(line: str) -> Optional[str]:
    """Apply preprocessing steps 1-4 to one line. None if the line is dropped."""
    text = strip_comment(line).strip()
    if not text:
        return None
    if text.startswith('.') or text.startswith('@'):
        return None
    if _LABEL_ONLY_RE.match(text):
        return None
    text = _LEADING_LABEL_RE.sub('', text, count=1)
    text = normalize_registers(text).strip()
    return text or None


def preprocess_numbered(source: str) -> List[Tuple[int, str]]:
    """Like preprocess(), but pairs each line with its 1-based source line number."""
    cleaned = []
    for line_num, line in enumerate(source.splitlines(), 1):
        text = _clean_line(line)
        if text is not None:
            cleaned.append((line_num, text))
    return cleaned


def preprocess(source: str) -> List[str]:
    """Return the surviving, normalized instruction lines of a source text."""
    return [text for _, text in preprocess_numbered(source)]


def load_program(source: str) -> Program:
    """Preprocess and parse assembly source into a Program."""
    lines = tuple(
        ProgramLine(raw=text, address=i * 4, parsed=parse_instruction(text))
        for i, text in enumerate(preprocess(source))
    )
    log.debug("Loaded %d instructions", len(lines))
    return Program(lines)


def load_file(path: Union[str, Path]) -> Program:
    """Read and load an assembly file (.asm, .s or .txt)."""
    p = Path(path)
    if p.suffix.lower() not in SOURCE_EXTENSIONS:
        raise LoaderError(
            f"Unsupported file type '{p.suffix}' "
            f"(expected one of {', '.join(SOURCE_EXTENSIONS)})")
    try:
        source = p.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise LoaderError(f"Cannot read {p}: {e}") from e
    log.info("Read %s", p)
    return load_program(source)
