"""
Line Tokenizer for the RV32I assembler and simulator.

One tokenizer and one register resolver serve both decode paths (text ->
parsed instruction for execution, text -> 32-bit word for export), so the
two cannot drift apart on what an operand means.

Tokenization splits on whitespace, commas and parentheses:
    "lw x1, 4(x2)"  ->  ['lw', 'x1', '4', 'x2']

Operand resolution:
    x0..x31      -> register index (non-negative base-10 after the 'x')
    -12, 40      -> base-10 integer (sign allowed)
    anything else -> None  (the "not a number" marker; validation rejects it)

ABI register names (zero, ra, sp, ..., t6, fp) are rewritten to their xN
form by normalize_registers() before tokenization.
"""

from __future__ import annotations
import re
from typing import Dict, List, Optional

__all__ = ['tokenize', 'strip_comment', 'register_index', 'parse_int',
           'resolve_operand', 'normalize_registers', 'ABI_NAMES',
           'COMMENT_CHARS']


COMMENT_CHARS = ('#', ';')

_SPLIT_RE = re.compile(r'[\s,()]+')
_DECIMAL_RE = re.compile(r'^[+-]?\d+$')
_REGISTER_RE = re.compile(r'^\d+$')


# ──────────────────────────────────────────────
# ABI register names
# ──────────────────────────────────────────────

ABI_NAMES: Dict[str, int] = {
    'zero': 0,
    'ra': 1,
    'sp': 2,
    'gp': 3,
    'tp': 4,
    't0': 5,
    't1': 6,
    't2': 7,
    's0': 8,
    'fp': 8,   # frame pointer, alias of s0
    's1': 9,
    'a0': 10,
    'a1': 11,
    'a2': 12,
    'a3': 13,
    'a4': 14,
    'a5': 15,
    'a6': 16,
    'a7': 17,
    's2': 18,
    's3': 19,
    's4': 20,
    's5': 21,
    's6': 22,
    's7': 23,
    's8': 24,
    's9': 25,
    's10': 26,
    's11': 27,
    't3': 28,
    't4': 29,
    't5': 30,
    't6': 31,
}

# Longest names first so 's10' is never seen as 's1' + '0'
_ABI_RE = re.compile(
    r'\b(' + '|'.join(sorted(ABI_NAMES, key=len, reverse=True)) + r')\b',
    re.IGNORECASE)


def strip_comment(line: str) -> str:
    """Cut a line at its first '#' or ';' comment marker."""
    for i, ch in enumerate(line):
        if ch in COMMENT_CHARS:
            return line[:i]
    return line


def tokenize(line: str) -> List[str]:
    """Split a source line into mnemonic and operand tokens."""
    return [tok for tok in _SPLIT_RE.split(line.strip()) if tok]


def register_index(token: str) -> Optional[int]:
    """Resolve 'xN' to N. Returns None if the token is not of that form.

    The range (0-31) is NOT checked here; the register file does that.
    """
    if not token or token[0] not in 'xX':
        return None
    digits = token[1:]
    if not _REGISTER_RE.match(digits):
        return None
    return int(digits)


def parse_int(token: str) -> Optional[int]:
    """Parse a base-10 integer (optionally signed). None if malformed."""
    if token is None or not _DECIMAL_RE.match(token):
        return None
    return int(token)


def resolve_operand(token: str) -> Optional[int]:
    """Resolve one operand token: register if it starts with 'x', else integer."""
    if token[:1] in ('x', 'X'):
        return register_index(token)
    return parse_int(token)


def normalize_registers(line: str) -> str:
    """Rewrite ABI register names to numeric xN form (whole words only)."""
    return _ABI_RE.sub(lambda m: f"x{ABI_NAMES[m.group(1).lower()]}", line)
