"""
RV32I Emulator - Execution Log + Logging Setup

Two separate things live here:

  ExecutionLog   the user-visible, bounded, append-only trace/diagnostic list
                 (oldest entries evicted once capacity is reached)
  setup_logging  standard `logging` configuration for the CLI: a Rich console
                 handler plus an optional plain-text log file

Emulator modules log through logging.getLogger(__name__); ExecutionLog is
what a front end shows next to the datapath.
"""

from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Deque, List, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler

__all__ = ['LogEntry', 'ExecutionLog', 'setup_logging',
           'INFO', 'SUCCESS', 'ERROR']

INFO = 'info'
SUCCESS = 'success'
ERROR = 'error'

PACKAGE_LOGGERS = ('rv32i_emulator', 'rv32i_asm')


@dataclass(frozen=True)
class LogEntry:
    message: str
    kind: str = INFO
    timestamp: str = ""

    def __str__(self):
        return f"[{self.timestamp}] {self.message}" if self.timestamp else self.message


class ExecutionLog:
    """Bounded append-only log."""

    def __init__(self, capacity: int = 50):
        self.capacity = capacity
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)

    def add(self, message: str, kind: str = INFO) -> LogEntry:
        entry = LogEntry(message, kind, datetime.now().strftime("%H:%M:%S"))
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def errors(self) -> List[LogEntry]:
        return [e for e in self._entries if e.kind == ERROR]

    def last(self) -> Optional[LogEntry]:
        return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self):
        self._entries.clear()

    def text(self) -> str:
        return '\n'.join(str(e) for e in self._entries)


def setup_logging(
    names: Sequence[str] = PACKAGE_LOGGERS,
    console_level: int = logging.WARNING,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure the package loggers and return the first one.

    Console output goes through RichHandler (on stderr) at `console_level`. When
    `log_file` is given, everything (DEBUG+) is also written there.
    Calling this twice replaces the handlers instead of stacking them.
    """
    ch = RichHandler(
        console=Console(stderr=True),
        level=console_level,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    ch.setLevel(console_level)
    handlers = [ch]

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        handlers.append(fh)

    for name in names:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        for handler in handlers:
            logger.addHandler(handler)

    logger = logging.getLogger(names[0])
    if log_file is not None:
        logger.info("Log file: %s", log_file)
    return logger
