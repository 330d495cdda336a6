"""
RV32I Emulator - Per-Step Observability Records

The emulator never draws anything. After each step it hands the front end
an immutable StepResult; SignalSnapshot inside it says which datapath
control lines were asserted, so a diagram can highlight the active path.

Control lines (single-cycle datapath):
  reg_write     result written back to rd
  alu_src       ALU operand B is the immediate, not rs2
  mem_read      data memory read (lw)
  mem_write     data memory write (sw)
  branch        instruction is a branch/jump
  branch_taken  PC redirected to the branch/jump target
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class EngineState(Enum):
    READY = 'READY'           # after reset / between steps
    EXECUTING = 'EXECUTING'   # inside step()
    HALTED = 'HALTED'         # beq x0, x0, 0 reached
    FINISHED = 'FINISHED'     # PC ran past the last instruction


class StopReason(Enum):
    """Why run() / run_to_completion() returned."""
    FINISHED = 'FINISHED'
    HALT = 'HALT'
    BREAK = 'BREAK'
    STOPPED = 'STOPPED'       # running flag cleared (toggle, stop, reset)
    TIMEOUT = 'TIMEOUT'       # max_steps exhausted


@dataclass(frozen=True)
class SignalSnapshot:
    type: Optional[str] = None        # 'R', 'I', 'L', 'S', 'B', 'U', 'J'
    reg_write: int = 0
    alu_src: int = 0
    mem_read: int = 0
    mem_write: int = 0
    branch: int = 0
    branch_taken: int = 0
    alu_op: Optional[str] = None
    alu_result: int = 0               # ALU output or effective address
    immediate: int = 0

    def asserted(self) -> Tuple[str, ...]:
        """Names of the control lines that are high."""
        names = ('reg_write', 'alu_src', 'mem_read', 'mem_write', 'branch', 'branch_taken')
        return tuple(n for n in names if getattr(self, n))


@dataclass(frozen=True)
class StepResult:
    """Everything the presentation layer needs after one step."""
    pc: int
    registers: Tuple[int, ...]
    memory: Tuple[int, ...]
    last_register: int                # -1 if no register changed this step
    last_memory: int                  # -1 if no memory word changed this step
    signals: SignalSnapshot
    message: str
    state: EngineState
    source: Optional[str] = None      # raw text of the instruction executed
    fault: Optional[str] = None       # fault class name, if the step faulted

    @property
    def instruction_index(self) -> int:
        return self.pc // 4
