# RV32I Emulator - single-cycle RV32I datapath simulator core
#
# Executes programs loaded by rv32i_asm one instruction per step, with
# 32-bit wraparound arithmetic, a hardwired x0 and word-addressed data
# memory. Every step produces an immutable StepResult (registers, memory,
# changed indices, control signals, trace message) for a front end.
#
# Layout:
#   emu.py          RV32IEmulator: fetch / dispatch / execute / run loops
#   cpu/alu.py      32-bit ALU operations and branch conditions
#   cpu/regs.py     register file (x0 hardwired)
#   mem/memory.py   word-addressed data memory with bounds checks
#   signals.py      EngineState, StopReason, SignalSnapshot, StepResult
#   errors.py       execution fault hierarchy
#   log.py          bounded ExecutionLog and Rich logging setup
#   config.py       SimConfig and named profiles

from .config import SimConfig, PROFILES, get_profile
from .emu import RV32IEmulator
from .errors import (
    SimulatorError, ExecutionFault, UnsupportedOpcode, InvalidRegisterIndex,
    MemoryOutOfBounds, InsufficientOperands, InvalidImmediate, InvalidBranchTarget,
)
from .log import ExecutionLog, LogEntry, setup_logging
from .signals import EngineState, StopReason, SignalSnapshot, StepResult

__version__ = "0.3.0"
