"""
RV32I Emulator - Main Emulator Class

Single-cycle RV32I core. This is the top-level class that integrates:
  - Register file (cpu/regs.py)
  - ALU operations (cpu/alu.py)
  - Data memory (mem/memory.py)
  - Loaded program (rv32i_asm.loader.Program, the instruction memory)

Execution model, one instruction per step():
  1. Fetch the ProgramLine at PC / 4 (past the end: FINISHED, no-op)
  2. Dispatch on the instruction class (R, I, L, S, B, U, J)
  3. Validate operand count, registers, immediates, memory address
  4. Compute with 32-bit wraparound arithmetic
  5. Write register / memory, build the SignalSnapshot, move the PC
  6. Append a trace line to the execution log

Faults (bad register, out-of-range address, missing operand, unknown
opcode) never stop execution: the instruction is skipped without side
effects and the PC advances by 4.

Termination:
  - FINISHED: PC past the last instruction
  - HALT:     beq x0, x0, 0 (PC left unchanged)
  - BREAK:    breakpoint address reached (run loops only)
  - STOPPED:  run() toggled off, stop() or reset() called
  - TIMEOUT:  step limit (max_steps) reached
"""

from __future__ import annotations
import asyncio
import logging
from pathlib import Path
from typing import Optional, Set, Union

from rv32i_asm.opcodes import InstrClass, PSEUDO_OPS
from rv32i_asm.parser import Instruction
from rv32i_asm.loader import Program, ProgramLine, load_program, load_file

from .config import SimConfig
from .cpu import alu
from .cpu.regs import Registers, check_register
from .errors import (
    ExecutionFault, UnsupportedOpcode, InsufficientOperands, InvalidImmediate,
    InvalidBranchTarget,
)
from .log import ExecutionLog, INFO, SUCCESS, ERROR
from .mem.memory import Memory
from .signals import EngineState, SignalSnapshot, StepResult, StopReason

log = logging.getLogger(__name__)

# Operand count per mnemonic; everything not listed needs 3
_MIN_OPERANDS = {'lui': 2, 'auipc': 2, 'jal': 2}


class _Outcome:
    """What a handler did: next PC, snapshot, trace text, halt flag."""
    __slots__ = ('next_pc', 'signals', 'message', 'halt')

    def __init__(self, next_pc: int, signals: SignalSnapshot, message: str,
                 halt: bool = False):
        self.next_pc = next_pc
        self.signals = signals
        self.message = message
        self.halt = halt


class RV32IEmulator:
    """Single-cycle RV32I emulator.

    Usage:
        emu = RV32IEmulator()
        emu.load("addi x5, x0, 10\\nsw x5, 0(x0)")
        reason = emu.run_to_completion()
        print(emu.regs[5], emu.mem[0])      # 10 10
    """

    def __init__(self, config: Optional[SimConfig] = None):
        self.config = config or SimConfig()

        # Core components
        self.regs = Registers()
        self.mem = Memory(self.config.memory_words)
        self.program = Program()
        self.log = ExecutionLog(self.config.log_capacity)

        # Machine state
        self.pc: int = 0
        self.running: bool = False
        self.state = EngineState.READY
        self.signals = SignalSnapshot()
        self.current: Optional[ProgramLine] = None
        self.last_register: int = -1
        self.last_memory: int = -1
        self.steps: int = 0

        self.execution_delay_ms: int = self.config.execution_delay_ms

        # Breakpoints: set of PC byte addresses
        self._breakpoints: Set[int] = set()

        # Bumped by every run() start and reset(); a run loop whose
        # generation is stale exits at its next check.
        self._run_generation = 0

        # Instruction class dispatch table (built in _build_dispatch)
        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load(self, source: str) -> Program:
        """Load assembly source text. Resets the machine."""
        return self.load_program(load_program(source))

    def load_file(self, path: Union[str, Path]) -> Program:
        """Load an .asm / .s / .txt file. Resets the machine."""
        return self.load_program(load_file(path))

    def load_program(self, program: Program) -> Program:
        """Install an already-built Program. Resets the machine."""
        self.program = program
        self.reset()
        self._log(f"Program loaded: {len(program)} instructions", SUCCESS)
        return program

    # ══════════════════════════════════════════════
    # Control
    # ══════════════════════════════════════════════

    def reset(self):
        """Full machine reset. Cancels any in-flight run()."""
        self.running = False
        self._run_generation += 1
        self.pc = 0
        self.regs.reset()
        self.mem.reset()
        self.signals = SignalSnapshot()
        self.current = None
        self.last_register = -1
        self.last_memory = -1
        self.steps = 0
        self.state = EngineState.READY
        self._log("Simulator reset", SUCCESS)

    def set_execution_delay(self, milliseconds: int):
        """Delay between steps used by run()."""
        if milliseconds < 0:
            raise ValueError(f"Execution delay must be >= 0 ms, got {milliseconds}")
        self.execution_delay_ms = int(milliseconds)
        log.debug("Execution delay set to %d ms", self.execution_delay_ms)

    def stop(self):
        """Ask a running run() loop to exit after its current delay."""
        if self.running:
            self.running = False
            self._log("Execution stopped", ERROR)

    @property
    def finished(self) -> bool:
        return self.pc // 4 >= len(self.program)

    @property
    def halted(self) -> bool:
        return self.state is EngineState.HALTED

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> StepResult:
        """Execute one instruction and return the resulting state.

        Atomic: either all of an instruction's effects are applied or
        (on a fault) none are.
        """
        self.last_register = -1
        self.last_memory = -1
        if self.finished:
            self.state = EngineState.FINISHED
            self.running = False
            msg = "Program finished"
            self._log(msg, ERROR)
            return self.snapshot(msg)

        self.state = EngineState.EXECUTING

        pc = self.pc
        line = self.program[pc // 4]
        self.current = line
        self.steps += 1
        fault = None

        if line.parsed is None:
            self.pc = pc + 4
            self.signals = SignalSnapshot()
            msg = f"PC={pc}: empty instruction skipped"
            self._log(msg, INFO)
        else:
            try:
                outcome = self._execute(line.parsed, pc)
            except ExecutionFault as e:
                e.pc = pc
                fault = type(e).__name__
                self.signals = SignalSnapshot()
                self.last_register = -1
                self.last_memory = -1
                self.pc = pc + 4
                msg = f"Error at PC={pc} ({line.raw}): {e}"
                self._log(msg, ERROR)
            else:
                self.signals = outcome.signals
                msg = outcome.message
                if outcome.halt:
                    self.state = EngineState.HALTED
                    self.running = False
                    self._log(msg, SUCCESS)
                    return self.snapshot(msg)
                self.pc = outcome.next_pc
                self._log(msg, SUCCESS)

        self.state = EngineState.FINISHED if self.finished else EngineState.READY
        return self.snapshot(msg, fault=fault)

    async def run(self, delay_ms: Optional[int] = None,
                  max_steps: Optional[int] = None) -> StopReason:
        """Step until finished/halted, pausing between steps.

        Toggle semantics: calling run() while a run is in progress stops
        that run instead of starting a second one. max_steps defaults to
        config.max_steps; reaching it ends the run with TIMEOUT.
        """
        if self.running:
            self.stop()
            return StopReason.STOPPED

        delay = self.execution_delay_ms if delay_ms is None else delay_ms
        if max_steps is None:
            max_steps = self.config.max_steps
        self.running = True
        self._run_generation += 1
        generation = self._run_generation
        self._log("Running program...", SUCCESS)

        reason = StopReason.STOPPED
        count = 0
        while self._still_running(generation):
            if self.finished:
                reason = StopReason.FINISHED
                break
            if count > 0 and self.pc in self._breakpoints:
                reason = StopReason.BREAK
                self._log(f"Breakpoint at PC={self.pc}", INFO)
                break
            if count >= max_steps:
                reason = StopReason.TIMEOUT
                log.warning("Step limit (%d) reached at PC=%d", max_steps, self.pc)
                break
            count += 1
            self.step()
            if self.halted:
                reason = StopReason.HALT
                break
            await asyncio.sleep(delay / 1000)

        if generation == self._run_generation:
            self.running = False
            if reason is StopReason.FINISHED:
                self.state = EngineState.FINISHED
                self._log("Program finished", SUCCESS)
        return reason

    def run_to_completion(self, max_steps: Optional[int] = None) -> StopReason:
        """Synchronous run without delays (CLI, tests).

        Stops on FINISHED, HALT, a breakpoint (not on the first step), or
        after max_steps steps (TIMEOUT).
        """
        if max_steps is None:
            max_steps = self.config.max_steps

        for i in range(max_steps):
            if self.finished:
                self.state = EngineState.FINISHED
                return StopReason.FINISHED
            if i > 0 and self.pc in self._breakpoints:
                return StopReason.BREAK
            self.step()
            if self.halted:
                return StopReason.HALT

        if self.finished:
            self.state = EngineState.FINISHED
            return StopReason.FINISHED
        log.warning("Step limit (%d) reached at PC=%d", max_steps, self.pc)
        return StopReason.TIMEOUT

    def _still_running(self, generation: int) -> bool:
        return self.running and generation == self._run_generation

    # ══════════════════════════════════════════════
    # Instruction execution
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> dict:
        """Build instruction class → handler table. Must cover every class."""
        table = {
            InstrClass.R: self._exec_r,
            InstrClass.I: self._exec_i,
            InstrClass.L: self._exec_load,
            InstrClass.S: self._exec_store,
            InstrClass.B: self._exec_branch,
            InstrClass.U: self._exec_upper,
            InstrClass.J: self._exec_jump,
        }
        missing = set(InstrClass) - set(table)
        if missing:
            raise NotImplementedError(
                f"No handler for instruction classes: {sorted(c.value for c in missing)}")
        return table

    def _execute(self, inst: Instruction, pc: int) -> _Outcome:
        """Validate and run one instruction. Raises ExecutionFault."""
        op, args = inst.opcode, inst.args
        if op in PSEUDO_OPS:
            op, args = PSEUDO_OPS[op]

        kind = inst.kind
        if kind is None:
            raise UnsupportedOpcode(f"Unrecognized instruction: {inst.opcode}")

        needed = _MIN_OPERANDS.get(op, 3)
        if len(args) < needed:
            raise InsufficientOperands(
                f"Insufficient operands for {op}: need {needed}, got {len(args)}")

        return self._dispatch[kind](op, args, pc)

    @staticmethod
    def _immediate(value, op: str) -> int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidImmediate(f"Invalid immediate for {op}: {value}")
        return value

    @staticmethod
    def _check_target(target: int, op: str) -> int:
        if target < 0 or target % 4:
            raise InvalidBranchTarget(
                f"{op.upper()} target {target} is not a valid instruction address")
        return target

    def _write_rd(self, rd: int, value: int):
        if self.regs.write(rd, value):
            self.last_register = rd

    # ── R-type: rd = rs1 op rs2 ──

    def _exec_r(self, op, args, pc) -> _Outcome:
        rd, rs1, rs2 = (check_register(a) for a in args[:3])
        a = self.regs[rs1]
        b = self.regs[rs2]
        result = alu.R_OPS[op](a, b)
        self._write_rd(rd, result)
        name = op.upper()
        return _Outcome(
            pc + 4,
            SignalSnapshot(type='R', reg_write=1, alu_op=name, alu_result=result),
            f"{name} x{rd}, x{rs1}, x{rs2} -> x{rd} = {result}")

    # ── I-type: rd = rs1 op imm ──

    def _exec_i(self, op, args, pc) -> _Outcome:
        rd = check_register(args[0])
        rs1 = check_register(args[1])
        imm = self._immediate(args[2], op)
        result = alu.I_OPS[op](self.regs[rs1], imm)
        self._write_rd(rd, result)
        name = op.upper()
        return _Outcome(
            pc + 4,
            SignalSnapshot(type='I', reg_write=1, alu_src=1, alu_op=name,
                           alu_result=result, immediate=imm),
            f"{name} x{rd}, x{rs1}, {imm} -> x{rd} = {result}")

    # ── Load: rd = mem[rs1 + offset] ──

    def _exec_load(self, op, args, pc) -> _Outcome:
        rd = check_register(args[0])
        offset = self._immediate(args[1], op)
        rs1 = check_register(args[2])
        address = self.regs[rs1] + offset
        index = self.mem.index_for(address)
        value = self.mem[index]
        self._write_rd(rd, value)
        return _Outcome(
            pc + 4,
            SignalSnapshot(type='L', reg_write=1, alu_src=1, mem_read=1, alu_op='ADD',
                           alu_result=address, immediate=offset),
            f"LW x{rd}, {offset}(x{rs1}) -> x{rd} = mem[{index}] = {value}")

    # ── Store: mem[rs1 + offset] = rs2 ──

    def _exec_store(self, op, args, pc) -> _Outcome:
        rs2 = check_register(args[0])
        offset = self._immediate(args[1], op)
        rs1 = check_register(args[2])
        address = self.regs[rs1] + offset
        value = self.regs[rs2]
        index = self.mem.write_word(address, value)
        self.last_memory = index
        return _Outcome(
            pc + 4,
            SignalSnapshot(type='S', alu_src=1, mem_write=1, alu_op='ADD',
                           alu_result=address, immediate=offset),
            f"SW x{rs2}, {offset}(x{rs1}) -> mem[{index}] = {value}")

    # ── Branch: pc = taken ? pc + offset : pc + 4 ──

    def _exec_branch(self, op, args, pc) -> _Outcome:
        rs1 = check_register(args[0])
        rs2 = check_register(args[1])
        offset = self._immediate(args[2], op)
        a = self.regs[rs1]
        b = self.regs[rs2]
        taken = alu.branch_taken(op, a, b)
        name = op.upper()
        text = f"{name} x{rs1}, x{rs2}, {offset}"

        if op == 'beq' and rs1 == 0 and rs2 == 0 and offset == 0:
            return _Outcome(
                pc,
                SignalSnapshot(type='B', branch=1, alu_op='SUB', alu_result=0,
                               immediate=0),
                "HALT detected (beq x0, x0, 0) - program stopped",
                halt=True)

        target = pc + offset
        if taken:
            self._check_target(target, op)
        next_pc = target if taken else pc + 4
        signals = SignalSnapshot(type='B', branch=1, branch_taken=int(taken),
                                 alu_op='SUB', alu_result=alu.sub32(a, b),
                                 immediate=offset)
        if taken:
            return _Outcome(next_pc, signals, f"{text} -> branch taken, PC={next_pc}")
        return _Outcome(next_pc, signals, f"{text} -> not taken, PC={next_pc}")

    # ── U-type: lui / auipc ──

    def _exec_upper(self, op, args, pc) -> _Outcome:
        rd = check_register(args[0])
        imm = self._immediate(args[1], op)
        upper = alu.to_signed32(imm << 12)
        if op == 'lui':
            result, alu_op = upper, 'LUI'
        else:
            result, alu_op = alu.add32(pc, upper), 'ADD'
        self._write_rd(rd, result)
        return _Outcome(
            pc + 4,
            SignalSnapshot(type='U', reg_write=1, alu_src=1, alu_op=alu_op,
                           alu_result=result, immediate=imm),
            f"{op.upper()} x{rd}, {imm} -> x{rd} = {result}")

    # ── J-type: jal / jalr (rd = pc + 4) ──

    def _exec_jump(self, op, args, pc) -> _Outcome:
        rd = check_register(args[0])
        offset = self._immediate(args[1], op)
        if op == 'jal':
            target = pc + offset
            text = f"JAL x{rd}, {offset}"
        else:
            rs1 = check_register(args[2])
            target = alu.add32(self.regs[rs1], offset) & ~1
            text = f"JALR x{rd}, {offset}(x{rs1})"
        self._check_target(target, op)
        link = pc + 4
        self._write_rd(rd, link)
        return _Outcome(
            target,
            SignalSnapshot(type='J', reg_write=1, alu_src=1, branch=1, branch_taken=1,
                           alu_op='ADD', alu_result=target, immediate=offset),
            f"{text} -> x{rd} = {link}, PC={target}")

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, pc: int):
        """Stop run loops before executing the instruction at this PC."""
        self._breakpoints.add(pc)

    def remove_breakpoint(self, pc: int):
        self._breakpoints.discard(pc)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # State output
    # ══════════════════════════════════════════════

    def snapshot(self, message: str = "", fault: Optional[str] = None) -> StepResult:
        """Immutable view of the current machine state."""
        return StepResult(
            pc=self.pc,
            registers=self.regs.snapshot(),
            memory=self.mem.snapshot(),
            last_register=self.last_register,
            last_memory=self.last_memory,
            signals=self.signals,
            message=message,
            state=self.state,
            source=self.current.raw if self.current else None,
            fault=fault,
        )

    def current_instruction(self) -> Optional[ProgramLine]:
        """The instruction the PC points at (next to execute), if any."""
        index = self.pc // 4
        if 0 <= index < len(self.program):
            return self.program[index]
        return None

    def display(self) -> str:
        return f"PC={self.pc} ({self.state.value})\n{self.regs.display()}"

    def _log(self, message: str, kind: str = INFO):
        self.log.add(message, kind)
        if kind == ERROR:
            log.warning(message)
        else:
            log.info(message)
