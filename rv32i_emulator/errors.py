"""
RV32I Emulator - fault types.

Every fault is recovered at the instruction boundary: the emulator logs it,
discards the instruction's effects and advances the PC by 4. None of them
stops a run; only the HALT sentinel (beq x0, x0, 0) does.
"""


class SimulatorError(Exception):
    """Base class for emulator errors."""
    pass


class ExecutionFault(SimulatorError):
    """An instruction could not be executed. Carries the faulting PC."""
    def __init__(self, message: str, pc: int = None):
        self.pc = pc
        super().__init__(message)


class UnsupportedOpcode(ExecutionFault):
    pass


class InvalidRegisterIndex(ExecutionFault):
    pass


class MemoryOutOfBounds(ExecutionFault):
    pass


class InsufficientOperands(ExecutionFault):
    pass


class InvalidImmediate(ExecutionFault):
    pass


class InvalidBranchTarget(ExecutionFault):
    """Branch/jump target is negative or not word aligned."""
    pass
