"""
RV32I Emulator - Simulator Configuration

SimConfig holds the knobs the presentation layer (or CLI) may change.
PROFILES are named presets, selected with --profile on the command line.
"""

from dataclasses import dataclass, replace

from .mem.memory import DEFAULT_WORDS


@dataclass(frozen=True)
class SimConfig:
    memory_words: int = DEFAULT_WORDS     # data memory size in 32-bit words
    execution_delay_ms: int = 2000        # pause between steps in run()
    log_capacity: int = 50                # execution log entries kept
    max_steps: int = 100_000              # run_to_completion() safety limit

    def with_overrides(self, **changes) -> 'SimConfig':
        """Copy with the given fields replaced (None values ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


PROFILES = {
    "default": SimConfig(),
    "classroom": SimConfig(execution_delay_ms=1000),
    "fast": SimConfig(execution_delay_ms=0),
    "large": SimConfig(memory_words=256, execution_delay_ms=0),
}


def get_profile(name: str) -> SimConfig:
    """Look up a named profile. Raises KeyError for unknown names."""
    if name not in PROFILES:
        raise KeyError(f"Unknown profile '{name}' (choose from {', '.join(PROFILES)})")
    return PROFILES[name]
