#!/usr/bin/env python3
"""
rv32isim - RV32I single-cycle datapath simulator CLI

Usage:
    python rv32isim.py <program.asm> [--steps N | --run] [--max-steps N]
                       [--delay MS] [--export OUT] [--memory-words N]
                       [--profile default|classroom|fast|large] [--trace]
                       [--dump-memory N] [--log-file PATH] [--verbose]

Without --steps or --run the program is only loaded and listed.

Examples:
    python rv32isim.py sum.asm --run                   # run to the end, print registers
    python rv32isim.py sum.asm --steps 3 --trace       # three steps, show the trace
    python rv32isim.py sum.asm --run --delay 500       # paced run, 0.5 s per step
    python rv32isim.py sum.asm --export sum.txt        # 32-bit words, one per line
    python rv32isim.py sum.asm --run --dump-memory 8   # first 8 data words
    python rv32isim.py sum.asm --run --log-file sim.log # DEBUG log to a file
"""

import argparse
import asyncio
import logging
import sys
import os
from pathlib import Path

# Allow running from project root or as module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rv32i_asm import Assembler, LoaderError, __version__
from rv32i_emulator import RV32IEmulator, PROFILES, StopReason, get_profile, setup_logging


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="rv32isim",
        description="Single-cycle RV32I datapath simulator",
        epilog="Profiles: " + ", ".join(PROFILES.keys()),
    )
    parser.add_argument("program", help="Assembly source file (.asm, .s, .txt)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--steps", type=int, default=None, metavar="N",
                      help="Execute N single steps")
    mode.add_argument("--run", action="store_true",
                      help="Run until the program finishes or halts")
    parser.add_argument("--max-steps", type=int, default=None, metavar="N",
                        help="Step limit for --run (default: from profile)")
    parser.add_argument("--delay", type=int, default=None, metavar="MS",
                        help="Pause between steps for --run, in milliseconds")
    parser.add_argument("--export", default=None, metavar="OUT",
                        help="Write the encoded program (one 32-bit word per line)")
    parser.add_argument("--memory-words", type=int, default=None, metavar="N",
                        help="Data memory size in 32-bit words")
    parser.add_argument("--profile", default="default", choices=list(PROFILES.keys()),
                        help="Simulator profile (default: default)")
    parser.add_argument("--trace", action="store_true",
                        help="Print the execution log after running")
    parser.add_argument("--dump-memory", type=int, default=None, metavar="N",
                        help="Print the first N data memory words")
    parser.add_argument("--log-file", default=None, metavar="PATH",
                        help="Also write a DEBUG log to this file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log simulator activity to stderr")
    parser.add_argument("--version", action="version",
                        version=f"rv32isim {__version__}")

    args = parser.parse_args(argv)

    setup_logging(console_level=logging.INFO if args.verbose else logging.WARNING,
                  log_file=args.log_file)

    config = get_profile(args.profile).with_overrides(memory_words=args.memory_words)

    try:
        emu = RV32IEmulator(config)
        program = emu.load_file(args.program)
    except LoaderError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        if args.verbose:
            print(f"[rv32isim] Program: {args.program} ({len(program)} instructions)",
                  file=sys.stderr)
            print(f"[rv32isim] Profile: {args.profile}, memory {config.memory_words} words",
                  file=sys.stderr)

        if args.export:
            asm = Assembler()
            result = asm.assemble(Path(args.program).read_text(encoding="utf-8"))
            asm.write_export(args.export)
            for err in result.errors:
                print(f"Encoding error: {err}", file=sys.stderr)
            if args.verbose:
                print(f"[rv32isim] Export: {args.export} ({len(result.words)} words)",
                      file=sys.stderr)

        reason = None
        if args.steps is not None:
            for _ in range(max(args.steps, 0)):
                result = emu.step()
                print(result.message)
                if emu.halted or emu.finished:
                    break
        elif args.run:
            if args.delay:
                emu.set_execution_delay(args.delay)
                reason = asyncio.run(emu.run(max_steps=args.max_steps))
            else:
                reason = emu.run_to_completion(args.max_steps)
        else:
            print(program.listing())

        if args.steps is not None or args.run:
            if reason is not None:
                print(f"Stopped: {reason.value} at PC={emu.pc}")
            print(emu.regs.display())

        if args.dump_memory:
            print(emu.mem.dump(args.dump_memory))

        if args.trace:
            print(emu.log.text())

        if reason is StopReason.TIMEOUT:
            print("Warning: step limit reached before the program finished",
                  file=sys.stderr)

    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal simulator error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
