#!/usr/bin/env python3
"""
mu0kit — mu0 Assembler + Emulator
==================================

One CLI for both halves of the toolchain:
    mu0 assemble  — Assemble mu0 source to machine code text
    mu0 emulate   — Run machine code text on the fetch/execute emulator

Usage:
    python mu0kit.py <command> [options]
    python mu0kit.py --help

Examples:
    python mu0kit.py assemble echo.s echo.hex
    python mu0kit.py assemble echo.s echo.hex --listing
    python mu0kit.py emulate echo.hex -l 0x400
    python mu0kit.py emulate echo.hex -v < input.txt

Exit status:
    0    success (also an unknown command, which is only reported)
    1    usage, file or assembly error
    2    step limit reached before STP
    132  illegal instruction
    139  memory access out of range
"""

import argparse
import logging
import sys
from pathlib import Path

from mu0 import __version__
from mu0.isa import parse_int
from mu0.log_setup import setup_logging

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_STEP_LIMIT = 2
EXIT_ILLEGAL_INSTRUCTION = 132
EXIT_SEGFAULT = 139

USAGE = """Usage:

1. mu0 assemble <assembly file> <machine code file> [-v] [--listing] [--log-dir DIR]
2. mu0 emulate <machine code file> [-v] [-l n] [--log-dir DIR]

    -v  : verbose
    -l n: limit on the number of clock cycles to emulate
    --log-dir DIR: also write a full DEBUG log file to DIR

The assembler chooses what to do with each line based on the first non-blank
character of the line. If that character is:
    ';' or there is none, the line is ignored.
    ':' the next word is a label for the following memory location.
    '#' the next number is stored at the next memory location.
    '$' the next character is stored as its character code.
If the line starts with one of the three letter commands
    LDA, STO, ADD, SUB, JMP, JGE, JNE
the opcode is stored and the next token is the memory address.
If the memory address starts with a ':' it is a label.
If the line starts with STP, 7000 is stored at the next memory location.

The emulator expects a sequence of 4 digit hex numbers, one per line.
Memory location 0xfff is memory-mapped IO. A LDA from 0xfff reads one
character from stdin and a STO to 0xfff prints one character to stdout.

Lines should not exceed 90 characters.
"""

log = logging.getLogger("mu0.kit")


class UsageArgumentParser(argparse.ArgumentParser):
    """argparse parser whose usage errors exit with EXIT_USAGE."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def _step_limit(text: str) -> int:
    """-l value, read like strtol(text, NULL, 0): garbage is 0 (no limit)."""
    value, _ = parse_int(text)
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = UsageArgumentParser(
        prog="mu0",
        description="mu0 toolchain: two-pass assembler and fetch/execute emulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  assemble   Assemble mu0 source to machine code text
  emulate    Run machine code text
""",
    )
    parser.add_argument("--version", action="version", version=f"mu0 {__version__}")
    sub = parser.add_subparsers(dest="command", metavar="command",
                                parser_class=UsageArgumentParser)

    # ── assemble ─────────────────────────────────────────────────────────
    p_asm = sub.add_parser("assemble", help="Assemble mu0 source to machine code text")
    p_asm.add_argument("input", help="Assembly source file")
    p_asm.add_argument("output", nargs="?", help="Machine code file to write")
    p_asm.add_argument("-v", "--verbose", action="store_true")
    p_asm.add_argument("--listing", action="store_true", help="Print listing to stdout")
    p_asm.add_argument("--log-dir", metavar="DIR",
                       help="Also write a full DEBUG log file to DIR")

    # ── emulate ──────────────────────────────────────────────────────────
    p_emu = sub.add_parser("emulate", help="Run machine code text")
    p_emu.add_argument("input", help="Machine code file")
    p_emu.add_argument("-v", "--verbose", action="store_true",
                       help="Log every cycle's registers")
    p_emu.add_argument("-l", "--limit", type=_step_limit, default=0, metavar="n",
                       help="Maximum number of cycles (0 or negative: no limit)")
    p_emu.add_argument("--log-dir", metavar="DIR",
                       help="Also write a full DEBUG log file to DIR")

    return parser


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)

    parser = build_parser()
    if argv and argv[0] in ("-h", "--help", "--version"):
        parser.parse_args(argv)

    if len(argv) < 2:
        sys.stderr.write(USAGE)
        return EXIT_USAGE

    # An unknown command is reported, not treated as an error.
    if argv[0] not in COMMANDS:
        print(f"Unknown command {argv[0]}")
        return EXIT_OK

    args = parser.parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.INFO
    if args.log_dir:
        setup_logging(level=logging.DEBUG, console_level=level, log_dir=Path(args.log_dir))
    else:
        setup_logging(level=level, console_level=level)

    handler = COMMANDS[args.command]
    try:
        return handler(args)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

# ── assemble ─────────────────────────────────────────────────────────────
def cmd_assemble(args) -> int:
    from mu0.assembler import Assembler, AssemblerError

    if args.output is None:
        sys.stderr.write("Not enough arguments to assemble\n")
        sys.stderr.write(USAGE)
        return EXIT_USAGE

    with open(args.input, "r", encoding="utf-8", newline="") as f:
        source = f.read()

    asm = Assembler()
    try:
        asm.assemble(source)
    except AssemblerError as e:
        print(f"Assembly error: {e}", file=sys.stderr)
        return EXIT_USAGE

    with open(args.output, "w", encoding="utf-8", newline="") as f:
        f.write(asm.to_hex())

    if args.listing:
        print(asm.get_listing())
    log.debug("Assembled %d words -> %s", len(asm.words), args.output)
    return EXIT_OK


# ── emulate ──────────────────────────────────────────────────────────────
def cmd_emulate(args) -> int:
    from mu0.emulator import Mu0Emulator, StopReason, MemoryFault

    # The I/O cell moves single bytes, so it gets the binary layer.
    sys.stdout.flush()
    stdin = getattr(sys.stdin, "buffer", sys.stdin)
    stdout = getattr(sys.stdout, "buffer", sys.stdout)

    emu = Mu0Emulator(stdin, stdout)
    emu.load_file(args.input)

    try:
        result = emu.run(limit=args.limit)
    except MemoryFault as e:
        print(str(e), file=sys.stderr)
        return EXIT_SEGFAULT
    finally:
        stdout.flush()

    if result is StopReason.TIMEOUT:
        return EXIT_STEP_LIMIT
    if result is StopReason.ILLEGAL:
        return EXIT_ILLEGAL_INSTRUCTION
    return EXIT_OK


COMMANDS = {
    "assemble": cmd_assemble,
    "emulate": cmd_emulate,
}


if __name__ == "__main__":
    sys.exit(main())
