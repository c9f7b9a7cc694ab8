#!/usr/bin/env python3
"""
lmcc — Little Man Computer Toolkit
===================================

One CLI for everything:
    lmcc asm     — Assemble LMC source to machine code or a listing
    lmcc run     — Run a program with canned input, print the output tray
    lmcc batch   — Run a file of test records against a program
    lmcc disasm  — Disassemble the 100 mailboxes of a program

Usage:
    python lmcc.py <command> [options]
    python lmcc.py --help
    python lmcc.py <command> --help

Examples:
    python lmcc.py asm programs/add.asm -o add.mc
    python lmcc.py asm programs/add.asm --listing
    python lmcc.py run programs/add.asm --input 4,7
    python lmcc.py run add.mc --input 4,7 --max-cycles 50 --trace
    python lmcc.py batch programs/sub.asm programs/sub_tests.txt
    python lmcc.py disasm add.mc

Exit codes:
    0  success (run: program halted; batch: every record passed)
    1  error (bad source, bad file, engine error, failed records)
    3  run: cycle budget exhausted before HLT
"""

import argparse
import logging
import sys
import os

# Ensure our packages are importable
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from lmc_assembler import Assembler, AssemblerError, __version__
from lmc_emulator import LMCEmulator, StopReason, EmulatorError
from lmc_emulator.config import (
    DECIMAL_RE, DEFAULT_MAX_CYCLES, MACHINE_CODE_SUFFIXES, MAILBOX_COUNT,
    SOURCE_SUFFIXES,
)
from lmc_emulator.cpu.decoder import disassemble
from lmc_emulator.harness.batch_harness import BatchHarness
from lmc_emulator.log_setup import setup_logging
from lmc_emulator.mem.memory import Memory, parse_machine_code

log = logging.getLogger('lmc.cli')

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_TIMEOUT = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lmcc",
        description="Little Man Computer toolkit — assemble, run, batch test, disassemble",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  asm      Assemble LMC source to machine code (or print a listing)
  run      Run a program and print every output value
  batch    Run test records (name;inputs;result;max_cycles) against a program
  disasm   Disassemble a program's 100 mailboxes
""",
    )
    parser.add_argument("--version", action="version", version=f"lmcc {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log progress (INFO)")
    parser.add_argument("--debug", action="store_true",
                        help="Log every pass and instruction (DEBUG)")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Log errors only")
    parser.add_argument("--log-file", default=None,
                        help="Also write a DEBUG log to this file")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── asm ──────────────────────────────────────────────────────────────
    p_asm = sub.add_parser("asm", help="Assemble LMC source to machine code")
    p_asm.add_argument("input", help="Input .asm/.lmc file")
    p_asm.add_argument("-o", "--output", help="Output file (.mc, or .lst for a listing)")
    p_asm.add_argument("--listing", action="store_true", help="Print listing to stdout")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Run a program")
    p_run.add_argument("program", help="Source (.asm/.lmc/.s) or machine-code file")
    p_run.add_argument("--input", default="",
                       help="Comma-separated input tray values, e.g. 4,7")
    p_run.add_argument("--max-cycles", type=int, default=DEFAULT_MAX_CYCLES,
                       help=f"Instruction budget (default: {DEFAULT_MAX_CYCLES})")
    p_run.add_argument("--trace", action="store_true",
                       help="Print one line per executed instruction to stderr")
    p_run.add_argument("--dump", action="store_true",
                       help="Print the mailboxes after the run")

    # ── batch ────────────────────────────────────────────────────────────
    p_bat = sub.add_parser("batch", help="Run test records against a program")
    p_bat.add_argument("program", help="Source (.asm/.lmc/.s) or machine-code file")
    p_bat.add_argument("tests", help="Test file, one name;inputs;result;max_cycles per line")

    # ── disasm ───────────────────────────────────────────────────────────
    p_dis = sub.add_parser("disasm", help="Disassemble a program")
    p_dis.add_argument("program", help="Source (.asm/.lmc/.s) or machine-code file")
    p_dis.add_argument("--all", action="store_true",
                       help="Include trailing 000 mailboxes")

    return parser


def _log_level(args) -> int:
    if args.debug:
        return logging.DEBUG
    if args.verbose:
        return logging.INFO
    if args.quiet:
        return logging.ERROR
    return logging.WARNING


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return EXIT_OK

    setup_logging(console_level=_log_level(args), log_file=args.log_file)

    handler = COMMANDS[args.command]
    try:
        return handler(args)
    except AssemblerError as e:
        print(f"Assembly error: {e}", file=sys.stderr)
    except EmulatorError as e:
        print(f"{e.kind}: {e}", file=sys.stderr)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
    return EXIT_ERROR


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def _read_text(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _load_image(path):
    """Assemble source files, parse machine-code files; the suffix decides."""
    ext = os.path.splitext(path)[1].lower()
    if ext in SOURCE_SUFFIXES:
        log.info("Assembling %s", path)
        return Assembler().assemble(_read_text(path))
    if ext in MACHINE_CODE_SUFFIXES:
        log.info("Loading machine code %s", path)
        return parse_machine_code(_read_text(path))
    known = ", ".join(SOURCE_SUFFIXES + MACHINE_CODE_SUFFIXES)
    raise ValueError(f"{path}: unknown program type '{ext}' (expected one of {known})")


def _parse_inputs(text):
    """'4,7' -> [4, 7]; values are range checked by the input tray."""
    values = []
    for token in text.split(","):
        token = token.strip()
        if not token:
            continue
        if not DECIMAL_RE.fullmatch(token):
            raise ValueError(f"--input: not an input value: '{token}'")
        values.append(int(token))
    return values


# ── asm ──────────────────────────────────────────────────────────────────
def cmd_asm(args):
    source = _read_text(args.input)

    asm = Assembler()
    asm.assemble(source)

    if args.listing:
        print(asm.get_listing())
        return EXIT_OK

    if not args.output:
        sys.stdout.write(asm.to_machine_code())
        return EXIT_OK

    ext = os.path.splitext(args.output)[1].lower()
    with open(args.output, "w", encoding="utf-8") as f:
        f.write(asm.get_listing() + "\n" if ext == ".lst" else asm.to_machine_code())
    print(f"Assembled {asm.size} mailboxes -> {args.output}")
    return EXIT_OK


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args):
    if args.max_cycles < 0:
        raise ValueError("--max-cycles must be >= 0")

    emu = LMCEmulator()
    emu.load_program(_load_image(args.program))
    emu.inject_input(_parse_inputs(args.input))
    emu.enable_trace(args.trace)

    # Whatever reached the output tray is printed even if the run fails
    try:
        result = emu.run(max_cycles=args.max_cycles)
    finally:
        if args.trace and emu.get_trace():
            print(emu.get_trace(), file=sys.stderr)
        for value in emu.outputs:
            print(f"{value:03d}")

    if args.dump:
        print(emu.mem.dump())

    if result.stop_reason is StopReason.TIMEOUT:
        print(f"Cycle budget exceeded: no HLT within {args.max_cycles} cycles",
              file=sys.stderr)
        return EXIT_TIMEOUT

    log.info("Halted after %d cycles", emu.regs.cycles)
    return EXIT_OK


# ── batch ────────────────────────────────────────────────────────────────
def cmd_batch(args):
    image = _load_image(args.program)

    # Malformed lines become execution_error outcomes; the rest still run
    harness = BatchHarness(image)
    harness.run_file(_read_text(args.tests))
    print(harness.report())
    return EXIT_OK if harness.all_passed else EXIT_ERROR


# ── disasm ───────────────────────────────────────────────────────────────
def cmd_disasm(args):
    mem = Memory()
    mem.load_program(_load_image(args.program))
    image = mem.snapshot()

    last = MAILBOX_COUNT - 1
    if not args.all:
        while last > 0 and image[last] == 0:
            last -= 1

    for addr in range(last + 1):
        print(f"{addr:02d}: {image[addr]:03d}  {disassemble(image[addr])}")
    return EXIT_OK


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND DISPATCH TABLE
# ═════════════════════════════════════════════════════════════════════════════

COMMANDS = {
    "asm": cmd_asm,
    "run": cmd_run,
    "batch": cmd_batch,
    "disasm": cmd_disasm,
}


if __name__ == "__main__":
    sys.exit(main())
