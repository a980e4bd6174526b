"""
ipdl-epilog: compile a structured IPDL program (JSON) to Epilog.

Usage:
  ipdl-epilog [INPUT] [-o OUTPUT] [--deterministic] [-v]

Reads INPUT (or standard input when omitted or "-") and prints the Epilog
program to standard output, or writes it to OUTPUT.

Exit codes:
  0  success
  1  the program could not be compiled
  2  the input is not valid JSON or does not match the IPDL schema
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from ipdl_epilog import __version__
from ipdl_epilog.epilog.program import write_program
from ipdl_epilog.ipdl.compiler import IPDLEpilogCompiler
from ipdl_epilog.ipdl.errors import CompileError
from ipdl_epilog.ipdl.schema import Program
from ipdl_epilog.ipdl.symbols import CounterSymbolGenerator, UuidSymbolGenerator

logger = logging.getLogger("ipdl_epilog")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ipdl-epilog",
        description="Compile a structured IPDL program to Epilog.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"ipdl-epilog {__version__}"
    )
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="IPDL JSON file (default: standard input)",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write the Epilog program to this file instead of standard output",
    )
    parser.add_argument(
        "--deterministic", action="store_true",
        help="Use sequential symbol suffixes instead of random UUIDs",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        program = Program.model_validate(json.loads(_read_input(args.input)))
    except OSError as e:
        print(f"Cannot read input: {e}", file=sys.stderr)
        return 2
    except json.JSONDecodeError as e:
        print(f"Invalid JSON: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print(f"Invalid IPDL program:\n{e}", file=sys.stderr)
        return 2

    symbols = CounterSymbolGenerator() if args.deterministic else UuidSymbolGenerator()
    compiler = IPDLEpilogCompiler(symbols=symbols)

    try:
        compiled = compiler.compile(program)
    except CompileError as e:
        print(f"Compilation failed ({e.kind.value}): {e}", file=sys.stderr)
        return 1

    if args.output is not None:
        path = write_program(compiled, args.output)
        logger.info(f"Wrote Epilog program to {path}")
    else:
        print(compiled.text)

    return 0


if __name__ == "__main__":
    sys.exit(main())
