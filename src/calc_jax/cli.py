"""Command-line driver: run one line with ``-e`` or start an interactive session."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Final, Sequence, TextIO

from . import __version__
from .evaluator import StatefulEvaluate

PROMPT = "calc> "
_EXIT_WORDS = frozenset({"exit", "quit"})
# Each user-function call costs several interpreter frames.
_RECURSION_LIMIT: Final[int] = max(1000, int(os.environ.get("CALC_JAX_RECURSION_LIMIT", "10000")))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calc-jax",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                      # interactive session
  %(prog)s -e '2 ^ 3'           # evaluate one line
  %(prog)s --debug              # log environment changes and calls
        """,
    )
    parser.add_argument("-e", "--exec", dest="source", metavar="TEXT", help="evaluate one line and exit")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--version", action="version", version=f"calc-jax {__version__}")
    return parser


def repl(session: StatefulEvaluate, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
    """Read lines until EOF, ``exit`` or Ctrl-C, printing each result."""
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    while True:
        stdout.write(PROMPT)
        stdout.flush()
        try:
            line = stdin.readline()
        except KeyboardInterrupt:
            stdout.write("\n")
            return
        if not line:
            stdout.write("\n")
            return
        line = line.strip()
        if not line:
            continue
        if line in _EXIT_WORDS:
            return
        print(session(line), file=stdout)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if sys.getrecursionlimit() < _RECURSION_LIMIT:
        sys.setrecursionlimit(_RECURSION_LIMIT)

    session = StatefulEvaluate()
    if args.source is not None:
        result = session(args.source)
        print(result)
        return 1 if result.startswith("Error:") else 0

    repl(session)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
