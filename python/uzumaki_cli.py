#!/usr/bin/env python3
"""
Command-line interpreter for Uzumaki programs.

Usage:
  uzumaki program.uzu [-v|-vv] [--max-steps N] [--spiral]

Program output goes to stdout; diagnostics, logs and the --spiral view go
to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ascii_render import render, render_tape
from grid_parser import GridError, load_grid
from spiral import trace, unwind
from spiral_types import RunConfig, TerminationReason
from uzumaki import Streams, run

LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_STEP_LIMIT = 3


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="uzumaki", description="Run an Uzumaki spiral program")
    ap.add_argument("file", nargs="?", help="Path to the program (a square grid of characters)")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug logs")
    ap.add_argument("--max-steps", type=int, default=None, help="Stop after this many steps")
    ap.add_argument("--spiral", action="store_true", help="Show the coloured spiral and tape before running")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=LOG_LEVELS[min(args.verbose, len(LOG_LEVELS) - 1)],
        format="%(levelname)s: %(message)s",
    )
    console = Console(stderr=True)

    if args.file is None:
        console.print("No file specified.")
        return EXIT_USAGE

    try:
        grid = load_grid(args.file)
    except (GridError, OSError) as e:
        console.print(Text(str(e), style="bold red"))
        return EXIT_ERROR

    tape = unwind(grid)

    if args.spiral:
        console.print(Panel(Text.from_ansi(render(grid)), title="Spiral", expand=False))
        console.print(Panel(Text.from_ansi(render_tape(tape)), title="Tape", expand=False))

    result = run(tape, Streams(sys.stdin.buffer, sys.stdout), RunConfig(max_steps=args.max_steps))
    sys.stdout.flush()

    if result.fault is not None:
        fault = result.fault
        body = Text(fault.message, style="bold red")
        if args.spiral:
            coord = trace(grid)[fault.segment_index][fault.offset]
            body.append("\n\n")
            body.append_text(Text.from_ansi(render(grid, highlight=coord)))
        console.print(Panel(body, title="Uzumaki - Error", border_style="red"))
        return EXIT_ERROR

    if result.reason == TerminationReason.STEP_LIMIT:
        console.print(Text(f"Stopped after {result.steps} steps", style="yellow"))
        return EXIT_STEP_LIMIT

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
