"""
Demonstration programs for the Uzumaki interpreter.
"""

from ascii_render import render, render_tape
from spiral import unwind
from spiral_types import Grid
from uzumaki import run_source

# name -> (grid rows, stdin)
PROGRAMS: dict[str, tuple[tuple[str, ...], bytes]] = {
    # Printing mode carries the text around the outer ring; P C prints a newline
    "hello": (
        (
            "#Hello",
            "     ,",
            "RRRR  ",
            "R  R W",
            "C    o",
            "P#!dlr",
        ),
        b"",
    ),
    # Read a number, double it through the accumulator, print it
    "double": (
        (
            "GAV",
            "  O",
            "CPQ",
        ),
        b"21\n",
    ),
    # B jumps from the first side straight into the second ring, skipping the rest
    "jump": (
        (
            "IIB   ",
            "      ",
            "  OQ  ",
            "   O  ",
            "      ",
            "      ",
        ),
        b"",
    ),
}


def demo() -> None:
    """Render and run every bundled program."""
    for name, (rows, stdin) in PROGRAMS.items():
        grid = Grid(rows)
        print("=" * 40)
        print(f"{name}:")
        print("=" * 40)
        print(render(grid))
        print()
        print(render_tape(unwind(grid)))
        print()

        output, result = run_source("\n".join(rows), stdin)
        print(f"Output: {output!r}")
        print(f"Stopped: {result.reason.value} after {result.steps} steps")
        print()


if __name__ == "__main__":
    demo()
