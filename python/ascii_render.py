"""
ASCII rendering for Uzumaki programs.

Provides two views:
1. Grid view - the source grid with every cell coloured by the ring it belongs to
2. Tape view - the unwound segments listed ring by ring
"""

from __future__ import annotations

from typing import Callable

import simple_chalk as chalk  # type: ignore[import-untyped]

from spiral import Coord, layer_of, layers, trace
from spiral_types import LAYER_SIZE, Grid, Tape

# Ring colours, cycled for deep spirals
PALETTE: list[Callable[[str], str]] = [
    chalk.red,
    chalk.green,
    chalk.yellow,
    chalk.blue,
    chalk.magenta,
    chalk.cyan,
    chalk.redBright,
    chalk.greenBright,
    chalk.yellowBright,
    chalk.blueBright,
]


def ring_color(ring: int) -> Callable[[str], str]:
    return PALETTE[ring % len(PALETTE)]


def ring_map(grid: Grid) -> dict[Coord, int]:
    """Ring number of every grid cell that lies on the tape."""
    rings: dict[Coord, int] = {}
    for index, side in enumerate(trace(grid)):
        for coord in side:
            if coord is not None:
                rings[coord] = layer_of(index)
    return rings


def render(grid: Grid, highlight: Coord | None = None) -> str:
    """
    Render a grid with ANSI colours.

    Cells on ring k use the k-th palette colour; cells the tape never
    reaches are left uncoloured.

    Args:
        grid: The program grid
        highlight: Optional (row, col) to draw inverted, e.g. a fault position

    Returns:
        Rendered string, one line per grid row
    """
    rings = ring_map(grid)
    lines: list[str] = []

    for r, row in enumerate(grid.rows):
        out: list[str] = []
        for c, char in enumerate(row):
            if highlight == (r, c):
                colorize = chalk.bgWhite.black
            elif (r, c) in rings:
                colorize = ring_color(rings[(r, c)])
            else:
                colorize = lambda s: s
            out.append(colorize(char))
        lines.append("".join(out))

    return "\n".join(lines)


def render_tape(tape: Tape) -> str:
    """List segments ring by ring, e.g. "ring 0: [0] RII  [1] O"."""
    lines: list[str] = []
    for ring, group in enumerate(layers(tape)):
        colorize = ring_color(ring)
        cells = [
            f"[{ring * LAYER_SIZE + i}] {colorize(segment)}" for i, segment in enumerate(group)
        ]
        lines.append(f"ring {ring}: " + "  ".join(cells))
    return "\n".join(lines)
