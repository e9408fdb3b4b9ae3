"""
Spiral unwinding: turns a square Grid into a Tape of segments.

The padded grid is walked from its top-left corner in rings of four sides
(E, S, W, N). Each side starts one cell past the current corner, so the
corner itself belongs to the previous side.
"""

from __future__ import annotations

import logging

from spiral_types import LAYER_SIZE, Direction, Grid, Tape

__all__ = ["Coord", "trace", "unwind", "layer_of", "layers"]

logger = logging.getLogger(__name__)

# (row, col)
Coord = tuple[int, int]

# Direction deltas: (row_delta, col_delta)
DELTAS = {
    Direction.E: (0, 1),
    Direction.S: (1, 0),
    Direction.W: (0, -1),
    Direction.N: (-1, 0),
}

# Padding columns added in front of every row
PAD = 2


def _side(row: int, col: int, direction: Direction, length: int) -> tuple[list[Coord], int, int]:
    """Collect length - 1 cells past (row, col); return them and the new corner."""
    dr, dc = DELTAS[direction]
    cells = [(row + dr * i, col + dc * i) for i in range(1, length)]
    return cells, row + dr * (length - 1), col + dc * (length - 1)


def _padded_sides(size: int) -> list[list[Coord]]:
    """Cells of every side, in padded-grid coordinates."""
    sides: list[list[Coord]] = []
    row = col = 0
    length = size + PAD

    while length > 2:
        for direction in Direction:
            cells, row, col = _side(row, col, direction, length)
            sides.append(cells)

            if direction in (Direction.E, Direction.W):
                length -= 2
                # A side of length 1 is just its corner, which is already taken
                if length <= 1:
                    break
            elif direction == Direction.S and length <= 2:
                # Only the one or two centre cells remain
                break

    return sides


def trace(grid: Grid) -> tuple[tuple[Coord | None, ...], ...]:
    """
    Grid coordinates consumed by each segment, in execution order.

    Coordinates refer to the unpadded grid; padding cells map to None.
    """
    return tuple(
        tuple((r, c - PAD) if c >= PAD else None for r, c in side)
        for side in _padded_sides(grid.size)
    )


def unwind(grid: Grid) -> Tape:
    """
    Unwind a grid into its spiral tape.

    Examples:
        ["O"] -> ("RO",)
        ["II", "OO"] -> ("RII", "O")

    Args:
        grid: A validated square grid

    Returns:
        Segments in spiral order, four per ring, outermost ring first
    """
    padded = grid.padded()
    tape = tuple("".join(padded[r][c] for r, c in side) for side in _padded_sides(grid.size))

    logger.info(
        "unwind: %dx%d grid -> %d segments in %d rings",
        grid.size,
        grid.size,
        len(tape),
        len(layers(tape)),
    )
    return tape


def layer_of(index: int) -> int:
    """Ring number of a segment index (0 = outermost)."""
    return index // LAYER_SIZE


def layers(tape: Tape) -> tuple[Tape, ...]:
    """Group a tape into rings of up to four segments."""
    return tuple(tape[i : i + LAYER_SIZE] for i in range(0, len(tape), LAYER_SIZE))
