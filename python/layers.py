"""
Layer navigation: moving the cursor between concentric rings of the tape.

Segments 4k..4k+3 form ring k. A segment four places further on is the same
side one ring inward and is four cells shorter, two of which come from the
padding the outer ring absorbed. Moving between rings therefore shifts the
segment index by four and the offset by two. Corners are shared between
neighbouring sides, so positions near a corner map onto an adjacent side.

Every jump returns the new Cursor, or a FaultKind if the jump is impossible.
"""

from __future__ import annotations

from spiral_types import ABSENT, LAYER_SIZE, Cursor, FaultKind, Tape

__all__ = ["on_tape", "inner_wall_length", "jump_outward", "jump_inward", "jump_to_top"]


def on_tape(tape: Tape, cursor: Cursor) -> bool:
    """Check that a cursor addresses an existing character."""
    return 0 <= cursor.segment < len(tape) and 0 <= cursor.offset < len(tape[cursor.segment])


def inner_wall_length(tape: Tape, index: int) -> int:
    """
    Length of the side one ring inward from segment `index`, counted with
    its two shared corner cells, or ABSENT if there is no such side.
    """
    inner = index + LAYER_SIZE
    if inner >= len(tape):
        return ABSENT
    return len(tape[inner]) + 2


def jump_outward(tape: Tape, cursor: Cursor) -> Cursor | FaultKind:
    """Move one ring outward."""
    if cursor.segment < LAYER_SIZE:
        return FaultKind.OUTERMOST_LAYER

    return Cursor(cursor.segment - LAYER_SIZE, cursor.offset + 2)


def jump_inward(tape: Tape, cursor: Cursor) -> Cursor | FaultKind:
    """
    Move one ring inward.

    Three cases, checked in order:
    - At a corner (offset 0), or on one of the last two segments: mirror
      onto the segment two back, using that segment's length.
    - Past the end of the inner wall: mirror onto the segment two ahead,
      using the current segment's length.
    - Otherwise: straight in, four segments ahead and two cells back.
    """
    index = cursor.segment
    offset = cursor.offset
    wall = inner_wall_length(tape, index)

    if offset == 0 or index >= len(tape) - 2:
        index -= 2
        if index < 0:
            return FaultKind.OFF_TAPE
        offset = len(tape[index]) - 2 - offset
    elif offset > wall:
        offset = len(tape[index]) - 2 - offset
        index += 2
    else:
        index += LAYER_SIZE
        offset -= 2

    # Landed on the corner that closes the previous segment
    if offset == -1:
        index -= 1
        if index < 0:
            return FaultKind.OFF_TAPE
        offset = len(tape[index]) - 1

    target = Cursor(index, offset)
    if not on_tape(tape, target):
        return FaultKind.OFF_TAPE
    return target


def jump_to_top(tape: Tape, cursor: Cursor) -> Cursor | FaultKind:
    """Move outward until the cursor is on the outermost ring."""
    if cursor.segment < LAYER_SIZE:
        return FaultKind.OUTERMOST_LAYER

    target: Cursor | FaultKind = cursor
    while isinstance(target, Cursor) and target.segment >= LAYER_SIZE:
        target = jump_outward(tape, target)
    return target
