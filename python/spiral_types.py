"""
Shared type definitions for the Uzumaki interpreter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Direction(Enum):
    """Direction of one side of a ring, in unwinding order."""

    E = "E"  # Rightward (increasing col)
    S = "S"  # Downward (increasing row)
    W = "W"  # Leftward (decreasing col)
    N = "N"  # Upward (decreasing row)


# Segments per ring, in the order E, S, W, N
LAYER_SIZE = 4

# Inner wall length used when there is no segment one ring further in
ABSENT = -1


# =============================================================================
# Source Grid
# =============================================================================


@dataclass(frozen=True)
class Grid:
    """A square grid of program characters."""

    rows: tuple[str, ...]

    @property
    def size(self) -> int:
        return len(self.rows)

    def padded(self) -> tuple[str, ...]:
        """
        Rows with two leading placeholder columns.

        The first row gets "RR" (R reverses the queue, a no-op while it holds
        a single element); every other row gets two blanks that are never read.
        """
        return tuple(("RR" if i == 0 else "  ") + row for i, row in enumerate(self.rows))


# Ordered segments of the unwound spiral, outermost ring first
Tape = tuple[str, ...]


@dataclass(frozen=True)
class Cursor:
    """Position of the next character to execute."""

    segment: int
    offset: int


# =============================================================================
# Execution Outcomes
# =============================================================================


class FaultKind(Enum):
    """Fatal execution error kinds."""

    UNKNOWN_COMMAND = "Unknown command"
    QUEUE_EMPTY = "Queue is empty"
    OUTERMOST_LAYER = "Attempted to jump out of topmost layer"
    OFF_TAPE = "Jump landed outside the spiral"
    INVALID_CHARACTER = "Value is not a valid character code"
    JUMP_CYCLE = "Jumps loop without executing anything"


@dataclass(frozen=True)
class Fault:
    """A fatal error with the position it happened at."""

    kind: FaultKind
    segment_index: int
    segment: str
    offset: int
    char: str

    @property
    def message(self) -> str:
        return (
            f"Error at segment {self.segment}, position {self.offset} ({self.char}): "
            f"{self.kind.value}"
        )


class TerminationReason(Enum):
    """Reason why a run stopped."""

    END_OF_TAPE = "end_of_tape"  # Advanced past the last character
    FAULT = "fault"  # A command hit a fatal error
    STEP_LIMIT = "step_limit"  # RunConfig.max_steps reached


@dataclass(frozen=True)
class RunConfig:
    """Settings governing a run."""

    max_steps: int | None = None  # None = run until the tape ends
