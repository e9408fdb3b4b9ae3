"""
Execution engine for Uzumaki programs.

A single cursor walks the spiral tape, executing one character per step
against a queue of integers (front element = Q0) and an accumulator.
Machine state is an immutable value; step() returns the next state or the
Fault that stopped execution.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, replace
from typing import BinaryIO, Callable, TextIO

from grid_parser import parse_grid
from layers import jump_inward, jump_outward, jump_to_top, on_tape
from spiral import unwind
from spiral_types import Cursor, Fault, FaultKind, RunConfig, Tape, TerminationReason

logger = logging.getLogger(__name__)

PRINT_TOGGLE = "#"

# Optional sign and digits, surrounded by whitespace
INTEGER_LINE = re.compile(r"\s*([+-]?[0-9]+)\s*")


# =============================================================================
# State
# =============================================================================


@dataclass(frozen=True)
class Machine:
    """Complete interpreter state between two steps."""

    queue: tuple[int, ...] = (0,)
    accumulator: int = 0
    cursor: Cursor = Cursor(0, 0)
    printing: bool = False
    halted: bool = False


@dataclass
class Streams:
    """Program input (bytes) and output (text)."""

    stdin: BinaryIO
    stdout: TextIO


@dataclass(frozen=True)
class RunResult:
    """Outcome of run()."""

    machine: Machine
    reason: TerminationReason
    fault: Fault | None
    steps: int


Outcome = Machine | FaultKind
Command = Callable[[Machine, Tape, Streams], Outcome]
Jump = Callable[[Tape, Cursor], Cursor | FaultKind]


def _with_front(machine: Machine, value: int) -> Machine:
    return replace(machine, queue=(value,) + machine.queue[1:])


def _push(machine: Machine, value: int) -> Machine:
    return replace(machine, queue=(value,) + machine.queue)


# =============================================================================
# Commands
# =============================================================================


def toggle_printing(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    return replace(machine, printing=not machine.printing)


def push_zero(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    return _push(machine, 0)


def _adder(amount: int) -> Command:
    """Command adding a constant to Q0."""

    def add(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
        if not machine.queue:
            return FaultKind.QUEUE_EMPTY
        return _with_front(machine, machine.queue[0] + amount)

    return add


def output_number(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    if not machine.queue:
        return FaultKind.QUEUE_EMPTY
    streams.stdout.write(str(machine.queue[0]))
    return machine


def output_char(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    if not machine.queue:
        return FaultKind.QUEUE_EMPTY
    value = machine.queue[0]
    # Surrogates are valid for chr() but cannot be written as text
    if 0xD800 <= value <= 0xDFFF:
        return FaultKind.INVALID_CHARACTER
    try:
        char = chr(value)
    except (ValueError, OverflowError):
        return FaultKind.INVALID_CHARACTER
    streams.stdout.write(char)
    return machine


def store_accumulator(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    if not machine.queue:
        return FaultKind.QUEUE_EMPTY
    return replace(machine, accumulator=machine.queue[0])


def discard_front(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    # The queue may never become empty
    if len(machine.queue) <= 1:
        return FaultKind.QUEUE_EMPTY
    return replace(machine, queue=machine.queue[1:])


def duplicate_front(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    if not machine.queue:
        return FaultKind.QUEUE_EMPTY
    return _push(machine, machine.queue[0])


def read_byte(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    data = streams.stdin.read(1)
    return _push(machine, data[0] if data else 0)


def add_accumulator(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    if not machine.queue:
        return FaultKind.QUEUE_EMPTY
    return _with_front(machine, machine.queue[0] + machine.accumulator)


def skip_if_equal(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    if not machine.queue:
        return FaultKind.QUEUE_EMPTY
    if machine.queue[0] == machine.accumulator:
        return advance(machine, tape)
    return machine


def skip_if_different(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    if not machine.queue:
        return FaultKind.QUEUE_EMPTY
    if machine.queue[0] != machine.accumulator:
        return advance(machine, tape)
    return machine


def reverse_queue(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    return replace(machine, queue=machine.queue[::-1])


def dump_queue(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    streams.stdout.write("[" + ", ".join(str(v) for v in machine.queue) + "]\n")
    return machine


def read_number(machine: Machine, tape: Tape, streams: Streams) -> Outcome:
    line = streams.stdin.readline().decode("utf-8", errors="replace")
    match = INTEGER_LINE.fullmatch(line)
    return _push(machine, int(match.group(1)) if match else 0)


COMMANDS: dict[str, Command] = {
    PRINT_TOGGLE: toggle_printing,
    "Q": push_zero,
    "I": _adder(1),
    "D": _adder(-1),
    "P": _adder(10),
    "M": _adder(-10),
    "O": output_number,
    "C": output_char,
    "A": store_accumulator,
    "X": discard_front,
    "Z": duplicate_front,
    "S": read_byte,
    "V": add_accumulator,
    "J": skip_if_equal,
    "K": skip_if_different,
    "R": reverse_queue,
    "E": dump_queue,
    "G": read_number,
}

# Commands that move the cursor; the character landed on runs immediately
JUMPS: dict[str, Jump] = {
    "H": jump_outward,
    "B": jump_inward,
    "W": jump_to_top,
}


# =============================================================================
# Stepping
# =============================================================================


def char_at(tape: Tape, cursor: Cursor) -> str:
    return tape[cursor.segment][cursor.offset]


def _fault(kind: FaultKind, tape: Tape, cursor: Cursor) -> Fault:
    return Fault(kind, cursor.segment, tape[cursor.segment], cursor.offset, char_at(tape, cursor))


def advance(machine: Machine, tape: Tape) -> Machine:
    """Move the cursor to the next character, halting after the last one."""
    if machine.halted:
        return machine

    segment, offset = machine.cursor.segment, machine.cursor.offset
    if offset == len(tape[segment]) - 1:
        if segment == len(tape) - 1:
            return replace(machine, halted=True)
        return replace(machine, cursor=Cursor(segment + 1, 0))
    return replace(machine, cursor=Cursor(segment, offset + 1))


def dispatch(machine: Machine, tape: Tape, streams: Streams) -> Machine | Fault:
    """
    Execute the character under the cursor.

    Jumps reposition the cursor and the character they land on is
    dispatched in turn, until a non-jump command runs. A chain of jumps
    that returns to a position it already left can never finish and is
    reported as JUMP_CYCLE.
    """
    visited: set[Cursor] = set()

    while True:
        cursor = machine.cursor
        jump = JUMPS.get(char_at(tape, cursor))
        if jump is None:
            break
        if cursor in visited:
            return _fault(FaultKind.JUMP_CYCLE, tape, cursor)
        visited.add(cursor)

        target = jump(tape, cursor)
        if isinstance(target, FaultKind):
            return _fault(target, tape, cursor)
        if not on_tape(tape, target):
            return _fault(FaultKind.OFF_TAPE, tape, cursor)

        logger.debug(
            "%s: (%d, %d) -> (%d, %d)",
            char_at(tape, cursor),
            cursor.segment,
            cursor.offset,
            target.segment,
            target.offset,
        )
        machine = replace(machine, cursor=target)

    command = COMMANDS.get(char_at(tape, machine.cursor))
    if command is None:
        return _fault(FaultKind.UNKNOWN_COMMAND, tape, machine.cursor)

    outcome = command(machine, tape, streams)
    if isinstance(outcome, FaultKind):
        return _fault(outcome, tape, machine.cursor)
    return outcome


def step(machine: Machine, tape: Tape, streams: Streams) -> Machine | Fault:
    """Fetch, execute and advance once."""
    if machine.halted:
        return machine

    char = char_at(tape, machine.cursor)
    if machine.printing and char != PRINT_TOGGLE:
        streams.stdout.write(char)
        return advance(machine, tape)

    outcome = dispatch(machine, tape, streams)
    if isinstance(outcome, Fault):
        return outcome
    return advance(outcome, tape)


def run(tape: Tape, streams: Streams, config: RunConfig = RunConfig()) -> RunResult:
    """
    Run a tape from its first character until it ends, faults, or hits
    config.max_steps.

    Args:
        tape: Unwound program
        streams: Program input and output
        config: RunConfig governing the run

    Returns:
        RunResult with the final state and why the run stopped
    """
    machine = Machine(halted=not tape)
    steps = 0

    while not machine.halted:
        if config.max_steps is not None and steps >= config.max_steps:
            logger.info("run: step limit %d reached", config.max_steps)
            return RunResult(machine, TerminationReason.STEP_LIMIT, None, steps)

        outcome = step(machine, tape, streams)
        steps += 1
        if isinstance(outcome, Fault):
            logger.info("run: %s after %d steps", outcome.kind.name, steps)
            return RunResult(machine, TerminationReason.FAULT, outcome, steps)
        machine = outcome

    logger.info("run: end of tape after %d steps", steps)
    return RunResult(machine, TerminationReason.END_OF_TAPE, None, steps)


def run_source(
    text: str, stdin: bytes = b"", config: RunConfig = RunConfig()
) -> tuple[str, RunResult]:
    """
    Parse, unwind and run program text against in-memory input.

    Returns:
        (output, RunResult)

    Raises:
        GridError: If the text is not a square grid
    """
    tape = unwind(parse_grid(text))
    stdout = io.StringIO()
    result = run(tape, Streams(io.BytesIO(stdin), stdout), config)
    return stdout.getvalue(), result
