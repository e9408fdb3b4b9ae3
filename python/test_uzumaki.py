"""
Tests for the Uzumaki execution engine.
"""

import io

import pytest

from demo import PROGRAMS
from spiral_types import Cursor, FaultKind, RunConfig, TerminationReason
from uzumaki import (
    COMMANDS,
    JUMPS,
    Machine,
    RunResult,
    Streams,
    advance,
    dispatch,
    run,
    run_source,
    skip_if_different,
    skip_if_equal,
    step,
)


def execute(tape: tuple[str, ...], stdin: bytes = b"", config: RunConfig = RunConfig()) -> tuple[str, RunResult]:
    """Run a tape against in-memory streams."""
    stdout = io.StringIO()
    result = run(tape, Streams(io.BytesIO(stdin), stdout), config)
    return stdout.getvalue(), result


def streams(stdin: bytes = b"") -> Streams:
    return Streams(io.BytesIO(stdin), io.StringIO())


# =============================================================================
# Whole Programs
# =============================================================================


class TestPrograms:
    """End-to-end runs from source text."""

    def test_single_cell(self) -> None:
        output, result = run_source("O")
        assert output == "0"
        assert result.reason == TerminationReason.END_OF_TAPE
        assert result.fault is None

    def test_two_by_two(self) -> None:
        output, result = run_source("II\nOO\n")
        assert output == "2"
        assert result.steps == 4

    def test_hello(self) -> None:
        rows, stdin = PROGRAMS["hello"]
        output, result = run_source("\n".join(rows), stdin)
        assert output == "Hello, World!\n"
        assert result.reason == TerminationReason.END_OF_TAPE

    def test_double(self) -> None:
        rows, stdin = PROGRAMS["double"]
        output, _ = run_source("\n".join(rows), stdin)
        assert output == "42\n"

    def test_jump_into_second_ring(self) -> None:
        rows, stdin = PROGRAMS["jump"]
        output, result = run_source("\n".join(rows), stdin)
        assert output == "20"
        assert result.reason == TerminationReason.END_OF_TAPE

    def test_deterministic(self) -> None:
        rows, stdin = PROGRAMS["double"]
        source = "\n".join(rows)
        assert run_source(source, stdin) == run_source(source, stdin)

    def test_empty_tape_ends_immediately(self) -> None:
        output, result = execute(())
        assert output == ""
        assert result.reason == TerminationReason.END_OF_TAPE
        assert result.steps == 0


# =============================================================================
# Commands
# =============================================================================


class TestArithmetic:
    @pytest.mark.parametrize(
        "tape, expected",
        [
            ("RIIIDO", "2"),
            ("RDDO", "-2"),
            ("RPPMO", "10"),
            ("RMIO", "-9"),
            ("RIIIAVO", "6"),
        ],
    )
    def test_front_arithmetic(self, tape: str, expected: str) -> None:
        output, _ = execute((tape,))
        assert output == expected

    def test_unbounded_integers(self) -> None:
        output, result = execute(("RI" + "AV" * 70 + "O",))
        assert output == str(2**70)
        assert result.machine.accumulator == 2**69


class TestQueue:
    def test_push_zero_becomes_front(self) -> None:
        output, result = execute(("RIQO",))
        assert output == "0"
        assert result.machine.queue == (0, 1)

    def test_reverse(self) -> None:
        output, result = execute(("RIQRO",))
        assert output == "1"
        assert result.machine.queue == (1, 0)

    def test_duplicate_and_discard(self) -> None:
        output, result = execute(("RIZXO",))
        assert output == "1"
        assert result.machine.queue == (1,)

    def test_dump(self) -> None:
        output, _ = execute(("RIZQE",))
        assert output == "[0, 1, 1]\n"

    def test_discarding_last_element_faults(self) -> None:
        output, result = execute(("RX",))
        assert output == ""
        assert result.reason == TerminationReason.FAULT
        assert result.fault is not None
        assert result.fault.kind == FaultKind.QUEUE_EMPTY
        assert result.fault.message == "Error at segment RX, position 1 (X): Queue is empty"

    def test_empty_queue_read_faults(self) -> None:
        machine = Machine(queue=(), cursor=Cursor(0, 1))
        fault = step(machine, ("RO",), streams())
        assert fault.kind == FaultKind.QUEUE_EMPTY

    @pytest.mark.parametrize("tape", ["RQXIO", "RZXRQXE", "RIIQAXVO"])
    def test_queue_never_empty(self, tape: str) -> None:
        _, result = execute((tape,))
        assert result.reason == TerminationReason.END_OF_TAPE
        assert len(result.machine.queue) >= 1


class TestOutput:
    def test_character(self) -> None:
        output, _ = execute(("R" + "P" * 6 + "I" * 5 + "C",))
        assert output == "A"

    def test_invalid_character_faults(self) -> None:
        output, result = execute(("RDC",))
        assert output == ""
        assert result.fault.kind == FaultKind.INVALID_CHARACTER

    @pytest.mark.parametrize("value", [0xD800, 0xDFFF])
    def test_surrogate_faults(self, value: int) -> None:
        """Surrogates cannot be written to a UTF-8 stream."""
        stdout = io.TextIOWrapper(io.BytesIO(), encoding="utf-8")
        machine = Machine(queue=(value,), cursor=Cursor(0, 1))
        fault = step(machine, ("RC",), Streams(io.BytesIO(), stdout))
        assert fault.kind == FaultKind.INVALID_CHARACTER
        assert (fault.offset, fault.char) == (1, "C")

    def test_surrogate_from_input_faults(self) -> None:
        output, result = execute(("RGOC",), b"55296\n")
        assert output == "55296"
        assert result.reason == TerminationReason.FAULT
        assert result.fault.kind == FaultKind.INVALID_CHARACTER


class TestInput:
    def test_read_bytes_until_exhausted(self) -> None:
        output, _ = execute(("RSOSOSO",), b"AB")
        assert output == "65660"

    @pytest.mark.parametrize(
        "stdin, expected",
        [
            (b"42\n", "42"),
            (b"  -17 \n", "-17"),
            (b"+5", "5"),
            (b"12abc\n", "0"),
            (b"\n", "0"),
            (b"", "0"),
        ],
    )
    def test_read_number(self, stdin: bytes, expected: str) -> None:
        output, _ = execute(("RGO",), stdin)
        assert output == expected

    def test_line_then_byte(self) -> None:
        output, _ = execute(("RGOSO",), b"7\nZ")
        assert output == "790"

    def test_big_number_input(self) -> None:
        output, _ = execute(("RGIO",), b"123456789012345678901234567890\n")
        assert output == "123456789012345678901234567891"


class TestSkips:
    @pytest.mark.parametrize(
        "tape, expected",
        [
            ("RJIO", "0"),  # 0 == 0: skip
            ("RKIO", "1"),  # 0 == 0: no skip
            ("RIJIO", "2"),  # 1 != 0: no skip
            ("RIKIO", "1"),  # 1 != 0: skip
        ],
    )
    def test_skip(self, tape: str, expected: str) -> None:
        output, _ = execute((tape,))
        assert output == expected

    def test_skip_crosses_segment_boundary(self) -> None:
        output, _ = execute(("RJ", "IO"))
        assert output == "0"

    def test_skip_at_end_halts(self) -> None:
        _, result = execute(("RJ",))
        assert result.reason == TerminationReason.END_OF_TAPE

    @pytest.mark.parametrize("q0, acc", [(0, 0), (1, 0), (-3, -3), (2**80, 2**80 + 1)])
    def test_exactly_one_skips(self, q0: int, acc: int) -> None:
        tape = ("RJKOOO",)
        machine = Machine(queue=(q0,), accumulator=acc, cursor=Cursor(0, 1))
        moved = [
            skip_if_equal(machine, tape, streams()).cursor != machine.cursor,
            skip_if_different(machine, tape, streams()).cursor != machine.cursor,
        ]
        assert moved.count(True) == 1


class TestPrinting:
    def test_between_toggles_is_verbatim(self) -> None:
        output, _ = execute(("R#IC#IO",))
        assert output == "IC1"

    def test_unknown_characters_print(self) -> None:
        output, result = execute(("R# ?!#O",))
        assert output == " ?!0"
        assert result.fault is None

    def test_third_toggle_turns_printing_back_on(self) -> None:
        output, _ = execute(("R#A##BO",))
        assert output == "ABO"

    def test_jump_characters_print(self) -> None:
        output, result = execute(("R#HBW#",))
        assert output == "HBW"
        assert result.reason == TerminationReason.END_OF_TAPE


class TestUnknownCommand:
    def test_fault_reports_position(self) -> None:
        output, result = execute(("ROI?O",))
        assert output == "0"
        assert result.reason == TerminationReason.FAULT
        fault = result.fault
        assert fault.kind == FaultKind.UNKNOWN_COMMAND
        assert (fault.segment_index, fault.segment, fault.offset, fault.char) == (0, "ROI?O", 3, "?")
        assert fault.message == "Error at segment ROI?O, position 3 (?): Unknown command"

    def test_space_on_the_tape_is_unknown(self) -> None:
        _, result = run_source("I \nOO")
        assert result.fault.kind == FaultKind.UNKNOWN_COMMAND
        assert result.fault.char == " "

    def test_command_table_covers_language(self) -> None:
        assert set(COMMANDS) | set(JUMPS) == set("#QIDPMOCAXZSVJKRHBWEG")


# =============================================================================
# Cursor Movement
# =============================================================================


class TestAdvance:
    def test_within_segment(self) -> None:
        machine = advance(Machine(cursor=Cursor(0, 0)), ("RII", "O"))
        assert machine.cursor == Cursor(0, 1)

    def test_to_next_segment(self) -> None:
        machine = advance(Machine(cursor=Cursor(0, 2)), ("RII", "O"))
        assert machine.cursor == Cursor(1, 0)
        assert not machine.halted

    def test_past_last_character_halts(self) -> None:
        machine = advance(Machine(cursor=Cursor(1, 0)), ("RII", "O"))
        assert machine.halted
        assert machine.cursor == Cursor(1, 0)

    def test_halted_machine_does_not_step(self) -> None:
        machine = Machine(halted=True)
        assert step(machine, ("RO",), streams()) is machine


class TestJumps:
    """Jump commands run the character they land on straight away."""

    TOP_TAPE = ("RIIIO", "RRR", "RRR", "RR", "RR", "R", "R", "R", "W")

    def test_jump_to_top_dispatches_landing_character(self) -> None:
        io_streams = streams()
        machine = Machine(queue=(3,), cursor=Cursor(8, 0))
        result = dispatch(machine, self.TOP_TAPE, io_streams)
        assert io_streams.stdout.getvalue() == "3"
        assert result.cursor == Cursor(0, 4)

    def test_step_advances_after_landing(self) -> None:
        machine = step(Machine(cursor=Cursor(8, 0)), self.TOP_TAPE, streams())
        assert machine.cursor == Cursor(1, 0)

    def test_outward_jump_from_outermost_ring_faults(self) -> None:
        _, result = execute(("RH",))
        assert result.fault.kind == FaultKind.OUTERMOST_LAYER
        assert result.fault.message.endswith("Attempted to jump out of topmost layer")

    def test_jump_to_top_from_outermost_ring_faults(self) -> None:
        _, result = execute(("RW",))
        assert result.fault.kind == FaultKind.OUTERMOST_LAYER

    def test_inward_jump_off_the_spiral_faults(self) -> None:
        _, result = execute(("RII", "B"))
        assert result.fault.kind == FaultKind.OFF_TAPE
        assert (result.fault.segment_index, result.fault.offset) == (1, 0)

    def test_jump_cycle_faults(self) -> None:
        # B at (0, 3) lands on H at (4, 1), which jumps straight back
        _, result = execute(("RIIB", "R", "R", "R", "RH"))
        assert result.fault.kind == FaultKind.JUMP_CYCLE
        assert (result.fault.segment, result.fault.offset, result.fault.char) == ("RIIB", 3, "B")

    def test_outward_loop_with_step_limit(self) -> None:
        # H at (4, 0) lands on O at (0, 2), so every lap prints Q0 again
        output, result = execute(("RIO", "R", "R", "R", "H"), config=RunConfig(max_steps=11))
        assert output == "111"
        assert result.reason == TerminationReason.STEP_LIMIT
        assert result.steps == 11
