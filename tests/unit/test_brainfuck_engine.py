from __future__ import annotations

import pytest

from bfstep.core.session.errors import ExecutionFault, InputExhausted
from bfstep.engine.brainfuck import BrainfuckEngine, build_jump_table
from bfstep.engine.io import BufferedInput, OutputBuffer


def _engine(code: str, *, text: str = "", memory_size: int = 64) -> tuple[BrainfuckEngine, OutputBuffer]:
    out = OutputBuffer()
    return BrainfuckEngine(code, output=out, input=BufferedInput(text), memory_size=memory_size), out


def _run(engine: BrainfuckEngine) -> None:
    while not engine.reached_end:
        engine.step()


def test_prints_letter() -> None:
    engine, out = _engine("++++++++[>++++++++<-]>+.")
    _run(engine)

    assert out.text() == "A"
    assert engine.pointer == 1
    assert engine.memory[1] == 65


def test_cells_wrap_as_bytes() -> None:
    engine, _ = _engine("-")
    engine.step()
    assert engine.memory[0] == 255


def test_comments_take_a_step_each() -> None:
    engine, _ = _engine("a+b")
    engine.step()
    assert engine.program_counter == 1
    assert engine.memory[0] == 0
    engine.step()
    assert engine.memory[0] == 1


def test_underflow_faults_without_advancing() -> None:
    engine, _ = _engine("+<")
    engine.step()

    with pytest.raises(ExecutionFault, match="tape underflow"):
        engine.step()
    assert engine.program_counter == 1


def test_overflow_faults() -> None:
    engine, _ = _engine(">>", memory_size=2)
    engine.step()
    with pytest.raises(ExecutionFault, match="tape overflow"):
        engine.step()


def test_reads_input_until_exhausted() -> None:
    engine, out = _engine(",.,.,", text="hi")
    for _ in range(4):
        engine.step()
    assert out.text() == "hi"

    with pytest.raises(InputExhausted, match="No input found"):
        engine.step()
    assert engine.program_counter == 4


def test_unmatched_bracket_faults_when_reached() -> None:
    engine, _ = _engine("+]")
    engine.step()
    with pytest.raises(ExecutionFault, match="unmatched"):
        engine.step()


def test_jump_table_reports_unmatched() -> None:
    table, unmatched = build_jump_table("[[]")
    assert table == {1: 2, 2: 1}
    assert unmatched == {0}


def test_step_past_end_faults() -> None:
    engine, _ = _engine("+")
    engine.step()
    assert engine.reached_end
    with pytest.raises(ExecutionFault):
        engine.step()


def test_execute_leaves_program_counter_alone() -> None:
    engine, out = _engine("")
    engine.execute("+")
    engine.execute("+")
    engine.execute(".")

    assert engine.program_counter == 0
    assert out.text() == "\x02"

    with pytest.raises(ExecutionFault):
        engine.execute("[")
    with pytest.raises(ExecutionFault):
        engine.execute("x")
