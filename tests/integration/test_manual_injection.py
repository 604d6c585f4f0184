from __future__ import annotations

import pytest

from bfstep.core.session.controller import SessionController
from bfstep.core.session.errors import NoActiveSession
from bfstep.core.session.scheduler import ManualScheduler
from bfstep.engine.brainfuck import brainfuck_engine_factory
from bfstep.engine.io import OutputBuffer
from conftest import MANUAL, STEPPED, Collector, ScriptedFactory


def test_rejected_instruction_is_discarded(
    factory: ScriptedFactory,
    controller: SessionController,
    collector: Collector,
) -> None:
    factory.rejects = "?"
    controller.start("abc", MANUAL)

    assert controller.inject_instruction("?") is False

    assert controller.active
    assert controller.speed == 0
    assert controller.status_message is None
    assert collector.of_type("session.failed") == []

    injected = collector.of_type("session.instruction_injected")
    assert len(injected) == 1
    assert injected[0].accepted is False


def test_injection_keeps_speed_and_timer(
    factory: ScriptedFactory,
    controller: SessionController,
    scheduler: ManualScheduler,
) -> None:
    factory.rejects = "?"
    controller.start("x" * 10, STEPPED)
    handle = scheduler.live[0]

    assert controller.inject_instruction("+") is True
    assert controller.inject_instruction("?") is False

    assert controller.speed == 100
    assert not handle.cancelled
    assert controller.engine.executed == ["+"]
    assert controller.engine.program_counter == 0


def test_injection_does_not_touch_existing_status(factory: ScriptedFactory, controller: SessionController) -> None:
    factory.faults = {0: "boom"}
    factory.rejects = "?"
    controller.start("ab", MANUAL)
    controller.step()

    controller.inject_instruction("?")
    assert controller.status_message == "boom"


def test_injection_requires_session(controller: SessionController) -> None:
    with pytest.raises(NoActiveSession):
        controller.inject_instruction("+")


def test_injected_instructions_reach_the_tape() -> None:
    out = OutputBuffer()
    controller = SessionController(
        engine_factory=brainfuck_engine_factory(memory_size=8),
        output=out,
        scheduler=ManualScheduler(),
    )
    controller.start("", MANUAL)

    for ch in "+++>+<.":
        controller.inject_instruction(ch)
    # underflow from cell 0 is swallowed
    controller.inject_instruction("<")

    session, engine = controller.snapshot()
    assert out.text() == "\x03"
    assert engine.pointer == 0
    assert engine.tape[:2] == (3, 1)
    assert engine.program_counter == 0
    assert session.status_message is None
