from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from bfstep.core.events.base import Event
from bfstep.core.events.bus import ALL_EVENTS, EventBus
from bfstep.core.session.controller import SessionController
from bfstep.core.session.errors import ExecutionFault
from bfstep.core.session.options import StartOptions
from bfstep.core.session.scheduler import ManualScheduler
from bfstep.engine.contract import InputProvider, OutputSink
from bfstep.engine.io import OutputBuffer


class ScriptedEngine:
    """
    Engine whose program is a plain string; `faults` maps a program position
    to the fault raised when stepping it.
    """

    def __init__(self, program_text: str, *, faults: dict[int, str] | None = None, rejects: str = "") -> None:
        self._program_text = program_text
        self._pc = 0
        self.faults = faults or {}
        self.rejects = rejects
        self.executed: list[str] = []

    @property
    def program_text(self) -> str:
        return self._program_text

    @property
    def program_counter(self) -> int:
        return self._pc

    @property
    def reached_end(self) -> bool:
        return self._pc >= len(self._program_text)

    def step(self) -> None:
        if self._pc in self.faults:
            raise ExecutionFault(self.faults[self._pc])
        self._pc += 1

    def execute(self, instruction: str) -> None:
        if instruction in self.rejects:
            raise ExecutionFault(f"rejected {instruction!r}")
        self.executed.append(instruction)


@dataclass(slots=True)
class ScriptedFactory:
    faults: dict[int, str] = field(default_factory=dict)
    rejects: str = ""
    built: list[ScriptedEngine] = field(default_factory=list)

    def __call__(
        self,
        program_text: str,
        options: StartOptions,
        *,
        output: OutputSink,
        input: InputProvider,
    ) -> ScriptedEngine:
        engine = ScriptedEngine(program_text, faults=self.faults, rejects=self.rejects)
        self.built.append(engine)
        return engine


class Collector:
    def __init__(self, bus: EventBus) -> None:
        self.events: list[Event] = []
        bus.subscribe(event_type=ALL_EVENTS, handler=self.events.append)

    def of_type(self, event_type: str) -> list[Event]:
        return [e for e in self.events if e.event_type == event_type]


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


STEPPED = StartOptions(direct_start=True, start_super_speed=False)
BLOCKING = StartOptions(direct_start=True, start_super_speed=True)
MANUAL = StartOptions(direct_start=False)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def factory() -> ScriptedFactory:
    return ScriptedFactory()


@pytest.fixture
def controller(factory: ScriptedFactory, scheduler: ManualScheduler, clock: FakeClock) -> SessionController:
    return SessionController(
        engine_factory=factory,
        output=OutputBuffer(),
        scheduler=scheduler,
        clock=clock,
    )


@pytest.fixture
def collector(controller: SessionController) -> Collector:
    return Collector(controller.bus)
