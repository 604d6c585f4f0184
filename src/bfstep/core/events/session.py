from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from bfstep.core.events.base import Event
from bfstep.core.session.snapshot import EngineSnapshot, SessionSnapshot


@dataclass(frozen=True, slots=True)
class SessionEvent(Event):
    """
    Every session event carries read-only views for observers to refresh from.
    """

    session: SessionSnapshot
    engine: EngineSnapshot | None


@dataclass(frozen=True, slots=True)
class SessionStarted(SessionEvent):
    """
    Emitted when a fresh Engine has been created (start or restart).
    """

    event_type: ClassVar[str] = "session.started"


@dataclass(frozen=True, slots=True)
class SessionStopped(SessionEvent):
    event_type: ClassVar[str] = "session.stopped"


@dataclass(frozen=True, slots=True)
class SpeedChanged(SessionEvent):
    event_type: ClassVar[str] = "session.speed_changed"

    previous_speed: int


@dataclass(frozen=True, slots=True)
class EngineStepped(SessionEvent):
    """
    Emitted after every step() call, whatever its outcome.
    """

    event_type: ClassVar[str] = "session.stepped"


@dataclass(frozen=True, slots=True)
class InstructionInjected(SessionEvent):
    """
    Emitted after every manual instruction. accepted=False means the engine
    rejected it; the rejection is not reported anywhere else.
    """

    event_type: ClassVar[str] = "session.instruction_injected"

    instruction: str
    accepted: bool


@dataclass(frozen=True, slots=True)
class RunFinished(SessionEvent):
    event_type: ClassVar[str] = "session.finished"

    elapsed_s: float


@dataclass(frozen=True, slots=True)
class RunFailed(SessionEvent):
    event_type: ClassVar[str] = "session.failed"

    error_message: str
