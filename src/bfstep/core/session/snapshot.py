from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from bfstep.core.session.speed import Regime
from bfstep.core.session.state import SessionState
from bfstep.engine.contract import Engine, TapeInspectable

# Cells shown on either side of the tape pointer.
TAPE_WINDOW_RADIUS = 8


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    session_id: str | None
    active: bool
    speed: int
    regime: Regime
    started_at_utc: datetime | None
    status_message: str | None
    steps: int


@dataclass(frozen=True, slots=True)
class EngineSnapshot:
    """
    Read-only view of an Engine for observers.

    pointer/tape_start/tape are only filled for engines that expose their tape.
    """

    program_text: str
    program_counter: int
    reached_end: bool
    pointer: int | None = None
    tape_start: int | None = None
    tape: tuple[int, ...] = ()


def snapshot_session(state: SessionState) -> SessionSnapshot:
    return SessionSnapshot(
        session_id=state.session_id,
        active=state.active,
        speed=state.speed,
        regime=state.regime,
        started_at_utc=state.started_at_utc,
        status_message=state.status_message,
        steps=state.steps,
    )


def snapshot_engine(engine: Engine | None) -> EngineSnapshot | None:
    if engine is None:
        return None

    if not isinstance(engine, TapeInspectable):
        return EngineSnapshot(
            program_text=engine.program_text,
            program_counter=engine.program_counter,
            reached_end=engine.reached_end,
        )

    start = max(0, engine.pointer - TAPE_WINDOW_RADIUS)
    return EngineSnapshot(
        program_text=engine.program_text,
        program_counter=engine.program_counter,
        reached_end=engine.reached_end,
        pointer=engine.pointer,
        tape_start=start,
        tape=tuple(engine.tape_window(start, 2 * TAPE_WINDOW_RADIUS + 1)),
    )
