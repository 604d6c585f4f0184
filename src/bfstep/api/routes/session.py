from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from threading import Lock

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator

from bfstep.core.config.settings import settings
from bfstep.core.session.controller import SessionController
from bfstep.core.session.driver import MANUAL_INSTRUCTIONS
from bfstep.core.session.errors import NoActiveSession
from bfstep.core.session.options import StartOptions
from bfstep.core.session.speed import SPEED_BLOCKING, SPEED_MAX
from bfstep.engine.brainfuck import brainfuck_engine_factory
from bfstep.engine.io import OutputBuffer

router = APIRouter(prefix="/session", tags=["session"])

# One controller per process (single-user dev tool).
_controller_lock = Lock()
_controller: SessionController | None = None
_output: OutputBuffer | None = None


@dataclass(frozen=True, slots=True)
class ControllerHandle:
    """
    The controller plus the output buffer its engines write to.
    """

    controller: SessionController
    output: OutputBuffer


def get_handle() -> ControllerHandle:
    """
    FastAPI dependency; tests override it with their own controller.
    """
    global _controller, _output
    with _controller_lock:
        if _controller is None:
            _output = OutputBuffer()
            _controller = SessionController(
                engine_factory=brainfuck_engine_factory(memory_size=settings.memory_size),
                output=_output,
            )
        assert _output is not None
        return ControllerHandle(controller=_controller, output=_output)


def shutdown_controller() -> None:
    with _controller_lock:
        if _controller is not None:
            _controller.shutdown()


# =========================
# Schemas
# =========================

class StartSessionRequest(BaseModel):
    program: str = Field(..., description="Program text")
    direct_start: bool | None = Field(default=None, description="Override settings.direct_start")
    start_super_speed: bool | None = Field(default=None, description="Override settings.start_super_speed")


class SpeedRequest(BaseModel):
    speed: int = Field(..., ge=SPEED_BLOCKING, le=SPEED_MAX)


class InjectRequest(BaseModel):
    instruction: str = Field(..., min_length=1, max_length=1)

    @field_validator("instruction")
    @classmethod
    def _manual_only(cls, v: str) -> str:
        if v not in MANUAL_INSTRUCTIONS:
            raise ValueError(f"instruction must be one of {MANUAL_INSTRUCTIONS!r}")
        return v


class InputRequest(BaseModel):
    text: str = Field(..., min_length=1)


class EngineView(BaseModel):
    program_text: str
    program_counter: int
    reached_end: bool
    pointer: int | None = None
    tape_start: int | None = None
    tape: list[int] = Field(default_factory=list)


class SessionResponse(BaseModel):
    session_id: str | None
    active: bool
    speed: int
    regime: str
    started_at_utc: datetime | None
    status_message: str | None
    steps: int
    engine: EngineView | None
    output: str
    pending_input: str


class InjectResponse(SessionResponse):
    accepted: bool


# =========================
# Routes
# =========================

def _view(handle: ControllerHandle) -> SessionResponse:
    session, engine = handle.controller.snapshot()
    supply = handle.controller.input
    return SessionResponse(
        session_id=session.session_id,
        active=session.active,
        speed=session.speed,
        regime=session.regime.value,
        started_at_utc=session.started_at_utc,
        status_message=session.status_message,
        steps=session.steps,
        engine=None if engine is None else EngineView(
            program_text=engine.program_text,
            program_counter=engine.program_counter,
            reached_end=engine.reached_end,
            pointer=engine.pointer,
            tape_start=engine.tape_start,
            tape=list(engine.tape),
        ),
        output=handle.output.text(),
        pending_input="" if supply is None else supply.remaining(),
    )


@router.get("", response_model=SessionResponse)
def get_session(handle: ControllerHandle = Depends(get_handle)) -> SessionResponse:
    return _view(handle)


@router.post("/start", response_model=SessionResponse)
def start_session(payload: StartSessionRequest, handle: ControllerHandle = Depends(get_handle)) -> SessionResponse:
    defaults = settings.start_options()
    options = StartOptions(
        direct_start=defaults.direct_start if payload.direct_start is None else payload.direct_start,
        start_super_speed=(
            defaults.start_super_speed if payload.start_super_speed is None else payload.start_super_speed
        ),
    )

    handle.output.clear()
    handle.controller.start(payload.program, options)
    return _view(handle)


@router.post("/stop", response_model=SessionResponse)
def stop_session(handle: ControllerHandle = Depends(get_handle)) -> SessionResponse:
    handle.controller.stop()
    return _view(handle)


@router.post("/step", response_model=SessionResponse)
def step_session(handle: ControllerHandle = Depends(get_handle)) -> SessionResponse:
    try:
        handle.controller.step()
    except NoActiveSession as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _view(handle)


@router.put("/speed", response_model=SessionResponse)
def set_speed(payload: SpeedRequest, handle: ControllerHandle = Depends(get_handle)) -> SessionResponse:
    _require_active(handle)
    handle.controller.set_speed(payload.speed)
    return _view(handle)


@router.post("/speed/faster", response_model=SessionResponse)
def faster(handle: ControllerHandle = Depends(get_handle)) -> SessionResponse:
    _require_active(handle)
    handle.controller.faster()
    return _view(handle)


@router.post("/speed/slower", response_model=SessionResponse)
def slower(handle: ControllerHandle = Depends(get_handle)) -> SessionResponse:
    _require_active(handle)
    handle.controller.slower()
    return _view(handle)


@router.post("/inject", response_model=InjectResponse)
def inject(payload: InjectRequest, handle: ControllerHandle = Depends(get_handle)) -> InjectResponse:
    try:
        accepted = handle.controller.inject_instruction(payload.instruction)
    except NoActiveSession as e:
        raise HTTPException(status_code=409, detail=str(e))
    return InjectResponse(**_view(handle).model_dump(), accepted=accepted)


@router.post("/input", response_model=SessionResponse)
def feed_input(payload: InputRequest, handle: ControllerHandle = Depends(get_handle)) -> SessionResponse:
    try:
        handle.controller.feed_input(payload.text)
    except NoActiveSession as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _view(handle)


def _require_active(handle: ControllerHandle) -> None:
    if not handle.controller.active:
        raise HTTPException(status_code=409, detail="no active session")
