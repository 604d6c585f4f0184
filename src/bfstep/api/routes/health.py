from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from bfstep.api.routes.session import ControllerHandle, get_handle
from bfstep.core.config.settings import settings

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """
    Liveness plus a one-line view of the driver: is a session running,
    and in which regime. Side-effect free.
    """

    status: str
    environment: str
    session_active: bool
    regime: str
    scheduler_armed: bool


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service and session health",
)
def health(handle: ControllerHandle = Depends(get_handle)) -> HealthResponse:
    controller = handle.controller
    return HealthResponse(
        status="ok",
        environment=settings.env,
        session_active=controller.active,
        regime=controller.state.regime.value,
        scheduler_armed=controller.driver.armed,
    )
