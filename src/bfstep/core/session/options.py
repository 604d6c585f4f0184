from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from bfstep.core.session.speed import SPEED_BLOCKING, SPEED_IDLE, SPEED_MAX


class StartOptions(BaseModel):
    """
    Explicit configuration for starting a session.
    """

    model_config = ConfigDict(frozen=True)

    direct_start: bool = Field(default=False, description="Start advancing without a manual step")
    start_super_speed: bool = Field(default=False, description="With direct_start, run in blocking mode")

    def initial_speed(self) -> int:
        if not self.direct_start:
            return SPEED_IDLE
        if self.start_super_speed:
            return SPEED_BLOCKING
        return SPEED_MAX
