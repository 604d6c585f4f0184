from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bfstep.core.session.options import StartOptions


class AppSettings(BaseSettings):
    """
    Global application-level configuration.

    This class is the single source of truth for:
    - environment selection
    - logging behavior
    - default start options for new sessions
    - reference engine sizing
    """

    model_config = SettingsConfigDict(
        env_prefix="BFSTEP_",
        env_file=".env",
        extra="ignore",
    )

    # ---- Environment -------------------------------------------------

    env: Literal["local", "staging", "prod"] = "local"

    # ---- Logging -----------------------------------------------------

    log_level: str = "INFO"
    log_json: bool = Field(
        default=True,
        description="JSON log lines; False renders colourless console output for local stepping sessions",
    )

    # ---- Session defaults --------------------------------------------

    direct_start: bool = Field(
        default=False,
        description="Begin stepping automatically as soon as a session starts",
    )
    start_super_speed: bool = Field(
        default=False,
        description="With direct_start, run the program in blocking mode",
    )

    # ---- Engine ------------------------------------------------------

    memory_size: int = Field(
        default=30000,
        gt=0,
        description="Number of tape cells for the reference engine",
    )

    def start_options(self) -> StartOptions:
        return StartOptions(
            direct_start=self.direct_start,
            start_super_speed=self.start_super_speed,
        )


# Singleton settings object
settings = AppSettings()
