from __future__ import annotations

from enum import Enum

SPEED_IDLE = 0
SPEED_MAX = 100
SPEED_BLOCKING = -1


class Regime(str, Enum):
    IDLE = "idle"
    STEPPED = "stepped"
    BLOCKING = "blocking"


def regime_of(speed: int) -> Regime:
    if speed == SPEED_IDLE:
        return Regime.IDLE
    if speed > 0:
        return Regime.STEPPED
    return Regime.BLOCKING


def cadence_ms(speed: int) -> float:
    """
    Milliseconds between automatic steps in stepped mode.
    """
    if speed <= 0:
        raise ValueError(f"cadence is only defined for stepped speeds, got {speed}")
    return 1000 / (speed * 10)


def clamp_speed(value: int) -> int:
    return max(SPEED_BLOCKING, min(SPEED_MAX, value))
