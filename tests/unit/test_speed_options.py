from __future__ import annotations

import pytest

from bfstep.core.session.options import StartOptions
from bfstep.core.session.speed import Regime, cadence_ms, clamp_speed, regime_of


@pytest.mark.parametrize(
    ("direct_start", "start_super_speed", "expected"),
    [
        (True, False, 100),
        (True, True, -1),
        (False, False, 0),
        (False, True, 0),
    ],
)
def test_initial_speed_follows_start_options(direct_start: bool, start_super_speed: bool, expected: int) -> None:
    options = StartOptions(direct_start=direct_start, start_super_speed=start_super_speed)
    assert options.initial_speed() == expected


def test_regimes() -> None:
    assert regime_of(0) is Regime.IDLE
    assert regime_of(1) is Regime.STEPPED
    assert regime_of(100) is Regime.STEPPED
    assert regime_of(-1) is Regime.BLOCKING


def test_cadence_is_inverse_to_speed() -> None:
    assert cadence_ms(100) == 1.0
    assert cadence_ms(10) == 10.0
    assert cadence_ms(1) == 100.0

    with pytest.raises(ValueError):
        cadence_ms(0)


def test_clamp_speed() -> None:
    assert clamp_speed(150) == 100
    assert clamp_speed(-7) == -1
    assert clamp_speed(42) == 42
