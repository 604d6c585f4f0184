from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

from bfstep.core.session.speed import SPEED_IDLE, Regime, regime_of


def new_session_id(now: datetime | None = None) -> str:
    """
    Timestamp plus a high-entropy suffix (unique even within the same second).
    """
    created_at = now or datetime.now(timezone.utc)
    return f"{created_at.strftime('%Y%m%dT%H%M%SZ')}_{secrets.token_hex(4)}"


@dataclass(slots=True)
class SessionState:
    """
    Mutable state of the current session.

    - speed: 0 idle, 1..100 stepped, -1 blocking
    - started_at: clock reading taken when the Engine was (re)created
    - status_message: last completion or failure description
    - steps: number of completed program steps since start
    - sequence: monotonic counter for published events
    """

    session_id: str | None = None
    active: bool = False
    speed: int = SPEED_IDLE
    started_at: float = 0.0
    started_at_utc: datetime | None = None
    status_message: str | None = None
    steps: int = 0
    sequence: int = 0

    @property
    def regime(self) -> Regime:
        return regime_of(self.speed)

    def next_sequence(self) -> int:
        self.sequence += 1
        return self.sequence
