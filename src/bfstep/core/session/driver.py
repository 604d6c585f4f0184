from __future__ import annotations

import threading
import time
from typing import Any, Callable

import structlog

from bfstep.core.events.bus import EventBus
from bfstep.core.events.session import (
    EngineStepped,
    InstructionInjected,
    RunFailed,
    RunFinished,
    SessionEvent,
)
from bfstep.core.session.errors import ExecutionFault, NoActiveSession
from bfstep.core.session.scheduler import PeriodicHandle, Scheduler
from bfstep.core.session.snapshot import snapshot_engine, snapshot_session
from bfstep.core.session.speed import SPEED_BLOCKING, SPEED_IDLE, Regime, cadence_ms
from bfstep.core.session.state import SessionState
from bfstep.engine.contract import Engine

log = structlog.get_logger()

# Instructions a UI offers as manual buttons.
MANUAL_INSTRUCTIONS = "<>-+."


def finished_message(elapsed_s: float) -> str:
    return f"Finished Execution. Took {elapsed_s:.3f}s"


class ExecutionDriver:
    """
    Turns the session speed into zero, one or many Engine advancements.

    - step(): one instruction, faults become the status message
    - run_blocking(): loop while speed == -1, no notifications in between
    - rearm(): cancel the periodic task and install a new one for the current speed
    - inject_instruction(): run one instruction beside the program, faults discarded

    All entry points take the session lock, so timer-driven steps never
    interleave with caller-driven ones.
    """

    def __init__(
        self,
        *,
        state: SessionState,
        bus: EventBus,
        scheduler: Scheduler,
        lock: threading.RLock,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._state = state
        self._bus = bus
        self._scheduler = scheduler
        self._lock = lock
        self._clock = clock

        self._engine: Engine | None = None
        self._handle: PeriodicHandle | None = None
        # Bumped on every cancel; ticks from older generations are ignored.
        self._generation = 0

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @property
    def armed(self) -> bool:
        return self._handle is not None and not self._handle.cancelled

    # ---------------- Engine ownership ----------------

    def attach(self, engine: Engine) -> None:
        with self._lock:
            self._cancel()
            self._engine = engine

    def detach(self) -> None:
        with self._lock:
            self._cancel()
            self._engine = None

    # ---------------- Stepping ----------------

    def step(self) -> None:
        with self._lock:
            engine = self._require_engine("step")
            speed_before = self._state.speed

            self._state.status_message = None
            try:
                engine.step()
            except ExecutionFault as exc:
                self._fail(exc)
            else:
                self._state.steps += 1
                if engine.reached_end:
                    self._finish()

            self.notify(EngineStepped)

            if self._state.speed != speed_before:
                self.rearm()

    def run_blocking(self) -> None:
        """
        Step until speed leaves blocking mode or the program ends.

        The loop re-checks speed itself on every iteration; there is no
        separate cancel signal. Occupies the calling thread until it returns.
        """
        with self._lock:
            engine = self._require_engine("run_blocking")
            speed_before = self._state.speed
            log.info("session.blocking_run", session_id=self._state.session_id)

            try:
                while self._state.speed == SPEED_BLOCKING and not engine.reached_end:
                    engine.step()
                    self._state.steps += 1
            except ExecutionFault as exc:
                self._fail(exc)
            else:
                self._finish()

            if self._state.speed != speed_before:
                self.rearm()

    # ---------------- Scheduling ----------------

    def rearm(self) -> None:
        """
        Re-establish automatic stepping for the current state.

        Always cancels the previous periodic task first; a new one is created
        (never adjusted) when the session is active in stepped mode.
        """
        with self._lock:
            self._cancel()

            if not self._state.active or self._engine is None:
                return

            regime = self._state.regime
            if regime is Regime.IDLE:
                return

            if regime is Regime.STEPPED:
                generation = self._generation
                interval_s = cadence_ms(self._state.speed) / 1000
                self._handle = self._scheduler.every(interval_s, lambda: self._on_tick(generation))
                log.debug("scheduler.armed", speed=self._state.speed, interval_s=interval_s)
                return

            self.run_blocking()

    def _on_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self._state.active:
                return
            if self._state.regime is not Regime.STEPPED:
                return
            self.step()

    def _cancel(self) -> None:
        self._generation += 1
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        log.debug("scheduler.cancelled")

    # ---------------- Manual injection ----------------

    def inject_instruction(self, instruction: str) -> bool:
        """
        Execute one instruction outside the program flow.

        Engine faults are dropped on purpose: they neither set the status
        message nor change speed. Returns whether the engine accepted it.
        """
        with self._lock:
            engine = self._require_engine("inject_instruction")

            try:
                engine.execute(instruction)
                accepted = True
            except ExecutionFault as exc:
                accepted = False
                log.debug("session.inject_rejected", instruction=instruction, reason=str(exc))

            self.notify(InstructionInjected, instruction=instruction, accepted=accepted)
            return accepted

    # ---------------- Internals ----------------

    def notify(self, event_cls: type[SessionEvent], **fields: Any) -> None:
        self._bus.publish(
            event_cls.create(
                sequence=self._state.next_sequence(),
                session=snapshot_session(self._state),
                engine=snapshot_engine(self._engine),
                **fields,
            )
        )

    def _require_engine(self, operation: str) -> Engine:
        if self._engine is None:
            raise NoActiveSession(operation)
        return self._engine

    def _fail(self, exc: ExecutionFault) -> None:
        self._state.speed = SPEED_IDLE
        self._state.status_message = str(exc)
        log.info(
            "session.failed",
            session_id=self._state.session_id,
            error_type=type(exc).__name__,
            error_message=str(exc),
            steps=self._state.steps,
        )
        self.notify(RunFailed, error_message=str(exc))

    def _finish(self) -> None:
        elapsed_s = self._clock() - self._state.started_at
        self._state.speed = SPEED_IDLE
        self._state.status_message = finished_message(elapsed_s)
        log.info(
            "session.finished",
            session_id=self._state.session_id,
            elapsed_s=elapsed_s,
            steps=self._state.steps,
        )
        self.notify(RunFinished, elapsed_s=elapsed_s)
