from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Callable

import structlog

from bfstep.core.events.bus import EventBus
from bfstep.core.events.session import SessionStarted, SessionStopped, SpeedChanged
from bfstep.core.logging.setup import bind_context, clear_context
from bfstep.core.session.driver import ExecutionDriver
from bfstep.core.session.errors import NoActiveSession
from bfstep.core.session.options import StartOptions
from bfstep.core.session.scheduler import Scheduler, ThreadScheduler
from bfstep.core.session.snapshot import EngineSnapshot, SessionSnapshot, snapshot_engine, snapshot_session
from bfstep.core.session.speed import SPEED_BLOCKING, SPEED_IDLE, clamp_speed
from bfstep.core.session.state import SessionState, new_session_id
from bfstep.engine.contract import Engine, EngineFactory, OutputSink
from bfstep.engine.io import BufferedInput

log = structlog.get_logger()


class SessionController:
    """
    Owns one run at a time: the Engine, its input supply, the speed and the
    status message.

    Every transition (start/stop/speed change) is published on the bus and
    followed by a re-arm of the execution driver. Blocking mode runs inside
    that re-arm, so start()/set_speed(-1) return only once the program halts.
    """

    def __init__(
        self,
        *,
        engine_factory: EngineFactory,
        output: OutputSink,
        bus: EventBus | None = None,
        scheduler: Scheduler | None = None,
        input_factory: Callable[[], BufferedInput] = BufferedInput,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._engine_factory = engine_factory
        self._output = output
        self._input_factory = input_factory
        self._clock = clock

        self._bus = bus or EventBus()
        self._lock = threading.RLock()
        self._state = SessionState()
        self._input: BufferedInput | None = None
        self._driver = ExecutionDriver(
            state=self._state,
            bus=self._bus,
            scheduler=scheduler or ThreadScheduler(),
            lock=self._lock,
            clock=clock,
        )

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def driver(self) -> ExecutionDriver:
        return self._driver

    @property
    def engine(self) -> Engine | None:
        return self._driver.engine

    @property
    def input(self) -> BufferedInput | None:
        return self._input

    @property
    def active(self) -> bool:
        return self._state.active

    @property
    def speed(self) -> int:
        return self._state.speed

    @property
    def status_message(self) -> str | None:
        return self._state.status_message

    # ---------------- Lifecycle ----------------

    def start(self, program_text: str, options: StartOptions) -> None:
        """
        Start (or restart) a session on a fresh Engine.

        Nothing from a previous Engine carries over. If the engine factory
        raises, the previous session is left untouched.
        """
        with self._lock:
            supply = self._input_factory()
            engine = self._engine_factory(program_text, options, output=self._output, input=supply)

            started_at_utc = datetime.now(timezone.utc)
            self._state.session_id = new_session_id(started_at_utc)
            self._state.speed = options.initial_speed()
            self._state.started_at = self._clock()
            self._state.started_at_utc = started_at_utc
            self._state.status_message = None
            self._state.steps = 0
            self._state.sequence = 0
            self._state.active = True

            self._input = supply
            self._driver.attach(engine)

            bind_context(session_id=self._state.session_id, component="session")
            log.info(
                "session.started",
                session_id=self._state.session_id,
                speed=self._state.speed,
                program_length=len(program_text),
                direct_start=options.direct_start,
                start_super_speed=options.start_super_speed,
            )
            self._driver.notify(SessionStarted)

            self._driver.rearm()

    def stop(self) -> None:
        """
        End the session and discard its Engine. Stopping twice is a no-op.

        Speed is left as is; the next start() overwrites it.
        """
        with self._lock:
            if not self._state.active:
                return

            self._state.active = False
            self._state.status_message = None
            self._driver.detach()
            self._input = None

            log.info("session.stopped", session_id=self._state.session_id, steps=self._state.steps)
            self._driver.notify(SessionStopped)
            clear_context()

    # ---------------- Speed ----------------

    def set_speed(self, new_speed: int) -> None:
        """
        Replace the speed. Range [-1, 100] is the caller's contract, not checked here.
        """
        with self._lock:
            previous = self._state.speed
            if new_speed == previous:
                return

            self._state.speed = new_speed
            log.info("session.speed_changed", previous_speed=previous, speed=new_speed)

            if self._state.active:
                self._driver.notify(SpeedChanged, previous_speed=previous)
            self._driver.rearm()

    def faster(self) -> None:
        with self._lock:
            self.set_speed(clamp_speed(self._state.speed + 1))

    def slower(self) -> None:
        with self._lock:
            if self._state.speed > SPEED_IDLE:
                self.set_speed(self._state.speed - 1)

    def pause(self) -> None:
        self.set_speed(SPEED_IDLE)

    def super_speed(self) -> None:
        self.set_speed(SPEED_BLOCKING)

    # ---------------- Driving ----------------

    def step(self) -> None:
        self._driver.step()

    def run_blocking(self) -> None:
        self._driver.run_blocking()

    def inject_instruction(self, instruction: str) -> bool:
        return self._driver.inject_instruction(instruction)

    def feed_input(self, text: str) -> None:
        with self._lock:
            if self._input is None:
                raise NoActiveSession("feed_input")
            self._input.feed(text)

    # ---------------- Observers ----------------

    def snapshot(self) -> tuple[SessionSnapshot, EngineSnapshot | None]:
        with self._lock:
            return snapshot_session(self._state), snapshot_engine(self._driver.engine)

    def shutdown(self) -> None:
        """
        Stop the session and make sure no periodic task survives.
        """
        with self._lock:
            self.stop()
            self._driver.detach()
