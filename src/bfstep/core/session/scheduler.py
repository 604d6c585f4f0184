from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, Protocol

import structlog

log = structlog.get_logger()

Callback = Callable[[], None]


class PeriodicHandle(Protocol):
    """
    Owned handle to a cancellable periodic task.
    """

    @property
    def cancelled(self) -> bool:
        ...

    def cancel(self) -> None:
        """
        Stop future fires. Idempotent.
        """
        ...


class Scheduler(Protocol):
    def every(self, interval_s: float, callback: Callback) -> PeriodicHandle:
        """
        Fire callback every interval_s seconds until the handle is cancelled.
        """
        ...


class _ThreadHandle:
    def __init__(self, interval_s: float, callback: Callback) -> None:
        self._interval_s = interval_s
        self._callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=f"bfstep-periodic-{interval_s:.4f}s",
            daemon=True,
        )

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _run(self) -> None:
        # wait() returns True once cancelled
        while not self._stop.wait(self._interval_s):
            try:
                self._callback()
            except Exception:
                self._stop.set()
                log.exception("scheduler.callback_failed", interval_s=self._interval_s)
                raise


class ThreadScheduler:
    """
    Runs each periodic task on its own daemon thread.

    Callbacks fire off the caller's thread; they must take whatever lock
    guards the state they touch.
    """

    def every(self, interval_s: float, callback: Callback) -> _ThreadHandle:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        handle = _ThreadHandle(interval_s, callback)
        handle.start()
        return handle


@dataclass(slots=True)
class ManualHandle:
    interval_s: float
    callback: Callback
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(slots=True)
class ManualScheduler:
    """
    Deterministic scheduler: nothing fires until fire() is called.

    Every handle ever created is kept in `handles` so callers can inspect
    how often (and at which interval) tasks were re-armed.
    """

    handles: list[ManualHandle] = field(default_factory=list)

    def every(self, interval_s: float, callback: Callback) -> ManualHandle:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        handle = ManualHandle(interval_s=interval_s, callback=callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled]

    def fire(self, times: int = 1) -> int:
        """
        Fire each live handle `times` times. Returns the number of callbacks run.

        Handles cancelled (or created) by a callback are respected on the next round.
        """
        fired = 0
        for _ in range(times):
            for handle in self.live:
                if handle.cancelled:
                    continue
                handle.callback()
                fired += 1
        return fired
