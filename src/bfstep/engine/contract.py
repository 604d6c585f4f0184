from __future__ import annotations

from typing import Callable, Protocol, Sequence, runtime_checkable

from bfstep.core.session.options import StartOptions

OutputSink = Callable[[int], None]


class InputProvider(Protocol):
    """
    Supplies one byte per call.

    Raises InputExhausted when nothing is left; never blocks.
    """

    def __call__(self) -> int:
        ...


class Engine(Protocol):
    """
    The virtual machine driven by a session.

    step() and execute() raise ExecutionFault on invalid operations.
    """

    @property
    def program_text(self) -> str:
        ...

    @property
    def program_counter(self) -> int:
        ...

    @property
    def reached_end(self) -> bool:
        ...

    def step(self) -> None:
        """
        Execute the instruction at program_counter and advance it.
        """
        ...

    def execute(self, instruction: str) -> None:
        """
        Execute a single instruction without touching program_counter.
        """
        ...


@runtime_checkable
class TapeInspectable(Protocol):
    """
    Optional engine capability used for snapshots.
    """

    @property
    def pointer(self) -> int:
        ...

    def tape_window(self, start: int, count: int) -> Sequence[int]:
        ...


class EngineFactory(Protocol):
    def __call__(
        self,
        program_text: str,
        options: StartOptions,
        *,
        output: OutputSink,
        input: InputProvider,
    ) -> Engine:
        ...
