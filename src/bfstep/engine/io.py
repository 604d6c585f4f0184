from __future__ import annotations

from collections import deque

from bfstep.core.session.errors import InputExhausted


class BufferedInput:
    """
    Input supply fed by the caller, consumed one character per read.
    """

    def __init__(self, text: str = "") -> None:
        self._pending: deque[int] = deque()
        self.feed(text)

    def __call__(self) -> int:
        if not self._pending:
            raise InputExhausted()
        return self._pending.popleft()

    def __len__(self) -> int:
        return len(self._pending)

    def feed(self, text: str) -> None:
        # cells are bytes
        self._pending.extend(ord(ch) % 256 for ch in text)

    def remaining(self) -> str:
        return "".join(chr(b) for b in self._pending)


class OutputBuffer:
    """
    Output sink that keeps every byte the program wrote.
    """

    def __init__(self) -> None:
        self._data = bytearray()

    def __call__(self, value: int) -> None:
        self._data.append(value % 256)

    def __len__(self) -> int:
        return len(self._data)

    def text(self) -> str:
        return self._data.decode("latin-1")

    def clear(self) -> None:
        self._data.clear()
