from __future__ import annotations


class ExecutionFault(Exception):
    """
    Raised by an Engine when an instruction cannot be carried out
    (invalid instruction, tape bounds, unmatched loop, ...).

    str(fault) is what ends up in the session status message.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InputExhausted(ExecutionFault):
    """
    Raised by an InputProvider when a read needs a byte and none is left.
    """

    def __init__(self, message: str = "No input found") -> None:
        super().__init__(message)


class NoActiveSession(RuntimeError):
    """
    Raised when an operation needs an Engine but no session has been started.
    """

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} requires an active session")
        self.operation = operation
