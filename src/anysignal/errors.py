"""Failure types carried through signal chains."""

from __future__ import annotations

from typing import Any


class SignalFailError(Exception):
    """Failure payload of a signal.

    Wraps whatever was passed to the fail capability together with its
    position in the failing signal's failure sequence.
    """

    default_message = "Signal has failed."

    def __init__(self, cause: Any, fail_count: int) -> None:
        super().__init__(self.default_message)
        self.cause = cause
        self.fail_count = fail_count
        if isinstance(cause, BaseException):
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"SignalFailError(cause={self.cause!r}, fail_count={self.fail_count})"


class AggregateSignalError(Exception):
    """Raised when every signal of a fan-in has failed."""

    def __init__(self, errors: list[Any], message: str = "All signals failed.") -> None:
        super().__init__(message)
        self.errors = list(errors)

    def __repr__(self) -> str:
        return f"AggregateSignalError({self.errors!r})"


def unwrap_failure(failure: Any) -> Any:
    """Return the value a failure should be propagated as.

    `SignalFailError` is unwrapped to its cause, aggregates pass through.
    """
    if isinstance(failure, SignalFailError):
        return failure.cause
    return failure
