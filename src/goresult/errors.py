"""Exception hierarchy for goresult."""

from __future__ import annotations

from typing import Any

ATTEMPT_TIMEOUT_MESSAGE = "Operation timed out"
TOTAL_TIMEOUT_MESSAGE = "Full timeout exceeded"
EXPECTED_FAILURE_MESSAGE = "Assertion failed. Expected error, but no error was thrown"


class GoResultError(Exception):
    """Base exception for all goresult errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(GoResultError):
    """Options or environment defaults failed validation."""


class WrappedValueError(GoResultError):
    """A failure value that was not an exception.

    The original value is kept untouched on ``cause`` so callers can still
    inspect whatever the failing code produced.
    """

    def __init__(self, value: Any) -> None:
        super().__init__(str(value))
        self.cause = value


class AttemptTimeoutError(GoResultError, TimeoutError):
    """A single attempt did not settle before its deadline."""

    def __init__(
        self,
        message: str = ATTEMPT_TIMEOUT_MESSAGE,
        *,
        timeout_ms: float | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_ms = timeout_ms


class TotalTimeoutError(GoResultError, TimeoutError):
    """The deadline spanning every attempt and delay expired."""

    def __init__(
        self,
        message: str = TOTAL_TIMEOUT_MESSAGE,
        *,
        timeout_ms: float | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_ms = timeout_ms


class ExpectedFailureError(GoResultError, AssertionError):
    """``assert_failure`` was handed a success."""

    def __init__(self, message: str = EXPECTED_FAILURE_MESSAGE) -> None:
        super().__init__(message)


def normalize_error(value: object) -> Exception:
    """Return *value* as a conforming exception.

    Exceptions pass through as-is; anything else is wrapped in a
    :class:`WrappedValueError` that keeps the original on ``cause``.
    """
    if isinstance(value, Exception):
        return value
    return WrappedValueError(value)
