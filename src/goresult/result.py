"""Result type for explicit success/failure values.

Failures are part of the data flow instead of exceptions: callers branch on
the returned value (``match``, ``result.success`` or the predicates below)
and only convert back to raising with :func:`assert_success` /
:func:`assert_failure` where exception-style control flow is still wanted.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Literal, TypeGuard

from goresult.errors import ExpectedFailureError, normalize_error

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[T]:
    """A computed value."""

    data: T
    success: Literal[True] = dataclasses.field(default=True, init=False, repr=False)


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[E: Exception]:
    """A failure, always carrying an exception instance."""

    error: E
    success: Literal[False] = dataclasses.field(
        default=False, init=False, repr=False
    )


type Result[T, E: Exception] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Wrap *value* as a success."""
    return Success(value)


def fail(error: object) -> Failure[Any]:
    """Wrap *error* as a failure.

    Non-exception values are normalized into a ``WrappedValueError`` that
    keeps the original value on ``cause``.
    """
    return Failure(normalize_error(error))


def is_success[T](result: Success[T] | Failure[Any]) -> TypeGuard[Success[T]]:
    return isinstance(result, Success)


def is_failure[E: Exception](result: Success[Any] | Failure[E]) -> TypeGuard[Failure[E]]:
    return isinstance(result, Failure)


def go_sync[T](operation: Callable[[], T]) -> Success[T] | Failure[Exception]:
    """Run a synchronous operation and capture what it raises.

    Example:
        result = go_sync(lambda: int("42"))
        if result.success:
            print(result.data)
    """
    if not callable(operation):
        raise TypeError(
            f"go_sync() expects a zero-argument callable, got {type(operation).__name__}"
        )
    try:
        return success(operation())
    except Exception as exc:
        logger.debug("go_sync operation raised %s: %s", type(exc).__name__, exc)
        return fail(exc)


def assert_success[T](result: Success[T] | Failure[Any]) -> T:
    """Return the success payload or re-raise the failure's error unchanged."""
    if isinstance(result, Failure):
        raise result.error
    return result.data


def assert_failure[E: Exception](result: Success[Any] | Failure[E]) -> E:
    """Return the failure's error or raise ``ExpectedFailureError``."""
    if isinstance(result, Success):
        raise ExpectedFailureError()
    return result.error
