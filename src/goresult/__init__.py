"""goresult: explicit success/failure results with bounded async retries.

Public API:
    - go(): Run an async operation under a retry/timeout policy
    - go_sync(): Capture a synchronous operation's outcome
    - success() / fail(): Result constructors
    - assert_success() / assert_failure(): Back to exception-style flow
    - with_timeout() / retry_on_timeout(): Exception-style deadlines
    - GoOptions, FixedDelay, RandomDelay: Per-call policy
    - retry_go(), timeout_go(), retry_timeout_go(): Presets
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from goresult.config import Defaults, resolve_defaults
from goresult.errors import (
    AttemptTimeoutError,
    ConfigurationError,
    ExpectedFailureError,
    GoResultError,
    TotalTimeoutError,
    WrappedValueError,
    normalize_error,
)
from goresult.options import FixedDelay, GoOptions, RandomDelay, parse_delay, resolve_options
from goresult.result import (
    Failure,
    Result,
    Success,
    assert_failure,
    assert_success,
    fail,
    go_sync,
    is_failure,
    is_success,
    success,
)
from goresult.retry import go, retry_on_timeout, retry_operation, run_attempt, with_timeout

if TYPE_CHECKING:
    from goresult.retry import Operation

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("goresult")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("goresult").addHandler(logging.NullHandler())

T = TypeVar("T")


def _apply_preset(
    options: GoOptions | None,
    preset: dict[str, Any],
    overrides: dict[str, Any],
) -> GoOptions:
    # Fields the caller set explicitly, via options or overrides, win.
    base = options if options is not None else GoOptions()
    if not isinstance(base, GoOptions):
        return resolve_options(base, overrides)
    merged = {name: value for name, value in preset.items() if name not in base.fields_set}
    merged.update(overrides)
    return resolve_options(base, merged)


async def retry_go(
    operation: Operation[T],
    options: GoOptions | None = None,
    /,
    **overrides: Any,
) -> Success[T] | Failure[Exception]:
    """``go()`` with the default retry budget (3 unless configured)."""
    defaults = resolve_defaults()
    preset = {"retries": defaults.retries}
    return await go(operation, _apply_preset(options, preset, overrides))


async def timeout_go(
    operation: Operation[T],
    options: GoOptions | None = None,
    /,
    **overrides: Any,
) -> Success[T] | Failure[Exception]:
    """``go()`` with the default per-attempt timeout (10 s unless configured)."""
    defaults = resolve_defaults()
    preset = {"attempt_timeout_ms": defaults.timeout_ms}
    return await go(operation, _apply_preset(options, preset, overrides))


async def retry_timeout_go(
    operation: Operation[T],
    options: GoOptions | None = None,
    /,
    **overrides: Any,
) -> Success[T] | Failure[Exception]:
    """``go()`` with both the default retry budget and per-attempt timeout.

    Example:
        result = await retry_timeout_go(lambda: fetch_quote("EURUSD"))
        quote = assert_success(result)
    """
    defaults = resolve_defaults()
    preset = {"retries": defaults.retries, "attempt_timeout_ms": defaults.timeout_ms}
    return await go(operation, _apply_preset(options, preset, overrides))


__all__ = [
    "AttemptTimeoutError",
    "ConfigurationError",
    "Defaults",
    "ExpectedFailureError",
    "Failure",
    "FixedDelay",
    "GoOptions",
    "GoResultError",
    "RandomDelay",
    "Result",
    "Success",
    "TotalTimeoutError",
    "WrappedValueError",
    "__version__",
    "assert_failure",
    "assert_success",
    "fail",
    "go",
    "go_sync",
    "is_failure",
    "is_success",
    "normalize_error",
    "parse_delay",
    "resolve_defaults",
    "retry_go",
    "retry_on_timeout",
    "retry_operation",
    "retry_timeout_go",
    "run_attempt",
    "success",
    "timeout_go",
    "with_timeout",
]
