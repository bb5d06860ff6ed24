"""Bounded retry with per-attempt and overall deadlines.

Design goals:
- Failures come back as ``Failure`` values; nothing raises across ``go()``
- Attempts run strictly one after another, never overlapping
- Deadlines abandon work instead of cancelling it
- Every timer is released on every exit path
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from goresult._background import consume_future_exception, spawn_detached
from goresult.errors import (
    ATTEMPT_TIMEOUT_MESSAGE,
    AttemptTimeoutError,
    GoResultError,
    TotalTimeoutError,
)
from goresult.options import GoOptions, compute_delay_ms, resolve_options
from goresult.result import Failure, Success, assert_success, fail, go_sync, success

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from goresult.options import FixedDelay, RandomDelay

T = TypeVar("T")

logger = logging.getLogger(__name__)

type Operation[T] = Callable[[], Awaitable[T] | T] | Awaitable[T]


def _seconds(ms: float | None) -> float | None:
    return None if ms is None else ms / 1000


def _describe(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


async def _settled_within(fut: asyncio.Future[Any], timeout_ms: float | None) -> bool:
    """Wait for *fut* up to *timeout_ms*; report whether it settled.

    ``asyncio.wait`` never cancels what it waits on, so a future that loses
    the race keeps running in the background. A zero deadline does not
    wait at all.
    """
    if fut.done():
        return True
    if timeout_ms is not None and timeout_ms <= 0:
        return False
    await asyncio.wait((fut,), timeout=_seconds(timeout_ms))
    return fut.done()


def _outcome(fut: asyncio.Future[T]) -> Success[T] | Failure[Exception]:
    if fut.cancelled():
        return fail(GoResultError("Operation was cancelled"))
    exc = fut.exception()
    if exc is None:
        return success(fut.result())
    if not isinstance(exc, Exception):
        # KeyboardInterrupt, SystemExit and friends are not operation failures.
        raise exc
    return fail(exc)


async def run_attempt(
    operation: Callable[[], Awaitable[T] | T],
    *,
    timeout_ms: float | None = None,
) -> Success[T] | Failure[Exception]:
    """Invoke *operation* once, racing it against *timeout_ms* when given."""
    try:
        produced = operation()
    except Exception as exc:
        return fail(exc)

    if not inspect.isawaitable(produced):
        return success(produced)

    fut = asyncio.ensure_future(produced)
    fut.add_done_callback(consume_future_exception)
    if not await _settled_within(fut, timeout_ms):
        logger.debug("Attempt abandoned after %s ms", timeout_ms)
        return fail(AttemptTimeoutError(ATTEMPT_TIMEOUT_MESSAGE, timeout_ms=timeout_ms))
    return _outcome(fut)


async def wait_before_next_attempt(
    spec: FixedDelay | RandomDelay | None,
    *,
    is_final: bool,
) -> None:
    """Sleep between attempts; nothing follows the final attempt."""
    if spec is None or is_final:
        return
    delay_ms = compute_delay_ms(spec)
    logger.debug("Waiting %.1f ms before next attempt", delay_ms)
    await asyncio.sleep(delay_ms / 1000)


async def _observe_async(pending: Awaitable[Any]) -> None:
    outcome = await run_attempt(lambda: pending)
    if isinstance(outcome, Failure):
        logger.debug("on_attempt_error callback failed: %s", _describe(outcome.error))


def _notify_attempt_error(
    callback: Callable[[Failure[Exception]], object],
    failure: Failure[Exception],
) -> None:
    """Run the observer without letting it affect the outcome.

    Whatever it raises is captured as a ``Failure`` and only logged. Async
    observers are detached and never awaited here.
    """
    outcome = go_sync(lambda: callback(failure))
    if isinstance(outcome, Failure):
        logger.debug("on_attempt_error callback failed: %s", _describe(outcome.error))
        return
    if inspect.isawaitable(outcome.data):
        spawn_detached(_observe_async(outcome.data), name="goresult.on_attempt_error")


async def _attempt_sequence(
    factory: Callable[[], Awaitable[T] | T],
    options: GoOptions,
) -> Success[T] | Failure[Exception]:
    attempts = options.attempts
    outcome: Success[T] | Failure[Exception] | None = None

    for attempt in range(1, attempts + 1):
        outcome = await run_attempt(factory, timeout_ms=options.attempt_timeout_ms)
        if isinstance(outcome, Success):
            return outcome

        is_final = attempt >= attempts
        logger.debug(
            "Attempt %d/%d failed: %s", attempt, attempts, _describe(outcome.error)
        )
        if not is_final and options.on_attempt_error is not None:
            _notify_attempt_error(options.on_attempt_error, outcome)
        await wait_before_next_attempt(options.delay, is_final=is_final)

    if outcome is None:  # pragma: no cover
        raise RuntimeError("attempt sequence finished without running an attempt")
    return outcome


def _as_factory(operation: Operation[T]) -> Callable[[], Awaitable[T] | T]:
    if callable(operation):
        return operation
    if inspect.isawaitable(operation):
        shared: asyncio.Future[T] | None = None

        # Every attempt observes the same underlying future.
        def factory() -> asyncio.Future[T]:
            nonlocal shared
            if shared is None:
                shared = asyncio.ensure_future(operation)
            return shared

        return factory
    raise TypeError(
        f"go() expects a zero-argument callable or an awaitable, got {type(operation).__name__}"
    )


async def go(
    operation: Operation[T],
    options: GoOptions | None = None,
    /,
    **overrides: Any,
) -> Success[T] | Failure[Exception]:
    """Run *operation* under a retry and timeout policy.

    Args:
        operation: Zero-argument callable returning an awaitable (or a plain
            value), or an awaitable to observe directly.
        options: Retry/timeout policy. Defaults to a single attempt with no
            deadline.
        **overrides: Individual ``GoOptions`` fields, applied on top of
            *options*.

    Returns:
        The first successful attempt, the last failure once attempts are
        exhausted, or a ``TotalTimeoutError`` failure when the overall
        deadline wins.

    Raises:
        TypeError: If *operation* is neither callable nor awaitable.
        ConfigurationError: If the options are invalid.

    Example:
        result = await go(lambda: client.get("/health"), retries=2, attempt_timeout_ms=500)
        match result:
            case Success(data):
                print(data.status_code)
            case Failure(error):
                print(f"health check failed: {error}")
    """
    resolved = resolve_options(options, overrides)
    factory = _as_factory(operation)

    deadline = asyncio.timeout(_seconds(resolved.total_timeout_ms))
    try:
        async with deadline:
            return await _attempt_sequence(factory, resolved)
    except TimeoutError:
        if not deadline.expired():
            raise
        logger.debug("Total timeout of %s ms exceeded", resolved.total_timeout_ms)
        return fail(TotalTimeoutError(timeout_ms=resolved.total_timeout_ms))


async def with_timeout(awaitable: Awaitable[T], timeout_ms: float) -> T:
    """Await *awaitable* for at most *timeout_ms*, raising on expiry.

    Exception-style counterpart of ``attempt_timeout_ms``: the awaitable is
    abandoned, not cancelled, when the deadline passes.
    """
    fut = asyncio.ensure_future(awaitable)
    fut.add_done_callback(consume_future_exception)
    if not await _settled_within(fut, timeout_ms):
        raise AttemptTimeoutError(
            f"Operation timed out in {timeout_ms} ms.", timeout_ms=timeout_ms
        )
    return fut.result()


async def retry_on_timeout(
    max_timeout_ms: float,
    operation: Callable[[], Awaitable[T]],
    *,
    delay_ms: float = 0,
) -> T:
    """Re-run *operation* while it raises ``AttemptTimeoutError``.

    Any other error propagates at once. The loop as a whole is bounded by
    *max_timeout_ms* and raises ``AttemptTimeoutError`` when that passes;
    the attempt in flight at that point is abandoned, not cancelled, and no
    further attempt starts.

    Example:
        page = await retry_on_timeout(
            2_000, lambda: with_timeout(fetch_page(url), 250), delay_ms=50
        )
    """

    async def attempts() -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                fut = asyncio.ensure_future(operation())
                fut.add_done_callback(consume_future_exception)
                # Shielded: stopping the loop must not cancel the attempt.
                return await asyncio.shield(fut)
            except AttemptTimeoutError as exc:
                logger.debug("Attempt %d timed out: %s", attempt, _describe(exc))
            await asyncio.sleep(delay_ms / 1000)

    task = asyncio.ensure_future(attempts())
    try:
        return await with_timeout(task, max_timeout_ms)
    finally:
        if not task.done():
            task.cancel()


async def retry_operation(
    operation: Operation[T],
    options: GoOptions | None = None,
    /,
    **overrides: Any,
) -> T:
    """Exception-style ``go()``: return the value or raise the final error."""
    return assert_success(await go(operation, options, **overrides))
