"""Detached futures and fire-and-forget tasks.

Attempts that lose a deadline race are abandoned rather than cancelled, and
async observer callbacks are never awaited by the orchestrator. Both keep
running on the loop after the caller has its result; this module owns their
bookkeeping.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Coroutine

# The loop only keeps weak references to tasks; hold strong ones until done.
_detached: set[asyncio.Task[Any]] = set()


def consume_future_exception(fut: asyncio.Future[Any]) -> None:
    """Avoid 'exception was never retrieved' for futures nobody awaits."""
    try:
        _ = fut.exception()
    except asyncio.CancelledError:
        return


def spawn_detached(coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task[Any]:
    """Schedule *coro* without joining it."""
    task = asyncio.get_running_loop().create_task(coro, name=name)
    _detached.add(task)
    task.add_done_callback(_detached.discard)
    task.add_done_callback(consume_future_exception)
    return task


def detached_tasks() -> frozenset[asyncio.Task[Any]]:
    """Snapshot of unfinished detached tasks on the running loop."""
    loop = asyncio.get_running_loop()
    return frozenset(t for t in _detached if t.get_loop() is loop)
