"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: it exists to prevent test suites from
growing lots of one-off operation closures as coverage expands.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ScriptedOperation:
    """Operation factory that plays back a scripted sequence of outcomes.

    ``calls`` counts invocations of the factory itself, so an attempt counts
    as soon as it is started, even if it is abandoned before its coroutine
    gets to run.
    """

    script: list[Any] = field(default_factory=list)
    default: Any = "ok"
    latency_s: float = 0.0
    calls: int = 0
    finished: int = 0

    def __call__(self) -> Any:
        self.calls += 1
        item = self.script.pop(0) if self.script else self.default
        return self._settle(item)

    async def _settle(self, item: Any) -> Any:
        if self.latency_s:
            await asyncio.sleep(self.latency_s)
        self.finished += 1
        if isinstance(item, BaseException):
            raise item
        return item


@dataclass
class RecordingObserver:
    """Synchronous ``on_attempt_error`` double."""

    seen: list[Any] = field(default_factory=list)

    def __call__(self, failure: Any) -> None:
        self.seen.append(failure)
