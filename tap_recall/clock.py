from __future__ import annotations

import heapq
import itertools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    """Monotonic clock abstraction.

    Game logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


@dataclass(order=True, slots=True)
class DeferredTask:
    due_at_s: float
    seq: int
    tag: int = field(compare=False)
    callback: Callable[[], None] = field(compare=False, repr=False)
    cancelled: bool = field(default=False, compare=False)


class Scheduler:
    """One-shot deferred callbacks, polled from the frame loop.

    Nothing here sleeps: ``run_due()`` fires every task whose deadline has
    passed according to the injected clock, in deadline order. Tasks carry the
    integer round id that scheduled them.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._heap: list[DeferredTask] = []
        self._seq = itertools.count()

    def schedule(self, delay_s: float, callback: Callable[[], None], *, tag: int) -> DeferredTask:
        if delay_s < 0.0:
            raise ValueError("delay_s must be >= 0")
        task = DeferredTask(
            due_at_s=self._clock.now() + float(delay_s),
            seq=next(self._seq),
            tag=int(tag),
            callback=callback,
        )
        heapq.heappush(self._heap, task)
        return task

    def cancel(self, task: DeferredTask) -> None:
        task.cancelled = True

    def cancel_all(self) -> int:
        dropped = 0
        for task in self._heap:
            if not task.cancelled:
                task.cancelled = True
                dropped += 1
        self._heap.clear()
        if dropped:
            logger.debug("Cancelled %d pending task(s)", dropped)
        return dropped

    def pending(self) -> int:
        return sum(1 for t in self._heap if not t.cancelled)

    def run_due(self) -> int:
        now = self._clock.now()
        fired = 0
        while self._heap and self._heap[0].due_at_s <= now:
            task = heapq.heappop(self._heap)
            if task.cancelled:
                continue
            task.callback()
            fired += 1
        return fired
