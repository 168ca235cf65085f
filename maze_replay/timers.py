"""Cooperative timer queue driven by an external clock.

Nothing here sleeps or spawns threads: the owner calls ``advance`` (or
``tick`` with an absolute time) and every callback that has come due runs on
the caller's thread, in due-time order. ``cancel_all`` bumps the generation,
so a handle armed before a reset can never fire after it.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, List

Callback = Callable[[], None]


@dataclass(order=True)
class TimerHandle:
    due: float
    seq: int
    generation: int = field(compare=False)
    callback: Callback = field(compare=False, repr=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class TimerQueue:
    def __init__(self) -> None:
        self.now: float = 0.0
        self.generation = 0
        self._heap: List[TimerHandle] = []
        self._seq = itertools.count()

    def schedule(self, delay_ms: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle(
            due=self.now + max(0.0, delay_ms),
            seq=next(self._seq),
            generation=self.generation,
            callback=callback,
        )
        heapq.heappush(self._heap, handle)
        return handle

    def cancel_all(self) -> int:
        """Drop every pending callback; returns how many were still armed."""
        dropped = self.pending
        self._heap.clear()
        self.generation += 1
        return dropped

    @property
    def pending(self) -> int:
        return sum(1 for h in self._heap if not h.cancelled)

    def next_due(self) -> float | None:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0].due if self._heap else None

    def tick(self, now_ms: float) -> int:
        """Run every callback due at or before ``now_ms``; returns how many fired."""
        fired = 0
        while True:
            due = self.next_due()
            if due is None or due > now_ms:
                break
            handle = heapq.heappop(self._heap)
            if handle.generation != self.generation:
                continue
            self.now = max(self.now, handle.due)
            handle.callback()
            fired += 1
        self.now = max(self.now, now_ms)
        return fired

    def advance(self, delta_ms: float) -> int:
        return self.tick(self.now + delta_ms)

    def run_until_idle(self, limit: int = 1_000_000) -> int:
        """Fire callbacks in order, jumping the clock, until nothing is pending."""
        fired = 0
        while fired < limit:
            due = self.next_due()
            if due is None:
                break
            fired += self.tick(due)
        return fired
