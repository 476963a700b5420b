"""
Cooperative scheduler for the engine's two time sources:
- a repeating ticker (random-mode simulation, ~60 Hz)
- one-shot delayed callbacks (random -> matrix completion)

Nothing runs on its own thread. The host calls `run_pending()` from its loop
(the demo viewer does it once per frame). Tests drive a ManualClock with
`advance()` so every due time fires in order.

Cancellation is synchronous: once `cancel()` returns the callback will not run.
"""

from __future__ import annotations
import heapq
import itertools
import time
from typing import Callable, Optional

from logger import get_logger

log = get_logger("scheduler")


class ManualClock:
    def __init__(self, start=0.0):
        self.t = float(start)

    def __call__(self):
        return self.t

    def advance(self, seconds):
        self.t += max(0.0, float(seconds))
        return self.t

    def advance_to(self, t):
        # never moves backwards
        self.t = max(self.t, float(t))
        return self.t


class ScheduledTask:
    def __init__(self, due: float, callback: Callable[[], None],
                 interval: Optional[float] = None, name: str = ""):
        self.due = float(due)
        self.callback = callback
        self.interval = interval
        self.name = name or getattr(callback, "__name__", "task")
        self.cancelled = False
        self.done = False

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.done)

    def cancel(self) -> None:
        if self.active:
            log.debug("cancel %s", self.name)
        self.cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else ("done" if self.done else "active")
        return f"ScheduledTask({self.name}, due={self.due:.4f}, {state})"


class Scheduler:
    def __init__(self, clock: Callable[[], float] = time.monotonic, max_catchup: int = 4):
        self.clock = clock
        self.max_catchup = max(1, int(max_catchup))
        self._heap: list = []
        self._seq = itertools.count()

    def now(self) -> float:
        return float(self.clock())

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        task = ScheduledTask(self.now() + max(0.0, float(delay)), callback, None, name)
        self._push(task)
        return task

    def call_every(self, interval: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        interval = max(1e-6, float(interval))
        task = ScheduledTask(self.now() + interval, callback, interval, name)
        self._push(task)
        return task

    def pending(self) -> int:
        return sum(1 for _, _, t in self._heap if t.active)

    def run_pending(self, now: Optional[float] = None) -> int:
        """Fire every task due at or before `now`, earliest first. Returns callbacks fired."""
        now = self.now() if now is None else float(now)
        fired = 0
        catchup: dict[int, int] = {}

        while self._heap and self._heap[0][0] <= now:
            _, _, task = heapq.heappop(self._heap)
            if not task.active:
                continue

            if task.repeating:
                n = catchup.get(id(task), 0) + 1
                catchup[id(task)] = n
                task.due += task.interval
                if n >= self.max_catchup and task.due <= now:
                    # drop the backlog instead of spiralling
                    task.due = now + task.interval
                self._push(task)
            else:
                task.done = True

            fired += 1
            task.callback()

        return fired

    def advance(self, seconds: float) -> int:
        """
        ManualClock only: move time forward, firing tasks at their own due times
        so a ticker interleaves correctly with one-shot callbacks.
        """
        advance_to = getattr(self.clock, "advance_to", None)
        if advance_to is None:
            raise TypeError("advance() needs a ManualClock")

        target = self.now() + max(0.0, float(seconds))
        fired = 0
        while True:
            nxt = self._next_due()
            if nxt is None or nxt > target:
                break
            advance_to(nxt)
            fired += self.run_pending()
        advance_to(target)
        fired += self.run_pending()
        return fired

    def clear(self) -> None:
        for _, _, task in self._heap:
            task.cancelled = True
        self._heap.clear()

    # ========================= Internals =========================

    def _push(self, task):
        heapq.heappush(self._heap, (task.due, next(self._seq), task))

    def _next_due(self):
        while self._heap and not self._heap[0][2].active:
            heapq.heappop(self._heap)
        return self._heap[0][0] if self._heap else None
