"""
Timed task scheduling for simulation runs.

PhaseScheduler hands delayed callbacks to a timer backend and tags each
one with the run generation current when it was scheduled. Invalidating
the scheduler bumps the generation and cancels every pending timer; a
callback that still fires afterwards sees a stale generation and does
nothing.

Two backends are provided:
- ThreadedTimerBackend: wall-clock timers on daemon threads
- ManualClock: virtual time advanced explicitly, on the caller's thread
"""

import heapq
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """Handle returned by a backend for a pending callback."""

    def cancel(self):
        raise NotImplementedError


class TimerBackend:
    """Runs a callback once after a delay."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class _ThreadTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self):
        self._timer.cancel()


class ThreadedTimerBackend(TimerBackend):
    """Backend based on threading.Timer."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(max(delay_ms, 0) / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return _ThreadTimerHandle(timer)


@dataclass(order=True)
class _ManualTimer(TimerHandle):
    due_ms: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self):
        self.cancelled = True


class ManualClock(TimerBackend):
    """
    Virtual clock for deterministic runs.

    Nothing fires until advance() moves time forward. Timers fire in due
    order (ties in scheduling order); timers scheduled while advancing
    fire in the same call if they fall due before the target time.
    """

    def __init__(self):
        self.now_ms: float = 0.0
        self._queue: List[_ManualTimer] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        timer = _ManualTimer(self.now_ms + max(delay_ms, 0), next(self._seq), callback)
        heapq.heappush(self._queue, timer)
        return timer

    def advance(self, ms: float) -> int:
        """
        Move time forward by ms, firing every timer that falls due.

        Returns:
            Number of callbacks fired.
        """
        target = self.now_ms + ms
        fired = 0
        while self._queue and self._queue[0].due_ms <= target:
            timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now_ms = timer.due_ms
            timer.callback()
            fired += 1
        self.now_ms = target
        return fired

    def run_until_idle(self, max_callbacks: int = 1000) -> int:
        """Advance to each pending timer in turn until none is left."""
        fired = 0
        while self.pending() and fired < max_callbacks:
            next_due = min(t.due_ms for t in self._queue if not t.cancelled)
            fired += self.advance(next_due - self.now_ms)
        return fired

    def pending(self) -> int:
        """Number of timers not yet fired or cancelled."""
        return sum(1 for t in self._queue if not t.cancelled)


class PhaseScheduler:
    """
    Generation-keyed task scheduler.

    Every task captures the generation at schedule time. invalidate()
    increments the generation and cancels all pending timers, so no task
    from before the call can take effect. Tasks run while holding the
    given lock; callers sharing the lock see a task's effects atomically.
    """

    def __init__(self, backend: Optional[TimerBackend] = None,
                 lock: Optional[threading.RLock] = None):
        self.backend = backend or ThreadedTimerBackend()
        self._lock = lock or threading.RLock()
        self._generation = 0
        self._handles: Dict[int, TimerHandle] = {}
        self._tokens = itertools.count(1)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._handles)

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def schedule(self, delay_ms: float, task: Callable[[], None],
                 generation: Optional[int] = None) -> bool:
        """
        Run task after delay_ms unless the generation moves on first.

        Args:
            delay_ms: Delay in milliseconds.
            task: Callable run with the lock held.
            generation: Generation the task belongs to (default: current).

        Returns:
            False if generation is already stale; nothing is scheduled.
        """
        with self._lock:
            if generation is None:
                generation = self._generation
            if generation != self._generation:
                logger.debug("Refusing to schedule task for stale generation %d", generation)
                return False

            token = next(self._tokens)

            def fire():
                with self._lock:
                    self._handles.pop(token, None)
                    if generation != self._generation:
                        logger.debug("Discarding stale task (generation %d, current %d)",
                                     generation, self._generation)
                        return
                    task()

            self._handles[token] = self.backend.call_later(delay_ms, fire)
            return True

    def invalidate(self) -> int:
        """
        Start a new generation and cancel every pending task.

        Returns:
            The new generation.
        """
        with self._lock:
            self._generation += 1
            handles = list(self._handles.values())
            self._handles.clear()
            for handle in handles:
                handle.cancel()
            if handles:
                logger.debug("Cancelled %d pending tasks", len(handles))
            return self._generation
