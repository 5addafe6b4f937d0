"""
scheduler.py – Deferred effects as explicit, cancelable records.

Spike retraction, pickup respawn and delayed notifications are
scheduled here with a due timestamp instead of detached timers.  The
owning session drains the scheduler once per tick, so callbacks run
synchronously inside the tick loop in due-time order.

Every event may carry an ``owner`` key; removing an object cancels
all of its pending events via ``cancel_owner``.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable

logger = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledEvent:
    """One pending callback.  Ordered by (due, seq) for the heap."""

    due: float
    seq: int
    name: str = field(compare=False)
    callback: Callable[[], Any] = field(compare=False, repr=False)
    owner: Hashable | None = field(default=None, compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self):
        self.cancelled = True


class EventScheduler:
    """Due-time queue of deferred callbacks, drained by the tick loop.

    Usage:
        sched = EventScheduler(clock)
        ev = sched.schedule(2.0, retract, name="spike_retract", owner=spike)
        ...
        sched.run_due()          # once per tick
        ev.cancel()              # or sched.cancel_owner(spike)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._heap: list[ScheduledEvent] = []
        self._seq = itertools.count()

    def schedule(self, delay: float, callback: Callable[[], Any],
                 name: str = "", owner: Hashable | None = None) -> ScheduledEvent:
        """Run *callback* at the first drain at or after now + *delay*."""
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        event = ScheduledEvent(
            due=self._clock() + delay,
            seq=next(self._seq),
            name=name or getattr(callback, "__name__", "event"),
            callback=callback,
            owner=owner,
        )
        heapq.heappush(self._heap, event)
        return event

    def cancel_owner(self, owner: Hashable) -> int:
        """Cancel every pending event belonging to *owner*."""
        n = 0
        for ev in self._heap:
            if ev.owner is owner and not ev.cancelled:
                ev.cancelled = True
                n += 1
        if n:
            logger.debug("Cancelled %d pending event(s) for %r", n, owner)
        return n

    def run_due(self) -> int:
        """Fire every event whose due time has passed.  Returns count fired.

        Callbacks may schedule new events; those due now fire in the
        same drain.
        """
        now = self._clock()
        fired = 0
        while self._heap and self._heap[0].due <= now:
            ev = heapq.heappop(self._heap)
            if ev.cancelled:
                continue
            ev.callback()
            fired += 1
        return fired

    def pending(self, owner: Hashable | None = None) -> list[ScheduledEvent]:
        """Live events in due order, optionally for one owner."""
        live = sorted(ev for ev in self._heap if not ev.cancelled)
        if owner is None:
            return live
        return [ev for ev in live if ev.owner is owner]

    def clear(self):
        for ev in self._heap:
            ev.cancelled = True
        self._heap.clear()

    def __len__(self) -> int:
        return sum(1 for ev in self._heap if not ev.cancelled)
