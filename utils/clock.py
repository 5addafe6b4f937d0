"""clock.py - Session time source.

Every system reads time through a zero-argument callable returning
seconds.  Live play can pass ``time.monotonic``; a GameSession owns a
SimulationClock advanced by the frame delta so that every subsystem
sees the same instant during one tick.
"""

from __future__ import annotations


class SimulationClock:
    """Monotonic clock driven by accumulated frame deltas.

    Usage:
        clock = SimulationClock()
        tracker = IntentTracker(clock=clock.now)
        clock.advance(dt)
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, dt: float) -> float:
        """Move time forward by *dt* seconds (negative deltas are ignored)."""
        if dt > 0:
            self._now += dt
        return self._now

    def __call__(self) -> float:
        return self._now
