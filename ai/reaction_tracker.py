"""
reaction_tracker.py – Pairs enemy attack telegraphs with player reactions.

An enemy entering its attack phase registers a ThreatEvent.  When the
player performs a counter-action (dash, defend, ...), the most recent
unreacted threat younger than 2 s is marked reacted and its latency
joins a 20-sample ring buffer.  Each threat matches at most one
reaction.  Threats are forgotten 5 s after they were raised.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

from pygame.math import Vector3

from settings import (
    REACTION_MATCH_WINDOW, THREAT_RETENTION, REACTION_HISTORY_SIZE,
)
from utils.vectors import to_vector3

logger = logging.getLogger(__name__)


@dataclass
class ThreatEvent:
    """One telegraphed attack awaiting (or having received) a reaction."""

    timestamp: float
    position: Vector3
    source_type: str
    reacted: bool = False
    reaction_time: float | None = None
    reaction_type: str | None = None


class ReactionTracker:
    """Measures player reaction latency to enemy threats.

    Usage:
        tracker = ReactionTracker()
        tracker.register_threat(enemy_pos, "PUNISHER")
        ...
        tracker.register_reaction("dash")
        tracker.get_average_reaction_time()
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 match_window: float = REACTION_MATCH_WINDOW,
                 retention: float = THREAT_RETENTION,
                 history_size: int = REACTION_HISTORY_SIZE):
        self._clock = clock
        self.match_window = match_window
        self.retention = retention
        self.threats: list[ThreatEvent] = []
        self.reaction_times: deque[float] = deque(maxlen=history_size)
        self.last_threat_time: float | None = None

    def register_threat(self, position, source_type: str) -> ThreatEvent | None:
        """Record a threat raised now at *position*."""
        pos = to_vector3(position)
        if pos is None:
            logger.warning("Ignoring threat with bad position %r", position)
            return None
        now = self._clock()
        self._purge(now)
        threat = ThreatEvent(timestamp=now, position=pos, source_type=source_type)
        self.threats.append(threat)
        self.last_threat_time = now
        return threat

    def register_reaction(self, reaction_type: str) -> ThreatEvent | None:
        """Match a player reaction to the newest eligible threat.

        Returns the matched threat, or None when nothing was eligible.
        Expired threats are purged either way.
        """
        now = self._clock()
        matched = None
        for threat in reversed(self.threats):
            if not threat.reacted and now - threat.timestamp < self.match_window:
                threat.reacted = True
                threat.reaction_time = now - threat.timestamp
                threat.reaction_type = reaction_type
                self.reaction_times.append(threat.reaction_time)
                matched = threat
                logger.debug("Reaction %s matched %s threat in %.2fs",
                             reaction_type, threat.source_type, threat.reaction_time)
                break

        self._purge(now)
        return matched

    def _purge(self, now: float):
        self.threats = [t for t in self.threats if now - t.timestamp < self.retention]

    def get_average_reaction_time(self) -> float:
        if not self.reaction_times:
            return 0.0
        return sum(self.reaction_times) / len(self.reaction_times)

    def reset(self):
        self.threats.clear()
        self.reaction_times.clear()
        self.last_threat_time = None
