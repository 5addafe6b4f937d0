"""
intent_tracker.py – Per-session intent inference (THE CORE).

IntentTracker owns one session's BehaviorSampler, IntentScorer and
ReactionTracker.  It is explicitly instantiated per game session; there
is no module-level singleton.

Per tick:
    tracker.record_frame(player_state, enemy_positions, dt)
        → sample stored, heatmap updated, old samples purged
        → intent scores recomputed (once ≥10 long-window samples)

Read by other systems:
    tracker.get_intent_scores()       – copy of the score vector
    tracker.get_movement_stats()      – moving ratio, path repetition
    tracker.get_judgment_data()       – end-of-session snapshot
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ai.behavior_sampler import (
    BehaviorSampler, BehaviorSample, SamplerConfig, MovementStats,
)
from ai.intent_scorer import IntentScorer, IntentScores, ScoringConfig
from ai.reaction_tracker import ReactionTracker, ThreatEvent
from settings import DEBUG_LOG_INTERVAL

logger = logging.getLogger(__name__)


@dataclass
class JudgmentData:
    """Everything the judgment generator and the end screen read."""

    intent_scores: IntentScores
    dominant_intent: str
    movement_stats: MovementStats
    average_reaction_time: float
    path_heatmap: list[tuple[tuple[int, int], int]] = field(default_factory=list)


class IntentTracker:
    """Tracks player behavior patterns and derives intent scores."""

    def __init__(self, sampler_config: SamplerConfig | None = None,
                 scoring_config: ScoringConfig | None = None,
                 clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.sampler = BehaviorSampler(sampler_config, clock=clock)
        self.scorer = IntentScorer(scoring_config)
        self.reactions = ReactionTracker(clock=clock)

        self._dbg_next: float | None = None

    # ── Per-tick ──────────────────────────────────────────

    def record_frame(self, player_state, enemy_positions: Iterable | None,
                     delta: float) -> BehaviorSample | None:
        """Record one frame of player data, then rescore."""
        if player_state is None:
            logger.warning("record_frame called without player state")
            return None

        sample = self.sampler.record_frame(
            getattr(player_state, "position", None),
            getattr(player_state, "velocity", None),
            enemy_positions,
            delta,
            getattr(player_state, "last_action", None),
        )
        if sample is None:
            return None

        self.scorer.update(self.sampler, self.reactions.reaction_times)
        self._debug_log(sample.timestamp)
        return sample

    # ── Threats / reactions ───────────────────────────────

    def register_threat(self, position, threat_type: str) -> ThreatEvent | None:
        return self.reactions.register_threat(position, threat_type)

    def register_reaction(self, reaction_type: str) -> ThreatEvent | None:
        return self.reactions.register_reaction(reaction_type)

    def get_average_reaction_time(self) -> float:
        return self.reactions.get_average_reaction_time()

    # ── Queries ───────────────────────────────────────────

    @property
    def scores(self) -> IntentScores:
        """Live score vector (mutated in place each tick)."""
        return self.scorer.scores

    def get_intent_scores(self) -> IntentScores:
        return self.scorer.scores.copy()

    def get_dominant_intent(self) -> str:
        return self.scorer.scores.dominant()

    def get_frames_in_window(self, duration: float) -> list[BehaviorSample]:
        return self.sampler.get_frames_in_window(duration)

    def get_path_repetition(self, position) -> float:
        return self.sampler.get_path_repetition(position)

    def get_movement_stats(self) -> MovementStats:
        return self.sampler.get_movement_stats()

    def get_judgment_data(self) -> JudgmentData:
        scores = self.get_intent_scores()
        return JudgmentData(
            intent_scores=scores,
            dominant_intent=scores.dominant(),
            movement_stats=self.get_movement_stats(),
            average_reaction_time=self.get_average_reaction_time(),
            path_heatmap=self.sampler.heatmap.items(),
        )

    # ── Lifecycle ─────────────────────────────────────────

    def reset(self):
        self.sampler.reset()
        self.scorer.reset()
        self.reactions.reset()
        self._dbg_next = None

    def _debug_log(self, now: float):
        if self._dbg_next is not None and now < self._dbg_next:
            return
        self._dbg_next = now + DEBUG_LOG_INTERVAL
        s = self.scorer.scores
        logger.debug(
            "intent agg=%.2f eva=%.2f greed=%.2f panic=%.2f prec=%.2f "
            "samples=%d cells=%d",
            s.aggression, s.evasion, s.greed, s.panic, s.precision,
            len(self.sampler), len(self.sampler.heatmap),
        )
