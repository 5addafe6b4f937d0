"""
intent_scorer.py – Closed-form intent scoring over rolling windows.

Five intent channels (all 0.0–1.0, neutral prior 0.5):
- aggression : closing on threats, staying close, attacking
- evasion    : opening distance, holding a safe band, defending / dashing
- greed      : risky pickups, loitering among several threats
- panic      : erratic turning, slow reactions, being swarmed
- precision  : steady speed, fast reactions, not retracing paths

Each channel is a weighted sum of 2–3 factors, each already in 0..1,
clamped after summation.  No learning; scores are recomputed from the
windows every tick once the long window holds enough samples, and
left untouched before that.

All weights and thresholds live in ScoringConfig.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Sequence

from settings import (
    NEUTRAL_SCORE, MIN_SAMPLES_FOR_SCORING,
    ACTION_ATTACK, ACTION_DEFEND, ACTION_DASH, ACTION_PICKUP,
    AGGRESSION_APPROACH_WEIGHT, AGGRESSION_CLOSE_WEIGHT, AGGRESSION_ATTACK_WEIGHT,
    AGGRESSION_ENGAGE_RANGE, AGGRESSION_CLOSE_DISTANCE, AGGRESSION_ATTACK_SATURATION,
    EVASION_RETREAT_WEIGHT, EVASION_SAFE_BAND_WEIGHT, EVASION_DEFENSIVE_WEIGHT,
    EVASION_ENGAGE_RANGE, EVASION_SAFE_BAND, EVASION_DEFENSIVE_SATURATION,
    GREED_PICKUP_WEIGHT, GREED_DANGER_WEIGHT, GREED_PICKUP_SATURATION,
    GREED_DANGER_THREATS,
    PANIC_ERRATIC_WEIGHT, PANIC_REACTION_WEIGHT, PANIC_SWARMED_WEIGHT,
    PANIC_TURN_DOT, PANIC_TURN_SCALE, PANIC_SLOW_REACTION,
    PANIC_SWARM_DISTANCE, PANIC_SWARM_THREATS,
    PRECISION_STEADINESS_WEIGHT, PRECISION_REACTION_WEIGHT, PRECISION_PATH_WEIGHT,
    PRECISION_SPEED_STD_SCALE, PRECISION_NO_REACTION_SCORE,
)
from ai.behavior_sampler import BehaviorSample, BehaviorSampler


# ══════════════════════════════════════════════════════════
#  Configuration (tweak without touching logic)
# ══════════════════════════════════════════════════════════

@dataclass
class ScoringConfig:
    """All intent weights and thresholds – no magic numbers."""

    min_samples: int = MIN_SAMPLES_FOR_SCORING

    # Aggression
    aggression_approach_weight: float = AGGRESSION_APPROACH_WEIGHT
    aggression_close_weight: float = AGGRESSION_CLOSE_WEIGHT
    aggression_attack_weight: float = AGGRESSION_ATTACK_WEIGHT
    aggression_engage_range: float = AGGRESSION_ENGAGE_RANGE
    aggression_close_distance: float = AGGRESSION_CLOSE_DISTANCE
    aggression_attack_saturation: int = AGGRESSION_ATTACK_SATURATION

    # Evasion
    evasion_retreat_weight: float = EVASION_RETREAT_WEIGHT
    evasion_safe_band_weight: float = EVASION_SAFE_BAND_WEIGHT
    evasion_defensive_weight: float = EVASION_DEFENSIVE_WEIGHT
    evasion_engage_range: float = EVASION_ENGAGE_RANGE
    evasion_safe_min: float = EVASION_SAFE_BAND[0]
    evasion_safe_max: float = EVASION_SAFE_BAND[1]
    evasion_defensive_saturation: int = EVASION_DEFENSIVE_SATURATION

    # Greed
    greed_pickup_weight: float = GREED_PICKUP_WEIGHT
    greed_danger_weight: float = GREED_DANGER_WEIGHT
    greed_pickup_saturation: int = GREED_PICKUP_SATURATION
    greed_danger_threats: int = GREED_DANGER_THREATS

    # Panic
    panic_erratic_weight: float = PANIC_ERRATIC_WEIGHT
    panic_reaction_weight: float = PANIC_REACTION_WEIGHT
    panic_swarmed_weight: float = PANIC_SWARMED_WEIGHT
    panic_turn_dot: float = PANIC_TURN_DOT
    panic_turn_scale: float = PANIC_TURN_SCALE
    panic_slow_reaction: float = PANIC_SLOW_REACTION
    panic_swarm_distance: float = PANIC_SWARM_DISTANCE
    panic_swarm_threats: int = PANIC_SWARM_THREATS

    # Precision
    precision_steadiness_weight: float = PRECISION_STEADINESS_WEIGHT
    precision_reaction_weight: float = PRECISION_REACTION_WEIGHT
    precision_path_weight: float = PRECISION_PATH_WEIGHT
    precision_speed_std_scale: float = PRECISION_SPEED_STD_SCALE
    precision_no_reaction_score: float = PRECISION_NO_REACTION_SCORE


# ══════════════════════════════════════════════════════════
#  Score vector
# ══════════════════════════════════════════════════════════

@dataclass
class IntentScores:
    """The five intent channels.  Field order breaks argmax ties."""

    aggression: float = NEUTRAL_SCORE
    evasion: float = NEUTRAL_SCORE
    greed: float = NEUTRAL_SCORE
    panic: float = NEUTRAL_SCORE
    precision: float = NEUTRAL_SCORE

    @classmethod
    def channels(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in self.channels()}

    def copy(self) -> IntentScores:
        return IntentScores(**self.as_dict())

    def dominant(self) -> str:
        """Name of the highest channel (first declared wins ties)."""
        best_name, best_val = "", -math.inf
        for name in self.channels():
            val = getattr(self, name)
            if val > best_val:
                best_name, best_val = name, val
        return best_name

    def reset(self):
        for name in self.channels():
            setattr(self, name, NEUTRAL_SCORE)


# ══════════════════════════════════════════════════════════
#  Intent Scorer
# ══════════════════════════════════════════════════════════

class IntentScorer:
    """Recomputes an IntentScores vector from a BehaviorSampler's windows.

    Usage:
        scorer = IntentScorer()
        scorer.update(sampler, reaction_times)
        scorer.scores.aggression
    """

    def __init__(self, config: ScoringConfig | None = None):
        self.cfg = config or ScoringConfig()
        self.scores = IntentScores()

    def update(self, sampler: BehaviorSampler,
               reaction_times: Sequence[float] = ()) -> bool:
        """Recompute every channel in place.

        Returns False (and leaves scores untouched) while the long
        window holds fewer than ``min_samples`` samples.
        """
        scfg = sampler.cfg
        long_frames = sampler.get_frames_in_window(scfg.long_window)
        if len(long_frames) < self.cfg.min_samples:
            return False

        short_frames = sampler.get_frames_in_window(scfg.short_window)
        medium_frames = sampler.get_frames_in_window(scfg.medium_window)
        avg_reaction = (sum(reaction_times) / len(reaction_times)
                        if reaction_times else None)

        s = self.scores
        s.aggression = self.score_aggression(short_frames, medium_frames)
        s.evasion = self.score_evasion(short_frames, medium_frames)
        s.greed = self.score_greed(medium_frames)
        s.panic = self.score_panic(short_frames, avg_reaction)
        s.precision = self.score_precision(medium_frames, avg_reaction, sampler)
        return True

    # ── Channels ──────────────────────────────────────────

    def score_aggression(self, short: list[BehaviorSample],
                         medium: list[BehaviorSample]) -> float:
        if not short:
            return NEUTRAL_SCORE
        cfg = self.cfg
        n = len(short)

        approaching = _count_trend(short, cfg.aggression_engage_range, closing=True)
        close = sum(1 for f in short
                    if f.nearest_threat_distance < cfg.aggression_close_distance)
        attacks = sum(1 for f in medium if f.action == ACTION_ATTACK)

        score = (
            approaching / n * cfg.aggression_approach_weight
            + close / n * cfg.aggression_close_weight
            + min(attacks / cfg.aggression_attack_saturation, 1.0)
            * cfg.aggression_attack_weight
        )
        return _clamp01(score)

    def score_evasion(self, short: list[BehaviorSample],
                      medium: list[BehaviorSample]) -> float:
        if not short:
            return NEUTRAL_SCORE
        cfg = self.cfg
        n = len(short)

        retreating = _count_trend(short, cfg.evasion_engage_range, closing=False)
        in_band = sum(1 for f in short
                      if cfg.evasion_safe_min < f.nearest_threat_distance
                      < cfg.evasion_safe_max)
        defensive = sum(1 for f in medium
                        if f.action in (ACTION_DEFEND, ACTION_DASH))

        score = (
            retreating / n * cfg.evasion_retreat_weight
            + in_band / n * cfg.evasion_safe_band_weight
            + min(defensive / cfg.evasion_defensive_saturation, 1.0)
            * cfg.evasion_defensive_weight
        )
        return _clamp01(score)

    def score_greed(self, medium: list[BehaviorSample]) -> float:
        if not medium:
            return NEUTRAL_SCORE
        cfg = self.cfg

        risky_pickups = sum(1 for f in medium
                            if f.action == ACTION_PICKUP and f.threats_in_range > 0)
        dangerous = sum(1 for f in medium
                        if f.threats_in_range > cfg.greed_danger_threats and f.is_moving)

        score = (
            min(risky_pickups / cfg.greed_pickup_saturation, 1.0)
            * cfg.greed_pickup_weight
            + dangerous / len(medium) * cfg.greed_danger_weight
        )
        return _clamp01(score)

    def score_panic(self, short: list[BehaviorSample],
                    avg_reaction: float | None) -> float:
        if not short:
            return NEUTRAL_SCORE
        cfg = self.cfg
        n = len(short)

        # Erratic turning: consecutive headings diverging sharply
        turns = 0
        for prev, cur in zip(short, short[1:]):
            if (prev.direction.length_squared() > 0
                    and cur.direction.length_squared() > 0
                    and prev.direction.dot(cur.direction) < cfg.panic_turn_dot):
                turns += 1
        score = min(turns / (n * cfg.panic_turn_scale), 1.0) * cfg.panic_erratic_weight

        if avg_reaction is not None and avg_reaction > cfg.panic_slow_reaction:
            score += (min((avg_reaction - cfg.panic_slow_reaction) * 2.0, 1.0)
                      * cfg.panic_reaction_weight)

        swarmed = sum(1 for f in short
                      if f.nearest_threat_distance < cfg.panic_swarm_distance
                      and f.threats_in_range > cfg.panic_swarm_threats)
        score += swarmed / n * cfg.panic_swarmed_weight
        return _clamp01(score)

    def score_precision(self, medium: list[BehaviorSample],
                        avg_reaction: float | None,
                        sampler: BehaviorSampler) -> float:
        if not medium:
            return NEUTRAL_SCORE
        cfg = self.cfg

        speeds = [f.speed for f in medium]
        mean = sum(speeds) / len(speeds)
        std = math.sqrt(sum((v - mean) ** 2 for v in speeds) / len(speeds))
        score = (max(0.0, 1.0 - std / cfg.precision_speed_std_scale)
                 * cfg.precision_steadiness_weight)

        if avg_reaction is not None:
            score += max(0.0, 1.0 - avg_reaction * 2.0) * cfg.precision_reaction_weight
        else:
            score += cfg.precision_no_reaction_score

        repetition = sampler.heatmap.repetition(medium[-1].position)
        score += (1.0 - repetition) * cfg.precision_path_weight
        return _clamp01(score)

    def reset(self):
        self.scores.reset()


# ── Utility ───────────────────────────────────────────────

def _count_trend(frames: list[BehaviorSample], engage_range: float,
                 closing: bool) -> int:
    """Samples within range whose next sample is nearer (or farther)."""
    count = 0
    for cur, nxt in zip(frames, frames[1:]):
        if cur.nearest_threat_distance > engage_range:
            continue
        if closing and nxt.nearest_threat_distance < cur.nearest_threat_distance:
            count += 1
        elif not closing and nxt.nearest_threat_distance > cur.nearest_threat_distance:
            count += 1
    return count


def _clamp01(v: float) -> float:
    return max(0.0, min(1.0, v))
