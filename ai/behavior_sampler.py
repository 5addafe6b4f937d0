"""
behavior_sampler.py – Per-tick player behavior sampling.

Records one BehaviorSample per simulation tick and keeps:
  - a bounded history (samples older than the long window are purged)
  - moving / stationary time accumulators
  - a path heatmap of visits per 5×5 ground cell

Rolling windows are never stored separately; ``get_frames_in_window``
filters the history by timestamp on demand.

Nothing here persists across sessions.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable

from pygame.math import Vector3

from settings import (
    WINDOW_SHORT, WINDOW_MEDIUM, WINDOW_LONG,
    STATIONARY_THRESHOLD, THREAT_RANGE, NO_THREAT_DISTANCE,
    HEATMAP_CELL_SIZE,
)
from utils.vectors import safe_normalize, to_vector3

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Configuration
# ══════════════════════════════════════════════════════════

@dataclass
class SamplerConfig:
    """Tunable knobs for sampling and windowing."""

    short_window: float = WINDOW_SHORT
    medium_window: float = WINDOW_MEDIUM
    long_window: float = WINDOW_LONG
    stationary_threshold: float = STATIONARY_THRESHOLD
    threat_range: float = THREAT_RANGE
    no_threat_distance: float = NO_THREAT_DISTANCE
    cell_size: float = HEATMAP_CELL_SIZE


# ══════════════════════════════════════════════════════════
#  Sample record
# ══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BehaviorSample:
    """One tick of player kinematics plus threat context (immutable)."""

    timestamp: float
    position: Vector3
    velocity: Vector3
    direction: Vector3                 # unit vector, zero when still
    speed: float
    is_moving: bool
    nearest_threat_distance: float
    threats_in_range: int
    action: str | None
    delta: float


@dataclass
class MovementStats:
    """Session-wide movement summary."""

    moving_time: float = 0.0
    stationary_time: float = 0.0
    moving_ratio: float = 0.5
    path_repetition: float = 0.0


# ══════════════════════════════════════════════════════════
#  Path heatmap
# ══════════════════════════════════════════════════════════

class PathHeatmap:
    """Visit counts per ground cell, keyed by (floor(x/size), floor(z/size))."""

    def __init__(self, cell_size: float = HEATMAP_CELL_SIZE):
        self.cell_size = cell_size
        self._counts: dict[tuple[int, int], int] = {}
        self._max_count: int = 0

    def cell_of(self, position: Vector3) -> tuple[int, int]:
        return (math.floor(position.x / self.cell_size),
                math.floor(position.z / self.cell_size))

    def visit(self, position: Vector3) -> int:
        """Count one visit to the cell containing *position*."""
        cell = self.cell_of(position)
        count = self._counts.get(cell, 0) + 1
        self._counts[cell] = count
        if count > self._max_count:
            self._max_count = count
        return count

    def count(self, position: Vector3) -> int:
        return self._counts.get(self.cell_of(position), 0)

    def repetition(self, position: Vector3) -> float:
        """Cell visits / busiest-cell visits (1.0 = most repeated cell)."""
        return self.count(position) / max(self._max_count, 1)

    @property
    def max_count(self) -> int:
        return self._max_count

    def items(self) -> list[tuple[tuple[int, int], int]]:
        return list(self._counts.items())

    def __len__(self) -> int:
        return len(self._counts)

    def clear(self):
        self._counts.clear()
        self._max_count = 0


# ══════════════════════════════════════════════════════════
#  Behavior Sampler
# ══════════════════════════════════════════════════════════

class BehaviorSampler:
    """Bounded per-tick sample history with a path heatmap.

    Usage:
        sampler = BehaviorSampler()
        sampler.record_frame(position, velocity, enemy_positions, dt, action)
        recent = sampler.get_frames_in_window(sampler.cfg.short_window)
    """

    def __init__(self, config: SamplerConfig | None = None,
                 clock: Callable[[], float] = time.monotonic):
        self.cfg = config or SamplerConfig()
        self._clock = clock

        self._samples: list[BehaviorSample] = []
        self.heatmap = PathHeatmap(self.cfg.cell_size)

        # ── Movement accumulators ─────────────────────────
        self.total_moving_time: float = 0.0
        self.total_stationary_time: float = 0.0
        self.last_position: Vector3 | None = None

    # ── Recording ─────────────────────────────────────────

    def record_frame(self, position, velocity,
                     enemy_positions: Iterable | None, delta: float,
                     action: str | None = None) -> BehaviorSample | None:
        """Append one sample, update accumulators + heatmap, prune history.

        Returns the stored sample, or None when the player's kinematic
        state is malformed (the tick is skipped).
        """
        pos = to_vector3(position)
        vel = to_vector3(velocity)
        if pos is None or vel is None:
            logger.warning("Skipping behavior sample: bad player state "
                           "(position=%r, velocity=%r)", position, velocity)
            return None

        enemies = self._valid_positions(enemy_positions)
        now = self._clock()
        speed = vel.length()
        delta = max(0.0, float(delta))

        sample = BehaviorSample(
            timestamp=now,
            position=pos,
            velocity=vel,
            direction=safe_normalize(vel),
            speed=speed,
            is_moving=speed > self.cfg.stationary_threshold,
            nearest_threat_distance=self.nearest_threat_distance(pos, enemies),
            threats_in_range=self.count_threats_in_range(pos, enemies),
            action=action or None,
            delta=delta,
        )

        if sample.is_moving:
            self.total_moving_time += delta
        else:
            self.total_stationary_time += delta

        self.heatmap.visit(pos)
        self._samples.append(sample)
        self._prune(now)
        self.last_position = Vector3(pos)
        return sample

    # ── Windows ───────────────────────────────────────────

    def get_frames_in_window(self, duration: float) -> list[BehaviorSample]:
        """Samples newer than (latest timestamp − duration), oldest first."""
        if duration <= 0:
            raise ValueError(f"window duration must be positive, got {duration}")
        if not self._samples:
            return []
        cutoff = self._samples[-1].timestamp - duration
        return [s for s in self._samples if s.timestamp > cutoff]

    @property
    def samples(self) -> list[BehaviorSample]:
        return list(self._samples)

    @property
    def latest(self) -> BehaviorSample | None:
        return self._samples[-1] if self._samples else None

    def __len__(self) -> int:
        return len(self._samples)

    # ── Threat geometry ───────────────────────────────────

    def nearest_threat_distance(self, position: Vector3,
                                enemies: list[Vector3]) -> float:
        """Minimum Euclidean distance to any enemy (sentinel if none)."""
        best = self.cfg.no_threat_distance
        for e in enemies:
            d = position.distance_to(e)
            if d < best:
                best = d
        return best

    def count_threats_in_range(self, position: Vector3,
                               enemies: list[Vector3]) -> int:
        r = self.cfg.threat_range
        return sum(1 for e in enemies if position.distance_to(e) < r)

    # ── Movement / path statistics ────────────────────────

    def get_path_repetition(self, position) -> float:
        pos = to_vector3(position)
        if pos is None:
            return 0.0
        return self.heatmap.repetition(pos)

    def get_movement_stats(self) -> MovementStats:
        total = self.total_moving_time + self.total_stationary_time
        return MovementStats(
            moving_time=self.total_moving_time,
            stationary_time=self.total_stationary_time,
            moving_ratio=self.total_moving_time / total if total > 0 else 0.5,
            path_repetition=(self.heatmap.repetition(self.last_position)
                             if self.last_position is not None else 0.0),
        )

    # ── Lifecycle ─────────────────────────────────────────

    def reset(self):
        self._samples.clear()
        self.heatmap.clear()
        self.total_moving_time = 0.0
        self.total_stationary_time = 0.0
        self.last_position = None

    # ── Internal helpers ──────────────────────────────────

    def _prune(self, now: float):
        cutoff = now - self.cfg.long_window
        if self._samples and self._samples[0].timestamp <= cutoff:
            self._samples = [s for s in self._samples if s.timestamp > cutoff]

    @staticmethod
    def _valid_positions(enemy_positions) -> list[Vector3]:
        if not enemy_positions:
            return []
        valid = []
        for raw in enemy_positions:
            vec = to_vector3(raw)
            if vec is not None:
                valid.append(vec)
        return valid
