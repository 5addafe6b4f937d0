"""
world_reactions.py – Terrain that reacts to the player's inferred intent.

Two object kinds, each re-evaluated on its own interval rather than
every tick:

  PLATFORM  "judgmental" platforms
            - camping defensively  → slide toward the player, lift enemies
            - mobile and aggressive → slide away from enemies, raise an escape
            - otherwise           → settle back to base height
  SPIKE     retracted by default; erupt in front of a panicked runner or
            under enemies near an aggressive player; retract on a timer.
            Extended spikes hurt everyone in reach (player and enemies).

Heights approach their target exponentially each tick.  Spike
retraction goes through the session EventScheduler and is cancelled
when the spike is removed.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from pygame.math import Vector3

from settings import (
    PLATFORM_EVAL_INTERVAL, PLATFORM_CAMPING_RATIO, PLATFORM_CAMPING_RANGE,
    PLATFORM_MOBILE_RATIO, PLATFORM_CAMPING_EVASION, PLATFORM_MOBILE_AGGRESSION,
    PLATFORM_LIFT_HEIGHT, PLATFORM_ESCAPE_HEIGHT, PLATFORM_LIFT_SPEED,
    PLATFORM_ESCAPE_SPEED, PLATFORM_HEIGHT_RATE, PLATFORM_HEIGHT_EPSILON,
    SPIKE_EVAL_INTERVAL, SPIKE_RETRACTED_Y, SPIKE_EXTENDED_Y, SPIKE_MOVE_RATE,
    SPIKE_ARRIVE_EPSILON, SPIKE_FLEE_EVASION, SPIKE_FLEE_PANIC, SPIKE_FLEE_RANGE,
    SPIKE_HEADING_DOT, SPIKE_AGGRESSION, SPIKE_ENEMY_RANGE, SPIKE_DAMAGE,
    SPIKE_DAMAGE_INTERVAL, SPIKE_DAMAGE_RADIUS, SPIKE_RETRACT_DELAY,
)
from systems.scheduler import EventScheduler
from utils.vectors import to_vector3, safe_normalize, flat_direction, nearest, centroid

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Configuration
# ══════════════════════════════════════════════════════════

@dataclass
class PlatformConfig:
    """Tunable knobs for judgmental platforms."""

    eval_interval: float = PLATFORM_EVAL_INTERVAL
    camping_ratio: float = PLATFORM_CAMPING_RATIO
    camping_range: float = PLATFORM_CAMPING_RANGE
    mobile_ratio: float = PLATFORM_MOBILE_RATIO
    camping_evasion: float = PLATFORM_CAMPING_EVASION
    mobile_aggression: float = PLATFORM_MOBILE_AGGRESSION
    lift_height: float = PLATFORM_LIFT_HEIGHT
    escape_height: float = PLATFORM_ESCAPE_HEIGHT
    lift_speed: float = PLATFORM_LIFT_SPEED
    escape_speed: float = PLATFORM_ESCAPE_SPEED
    height_rate: float = PLATFORM_HEIGHT_RATE
    height_epsilon: float = PLATFORM_HEIGHT_EPSILON


@dataclass
class SpikeConfig:
    """Tunable knobs for intent-based spikes."""

    eval_interval: float = SPIKE_EVAL_INTERVAL
    retracted_y: float = SPIKE_RETRACTED_Y
    extended_y: float = SPIKE_EXTENDED_Y
    move_rate: float = SPIKE_MOVE_RATE
    height_epsilon: float = PLATFORM_HEIGHT_EPSILON
    arrive_epsilon: float = SPIKE_ARRIVE_EPSILON
    flee_evasion: float = SPIKE_FLEE_EVASION
    flee_panic: float = SPIKE_FLEE_PANIC
    flee_range: float = SPIKE_FLEE_RANGE
    heading_dot: float = SPIKE_HEADING_DOT
    aggression: float = SPIKE_AGGRESSION
    enemy_range: float = SPIKE_ENEMY_RANGE
    damage: float = SPIKE_DAMAGE
    damage_interval: float = SPIKE_DAMAGE_INTERVAL
    damage_radius: float = SPIKE_DAMAGE_RADIUS
    retract_delay: float = SPIKE_RETRACT_DELAY


# ══════════════════════════════════════════════════════════
#  Reaction objects
# ══════════════════════════════════════════════════════════

class ReactionObjectKind(Enum):
    PLATFORM = "platform"
    SPIKE = "spike"


class PlatformIntention(Enum):
    NEUTRAL = "neutral"
    LIFT_ENEMIES = "lift_enemies"
    CREATE_ESCAPE = "create_escape"


class SpikeState(Enum):
    RETRACTED = "retracted"
    EXTENDING = "extending"
    EXTENDED = "extended"
    RETRACTING = "retracting"

    @property
    def rising(self) -> bool:
        return self in (SpikeState.EXTENDING, SpikeState.EXTENDED)


@dataclass(eq=False)
class JudgmentalPlatform:
    position: Vector3
    base_y: float = 0.0
    current_y: float = 0.0
    target_y: float = 0.0
    intention: PlatformIntention = PlatformIntention.NEUTRAL
    last_evaluation_time: float = -math.inf

    kind = ReactionObjectKind.PLATFORM


@dataclass(eq=False)
class IntentSpike:
    position: Vector3
    current_y: float = SPIKE_RETRACTED_Y
    state: SpikeState = SpikeState.RETRACTED
    last_evaluation_time: float = -math.inf
    last_damage_time: float = -math.inf
    pending_player_damage: float = 0.0
    hits: int = 0

    kind = ReactionObjectKind.SPIKE

    @property
    def extended(self) -> bool:
        return self.state is SpikeState.EXTENDED


# ══════════════════════════════════════════════════════════
#  World Reactions (per session)
# ══════════════════════════════════════════════════════════

class WorldReactions:
    """Platforms and spikes driven by the session's IntentTracker.

    Usage:
        world = WorldReactions(tracker, clock=clock.now, scheduler=sched)
        world.add_spike((4, 0, 6))
        world.update(player.position, player.velocity, enemies, dt,
                     effects=fx, distortions=enemy_system.active_distortions())
        dmg = world.consume_player_damage()
    """

    def __init__(self, tracker, clock: Callable[[], float] = time.monotonic,
                 scheduler: EventScheduler | None = None,
                 platform_config: PlatformConfig | None = None,
                 spike_config: SpikeConfig | None = None):
        self.tracker = tracker
        self._clock = clock
        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler if scheduler is not None else EventScheduler(clock)
        self.platform_cfg = platform_config or PlatformConfig()
        self.spike_cfg = spike_config or SpikeConfig()

        self.platforms: list[JudgmentalPlatform] = []
        self.spikes: list[IntentSpike] = []
        self.active_distortions: list = []

    # ── Roster ────────────────────────────────────────────

    def add_platform(self, position) -> JudgmentalPlatform | None:
        pos = to_vector3(position)
        if pos is None:
            logger.warning("Platform has bad position %r", position)
            return None
        platform = JudgmentalPlatform(pos, base_y=pos.y, current_y=pos.y, target_y=pos.y)
        self.platforms.append(platform)
        return platform

    def add_spike(self, position) -> IntentSpike | None:
        pos = to_vector3(position)
        if pos is None:
            logger.warning("Spike has bad position %r", position)
            return None
        pos.y = self.spike_cfg.retracted_y
        spike = IntentSpike(pos, current_y=pos.y)
        self.spikes.append(spike)
        return spike

    def remove(self, obj):
        """Drop a platform or spike; its pending scheduled events are cancelled."""
        self.scheduler.cancel_owner(obj)
        if obj.kind is ReactionObjectKind.SPIKE:
            if obj in self.spikes:
                self.spikes.remove(obj)
        elif obj in self.platforms:
            self.platforms.remove(obj)

    def clear(self):
        for obj in [*self.platforms, *self.spikes]:
            self.remove(obj)
        self.active_distortions = []

    @property
    def objects(self) -> list:
        return [*self.platforms, *self.spikes]

    # ── Per-tick ──────────────────────────────────────────

    def update(self, player_position, player_velocity, enemies: Iterable,
               delta: float, effects=None, distortions: Iterable = ()):
        """Re-evaluate due objects, animate heights, apply hazard damage."""
        if self._owns_scheduler:
            self.scheduler.run_due()
        player_pos = to_vector3(player_position)
        if player_pos is None or self.tracker is None:
            logger.warning("World reactions skipped: no player position or tracker")
            return
        player_vel = to_vector3(player_velocity) or Vector3()
        enemies = [e for e in enemies if e.alive and to_vector3(e.position) is not None]
        self.active_distortions = list(distortions)

        now = self._clock()
        scores = self.tracker.get_intent_scores()
        stats = self.tracker.get_movement_stats()
        hazard_speed = effects.hazard_response_speed if effects is not None else 1.0

        for platform in self.platforms:
            self._update_platform(platform, player_pos, enemies, scores, stats, now, delta)
        for spike in self.spikes:
            self._update_spike(spike, player_pos, player_vel, enemies, scores,
                               now, delta, hazard_speed)

    def consume_player_damage(self) -> float:
        """Total spike damage flagged against the player since the last call."""
        total = 0.0
        for spike in self.spikes:
            total += spike.pending_player_damage
            spike.pending_player_damage = 0.0
        return total

    # ── Platforms ─────────────────────────────────────────

    def _update_platform(self, platform: JudgmentalPlatform, player_pos: Vector3,
                         enemies: list, scores, stats, now: float, delta: float):
        cfg = self.platform_cfg
        if now - platform.last_evaluation_time > cfg.eval_interval:
            platform.last_evaluation_time = now
            dist = player_pos.distance_to(platform.position)
            camping = stats.moving_ratio < cfg.camping_ratio and dist < cfg.camping_range
            mobile = stats.moving_ratio > cfg.mobile_ratio

            if camping and scores.evasion > cfg.camping_evasion:
                platform.intention = PlatformIntention.LIFT_ENEMIES
                platform.target_y = platform.base_y + cfg.lift_height
                if enemies:
                    step = flat_direction(platform.position, player_pos) * (cfg.lift_speed * delta)
                    platform.position += step
            elif mobile and scores.aggression > cfg.mobile_aggression:
                platform.intention = PlatformIntention.CREATE_ESCAPE
                platform.target_y = platform.base_y + cfg.escape_height
                if enemies:
                    avg = centroid(e.position for e in enemies)
                    away = flat_direction(avg, platform.position)
                    platform.position += away * (cfg.escape_speed * delta)
            else:
                platform.intention = PlatformIntention.NEUTRAL
                platform.target_y = platform.base_y

        diff = platform.target_y - platform.current_y
        if abs(diff) > cfg.height_epsilon:
            platform.current_y += diff * delta * cfg.height_rate
            platform.position.y = platform.current_y

    # ── Spikes ────────────────────────────────────────────

    def _update_spike(self, spike: IntentSpike, player_pos: Vector3, player_vel: Vector3,
                      enemies: list, scores, now: float, delta: float,
                      hazard_speed: float):
        cfg = self.spike_cfg
        interval = cfg.eval_interval / max(hazard_speed, 1e-6)
        if now - spike.last_evaluation_time > interval:
            spike.last_evaluation_time = now
            if self._should_extend(spike, player_pos, player_vel, enemies, scores):
                self._extend(spike)

        # Animate toward the state's height
        target = cfg.extended_y if spike.state.rising else cfg.retracted_y
        diff = target - spike.current_y
        if abs(diff) > cfg.height_epsilon:
            spike.current_y += diff * delta * cfg.move_rate
            spike.position.y = spike.current_y
        if abs(target - spike.current_y) < cfg.arrive_epsilon:
            if spike.state is SpikeState.EXTENDING:
                spike.state = SpikeState.EXTENDED
                self.scheduler.schedule(cfg.retract_delay, lambda s=spike: self._retract(s),
                                        name="spike_retract", owner=spike)
                logger.debug("Spike at (%.1f, %.1f) extended", spike.position.x, spike.position.z)
            elif spike.state is SpikeState.RETRACTING:
                spike.state = SpikeState.RETRACTED

        if spike.extended and now - spike.last_damage_time > cfg.damage_interval:
            self._apply_hazard(spike, player_pos, enemies, now)

    def _should_extend(self, spike: IntentSpike, player_pos: Vector3, player_vel: Vector3,
                       enemies: list, scores) -> bool:
        cfg = self.spike_cfg
        if any(d.contains(spike.position) for d in self.active_distortions):
            return True
        if scores.evasion > cfg.flee_evasion and scores.panic > cfg.flee_panic:
            if player_pos.distance_to(spike.position) < cfg.flee_range:
                heading = safe_normalize(Vector3(player_vel))
                to_spike = safe_normalize(spike.position - player_pos)
                if heading.dot(to_spike) > cfg.heading_dot:
                    return True
        if scores.aggression > cfg.aggression and enemies:
            _, dist = nearest(spike.position, (e.position for e in enemies))
            if dist < cfg.enemy_range:
                return True
        return False

    def _extend(self, spike: IntentSpike):
        if spike.state in (SpikeState.RETRACTED, SpikeState.RETRACTING):
            spike.state = SpikeState.EXTENDING

    def _retract(self, spike: IntentSpike):
        if spike.state is SpikeState.EXTENDED:
            spike.state = SpikeState.RETRACTING

    def _apply_hazard(self, spike: IntentSpike, player_pos: Vector3,
                      enemies: list, now: float):
        cfg = self.spike_cfg
        if player_pos.distance_to(spike.position) < cfg.damage_radius:
            spike.last_damage_time = now
            spike.pending_player_damage += cfg.damage
            spike.hits += 1
        for enemy in enemies:
            if enemy.position.distance_to(spike.position) < cfg.damage_radius:
                spike.last_damage_time = now
                enemy.pending_hazard_damage += cfg.damage
                spike.hits += 1
