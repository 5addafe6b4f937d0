"""
enemy_behavior.py – Enemy movement, attack state machine and kind modifiers.

Two orthogonal state machines per enemy:

  Behavior  PATROL ─► CHASE ─► ENGAGE   (picked from distance each tick)
  Attack    IDLE ─► WINDUP ─► ATTACKING ─► COOLDOWN ─► IDLE

WINDUP is the telegraph; leaving it raises a threat on the session's
IntentTracker so the player's reaction latency can be measured.  At most
one attack-state transition happens per enemy per tick.

Kind modifiers run after the attack machine:
  - Observer watches from 8–15 units and reports an observation strength
  - Punisher samples the dominant intent once more than 0.5 s has
    passed since its last sample, and speeds up when the player keeps
    doing the same thing
  - Distorter does no direct damage; while attacking it distorts the
    world around itself
"""

from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Callable

from pygame.math import Vector3

from ai.intent_tracker import IntentTracker
from entities.enemy import (
    Enemy, EnemyKind, EnemyDefinition, ENEMY_DEFINITIONS,
    BehaviorState, AttackState,
    ObserverState, PunisherState, DistorterState,
)
from settings import (
    ENEMY_BASE_ATTACK_COOLDOWN, ENEMY_RECOVERY_TIME,
    ENEMY_PATROL_SPEED_MULT, ENEMY_ENGAGE_SPEED_MULT, ENEMY_ENGAGE_HOLD_FRAC,
    ENEMY_PATROL_MIN_DIST, ENEMY_PATROL_MAX_DIST, ENEMY_PATROL_ARRIVE_DIST,
    ENEMY_CHASE_PREDICTION, ENEMY_PREDICTION_BONUS_SCALE,
    OBSERVER_BAND, OBSERVER_STRENGTH,
    PUNISHER_SAMPLE_INTERVAL, PUNISHER_MIN_SAMPLES, PUNISHER_MAX_DISTINCT,
    PUNISHER_PATTERN_COOLDOWN, PUNISHER_PATTERN_SPEED_MULT,
    DEBUG_LOG_INTERVAL,
)
from utils.vectors import to_vector3, flat_direction

logger = logging.getLogger(__name__)


@dataclass
class Distortion:
    """An active Distorter field, read by world reactions and renderers."""

    source: Enemy
    center: Vector3
    radius: float

    def contains(self, point: Vector3) -> bool:
        return self.center.distance_to(point) <= self.radius


class EnemyBehaviorSystem:
    """Owns the enemies of one session and steps them every tick.

    Usage:
        enemies = EnemyBehaviorSystem(tracker, clock=clock.now, rng=random.Random(7))
        enemies.spawn(EnemyKind.PUNISHER, (10, 0, 4))
        enemies.update_all(player.position, player.velocity, dt, effects)
    """

    def __init__(self, tracker: IntentTracker | None = None,
                 clock: Callable[[], float] = time.monotonic,
                 rng=random,
                 definitions: dict[EnemyKind, EnemyDefinition] | None = None):
        self.tracker = tracker
        self._clock = clock
        self.rng = rng
        self.definitions = definitions or ENEMY_DEFINITIONS
        self.enemies: list[Enemy] = []
        self._dbg_next: float | None = None

    # ── Roster ────────────────────────────────────────────

    def spawn(self, kind: EnemyKind, position) -> Enemy | None:
        pos = to_vector3(position)
        if pos is None:
            logger.warning("Cannot spawn %s at malformed position %r", kind.value, position)
            return None
        enemy = Enemy(self.definitions[kind], pos)
        enemy.patrol_target = self._patrol_target(enemy.position)
        self.enemies.append(enemy)
        logger.info("Spawned %s at (%.1f, %.1f)", kind.value, pos.x, pos.z)
        return enemy

    def remove_dead(self) -> list[Enemy]:
        dead = [e for e in self.enemies if not e.alive]
        if dead:
            self.enemies = [e for e in self.enemies if e.alive]
        return dead

    def clear(self):
        self.enemies.clear()

    def positions(self) -> list[Vector3]:
        return [Vector3(e.position) for e in self.enemies if e.alive]

    def total_observation_strength(self) -> float:
        return sum(e.kind_state.observation_strength for e in self.enemies
                   if e.alive and isinstance(e.kind_state, ObserverState))

    def active_distortions(self) -> list[Distortion]:
        out = []
        for e in self.enemies:
            ks = e.kind_state
            if e.alive and isinstance(ks, DistorterState) and ks.cause_distortion:
                out.append(Distortion(e, Vector3(ks.distortion_center), ks.distortion_radius))
        return out

    # ── Per-tick ──────────────────────────────────────────

    def update_all(self, player_position, player_velocity, delta: float,
                   effects=None) -> list[tuple[Enemy, AttackState]]:
        """Step every living enemy.  Returns (enemy, new_state) per attack transition."""
        transitions = []
        for enemy in self.enemies:
            if not enemy.alive:
                continue
            new_state = self.update(enemy, player_position, player_velocity, delta, effects)
            if new_state is not None:
                transitions.append((enemy, new_state))
        self._debug_log()
        return transitions

    def update(self, enemy: Enemy, player_position, player_velocity, delta: float,
               effects=None) -> AttackState | None:
        """Step one enemy.  No-op for this tick on malformed positions."""
        player_pos = to_vector3(player_position)
        if player_pos is None or to_vector3(enemy.position) is None:
            logger.warning("Skipping %s update: malformed position", enemy.kind.value)
            return None
        player_vel = to_vector3(player_velocity) or Vector3()

        now = self._clock()
        dist = player_pos.distance_to(enemy.position)
        d = enemy.definition

        # ── Behavior state ────────────────────────────────
        if dist < d.detection_range:
            if dist < d.attack_range and enemy.attack_state is AttackState.IDLE:
                enemy.state = BehaviorState.ENGAGE
            else:
                enemy.state = BehaviorState.CHASE
        else:
            enemy.state = BehaviorState.PATROL

        self._move(enemy, player_pos, player_vel, delta, effects)

        # Distance after movement feeds the attack machine
        dist = player_pos.distance_to(enemy.position)
        transition = self._step_attack(enemy, dist, now)

        ks = enemy.kind_state
        if isinstance(ks, ObserverState):
            self._observe(ks, dist)
        elif isinstance(ks, PunisherState):
            self._punish(enemy, ks, now)
        elif isinstance(ks, DistorterState):
            self._distort(enemy, ks)
        return transition

    # ── Movement ──────────────────────────────────────────

    def chase_prediction(self, effects=None) -> float:
        """Seconds of player velocity a chasing enemy leads by."""
        bonus = effects.enemy_prediction_bonus if effects is not None else 0.0
        return ENEMY_CHASE_PREDICTION + ENEMY_PREDICTION_BONUS_SCALE * bonus

    def _move(self, enemy: Enemy, player_pos: Vector3, player_vel: Vector3,
              delta: float, effects):
        speed = enemy.speed
        if effects is not None:
            speed *= effects.enemy_speed_multiplier

        direction = Vector3()
        if enemy.state is BehaviorState.PATROL:
            to_target = enemy.patrol_target - enemy.position
            to_target.y = 0.0
            if to_target.length() < ENEMY_PATROL_ARRIVE_DIST:
                enemy.patrol_target = self._patrol_target(enemy.position)
            direction = flat_direction(enemy.position, enemy.patrol_target)
            enemy.position += direction * (speed * ENEMY_PATROL_SPEED_MULT * delta)

        elif enemy.state is BehaviorState.CHASE:
            predicted = player_pos + player_vel * self.chase_prediction(effects)
            direction = flat_direction(enemy.position, predicted)
            enemy.position += direction * (speed * delta)

        else:  # ENGAGE: close to attack range then hold
            offset = player_pos - enemy.position
            offset.y = 0.0
            direction = flat_direction(enemy.position, player_pos)
            if offset.length() > enemy.definition.attack_range * ENEMY_ENGAGE_HOLD_FRAC:
                enemy.position += direction * (speed * ENEMY_ENGAGE_SPEED_MULT * delta)

        if direction.length_squared() > 0:
            enemy.heading = math.atan2(direction.x, direction.z)
        enemy.position.y = enemy.definition.size

    def _patrol_target(self, origin: Vector3) -> Vector3:
        angle = self.rng.uniform(0.0, 2.0 * math.pi)
        dist = self.rng.uniform(ENEMY_PATROL_MIN_DIST, ENEMY_PATROL_MAX_DIST)
        return Vector3(origin.x + math.cos(angle) * dist, origin.y,
                       origin.z + math.sin(angle) * dist)

    # ── Attack state machine ──────────────────────────────

    def _step_attack(self, enemy: Enemy, dist: float, now: float) -> AttackState | None:
        d = enemy.definition
        state = enemy.attack_state

        if state is AttackState.IDLE:
            if (enemy.state is BehaviorState.ENGAGE
                    and dist < d.attack_range
                    and now - enemy.last_attack_time > enemy.attack_cooldown
                    and self.rng.random() < d.attack_frequency):
                enemy.attack_state = AttackState.WINDUP
                enemy.attack_windup_start_time = now

        elif state is AttackState.WINDUP:
            if now - enemy.attack_windup_start_time >= d.attack_windup:
                enemy.attack_state = AttackState.ATTACKING
                enemy.attack_start_time = now
                enemy.hit_landed = False
                if self.tracker is not None:
                    self.tracker.register_threat(enemy.position, enemy.kind.name)

        elif state is AttackState.ATTACKING:
            if now - enemy.attack_start_time < d.attack_duration:
                # One hit per attack; the damage collaborator consumes it
                if dist < d.attack_range and d.attack_damage > 0 and not enemy.hit_landed:
                    enemy.pending_player_damage = float(d.attack_damage)
                    enemy.hit_landed = True
            else:
                enemy.attack_state = AttackState.COOLDOWN
                enemy.last_attack_time = now

        elif state is AttackState.COOLDOWN:
            if now - enemy.last_attack_time > ENEMY_RECOVERY_TIME:
                enemy.attack_state = AttackState.IDLE

        if enemy.attack_state is not state:
            logger.debug("%s attack %s -> %s", enemy.kind.value, state.value,
                         enemy.attack_state.value)
            return enemy.attack_state
        return None

    # ── Kind modifiers ────────────────────────────────────

    @staticmethod
    def _observe(ks: ObserverState, dist: float):
        lo, hi = OBSERVER_BAND
        if lo < dist < hi:
            ks.is_observing = True
            ks.observation_strength = OBSERVER_STRENGTH
        else:
            ks.is_observing = False
            ks.observation_strength = 0.0

    def _punish(self, enemy: Enemy, ks: PunisherState, now: float):
        if self.tracker is None or now - ks.last_observation_time <= PUNISHER_SAMPLE_INTERVAL:
            return
        ks.last_observation_time = now
        self.observe_intent(enemy, self.tracker.get_dominant_intent())

    @staticmethod
    def observe_intent(enemy: Enemy, intent: str) -> bool:
        """Push one dominant-intent sample into a Punisher's memory.

        Returns the resulting pattern flag.
        """
        ks = enemy.kind_state
        if not isinstance(ks, PunisherState):
            return False
        ks.observed_intents.append(intent)
        detected = (len(ks.observed_intents) >= PUNISHER_MIN_SAMPLES
                    and len(set(ks.observed_intents)) <= PUNISHER_MAX_DISTINCT)
        if detected != ks.pattern_detected:
            logger.info("Punisher pattern %s (%s)",
                        "detected" if detected else "cleared",
                        ", ".join(ks.observed_intents))
        ks.pattern_detected = detected
        if detected:
            enemy.attack_cooldown = PUNISHER_PATTERN_COOLDOWN
            enemy.speed = enemy.base_speed * PUNISHER_PATTERN_SPEED_MULT
        else:
            enemy.attack_cooldown = ENEMY_BASE_ATTACK_COOLDOWN
            enemy.speed = enemy.base_speed
        return detected

    @staticmethod
    def _distort(enemy: Enemy, ks: DistorterState):
        if enemy.attack_state is AttackState.ATTACKING:
            ks.cause_distortion = True
            ks.distortion_center = Vector3(enemy.position)
            ks.distortion_radius = enemy.definition.attack_range
        else:
            ks.cause_distortion = False

    # ── Debug ─────────────────────────────────────────────

    def _debug_log(self):
        now = self._clock()
        if self._dbg_next is not None and now < self._dbg_next:
            return
        self._dbg_next = now + DEBUG_LOG_INTERVAL
        if self.enemies:
            logger.debug("enemies: %s", ", ".join(repr(e) for e in self.enemies))
