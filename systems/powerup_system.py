"""
powerup_system.py – Power-ups with consequences.

Every power-up is two timed phases:
  1. ACTIVE  – an immediate benefit (enemy speed ×0.6, damage ×1.5, ...)
  2. COST    – after expiry, an opposing "psychological cost" for a fixed
               window (enemy prediction +0.25, hazards respond faster, ...)

An activation is only dropped once its cost window has elapsed; the
cost can never be skipped by removing the power-up early.

Phases are derived from the clock on every query, so the benefit → cost
hand-over happens exactly at the expiry instant, whichever tick reads it.

Architecture:
- PowerUpDefinition (frozen, one per type, built from settings)
- PowerUpActivation (one per pickup)
- ActiveEffects     (aggregated multipliers / bonuses)
- PowerUpSystem     (per session: activations, history, pickups)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, fields
from enum import Enum
from typing import Callable

from pygame.math import Vector3

from settings import (
    POWERUP_TIME_SLOW, POWERUP_DAMAGE_BOOST, POWERUP_SPEED_SURGE,
    POWERUP_NOTIFY_DELAY, POWERUP_PATTERN_WINDOW, POWERUP_MAX_RESISTANCE,
    PICKUP_RADIUS, PICKUP_RESPAWN_DELAY,
)
from systems.scheduler import EventScheduler
from utils.vectors import to_vector3

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Definitions
# ══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PowerUpDefinition:
    """Static description of one power-up type."""

    key: str
    name: str
    duration: float
    benefit: dict
    cost: dict
    cost_duration: float
    ui_text: str = ""

    @classmethod
    def from_settings(cls, key: str, params: dict) -> PowerUpDefinition:
        return cls(
            key=key,
            name=params["name"],
            duration=params["duration"],
            benefit=dict(params.get("benefit", {})),
            cost=dict(params.get("cost", {})),
            cost_duration=params["cost_duration"],
            ui_text=params.get("ui_text", ""),
        )


POWERUP_DEFINITIONS: dict[str, PowerUpDefinition] = {
    "TIME_SLOW":    PowerUpDefinition.from_settings("TIME_SLOW", POWERUP_TIME_SLOW),
    "DAMAGE_BOOST": PowerUpDefinition.from_settings("DAMAGE_BOOST", POWERUP_DAMAGE_BOOST),
    "SPEED_SURGE":  PowerUpDefinition.from_settings("SPEED_SURGE", POWERUP_SPEED_SURGE),
}


# ══════════════════════════════════════════════════════════
#  Aggregated effects
# ══════════════════════════════════════════════════════════

# Effects that combine by multiplication; everything else sums.
MULTIPLICATIVE_EFFECTS = frozenset({
    "enemy_speed_multiplier", "damage_multiplier",
    "speed_multiplier", "hazard_response_speed",
})


@dataclass
class ActiveEffects:
    """Combined effect of every activation currently in a phase."""

    # Benefits
    enemy_speed_multiplier: float = 1.0
    damage_multiplier: float = 1.0
    speed_multiplier: float = 1.0
    # Costs
    enemy_prediction_bonus: float = 0.0
    reaction_window_reduction: float = 0.0
    enemy_resistance_to_pattern: float = 0.0
    world_awareness_increase: float = 0.0
    hazard_response_speed: float = 1.0

    def apply(self, effect: dict):
        """Fold one benefit/cost dict into the totals."""
        for key, value in effect.items():
            if not hasattr(self, key):
                logger.warning("Unknown power-up effect %r ignored", key)
                continue
            if key in MULTIPLICATIVE_EFFECTS:
                setattr(self, key, getattr(self, key) * value)
            else:
                setattr(self, key, getattr(self, key) + value)

    def as_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# ══════════════════════════════════════════════════════════
#  Activation record
# ══════════════════════════════════════════════════════════

class PowerUpPhase(Enum):
    ACTIVE = "active"
    COST = "cost"
    DONE = "done"


@dataclass
class PowerUpActivation:
    """One collected power-up moving through benefit → cost → done."""

    definition: PowerUpDefinition
    activation_time: float
    expiry_time: float
    cost_start_time: float | None = None
    cost_end_time: float | None = None
    active: bool = True

    @property
    def type(self) -> str:
        return self.definition.key

    def phase_at(self, now: float) -> PowerUpPhase:
        if now < self.expiry_time:
            return PowerUpPhase.ACTIVE
        if now < self.expiry_time + self.definition.cost_duration:
            return PowerUpPhase.COST
        return PowerUpPhase.DONE

    def advance(self, now: float) -> PowerUpPhase:
        """Sync the stored flags with the phase at *now*."""
        phase = self.phase_at(now)
        if phase is not PowerUpPhase.ACTIVE and self.active:
            self.active = False
            self.cost_start_time = self.expiry_time
            self.cost_end_time = self.expiry_time + self.definition.cost_duration
            logger.info("%s expired. Consequences begin (%.0fs).",
                        self.type, self.definition.cost_duration)
        return phase


@dataclass(eq=False)
class PowerUpPickup:
    """A collectible lying in the world."""

    power_up_type: str
    position: Vector3
    available: bool = True
    spawn_time: float = 0.0
    collected_count: int = 0


# ══════════════════════════════════════════════════════════
#  Power-Up System (per session)
# ══════════════════════════════════════════════════════════

class PowerUpSystem:
    """Manages power-up activations, their costs, and world pickups.

    Usage:
        pus = PowerUpSystem(clock=clock.now, scheduler=sched)
        pus.activate("TIME_SLOW")
        fx = pus.get_active_effects()
        enemy_speed = base * fx.enemy_speed_multiplier
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 scheduler: EventScheduler | None = None,
                 definitions: dict[str, PowerUpDefinition] | None = None):
        self._clock = clock
        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler if scheduler is not None else EventScheduler(clock)
        self.definitions = definitions or POWERUP_DEFINITIONS

        self.active_power_ups: list[PowerUpActivation] = []
        self.history: list[PowerUpActivation] = []
        self.pickups: list[PowerUpPickup] = []

    # ── Activation ────────────────────────────────────────

    def activate(self, power_up_type: str,
                 on_notification: Callable[[str, str], None] | None = None
                 ) -> PowerUpActivation:
        """Start a power-up now.  Raises KeyError for unknown types."""
        definition = self.definitions[power_up_type]
        now = self._clock()
        activation = PowerUpActivation(
            definition=definition,
            activation_time=now,
            expiry_time=now + definition.duration,
        )
        self.active_power_ups.append(activation)
        self.history.append(activation)
        logger.info("%s activated for %.0fs", definition.name, definition.duration)

        if on_notification is not None:
            on_notification(f"{definition.name} Activated!", "powerup")
            if definition.ui_text:
                self.scheduler.schedule(
                    POWERUP_NOTIFY_DELAY,
                    lambda: on_notification(definition.ui_text, "warning"),
                    name=f"{power_up_type}_warning",
                )
        return activation

    def update(self, dt: float = 0.0):
        """Advance phases and drop activations whose cost window is over."""
        if self._owns_scheduler:
            self.scheduler.run_due()
        self._refresh(self._clock())

    # ── Aggregated queries ────────────────────────────────

    def get_active_effects(self) -> ActiveEffects:
        """Sum/multiply benefits of active and costs of cooling-down activations."""
        now = self._clock()
        self._refresh(now)
        effects = ActiveEffects()
        for p in self.active_power_ups:
            phase = p.phase_at(now)
            if phase is PowerUpPhase.ACTIVE:
                effects.apply(p.definition.benefit)
            elif phase is PowerUpPhase.COST:
                effects.apply(p.definition.cost)
        return effects

    def is_power_up_active(self, power_up_type: str) -> bool:
        now = self._clock()
        return any(p.type == power_up_type and p.phase_at(now) is PowerUpPhase.ACTIVE
                   for p in self.active_power_ups)

    def is_in_cost_period(self, power_up_type: str) -> bool:
        now = self._clock()
        return any(p.type == power_up_type and p.phase_at(now) is PowerUpPhase.COST
                   for p in self.active_power_ups)

    def get_remaining_time(self, power_up_type: str) -> float:
        now = self._clock()
        for p in self.active_power_ups:
            if p.type == power_up_type and p.phase_at(now) is PowerUpPhase.ACTIVE:
                return max(0.0, p.expiry_time - now)
        return 0.0

    # ── Convenience modifiers ─────────────────────────────

    def modify_enemy_speed(self, base_speed: float) -> float:
        return base_speed * self.get_active_effects().enemy_speed_multiplier

    def modify_damage(self, base_damage: float) -> float:
        return base_damage * self.get_active_effects().damage_multiplier

    def modify_player_speed(self, base_speed: float) -> float:
        return base_speed * self.get_active_effects().speed_multiplier

    def get_enemy_prediction_bonus(self) -> float:
        return self.get_active_effects().enemy_prediction_bonus

    def get_hazard_response_speed(self) -> float:
        return self.get_active_effects().hazard_response_speed

    def should_resist_attack(self, attack_pattern: str) -> float:
        """Resistance (0..0.8) enemies get against a repeated pattern."""
        resistance = self.get_active_effects().enemy_resistance_to_pattern
        if resistance <= 0:
            return 0.0
        now = self._clock()
        recent = [p for p in self.history
                  if p.type == attack_pattern
                  and now - p.activation_time < POWERUP_PATTERN_WINDOW]
        if len(recent) > 1:
            return min(resistance, POWERUP_MAX_RESISTANCE)
        return 0.0

    def get_ui_data(self) -> list[dict]:
        """Name / remaining / total / phase for each HUD power-up row."""
        now = self._clock()
        rows = []
        for p in self.active_power_ups:
            d = p.definition
            phase = p.phase_at(now)
            if phase is PowerUpPhase.ACTIVE:
                rows.append({"name": d.name, "remaining": p.expiry_time - now,
                             "total": d.duration, "phase": phase.value})
            elif phase is PowerUpPhase.COST:
                end = p.expiry_time + d.cost_duration
                rows.append({"name": f"{d.name} (Cost)", "remaining": end - now,
                             "total": d.cost_duration, "phase": phase.value})
        return rows

    # ── Pickups ───────────────────────────────────────────

    def spawn_pickup(self, power_up_type: str, position) -> PowerUpPickup | None:
        if power_up_type not in self.definitions:
            logger.warning("Unknown power-up pickup type %r", power_up_type)
            return None
        pos = to_vector3(position)
        if pos is None:
            logger.warning("Pickup %s has bad position %r", power_up_type, position)
            return None
        pickup = PowerUpPickup(power_up_type, pos, spawn_time=self._clock())
        self.pickups.append(pickup)
        return pickup

    def collect_nearby(self, position, radius: float = PICKUP_RADIUS,
                       on_notification: Callable[[str, str], None] | None = None
                       ) -> list[PowerUpActivation]:
        """Collect every available pickup within *radius* of *position*."""
        pos = to_vector3(position)
        if pos is None:
            return []
        collected = []
        for pickup in self.pickups:
            if pickup.available and pos.distance_to(pickup.position) < radius:
                pickup.available = False
                pickup.collected_count += 1
                collected.append(self.activate(pickup.power_up_type, on_notification))
                self.scheduler.schedule(
                    PICKUP_RESPAWN_DELAY,
                    lambda p=pickup: self._respawn(p),
                    name="pickup_respawn",
                    owner=pickup,
                )
        return collected

    def remove_pickup(self, pickup: PowerUpPickup):
        self.scheduler.cancel_owner(pickup)
        if pickup in self.pickups:
            self.pickups.remove(pickup)

    # ── Lifecycle ─────────────────────────────────────────

    def clear(self):
        for pickup in list(self.pickups):
            self.remove_pickup(pickup)
        self.active_power_ups.clear()
        self.history.clear()

    # ── Internal helpers ──────────────────────────────────

    def _refresh(self, now: float):
        kept = []
        for p in self.active_power_ups:
            if p.advance(now) is PowerUpPhase.DONE:
                logger.info("%s cost window ended", p.type)
                continue
            kept.append(p)
        self.active_power_ups = kept

    def _respawn(self, pickup: PowerUpPickup):
        pickup.available = True
        pickup.spawn_time = self._clock()
        logger.debug("Pickup %s respawned", pickup.power_up_type)
