"""
enemy.py – Enemy agents and their kind-specific state.

Three closed kinds, each carrying its own state struct:
  - OBSERVER  → ObserverState  (observing flag + strength)
  - PUNISHER  → PunisherState  (dominant-intent memory, pattern flag)
  - DISTORTER → DistorterState (distortion flag, centre, radius)

Enemies hold data only; EnemyBehaviorSystem (ai/enemy_behavior.py)
drives every state transition and movement.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from pygame.math import Vector3

from settings import (
    ENEMY_OBSERVER, ENEMY_PUNISHER, ENEMY_DISTORTER,
    ENEMY_BASE_ATTACK_COOLDOWN, PUNISHER_PATTERN_MEMORY,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Enums
# ══════════════════════════════════════════════════════════

class EnemyKind(Enum):
    OBSERVER = "Observer"
    PUNISHER = "Punisher"
    DISTORTER = "Distorter"


class BehaviorState(Enum):
    PATROL = "patrol"
    CHASE = "chase"
    ENGAGE = "engage"


class AttackState(Enum):
    IDLE = "idle"
    WINDUP = "windup"
    ATTACKING = "attacking"
    COOLDOWN = "cooldown"


# ══════════════════════════════════════════════════════════
#  Definitions
# ══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EnemyDefinition:
    """Static stats for one enemy kind."""

    kind: EnemyKind
    health: int
    size: float
    speed: float
    attack_frequency: float     # per-tick probability while engaged
    attack_damage: int
    attack_windup: float        # telegraph duration (s)
    attack_duration: float
    attack_range: float
    detection_range: float
    pattern_memory: int = 0
    description: str = ""

    @classmethod
    def from_settings(cls, kind: EnemyKind, params: dict, **extra) -> EnemyDefinition:
        return cls(
            kind=kind,
            health=params["health"],
            size=params["size"],
            speed=params["speed"],
            attack_frequency=params["attack_frequency"],
            attack_damage=params["attack_damage"],
            attack_windup=params["attack_windup"],
            attack_duration=params["attack_duration"],
            attack_range=params["attack_range"],
            detection_range=params["detection_range"],
            description=params.get("description", ""),
            **extra,
        )


ENEMY_DEFINITIONS: dict[EnemyKind, EnemyDefinition] = {
    EnemyKind.OBSERVER: EnemyDefinition.from_settings(
        EnemyKind.OBSERVER, ENEMY_OBSERVER,
    ),
    EnemyKind.PUNISHER: EnemyDefinition.from_settings(
        EnemyKind.PUNISHER, ENEMY_PUNISHER,
        pattern_memory=PUNISHER_PATTERN_MEMORY,
    ),
    EnemyKind.DISTORTER: EnemyDefinition.from_settings(
        EnemyKind.DISTORTER, ENEMY_DISTORTER,
    ),
}


# ══════════════════════════════════════════════════════════
#  Kind-specific state
# ══════════════════════════════════════════════════════════

@dataclass
class ObserverState:
    is_observing: bool = False
    observation_strength: float = 0.0


@dataclass
class PunisherState:
    observed_intents: deque = field(default_factory=lambda: deque(maxlen=PUNISHER_PATTERN_MEMORY))
    last_observation_time: float = -math.inf
    pattern_detected: bool = False


@dataclass
class DistorterState:
    cause_distortion: bool = False
    distortion_center: Vector3 | None = None
    distortion_radius: float = 0.0


KindState = ObserverState | PunisherState | DistorterState


def _make_kind_state(definition: EnemyDefinition) -> KindState:
    if definition.kind is EnemyKind.OBSERVER:
        return ObserverState()
    if definition.kind is EnemyKind.PUNISHER:
        return PunisherState(observed_intents=deque(maxlen=max(1, definition.pattern_memory)))
    return DistorterState()


# ══════════════════════════════════════════════════════════
#  Enemy agent
# ══════════════════════════════════════════════════════════

class Enemy:
    """One enemy agent: vitals, position, FSM state, kind memory."""

    def __init__(self, definition: EnemyDefinition, position: Vector3,
                 patrol_target: Vector3 | None = None):
        self.definition = definition
        self.kind = definition.kind
        self.max_health: int = definition.health
        self.health: float = float(definition.health)

        self.position = Vector3(position)
        self.position.y = definition.size       # keep on ground
        self.heading: float = 0.0               # yaw (radians) for renderers
        self.patrol_target: Vector3 = Vector3(self.position if patrol_target is None else patrol_target)

        # ── Speed (Punisher scales off base, never compounding) ──
        self.base_speed: float = definition.speed
        self.speed: float = definition.speed

        # ── FSM ───────────────────────────────────────────
        self.state = BehaviorState.PATROL
        self.attack_state = AttackState.IDLE
        self.attack_windup_start_time: float = 0.0
        self.attack_start_time: float = 0.0
        self.last_attack_time: float = -math.inf
        self.attack_cooldown: float = ENEMY_BASE_ATTACK_COOLDOWN
        self.hit_landed: bool = False

        # ── Pending damage for the damage collaborator ────
        self.pending_player_damage: float = 0.0
        self.pending_hazard_damage: float = 0.0

        self.kind_state: KindState = _make_kind_state(definition)

    # ── Vitals ────────────────────────────────────────────

    @property
    def alive(self) -> bool:
        return self.health > 0

    def apply_damage(self, amount: float) -> bool:
        """Lower health.  Returns True if this hit killed the enemy."""
        if not self.alive or amount <= 0:
            return False
        self.health = max(0.0, self.health - amount)
        if not self.alive:
            logger.info("%s died", self.kind.value)
            return True
        return False

    def consume_pending_damage(self) -> float:
        """Return and clear damage this enemy has flagged against the player."""
        dmg = self.pending_player_damage
        self.pending_player_damage = 0.0
        return dmg

    def consume_hazard_damage(self) -> float:
        """Return and clear hazard damage flagged against this enemy."""
        dmg = self.pending_hazard_damage
        self.pending_hazard_damage = 0.0
        return dmg

    # ── Kind accessors ────────────────────────────────────

    @property
    def is_observing(self) -> bool:
        return isinstance(self.kind_state, ObserverState) and self.kind_state.is_observing

    @property
    def pattern_detected(self) -> bool:
        return isinstance(self.kind_state, PunisherState) and self.kind_state.pattern_detected

    @property
    def causes_distortion(self) -> bool:
        return isinstance(self.kind_state, DistorterState) and self.kind_state.cause_distortion

    def __repr__(self) -> str:
        return (f"Enemy({self.kind.value}, hp={self.health:.0f}, "
                f"state={self.state.value}/{self.attack_state.value})")
