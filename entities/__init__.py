"""entities package – Player snapshot and enemy agents."""

from .player import PlayerState
from .enemy import Enemy, EnemyKind, EnemyDefinition, ENEMY_DEFINITIONS, BehaviorState, AttackState
