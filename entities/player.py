"""player.py - Player kinematic snapshot supplied by the physics layer each tick."""

from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector3


@dataclass
class PlayerState:
    """Per-tick player input to the engine.

    ``last_action`` is a discrete label ("attack", "defend", "dash",
    "pickup", ...) for the action performed this tick, if any.
    ``health`` is only read by reporting; the engine never applies damage
    itself, it flags pending damage for the collaborator.
    """

    position: Vector3 = field(default_factory=Vector3)
    velocity: Vector3 = field(default_factory=Vector3)
    last_action: str | None = None
    health: float = 100.0

    @property
    def alive(self) -> bool:
        return self.health > 0
