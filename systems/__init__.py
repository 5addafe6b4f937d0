"""systems package – Scheduler, power-ups, world reactions, and the game session."""

from .scheduler import EventScheduler, ScheduledEvent
from .powerup_system import PowerUpSystem, ActiveEffects, POWERUP_DEFINITIONS
from .world_reactions import WorldReactions, ReactionObjectKind, PlatformConfig, SpikeConfig
from .session import GameSession, TickReport, SessionSummary
