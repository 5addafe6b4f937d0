"""
session.py – One game session: every engine system stepped per tick.

GameSession owns the simulation clock, the shared event scheduler and
one instance of each subsystem.  A tick runs the data flow in order:

  1. advance the clock by the frame delta
  2. drain due scheduled events (notifications, respawns, retractions)
  3. collect pickups in reach (the tick's action becomes "pickup")
  4. sample the player and rescore intent; defend/dash count as reactions
  5. refresh power-up phases and aggregate their effects
  6. step enemies (threats are raised here)
  7. step platforms and spikes
  8. gather pending damage into a TickReport

The engine never applies damage to the player itself; it reports it.
Hazard damage to enemies is applied here since enemies are owned here.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field

from ai.behavior_sampler import BehaviorSample, SamplerConfig
from ai.enemy_behavior import EnemyBehaviorSystem, Distortion
from ai.intent_scorer import IntentScores, ScoringConfig
from ai.intent_tracker import IntentTracker, JudgmentData
from ai.judgment import generate_judgment, render_judgment_card
from ai.stats import SessionStats
from entities.enemy import Enemy, EnemyKind, AttackState
from entities.player import PlayerState
from settings import ACTION_PICKUP, REACTION_ACTIONS
from systems.powerup_system import PowerUpSystem, PowerUpActivation, ActiveEffects
from systems.scheduler import EventScheduler
from systems.world_reactions import WorldReactions, PlatformConfig, SpikeConfig
from utils.clock import SimulationClock
from utils.vectors import to_vector3

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """Everything one tick produced for the rendering/combat collaborators."""

    time: float
    scores: IntentScores
    effects: ActiveEffects
    sample: BehaviorSample | None = None
    player_damage: float = 0.0
    hazard_damage: list[tuple[Enemy, float]] = field(default_factory=list)
    attack_transitions: list[tuple[Enemy, AttackState]] = field(default_factory=list)
    collected: list[PowerUpActivation] = field(default_factory=list)
    distortions: list[Distortion] = field(default_factory=list)
    observation_strength: float = 0.0
    notifications: list[tuple[str, str]] = field(default_factory=list)
    killed: list[Enemy] = field(default_factory=list)

    @property
    def threats(self) -> list[Enemy]:
        """Enemies whose attack landed (telegraph finished) this tick."""
        return [e for e, s in self.attack_transitions if s is AttackState.ATTACKING]


@dataclass
class SessionSummary:
    judgment: str
    judgment_data: JudgmentData
    duration: float
    stats: dict
    card: str
    charts: list[str] = field(default_factory=list)


class GameSession:
    """One active game session.  Create one per run; nothing is global.

    Usage:
        session = GameSession(rng=random.Random(3))
        session.spawn_enemy(EnemyKind.OBSERVER, (12, 0, 0))
        report = session.tick(PlayerState(pos, vel, "dash"), delta=1 / 60)
        ...
        summary = session.end()
        print(summary.judgment)
    """

    def __init__(self, player_style: str = "live",
                 sampler_config: SamplerConfig | None = None,
                 scoring_config: ScoringConfig | None = None,
                 platform_config: PlatformConfig | None = None,
                 spike_config: SpikeConfig | None = None,
                 rng=random, start_time: float = 0.0):
        self.clock = SimulationClock(start_time)
        now = self.clock.now
        self.scheduler = EventScheduler(now)
        self.tracker = IntentTracker(sampler_config, scoring_config, clock=now)
        self.power_ups = PowerUpSystem(clock=now, scheduler=self.scheduler)
        self.enemies = EnemyBehaviorSystem(self.tracker, clock=now, rng=rng)
        self.world = WorldReactions(self.tracker, clock=now, scheduler=self.scheduler,
                                    platform_config=platform_config,
                                    spike_config=spike_config)
        self.stats = SessionStats(player_style, clock=now)

        self.notifications: list[tuple[float, str, str]] = []
        self.ticks: int = 0
        self.ended: bool = False

    # ── Setup pass-throughs ───────────────────────────────

    def spawn_enemy(self, kind: EnemyKind, position) -> Enemy | None:
        return self.enemies.spawn(kind, position)

    def add_platform(self, position):
        return self.world.add_platform(position)

    def add_spike(self, position):
        return self.world.add_spike(position)

    def spawn_pickup(self, power_up_type: str, position):
        return self.power_ups.spawn_pickup(power_up_type, position)

    # ── Player-driven events ──────────────────────────────

    def activate_power_up(self, power_up_type: str) -> PowerUpActivation:
        """Raises KeyError for unknown types."""
        activation = self.power_ups.activate(power_up_type, self._notify)
        self.stats.record_power_up(power_up_type)
        return activation

    def register_reaction(self, reaction_type: str):
        return self.tracker.register_reaction(reaction_type)

    def damage_enemy(self, enemy: Enemy, amount: float, pattern: str | None = None) -> float:
        """Apply player damage to *enemy* after power-up modifiers.  Returns damage dealt."""
        dealt = self.power_ups.modify_damage(amount)
        if pattern is not None:
            dealt *= 1.0 - self.power_ups.should_resist_attack(pattern)
        was_alive = enemy.alive
        killed = enemy.apply_damage(dealt)
        if was_alive:
            self.stats.record_enemy_damage(dealt, killed)
        return dealt if was_alive else 0.0

    # ── Per-tick ──────────────────────────────────────────

    def tick(self, player_state, enemy_positions=None, delta: float = 0.0) -> TickReport:
        """Run one simulation frame.  *enemy_positions* defaults to the owned enemies."""
        delta = max(0.0, delta)
        self.clock.advance(delta)
        self.ticks += 1
        n_notes = len(self.notifications)

        self.scheduler.run_due()

        position = getattr(player_state, "position", None)
        velocity = getattr(player_state, "velocity", None)
        action = getattr(player_state, "last_action", None)

        collected = self.power_ups.collect_nearby(position, on_notification=self._notify)
        for activation in collected:
            self.stats.record_power_up(activation.type)
        if collected:
            action = ACTION_PICKUP
            player_state = PlayerState(to_vector3(position), to_vector3(velocity), action)

        if enemy_positions is None:
            enemy_positions = self.enemies.positions()
        sample = self.tracker.record_frame(player_state, enemy_positions, delta)
        if action in REACTION_ACTIONS:
            self.tracker.register_reaction(action)

        self.power_ups.update(delta)
        effects = self.power_ups.get_active_effects()

        transitions = self.enemies.update_all(position, velocity, delta, effects)
        distortions = self.enemies.active_distortions()
        self.world.update(position, velocity, self.enemies.enemies, delta,
                          effects=effects, distortions=distortions)

        report = TickReport(
            time=self.clock.now(),
            scores=self.tracker.get_intent_scores(),
            effects=effects,
            sample=sample,
            attack_transitions=transitions,
            collected=collected,
            distortions=distortions,
            observation_strength=self.enemies.total_observation_strength(),
        )
        self._collect_damage(report)
        report.notifications = [(text, kind) for _, text, kind in self.notifications[n_notes:]]
        self.stats.tick(self.tracker.scores)
        return report

    def _collect_damage(self, report: TickReport):
        for enemy, state in report.attack_transitions:
            if state is AttackState.ATTACKING:
                self.stats.record_threat()

        for enemy in self.enemies.enemies:
            report.player_damage += enemy.consume_pending_damage()
            hazard = enemy.consume_hazard_damage()
            if hazard > 0:
                report.hazard_damage.append((enemy, hazard))
                self.stats.record_hazard_hit()
                killed = enemy.apply_damage(hazard)
                if killed:
                    self.stats.record_kill()

        spike_damage = self.world.consume_player_damage()
        if spike_damage > 0:
            self.stats.record_hazard_hit()
        report.player_damage += spike_damage
        if report.player_damage > 0:
            self.stats.record_player_damage(report.player_damage)

        report.killed = self.enemies.remove_dead()

    def _notify(self, text: str, kind: str):
        self.notifications.append((self.clock.now(), text, kind))
        logger.info("[%s] %s", kind, text)

    # ── Queries ───────────────────────────────────────────

    def get_intent_scores(self) -> IntentScores:
        return self.tracker.get_intent_scores()

    def get_judgment_data(self) -> JudgmentData:
        return self.tracker.get_judgment_data()

    # ── End of session ────────────────────────────────────

    def end(self, report_dir: str | None = None, plot: bool = False) -> SessionSummary:
        """Judge the session, report it, and cancel everything still pending."""
        data = self.tracker.get_judgment_data()
        judgment = generate_judgment(data)
        charts = self.stats.end_session(data, judgment, report_dir=report_dir, plot=plot)

        self.scheduler.clear()
        self.world.clear()
        self.power_ups.clear()
        self.enemies.clear()
        self.ended = True
        logger.info("Session ended after %.1fs (%d ticks): %s",
                    self.stats.duration, self.ticks, judgment)

        return SessionSummary(
            judgment=judgment,
            judgment_data=data,
            duration=self.stats.duration,
            stats=self.stats.as_dict(),
            card=render_judgment_card(data),
            charts=charts,
        )
