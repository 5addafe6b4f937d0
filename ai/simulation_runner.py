"""
simulation_runner.py – Headless scripted-player sessions.

Runs N sessions in which a PlayerBot with a fixed play style stands in
for the physics/input layer.  Each session drives a real GameSession
(sampler, scorer, enemies, world reactions, power-ups) tick by tick and
ends with the engine's judgment, so the whole data flow can be watched
without a renderer.

Usage (from CLI):
    python main.py --simulate 5 --style camper --seed 7

Architecture:
    SimulationRunner builds a fresh GameSession per run, populates the
    arena, then loops: bot.step() → session.tick() → bot.observe().
    No engine logic is duplicated here.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field

from pygame.math import Vector3

from entities.enemy import EnemyKind
from entities.player import PlayerState
from settings import (
    FPS, MAX_FRAME_DELTA, ACTION_ATTACK, ACTION_DEFEND, ACTION_DASH,
    SIM_DEFAULT_DURATION, SIM_MAX_DURATION, SIM_ARENA_HALF_SIZE,
    SIM_ENEMY_COUNT, SIM_PLAYER_SPEED,
)
from systems.powerup_system import POWERUP_DEFINITIONS
from systems.session import GameSession, TickReport
from utils.vectors import nearest, flat_direction, safe_normalize

logger = logging.getLogger(__name__)

PLAY_STYLES = ("aggressive", "evasive", "greedy", "panicked", "precise", "camper")

# Seconds between a threat and the bot's counter-action
_REACTION_DELAY = {
    "aggressive": 0.2,
    "evasive":    0.35,
    "greedy":     0.5,
    "panicked":   0.9,
    "precise":    0.25,
    "camper":     0.6,
}

_PLAYER_ATTACK_RANGE = 3.0
_PLAYER_ATTACK_DAMAGE = 10.0
_PLAYER_ATTACK_INTERVAL = 0.5


# ══════════════════════════════════════════════════════════
#  Per-session result
# ══════════════════════════════════════════════════════════

@dataclass
class SimulationResult:
    """Lightweight record for one simulated session."""
    session_number: int = 0
    style: str = ""
    outcome: str = ""              # "survived" or "died"
    duration_sec: float = 0.0
    dominant_intent: str = ""
    scores: dict = field(default_factory=dict)
    moving_ratio: float = 0.0
    avg_reaction: float = 0.0
    damage_taken: float = 0.0
    threats: int = 0
    judgment: str = ""


# ══════════════════════════════════════════════════════════
#  Scripted player
# ══════════════════════════════════════════════════════════

class PlayerBot:
    """Moves a stand-in player the way one play style would."""

    def __init__(self, style: str, rng: random.Random,
                 start: Vector3 | None = None, speed: float = SIM_PLAYER_SPEED):
        if style not in PLAY_STYLES:
            raise ValueError(f"unknown play style {style!r}")
        self.style = style
        self.rng = rng
        self.speed = speed
        self.state = PlayerState(position=Vector3(start) if start is not None else Vector3())
        self.time = 0.0

        self._react_at: float | None = None
        self._next_attack = 0.0
        self._wander = Vector3(1, 0, 0)
        self._next_turn = 0.0
        self._orbit_angle = 0.0

    # ── Per-tick ──────────────────────────────────────────

    def step(self, session: GameSession, dt: float) -> PlayerState:
        """Choose this tick's velocity and action, then integrate position."""
        self.time += dt
        pos = self.state.position
        enemies = [e for e in session.enemies.enemies if e.alive]
        idx, dist = nearest(pos, (e.position for e in enemies))
        target = enemies[idx] if idx >= 0 else None

        action = None
        direction = Vector3()
        speed_mult = session.power_ups.get_active_effects().speed_multiplier

        if self.style == "aggressive" and target is not None:
            direction = flat_direction(pos, target.position)
            if dist < _PLAYER_ATTACK_RANGE and self.time >= self._next_attack:
                action = ACTION_ATTACK
                self._next_attack = self.time + _PLAYER_ATTACK_INTERVAL
                session.damage_enemy(target, _PLAYER_ATTACK_DAMAGE, pattern="melee")
        elif self.style == "evasive" and target is not None:
            direction = flat_direction(target.position, pos)
            if dist < 12.0:
                direction = safe_normalize(direction + Vector3(-direction.z, 0, direction.x) * 0.5)
        elif self.style == "greedy":
            pickups = [p for p in session.power_ups.pickups if p.available]
            p_idx, _ = nearest(pos, (p.position for p in pickups))
            if p_idx >= 0:
                direction = flat_direction(pos, pickups[p_idx].position)
            elif target is not None:
                direction = flat_direction(pos, target.position)
        elif self.style == "panicked":
            if self.time >= self._next_turn:
                angle = self.rng.uniform(0.0, 2.0 * math.pi)
                self._wander = Vector3(math.cos(angle), 0.0, math.sin(angle))
                self._next_turn = self.time + self.rng.uniform(0.1, 0.4)
            direction = self._wander
        elif self.style == "precise":
            # Steady orbit around the arena centre
            self._orbit_angle += dt * 0.3
            goal = Vector3(math.cos(self._orbit_angle), 0.0, math.sin(self._orbit_angle)) * 15.0
            direction = flat_direction(pos, goal)
        # camper: stays put

        if self._react_at is not None and self.time >= self._react_at:
            action = ACTION_DASH if self.style != "camper" else ACTION_DEFEND
            self._react_at = None

        velocity = direction * (self.speed * speed_mult)
        new_pos = pos + velocity * dt
        limit = SIM_ARENA_HALF_SIZE
        new_pos.x = max(-limit, min(limit, new_pos.x))
        new_pos.z = max(-limit, min(limit, new_pos.z))

        self.state = PlayerState(new_pos, velocity, action, self.state.health)
        return self.state

    def observe(self, report: TickReport):
        """React to what the engine reported this tick."""
        if report.threats and self._react_at is None:
            self._react_at = self.time + _REACTION_DELAY[self.style]
        if report.player_damage:
            self.state.health = max(0.0, self.state.health - report.player_damage)


# ══════════════════════════════════════════════════════════
#  Simulation Runner
# ══════════════════════════════════════════════════════════

class SimulationRunner:
    """Run *n_sessions* headless sessions with scripted players.

    Parameters
    ----------
    n_sessions : int
        How many sessions to run.
    duration : float
        Simulated seconds per session (capped at SIM_MAX_DURATION).
    style : str | None
        Play style for every session; None picks one at random per session.
    """

    def __init__(self, n_sessions: int = 1, duration: float = SIM_DEFAULT_DURATION,
                 style: str | None = None, seed: int | None = None, fps: int = FPS,
                 report_dir: str | None = None, plot: bool = False) -> None:
        if style is not None and style not in PLAY_STYLES:
            raise ValueError(f"unknown play style {style!r}")
        if duration > SIM_MAX_DURATION:
            logger.warning("Duration %.0fs capped at %.0fs", duration, SIM_MAX_DURATION)
            duration = SIM_MAX_DURATION
        self._n_sessions = max(1, n_sessions)
        self._duration = max(0.0, duration)
        self._style = style
        self._rng = random.Random(seed)
        self._dt = min(1.0 / max(1, fps), MAX_FRAME_DELTA)
        self._report_dir = report_dir
        self._plot = plot
        self._results: list[SimulationResult] = []

    # ── Public entry point ────────────────────────────────

    def run(self) -> list[SimulationResult]:
        """Execute all N sessions, then print and return results."""
        for i in range(1, self._n_sessions + 1):
            style = self._style or self._rng.choice(PLAY_STYLES)
            logger.info("=== Simulation session %d / %d (%s) ===", i, self._n_sessions, style)
            result = self.run_session(i, style)
            self._results.append(result)
            logger.info(
                "Session %d: outcome=%s  dominant=%s  dur=%.1fs  dmg=%.0f  threats=%d",
                i, result.outcome, result.dominant_intent, result.duration_sec,
                result.damage_taken, result.threats,
            )
        self._print_summary()
        return self._results

    # ── Single session ────────────────────────────────────

    def run_session(self, session_number: int, style: str) -> SimulationResult:
        session = GameSession(player_style=style,
                              rng=random.Random(self._rng.random()))
        self._populate(session)
        bot = PlayerBot(style, random.Random(self._rng.random()))

        outcome = "survived"
        elapsed = 0.0
        while elapsed < self._duration:
            state = bot.step(session, self._dt)
            report = session.tick(state, delta=self._dt)
            bot.observe(report)
            elapsed += self._dt
            if not bot.state.alive:
                outcome = "died"
                break

        report_dir = None
        if self._report_dir:
            report_dir = f"{self._report_dir}/session_{session_number:03d}_{style}"
        summary = session.end(report_dir=report_dir, plot=self._plot)
        if self._n_sessions == 1:
            print(summary.card)

        data = summary.judgment_data
        return SimulationResult(
            session_number=session_number,
            style=style,
            outcome=outcome,
            duration_sec=summary.duration,
            dominant_intent=data.dominant_intent,
            scores=data.intent_scores.as_dict(),
            moving_ratio=data.movement_stats.moving_ratio,
            avg_reaction=data.average_reaction_time,
            damage_taken=summary.stats["damage_to_player"],
            threats=summary.stats["threats"],
            judgment=summary.judgment,
        )

    # ── Setup ─────────────────────────────────────────────

    def _populate(self, session: GameSession) -> None:
        """Scatter enemies, platforms, spikes and one pickup per power-up."""
        kinds = list(EnemyKind)
        for i in range(SIM_ENEMY_COUNT):
            session.spawn_enemy(kinds[i % len(kinds)], self._ring_point(15.0, 30.0))
        for _ in range(4):
            session.add_platform(self._ring_point(5.0, 25.0))
        for _ in range(6):
            session.add_spike(self._ring_point(3.0, 20.0))
        for power_up_type in POWERUP_DEFINITIONS:
            session.spawn_pickup(power_up_type, self._ring_point(8.0, 20.0))

    def _ring_point(self, r_min: float, r_max: float) -> Vector3:
        angle = self._rng.uniform(0.0, 2.0 * math.pi)
        r = self._rng.uniform(r_min, r_max)
        return Vector3(math.cos(angle) * r, 0.0, math.sin(angle) * r)

    # ── Summary printout ──────────────────────────────────

    def _print_summary(self) -> None:
        n = len(self._results)
        if n == 0:
            print("\nNo sessions completed.")
            return

        print(f"\n{'=' * 58}")
        print(f"  Simulation Results  ({n} sessions)")
        print(f"{'=' * 58}")

        died = sum(1 for r in self._results if r.outcome == "died")
        print(f"\n  Survived : {n - died:>4d}  ({100 * (n - died) / n:.1f}%)")
        print(f"  Died     : {died:>4d}  ({100 * died / n:.1f}%)")

        avg_dur = sum(r.duration_sec for r in self._results) / n
        avg_rt = sum(r.avg_reaction for r in self._results) / n
        print(f"\n  Avg session duration  : {avg_dur:.1f}s")
        print(f"  Avg reaction time     : {avg_rt:.2f}s")

        # ── Style → dominant intent ───────────────────────
        print(f"\n  {'Style':<12s}  {'Played':>6s}  {'Dominant intent (count)':<30s}")
        print(f"  {'-' * 52}")
        by_style: dict[str, list[SimulationResult]] = {}
        for r in self._results:
            by_style.setdefault(r.style, []).append(r)
        for style in sorted(by_style):
            runs = by_style[style]
            counts: dict[str, int] = {}
            for r in runs:
                counts[r.dominant_intent] = counts.get(r.dominant_intent, 0) + 1
            dist = ", ".join(f"{k} ({v})" for k, v in
                             sorted(counts.items(), key=lambda kv: kv[1], reverse=True))
            print(f"  {style:<12s}  {len(runs):>6d}  {dist:<30s}")

        # ── Judgments ─────────────────────────────────────
        judgments: dict[str, int] = {}
        for r in self._results:
            judgments[r.judgment] = judgments.get(r.judgment, 0) + 1
        print("\n  Judgments:")
        for text in sorted(judgments, key=lambda k: judgments[k], reverse=True):
            print(f"    {judgments[text]:>3d} x  \"{text}\"")

        print(f"\n{'=' * 58}\n")
