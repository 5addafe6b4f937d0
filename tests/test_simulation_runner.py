"""Tests for the headless simulation runner and the CLI."""
import random

import pytest
from pygame.math import Vector3

from ai.simulation_runner import SimulationRunner, PlayerBot, PLAY_STYLES
from entities.enemy import EnemyKind, AttackState
from main import build_parser
from systems.session import GameSession, TickReport
from systems.powerup_system import ActiveEffects
from ai.intent_scorer import IntentScores


class TestPlayerBot:
    """Scripted player styles."""

    def test_unknown_style(self):
        with pytest.raises(ValueError):
            PlayerBot("berserk", random.Random(1))

    def test_camper_stays_put(self):
        session = GameSession()
        bot = PlayerBot("camper", random.Random(1))
        state = bot.step(session, 0.1)
        assert state.position == Vector3(0, 0, 0)
        assert state.velocity.length() == 0.0

    def test_aggressive_closes_in(self):
        session = GameSession()
        session.spawn_enemy(EnemyKind.PUNISHER, (10, 0, 0))
        bot = PlayerBot("aggressive", random.Random(1))
        state = bot.step(session, 0.1)
        assert state.position.x == pytest.approx(0.6)

    def test_reacts_after_delay(self):
        session = GameSession()
        enemy = session.spawn_enemy(EnemyKind.OBSERVER, (5, 0, 0))
        bot = PlayerBot("evasive", random.Random(1))
        report = TickReport(time=0.0, scores=IntentScores(), effects=ActiveEffects(),
                            attack_transitions=[(enemy, AttackState.ATTACKING)],
                            player_damage=5.0)
        bot.observe(report)
        assert bot.state.health == 95.0
        actions = [bot.step(session, 0.1).last_action for _ in range(5)]
        assert actions == [None, None, None, "dash", None]


class TestRunner:
    """End-to-end headless sessions."""

    def test_bad_style(self):
        with pytest.raises(ValueError):
            SimulationRunner(style="berserk")

    def test_camper_session(self, capsys):
        runner = SimulationRunner(n_sessions=1, duration=5.0, style="camper", seed=3, fps=20)
        (result,) = runner.run()
        assert result.style == "camper"
        assert result.moving_ratio == 0.0
        assert result.judgment == "Standing still is still a choice. The world remembered."
        out = capsys.readouterr().out
        assert "CONSCIENCE" in out
        assert "Simulation Results" in out

    def test_every_style_runs(self, capsys):
        for style in PLAY_STYLES:
            runner = SimulationRunner(duration=3.0, style=style, seed=11, fps=20)
            (result,) = runner.run()
            assert result.outcome in ("survived", "died")
            assert set(result.scores) == {"aggression", "evasion", "greed", "panic", "precision"}

    def test_duration_capped(self):
        runner = SimulationRunner(duration=10_000)
        assert runner._duration == 600.0


class TestCli:
    """Argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.simulate == 1
        assert args.style is None
        assert args.no_plot is False

    def test_options(self):
        args = build_parser().parse_args(
            ["--simulate", "3", "--style", "greedy", "--seed", "9", "--no-plot", "-v"])
        assert (args.simulate, args.style, args.seed) == (3, "greedy", 9)
        assert args.no_plot and args.verbose

    def test_rejects_unknown_style(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--style", "berserk"])
