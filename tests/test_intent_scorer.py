"""Tests for IntentScorer and IntentScores."""
import random

import pytest
from pygame.math import Vector3

from ai.behavior_sampler import BehaviorSample, BehaviorSampler
from ai.intent_scorer import IntentScorer, IntentScores, ScoringConfig
from utils.vectors import safe_normalize


def make_sample(t=0.0, position=(0, 0, 0), velocity=(0, 0, 0), nearest=999.0,
                in_range=0, action=None, moving=None):
    vel = Vector3(velocity)
    speed = vel.length()
    return BehaviorSample(
        timestamp=t,
        position=Vector3(position),
        velocity=vel,
        direction=safe_normalize(Vector3(vel)),
        speed=speed,
        is_moving=speed > 0.1 if moving is None else moving,
        nearest_threat_distance=nearest,
        threats_in_range=in_range,
        action=action,
        delta=0.1,
    )


@pytest.fixture
def sampler(clock):
    return BehaviorSampler(clock=clock)


@pytest.fixture
def scorer():
    return IntentScorer()


class TestScoreVector:
    """IntentScores helpers."""

    def test_neutral_prior(self):
        assert IntentScores().as_dict() == {
            "aggression": 0.5, "evasion": 0.5, "greed": 0.5,
            "panic": 0.5, "precision": 0.5,
        }

    def test_dominant_breaks_ties_by_declaration_order(self):
        assert IntentScores().dominant() == "aggression"
        assert IntentScores(greed=0.9, precision=0.9).dominant() == "greed"

    def test_copy_is_independent(self):
        s = IntentScores()
        c = s.copy()
        c.panic = 1.0
        assert s.panic == 0.5


class TestWarmup:
    """Scores hold until the long window has enough samples."""

    def test_scores_unchanged_below_min_samples(self, sampler, scorer, clock):
        """Nine aggressive samples leave the 0.5 prior exactly in place."""
        for i in range(9):
            clock.advance(0.1)
            sampler.record_frame((10 - i, 0, 0), (-1, 0, 0), [(0, 0, 0)], 0.1, "attack")
            assert scorer.update(sampler, [0.1]) is False
        assert scorer.scores == IntentScores()

    def test_scores_update_at_min_samples(self, sampler, scorer, clock):
        for i in range(10):
            clock.advance(0.1)
            sampler.record_frame((10 - i, 0, 0), (-1, 0, 0), [(0, 0, 0)], 0.1, "attack")
        assert scorer.update(sampler) is True
        assert scorer.scores != IntentScores()


class TestChannels:
    """Each channel against a hand-built window."""

    def test_aggression_closing_in_and_attacking(self, sampler, scorer, clock):
        """Approach 19/20, close 5/20, attacks saturated: 0.38 + 0.075 + 0.3."""
        for i in range(1, 21):
            clock.advance(0.25)
            sampler.record_frame((20.5 - i, 0, 0), (-4, 0, 0), [(0, 0, 0)], 0.25, "attack")
        scorer.update(sampler)
        assert scorer.scores.aggression == pytest.approx(0.755)
        assert scorer.scores.evasion == pytest.approx(0.15)
        assert scorer.scores.dominant() == "aggression"

    def test_evasion_retreating_and_dashing(self, scorer):
        short = [make_sample(t=i, nearest=5.0 + i, action="dash") for i in range(10)]
        # retreat 9/10 inside 20 → 0.36; 11..14 in band → 0.12; 10 dashes → 0.3
        assert scorer.score_evasion(short, short) == pytest.approx(0.36 + 0.12 + 0.3)

    def test_greed_risky_pickups(self, scorer):
        medium = [make_sample(action="pickup", in_range=1) for _ in range(3)]
        medium += [make_sample(velocity=(2, 0, 0), in_range=3) for _ in range(3)]
        # pickups saturated → 0.5; 3/6 moving among >2 threats → 0.25
        assert scorer.score_greed(medium) == pytest.approx(0.75)

    def test_greed_ignores_safe_pickups(self, scorer):
        medium = [make_sample(action="pickup", in_range=0) for _ in range(5)]
        assert scorer.score_greed(medium) == 0.0

    def test_panic_maxes_out(self, scorer):
        """Constant reversals, slow reactions and a swarm cap at 1.0."""
        short = [make_sample(velocity=(1 if i % 2 else -1, 0, 0), nearest=2.0, in_range=2)
                 for i in range(10)]
        assert scorer.score_panic(short, avg_reaction=1.0) == pytest.approx(1.0)

    def test_panic_ignores_standing_frames(self, scorer):
        """Turns are only counted between two moving headings."""
        short = [make_sample() for _ in range(10)]
        assert scorer.score_panic(short, avg_reaction=None) == 0.0

    def test_precision_without_reaction_data(self, sampler, scorer):
        """Steady speed (0.4) + neutral reaction (0.15) + fresh path (0.3)."""
        medium = [make_sample(velocity=(3, 0, 0)) for _ in range(10)]
        assert scorer.score_precision(medium, None, sampler) == pytest.approx(0.85)

    def test_precision_with_fast_reactions(self, sampler, scorer):
        medium = [make_sample(velocity=(3, 0, 0)) for _ in range(10)]
        assert scorer.score_precision(medium, 0.2, sampler) == pytest.approx(0.88)

    def test_precision_drops_on_repeated_path(self, sampler, scorer, clock):
        for _ in range(12):
            clock.advance(0.1)
            sampler.record_frame((1, 0, 1), (0, 0, 0), None, 0.1)
        medium = sampler.get_frames_in_window(15.0)
        # std 0 → 0.4; no reactions → 0.15; repetition 1.0 → 0
        assert scorer.score_precision(medium, None, sampler) == pytest.approx(0.55)

    def test_empty_window_is_neutral(self, sampler, scorer):
        assert scorer.score_aggression([], []) == 0.5
        assert scorer.score_greed([]) == 0.5
        assert scorer.score_precision([], None, sampler) == 0.5


class TestBounds:
    """Every channel stays in [0, 1]."""

    def test_random_sequences_stay_clamped(self, sampler, scorer, clock):
        rnd = random.Random(7)
        actions = [None, "attack", "defend", "dash", "pickup"]
        for _ in range(400):
            clock.advance(rnd.uniform(0.01, 0.2))
            enemies = [(rnd.uniform(-30, 30), 0, rnd.uniform(-30, 30))
                       for _ in range(rnd.randint(0, 6))]
            sampler.record_frame(
                (rnd.uniform(-50, 50), 0, rnd.uniform(-50, 50)),
                (rnd.uniform(-8, 8), 0, rnd.uniform(-8, 8)),
                enemies, 0.1, rnd.choice(actions),
            )
            scorer.update(sampler, [rnd.uniform(0, 3) for _ in range(rnd.randint(0, 5))])
            for value in scorer.scores.as_dict().values():
                assert 0.0 <= value <= 1.0

    def test_heavy_weights_are_clamped(self, sampler, clock):
        cfg = ScoringConfig(aggression_attack_weight=5.0)
        scorer = IntentScorer(cfg)
        for i in range(12):
            clock.advance(0.1)
            sampler.record_frame((0, 0, 0), (0, 0, 0), None, 0.1, "attack")
        scorer.update(sampler)
        assert scorer.scores.aggression == 1.0

    def test_zero_weight_disables_factor(self, sampler, clock):
        cfg = ScoringConfig(aggression_attack_weight=0.0)
        scorer = IntentScorer(cfg)
        for i in range(12):
            clock.advance(0.1)
            sampler.record_frame((0, 0, 0), (0, 0, 0), None, 0.1, "attack")
        scorer.update(sampler)
        assert scorer.scores.aggression == 0.0
