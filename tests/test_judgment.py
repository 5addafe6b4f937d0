"""Tests for the end-of-session judgment table."""
import pytest

from ai.behavior_sampler import MovementStats
from ai.intent_scorer import IntentScores
from ai.intent_tracker import IntentTracker, JudgmentData
from ai.judgment import (
    generate_judgment, match_rule, render_judgment_card, FALLBACK_JUDGMENT,
)
from entities.player import PlayerState


def make_data(moving_ratio=0.5, path_repetition=0.0, reaction=0.0, **scores):
    intent = IntentScores(**scores)
    return JudgmentData(
        intent_scores=intent,
        dominant_intent=intent.dominant(),
        movement_stats=MovementStats(moving_ratio=moving_ratio,
                                     path_repetition=path_repetition),
        average_reaction_time=reaction,
    )


class TestCombinedRules:
    """Cross-channel rules win over intent rules."""

    def test_stood_still_beats_everything(self):
        data = make_data(moving_ratio=0.1, aggression=0.95, precision=0.1)
        assert generate_judgment(data) == "Standing still is still a choice. The world remembered."

    def test_slow_thoughts(self):
        assert generate_judgment(make_data(reaction=0.9)) == \
            "The world moved faster than your thoughts."

    def test_same_path(self):
        assert generate_judgment(make_data(path_repetition=0.95)) == "The same path, the same end."

    def test_desperate_aggression(self):
        data = make_data(aggression=0.8, panic=0.8)
        assert match_rule(data).name == "desperate_aggression"

    def test_cautious_greed(self):
        data = make_data(evasion=0.8, greed=0.7)
        assert generate_judgment(data) == "Caution and greed cannot coexist."


class TestIntentRules:
    """Per-dominant-intent rules in table order."""

    def test_reckless_force_before_trusted_speed(self):
        data = make_data(reaction=0.2, aggression=0.9, precision=0.3)
        assert generate_judgment(data) == "Reckless force. The world rewards patience."

    def test_trusted_speed(self):
        data = make_data(reaction=0.2, aggression=0.9, precision=0.6)
        assert generate_judgment(data) == "You trusted speed. The world waited."

    def test_unwise_aggression(self):
        data = make_data(reaction=0.5, aggression=0.65)
        assert match_rule(data).name == "unwise_aggression"

    @pytest.mark.parametrize("scores, expected", [
        ({"evasion": 0.75, "panic": 0.65}, "Fear guided you. The world sensed it."),
        ({"evasion": 0.65}, "You hesitated. The world closed in."),
        ({"greed": 0.75}, "You chased rewards. The world set traps."),
        ({"greed": 0.55, "precision": 0.3}, "Desire made you predictable."),
        ({"panic": 0.65}, "You lost composure. The world remained calm."),
        ({"precision": 0.75}, "Precision without adaptation. The world evolved."),
    ])
    def test_channel_rules(self, scores, expected):
        assert generate_judgment(make_data(**scores)) == expected

    def test_never_stopped_running(self):
        data = make_data(moving_ratio=0.9, evasion=0.85)
        assert generate_judgment(data) == "You never stopped running. The world closed in."

    def test_chaos(self):
        data = make_data(reaction=0.6, panic=0.75)
        assert generate_judgment(data) == "Chaos was your strategy. The world found order."

    def test_perfect_patterns(self):
        data = make_data(path_repetition=0.8, precision=0.85)
        assert generate_judgment(data) == "Perfect patterns. Perfectly predictable."

    def test_fallback(self):
        assert generate_judgment(make_data()) == FALLBACK_JUDGMENT
        assert match_rule(make_data()) is None


class TestEndToEnd:
    """Judgment computed from a tracked session."""

    def test_reckless_charge(self, clock):
        """A stop-start charge at an enemy while attacking reads as reckless."""
        tracker = IntentTracker(clock=clock)
        enemy = [(-3, 0, 0)]
        for i in range(1, 21):
            clock.advance(0.25)
            velocity = (-8, 0, 0) if i % 2 else (0, 0, 0)
            tracker.record_frame(PlayerState((17.5 - i, 0, 0), velocity, "attack"), enemy, 0.25)

        data = tracker.get_judgment_data()
        assert data.dominant_intent == "aggression"
        assert data.intent_scores.aggression == pytest.approx(0.755)
        assert data.intent_scores.precision == pytest.approx(0.35)
        assert data.movement_stats.path_repetition == pytest.approx(0.6)
        assert generate_judgment(data) == "Reckless force. The world rewards patience."


class TestCard:
    """Plain-text end screen."""

    def test_card_contents(self):
        data = make_data(reaction=0.2, aggression=0.9, precision=0.3)
        card = render_judgment_card(data)
        assert "Reckless force. The world rewards patience." in card
        assert "YOUR INTENT PROFILE" in card
        assert "AGGRESSION" in card
        assert " 90%" in card
        assert "Movement: 50% Active" in card
        assert "Reaction Time: 0.20s Average" in card
        assert "Path Repetition: 0%" in card
