"""
judgment.py  –  End-of-session judgment sentence.

A deterministic priority table over the final intent snapshot:

  1. Combined rules (cross-channel conditions), in declaration order
  2. Rules for the dominant intent channel, in declaration order
  3. A fixed fallback sentence

First match wins.  Pure functions only; no state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ai.intent_tracker import JudgmentData


@dataclass(frozen=True)
class JudgmentRule:
    """One row of the judgment table."""

    name: str
    condition: Callable[[JudgmentData], bool]
    text: str


FALLBACK_JUDGMENT = "The world observed. The world adapted. The world prevailed."


# ══════════════════════════════════════════════════════════
#  Rule tables
# ══════════════════════════════════════════════════════════

COMBINED_RULES: tuple[JudgmentRule, ...] = (
    JudgmentRule(
        "stood_still",
        lambda d: d.movement_stats.moving_ratio < 0.2,
        "Standing still is still a choice. The world remembered.",
    ),
    JudgmentRule(
        "slow_thoughts",
        lambda d: d.average_reaction_time > 0.8,
        "The world moved faster than your thoughts.",
    ),
    JudgmentRule(
        "same_path",
        lambda d: d.movement_stats.path_repetition > 0.9,
        "The same path, the same end.",
    ),
    JudgmentRule(
        "desperate_aggression",
        lambda d: d.intent_scores.aggression > 0.7 and d.intent_scores.panic > 0.7,
        "Desperate aggression. The world exploited both.",
    ),
    JudgmentRule(
        "cautious_greed",
        lambda d: d.intent_scores.evasion > 0.7 and d.intent_scores.greed > 0.6,
        "Caution and greed cannot coexist.",
    ),
)

# Reckless force is checked before trusted speed: a fast but imprecise
# aggressor is judged on the imprecision.
INTENT_RULES: dict[str, tuple[JudgmentRule, ...]] = {
    "aggression": (
        JudgmentRule(
            "reckless_force",
            lambda d: d.intent_scores.aggression > 0.7 and d.intent_scores.precision < 0.4,
            "Reckless force. The world rewards patience.",
        ),
        JudgmentRule(
            "trusted_speed",
            lambda d: d.intent_scores.aggression > 0.8 and d.average_reaction_time < 0.3,
            "You trusted speed. The world waited.",
        ),
        JudgmentRule(
            "unwise_aggression",
            lambda d: d.intent_scores.aggression > 0.6,
            "Aggression without wisdom. The world adapted.",
        ),
    ),
    "evasion": (
        JudgmentRule(
            "never_stopped",
            lambda d: d.intent_scores.evasion > 0.8 and d.movement_stats.moving_ratio > 0.8,
            "You never stopped running. The world closed in.",
        ),
        JudgmentRule(
            "guided_by_fear",
            lambda d: d.intent_scores.evasion > 0.7 and d.intent_scores.panic > 0.6,
            "Fear guided you. The world sensed it.",
        ),
        JudgmentRule(
            "hesitated",
            lambda d: d.intent_scores.evasion > 0.6,
            "You hesitated. The world closed in.",
        ),
    ),
    "greed": (
        JudgmentRule(
            "chased_rewards",
            lambda d: d.intent_scores.greed > 0.7,
            "You chased rewards. The world set traps.",
        ),
        JudgmentRule(
            "predictable_desire",
            lambda d: d.intent_scores.greed > 0.5 and d.intent_scores.precision < 0.4,
            "Desire made you predictable.",
        ),
    ),
    "panic": (
        JudgmentRule(
            "chaos_strategy",
            lambda d: d.intent_scores.panic > 0.7 and d.average_reaction_time > 0.5,
            "Chaos was your strategy. The world found order.",
        ),
        JudgmentRule(
            "lost_composure",
            lambda d: d.intent_scores.panic > 0.6,
            "You lost composure. The world remained calm.",
        ),
    ),
    "precision": (
        JudgmentRule(
            "predictable_patterns",
            lambda d: (d.intent_scores.precision > 0.8
                       and d.movement_stats.path_repetition > 0.7),
            "Perfect patterns. Perfectly predictable.",
        ),
        JudgmentRule(
            "unadapted_precision",
            lambda d: d.intent_scores.precision > 0.7,
            "Precision without adaptation. The world evolved.",
        ),
    ),
}


# ══════════════════════════════════════════════════════════
#  Public API
# ══════════════════════════════════════════════════════════

def match_rule(data: JudgmentData) -> JudgmentRule | None:
    """Return the first rule that fires, or None for the fallback."""
    for rule in COMBINED_RULES:
        if rule.condition(data):
            return rule
    for rule in INTENT_RULES.get(data.dominant_intent, ()):
        if rule.condition(data):
            return rule
    return None


def generate_judgment(data: JudgmentData) -> str:
    """Return the one-sentence judgment for a finished session."""
    rule = match_rule(data)
    return rule.text if rule is not None else FALLBACK_JUDGMENT


def render_judgment_card(data: JudgmentData, width: int = 30) -> str:
    """Plain-text end screen: judgment, intent profile bars, movement stats."""
    lines = [
        "CONSCIENCE",
        "",
        f'"{generate_judgment(data)}"',
        "",
        "YOUR INTENT PROFILE",
    ]
    for name, value in data.intent_scores.as_dict().items():
        filled = int(round(value * width))
        marker = "#" if name == data.dominant_intent else "="
        lines.append(f"  {name.upper():<10} [{marker * filled:<{width}}] "
                     f"{round(value * 100):3d}%")
    stats = data.movement_stats
    lines += [
        "",
        f"Movement: {round(stats.moving_ratio * 100)}% Active",
        f"Reaction Time: {data.average_reaction_time:.2f}s Average",
        f"Path Repetition: {round(stats.path_repetition * 100)}%",
    ]
    return "\n".join(lines)
