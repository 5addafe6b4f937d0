"""Shared fixtures: a hand-driven clock and seeded randomness."""
import random

import pytest

from utils.clock import SimulationClock


class FixedRoll:
    """rng stand-in: every probability roll succeeds, uniform() picks the low end."""

    def random(self):
        return 0.0

    def uniform(self, a, b):
        return a


@pytest.fixture
def clock():
    """Simulation clock starting at t=0; advance it by hand."""
    return SimulationClock()


@pytest.fixture
def rng():
    """Seeded RNG for stochastic systems."""
    return random.Random(42)


@pytest.fixture
def always_roll():
    """RNG whose attack rolls always succeed."""
    return FixedRoll()
