"""Tests for judgmental platforms and intent spikes."""
import pytest
from pygame.math import Vector3

from ai.behavior_sampler import MovementStats
from ai.enemy_behavior import Distortion
from ai.intent_scorer import IntentScores
from entities.enemy import Enemy, EnemyKind, ENEMY_DEFINITIONS
from systems.powerup_system import ActiveEffects
from systems.world_reactions import (
    WorldReactions, PlatformIntention, SpikeState, ReactionObjectKind,
)


class FakeTracker:
    """Intent tracker stand-in with settable scores and movement stats."""

    def __init__(self):
        self.scores = IntentScores()
        self.stats = MovementStats()

    def get_intent_scores(self):
        return self.scores.copy()

    def get_movement_stats(self):
        return self.stats


def make_enemy(kind, position):
    return Enemy(ENEMY_DEFINITIONS[kind], Vector3(position))


@pytest.fixture
def tracker():
    return FakeTracker()


@pytest.fixture
def world(tracker, clock):
    return WorldReactions(tracker, clock=clock)


def step(world, clock, n=1, dt=0.1, player=(0, 0, 0), velocity=(0, 0, 0),
         enemies=(), effects=None, distortions=()):
    for _ in range(n):
        clock.advance(dt)
        world.update(player, velocity, list(enemies), dt,
                     effects=effects, distortions=distortions)


class TestPlatforms:
    """Platform intention selection and movement."""

    def test_camping_evader_lifts_platform(self, world, tracker, clock):
        tracker.stats = MovementStats(moving_ratio=0.1)
        tracker.scores.evasion = 0.8
        platform = world.add_platform((5, 0, 0))
        step(world, clock)
        assert platform.intention is PlatformIntention.LIFT_ENEMIES
        assert platform.target_y == 3.0
        assert platform.current_y == pytest.approx(0.6)
        assert platform.position.x == pytest.approx(5.0)

    def test_lifting_platform_slides_toward_player(self, world, tracker, clock):
        tracker.stats = MovementStats(moving_ratio=0.1)
        tracker.scores.evasion = 0.8
        platform = world.add_platform((5, 0, 0))
        step(world, clock, enemies=[make_enemy(EnemyKind.OBSERVER, (20, 0, 0))])
        assert platform.position.x == pytest.approx(4.8)

    def test_camping_needs_proximity(self, world, tracker, clock):
        tracker.stats = MovementStats(moving_ratio=0.1)
        tracker.scores.evasion = 0.8
        platform = world.add_platform((20, 0, 0))
        step(world, clock)
        assert platform.intention is PlatformIntention.NEUTRAL

    def test_mobile_aggressor_gets_escape(self, world, tracker, clock):
        tracker.stats = MovementStats(moving_ratio=0.9)
        tracker.scores.aggression = 0.6
        platform = world.add_platform((5, 0, 0))
        step(world, clock, enemies=[make_enemy(EnemyKind.PUNISHER, (10, 0, 0))])
        assert platform.intention is PlatformIntention.CREATE_ESCAPE
        assert platform.target_y == 2.0
        assert platform.position.x == pytest.approx(4.85)

    def test_neutral_settles_to_base(self, world, tracker, clock):
        platform = world.add_platform((5, 1, 0))
        platform.current_y = 3.0
        step(world, clock)
        assert platform.intention is PlatformIntention.NEUTRAL
        assert platform.current_y == pytest.approx(3.0 - 2.0 * 0.1 * 2.0)

    def test_evaluation_is_throttled(self, world, tracker, clock):
        """Intention only changes every 0.5 s."""
        platform = world.add_platform((5, 0, 0))
        step(world, clock)
        tracker.stats = MovementStats(moving_ratio=0.1)
        tracker.scores.evasion = 0.8
        step(world, clock, n=3)
        assert platform.intention is PlatformIntention.NEUTRAL
        step(world, clock, n=3)
        assert platform.intention is PlatformIntention.LIFT_ENEMIES


class TestSpikes:
    """Spike eruption, retraction and damage."""

    def test_spawned_retracted(self, world):
        spike = world.add_spike((4, 3, 0))
        assert spike.state is SpikeState.RETRACTED
        assert spike.position.y == -1.0
        assert spike.kind is ReactionObjectKind.SPIKE

    def test_panicked_runner_triggers_spike_ahead(self, world, tracker, clock):
        tracker.scores.evasion = 0.8
        tracker.scores.panic = 0.6
        spike = world.add_spike((4, 0, 0))
        step(world, clock, velocity=(1, 0, 0))
        assert spike.state is SpikeState.EXTENDING
        step(world, clock, n=4, velocity=(1, 0, 0))
        assert spike.state is SpikeState.EXTENDED
        assert spike.current_y == pytest.approx(0.9375)

    def test_spike_behind_runner_stays_down(self, world, tracker, clock):
        tracker.scores.evasion = 0.8
        tracker.scores.panic = 0.6
        spike = world.add_spike((4, 0, 0))
        step(world, clock, velocity=(-1, 0, 0))
        assert spike.state is SpikeState.RETRACTED

    def test_aggressive_player_spikes_nearby_enemy(self, world, tracker, clock):
        tracker.scores.aggression = 0.8
        spike = world.add_spike((0, 0, 0))
        step(world, clock, player=(10, 0, 0),
             enemies=[make_enemy(EnemyKind.PUNISHER, (1, 0, 0))])
        assert spike.state is SpikeState.EXTENDING

    def test_distortion_forces_extension(self, world, clock):
        spike = world.add_spike((3, 0, 0))
        distorter = make_enemy(EnemyKind.DISTORTER, (0, 0, 0))
        field = Distortion(distorter, Vector3(0, 0, 0), 8.0)
        step(world, clock, player=(30, 0, 0), distortions=[field])
        assert spike.state is SpikeState.EXTENDING

    def test_retracts_after_delay(self, world, tracker, clock):
        tracker.scores.evasion = 0.8
        tracker.scores.panic = 0.6
        spike = world.add_spike((4, 0, 0))
        step(world, clock, n=5, velocity=(1, 0, 0))
        assert spike.state is SpikeState.EXTENDED
        tracker.scores = IntentScores()
        step(world, clock, n=18)
        assert spike.state is SpikeState.EXTENDED
        step(world, clock, n=3)
        assert spike.state is SpikeState.RETRACTING
        step(world, clock, n=10)
        assert spike.state is SpikeState.RETRACTED

    def test_remove_cancels_retraction(self, world, tracker, clock):
        tracker.scores.evasion = 0.8
        tracker.scores.panic = 0.6
        spike = world.add_spike((4, 0, 0))
        step(world, clock, n=5, velocity=(1, 0, 0))
        assert len(world.scheduler.pending(owner=spike)) == 1
        world.remove(spike)
        assert len(world.scheduler) == 0
        assert world.spikes == []

    def test_extended_spike_hurts_player_and_enemies(self, world, clock):
        spike = world.add_spike((0, 0, 0))
        spike.state = SpikeState.EXTENDED
        spike.current_y = spike.position.y = 1.0
        enemy = make_enemy(EnemyKind.PUNISHER, (0, 0, 0.5))
        step(world, clock, player=(0.5, 1, 0), enemies=[enemy])
        assert world.consume_player_damage() == 15
        assert enemy.consume_hazard_damage() == 15
        assert spike.hits == 2
        assert world.consume_player_damage() == 0.0

    def test_damage_interval(self, world, clock):
        spike = world.add_spike((0, 0, 0))
        spike.state = SpikeState.EXTENDED
        spike.current_y = spike.position.y = 1.0
        step(world, clock, player=(0.5, 1, 0))
        step(world, clock, n=4, player=(0.5, 1, 0))
        assert world.consume_player_damage() == 15
        step(world, clock, n=3, player=(0.5, 1, 0))
        assert world.consume_player_damage() == 15

    def test_out_of_reach_is_safe(self, world, clock):
        spike = world.add_spike((0, 0, 0))
        spike.state = SpikeState.EXTENDED
        spike.current_y = spike.position.y = 1.0
        step(world, clock, player=(3, 1, 0))
        assert world.consume_player_damage() == 0.0

    def test_hazard_response_speed_shortens_interval(self, tracker, clock):
        slow = WorldReactions(tracker, clock=clock)
        fast = WorldReactions(tracker, clock=clock)
        slow_spike = slow.add_spike((4, 0, 0))
        fast_spike = fast.add_spike((4, 0, 0))
        surge = ActiveEffects(hazard_response_speed=1.5)

        clock.advance(0.1)
        slow.update((0, 0, 0), (1, 0, 0), [], 0.0)
        fast.update((0, 0, 0), (1, 0, 0), [], 0.0, effects=surge)

        tracker.scores.evasion = 0.8
        tracker.scores.panic = 0.6
        clock.advance(0.25)
        slow.update((0, 0, 0), (1, 0, 0), [], 0.0)
        fast.update((0, 0, 0), (1, 0, 0), [], 0.0, effects=surge)
        assert slow_spike.state is SpikeState.RETRACTED
        assert fast_spike.state is SpikeState.EXTENDING


class TestRoster:
    """Adding, removing and malformed input."""

    def test_bad_positions_rejected(self, world):
        assert world.add_platform(None) is None
        assert world.add_spike((1, 2)) is None
        assert world.objects == []

    def test_bad_player_position_skips_update(self, world, tracker, clock):
        tracker.scores.aggression = 0.9
        spike = world.add_spike((0, 0, 0))
        clock.advance(0.1)
        world.update(None, (0, 0, 0), [make_enemy(EnemyKind.PUNISHER, (1, 0, 0))], 0.1)
        assert spike.state is SpikeState.RETRACTED

    def test_clear(self, world):
        world.add_platform((0, 0, 0))
        world.add_spike((1, 0, 1))
        world.clear()
        assert world.objects == []
