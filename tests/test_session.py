"""Tests for GameSession: the per-tick data flow across every system."""
import pytest

from entities.enemy import EnemyKind
from entities.player import PlayerState
from systems.session import GameSession


STILL = ((0, 0.7, 0), (0, 0, 0))


@pytest.fixture
def session(always_roll):
    """Session whose enemy attack rolls always succeed."""
    return GameSession(rng=always_roll)


def run(session, n, dt=0.1, position=(0, 0.7, 0), velocity=(0, 0, 0), action=None):
    return [session.tick(PlayerState(position, velocity, action), delta=dt) for _ in range(n)]


class TestTick:
    """Ordering and bookkeeping inside one tick."""

    def test_clock_advances(self, session):
        report = session.tick(PlayerState(*STILL), delta=0.25)
        assert report.time == pytest.approx(0.25)
        assert session.ticks == 1

    def test_negative_delta_is_clamped(self, session):
        report = session.tick(PlayerState(*STILL), delta=-1.0)
        assert report.time == 0.0
        assert report.sample.delta == 0.0

    def test_malformed_player_state_does_not_raise(self, session):
        session.spawn_enemy(EnemyKind.PUNISHER, (5, 0, 0))
        session.add_spike((1, 0, 1))
        report = session.tick(PlayerState(None, None), delta=0.1)
        assert report.sample is None
        assert report.player_damage == 0.0
        assert session.tick(None, delta=0.1).sample is None

    def test_explicit_enemy_positions_feed_sampler(self, session):
        report = session.tick(PlayerState(*STILL), enemy_positions=[(3, 0.7, 4)], delta=0.1)
        assert report.sample.nearest_threat_distance == pytest.approx(5.0)

    def test_owned_enemies_feed_sampler_by_default(self, session):
        session.spawn_enemy(EnemyKind.OBSERVER, (0, 0, 9))
        report = session.tick(PlayerState((0, 0.5, 0), (0, 0, 0)), delta=0.0)
        assert report.sample.nearest_threat_distance == pytest.approx(9.0)

    def test_observation_strength_reported(self, session):
        session.spawn_enemy(EnemyKind.OBSERVER, (0, 0, 9))
        report = session.tick(PlayerState((0, 0.5, 0), (0, 0, 0)), delta=0.0)
        assert report.observation_strength == 1.0
        report = session.tick(PlayerState((0, 0.5, 30), (0, 0, 0)), delta=0.0)
        assert report.observation_strength == 0.0


class TestPickupsAndPowerUps:
    """Pickups are collected before sampling; effects apply the same tick."""

    def test_pickup_marks_action_and_applies_benefit(self, session):
        session.spawn_pickup("TIME_SLOW", (0, 0, 0))
        report = session.tick(PlayerState((0.5, 0, 0), (0, 0, 0)), delta=0.1)
        assert [a.type for a in report.collected] == ["TIME_SLOW"]
        assert report.sample.action == "pickup"
        assert report.effects.enemy_speed_multiplier == pytest.approx(0.6)
        assert ("TIME SLOW Activated!", "powerup") in report.notifications
        assert session.stats.power_ups == ["TIME_SLOW"]

    def test_flavour_text_arrives_in_later_tick(self, session):
        session.activate_power_up("SPEED_SURGE")
        report = session.tick(PlayerState(*STILL), delta=0.5)
        assert report.notifications == [("You move faster. So does judgment.", "warning")]

    def test_unknown_power_up(self, session):
        with pytest.raises(KeyError):
            session.activate_power_up("GOD_MODE")

    def test_damage_boost_multiplies_player_damage(self, session):
        enemy = session.spawn_enemy(EnemyKind.PUNISHER, (5, 0, 0))
        session.activate_power_up("DAMAGE_BOOST")
        assert session.damage_enemy(enemy, 10) == pytest.approx(15.0)
        assert enemy.health == pytest.approx(105.0)
        assert session.stats.damage_to_enemies == pytest.approx(15.0)

    def test_dead_enemy_takes_no_damage(self, session):
        enemy = session.spawn_enemy(EnemyKind.OBSERVER, (5, 0, 0))
        session.damage_enemy(enemy, 100)
        assert session.stats.enemies_killed == 1
        assert session.damage_enemy(enemy, 10) == 0.0
        assert session.stats.enemies_killed == 1


class TestReactions:
    """Defend / dash actions are matched against open threats."""

    def test_dash_registers_reaction(self, session):
        session.tracker.register_threat((0, 0, 0), "PUNISHER")
        session.tick(PlayerState((0, 0, 0), (0, 0, 0), "dash"), delta=0.3)
        assert session.tracker.get_average_reaction_time() == pytest.approx(0.3)

    def test_attack_is_not_a_reaction(self, session):
        session.tracker.register_threat((0, 0, 0), "PUNISHER")
        session.tick(PlayerState((0, 0, 0), (0, 0, 0), "attack"), delta=0.3)
        assert session.tracker.get_average_reaction_time() == 0.0

    def test_manual_reaction(self, session):
        session.tracker.register_threat((0, 0, 0), "OBSERVER")
        session.tick(PlayerState(*STILL), delta=0.4)
        assert session.register_reaction("defend") is not None


class TestDamage:
    """Pending damage is gathered into the report."""

    def test_punisher_hit_reported_once(self, session):
        session.spawn_enemy(EnemyKind.PUNISHER, (2, 0, 0))
        reports = run(session, 20)
        assert sum(r.player_damage for r in reports) == pytest.approx(12.0)
        assert sum(len(r.threats) for r in reports) == 1
        assert session.stats.threats == 1
        assert session.stats.damage_to_player == pytest.approx(12.0)
        assert len(session.tracker.reactions.threats) == 1

    def test_hazard_damage_kills_enemy(self, session):
        enemy = session.spawn_enemy(EnemyKind.OBSERVER, (20, 0, 20))
        enemy.pending_hazard_damage = 500.0
        (report,) = run(session, 1)
        assert report.hazard_damage == [(enemy, 500.0)]
        assert report.killed == [enemy]
        assert session.enemies.enemies == []
        assert session.stats.enemies_killed == 1
        assert session.stats.hazard_hits == 1


class TestEnd:
    """End of session."""

    def test_stood_still_session(self, session):
        run(session, 150)
        summary = session.end()
        assert summary.judgment == "Standing still is still a choice. The world remembered."
        assert summary.duration == pytest.approx(15.0)
        assert summary.judgment in summary.card
        assert summary.charts == []
        assert session.ended is True

    def test_end_cancels_pending_events(self, session):
        spike = session.add_spike((1, 0, 0))
        session.spawn_pickup("TIME_SLOW", (0, 0, 0))
        session.activate_power_up("TIME_SLOW")
        session.tick(PlayerState((0, 0, 0), (0, 0, 0)), delta=0.1)
        assert len(session.scheduler) > 0
        session.end()
        assert len(session.scheduler) == 0
        assert session.world.objects == []
        assert session.power_ups.active_power_ups == []
        assert spike not in session.world.spikes

    def test_judgment_data_snapshot(self, session):
        run(session, 12, velocity=(2, 0, 0))
        data = session.get_judgment_data()
        assert data.movement_stats.moving_ratio == 1.0
        assert data.path_heatmap
