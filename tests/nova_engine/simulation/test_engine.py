"""Tests for SimulationEngine — the full step loop.

Frames are driven by calling ``step`` with synthetic timestamps.  Holding
the timestamp constant keeps the spawner idle, so hand-placed rockets and
explosions play out deterministically.
"""

from __future__ import annotations

import math
import random
import time

import pytest

from nova_engine.comms.event_bus import EventBus
from nova_engine.simulation.constants import (
    EXPLOSION_RADIUS_MAX,
    POINTS_PER_ROCKET,
    WIN_SCORE,
)
from nova_engine.simulation.engine import SimulationEngine
from nova_engine.simulation.entities import Explosion, GameStatus, Rocket
from nova_engine.simulation.game_mode import TRANSITIONS
from nova_engine.simulation.physics import steps_to_arrival
from nova_engine.simulation.rng import SeededRandom


pytestmark = pytest.mark.unit


def _drain(q) -> list[dict]:
    events = []
    while not q.empty():
        events.append(q.get_nowait())
    return events


def _playing_engine(**kwargs) -> SimulationEngine:
    engine = SimulationEngine(**kwargs)
    assert engine.start_game()
    return engine


def _falling_rocket(rid: str, x: float, y: float, tx: float, ty: float, speed: float = 1.0) -> Rocket:
    return Rocket(id=rid, x=x, y=y, target_x=tx, target_y=ty, speed=speed,
                  angle=math.atan2(ty - y, tx - x))


def _turret(engine: SimulationEngine, slot: str):
    return next(t for t in engine.context.turrets if t.id == f"turret-{slot}")


# --------------------------------------------------------------------------
# Lifecycle commands
# --------------------------------------------------------------------------

class TestEngineCommands:
    def test_initial_status(self):
        engine = SimulationEngine()
        assert engine.status == GameStatus.START
        assert engine.step(0.0) is False

    def test_start_builds_fresh_layout(self):
        engine = _playing_engine()
        ctx = engine.context
        assert engine.status == GameStatus.PLAYING
        assert len(ctx.cities) == 6 and all(c.active for c in ctx.cities)
        assert [t.ammo for t in ctx.turrets] == [20, 40, 20]
        assert ctx.rockets == [] and ctx.missiles == [] and ctx.explosions == []
        assert ctx.last_spawn_time is None

    def test_start_rejected_while_playing(self):
        engine = _playing_engine()
        engine.fire(400.0, 300.0)
        assert engine.start_game() is False
        assert len(engine.context.missiles) == 1

    def test_replay_resets_everything(self):
        engine = _playing_engine()
        engine.fire(400.0, 300.0)
        engine.context.cities[0].active = False
        for t in engine.context.turrets:
            t.active = False
        engine.step(0.0)
        assert engine.status == GameStatus.LOST

        assert engine.replay() is True
        ctx = engine.context
        assert engine.status == GameStatus.PLAYING
        assert engine.score == 0
        assert all(c.active for c in ctx.cities)
        assert all(t.active and t.ammo == t.max_ammo for t in ctx.turrets)
        assert ctx.missiles == []

    def test_replay_rejected_while_playing(self):
        engine = _playing_engine()
        assert engine.replay() is False

    def test_paused_return_to_start_then_start(self):
        engine = _playing_engine()
        engine.fire(100.0, 100.0)
        assert engine.pause_game()
        assert engine.return_to_start()
        assert engine.status == GameStatus.START
        assert engine.start_game()
        assert engine.context.missiles == []


# --------------------------------------------------------------------------
# Pause
# --------------------------------------------------------------------------

class TestPause:
    def test_step_is_noop_while_paused(self):
        engine = _playing_engine()
        engine.context.rockets.append(_falling_rocket("r", 300.0, 100.0, 300.0, 580.0))
        engine.fire(200.0, 200.0)
        engine.step(0.0)
        assert engine.pause_game()

        before = engine.snapshot()
        steps = engine.context.step_count
        for t in range(10):
            assert engine.step(10_000.0 * t) is False
        assert engine.snapshot() == before
        assert engine.context.step_count == steps

    def test_resume_continues(self):
        engine = _playing_engine()
        engine.context.rockets.append(_falling_rocket("r", 300.0, 100.0, 300.0, 580.0))
        engine.step(0.0)
        engine.pause_game()
        engine.resume_game()
        engine.step(0.0)
        assert engine.context.rockets[0].y == pytest.approx(102.0)


# --------------------------------------------------------------------------
# Firing
# --------------------------------------------------------------------------

class TestFire:
    def test_fire_ignored_before_start(self):
        engine = SimulationEngine()
        assert engine.fire(400.0, 300.0) is None

    def test_fire_ignored_while_paused(self):
        engine = _playing_engine()
        engine.pause_game()
        assert engine.fire(400.0, 300.0) is None
        assert _turret(engine, "middle").ammo == 40
        assert engine.context.missiles == []

    def test_fire_ignored_after_game_over(self):
        engine = _playing_engine()
        for t in engine.context.turrets:
            t.active = False
        engine.step(0.0)
        assert engine.fire(400.0, 300.0) is None

    def test_fire_applies_immediately(self):
        engine = _playing_engine()
        missile = engine.fire(400.0, 300.0)
        assert missile is not None
        assert engine.context.missiles == [missile]
        assert _turret(engine, "middle").ammo == 39

    def test_two_fires_in_one_frame(self):
        engine = _playing_engine()
        _turret(engine, "middle").ammo = 1
        first = engine.fire(400.0, 300.0)
        second = engine.fire(400.0, 300.0)
        assert first.start_x == 400.0
        # Middle is now empty; left and right tie at 360 and left comes first.
        assert second.start_x == _turret(engine, "left").x
        assert len(engine.context.missiles) == 2
        assert _turret(engine, "middle").ammo == 0
        assert _turret(engine, "left").ammo == 19

    @pytest.mark.parametrize("x,y", [
        (400.0, math.inf),
        (-math.inf, 300.0),
        (math.nan, 300.0),
        (400.0, math.nan),
    ])
    def test_non_finite_aim_is_noop(self, x, y):
        engine = _playing_engine()
        assert engine.fire(x, y) is None
        assert engine.context.missiles == []
        assert [t.ammo for t in engine.context.turrets] == [20, 40, 20]

        for _ in range(200):
            engine.step(0.0)
        state = engine.get_game_state()
        assert state["missiles"] == []
        assert all(math.isfinite(v) for t in state["turrets"] for v in (t["x"], t["y"]))


# --------------------------------------------------------------------------
# Scenarios
# --------------------------------------------------------------------------

class TestScenarios:
    def test_missile_detonates_after_ceil_distance_over_speed(self):
        engine = _playing_engine()
        missile = engine.fire(430.0, 300.0)
        steps = steps_to_arrival(missile.distance)
        assert steps == 50

        for _ in range(steps - 1):
            engine.step(0.0)
            assert engine.context.explosions == []
            assert len(engine.context.missiles) == 1

        engine.step(0.0)
        assert engine.context.missiles == []
        [blast] = engine.context.explosions
        assert blast.max_radius == EXPLOSION_RADIUS_MAX
        assert (blast.x, blast.y) == (430.0, 300.0)
        assert blast.life == 1

    def test_empty_turret_is_skipped(self):
        engine = _playing_engine()
        left = _turret(engine, "left")
        left.ammo = 0
        missile = engine.fire(left.x, 300.0)
        assert missile.start_x == _turret(engine, "middle").x
        assert left.ammo == 0
        assert _turret(engine, "middle").ammo == 39

    def test_no_eligible_turret_is_noop(self):
        engine = _playing_engine()
        for t in engine.context.turrets:
            t.ammo = 0
        assert engine.fire(40.0, 300.0) is None
        assert engine.context.missiles == []

    def test_city_destroyed_stays_destroyed(self):
        engine = _playing_engine()
        city = engine.context.cities[0]
        engine.context.rockets.append(
            _falling_rocket("r", city.x, city.y - 4.0, city.x, city.y)
        )
        engine.step(0.0)
        assert not city.active
        assert engine.context.rockets == []
        assert len(engine.context.explosions) == 1

        for _ in range(100):
            engine.step(0.0)
            assert not city.active
        assert sum(c.active for c in engine.context.cities) == 5

    def test_losing_all_turrets_loses_regardless_of_score(self):
        bus = EventBus()
        engine = _playing_engine(event_bus=bus)
        q = bus.subscribe()
        engine.game_mode.score = 500
        for i, t in enumerate(engine.context.turrets):
            engine.context.rockets.append(
                _falling_rocket(f"r{i}", t.x, t.y - 4.0, t.x, t.y)
            )
        engine.step(0.0)
        assert all(not t.active for t in engine.context.turrets)
        assert engine.status == GameStatus.LOST

        events = _drain(q)
        over = [e for e in events if e["type"] == "game_over"]
        assert over and over[0]["data"]["result"] == "LOST"
        assert sum(e["type"] == "rocket_impact" for e in events) == 3

    def test_loss_checked_before_win_on_same_step(self):
        engine = _playing_engine()
        ctx = engine.context
        engine.game_mode.score = WIN_SCORE - POINTS_PER_ROCKET
        _turret(engine, "left").active = False
        _turret(engine, "right").active = False
        middle = _turret(engine, "middle")

        ctx.rockets.append(_falling_rocket("hit", middle.x, middle.y - 4.0, middle.x, middle.y))
        ctx.rockets.append(_falling_rocket("kill", 200.0, 200.0, 200.0, 580.0))
        ctx.explosions.append(Explosion(id="blast", x=200.0, y=200.0,
                                        max_radius=46.0, max_life=60, life=29))
        engine.step(0.0)

        assert engine.score == WIN_SCORE
        assert not middle.active
        assert engine.status == GameStatus.LOST

    def test_win_at_exactly_win_score(self):
        engine = _playing_engine()
        engine.game_mode.score = WIN_SCORE - POINTS_PER_ROCKET
        engine.context.rockets.append(_falling_rocket("kill", 200.0, 200.0, 200.0, 580.0))
        engine.context.explosions.append(Explosion(id="blast", x=200.0, y=200.0,
                                                   max_radius=46.0, max_life=60, life=29))
        engine.step(0.0)
        assert engine.score == WIN_SCORE
        assert engine.status == GameStatus.WON

    def test_explosion_scores_each_rocket_once(self):
        engine = _playing_engine()
        ctx = engine.context
        ctx.explosions.append(Explosion(id="a", x=300.0, y=300.0, max_radius=46.0, max_life=60, life=29))
        ctx.explosions.append(Explosion(id="b", x=310.0, y=300.0, max_radius=46.0, max_life=60, life=29))
        ctx.rockets.append(_falling_rocket("r", 305.0, 300.0, 305.0, 580.0))
        engine.step(0.0)
        assert engine.score == POINTS_PER_ROCKET
        assert engine.game_mode.rockets_destroyed == 1

    def test_zero_distance_missile_detonates_on_first_step(self):
        engine = _playing_engine()
        middle = _turret(engine, "middle")
        missile = engine.fire(middle.x, middle.y)
        assert missile.distance == 0.0
        engine.step(0.0)
        assert engine.context.missiles == []
        [blast] = engine.context.explosions
        assert (blast.x, blast.y) == (middle.x, middle.y)
        assert math.isfinite(blast.radius)

    def test_rocket_off_bottom_removed_without_score(self):
        engine = _playing_engine()
        engine.context.rockets.append(_falling_rocket("r", 300.0, 599.5, 300.0, 700.0))
        engine.step(0.0)
        assert engine.context.rockets == []
        assert engine.context.explosions == []
        assert engine.score == 0


# --------------------------------------------------------------------------
# Spawning
# --------------------------------------------------------------------------

class TestSpawning:
    def test_first_step_seeds_spawn_clock(self):
        engine = _playing_engine()
        engine.step(5_000.0)
        assert engine.context.last_spawn_time == 5_000.0
        assert engine.context.rockets == []

    def test_spawns_once_interval_strictly_exceeded(self, scripted_rng):
        rng = scripted_rng(fractions=[0.5, 0.0], picks=[0])
        engine = _playing_engine(rng=rng)
        engine.step(0.0)
        engine.step(2_000.0)
        assert engine.context.rockets == []

        engine.step(2_000.5)
        [rocket] = engine.context.rockets
        first_city = engine.context.cities[0]
        assert (rocket.target_x, rocket.target_y) == (first_city.x, first_city.y)
        assert rocket.speed == 0.5
        # Spawned at (400, -20) then moved once in the same step.
        assert rocket.y > -20.0
        assert engine.context.last_spawn_time == 2_000.5

    def test_interval_shrinks_with_score(self, scripted_rng):
        rng = scripted_rng(fractions=[0.25, 1.0], picks=[2])
        engine = _playing_engine(rng=rng)
        engine.game_mode.score = 500
        engine.step(0.0)
        engine.step(1_500.5)
        assert len(engine.context.rockets) == 1

    def test_spawn_targets_only_live_assets(self, scripted_rng):
        rng = scripted_rng(fractions=[0.5, 0.5], picks=[0])
        engine = _playing_engine(rng=rng)
        for c in engine.context.cities:
            c.active = False
        engine.step(0.0)
        engine.step(2_001.0)
        [rocket] = engine.context.rockets
        assert rocket.target_x == _turret(engine, "left").x

    def test_seeded_runs_are_reproducible(self):
        def run() -> list[tuple[float, float]]:
            engine = _playing_engine(rng=SeededRandom(42))
            for i in range(400):
                engine.step(i * 50.0)
            return [(r.x, r.y) for r in engine.context.rockets]

        first = run()
        assert first
        assert first == run()


# --------------------------------------------------------------------------
# Snapshot and events
# --------------------------------------------------------------------------

class TestSnapshot:
    def test_snapshot_is_detached(self):
        engine = _playing_engine()
        snap = engine.snapshot()
        engine.fire(400.0, 300.0)
        engine.step(0.0)
        assert snap.missiles == ()
        assert snap.turrets[1].ammo == 40

    def test_game_state_dict(self):
        engine = _playing_engine()
        state = engine.get_game_state()
        assert state["status"] == "PLAYING"
        assert state["score"] == 0
        assert state["spawn_interval"] == 2000.0
        assert len(state["cities"]) == 6
        assert len(state["turrets"]) == 3


class TestEvents:
    def test_publishes_lifecycle_and_combat_events(self):
        bus = EventBus()
        q = bus.subscribe()
        engine = SimulationEngine(event_bus=bus)
        engine.start_game()
        engine.fire(400.0, 564.5)  # 5.5 units away: arrives next step
        engine.step(0.0)

        types = [e["type"] for e in _drain(q)]
        assert types == ["game_state_change", "missile_launched", "missile_detonated"]

    def test_rocket_destroyed_carries_score(self):
        bus = EventBus()
        engine = _playing_engine(event_bus=bus)
        q = bus.subscribe()
        engine.context.rockets.append(_falling_rocket("r", 200.0, 200.0, 200.0, 580.0))
        engine.context.explosions.append(Explosion(id="blast", x=200.0, y=200.0,
                                                   max_radius=46.0, max_life=60, life=29))
        engine.step(0.0)
        [event] = [e for e in _drain(q) if e["type"] == "rocket_destroyed"]
        assert event["data"]["rocket_id"] == "r"
        assert event["data"]["score"] == POINTS_PER_ROCKET

    def test_launch_event_carries_eta(self):
        bus = EventBus()
        engine = _playing_engine(event_bus=bus)
        q = bus.subscribe()
        missile = engine.fire(430.0, 300.0)
        [event] = _drain(q)
        assert event["type"] == "missile_launched"
        assert event["data"]["id"] == missile.id
        assert event["data"]["eta_steps"] == steps_to_arrival(missile.distance) == 50

    def test_rocket_leaving_play_area_is_announced(self):
        bus = EventBus()
        engine = _playing_engine(event_bus=bus)
        q = bus.subscribe()
        engine.context.rockets.append(_falling_rocket("stray", 300.0, 599.5, 300.0, 700.0))
        engine.step(0.0)
        escaped = [e for e in _drain(q) if e["type"] == "rocket_escaped"]
        assert [e["data"]["rocket_id"] for e in escaped] == ["stray"]
        assert engine.score == 0

    def test_set_event_bus_reaches_game_mode(self):
        engine = SimulationEngine()
        bus = EventBus()
        q = bus.subscribe()
        engine.set_event_bus(bus)
        engine.start_game()
        assert [e["type"] for e in _drain(q)] == ["game_state_change"]


# --------------------------------------------------------------------------
# Invariants over a long random run
# --------------------------------------------------------------------------

class TestInvariants:
    def test_invariants_hold_every_step(self):
        bus = EventBus()
        q = bus.subscribe()
        engine = SimulationEngine(event_bus=bus, rng=SeededRandom(1234))
        engine.start_game()
        aim = random.Random(99)

        dead_cities: set[str] = set()
        dead_turrets: set[str] = set()
        last_score = 0
        for i in range(4_000):
            if i % 15 == 0:
                engine.fire(aim.uniform(0, 800), aim.uniform(50, 550))
            engine.step(i * 16.0)
            ctx = engine.context

            for t in ctx.turrets:
                assert 0 <= t.ammo <= t.max_ammo
                if t.id in dead_turrets:
                    assert not t.active
                if not t.active:
                    dead_turrets.add(t.id)
            for c in ctx.cities:
                if c.id in dead_cities:
                    assert not c.active
                if not c.active:
                    dead_cities.add(c.id)
            for e in ctx.explosions:
                assert 0.0 <= e.radius <= e.max_radius
            for m in ctx.missiles:
                assert 0.0 <= m.progress < 1.0

            assert engine.score >= last_score
            assert engine.score % POINTS_PER_ROCKET == 0
            last_score = engine.score

            ids = [x.id for x in (*ctx.rockets, *ctx.missiles, *ctx.explosions)]
            assert len(ids) == len(set(ids))

            if engine.status != GameStatus.PLAYING:
                break

        changes = [e["data"]["status"] for e in _drain(q) if e["type"] == "game_state_change"]
        path = [GameStatus.START, *(GameStatus(s) for s in changes)]
        assert set(zip(path, path[1:])) <= TRANSITIONS


# --------------------------------------------------------------------------
# Tick thread
# --------------------------------------------------------------------------

class TestTickThread:
    def test_start_and_stop(self):
        engine = SimulationEngine()
        engine.start_game()
        engine.start(tick_rate=200.0)
        assert engine.running
        deadline = time.monotonic() + 2.0
        while engine.context.step_count == 0 and time.monotonic() < deadline:
            time.sleep(0.01)
        engine.stop()
        assert not engine.running
        assert engine.context.step_count > 0

    def test_rejects_non_positive_rate(self):
        engine = SimulationEngine()
        with pytest.raises(ValueError):
            engine.start(tick_rate=0)
        assert not engine.running

    def test_stop_without_start(self):
        engine = SimulationEngine()
        engine.stop()
        assert not engine.running
