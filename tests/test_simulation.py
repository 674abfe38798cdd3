"""Tests for simulation state, commands and the clock."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from orbwatch.core.bodies import OrbitalParams
from orbwatch.core.propagation import compute_position
from orbwatch.core.resolution import ExplosionEvent
from orbwatch.core.simulation import (
    AddBody,
    ClearSelection,
    RemoveBody,
    RemoveExplosion,
    Reset,
    SelectBodies,
    SetRunning,
    SetSpeed,
    Simulation,
    SimulationState,
    ToggleRunning,
    ToggleSelection,
    add_body,
    clear_selection,
    prune_explosions,
    remove_body,
    remove_explosion,
    reset,
    select_bodies,
    set_running,
    set_speed,
    tick,
    toggle_running,
    toggle_selection,
)

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


def params(body_id: str, angle: float = 0.0, speed: float = 0.1, radius: float = 8.0,
           color: str = "#60A5FA") -> OrbitalParams:
    return OrbitalParams(name=body_id.upper(), color=color, orbit_radius=radius,
                         orbit_speed=speed, orbit_angle=angle, id=body_id)


@pytest.fixture
def state() -> SimulationState:
    s = SimulationState()
    s = add_body(s, params("a", angle=0.0))
    s = add_body(s, params("b", angle=2.0, radius=10.0))
    return s


@pytest.fixture
def head_on() -> SimulationState:
    """Two bodies at the same point moving in opposite directions."""
    s = SimulationState()
    s = add_body(s, params("east", speed=0.1, color="#F87171"))
    s = add_body(s, params("west", speed=-0.1, color="#34D399"))
    return s


class TestCommands:
    def test_initial_state(self):
        s = SimulationState()
        assert s.bodies == () and s.predictions == () and s.explosions == ()
        assert s.elapsed == 0.0
        assert s.running is True
        assert s.speed == 1.0

    def test_add_body_computes_position(self, state: SimulationState):
        assert [b.id for b in state.bodies] == ["a", "b"]
        body = state.get_body("b")
        np.testing.assert_allclose(body.position, compute_position(body, 0.0))
        assert np.linalg.norm(body.position) == pytest.approx(10.0)
        assert state.body_counter == 2

    def test_add_body_generates_id(self):
        s = add_body(SimulationState(), OrbitalParams(name="X", color="#fff", orbit_radius=8.0, orbit_speed=0.1))
        assert s.bodies[0].id.startswith("sat_")

    def test_add_duplicate_id_raises(self, state: SimulationState):
        with pytest.raises(ValueError, match="Duplicate"):
            add_body(state, params("a"))

    def test_remove_body(self, state: SimulationState):
        s = select_bodies(state, ["a", "b"])
        s = remove_body(s, "a")
        assert [b.id for b in s.bodies] == ["b"]
        assert s.selected_ids == ("b",)

    def test_remove_unknown_is_noop(self, state: SimulationState):
        assert remove_body(state, "nope") is state

    def test_set_speed(self, state: SimulationState):
        assert set_speed(state, 2.5).speed == 2.5

    @pytest.mark.parametrize("bad", [0.0, -1.0])
    def test_set_speed_rejects_non_positive(self, state: SimulationState, bad: float):
        with pytest.raises(ValueError):
            set_speed(state, bad)

    def test_running_flag(self, state: SimulationState):
        assert set_running(state, False).running is False
        assert toggle_running(state).running is False
        assert toggle_running(toggle_running(state)).running is True

    def test_reset(self, head_on: SimulationState):
        s = tick(select_bodies(set_speed(head_on, 3.0), ["east"]), 0.01, now=NOW)
        assert s.explosions
        s = add_body(s, params("late"))
        cleared = reset(s)
        assert cleared.bodies == ()
        assert cleared.predictions == ()
        assert cleared.explosions == ()
        assert cleared.elapsed == 0.0
        assert cleared.selected_ids == ()
        assert cleared.body_counter == 0
        assert cleared.speed == 3.0

    def test_selection(self, state: SimulationState):
        s = select_bodies(state, ["b", "ghost", "b"])
        assert s.selected_ids == ("b",)
        s = toggle_selection(s, "a")
        assert s.selected_ids == ("b", "a")
        s = toggle_selection(s, "b")
        assert s.selected_ids == ("a",)
        assert toggle_selection(s, "ghost") is s
        assert clear_selection(s).selected_ids == ()

    def test_remove_explosion(self):
        events = (
            ExplosionEvent("explosion_1", np.zeros(3), "#fff", NOW),
            ExplosionEvent("explosion_2", np.ones(3), "#000", NOW),
        )
        s = SimulationState(explosions=events)
        assert [e.id for e in remove_explosion(s, "explosion_1").explosions] == ["explosion_2"]
        assert remove_explosion(s, "explosion_9") is s

    def test_prune_explosions(self):
        events = (
            ExplosionEvent("old", np.zeros(3), "#fff", NOW - timedelta(seconds=5)),
            ExplosionEvent("new", np.zeros(3), "#fff", NOW - timedelta(seconds=0.5)),
        )
        s = prune_explosions(SimulationState(explosions=events), now=NOW)
        assert [e.id for e in s.explosions] == ["new"]


class TestTick:
    def test_paused_tick_is_noop(self, state: SimulationState):
        paused = set_running(state, False)
        assert tick(paused, 1.0) is paused

    def test_tick_advances_time_and_angles(self, state: SimulationState):
        s = tick(set_speed(state, 2.0), 0.5, now=NOW)
        assert s.elapsed == pytest.approx(1.0)
        a_before, a_after = state.get_body("a"), s.get_body("a")
        assert a_after.orbit_angle == pytest.approx(a_before.orbit_angle + 0.1 * 1.0)
        np.testing.assert_allclose(a_after.position, compute_position(a_before, 1.0))

    def test_elapsed_accumulates(self, state: SimulationState):
        s = state
        for _ in range(10):
            s = tick(s, 0.1, now=NOW)
        assert s.elapsed == pytest.approx(1.0)

    def test_negative_delta_does_not_rewind(self, state: SimulationState):
        """A backwards host clock is treated as a zero-length frame."""
        s = tick(tick(state, 1.0, now=NOW), -5.0, now=NOW)
        assert s.elapsed == pytest.approx(1.0)
        assert s.get_body("a").orbit_angle == pytest.approx(0.1)
        assert s.get_body("b").orbit_angle == pytest.approx(2.1)

    def test_no_predictions_for_distant_bodies(self, state: SimulationState):
        assert tick(state, 0.1, now=NOW).predictions == ()

    def test_single_body_clears_predictions(self):
        s = add_body(SimulationState(), params("solo"))
        assert tick(s, 1.0).predictions == ()

    def test_head_on_collision_resolved(self, head_on: SimulationState):
        s = select_bodies(head_on, ["west"])
        s = tick(s, 0.01, now=NOW)
        assert s.bodies == ()
        assert s.predictions == ()
        assert s.selected_ids == ()
        assert len(s.explosions) == 1
        event = s.explosions[0]
        assert event.color == "#F87171"
        assert event.timestamp == NOW
        assert np.linalg.norm(event.position - np.array([8.0, 0.0, 0.0])) < 0.01

    def test_future_approach_published(self):
        """A distant approach is published as a prediction and nothing explodes."""
        s = SimulationState()
        s = add_body(s, params("lead", angle=0.0, speed=0.1))
        s = add_body(s, params("chaser", angle=np.pi + 0.001, speed=0.15))
        s = tick(s, 1.0, now=NOW)
        assert len(s.bodies) == 2
        assert len(s.predictions) == 1
        assert s.predictions[0].time_to_collision == pytest.approx(61.8, abs=0.2)
        assert s.explosions == ()

    def test_pause_keeps_explosions(self, head_on: SimulationState):
        s = tick(head_on, 0.01, now=NOW)
        paused = set_running(s, False)
        assert tick(paused, 5.0).explosions == s.explosions


class TestSimulationDriver:
    def test_queries(self):
        sim = Simulation()
        body = sim.add_body(params("a"))
        assert sim.bodies == (body,)
        assert sim.predictions == ()
        assert sim.explosions == ()
        assert sim.elapsed == 0.0
        assert sim.running is True
        assert sim.speed == 1.0

    def test_apply_immediate(self):
        sim = Simulation()
        sim.apply(AddBody(params("a")))
        sim.apply(SetSpeed(4.0))
        sim.apply(SelectBodies(("a",)))
        assert [b.id for b in sim.selected] == ["a"]
        assert sim.speed == 4.0
        sim.apply(ClearSelection())
        assert sim.selected == ()

    def test_submit_applies_at_next_tick(self):
        sim = Simulation()
        sim.submit(AddBody(params("a", speed=0.2)))
        assert sim.bodies == ()
        assert sim.pending == 1

        sim.tick(1.0)
        assert sim.pending == 0
        # Added before the clock advanced, so it moved with this tick
        assert sim.bodies[0].orbit_angle == pytest.approx(0.2)
        assert sim.elapsed == pytest.approx(1.0)

    def test_queued_commands_apply_in_order(self):
        sim = Simulation()
        sim.submit(AddBody(params("a")))
        sim.submit(AddBody(params("b", angle=3.0)))
        sim.submit(RemoveBody("a"))
        sim.submit(ToggleSelection("b"))
        sim.tick(0.1)
        assert [b.id for b in sim.bodies] == ["b"]
        assert [b.id for b in sim.selected] == ["b"]

    def test_queued_commands_apply_while_paused(self):
        sim = Simulation()
        sim.apply(SetRunning(False))
        sim.submit(AddBody(params("a")))
        sim.tick(1.0)
        assert len(sim.bodies) == 1
        assert sim.elapsed == 0.0

        sim.submit(ToggleRunning())
        sim.tick(1.0)
        assert sim.running is True
        assert sim.elapsed == pytest.approx(1.0)

    def test_reset_command(self):
        sim = Simulation()
        sim.add_body(params("a"))
        sim.tick(2.0)
        sim.submit(Reset())
        sim.tick(0.0)
        assert sim.bodies == ()
        assert sim.elapsed == 0.0

    def test_unknown_command_rejected(self):
        sim = Simulation()
        with pytest.raises(TypeError):
            sim.submit("add")
        with pytest.raises(TypeError):
            sim.apply(object())
        assert sim.pending == 0

    def test_add_random_body(self):
        sim = Simulation()
        rng = np.random.default_rng(42)
        first = sim.add_random_body(rng)
        second = sim.add_random_body(rng)
        assert first.name == "Satellite A"
        assert second.name == "Satellite B"
        assert first.id != second.id
        assert 7.0 <= first.orbit_radius <= 12.0

    def test_expire_explosions(self):
        sim = Simulation()
        sim.add_body(params("east", speed=0.1))
        sim.add_body(params("west", speed=-0.1))
        sim.tick(0.01, now=NOW)
        assert len(sim.explosions) == 1
        sim.expire_explosions(now=NOW + timedelta(seconds=1))
        assert len(sim.explosions) == 1
        sim.expire_explosions(now=NOW + timedelta(seconds=2))
        assert sim.explosions == ()

    def test_failed_command_leaves_state_untouched(self):
        """A failing queued command commits nothing; the rest stay queued."""
        sim = Simulation()
        sim.submit(AddBody(params("a")))
        sim.submit(AddBody(params("a")))
        sim.submit(AddBody(params("b", angle=3.0)))

        with pytest.raises(ValueError, match="Duplicate"):
            sim.tick(1.0)
        assert sim.bodies == ()
        assert sim.elapsed == 0.0
        assert sim.pending == 2

        sim.tick(1.0)
        assert [b.id for b in sim.bodies] == ["a", "b"]
        assert sim.pending == 0
        assert sim.elapsed == pytest.approx(1.0)

    @pytest.mark.parametrize("bad", [0.0, -2.0])
    def test_set_speed_command_rejects_non_positive(self, bad: float):
        sim = Simulation()
        with pytest.raises(ValueError):
            sim.submit(SetSpeed(bad))
        assert sim.pending == 0
        sim.tick(1.0)
        assert sim.speed == 1.0

    def test_every_command_type_accepted(self):
        sim = Simulation()
        commands = [
            AddBody(params("a")), RemoveBody("a"), SetSpeed(2.0), SetRunning(True),
            ToggleRunning(), Reset(), SelectBodies(()), ToggleSelection("a"),
            ClearSelection(), RemoveExplosion("explosion_1"),
        ]
        for command in commands:
            sim.submit(command)
        assert sim.pending == len(commands)

        sim.tick(1.0)
        assert sim.pending == 0
        assert sim.bodies == ()
        assert sim.running is False
        assert sim.speed == 2.0
