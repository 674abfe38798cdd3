"""Simulation state, commands and the per-frame clock.

The state is an immutable value. Commands and ticks are pure transitions
``(state, ...) -> state``; :class:`Simulation` owns the current state for a
host loop and serialises commands with ticks.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Union, get_args

import numpy as np

from orbwatch.core.bodies import Body, OrbitalParams, random_body_params
from orbwatch.core.propagation import advance_orbit
from orbwatch.core.resolution import ExplosionEvent, is_imminent, resolve
from orbwatch.core.screening import CollisionPrediction, predict
from orbwatch.utils.constants import DEFAULT_SPEED, EXPLOSION_DURATION_S

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationState:
    """Snapshot of a simulation between ticks.

    Attributes:
        bodies: Live bodies, unique by id.
        predictions: Ranked predictions from the last tick.
        explosions: Explosion events not yet expired by the host.
        elapsed: Simulation time elapsed since start or reset.
        running: Whether ticks advance the simulation.
        speed: Multiplier from real to simulation time.
        selected_ids: Ids of bodies selected by the host.
        body_counter: Bodies added since start or reset; used for naming.
    """

    bodies: tuple[Body, ...] = ()
    predictions: tuple[CollisionPrediction, ...] = ()
    explosions: tuple[ExplosionEvent, ...] = ()
    elapsed: float = 0.0
    running: bool = True
    speed: float = DEFAULT_SPEED
    selected_ids: tuple[str, ...] = ()
    body_counter: int = 0

    def get_body(self, body_id: str) -> Body | None:
        return next((b for b in self.bodies if b.id == body_id), None)


# --- Commands ---


def add_body(state: SimulationState, params: OrbitalParams) -> SimulationState:
    """Add a body with its position computed from the initial orbital parameters.

    Raises:
        ValueError: If a body with the requested id already exists.
    """
    body = Body.from_params(params)
    if state.get_body(body.id) is not None:
        logger.error("Duplicate body id: %s", body.id)
        raise ValueError(f"Duplicate body id: {body.id}")
    return dataclasses.replace(
        state,
        bodies=state.bodies + (body,),
        body_counter=state.body_counter + 1,
    )


def remove_body(state: SimulationState, body_id: str) -> SimulationState:
    """Remove a body. Unknown ids are ignored."""
    if state.get_body(body_id) is None:
        logger.debug("remove_body: no body %s", body_id)
        return state
    return dataclasses.replace(
        state,
        bodies=tuple(b for b in state.bodies if b.id != body_id),
        selected_ids=tuple(i for i in state.selected_ids if i != body_id),
    )


def set_speed(state: SimulationState, multiplier: float) -> SimulationState:
    """Set the real-to-simulation time multiplier.

    Raises:
        ValueError: If the multiplier is not positive.
    """
    if multiplier <= 0:
        logger.error("Invalid speed multiplier: %r", multiplier)
        raise ValueError(f"Speed multiplier must be positive, got {multiplier!r}")
    return dataclasses.replace(state, speed=multiplier)


def set_running(state: SimulationState, running: bool) -> SimulationState:
    return dataclasses.replace(state, running=bool(running))


def toggle_running(state: SimulationState) -> SimulationState:
    return dataclasses.replace(state, running=not state.running)


def reset(state: SimulationState) -> SimulationState:
    """Clear bodies, predictions, explosions, selection and elapsed time.

    The running flag and speed multiplier are kept.
    """
    return SimulationState(running=state.running, speed=state.speed)


def select_bodies(state: SimulationState, body_ids: Iterable[str]) -> SimulationState:
    """Replace the selection. Ids of bodies that do not exist are dropped."""
    live = {b.id for b in state.bodies}
    selected = tuple(dict.fromkeys(i for i in body_ids if i in live))
    return dataclasses.replace(state, selected_ids=selected)


def toggle_selection(state: SimulationState, body_id: str) -> SimulationState:
    if body_id in state.selected_ids:
        return dataclasses.replace(
            state, selected_ids=tuple(i for i in state.selected_ids if i != body_id)
        )
    if state.get_body(body_id) is None:
        logger.debug("toggle_selection: no body %s", body_id)
        return state
    return dataclasses.replace(state, selected_ids=state.selected_ids + (body_id,))


def clear_selection(state: SimulationState) -> SimulationState:
    return dataclasses.replace(state, selected_ids=())


def remove_explosion(state: SimulationState, explosion_id: str) -> SimulationState:
    """Drop an explosion event once the host has finished displaying it."""
    remaining = tuple(e for e in state.explosions if e.id != explosion_id)
    if len(remaining) == len(state.explosions):
        logger.debug("remove_explosion: no explosion %s", explosion_id)
        return state
    return dataclasses.replace(state, explosions=remaining)


def prune_explosions(
    state: SimulationState,
    now: datetime | None = None,
    duration_s: float = EXPLOSION_DURATION_S,
) -> SimulationState:
    """Drop every explosion event older than its display duration."""
    if now is None:
        now = datetime.now(timezone.utc)
    remaining = tuple(e for e in state.explosions if not e.is_expired(now, duration_s))
    if len(remaining) == len(state.explosions):
        return state
    return dataclasses.replace(state, explosions=remaining)


# --- Clock ---


def tick(state: SimulationState, real_delta_time: float, now: datetime | None = None) -> SimulationState:
    """Advance the simulation by one host frame.

    Commits each body's angle for the scaled time step, refreshes cached
    positions, then runs one prediction and resolution pass searching
    forward from the committed angles.

    Args:
        state: State before the frame.
        real_delta_time: Wall-clock seconds since the previous frame.
            Negative values are treated as zero.
        now: Timestamp for explosion events. Defaults to now (UTC).

    Returns:
        The state after the frame; ``state`` itself when paused.
    """
    if not state.running:
        return state

    # Simulation time never runs backwards
    sim_delta = max(0.0, real_delta_time * state.speed)
    bodies = [advance_orbit(b, sim_delta) for b in state.bodies]
    explosions = state.explosions
    predictions: list[CollisionPrediction] = []

    if len(bodies) > 1:
        # Angles are already committed to the new elapsed time
        predictions = predict(bodies, current_time=0.0)
        if any(is_imminent(p) for p in predictions):
            bodies, new_explosions, predictions = resolve(bodies, predictions, now=now)
            explosions = explosions + tuple(new_explosions)

    live = {b.id for b in bodies}
    return dataclasses.replace(
        state,
        bodies=tuple(bodies),
        predictions=tuple(predictions),
        explosions=explosions,
        elapsed=state.elapsed + sim_delta,
        selected_ids=tuple(i for i in state.selected_ids if i in live),
    )


# --- Command objects for queued application ---


@dataclass(frozen=True)
class AddBody:
    params: OrbitalParams

    def apply(self, state: SimulationState) -> SimulationState:
        return add_body(state, self.params)


@dataclass(frozen=True)
class RemoveBody:
    body_id: str

    def apply(self, state: SimulationState) -> SimulationState:
        return remove_body(state, self.body_id)


@dataclass(frozen=True)
class SetSpeed:
    multiplier: float

    def __post_init__(self) -> None:
        if self.multiplier <= 0:
            logger.error("Invalid speed multiplier: %r", self.multiplier)
            raise ValueError(f"Speed multiplier must be positive, got {self.multiplier!r}")

    def apply(self, state: SimulationState) -> SimulationState:
        return set_speed(state, self.multiplier)


@dataclass(frozen=True)
class SetRunning:
    running: bool

    def apply(self, state: SimulationState) -> SimulationState:
        return set_running(state, self.running)


@dataclass(frozen=True)
class ToggleRunning:
    def apply(self, state: SimulationState) -> SimulationState:
        return toggle_running(state)


@dataclass(frozen=True)
class Reset:
    def apply(self, state: SimulationState) -> SimulationState:
        return reset(state)


@dataclass(frozen=True)
class SelectBodies:
    body_ids: tuple[str, ...]

    def apply(self, state: SimulationState) -> SimulationState:
        return select_bodies(state, self.body_ids)


@dataclass(frozen=True)
class ToggleSelection:
    body_id: str

    def apply(self, state: SimulationState) -> SimulationState:
        return toggle_selection(state, self.body_id)


@dataclass(frozen=True)
class ClearSelection:
    def apply(self, state: SimulationState) -> SimulationState:
        return clear_selection(state)


@dataclass(frozen=True)
class RemoveExplosion:
    explosion_id: str

    def apply(self, state: SimulationState) -> SimulationState:
        return remove_explosion(state, self.explosion_id)


Command = Union[
    AddBody, RemoveBody, SetSpeed, SetRunning, ToggleRunning, Reset,
    SelectBodies, ToggleSelection, ClearSelection, RemoveExplosion,
]

_COMMAND_TYPES = get_args(Command)


class Simulation:
    """Owner of the authoritative simulation state for a host loop.

    Commands are applied immediately with :meth:`apply`, or queued with
    :meth:`submit` and applied in order at the start of the next
    :meth:`tick`, before the clock advances. Queued commands are applied
    even while paused.

    Example::

        sim = Simulation()
        sim.add_random_body()
        sim.add_random_body()
        while host_is_running():
            sim.tick(frame_seconds)
            draw(sim.bodies, sim.predictions, sim.explosions)
    """

    def __init__(self, state: SimulationState | None = None) -> None:
        self._state = state if state is not None else SimulationState()
        self._pending: deque[Command] = deque()

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def bodies(self) -> tuple[Body, ...]:
        return self._state.bodies

    @property
    def predictions(self) -> tuple[CollisionPrediction, ...]:
        return self._state.predictions

    @property
    def explosions(self) -> tuple[ExplosionEvent, ...]:
        return self._state.explosions

    @property
    def elapsed(self) -> float:
        return self._state.elapsed

    @property
    def running(self) -> bool:
        return self._state.running

    @property
    def speed(self) -> float:
        return self._state.speed

    @property
    def selected(self) -> tuple[Body, ...]:
        return tuple(b for b in self._state.bodies if b.id in self._state.selected_ids)

    @property
    def pending(self) -> int:
        """Number of queued commands."""
        return len(self._pending)

    def apply(self, command: Command) -> SimulationState:
        """Apply a command right away, outside any tick."""
        _check_command(command)
        self._state = command.apply(self._state)
        logger.debug("Applied %s", type(command).__name__)
        return self._state

    def submit(self, command: Command) -> None:
        """Queue a command for the start of the next tick."""
        _check_command(command)
        self._pending.append(command)

    def tick(self, real_delta_time: float, now: datetime | None = None) -> SimulationState:
        """Apply queued commands, then advance the simulation by one frame.

        Queued commands are applied as one batch. If one of them raises,
        nothing from the batch is committed: the failing command is dropped,
        the others stay queued in order, and the error propagates.
        """
        batch = list(self._pending)
        self._pending.clear()

        state = self._state
        for index, command in enumerate(batch):
            try:
                state = command.apply(state)
            except Exception:
                self._pending.extend(batch[:index] + batch[index + 1:])
                logger.error("Queued %s failed; %d commands kept pending",
                             type(command).__name__, len(self._pending))
                raise

        self._state = tick(state, real_delta_time, now=now)
        return self._state

    def add_body(self, params: OrbitalParams) -> Body:
        """Add a body immediately and return it."""
        self.apply(AddBody(params))
        return self._state.bodies[-1]

    def add_random_body(self, rng: np.random.Generator | None = None) -> Body:
        """Add a randomly generated body immediately and return it."""
        return self.add_body(random_body_params(self._state.body_counter, rng))

    def expire_explosions(self, now: datetime | None = None, duration_s: float = EXPLOSION_DURATION_S) -> None:
        """Drop explosion events that have outlived their display duration."""
        self._state = prune_explosions(self._state, now=now, duration_s=duration_s)


def _check_command(command: object) -> None:
    if not isinstance(command, _COMMAND_TYPES):
        logger.error("Unknown command: %r", command)
        raise TypeError(f"Unknown command: {command!r}")
