"""Orbiting bodies and their orbital parameters.

A body's cached position and velocity are always a projection of its
orbital parameters at local time 0; they are never updated on their own.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import uuid
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from orbwatch.core.propagation import compute_position, compute_velocity
from orbwatch.utils.constants import (
    BODY_COLORS,
    RANDOM_MASS_RANGE,
    RANDOM_MAX_INCLINATION,
    RANDOM_PERIOD_RANGE,
    RANDOM_RADIUS_RANGE,
    RANDOM_SIZE_RANGE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrbitalParams:
    """Description of a body to add to a simulation.

    Attributes:
        name: Display name.
        color: Colour tag, e.g. ``"#60A5FA"``.
        orbit_radius: Orbit radius in simulation units.
        orbit_speed: Angular rate in radians per time unit (any sign).
        orbit_angle: Initial angular phase in radians.
        inclination: Tilt of the orbit in radians.
        mass: Mass in kg (informational).
        size: Visual size in simulation units (informational).
        id: Explicit body id. Generated when omitted.
    """

    name: str
    color: str
    orbit_radius: float
    orbit_speed: float
    orbit_angle: float = 0.0
    inclination: float = 0.0
    mass: float = 1000.0
    size: float = 0.2
    id: str | None = None


@dataclass(frozen=True)
class Body:
    """A body on a circular, inclined orbit around the central body.

    Attributes:
        id: Unique, opaque identifier.
        name: Display name.
        color: Colour tag.
        orbit_radius: Orbit radius in simulation units.
        orbit_speed: Angular rate in radians per time unit.
        orbit_angle: Angular phase at the last committed simulation time.
        inclination: Tilt of the orbit in radians.
        mass: Mass in kg (informational).
        size: Visual size in simulation units (informational).
        position: Cached [x, y, z] at local time 0.
        velocity: Cached [vx, vy, vz] at local time 0.
    """

    id: str
    name: str
    color: str
    orbit_radius: float
    orbit_speed: float
    orbit_angle: float
    inclination: float
    mass: float
    size: float
    position: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3), repr=False, compare=False)
    velocity: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3), repr=False, compare=False)

    @classmethod
    def from_params(cls, params: OrbitalParams) -> Body:
        """Create a body with its cached state computed from the orbital parameters.

        Args:
            params: Orbital parameters of the new body.

        Returns:
            A new Body. A ``sat_<hex>`` id is generated if none was given.
        """
        body_id = params.id if params.id is not None else f"sat_{uuid.uuid4().hex[:12]}"
        body = cls(
            id=body_id,
            name=params.name,
            color=params.color,
            orbit_radius=params.orbit_radius,
            orbit_speed=params.orbit_speed,
            orbit_angle=params.orbit_angle,
            inclination=params.inclination,
            mass=params.mass,
            size=params.size,
        )
        body = dataclasses.replace(
            body,
            position=compute_position(body, 0.0),
            velocity=compute_velocity(body, 0.0),
        )
        logger.debug("Created body %s (%s) at radius %.3f", body.id, body.name, body.orbit_radius)
        return body


def random_body_params(counter: int = 0, rng: np.random.Generator | None = None) -> OrbitalParams:
    """Generate parameters for a random body.

    Names follow the sequence "Satellite A" ... "Satellite Z" and wrap around.

    Args:
        counter: Number of bodies added so far; selects the name letter.
        rng: Random generator. A fresh default generator is used when omitted.

    Returns:
        OrbitalParams with a random radius, period, inclination and phase.
    """
    if rng is None:
        rng = np.random.default_rng()

    period = rng.uniform(*RANDOM_PERIOD_RANGE)
    letter = chr(ord("A") + counter % 26)

    return OrbitalParams(
        name=f"Satellite {letter}",
        color=str(rng.choice(BODY_COLORS)),
        orbit_radius=float(rng.uniform(*RANDOM_RADIUS_RANGE)),
        orbit_speed=float(2 * math.pi / period),
        orbit_angle=float(rng.uniform(0.0, 2 * math.pi)),
        inclination=float(rng.uniform(-RANDOM_MAX_INCLINATION, RANDOM_MAX_INCLINATION)),
        mass=float(rng.uniform(*RANDOM_MASS_RANGE)),
        size=float(rng.uniform(*RANDOM_SIZE_RANGE)),
    )
