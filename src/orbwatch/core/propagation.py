"""Kinematic propagation of bodies on circular, inclined orbits."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np

logger = logging.getLogger(__name__)
from numpy.typing import ArrayLike, NDArray

from orbwatch.utils.constants import GM_NORMALISED

if TYPE_CHECKING:
    from orbwatch.core.bodies import Body


@dataclass
class StateVector:
    """Position and velocity of a body at a given time.

    Attributes:
        position: [x, y, z] position in simulation units.
        velocity: [vx, vy, vz] velocity in simulation units per time unit.
        time: Local time of this state, relative to the body's committed angle.
    """

    position: NDArray[np.float64]  # shape (3,)
    velocity: NDArray[np.float64]  # shape (3,)
    time: float


def compute_position(body: Body, t: float) -> NDArray[np.float64]:
    """Position of a body ``t`` time units after its committed angle.

    The circular path is tilted by the inclination about the y axis only,
    so the y component does not depend on inclination.

    Args:
        body: Body with orbital parameters.
        t: Local time offset.

    Returns:
        Array of shape (3,) with [x, y, z].
    """
    theta = body.orbit_angle + body.orbit_speed * t
    r = body.orbit_radius
    return np.array(
        [
            r * np.cos(theta) * np.cos(body.inclination),
            r * np.sin(theta),
            r * np.cos(theta) * np.sin(body.inclination),
        ],
        dtype=np.float64,
    )


def compute_velocity(body: Body, t: float) -> NDArray[np.float64]:
    """Analytic time derivative of :func:`compute_position`.

    Args:
        body: Body with orbital parameters.
        t: Local time offset.

    Returns:
        Array of shape (3,) with [vx, vy, vz].
    """
    theta = body.orbit_angle + body.orbit_speed * t
    rw = body.orbit_radius * body.orbit_speed
    return np.array(
        [
            -rw * np.sin(theta) * np.cos(body.inclination),
            rw * np.cos(theta),
            -rw * np.sin(theta) * np.sin(body.inclination),
        ],
        dtype=np.float64,
    )


def propagate(body: Body, times: Sequence[float]) -> list[StateVector]:
    """Propagate a single body to multiple local times.

    Args:
        body: Body to propagate.
        times: Local time offsets.

    Returns:
        List of StateVector objects, one per requested time.
    """
    result = [
        StateVector(
            position=compute_position(body, t),
            velocity=compute_velocity(body, t),
            time=t,
        )
        for t in times
    ]
    logger.debug("Propagated body %s to %d times", body.id, len(result))
    return result


def propagate_batch(bodies: Sequence[Body], times: ArrayLike) -> NDArray[np.float64]:
    """Propagate many bodies over a shared time grid in one vectorised pass.

    Args:
        bodies: Bodies to propagate.
        times: 1-D array of local time offsets.

    Returns:
        Array of shape (n_bodies, n_times, 3) with positions.
    """
    t = np.asarray(times, dtype=np.float64)
    if not bodies:
        return np.empty((0, t.size, 3), dtype=np.float64)

    radius = np.array([b.orbit_radius for b in bodies], dtype=np.float64)[:, None]
    speed = np.array([b.orbit_speed for b in bodies], dtype=np.float64)[:, None]
    angle = np.array([b.orbit_angle for b in bodies], dtype=np.float64)[:, None]
    incl = np.array([b.inclination for b in bodies], dtype=np.float64)[:, None]

    # theta shape: (n_bodies, n_times)
    theta = angle + speed * t[None, :]
    cos_theta = np.cos(theta)

    result = np.empty((len(bodies), t.size, 3), dtype=np.float64)
    result[:, :, 0] = radius * cos_theta * np.cos(incl)
    result[:, :, 1] = radius * np.sin(theta)
    result[:, :, 2] = radius * cos_theta * np.sin(incl)
    return result


def advance_orbit(body: Body, dt: float) -> Body:
    """Commit ``dt`` of motion into the body's angle and refresh its cached state.

    Args:
        body: Body to advance.
        dt: Simulation time elapsed since the last commit.

    Returns:
        A new Body whose position and velocity are evaluated at local time 0.
    """
    advanced = dataclasses.replace(body, orbit_angle=body.orbit_angle + body.orbit_speed * dt)
    return dataclasses.replace(
        advanced,
        position=compute_position(advanced, 0.0),
        velocity=compute_velocity(advanced, 0.0),
    )


def distance(p1: ArrayLike, p2: ArrayLike) -> float:
    """Euclidean distance between two points."""
    return float(np.linalg.norm(np.asarray(p1, dtype=np.float64) - np.asarray(p2, dtype=np.float64)))


def relative_velocity(v1: ArrayLike, v2: ArrayLike) -> float:
    """Magnitude of the difference between two velocity vectors."""
    return float(np.linalg.norm(np.asarray(v1, dtype=np.float64) - np.asarray(v2, dtype=np.float64)))


def orbital_elements_to_cartesian(
    semi_major_axis: float,
    eccentricity: float,
    inclination: float,
    raan: float,
    arg_periapsis: float,
    true_anomaly: float,
) -> NDArray[np.float64]:
    """Convert orbital elements to an inertial position, assuming a circular orbit.

    Eccentricity is accepted for signature completeness but ignored: the
    radius is always the semi-major axis.

    Args:
        semi_major_axis: Orbit radius.
        eccentricity: Ignored.
        inclination: Inclination in radians.
        raan: Right ascension of the ascending node in radians.
        arg_periapsis: Argument of periapsis in radians.
        true_anomaly: True anomaly in radians.

    Returns:
        Array of shape (3,) with [x, y, z].
    """
    r = semi_major_axis
    x_orb = r * np.cos(true_anomaly)
    y_orb = r * np.sin(true_anomaly)

    cos_i, sin_i = np.cos(inclination), np.sin(inclination)
    cos_o, sin_o = np.cos(raan), np.sin(raan)
    cos_w, sin_w = np.cos(arg_periapsis), np.sin(arg_periapsis)

    # Perifocal -> inertial rotation (z_orb is always 0)
    x = (cos_o * cos_w - sin_o * sin_w * cos_i) * x_orb + (-cos_o * sin_w - sin_o * cos_w * cos_i) * y_orb
    y = (sin_o * cos_w + cos_o * sin_w * cos_i) * x_orb + (-sin_o * sin_w + cos_o * cos_w * cos_i) * y_orb
    z = (sin_w * sin_i) * x_orb + (cos_w * sin_i) * y_orb
    return np.array([x, y, z], dtype=np.float64)


def orbital_period(semi_major_axis: float, mu: float = GM_NORMALISED) -> float:
    """Orbital period from Kepler's third law, T = 2π·sqrt(a³/μ)."""
    return float(2 * np.pi * np.sqrt(semi_major_axis ** 3 / mu))
