"""Collision prediction: pairwise lookahead search for close approaches."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from orbwatch.core.bodies import Body
from orbwatch.core.propagation import compute_velocity, propagate_batch, relative_velocity
from orbwatch.core.risk import score_approach
from orbwatch.utils.constants import (
    DIVERGENCE_RATIO,
    EARLY_EXIT_TIME,
    MIN_REPORTED_PROBABILITY,
    PREDICTION_HORIZON,
    PREDICTION_STEP,
    SAFETY_THRESHOLD,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollisionPrediction:
    """A predicted close approach between two bodies.

    Attributes:
        body1_id: Id of the first body of the pair (earlier in input order).
        body2_id: Id of the second body of the pair.
        time_to_collision: Time from the search origin to closest approach.
        collision_point: Midpoint of the two bodies at closest approach.
        probability: Heuristic risk score in [0, 1].
        miss_distance: Separation at closest approach.
        relative_velocity: Relative speed at closest approach.
    """

    body1_id: str
    body2_id: str
    time_to_collision: float
    collision_point: NDArray[np.float64] = field(compare=False)
    probability: float
    miss_distance: float
    relative_velocity: float

    @property
    def severity(self) -> float:
        """Ranking key: risk weighted towards sooner approaches."""
        return self.probability / (self.time_to_collision + 1)


def _lookahead_grid(horizon: float, step: float) -> NDArray[np.float64]:
    """Time offsets 0, step, 2·step, ... short of the horizon."""
    n_steps = max(1, int(round(horizon / step)))
    return np.arange(n_steps, dtype=np.float64) * step


def _closest_approach(
    pos1: NDArray[np.float64],
    pos2: NDArray[np.float64],
    offsets: NDArray[np.float64],
) -> tuple[int, float]:
    """Find the closest approach of two sampled trajectories.

    The scan stops at the first sample past EARLY_EXIT_TIME whose separation
    exceeds DIVERGENCE_RATIO times the best separation seen so far.

    Args:
        pos1: Positions of the first body, shape (n_times, 3).
        pos2: Positions of the second body, shape (n_times, 3).
        offsets: Time offsets of the samples, shape (n_times,).

    Returns:
        Tuple of (sample index of closest approach, minimum separation).
    """
    separation = np.linalg.norm(pos1 - pos2, axis=1)
    best_so_far = np.minimum.accumulate(separation)
    diverging = (offsets > EARLY_EXIT_TIME) & (separation > DIVERGENCE_RATIO * best_so_far)

    if diverging.any():
        # The diverging sample itself is still scanned
        separation = separation[: int(np.argmax(diverging)) + 1]

    # argmin keeps the first occurrence of the minimum
    best = int(np.argmin(separation))
    return best, float(separation[best])


def predict(
    bodies: Sequence[Body],
    current_time: float = 0.0,
    threshold: float = SAFETY_THRESHOLD,
    horizon: float = PREDICTION_HORIZON,
    step: float = PREDICTION_STEP,
    min_probability: float = MIN_REPORTED_PROBABILITY,
) -> list[CollisionPrediction]:
    """Predict close approaches between every pair of bodies.

    Each pair is sampled over a fixed lookahead grid starting at
    ``current_time``. Pairs whose closest approach falls under ``threshold``
    are scored with :func:`orbwatch.core.risk.score_approach`, and those
    scoring above ``min_probability`` are reported.

    Args:
        bodies: Snapshot of the bodies to screen. Not modified.
        current_time: Local time at which the search starts.
        threshold: Separation under which an approach is reported.
        horizon: How far ahead to search.
        step: Time step of the lookahead grid.
        min_probability: Risk scores at or below this are dropped.

    Returns:
        List of CollisionPrediction objects, most severe first. Ties keep
        the order in which pairs were encountered.
    """
    bodies = list(bodies)
    if len(bodies) < 2:
        return []

    offsets = _lookahead_grid(horizon, step)
    # positions shape: (n_bodies, n_times, 3)
    positions = propagate_batch(bodies, current_time + offsets)

    logger.debug("predict: %d bodies, %d pairs, %d samples per pair",
                 len(bodies), len(bodies) * (len(bodies) - 1) // 2, offsets.size)

    predictions: list[CollisionPrediction] = []

    for i in range(len(bodies)):
        for j in range(i + 1, len(bodies)):
            best, miss_distance = _closest_approach(positions[i], positions[j], offsets)
            time_to_collision = float(offsets[best])

            if not (miss_distance < threshold and time_to_collision >= 0):
                continue

            body1, body2 = bodies[i], bodies[j]
            approach_time = current_time + time_to_collision
            rel_vel = relative_velocity(
                compute_velocity(body1, approach_time),
                compute_velocity(body2, approach_time),
            )
            risk = score_approach(miss_distance, rel_vel, time_to_collision, threshold=threshold)

            if risk.probability > min_probability:
                predictions.append(
                    CollisionPrediction(
                        body1_id=body1.id,
                        body2_id=body2.id,
                        time_to_collision=time_to_collision,
                        collision_point=(positions[i, best] + positions[j, best]) / 2,
                        probability=risk.probability,
                        miss_distance=miss_distance,
                        relative_velocity=rel_vel,
                    )
                )

    # list.sort is stable, also with reverse=True
    predictions.sort(key=lambda p: p.severity, reverse=True)

    if predictions:
        logger.debug("predict: %d close approaches, top score %.3f",
                     len(predictions), predictions[0].probability)
    return predictions
