from __future__ import annotations

import logging
from dataclasses import dataclass

from orbwatch.utils.constants import (
    DISTANCE_WEIGHT,
    SAFETY_THRESHOLD,
    TIME_NORMALISER,
    TIME_WEIGHT,
    VELOCITY_NORMALISER,
    VELOCITY_WEIGHT,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskFactors:
    distance_factor: float   # 0-1, closer = higher
    velocity_factor: float   # 0-1, faster = higher
    time_factor: float       # 0-1, sooner = higher
    probability: float       # weighted sum, clamped to 1


def score_approach(
    miss_distance: float,
    relative_velocity: float,
    time_to_approach: float,
    threshold: float = SAFETY_THRESHOLD,
) -> RiskFactors:
    """
    Score the collision risk of a predicted close approach.

    The score is a heuristic in [0, 1], not a physical probability.

    Args:
        miss_distance: Minimum separation found by the lookahead search
        relative_velocity: Relative speed of the pair at closest approach
        time_to_approach: Time until closest approach
        threshold: Safety threshold the miss distance is measured against

    Returns:
        RiskFactors with the individual factors and the combined score
    """
    distance_factor = _calculate_distance_factor(miss_distance, threshold)
    velocity_factor = _calculate_velocity_factor(relative_velocity)
    time_factor = _calculate_time_factor(time_to_approach)

    probability = min(
        1.0,
        distance_factor * DISTANCE_WEIGHT
        + velocity_factor * VELOCITY_WEIGHT
        + time_factor * TIME_WEIGHT,
    )

    logger.debug(
        "Risk score=%.3f (distance=%.3f, velocity=%.3f, time=%.3f)",
        probability, distance_factor, velocity_factor, time_factor,
    )
    return RiskFactors(
        distance_factor=distance_factor,
        velocity_factor=velocity_factor,
        time_factor=time_factor,
        probability=probability,
    )


def _calculate_distance_factor(miss_distance: float, threshold: float) -> float:
    """Linear ramp from 1 at zero separation to 0 at the threshold."""
    return max(0.0, (threshold - miss_distance) / threshold)


def _calculate_velocity_factor(relative_velocity: float) -> float:
    """
    Higher relative speed = more dangerous approach.
    Saturates at VELOCITY_NORMALISER.
    """
    return min(1.0, relative_velocity / VELOCITY_NORMALISER)


def _calculate_time_factor(time_to_approach: float) -> float:
    """Sooner approaches score higher; zero beyond TIME_NORMALISER."""
    return max(0.0, 1.0 - time_to_approach / TIME_NORMALISER)
