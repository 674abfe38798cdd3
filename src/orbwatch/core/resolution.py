"""Collision resolution: turn imminent predictions into removals and explosions."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from orbwatch.core.bodies import Body
from orbwatch.core.screening import CollisionPrediction
from orbwatch.utils.constants import EXPLOSION_DURATION_S, IMMINENT_PROBABILITY, IMMINENT_TIME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExplosionEvent:
    """A transient visual cue left by a resolved collision.

    Attributes:
        id: Unique event id.
        position: Where the collision happened.
        color: Colour of the first body of the colliding pair.
        timestamp: Creation time (UTC).
    """

    id: str
    position: NDArray[np.float64] = field(compare=False)
    color: str
    timestamp: datetime

    def is_expired(self, now: datetime, duration_s: float = EXPLOSION_DURATION_S) -> bool:
        """Whether the event has outlived its display duration at ``now``."""
        return now - self.timestamp >= timedelta(seconds=duration_s)


def is_imminent(
    prediction: CollisionPrediction,
    max_time: float = IMMINENT_TIME,
    min_probability: float = IMMINENT_PROBABILITY,
) -> bool:
    """Whether a prediction is close and likely enough to resolve now."""
    return prediction.time_to_collision <= max_time and prediction.probability >= min_probability


def resolve(
    bodies: Sequence[Body],
    predictions: Sequence[CollisionPrediction],
    now: datetime | None = None,
    max_time: float = IMMINENT_TIME,
    min_probability: float = IMMINENT_PROBABILITY,
) -> tuple[list[Body], list[ExplosionEvent], list[CollisionPrediction]]:
    """Resolve imminent collisions in one pass.

    Every imminent prediction whose two bodies are both still present
    produces one explosion at the collision point, coloured after the
    first body, and removes both bodies. A prediction that references a
    body already removed earlier in the same batch is skipped.

    Args:
        bodies: Current bodies. Not modified.
        predictions: Ranked predictions from :func:`orbwatch.core.screening.predict`.
        now: Timestamp for new explosion events. Defaults to now (UTC).
        max_time: Largest time to collision considered imminent.
        min_probability: Smallest risk score considered imminent.

    Returns:
        Tuple of:
            - surviving bodies, in input order
            - new explosion events
            - the prediction list after resolution, which is always empty
    """
    if now is None:
        now = datetime.now(timezone.utc)

    by_id = {body.id: body for body in bodies}
    removed: set[str] = set()
    explosions: list[ExplosionEvent] = []

    for prediction in predictions:
        if not is_imminent(prediction, max_time=max_time, min_probability=min_probability):
            continue

        first = by_id.get(prediction.body1_id)
        second = by_id.get(prediction.body2_id)
        if first is None or second is None:
            logger.debug("resolve: skipping %s/%s, body not found",
                         prediction.body1_id, prediction.body2_id)
            continue
        if first.id in removed or second.id in removed:
            continue

        explosions.append(
            ExplosionEvent(
                id=f"explosion_{uuid.uuid4().hex[:12]}",
                position=np.array(prediction.collision_point, dtype=np.float64),
                color=first.color,
                timestamp=now,
            )
        )
        removed.update((first.id, second.id))
        logger.info("Collision between %s and %s (t=%.2f, score=%.2f)",
                    first.name, second.name, prediction.time_to_collision, prediction.probability)

    survivors = [body for body in bodies if body.id not in removed]
    return survivors, explosions, []
