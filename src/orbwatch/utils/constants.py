from __future__ import annotations

"""Thresholds and tunables for orbit propagation and collision screening.

All distances and times are in normalised simulation units unless noted.
"""

# --- Central body ---
CENTRAL_BODY_RADIUS: float = 5.0
"""Radius of the central body in simulation units."""

GM_NORMALISED: float = 1.0
"""Normalised gravitational parameter used for orbital periods."""

# --- Collision screening ---
SAFETY_THRESHOLD: float = 0.5
"""Minimum safe separation; closer approaches are reported."""

PREDICTION_HORIZON: float = 100.0
"""How far ahead each pair is searched, in time units."""

PREDICTION_STEP: float = 0.2
"""Time step of the lookahead grid."""

EARLY_EXIT_TIME: float = 10.0
"""Lookahead time after which diverging pairs stop being scanned."""

DIVERGENCE_RATIO: float = 1.5
"""Separation / best-separation ratio at which a pair counts as diverging."""

MIN_REPORTED_PROBABILITY: float = 0.1
"""Predictions at or below this risk score are dropped."""

# --- Risk score ---
VELOCITY_NORMALISER: float = 0.1
"""Relative speed at which the velocity factor saturates."""

TIME_NORMALISER: float = 100.0
"""Time to approach at which the time factor reaches zero."""

DISTANCE_WEIGHT: float = 0.6
"""Weight of the distance factor in the risk score."""

VELOCITY_WEIGHT: float = 0.3
"""Weight of the velocity factor in the risk score."""

TIME_WEIGHT: float = 0.1
"""Weight of the time factor in the risk score."""

# --- Resolution ---
IMMINENT_TIME: float = 1.5
"""Predictions at or under this time to collision are imminent."""

IMMINENT_PROBABILITY: float = 0.5
"""Predictions at or above this risk score are imminent."""

EXPLOSION_DURATION_S: float = 1.8
"""Display lifetime of an explosion event in wall-clock seconds."""

# --- Clock ---
DEFAULT_SPEED: float = 1.0
"""Initial simulation speed multiplier."""

# --- Random body generation ---
RANDOM_RADIUS_RANGE: tuple[float, float] = (7.0, 12.0)
"""Orbit radius range for generated bodies."""

RANDOM_PERIOD_RANGE: tuple[float, float] = (50.0, 150.0)
"""Orbital period range for generated bodies, in time units."""

RANDOM_MAX_INCLINATION: float = 0.7853981633974483
"""Largest absolute inclination for generated bodies (π/4)."""

RANDOM_MASS_RANGE: tuple[float, float] = (500.0, 2500.0)
"""Mass range for generated bodies in kg (informational)."""

RANDOM_SIZE_RANGE: tuple[float, float] = (0.1, 0.3)
"""Size range for generated bodies in simulation units."""

BODY_COLORS: tuple[str, ...] = ("#60A5FA", "#A78BFA", "#34D399", "#FBBF24", "#F87171")
"""Palette for generated bodies."""
