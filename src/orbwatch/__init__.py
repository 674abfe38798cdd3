"""
orbwatch: orbit propagation and close-approach prediction for Python.

Simulates bodies on circular, inclined orbits around a central body,
predicts close approaches between every pair, and resolves imminent
collisions into removals and explosion events. Built to be driven one
step per frame by a host loop it does not own.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from orbwatch.core.bodies import Body, OrbitalParams, random_body_params
from orbwatch.core.propagation import compute_position, compute_velocity, propagate, propagate_batch, StateVector
from orbwatch.core.risk import RiskFactors, score_approach
from orbwatch.core.screening import predict, CollisionPrediction
from orbwatch.core.resolution import resolve, is_imminent, ExplosionEvent
from orbwatch.core.simulation import Simulation, SimulationState, tick

__all__ = [
    "__version__",
    "Body",
    "OrbitalParams",
    "random_body_params",
    "compute_position",
    "compute_velocity",
    "propagate",
    "propagate_batch",
    "StateVector",
    "RiskFactors",
    "score_approach",
    "predict",
    "CollisionPrediction",
    "resolve",
    "is_imminent",
    "ExplosionEvent",
    "Simulation",
    "SimulationState",
    "tick",
]
