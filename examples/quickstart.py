"""orbwatch Quickstart: add two bodies and look for close approaches."""

import math

from orbwatch import OrbitalParams, Simulation

sim = Simulation()

# Same orbit, half a revolution apart; the chaser is faster
sim.add_body(OrbitalParams(name="Lead", color="#60A5FA", orbit_radius=8.0, orbit_speed=0.1))
sim.add_body(OrbitalParams(
    name="Chaser", color="#F87171", orbit_radius=8.0,
    orbit_speed=0.15, orbit_angle=math.pi + 0.001,
))

sim.tick(1.0)

for body in sim.bodies:
    x, y, z = body.position
    print(f"{body.name:<8} ({x:6.2f}, {y:6.2f}, {z:6.2f})")

for p in sim.predictions:
    print(f"T-{p.time_to_collision:.1f} | miss {p.miss_distance:.3f} | {p.probability * 100:.0f}% risk")
