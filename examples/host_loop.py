"""orbwatch Host Loop: drive a simulation the way a render loop would.

Adds random traffic, ticks at a fixed frame rate, and reports collisions
as they are resolved. Commands issued between frames are queued and
applied at the start of the next tick.
"""

import logging
from datetime import datetime, timedelta, timezone

import numpy as np

from orbwatch import Simulation
from orbwatch.core.simulation import SetSpeed

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

FRAME_S = 1 / 60

rng = np.random.default_rng(11)
sim = Simulation()
for _ in range(20):
    sim.add_random_body(rng)

# Fast-forward: one real second is twenty simulation time units
sim.submit(SetSpeed(20.0))

clock = datetime.now(timezone.utc)
for frame in range(60 * 30):
    clock += timedelta(seconds=FRAME_S)
    sim.tick(FRAME_S, now=clock)
    sim.expire_explosions(now=clock)

    if frame % 300 == 0 and sim.predictions:
        worst = sim.predictions[0]
        print(f"t={sim.elapsed:7.1f} | {len(sim.bodies)} bodies | "
              f"next: {worst.body1_id} vs {worst.body2_id} in {worst.time_to_collision:.1f}")

print(f"Finished at t={sim.elapsed:.1f} with {len(sim.bodies)} bodies left")
