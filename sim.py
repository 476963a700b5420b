"""
Random movement for the circles while the engine is in random mode.

State lives in the ParticleStore:
- positions:  Nx2 in viewport points
- velocities: Nx2 points / tick

Step:
- integrate: position += velocity (one fixed tick, no dt)
- bounce: per axis, reflect velocity and clamp at the padded frame bounds

No forces and no particle-to-particle interaction.
"""

from __future__ import annotations
import math
from typing import Callable

import numpy as np

from layout import Rect
from modes import Mode
from params import pget


class RandomMotionSimulator:
    def __init__(self, store, params=None, mode_source: Callable[[], Mode] = lambda: Mode.RANDOM):
        self.store = store
        self.params = params
        self.mode_source = mode_source

        self.min_speed = float(pget(params, "min_speed", 0.3))
        self.max_speed = float(pget(params, "max_speed", 0.8))
        if self.max_speed < self.min_speed:
            self.min_speed, self.max_speed = self.max_speed, self.min_speed

        self.rng = np.random.default_rng(pget(params, "seed", None))
        self.frame_bounds = Rect()

    # ========================= Seeding =========================

    def random_positions(self, count: int) -> np.ndarray:
        fb = self.frame_bounds
        pos = np.empty((int(count), 2), dtype=np.float64)
        pos[:, 0] = self.rng.uniform(fb.min_x, fb.max_x, size=int(count))
        pos[:, 1] = self.rng.uniform(fb.min_y, fb.max_y, size=int(count))
        return pos

    def random_velocities(self, count: int):
        """Returns (velocities Nx2, speeds N): speed in [min,max], angle in [0, 2pi)."""
        n = int(count)
        speeds = self.rng.uniform(self.min_speed, self.max_speed, size=n)
        angles = self.rng.uniform(0.0, 2.0 * math.pi, size=n)
        vel = np.stack([np.cos(angles) * speeds, np.sin(angles) * speeds], axis=1)
        return vel.reshape(n, 2), speeds

    # ========================= Step =========================

    def tick(self) -> bool:
        if self.mode_source() is not Mode.RANDOM:
            return False
        if len(self.store) == 0:
            return False

        pos = np.array(self.store.positions, dtype=np.float64)
        vel = np.array(self.store.velocities, dtype=np.float64)

        # --- Integrate ---
        pos += vel

        # --- Boundaries (bounce) ---
        self._solve_bounds(pos, vel)

        # one batched commit, never tweened by the presentation layer
        self.store.update(positions=pos, velocities=vel, reason="tick", animated=False)
        return True

    def _solve_bounds(self, pos: np.ndarray, vel: np.ndarray) -> None:
        fb = self.frame_bounds

        # X boundaries
        hit_x = (pos[:, 0] <= fb.min_x) | (pos[:, 0] >= fb.max_x)
        vel[hit_x, 0] *= -1.0
        pos[:, 0] = np.clip(pos[:, 0], fb.min_x, fb.max_x)

        # Y boundaries
        hit_y = (pos[:, 1] <= fb.min_y) | (pos[:, 1] >= fb.max_y)
        vel[hit_y, 1] *= -1.0
        pos[:, 1] = np.clip(pos[:, 1], fb.min_y, fb.max_y)
