# utils.py
import numpy as np
import math
import random
import time
from typing import Optional


class RandomSource:
    """
    Injectable source of random integers used by maze generation and nub placement.
    Both consume draws in call order, so a fixed seed gives a fixed box.
    """

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = _time_seed()
        self.seed = seed
        self._rng = random.Random(seed)

    def random_int(self, limit: int) -> int:
        """Returns an integer in [0, limit), or 0 when limit is not positive."""
        if limit <= 0:
            return 0
        return self._rng.randrange(limit)


class LCGRandomSource(RandomSource):
    """Linear congruential source matching the classic 15-bit rand() sequence."""

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = _time_seed()
        self.seed = seed
        self._state = seed & 0xFFFFFFFF

    def random_int(self, limit: int) -> int:
        if limit <= 0:
            return 0
        self._state = (self._state * 1103515245 + 12345) & 0xFFFFFFFF
        return ((self._state // 65536) % 32768) % limit


def _time_seed() -> int:
    return (int(time.time()) ^ time.perf_counter_ns()) & 0xFFFFFFFF


def normalise_nubs(helix: int, nubs: int) -> int:
    """
    Adjusts the nub count so that the helix divides evenly between nubs.
    With a helix, nubs must be 1, helix/2 or helix.
    """
    if nubs < 1:
        raise ValueError(f"Nub count must be positive, got {nubs}.")
    if helix and 1 < nubs < helix:
        if helix % 2 == 0 and nubs <= helix // 2:
            nubs = helix // 2
        else:
            nubs = helix
    if helix and nubs > helix:
        nubs = helix
    return nubs


def rotate_points_z(points: np.ndarray, angle_degrees: float) -> np.ndarray:
    """Rotates an (N, 3) array counter-clockwise about the Z axis."""
    theta = math.radians(angle_degrees)
    c, s = math.cos(theta), math.sin(theta)
    rotation = np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])
    return np.asarray(points, dtype=float) @ rotation.T
