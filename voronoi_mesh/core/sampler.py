"""
Weighted point sampling and duplicate-free allocation.

The sampler turns image density into a shuffled candidate pool in which denser
pixels appear more often. The allocator then draws sites from the head of the
pool, discarding any whose quantized key has already been used.
"""

from typing import Iterable, Set, Tuple

import numpy as np
import structlog

from .errors import PoolExhausted
from .geometry import Point2D
from .modes import Mode
from .raster import RasterImage, round_half_up

logger = structlog.get_logger()

QuantizedKey = Tuple[int, int]


def repeat_counts(density: np.ndarray, weighting: int) -> np.ndarray:
    """
    Map density in [0, 1] onto integer repeat counts in [1, weighting].

    Density 1 gives ``weighting`` copies and density 0 a single copy, with
    linear interpolation in between rounded to the nearest integer.
    A non-positive weighting means uniform sampling (one copy each).
    """
    density = np.asarray(density, dtype=np.float64)
    if weighting <= 0:
        return np.ones(density.shape, dtype=np.int64)
    counts = round_half_up(1 + density * (weighting - 1))
    return np.clip(counts, 1, weighting)


def build_candidate_pool(image: RasterImage, mode: Mode, weighting: int,
                         rng: np.random.Generator) -> np.ndarray:
    """
    Build the shuffled candidate pool for an image.

    Args:
        image: Pixel source
        mode: Density mode deciding which pixels are oversampled
        weighting: Maximum repeat count per pixel (<= 0 for uniform)
        rng: Generator used for the shuffle

    Returns:
        (n, 2) float array of pixel coordinates in draw order
    """
    rows, cols = np.indices((image.height, image.width))
    coords = np.column_stack([cols.ravel(), rows.ravel()]).astype(np.float64)

    if weighting > 0:
        density = mode.density(image.brightness_map).ravel()
        counts = repeat_counts(density, weighting)
        pool = np.repeat(coords, counts, axis=0)
    else:
        pool = coords

    rng.shuffle(pool, axis=0)

    logger.info("Candidate pool built",
                pixels=len(coords), candidates=len(pool), weighting=weighting, mode=mode.value)
    return pool


class PointAllocator:
    """
    Draws unique points from the head of a candidate pool.

    Rejected duplicates are dropped for good, and the pool is never refilled,
    so exhaustion is terminal.
    """

    def __init__(self, pool: np.ndarray, precision: int = 2):
        self._pool = pool
        self._cursor = 0
        self._scale = 10 ** precision
        self._used: Set[QuantizedKey] = set()

    @property
    def remaining(self) -> int:
        """Undrawn entries left in the pool (duplicates included)."""
        return len(self._pool) - self._cursor

    @property
    def used_count(self) -> int:
        return len(self._used)

    def key(self, x: float, y: float) -> QuantizedKey:
        """Fixed-point key of a coordinate at the allocator's precision."""
        return (int(round_half_up(x * self._scale)), int(round_half_up(y * self._scale)))

    def is_used(self, x: float, y: float) -> bool:
        return self.key(x, y) in self._used

    def mark_used(self, points: Iterable[Point2D]) -> None:
        """Reserve the keys of points that entered the sequence from outside."""
        for p in points:
            self._used.add(self.key(p[0], p[1]))

    def pop(self) -> Point2D:
        """
        Remove and return the next point whose key is unused.

        Raises:
            PoolExhausted: if the pool empties before an unused key is found
        """
        while self._cursor < len(self._pool):
            x, y = self._pool[self._cursor]
            self._cursor += 1
            key = self.key(x, y)
            if key in self._used:
                continue
            self._used.add(key)
            return Point2D(float(x), float(y))

        raise PoolExhausted(
            f"Candidate pool exhausted after {self.used_count} unique points"
        )
