"""
Brightness-weighted centroids of Voronoi regions.

One Lloyd step with pixel density as mass: each region's geometric centroid
is shifted by the mean density-weighted displacement of the pixels it covers.
Each region is scanned as an independent task on the worker pool.
"""

from typing import List, Optional, Sequence

import numpy as np
import shapely
import structlog
from shapely.geometry import Polygon

from ..utils.worker_pool import BoundedWorkerPool
from .geometry import ImageBounds, Point2D, Region
from .raster import round_half_up

logger = structlog.get_logger()


def scan_weighted_centroid(poly: Polygon, density_map: np.ndarray,
                           bounds: ImageBounds) -> Optional[Point2D]:
    """
    Scan the pixels of one region and return its weighted centroid.

    Args:
        poly: Closed region polygon
        density_map: (height, width) per-pixel density in [0, 1]
        bounds: Image rectangle

    Returns:
        Weighted centroid, or None when the geometric centroid falls outside
        the image (the region is excluded, this is not an error)
    """
    cent = poly.centroid
    if not bounds.contains(cent.x, cent.y):
        return None

    min_x, min_y, max_x, max_y = poly.bounds
    xs = np.arange(int(round_half_up(min_x)), int(round_half_up(max_x)))
    ys = np.arange(int(round_half_up(min_y)), int(round_half_up(max_y)))
    if len(xs) == 0 or len(ys) == 0:
        return Point2D(cent.x, cent.y)

    gx, gy = np.meshgrid(xs, ys)
    gx, gy = gx.ravel(), gy.ravel()
    inside = shapely.intersects_xy(poly, gx, gy)

    # Clipped regions never extend past the image, but sites set from outside may
    height, width = density_map.shape
    inside &= (gx >= 0) & (gx < width) & (gy >= 0) & (gy < height)

    count = int(np.count_nonzero(inside))
    if count == 0:
        return Point2D(cent.x, cent.y)

    px, py = gx[inside], gy[inside]
    weights = density_map[py, px]
    sum_x = float(np.sum(weights * (px - cent.x)))
    sum_y = float(np.sum(weights * (py - cent.y)))
    return Point2D(cent.x + sum_x / count, cent.y + sum_y / count)


class CentroidEvaluator:
    """
    Dispatches per-region scans to a bounded worker pool.

    ``dispatch="serial"`` submits one region and waits for it before the
    next, so only one scan is ever in flight. ``dispatch="batch"`` submits
    every region first and then collects them in region order.
    """

    def __init__(self, pool: BoundedWorkerPool, density_map: np.ndarray,
                 bounds: ImageBounds, dispatch: str = "serial"):
        if dispatch not in ("serial", "batch"):
            raise ValueError(f"Unknown dispatch mode: {dispatch}")
        self.pool = pool
        self.density_map = density_map
        self.bounds = bounds
        self.dispatch = dispatch

    def _collect(self, index: int, future) -> Optional[Point2D]:
        try:
            return future.result()
        except Exception as e:
            logger.warning("Centroid scan failed", region=index, error=str(e))
            return None

    def weighted_centroids(self, regions: Sequence[Region]) -> List[Point2D]:
        """Weighted centroids of all non-empty, in-bounds regions, in region order."""
        out = []
        if self.dispatch == "batch":
            futures = [
                (i, self.pool.submit(scan_weighted_centroid, r.polygon(), self.density_map, self.bounds))
                for i, r in enumerate(regions) if not r.is_empty()
            ]
            for i, future in futures:
                point = self._collect(i, future)
                if point is not None:
                    out.append(point)
        else:
            for i, r in enumerate(regions):
                if r.is_empty():
                    continue
                future = self.pool.submit(scan_weighted_centroid, r.polygon(), self.density_map, self.bounds)
                point = self._collect(i, future)
                if point is not None:
                    out.append(point)

        logger.debug("Weighted centroids evaluated", regions=len(regions),
                     centroids=len(out), dispatch=self.dispatch)
        return out
