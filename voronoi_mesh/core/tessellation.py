"""Voronoi tessellation of generating points, clipped to the image."""

from typing import List, Sequence

import numpy as np
import structlog
from scipy.spatial import QhullError, Voronoi
from shapely.geometry import MultiPoint, Polygon, box
from shapely.geometry.polygon import orient

from .errors import TessellationFailure
from .geometry import ImageBounds, Point2D, Region

logger = structlog.get_logger()

MERGE_TOLERANCE = 1e-9


def get_guard_points(bounds: ImageBounds) -> np.ndarray:
    """
    Far-field sites that make every real cell finite.

    Eight points on a square three image diagonals out from the centre. Any
    image pixel is closer to some real site (at most one diagonal away) than
    to a guard, so guards never claim part of the image.
    """
    cx, cy = bounds.width / 2.0, bounds.height / 2.0
    reach = 3.0 * max(np.hypot(bounds.width, bounds.height), 1.0)
    offsets = [(-1, -1), (0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0)]
    return np.array([[cx + dx * reach, cy + dy * reach] for dx, dy in offsets])


def _clean_ring(coords: np.ndarray) -> np.ndarray:
    """Drop the closing vertex and merge consecutive near-duplicates."""
    ring = coords[:-1] if len(coords) > 1 and np.allclose(coords[0], coords[-1]) else coords
    kept = []
    for v in ring:
        if kept and np.hypot(*(v - kept[-1])) < MERGE_TOLERANCE:
            continue
        kept.append(v)
    if len(kept) > 1 and np.hypot(*(kept[0] - kept[-1])) < MERGE_TOLERANCE:
        kept.pop()
    return np.array(kept, dtype=np.float64).reshape(-1, 2)


def clip_cell(vertices: np.ndarray, frame: Polygon) -> np.ndarray:
    """
    Clip a convex cell to the image frame.

    Returns:
        Counter-clockwise open ring, or an empty (0, 2) array if nothing is left
    """
    cell = MultiPoint([tuple(v) for v in vertices]).convex_hull
    clipped = cell.intersection(frame)
    if clipped.is_empty or clipped.geom_type != "Polygon" or clipped.area <= 0:
        return np.empty((0, 2))
    clipped = orient(clipped, sign=1.0)
    ring = _clean_ring(np.asarray(clipped.exterior.coords))
    min_x, min_y, max_x, max_y = frame.bounds
    ring[:, 0] = np.clip(ring[:, 0], min_x, max_x)
    ring[:, 1] = np.clip(ring[:, 1], min_y, max_y)
    return ring


def compute_regions(sites: Sequence[Point2D], bounds: ImageBounds,
                    precision: int = 2) -> List[Region]:
    """
    Build one clipped Voronoi region per generating point.

    Args:
        sites: Generating points in pixel space
        bounds: Image rectangle used for clipping
        precision: Decimal places at which two sites count as coincident

    Returns:
        Regions in the same order as ``sites``

    Raises:
        TessellationFailure: on coincident sites or a Qhull error
    """
    points = np.asarray(sites, dtype=np.float64).reshape(-1, 2)
    n_sites = len(points)
    if n_sites == 0:
        return []

    scale = 10 ** precision
    keys = np.floor(points * scale + 0.5)
    if len(np.unique(keys, axis=0)) != n_sites:
        raise TessellationFailure("Coincident generating points")

    guards = get_guard_points(bounds)
    try:
        vor = Voronoi(np.vstack([points, guards]))
    except (QhullError, ValueError) as e:
        raise TessellationFailure(str(e)) from e

    frame = box(0, 0, bounds.width, bounds.height)
    regions = []
    for i in range(n_sites):
        site = Point2D(float(points[i][0]), float(points[i][1]))
        region_idx = vor.point_region[i]
        region_vertices = vor.regions[region_idx] if region_idx >= 0 else []

        if not region_vertices or -1 in region_vertices or len(region_vertices) < 3:
            regions.append(Region(site=site))
            continue

        ring = clip_cell(vor.vertices[region_vertices], frame)
        regions.append(Region(site=site, vertices=ring))

    empty = sum(1 for r in regions if r.is_empty())
    logger.debug("Voronoi regions computed", sites=n_sites, empty_regions=empty,
                 vertices=len(vor.vertices))
    return regions
