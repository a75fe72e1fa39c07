"""
Height-field extrusion of Voronoi regions into 3D triangles.

Region vertices are lifted by image brightness plus a small random jitter.
Triangles pass straight through; larger polygons are triangulated through
the 3D convex hull of their lifted vertices. The jitter keeps those vertices
off a common plane so the hull has volume.
"""

from typing import Iterator, List, Sequence

import numpy as np
import structlog
from scipy.spatial import ConvexHull, QhullError

from .errors import HullDegenerate
from .geometry import Point3D, Region, Triangle3D
from .raster import RasterImage

logger = structlog.get_logger()


class HeightField:
    """z(x, y) = brightness / 255 * max_height + jitter."""

    def __init__(self, image: RasterImage, max_height: float, rng: np.random.Generator,
                 jitter_min: float = 1e-4, jitter_max: float = 2e-3):
        self.image = image
        self.max_height = max_height
        self.rng = rng
        self.jitter_min = jitter_min
        self.jitter_max = jitter_max

    def z(self, x: float, y: float) -> float:
        level = self.image.brightness_at(x, y) / 255.0
        return level * self.max_height + float(self.rng.uniform(self.jitter_min, self.jitter_max))

    def lift(self, vertices: np.ndarray) -> np.ndarray:
        """Lift an (k, 2) ring to (k, 3)."""
        heights = [self.z(x, y) for x, y in vertices]
        return np.column_stack([vertices, heights])


def _triangle(points: np.ndarray, a: int, b: int, c: int) -> Triangle3D:
    return Triangle3D(*(Point3D(*map(float, points[i])) for i in (a, b, c)))


def hull_triangles(points: np.ndarray) -> List[Triangle3D]:
    """
    Triangulate the 3D convex hull of ``points``.

    Every triangle is wound clockwise as seen from outside the hull.

    Raises:
        HullDegenerate: if Qhull cannot build a hull with volume
    """
    try:
        hull = ConvexHull(points)
    except (QhullError, ValueError) as e:
        raise HullDegenerate(str(e)) from e

    out = []
    for simplex, equation in zip(hull.simplices, hull.equations):
        a, b, c = simplex
        normal = np.cross(points[b] - points[a], points[c] - points[a])
        # Counter-clockwise from outside means the normal points outward; flip it
        if np.dot(normal, equation[:3]) > 0:
            b, c = c, b
        out.append(_triangle(points, a, b, c))
    return out


def triangulate_region(region: Region, heights: HeightField) -> List[Triangle3D]:
    """Triangles for a single region; empty regions yield none."""
    if region.is_empty():
        return []
    lifted = heights.lift(region.vertices)
    if len(lifted) == 3:
        # Ring is counter-clockwise in the plane; reverse to match the hull faces
        return [_triangle(lifted, 0, 2, 1)]
    return hull_triangles(lifted)


def iter_triangles(regions: Sequence[Region], heights: HeightField) -> Iterator[Triangle3D]:
    """Lazily triangulate all regions, skipping those whose hull is degenerate."""
    for i, region in enumerate(regions):
        try:
            triangles = triangulate_region(region, heights)
        except HullDegenerate as e:
            logger.warning("Skipping region with degenerate hull", region=i,
                           vertices=len(region), error=str(e))
            continue
        yield from triangles
