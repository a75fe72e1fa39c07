"""Value types shared by the sampler, tessellation and mesh stages."""

from typing import List, NamedTuple, Optional
from dataclasses import dataclass, field

import numpy as np
from shapely.geometry import Polygon


class Point2D(NamedTuple):
    """A point in image pixel space."""
    x: float
    y: float


class Point3D(NamedTuple):
    """A lifted point; z is in world height units."""
    x: float
    y: float
    z: float


class Triangle3D(NamedTuple):
    """Ordered vertex triple. Winding matters for downstream shading."""
    a: Point3D
    b: Point3D
    c: Point3D


class ImageBounds(NamedTuple):
    """Closed rectangle [0, width] x [0, height]."""
    width: float
    height: float

    def contains(self, x: float, y: float) -> bool:
        return 0 <= x <= self.width and 0 <= y <= self.height


@dataclass(eq=False)
class Region:
    """Voronoi cell of one generating point, clipped to the image.

    ``vertices`` is an open ring (k, 2) in counter-clockwise order. Cells that
    could not be bounded are kept as empty regions so that region slots stay
    aligned with generating points.

    The ring is a read-only copy; regions handed to hosts cannot alter the mesh.
    """
    site: Point2D
    vertices: np.ndarray = field(default_factory=lambda: np.empty((0, 2)))

    def __post_init__(self):
        self.vertices = np.array(self.vertices, dtype=np.float64).reshape(-1, 2)
        self.vertices.setflags(write=False)

    def is_empty(self) -> bool:
        return len(self.vertices) < 3

    def __len__(self) -> int:
        return len(self.vertices)

    def coords(self) -> List[Point2D]:
        return [Point2D(float(x), float(y)) for x, y in self.vertices]

    def polygon(self) -> Optional[Polygon]:
        """Closed shapely polygon for the ring, or None for empty regions."""
        if self.is_empty():
            return None
        return Polygon(self.vertices)

    def centroid(self) -> Optional[Point2D]:
        """Raw geometric centroid of the region."""
        poly = self.polygon()
        if poly is None:
            return None
        c = poly.centroid
        return Point2D(c.x, c.y)
