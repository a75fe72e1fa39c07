"""
Progressive Voronoi approximation of a raster image.

The engine owns the candidate pool, the used-key set and the generating point
sequence. Hosts drive it with ``evolve`` (or ``set_generating_points``) and
pull regions, centroids and triangles through the accessors.
"""

from typing import Iterable, Iterator, List, Optional, Protocol

import structlog

from ..config.settings import Settings, settings as default_settings
from ..utils.random import RandomSource, make_rng
from ..utils.worker_pool import BoundedWorkerPool
from .centroids import CentroidEvaluator
from .errors import TessellationFailure
from .geometry import ImageBounds, Point2D, Region, Triangle3D
from .modes import Mode
from .raster import RasterImage
from .sampler import PointAllocator, build_candidate_pool
from .tessellation import compute_regions
from .triangulator import HeightField, iter_triangles

logger = structlog.get_logger()


class Model3D(Protocol):
    """Anything a mesh-building host can turn into geometry."""

    def get_triangles(self) -> Iterable[Triangle3D]:
        ...


class VoronoiImageApproximation:
    """
    Image approximated by a growing Voronoi tessellation and its height mesh.

    Args:
        image: Pixel source
        mode: Which pixels count as dense
        brightness_threshold: Accepted for host compatibility; not used
        weighting: Maximum oversampling of the densest pixels (<= 0 for uniform)
        max_height: Height of a fully bright pixel in the mesh
        rng: Seed or Generator for shuffling and jitter (defaults to settings.seed)
        settings: Engine settings (defaults to the module singleton)
    """

    def __init__(self, image: RasterImage, mode: Mode, brightness_threshold: int,
                 weighting: int, max_height: float, rng: RandomSource = None,
                 settings: Optional[Settings] = None):
        if max_height < 0:
            raise ValueError("max_height must be non-negative")
        self.settings = settings or default_settings
        self.image = image
        self.mode = Mode(mode)
        self.brightness_threshold = brightness_threshold
        self.weighting = weighting
        self.max_height = max_height
        self.bounds = ImageBounds(image.width, image.height)

        self._rng = make_rng(rng if rng is not None else self.settings.seed)
        self._density_map = self.mode.density(image.brightness_map)

        pool = build_candidate_pool(image, self.mode, weighting, self._rng)
        self._allocator = PointAllocator(pool, precision=self.settings.key_precision)
        self._generating_points: List[Point2D] = []
        self._regions: List[Region] = []

        self._pool = BoundedWorkerPool(self.settings.worker_count, self.settings.task_queue_capacity)
        self._centroids = CentroidEvaluator(self._pool, self._density_map, self.bounds,
                                            dispatch=self.settings.centroid_dispatch)
        self._heights = HeightField(image, max_height, self._rng,
                                    self.settings.jitter_min, self.settings.jitter_max)
        self._closed = False

    # Lifecycle

    def close(self) -> None:
        """Shut the worker pool down. The engine cannot evaluate centroids afterwards."""
        if not self._closed:
            self._pool.shutdown()
            self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # Evolution

    def pop(self) -> Point2D:
        """Draw the next unused point from the candidate pool."""
        return self._allocator.pop()

    @property
    def remaining_candidates(self) -> int:
        return self._allocator.remaining

    def evolve(self, n: int) -> None:
        """
        Add ``n`` new generating points and recompute the tessellation.

        Raises:
            PoolExhausted: if the pool runs out; points drawn before that stay
                in the sequence but the tessellation is not recomputed
        """
        if n < 0:
            raise ValueError("n must be non-negative")
        if n == 0:
            return
        for _ in range(n):
            self._generating_points.append(self.pop())
        logger.debug("Evolved", added=n, total=len(self._generating_points))
        self.update()

    def update(self) -> bool:
        """
        Rebuild regions from the current generating points.

        Returns:
            True if regions were replaced; False if there was nothing to do or
            the tessellation failed and the previous regions were kept
        """
        if not self._generating_points:
            return False
        try:
            regions = compute_regions(self._generating_points, self.bounds,
                                      precision=self.settings.key_precision)
        except TessellationFailure as e:
            logger.warning("Tessellation failed, keeping previous regions",
                           points=len(self._generating_points),
                           regions=len(self._regions), error=str(e))
            return False
        self._regions = regions
        return True

    def set_generating_points(self, points: Iterable[Point2D]) -> None:
        """Replace the whole generating point sequence and recompute."""
        points = [Point2D(float(x), float(y)) for x, y in points]
        self._generating_points = points
        self._allocator.mark_used(points)
        self.update()

    def relax(self, iterations: int = 1) -> None:
        """Move every site to its region's weighted centroid, ``iterations`` times."""
        for i in range(iterations):
            centroids = self.get_weighted_centroids()
            self.set_generating_points(centroids)
            logger.info("Relaxation iteration complete", iteration=i + 1, points=len(centroids))

    # Accessors

    def get_regions(self) -> List[Region]:
        return list(self._regions)

    def get_generating_points(self) -> List[Point2D]:
        return list(self._generating_points)

    def get_centroids(self) -> List[Optional[Point2D]]:
        """Geometric centroid per region (None for empty regions)."""
        return [r.centroid() for r in self._regions]

    def get_weighted_centroids(self) -> List[Point2D]:
        """Brightness-weighted centroids of non-empty, in-bounds regions."""
        return self._centroids.weighted_centroids(self._regions)

    def iter_triangles(self) -> Iterator[Triangle3D]:
        return iter_triangles(self._regions, self._heights)

    def get_triangles(self) -> List[Triangle3D]:
        triangles = list(self.iter_triangles())
        logger.info("Mesh triangulated", regions=len(self._regions), triangles=len(triangles))
        return triangles

    def get_width(self) -> int:
        return self.image.width

    def get_height(self) -> int:
        return self.image.height

    def density(self, x: int, y: int) -> float:
        return float(self._density_map[y, x])

    @property
    def background(self) -> int:
        return self.mode.background

    @property
    def foreground(self) -> int:
        return self.mode.foreground
