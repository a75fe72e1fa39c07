"""
Core image-to-mesh approximation functionality.
"""

from .approximation import Model3D, VoronoiImageApproximation
from .errors import (
    HullDegenerate, PoolExhausted, TessellationFailure,
    VoronoiMeshError, WorkerPoolSaturated,
)
from .geometry import ImageBounds, Point2D, Point3D, Region, Triangle3D
from .modes import Mode
from .raster import RasterImage

__all__ = ['VoronoiImageApproximation', 'Model3D', 'Mode', 'RasterImage',
           'Point2D', 'Point3D', 'Triangle3D', 'Region', 'ImageBounds',
           'VoronoiMeshError', 'PoolExhausted', 'TessellationFailure',
           'HullDegenerate', 'WorkerPoolSaturated']
