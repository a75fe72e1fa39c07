"""
Voronoi image approximation and height-mapped mesh generation.
"""

__version__ = "0.1.0"

from .core import (
    Mode, Model3D, Point2D, Point3D, RasterImage, Region, Triangle3D,
    VoronoiImageApproximation,
)

__all__ = ['VoronoiImageApproximation', 'Model3D', 'Mode', 'RasterImage',
           'Point2D', 'Point3D', 'Triangle3D', 'Region', '__version__']
