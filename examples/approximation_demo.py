#!/usr/bin/env python3
"""
Demo script showing progressive Voronoi approximation of an image.

Usage:
    python examples/approximation_demo.py [image_path]

Without an image path a radial gradient is synthesised.
"""

import sys

import numpy as np

from voronoi_mesh import Mode, RasterImage, VoronoiImageApproximation
from voronoi_mesh.config import configure_logging, settings
from voronoi_mesh.core import PoolExhausted


def radial_gradient(width: int, height: int) -> np.ndarray:
    """Bright centre fading to black at the corners."""
    ys, xs = np.indices((height, width))
    dist = np.hypot(xs - width / 2, ys - height / 2)
    return (255 * (1 - dist / dist.max())).astype(np.uint8)


def main():
    """Evolve a tessellation, relax it once and report mesh statistics."""
    configure_logging(settings)

    if len(sys.argv) > 1:
        image = RasterImage.open(sys.argv[1])
    else:
        image = RasterImage(radial_gradient(120, 80))

    print("Voronoi Image Approximation Demo")
    print("=" * 40)
    print(f"Image: {image.width}x{image.height}")

    with VoronoiImageApproximation(image, Mode.BLACK_ON_WHITE, brightness_threshold=0,
                                   weighting=8, max_height=20.0, rng=1234) as approx:
        for step in range(4):
            try:
                approx.evolve(100)
            except PoolExhausted:
                print("Candidate pool exhausted")
                break
            regions = approx.get_regions()
            empty = sum(1 for r in regions if r.is_empty())
            print(f"  step {step + 1}: {len(approx.get_generating_points())} points, "
                  f"{len(regions)} regions ({empty} empty)")

        approx.relax()
        print(f"\nAfter relaxation: {len(approx.get_generating_points())} points")

        triangles = approx.get_triangles()
        z = np.array([p.z for tri in triangles for p in tri])
        print(f"Triangles: {len(triangles)}")
        if len(z):
            print(f"Height range: {z.min():.3f}-{z.max():.3f}")


if __name__ == "__main__":
    main()
