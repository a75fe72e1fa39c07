"""Tests for the progressive Voronoi image approximation engine."""

import pytest
import numpy as np
from voronoi_mesh.config.settings import Settings
from voronoi_mesh.core import (
    Mode, Point2D, PoolExhausted, RasterImage, VoronoiImageApproximation
)

MAX_JITTER = 2e-3


def make_engine(pixels, mode=Mode.WHITE_ON_BLACK, weighting=0, max_height=5.0, seed=42, **overrides):
    settings = Settings(worker_count=2, **overrides)
    image = RasterImage(np.asarray(pixels, dtype=np.uint8))
    return VoronoiImageApproximation(image, mode, 128, weighting, max_height, rng=seed, settings=settings)


@pytest.fixture
def noise():
    rng = np.random.default_rng(9)
    return rng.integers(0, 256, size=(16, 20), dtype=np.uint8)


class TestEvolve:
    """Test point allocation through the engine."""

    def test_two_by_two_scenario(self):
        with make_engine([[0, 255], [255, 0]]) as engine:
            engine.evolve(4)

            points = engine.get_generating_points()
            assert sorted(points) == [(0, 0), (0, 1), (1, 0), (1, 1)]
            assert len(engine.get_regions()) == 4
            with pytest.raises(PoolExhausted):
                engine.pop()

    def test_evolve_past_exhaustion_raises(self):
        with make_engine([[0, 255], [255, 0]]) as engine:
            engine.evolve(4)
            with pytest.raises(PoolExhausted):
                engine.evolve(1)

    def test_evolve_grows_sequence(self, noise):
        with make_engine(noise, weighting=6) as engine:
            for step in (1, 5, 10):
                before = len(engine.get_generating_points())
                engine.evolve(step)
                assert len(engine.get_generating_points()) == before + step
                assert len(engine.get_regions()) == len(engine.get_generating_points())

    def test_evolve_zero_is_noop(self, noise):
        with make_engine(noise) as engine:
            engine.evolve(0)
            assert engine.get_generating_points() == []
            assert engine.get_regions() == []

    def test_negative_evolve(self, noise):
        with make_engine(noise) as engine:
            with pytest.raises(ValueError):
                engine.evolve(-1)

    def test_same_seed_same_points(self, noise):
        with make_engine(noise, weighting=4, seed=1) as a, make_engine(noise, weighting=4, seed=1) as b:
            a.evolve(12)
            b.evolve(12)
            assert a.get_generating_points() == b.get_generating_points()

    def test_generating_points_are_unique(self, noise):
        with make_engine(noise, weighting=10) as engine:
            engine.evolve(60)
            points = engine.get_generating_points()
            assert len(set(points)) == len(points)


class TestSetGeneratingPoints:
    """Test bulk replacement of generating points."""

    def test_replaces_and_recomputes(self, noise):
        with make_engine(noise) as engine:
            engine.evolve(5)
            engine.set_generating_points([(3.5, 4.5), (10.0, 10.0)])

            assert engine.get_generating_points() == [Point2D(3.5, 4.5), Point2D(10.0, 10.0)]
            assert len(engine.get_regions()) == 2

    def test_failed_update_keeps_previous_regions(self, noise):
        with make_engine(noise) as engine:
            engine.evolve(3)
            previous = engine.get_regions()

            engine.set_generating_points([(1.0, 1.0), (1.0, 1.0)])

            assert len(engine.get_generating_points()) == 2
            assert engine.get_regions() == previous
            assert len(engine.get_regions()) == 3

    def test_bulk_points_are_reserved(self):
        with make_engine([[0, 255], [255, 0]]) as engine:
            engine.set_generating_points([(0, 0), (1, 1)])
            engine.evolve(2)

            assert set(engine.get_generating_points()[2:]) == {(1, 0), (0, 1)}
            with pytest.raises(PoolExhausted):
                engine.evolve(1)

    def test_regions_are_read_only(self, noise):
        with make_engine(noise) as engine:
            engine.evolve(5)
            region = engine.get_regions()[0]

            with pytest.raises(ValueError):
                region.vertices[0, 0] = 99.0
            assert engine.get_regions()[0].vertices[0, 0] != 99.0


class TestCentroids:
    """Test centroid accessors."""

    def test_single_point_covers_image(self, noise):
        with make_engine(noise) as engine:
            engine.set_generating_points([(4.0, 7.0)])
            regions = engine.get_regions()

            assert len(regions) == 1
            assert regions[0].polygon().area == pytest.approx(20 * 16)
            assert engine.get_centroids() == [pytest.approx((10.0, 8.0))]

            weighted = engine.get_weighted_centroids()
            assert len(weighted) == 1
            assert 0 <= weighted[0].x <= 20 and 0 <= weighted[0].y <= 16

            ys, xs = np.indices(noise.shape)
            density = 1.0 - noise / 255.0
            expected_x = 10.0 + np.sum(density * (xs - 10.0)) / noise.size
            expected_y = 8.0 + np.sum(density * (ys - 8.0)) / noise.size
            assert weighted[0] == pytest.approx((expected_x, expected_y))

    @pytest.mark.parametrize("level", [0, 128, 255])
    def test_uniform_brightness_offset_within_half_pixel(self, level):
        with make_engine(np.full((20, 20), level)) as engine:
            engine.set_generating_points([(5, 5), (15, 5), (5, 15), (15, 15)])
            centroids = engine.get_centroids()
            weighted = engine.get_weighted_centroids()
            density = 1.0 - level / 255.0

            assert len(weighted) == len(centroids) == 4
            for w, c in zip(weighted, centroids):
                offset = np.subtract(w, c)
                # A 10px cell scans 10 integer columns that average half a pixel low
                np.testing.assert_allclose(offset, [-density / 2, -density / 2], atol=1e-9)
                assert np.all(np.abs(offset) <= 0.5 + 1e-9)

    def test_dark_side_pulls_centroid(self):
        pixels = np.full((10, 20), 255)
        pixels[:, :10] = 0
        with make_engine(pixels) as engine:
            engine.set_generating_points([(10.0, 5.0)])
            weighted = engine.get_weighted_centroids()[0]

            assert weighted.x < 10.0 - 2.0

    def test_batch_dispatch_matches_serial(self, noise):
        with make_engine(noise, seed=4) as serial, \
                make_engine(noise, seed=4, centroid_dispatch="batch") as batch:
            serial.evolve(15)
            batch.evolve(15)

            assert serial.get_weighted_centroids() == batch.get_weighted_centroids()

    def test_relax_moves_sites_to_weighted_centroids(self, noise):
        with make_engine(noise, weighting=5) as engine:
            engine.evolve(10)
            expected = engine.get_weighted_centroids()
            engine.relax()

            assert engine.get_generating_points() == expected
            assert len(engine.get_regions()) == len(expected)


class TestTriangles:
    """Test mesh output."""

    @pytest.fixture
    def engine(self, noise):
        engine = make_engine(noise, weighting=5, max_height=7.0)
        engine.evolve(25)
        yield engine
        engine.close()

    def test_triangles_within_bounds(self, engine):
        triangles = engine.get_triangles()

        assert triangles
        for tri in triangles:
            for p in tri:
                assert 0 <= p.x <= engine.get_width()
                assert 0 <= p.y <= engine.get_height()
                assert 0 <= p.z <= 7.0 + MAX_JITTER

    def test_triangle_count(self, engine):
        expected = 0
        for region in engine.get_regions():
            if region.is_empty():
                continue
            expected += 1 if len(region) == 3 else 2 * len(region) - 4

        assert len(engine.get_triangles()) == expected

    def test_iter_triangles_is_lazy(self, engine):
        it = engine.iter_triangles()
        first = next(it)
        assert len(first) == 3


class TestEngineSurface:
    """Test the remaining host-facing accessors."""

    def test_dimensions_and_density(self):
        pixels = np.array([[0, 51], [255, 102]], dtype=np.uint8)
        with make_engine(pixels, mode=Mode.BLACK_ON_WHITE) as engine:
            assert engine.get_width() == 2
            assert engine.get_height() == 2
            assert engine.density(0, 0) == 0.0
            assert engine.density(1, 0) == pytest.approx(0.2)
            assert engine.density(0, 1) == 1.0
            assert engine.background == Mode.BLACK_ON_WHITE.background

    def test_brightness_threshold_is_kept(self, noise):
        with make_engine(noise) as engine:
            assert engine.brightness_threshold == 128

    def test_negative_max_height(self, noise):
        with pytest.raises(ValueError):
            make_engine(noise, max_height=-1.0)

    def test_closed_engine_rejects_centroid_work(self, noise):
        engine = make_engine(noise)
        engine.evolve(3)
        engine.close()
        engine.close()

        with pytest.raises(RuntimeError):
            engine.get_weighted_centroids()
