"""Tests for point-path geometry helpers."""

import numpy as np
import pytest

from airshape.geometry import (
    as_points, centroid, distance, normalize_points, smooth_points, to_surface,
)


class TestNormalize:
    def test_maps_into_unit_square(self):
        rng = np.random.RandomState(7)
        pts = rng.uniform(-50, 300, size=(40, 2))
        norm = normalize_points(pts)
        assert norm.min() >= 0.0
        assert norm.max() <= 1.0

    def test_extremes_land_on_zero_and_one(self):
        rng = np.random.RandomState(3)
        pts = rng.uniform(10, 20, size=(25, 2))
        norm = normalize_points(pts)
        for axis in (0, 1):
            assert norm[np.argmin(pts[:, axis]), axis] == 0.0
            assert norm[np.argmax(pts[:, axis]), axis] == 1.0

    def test_axes_scaled_independently(self):
        norm = normalize_points([(0, 0), (200, 0), (200, 50), (0, 50)])
        np.testing.assert_allclose(norm, [[0, 0], [1, 0], [1, 1], [0, 1]])

    def test_zero_height_passes_through(self):
        pts = [(1.0, 5.0), (2.0, 5.0), (3.0, 5.0)]
        np.testing.assert_array_equal(normalize_points(pts), np.array(pts))

    def test_zero_width_passes_through(self):
        pts = [(4.0, 1.0), (4.0, 9.0)]
        np.testing.assert_array_equal(normalize_points(pts), np.array(pts))

    def test_empty(self):
        assert normalize_points([]).shape == (0, 2)


class TestSmooth:
    def test_straight_evenly_spaced_line_unchanged_inside(self):
        pts = np.column_stack([np.arange(30, dtype=float), np.zeros(30)])
        smoothed = smooth_points(pts, radius=5)
        np.testing.assert_allclose(smoothed[5:25], pts[5:25])

    def test_window_truncated_at_ends(self):
        pts = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0)]
        smoothed = smooth_points(pts, radius=1)
        assert smoothed[0][0] == pytest.approx(0.5)
        assert smoothed[1][0] == pytest.approx(1.0)
        assert smoothed[3][0] == pytest.approx(2.5)

    def test_constant_path(self):
        pts = [(2.0, 3.0)] * 15
        np.testing.assert_allclose(smooth_points(pts), np.array(pts))

    def test_zero_radius_copies(self):
        pts = np.array([[0.0, 1.0], [5.0, 2.0]])
        out = smooth_points(pts, radius=0)
        np.testing.assert_array_equal(out, pts)
        assert out is not pts


class TestHelpers:
    def test_distance(self):
        assert distance((0, 0), (3, 4)) == pytest.approx(5.0)

    def test_centroid(self):
        assert centroid([(0, 0), (2, 0), (2, 2), (0, 2)]) == pytest.approx((1.0, 1.0))

    def test_to_surface(self):
        assert to_surface((0.5, 0.25), 640, 480) == (320.0, 120.0)

    def test_as_points_drops_extra_columns(self):
        assert as_points([(1, 2, 3), (4, 5, 6)]).shape == (2, 2)

    def test_as_points_rejects_flat_input(self):
        with pytest.raises(ValueError):
            as_points([1.0, 2.0, 3.0])
