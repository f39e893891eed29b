import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
import numpy as np
import pytest

from geometry.distortion import (
    lens_distortion_point,
    lens_distortion_points,
    magnification,
    max_radius,
)


def test_max_radius_uses_farthest_corner():
    assert max_radius((0.0, 0.0), (6.0, 8.0)) == pytest.approx(10.0)
    assert max_radius((2.0, 2.0), (6.0, 8.0)) == pytest.approx(np.hypot(4.0, 6.0))


def test_midpoint_interpolates_middle_sample():
    table = [0.0, 0.1, 0.2]
    assert magnification(5.0, table, 10.0) == pytest.approx(0.1)
    x, y = lens_distortion_point((3.0, 4.0), table, (0.0, 0.0), (6.0, 8.0))
    assert x == pytest.approx(3.3)
    assert y == pytest.approx(4.4)


def test_linear_between_samples():
    table = [0.0, 0.1, 0.2]
    assert magnification(2.5, table, 10.0) == pytest.approx(0.05)
    assert magnification(7.5, table, 10.0) == pytest.approx(0.15)


def test_outside_max_radius_uses_last_sample():
    table = [0.0, 0.1, 0.3]
    center = (0.0, 0.0)
    for point in [(6.0, 8.0), (12.0, 16.0), (-30.0, 2.0)]:
        x, y = lens_distortion_point(point, table, center, (6.0, 8.0))
        assert x == pytest.approx(center[0] + 1.3 * (point[0] - center[0]))
        assert y == pytest.approx(center[1] + 1.3 * (point[1] - center[1]))


def test_continuous_across_sample_boundaries():
    table = [0.0, 0.04, -0.02, 0.05, 0.01]
    r_max = 20.0
    for k in range(1, len(table) - 1):
        boundary = k * r_max / (len(table) - 1)
        below = magnification(boundary - 1e-9, table, r_max)
        above = magnification(boundary + 1e-9, table, r_max)
        assert below == pytest.approx(table[k], abs=1e-8)
        assert above == pytest.approx(table[k], abs=1e-8)


def test_near_edge_approaches_last_sample():
    table = [0.0, 0.5]
    r = np.nextafter(10.0, 0.0)
    assert magnification(r, table, 10.0) == pytest.approx(0.5)


def test_center_is_fixed_point():
    center = (3.7, 2.1)
    assert lens_distortion_point(center, [0.3, 0.2, 0.1], center, (8, 6)) == (
        pytest.approx(3.7),
        pytest.approx(2.1),
    )


def test_vectorised_matches_scalar():
    rng = np.random.default_rng(7)
    table = rng.uniform(-0.05, 0.05, 17)
    center = (30.4, 19.8)
    size = (64, 48)
    xs = np.concatenate([rng.uniform(-10, 80, 200), [center[0], 64.0, 0.0]])
    ys = np.concatenate([rng.uniform(-10, 60, 200), [center[1], 48.0, 0.0]])
    vx, vy = lens_distortion_points(xs, ys, table, center, size)
    for i in range(xs.size):
        sx, sy = lens_distortion_point((xs[i], ys[i]), table, center, size)
        assert vx[i] == pytest.approx(sx, abs=1e-12)
        assert vy[i] == pytest.approx(sy, abs=1e-12)


def test_inverse_table_uses_same_routine():
    center = (10.0, 10.0)
    size = (20, 20)
    forward = [0.0, 0.01, 0.02]
    inverse = [0.0, -0.01, -0.02]
    corrected = lens_distortion_point((2.0, 3.0), forward, center, size)
    back = lens_distortion_point(corrected, inverse, center, size)
    assert back[0] == pytest.approx(2.0, abs=0.05)
    assert back[1] == pytest.approx(3.0, abs=0.05)
