"""Radial lens distortion correction from a magnification lookup table."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

__all__ = [
    "max_radius",
    "magnification",
    "lens_distortion_point",
    "lens_distortion_points",
]


def max_radius(
    optical_center: Tuple[float, float], image_size: Tuple[float, float]
) -> float:
    """Distance from the optical center to the farthest image corner."""
    cx, cy = optical_center
    width, height = image_size
    dx = max(cx, width - cx)
    dy = max(cy, height - cy)
    return math.sqrt(dx * dx + dy * dy)


def magnification(radius: float, lookup_table: Sequence[float], r_max: float) -> float:
    """
    Relative radial magnification at ``radius``.

    The table holds ``N`` samples for radii linearly spaced over
    ``[0, r_max]``. Inside that range the two neighbouring samples are
    linearly interpolated; at or beyond ``r_max`` the last sample is used.
    """
    n = len(lookup_table)
    if radius >= r_max:
        return float(lookup_table[n - 1])
    val = radius * (n - 1) / r_max
    idx = int(val)
    if idx + 1 >= n:
        return float(lookup_table[n - 1])
    frac = val - idx
    return (1.0 - frac) * float(lookup_table[idx]) + frac * float(lookup_table[idx + 1])


def lens_distortion_point(
    point: Tuple[float, float],
    lookup_table: Sequence[float],
    optical_center: Tuple[float, float],
    image_size: Tuple[float, float],
) -> Tuple[float, float]:
    """
    Map ``point`` through the radial lookup table about ``optical_center``.

    With the forward table this corrects a distorted pixel; with the inverse
    table it re-distorts an ideal one. ``image_size`` must be the size the
    table and center were computed for.
    """
    cx, cy = optical_center
    r_max = max_radius(optical_center, image_size)
    vx = point[0] - cx
    vy = point[1] - cy
    r = math.sqrt(vx * vx + vy * vy)
    mag = magnification(r, lookup_table, r_max)
    return cx + vx + mag * vx, cy + vy + mag * vy


def lens_distortion_points(
    xs: np.ndarray,
    ys: np.ndarray,
    lookup_table: Sequence[float],
    optical_center: Tuple[float, float],
    image_size: Tuple[float, float],
) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorised :func:`lens_distortion_point` over pixel coordinate arrays."""
    table = np.asarray(lookup_table, dtype=np.float64)
    n = table.shape[0]
    cx, cy = optical_center
    r_max = max_radius(optical_center, image_size)

    vx = np.asarray(xs, dtype=np.float64) - cx
    vy = np.asarray(ys, dtype=np.float64) - cy
    r = np.sqrt(vx * vx + vy * vy)

    inside = r < r_max
    val = np.where(inside, r * (n - 1) / r_max, 0.0)
    idx = val.astype(np.intp)
    # clamp so idx + 1 never addresses past the last sample
    edge = idx + 1 >= n
    inside &= ~edge
    idx = np.minimum(idx, n - 2)
    frac = val - idx
    interp = (1.0 - frac) * table[idx] + frac * table[idx + 1]
    mag = np.where(inside, interp, table[n - 1])

    return cx + vx + mag * vx, cy + vy + mag * vy
