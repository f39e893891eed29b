"""Depth grid to metric point cloud back-projection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from geometry.distortion import lens_distortion_points
from utils.error_tracker import EmptyCapture
from utils.logger import Logger
from vision.calibration import CalibrationRecord
from vision.depth_buffer import DepthGrid

__all__ = [
    "ProjectionStats",
    "valid_depth_mask",
    "pixel_to_camera",
    "project_with_stats",
    "project_depth_grid",
]

logger = Logger.get_logger("geometry.depth_projection")


@dataclass(frozen=True)
class ProjectionStats:
    """Per-capture counts of emitted and skipped samples."""

    scanned: int
    emitted: int
    invalid_depth: int
    non_finite: int

    @property
    def skipped(self) -> int:
        return self.invalid_depth + self.non_finite


def valid_depth_mask(depth: np.ndarray) -> np.ndarray:
    """``True`` where a sample holds a measurement (not NaN, not zero)."""
    return ~(np.isnan(depth) | (depth == 0))


def pixel_to_camera(
    pixel: Tuple[float, float], depth: float, calibration: CalibrationRecord
) -> np.ndarray:
    """Pinhole back-projection of an already corrected pixel."""
    x = (pixel[0] - calibration.cx) * depth / calibration.fx
    y = (pixel[1] - calibration.cy) * depth / calibration.fy
    return np.array([x, y, depth], dtype=np.float64)


def project_with_stats(
    grid: DepthGrid, calibration: CalibrationRecord
) -> Tuple[np.ndarray, ProjectionStats]:
    """
    Back-project every valid sample of ``grid`` into camera space.

    Returns an ``(N, 3)`` float64 array of (X, Y, Z) in row-major scan order
    together with the sample counts. Samples with NaN/zero depth, or whose
    X/Y come out non-finite, are dropped without affecting the rest.
    """
    if grid.is_empty:
        raise EmptyCapture(f"depth grid is {grid.width}x{grid.height}")
    calibration.require()

    depth = grid.data
    mask = valid_depth_mask(depth)
    # np.nonzero walks row-major, which fixes the output order
    rows, cols = np.nonzero(mask)
    zs = depth[rows, cols].astype(np.float64)

    xs_c, ys_c = lens_distortion_points(
        cols,
        rows,
        calibration.lens_distortion_lookup_table,
        calibration.lens_distortion_center,
        (grid.width, grid.height),
    )
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        xs = (xs_c - calibration.cx) * zs / calibration.fx
        ys = (ys_c - calibration.cy) * zs / calibration.fy

    finite = np.isfinite(xs) & np.isfinite(ys)
    points = np.stack((xs[finite], ys[finite], zs[finite]), axis=1)

    stats = ProjectionStats(
        scanned=int(depth.size),
        emitted=int(points.shape[0]),
        invalid_depth=int(depth.size - zs.shape[0]),
        non_finite=int(zs.shape[0] - points.shape[0]),
    )
    logger.debug(
        f"Projected {stats.emitted}/{stats.scanned} samples "
        f"(invalid depth {stats.invalid_depth}, non-finite {stats.non_finite})"
    )
    return points, stats


def project_depth_grid(grid: DepthGrid, calibration: CalibrationRecord) -> np.ndarray:
    """Point cloud of ``grid``; see :func:`project_with_stats`."""
    points, _ = project_with_stats(grid, calibration)
    return points
