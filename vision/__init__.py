"""Depth camera data access.

The vision package turns hardware depth buffers into immutable depth grids
and holds the per-capture calibration record reported by the camera.
"""

from .calibration import CalibrationRecord
from .depth_buffer import (
    DEPTH_FLOAT32,
    ArrayDepthMap,
    DepthGrid,
    DepthMapHandle,
    locked,
    read_depth_grid,
)

__all__ = [
    "CalibrationRecord",
    "DEPTH_FLOAT32",
    "ArrayDepthMap",
    "DepthGrid",
    "DepthMapHandle",
    "locked",
    "read_depth_grid",
]
