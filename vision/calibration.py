"""Per-capture camera calibration record."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from utils.error_tracker import MissingCalibration

__all__ = ["CalibrationRecord"]


def _frozen(values: Any, shape: tuple[int, ...] | None = None) -> np.ndarray | None:
    if values is None:
        return None
    arr = np.array(values, dtype=np.float64)
    if shape is not None and arr.shape != shape:
        raise ValueError(f"Expected shape {shape}, got {arr.shape}")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class CalibrationRecord:
    """
    Calibration reported by the depth camera for a single capture.

    The intrinsic matrix is stored column by column, the way the device
    reports it: focal lengths at ``[0][0]`` and ``[1][1]``, principal point
    at ``[2][0]`` and ``[2][1]``.

    Lookup tables hold the relative radial magnification at linearly spaced
    radii from 0 to the largest radius of the image the tables were
    computed for. Any field may be ``None`` when the hardware did not
    report it; :meth:`require` turns that into :class:`MissingCalibration`.
    """

    intrinsic_matrix: Optional[np.ndarray] = None
    lens_distortion_lookup_table: Optional[np.ndarray] = None
    inverse_lens_distortion_lookup_table: Optional[np.ndarray] = None
    lens_distortion_center: Optional[Tuple[float, float]] = None
    pixel_size: float = 0.0
    reference_dimensions: Optional[Tuple[float, float]] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "intrinsic_matrix", _frozen(self.intrinsic_matrix, (3, 3))
        )
        object.__setattr__(
            self,
            "lens_distortion_lookup_table",
            _frozen(self.lens_distortion_lookup_table),
        )
        object.__setattr__(
            self,
            "inverse_lens_distortion_lookup_table",
            _frozen(self.inverse_lens_distortion_lookup_table),
        )
        if self.lens_distortion_center is not None:
            cx, cy = self.lens_distortion_center
            object.__setattr__(self, "lens_distortion_center", (float(cx), float(cy)))
        if self.reference_dimensions is not None:
            w, h = self.reference_dimensions
            object.__setattr__(self, "reference_dimensions", (float(w), float(h)))
        object.__setattr__(self, "pixel_size", float(self.pixel_size))

    @classmethod
    def from_pinhole(
        cls,
        fx: float,
        fy: float,
        cx: float,
        cy: float,
        lookup_table: Sequence[float],
        center: Tuple[float, float],
        inverse_lookup_table: Sequence[float] | None = None,
        reference_dimensions: Tuple[float, float] | None = None,
        pixel_size: float = 0.0,
    ) -> "CalibrationRecord":
        """Build a record from conventional pinhole parameters."""
        matrix = [[fx, 0.0, 0.0], [0.0, fy, 0.0], [cx, cy, 1.0]]
        return cls(
            intrinsic_matrix=matrix,
            lens_distortion_lookup_table=lookup_table,
            inverse_lens_distortion_lookup_table=inverse_lookup_table,
            lens_distortion_center=center,
            pixel_size=pixel_size,
            reference_dimensions=reference_dimensions,
        )

    @property
    def fx(self) -> float:
        return float(self.intrinsic_matrix[0, 0])

    @property
    def fy(self) -> float:
        return float(self.intrinsic_matrix[1, 1])

    @property
    def cx(self) -> float:
        return float(self.intrinsic_matrix[2, 0])

    @property
    def cy(self) -> float:
        return float(self.intrinsic_matrix[2, 1])

    def require(self) -> "CalibrationRecord":
        """Return ``self`` or raise :class:`MissingCalibration`."""
        if self.intrinsic_matrix is None:
            raise MissingCalibration("intrinsic matrix unavailable")
        if self.lens_distortion_lookup_table is None:
            raise MissingCalibration("lens distortion lookup table unavailable")
        if self.lens_distortion_center is None:
            raise MissingCalibration("lens distortion center unavailable")
        if len(self.lens_distortion_lookup_table) < 2:
            raise MissingCalibration(
                "lens distortion lookup table needs at least two samples"
            )
        return self

    def scaled_to(self, width: float, height: float) -> "CalibrationRecord":
        """
        Rescale intrinsics and optical center from ``reference_dimensions``
        to an image of ``width`` x ``height``.

        Lookup tables are indexed by relative radius and are kept unchanged.
        """
        self.require()
        if self.reference_dimensions is None:
            raise MissingCalibration("intrinsic reference dimensions unavailable")
        ref_w, ref_h = self.reference_dimensions
        sx = float(width) / ref_w
        sy = float(height) / ref_h
        matrix = np.array(self.intrinsic_matrix, dtype=np.float64)
        matrix[0, 0] *= sx
        matrix[1, 1] *= sy
        matrix[2, 0] *= sx
        matrix[2, 1] *= sy
        cx, cy = self.lens_distortion_center
        return replace(
            self,
            intrinsic_matrix=matrix,
            lens_distortion_center=(cx * sx, cy * sy),
            reference_dimensions=(float(width), float(height)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire layout of the ``calibration_data`` object."""
        self.require()

        def _list(arr: np.ndarray | None) -> list | None:
            return None if arr is None else arr.tolist()

        return {
            "intrinsic_matrix": _list(self.intrinsic_matrix),
            "pixel_size": self.pixel_size,
            "intrinsic_matrix_reference_dimensions": (
                list(self.reference_dimensions)
                if self.reference_dimensions is not None
                else None
            ),
            "lens_distortion_center": list(self.lens_distortion_center),
            "lens_distortion_lookup_table": _list(self.lens_distortion_lookup_table),
            "inverse_lens_distortion_lookup_table": _list(
                self.inverse_lens_distortion_lookup_table
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CalibrationRecord":
        """Parse the ``calibration_data`` wire object; absent keys stay ``None``."""
        center = data.get("lens_distortion_center")
        ref = data.get("intrinsic_matrix_reference_dimensions")
        return cls(
            intrinsic_matrix=data.get("intrinsic_matrix"),
            lens_distortion_lookup_table=data.get("lens_distortion_lookup_table"),
            inverse_lens_distortion_lookup_table=data.get(
                "inverse_lens_distortion_lookup_table"
            ),
            lens_distortion_center=tuple(center) if center is not None else None,
            pixel_size=data.get("pixel_size") or 0.0,
            reference_dimensions=tuple(ref) if ref is not None else None,
        )
