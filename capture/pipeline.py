"""Capture processing: depth buffer to uploadable payload."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple

import numpy as np

from capture.payload import CapturePayload, build_payload, build_simple_payload
from capture.uploader import CaptureUploader
from geometry.depth_projection import project_with_stats
from utils.error_tracker import (
    CaptureError,
    DepthLayoutError,
    EmptyCapture,
    MissingCalibration,
    SerializationFailure,
    TransportFailure,
)
from utils.logger import Logger, LoggerType
from utils.settings import projection as PROJCFG
from vision.calibration import CalibrationRecord
from vision.depth_buffer import DepthGrid, DepthMapHandle, read_depth_grid

__all__ = ["CapturePipeline", "STATUS"]

PayloadShape = Literal["simple", "full"]

# User-facing status for each capture failure
STATUS = {
    err: err.status
    for err in (
        EmptyCapture,
        DepthLayoutError,
        MissingCalibration,
        SerializationFailure,
        TransportFailure,
    )
}


@dataclass
class CapturePipeline:
    """Decode, project and package one capture at a time."""

    uploader: CaptureUploader = field(default_factory=CaptureUploader)
    rescale_calibration: bool = PROJCFG.rescale_calibration
    logger: LoggerType = field(
        default_factory=lambda: Logger.get_logger("capture.pipeline")
    )

    def read(
        self, depth_map: DepthMapHandle, calibration: CalibrationRecord
    ) -> Tuple[DepthGrid, CalibrationRecord]:
        """Decode the depth map and move the calibration to its size if enabled."""
        grid = read_depth_grid(depth_map)
        if self.rescale_calibration:
            calibration = calibration.scaled_to(grid.width, grid.height)
        return grid, calibration

    def project(self, grid: DepthGrid, calibration: CalibrationRecord) -> np.ndarray:
        points, stats = project_with_stats(grid, calibration)
        self.logger.info(
            f"Cloud: {stats.emitted} points from {grid.width}x{grid.height}, "
            f"skipped {stats.skipped}"
        )
        return points

    def process(
        self,
        depth_map: DepthMapHandle,
        calibration: CalibrationRecord,
        image: bytes | np.ndarray,
        depth_quality: int,
        depth_accuracy: int,
        plate_point: Optional[Tuple[int, int]] = None,
        shape: PayloadShape = "full",
    ) -> CapturePayload:
        """Return the payload for one capture; capture-level errors propagate."""
        grid, calibration = self.read(depth_map, calibration)

        if shape == "simple":
            if plate_point is not None:
                self.logger.warning(
                    f"Plate point {plate_point} dropped, "
                    "simple payload has no field for it"
                )
            points = self.project(grid, calibration)
            return build_simple_payload(image, points, depth_quality, depth_accuracy)

        points = None
        if plate_point is None:
            points = self.project(grid, calibration)
        else:
            calibration.require()
        return build_payload(
            image,
            grid,
            calibration,
            points,
            depth_quality,
            depth_accuracy,
            plate_point=plate_point,
        )

    def run(
        self,
        depth_map: DepthMapHandle,
        calibration: CalibrationRecord,
        image: bytes | np.ndarray,
        depth_quality: int,
        depth_accuracy: int,
        plate_point: Optional[Tuple[int, int]] = None,
        shape: PayloadShape = "full",
    ) -> str:
        """Process and upload; returns the server reply or a status message."""
        try:
            payload = self.process(
                depth_map,
                calibration,
                image,
                depth_quality,
                depth_accuracy,
                plate_point=plate_point,
                shape=shape,
            )
            return self.uploader.send(payload)
        except CaptureError as e:
            self.logger.warning(f"Capture aborted ({e.status}): {e}")
            return e.status
