"""Capture payload assembly and JSON encoding."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional, Tuple, Type

import cv2
import numpy as np

from utils.error_tracker import SerializationFailure
from utils.logger import Logger
from utils.settings import capture as CAPCFG
from vision.calibration import CalibrationRecord
from vision.depth_buffer import DepthGrid

__all__ = [
    "DepthDataQuality",
    "DepthDataAccuracy",
    "CapturePayload",
    "encode_image",
    "build_simple_payload",
    "build_payload",
]

logger = Logger.get_logger("capture.payload")


class DepthDataQuality(IntEnum):
    """Depth quality reported by the sensor (device raw values)."""

    LOW = 0
    HIGH = 1


class DepthDataAccuracy(IntEnum):
    """Whether depth values are metric (absolute) or only relative."""

    RELATIVE = 0
    ABSOLUTE = 1


def _enum_value(enum_cls: Type[IntEnum], raw: Any) -> IntEnum | int:
    """Known member for ``raw``, or the plain int for values newer devices add."""
    try:
        value = int(raw)
    except (TypeError, ValueError) as e:
        raise SerializationFailure(
            f"{enum_cls.__name__} raw value {raw!r} is not an integer"
        ) from e
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} raw value {value}, sent as is")
        return value


def encode_image(
    image: bytes | np.ndarray,
    ext: str = CAPCFG.image_ext,
    quality: int = CAPCFG.jpeg_quality,
) -> str:
    """
    Return ``image`` as base64 text.

    Bytes are taken as an already compressed file (JPEG, HEIC, PNG) and are
    passed through. Pixel arrays are compressed with OpenCV first.
    """
    if isinstance(image, (bytes, bytearray, memoryview)):
        data = bytes(image)
    else:
        params = [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)]
        try:
            ok, buf = cv2.imencode(ext, np.asarray(image), params)
        except cv2.error as e:
            raise SerializationFailure(f"image encoding failed: {e}") from e
        if not ok:
            raise SerializationFailure(f"image encoding to {ext} failed")
        data = buf.tobytes()
    if not data:
        raise SerializationFailure("empty image data")
    return base64.b64encode(data).decode("ascii")


def _cloud_rows(points: Optional[np.ndarray]) -> list[list[float]] | None:
    if points is None:
        return None
    return np.asarray(points, dtype=np.float64).reshape(-1, 3).tolist()


@dataclass(frozen=True, eq=False)
class CapturePayload:
    """
    Document sent to the capture server.

    ``calibration`` and ``depth_grid`` are ``None`` for the simple shape.
    ``point_cloud`` is ``None`` when a plate point was chosen instead.
    """

    image: str
    depth_quality: DepthDataQuality | int
    depth_accuracy: DepthDataAccuracy | int
    point_cloud: Optional[np.ndarray] = None
    calibration: Optional[CalibrationRecord] = None
    depth_grid: Optional[DepthGrid] = None
    plate_point: Optional[Tuple[int, int]] = None

    @property
    def is_simple(self) -> bool:
        return self.calibration is None

    def to_dict(self) -> dict[str, Any]:
        """Wire layout: simple (hyphenated keys) or full calibrated capture."""
        if self.is_simple:
            return {
                "image": self.image,
                "depth-accuracy": int(self.depth_accuracy),
                "depth-quality": int(self.depth_quality),
                "point-cloud": _cloud_rows(self.point_cloud) or [],
            }

        doc: dict[str, Any] = {
            "image": self.image,
            "calibration_data": self.calibration.to_dict(),
            "depth_data": self.depth_grid.to_rows(),
        }
        if self.plate_point is None:
            doc["point_cloud"] = _cloud_rows(self.point_cloud) or []
        doc["depth_quality"] = int(self.depth_quality)
        doc["depth_accuracy"] = int(self.depth_accuracy)
        if self.plate_point is not None:
            doc["plate_point"] = [int(self.plate_point[0]), int(self.plate_point[1])]
        return doc

    def to_json(self, indent: int | None = None) -> bytes:
        """UTF-8 JSON; any non-finite number left in the document is an error."""
        try:
            text = json.dumps(self.to_dict(), indent=indent, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise SerializationFailure(f"payload encoding failed: {e}") from e
        return text.encode("utf-8")

    @classmethod
    def from_json(cls, data: bytes | str) -> "CapturePayload":
        """Parse either wire shape back into a payload."""
        doc = json.loads(data)
        if "calibration_data" not in doc:
            cloud = doc.get("point-cloud")
            return cls(
                image=doc["image"],
                depth_quality=_enum_value(DepthDataQuality, doc["depth-quality"]),
                depth_accuracy=_enum_value(DepthDataAccuracy, doc["depth-accuracy"]),
                point_cloud=np.asarray(cloud, dtype=np.float64).reshape(-1, 3),
            )
        cloud = doc.get("point_cloud")
        plate = doc.get("plate_point")
        return cls(
            image=doc["image"],
            depth_quality=_enum_value(DepthDataQuality, doc["depth_quality"]),
            depth_accuracy=_enum_value(DepthDataAccuracy, doc["depth_accuracy"]),
            point_cloud=(
                np.asarray(cloud, dtype=np.float64).reshape(-1, 3)
                if cloud is not None
                else None
            ),
            calibration=CalibrationRecord.from_dict(doc["calibration_data"]),
            depth_grid=DepthGrid.from_rows(doc["depth_data"]),
            plate_point=tuple(plate) if plate is not None else None,
        )


def build_simple_payload(
    image: bytes | np.ndarray,
    point_cloud: np.ndarray,
    depth_quality: int,
    depth_accuracy: int,
) -> CapturePayload:
    """Image plus point cloud and the sensor's quality/accuracy enumerants."""
    payload = CapturePayload(
        image=encode_image(image),
        depth_quality=_enum_value(DepthDataQuality, depth_quality),
        depth_accuracy=_enum_value(DepthDataAccuracy, depth_accuracy),
        point_cloud=point_cloud,
    )
    logger.info(f"Simple payload: {len(point_cloud)} points")
    return payload


def build_payload(
    image: bytes | np.ndarray,
    depth_grid: DepthGrid,
    calibration: CalibrationRecord,
    point_cloud: Optional[np.ndarray],
    depth_quality: int,
    depth_accuracy: int,
    plate_point: Optional[Tuple[int, int]] = None,
) -> CapturePayload:
    """
    Full calibrated capture: raw depth grid, calibration and either the
    point cloud or a single reference pixel chosen downstream.
    """
    if plate_point is not None:
        plate_point = (int(plate_point[0]), int(plate_point[1]))
        point_cloud = None
    payload = CapturePayload(
        image=encode_image(image),
        depth_quality=_enum_value(DepthDataQuality, depth_quality),
        depth_accuracy=_enum_value(DepthDataAccuracy, depth_accuracy),
        point_cloud=point_cloud,
        calibration=calibration,
        depth_grid=depth_grid,
        plate_point=plate_point,
    )
    if plate_point is not None:
        logger.info(
            f"Payload: depth {depth_grid.width}x{depth_grid.height}, "
            f"plate point {plate_point}"
        )
    else:
        n = 0 if point_cloud is None else len(point_cloud)
        logger.info(
            f"Payload: depth {depth_grid.width}x{depth_grid.height}, {n} points"
        )
    return payload
