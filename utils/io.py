"""File I/O helpers for offline capture directories."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple

import numpy as np

from utils.settings import (
    CALIBRATION_JSON,
    CAPTURE_META,
    DEPTH_BIN,
    DEPTH_NPY,
    IMAGE_NAMES,
)
from vision.calibration import CalibrationRecord
from vision.depth_buffer import ArrayDepthMap, DepthMapHandle


def read_bytes(path: str | Path) -> bytes:
    """Return the raw contents of ``path``."""
    return Path(path).read_bytes()


def load_json(path: str | Path) -> Any:
    """Load JSON data from ``path``."""
    with open(path, "r") as f:
        return json.load(f)


def save_json(path: str | Path, data: Any) -> None:
    """Write data as JSON to ``path``."""
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def load_npy(path: str | Path) -> np.ndarray:
    """Load an ``.npy`` array."""
    return np.load(path)


def save_xyz(path: str | Path, points: np.ndarray) -> None:
    """Write an (N, 3) cloud as whitespace separated text."""
    np.savetxt(path, np.asarray(points).reshape(-1, 3), fmt="%.6f")


@dataclass
class CaptureFiles:
    """Everything needed to rebuild one capture payload offline."""

    image: bytes
    depth_map: DepthMapHandle
    calibration: CalibrationRecord
    depth_quality: int = 0
    depth_accuracy: int = 0
    plate_point: Optional[Tuple[int, int]] = None


def _find_image(folder: Path) -> Path:
    for name in IMAGE_NAMES:
        candidate = folder / name
        if candidate.exists():
            return candidate
    raise FileNotFoundError(f"No image in {folder} (expected one of {IMAGE_NAMES})")


def load_capture(folder: str | Path) -> CaptureFiles:
    """
    Load a capture directory.

    ``capture.json`` describes the raw ``depth.bin`` layout (``width``,
    ``height``, optional ``bytes_per_row``) and carries ``depth_quality``,
    ``depth_accuracy`` and an optional ``plate_point``. ``depth.npy`` may
    replace ``depth.bin``.
    """
    folder = Path(folder)
    meta = load_json(folder / CAPTURE_META)
    calibration = CalibrationRecord.from_dict(load_json(folder / CALIBRATION_JSON))

    npy_path = folder / DEPTH_NPY
    if npy_path.exists():
        depth_map: DepthMapHandle = ArrayDepthMap.from_array(load_npy(npy_path))
    else:
        depth_map = ArrayDepthMap(
            read_bytes(folder / DEPTH_BIN),
            width=meta["width"],
            height=meta["height"],
            bytes_per_row=meta.get("bytes_per_row"),
        )

    plate = meta.get("plate_point")
    return CaptureFiles(
        image=read_bytes(_find_image(folder)),
        depth_map=depth_map,
        calibration=calibration,
        depth_quality=int(meta.get("depth_quality", 0)),
        depth_accuracy=int(meta.get("depth_accuracy", 0)),
        plate_point=(int(plate[0]), int(plate[1])) if plate is not None else None,
    )
