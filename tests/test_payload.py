import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
import base64
import json

import numpy as np
import pytest

from capture.payload import (
    CapturePayload,
    DepthDataAccuracy,
    DepthDataQuality,
    build_payload,
    build_simple_payload,
    encode_image,
)
from geometry.depth_projection import project_depth_grid
from utils.error_tracker import SerializationFailure
from vision.calibration import CalibrationRecord
from vision.depth_buffer import DepthGrid

JPEG = b"\xff\xd8\xff\xe0fake-jpeg\xff\xd9"


@pytest.fixture
def grid():
    depth = np.array(
        [[1.0, 0.0, 1.2], [np.nan, 2.0, 2.5]],
        dtype=np.float32,
    )
    return DepthGrid(depth)


def test_encode_image_passes_compressed_bytes_through():
    assert base64.b64decode(encode_image(JPEG)) == JPEG


def test_encode_image_compresses_pixels():
    img = np.zeros((8, 8, 3), dtype=np.uint8)
    img[2:6, 2:6] = (0, 128, 255)
    data = base64.b64decode(encode_image(img))
    assert data[:2] == b"\xff\xd8"


def test_encode_image_rejects_empty():
    with pytest.raises(SerializationFailure):
        encode_image(b"")


def test_simple_shape(grid, flat_calibration):
    cloud = project_depth_grid(grid, flat_calibration)
    payload = build_simple_payload(JPEG, cloud, 1, 0)
    doc = json.loads(payload.to_json())
    assert set(doc) == {"image", "depth-accuracy", "depth-quality", "point-cloud"}
    assert doc["depth-quality"] == DepthDataQuality.HIGH == 1
    assert doc["depth-accuracy"] == DepthDataAccuracy.RELATIVE == 0
    assert len(doc["point-cloud"]) == 4
    assert all(len(p) == 3 for p in doc["point-cloud"])


def test_full_shape(grid, flat_calibration):
    cloud = project_depth_grid(grid, flat_calibration)
    payload = build_payload(JPEG, grid, flat_calibration, cloud, 0, 1)
    doc = json.loads(payload.to_json(indent=2))
    assert set(doc) == {
        "image",
        "calibration_data",
        "depth_data",
        "point_cloud",
        "depth_quality",
        "depth_accuracy",
    }
    assert doc["depth_data"] == [[1.0, 0.0, pytest.approx(1.2)], [None, 2.0, 2.5]]
    assert len(doc["point_cloud"]) == 4
    assert doc["calibration_data"]["lens_distortion_center"] == [1.0, 1.0]
    assert doc["calibration_data"]["intrinsic_matrix"] == [
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [1.0, 1.0, 1.0],
    ]


def test_plate_point_replaces_cloud(grid, flat_calibration):
    payload = build_payload(
        JPEG, grid, flat_calibration, None, 1, 1, plate_point=(1512.7, 2016.2)
    )
    doc = payload.to_dict()
    assert "point_cloud" not in doc
    assert doc["plate_point"] == [1512, 2016]
    assert len(doc["depth_data"]) == 2


def test_round_trip(grid, device_calibration):
    cloud = project_depth_grid(grid, device_calibration)
    payload = build_payload(JPEG, grid, device_calibration, cloud, 1, 1)
    back = CapturePayload.from_json(payload.to_json(indent=2))
    assert (back.depth_grid.width, back.depth_grid.height) == (3, 2)
    assert np.isnan(back.depth_grid.value(1, 0))
    assert back.point_cloud.shape == cloud.shape
    assert np.allclose(back.point_cloud, cloud)
    assert back.calibration.to_dict() == device_calibration.to_dict()
    assert back.depth_quality is DepthDataQuality.HIGH
    assert back.plate_point is None
    assert base64.b64decode(back.image) == JPEG


def test_simple_round_trip(grid, flat_calibration):
    cloud = project_depth_grid(grid, flat_calibration)
    back = CapturePayload.from_json(build_simple_payload(JPEG, cloud, 0, 1).to_json())
    assert back.is_simple
    assert np.allclose(back.point_cloud, cloud)
    assert back.depth_accuracy is DepthDataAccuracy.ABSOLUTE


def test_non_finite_calibration_fails_serialization(grid):
    cal = CalibrationRecord.from_pinhole(
        1.0, 1.0, 1.0, 1.0, [0.0, 0.0], (1.0, 1.0), pixel_size=float("nan")
    )
    payload = build_payload(JPEG, grid, cal, None, 0, 0, plate_point=(0, 0))
    with pytest.raises(SerializationFailure):
        payload.to_json()


def test_unknown_enum_value_kept_as_raw_int():
    payload = build_simple_payload(JPEG, np.zeros((0, 3)), 7, 0)
    assert payload.depth_quality == 7
    assert not isinstance(payload.depth_quality, DepthDataQuality)
    assert payload.depth_accuracy is DepthDataAccuracy.RELATIVE
    body = payload.to_json()
    assert json.loads(body)["depth-quality"] == 7
    assert CapturePayload.from_json(body).depth_quality == 7


def test_non_integer_enum_value_fails_serialization():
    with pytest.raises(SerializationFailure):
        build_simple_payload(JPEG, np.zeros((0, 3)), "high", 0)
