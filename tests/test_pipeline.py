import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
import json

import numpy as np
import pytest

from capture.pipeline import CapturePipeline
from capture.uploader import CaptureUploader
from utils.error_tracker import EmptyCapture, MissingCalibration, TransportFailure
from vision.calibration import CalibrationRecord
from vision.depth_buffer import ArrayDepthMap

JPEG = b"\xff\xd8\xff\xe0pipeline\xff\xd9"


class RecordingUploader(CaptureUploader):
    def __init__(self, reply="ok", fail=False):
        super().__init__(endpoint="http://capture.local/capture")
        self.reply = reply
        self.fail = fail
        self.bodies = []

    def send_bytes(self, body):
        self.bodies.append(body)
        if self.fail:
            raise TransportFailure("connection refused")
        return self.reply


@pytest.fixture
def depth_map():
    depth = np.array([[1.0, 0.0, 1.5], [np.nan, 2.0, 0.8]], dtype=np.float32)
    return ArrayDepthMap.from_array(depth, row_padding=4)


def test_process_full_payload(depth_map, flat_calibration):
    payload = CapturePipeline(uploader=RecordingUploader()).process(
        depth_map, flat_calibration, JPEG, 1, 1
    )
    assert payload.depth_grid.width == 3
    assert payload.point_cloud.shape == (4, 3)
    assert payload.plate_point is None
    assert depth_map.lock_count == 0


def test_process_simple_payload(depth_map, flat_calibration):
    payload = CapturePipeline(uploader=RecordingUploader()).process(
        depth_map, flat_calibration, JPEG, 0, 0, shape="simple"
    )
    assert payload.is_simple
    assert "point-cloud" in payload.to_dict()


def test_process_with_plate_point(depth_map, flat_calibration):
    payload = CapturePipeline(uploader=RecordingUploader()).process(
        depth_map, flat_calibration, JPEG, 1, 1, plate_point=(10, 20)
    )
    assert payload.point_cloud is None
    assert payload.to_dict()["plate_point"] == [10, 20]


def test_process_raises_capture_errors(flat_calibration):
    pipeline = CapturePipeline(uploader=RecordingUploader())
    with pytest.raises(EmptyCapture):
        pipeline.process(ArrayDepthMap(b"", 0, 0), flat_calibration, JPEG, 0, 0)
    depth_map = ArrayDepthMap.from_array(np.ones((2, 2), np.float32))
    with pytest.raises(MissingCalibration):
        pipeline.process(depth_map, CalibrationRecord(), JPEG, 0, 0)


def test_run_returns_server_reply(depth_map, flat_calibration):
    uploader = RecordingUploader(reply="received")
    result = CapturePipeline(uploader=uploader).run(
        depth_map, flat_calibration, JPEG, 1, 1
    )
    assert result == "received"
    assert len(uploader.bodies) == 1


def test_run_reports_status(flat_calibration):
    uploader = RecordingUploader()
    pipeline = CapturePipeline(uploader=uploader)
    assert pipeline.run(ArrayDepthMap(b"", 4, 0), flat_calibration, JPEG, 0, 0) == (
        "no depth"
    )
    depth_map = ArrayDepthMap.from_array(np.ones((2, 2), np.float32))
    assert pipeline.run(depth_map, CalibrationRecord(), JPEG, 0, 0) == (
        "calibration unavailable"
    )
    assert uploader.bodies == []


def test_run_reports_transport_failure(depth_map, flat_calibration):
    pipeline = CapturePipeline(uploader=RecordingUploader(fail=True))
    result = pipeline.run(depth_map, flat_calibration, JPEG, 0, 0)
    assert result == "Capture send request failed"


def test_rescale_calibration(device_calibration):
    depth_map = ArrayDepthMap.from_array(np.full((288, 384), 1.0, np.float32))
    plain = CapturePipeline(uploader=RecordingUploader()).process(
        depth_map, device_calibration, JPEG, 1, 1
    )
    scaled = CapturePipeline(
        uploader=RecordingUploader(), rescale_calibration=True
    ).process(depth_map, device_calibration, JPEG, 1, 1)
    assert scaled.calibration.fx == pytest.approx(295.0)
    assert plain.calibration.fx == 590.0
    assert not np.allclose(plain.point_cloud, scaled.point_cloud)


class RecordingLogger:
    def __init__(self):
        self.records = []

    def info(self, message):
        self.records.append(("info", message))

    def warning(self, message):
        self.records.append(("warning", message))


def test_run_sends_unknown_quality_unchanged(flat_calibration):
    uploader = RecordingUploader(reply="received")
    depth_map = ArrayDepthMap.from_array(np.ones((2, 2), np.float32))
    result = CapturePipeline(uploader=uploader).run(
        depth_map, flat_calibration, JPEG, 2, 1
    )
    assert result == "received"
    doc = json.loads(uploader.bodies[0])
    assert doc["depth_quality"] == 2
    assert doc["depth_accuracy"] == 1


def test_run_reports_malformed_quality(flat_calibration):
    uploader = RecordingUploader()
    depth_map = ArrayDepthMap.from_array(np.ones((2, 2), np.float32))
    result = CapturePipeline(uploader=uploader).run(
        depth_map, flat_calibration, JPEG, "high", 1
    )
    assert result == "failed to serialize capture"
    assert uploader.bodies == []


def test_simple_shape_drops_plate_point_with_warning(depth_map, flat_calibration):
    log = RecordingLogger()
    payload = CapturePipeline(uploader=RecordingUploader(), logger=log).process(
        depth_map, flat_calibration, JPEG, 1, 1, plate_point=(1, 0), shape="simple"
    )
    assert payload.plate_point is None
    assert payload.point_cloud.shape == (4, 3)
    warnings = [msg for level, msg in log.records if level == "warning"]
    assert len(warnings) == 1
    assert "(1, 0)" in warnings[0]
