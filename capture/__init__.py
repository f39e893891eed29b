"""Capture payload building and upload.

Combines the decoded depth grid, point cloud, calibration and color image
into the JSON document expected by the capture server.
"""

from .payload import (
    CapturePayload,
    DepthDataAccuracy,
    DepthDataQuality,
    build_payload,
    build_simple_payload,
    encode_image,
)
from .uploader import CaptureUploader
from .pipeline import CapturePipeline

__all__ = [
    "CapturePayload",
    "DepthDataAccuracy",
    "DepthDataQuality",
    "build_payload",
    "build_simple_payload",
    "encode_image",
    "CaptureUploader",
    "CapturePipeline",
]
