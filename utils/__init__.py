"""Shared helper modules used across the project.

The :mod:`utils` package contains lightweight helpers for logging, CLI
dispatching, configuration and capture file I/O. These utilities are used by
most other packages and avoid additional dependencies.
"""

from .logger import Logger, LoggerType
from .settings import (
    paths,
    logging,
    transport,
    capture,
    projection,
)
from .error_tracker import (
    CaptureError,
    EmptyCapture,
    DepthLayoutError,
    MissingCalibration,
    SerializationFailure,
    TransportFailure,
    ErrorTracker,
)

__all__ = [
    "Logger",
    "LoggerType",
    "paths",
    "logging",
    "transport",
    "capture",
    "projection",
    "CaptureError",
    "EmptyCapture",
    "DepthLayoutError",
    "MissingCalibration",
    "SerializationFailure",
    "TransportFailure",
    "ErrorTracker",
]
