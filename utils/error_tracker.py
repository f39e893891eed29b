"""Capture error taxonomy and centralized unhandled exception tracking."""

from __future__ import annotations

import signal
import sys
import traceback
from typing import Callable, Optional

from utils.logger import Logger


class CaptureError(Exception):
    """Base class for errors that abort one capture attempt.

    ``status`` is the short message shown to the user in place of a reply.
    """

    status = "capture failed"


class EmptyCapture(CaptureError):
    """Raised when the depth map reports zero width or height."""

    status = "no depth"


class DepthLayoutError(CaptureError):
    """Raised when a depth buffer does not hold packed float32 samples."""

    status = "unsupported depth format"


class MissingCalibration(CaptureError):
    """Raised when intrinsics, lookup table or optical center are unavailable."""

    status = "calibration unavailable"


class SerializationFailure(CaptureError):
    """Raised when the capture payload cannot be encoded."""

    status = "failed to serialize capture"


class TransportFailure(CaptureError):
    """Raised when the upload request fails or times out."""

    status = "Capture send request failed"


class ErrorTracker:
    """Installable global exception hook that logs uncaught errors."""

    logger = Logger.get_logger("utils.error_tracker")
    _installed = False
    _orig_hook: Optional[Callable[..., None]] = None

    @classmethod
    def install_excepthook(cls) -> None:
        """Log unhandled exceptions through the project logger."""
        if cls._installed:
            return

        cls._orig_hook = sys.excepthook

        def _hook(exc_type, exc, tb) -> None:
            message = "".join(traceback.format_exception(exc_type, exc, tb))
            cls.logger.error(f"Unhandled exception:\n{message}")
            if cls._orig_hook:
                cls._orig_hook(exc_type, exc, tb)

        sys.excepthook = _hook
        cls._installed = True
        cls.logger.debug("Global exception hook installed")

    @classmethod
    def install_signal_handlers(cls) -> None:
        """Shutdown gracefully on SIGINT or SIGTERM."""

        def _handler(signum, frame) -> None:
            cls.logger.info(f"Received signal {signum}")
            raise SystemExit(1)

        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
