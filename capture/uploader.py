"""Single best-effort upload of a capture payload."""

from __future__ import annotations

import threading
from typing import Callable, Optional

import requests

from capture.payload import CapturePayload
from utils.error_tracker import CaptureError, TransportFailure
from utils.logger import Logger, LoggerType
from utils.settings import capture as CAPCFG, transport as NETCFG

__all__ = ["CaptureUploader"]


class CaptureUploader:
    """POST capture documents to the capture server. No retries."""

    def __init__(
        self,
        endpoint: str = NETCFG.endpoint,
        timeout: float = NETCFG.timeout,
        json_indent: int | None = CAPCFG.json_indent,
        logger: LoggerType | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self.json_indent = json_indent
        self.logger = logger or Logger.get_logger("capture.uploader")

    def send_bytes(self, body: bytes) -> str:
        """POST an encoded document and return the response body as text."""
        headers = {"Content-Type": "application/json"}
        self.logger.info(f"Sending capture ({len(body)} B) to {self.endpoint}")
        try:
            response = requests.post(
                self.endpoint, data=body, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            self.logger.error(f"Capture send request failed: {e}")
            raise TransportFailure(str(e)) from e
        self.logger.info(f"Capture sent, HTTP {response.status_code}")
        return response.text

    def send(self, payload: CapturePayload) -> str:
        indent = None if payload.is_simple else self.json_indent
        return self.send_bytes(payload.to_json(indent=indent))

    def send_async(
        self,
        payload: CapturePayload,
        on_result: Optional[Callable[[str], None]] = None,
    ) -> threading.Thread:
        """
        Upload on a daemon thread. ``on_result`` receives the server reply or
        the error message; the caller may ignore it.
        """
        body = payload.to_json(indent=None if payload.is_simple else self.json_indent)

        def _worker() -> None:
            try:
                result = self.send_bytes(body)
            except CaptureError as e:
                result = f"Capture send request failed: {e}"
            if on_result is not None:
                on_result(result)

        thread = threading.Thread(target=_worker, name="capture-upload", daemon=True)
        thread.start()
        return thread
