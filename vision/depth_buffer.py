"""Scoped decoding of hardware depth buffers into immutable depth grids."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

import numpy as np

from utils.error_tracker import DepthLayoutError, EmptyCapture
from utils.logger import Logger
from utils.settings import DEPTH_SAMPLE_SIZE

__all__ = [
    "DEPTH_FLOAT32",
    "DepthGrid",
    "DepthMapHandle",
    "ArrayDepthMap",
    "locked",
    "read_depth_grid",
]

# Only layout the decoder accepts: one native-endian IEEE float32 per pixel
DEPTH_FLOAT32 = "DepthFloat32"
_SAMPLE_DTYPE = np.dtype("=f4")

logger = Logger.get_logger("vision.depth_buffer")


@dataclass(frozen=True, eq=False)
class DepthGrid:
    """Immutable ``height x width`` grid of float32 depth samples (meters)."""

    data: np.ndarray

    def __post_init__(self) -> None:
        arr = np.array(self.data, dtype=np.float32)
        if arr.ndim != 2:
            if arr.size == 0:
                arr = arr.reshape(0, 0)
            else:
                raise ValueError(f"Depth grid must be 2D, got shape {arr.shape}")
        arr.setflags(write=False)
        object.__setattr__(self, "data", arr)

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def value(self, row: int, col: int) -> float:
        return float(self.data[row, col])

    def to_rows(self) -> list[list[float | None]]:
        """Nested row lists; NaN and infinities become ``None``."""
        rows = self.data.astype(np.float64).tolist()
        if np.isfinite(self.data).all():
            return rows
        return [[v if np.isfinite(v) else None for v in row] for row in rows]

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float | None]]) -> "DepthGrid":
        """Inverse of :meth:`to_rows`; ``None`` cells decode as NaN."""
        if len(rows) == 0:
            return cls(np.zeros((0, 0), dtype=np.float32))
        values = [[np.nan if v is None else v for v in row] for row in rows]
        return cls(np.asarray(values, dtype=np.float32))


class DepthMapHandle(ABC):
    """Opaque hardware-owned depth buffer with lock/unlock access."""

    @property
    @abstractmethod
    def width(self) -> int:
        """Pixels per row."""

    @property
    @abstractmethod
    def height(self) -> int:
        """Number of rows."""

    @property
    @abstractmethod
    def bytes_per_row(self) -> int:
        """Row stride in bytes, padding included."""

    @property
    @abstractmethod
    def pixel_format(self) -> str:
        """Sample format identifier."""

    @abstractmethod
    def lock(self) -> None:
        """Acquire read access to the base address."""

    @abstractmethod
    def unlock(self) -> None:
        """Release read access."""

    @abstractmethod
    def base_address(self) -> memoryview:
        """Raw buffer contents; only valid while locked."""


class ArrayDepthMap(DepthMapHandle):
    """In-memory depth map handle over a raw byte buffer."""

    def __init__(
        self,
        buffer: bytes | bytearray | memoryview,
        width: int,
        height: int,
        bytes_per_row: Optional[int] = None,
        pixel_format: str = DEPTH_FLOAT32,
    ) -> None:
        self._buffer = bytes(buffer)
        self._width = int(width)
        self._height = int(height)
        self._bytes_per_row = (
            int(bytes_per_row)
            if bytes_per_row is not None
            else self._width * DEPTH_SAMPLE_SIZE
        )
        self._pixel_format = pixel_format
        self.lock_count = 0

    @classmethod
    def from_array(cls, depth: np.ndarray, row_padding: int = 0) -> "ArrayDepthMap":
        """Wrap a 2D float array, optionally padding each row with zero bytes."""
        arr = np.ascontiguousarray(depth, dtype=_SAMPLE_DTYPE)
        if arr.ndim != 2:
            raise ValueError(f"Depth map must be 2D, got shape {arr.shape}")
        height, width = arr.shape
        stride = width * DEPTH_SAMPLE_SIZE + row_padding
        raw = np.zeros((height, stride), dtype=np.uint8)
        raw[:, : width * DEPTH_SAMPLE_SIZE] = arr.view(np.uint8).reshape(height, -1)
        return cls(raw.tobytes(), width, height, bytes_per_row=stride)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def bytes_per_row(self) -> int:
        return self._bytes_per_row

    @property
    def pixel_format(self) -> str:
        return self._pixel_format

    @property
    def is_locked(self) -> bool:
        return self.lock_count > 0

    def lock(self) -> None:
        self.lock_count += 1

    def unlock(self) -> None:
        if self.lock_count == 0:
            raise RuntimeError("Depth map unlocked without a matching lock")
        self.lock_count -= 1

    def base_address(self) -> memoryview:
        if not self.is_locked:
            raise RuntimeError("Depth map accessed while unlocked")
        return memoryview(self._buffer)


@contextmanager
def locked(handle: DepthMapHandle) -> Iterator[DepthMapHandle]:
    """Hold the buffer lock for the duration of the ``with`` block."""
    handle.lock()
    try:
        yield handle
    finally:
        handle.unlock()


def _check_layout(handle: DepthMapHandle, buffer_len: int) -> None:
    width, height, stride = handle.width, handle.height, handle.bytes_per_row
    if handle.pixel_format != DEPTH_FLOAT32:
        raise DepthLayoutError(
            f"Unsupported depth format {handle.pixel_format!r}, "
            f"expected {DEPTH_FLOAT32}"
        )
    if _SAMPLE_DTYPE.itemsize != DEPTH_SAMPLE_SIZE:
        raise DepthLayoutError("float32 samples must be 4 bytes wide")
    if stride < width * DEPTH_SAMPLE_SIZE:
        raise DepthLayoutError(
            f"Row stride {stride} B is shorter than {width} float32 samples"
        )
    if buffer_len < stride * height:
        raise DepthLayoutError(
            f"Buffer holds {buffer_len} B, layout needs {stride * height} B"
        )


def read_depth_grid(handle: DepthMapHandle) -> DepthGrid:
    """
    Copy a locked depth buffer into a :class:`DepthGrid`.

    Raises :class:`EmptyCapture` for a 0-sized map and
    :class:`DepthLayoutError` when the buffer is not packed float32 rows.
    NaN and zero samples are kept as-is.
    """
    width, height = handle.width, handle.height
    if width == 0 or height == 0:
        logger.warning(f"Empty depth map {width}x{height}")
        raise EmptyCapture(f"depth map is {width}x{height}")

    with locked(handle):
        raw = handle.base_address()
        _check_layout(handle, raw.nbytes)
        stride = handle.bytes_per_row
        rows = np.frombuffer(raw, dtype=np.uint8, count=stride * height)
        rows = rows.reshape(height, stride)[:, : width * DEPTH_SAMPLE_SIZE]
        depth = np.ascontiguousarray(rows).view(_SAMPLE_DTYPE).copy()

    logger.debug(f"Decoded depth map {width}x{height}, stride {stride} B")
    return DepthGrid(depth)
