"""Frame data model for synchronized depth + video capture."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np


class Accuracy(Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"


class SampleFormat(Enum):
    DEPTH_FLOAT16 = "float16"
    DEPTH_FLOAT32 = "float32"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)


class BufferNotLocked(RuntimeError):
    """Raised when buffer memory is read without holding a lock."""


@dataclass(eq=False)
class DepthBuffer:
    """Raw depth-map memory with row stride and read-only lock counting.

    ``data`` holds ``height * stride`` samples in row-major order. Rows may be
    padded (``stride > width``); padding samples are never visited.
    """

    data: np.ndarray
    width: int
    height: int
    stride: int = 0
    sample_format: SampleFormat = SampleFormat.DEPTH_FLOAT16
    _locks: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.stride <= 0:
            self.stride = self.width
        if self.stride < self.width:
            raise ValueError("stride must be >= width")
        flat = np.asarray(self.data).reshape(-1)
        if flat.size < self.height * self.stride:
            raise ValueError("data is smaller than height * stride")
        self.data = flat.astype(self.sample_format.dtype, copy=False)

    @classmethod
    def from_array(
        cls,
        depth_m: np.ndarray,
        sample_format: SampleFormat = SampleFormat.DEPTH_FLOAT16,
    ) -> "DepthBuffer":
        """Wrap an HxW array of distances in meters."""
        arr = np.asarray(depth_m)
        if arr.ndim != 2:
            raise ValueError("depth_m must be HxW array")
        h, w = arr.shape
        return cls(
            np.ascontiguousarray(arr, dtype=sample_format.dtype),
            width=w,
            height=h,
            sample_format=sample_format,
        )

    @property
    def is_locked(self) -> bool:
        return self._locks > 0

    def lock(self) -> None:
        self._locks += 1

    def unlock(self) -> None:
        if self._locks == 0:
            raise RuntimeError("unlock without matching lock")
        self._locks -= 1

    def base_address(self) -> np.ndarray:
        """Return a read-only flat view of the sample memory (must be locked)."""
        if not self.is_locked:
            raise BufferNotLocked("depth buffer must be locked before reading")
        view = self.data.view()
        view.flags.writeable = False
        return view


@dataclass
class DepthFrame:
    buffer: DepthBuffer
    accuracy: Accuracy = Accuracy.ABSOLUTE
    dropped: bool = False

    @property
    def width(self) -> int:
        return self.buffer.width

    @property
    def height(self) -> int:
        return self.buffer.height


@dataclass
class VideoFrame:
    pixels: Optional[np.ndarray] = None  # BGR image; not processed by the core
    dropped: bool = False


@dataclass
class SyncedFramePair:
    """Depth and video frames sharing one capture timestamp."""

    depth: DepthFrame
    video: VideoFrame
    timestamp: float = 0.0
