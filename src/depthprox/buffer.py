"""Read-only, bounds-checked access to a locked depth buffer."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import numpy as np

from .frames import DepthBuffer, SampleFormat


class OutOfBounds(IndexError):
    """Access outside ``[0, height) x [0, width)``."""


class FrameBufferView:
    """Typed view over depth-map memory.

    Element ``(row, col)`` lives at linear offset ``row * stride + col``; for
    unpadded buffers ``stride == width`` which is the plain row-major layout.
    """

    def __init__(
        self,
        data: np.ndarray,
        width: int,
        height: int,
        stride: Optional[int] = None,
        sample_format: SampleFormat = SampleFormat.DEPTH_FLOAT16,
    ) -> None:
        self.width = int(width)
        self.height = int(height)
        self.stride = int(stride) if stride else self.width
        self.sample_format = sample_format
        if self.stride < self.width:
            raise ValueError("stride must be >= width")
        flat = np.asarray(data).reshape(-1)
        if flat.dtype != sample_format.dtype:
            raise ValueError(
                f"buffer dtype {flat.dtype} does not match {sample_format.value}"
            )
        if flat.size < self.height * self.stride:
            raise ValueError("buffer is smaller than height * stride")
        rows = flat[: self.height * self.stride].reshape(self.height, self.stride)
        self._arr = rows[:, : self.width]
        self._arr.flags.writeable = False
        self._flat = flat

    @classmethod
    def of(cls, buffer: DepthBuffer) -> "FrameBufferView":
        return cls(
            buffer.base_address(),
            buffer.width,
            buffer.height,
            buffer.stride,
            buffer.sample_format,
        )

    def sample(self, row: int, col: int) -> float:
        if not (0 <= row < self.height and 0 <= col < self.width):
            raise OutOfBounds(
                f"sample ({row}, {col}) outside {self.height}x{self.width}"
            )
        return self._flat[row * self.stride + col]

    def region(self, row0: int, col0: int, height: int, width: int) -> np.ndarray:
        """Return the ``height`` x ``width`` block starting at ``(row0, col0)``."""
        if height < 0 or width < 0:
            raise OutOfBounds("region size must be non-negative")
        if (
            row0 < 0
            or col0 < 0
            or row0 + height > self.height
            or col0 + width > self.width
        ):
            raise OutOfBounds(
                f"region ({row0}, {col0}, {height}x{width}) outside "
                f"{self.height}x{self.width}"
            )
        return self._arr[row0 : row0 + height, col0 : col0 + width]

    def as_array(self) -> np.ndarray:
        return self._arr


@contextmanager
def locked_view(buffer: DepthBuffer) -> Iterator[FrameBufferView]:
    """Lock ``buffer`` read-only for the duration of the block.

    The lock is released on every exit path, including exceptions.
    """
    buffer.lock()
    try:
        yield FrameBufferView.of(buffer)
    finally:
        buffer.unlock()
