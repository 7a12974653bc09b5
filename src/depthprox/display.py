"""Conversion of statistics and depth maps into displayable values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .buffer import FrameBufferView
from .stats import Statistics

MM_PER_METER = 1000.0


def _format_mm(value: float) -> str:
    # 300.0 -> "300", 299.84 -> "299.8"
    return np.format_float_positional(round(value, 1), trim="-")


@dataclass(frozen=True)
class DisplayStats:
    average_mm: float
    min_mm: int
    max_mm: int

    @property
    def average_label(self) -> str:
        return f"avg: {_format_mm(self.average_mm)}mm"

    @property
    def min_label(self) -> str:
        return f"min: {self.min_mm} mm"

    @property
    def max_label(self) -> str:
        return f"max: {self.max_mm} mm"

    def labels(self) -> Tuple[str, str, str]:
        return self.average_label, self.min_label, self.max_label


def project(stats: Statistics) -> DisplayStats:
    """Convert meters to millimeters; min/max rounded to whole millimeters.

    Callers must only project finite statistics.
    """
    return DisplayStats(
        average_mm=stats.average * MM_PER_METER,
        min_mm=int(round(stats.min * MM_PER_METER)),
        max_mm=int(round(stats.max * MM_PER_METER)),
    )


def render_image(view: FrameBufferView) -> np.ndarray:
    """Grayscale float32 image of the depth map in left-mirrored orientation.

    Left-mirrored (EXIF orientation 5) is a transpose: stored ``(row, col)``
    shows at ``(col, row)``. Distances are used directly as intensities in
    [0, 1]; invalid samples render black. The result is a copy, safe to keep
    after the buffer is unlocked.
    """
    depth = view.as_array().astype(np.float32)
    img = np.ascontiguousarray(depth.T)
    img = np.nan_to_num(img, nan=0.0, posinf=0.0, neginf=0.0)
    np.clip(img, 0.0, 1.0, out=img)
    return img


def to_rgba(image: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    """Resize a grayscale image to ``size`` (w, h) and expand to RGBA float32."""
    import cv2  # local import

    w, h = size
    if image.shape[1] != w or image.shape[0] != h:
        image = cv2.resize(image, (w, h), interpolation=cv2.INTER_NEAREST)
    rgba = np.empty((h, w, 4), dtype=np.float32)
    rgba[:, :, :3] = image[:, :, None]
    rgba[:, :, 3] = 1.0
    return rgba
