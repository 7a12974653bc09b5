"""Distance statistics over a fixed window centered on the depth map."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .buffer import FrameBufferView, OutOfBounds


class WindowOutOfBounds(OutOfBounds):
    """The statistics window does not fit inside the frame."""


@dataclass(frozen=True)
class WindowSpec:
    width: int = 40
    height: int = 20


@dataclass(frozen=True)
class ValidityRange:
    low: float = 0.15  # meters, inclusive
    high: float = 0.5

    def mask(self, values: np.ndarray) -> np.ndarray:
        # NaN compares False on both sides and is never valid
        return (values >= self.low) & (values <= self.high)


WINDOW = WindowSpec()
VALID_RANGE = ValidityRange()

# Running min/max start values; a window without valid samples keeps them.
NO_DATA_MIN = float(np.finfo(np.float16).max)
NO_DATA_MAX = float(np.finfo(np.float16).min)


@dataclass(frozen=True)
class Statistics:
    average: float  # meters
    min: float
    max: float

    @property
    def has_data(self) -> bool:
        return not (self.min == NO_DATA_MIN and self.max == NO_DATA_MAX)

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.average, self.min, self.max))


def window_origin(width: int, height: int, window: WindowSpec = WINDOW) -> Tuple[int, int]:
    """Return ``(x0, y0)`` of ``window`` centered in a ``width`` x ``height`` frame."""
    return width // 2 - window.width // 2, height // 2 - window.height // 2


def check_window_fits(width: int, height: int, window: WindowSpec = WINDOW) -> None:
    if width < window.width or height < window.height:
        raise WindowOutOfBounds(
            f"window {window.width}x{window.height} does not fit frame {width}x{height}"
        )


def compute_stats(
    view: FrameBufferView,
    window: WindowSpec = WINDOW,
    valid: ValidityRange = VALID_RANGE,
) -> Statistics:
    """Average, min and max distance inside the centered window.

    The average is taken over every window sample. Min and max only consider
    samples within ``valid`` and stay at ``NO_DATA_MIN``/``NO_DATA_MAX`` when
    there are none. A zero-area window yields a NaN average.

    Raises:
        WindowOutOfBounds: if the window does not fit the view.
    """
    check_window_fits(view.width, view.height, window)
    x0, y0 = window_origin(view.width, view.height, window)
    block = view.region(y0, x0, window.height, window.width).astype(np.float64)

    total = float(block.sum())
    area = window.width * window.height
    average = total / area if area > 0 else math.nan

    inside = block[valid.mask(block)]
    if inside.size:
        lo = float(inside.min())
        hi = float(inside.max())
    else:
        lo, hi = NO_DATA_MIN, NO_DATA_MAX
    return Statistics(average=average, min=lo, max=hi)
