"""Per-frame processing: validate, summarize, project, publish.

The processor holds no mutable state of its own. Everything that outlives a
single frame lives in the ``CaptureContext`` owned by the capture session.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

import numpy as np

from .buffer import locked_view
from .display import DisplayStats, project, render_image
from .frames import SyncedFramePair
from .stats import WINDOW, Statistics, WindowSpec, check_window_fits, compute_stats
from .validator import FramePairValidator

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    timestamp: float
    stats: Statistics
    display: DisplayStats
    image: np.ndarray  # left-mirrored grayscale, float32 in [0, 1]


@dataclass
class CaptureContext:
    """Session-scoped state handed to the processor for each frame."""

    name: str = "session"
    window: WindowSpec = WINDOW
    frame_size: Optional[Tuple[int, int]] = None  # (w, h) checked against window
    validator: FramePairValidator = field(default_factory=FramePairValidator)
    accepted: int = 0
    discarded: int = 0

    @property
    def rejected(self) -> int:
        return sum(self.validator.rejected.values())


Sink = Callable[[FrameResult], None]


class ResultSlot:
    """Latest-result mailbox read by the UI thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: Optional[FrameResult] = None
        self._seq = 0

    def publish(self, result: FrameResult) -> None:
        with self._lock:
            self._latest = result
            self._seq += 1

    def latest(self) -> Tuple[int, Optional[FrameResult]]:
        """Return ``(sequence, result)``; sequence grows with every publish."""
        with self._lock:
            return self._seq, self._latest


class FrameProcessor:
    def __init__(self, sink: Optional[Sink] = None) -> None:
        self.sink = sink

    def process(
        self, pair: SyncedFramePair, ctx: CaptureContext
    ) -> Optional[FrameResult]:
        """Summarize one synchronized pair and publish it.

        Returns None when the pair is rejected or its output discarded.

        Raises:
            WindowOutOfBounds: the window does not fit the frame size.
        """
        if not ctx.validator.accept(pair):
            return None

        size = (pair.depth.width, pair.depth.height)
        if ctx.frame_size != size:
            check_window_fits(size[0], size[1], ctx.window)
            if ctx.frame_size is not None:
                logger.info("frame size changed %s -> %s", ctx.frame_size, size)
            ctx.frame_size = size

        with locked_view(pair.depth.buffer) as view:
            stats = compute_stats(view, ctx.window)
            if not stats.is_finite:
                ctx.discarded += 1
                logger.debug("discarding non-finite stats at t=%.3f", pair.timestamp)
                return None
            if not stats.has_data:
                ctx.discarded += 1
                logger.debug("no valid samples in window at t=%.3f", pair.timestamp)
                return None
            image = render_image(view)

        result = FrameResult(
            timestamp=pair.timestamp,
            stats=stats,
            display=project(stats),
            image=image,
        )
        ctx.accepted += 1
        if self.sink is not None:
            self.sink(result)
        return result
