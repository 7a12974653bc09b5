"""Accept/reject policy for synchronized depth + video frame pairs."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from .frames import Accuracy, SyncedFramePair

logger = logging.getLogger(__name__)


def reject_reason(pair: SyncedFramePair) -> Optional[str]:
    """Return why ``pair`` is unusable, or None when it can be summarized."""
    if pair.depth.dropped:
        return "depth_dropped"
    if pair.video.dropped:
        return "video_dropped"
    if pair.depth.accuracy is not Accuracy.ABSOLUTE:
        return "not_absolute"
    return None


def accept(pair: SyncedFramePair) -> bool:
    reason = reject_reason(pair)
    if reason is not None:
        logger.debug("frame pair at t=%.3f rejected: %s", pair.timestamp, reason)
        return False
    return True


class FramePairValidator:
    """``accept`` with per-reason rejection counts for diagnostics."""

    def __init__(self) -> None:
        self.rejected: Counter[str] = Counter()

    def accept(self, pair: SyncedFramePair) -> bool:
        reason = reject_reason(pair)
        if reason is None:
            return True
        self.rejected[reason] += 1
        logger.debug("frame pair at t=%.3f rejected: %s", pair.timestamp, reason)
        return False
