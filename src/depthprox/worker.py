"""Frame hand-off between the capture thread and the processing thread."""

from __future__ import annotations

import logging
import threading
from queue import Empty, Full, Queue
from typing import Optional

from .buffer import OutOfBounds
from .frames import SyncedFramePair
from .pipeline import CaptureContext, FrameProcessor

logger = logging.getLogger(__name__)


class FrameChannel:
    """Bounded single-producer/single-consumer channel of frame pairs.

    ``offer`` never blocks: when the consumer is still busy the new pair is
    dropped, the same way the sensor drops frames on overrun.
    """

    def __init__(self, maxsize: int = 1) -> None:
        self._queue: "Queue[SyncedFramePair | None]" = Queue(maxsize=max(1, maxsize))
        self._closed = threading.Event()
        self.overruns = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def offer(self, pair: SyncedFramePair) -> bool:
        if self._closed.is_set():
            return False
        try:
            self._queue.put_nowait(pair)
        except Full:
            self.overruns += 1
            return False
        return True

    def take(self, timeout: float = 0.5) -> Optional[SyncedFramePair]:
        """Next pair, or None on timeout or after close."""
        if self._closed.is_set() and self._queue.empty():
            return None
        try:
            return self._queue.get(timeout=timeout)
        except Empty:
            return None

    def close(self) -> None:
        self._closed.set()
        # Wake a consumer blocked in take(); a pending pair is discarded
        try:
            self._queue.get_nowait()
        except Empty:
            pass
        try:
            self._queue.put_nowait(None)
        except Full:
            pass


class FrameWorker:
    """Processes pairs from a channel one at a time on a background thread."""

    def __init__(
        self,
        channel: FrameChannel,
        processor: FrameProcessor,
        ctx: CaptureContext,
    ) -> None:
        self.channel = channel
        self.processor = processor
        self.ctx = ctx
        self.error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(
            target=self._loop, name="frame-processing", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self.channel.close()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _loop(self) -> None:
        while True:
            pair = self.channel.take()
            if pair is None:
                if self.channel.closed:
                    break
                continue
            try:
                self.processor.process(pair, self.ctx)
            except OutOfBounds as exc:
                logger.error("refusing to process frames: %s", exc)
                self.error = exc
                self.channel.close()
                break
            except Exception:
                logger.exception("frame processing failed")
