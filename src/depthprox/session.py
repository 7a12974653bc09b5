"""Capture session lifecycle: configure the source, feed frames to the worker."""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Optional, Protocol

from .frames import SyncedFramePair
from .pipeline import CaptureContext, FrameProcessor, Sink
from .worker import FrameChannel, FrameWorker

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    def open(self) -> None: ...

    def read(self) -> SyncedFramePair: ...

    def release(self) -> None: ...


class SetupResult(Enum):
    SUCCESS = "success"
    NOT_AUTHORIZED = "not_authorized"
    CONFIGURATION_FAILED = "configuration_failed"


class CaptureSession:
    """Owns the capture source, the context and the processing worker.

    Frames are read on a session-control thread and offered to the worker
    channel; the worker processes them on its own thread. The core is only
    started after ``configure()`` returned SUCCESS. A stopped session can be
    started again; the source is reopened and a fresh channel is used.
    """

    def __init__(
        self,
        source: FrameSource,
        sink: Optional[Sink] = None,
        name: str = "session",
        realtime: bool = False,
    ) -> None:
        self.source = source
        self.ctx = CaptureContext(name=name)
        self.processor = FrameProcessor(sink)
        self.channel = FrameChannel(maxsize=1)
        self.worker = FrameWorker(self.channel, self.processor, self.ctx)
        self.setup_result: Optional[SetupResult] = None
        # Pace synthetic sources to their nominal fps
        self.realtime = realtime
        self._running = False
        self._thread: Optional[threading.Thread] = None

    def _new_worker(self) -> None:
        self.channel = FrameChannel(maxsize=1)
        self.worker = FrameWorker(self.channel, self.processor, self.ctx)

    def configure(self) -> SetupResult:
        if self.setup_result is SetupResult.CONFIGURATION_FAILED:
            return self.setup_result
        try:
            self.source.open()
        except PermissionError as exc:
            logger.warning("camera access denied: %s", exc)
            self.setup_result = SetupResult.NOT_AUTHORIZED
        except Exception:
            logger.exception("Configuration failed")
            self.setup_result = SetupResult.CONFIGURATION_FAILED
        else:
            self.setup_result = SetupResult.SUCCESS
        return self.setup_result

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> SetupResult:
        result = self.setup_result or self.configure()
        if result is not SetupResult.SUCCESS:
            return result
        if self._running:
            return result
        self._running = True
        if self.channel.closed:
            self._new_worker()
        self.worker.start()
        self._thread = threading.Thread(
            target=self._capture_loop, name="session-control", daemon=True
        )
        self._thread.start()
        return result

    def stop(self) -> None:
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        self.worker.stop()
        try:
            self.source.release()
        except Exception:
            logger.exception("failed to release capture source")
        # Reopen the source on the next start
        if self.setup_result is SetupResult.SUCCESS:
            self.setup_result = None

    def _capture_loop(self) -> None:
        fps = getattr(getattr(self.source, "cfg", None), "fps", 30)
        period = 1.0 / float(fps) if fps else 0.0
        while self._running:
            if not self.worker.running:
                logger.error("frame processing stopped; ending capture loop")
                self._running = False
                break
            t_start = time.perf_counter()
            try:
                pair = self.source.read()
            except Exception:
                logger.exception("Camera read failed")
                time.sleep(0.05)
                continue
            self.channel.offer(pair)
            if self.realtime and period > 0:
                time.sleep(max(0.0, period - (time.perf_counter() - t_start)))
