from __future__ import annotations

import time

import numpy as np

from depthprox.capture import SyntheticCapture, SyntheticConfig
from depthprox.frames import DepthBuffer, DepthFrame, SyncedFramePair, VideoFrame
from depthprox.pipeline import CaptureContext, FrameProcessor
from depthprox.stats import WindowOutOfBounds
from depthprox.worker import FrameChannel, FrameWorker


def _wait_for(cond, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if cond():
            return True
        time.sleep(0.005)
    return cond()


class _Recording:
    def __init__(self, fail_first: bool = False) -> None:
        self.seen: list[float] = []
        self.fail_first = fail_first

    def process(self, pair: SyncedFramePair, ctx: CaptureContext) -> None:
        if self.fail_first:
            self.fail_first = False
            raise ValueError("first frame fails")
        self.seen.append(pair.timestamp)


def _frames(n: int) -> list[SyncedFramePair]:
    cap = SyntheticCapture(SyntheticConfig(width=64, height=48, seed=0))
    cap.open()
    return [cap.read() for _ in range(n)]


def test_channel_offer_never_blocks() -> None:

    ch = FrameChannel(maxsize=1)
    a, b = _frames(2)
    assert ch.offer(a) is True
    t0 = time.perf_counter()
    assert ch.offer(b) is False
    assert time.perf_counter() - t0 < 0.1
    assert ch.overruns == 1
    assert ch.take(timeout=0.1) is a
    assert ch.take(timeout=0.01) is None


def test_channel_close_wakes_consumer() -> None:

    ch = FrameChannel()
    (a,) = _frames(1)
    ch.offer(a)
    ch.close()
    assert ch.closed
    assert ch.take(timeout=0.1) is None
    assert ch.offer(a) is False


def test_worker_processes_serially_in_order() -> None:

    ch = FrameChannel()
    rec = _Recording(fail_first=True)
    worker = FrameWorker(ch, rec, CaptureContext())  # type: ignore[arg-type]
    worker.start()
    frames = _frames(20)
    for pair in frames:
        while not ch.offer(pair):
            time.sleep(0.001)
    assert _wait_for(lambda: len(rec.seen) == len(frames) - 1)
    worker.stop()
    assert not worker.running
    # First frame raised and was skipped; the rest kept capture order
    assert rec.seen == [p.timestamp for p in frames[1:]]


def test_worker_stops_on_window_out_of_bounds() -> None:

    ch = FrameChannel()
    worker = FrameWorker(ch, FrameProcessor(), CaptureContext())
    worker.start()
    small = SyncedFramePair(
        DepthFrame(DepthBuffer.from_array(np.full((8, 8), 0.3))), VideoFrame()
    )
    assert ch.offer(small)
    assert _wait_for(lambda: not worker.running)
    assert isinstance(worker.error, WindowOutOfBounds)
    assert ch.closed
    worker.stop()
