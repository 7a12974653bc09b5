from __future__ import annotations

import time

from depthprox.capture import SyntheticCapture, SyntheticConfig
from depthprox.pipeline import ResultSlot
from depthprox.session import CaptureSession, SetupResult


class _FailingSource:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def open(self) -> None:
        raise self.exc

    def read(self):  # pragma: no cover - never reached
        raise AssertionError("read on unconfigured source")

    def release(self) -> None:
        pass


def test_session_publishes_results() -> None:
    slot = ResultSlot()
    cfg = SyntheticConfig(width=64, height=48, seed=0)
    session = CaptureSession(SyntheticCapture(cfg), sink=slot.publish)
    assert session.start() is SetupResult.SUCCESS
    deadline = time.monotonic() + 2.0
    while slot.latest()[0] == 0 and time.monotonic() < deadline:
        time.sleep(0.01)
    session.stop()
    seq, result = slot.latest()
    assert seq > 0 and result is not None
    assert result.display.min_mm == 300
    assert session.ctx.accepted >= 1
    assert not session.running


def test_permission_denied_is_not_authorized() -> None:
    session = CaptureSession(_FailingSource(PermissionError("denied")))
    assert session.start() is SetupResult.NOT_AUTHORIZED
    assert not session.running
    assert not session.worker.running


def test_open_failure_is_terminal() -> None:
    session = CaptureSession(_FailingSource(RuntimeError("no device")))
    assert session.configure() is SetupResult.CONFIGURATION_FAILED
    assert session.start() is SetupResult.CONFIGURATION_FAILED
    assert session.configure() is SetupResult.CONFIGURATION_FAILED
    assert not session.worker.running


def test_session_stops_when_window_does_not_fit() -> None:
    cfg = SyntheticConfig(width=16, height=12, center_w=8, center_h=4, seed=0)
    session = CaptureSession(SyntheticCapture(cfg))
    assert session.start() is SetupResult.SUCCESS
    deadline = time.monotonic() + 2.0
    while session.running and time.monotonic() < deadline:
        time.sleep(0.01)
    assert not session.running
    assert session.worker.error is not None
    session.stop()


def _wait_for_new_result(slot: ResultSlot, after: int, timeout: float = 2.0) -> int:
    deadline = time.monotonic() + timeout
    while slot.latest()[0] <= after and time.monotonic() < deadline:
        time.sleep(0.01)
    return slot.latest()[0]


def test_session_can_be_restarted() -> None:
    slot = ResultSlot()
    cfg = SyntheticConfig(width=64, height=48, seed=0)
    session = CaptureSession(SyntheticCapture(cfg), sink=slot.publish)
    assert session.start() is SetupResult.SUCCESS
    first = _wait_for_new_result(slot, 0)
    assert first > 0
    session.stop()
    assert not session.running

    assert session.start() is SetupResult.SUCCESS
    assert session.worker.running
    second = _wait_for_new_result(slot, slot.latest()[0])
    session.stop()
    assert second > first
    assert session.worker.error is None
