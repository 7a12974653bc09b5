"""Depth camera capture sources producing synchronized frame pairs."""

from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Optional

import numpy as np

from .frames import (
    Accuracy,
    DepthBuffer,
    DepthFrame,
    SampleFormat,
    SyncedFramePair,
    VideoFrame,
)


@dataclass
class CaptureConfig:
    device_index: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30


class OpenNICapture:
    """Depth + color capture through OpenCV's OpenNI2 backend.

    Both images are retrieved from one ``grab()`` so they share a capture
    instant. Depth arrives as uint16 millimeters and is stored as half-float
    meters. Imports cv2 lazily to avoid import-time side effects.
    """

    def __init__(self, cfg: Optional[CaptureConfig] = None) -> None:
        self.cfg = cfg or CaptureConfig()
        self._cap = None

    def open(self) -> None:
        import cv2  # local import

        self._cap = cv2.VideoCapture(cv2.CAP_OPENNI2 + self.cfg.device_index)
        if not self._cap.isOpened():  # type: ignore[union-attr]
            raise RuntimeError("Failed to open OpenNI2 device")
        # Registration aligns depth to the color image (best-effort)
        self._cap.set(cv2.CAP_PROP_OPENNI_REGISTRATION, 1)  # type: ignore[union-attr]

    def read(self) -> SyncedFramePair:
        import cv2

        if self._cap is None:
            raise RuntimeError("Capture is not opened")
        ts = perf_counter()
        if not self._cap.grab():  # type: ignore[union-attr]
            raise RuntimeError("Camera grab failed")
        ok_d, depth_mm = self._cap.retrieve(None, cv2.CAP_OPENNI_DEPTH_MAP)  # type: ignore[union-attr]
        ok_v, bgr = self._cap.retrieve(None, cv2.CAP_OPENNI_BGR_IMAGE)  # type: ignore[union-attr]
        if ok_d and depth_mm is not None:
            # Holes read as 0 mm: below the valid range, still part of the average
            meters = depth_mm.astype(np.float32) / 1000.0
            buf = DepthBuffer.from_array(meters, SampleFormat.DEPTH_FLOAT16)
        else:
            buf = DepthBuffer.from_array(
                np.zeros((self.cfg.height, self.cfg.width), dtype=np.float16)
            )
        return SyncedFramePair(
            depth=DepthFrame(buf, Accuracy.ABSOLUTE, dropped=not ok_d),
            video=VideoFrame(bgr if ok_v else None, dropped=not ok_v),
            timestamp=ts,
        )

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()  # type: ignore[union-attr]
            self._cap = None


@dataclass
class SyntheticConfig:
    width: int = 640
    height: int = 480
    fps: int = 30
    distance_m: float = 0.30  # plane inside the center window
    background_m: float = 0.60  # everything else, outside the valid range
    noise_m: float = 0.0
    drop_rate: float = 0.0  # per-stream probability of a dropped frame
    relative_rate: float = 0.0  # probability of relative-accuracy depth
    center_w: int = 40
    center_h: int = 20
    sample_format: SampleFormat = SampleFormat.DEPTH_FLOAT16
    seed: Optional[int] = None


class SyntheticCapture:
    """Generated frames with a near plane in the middle of the image.

    Useful for running the pipeline without hardware and in tests.
    """

    def __init__(self, cfg: Optional[SyntheticConfig] = None) -> None:
        self.cfg = cfg or SyntheticConfig()
        self._rng: Optional[np.random.Generator] = None
        self._t0 = 0.0
        self._count = 0

    def open(self) -> None:
        self._rng = np.random.default_rng(self.cfg.seed)
        self._t0 = perf_counter()
        self._count = 0

    def depth_map(self) -> np.ndarray:
        c = self.cfg
        depth = np.full((c.height, c.width), c.background_m, dtype=np.float32)
        x0 = c.width // 2 - c.center_w // 2
        y0 = c.height // 2 - c.center_h // 2
        depth[max(0, y0) : y0 + c.center_h, max(0, x0) : x0 + c.center_w] = c.distance_m
        if c.noise_m > 0 and self._rng is not None:
            depth += self._rng.normal(0.0, c.noise_m, depth.shape).astype(np.float32)
        return depth

    def read(self) -> SyncedFramePair:
        if self._rng is None:
            raise RuntimeError("Capture is not opened")
        c = self.cfg
        rng = self._rng
        ts = self._t0 + self._count / float(c.fps)
        self._count += 1
        accuracy = Accuracy.RELATIVE if rng.random() < c.relative_rate else Accuracy.ABSOLUTE
        depth_m = self.depth_map()
        depth = DepthFrame(
            DepthBuffer.from_array(depth_m, c.sample_format),
            accuracy,
            dropped=bool(rng.random() < c.drop_rate),
        )
        gray = (np.clip(depth_m, 0.0, 1.0) * 255).astype(np.uint8)
        video = VideoFrame(
            np.repeat(gray[:, :, None], 3, axis=2),
            dropped=bool(rng.random() < c.drop_rate),
        )
        return SyncedFramePair(depth=depth, video=video, timestamp=ts)

    def release(self) -> None:
        self._rng = None
