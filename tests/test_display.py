from __future__ import annotations

import cv2
import numpy as np
import pytest

from depthprox.buffer import FrameBufferView
from depthprox.display import DisplayStats, project, render_image, to_rgba
from depthprox.frames import SampleFormat
from depthprox.stats import Statistics


@pytest.mark.parametrize(
    "avg,lo,hi",
    [(0.3, 0.3, 0.3), (0.3123, 0.2, 0.45), (0.15, 0.15, 0.5), (1.2345, 0.25, 0.49)],
)
def test_project_scales_to_millimeters(avg: float, lo: float, hi: float) -> None:
    d = project(Statistics(average=avg, min=lo, max=hi))
    assert d.average_mm == pytest.approx(avg * 1000.0)
    assert d.min_mm == round(lo * 1000.0)
    assert d.max_mm == round(hi * 1000.0)


def test_labels_format() -> None:
    d = DisplayStats(average_mm=300.0, min_mm=300, max_mm=300)
    assert d.labels() == ("avg: 300mm", "min: 300 mm", "max: 300 mm")
    d2 = project(Statistics(average=0.31234, min=0.2004, max=0.4496))
    assert d2.average_label == "avg: 312.3mm"
    assert d2.min_label == "min: 200 mm"
    assert d2.max_label == "max: 450 mm"


def test_render_image_is_left_mirrored_copy() -> None:
    depth = np.array(
        [[0.1, 0.2, 0.3, 0.4], [0.5, 0.6, 0.7, 0.8], [0.9, 0.15, 0.25, 0.35]],
        dtype=np.float32,
    )
    view = FrameBufferView(depth, width=4, height=3, sample_format=SampleFormat.DEPTH_FLOAT32)
    img = render_image(view)
    assert img.shape == (4, 3)
    assert img.dtype == np.float32
    assert np.array_equal(img, depth.T)
    assert img[3, 0] == depth[0, 3]
    img[0, 0] = 0.0
    assert depth[0, 0] == np.float32(0.1)


def test_render_image_passes_intensity_through() -> None:
    depth = np.array([[np.nan, 1.5], [0.3, np.inf]], dtype=np.float16)
    view = FrameBufferView(depth, width=2, height=2)
    img = render_image(view)
    assert img[0, 0] == 0.0  # NaN
    assert img[1, 0] == 1.0  # clipped
    assert img[0, 1] == pytest.approx(0.3, abs=1e-3)
    assert img[1, 1] == 0.0  # inf


def test_to_rgba_resizes_and_expands() -> None:
    img = np.full((8, 6), 0.5, dtype=np.float32)
    rgba = to_rgba(img, (12, 16))
    assert rgba.shape == (16, 12, 4)
    assert np.allclose(rgba[:, :, :3], 0.5)
    assert np.allclose(rgba[:, :, 3], 1.0)


def test_to_rgba_matches_nearest_resize() -> None:
    img = np.linspace(0.0, 1.0, 48, dtype=np.float32).reshape(8, 6)
    rgba = to_rgba(img, (12, 16))
    expected = cv2.resize(img, (12, 16), interpolation=cv2.INTER_NEAREST)
    for ch in range(3):
        assert np.array_equal(rgba[:, :, ch], expected)
