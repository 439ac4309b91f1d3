# tests/test_raster.py
"""
Buffer validation, RGB->HSV, the dual classifier, median filter, morphology,
labelling and hole filling on small synthetic rasters.
"""

from __future__ import annotations

import numpy as np
import pytest

from logozone.core.error_codes import InputError
from logozone.core.raster import (
    as_rgba_array,
    boundary_pixels,
    classify_pixels,
    effective_hsv_window,
    fill_holes,
    label_components,
    median3,
    open_close,
    rgb_to_hsv,
    to_uint8,
)
from logozone.core.types import DetectionConfig


def _rgba(width: int, height: int, color: tuple[int, int, int, int] = (255, 255, 255, 255)) -> np.ndarray:
    img = np.zeros((height, width, 4), dtype=np.uint8)
    img[:, :] = color
    return img


def _pixel(color: tuple[int, int, int, int]) -> np.ndarray:
    return _rgba(1, 1, color)


def test_as_rgba_array_accepts_bytes() -> None:
    buf = bytes(2 * 3 * 4)
    arr = as_rgba_array(buf, 2, 3)
    assert arr.shape == (3, 2, 4)
    assert arr.flags.writeable is False


def test_as_rgba_array_size_mismatch_raises() -> None:
    with pytest.raises(InputError):
        as_rgba_array(bytes(10), 2, 2)


def test_as_rgba_array_rejects_non_positive_dims() -> None:
    with pytest.raises(InputError):
        as_rgba_array(bytes(0), 0, 4)


def test_as_rgba_array_rejects_float_dims() -> None:
    with pytest.raises(InputError):
        as_rgba_array(bytes(16), 2.0, 2)


def test_input_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        as_rgba_array("not a buffer", 1, 1)


def test_as_rgba_array_does_not_copy_into_writable_view() -> None:
    img = _rgba(4, 4)
    view = as_rgba_array(img, 4, 4)
    with pytest.raises(ValueError):
        view[0, 0, 0] = 1
    assert img.flags.writeable is True


def test_rgb_to_hsv_primaries() -> None:
    rgb = np.array([[255, 0, 0], [0, 255, 0], [0, 0, 255], [128, 128, 128]], dtype=np.uint8)
    h, s, v = rgb_to_hsv(rgb)
    assert h.tolist()[:3] == pytest.approx([0.0, 120.0, 240.0])
    assert s.tolist() == pytest.approx([100.0, 100.0, 100.0, 0.0])
    assert v[3] == pytest.approx(128 / 255 * 100)


def test_effective_hsv_window_default_tolerance() -> None:
    lo, hi, s_floor, v_floor = effective_hsv_window(DetectionConfig())
    assert lo == pytest.approx(76.4)
    assert hi == pytest.approx(143.6)
    assert s_floor == pytest.approx(29.0)
    assert v_floor == pytest.approx(19.0)


def test_effective_hsv_window_wraps() -> None:
    lo, hi, _, _ = effective_hsv_window(DetectionConfig(hue_range=(350.0, 10.0)))
    assert lo == pytest.approx(346.4)
    assert hi == pytest.approx(13.6)


def test_effective_hsv_window_clamps_non_wrapping() -> None:
    lo, hi, s_floor, _ = effective_hsv_window(DetectionConfig(hue_range=(10.0, 350.0), tolerance=1.0, saturation_min=5.0))
    assert (lo, hi) == (0.0, 360.0)
    assert s_floor == 0.0


def test_classify_vivid_green_marked() -> None:
    assert classify_pixels(_pixel((0, 255, 0, 255)), DetectionConfig())[0, 0]


def test_classify_transparent_green_not_marked() -> None:
    assert not classify_pixels(_pixel((0, 255, 0, 100)), DetectionConfig())[0, 0]


def test_classify_white_and_grey_not_marked() -> None:
    cfg = DetectionConfig()
    assert not classify_pixels(_pixel((255, 255, 255, 255)), cfg)[0, 0]
    assert not classify_pixels(_pixel((100, 100, 100, 255)), cfg)[0, 0]


def test_classify_dark_green_passes_hsv_only() -> None:
    # green channel below channel_min, so only the HSV test can mark it
    assert classify_pixels(_pixel((0, 90, 0, 255)), DetectionConfig())[0, 0]


def test_classify_reddish_fails_both_tests() -> None:
    assert not classify_pixels(_pixel((120, 100, 100, 255)), DetectionConfig())[0, 0]


def test_classify_red_channel_config() -> None:
    cfg = DetectionConfig(marked_channel="red", hue_range=(340.0, 20.0))
    assert classify_pixels(_pixel((230, 20, 20, 255)), cfg)[0, 0]
    assert not classify_pixels(_pixel((20, 230, 20, 255)), cfg)[0, 0]


def test_median3_removes_isolated_pixel() -> None:
    mask = np.zeros((5, 5), dtype=bool)
    mask[2, 2] = True
    assert not median3(mask).any()


def test_median3_trims_block_corners() -> None:
    mask = np.zeros((7, 7), dtype=bool)
    mask[2:5, 2:5] = True
    out = median3(mask)
    assert out[3, 3]
    assert out[2, 3]
    assert not out[2, 2]
    assert int(out.sum()) == 5


def test_open_close_removes_speck_and_keeps_block() -> None:
    mask = np.zeros((12, 12), dtype=bool)
    mask[2:9, 2:9] = True
    mask[10, 10] = True
    out = open_close(mask, radius=1, iterations=1)
    assert not out[10, 10]
    assert out[2:9, 2:9].all()


def test_label_components_connectivity() -> None:
    mask = np.zeros((4, 4), dtype=bool)
    mask[0, 0] = True
    mask[1, 1] = True
    _, sizes4 = label_components(mask, connectivity=4)
    _, sizes8 = label_components(mask, connectivity=8)
    assert sizes4 == [1, 1]
    assert sizes8 == [2]


def test_label_components_raster_order() -> None:
    mask = np.zeros((6, 6), dtype=bool)
    mask[0, 4:6] = True
    mask[3:5, 0:2] = True
    labels, sizes = label_components(mask)
    assert labels[0, 4] == 1
    assert labels[3, 0] == 2
    assert sizes == [2, 4]


def test_label_components_bad_connectivity() -> None:
    with pytest.raises(ValueError):
        label_components(np.zeros((2, 2), dtype=bool), connectivity=6)


def test_fill_holes_fills_small_interior_hole() -> None:
    mask = np.zeros((10, 10), dtype=bool)
    mask[2:8, 2:8] = True
    mask[4, 4] = False
    out = fill_holes(mask, min_hole_size=100)
    assert out[4, 4]
    assert not out[0, 0]


def test_fill_holes_keeps_large_hole() -> None:
    mask = np.zeros((20, 20), dtype=bool)
    mask[2:18, 2:18] = True
    mask[5:15, 5:15] = False
    out = fill_holes(mask, min_hole_size=50)
    assert not out[10, 10]


def test_fill_holes_does_not_touch_input() -> None:
    mask = np.ones((5, 5), dtype=bool)
    mask[2, 2] = False
    fill_holes(mask, 10)
    assert not mask[2, 2]


def test_boundary_pixels_of_block() -> None:
    mask = np.zeros((7, 7), dtype=bool)
    mask[1:6, 1:6] = True
    edge = boundary_pixels(mask)
    assert int(edge.sum()) == 16
    assert not edge[3, 3]


def test_boundary_pixels_full_image_has_no_edge() -> None:
    assert not boundary_pixels(np.ones((4, 4), dtype=bool)).any()


def test_to_uint8() -> None:
    out = to_uint8(np.array([[True, False]]))
    assert out.dtype == np.uint8
    assert out.tolist() == [[255, 0]]
