# tests/test_mask.py
"""
Mask generation pipeline and its structural validation.
"""

from __future__ import annotations

import numpy as np
import pytest

from logozone.core.error_codes import InputError
from logozone.core.geometry import make_contour
from logozone.core.mask import generate_mask, main_contour, mask_metrics, validate_mask
from logozone.core.types import MaskGenerationOptions

GREEN = (0, 200, 0, 255)


def _template(width: int, height: int, rects: list[tuple[int, int, int, int]]) -> np.ndarray:
    img = np.full((height, width, 4), 255, dtype=np.uint8)
    for x, y, w, h in rects:
        img[y : y + h, x : x + w] = GREEN
    return img


def _rect_contour(x: float, y: float, w: float, h: float):
    return make_contour([(x, y), (x + w, y), (x + w, y + h), (x, y + h)])


def test_generate_mask_rectangle() -> None:
    img = _template(400, 400, [(50, 150, 300, 100)])
    gm = generate_mask(img, 400, 400)
    assert gm.mask.shape == (400, 400)
    assert gm.mask.dtype == np.uint8
    assert set(np.unique(gm.mask).tolist()) == {0, 255}
    assert len(gm.contours) == 1
    c = gm.contours[0]
    # corners plus the trace's closing neighbour of the start pixel
    assert len(c.points) <= 5
    assert {(50.0, 150.0), (349.0, 150.0), (349.0, 249.0), (50.0, 249.0)} <= set(c.points)
    assert c.area == pytest.approx(299 * 99)
    assert gm.validation.is_valid
    assert gm.validation.metrics.solidity == pytest.approx(1.0)
    assert gm.processing_ms >= 0.0


def test_generate_mask_fills_small_hole() -> None:
    img = _template(100, 100, [(10, 10, 60, 40)])
    img[30, 40] = (255, 255, 255, 255)
    gm = generate_mask(img, 100, 100, options=MaskGenerationOptions(smoothing=False))
    assert gm.mask[30, 40] == 255


def test_generate_mask_keeps_hole_when_disabled() -> None:
    img = _template(100, 100, [(10, 10, 60, 40)])
    img[28:33, 38:43] = (255, 255, 255, 255)
    opts = MaskGenerationOptions(smoothing=False, fill_holes=False)
    gm = generate_mask(img, 100, 100, options=opts)
    assert gm.mask[30, 40] == 0


def test_generate_mask_empty_image() -> None:
    img = _template(50, 50, [])
    gm = generate_mask(img, 50, 50)
    assert gm.contours == []
    assert not gm.mask.any()
    assert gm.validation.is_valid is False
    assert gm.validation.errors == ["No valid contours found in the mask"]
    assert "Try adjusting color tolerance" in gm.validation.suggestions


def test_generate_mask_invalid_buffer() -> None:
    with pytest.raises(InputError):
        generate_mask(bytes(12), 2, 2)


def test_generate_mask_without_simplify_keeps_boundary_points() -> None:
    img = _template(60, 60, [(10, 10, 20, 10)])
    opts = MaskGenerationOptions(simplify=False, smoothing=False)
    gm = generate_mask(img, 60, 60, options=opts)
    assert len(gm.contours[0].points) == 2 * (20 + 10) - 4


def test_generate_mask_multiple_regions_fragmentation_warning() -> None:
    img = _template(200, 200, [(10, 10, 40, 40), (120, 120, 40, 40)])
    gm = generate_mask(img, 200, 200)
    assert len(gm.contours) == 2
    assert any("Multiple constraint areas detected (2 regions)" in w for w in gm.validation.warnings)


def test_main_contour_is_largest() -> None:
    small = _rect_contour(0, 0, 5, 5)
    big = _rect_contour(10, 10, 20, 20)
    assert main_contour([small, big]) is big


def test_mask_metrics_square() -> None:
    m = mask_metrics(_rect_contour(0, 0, 10, 10))
    assert m.area == pytest.approx(100.0)
    assert m.perimeter == pytest.approx(40.0)
    assert m.aspect_ratio == pytest.approx(1.0)
    assert m.solidity == pytest.approx(1.0)


def test_validate_mask_area_too_small() -> None:
    v = validate_mask([_rect_contour(0, 0, 5, 5)], MaskGenerationOptions())
    assert not v.is_valid
    assert v.errors == ["Constraint area too small: 25 < 50 pixels"]


def test_validate_mask_area_very_large_is_warning() -> None:
    v = validate_mask([_rect_contour(0, 0, 400, 300)], MaskGenerationOptions())
    assert v.is_valid
    assert any("Constraint area very large" in w for w in v.warnings)


def test_validate_mask_aspect_warnings() -> None:
    thin = validate_mask([_rect_contour(0, 0, 200, 10)], MaskGenerationOptions())
    assert any(w.startswith("Aspect ratio too wide: 20.00") for w in thin.warnings)
    tall = validate_mask([_rect_contour(0, 0, 10, 200)], MaskGenerationOptions())
    assert any(w.startswith("Aspect ratio too narrow: 0.05") for w in tall.warnings)


def test_validate_mask_low_solidity() -> None:
    l_shape = make_contour([(0, 0), (100, 0), (100, 10), (10, 10), (10, 100), (0, 100)])
    v = validate_mask([l_shape], MaskGenerationOptions())
    assert "Constraint area has irregular shape (low solidity)" in v.warnings


def test_validate_mask_disabled() -> None:
    v = validate_mask([], MaskGenerationOptions(validate=False))
    assert v.is_valid and not v.errors
