# tests/test_placement.py
"""
Constraint application: boundary translation, sequential dimension clamping,
fallback to the stored default, recommended placement, placement mask, batch mode.
"""

from __future__ import annotations

import numpy as np
import pytest

from logozone.core.error_codes import InputError
from logozone.core.placement import (
    apply_constraints,
    batch_apply_constraints,
    effective_area,
    enforce_boundaries,
    enforce_dimensions,
    generate_placement_mask,
    recommended_placement,
    safety_margins,
)
from logozone.core.types import (
    ApplicationOptions,
    LogoPlacement,
    PlacementConstraint,
    Rect,
)


def _constraint(**overrides) -> PlacementConstraint:
    base = dict(
        product_id="mug-01",
        placement_type="horizontal",
        bounds=Rect(100, 100, 200, 100),
        default_placement=LogoPlacement(150, 125, 100, 50),
        min_logo_width=40,
        max_logo_width=180,
        min_logo_height=20,
        max_logo_height=90,
        is_validated=True,
    )
    base.update(overrides)
    return PlacementConstraint(**base)


def test_inside_placement_is_untouched() -> None:
    req = LogoPlacement(120, 110, 100, 50, rotation=15.0)
    result = apply_constraints(_constraint(), req)
    assert result.is_valid
    assert result.applied_placement == req
    assert result.violations == []
    assert result.adjustments == []


def test_safety_margins_shrink_effective_area() -> None:
    c = _constraint(margin_top=10, margin_right=20, margin_bottom=10, margin_left=20)
    area = effective_area(c, safety_margins(c, True))
    assert area == Rect(120, 110, 160, 80)
    assert effective_area(c, safety_margins(c, False)) == c.bounds


def test_margins_ignored_when_disabled() -> None:
    c = _constraint(margin_left=30)
    req = LogoPlacement(110, 110, 100, 50)
    on = apply_constraints(c, req)
    off = apply_constraints(c, req, ApplicationOptions(respect_safety_margins=False))
    assert on.adjustments[0] == "Adjusted X position from 110 to 130"
    assert on.safety_margins.left == 30
    assert off.is_valid and off.violations == []
    assert off.safety_margins.left == 0


def test_translation_resolves_without_fallback() -> None:
    # overhangs the right edge; translation alone makes it legal, so the default is not used
    req = LogoPlacement(250, 110, 100, 50, rotation=30.0)
    result = apply_constraints(_constraint(), req)
    assert result.applied_placement == LogoPlacement(200, 110, 100, 50, rotation=30.0)
    assert result.violations == ["Logo extends beyond right boundary (350 > 300)"]
    assert result.adjustments == ["Adjusted X position to fit within right boundary"]
    assert not result.is_valid


def test_negative_x_snaps_to_effective_area() -> None:
    c = _constraint(
        bounds=Rect(0, 0, 200, 100),
        default_placement=LogoPlacement(60, 30, 50, 40),
        min_logo_width=None,
        max_logo_width=None,
        min_logo_height=None,
        max_logo_height=None,
    )
    result = apply_constraints(c, LogoPlacement(-10, 20, 50, 40))
    assert result.applied_placement.x == effective_area(c, result.safety_margins).x == 0
    assert result.applied_placement.y == 20
    assert len(result.violations) == 1
    assert result.adjustments == ["Adjusted X position from -10 to 0"]


def test_unresolvable_request_falls_back_to_default() -> None:
    # too wide for the area: translation leaves it past the left edge, clamping keeps it there
    req = LogoPlacement(90, 110, 250, 50, rotation=30.0)
    result = apply_constraints(_constraint(), req)
    assert result.is_valid
    assert result.violations == []
    assert result.adjustments == [
        "Adjusted X position from 90 to 100",
        "Adjusted X position to fit within right boundary",
        "Adjusted width from 250 to 180",
        "Applied default position: (150, 125)",
        "Applied default size: 100x50",
    ]
    assert result.applied_placement == LogoPlacement(150, 125, 100, 50, rotation=30.0)


def test_right_edge_overrides_left() -> None:
    c = _constraint(min_logo_width=None, max_logo_width=None)
    req = LogoPlacement(90, 110, 250, 50)
    result = apply_constraints(c, req, ApplicationOptions(allow_auto_adjustment=False))
    assert len(result.violations) == 2
    assert result.violations[0] == "Logo X position (90) is outside left boundary (100)"
    assert result.violations[1] == "Logo extends beyond right boundary (340 > 300)"
    assert result.applied_placement == req


def test_translation_only_without_fallback_candidates() -> None:
    placed, violations, adjustments = enforce_boundaries(
        LogoPlacement(90, 110, 250, 50), Rect(100, 100, 200, 100), True
    )
    assert placed.x == 50
    assert placed.width == 250
    assert len(violations) == 2
    assert adjustments[0] == "Adjusted X position from 90 to 100"


def test_no_auto_adjustment_keeps_request() -> None:
    req = LogoPlacement(50, 50, 20, 10)
    result = apply_constraints(_constraint(), req, ApplicationOptions(allow_auto_adjustment=False))
    assert not result.is_valid
    assert result.applied_placement == req
    assert result.adjustments == []
    assert "Logo width (20) is below minimum (40)" in result.violations
    assert "Logo height (10) is below minimum (20)" in result.violations


def test_sequential_clamp_with_aspect_ratio() -> None:
    c = _constraint(max_logo_width=180, max_logo_height=50)
    opts = ApplicationOptions(enforce_aspect_ratio=True)
    placed, violations, adjustments = enforce_dimensions(LogoPlacement(120, 110, 200, 100), c, opts)
    # width 200 -> 180, height follows ratio 2 -> 90, then 90 -> 50, width follows -> 100
    assert violations == [
        "Logo width (200) exceeds maximum (180)",
        "Logo height (90) exceeds maximum (50)",
    ]
    assert placed.width == pytest.approx(100)
    assert placed.height == pytest.approx(50)
    assert adjustments[1] == "Maintained aspect ratio, adjusted height to 90"


def test_unset_bounds_are_not_checked() -> None:
    c = _constraint(min_logo_width=None, max_logo_width=None, min_logo_height=None, max_logo_height=None)
    result = apply_constraints(c, LogoPlacement(100, 100, 5, 5))
    assert result.is_valid


def test_default_that_fails_keeps_violations() -> None:
    c = _constraint(default_placement=LogoPlacement(0, 0, 10, 10))
    result = apply_constraints(c, LogoPlacement(90, 110, 250, 50))
    assert not result.is_valid
    assert result.violations
    assert result.applied_placement == LogoPlacement(0, 0, 10, 10)
    assert result.adjustments[-2] == "Applied default position: (0, 0)"


def test_recommended_placement_default_when_ratio_close() -> None:
    c = _constraint()
    assert recommended_placement(c) == LogoPlacement(150, 125, 100, 50)
    assert recommended_placement(c, 2.05) == LogoPlacement(150, 125, 100, 50)


def test_recommended_placement_wider_logo() -> None:
    rec = recommended_placement(_constraint(), 3.0)
    assert rec.width == 150
    assert rec.height == 50
    capped = recommended_placement(_constraint(max_logo_width=120), 3.0)
    assert capped.width == 120


def test_recommended_placement_taller_logo() -> None:
    rec = recommended_placement(_constraint(), 1.0)
    assert rec.width == 100
    assert rec.height == 90
    assert rec.rotation is None


def test_generate_placement_mask() -> None:
    pm = generate_placement_mask(_constraint(), LogoPlacement(100, 50, 200, 100), 400, 200)
    assert pm.mask.shape == (200, 400)
    assert pm.mask.dtype == np.uint8
    assert int((pm.mask == 255).sum()) == 200 * 100
    assert pm.mask[50, 100] == 255 and pm.mask[49, 100] == 0
    assert (pm.normalized_x, pm.normalized_y) == (0.25, 0.25)
    assert (pm.normalized_width, pm.normalized_height) == (0.5, 0.5)


def test_generate_placement_mask_clips_to_image() -> None:
    pm = generate_placement_mask(_constraint(), LogoPlacement(-10, -10, 30, 30), 50, 50)
    assert int((pm.mask == 255).sum()) == 20 * 20


def test_generate_placement_mask_rejects_bad_size() -> None:
    with pytest.raises(InputError):
        generate_placement_mask(_constraint(), LogoPlacement(0, 0, 10, 10), 0, 100)


def test_batch_apply_missing_type() -> None:
    results = batch_apply_constraints(
        [_constraint()],
        [
            ("horizontal", LogoPlacement(120, 110, 100, 50), None),
            ("vertical", LogoPlacement(0, 0, 10, 10), None),
        ],
    )
    assert [r.placement_type for r in results] == ["horizontal", "vertical"]
    assert results[0].is_valid
    missing = results[1]
    assert not missing.is_valid
    assert missing.violations == ["No constraint configured for placement type: vertical"]
    assert missing.applied_placement == LogoPlacement(0, 0, 10, 10)
    assert missing.safety_margins.top == 0 and missing.safety_margins.left == 0
