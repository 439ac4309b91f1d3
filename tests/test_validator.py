# tests/test_validator.py
"""
Constraint validation: the 400x400 reference template (green 300x100 band at
(50, 150)), degenerate input, severity gating, confidence and placement zones.
"""

from __future__ import annotations

import numpy as np
import pytest

from logozone.core.detector import detect_marked_area
from logozone.core.geometry import make_contour
from logozone.core.mask import generate_mask
from logozone.core.types import (
    ConstraintRequirements,
    ContiguityPolicy,
    DetectionConfig,
    PositionPolicy,
    Rect,
    ValidationIssue,
    ValidationMetrics,
    ValidationSeverity,
)
from logozone.core.validator import (
    compute_confidence,
    create_validation_report,
    placement_zones,
    validate_constraint,
)

GREEN = (0, 200, 0, 255)


def _template(width: int, height: int, rects: list[tuple[int, int, int, int]]) -> np.ndarray:
    img = np.full((height, width, 4), 255, dtype=np.uint8)
    for x, y, w, h in rects:
        img[y : y + h, x : x + w] = GREEN
    return img


def _validate(width: int, height: int, rects: list[tuple[int, int, int, int]], **kwargs):
    gm = generate_mask(_template(width, height, rects), width, height)
    return validate_constraint(gm, **kwargs)


def _ids(result) -> list[str]:
    return [i.id for i in result.issues]


def _issue(level: str, blocking: bool, priority: int) -> ValidationIssue:
    return ValidationIssue(
        id="x", severity=ValidationSeverity(level, blocking, priority), category="area", title="t", message="m"
    )


def test_reference_template_is_clean() -> None:
    result = _validate(400, 400, [(50, 150, 300, 100)], placement_type="horizontal")
    assert result.issues == []
    assert result.is_valid and result.is_usable
    assert result.confidence == 1.0
    assert result.metrics.area == pytest.approx(29601)
    assert result.metrics.convexity == pytest.approx(1.0)
    assert result.metrics.edge_distance == 50


def test_reference_template_zones() -> None:
    result = _validate(400, 400, [(50, 150, 300, 100)])
    assert [z.id for z in result.placement_zones] == ["center", "edge"]
    center, edge = result.placement_zones
    assert center.region == Rect(65.0, 165.0, 269.0, 69.0)
    assert center.quality == 0.9
    assert center.suggested_logo_size == (215, 55)
    assert center.center_point == pytest.approx((199.5, 199.5))
    assert edge.region == Rect(60.0, 160.0, 279.0, 79.0)
    assert edge.quality == 0.7
    assert edge.restrictions == ["May be close to constraint boundaries"]


def test_reference_template_from_detected_area() -> None:
    img = _template(400, 400, [(50, 150, 300, 100)])
    area = detect_marked_area(img, 400, 400, DetectionConfig(noise_reduction=False, morphology=False))
    result = validate_constraint(area, image_width=400, image_height=400)
    assert result.is_valid and result.is_usable
    assert result.confidence == 1.0


def test_empty_mask_gives_no_constraint_issue() -> None:
    result = _validate(100, 100, [])
    assert not result.is_valid and not result.is_usable
    assert result.confidence == 0.0
    assert _ids(result) == ["no_constraint"]
    assert result.issues[0].severity.priority == 10
    assert len(result.recommendations) == 3
    assert result.placement_zones == []


def test_detected_area_requires_image_size() -> None:
    area = detect_marked_area(_template(50, 50, [(10, 10, 20, 20)]), 50, 50)
    with pytest.raises(ValueError):
        validate_constraint(area)


def test_small_area_is_blocking() -> None:
    result = _validate(200, 200, [(90, 90, 15, 15)])
    ids = _ids(result)
    assert "area_too_small" in ids
    assert "insufficient_logo_space" in ids
    assert "width_too_small" in ids
    assert not result.is_valid
    assert not result.is_usable
    assert result.confidence < 1.0


def test_single_region_policy() -> None:
    req = ConstraintRequirements(contiguity=ContiguityPolicy(require_single_region=True))
    result = _validate(400, 400, [(50, 100, 120, 80), (230, 100, 120, 80)], requirements=req)
    assert "multiple_regions" in _ids(result)
    assert "fragmented_regions" in _ids(result)
    assert not result.is_valid


def test_multiple_regions_without_policy_is_usable() -> None:
    result = _validate(400, 400, [(50, 100, 120, 80), (230, 100, 120, 80)])
    assert "multiple_regions" not in _ids(result)
    assert "fragmented_regions" in _ids(result)
    assert result.is_valid and result.is_usable
    assert "Consider enabling hole filling to connect nearby regions" in result.recommendations


def test_vertical_placement_rejects_wide_band() -> None:
    result = _validate(400, 400, [(50, 150, 300, 100)], placement_type="vertical")
    assert "aspect_unsuited_vertical" in _ids(result)
    assert result.is_valid


def test_edge_hugging_and_margin() -> None:
    result = _validate(200, 200, [(0, 50, 100, 100)])
    ids = _ids(result)
    assert "too_close_to_edge" in ids
    assert "hugging_left_edge" in ids
    assert any("left side" in r for r in result.recommendations)
    hug = next(i for i in result.issues if i.id == "hugging_left_edge")
    assert hug.severity.level == "info"


def test_all_over_uses_smaller_edge_margin() -> None:
    result = _validate(200, 200, [(10, 50, 100, 100)], placement_type="all_over")
    assert "too_close_to_edge" not in _ids(result)
    strict = _validate(200, 200, [(10, 50, 100, 100)], placement_type="horizontal")
    assert "too_close_to_edge" in _ids(strict)


def test_center_policy_flags_corner_region() -> None:
    req = ConstraintRequirements(position=PositionPolicy(allowed_regions="center"))
    result = _validate(400, 400, [(300, 300, 80, 80)], requirements=req)
    assert "not_centered" in _ids(result)


def test_horizontal_band_far_from_vertical_center() -> None:
    result = _validate(400, 400, [(100, 330, 200, 50)])
    assert "off_center_vertically" in _ids(result)


def test_compute_confidence_penalties() -> None:
    assert compute_confidence([_issue("warning", False, 6)], ValidationMetrics()) == pytest.approx(0.91)
    three = [_issue("error", True, 9), _issue("error", True, 9), _issue("error", True, 10)]
    assert compute_confidence(three, ValidationMetrics()) == pytest.approx(0.16)
    many = [_issue("error", True, 10)] * 5
    assert compute_confidence(many, ValidationMetrics()) == 0.0


def test_compute_confidence_bonuses_clamped() -> None:
    m = ValidationMetrics(convexity=0.9, aspect_ratio=1.0, edge_distance=40.0)
    assert compute_confidence([], m) == 1.0
    assert compute_confidence([_issue("warning", False, 10)], m) == pytest.approx(0.98)


def test_zones_of_tiny_region_only_center() -> None:
    tiny = make_contour([(0, 0), (20, 0), (20, 20), (0, 20)])
    zones = placement_zones(tiny, ConstraintRequirements())
    assert [z.id for z in zones] == ["center"]
    assert zones[0].region.width == 0.0


def test_validation_report_text() -> None:
    report = create_validation_report(_validate(400, 400, [(50, 150, 300, 100)]))
    assert "Status: VALID" in report
    assert "Confidence: 100.0%" in report
    bad = create_validation_report(_validate(100, 100, []))
    assert "Status: INVALID" in bad
    assert "[ERROR]" in bad


def test_serrated_region_is_traced_whole() -> None:
    img = _template(300, 300, [(20, 100, 260, 180)] + [(20 + 10 * k, 40, 5, 60) for k in range(26)])
    gm = generate_mask(img, 300, 300)
    result = validate_constraint(gm)
    assert result.metrics.area > 0.9 * int((gm.mask == 255).sum())
    assert "insufficient_logo_space" not in _ids(result)
    assert result.is_valid


def test_requirements_then_image_size_positional_order() -> None:
    img = _template(400, 400, [(50, 150, 300, 100)])
    strict = ConstraintRequirements(min_area=100000)
    assert "area_too_small" in _ids(validate_constraint(generate_mask(img, 400, 400), strict))
    area = detect_marked_area(img, 400, 400, DetectionConfig(noise_reduction=False, morphology=False))
    result = validate_constraint(area, ConstraintRequirements(), 400, 400, "horizontal")
    assert result.is_valid and result.confidence == 1.0
