# logozone/core/calculator.py
"""
Quick numeric helpers over a DetectedArea: stats-panel metrics, usable area
after padding, a penalty-scored quick check and ordered recommendations.
Lighter than validator.validate_constraint; no contour geometry needed.
"""

from __future__ import annotations

from logozone.core.config import (
    ALL_OVER_EDGE_MARGIN,
    AXIS_OFFSET_RATIO,
    HORIZONTAL_MIN_ASPECT,
    LARGE_AREA_PERCENT,
    LOW_QUALITY,
    MAX_FRAGMENTS,
    SMALL_AREA_PERCENT,
    USABLE_AREA_FRACTION,
    USABLE_AREA_PADDING,
    VERTICAL_MAX_ASPECT,
)
from logozone.core.types import (
    ConstraintDimensions,
    ConstraintMetrics,
    DetectedArea,
    EdgeDistances,
    QuickCheck,
    Rect,
    UsableArea,
)

# Penalties subtracted from the quick-check score.
PENALTY_DIMENSION = 0.2
PENALTY_SMALL_AREA = 0.15
PENALTY_LARGE_AREA = 0.1
PENALTY_ASPECT = 0.1
PENALTY_EDGE = 0.05
PENALTY_LOW_QUALITY = 0.15
PENALTY_FRAGMENTS = 0.1
PENALTY_POSITION = 0.1

EDGE_SAFE_DISTANCE = 15.0
ADVICE_QUALITY = 0.5
ADVICE_PERCENT = 10.0


def edge_distances(bounds: Rect, image_width: float, image_height: float) -> EdgeDistances:
    return EdgeDistances(
        top=bounds.y,
        right=image_width - bounds.right,
        bottom=image_height - bounds.bottom,
        left=bounds.x,
    )


def calculate_metrics(area: DetectedArea, image_width: float, image_height: float) -> ConstraintMetrics:
    """Stats-panel numbers for a detected area."""
    b = area.bounds
    bcx, bcy = b.center
    box = b.area
    return ConstraintMetrics(
        total_area=float(area.pixels),
        usable_area=area.pixels * USABLE_AREA_FRACTION,
        aspect_ratio=area.aspect_ratio,
        center_offset=(bcx - image_width / 2.0, bcy - image_height / 2.0),
        edge_distances=edge_distances(b, image_width, image_height),
        fragment_count=len(area.contours),
        fill_ratio=area.pixels / box if box > 0 else 0.0,
    )


def calculate_usable_area(area: DetectedArea, dimensions: ConstraintDimensions) -> UsableArea:
    """Bounds inset by the standard padding, clamped into the logo size envelope."""
    b = area.bounds
    pad = USABLE_AREA_PADDING
    w = max(dimensions.min_width, min(dimensions.max_width, max(0.0, b.width - 2 * pad)))
    h = max(dimensions.min_height, min(dimensions.max_height, max(0.0, b.height - 2 * pad)))
    pixels = w * h
    pct = pixels / b.area * 100.0 if b.area > 0 else 0.0
    return UsableArea(pixels=pixels, percentage=round(pct, 2), bounds=Rect(b.x + pad, b.y + pad, w, h))


def quick_check(
    area: DetectedArea,
    dimensions: ConstraintDimensions,
    image_width: float,
    image_height: float,
    placement_type: str = "horizontal",
) -> QuickCheck:
    """
    Penalty-scored check used by the admin stats panel. Only a dimension
    shortfall (a warning mentioning "required") makes the area invalid.
    """
    if area.pixels == 0:
        return QuickCheck(
            is_valid=False,
            warnings=["No marked areas detected in the image"],
            recommendations=["Ensure the constraint image has clearly marked areas"],
            score=0.0,
            usable_area=UsableArea(pixels=0.0, percentage=0.0, bounds=Rect(0.0, 0.0, 0.0, 0.0)),
        )

    warnings: list[str] = []
    recs: list[str] = []
    score = 1.0
    b = area.bounds
    invalid = False

    if b.width < dimensions.min_width:
        warnings.append(
            f"Detected area width ({b.width:g}px) is smaller than minimum required ({dimensions.min_width:g}px)"
        )
        score -= PENALTY_DIMENSION
        invalid = True
    if b.height < dimensions.min_height:
        warnings.append(
            f"Detected area height ({b.height:g}px) is smaller than minimum required ({dimensions.min_height:g}px)"
        )
        score -= PENALTY_DIMENSION
        invalid = True

    if area.percentage < SMALL_AREA_PERCENT:
        warnings.append(f"Detected area is very small (< {SMALL_AREA_PERCENT:g}% of image)")
        recs.append("Consider increasing the size of the marked area")
        score -= PENALTY_SMALL_AREA
    elif area.percentage > LARGE_AREA_PERCENT:
        warnings.append(f"Detected area is very large (> {LARGE_AREA_PERCENT:g}% of image)")
        recs.append("Consider reducing the marked area to be more specific")
        score -= PENALTY_LARGE_AREA

    if placement_type == "horizontal" and area.aspect_ratio < HORIZONTAL_MIN_ASPECT:
        warnings.append("Horizontal placement area is too tall/narrow for typical logos")
        recs.append("Consider making the marked area wider for horizontal logo placement")
        score -= PENALTY_ASPECT
    elif placement_type == "vertical" and area.aspect_ratio > VERTICAL_MAX_ASPECT:
        warnings.append("Vertical placement area is too wide for typical logos")
        recs.append("Consider making the marked area taller/narrower for vertical logo placement")
        score -= PENALTY_ASPECT

    safe = ALL_OVER_EDGE_MARGIN if placement_type == "all_over" else EDGE_SAFE_DISTANCE
    for edge, d in edge_distances(b, image_width, image_height).items():
        if d < safe:
            warnings.append(f"Marked area is very close to {edge} edge ({d:g}px)")
            recs.append(f"Move marked area at least {safe:g}px away from {edge} edge")
            score -= PENALTY_EDGE

    if area.quality < LOW_QUALITY:
        warnings.append("Low detection quality - the marked area may be fragmented or unclear")
        recs.append("Use a more solid, well-defined marked area")
        score -= PENALTY_LOW_QUALITY

    if len(area.contours) > MAX_FRAGMENTS:
        warnings.append(f"Multiple separate marked areas detected ({len(area.contours)} areas)")
        recs.append("Use a single, continuous marked area for better results")
        score -= PENALTY_FRAGMENTS

    cx, cy = area.centroid
    if placement_type == "horizontal" and abs(cy - image_height / 2.0) > image_height * AXIS_OFFSET_RATIO:
        warnings.append("Horizontal placement area is positioned too far from center vertically")
        recs.append("Consider positioning the marked area closer to the vertical center")
        score -= PENALTY_POSITION
    elif placement_type == "vertical" and abs(cx - image_width / 2.0) > image_width * AXIS_OFFSET_RATIO:
        warnings.append("Vertical placement area is positioned too far from center horizontally")
        recs.append("Consider positioning the marked area closer to the horizontal center")
        score -= PENALTY_POSITION

    return QuickCheck(
        is_valid=not invalid,
        warnings=warnings,
        recommendations=recs,
        score=max(0.0, score),
        usable_area=calculate_usable_area(area, dimensions),
    )


_PLACEMENT_ADVICE = {
    "horizontal": "For horizontal placement, ensure the marked area is wide enough for typical logo proportions",
    "vertical": "For vertical placement, ensure the marked area is tall enough for stacked logos",
    "all_over": "For all-over patterns, mark the entire printable area",
}


def generate_recommendations(area: DetectedArea, check: QuickCheck, placement_type: str) -> list[str]:
    """Quick-check recommendations plus general advice, deduplicated in first-seen order."""
    recs = list(check.recommendations)
    if area.quality < ADVICE_QUALITY:
        recs.append("Use a brighter, more saturated marker color")
        recs.append("Ensure the marked area has clean, solid edges")
    if area.percentage < ADVICE_PERCENT:
        recs.append("Consider increasing the size of the constraint area for better logo visibility")
    if len(area.contours) > 1:
        recs.append("Use a single, continuous marked shape rather than multiple separate areas")
    if placement_type in _PLACEMENT_ADVICE:
        recs.append(_PLACEMENT_ADVICE[placement_type])
    return list(dict.fromkeys(recs))
