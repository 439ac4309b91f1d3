# logozone/core/placement.py
"""
Request-time enforcement of a persisted PlacementConstraint on a logo placement.
Phases: safety margins -> effective area -> boundary translation ->
dimension clamping -> fallback to the stored default.
Also: recommended placement for a logo aspect ratio, placement mask raster,
batch application keyed by placement type.
"""

from __future__ import annotations

import logging
from dataclasses import replace

import numpy as np

from logozone.core.config import ASPECT_MATCH_TOLERANCE
from logozone.core.error_codes import InputError
from logozone.core.types import (
    ApplicationOptions,
    ConstraintApplication,
    LogoPlacement,
    PlacementConstraint,
    PlacementMask,
    Rect,
    SafetyMargins,
)

logger = logging.getLogger(__name__)


def _num(v: float) -> str:
    """Compact number for messages: 40.0 -> 40, 12.5 -> 12.5."""
    return f"{v:g}"


def safety_margins(constraint: PlacementConstraint, respect: bool) -> SafetyMargins:
    if not respect:
        return SafetyMargins()
    return SafetyMargins(
        top=constraint.margin_top,
        right=constraint.margin_right,
        bottom=constraint.margin_bottom,
        left=constraint.margin_left,
    )


def effective_area(constraint: PlacementConstraint, margins: SafetyMargins) -> Rect:
    """Constraint bounds inset by the safety margins."""
    b = constraint.bounds
    return Rect(
        b.x + margins.left,
        b.y + margins.top,
        b.width - margins.left - margins.right,
        b.height - margins.top - margins.bottom,
    )


def enforce_boundaries(
    placement: LogoPlacement,
    area: Rect,
    auto_adjust: bool,
) -> tuple[LogoPlacement, list[str], list[str]]:
    """
    Compare the requested placement to each edge of the area. Adjustment only
    translates; the right edge overrides the left and the bottom overrides the top.
    """
    violations: list[str] = []
    adjustments: list[str] = []
    x, y = placement.x, placement.y

    if placement.x < area.x:
        violations.append(f"Logo X position ({_num(placement.x)}) is outside left boundary ({_num(area.x)})")
        if auto_adjust:
            x = area.x
            adjustments.append(f"Adjusted X position from {_num(placement.x)} to {_num(area.x)}")
    if placement.y < area.y:
        violations.append(f"Logo Y position ({_num(placement.y)}) is outside top boundary ({_num(area.y)})")
        if auto_adjust:
            y = area.y
            adjustments.append(f"Adjusted Y position from {_num(placement.y)} to {_num(area.y)}")
    if placement.right > area.right:
        violations.append(
            f"Logo extends beyond right boundary ({_num(placement.right)} > {_num(area.right)})"
        )
        if auto_adjust:
            x = area.right - placement.width
            adjustments.append("Adjusted X position to fit within right boundary")
    if placement.bottom > area.bottom:
        violations.append(
            f"Logo extends beyond bottom boundary ({_num(placement.bottom)} > {_num(area.bottom)})"
        )
        if auto_adjust:
            y = area.bottom - placement.height
            adjustments.append("Adjusted Y position to fit within bottom boundary")

    return replace(placement, x=x, y=y), violations, adjustments


def enforce_dimensions(
    placement: LogoPlacement,
    constraint: PlacementConstraint,
    options: ApplicationOptions,
) -> tuple[LogoPlacement, list[str], list[str]]:
    """
    Width is checked and clamped first, then the resulting height. With
    enforce_aspect_ratio the other side follows the ratio of the incoming
    placement. A bound of None is not checked.
    """
    violations: list[str] = []
    adjustments: list[str] = []
    auto = options.allow_auto_adjustment
    w, h = placement.width, placement.height
    ratio = w / h if h else None

    target_w = None
    if constraint.min_logo_width is not None and w < constraint.min_logo_width:
        violations.append(f"Logo width ({_num(w)}) is below minimum ({_num(constraint.min_logo_width)})")
        target_w = constraint.min_logo_width
    elif constraint.max_logo_width is not None and w > constraint.max_logo_width:
        violations.append(f"Logo width ({_num(w)}) exceeds maximum ({_num(constraint.max_logo_width)})")
        target_w = constraint.max_logo_width
    if auto and target_w is not None:
        adjustments.append(f"Adjusted width from {_num(w)} to {_num(target_w)}")
        w = target_w
        if options.enforce_aspect_ratio and ratio:
            h = w / ratio
            adjustments.append(f"Maintained aspect ratio, adjusted height to {_num(h)}")

    target_h = None
    if constraint.min_logo_height is not None and h < constraint.min_logo_height:
        violations.append(f"Logo height ({_num(h)}) is below minimum ({_num(constraint.min_logo_height)})")
        target_h = constraint.min_logo_height
    elif constraint.max_logo_height is not None and h > constraint.max_logo_height:
        violations.append(f"Logo height ({_num(h)}) exceeds maximum ({_num(constraint.max_logo_height)})")
        target_h = constraint.max_logo_height
    if auto and target_h is not None:
        adjustments.append(f"Adjusted height from {_num(h)} to {_num(target_h)}")
        h = target_h
        if options.enforce_aspect_ratio and ratio:
            w = h * ratio
            adjustments.append(f"Maintained aspect ratio, adjusted width to {_num(w)}")

    return replace(placement, width=w, height=h), violations, adjustments


def placement_violations(placement: LogoPlacement, area: Rect, constraint: PlacementConstraint) -> list[str]:
    """Boundary and dimension violations of a placement, without adjusting it."""
    out: list[str] = []
    if placement.x < area.x:
        out.append("Logo extends beyond left boundary")
    if placement.y < area.y:
        out.append("Logo extends beyond top boundary")
    if placement.right > area.right:
        out.append("Logo extends beyond right boundary")
    if placement.bottom > area.bottom:
        out.append("Logo extends beyond bottom boundary")
    c = constraint
    if c.min_logo_width is not None and placement.width < c.min_logo_width:
        out.append("Logo width below minimum")
    if c.max_logo_width is not None and placement.width > c.max_logo_width:
        out.append("Logo width exceeds maximum")
    if c.min_logo_height is not None and placement.height < c.min_logo_height:
        out.append("Logo height below minimum")
    if c.max_logo_height is not None and placement.height > c.max_logo_height:
        out.append("Logo height exceeds maximum")
    return out


def apply_constraints(
    constraint: PlacementConstraint,
    requested: LogoPlacement,
    options: ApplicationOptions | None = None,
) -> ConstraintApplication:
    """
    Enforce the constraint on a requested placement.
    Violations of the request are always recorded, so is_valid is True only
    when the request was already legal, or when translation and clamping could
    not produce a legal placement and the stored default passes instead.
    """
    options = options or ApplicationOptions()
    margins = safety_margins(constraint, options.respect_safety_margins)
    area = effective_area(constraint, margins)

    placement, violations, adjustments = enforce_boundaries(requested, area, options.allow_auto_adjustment)
    placement, dim_violations, dim_adjustments = enforce_dimensions(placement, constraint, options)
    violations += dim_violations
    adjustments += dim_adjustments

    if (
        violations
        and options.allow_auto_adjustment
        and placement_violations(placement, area, constraint)
    ):
        d = constraint.default_placement
        placement = replace(d, rotation=requested.rotation)
        adjustments.append(f"Applied default position: ({_num(d.x)}, {_num(d.y)})")
        adjustments.append(f"Applied default size: {_num(d.width)}x{_num(d.height)}")
        remaining = placement_violations(placement, area, constraint)
        if remaining:
            logger.warning(
                "Default placement for %s/%s still violates constraint: %s",
                constraint.product_id, constraint.placement_type, "; ".join(remaining),
            )
        else:
            violations = []

    logger.debug(
        "Applied %s constraint for %s: %d violations, %d adjustments",
        constraint.placement_type, constraint.product_id, len(violations), len(adjustments),
    )
    return ConstraintApplication(
        is_valid=not violations,
        applied_placement=placement,
        violations=violations,
        adjustments=adjustments,
        safety_margins=margins,
    )


def recommended_placement(constraint: PlacementConstraint, aspect_ratio: float | None = None) -> LogoPlacement:
    """
    Stored default placement, reshaped toward the logo's aspect ratio when it
    differs from the default's by more than the tolerance. A wider logo widens
    the default (capped at max_logo_width); a taller one heightens it.
    Rotation is never set.
    """
    d = constraint.default_placement
    out = LogoPlacement(x=d.x, y=d.y, width=d.width, height=d.height)
    if not aspect_ratio or d.height <= 0:
        return out
    current = d.width / d.height
    if abs(current - aspect_ratio) <= ASPECT_MATCH_TOLERANCE:
        return out
    if aspect_ratio > current:
        w = d.height * aspect_ratio
        if constraint.max_logo_width is not None:
            w = min(w, constraint.max_logo_width)
        return replace(out, width=w)
    h = d.width / aspect_ratio
    if constraint.max_logo_height is not None:
        h = min(h, constraint.max_logo_height)
    return replace(out, height=h)


def generate_placement_mask(
    constraint: PlacementConstraint,
    applied: LogoPlacement,
    image_width: int,
    image_height: int,
) -> PlacementMask:
    """
    Black raster with the applied placement rectangle filled white (255),
    clipped to the image, plus the placement in 0-1 image coordinates.
    Raises InputError for a non-positive image size.
    """
    if image_width <= 0 or image_height <= 0:
        raise InputError(f"Image size must be positive, got {image_width}x{image_height}")
    mask = np.zeros((int(image_height), int(image_width)), dtype=np.uint8)
    x0 = max(0, int(round(applied.x)))
    y0 = max(0, int(round(applied.y)))
    x1 = min(int(image_width), int(round(applied.right)))
    y1 = min(int(image_height), int(round(applied.bottom)))
    if x1 > x0 and y1 > y0:
        mask[y0:y1, x0:x1] = 255
    logger.debug("Placement mask for %s: %s", constraint.placement_type, (x0, y0, x1, y1))
    return PlacementMask(
        mask=mask,
        normalized_x=applied.x / image_width,
        normalized_y=applied.y / image_height,
        normalized_width=applied.width / image_width,
        normalized_height=applied.height / image_height,
    )


def batch_apply_constraints(
    constraints: list[PlacementConstraint],
    requests: list[tuple[str, LogoPlacement, ApplicationOptions | None]],
) -> list[ConstraintApplication]:
    """
    Apply constraints to (placement_type, placement, options) requests in order.
    The first constraint of a matching type is used; a missing type yields an
    invalid result that echoes the request.
    """
    by_type: dict[str, PlacementConstraint] = {}
    for c in constraints:
        by_type.setdefault(c.placement_type, c)

    results: list[ConstraintApplication] = []
    for placement_type, placement, options in requests:
        constraint = by_type.get(placement_type)
        if constraint is None:
            logger.warning("No constraint for placement type %s", placement_type)
            results.append(
                ConstraintApplication(
                    is_valid=False,
                    applied_placement=placement,
                    violations=[f"No constraint configured for placement type: {placement_type}"],
                    adjustments=[],
                    safety_margins=SafetyMargins(),
                    placement_type=placement_type,
                )
            )
            continue
        result = apply_constraints(constraint, placement, options)
        result.placement_type = placement_type
        results.append(result)
    return results
