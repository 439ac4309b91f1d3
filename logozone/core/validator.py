# logozone/core/validator.py
"""
Constraint validation of a marked region against ConstraintRequirements.
Checks run in a fixed order (area, aspect, contiguity, edges, position,
geometry); each finding is a ValidationIssue. Confidence, validity flags and
placement zones are derived from the issues and the main contour.
"""

from __future__ import annotations

import logging
import math

from logozone.core.calculator import edge_distances
from logozone.core.config import (
    ALL_OVER_EDGE_MARGIN,
    AXIS_OFFSET_RATIO,
    CENTER_BIAS_HIGH,
    CENTER_BIAS_LOW,
    CENTER_FAR_RATIO,
    CENTER_NEAR_RATIO,
    CENTER_REGION_RATIO,
    CENTER_ZONE_LOGO_FILL,
    CENTER_ZONE_PADDING_FACTOR,
    CENTER_ZONE_QUALITY,
    CONFIDENCE_ASPECT_BONUS,
    CONFIDENCE_CONVEXITY_BONUS,
    CONFIDENCE_EDGE_BONUS,
    CORNER_BAND_RATIO,
    EDGE_HUGGING_PX,
    EDGE_ZONE_LOGO_FILL,
    EDGE_ZONE_PADDING_FACTOR,
    EDGE_ZONE_QUALITY,
    HORIZONTAL_MIN_ASPECT,
    LOGO_CAPACITY_MAX_FRACTION,
    LOGO_CAPACITY_MIN_FRACTION,
    SEVERITY_WEIGHTS,
    VERTICAL_MAX_ASPECT,
)
from logozone.core.geometry import convex_hull_area, eccentricity, make_contour
from logozone.core.types import (
    ConstraintRequirements,
    ConstraintValidationResult,
    Contour,
    DetectedArea,
    GeneratedMask,
    PlacementZone,
    Rect,
    ValidationIssue,
    ValidationMetrics,
    ValidationSeverity,
)

logger = logging.getLogger(__name__)


def _blocking_error(priority: int) -> ValidationSeverity:
    return ValidationSeverity("error", True, priority)


def _warning(priority: int) -> ValidationSeverity:
    return ValidationSeverity("warning", False, priority)


def _info(priority: int) -> ValidationSeverity:
    return ValidationSeverity("info", False, priority)


def _rect_contour(r: Rect) -> Contour:
    return make_contour([(r.x, r.y), (r.right, r.y), (r.right, r.bottom), (r.x, r.bottom)])


def source_contours(source: GeneratedMask | DetectedArea) -> list[Contour]:
    """Contours to validate. A detected area with pixels but no traced contour falls back to its bounds."""
    if isinstance(source, GeneratedMask):
        return list(source.contours)
    if source.contours:
        return list(source.contours)
    if source.pixels > 0 and source.bounds.area > 0:
        return [_rect_contour(source.bounds)]
    return []


def compute_metrics(
    main: Contour,
    requirements: ConstraintRequirements,
    image_width: float,
    image_height: float,
) -> ValidationMetrics:
    r = main.bounding_rect
    hull = convex_hull_area(main.points)
    cx, cy = image_width / 2.0, image_height / 2.0
    pad = requirements.logo.padding_from_edges
    avail_w, avail_h = r.width - 2 * pad, r.height - 2 * pad
    return ValidationMetrics(
        area=main.area,
        aspect_ratio=r.width / r.height if r.height > 0 else 0.0,
        eccentricity=eccentricity(r.width, r.height),
        convexity=main.area / hull if hull > 0 else 0.0,
        center_distance=math.hypot(main.centroid[0] - cx, main.centroid[1] - cy),
        edge_distance=min(d for _, d in edge_distances(r, image_width, image_height).items()),
        logo_capacity=(
            max(requirements.logo.min_logo_size, min(avail_w, avail_h) * LOGO_CAPACITY_MIN_FRACTION),
            min(requirements.logo.max_logo_size, max(avail_w, avail_h) * LOGO_CAPACITY_MAX_FRACTION),
        ),
    )


# ----- Checks -----


def check_area(main: Contour, req: ConstraintRequirements, issues: list[ValidationIssue]) -> None:
    if main.area < req.min_area:
        issues.append(ValidationIssue(
            id="area_too_small",
            severity=_blocking_error(9),
            category="area",
            title="Constraint area too small",
            message=f"Area is {round(main.area)} pixels, minimum required is {req.min_area:g} pixels",
            suggestion="Increase color tolerance or use a larger marked area in the template",
            measured_value=main.area,
            required_value=req.min_area,
            affected_region=main.bounding_rect,
        ))
    elif main.area > req.max_area:
        issues.append(ValidationIssue(
            id="area_too_large",
            severity=_warning(5),
            category="area",
            title="Constraint area very large",
            message=f"Area is {round(main.area)} pixels, recommended maximum is {req.max_area:g} pixels",
            suggestion="Consider reducing color tolerance or using a smaller constraint area",
            measured_value=main.area,
            required_value=req.max_area,
            affected_region=main.bounding_rect,
        ))


def check_aspect(
    main: Contour,
    req: ConstraintRequirements,
    placement_type: str,
    issues: list[ValidationIssue],
) -> None:
    r = main.bounding_rect
    aspect = r.width / r.height if r.height > 0 else 0.0
    lo, hi = req.aspect_range
    if aspect < lo:
        issues.append(ValidationIssue(
            id="aspect_too_narrow",
            severity=_warning(6),
            category="aspect",
            title="Constraint area too narrow",
            message=f"Aspect ratio is {aspect:.2f}, minimum recommended is {lo:g}",
            suggestion="Consider using a wider constraint area for better logo placement",
            measured_value=aspect,
            required_value=lo,
            affected_region=r,
        ))
    elif aspect > hi:
        issues.append(ValidationIssue(
            id="aspect_too_wide",
            severity=_warning(6),
            category="aspect",
            title="Constraint area too wide",
            message=f"Aspect ratio is {aspect:.2f}, maximum recommended is {hi:g}",
            suggestion="Consider using a more square constraint area for better logo placement",
            measured_value=aspect,
            required_value=hi,
            affected_region=r,
        ))

    if placement_type == "horizontal" and aspect < HORIZONTAL_MIN_ASPECT:
        issues.append(ValidationIssue(
            id="aspect_unsuited_horizontal",
            severity=_warning(6),
            category="aspect",
            title="Area too tall for horizontal placement",
            message=f"Aspect ratio is {aspect:.2f}, horizontal placement needs at least {HORIZONTAL_MIN_ASPECT:g}",
            suggestion="Make the marked area wider for horizontal logo placement",
            measured_value=aspect,
            required_value=HORIZONTAL_MIN_ASPECT,
            affected_region=r,
        ))
    elif placement_type == "vertical" and aspect > VERTICAL_MAX_ASPECT:
        issues.append(ValidationIssue(
            id="aspect_unsuited_vertical",
            severity=_warning(6),
            category="aspect",
            title="Area too wide for vertical placement",
            message=f"Aspect ratio is {aspect:.2f}, vertical placement needs at most {VERTICAL_MAX_ASPECT:g}",
            suggestion="Make the marked area taller or narrower for vertical logo placement",
            measured_value=aspect,
            required_value=VERTICAL_MAX_ASPECT,
            affected_region=r,
        ))


def check_contiguity(
    contours: list[Contour],
    main: Contour,
    req: ConstraintRequirements,
    issues: list[ValidationIssue],
    recommendations: list[str],
) -> None:
    policy = req.contiguity
    n = len(contours)
    if policy.require_single_region and n > 1:
        issues.append(ValidationIssue(
            id="multiple_regions",
            severity=_blocking_error(8),
            category="contiguity",
            title="Multiple disconnected regions detected",
            message=f"Found {n} separate regions, but only a single region is allowed",
            suggestion="Use hole filling or increase color tolerance to connect regions",
            measured_value=float(n),
            required_value=1.0,
        ))
    elif n > policy.max_disconnected_regions:
        issues.append(ValidationIssue(
            id="too_many_regions",
            severity=_warning(7),
            category="contiguity",
            title="Too many disconnected regions",
            message=f"Found {n} regions, maximum recommended is {policy.max_disconnected_regions}",
            suggestion="Consider region merging or use the largest region only",
            measured_value=float(n),
            required_value=float(policy.max_disconnected_regions),
        ))

    if n > 1:
        total = sum(c.area for c in contours)
        ratio = main.area / total if total > 0 else 0.0
        if ratio < policy.min_main_region_ratio:
            issues.append(ValidationIssue(
                id="fragmented_regions",
                severity=_warning(6),
                category="contiguity",
                title="Constraint area is fragmented",
                message=f"Main region contains only {ratio * 100:.1f}% of total area",
                suggestion="Consider using only the largest region or improve region connectivity",
                measured_value=ratio,
                required_value=policy.min_main_region_ratio,
            ))
            recommendations.append("Consider enabling hole filling to connect nearby regions")
            recommendations.append("Use higher morphological smoothing iterations")


def check_edges(
    main: Contour,
    req: ConstraintRequirements,
    placement_type: str,
    image_width: float,
    image_height: float,
    issues: list[ValidationIssue],
    recommendations: list[str],
) -> None:
    r = main.bounding_rect
    margin = req.position.margin_from_edges
    if placement_type == "all_over":
        margin = min(margin, ALL_OVER_EDGE_MARGIN)
    dists = dict(edge_distances(r, image_width, image_height).items())
    closest = min(dists, key=lambda k: dists[k])
    nearest = dists[closest]
    if nearest < margin:
        issues.append(ValidationIssue(
            id="too_close_to_edge",
            severity=_warning(5),
            category="position",
            title="Constraint too close to image edge",
            message=f"Distance to {closest} edge is {nearest:g}px, recommended minimum is {margin:g}px",
            suggestion="Ensure adequate margin for logo placement and visual balance",
            measured_value=nearest,
            required_value=margin,
            affected_region=r,
        ))
        recommendations.append(f"Add more padding around the constraint area (especially on {closest} side)")

    for edge, d in dists.items():
        if d < EDGE_HUGGING_PX:
            issues.append(ValidationIssue(
                id=f"hugging_{edge}_edge",
                severity=_info(3),
                category="position",
                title=f"Constraint extends to {edge} edge",
                message=f"Very close to {edge} edge ({d:g}px), may limit logo placement options",
                suggestion="Consider leaving more space for visual breathing room",
                measured_value=d,
                required_value=EDGE_HUGGING_PX,
            ))


def check_position(
    main: Contour,
    req: ConstraintRequirements,
    placement_type: str,
    image_width: float,
    image_height: float,
    issues: list[ValidationIssue],
    recommendations: list[str],
) -> None:
    r = main.bounding_rect
    cx, cy = main.centroid
    icx, icy = image_width / 2.0, image_height / 2.0
    dist = math.hypot(cx - icx, cy - icy)
    max_dist = math.hypot(icx, icy)
    ratio = dist / max_dist if max_dist > 0 else 0.0
    policy = req.position

    if policy.allowed_regions == "center" and ratio > CENTER_REGION_RATIO:
        issues.append(ValidationIssue(
            id="not_centered",
            severity=_warning(4),
            category="position",
            title="Constraint not well-centered",
            message=f"Constraint center is {round(dist)}px from image center",
            suggestion="Move constraint closer to image center for better visual balance",
            measured_value=ratio,
            required_value=CENTER_REGION_RATIO,
            affected_region=r,
        ))
    elif policy.allowed_regions == "edges" and ratio < CENTER_REGION_RATIO:
        issues.append(ValidationIssue(
            id="not_near_edge",
            severity=_warning(4),
            category="position",
            title="Constraint not near an edge",
            message=f"Constraint center is only {round(dist)}px from image center",
            suggestion="Move constraint toward an image edge",
            measured_value=ratio,
            required_value=CENTER_REGION_RATIO,
            affected_region=r,
        ))
    elif policy.allowed_regions == "corners":
        in_x = cx <= image_width * CORNER_BAND_RATIO or cx >= image_width * (1 - CORNER_BAND_RATIO)
        in_y = cy <= image_height * CORNER_BAND_RATIO or cy >= image_height * (1 - CORNER_BAND_RATIO)
        if not (in_x and in_y):
            issues.append(ValidationIssue(
                id="not_in_corner",
                severity=_warning(4),
                category="position",
                title="Constraint not in a corner",
                message=f"Constraint center ({cx:.0f}, {cy:.0f}) is outside the corner bands",
                suggestion="Move constraint into one of the image corners",
                affected_region=r,
            ))

    if placement_type == "horizontal" and abs(cy - icy) > image_height * AXIS_OFFSET_RATIO:
        issues.append(ValidationIssue(
            id="off_center_vertically",
            severity=_warning(4),
            category="position",
            title="Horizontal placement too far from vertical center",
            message=f"Centroid is {abs(cy - icy):.0f}px from the vertical center",
            suggestion="Position the marked area closer to the vertical center",
            measured_value=abs(cy - icy),
            required_value=image_height * AXIS_OFFSET_RATIO,
            affected_region=r,
        ))
    elif placement_type == "vertical" and abs(cx - icx) > image_width * AXIS_OFFSET_RATIO:
        issues.append(ValidationIssue(
            id="off_center_horizontally",
            severity=_warning(4),
            category="position",
            title="Vertical placement too far from horizontal center",
            message=f"Centroid is {abs(cx - icx):.0f}px from the horizontal center",
            suggestion="Position the marked area closer to the horizontal center",
            measured_value=abs(cx - icx),
            required_value=image_width * AXIS_OFFSET_RATIO,
            affected_region=r,
        ))

    pad = req.logo.padding_from_edges
    avail_w, avail_h = r.width - 2 * pad, r.height - 2 * pad
    min_logo = req.logo.min_logo_size
    if avail_w < min_logo or avail_h < min_logo:
        issues.append(ValidationIssue(
            id="insufficient_logo_space",
            severity=_blocking_error(9),
            category="placement",
            title="Insufficient space for logo placement",
            message=f"Available space is {avail_w:g}x{avail_h:g}px, minimum logo needs {min_logo:g}x{min_logo:g}px",
            suggestion="Increase constraint area or reduce padding requirements",
            measured_value=min(avail_w, avail_h),
            required_value=min_logo,
            affected_region=r,
        ))

    if policy.center_bias > CENTER_BIAS_HIGH and ratio > CENTER_FAR_RATIO:
        recommendations.append("Consider repositioning constraint closer to center for better visual impact")
    elif policy.center_bias < CENTER_BIAS_LOW and ratio < CENTER_NEAR_RATIO:
        recommendations.append("Constraint is very centered - consider off-center placement for dynamic composition")


def check_geometry(
    main: Contour,
    req: ConstraintRequirements,
    metrics: ValidationMetrics,
    issues: list[ValidationIssue],
    recommendations: list[str],
) -> None:
    g = req.geometry
    r = main.bounding_rect
    if r.width < g.min_width:
        issues.append(ValidationIssue(
            id="width_too_small",
            severity=_warning(6),
            category="geometry",
            title="Constraint width too small",
            message=f"Width is {r.width:g}px, recommended minimum is {g.min_width:g}px",
            suggestion="Increase constraint width for better logo placement",
            measured_value=r.width,
            required_value=g.min_width,
        ))
    if r.height < g.min_height:
        issues.append(ValidationIssue(
            id="height_too_small",
            severity=_warning(6),
            category="geometry",
            title="Constraint height too small",
            message=f"Height is {r.height:g}px, recommended minimum is {g.min_height:g}px",
            suggestion="Increase constraint height for better logo placement",
            measured_value=r.height,
            required_value=g.min_height,
        ))
    if metrics.eccentricity > g.max_eccentricity:
        issues.append(ValidationIssue(
            id="too_elongated",
            severity=_info(4),
            category="geometry",
            title="Constraint shape very elongated",
            message=f"Shape eccentricity is {metrics.eccentricity:.2f}, may limit logo aspect ratios",
            suggestion="Consider using a more balanced shape for versatile logo placement",
            measured_value=metrics.eccentricity,
            required_value=g.max_eccentricity,
        ))
    if metrics.convexity < g.min_convexity:
        issues.append(ValidationIssue(
            id="irregular_shape",
            severity=_warning(5),
            category="geometry",
            title="Constraint has irregular shape",
            message=f"Shape convexity is {metrics.convexity:.2f}, indicating concave or irregular boundaries",
            suggestion="Consider shape smoothing or using a more regular constraint area",
            measured_value=metrics.convexity,
            required_value=g.min_convexity,
        ))
        recommendations.append("Enable morphological smoothing to regularize shape")
        recommendations.append("Consider manual adjustment of constraint boundaries")


# ----- Scoring and zones -----


def compute_confidence(issues: list[ValidationIssue], metrics: ValidationMetrics) -> float:
    """1.0 minus weighted issue penalties, plus bonuses for good shape; clamped to [0, 1]."""
    confidence = 1.0
    for issue in issues:
        confidence -= SEVERITY_WEIGHTS[issue.severity.level] * (issue.severity.priority / 10.0)
    convex_min, convex_bonus = CONFIDENCE_CONVEXITY_BONUS
    if metrics.convexity > convex_min:
        confidence += convex_bonus
    aspect_lo, aspect_hi, aspect_bonus = CONFIDENCE_ASPECT_BONUS
    if aspect_lo < metrics.aspect_ratio < aspect_hi:
        confidence += aspect_bonus
    edge_min, edge_bonus = CONFIDENCE_EDGE_BONUS
    if metrics.edge_distance > edge_min:
        confidence += edge_bonus
    return max(0.0, min(1.0, confidence))


def _zone(zone_id: str, region: Rect, quality: float, fill: float, restrictions: list[str]) -> PlacementZone:
    return PlacementZone(
        id=zone_id,
        region=region,
        quality=quality,
        suggested_logo_size=(round(region.width * fill), round(region.height * fill)),
        center_point=region.center,
        restrictions=restrictions,
    )


def placement_zones(main: Contour, req: ConstraintRequirements) -> list[PlacementZone]:
    """'center' zone always; 'edge' zone only when strictly larger on some axis."""
    pad = req.logo.padding_from_edges
    r = main.bounding_rect
    center = r.shrink(pad * CENTER_ZONE_PADDING_FACTOR)
    edge = r.shrink(pad * EDGE_ZONE_PADDING_FACTOR)
    zones = [_zone("center", center, CENTER_ZONE_QUALITY, CENTER_ZONE_LOGO_FILL, [])]
    if edge.width > center.width or edge.height > center.height:
        zones.append(
            _zone("edge", edge, EDGE_ZONE_QUALITY, EDGE_ZONE_LOGO_FILL, ["May be close to constraint boundaries"])
        )
    return zones


def empty_result(reason: str) -> ConstraintValidationResult:
    return ConstraintValidationResult(
        is_valid=False,
        is_usable=False,
        confidence=0.0,
        issues=[ValidationIssue(
            id="no_constraint",
            severity=_blocking_error(10),
            category="area",
            title="No constraint detected",
            message=reason,
            suggestion="Ensure marked constraint areas are present and detectable",
        )],
        recommendations=[
            "Check color detection settings",
            "Verify green areas are present in the template",
            "Adjust color tolerance if needed",
        ],
        metrics=ValidationMetrics(),
        placement_zones=[],
    )


def validate_constraint(
    source: GeneratedMask | DetectedArea,
    requirements: ConstraintRequirements | None = None,
    image_width: float | None = None,
    image_height: float | None = None,
    placement_type: str = "horizontal",
) -> ConstraintValidationResult:
    """
    Validate a generated mask or detected area.
    Image size defaults to the mask size; it is required for a DetectedArea.
    Degenerate input returns a zero-confidence result with one blocking issue.
    """
    req = requirements or ConstraintRequirements()
    if isinstance(source, GeneratedMask):
        image_width = source.width if image_width is None else image_width
        image_height = source.height if image_height is None else image_height
    if image_width is None or image_height is None:
        raise ValueError("image_width and image_height are required for a DetectedArea")

    contours = source_contours(source)
    if not contours:
        logger.warning("Validation called on input without a marked region")
        return empty_result("No constraint regions detected")

    main = max(contours, key=lambda c: c.area)
    metrics = compute_metrics(main, req, image_width, image_height)
    issues: list[ValidationIssue] = []
    recommendations: list[str] = []

    check_area(main, req, issues)
    check_aspect(main, req, placement_type, issues)
    check_contiguity(contours, main, req, issues, recommendations)
    check_edges(main, req, placement_type, image_width, image_height, issues, recommendations)
    check_position(main, req, placement_type, image_width, image_height, issues, recommendations)
    check_geometry(main, req, metrics, issues, recommendations)

    result = ConstraintValidationResult(
        is_valid=not any(i.severity.blocking for i in issues),
        is_usable=not any(i.severity.level == "error" for i in issues),
        confidence=compute_confidence(issues, metrics),
        issues=issues,
        recommendations=recommendations,
        metrics=metrics,
        placement_zones=placement_zones(main, req),
    )
    logger.debug(
        "Validation: valid=%s usable=%s confidence=%.2f issues=%s",
        result.is_valid, result.is_usable, result.confidence, [i.id for i in issues],
    )
    return result


_LEVEL_TAG = {"error": "[ERROR]", "warning": "[WARN]", "info": "[INFO]"}


def create_validation_report(result: ConstraintValidationResult) -> str:
    """Plain-text summary for logs and the admin UI."""
    m = result.metrics
    lines = [
        "=== CONSTRAINT VALIDATION REPORT ===",
        f"Status: {'VALID' if result.is_valid else 'INVALID'}",
        f"Usable: {'YES' if result.is_usable else 'NO'}",
        f"Confidence: {result.confidence * 100:.1f}%",
        "",
        "--- METRICS ---",
        f"Area: {round(m.area)} pixels",
        f"Aspect Ratio: {m.aspect_ratio:.2f}",
        f"Convexity: {m.convexity:.2f}",
        f"Edge Distance: {round(m.edge_distance)}px",
        f"Logo Capacity: {round(m.logo_capacity[0])}-{round(m.logo_capacity[1])}px",
        "",
    ]
    if result.issues:
        lines.append("--- ISSUES ---")
        for issue in result.issues:
            lines.append(f"{_LEVEL_TAG[issue.severity.level]} {issue.title}: {issue.message}")
        lines.append("")
    if result.recommendations:
        lines.append("--- RECOMMENDATIONS ---")
        lines.extend(f"- {rec}" for rec in result.recommendations)
        lines.append("")
    if result.placement_zones:
        lines.append("--- PLACEMENT ZONES ---")
        for zone in result.placement_zones:
            lines.append(
                f"{zone.id}: {round(zone.quality * 100)}% quality, "
                f"{zone.region.width:g}x{zone.region.height:g}px"
            )
    return "\n".join(lines)
