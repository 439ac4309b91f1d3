# logozone/core/mask.py
"""
Mask generation: classify -> opening/closing -> hole filling -> Moore
contours -> Douglas-Peucker -> structural validation.
The input buffer is never written; the returned mask is a fresh 0/255 array.
"""

from __future__ import annotations

import logging
import time

from logozone.core.config import MASK_MAX_COMPACTNESS, MASK_MIN_MAIN_AREA_RATIO, MASK_MIN_SOLIDITY
from logozone.core.contours import trace_outer_contours
from logozone.core.geometry import compactness, convex_hull_area, simplify_contour
from logozone.core.raster import as_rgba_array, classify_pixels, fill_holes, open_close, to_uint8
from logozone.core.types import (
    Contour,
    DetectionConfig,
    GeneratedMask,
    MaskGenerationOptions,
    MaskMetrics,
    MaskValidation,
)

logger = logging.getLogger(__name__)


def main_contour(contours: list[Contour]) -> Contour:
    """Largest contour by area; first one wins ties."""
    return max(contours, key=lambda c: c.area)


def mask_metrics(contour: Contour) -> MaskMetrics:
    """Area, perimeter, aspect, solidity and compactness of one contour."""
    if not contour.is_valid or not contour.points:
        return MaskMetrics()
    rect = contour.bounding_rect
    aspect = rect.width / rect.height if rect.height > 0 else 0.0
    hull = convex_hull_area(contour.points)
    return MaskMetrics(
        area=contour.area,
        perimeter=contour.perimeter,
        aspect_ratio=aspect,
        solidity=contour.area / hull if hull > 0 else 0.0,
        compactness=compactness(contour.perimeter, contour.area),
    )


def validate_mask(contours: list[Contour], options: MaskGenerationOptions) -> MaskValidation:
    """Structural checks on the main contour and on fragmentation."""
    if not options.validate:
        return MaskValidation(is_valid=True)
    if not contours:
        return MaskValidation(
            is_valid=False,
            errors=["No valid contours found in the mask"],
            suggestions=["Try adjusting color tolerance", "Check if image contains target colors"],
        )

    main = main_contour(contours)
    metrics = mask_metrics(main)
    warnings: list[str] = []
    errors: list[str] = []
    suggestions: list[str] = []

    if main.area < options.min_area:
        errors.append(f"Constraint area too small: {round(main.area)} < {options.min_area:g} pixels")
        suggestions.append("Increase color tolerance or check image quality")
    elif main.area > options.max_area:
        warnings.append(f"Constraint area very large: {round(main.area)} > {options.max_area:g} pixels")
        suggestions.append("Consider reducing color tolerance")

    lo, hi = options.aspect_range
    if metrics.aspect_ratio < lo:
        warnings.append(f"Aspect ratio too narrow: {metrics.aspect_ratio:.2f} < {lo:g}")
        suggestions.append("Constraint area may be too thin for logo placement")
    elif metrics.aspect_ratio > hi:
        warnings.append(f"Aspect ratio too wide: {metrics.aspect_ratio:.2f} > {hi:g}")
        suggestions.append("Constraint area may be too elongated")

    if metrics.solidity < MASK_MIN_SOLIDITY:
        warnings.append("Constraint area has irregular shape (low solidity)")
        suggestions.append("Consider enabling hole filling or smoothing")

    if metrics.compactness > MASK_MAX_COMPACTNESS:
        warnings.append("Constraint area has complex perimeter (high compactness)")
        suggestions.append("Consider contour simplification")

    if len(contours) > 1:
        total = sum(c.area for c in contours)
        if total > 0 and main.area / total < MASK_MIN_MAIN_AREA_RATIO:
            warnings.append(f"Multiple constraint areas detected ({len(contours)} regions)")
            suggestions.append("Consider if logo should be placed in largest area only")

    return MaskValidation(
        is_valid=not errors,
        warnings=warnings,
        errors=errors,
        suggestions=suggestions,
        metrics=metrics,
    )


def generate_mask(
    buffer: object,
    width: int,
    height: int,
    detection: DetectionConfig | None = None,
    options: MaskGenerationOptions | None = None,
) -> GeneratedMask:
    """Run the mask pipeline on an RGBA buffer. Raises InputError for a malformed buffer."""
    detection = detection or DetectionConfig()
    options = options or MaskGenerationOptions()
    t0 = time.perf_counter()

    rgba = as_rgba_array(buffer, width, height)
    mask = classify_pixels(rgba, detection)
    if options.smoothing:
        mask = open_close(mask, radius=options.kernel_size // 2, iterations=options.smoothing_iterations)
    if options.fill_holes:
        mask = fill_holes(mask, options.min_hole_size)

    contours = trace_outer_contours(mask)
    if options.simplify:
        contours = [simplify_contour(c, options.epsilon) for c in contours]
    validation = validate_mask(contours, options)

    elapsed = (time.perf_counter() - t0) * 1000.0
    if not contours:
        logger.warning("Mask generation found no contours in %dx%d image", width, height)
    logger.debug("Mask: %d contours, valid=%s, %.1f ms", len(contours), validation.is_valid, elapsed)
    return GeneratedMask(
        mask=to_uint8(mask),
        width=int(width),
        height=int(height),
        contours=contours,
        validation=validation,
        options=options,
        processing_ms=elapsed,
    )
