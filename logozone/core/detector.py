# logozone/core/detector.py
"""
Marked-area detection on template images: classify, denoise, summarize.
Also lists connected marked regions, samples colour statistics and widens
the detection config when the target colour is missing.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import replace

import numpy as np

from logozone.core.config import (
    ADAPT_TOLERANCE_MAX,
    ADAPT_TOLERANCE_STEP,
    ALPHA_THRESHOLD,
    COLOR_SAMPLE_STRIDE,
    COMPLEX_IMAGE_COLORS,
    DOMINANT_COLOR_COUNT,
    QUALITY_FILL_WEIGHT,
    QUALITY_SIZE_WEIGHT,
    QUALITY_TARGET_COVERAGE,
    REGION_MAX_AREA,
    REGION_MIN_AREA,
)
from logozone.core.contours import follow_edges
from logozone.core.raster import (
    as_rgba_array,
    classify_pixels,
    effective_hsv_window,
    hue_in_window,
    label_components,
    median3,
    open_close,
    rgb_to_hsv,
)
from logozone.core.types import (
    EMPTY_RECT,
    ColorAnalysis,
    DetectedArea,
    DetectedRegion,
    DetectionConfig,
    Rect,
)

logger = logging.getLogger(__name__)


def round_half_up(v: float) -> int:
    """Nearest integer with .5 rounded up."""
    return int(math.floor(v + 0.5))


def marked_mask(rgba: np.ndarray, config: DetectionConfig) -> np.ndarray:
    """Classified mask after the optional median filter and opening/closing."""
    mask = classify_pixels(rgba, config)
    if config.noise_reduction:
        mask = median3(mask)
    if config.morphology:
        mask = open_close(mask, radius=1, iterations=1)
    return mask


def empty_area() -> DetectedArea:
    return DetectedArea(
        pixels=0,
        percentage=0.0,
        bounds=EMPTY_RECT,
        contours=[],
        centroid=(0, 0),
        aspect_ratio=1.0,
        quality=0.0,
    )


def summarize_mask(mask: np.ndarray) -> DetectedArea:
    """Count, bounds, centroid, quality and edge contours of a marked mask."""
    h, w = mask.shape
    ys, xs = np.nonzero(mask)
    count = int(len(xs))
    if count == 0:
        return empty_area()
    total = w * h
    minx, maxx = int(xs.min()), int(xs.max())
    miny, maxy = int(ys.min()), int(ys.max())
    bw, bh = maxx - minx + 1, maxy - miny + 1
    fill = count / (bw * bh)
    size_score = min(count / (total * QUALITY_TARGET_COVERAGE), 1.0)
    quality = QUALITY_FILL_WEIGHT * fill + QUALITY_SIZE_WEIGHT * size_score
    return DetectedArea(
        pixels=count,
        percentage=round(count / total * 100.0, 2),
        bounds=Rect(float(minx), float(miny), float(bw), float(bh)),
        contours=follow_edges(mask),
        centroid=(round_half_up(float(xs.mean())), round_half_up(float(ys.mean()))),
        aspect_ratio=round(bw / bh, 2),
        quality=round(quality, 2),
    )


def detect_marked_area(
    buffer: object,
    width: int,
    height: int,
    config: DetectionConfig | None = None,
) -> DetectedArea:
    """
    Detect the marked area of an RGBA buffer.
    Never raises for an image without marked pixels; the result is zeroed instead.
    Raises InputError for a malformed buffer.
    """
    config = config or DetectionConfig()
    rgba = as_rgba_array(buffer, width, height)
    mask = marked_mask(rgba, config)
    area = summarize_mask(mask)
    if area.pixels == 0:
        logger.warning("No marked pixels in %dx%d image", width, height)
    else:
        logger.debug(
            "Detected %d marked pixels (%.2f%%), bounds=%s, %d contours",
            area.pixels, area.percentage, area.bounds, len(area.contours),
        )
    return area


def find_marked_regions(
    buffer: object,
    width: int,
    height: int,
    config: DetectionConfig | None = None,
    min_area: int = REGION_MIN_AREA,
    max_area: int = REGION_MAX_AREA,
) -> list[DetectedRegion]:
    """4-connected marked regions with min_area <= area <= max_area, in raster order."""
    config = config or DetectionConfig()
    rgba = as_rgba_array(buffer, width, height)
    mask = marked_mask(rgba, config)
    labels, sizes = label_components(mask, connectivity=4)
    if not sizes:
        return []
    n = len(sizes) + 1
    ys, xs = np.nonzero(labels)
    lab = labels[ys, xs]
    minx = np.full(n, width, dtype=np.int64)
    miny = np.full(n, height, dtype=np.int64)
    maxx = np.full(n, -1, dtype=np.int64)
    maxy = np.full(n, -1, dtype=np.int64)
    np.minimum.at(minx, lab, xs)
    np.minimum.at(miny, lab, ys)
    np.maximum.at(maxx, lab, xs)
    np.maximum.at(maxy, lab, ys)

    regions: list[DetectedRegion] = []
    for k, area in enumerate(sizes, start=1):
        if area < min_area or area > max_area:
            continue
        x1, y1, x2, y2 = int(minx[k]), int(miny[k]), int(maxx[k]), int(maxy[k])
        rw, rh = x2 - x1 + 1, y2 - y1 + 1
        regions.append(
            DetectedRegion(
                x=x1,
                y=y1,
                width=rw,
                height=rh,
                area=area,
                confidence=round_half_up(area / (rw * rh) * 100.0),
                center=(round_half_up(x1 + rw / 2.0), round_half_up(y1 + rh / 2.0)),
                bounding_box=(x1, y1, x2, y2),
            )
        )
    logger.debug("Found %d regions (%d kept)", len(sizes), len(regions))
    return regions


def _bucket(h: float, s: float, v: float) -> tuple[int, int, int]:
    hi, si, vi = round_half_up(h), round_half_up(s), round_half_up(v)
    return (round_half_up(hi / 10) * 10, round_half_up(si / 20) * 20, round_half_up(vi / 20) * 20)


def analyze_colors(
    buffer: object,
    width: int,
    height: int,
    config: DetectionConfig | None = None,
) -> ColorAnalysis:
    """
    Sample every Nth opaque pixel, bucket HSV (10 deg hue, 20 pt sat/value),
    report the most frequent buckets and whether the target hue window occurs.
    """
    config = config or DetectionConfig()
    rgba = as_rgba_array(buffer, width, height)
    sample = rgba.reshape(-1, 4)[::COLOR_SAMPLE_STRIDE]
    sample = sample[sample[:, 3] >= ALPHA_THRESHOLD]
    if len(sample) == 0:
        return ColorAnalysis(dominant_colors=[], distinct_colors=0, has_target_color=False)
    h, s, v = rgb_to_hsv(sample)
    buckets = Counter(_bucket(a, b, c) for a, b, c in zip(h.tolist(), s.tolist(), v.tolist()))
    lo, hi, s_floor, v_floor = effective_hsv_window(config)
    has_target = bool(np.any(hue_in_window(h, lo, hi) & (s >= s_floor) & (v >= v_floor)))
    return ColorAnalysis(
        dominant_colors=[k for k, _ in buckets.most_common(DOMINANT_COLOR_COUNT)],
        distinct_colors=len(buckets),
        has_target_color=has_target,
    )


def adapt_config(config: DetectionConfig, analysis: ColorAnalysis) -> DetectionConfig:
    """Raise tolerance when the target colour is absent; force cleanup on busy images."""
    out = config
    if not analysis.has_target_color:
        raised = min(ADAPT_TOLERANCE_MAX, config.tolerance + ADAPT_TOLERANCE_STEP)
        out = replace(out, tolerance=max(config.tolerance, raised))
    if analysis.distinct_colors > COMPLEX_IMAGE_COLORS:
        out = replace(out, noise_reduction=True, morphology=True)
    return out
