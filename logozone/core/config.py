# logozone/core/config.py
"""
Central configuration for logo-zone detection, validation and constraint application.
All tunable values live here; dataclass defaults in types.py read from this module.
"""

from __future__ import annotations
import os

# ----- Paths (repo-relative) -----
REPORTS_DIR: str = "reports"

# ----- Pixel classification -----
ALPHA_THRESHOLD: int = 128
"""Pixels with alpha below this are never marked."""

DEFAULT_HUE_RANGE: tuple[float, float] = (80.0, 140.0)
"""HSV hue window (degrees) for the reference color. min > max wraps around 0."""

DEFAULT_SATURATION_MIN: float = 30.0
DEFAULT_VALUE_MIN: float = 20.0

DEFAULT_MARKED_CHANNEL: str = "green"
DEFAULT_CHANNEL_MIN: int = 100
"""Minimum value of the marked channel for the RGB dominance test."""

DEFAULT_OTHER_CHANNEL_RATIOS: tuple[float, float] = (1.5, 1.5)
"""Marked channel must exceed each other channel (in RGB order) times its ratio."""

DEFAULT_TOLERANCE: float = 0.1

TOLERANCE_HUE_DEG: float = 36.0
"""Hue widening (degrees, each side) at tolerance 1.0."""

TOLERANCE_SV_PCT: float = 10.0
"""Saturation/value floor relaxation (percentage points) at tolerance 1.0."""

COLOR_PRESETS: dict[str, dict[str, float]] = {
    "vivid_green": {"h_min": 100, "h_max": 140, "s_min": 50, "v_min": 40},
    "dark_green": {"h_min": 80, "h_max": 120, "s_min": 30, "v_min": 20},
    "light_green": {"h_min": 110, "h_max": 150, "s_min": 20, "v_min": 60},
    "all_green": {"h_min": 80, "h_max": 160, "s_min": 15, "v_min": 15},
}
"""Named HSV windows for common marker greens."""

# ----- Detection summary -----
QUALITY_FILL_WEIGHT: float = 0.6
QUALITY_SIZE_WEIGHT: float = 0.4
QUALITY_TARGET_COVERAGE: float = 0.1
"""Coverage (fraction of image) at which the size score saturates."""

EDGE_TRACE_MAX_STEPS: int = 1000
"""Hard cap on edge-following steps per detector trace; also bounded by W*H/10."""

EDGE_TRACE_MIN_POINTS: int = 10
"""Detector traces shorter than this are discarded as noise."""

COLOR_SAMPLE_STRIDE: int = 16
"""Sample every Nth pixel for color analysis."""

DOMINANT_COLOR_COUNT: int = 5

ADAPT_TOLERANCE_STEP: float = 0.1
ADAPT_TOLERANCE_MAX: float = 0.25

COMPLEX_IMAGE_COLORS: int = 50
"""More distinct colour buckets than this forces noise reduction and morphology on."""

REGION_MIN_AREA: int = 50
REGION_MAX_AREA: int = 50000
"""Pixel-count window for find_marked_regions."""

# ----- Mask generation -----
MIN_HOLE_SIZE: int = 100
SMOOTHING_ITERATIONS: int = 2
SMOOTHING_KERNEL_SIZE: int = 3
SIMPLIFY_EPSILON: float = 2.0

MASK_MIN_AREA: float = 50.0
MASK_MAX_AREA: float = 100000.0
MASK_ASPECT_RANGE: tuple[float, float] = (0.1, 10.0)

MASK_MIN_SOLIDITY: float = 0.7
MASK_MAX_COMPACTNESS: float = 4.0
MASK_MIN_MAIN_AREA_RATIO: float = 0.8
"""Below this main/total contour area ratio the mask is reported as fragmented."""

TRACE_STEPS_PER_PIXEL: int = 4
"""Moore tracing step budget is TRACE_STEPS_PER_PIXEL * (component size + 1)."""

MIN_CONTOUR_POINTS: int = 4
"""Contour validity needs more than 3 points."""

# ----- Constraint requirements -----
REQ_MIN_AREA: float = 500.0
REQ_MAX_AREA: float = 50000.0
REQ_ASPECT_RANGE: tuple[float, float] = (0.2, 5.0)
REQ_MARGIN_FROM_EDGES: float = 20.0
REQ_CENTER_BIAS: float = 0.3
REQ_MAX_REGIONS: int = 3
REQ_MIN_MAIN_REGION_RATIO: float = 0.7
REQ_MIN_WIDTH: float = 20.0
REQ_MIN_HEIGHT: float = 20.0
REQ_MAX_ECCENTRICITY: float = 0.95
REQ_MIN_CONVEXITY: float = 0.4
REQ_MIN_LOGO_SIZE: float = 50.0
REQ_MAX_LOGO_SIZE: float = 1000.0
REQ_LOGO_SCALING: tuple[float, float] = (0.1, 2.0)
REQ_LOGO_PADDING: float = 10.0

HORIZONTAL_MIN_ASPECT: float = 0.5
VERTICAL_MAX_ASPECT: float = 2.0

ALL_OVER_EDGE_MARGIN: float = 5.0
"""Edge threshold for all-over placement (smaller than the regular margin)."""

EDGE_HUGGING_PX: float = 5.0

CENTER_REGION_RATIO: float = 0.3
"""Centroid-to-center distance ratio separating 'centered' from 'off-center'."""

AXIS_OFFSET_RATIO: float = 0.3
"""Max centroid offset (fraction of image size) across the placement axis."""

CORNER_BAND_RATIO: float = 0.25
"""A centroid is in a corner when it lies in the outer quarter on both axes."""

CENTER_BIAS_HIGH: float = 0.5
CENTER_FAR_RATIO: float = 0.4
CENTER_BIAS_LOW: float = 0.3
CENTER_NEAR_RATIO: float = 0.2
"""Center-bias recommendation thresholds (bias, centroid distance ratio)."""

# ----- Confidence scoring -----
SEVERITY_WEIGHTS: dict[str, float] = {"error": 0.3, "warning": 0.15, "info": 0.05}

CONFIDENCE_CONVEXITY_BONUS: tuple[float, float] = (0.8, 0.05)
"""(threshold, bonus): convexity above threshold adds bonus."""

CONFIDENCE_ASPECT_BONUS: tuple[float, float, float] = (0.5, 2.0, 0.05)
"""(low, high, bonus): aspect ratio strictly inside (low, high) adds bonus."""

CONFIDENCE_EDGE_BONUS: tuple[float, float] = (30.0, 0.03)

# ----- Placement zones -----
CENTER_ZONE_PADDING_FACTOR: float = 1.5
CENTER_ZONE_QUALITY: float = 0.9
CENTER_ZONE_LOGO_FILL: float = 0.8
EDGE_ZONE_PADDING_FACTOR: float = 1.0
EDGE_ZONE_QUALITY: float = 0.7
EDGE_ZONE_LOGO_FILL: float = 0.9

LOGO_CAPACITY_MIN_FRACTION: float = 0.3
LOGO_CAPACITY_MAX_FRACTION: float = 0.8

# ----- Calculator -----
USABLE_AREA_PADDING: float = 10.0
USABLE_AREA_FRACTION: float = 0.8
SMALL_AREA_PERCENT: float = 5.0
LARGE_AREA_PERCENT: float = 50.0
LOW_QUALITY: float = 0.3
MAX_FRAGMENTS: int = 3

# ----- Constraint application -----
ASPECT_MATCH_TOLERANCE: float = 0.1
"""Recommended placement is reshaped only when aspect ratios differ by more than this."""

# ----- Rendering -----
RENDER_DPI: int = 100
RENDER_MAX_SIDE_PX: int = 1000

# ----- Debug flags -----
DEBUG_RENDER: bool = os.environ.get("LOGOZONE_DEBUG_RENDER", "").lower() in ("1", "true", "yes")
"""Write debug overlays for every batch case. Set env LOGOZONE_DEBUG_RENDER=1 to enable."""
