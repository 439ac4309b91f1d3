# logozone/core/types.py
"""
Dataclasses for detection config, detected areas, contours, masks,
validation results, persisted placement constraints and applied placements.
Coordinates are pixels, origin top-left, y down.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal

import numpy as np

from logozone.core.config import (
    COLOR_PRESETS,
    DEFAULT_CHANNEL_MIN,
    DEFAULT_HUE_RANGE,
    DEFAULT_MARKED_CHANNEL,
    DEFAULT_OTHER_CHANNEL_RATIOS,
    DEFAULT_SATURATION_MIN,
    DEFAULT_TOLERANCE,
    DEFAULT_VALUE_MIN,
    MASK_ASPECT_RANGE,
    MASK_MAX_AREA,
    MASK_MIN_AREA,
    MIN_HOLE_SIZE,
    REQ_ASPECT_RANGE,
    REQ_CENTER_BIAS,
    REQ_LOGO_PADDING,
    REQ_LOGO_SCALING,
    REQ_MARGIN_FROM_EDGES,
    REQ_MAX_AREA,
    REQ_MAX_ECCENTRICITY,
    REQ_MAX_LOGO_SIZE,
    REQ_MAX_REGIONS,
    REQ_MIN_AREA,
    REQ_MIN_CONVEXITY,
    REQ_MIN_HEIGHT,
    REQ_MIN_LOGO_SIZE,
    REQ_MIN_MAIN_REGION_RATIO,
    REQ_MIN_WIDTH,
    SIMPLIFY_EPSILON,
    SMOOTHING_ITERATIONS,
    SMOOTHING_KERNEL_SIZE,
)


PlacementType = Literal["horizontal", "vertical", "all_over"]
Side = Literal["front", "back", "left", "right"]
MarkedChannel = Literal["red", "green", "blue"]
SeverityLevel = Literal["error", "warning", "info"]
IssueCategory = Literal["area", "aspect", "position", "contiguity", "geometry", "placement"]
AllowedRegions = Literal["center", "edges", "corners", "anywhere"]

PLACEMENT_TYPES: tuple[str, ...] = ("horizontal", "vertical", "all_over")


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle (x, y, width, height)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def shrink(self, pad: float) -> Rect:
        """Inset every side by pad; width/height never go below 0."""
        return Rect(
            x=self.x + pad,
            y=self.y + pad,
            width=max(0.0, self.width - 2.0 * pad),
            height=max(0.0, self.height - 2.0 * pad),
        )


EMPTY_RECT = Rect(0.0, 0.0, 0.0, 0.0)


# ----- Detection -----


@dataclass(frozen=True)
class DetectionConfig:
    """Color classification policy. A pixel is marked if either the RGB or the HSV test passes."""
    hue_range: tuple[float, float] = DEFAULT_HUE_RANGE
    saturation_min: float = DEFAULT_SATURATION_MIN
    value_min: float = DEFAULT_VALUE_MIN
    marked_channel: MarkedChannel = DEFAULT_MARKED_CHANNEL  # type: ignore[assignment]
    channel_min: int = DEFAULT_CHANNEL_MIN
    other_channel_ratios: tuple[float, float] = DEFAULT_OTHER_CHANNEL_RATIOS
    tolerance: float = DEFAULT_TOLERANCE
    noise_reduction: bool = True
    morphology: bool = True

    @classmethod
    def from_preset(cls, name: str, **overrides: object) -> DetectionConfig:
        """Build a config from a named HSV window in config.COLOR_PRESETS."""
        if name not in COLOR_PRESETS:
            raise KeyError(f"Unknown color preset: {name!r}")
        p = COLOR_PRESETS[name]
        base = cls(
            hue_range=(float(p["h_min"]), float(p["h_max"])),
            saturation_min=float(p["s_min"]),
            value_min=float(p["v_min"]),
        )
        return replace(base, **overrides) if overrides else base


@dataclass(frozen=True)
class Contour:
    """Closed boundary polyline with derived shape properties."""
    points: tuple[tuple[float, float], ...]
    area: float
    perimeter: float
    bounding_rect: Rect
    centroid: tuple[float, float]
    is_valid: bool


@dataclass
class DetectedArea:
    """Summary of one detection pass. All-zero when nothing is marked."""
    pixels: int
    percentage: float
    bounds: Rect
    contours: list[Contour]
    centroid: tuple[int, int]
    aspect_ratio: float
    quality: float


@dataclass
class DetectedRegion:
    """One connected marked region (4-connected)."""
    x: int
    y: int
    width: int
    height: int
    area: int
    confidence: int  # 0-100, fill density of the bounding box
    center: tuple[int, int]
    bounding_box: tuple[int, int, int, int]  # x1, y1, x2, y2 (inclusive)


@dataclass
class ColorAnalysis:
    """Coarse color statistics of a template image."""
    dominant_colors: list[tuple[int, int, int]]  # (h, s, v) bucket centers
    distinct_colors: int
    has_target_color: bool


# ----- Mask generation -----


@dataclass(frozen=True)
class MaskGenerationOptions:
    """Mask pipeline stages; classification always runs."""
    fill_holes: bool = True
    min_hole_size: int = MIN_HOLE_SIZE
    smoothing: bool = True
    smoothing_iterations: int = SMOOTHING_ITERATIONS
    kernel_size: int = SMOOTHING_KERNEL_SIZE
    simplify: bool = True
    epsilon: float = SIMPLIFY_EPSILON
    validate: bool = True
    min_area: float = MASK_MIN_AREA
    max_area: float = MASK_MAX_AREA
    aspect_range: tuple[float, float] = MASK_ASPECT_RANGE


@dataclass(frozen=True)
class MaskMetrics:
    area: float = 0.0
    perimeter: float = 0.0
    aspect_ratio: float = 0.0
    solidity: float = 0.0
    compactness: float = 0.0


@dataclass
class MaskValidation:
    """First-pass structural validation of a generated mask."""
    is_valid: bool
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    metrics: MaskMetrics = field(default_factory=MaskMetrics)


@dataclass
class GeneratedMask:
    """Cleaned binary mask (0/255, shape (height, width)) with contours and validation."""
    mask: np.ndarray
    width: int
    height: int
    contours: list[Contour]
    validation: MaskValidation
    options: MaskGenerationOptions
    processing_ms: float = 0.0


# ----- Constraint requirements and validation -----


@dataclass(frozen=True)
class PositionPolicy:
    allowed_regions: AllowedRegions = "anywhere"
    margin_from_edges: float = REQ_MARGIN_FROM_EDGES
    center_bias: float = REQ_CENTER_BIAS  # 0-1, preference for centered regions


@dataclass(frozen=True)
class ContiguityPolicy:
    require_single_region: bool = False
    max_disconnected_regions: int = REQ_MAX_REGIONS
    min_main_region_ratio: float = REQ_MIN_MAIN_REGION_RATIO


@dataclass(frozen=True)
class GeometryThresholds:
    min_width: float = REQ_MIN_WIDTH
    min_height: float = REQ_MIN_HEIGHT
    max_eccentricity: float = REQ_MAX_ECCENTRICITY
    min_convexity: float = REQ_MIN_CONVEXITY


@dataclass(frozen=True)
class LogoPlacementBounds:
    min_logo_size: float = REQ_MIN_LOGO_SIZE
    max_logo_size: float = REQ_MAX_LOGO_SIZE
    allowed_scaling: tuple[float, float] = REQ_LOGO_SCALING
    padding_from_edges: float = REQ_LOGO_PADDING


@dataclass(frozen=True)
class ConstraintRequirements:
    """Declarative validation policy for a marked region."""
    min_area: float = REQ_MIN_AREA
    max_area: float = REQ_MAX_AREA
    aspect_range: tuple[float, float] = REQ_ASPECT_RANGE
    position: PositionPolicy = field(default_factory=PositionPolicy)
    contiguity: ContiguityPolicy = field(default_factory=ContiguityPolicy)
    geometry: GeometryThresholds = field(default_factory=GeometryThresholds)
    logo: LogoPlacementBounds = field(default_factory=LogoPlacementBounds)


@dataclass(frozen=True)
class ValidationSeverity:
    level: SeverityLevel
    blocking: bool
    priority: int  # 1-10, higher = more important


@dataclass
class ValidationIssue:
    """One diagnostic finding."""
    id: str
    severity: ValidationSeverity
    category: IssueCategory
    title: str
    message: str
    suggestion: str = ""
    measured_value: float | None = None
    required_value: float | None = None
    affected_region: Rect | None = None


@dataclass
class PlacementZone:
    """Candidate sub-region for a logo."""
    id: str
    region: Rect
    quality: float
    suggested_logo_size: tuple[int, int]  # (width, height)
    center_point: tuple[float, float]
    restrictions: list[str] = field(default_factory=list)


@dataclass
class ValidationMetrics:
    area: float = 0.0
    aspect_ratio: float = 0.0
    eccentricity: float = 0.0
    convexity: float = 0.0
    center_distance: float = 0.0
    edge_distance: float = 0.0
    logo_capacity: tuple[float, float] = (0.0, 0.0)  # (min, max) logo size


@dataclass
class ConstraintValidationResult:
    """
    is_valid: no blocking issue (admin gating).
    is_usable: no error-level issue (generation may proceed).
    """
    is_valid: bool
    is_usable: bool
    confidence: float
    issues: list[ValidationIssue]
    recommendations: list[str]
    metrics: ValidationMetrics
    placement_zones: list[PlacementZone]


# ----- Persisted constraints and application -----


@dataclass(frozen=True)
class LogoPlacement:
    x: float
    y: float
    width: float
    height: float
    rotation: float | None = None

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass
class PlacementConstraint:
    """
    Per-product constraint created by the admin workflow, keyed by
    (product_id, placement_type, side). Logo size bounds of None are unchecked.
    """
    product_id: str
    placement_type: PlacementType
    bounds: Rect
    default_placement: LogoPlacement
    side: Side = "front"
    id: str | None = None
    margin_top: float = 0.0
    margin_right: float = 0.0
    margin_bottom: float = 0.0
    margin_left: float = 0.0
    min_logo_width: float | None = None
    max_logo_width: float | None = None
    min_logo_height: float | None = None
    max_logo_height: float | None = None
    is_validated: bool = False
    guidelines_text: str = ""
    detected_area_pixels: int | None = None
    detected_area_percentage: float | None = None


@dataclass(frozen=True)
class SafetyMargins:
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0


@dataclass(frozen=True)
class ApplicationOptions:
    placement_type: PlacementType = "horizontal"
    allow_auto_adjustment: bool = True
    respect_safety_margins: bool = True
    enforce_aspect_ratio: bool = False


@dataclass
class ConstraintApplication:
    """Result of enforcing a constraint. violations/adjustments keep insertion order."""
    is_valid: bool
    applied_placement: LogoPlacement
    violations: list[str]
    adjustments: list[str]
    safety_margins: SafetyMargins
    placement_type: str | None = None


@dataclass
class PlacementMask:
    """Generation-guidance mask: 255 inside the placement, 0 elsewhere, shape (H, W)."""
    mask: np.ndarray
    normalized_x: float
    normalized_y: float
    normalized_width: float
    normalized_height: float


# ----- Calculator -----


@dataclass(frozen=True)
class ConstraintDimensions:
    """Admin-entered logo size envelope used by the quick calculator check."""
    min_width: float
    min_height: float
    max_width: float
    max_height: float
    default_x: float | None = None
    default_y: float | None = None


@dataclass
class UsableArea:
    pixels: float
    percentage: float
    bounds: Rect


@dataclass
class EdgeDistances:
    top: float
    right: float
    bottom: float
    left: float

    def items(self) -> list[tuple[str, float]]:
        return [("top", self.top), ("right", self.right), ("bottom", self.bottom), ("left", self.left)]


@dataclass
class ConstraintMetrics:
    """Raw numbers behind the admin stats panel."""
    total_area: float
    usable_area: float
    aspect_ratio: float
    center_offset: tuple[float, float]
    edge_distances: EdgeDistances
    fragment_count: int
    fill_ratio: float  # pixels / bounding-box area


@dataclass
class QuickCheck:
    """Penalty-scored check of a detected area; score in [0, 1]."""
    is_valid: bool
    warnings: list[str]
    recommendations: list[str]
    score: float
    usable_area: UsableArea
