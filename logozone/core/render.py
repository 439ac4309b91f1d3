# logozone/core/render.py
"""
Matplotlib PNG debug overlays on the template image: detection.png (bounds,
contours, centroid), zones.png (placement zones from validation),
placement.png (constraint bounds, effective area, applied placement).
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Rectangle

from logozone.core.config import RENDER_DPI, RENDER_MAX_SIDE_PX
from logozone.core.placement import effective_area
from logozone.core.types import (
    ConstraintApplication,
    ConstraintValidationResult,
    Contour,
    DetectedArea,
    PlacementConstraint,
    Rect,
)


def _new_fig(rgba: np.ndarray) -> tuple[plt.Figure, plt.Axes]:
    """Full-canvas axes showing the image at pixel scale, longest side capped."""
    h, w = rgba.shape[:2]
    scale = min(1.0, RENDER_MAX_SIDE_PX / max(w, h))
    fig = plt.figure(
        figsize=(w * scale / RENDER_DPI, h * scale / RENDER_DPI),
        dpi=RENDER_DPI,
        constrained_layout=False,
    )
    ax = fig.add_axes([0, 0, 1, 1])
    ax.imshow(rgba, interpolation="nearest")
    ax.set_xlim(-0.5, w - 0.5)
    ax.set_ylim(h - 0.5, -0.5)
    ax.axis("off")
    return fig, ax


def _save(fig: plt.Figure, output_path: str | Path) -> None:
    fig.savefig(output_path, dpi=RENDER_DPI, facecolor="white")
    plt.close(fig)


def _draw_rect(ax: plt.Axes, r: Rect, color: str, linestyle: str = "-", label: str | None = None) -> None:
    ax.add_patch(
        Rectangle((r.x, r.y), r.width, r.height, fill=False, edgecolor=color, linewidth=1.5, linestyle=linestyle, label=label)
    )


def _draw_contour(ax: plt.Axes, contour: Contour, color: str) -> None:
    if not contour.points:
        return
    xy = np.array(contour.points + contour.points[:1], dtype=float)
    ax.plot(xy[:, 0], xy[:, 1], color=color, linewidth=1)


def render_detection(rgba: np.ndarray, area: DetectedArea, output_path: str | Path) -> None:
    """Image with detected bounds (red), edge contours (yellow) and centroid."""
    fig, ax = _new_fig(rgba)
    if area.pixels > 0:
        _draw_rect(ax, area.bounds, "red")
        for c in area.contours:
            _draw_contour(ax, c, "yellow")
        ax.plot([area.centroid[0]], [area.centroid[1]], marker="+", color="red", markersize=10)
    _save(fig, output_path)


def render_zones(
    rgba: np.ndarray,
    result: ConstraintValidationResult,
    output_path: str | Path,
    contours: list[Contour] | None = None,
) -> None:
    """Image with validated contours (cyan) and placement zones, dashed for secondary zones."""
    fig, ax = _new_fig(rgba)
    for c in contours or []:
        _draw_contour(ax, c, "cyan")
    for i, zone in enumerate(result.placement_zones):
        _draw_rect(ax, zone.region, "lime" if i == 0 else "orange", linestyle="-" if i == 0 else "--")
        ax.text(zone.region.x + 2, zone.region.y + 2, f"{zone.id} {zone.quality:.1f}", color="white", fontsize=7, va="top")
    _save(fig, output_path)


def render_placement(
    rgba: np.ndarray,
    constraint: PlacementConstraint,
    application: ConstraintApplication,
    output_path: str | Path,
) -> None:
    """Constraint bounds (blue), effective area after margins (dashed) and applied placement (green/red)."""
    fig, ax = _new_fig(rgba)
    m = application.safety_margins
    _draw_rect(ax, constraint.bounds, "blue")
    _draw_rect(ax, effective_area(constraint, m), "blue", linestyle="--")
    p = application.applied_placement
    _draw_rect(ax, Rect(p.x, p.y, p.width, p.height), "green" if application.is_valid else "red")
    _save(fig, output_path)
