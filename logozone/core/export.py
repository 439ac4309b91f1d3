# logozone/core/export.py
"""
Write a GeneratedMask as PNG (white-on-transparent), SVG (one path per contour)
or JSON (contours, validation, options, raw mask values).
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from logozone.core.types import Contour, GeneratedMask

SVG_NS = "http://www.w3.org/2000/svg"
EXPORT_FORMATS = ("png", "svg", "json")


def _contour_to_svg_d(contour: Contour) -> str:
    """Closed polygon as SVG path d (M L ... Z)."""
    pts = contour.points
    parts = [f"M {pts[0][0]:g} {pts[0][1]:g}"]
    for x, y in pts[1:]:
        parts.append(f"L {x:g} {y:g}")
    parts.append("Z")
    return " ".join(parts)


def mask_to_rgba(mask: GeneratedMask) -> np.ndarray:
    """(H, W, 4) uint8: mask value copied into every channel, so background is transparent."""
    return np.repeat(mask.mask[:, :, np.newaxis], 4, axis=2)


def mask_to_svg(mask: GeneratedMask) -> str:
    """SVG document with one white, black-stroked path per contour of more than two points."""
    root = ET.Element(
        "svg",
        {"xmlns": SVG_NS, "width": str(mask.width), "height": str(mask.height)},
    )
    for contour in mask.contours:
        if len(contour.points) <= 2:
            continue
        ET.SubElement(
            root,
            "path",
            {
                "d": _contour_to_svg_d(contour),
                "fill": "white",
                "stroke": "black",
                "stroke-width": "1",
                "fill-rule": "evenodd",
            },
        )
    return ET.tostring(root, encoding="unicode", method="xml")


def mask_to_dict(mask: GeneratedMask) -> dict:
    """JSON-ready structure. mask_data is the flattened row-major 0/255 raster."""
    return {
        "width": mask.width,
        "height": mask.height,
        "contours": [
            {
                "points": [{"x": x, "y": y} for x, y in c.points],
                "area": c.area,
                "perimeter": c.perimeter,
                "bounding_rect": asdict(c.bounding_rect),
                "centroid": {"x": c.centroid[0], "y": c.centroid[1]},
                "is_valid": c.is_valid,
            }
            for c in mask.contours
        ],
        "validation": asdict(mask.validation),
        "processing_ms": mask.processing_ms,
        "options": asdict(mask.options),
        "mask_data": mask.mask.ravel().tolist(),
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
    }


def mask_to_json(mask: GeneratedMask) -> str:
    return json.dumps(mask_to_dict(mask), indent=2)


def export_mask(mask: GeneratedMask, fmt: str, out_path: str | Path) -> Path:
    """Write the mask in the given format to out_path. Raises ValueError for an unknown format."""
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    path = Path(out_path)
    if fmt == "png":
        plt.imsave(path, mask_to_rgba(mask), format="png")
    elif fmt == "svg":
        path.write_text('<?xml version="1.0" encoding="UTF-8"?>\n' + mask_to_svg(mask), encoding="utf-8")
    else:
        path.write_text(mask_to_json(mask), encoding="utf-8")
    return path
