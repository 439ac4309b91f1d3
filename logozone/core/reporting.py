# logozone/core/reporting.py
"""
Create reports/<run_name>/ and write detection.json, validation.json,
application.json and run_metadata.json.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

from logozone.core.config import (
    ALPHA_THRESHOLD,
    DEFAULT_TOLERANCE,
    REPORTS_DIR,
    REQ_ASPECT_RANGE,
    REQ_MAX_AREA,
    REQ_MIN_AREA,
    SEVERITY_WEIGHTS,
)
from logozone.core.types import (
    ConstraintApplication,
    ConstraintValidationResult,
    DetectedArea,
    DetectionConfig,
)


def detection_to_dict(area: DetectedArea) -> dict:
    """Summary of a DetectedArea; contours reduced to point counts."""
    b = area.bounds
    return {
        "pixels": area.pixels,
        "percentage": area.percentage,
        "bounds": {"x": b.x, "y": b.y, "width": b.width, "height": b.height},
        "centroid": {"x": area.centroid[0], "y": area.centroid[1]},
        "aspect_ratio": area.aspect_ratio,
        "quality": area.quality,
        "contour_points": [len(c.points) for c in area.contours],
    }


def validation_to_dict(result: ConstraintValidationResult) -> dict:
    return {
        "is_valid": result.is_valid,
        "is_usable": result.is_usable,
        "confidence": result.confidence,
        "issues": [
            {
                "id": i.id,
                "level": i.severity.level,
                "blocking": i.severity.blocking,
                "priority": i.severity.priority,
                "category": i.category,
                "title": i.title,
                "message": i.message,
                "suggestion": i.suggestion,
                "measured_value": i.measured_value,
                "required_value": i.required_value,
            }
            for i in result.issues
        ],
        "recommendations": result.recommendations,
        "metrics": asdict(result.metrics),
        "placement_zones": [asdict(z) for z in result.placement_zones],
    }


def application_to_dict(app: ConstraintApplication) -> dict:
    return {
        "placement_type": app.placement_type,
        "is_valid": app.is_valid,
        "applied_placement": asdict(app.applied_placement),
        "violations": app.violations,
        "adjustments": app.adjustments,
        "safety_margins": asdict(app.safety_margins),
    }


def run_metadata_dict(
    run_name: str,
    image_path: str,
    placement_type: str,
    config: DetectionConfig,
) -> dict:
    """Timestamp and config snapshot for run_metadata.json."""
    return {
        "run_name": run_name,
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "image_path": image_path,
        "placement_type": placement_type,
        "detection": asdict(config),
        "config": {
            "ALPHA_THRESHOLD": ALPHA_THRESHOLD,
            "DEFAULT_TOLERANCE": DEFAULT_TOLERANCE,
            "REQ_MIN_AREA": REQ_MIN_AREA,
            "REQ_MAX_AREA": REQ_MAX_AREA,
            "REQ_ASPECT_RANGE": list(REQ_ASPECT_RANGE),
            "SEVERITY_WEIGHTS": SEVERITY_WEIGHTS,
        },
    }


def ensure_report_dir(
    repo_root: Path,
    run_name: str,
    output_dir: str | None = None,
) -> Path:
    """Create output_dir/<run_name>/ under repo_root; return path. Default output_dir from config."""
    base = output_dir if output_dir is not None else REPORTS_DIR
    out = (repo_root / base).resolve() / run_name
    out.mkdir(parents=True, exist_ok=True)
    return out


def _write_json(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def write_detection_json(report_dir: Path, area: DetectedArea) -> Path:
    return _write_json(report_dir / "detection.json", detection_to_dict(area))


def write_validation_json(report_dir: Path, result: ConstraintValidationResult) -> Path:
    return _write_json(report_dir / "validation.json", validation_to_dict(result))


def write_application_json(report_dir: Path, results: list[ConstraintApplication]) -> Path:
    """application.json: one entry per applied request, in request order."""
    return _write_json(report_dir / "application.json", {"results": [application_to_dict(a) for a in results]})


def write_run_metadata_json(
    report_dir: Path,
    run_name: str,
    image_path: str,
    placement_type: str,
    config: DetectionConfig,
) -> Path:
    data = run_metadata_dict(run_name, image_path, placement_type, config)
    return _write_json(report_dir / "run_metadata.json", data)
