# logozone/core/runner.py
"""
CLI entrypoint: load a template image, detect the marked area, generate and
validate the mask, optionally apply a stored constraint, write reports.
Batch mode (--batch-dir) runs the same pipeline over a directory of images.
"""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from logozone.core.config import DEBUG_RENDER, REPORTS_DIR
from logozone.core.detector import adapt_config, analyze_colors, detect_marked_area
from logozone.core.export import EXPORT_FORMATS, export_mask
from logozone.core.io import load_template_image
from logozone.core.mask import generate_mask
from logozone.core.render import render_detection, render_placement, render_zones
from logozone.core.reporting import (
    ensure_report_dir,
    write_application_json,
    write_detection_json,
    write_run_metadata_json,
    write_validation_json,
)
from logozone.core.service import ConstraintApplicationService
from logozone.core.store import JsonConstraintStore
from logozone.core.types import (
    PLACEMENT_TYPES,
    ApplicationOptions,
    ConstraintApplication,
    ConstraintValidationResult,
    DetectedArea,
    DetectionConfig,
    LogoPlacement,
)
from logozone.core.validator import create_validation_report, validate_constraint

logger = logging.getLogger(__name__)


@dataclass
class CaseResult:
    """Outputs of one pipeline run, for printing and the batch index."""
    report_dir: Path
    area: DetectedArea
    validation: ConstraintValidationResult
    application: ConstraintApplication | None
    written: list[Path]


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Detect and validate a marked logo zone on a template image.")
    p.add_argument("image", nargs="?", default=None, help="Template image path (repo-relative or absolute)")
    p.add_argument("--placement-type", choices=PLACEMENT_TYPES, default="horizontal", dest="placement_type")
    p.add_argument("--preset", type=str, default=None, help="Color preset name from config.COLOR_PRESETS")
    p.add_argument("--tolerance", type=float, default=None, help="Color tolerance 0-1")
    p.add_argument("--adapt", action="store_true", help="Adapt detection config from a colour analysis first")
    p.add_argument("--export", type=str, default="", help="Mask export formats, e.g. 'png,svg,json'")
    p.add_argument("--render", action="store_true", help="Write PNG debug overlays")
    p.add_argument("--constraints", type=str, default=None, help="JSON constraint store path")
    p.add_argument("--product-id", type=str, default=None, dest="product_id")
    p.add_argument("--side", type=str, default="front")
    p.add_argument(
        "--logo", type=str, default=None,
        help="Requested logo placement 'x,y,width,height' (needs --constraints and --product-id)",
    )
    p.add_argument("--run-name", type=str, default="run", dest="run_name", help="Reports subdir name")
    p.add_argument("--output-dir", type=str, default=REPORTS_DIR, dest="output_dir", help="Output directory (repo-relative)")
    p.add_argument("--repo-root", type=str, default=None, dest="repo_root", help="Repo root (default: cwd)")
    p.add_argument("--batch-dir", type=str, default=None, dest="batch_dir", help="Batch mode: directory of images")
    p.add_argument("--batch-limit", type=int, default=None, dest="batch_limit", help="Max cases in batch")
    return p.parse_args(argv)


def parse_logo(text: str) -> LogoPlacement:
    """'x,y,width,height' -> LogoPlacement. Raises ValueError on a malformed value."""
    parts = [float(v) for v in text.split(",")]
    if len(parts) != 4:
        raise ValueError(f"Expected x,y,width,height, got {text!r}")
    return LogoPlacement(*parts)


def detection_config(preset: str | None, tolerance: float | None) -> DetectionConfig:
    config = DetectionConfig.from_preset(preset) if preset else DetectionConfig()
    if tolerance is not None:
        config = replace(config, tolerance=tolerance)
    return config


def run_case(
    image_path: Path,
    report_dir: Path,
    config: DetectionConfig,
    placement_type: str = "horizontal",
    adapt: bool = False,
    export_formats: tuple[str, ...] = (),
    render: bool = False,
    service: ConstraintApplicationService | None = None,
    product_id: str | None = None,
    side: str = "front",
    logo: LogoPlacement | None = None,
    run_name: str = "run",
) -> CaseResult:
    """Full pipeline for one image, writing everything into report_dir."""
    rgba, w, h = load_template_image(image_path)
    if adapt:
        config = adapt_config(config, analyze_colors(rgba, w, h, config))
        logger.info("Adapted detection config: tolerance=%.2f", config.tolerance)

    area = detect_marked_area(rgba, w, h, config)
    mask = generate_mask(rgba, w, h, detection=config)
    validation = validate_constraint(mask, placement_type=placement_type)

    written = [
        write_detection_json(report_dir, area),
        write_validation_json(report_dir, validation),
    ]
    for fmt in export_formats:
        written.append(export_mask(mask, fmt, report_dir / f"mask.{fmt}"))

    application = None
    if service is not None and product_id and logo is not None:
        options = ApplicationOptions(placement_type=placement_type)
        application = service.apply(product_id, logo, options, side=side)
        if application is None:
            logger.warning("No validated %s constraint for product %s", placement_type, product_id)
        else:
            application.placement_type = placement_type
            written.append(write_application_json(report_dir, [application]))

    if render or DEBUG_RENDER:
        render_detection(rgba, area, report_dir / "detection.png")
        render_zones(rgba, validation, report_dir / "zones.png", contours=mask.contours)
        written += [report_dir / "detection.png", report_dir / "zones.png"]
        if application is not None:
            constraint = service.get_constraint_for_placement(product_id, placement_type, side)
            render_placement(rgba, constraint, application, report_dir / "placement.png")
            written.append(report_dir / "placement.png")

    written.append(write_run_metadata_json(report_dir, run_name, str(image_path), placement_type, config))
    return CaseResult(report_dir, area, validation, application, written)


def _resolve(repo_root: Path, path_arg: str) -> Path:
    """Resolve path: if relative, from repo root; else as-is then resolve."""
    p = Path(path_arg)
    if not p.is_absolute():
        p = repo_root / p
    return p.resolve()


def _export_formats(text: str) -> tuple[str, ...]:
    fmts = tuple(f.strip().lower() for f in text.split(",") if f.strip())
    for f in fmts:
        if f not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {f}")
    return fmts


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = _parse_args(argv)
    repo_root = Path(args.repo_root).resolve() if args.repo_root else Path.cwd().resolve()
    config = detection_config(args.preset, args.tolerance)
    formats = _export_formats(args.export)

    if args.batch_dir:
        from logozone.core.batch import run_batch
        out = run_batch(
            run_name=args.run_name,
            batch_dir=_resolve(repo_root, args.batch_dir),
            config=config,
            placement_type=args.placement_type,
            limit=args.batch_limit,
            repo_root=repo_root,
            adapt=args.adapt,
        )
        print(out / "index.csv")
        return

    if not args.image:
        raise SystemExit("An image path or --batch-dir is required")
    image_path = _resolve(repo_root, args.image)
    if not image_path.exists():
        raise FileNotFoundError(f"Template image not found: {image_path}")

    service = None
    if args.constraints:
        service = ConstraintApplicationService(JsonConstraintStore(_resolve(repo_root, args.constraints)))
    logo = parse_logo(args.logo) if args.logo else None

    report_dir = ensure_report_dir(repo_root, args.run_name, output_dir=args.output_dir)
    result = run_case(
        image_path,
        report_dir,
        config,
        placement_type=args.placement_type,
        adapt=args.adapt,
        export_formats=formats,
        render=args.render,
        service=service,
        product_id=args.product_id,
        side=args.side,
        logo=logo,
        run_name=args.run_name,
    )

    print(create_validation_report(result.validation))
    for p in result.written:
        print(p)
    if result.application is not None:
        print("Placement valid:", result.application.is_valid)


if __name__ == "__main__":
    main()
