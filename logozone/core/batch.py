# logozone/core/batch.py
"""
Batch mode: run detection and validation on a directory of template images.
Output: reports/batch_<run_name>/index.csv and cases/<case_id>/ with the
per-image JSON reports.
"""

from __future__ import annotations

import csv
import logging
import time
from pathlib import Path

from logozone.core.config import REPORTS_DIR
from logozone.core.error_codes import INVALID_BUFFER, NO_MARKED_REGION, RUN_FAILED, InputError
from logozone.core.reporting import ensure_report_dir
from logozone.core.runner import run_case
from logozone.core.types import DetectionConfig

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg")

INDEX_FIELDS = [
    "case_id", "image", "status", "pixels", "percentage", "aspect_ratio", "quality",
    "is_valid", "is_usable", "confidence", "n_issues", "duration_ms", "error_key",
]


def _error_row(case_id: str, image: str, error_key: str, t0: float) -> dict:
    row = dict.fromkeys(INDEX_FIELDS, "")
    row.update(
        case_id=case_id,
        image=image,
        status="error",
        duration_ms=int((time.perf_counter() - t0) * 1000),
        error_key=error_key,
    )
    return row


def list_images(batch_dir: Path, limit: int | None = None) -> list[Path]:
    files = sorted(p for p in batch_dir.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES)
    return files[:limit] if limit else files


def write_index_csv(batch_dir: Path, rows: list[dict]) -> Path:
    index_path = batch_dir / "index.csv"
    with open(index_path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=INDEX_FIELDS)
        w.writeheader()
        w.writerows(rows)
    return index_path


def run_batch(
    run_name: str,
    batch_dir: Path,
    config: DetectionConfig | None = None,
    placement_type: str = "horizontal",
    limit: int | None = None,
    repo_root: Path | None = None,
    adapt: bool = False,
) -> Path:
    """
    Run every image in batch_dir sequentially. A case that fails to load is
    recorded as an error row and the batch continues.
    Returns the batch report directory containing index.csv and cases/<case_id>/.
    """
    if not batch_dir.is_dir():
        raise FileNotFoundError(f"Batch directory not found: {batch_dir}")
    root = repo_root or Path.cwd().resolve()
    config = config or DetectionConfig()
    out_dir = ensure_report_dir(root, f"batch_{run_name}", output_dir=REPORTS_DIR)
    cases_dir = out_dir / "cases"
    cases_dir.mkdir(parents=True, exist_ok=True)

    rows: list[dict] = []
    for i, image_path in enumerate(list_images(batch_dir, limit)):
        case_id = f"case_{i:04d}_{image_path.stem}"
        case_dir = cases_dir / case_id
        case_dir.mkdir(parents=True, exist_ok=True)
        t0 = time.perf_counter()
        try:
            result = run_case(
                image_path, case_dir, config,
                placement_type=placement_type, adapt=adapt, run_name=run_name,
            )
        except InputError:
            logger.warning("Case %s: malformed image %s", case_id, image_path)
            rows.append(_error_row(case_id, image_path.name, INVALID_BUFFER, t0))
            continue
        except (OSError, ValueError) as e:
            logger.warning("Case %s failed: %s", case_id, e)
            rows.append(_error_row(case_id, image_path.name, RUN_FAILED, t0))
            continue

        area, v = result.area, result.validation
        rows.append({
            "case_id": case_id,
            "image": image_path.name,
            "status": "ok" if area.pixels else "empty",
            "pixels": area.pixels,
            "percentage": area.percentage,
            "aspect_ratio": area.aspect_ratio,
            "quality": area.quality,
            "is_valid": v.is_valid,
            "is_usable": v.is_usable,
            "confidence": v.confidence,
            "n_issues": len(v.issues),
            "duration_ms": int((time.perf_counter() - t0) * 1000),
            "error_key": "" if area.pixels else NO_MARKED_REGION,
        })

    index_path = write_index_csv(out_dir, rows)
    logger.info("Batch %s: %d cases -> %s", run_name, len(rows), index_path)
    return out_dir
