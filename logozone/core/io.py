# logozone/core/io.py
"""
Load a template image file into a uint8 RGBA buffer.
PNG is read natively by matplotlib; other formats go through Pillow (a matplotlib dependency).
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.image as mpimg
import numpy as np


def _resolve_path(path: str | Path, repo_root: Path | None) -> Path:
    """Resolve path; if relative, against repo_root (or cwd if repo_root is None)."""
    p = Path(path)
    if not p.is_absolute() and repo_root is not None:
        p = repo_root / p
    return p.resolve()


def to_rgba_uint8(image: np.ndarray) -> np.ndarray:
    """
    Normalize an image array to (H, W, 4) uint8.
    Accepts grayscale (H, W), RGB or RGBA; float images are taken as 0-1.
    """
    arr = np.asarray(image)
    if arr.dtype.kind == "f":
        arr = np.clip(np.rint(arr * 255.0), 0, 255)
    arr = arr.astype(np.uint8)
    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Unsupported image shape: {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return np.ascontiguousarray(arr)


def load_template_image(path: str | Path, repo_root: Path | None = None) -> tuple[np.ndarray, int, int]:
    """
    Read an image file and return (rgba, width, height), rgba shaped (H, W, 4) uint8.
    Raises FileNotFoundError if the path is missing, OSError if it cannot be decoded.
    """
    resolved = _resolve_path(path, repo_root)
    if not resolved.exists():
        raise FileNotFoundError(f"Template image not found: {resolved}")
    try:
        raw = mpimg.imread(resolved)
    except SyntaxError as e:
        # PIL reports a malformed PNG header as SyntaxError
        raise OSError(f"Cannot read template image {resolved}: {e}") from e
    rgba = to_rgba_uint8(raw)
    h, w = rgba.shape[:2]
    return rgba, w, h
