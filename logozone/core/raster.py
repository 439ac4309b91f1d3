# logozone/core/raster.py
"""
Pixel-level operations on RGBA buffers and binary masks: buffer validation,
RGB to HSV, the dual (RGB dominance OR HSV window) classifier, median filter,
morphology and flood-fill labelling. Masks are (H, W) bool arrays; border
pixels see the outside of the image as background.
"""

from __future__ import annotations

from collections import deque

import numpy as np

from logozone.core.config import ALPHA_THRESHOLD, TOLERANCE_HUE_DEG, TOLERANCE_SV_PCT
from logozone.core.error_codes import InputError
from logozone.core.types import DetectionConfig

_CHANNEL_INDEX = {"red": 0, "green": 1, "blue": 2}

_NEIGHBOURS_4 = ((0, 1), (0, -1), (1, 0), (-1, 0))
_NEIGHBOURS_8 = _NEIGHBOURS_4 + ((1, 1), (1, -1), (-1, 1), (-1, -1))


def as_rgba_array(buffer: object, width: int, height: int) -> np.ndarray:
    """
    Return a read-only (height, width, 4) uint8 view of an RGBA buffer.
    Accepts bytes-like objects or numpy arrays (flat or (H, W, 4)).
    Raises InputError when the length does not equal width*height*4.
    """
    if not isinstance(width, (int, np.integer)) or not isinstance(height, (int, np.integer)):
        raise InputError(f"Image dimensions must be integers, got {width!r}x{height!r}")
    if width <= 0 or height <= 0:
        raise InputError(f"Image dimensions must be positive, got {width}x{height}")
    if isinstance(buffer, np.ndarray):
        arr = np.asarray(buffer, dtype=np.uint8)
    elif isinstance(buffer, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(buffer, dtype=np.uint8)
    else:
        raise InputError(f"Unsupported pixel buffer type: {type(buffer).__name__}")
    expected = int(width) * int(height) * 4
    if arr.size != expected:
        raise InputError(f"Pixel buffer has {arr.size} bytes, expected {expected} for {width}x{height} RGBA")
    view = arr.reshape(int(height), int(width), 4)
    view = view.view()
    view.flags.writeable = False
    return view


def rgb_to_hsv(rgb: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorized RGB (0-255) to HSV: hue in degrees [0, 360),
    saturation and value in percent [0, 100].
    """
    c = rgb[..., :3].astype(np.float64) / 255.0
    r, g, b = c[..., 0], c[..., 1], c[..., 2]
    mx = c.max(axis=-1)
    mn = c.min(axis=-1)
    diff = mx - mn
    safe = np.where(diff == 0, 1.0, diff)

    h = np.zeros_like(mx)
    is_r = (mx == r) & (diff != 0)
    is_g = (mx == g) & (diff != 0) & ~is_r
    is_b = (diff != 0) & ~is_r & ~is_g
    h = np.where(is_r, ((g - b) / safe) % 6.0, h)
    h = np.where(is_g, (b - r) / safe + 2.0, h)
    h = np.where(is_b, (r - g) / safe + 4.0, h)
    h = (h * 60.0) % 360.0

    s = np.where(mx == 0, 0.0, diff / np.where(mx == 0, 1.0, mx))
    return h, s * 100.0, mx * 100.0


def effective_hsv_window(config: DetectionConfig) -> tuple[float, float, float, float]:
    """
    Apply tolerance to the configured HSV window.
    Returns (hue_lo, hue_hi, saturation_floor, value_floor); hue_lo > hue_hi means wrap-around.
    """
    tol = min(max(float(config.tolerance), 0.0), 1.0)
    widen = tol * TOLERANCE_HUE_DEG
    relax = tol * TOLERANCE_SV_PCT
    lo, hi = float(config.hue_range[0]), float(config.hue_range[1])
    if lo <= hi:
        lo = max(0.0, lo - widen)
        hi = min(360.0, hi + widen)
    else:
        lo = lo - widen
        hi = hi + widen
        if lo <= hi:
            # widened past each other: every hue matches
            lo, hi = 0.0, 360.0
    s_floor = max(0.0, float(config.saturation_min) - relax)
    v_floor = max(0.0, float(config.value_min) - relax)
    return lo, hi, s_floor, v_floor


def hue_in_window(h: np.ndarray, lo: float, hi: float) -> np.ndarray:
    if lo <= hi:
        return (h >= lo) & (h <= hi)
    return (h >= lo) | (h <= hi)


def rgb_dominance(rgba: np.ndarray, config: DetectionConfig) -> np.ndarray:
    """Marked channel >= channel_min and strictly above each other channel times its ratio."""
    idx = _CHANNEL_INDEX[config.marked_channel]
    others = [i for i in range(3) if i != idx]
    chans = rgba[..., :3].astype(np.float64)
    marked = chans[..., idx]
    out = marked >= config.channel_min
    for other, ratio in zip(others, config.other_channel_ratios):
        out &= marked > chans[..., other] * float(ratio)
    return out


def hsv_match(rgba: np.ndarray, config: DetectionConfig) -> np.ndarray:
    h, s, v = rgb_to_hsv(rgba)
    lo, hi, s_floor, v_floor = effective_hsv_window(config)
    return hue_in_window(h, lo, hi) & (s >= s_floor) & (v >= v_floor)


def classify_pixels(rgba: np.ndarray, config: DetectionConfig) -> np.ndarray:
    """Boolean (H, W) mask of marked pixels. Alpha below the threshold is never marked."""
    opaque = rgba[..., 3] >= ALPHA_THRESHOLD
    return opaque & (rgb_dominance(rgba, config) | hsv_match(rgba, config))


def _windows(mask: np.ndarray, radius: int, fill: bool) -> list[np.ndarray]:
    """All (2r+1)^2 shifted copies of mask, padded with fill."""
    h, w = mask.shape
    padded = np.pad(mask, radius, mode="constant", constant_values=fill)
    size = 2 * radius + 1
    return [padded[dy : dy + h, dx : dx + w] for dy in range(size) for dx in range(size)]


def median3(mask: np.ndarray) -> np.ndarray:
    """3x3 median filter on a binary mask: a pixel survives when at least 5 of 9 are set."""
    stack = np.stack(_windows(mask, 1, False)).sum(axis=0)
    return stack >= 5


def erode(mask: np.ndarray, radius: int = 1) -> np.ndarray:
    if radius <= 0:
        return mask.copy()
    return np.logical_and.reduce(_windows(mask, radius, False))


def dilate(mask: np.ndarray, radius: int = 1) -> np.ndarray:
    if radius <= 0:
        return mask.copy()
    return np.logical_or.reduce(_windows(mask, radius, False))


def open_close(mask: np.ndarray, radius: int = 1, iterations: int = 1) -> np.ndarray:
    """Repeat (opening then closing) with a square structuring element."""
    out = mask
    for _ in range(max(0, iterations)):
        out = dilate(erode(out, radius), radius)
        out = erode(dilate(out, radius), radius)
    return out


def _flood(
    cells: list[list[bool]],
    labels: list[list[int]],
    seed: tuple[int, int],
    label: int,
    neighbours: tuple[tuple[int, int], ...],
) -> int:
    """Label the component containing seed; returns its pixel count."""
    h, w = len(cells), len(cells[0])
    queue: deque[tuple[int, int]] = deque([seed])
    labels[seed[0]][seed[1]] = label
    count = 0
    while queue:
        y, x = queue.popleft()
        count += 1
        for dy, dx in neighbours:
            ny, nx = y + dy, x + dx
            if 0 <= ny < h and 0 <= nx < w and cells[ny][nx] and not labels[ny][nx]:
                labels[ny][nx] = label
                queue.append((ny, nx))
    return count


def label_components(mask: np.ndarray, connectivity: int = 4) -> tuple[np.ndarray, list[int]]:
    """
    Label connected components of True pixels in raster order.
    Returns (labels int32 (H, W) with 0 = unlabelled, sizes where sizes[k-1] is label k's pixel count).
    """
    if connectivity not in (4, 8):
        raise ValueError(f"connectivity must be 4 or 8, got {connectivity}")
    neighbours = _NEIGHBOURS_4 if connectivity == 4 else _NEIGHBOURS_8
    h, w = mask.shape
    cells: list[list[bool]] = mask.astype(bool).tolist()
    labels = [[0] * w for _ in range(h)]
    sizes: list[int] = []
    ys, xs = np.nonzero(mask)
    for y, x in zip(ys.tolist(), xs.tolist()):
        if labels[y][x]:
            continue
        sizes.append(_flood(cells, labels, (y, x), len(sizes) + 1, neighbours))
    return np.asarray(labels, dtype=np.int32).reshape(h, w), sizes


def fill_holes(mask: np.ndarray, min_hole_size: int) -> np.ndarray:
    """
    Turn background 4-connected regions smaller than min_hole_size that do
    not touch the image border into foreground. Returns a new mask.
    """
    background = ~mask
    labels, sizes = label_components(background, connectivity=4)
    if not sizes:
        return mask.copy()
    border = np.unique(
        np.concatenate([labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]])
    )
    size_of = np.zeros(len(sizes) + 1, dtype=np.int64)
    size_of[1:] = sizes
    fillable = size_of < int(min_hole_size)
    fillable[0] = False
    fillable[border] = False
    return mask | fillable[labels]


def to_uint8(mask: np.ndarray) -> np.ndarray:
    """Bool mask to a fresh 0/255 uint8 array."""
    return np.where(mask, 255, 0).astype(np.uint8)


def boundary_pixels(mask: np.ndarray) -> np.ndarray:
    """Set pixels with at least one unset 8-neighbour inside the image."""
    interior = np.logical_and.reduce(_windows(mask, 1, True))
    return mask & ~interior
