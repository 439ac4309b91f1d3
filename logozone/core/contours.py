# logozone/core/contours.py
"""
Boundary extraction from binary masks.

trace_outer_contours: Moore-neighbourhood tracing of the outer boundary of
every 8-connected region (mask generation).
follow_edges: greedy boundary-pixel walk used for the detector's quick
summary contours.
"""

from __future__ import annotations

import logging

import numpy as np

from logozone.core.config import (
    EDGE_TRACE_MAX_STEPS,
    EDGE_TRACE_MIN_POINTS,
    MIN_CONTOUR_POINTS,
    TRACE_STEPS_PER_PIXEL,
)
from logozone.core.geometry import make_contour
from logozone.core.raster import boundary_pixels, label_components
from logozone.core.types import Contour

logger = logging.getLogger(__name__)

# Clockwise in image coordinates (y down), starting west.
_MOORE = ((-1, 0), (-1, -1), (0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 1))
_MOORE_INDEX = {d: i for i, d in enumerate(_MOORE)}

# Fixed neighbour order for the greedy edge walk.
_EDGE_STEPS = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))


def trace_budget(size: int) -> int:
    """Per-contour step cap from the component pixel count: 4*size + 4."""
    return TRACE_STEPS_PER_PIXEL * (size + 1)


def moore_trace(
    labels: np.ndarray,
    label: int,
    start: tuple[int, int],
    max_steps: int,
) -> list[tuple[int, int]]:
    """
    Trace the outer boundary of component `label` clockwise from its raster-first
    pixel `start` (x, y). Stops when the first move out of start repeats
    (Jacob's criterion) or after max_steps moves.
    """
    h, w = labels.shape

    def inside(x: int, y: int) -> bool:
        return 0 <= x < w and 0 <= y < h and labels[y, x] == label

    def next_move(p: tuple[int, int], back: tuple[int, int]) -> tuple[tuple[int, int], tuple[int, int]] | None:
        i = _MOORE_INDEX[(back[0] - p[0], back[1] - p[1])]
        prev = back
        for k in range(1, 9):
            dx, dy = _MOORE[(i + k) % 8]
            c = (p[0] + dx, p[1] + dy)
            if inside(*c):
                return c, prev
            prev = c
        return None

    points = [start]
    first = next_move(start, (start[0] - 1, start[1]))
    if first is None:
        return points
    p, back = first
    steps = 1
    while steps < max_steps:
        if p == start:
            move = next_move(p, back)
            if move is None or move[0] == first[0]:
                break
            points.append(p)
            p, back = move
        else:
            points.append(p)
            move = next_move(p, back)
            if move is None:
                break
            p, back = move
        steps += 1
    else:
        logger.debug("Contour trace hit step budget %d at %s", max_steps, start)
    return points


def trace_outer_contours(mask: np.ndarray) -> list[Contour]:
    """One outer contour per 8-connected foreground region, in raster order of region start."""
    labels, sizes = label_components(mask, connectivity=8)
    if not sizes:
        return []
    ys, xs = np.nonzero(labels)
    # first occurrence of each label in raster order
    flat = labels[ys, xs]
    _, first_idx = np.unique(flat, return_index=True)
    contours: list[Contour] = []
    for idx in sorted(first_idx.tolist()):
        label = int(flat[idx])
        start = (int(xs[idx]), int(ys[idx]))
        pts = moore_trace(labels, label, start, trace_budget(sizes[label - 1]))
        if len(pts) >= MIN_CONTOUR_POINTS:
            contours.append(make_contour(pts))
    return contours


def follow_edges(mask: np.ndarray) -> list[Contour]:
    """
    Greedy walk over boundary pixels: from each unvisited boundary pixel, step to
    the first unvisited boundary neighbour until stuck or out of budget.
    Budget is min(1000, W*H/10); walks shorter than the minimum are dropped.
    """
    h, w = mask.shape
    edge_mask = boundary_pixels(mask)
    edge = edge_mask.tolist()
    visited = [[False] * w for _ in range(h)]
    max_steps = min(EDGE_TRACE_MAX_STEPS, (w * h) // 10)
    contours: list[Contour] = []
    ys, xs = np.nonzero(edge_mask)
    for y0, x0 in zip(ys.tolist(), xs.tolist()):
        if visited[y0][x0]:
            continue
        trace: list[tuple[int, int]] = []
        x, y = x0, y0
        while len(trace) < max_steps and not visited[y][x]:
            visited[y][x] = True
            trace.append((x, y))
            for dx, dy in _EDGE_STEPS:
                nx, ny = x + dx, y + dy
                if 0 <= nx < w and 0 <= ny < h and edge[ny][nx] and not visited[ny][nx]:
                    x, y = nx, ny
                    break
            else:
                break
        if len(trace) >= EDGE_TRACE_MIN_POINTS:
            contours.append(make_contour(trace))
    return contours
