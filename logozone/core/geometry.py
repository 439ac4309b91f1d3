# logozone/core/geometry.py
"""
Polyline geometry for contours: shoelace area, closed perimeter, centroid,
bounding rectangle, convex hull area, shape ratios and Douglas-Peucker
simplification. Points are (x, y) tuples in pixel coordinates.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from shapely.geometry import MultiPoint

from logozone.core.config import MIN_CONTOUR_POINTS
from logozone.core.types import EMPTY_RECT, Contour, Rect

Point = tuple[float, float]


def _as_xy(points: Sequence[Point]) -> np.ndarray:
    if len(points) == 0:
        return np.zeros((0, 2))
    return np.asarray(points, dtype=np.float64).reshape(-1, 2)


def shoelace_area(points: Sequence[Point]) -> float:
    """Absolute area of the closed polygon through points."""
    xy = _as_xy(points)
    if len(xy) < 3:
        return 0.0
    x, y = xy[:, 0], xy[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)) / 2.0)


def closed_perimeter(points: Sequence[Point]) -> float:
    """Length of the polyline including the closing segment back to the first point."""
    xy = _as_xy(points)
    if len(xy) < 2:
        return 0.0
    d = np.roll(xy, -1, axis=0) - xy
    return float(np.hypot(d[:, 0], d[:, 1]).sum())


def mean_centroid(points: Sequence[Point]) -> tuple[float, float]:
    """Arithmetic mean of the vertices (not the area centroid)."""
    xy = _as_xy(points)
    if len(xy) == 0:
        return (0.0, 0.0)
    m = xy.mean(axis=0)
    return (float(m[0]), float(m[1]))


def area_centroid(points: Sequence[Point]) -> tuple[float, float]:
    """Centroid of the enclosed polygon area; the vertex mean when the area is zero."""
    xy = _as_xy(points)
    if len(xy) < 3:
        return mean_centroid(points)
    x, y = xy[:, 0], xy[:, 1]
    xn, yn = np.roll(x, -1), np.roll(y, -1)
    cross = x * yn - xn * y
    a = cross.sum() / 2.0
    if abs(a) < 1e-12:
        return mean_centroid(points)
    cx = ((x + xn) * cross).sum() / (6.0 * a)
    cy = ((y + yn) * cross).sum() / (6.0 * a)
    return (float(cx), float(cy))


def bounding_rect(points: Sequence[Point]) -> Rect:
    """Rect spanning min..max of the points; width is max_x - min_x."""
    xy = _as_xy(points)
    if len(xy) == 0:
        return EMPTY_RECT
    minx, miny = xy.min(axis=0)
    maxx, maxy = xy.max(axis=0)
    return Rect(float(minx), float(miny), float(maxx - minx), float(maxy - miny))


def convex_hull_area(points: Sequence[Point]) -> float:
    """Area of the convex hull; 0 for fewer than 3 points or collinear input."""
    if len(points) < 3:
        return 0.0
    hull = MultiPoint([(float(x), float(y)) for x, y in points]).convex_hull
    return float(hull.area)


def eccentricity(width: float, height: float) -> float:
    """1 - min/max of the bounding box sides; 0 for a square, 1 for a degenerate box."""
    hi = max(width, height)
    if hi <= 0:
        return 1.0
    return 1.0 - min(width, height) / hi


def compactness(perimeter: float, area: float) -> float:
    """perimeter^2 / (4*pi*area); 1 for a circle, 0 when area is 0."""
    if area <= 0:
        return 0.0
    return perimeter * perimeter / (4.0 * math.pi * area)


def perpendicular_distance(p: Point, a: Point, b: Point) -> float:
    """Distance from p to the infinite line through a and b (to a itself if a == b)."""
    dx, dy = b[0] - a[0], b[1] - a[1]
    if dx == 0 and dy == 0:
        return math.hypot(p[0] - a[0], p[1] - a[1])
    return abs(dy * p[0] - dx * p[1] + b[0] * a[1] - b[1] * a[0]) / math.hypot(dx, dy)


def douglas_peucker(points: Sequence[Point], epsilon: float) -> list[Point]:
    """
    Douglas-Peucker simplification using an explicit stack.
    Endpoints are always kept; epsilon <= 0 or fewer than 3 points returns the input unchanged.
    """
    pts = list(points)
    if epsilon <= 0 or len(pts) < 3:
        return pts
    keep = [False] * len(pts)
    keep[0] = keep[-1] = True
    stack = [(0, len(pts) - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue
        a, b = pts[first], pts[last]
        max_d, max_i = 0.0, first
        for i in range(first + 1, last):
            d = perpendicular_distance(pts[i], a, b)
            if d > max_d:
                max_d, max_i = d, i
        if max_d > epsilon:
            keep[max_i] = True
            stack.append((first, max_i))
            stack.append((max_i, last))
    return [p for p, k in zip(pts, keep) if k]


def make_contour(points: Sequence[Point]) -> Contour:
    """Build a Contour with derived area, perimeter, bounds and centroid."""
    pts = tuple((float(x), float(y)) for x, y in points)
    if not pts:
        return Contour(points=(), area=0.0, perimeter=0.0, bounding_rect=EMPTY_RECT, centroid=(0.0, 0.0), is_valid=False)
    area = shoelace_area(pts)
    return Contour(
        points=pts,
        area=area,
        perimeter=closed_perimeter(pts),
        bounding_rect=bounding_rect(pts),
        centroid=area_centroid(pts),
        is_valid=area > 0 and len(pts) >= MIN_CONTOUR_POINTS,
    )


def simplify_contour(contour: Contour, epsilon: float) -> Contour:
    """Simplified copy of contour; unchanged when epsilon <= 0 or it has <= 2 points."""
    if epsilon <= 0 or len(contour.points) <= 2:
        return contour
    return make_contour(douglas_peucker(contour.points, epsilon))
