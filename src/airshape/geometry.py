"""Point-path geometry helpers shared by the stroke and shape modules."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

Point = tuple[float, float]


def as_points(points: Sequence[Point] | np.ndarray) -> np.ndarray:
    """Return points as a float64 (N, 2) array. Extra columns are dropped.

    Raises:
        ValueError: if the input is not a sequence of (x, y) pairs.
    """
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 2), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] < 2:
        raise ValueError(f"expected (N, 2) points, got shape {arr.shape}")
    return arr[:, :2]


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two 2D points."""
    return math.hypot(float(b[0]) - float(a[0]), float(b[1]) - float(a[1]))


def normalize_points(points: Sequence[Point] | np.ndarray) -> np.ndarray:
    """Map points into the unit square using their bounding box.

    Each axis is scaled independently, so the extremal points land exactly
    on 0 and 1. If the box has zero width or zero height the points are
    returned unchanged.
    """
    pts = as_points(points)
    if len(pts) == 0:
        return pts

    mins = pts.min(axis=0)
    span = pts.max(axis=0) - mins

    if span[0] == 0 or span[1] == 0:
        return pts

    return (pts - mins) / span


def smooth_points(points: Sequence[Point] | np.ndarray, radius: int = 5) -> np.ndarray:
    """Symmetric moving average over up to 2 * radius + 1 neighbours.

    The window is truncated at both ends of the path, so the first and last
    points average fewer neighbours rather than being padded.
    """
    pts = as_points(points)
    n = len(pts)
    if n == 0 or radius <= 0:
        return pts.copy()

    cum = np.vstack([np.zeros((1, 2)), np.cumsum(pts, axis=0)])
    idx = np.arange(n)
    lo = np.maximum(idx - radius, 0)
    hi = np.minimum(idx + radius + 1, n)
    counts = (hi - lo)[:, None]
    return (cum[hi] - cum[lo]) / counts


def centroid(points: Sequence[Point] | np.ndarray) -> Point:
    pts = as_points(points)
    c = pts.mean(axis=0)
    return float(c[0]), float(c[1])


def to_surface(point: Point, width: float, height: float) -> Point:
    """Scale a normalized detector point onto a drawing surface."""
    return float(point[0]) * width, float(point[1]) * height
