"""Geometric shape classification of finished air-drawn strokes.

A stroke is an ordered list of 2D points in any coordinate system. The
classifier normalizes it to the unit square, checks that it is closed,
counts sharp turns on a smoothed copy, and scores how constant its radius
is around the centroid:

    detector = ShapeDetector()
    shape = detector.detect(points)        # Shape.CIRCLE, ...
    analysis = detector.analyze(points)    # corners, circularity, closed

Classification never raises; anything that cannot be recognized is
Shape.UNKNOWN.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from airshape.geometry import Point, as_points, normalize_points, smooth_points


class Shape(str, Enum):
    CIRCLE = "circle"
    TRIANGLE = "triangle"
    SQUARE = "square"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ShapeThresholds:
    """Tunable constants for shape classification.

    The defaults were picked empirically against hand-drawn strokes.
    """
    min_points: int = 10
    closure_distance: float = 0.15
    smoothing_radius: int = 5
    corner_min_points: int = 20
    corner_offset: int = 10
    corner_angle: float = math.pi / 4
    circle_min_circularity: float = 0.7
    circle_max_corners: int = 2
    triangle_corners: tuple[int, int] = (2, 4)
    triangle_max_circularity: float = 0.6
    square_corners: tuple[int, int] = (3, 6)
    square_max_circularity: float = 0.7

    def to_dict(self) -> dict:
        return {
            "min_points": self.min_points,
            "closure_distance": self.closure_distance,
            "smoothing_radius": self.smoothing_radius,
            "corner_min_points": self.corner_min_points,
            "corner_offset": self.corner_offset,
            "corner_angle": self.corner_angle,
            "circle_min_circularity": self.circle_min_circularity,
            "circle_max_corners": self.circle_max_corners,
            "triangle_corners": list(self.triangle_corners),
            "triangle_max_circularity": self.triangle_max_circularity,
            "square_corners": list(self.square_corners),
            "square_max_circularity": self.square_max_circularity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ShapeThresholds:
        defaults = cls()
        return cls(
            min_points=int(data.get("min_points", defaults.min_points)),
            closure_distance=float(data.get("closure_distance", defaults.closure_distance)),
            smoothing_radius=int(data.get("smoothing_radius", defaults.smoothing_radius)),
            corner_min_points=int(data.get("corner_min_points", defaults.corner_min_points)),
            corner_offset=int(data.get("corner_offset", defaults.corner_offset)),
            corner_angle=float(data.get("corner_angle", defaults.corner_angle)),
            circle_min_circularity=float(
                data.get("circle_min_circularity", defaults.circle_min_circularity)
            ),
            circle_max_corners=int(data.get("circle_max_corners", defaults.circle_max_corners)),
            triangle_corners=tuple(data.get("triangle_corners", defaults.triangle_corners)),
            triangle_max_circularity=float(
                data.get("triangle_max_circularity", defaults.triangle_max_circularity)
            ),
            square_corners=tuple(data.get("square_corners", defaults.square_corners)),
            square_max_circularity=float(
                data.get("square_max_circularity", defaults.square_max_circularity)
            ),
        )


@dataclass(frozen=True)
class ShapeAnalysis:
    """Measurements behind a classification decision."""
    shape: Shape
    closed: bool
    corners: int
    circularity: float
    point_count: int

    def to_dict(self) -> dict:
        return {
            "shape": self.shape.value,
            "closed": self.closed,
            "corners": self.corners,
            "circularity": round(self.circularity, 4),
            "points": self.point_count,
        }


def is_closed(points: np.ndarray, threshold: float = 0.15) -> bool:
    """True when the first and last points are closer than `threshold`."""
    if len(points) < 2:
        return False
    gap = float(np.linalg.norm(points[-1] - points[0]))
    return gap < threshold


def count_corners(
    points: np.ndarray,
    offset: int = 10,
    angle_threshold: float = math.pi / 4,
    min_points: int = 20,
) -> int:
    """Count positions where the path direction turns by more than the threshold.

    For every index i in [offset, n - offset) the heading from p[i - offset]
    to p[i] is compared with the heading from p[i] to p[i + offset]. A sharp
    vertex is usually counted at several neighbouring positions.
    """
    n = len(points)
    if n < min_points or n <= 2 * offset:
        return 0

    prev = points[: n - 2 * offset]
    curr = points[offset: n - offset]
    nxt = points[2 * offset:]

    incoming = curr - prev
    outgoing = nxt - curr
    angle_in = np.arctan2(incoming[:, 1], incoming[:, 0])
    angle_out = np.arctan2(outgoing[:, 1], outgoing[:, 0])

    diff = np.abs(angle_out - angle_in)
    diff = np.where(diff > math.pi, 2 * math.pi - diff, diff)

    return int(np.count_nonzero(diff > angle_threshold))


def circularity(points: np.ndarray, min_points: int = 10) -> float:
    """1 - (std / mean) of the distances from the centroid.

    Close to 1 for a constant radius, lower for angular paths. Returns 0 for
    short or degenerate paths.
    """
    if len(points) < min_points:
        return 0.0

    center = points.mean(axis=0)
    distances = np.linalg.norm(points - center, axis=1)
    mean = float(distances.mean())
    if mean <= 0:
        return 0.0
    return 1.0 - float(distances.std()) / mean


class ShapeDetector:
    """Classifies strokes as circle, triangle, square or unknown."""

    def __init__(self, thresholds: ShapeThresholds | None = None):
        self.thresholds = thresholds or ShapeThresholds()

    def detect(self, points: Sequence[Point] | np.ndarray) -> Shape:
        return self.analyze(points).shape

    def analyze(self, points: Sequence[Point] | np.ndarray) -> ShapeAnalysis:
        """Run the full pipeline and keep the intermediate measurements."""
        t = self.thresholds
        try:
            pts = as_points(points)
        except (TypeError, ValueError):
            return ShapeAnalysis(Shape.UNKNOWN, False, 0, 0.0, 0)

        n = len(pts)
        if n < t.min_points or not np.all(np.isfinite(pts)):
            return ShapeAnalysis(Shape.UNKNOWN, False, 0, 0.0, n)

        normalized = normalize_points(pts)
        if not is_closed(normalized, t.closure_distance):
            return ShapeAnalysis(Shape.UNKNOWN, False, 0, 0.0, n)

        smoothed = smooth_points(normalized, t.smoothing_radius)
        corners = count_corners(
            smoothed, t.corner_offset, t.corner_angle, t.corner_min_points
        )
        score = circularity(normalized, t.min_points)

        return ShapeAnalysis(
            shape=self.decide(corners, score),
            closed=True,
            corners=corners,
            circularity=score,
            point_count=n,
        )

    def decide(self, corners: int, score: float) -> Shape:
        """Map corner count and circularity to a label. First rule wins."""
        t = self.thresholds

        if score > t.circle_min_circularity and corners <= t.circle_max_corners:
            return Shape.CIRCLE

        lo, hi = t.triangle_corners
        if lo <= corners <= hi and score < t.triangle_max_circularity:
            return Shape.TRIANGLE

        lo, hi = t.square_corners
        if lo <= corners <= hi and score < t.square_max_circularity:
            return Shape.SQUARE

        return Shape.UNKNOWN


_default_detector = ShapeDetector()


def detect_shape(points: Sequence[Point] | np.ndarray) -> Shape:
    """Classify a stroke with the default thresholds."""
    return _default_detector.detect(points)
