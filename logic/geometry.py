"""logic/geometry.py — Plane geometry helpers shared by the navigation code.

Everything here is pure: points are ``(x, y)`` tuples, roads are
``RoadSegment`` rectangles and lots are boundary rings.  No world or
tuning access.
"""

from __future__ import annotations
import math
import random
from typing import Sequence

from components.town import Point, RoadSegment


def dist(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def centroid(points: Sequence[Point]) -> Point:
    """Arithmetic mean of the ring points (not the area centroid)."""
    n = len(points)
    return (sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


def bbox(points: Sequence[Point]) -> tuple[float, float, float, float]:
    """Return ``(min_x, min_y, max_x, max_y)``."""
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), min(ys), max(xs), max(ys)


def clamp_to_rect(x: float, y: float, road: RoadSegment) -> Point:
    """Closest point inside *road*'s rectangle to ``(x, y)``."""
    return (max(road.x, min(x, road.x2)), max(road.y, min(y, road.y2)))


def closest_point_on_segment(p1: Point, p2: Point, p: Point) -> Point:
    """Project *p* onto the segment ``p1 → p2``, clamped to its ends."""
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    if dx == 0 and dy == 0:
        return p1
    t = ((p[0] - p1[0]) * dx + (p[1] - p1[1]) * dy) / (dx * dx + dy * dy)
    t = max(0.0, min(1.0, t))
    return (p1[0] + t * dx, p1[1] + t * dy)


def ring_edges(points: Sequence[Point]):
    """Yield ``(p1, p2)`` for every boundary edge, closing the ring."""
    n = len(points)
    for i in range(n):
        yield points[i], points[(i + 1) % n]


def point_in_polygon(x: float, y: float, points: Sequence[Point]) -> bool:
    """Even-odd ray cast."""
    inside = False
    j = len(points) - 1
    for i in range(len(points)):
        xi, yi = points[i]
        xj, yj = points[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def random_point_in_polygon(points: Sequence[Point], rng: random.Random,
                            margin: float = 8.0,
                            attempts: int = 24) -> Point:
    """Rejection-sample an interior point, inset by *margin* when it fits.

    Falls back to the bounding-box centre for shapes the sampler keeps
    missing (thin slivers, concave notches).
    """
    min_x, min_y, max_x, max_y = bbox(points)
    lo_x, hi_x, lo_y, hi_y = min_x, max_x, min_y, max_y
    if min_x + margin < max_x - margin and min_y + margin < max_y - margin:
        lo_x, hi_x = min_x + margin, max_x - margin
        lo_y, hi_y = min_y + margin, max_y - margin

    for _ in range(attempts):
        x = lo_x + rng.random() * (hi_x - lo_x)
        y = lo_y + rng.random() * (hi_y - lo_y)
        if point_in_polygon(x, y, points):
            return (x, y)
    return ((min_x + max_x) / 2, (min_y + max_y) / 2)


def heading_to(a: Point, b: Point) -> float:
    """Bearing from *a* to *b* in radians (0 = +x)."""
    return math.atan2(b[1] - a[1], b[0] - a[0])


def wrap_angle(a: float) -> float:
    """Wrap to ``(-pi, pi]``."""
    a = math.fmod(a + math.pi, math.tau)
    if a <= 0:
        a += math.tau
    return a - math.pi
