"""logic/access.py — Lot-to-road access and pedestrian gate resolution.

Fills the derived navigation fields on each ``Lot``:

  road_access_point  nearest point on any road rectangle to the centroid
  entry_point        nearest point on the lot boundary to that access point
  gate_positions     midpoints of boundary edges judged to be exits

Gate rule
---------
An edge is *road-facing* when its midpoint lies within
``[nav.gates] road_proximity`` of some road rectangle.  A road-facing
edge is a gate when it is short compared with the longest edge
(``length < longest * short_edge_ratio``) or the lot is near-square
(``|length - longest| < square_tolerance``).  Edges of middling
length count as frontage, not exits.  The thresholds were tuned
against one map and are read from tuning so they can be adjusted.

Lots with fewer than 3 points get no gates.
"""

from __future__ import annotations
import math
from typing import Iterable, Sequence

from components.town import Lot, RoadSegment
from core.tuning import get as _tun
from logic.geometry import (
    centroid, clamp_to_rect, closest_point_on_segment, ring_edges,
)


def compute_access_points(lots: Iterable[Lot],
                          roads: Sequence[RoadSegment]) -> None:
    """Set ``road_access_point`` / ``entry_point`` then recompute gates."""
    lots = list(lots)
    resolved = 0
    for lot in lots:
        if not lot.points or not roads:
            continue
        cx, cy = centroid(lot.points)

        best_d = math.inf
        access = None
        for road in roads:
            px, py = clamp_to_rect(cx, cy, road)
            d = math.hypot(px - cx, py - cy)
            if d < best_d:
                best_d = d
                access = (px, py)
        lot.road_access_point = access

        best_d = math.inf
        entry = (cx, cy)
        for p1, p2 in ring_edges(lot.points):
            pt = closest_point_on_segment(p1, p2, access)
            d = math.hypot(pt[0] - access[0], pt[1] - access[1])
            if d < best_d:
                best_d = d
                entry = pt
        lot.entry_point = entry
        resolved += 1

    print(f"[ACCESS] Resolved access for {resolved}/{len(lots)} lots")
    compute_fence_gates(lots, roads)


def compute_fence_gates(lots: Iterable[Lot],
                        roads: Sequence[RoadSegment]) -> None:
    """Recompute ``gate_positions`` for every lot (always replaced)."""
    proximity = _tun("nav.gates", "road_proximity", 15.0)
    ratio = _tun("nav.gates", "short_edge_ratio", 0.8)
    square_tol = _tun("nav.gates", "square_tolerance", 5.0)

    total = 0
    for lot in lots:
        lot.gate_positions = []
        if len(lot.points) < 3:
            continue

        edges = []
        for p1, p2 in ring_edges(lot.points):
            length = math.hypot(p2[0] - p1[0], p2[1] - p1[1])
            mid = ((p1[0] + p2[0]) / 2, (p1[1] + p2[1]) / 2)
            edges.append((length, mid))
        longest = max(length for length, _ in edges)

        for length, mid in edges:
            if not _near_road(mid, roads, proximity):
                continue
            if length < longest * ratio or abs(length - longest) < square_tol:
                lot.gate_positions.append(mid)
        total += len(lot.gate_positions)

    print(f"[ACCESS] {total} gates placed")


def _near_road(p, roads: Sequence[RoadSegment], threshold: float) -> bool:
    for road in roads:
        px, py = clamp_to_rect(p[0], p[1], road)
        if math.hypot(px - p[0], py - p[1]) < threshold:
            return True
    return False
