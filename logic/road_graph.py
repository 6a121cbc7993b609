"""logic/road_graph.py — Sparse navigation graph over the street network.

Construction
------------
Every ``RoadSegment`` contributes its two centerline endpoints:

    vertical    (x + w/2, y)  →  (x + w/2, y + h)
    horizontal  (x, y + h/2)  →  (x + w, y + h/2)

Each endpoint is interned under a whole-unit key ``(round(x), round(y))``
(half-up rounding), so two segments whose ends differ by less than the
rounding unit share one node.  One undirected edge joins the two
endpoint nodes; a repeated segment adds nothing.

Segments that do not touch within that tolerance stay disconnected.
A path query across islands returns ``[]``, an authoring error in the
map shows up as "no route" instead of being papered over.

Public API
----------
``RoadGraph(roads)``
``graph.nearest_node(x, y)``      → ``GraphNode`` or ``None``
``graph.find_path(start, end)``   → ``list[(x, y)]`` (``[]`` if unreachable)
``graph.edges()``                 → canonical ``set`` of undirected edges
"""

from __future__ import annotations
import heapq
import math
from dataclasses import dataclass, field
from typing import Iterable

from components.town import Point, RoadSegment


NodeKey = tuple[int, int]


def node_key(x: float, y: float) -> NodeKey:
    """Whole-unit key with half-up rounding (2.5 → 3, -2.5 → -2)."""
    return (math.floor(x + 0.5), math.floor(y + 0.5))


@dataclass
class GraphNode:
    key: NodeKey
    x: float
    y: float
    neighbors: set[NodeKey] = field(default_factory=set)


class RoadGraph:
    """Read-only after construction."""

    def __init__(self, roads: Iterable[RoadSegment]):
        self.nodes: dict[NodeKey, GraphNode] = {}
        self._segments = 0
        for road in roads:
            self._add_segment(road)
        print(f"[ROADS] Graph built: {len(self.nodes)} nodes, "
              f"{len(self.edges())} edges from {self._segments} segments")

    # ── Construction ─────────────────────────────────────────────────

    def _intern(self, p: Point) -> NodeKey:
        key = node_key(p[0], p[1])
        if key not in self.nodes:
            # First point seen under a key keeps its exact coordinates
            self.nodes[key] = GraphNode(key, p[0], p[1])
        return key

    def _add_segment(self, road: RoadSegment) -> None:
        a, b = road.centerline()
        ka = self._intern(a)
        kb = self._intern(b)
        self._segments += 1
        if ka == kb:
            return
        self.nodes[ka].neighbors.add(kb)
        self.nodes[kb].neighbors.add(ka)

    # ── Introspection ────────────────────────────────────────────────

    def edges(self) -> set[tuple[NodeKey, NodeKey]]:
        """Undirected edges as ``(low_key, high_key)`` pairs."""
        out: set[tuple[NodeKey, NodeKey]] = set()
        for key, node in self.nodes.items():
            for nb in node.neighbors:
                out.add((key, nb) if key < nb else (nb, key))
        return out

    def bounds(self) -> tuple[float, float, float, float] | None:
        if not self.nodes:
            return None
        xs = [n.x for n in self.nodes.values()]
        ys = [n.y for n in self.nodes.values()]
        return min(xs), min(ys), max(xs), max(ys)

    @staticmethod
    def path_length(path: list[Point]) -> float:
        return sum(math.hypot(b[0] - a[0], b[1] - a[1])
                   for a, b in zip(path, path[1:]))

    # ── Queries ──────────────────────────────────────────────────────

    def nearest_node(self, x: float, y: float) -> GraphNode | None:
        """Linear scan on squared distance; node counts stay small."""
        best: GraphNode | None = None
        best_d = math.inf
        for node in self.nodes.values():
            dx = node.x - x
            dy = node.y - y
            d = dx * dx + dy * dy
            if d < best_d:
                best_d = d
                best = node
        return best

    def find_path(self, start: Point, end: Point) -> list[Point]:
        """A* from the node nearest *start* to the node nearest *end*.

        Edge cost and heuristic are both Euclidean, so the heuristic is
        admissible.  Ties on f-score go to the lowest node key, making
        the choice among equal-cost routes deterministic.

        Returns the node coordinates from start node to end node
        inclusive, or ``[]`` when the graph is empty or the two nodes
        sit in different components.
        """
        s = self.nearest_node(start[0], start[1])
        g = self.nearest_node(end[0], end[1])
        if s is None or g is None:
            return []

        def h(node: GraphNode) -> float:
            return math.hypot(node.x - g.x, node.y - g.y)

        open_set: list[tuple[float, NodeKey]] = [(h(s), s.key)]
        g_score: dict[NodeKey, float] = {s.key: 0.0}
        came_from: dict[NodeKey, NodeKey] = {}
        closed: set[NodeKey] = set()

        while open_set:
            _f, key = heapq.heappop(open_set)
            if key in closed:
                continue
            if key == g.key:
                return self._reconstruct(came_from, key)
            closed.add(key)

            cur = self.nodes[key]
            for nb_key in cur.neighbors:
                if nb_key in closed:
                    continue
                nb = self.nodes[nb_key]
                new_g = g_score[key] + math.hypot(nb.x - cur.x, nb.y - cur.y)
                if new_g < g_score.get(nb_key, math.inf):
                    g_score[nb_key] = new_g
                    came_from[nb_key] = key
                    heapq.heappush(open_set, (new_g + h(nb), nb_key))

        return []

    def _reconstruct(self, came_from: dict[NodeKey, NodeKey],
                     key: NodeKey) -> list[Point]:
        path: list[Point] = []
        cur: NodeKey | None = key
        while cur is not None:
            node = self.nodes[cur]
            path.append((node.x, node.y))
            cur = came_from.get(cur)
        path.reverse()
        return path
