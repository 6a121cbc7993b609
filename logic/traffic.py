"""logic/traffic.py — Per-tick path dispatcher.

``TrafficSystem.update_traffic`` runs once per tick, before the
kinematics step.  For every visible agent whose route has run out it
builds a new one:

1. Off-road agents get a *pre-path*: residents standing inside their
   home lot leave through its nearest gate when it has one, everyone
   else heads for the nearest road point.
2. A destination is chosen: a random road point for ``roam`` agents,
   ``Navigator.destination`` for scheduler-directed ones.
3. A* runs from the pre-path end (or the agent) to the destination.
   With two or more nodes the route is ``pre-path + graph[1:]``; with
   no graph route the pre-path alone is used; with neither the agent
   gets one random road point.  An active agent is never left with an
   empty route.  Directed agents also get their destination appended
   so they actually reach the lot.
4. The head of ``path`` is promoted into ``target``.

Parked cars (``Vehicle.driver_id is None``) and ``Hidden`` agents are
skipped.  The RNG is injected; nothing here touches global random
state.
"""

from __future__ import annotations
import math
import random
from typing import Iterable, Sequence

from core.ecs import World
from core.constants import NAV_DIRECTED, NAV_MANUAL, KIND_PEDESTRIAN
from core.events import EventBus, PathAssigned
from core.tuning import get as _tun
from components import (
    Position, Kinematics, Navigator, Hidden, Residence, Vehicle, Identity,
    Lot, LotUsage, ParkingSpot, RoadSegment, TownBounds, DevLog,
)
from components.town import Point
from logic.geometry import clamp_to_rect, point_in_polygon
from logic.parking import ParkingPool
from logic.road_graph import RoadGraph


class TrafficSystem:
    """Road queries plus the dispatcher.  Stored as a world resource."""

    def __init__(self, roads: Sequence[RoadSegment], graph: RoadGraph,
                 rng: random.Random, lots: Iterable[Lot] = (),
                 bounds: TownBounds | None = None):
        self.roads = list(roads)
        self.graph = graph
        self.rng = rng
        self.lots: dict[int, Lot] = {lot.id: lot for lot in lots}
        self.bounds = bounds
        self._debug_count = 0

    # ── Road queries ─────────────────────────────────────────────────

    def find_path(self, start: Point, end: Point) -> list[Point]:
        return self.graph.find_path(start, end)

    def random_point_on_road(self) -> Point:
        if not self.roads:
            return (0.0, 0.0)
        road = self.roads[self.rng.randrange(len(self.roads))]
        return (road.x + self.rng.random() * road.width,
                road.y + self.rng.random() * road.height)

    def nearest_road_point(self, x: float, y: float) -> Point:
        """Clamp into every road rectangle and keep the closest result."""
        best = (x, y)
        best_d = math.inf
        for road in self.roads:
            px, py = clamp_to_rect(x, y, road)
            d = math.hypot(px - x, py - y)
            if d < best_d:
                best_d = d
                best = (px, py)
        return best

    def is_on_road(self, x: float, y: float) -> bool:
        padding = _tun("nav", "on_road_padding", 5.0)
        return any(road.contains(x, y, padding) for road in self.roads)

    # ── Route planning ───────────────────────────────────────────────

    def plan_route(self, world: World, eid: int, start: Point,
                   destination: Point | None) -> tuple[list[Point], str]:
        """Build a route from *start*.  Returns ``(path, source)``.

        *destination* ``None`` means "anywhere": a random road point is
        drawn and not appended.  Otherwise the destination is appended
        after whatever reaches the road network.
        """
        pre_path: list[Point] = []
        origin = start
        if not self.is_on_road(start[0], start[1]):
            gate = self._home_gate(world, eid, start)
            if gate is not None:
                pre_path.append(gate)
                origin = gate
            else:
                origin = self.nearest_road_point(start[0], start[1])
                pre_path.append(origin)

        directed = destination is not None
        goal = destination if directed else self.random_point_on_road()
        tail = [destination] if directed else []

        nodes = self.graph.find_path(origin, goal)
        if len(nodes) > 1:
            return pre_path + nodes[1:] + tail, "graph"
        if pre_path:
            return pre_path + tail, "pre_path"
        if directed:
            return tail, "direct"
        return [self.random_point_on_road()], "fallback"

    def _home_gate(self, world: World, eid: int, at: Point) -> Point | None:
        res = world.get(eid, Residence)
        if res is None:
            return None
        home = self.lots.get(res.home_lot_id)
        if home is None or not home.gate_positions:
            return None
        if not point_in_polygon(at[0], at[1], home.points):
            return None
        return min(home.gate_positions,
                   key=lambda g: (g[0] - at[0]) ** 2 + (g[1] - at[1]) ** 2)

    # ── Dispatcher ───────────────────────────────────────────────────

    def update_traffic(self, world: World, dt: float) -> None:
        """Refresh routes for agents that ran out, then promote targets."""
        bus = world.res(EventBus)
        log = world.res(DevLog)

        for eid, pos, kin, nav in world.query(Position, Kinematics, Navigator):
            if world.has(eid, Hidden):
                continue
            veh = world.get(eid, Vehicle)
            if veh is not None and veh.parked:
                continue

            if kin.target is None and not kin.path and nav.mode != NAV_MANUAL:
                dest = nav.destination
                if nav.mode == NAV_DIRECTED and dest is None:
                    continue
                path, source = self.plan_route(world, eid, (pos.x, pos.y), dest)
                nav.destination = None
                nav.last_source = source
                kin.path = path
                self._report(eid, world, path, source, bus, log)

            if kin.target is None and kin.path:
                kin.target = kin.path.pop(0)

    def _report(self, eid, world, path, source, bus, log) -> None:
        if bus is not None:
            bus.emit(PathAssigned(eid=eid, length=len(path), source=source))
        if log is not None:
            ident = world.get(eid, Identity)
            log.record(eid, "traffic", f"path → {source}",
                       name=ident.name if ident else "",
                       details={"nodes": len(path)})
        if self._debug_count < 5 and source != "graph":
            print(f"[TRAFFIC] Agent {eid}: {source} route, {len(path)} points")
            self._debug_count += 1

    # ── Vehicle requests ─────────────────────────────────────────────

    def parking_for(self, world: World, car_eid: int,
                    lot: Lot) -> tuple[int, ParkingSpot] | None:
        """Reserve somewhere for *car_eid* to park when visiting *lot*.

        Order: a spot on the lot itself, a spot in the nearest parking
        lot (bars and churches have none of their own), then the kerb in
        front of the lot.  Any spot the car held before is released.
        ``None`` only when the lot has no geometry to park against.
        """
        pool = world.res(ParkingPool)
        if pool is None:
            return None
        pool.release_all(car_eid)

        spot = pool.reserve(lot.id, car_eid)
        if spot is not None:
            return lot.id, spot

        if lot.usage in (LotUsage.BAR, LotUsage.CHURCH) and lot.points:
            px, py = lot.entry_point or lot.points[0]
            nearby = pool.nearest_parking_lot(px, py)
            if nearby is not None:
                spot = pool.reserve(nearby.id, car_eid)
                if spot is not None:
                    return nearby.id, spot

        street = pool.street_spot(lot.id)
        if street is None:
            return None
        return lot.id, street

    def vehicle_path_to(self, world: World, car_eid: int,
                        lot: Lot) -> tuple[int, ParkingSpot] | None:
        """Route a driven car to a parking place for *lot*.

        Returns the ``(lot_id, spot)`` the car is heading for, or
        ``None`` when nothing could be found (caller should walk).
        """
        pos = world.get(car_eid, Position)
        kin = world.get(car_eid, Kinematics)
        if pos is None or kin is None:
            return None
        parking = self.parking_for(world, car_eid, lot)
        if parking is None:
            return None
        _lot_id, spot = parking
        path, source = self.plan_route(world, car_eid, (pos.x, pos.y),
                                       (spot.x, spot.y))
        kin.path = path
        kin.target = None
        nav = world.get(car_eid, Navigator)
        if nav is not None:
            nav.destination = None
            nav.last_source = source
        self._report(car_eid, world, path, source,
                     world.res(EventBus), world.res(DevLog))
        return parking

    # ── Bounds ───────────────────────────────────────────────────────

    def clamp_pedestrians(self, world: World) -> None:
        """Keep walking agents inside the town bounds."""
        if self.bounds is None:
            return
        b = self.bounds
        for eid, pos, kin in world.query(Position, Kinematics):
            if kin.kind != KIND_PEDESTRIAN or world.has(eid, Hidden):
                continue
            pos.x = max(b.min_x, min(pos.x, b.max_x))
            pos.y = max(b.min_y, min(pos.y, b.max_y))


def request_destination(kin: Kinematics, nav: Navigator, point: Point) -> None:
    """Drop the current route and ask the dispatcher to plan to *point*."""
    kin.clear_route()
    nav.destination = point
