"""
core/ecs.py — Entity-Component-System

Entities are ints. Components are any object, stored by type.
Query by component types to get matching entities.

    w = World()
    e = w.spawn()
    w.add(e, Position(120.0, 40.0))
    w.add(e, Kinematics(kind="pedestrian", speed=10.0))

    for eid, pos, kin in w.query(Position, Kinematics):
        ...

The world is the town's central agent table: a resident refers to its
car by id (``Residence.car_id``) and the car refers back to its driver
by id (``Vehicle.driver_id``).  Nothing holds a direct reference to
another agent's components, so there are no ownership cycles.
"""

from __future__ import annotations
from typing import Any, Iterator


class World:
    def __init__(self):
        self._next_id = 0
        self._stores: dict[type, dict[int, Any]] = {}
        self._dead: set[int] = set()

    # -- Entities --

    def spawn(self) -> int:
        self._next_id += 1
        return self._next_id

    def kill(self, eid: int):
        self._dead.add(eid)

    def alive(self, eid: int) -> bool:
        """True while *eid* is not killed and still owns a component."""
        if eid <= 0 or eid in self._dead:
            return False
        return any(eid in store for store in self._stores.values())

    def purge(self):
        """Remove dead entities from all stores. Call once per tick."""
        for store in self._stores.values():
            for eid in self._dead:
                store.pop(eid, None)
        self._dead.clear()

    # -- Components --

    def add(self, eid: int, comp: Any):
        self._stores.setdefault(type(comp), {})[eid] = comp

    def get(self, eid: int | None, comp_type: type) -> Any | None:
        if eid is None:
            return None
        return self._stores.get(comp_type, {}).get(eid)

    def has(self, eid: int, comp_type: type) -> bool:
        return eid in self._stores.get(comp_type, {})

    def remove(self, eid: int, comp_type: type):
        store = self._stores.get(comp_type)
        if store and eid in store:
            del store[eid]

    # -- Queries --

    def query(self, *types: type) -> Iterator[tuple]:
        """Yield (eid, comp1, comp2, ...) for entities that have ALL types.

        Entities are visited in ascending id order so a tick processes
        agents in the same sequence every run.
        """
        if not types:
            return
        buckets = [self._stores.get(t, {}) for t in types]
        smallest = min(buckets, key=len)
        for eid in sorted(smallest):
            if eid < 0 or eid in self._dead:
                continue
            if all(eid in b for b in buckets):
                yield (eid, *(b[eid] for b in buckets))

    def all_of(self, comp_type: type) -> Iterator[tuple[int, Any]]:
        """Yield (eid, component) for every entity with this type."""
        for eid, comp in sorted(self._stores.get(comp_type, {}).items()):
            if eid >= 0 and eid not in self._dead:
                yield eid, comp

    def count(self, comp_type: type) -> int:
        return sum(1 for _ in self.all_of(comp_type))

    def nearby(self, x: float, y: float, radius: float,
               *types: type) -> Iterator[tuple]:
        """Yield ``(eid, comp1, ..., dist_sq)`` within *radius* of (x, y).

        The first type must expose ``.x`` / ``.y`` (normally Position).
        """
        r_sq = radius * radius
        for result in self.query(*types):
            pos = result[1]
            dx = pos.x - x
            dy = pos.y - y
            dsq = dx * dx + dy * dy
            if dsq <= r_sq:
                yield (*result, dsq)

    # -- Resources (singletons, not tied to entities) --

    def set_res(self, resource: Any):
        self._stores.setdefault(type(resource), {})[-1] = resource

    def res(self, res_type: type) -> Any | None:
        return self._stores.get(res_type, {}).get(-1)
