"""logic/parking.py — Per-lot parking spot pool.

The only writer of ``ParkingSpot.occupied_by``.  Reservation is
check-then-claim on a single thread: a spot is claimed only while it is
free and stays claimed until its holder releases it.  ``release_all``
exists for forced removals (despawn, leaving town) so a spot is never
stranded.

    pool = world.res(ParkingPool)
    spot = pool.reserve(lot_id, car_eid)     # ParkingSpot or None
    ...
    pool.release(lot_id, car_eid)
"""

from __future__ import annotations
import math
from typing import Iterable

from components.town import Lot, LotUsage, ParkingSpot
from core.events import EventBus, ParkingReserved, ParkingReleased
from logic.geometry import centroid


class ParkingPool:
    def __init__(self, lots: Iterable[Lot], bus: EventBus | None = None):
        self._lots: dict[int, Lot] = {lot.id: lot for lot in lots}
        self._bus = bus

    def lot(self, lot_id: int | None) -> Lot | None:
        if lot_id is None:
            return None
        return self._lots.get(lot_id)

    # ── Reservation ──────────────────────────────────────────────────

    def reserve(self, lot_id: int, eid: int) -> ParkingSpot | None:
        """Claim a free spot in *lot_id* for *eid*.

        Returns the spot *eid* already holds there if any.  ``None``
        means no spot is available (or the lot is unknown); the caller
        must fall back to something else.
        """
        lot = self._lots.get(lot_id)
        if lot is None:
            return None
        for spot in lot.parking_spots:
            if spot.occupied_by == eid:
                return spot
        for spot in lot.parking_spots:
            if spot.occupied_by is None:
                spot.occupied_by = eid
                if self._bus is not None:
                    self._bus.emit(ParkingReserved(eid=eid, lot_id=lot_id,
                                                   x=spot.x, y=spot.y))
                return spot
        return None

    def release(self, lot_id: int, eid: int) -> bool:
        lot = self._lots.get(lot_id)
        if lot is None:
            return False
        released = False
        for spot in lot.parking_spots:
            if spot.occupied_by == eid:
                spot.occupied_by = None
                released = True
        if released and self._bus is not None:
            self._bus.emit(ParkingReleased(eid=eid, lot_id=lot_id))
        return released

    def release_all(self, eid: int) -> int:
        """Release every spot held by *eid*.  Returns the count freed."""
        freed = 0
        for lot_id in list(self._lots):
            if self.release(lot_id, eid):
                freed += 1
        return freed

    # ── Lookups ──────────────────────────────────────────────────────

    def holder_spot(self, eid: int) -> tuple[int, ParkingSpot] | None:
        """Return ``(lot_id, spot)`` currently held by *eid*, if any."""
        for lot in self._lots.values():
            for spot in lot.parking_spots:
                if spot.occupied_by == eid:
                    return lot.id, spot
        return None

    def free_count(self, lot_id: int) -> int:
        lot = self._lots.get(lot_id)
        if lot is None:
            return 0
        return sum(1 for s in lot.parking_spots if s.free)

    def street_spot(self, lot_id: int) -> ParkingSpot | None:
        """Kerb-side fallback in front of the lot (never reserved).

        Sits on the lot's road access point, facing along the street.
        """
        lot = self._lots.get(lot_id)
        if lot is None:
            return None
        p = lot.road_access_point or lot.entry_point
        if p is None:
            if not lot.points:
                return None
            p = centroid(lot.points)
        heading = 0.0
        if lot.entry_point is not None and lot.road_access_point is not None:
            dx = lot.entry_point[0] - lot.road_access_point[0]
            dy = lot.entry_point[1] - lot.road_access_point[1]
            # Parallel to the kerb: perpendicular to access → entry
            if dx or dy:
                heading = math.atan2(dy, dx) + math.pi / 2
        return ParkingSpot(p[0], p[1], heading)

    def nearest_parking_lot(self, x: float, y: float) -> Lot | None:
        """Closest dedicated ``parking`` lot that has a free spot."""
        best: Lot | None = None
        best_d = math.inf
        for lot in self._lots.values():
            if lot.usage != LotUsage.PARKING or not lot.points:
                continue
            if not any(s.free for s in lot.parking_spots):
                continue
            cx, cy = centroid(lot.points)
            d = math.hypot(cx - x, cy - y)
            if d < best_d:
                best_d = d
                best = lot
        return best
