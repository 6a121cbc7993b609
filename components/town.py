"""components.town — Static town geometry: roads, lots, parking spots.

All coordinates are map-plane units (see ``core.constants``).

``RoadSegment`` is immutable after load.  ``Lot`` carries its polygon
plus fields *derived* by ``logic.access`` (``road_access_point``,
``entry_point``, ``gate_positions``). These are recomputed whenever lot
geometry or the road set changes, never hand-edited.  The only runtime
mutations are a spot's ``occupied_by`` (through ``ParkingPool``) and the
lot ``state``.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


Point = tuple[float, float]


class LotUsage(str, Enum):
    VACANT = "vacant"
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    PUBLIC = "public"
    BAR = "bar"
    CHURCH = "church"
    PARKING = "parking"


class LotState(str, Enum):
    EMPTY = "empty"
    OCCUPIED = "occupied"      # owner is home
    AWAY = "away"              # owner is out
    ABANDONED = "abandoned"
    FOR_SALE = "for_sale"


@dataclass(frozen=True)
class RoadSegment:
    """One street block: an axis-aligned rectangle.

    ``orientation`` is ``"vertical"`` or ``"horizontal"`` and decides
    which axis the centerline runs along.
    """
    id: str
    x: float
    y: float
    width: float
    height: float
    orientation: str = "horizontal"

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    def centerline(self) -> tuple[Point, Point]:
        """Return the two centerline endpoints of the segment."""
        if self.orientation == "vertical":
            cx = self.x + self.width / 2
            return (cx, self.y), (cx, self.y + self.height)
        cy = self.y + self.height / 2
        return (self.x, cy), (self.x + self.width, cy)

    def contains(self, x: float, y: float, padding: float = 0.0) -> bool:
        return (self.x - padding <= x <= self.x2 + padding
                and self.y - padding <= y <= self.y2 + padding)


@dataclass
class ParkingSpot:
    """A single parking bay.  ``heading`` is the parked car's angle (rad).

    ``occupied_by`` is written only by ``logic.parking.ParkingPool``.
    """
    x: float
    y: float
    heading: float = 0.0
    occupied_by: int | None = None

    @property
    def free(self) -> bool:
        return self.occupied_by is None


@dataclass
class Lot:
    """A polygonal parcel of land.

    ``points`` is the ordered boundary ring (not closed: the last point
    connects back to the first).
    """
    id: int
    points: list[Point] = field(default_factory=list)
    usage: LotUsage = LotUsage.VACANT
    state: LotState = LotState.EMPTY

    # ── Navigation (derived by logic.access) ─────────────────────────
    road_access_point: Point | None = None
    entry_point: Point | None = None
    gate_positions: list[Point] = field(default_factory=list)

    parking_spots: list[ParkingSpot] = field(default_factory=list)

    @property
    def has_parking(self) -> bool:
        return bool(self.parking_spots)


@dataclass
class TownBounds:
    """World-level extent of the map; highway exits sit on its edges."""
    min_x: float = 0.0
    min_y: float = 0.0
    max_x: float = 1000.0
    max_y: float = 1000.0
