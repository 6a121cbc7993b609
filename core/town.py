"""core/town.py — Town map loader.

Reads the pre-parsed town description (roads, lots, parking bays) from
TOML.  No vector-map parsing happens here; geometry arrives already
resolved.

Expected format::

    [bounds]
    min_x = 0
    min_y = 0
    max_x = 640
    max_y = 480

    [[roads]]
    id = "main_st"
    x = 0
    y = 90
    width = 640
    height = 20
    orientation = "horizontal"

    [[lots]]
    id = 1
    usage = "residential"
    state = "occupied"
    points = [[100, 120], [180, 120], [180, 180], [100, 180]]
    parking = [[170, 130, 0.0]]        # x, y, heading (rad)

Malformed data raises ``TownMapError``.  Derived lot fields (access
point, entry point, gates) are *not* read; ``logic.access`` computes
them after loading.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib                         # Python 3.11+
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib

from components.town import (
    Lot, LotState, LotUsage, ParkingSpot, RoadSegment, TownBounds,
)


class TownMapError(ValueError):
    """The town description cannot be turned into roads and lots."""


@dataclass
class TownMap:
    roads: list[RoadSegment] = field(default_factory=list)
    lots: list[Lot] = field(default_factory=list)
    bounds: TownBounds = field(default_factory=TownBounds)

    def lot(self, lot_id: int) -> Lot | None:
        for lot in self.lots:
            if lot.id == lot_id:
                return lot
        return None


def load_town(path: str | Path) -> TownMap:
    path = Path(path)
    if not path.exists():
        raise TownMapError(f"town file not found: {path}")
    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise TownMapError(f"{path}: {exc}") from exc
    town = parse_town(data)
    print(f"[TOWN] Loaded {len(town.roads)} roads, {len(town.lots)} lots "
          f"from {path}")
    return town


def parse_town(data: dict) -> TownMap:
    """Build a ``TownMap`` from an already-decoded TOML/dict document."""
    roads = [_road(i, r) for i, r in enumerate(data.get("roads", []))]

    lots: list[Lot] = []
    seen: set[int] = set()
    for raw in data.get("lots", []):
        lot = _lot(raw)
        if lot.id in seen:
            raise TownMapError(f"duplicate lot id {lot.id}")
        seen.add(lot.id)
        lots.append(lot)

    b = data.get("bounds")
    if b is None:
        bounds = _bounds_from(roads, lots)
    else:
        bounds = TownBounds(float(b.get("min_x", 0.0)), float(b.get("min_y", 0.0)),
                            float(b.get("max_x", 1000.0)), float(b.get("max_y", 1000.0)))
    return TownMap(roads, lots, bounds)


def _road(index: int, raw: dict) -> RoadSegment:
    try:
        road = RoadSegment(
            id=str(raw.get("id", f"road_{index}")),
            x=float(raw["x"]),
            y=float(raw["y"]),
            width=float(raw["width"]),
            height=float(raw["height"]),
            orientation=str(raw.get("orientation", "horizontal")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise TownMapError(f"road #{index}: bad field {exc}") from exc
    if road.orientation not in ("horizontal", "vertical"):
        raise TownMapError(f"road {road.id}: unknown orientation "
                           f"{road.orientation!r}")
    if road.width <= 0 or road.height <= 0:
        raise TownMapError(f"road {road.id}: non-positive size")
    return road


def _lot(raw: dict) -> Lot:
    try:
        lot_id = int(raw["id"])
        points = [(float(p[0]), float(p[1])) for p in raw.get("points", [])]
        usage = LotUsage(raw.get("usage", "vacant"))
        state = LotState(raw.get("state", "empty"))
        spots = [ParkingSpot(float(s[0]), float(s[1]),
                             float(s[2]) if len(s) > 2 else 0.0)
                 for s in raw.get("parking", [])]
    except (KeyError, TypeError, ValueError, IndexError) as exc:
        raise TownMapError(f"lot {raw.get('id', '?')}: {exc}") from exc
    return Lot(id=lot_id, points=points, usage=usage, state=state,
               parking_spots=spots)


def _bounds_from(roads: list[RoadSegment], lots: list[Lot]) -> TownBounds:
    xs: list[float] = []
    ys: list[float] = []
    for r in roads:
        xs += [r.x, r.x2]
        ys += [r.y, r.y2]
    for lot in lots:
        xs += [p[0] for p in lot.points]
        ys += [p[1] for p in lot.points]
    if not xs:
        return TownBounds()
    return TownBounds(min(xs), min(ys), max(xs), max(ys))
