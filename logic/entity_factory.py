"""logic/entity_factory.py — Agent spawning.

Every mobile agent is the same bundle of components; the mover ``kind``
picks the profile in ``[kinematics.<kind>]`` that scales its nominal
speed and sets its footprint.  There are no agent subclasses.

    Resident  Position, Kinematics(pedestrian), Navigator(directed),
              Identity, Sprite, ResidentTraits, Residence, Schedule
    Car       Position, Kinematics(vehicle), Navigator(directed),
              Identity, Sprite, Vehicle
    Roamer    Position, Kinematics(any), Navigator(roam), Identity, Sprite
"""

from __future__ import annotations

from core.ecs import World
from core.constants import (
    KIND_PEDESTRIAN, KIND_VEHICLE, NAV_DIRECTED, NAV_ROAM,
    TERRAIN_LOT, TERRAIN_ROAD, AGENT_COLORS,
)
from components import (
    Position, Kinematics, Navigator, Identity, Sprite,
    ResidentTraits, Residence, Schedule, Vehicle,
)
from components.town import Point
from logic.kinematics import profile
from logic.parking import ParkingPool


def _mover(world: World, eid: int, kind: str, at: Point, base_speed: float,
           mode: str, height: float, heading: float = 0.0) -> Kinematics:
    prof = profile(kind)
    kin = Kinematics(kind=kind, speed=base_speed * prof["speed_mult"],
                     heading=heading, target_heading=heading)
    world.add(eid, Position(at[0], at[1], height))
    world.add(eid, kin)
    world.add(eid, Navigator(mode=mode))
    world.add(eid, Sprite(color=AGENT_COLORS.get(kind, (255, 255, 255)),
                          size=prof["footprint"],
                          layer=2 if kind == KIND_PEDESTRIAN else 1))
    return kin


def spawn_resident(world: World, key: str, name: str, home_lot_id: int,
                   at: Point, traits: ResidentTraits,
                   walk_speed: float = 10.0) -> int:
    eid = world.spawn()
    _mover(world, eid, KIND_PEDESTRIAN, at, walk_speed, NAV_DIRECTED,
           TERRAIN_LOT)
    world.add(eid, Identity(name=name, kind="resident"))
    world.add(eid, traits)
    world.add(eid, Residence(home_lot_id=home_lot_id, resident_key=key))
    world.add(eid, Schedule())
    return eid


def spawn_car(world: World, owner_eid: int, lot_id: int, pool: ParkingPool,
              base_speed: float) -> int | None:
    """Spawn a car parked in a free spot of *lot_id*, linked to its owner.

    Returns ``None`` (and spawns nothing) when the lot has no free spot.
    """
    if pool.free_count(lot_id) == 0:
        return None
    eid = world.spawn()
    spot = pool.reserve(lot_id, eid)
    _mover(world, eid, KIND_VEHICLE, (spot.x, spot.y), base_speed,
           NAV_DIRECTED, TERRAIN_ROAD, heading=spot.heading)
    owner = world.get(owner_eid, Identity)
    world.add(eid, Identity(name=f"{owner.name}'s car" if owner else "car",
                            kind="car"))
    world.add(eid, Vehicle(owner_id=owner_eid))
    res = world.get(owner_eid, Residence)
    if res is not None:
        res.car_id = eid
        res.has_car = True
    return eid


def spawn_roamer(world: World, kind: str, at: Point, base_speed: float,
                 name: str = "") -> int:
    """An agent that drives or walks to random road points forever."""
    eid = world.spawn()
    height = TERRAIN_LOT if kind == KIND_PEDESTRIAN else TERRAIN_ROAD
    _mover(world, eid, kind, at, base_speed, NAV_ROAM, height)
    world.add(eid, Identity(name=name or f"{kind} {eid}", kind=kind))
    if kind != KIND_PEDESTRIAN:
        # Roaming vehicles always have someone at the wheel
        world.add(eid, Vehicle(driver_id=eid))
    return eid
