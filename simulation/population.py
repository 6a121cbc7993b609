"""simulation/population.py — Seeds residents and their cars.

Households are placed on residential lots that are occupied, away or
(rarely) abandoned, mostly singles and couples, at most three per lot.
A resident who rolls car ownership only keeps it when the home lot has
a free parking spot; otherwise ownership is revoked for this session so
nobody is told to park where there is no room.
"""

from __future__ import annotations
import random
from typing import Sequence

from core.ecs import World
from core.tuning import get as _tun
from components import Lot, LotState, LotUsage
from logic.entity_factory import spawn_resident, spawn_car
from logic.geometry import random_point_in_polygon
from logic.parking import ParkingPool
from simulation.planner import random_traits


FIRST_NAMES = (
    "James", "Mary", "John", "Patricia", "Robert", "Jennifer", "Michael",
    "Linda", "William", "Barbara", "David", "Elizabeth", "Richard", "Susan",
    "Carlos", "Maria", "Jose", "Rosa", "Luis", "Carmen", "Miguel", "Sofia",
    "Diego", "Isabella", "Pedro", "Camila", "Juan", "Luna",
)
LAST_NAMES = (
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller",
    "Davis", "Rodriguez", "Martinez", "Hernandez", "Lopez", "Gonzalez",
    "Wilson", "Anderson", "Thomas", "Taylor", "Moore", "Jackson", "Martin",
    "Lee", "Perez", "Thompson", "White", "Harris", "Sanchez", "Clark",
)

_HABITABLE = (LotState.OCCUPIED, LotState.AWAY, LotState.ABANDONED)


def _household_size(rng: random.Random, remaining: int) -> int:
    roll = rng.random()
    if roll < 0.55:
        size = 1
    elif roll < 0.88:
        size = 2
    elif roll < 0.97:
        size = 3
    else:
        size = 4
    return min(remaining, size)


def populate(world: World, lots: Sequence[Lot], pool: ParkingPool,
             rng: random.Random, count: int) -> tuple[list[int], list[int]]:
    """Spawn up to *count* residents.  Returns ``(resident_ids, car_ids)``."""
    residents: list[int] = []
    cars: list[int] = []

    available = [lot for lot in lots
                 if lot.usage == LotUsage.RESIDENTIAL
                 and lot.state in _HABITABLE and lot.points]
    if not available:
        print("[POP] No habitable lots found")
        return residents, cars

    max_per_lot = _tun("population", "max_per_lot", 3)
    car_rate = _tun("population", "car_ownership", 0.6)
    walk_lo = _tun("population", "walk_speed_min", 8.0)
    walk_hi = _tun("population", "walk_speed_max", 12.0)
    car_lo = _tun("population", "car_speed_min", 40.0)
    car_hi = _tun("population", "car_speed_max", 60.0)

    occupancy: dict[int, int] = {}
    remaining = count
    failed = 0
    revoked = 0

    while remaining > 0 and available and failed < 50:
        idx = rng.randrange(len(available))
        lot = available[idx]
        current = occupancy.get(lot.id, 0)
        if current >= max_per_lot:
            available.pop(idx)
            failed += 1
            continue
        # Abandoned lots only get the occasional squatter
        if lot.state == LotState.ABANDONED and rng.random() < 0.9:
            failed += 1
            continue
        failed = 0

        size = min(_household_size(rng, remaining), max_per_lot - current)
        for _ in range(size):
            n = len(residents)
            key = f"res_{n}"
            name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
            at = random_point_in_polygon(lot.points, rng)
            eid = spawn_resident(world, key, name, lot.id, at,
                                 random_traits(rng),
                                 walk_speed=walk_lo + rng.random() * (walk_hi - walk_lo))
            residents.append(eid)
            if rng.random() < car_rate:
                car = spawn_car(world, eid, lot.id, pool,
                                car_lo + rng.random() * (car_hi - car_lo))
                if car is None:
                    revoked += 1
                else:
                    cars.append(car)
            remaining -= 1

        occupancy[lot.id] = current + size
        if occupancy[lot.id] >= max_per_lot:
            available.remove(lot)

    print(f"[POP] {len(residents)} residents, {len(cars)} cars "
          f"({revoked} car owners without parking)")
    return residents, cars
