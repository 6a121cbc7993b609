"""components.residents — Who a resident is and what they own.

Residents and their cars are separate entities that point at each other
by id only:

    Residence.car_id   → the car entity (or None)
    Vehicle.owner_id   → the resident entity
    Vehicle.driver_id  → whoever is driving right now (None = parked)
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class Lifestyle(str, Enum):
    SOCIAL_BUTTERFLY = "social_butterfly"
    HOMEBODY = "homebody"
    BALANCED = "balanced"
    WORKAHOLIC = "workaholic"


class ResidentState(str, Enum):
    """The single behaviour state of a resident.

    Scheduled activities use the first group; the second group are
    travel states entered by transitions.  See ``TRANSITIONS`` in
    ``simulation.schedule`` for which moves are legal.
    """
    SLEEPING = "sleeping"
    IDLE_HOME = "idle_home"
    WORKING = "working"
    SOCIALIZING = "socializing"
    WALKING_AROUND = "walking_around"
    SHOPPING = "shopping"
    EATING = "eating"
    AT_BAR = "at_bar"
    AT_CHURCH = "at_church"

    DRIVING = "driving"
    WALKING_HOME = "walking_home"
    LEAVING_TOWN = "leaving_town"
    OUT_OF_TOWN = "out_of_town"


@dataclass
class ResidentTraits:
    """Personality scalars (0–1 unless noted) consumed by the planner.

    ``wake_time`` / ``sleep_time`` are hours; ``work_start`` /
    ``work_end`` are ``None`` for residents without a job.
    """
    sociability: float = 0.5
    adventurous: float = 0.5
    routine_variation: float = 0.5   # hours of daily jitter (±)
    religiosity: float = 0.3
    drinking_habit: float = 0.3
    lifestyle: Lifestyle = Lifestyle.BALANCED
    wake_time: float = 7.0
    sleep_time: float = 23.0
    work_start: float | None = None
    work_end: float | None = None

    @property
    def has_job(self) -> bool:
        return self.work_start is not None and self.work_end is not None


@dataclass
class Residence:
    """Home lot, car ownership, and where the resident is right now."""
    home_lot_id: int = 0
    resident_key: str = ""          # stable id string ("res_12")
    car_id: int | None = None
    has_car: bool = False
    is_home: bool = True
    in_car: bool = False


@dataclass
class Vehicle:
    """A car.  ``driver_id`` is None while parked; parked cars never
    self-navigate."""
    owner_id: int | None = None
    driver_id: int | None = None

    @property
    def parked(self) -> bool:
        return self.driver_id is None
