"""components.schedule — Daily plans and per-resident schedule state.

  ScheduledActivity — one interval on the 24-hour clock
  DailyPlan         — a resident's sorted, conflict-free day
  Schedule          — runtime tracking attached to each resident
"""

from __future__ import annotations
from dataclasses import dataclass, field

from components.residents import ResidentState


@dataclass
class ScheduledActivity:
    """``[start_hour, end_hour)`` doing ``activity`` at ``target_lot``.

    ``end_hour`` may exceed 24 for activities running past midnight
    (bar visits are capped at 25 = 1 AM).  Higher ``priority`` wins
    when two activities overlap.
    """
    activity: ResidentState
    start_hour: float
    end_hour: float
    target_lot: int | None = None
    priority: int = 3

    def overlaps(self, other: "ScheduledActivity") -> bool:
        return (self.start_hour < other.end_hour
                and self.end_hour > other.start_hour)

    def contains(self, hour: float) -> bool:
        return self.start_hour <= hour < self.end_hour


@dataclass
class DailyPlan:
    """Activities for one simulated day, sorted by ``start_hour``."""
    day: int = -1
    activities: list[ScheduledActivity] = field(default_factory=list)

    def active_at(self, hour: float) -> ScheduledActivity | None:
        for act in self.activities:
            if act.contains(hour):
                return act
        return None


@dataclass
class Schedule:
    """Runtime schedule state for one resident.

    ``activity`` is the plan entry being carried out; ``state`` is what
    the resident is physically doing (the activity itself, or a travel
    state such as ``DRIVING``).  ``state`` only changes through
    ``simulation.schedule.TRANSITIONS``.

    ``plan`` is regenerated whenever ``plan.day`` differs from the
    current simulated day.  ``out_of_town_until`` is absolute sim
    seconds; ``None`` means the resident is in town.
    """
    state: ResidentState = ResidentState.SLEEPING
    activity: ResidentState = ResidentState.SLEEPING
    destination_lot: int | None = None
    activity_started: float = 0.0
    plan: DailyPlan = field(default_factory=DailyPlan)
    leaving_town: bool = False
    out_of_town_until: float | None = None
    leave_checked_day: int = -1
