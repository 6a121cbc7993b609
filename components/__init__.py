"""components — ECS component dataclasses, organised by domain.

Submodules
----------
spatial        Position, Kinematics, Navigator, Hidden
rendering      Identity, Sprite
town           RoadSegment, Lot, ParkingSpot, TownBounds, LotUsage, LotState
residents      ResidentTraits, Residence, Vehicle, Lifestyle, ResidentState
schedule       ScheduledActivity, DailyPlan, Schedule
resources      GameClock
dev_log        DevLog

All public names are re-exported here so callers can write
``from components import Position``.
"""

# ── Spatial ──────────────────────────────────────────────────────────
from components.spatial import Position, Kinematics, Navigator, Hidden

# ── Rendering ────────────────────────────────────────────────────────
from components.rendering import Identity, Sprite

# ── Town geometry ────────────────────────────────────────────────────
from components.town import (
    RoadSegment, Lot, ParkingSpot, TownBounds, LotUsage, LotState,
)

# ── Residents ────────────────────────────────────────────────────────
from components.residents import (
    ResidentTraits, Residence, Vehicle, Lifestyle, ResidentState,
)

# ── Schedule ─────────────────────────────────────────────────────────
from components.schedule import ScheduledActivity, DailyPlan, Schedule

# ── World resources / singletons ─────────────────────────────────────
from components.resources import GameClock
from components.dev_log import DevLog

__all__ = [
    # spatial
    "Position", "Kinematics", "Navigator", "Hidden",
    # rendering
    "Identity", "Sprite",
    # town
    "RoadSegment", "Lot", "ParkingSpot", "TownBounds", "LotUsage",
    "LotState",
    # residents
    "ResidentTraits", "Residence", "Vehicle", "Lifestyle", "ResidentState",
    # schedule
    "ScheduledActivity", "DailyPlan", "Schedule",
    # resources
    "GameClock", "DevLog",
]
