"""components.spatial — Position, kinematic state, and navigation intent.

All coordinates are plane units; speeds are units per simulated second.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from core.constants import TERRAIN_LOT, KIND_PEDESTRIAN, NAV_ROAM

Point = tuple[float, float]


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0
    height: float = TERRAIN_LOT   # implicit terrain height (road 1, lot 2)


@dataclass
class Kinematics:
    """Per-agent motion state, advanced by ``logic.kinematics``.

    ``kind`` selects the mover profile (pedestrian / vehicle / bus) from
    ``[kinematics.<kind>]`` in the tuning file, the only thing that
    differs between agent types.

    ``target`` is the single waypoint being driven toward; ``path`` is
    the queue behind it, consumed front-to-back by the dispatcher.  The
    controller itself never reads ``path``.

    ``speed_modifier`` is a per-tick throttle (0–1) that anyone may set
    before the controller runs; it resets to 1.0 after every step.

    ``trail`` and ``braking`` exist for the render layer only.
    """
    kind: str = KIND_PEDESTRIAN
    speed: float = 10.0             # nominal u/s
    current_speed: float = 0.0      # actual u/s
    heading: float = 0.0            # rad
    target_heading: float = 0.0     # rad
    speed_modifier: float = 1.0
    target: Point | None = None
    path: list[Point] = field(default_factory=list)
    trail: list[Point] = field(default_factory=list)
    braking: bool = False

    @property
    def idle(self) -> bool:
        return self.target is None and not self.path

    def clear_route(self) -> None:
        """Drop the current target and queued path (safe between ticks)."""
        self.target = None
        self.path.clear()


@dataclass
class Navigator:
    """How the dispatcher treats this agent once it runs out of path.

    ``mode``:
      ``"roam"``     — pick a random road point and drive/walk there.
      ``"directed"`` — only route when ``destination`` is set; the
                       dispatcher clears it after planning.
      ``"manual"``   — never plan; only promote ``path`` into ``target``.
    """
    mode: str = NAV_ROAM
    destination: Point | None = None
    last_source: str = ""


@dataclass
class Hidden:
    """Agent is off the map (inside a car, out of town).

    Hidden agents are skipped by the dispatcher and the controller.
    """
    reason: str = ""
