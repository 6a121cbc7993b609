"""logic/kinematics.py — Per-tick motion controller.

Turns a single ``Kinematics.target`` into smooth translation and
rotation.  Every agent is stepped synchronously and completely inside
one call; there is no partial update.

States
------
Idle        no target — current speed decays toward zero.
Turning     heading error > ``facing_threshold`` — speed is capped at
            ``turn_speed_frac`` × nominal while the heading swings round.
Advancing   heading within threshold — accelerate toward
            ``speed × clamp(speed_modifier, 0, 1)`` along the straight
            line to the target.
Arrived     within the profile's ``arrive_distance`` — snap exactly onto
            the target, clear it, zero the speed so the next waypoint
            starts with a fresh turn and re-acceleration.

Turning before moving keeps agents on the streets: they stop at a
corner, face down the new street, then drive.

The controller never reads ``Kinematics.path``; promoting the next
waypoint into ``target`` is the dispatcher's job (``logic.traffic``).

Mover profiles
--------------
Pedestrians, vehicles and buses differ only by the numbers in
``[kinematics.<kind>]``:

    speed_mult       nominal speed multiplier applied at spawn
    arrive_distance  snap tolerance (tight for pedestrians)
    turn_rate        heading convergence per second
    footprint        size on the plane (render only)
"""

from __future__ import annotations
import math

from core.ecs import World
from core.constants import KIND_PEDESTRIAN, KIND_VEHICLE, KIND_BUS
from core.tuning import get as _tun
from components.spatial import Position, Kinematics, Hidden
from components.town import Point
from logic.geometry import wrap_angle


_PROFILE_DEFAULTS: dict[str, dict[str, float]] = {
    KIND_PEDESTRIAN: {"speed_mult": 1.0, "arrive_distance": 0.5,
                      "turn_rate": 10.0, "footprint": 4.0},
    KIND_VEHICLE:    {"speed_mult": 2.0, "arrive_distance": 3.0,
                      "turn_rate": 2.5, "footprint": 11.2},
    KIND_BUS:        {"speed_mult": 1.4, "arrive_distance": 4.0,
                      "turn_rate": 1.8, "footprint": 16.0},
}


def profile(kind: str) -> dict[str, float]:
    """Tuned constants for one mover kind (unknown kinds walk)."""
    defaults = _PROFILE_DEFAULTS.get(kind, _PROFILE_DEFAULTS[KIND_PEDESTRIAN])
    sect = f"kinematics.{kind}"
    return {k: _tun(sect, k, v) for k, v in defaults.items()}


def direct_to(kin: Kinematics, point: Point) -> None:
    """Replace the route with a single direct target."""
    kin.path.clear()
    kin.target = point


# ── Controller ───────────────────────────────────────────────────────

def step_agent(pos: Position, kin: Kinematics, dt: float) -> float:
    """Advance one agent by *dt* seconds.  Returns distance travelled."""
    prof = profile(kin.kind)
    facing = _tun("kinematics", "facing_threshold", 0.5)
    turn_frac = _tun("kinematics", "turn_speed_frac", 0.1)
    accel = _tun("kinematics", "accel_mult", 2.0)
    decel = _tun("kinematics", "decel_mult", 3.0)

    prev_speed = kin.current_speed
    moved = 0.0

    if kin.target is None:
        kin.current_speed = max(0.0, kin.current_speed - kin.speed * decel * dt)
    else:
        _record_trail(pos, kin)
        tx, ty = kin.target
        dx = tx - pos.x
        dy = ty - pos.y
        d = math.hypot(dx, dy)

        if d < prof["arrive_distance"]:
            _arrive(pos, kin)
        else:
            kin.target_heading = math.atan2(dy, dx)
            err = wrap_angle(kin.target_heading - kin.heading)
            kin.heading = wrap_angle(
                kin.heading + err * min(1.0, prof["turn_rate"] * dt))

            desired = kin.speed * max(0.0, min(1.0, kin.speed_modifier))
            if abs(err) > facing:
                cap = kin.speed * turn_frac
                desired = min(desired, cap)
                kin.current_speed = min(kin.current_speed, cap)

            if kin.current_speed < desired:
                kin.current_speed = min(desired,
                                        kin.current_speed + kin.speed * accel * dt)
            else:
                kin.current_speed = max(desired,
                                        kin.current_speed - kin.speed * decel * dt)

            moved = min(d, kin.current_speed * dt)
            if moved > 0:
                pos.x += dx / d * moved
                pos.y += dy / d * moved
            if d - moved < prof["arrive_distance"]:
                _arrive(pos, kin)

    kin.braking = kin.current_speed < prev_speed - 0.01
    kin.speed_modifier = 1.0
    return moved


def _arrive(pos: Position, kin: Kinematics) -> None:
    pos.x, pos.y = kin.target
    kin.target = None
    kin.current_speed = 0.0


def _record_trail(pos: Position, kin: Kinematics) -> None:
    spacing = _tun("kinematics", "trail_spacing", 5.0)
    max_len = _tun("kinematics", "trail_length", 50)
    if kin.trail:
        lx, ly = kin.trail[-1]
        if math.hypot(pos.x - lx, pos.y - ly) <= spacing:
            return
    kin.trail.append((pos.x, pos.y))
    if len(kin.trail) > max_len:
        del kin.trail[:len(kin.trail) - max_len]


def kinematics_system(world: World, dt: float) -> None:
    """Step every visible agent.  Runs after the dispatcher each tick."""
    for eid, pos, kin in world.query(Position, Kinematics):
        if world.has(eid, Hidden):
            continue
        step_agent(pos, kin, dt)
