"""test_kinematics.py — Per-tick motion controller.

Covers:
1. Arrival: an agent reaches its target exactly and stops
2. Rotate-then-move: speed stays capped while the heading is off
3. Throttle (speed_modifier), idle decay and the braking flag
4. kinematics_system skips hidden agents; trail spacing

Run: python test_kinematics.py
"""
from __future__ import annotations
import sys, traceback, math

passed = 0
failed = 0


def ok(label: str):
    global passed
    passed += 1
    print(f"  [PASS] {label}")


def fail(label: str, detail: str = ""):
    global failed
    failed += 1
    print(f"  [FAIL] {label}")
    if detail:
        for line in detail.strip().splitlines():
            print(f"         {line}")


def check(cond: bool, label: str, detail: str = ""):
    if cond:
        ok(label)
    else:
        fail(label, detail)
        raise AssertionError(f"{label} {detail}".strip())


from core.ecs import World
from core.constants import KIND_PEDESTRIAN, KIND_VEHICLE
from components import Position, Kinematics, Hidden
from logic.geometry import wrap_angle
from logic.kinematics import step_agent, kinematics_system, profile, direct_to


def run_until_idle(pos: Position, kin: Kinematics, dt: float = 0.05,
                   max_steps: int = 2000) -> int:
    for i in range(max_steps):
        if kin.target is None:
            return i
        step_agent(pos, kin, dt)
    return max_steps


# ════════════════════════════════════════════════════════════════════════
#  TEST 1 — Arrival
# ════════════════════════════════════════════════════════════════════════

def test_pedestrian_arrives_exactly():
    """Pedestrian walks 10 units east"""
    pos = Position(0.0, 0.0)
    kin = Kinematics(kind=KIND_PEDESTRIAN, speed=10.0, target=(10.0, 0.0))
    steps = run_until_idle(pos, kin)
    check(steps < 2000, "Target reached", f"steps={steps}")
    check((pos.x, pos.y) == (10.0, 0.0), "Snapped exactly onto the target",
          f"got ({pos.x}, {pos.y})")
    check(kin.current_speed == 0.0, "Speed zeroed on arrival")


def test_long_walk_closes_in_every_tick():
    """Pedestrian 100 units away at speed 10, already facing the target"""
    pos = Position(0.0, 0.0)
    kin = Kinematics(kind=KIND_PEDESTRIAN, speed=10.0, heading=0.0,
                     target=(100.0, 0.0))
    prev = math.hypot(100.0 - pos.x, -pos.y)
    steps = 0
    while kin.target is not None and steps < 2000:
        step_agent(pos, kin, 0.05)
        steps += 1
        d = math.hypot(100.0 - pos.x, -pos.y)
        if d >= prev:
            check(False, "Distance shrinks on every tick",
                  f"step {steps}: {d:.4f} >= {prev:.4f}")
        prev = d
    ok("Distance shrinks on every tick")
    check(kin.target is None, "Target reached", f"steps={steps}")
    check((pos.x, pos.y) == (100.0, 0.0), "Snapped exactly onto the target",
          f"got ({pos.x}, {pos.y})")
    check(steps > 190, "Took about ten seconds at walking speed",
          f"steps={steps}")


def test_arrival_inside_tolerance():
    """Already within arrive_distance"""
    eps = profile(KIND_PEDESTRIAN)["arrive_distance"]
    pos = Position(eps * 0.6, 0.0)
    kin = Kinematics(kind=KIND_PEDESTRIAN, target=(0.0, 0.0))
    step_agent(pos, kin, 0.05)
    check(kin.target is None, "Target cleared in one step")
    check((pos.x, pos.y) == (0.0, 0.0), "Position snapped")


def test_vehicle_uses_loose_tolerance():
    """Vehicles arrive within their wider tolerance"""
    ped = profile(KIND_PEDESTRIAN)["arrive_distance"]
    car = profile(KIND_VEHICLE)["arrive_distance"]
    check(car > ped, "Vehicle tolerance is looser than pedestrian")
    pos = Position(0.0, 0.0)
    kin = Kinematics(kind=KIND_VEHICLE, speed=40.0, target=(0.0, car * 0.9))
    step_agent(pos, kin, 0.05)
    check(kin.target is None, "Vehicle snaps from inside its tolerance")


def test_path_is_not_consumed():
    """The controller leaves path alone"""
    pos = Position(0.0, 0.0)
    kin = Kinematics(target=(0.2, 0.0), path=[(50.0, 0.0)])
    step_agent(pos, kin, 0.05)
    check(kin.target is None, "Arrived at target")
    check(kin.path == [(50.0, 0.0)], "Queued path untouched")


# ════════════════════════════════════════════════════════════════════════
#  TEST 2 — Rotate then move
# ════════════════════════════════════════════════════════════════════════

def test_turns_before_moving():
    """Vehicle facing east told to go north"""
    pos = Position(0.0, 0.0)
    kin = Kinematics(kind=KIND_VEHICLE, speed=40.0, heading=0.0,
                     current_speed=40.0, target=(0.0, -200.0))
    cap = kin.speed * 0.1
    capped_steps = 0
    for _ in range(200):
        err = abs(wrap_angle(math.atan2(-200.0 - pos.y, -pos.x) - kin.heading))
        step_agent(pos, kin, 0.05)
        if err > 0.5:
            if kin.current_speed > cap + 1e-9:
                check(False, "Speed capped while turning",
                      f"speed={kin.current_speed:.2f} err={err:.2f}")
            capped_steps += 1
        if kin.target is None:
            break
    check(capped_steps > 0, "Agent spent steps turning", f"{capped_steps}")
    check(abs(pos.x) < 5.0, "Barely drifted sideways while turning",
          f"x={pos.x:.2f}")
    check(kin.target is None and (pos.x, pos.y) == (0.0, -200.0),
          "Reached the target after turning")


def test_heading_converges():
    """Heading swings to face the target"""
    pos = Position(0.0, 0.0)
    kin = Kinematics(kind=KIND_PEDESTRIAN, heading=math.pi, target=(100.0, 0.0))
    for _ in range(30):
        step_agent(pos, kin, 0.05)
    check(abs(wrap_angle(kin.heading)) < 0.05, "Now facing east",
          f"heading={kin.heading:.3f}")
    check(kin.target_heading == 0.0, "target_heading points at the target")


# ════════════════════════════════════════════════════════════════════════
#  TEST 3 — Throttle, idle decay, braking
# ════════════════════════════════════════════════════════════════════════

def test_speed_modifier_throttles_and_resets():
    """speed_modifier 0 holds the agent still for one tick"""
    pos = Position(0.0, 0.0)
    kin = Kinematics(speed=10.0, target=(50.0, 0.0), speed_modifier=0.0)
    moved = step_agent(pos, kin, 0.1)
    check(moved == 0.0, "No movement at zero throttle")
    check(kin.speed_modifier == 1.0, "Modifier reset to 1 after the step")
    moved = step_agent(pos, kin, 0.1)
    check(moved > 0.0, "Moves again next tick")


def test_idle_decay_and_braking():
    """No target: speed decays"""
    pos = Position(0.0, 0.0)
    kin = Kinematics(speed=10.0, current_speed=10.0)
    step_agent(pos, kin, 0.1)
    check(math.isclose(kin.current_speed, 7.0),
          "Decelerates by speed x decel x dt", f"got {kin.current_speed}")
    check(kin.braking, "Braking flag set while slowing")
    check((pos.x, pos.y) == (0.0, 0.0), "Idle agent does not move")
    for _ in range(10):
        step_agent(pos, kin, 0.1)
    check(kin.current_speed == 0.0 and not kin.braking,
          "Comes to rest and stops braking")


def test_direct_to_replaces_route():
    """direct_to drops the queued path"""
    kin = Kinematics(target=(1.0, 1.0), path=[(2.0, 2.0), (3.0, 3.0)])
    direct_to(kin, (9.0, 9.0))
    check(kin.target == (9.0, 9.0) and kin.path == [], "Single direct target")


# ════════════════════════════════════════════════════════════════════════
#  TEST 4 — System loop
# ════════════════════════════════════════════════════════════════════════

def test_system_skips_hidden():
    """Hidden agents are frozen"""
    world = World()
    a = world.spawn()
    world.add(a, Position(0.0, 0.0))
    world.add(a, Kinematics(target=(50.0, 0.0)))
    b = world.spawn()
    world.add(b, Position(0.0, 0.0))
    world.add(b, Kinematics(target=(50.0, 0.0)))
    world.add(b, Hidden("in_car"))

    for _ in range(20):
        kinematics_system(world, 0.1)
    check(world.get(a, Position).x > 0.0, "Visible agent moved")
    check(world.get(b, Position).x == 0.0, "Hidden agent did not move")


def test_trail_spacing():
    """Trail points are spaced out and bounded"""
    pos = Position(0.0, 0.0)
    kin = Kinematics(speed=10.0, target=(1000.0, 0.0))
    for _ in range(600):
        step_agent(pos, kin, 0.1)
    check(0 < len(kin.trail) <= 50, "Trail length bounded",
          f"len={len(kin.trail)}")
    gaps = [b[0] - a[0] for a, b in zip(kin.trail, kin.trail[1:])]
    check(all(g > 5.0 for g in gaps), "Consecutive points more than 5 apart")


# ════════════════════════════════════════════════════════════════════════
#  Runner
# ════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    for name, fn in list(globals().items()):
        if name.startswith("test_") and callable(fn):
            print(f"\n=== {fn.__doc__ or name} ===")
            try:
                fn()
            except AssertionError:
                pass
            except Exception:
                fail(name, traceback.format_exc())

    print(f"\n{'═' * 50}")
    print(f"  Results: {passed} passed, {failed} failed")
    print(f"{'═' * 50}")
    sys.exit(1 if failed else 0)
