"""test_schedule.py — Daily planner and the resident schedule system.

Covers:
1. 1,000 random personalities always produce non-overlapping, ordered plans
2. Conflict resolution: higher priority wins, ties go to the earlier entry
3. Plan contents: fixed workplace, church day, bar cap
4. Schedule system: idle-at-home default, walking, driving and parking,
   lot occupancy, car-at-home snapping
5. Leaving town and coming back
6. Transition table rejects illegal moves

Run: python test_schedule.py
"""
from __future__ import annotations
import sys, traceback, random

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


from core import tuning
from core.constants import SECONDS_PER_HOUR
from core.events import EventBus
from core.town import parse_town
from components import (
    Position, Kinematics, Navigator, Hidden, Vehicle, Residence,
    ResidentTraits, ResidentState, Lifestyle, Schedule, ScheduledActivity,
    DailyPlan, Lot, LotUsage, LotState,
)
from logic.entity_factory import spawn_resident, spawn_car
from logic.geometry import point_in_polygon
from simulation.planner import (
    generate_day_plan, resolve_conflicts, random_traits, workplace_for,
)
from simulation.schedule import TRANSITIONS
from simulation.town_sim import TownSim

S = ResidentState


def rect(x0: float, y0: float, x1: float, y1: float) -> list[tuple[float, float]]:
    return [(x0, y0), (x1, y0), (x1, y1), (x0, y1)]


PLAN_LOTS = [
    Lot(1, rect(0, 0, 50, 50), LotUsage.RESIDENTIAL, LotState.OCCUPIED),
    Lot(2, rect(60, 0, 110, 50), LotUsage.RESIDENTIAL, LotState.OCCUPIED),
    Lot(3, rect(120, 0, 170, 50), LotUsage.COMMERCIAL),
    Lot(4, rect(180, 0, 230, 50), LotUsage.PUBLIC),
    Lot(5, rect(240, 0, 290, 50), LotUsage.BAR),
    Lot(6, rect(300, 0, 350, 50), LotUsage.CHURCH),
    Lot(7, rect(360, 0, 410, 50), LotUsage.COMMERCIAL),
]

# Home and work along one street, a bar across from work
TOWN = {
    "bounds": {"min_x": 0, "min_y": 0, "max_x": 400, "max_y": 300},
    "roads": [
        {"id": "west", "x": 0, "y": 90, "width": 200, "height": 20},
        {"id": "east", "x": 200, "y": 90, "width": 200, "height": 20},
    ],
    "lots": [
        {"id": 1, "usage": "residential", "state": "occupied",
         "points": rect(20, 120, 120, 200), "parking": [[110, 190, 0.0]]},
        {"id": 2, "usage": "commercial", "state": "empty",
         "points": rect(280, 120, 380, 200), "parking": [[370, 190, 0.0]]},
        {"id": 3, "usage": "bar", "state": "empty",
         "points": rect(280, 0, 380, 80)},
    ],
}


def make_sim(seed: int = 11) -> TownSim:
    tuning.override("schedule", "leave_town_chance", 0.0)
    return TownSim(parse_town(TOWN), seed=seed)


def add_resident(sim: TownSim, key: str, at, car: bool = False,
                 **traits) -> int:
    eid = spawn_resident(sim.world, key, key, 1, at, ResidentTraits(**traits))
    if car:
        spawn_car(sim.world, eid, 1, sim.pool, 40.0)
    return eid


def fix_plan(sim: TownSim, eid: int, *acts: ScheduledActivity):
    sim.world.get(eid, Schedule).plan = DailyPlan(sim.clock.day, list(acts))


def tick_until(sim: TownSim, cond, max_ticks: int = 3000) -> bool:
    for _ in range(max_ticks):
        sim.tick(1.0 / 30.0)
        if cond():
            return True
    return False


# ════════════════════════════════════════════════════════════════════════
#  TEST 1 — Plans never overlap
# ════════════════════════════════════════════════════════════════════════

def test_random_plans_never_overlap():
    """1,000 random trait sets"""
    rng = random.Random(1234)
    home = PLAN_LOTS[0]
    bad = []
    for i in range(1000):
        traits = random_traits(rng)
        plan = generate_day_plan(traits, f"res_{i}", home, PLAN_LOTS,
                                 day=i, day_of_week=i % 7, rng=rng)
        acts = plan.activities
        if not acts or acts[0].activity != S.SLEEPING or acts[0].start_hour != 0.0:
            bad.append((i, "does not open with sleep"))
        for a in acts:
            if not a.start_hour < a.end_hour <= 25.0:
                bad.append((i, f"bad interval {a}"))
        for a, b in zip(acts, acts[1:]):
            if a.start_hour > b.start_hour:
                bad.append((i, "out of order"))
            if a.end_hour > b.start_hour:
                bad.append((i, f"overlap {a.activity} / {b.activity}"))
    check(not bad, "Sorted, non-overlapping, within [0, 25]", f"{bad[:5]}")


# ════════════════════════════════════════════════════════════════════════
#  TEST 2 — Conflict resolution
# ════════════════════════════════════════════════════════════════════════

def test_higher_priority_trims_earlier_entry():
    """Priority 10 beats priority 3"""
    low = ScheduledActivity(S.SHOPPING, 10.0, 12.0, 3, 3)
    high = ScheduledActivity(S.SLEEPING, 11.0, 13.0, 1, 10)
    out = resolve_conflicts([high, low])
    check([(a.activity, a.start_hour, a.end_hour) for a in out]
          == [(S.SHOPPING, 10.0, 11.0), (S.SLEEPING, 11.0, 13.0)],
          "Low-priority entry trimmed to the start of the high one",
          f"got {out}")
    check(low.end_hour == 12.0, "Input not mutated")


def test_lower_priority_later_entry_dropped():
    """Priority 3 starting inside priority 10"""
    high = ScheduledActivity(S.SLEEPING, 10.0, 12.0, 1, 10)
    low = ScheduledActivity(S.SHOPPING, 11.0, 13.0, 3, 3)
    out = resolve_conflicts([low, high])
    check(out == [high], "Only the high-priority entry remains", f"got {out}")


def test_tie_keeps_first():
    """Equal priority: first accepted stays"""
    a = ScheduledActivity(S.EATING, 12.0, 13.0, 5, 4)
    b = ScheduledActivity(S.AT_BAR, 12.5, 14.0, 5, 4)
    out = resolve_conflicts([b, a])
    check(out == [a], "Earlier entry wins the tie", f"got {out}")


def test_zero_length_dropped():
    """Empty intervals are discarded"""
    z = ScheduledActivity(S.SLEEPING, 24.0, 24.0, 1, 10)
    a = ScheduledActivity(S.IDLE_HOME, 23.0, 24.0, 1, 6)
    check(resolve_conflicts([a, z]) == [a], "Zero-length sleep removed")


# ════════════════════════════════════════════════════════════════════════
#  TEST 3 — Plan contents
# ════════════════════════════════════════════════════════════════════════

def test_workplace_is_stable():
    """Same resident, same workplace"""
    w1 = workplace_for("res_17", PLAN_LOTS)
    w2 = workplace_for("res_17", list(PLAN_LOTS))
    check(w1 is w2 and w1.usage in (LotUsage.COMMERCIAL, LotUsage.PUBLIC),
          "Deterministic commercial/public workplace")
    h = sum(ord(c) for c in "res_17")
    jobs = [l for l in PLAN_LOTS if l.usage in (LotUsage.COMMERCIAL, LotUsage.PUBLIC)]
    check(w1 is jobs[h % len(jobs)], "Indexed by the key's character sum")
    check(workplace_for("res_17", PLAN_LOTS[:2]) is None,
          "No workplace without commercial/public lots")


def test_church_only_on_its_weekday():
    """Devout resident, no job"""
    traits = ResidentTraits(religiosity=1.0, routine_variation=0.0,
                            lifestyle=Lifestyle.HOMEBODY, sociability=0.0,
                            drinking_habit=0.0)
    sunday = generate_day_plan(traits, "res_1", PLAN_LOTS[0], PLAN_LOTS,
                               day=7, day_of_week=0, rng=random.Random(3))
    monday = generate_day_plan(traits, "res_1", PLAN_LOTS[0], PLAN_LOTS,
                               day=8, day_of_week=1, rng=random.Random(3))
    church = [a for a in sunday.activities if a.activity == S.AT_CHURCH]
    check(len(church) == 1 and church[0].target_lot == 6,
          "Church on Sunday at the church lot", f"{sunday.activities}")
    check(not any(a.activity == S.AT_CHURCH for a in monday.activities),
          "No church on Monday")

    lapsed = ResidentTraits(religiosity=0.3, routine_variation=0.0)
    plan = generate_day_plan(lapsed, "res_2", PLAN_LOTS[0], PLAN_LOTS,
                             day=7, day_of_week=0, rng=random.Random(3))
    check(not any(a.activity == S.AT_CHURCH for a in plan.activities),
          "Religiosity 0.3 stays home")


def test_work_entry_and_bar_cap():
    """Employed heavy drinker"""
    traits = ResidentTraits(routine_variation=0.0, work_start=9.0,
                            work_end=17.0, drinking_habit=1.0,
                            sociability=1.0, sleep_time=24.0)
    rng = random.Random(8)
    for day in range(50):
        plan = generate_day_plan(traits, "res_3", PLAN_LOTS[0], PLAN_LOTS,
                                 day=day, day_of_week=1, rng=rng)
        work = [a for a in plan.activities if a.activity == S.WORKING]
        if not work or work[0].target_lot != workplace_for("res_3", PLAN_LOTS).id:
            check(False, "Work block at the fixed workplace", f"{plan.activities}")
        for a in plan.activities:
            if a.activity == S.AT_BAR and a.end_hour > 25.0:
                check(False, "Bar visits end by 1 AM", f"{a}")
    ok("Work block at the fixed workplace")
    ok("Bar visits end by 1 AM")


# ════════════════════════════════════════════════════════════════════════
#  TEST 4 — Schedule system
# ════════════════════════════════════════════════════════════════════════

def test_new_plan_each_day():
    """Stale plan is regenerated"""
    try:
        sim = make_sim()
        eid = add_resident(sim, "res_0", (60, 150))
        sim.tick(1.0 / 30.0)
        sched = sim.world.get(eid, Schedule)
        check(sched.plan.day == sim.clock.day and sched.plan.activities,
              "Plan generated for today")
    finally:
        tuning.reload()


def test_empty_hour_idles_at_home():
    """No active entry means idle at home"""
    try:
        sim = make_sim()
        eid = add_resident(sim, "res_0", (60, 150))
        sched = sim.world.get(eid, Schedule)
        sched.state = sched.activity = S.WORKING
        sched.destination_lot = 2
        fix_plan(sim, eid)
        sim.tick(1.0 / 30.0)
        check(sched.activity == S.IDLE_HOME and sched.state == S.IDLE_HOME,
              "Resident at home goes idle", f"{sched.state}")

        away = add_resident(sim, "res_1", (330, 160))
        sched = sim.world.get(away, Schedule)
        sched.state = sched.activity = S.WORKING
        sched.destination_lot = 2
        fix_plan(sim, away)
        sim.tick(1.0 / 30.0)
        check(sched.state == S.WALKING_HOME, "Resident elsewhere walks home",
              f"{sched.state}")
        check(sim.world.get(away, Kinematics).target is not None,
              "Walk route assigned in the same tick")
    finally:
        tuning.reload()


def test_walk_to_work_without_car():
    """No car: walk"""
    try:
        sim = make_sim()
        eid = add_resident(sim, "res_0", (60, 150))
        fix_plan(sim, eid, ScheduledActivity(S.WORKING, 0.0, 24.0, 2, 8))
        sim.tick(1.0 / 30.0)
        sched = sim.world.get(eid, Schedule)
        check(sched.state == S.WORKING and sched.destination_lot == 2,
              "Working, headed for lot 2")
        kin = sim.world.get(eid, Kinematics)
        check(not kin.idle, "Walking route planned")
        check(sim.world.get(eid, Navigator).last_source == "graph",
              "Route came from the road graph")

        reached = tick_until(sim, lambda: kin.idle and point_in_polygon(
            sim.world.get(eid, Position).x, sim.world.get(eid, Position).y,
            sim.town.lot(2).points))
        check(reached, "Walked into the workplace")
    finally:
        tuning.reload()


def test_drive_park_and_walk_in():
    """Car owner drives to work, parks, walks in"""
    try:
        sim = make_sim()
        tuning.override("schedule", "drive_chance_long", 1.0)
        tuning.override("schedule", "wander_chance", 0.0)
        eid = add_resident(sim, "res_0", (60, 150), car=True, adventurous=0.0)
        res = sim.world.get(eid, Residence)
        car = res.car_id
        fix_plan(sim, eid, ScheduledActivity(S.WORKING, 0.0, 24.0, 2, 8))

        sim.tick(1.0 / 30.0)
        sched = sim.world.get(eid, Schedule)
        check(sched.state == S.DRIVING and sched.activity == S.WORKING,
              "Driving to work", f"{sched.state}")
        check(res.in_car and sim.world.has(eid, Hidden), "Driver hidden in car")
        check(sim.world.get(car, Vehicle).driver_id == eid, "Car has a driver")
        check(sim.pool.holder_spot(car)[0] == 2, "Spot reserved at work")
        check(sim.pool.free_count(1) == 1, "Home spot released")

        arrived = tick_until(sim, lambda: sched.state == S.WORKING)
        check(arrived, "Arrived and working")
        check(not res.in_car and not sim.world.has(eid, Hidden),
              "Driver got out")
        check(sim.world.get(car, Vehicle).parked, "Car left parked")
        check(sim.town.lot(1).state == LotState.AWAY, "Home lot marked away")
    finally:
        tuning.reload()


def test_car_returns_home_when_idle():
    """Car left elsewhere snaps back to the home spot"""
    try:
        sim = make_sim()
        eid = add_resident(sim, "res_0", (60, 150), car=True)
        car = sim.world.get(eid, Residence).car_id
        sched = sim.world.get(eid, Schedule)
        sched.state = sched.activity = S.IDLE_HOME
        sched.destination_lot = 1
        fix_plan(sim, eid, ScheduledActivity(S.IDLE_HOME, 0.0, 24.0, 1, 5))

        sim.pool.release_all(car)
        cpos = sim.world.get(car, Position)
        cpos.x, cpos.y = 390.0, 280.0
        sim.tick(1.0 / 30.0)
        check((cpos.x, cpos.y) == (110.0, 190.0), "Car back on the home spot",
              f"got ({cpos.x}, {cpos.y})")
        check(sim.pool.holder_spot(car)[0] == 1, "Home spot reserved again")
    finally:
        tuning.reload()


def test_idle_resident_wanders_inside_lot():
    """Idle at home with wander_chance 1"""
    try:
        sim = make_sim()
        start = (60.0, 150.0)
        eid = add_resident(sim, "res_0", start)
        sched = sim.world.get(eid, Schedule)
        sched.state = sched.activity = S.IDLE_HOME
        sched.destination_lot = 1
        fix_plan(sim, eid, ScheduledActivity(S.IDLE_HOME, 0.0, 24.0, 1, 5))
        kin = sim.world.get(eid, Kinematics)

        tuning.override("schedule", "wander_chance", 0.0)
        sim.schedule.update(sim.world)
        check(kin.idle, "No stroll at zero chance")

        tuning.override("schedule", "wander_chance", 1.0)
        sim.schedule.update(sim.world)
        check(kin.target is not None and kin.target != start,
              "Stroll target set", f"target={kin.target}")
        check(point_in_polygon(kin.target[0], kin.target[1],
                               sim.town.lot(1).points),
              "Stroll stays inside the home lot", f"target={kin.target}")
        check(sched.state == S.IDLE_HOME, "Still idle at home")
    finally:
        tuning.reload()


def test_despawn_releases_parking():
    """Removing a resident, then a car on its own"""
    try:
        sim = make_sim()
        eid = add_resident(sim, "res_0", (60, 150), car=True)
        car = sim.world.get(eid, Residence).car_id
        sim.residents.append(eid)
        sim.cars.append(car)
        check(sim.pool.holder_spot(car)[0] == 1, "Car holds the home spot")

        sim.despawn(eid)
        check(not sim.world.alive(eid) and not sim.world.alive(car),
              "Resident and car removed")
        check(sim.pool.free_count(1) == 1, "Home spot free again")
        check(eid not in sim.residents and car not in sim.cars,
              "Dropped from the roster")
        sim.tick(1.0 / 30.0)
        check(sim.world.get(eid, Position) is None, "Purged after the tick")
        check(not sim.world.alive(eid), "Still dead after the purge")

        other = add_resident(sim, "res_1", (60, 150), car=True)
        res = sim.world.get(other, Residence)
        car = res.car_id
        sim.despawn(car)
        check(sim.world.alive(other) and not sim.world.alive(car),
              "Only the car removed")
        check(not res.has_car and res.car_id is None, "Owner's car revoked")
        check(sim.pool.free_count(1) == 1, "Spot released with the car")
    finally:
        tuning.reload()


# ════════════════════════════════════════════════════════════════════════
#  TEST 5 — Leaving town
# ════════════════════════════════════════════════════════════════════════

def test_leave_town_and_return():
    """Daily trip out of town"""
    try:
        sim = make_sim()
        tuning.override("schedule", "leave_town_chance", 1.0)
        tuning.override("schedule", "wander_chance", 0.0)
        sim.clock.seconds_of_day = 10.5 * SECONDS_PER_HOUR
        eid = add_resident(sim, "res_0", (60, 150), car=True)
        res = sim.world.get(eid, Residence)
        car = res.car_id
        sched = sim.world.get(eid, Schedule)
        fix_plan(sim, eid, ScheduledActivity(S.IDLE_HOME, 0.0, 24.0, 1, 5))

        seen: list[str] = []
        bus = sim.world.res(EventBus)
        bus.subscribe("ResidentLeftTown", lambda ev: seen.append("left"))
        bus.subscribe("ResidentReturned", lambda ev: seen.append("back"))

        sim.tick(1.0 / 30.0)
        check(sched.state == S.LEAVING_TOWN and res.in_car,
              "Heading for the highway", f"{sched.state}")
        check(sim.pool.free_count(1) == 1, "Home spot released on departure")

        gone = tick_until(sim, lambda: sched.state == S.OUT_OF_TOWN)
        check(gone, "Reached the town edge")
        check(sim.world.has(eid, Hidden) and sim.world.has(car, Hidden),
              "Resident and car hidden")
        check(seen == ["left"], "ResidentLeftTown emitted", f"{seen}")
        away = sched.out_of_town_until - sim.clock.elapsed
        check(0 < away <= 8 * SECONDS_PER_HOUR, "Return time within 8 hours",
              f"{away / SECONDS_PER_HOUR:.2f} h")

        sched.out_of_town_until = sim.clock.elapsed
        sim.tick(1.0 / 30.0)
        check(sched.state == S.DRIVING and res.in_car, "Driving home",
              f"{sched.state}")
        check(not sim.world.has(car, Hidden), "Car back on the map")
        check(seen == ["left", "back"], "ResidentReturned emitted", f"{seen}")

        home = tick_until(sim, lambda: sched.state == S.IDLE_HOME and res.is_home)
        check(home, "Back home and idle")
        check(sim.pool.holder_spot(car)[0] == 1, "Car parked at home")
    finally:
        tuning.reload()


def test_leave_roll_waits_for_scheduled_state():
    """Walking home at 10:30 keeps the day's leave-town roll"""
    try:
        sim = make_sim()
        tuning.override("schedule", "leave_town_chance", 1.0)
        tuning.override("schedule", "wander_chance", 0.0)
        sim.clock.seconds_of_day = 10.5 * SECONDS_PER_HOUR
        eid = add_resident(sim, "res_0", (60, 100), car=True)
        sched = sim.world.get(eid, Schedule)
        sched.state = S.WALKING_HOME
        sched.activity = S.IDLE_HOME
        sched.destination_lot = 1
        fix_plan(sim, eid, ScheduledActivity(S.IDLE_HOME, 0.0, 24.0, 1, 5))
        kin = sim.world.get(eid, Kinematics)
        kin.target = (60.0, 150.0)

        sim.schedule.update(sim.world)
        check(sched.state == S.WALKING_HOME, "Still walking home",
              f"{sched.state}")
        check(sched.leave_checked_day != sim.clock.day,
              "Roll not spent while travelling")

        pos = sim.world.get(eid, Position)
        pos.x, pos.y = 60.0, 150.0
        kin.clear_route()
        sim.schedule.update(sim.world)
        check(sched.state == S.LEAVING_TOWN,
              "Leaves once home and idle", f"{sched.state}")
        check(sched.leave_checked_day == sim.clock.day, "Roll spent for today")
    finally:
        tuning.reload()


# ════════════════════════════════════════════════════════════════════════
#  TEST 6 — Transition table
# ════════════════════════════════════════════════════════════════════════

def test_illegal_transition_rejected():
    """LEAVING_TOWN only leads out of town"""
    try:
        sim = make_sim()
        eid = add_resident(sim, "res_0", (60, 150))
        sched = sim.world.get(eid, Schedule)
        sched.state = S.LEAVING_TOWN
        check(not sim.schedule._set_state(sim.world, eid, sched, S.WORKING),
              "LEAVING_TOWN → WORKING refused")
        check(sched.state == S.LEAVING_TOWN, "State unchanged")
        check(TRANSITIONS[S.OUT_OF_TOWN] == {S.DRIVING, S.WALKING_HOME},
              "Out of town only returns by driving or walking home")
        check(all(s in TRANSITIONS for s in ResidentState),
              "Every state has a transition entry")
    finally:
        tuning.reload()


def test_should_use_car_thresholds():
    """Walk short trips, usually drive long ones"""
    try:
        sim = make_sim()
        sys_ = sim.schedule
        check(not any(sys_.should_use_car(40.0, 0.0) for _ in range(200)),
              "Under half the threshold always walks")
        long = sum(sys_.should_use_car(1000.0, 0.0) for _ in range(2000))
        check(1500 < long < 1900, "Long trips drive about 85% of the time",
              f"{long}/2000")
        mid = sum(sys_.should_use_car(80.0, 0.0) for _ in range(2000))
        check(1000 < mid < 1400, "Medium trips drive about 60% of the time",
              f"{mid}/2000")
    finally:
        tuning.reload()


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
