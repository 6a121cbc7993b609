"""simulation/schedule.py — Runs each resident's daily plan.

``ResidentScheduleSystem.update`` is called once per tick, after the
clock and before the dispatcher.  Per resident:

1. Plan refresh — a new ``DailyPlan`` whenever the cached day differs.
2. Out of town — skip until the return time, then re-enter at a highway
   entry point and drive home.
3. Leaving town — once the car reaches the exit, hide car and driver.
4. Car arrival — the driver gets out at the parking place and walks
   into the destination lot.
5. Activity lookup — the plan entry containing the current hour, or
   "idle at home" when none does.  A change of activity or target lot
   triggers a transition: walk or drive there, or head home.
6. Idle wander — a small per-tick chance of strolling to another point
   inside the current lot so nobody looks frozen.

Residents have exactly one behaviour state (``Schedule.state``); every
change goes through ``TRANSITIONS``.

Residence lots flip between ``occupied`` and ``away`` as their
residents come and go.
"""

from __future__ import annotations
import math
import random
from typing import Sequence

from core.ecs import World
from core.constants import SECONDS_PER_HOUR, TERRAIN_LOT
from core.events import (
    EventBus, ActivityChanged, ResidentLeftTown, ResidentReturned,
)
from core.tuning import get as _tun
from components import (
    Position, Kinematics, Navigator, Hidden, Identity, Vehicle,
    Residence, ResidentTraits, ResidentState, Schedule, GameClock, DevLog,
    Lot, LotState, TownBounds,
)
from components.town import Point
from logic.geometry import (
    bbox, centroid, point_in_polygon, random_point_in_polygon,
)
from logic.kinematics import direct_to
from logic.parking import ParkingPool
from logic.traffic import TrafficSystem, request_destination
from simulation.planner import generate_day_plan


S = ResidentState

# ── State machine ────────────────────────────────────────────────────

SCHEDULED = frozenset({
    S.SLEEPING, S.IDLE_HOME, S.WORKING, S.SOCIALIZING, S.WALKING_AROUND,
    S.SHOPPING, S.EATING, S.AT_BAR, S.AT_CHURCH,
})
_IN_TOWN = SCHEDULED | {S.DRIVING, S.WALKING_HOME, S.LEAVING_TOWN}

TRANSITIONS: dict[ResidentState, frozenset[ResidentState]] = {
    **{s: _IN_TOWN for s in SCHEDULED},
    S.DRIVING:      _IN_TOWN,
    S.WALKING_HOME: _IN_TOWN,
    S.LEAVING_TOWN: frozenset({S.OUT_OF_TOWN}),
    S.OUT_OF_TOWN:  frozenset({S.DRIVING, S.WALKING_HOME}),
}

_WANDER_STATES = (S.WALKING_AROUND, S.IDLE_HOME, S.SOCIALIZING)


class ResidentScheduleSystem:
    def __init__(self, lots: Sequence[Lot], traffic: TrafficSystem,
                 rng: random.Random, bounds: TownBounds):
        self.lots = list(lots)
        self._by_id: dict[int, Lot] = {lot.id: lot for lot in self.lots}
        self.traffic = traffic
        self.rng = rng
        self.bounds = bounds
        self._announced = False
        self._plan_logs = 0

    # ── Tick ─────────────────────────────────────────────────────────

    def update(self, world: World) -> None:
        clock = world.res(GameClock)
        if clock is None:
            return
        if not self._announced:
            n = world.count(Schedule)
            print(f"[SCHEDULE] Active with {n} residents, day {clock.day}, "
                  f"hour {clock.hour:.1f}")
            self._announced = True

        home_occupied: set[int] = set()
        for eid, res, sched, traits, pos, kin in world.query(
                Residence, Schedule, ResidentTraits, Position, Kinematics):
            self._update_one(world, clock, eid, res, sched, traits, pos, kin)
            if res.is_home:
                home_occupied.add(res.home_lot_id)

        self._update_lot_states(world, home_occupied)

    def _update_one(self, world: World, clock: GameClock, eid: int,
                    res: Residence, sched: Schedule, traits: ResidentTraits,
                    pos: Position, kin: Kinematics) -> None:
        home = self._by_id.get(res.home_lot_id)
        if home is None:
            return

        car = res.car_id
        car_pos = world.get(car, Position)
        car_kin = world.get(car, Kinematics)
        veh = world.get(car, Vehicle)

        if res.in_car and car_pos is not None:
            pos.x, pos.y = car_pos.x, car_pos.y

        if (veh is not None and veh.parked and not res.in_car
                and sched.state == S.IDLE_HOME
                and not world.has(car, Hidden)):
            self._ensure_car_at_home(world, car, car_pos, car_kin, home)

        if sched.plan.day != clock.day:
            self._refresh_plan(world, eid, res, sched, traits, home, clock)

        # Out of town
        if sched.out_of_town_until is not None:
            if clock.elapsed < sched.out_of_town_until:
                return
            self._return_from_town(world, clock, eid, res, sched, pos, kin)
            return

        # Driving to the highway exit
        if sched.leaving_town:
            if res.in_car and car_kin is not None and car_kin.idle:
                self._exit_town(world, clock, eid, res, sched)
            return

        # Car reached its parking place
        if (res.in_car and car_kin is not None and car_kin.idle
                and sched.destination_lot is not None):
            self._arrive_by_car(world, eid, res, sched, pos, kin, home)

        # Walked all the way home
        if sched.state == S.WALKING_HOME and not res.in_car and kin.idle:
            if point_in_polygon(pos.x, pos.y, home.points):
                self._set_state(world, eid, sched, sched.activity)

        res.is_home = (not res.in_car
                       and point_in_polygon(pos.x, pos.y, home.points))

        if self._maybe_leave_town(world, clock, eid, res, sched, pos, kin):
            return

        self._update_activity(world, clock, eid, res, sched, traits,
                              pos, kin, home)

    # ── Plans ────────────────────────────────────────────────────────

    def _refresh_plan(self, world, eid, res, sched, traits, home, clock):
        sched.plan = generate_day_plan(traits, res.resident_key, home,
                                       self.lots, clock.day,
                                       clock.day_of_week, self.rng)
        if self._plan_logs < 3:
            acts = sched.plan.activities
            bars = sum(1 for a in acts if a.activity == S.AT_BAR)
            church = sum(1 for a in acts if a.activity == S.AT_CHURCH)
            print(f"[SCHEDULE] Plan for {res.resident_key} (day {clock.day}): "
                  f"{len(acts)} activities, {bars} bar, {church} church")
            self._plan_logs += 1
        self._log(world, eid, "schedule",
                  f"new plan, {len(sched.plan.activities)} activities",
                  clock.elapsed)

    def _update_activity(self, world, clock, eid, res, sched, traits,
                         pos, kin, home) -> None:
        entry = sched.plan.active_at(clock.hour)
        if entry is None:
            if sched.activity != S.IDLE_HOME and sched.state != S.WALKING_HOME:
                self._transition(world, clock, eid, res, sched, traits,
                                 pos, kin, home, S.IDLE_HOME, home.id)
            return

        if (entry.activity != sched.activity
                or entry.target_lot != sched.destination_lot):
            self._transition(world, clock, eid, res, sched, traits,
                             pos, kin, home, entry.activity, entry.target_lot)

        if (not res.in_car and kin.idle and sched.state in _WANDER_STATES
                and self.rng.random() < _tun("schedule", "wander_chance", 0.02)):
            lot = self._by_id.get(sched.destination_lot) or home
            if point_in_polygon(pos.x, pos.y, lot.points):
                direct_to(kin, random_point_in_polygon(lot.points, self.rng))

    def _transition(self, world, clock, eid, res, sched, traits, pos, kin,
                    home: Lot, activity: ResidentState,
                    lot_id: int | None) -> None:
        previous = sched.activity
        sched.activity = activity
        sched.destination_lot = lot_id
        sched.activity_started = clock.elapsed
        travel = ""

        target = self._by_id.get(lot_id)
        if target is not None and target.id != home.id:
            here = self._lot_at(pos.x, pos.y)
            if here is None or here.id != target.id:
                if self._drive(world, eid, res, traits, pos, target):
                    self._set_state(world, eid, sched, S.DRIVING)
                    travel = "drive"
                else:
                    self._walk_to(world, eid, kin, target)
                    self._set_state(world, eid, sched, activity)
                    travel = "walk"
            else:
                self._set_state(world, eid, sched, activity)
        elif not res.is_home and (target is not None
                                  or activity in (S.SLEEPING, S.IDLE_HOME)):
            self._go_home(world, eid, res, sched, pos, kin, home)
            travel = "home"
        else:
            self._set_state(world, eid, sched, activity)

        bus = world.res(EventBus)
        if bus is not None:
            bus.emit(ActivityChanged(eid=eid, activity=activity.value,
                                     previous=previous.value, lot_id=lot_id,
                                     hour=clock.hour, travel=travel))
        self._log(world, eid, "schedule",
                  f"{previous.value} → {activity.value}"
                  + (f" ({travel})" if travel else ""),
                  clock.elapsed, details={"lot": lot_id})

    def _set_state(self, world: World, eid: int, sched: Schedule,
                   new: ResidentState) -> bool:
        if new == sched.state:
            return True
        if new not in TRANSITIONS[sched.state]:
            print(f"[SCHEDULE] Illegal transition for {eid}: "
                  f"{sched.state.value} → {new.value}")
            return False
        sched.state = new
        return True

    # ── Travel ───────────────────────────────────────────────────────

    def should_use_car(self, dist: float, adventurous: float) -> bool:
        """Short trips walk, medium trips usually drive, long ones mostly do."""
        threshold = (_tun("schedule", "walk_threshold_base", 100.0)
                     + adventurous * _tun("schedule", "walk_threshold_adventure", 200.0))
        if dist < threshold * 0.5:
            return False
        if dist < threshold:
            return self.rng.random() < _tun("schedule", "drive_chance_medium", 0.6)
        return self.rng.random() < _tun("schedule", "drive_chance_long", 0.85)

    def _drive(self, world, eid, res, traits, pos, target: Lot) -> bool:
        """Try to start a drive to *target*.  False means walk instead."""
        car = res.car_id
        car_pos = world.get(car, Position)
        if not res.has_car or car_pos is None or world.has(car, Hidden):
            return False
        if not res.in_car:
            reach = _tun("schedule", "car_reach", 80.0)
            if math.hypot(car_pos.x - pos.x, car_pos.y - pos.y) > reach:
                return False
            tx, ty = centroid(target.points)
            if not self.should_use_car(math.hypot(tx - pos.x, ty - pos.y),
                                       traits.adventurous):
                return False
            self._enter_car(world, eid, res)
        if self.traffic.vehicle_path_to(world, car, target) is None:
            self._exit_car(world, eid, res)
            return False
        return True

    def _walk_to(self, world, eid, kin, lot: Lot) -> None:
        nav = world.get(eid, Navigator)
        point = random_point_in_polygon(lot.points, self.rng)
        if nav is not None:
            request_destination(kin, nav, point)
        else:
            direct_to(kin, point)

    def _go_home(self, world, eid, res, sched, pos, kin, home: Lot) -> None:
        if res.in_car:
            if self.traffic.vehicle_path_to(world, res.car_id, home) is not None:
                self._set_state(world, eid, sched, S.DRIVING)
                return
            self._exit_car(world, eid, res)
        self._walk_to(world, eid, kin, home)
        self._set_state(world, eid, sched, S.WALKING_HOME)

    def _enter_car(self, world: World, eid: int, res: Residence) -> None:
        veh = world.get(res.car_id, Vehicle)
        if veh is None or res.in_car:
            return
        kin = world.get(eid, Kinematics)
        if kin is not None:
            kin.clear_route()
        res.in_car = True
        veh.driver_id = eid
        world.add(eid, Hidden("in_car"))
        car_pos = world.get(res.car_id, Position)
        pos = world.get(eid, Position)
        if car_pos is not None and pos is not None:
            pos.x, pos.y = car_pos.x, car_pos.y

    def _exit_car(self, world: World, eid: int, res: Residence) -> None:
        if not res.in_car:
            return
        res.in_car = False
        world.remove(eid, Hidden)
        veh = world.get(res.car_id, Vehicle)
        if veh is not None:
            veh.driver_id = None
        car_pos = world.get(res.car_id, Position)
        pos = world.get(eid, Position)
        if car_pos is not None and pos is not None:
            pos.x = car_pos.x + _tun("schedule", "exit_offset", 10.0)
            pos.y = car_pos.y
            pos.height = TERRAIN_LOT

    def _arrive_by_car(self, world, eid, res, sched, pos, kin, home) -> None:
        self._exit_car(world, eid, res)
        lot = self._by_id.get(sched.destination_lot) or home
        direct_to(kin, random_point_in_polygon(lot.points, self.rng))
        self._set_state(world, eid, sched,
                        S.WALKING_HOME if lot.id == home.id else sched.activity)

    def _ensure_car_at_home(self, world, car: int, car_pos: Position,
                            car_kin: Kinematics, home: Lot) -> None:
        """Bring a car left elsewhere back to its owner's lot."""
        if car_pos is None or not home.points:
            return
        min_x, min_y, max_x, max_y = bbox(home.points)
        if min_x <= car_pos.x <= max_x and min_y <= car_pos.y <= max_y:
            return
        pool = world.res(ParkingPool)
        if pool is None:
            return
        pool.release_all(car)
        spot = pool.reserve(home.id, car) or pool.street_spot(home.id)
        if spot is None:
            return
        car_pos.x, car_pos.y = spot.x, spot.y
        if car_kin is not None:
            car_kin.clear_route()
            car_kin.heading = car_kin.target_heading = spot.heading
            car_kin.current_speed = 0.0
        self._log(world, car, "parking", f"car returned home to lot {home.id}")

    # ── Leaving / returning ──────────────────────────────────────────

    def _maybe_leave_town(self, world, clock, eid, res, sched, pos, kin) -> bool:
        if not res.has_car or sched.leave_checked_day == clock.day:
            return False
        if clock.hour < _tun("schedule", "leave_town_hour", 10.0):
            return False
        if sched.state not in SCHEDULED:
            return False
        sched.leave_checked_day = clock.day
        if self.rng.random() >= _tun("schedule", "leave_town_chance", 0.05):
            return False

        car = res.car_id
        car_pos = world.get(car, Position)
        car_kin = world.get(car, Kinematics)
        if car_pos is None or car_kin is None or world.has(car, Hidden):
            return False
        if math.hypot(car_pos.x - pos.x, car_pos.y - pos.y) > _tun(
                "schedule", "car_reach", 80.0):
            return False

        self._enter_car(world, eid, res)
        pool = world.res(ParkingPool)
        if pool is not None:
            pool.release_all(car)
        exit_point = self.highway_point()
        path, _src = self.traffic.plan_route(world, car,
                                             (car_pos.x, car_pos.y), exit_point)
        car_kin.path = path
        car_kin.target = None
        sched.leaving_town = True
        sched.destination_lot = None
        self._set_state(world, eid, sched, S.LEAVING_TOWN)
        print(f"[TOWN] {res.resident_key} is leaving town")
        self._log(world, eid, "town", "leaving town", clock.elapsed,
                  details={"exit": exit_point})
        return True

    def _exit_town(self, world, clock, eid, res, sched) -> None:
        car = res.car_id
        veh = world.get(car, Vehicle)
        if veh is not None:
            veh.driver_id = None
        res.in_car = False
        res.is_home = False
        world.add(car, Hidden("out_of_town"))
        world.add(eid, Hidden("out_of_town"))
        lo = _tun("schedule", "away_hours_min", 2.0)
        hi = _tun("schedule", "away_hours_max", 8.0)
        sched.out_of_town_until = (clock.elapsed
                                   + (lo + self.rng.random() * (hi - lo))
                                   * SECONDS_PER_HOUR)
        self._set_state(world, eid, sched, S.OUT_OF_TOWN)
        bus = world.res(EventBus)
        if bus is not None:
            bus.emit(ResidentLeftTown(eid=eid, car_eid=car,
                                      return_at=sched.out_of_town_until))
        self._log(world, eid, "town", "left town", clock.elapsed)

    def _return_from_town(self, world, clock, eid, res, sched, pos, kin) -> None:
        entry = self.highway_point()
        sched.out_of_town_until = None
        sched.leaving_town = False
        home = self._by_id[res.home_lot_id]

        car = res.car_id
        car_pos = world.get(car, Position)
        world.remove(eid, Hidden)
        pos.x, pos.y = entry
        if car_pos is not None:
            world.remove(car, Hidden)
            car_pos.x, car_pos.y = entry

        sched.activity = S.IDLE_HOME
        sched.destination_lot = home.id
        if car_pos is not None:
            self._enter_car(world, eid, res)
        self._go_home(world, eid, res, sched, pos, kin, home)

        bus = world.res(EventBus)
        if bus is not None:
            bus.emit(ResidentReturned(eid=eid, car_eid=car,
                                      x=entry[0], y=entry[1]))
        print(f"[TOWN] {res.resident_key} returned at "
              f"({entry[0]:.0f}, {entry[1]:.0f})")
        self._log(world, eid, "town", "returned to town", clock.elapsed)

    def highway_point(self) -> Point:
        """A point on the north or east map edge."""
        b = self.bounds
        if self.rng.random() < 0.5:
            return (b.min_x + self.rng.random() * (b.max_x - b.min_x), b.min_y)
        return (b.max_x, b.min_y + self.rng.random() * (b.max_y - b.min_y))

    # ── Helpers ──────────────────────────────────────────────────────

    def _lot_at(self, x: float, y: float) -> Lot | None:
        for lot in self.lots:
            if lot.points and point_in_polygon(x, y, lot.points):
                return lot
        return None

    def _update_lot_states(self, world: World, home_occupied: set[int]) -> None:
        for _eid, res in world.all_of(Residence):
            lot = self._by_id.get(res.home_lot_id)
            if lot is None or lot.state not in (LotState.OCCUPIED, LotState.AWAY):
                continue
            lot.state = (LotState.OCCUPIED if lot.id in home_occupied
                         else LotState.AWAY)

    def _log(self, world: World, eid: int, cat: str, msg: str,
             t: float = 0.0, details: dict | None = None) -> None:
        log = world.res(DevLog)
        if log is None:
            return
        ident = world.get(eid, Identity)
        log.record(eid, cat, msg, name=ident.name if ident else "",
                   t=t, details=details)
