"""simulation/town_sim.py — Top-level town simulation manager.

Builds every navigation and behaviour subsystem from a loaded
``TownMap`` and exposes a single ``tick()`` for the game loop.

Usage::

    town = load_town("data/town.toml")
    sim = TownSim(town, seed=7)
    sim.populate(residents=40, traffic=6)

    # each frame
    sim.tick(real_dt)

Tick order (one call, no suspension points):

    clock → schedule → dispatcher → kinematics → bounds → purge → event drain

Schedule and dispatcher decisions land before the kinematics step so a
fresh target is driven on in the same tick.
"""

from __future__ import annotations
import random

from core.ecs import World
from core.constants import KIND_VEHICLE
from core.events import EventBus
from core.town import TownMap
from core.tuning import get as _tun
from components import (
    GameClock, DevLog, Kinematics, Hidden, Schedule, Residence, Vehicle,
)
from logic.access import compute_access_points
from logic.entity_factory import spawn_roamer
from logic.kinematics import kinematics_system
from logic.parking import ParkingPool
from logic.road_graph import RoadGraph
from logic.traffic import TrafficSystem
from simulation.population import populate
from simulation.schedule import ResidentScheduleSystem


class TownSim:
    """Owns the systems; all singletons are also world resources."""

    def __init__(self, town: TownMap, seed: int | None = None,
                 world: World | None = None) -> None:
        self.town = town
        self.world = world if world is not None else World()
        self.rng = random.Random(seed)

        compute_access_points(town.lots, town.roads)
        self.graph = RoadGraph(town.roads)

        self.clock = GameClock()
        self.bus = EventBus()
        self.log = DevLog()
        self.pool = ParkingPool(town.lots, self.bus)
        self.traffic = TrafficSystem(town.roads, self.graph, self.rng,
                                     town.lots, town.bounds)
        self.schedule = ResidentScheduleSystem(town.lots, self.traffic,
                                               self.rng, town.bounds)

        for res in (self.clock, self.bus, self.log, self.pool,
                    self.graph, self.traffic, self.schedule, town.bounds):
            self.world.set_res(res)

        self.residents: list[int] = []
        self.cars: list[int] = []
        self.roamers: list[int] = []

    # ── Setup ────────────────────────────────────────────────────────

    def populate(self, residents: int, traffic: int = 0) -> None:
        """Seed residents (with cars) plus *traffic* roaming vehicles."""
        r, c = populate(self.world, self.town.lots, self.pool, self.rng,
                        residents)
        self.residents += r
        self.cars += c
        lo = _tun("population", "car_speed_min", 40.0)
        hi = _tun("population", "car_speed_max", 60.0)
        for i in range(traffic):
            at = self.traffic.random_point_on_road()
            self.roamers.append(spawn_roamer(
                self.world, KIND_VEHICLE, at, lo + self.rng.random() * (hi - lo),
                name=f"through traffic {i + 1}"))

    def despawn(self, eid: int) -> None:
        """Remove an agent now and free any parking it holds.

        A resident takes its car along.  Removing a car on its own revokes
        the owner's car; a driver inside is dropped where the car was and
        re-plans its current activity on foot.
        """
        doomed = [eid]
        res = self.world.get(eid, Residence)
        if res is not None and res.car_id is not None:
            doomed.append(res.car_id)
        veh = self.world.get(eid, Vehicle)
        if veh is not None and veh.owner_id is not None:
            owner = self.world.get(veh.owner_id, Residence)
            if owner is not None and owner.car_id == eid:
                if owner.in_car:
                    self.world.remove(veh.owner_id, Hidden)
                    owner.in_car = False
                    sched = self.world.get(veh.owner_id, Schedule)
                    if sched is not None:
                        sched.destination_lot = None
                owner.car_id = None
                owner.has_car = False

        for x in doomed:
            self.pool.release_all(x)
            self.world.kill(x)
            for group in (self.residents, self.cars, self.roamers):
                if x in group:
                    group.remove(x)
        self.log.record(eid, "town", "despawned", t=self.clock.elapsed,
                        details={"removed": doomed})

    # ── Per-frame tick ───────────────────────────────────────────────

    def tick(self, real_dt: float) -> int:
        """Advance one frame of *real_dt* seconds.  Returns events drained."""
        self.clock.advance(real_dt)
        move_dt = real_dt * self.clock.time_scale

        self.schedule.update(self.world)
        self.traffic.update_traffic(self.world, move_dt)
        kinematics_system(self.world, move_dt)
        self.traffic.clamp_pedestrians(self.world)

        self.world.purge()
        return self.bus.drain()

    def run(self, real_seconds: float, dt: float = 1.0 / 30.0) -> int:
        """Tick repeatedly for *real_seconds*.  Returns total events."""
        total = 0
        steps = int(round(real_seconds / dt))
        for _ in range(steps):
            total += self.tick(dt)
        return total

    # ── Queries ──────────────────────────────────────────────────────

    def moving_count(self) -> int:
        return sum(1 for eid, kin in self.world.all_of(Kinematics)
                   if not kin.idle and not self.world.has(eid, Hidden))

    def debug_info(self) -> dict:
        states: dict[str, int] = {}
        for _eid, sched in self.world.all_of(Schedule):
            states[sched.state.value] = states.get(sched.state.value, 0) + 1
        return {
            "time": self.clock.label(),
            "residents": len(self.residents),
            "cars": len(self.cars),
            "moving": self.moving_count(),
            "states": states,
            "graph_nodes": len(self.graph.nodes),
            "pending_events": self.bus.pending_count(),
        }
