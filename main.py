"""
main.py — Bootstrap

1. Load the town map
2. Build the simulation and seed residents
3. Either run headless for a number of game hours, or
4. Open the viewer and push the town scene

    python main.py                        # viewer
    python main.py --headless --hours 24  # print a status line per hour
"""

import argparse

from core import tuning as tuning_mod
from core.town import load_town
from simulation.town_sim import TownSim


def run_headless(sim: TownSim, hours: float, dt: float = 1.0 / 30.0):
    ticks_per_hour = int(round(3600.0 / (sim.clock.speed * dt)))
    for _ in range(int(hours)):
        events = 0
        for _ in range(ticks_per_hour):
            events += sim.tick(dt)
        info = sim.debug_info()
        print(f"[MAIN] {info['time']}  moving={info['moving']}  "
              f"events={events}  states={info['states']}")


def main():
    parser = argparse.ArgumentParser(description="Small-town traffic and schedule sim")
    parser.add_argument("--town", default="data/town.toml")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--residents", type=int, default=40)
    parser.add_argument("--traffic", type=int, default=4,
                        help="roaming through-traffic vehicles")
    parser.add_argument("--headless", action="store_true")
    parser.add_argument("--hours", type=float, default=24.0)
    args = parser.parse_args()

    tuning_mod.load()
    town = load_town(args.town)
    sim = TownSim(town, seed=args.seed)
    sim.populate(args.residents, traffic=args.traffic)

    if args.headless:
        run_headless(sim, args.hours)
        return

    # Viewer pulls in pygame; headless runs never import it
    from core.app import App
    from scenes.town_scene import TownScene

    app = App(title="Smalltown", width=960, height=640)
    app.push_scene(TownScene(sim))
    app.run()


if __name__ == "__main__":
    main()
