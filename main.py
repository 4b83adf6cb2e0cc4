import argparse
import logging
import time
from typing import Optional

import config
from scenarios import demo_scenario, load_scenario
from simulation import Simulation, Snapshot, initialize

logger = logging.getLogger(__name__)


class App:
    """Headless host: drives the clock and prints a status board."""

    def __init__(self, simulation: Simulation, report_every: int = 1):
        self.simulation = simulation
        self.report_every = max(1, report_every)
        self.last_reported = -1

    def report(self, snapshot: Snapshot):
        stats = snapshot.stats
        print(f"--- Tick {snapshot.tick} | x{snapshot.speed_multiplier:.2f} | "
              f"trains {stats.trains}  occupied {stats.occupied}  conflicts {stats.conflicts}  "
              f"throughput {stats.throughput}/h")
        for t in snapshot.trains:
            edge = t.current_segment or "-"
            print(f"  {t.name:<24} {edge:<6} {t.progress * 100:5.0f}%  {t.speed:5.1f}  {t.status}")
        for alert in snapshot.alerts:
            print(f"  [{alert.severity.upper()}] {alert.message}")
        self.last_reported = snapshot.tick

    def _maybe_report(self):
        tick = self.simulation.tick_count
        if tick != self.last_reported and tick % self.report_every == 0:
            self.report(self.simulation.snapshot())

    def run_ticks(self, ticks: int):
        for _ in range(ticks):
            self.simulation.tick()
            self._maybe_report()

    def run_realtime(self, ticks: Optional[int] = None):
        """Frame loop: wall time is fed to the clock, which decides how many ticks to run."""
        frame_s = config.FRAME_INTERVAL_MS / 1000.0
        last = time.monotonic()
        try:
            while ticks is None or self.simulation.tick_count < ticks:
                time.sleep(frame_s)
                now = time.monotonic()
                if self.simulation.advance((now - last) * 1000.0):
                    self._maybe_report()
                last = now
                if all(t.current_segment is None for t in self.simulation.trains):
                    logger.info("All trains idle, stopping at tick %d", self.simulation.tick_count)
                    break
        except KeyboardInterrupt:
            logger.info("Simulation stopped by user")


def build_simulation(scenario: Optional[str], speed: float) -> Simulation:
    graph_spec, train_specs = load_scenario(scenario) if scenario else demo_scenario()
    sim = initialize(graph_spec, train_specs)
    sim.set_speed_multiplier(speed)
    return sim


def main(argv=None):
    parser = argparse.ArgumentParser(description="Discrete-time rail network simulator")
    parser.add_argument("--scenario", help="JSON scenario file (default: built-in demo network)")
    parser.add_argument("--speed", type=float, default=config.DEFAULT_SPEED_MULTIPLIER,
                        help="Speed multiplier (0.5 - 3.0)")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Run the simulation headless")
    run.add_argument("--ticks", type=int, default=40)
    run.add_argument("--realtime", action="store_true", help="Pace ticks with the simulation clock")
    run.add_argument("--report-every", type=int, default=1)

    serve = sub.add_parser("serve", help="Expose the simulation over HTTP")
    serve.add_argument("--host", default=config.API_HOST)
    serve.add_argument("--port", type=int, default=config.API_PORT)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format=config.LOG_FORMAT)

    sim = build_simulation(args.scenario, args.speed)

    if args.command == "serve":
        import uvicorn
        from api import create_app

        uvicorn.run(create_app(sim), host=args.host, port=args.port)
        return

    app = App(sim, report_every=getattr(args, "report_every", 1))
    if getattr(args, "realtime", False):
        app.run_realtime(args.ticks)
    else:
        app.run_ticks(getattr(args, "ticks", 40))


if __name__ == "__main__":
    main()
