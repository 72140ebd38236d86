"""Command-line interface for patrolsim."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict

import uvicorn

from patrolsim import __version__
from patrolsim.config import get_settings
from patrolsim.engine.coordinator import InvalidControlError, PatrolCoordinator
from patrolsim.engine.entropy import Entropy
from patrolsim.logging_config import configure_logging
from patrolsim.model.world import Algorithm, Environment


def _serve(parsed: argparse.Namespace) -> int:
    print(f"Starting patrolsim server at http://{parsed.host}:{parsed.port}")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "patrolsim.server.app:app",
        host=parsed.host,
        port=parsed.port,
        reload=parsed.reload,
    )
    return 0


def _run(parsed: argparse.Namespace) -> int:
    entropy = Entropy.seeded(parsed.seed) if parsed.seed is not None else Entropy()
    try:
        coordinator = PatrolCoordinator(
            algorithm=parsed.algorithm,
            environment=parsed.environment,
            entropy=entropy,
        )
    except InvalidControlError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    coordinator.start()
    for _ in range(parsed.ticks):
        coordinator.advance(parsed.dt)
    world = coordinator.snapshot()

    if parsed.json:
        print(json.dumps({"elapsed": world.elapsed, **asdict(world.metrics)}, indent=2))
        return 0

    m = world.metrics
    print(f"{world.algorithm} in {world.environment}: {parsed.ticks} ticks, {world.elapsed:.1f}s")
    print(f"  Area observed:      {m.area_observed:.1f}%")
    print(f"  Blind spots:        {m.blind_spots:.1f}%")
    print(f"  Intruders detected: {m.intruders_detected}/{m.total_intruders}")
    print(f"  Detection latency:  {m.detection_latency:.2f}s")
    print(f"  Battery:            {m.battery:.1f}%")
    print(f"  Patrol efficiency:  {m.patrol_efficiency:.1f}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Run the patrolsim server or a headless simulation.

    Args:
        args: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(
        prog="patrolsim",
        description="patrolsim - autonomous patrol simulation",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    settings = get_settings()
    serve = subparsers.add_parser("serve", help="Run the HTTP/WebSocket server")
    serve.add_argument(
        "--host",
        default=settings.host,
        help=f"Host to bind to (default: {settings.host}, env PATROL_HOST)",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Port to bind to (default: {settings.port}, env PATROL_PORT)",
    )
    serve.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    serve.set_defaults(handler=_serve)

    run = subparsers.add_parser("run", help="Run a headless simulation and print metrics")
    run.add_argument(
        "--algorithm",
        default=Algorithm.PDAP.value,
        help="Decision strategy: " + ", ".join(a.value for a in Algorithm),
    )
    run.add_argument(
        "--environment",
        default=Environment.OPEN_GRID.value,
        help="Environment preset: " + ", ".join(e.value for e in Environment),
    )
    run.add_argument("--ticks", type=int, default=600, help="Number of ticks (default: 600)")
    run.add_argument(
        "--dt",
        type=float,
        default=1 / 60,
        help="Frame delta in seconds, clamped to [0, 0.1] (default: 1/60)",
    )
    run.add_argument("--seed", type=int, default=None, help="Seed for a reproducible run")
    run.add_argument("--json", action="store_true", help="Print metrics as JSON")
    run.set_defaults(handler=_run)

    parsed = parser.parse_args(args)
    configure_logging()
    return parsed.handler(parsed)


if __name__ == "__main__":
    sys.exit(main())
