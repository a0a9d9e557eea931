"""Command-line entry point for the fleetwatch processes.

Usage:
    fleetwatch monitor                   # dashboard + aggregation on :3000
    fleetwatch agent --port 5002         # metrics agent beside a worker
    fleetwatch worker --port 4002        # worker with load-generation endpoints
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from fleetwatch.config import settings

_APPS = {
    "agent": ("fleetwatch.agent_main:app", settings.agent_host, settings.agent_port),
    "monitor": ("fleetwatch.monitor_main:app", settings.monitor_host, settings.monitor_port),
    "worker": ("fleetwatch.worker_main:app", settings.worker_host, settings.worker_port),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fleetwatch", description="Fleet health monitoring")
    parser.add_argument("role", choices=sorted(_APPS), help="process to run")
    parser.add_argument("--host", default=None, help="bind address")
    parser.add_argument("--port", type=int, default=None, help="bind port")
    parser.add_argument("--log-level", default=settings.log_level, help="logging level")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    target, host, port = _APPS[args.role]
    uvicorn.run(
        target,
        host=args.host or host,
        port=args.port or port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
