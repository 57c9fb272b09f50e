from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict

from . import __version__
from .agent import Agent
from .control_plane import ControlPlaneClient
from .docker_ops import DockerRuntime
from .errors import ConfigError
from .events import EventLog
from .reconciler import ReconcileEngine
from .settings import Settings, load_settings


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="piccolo", description="Piccolo edge reconciliation agent")
    p.add_argument("--config", help="JSON config file (camelCase keys, e.g. controlPlaneURL)")
    p.add_argument("--control-plane-url", dest="control_plane_url")
    p.add_argument("--username", dest="auth_username")
    p.add_argument("--password", dest="auth_password")
    p.add_argument("--poll-interval", dest="poll_interval_s", type=int, help="Seconds to sleep between iterations")
    p.add_argument("--timeout", dest="request_timeout_s", type=int, help="Per-request timeout in seconds")
    p.add_argument("--runtime-timeout", dest="runtime_timeout_s", type=int, help="Docker API timeout in seconds")
    p.add_argument("--events-db", dest="events_db_path", help="SQLite file for the event journal")
    p.add_argument("--log-level", dest="log_level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    p.add_argument("--once", action="store_true", help="Run a single iteration and exit")
    p.add_argument("--show-events", type=int, metavar="N", help="Print the last N journal events and exit")
    return p


_SETTING_ARGS = (
    "control_plane_url",
    "auth_username",
    "auth_password",
    "poll_interval_s",
    "request_timeout_s",
    "runtime_timeout_s",
    "events_db_path",
    "log_level",
)


def build_agent(settings: Settings, events: EventLog) -> Agent:
    client = ControlPlaneClient(settings, events=events)
    runtime = DockerRuntime(timeout_s=settings.runtime_timeout_s, events=events)
    engine = ReconcileEngine(runtime, events=events)
    return Agent(settings, client, engine, events=events)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config, overrides={k: getattr(args, k) for k in _SETTING_ARGS})
        events = EventLog(settings.events_db_path)
    except ConfigError as e:
        print(f"piccolo: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.show_events is not None:
        _print([asdict(e) for e in events.list_events(args.show_events)])
        return 0

    print(f"PICCOLO {__version__}")
    agent = build_agent(settings, events)
    if not agent.engine.runtime.docker_available():
        events.log_event("WARN", "docker daemon not reachable yet; launches will fail until it is")
    try:
        agent.run(max_iterations=1 if args.once else None)
    finally:
        agent.client.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
