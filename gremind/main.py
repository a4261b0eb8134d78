"""Command line entry point.

Sub-commands:
    replay      plan a route and replay a recorded GPS trace through it
    reoptimize  print the optimized visiting order of a set of stops
    serve       run the nearby-places reoptimization endpoint
"""

from __future__ import annotations

import argparse
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence

from .api import create_app
from .config import (
    API_HOST,
    API_PORT,
    DEFAULT_PROXIMITY_METERS,
    PUSH_ENDPOINT_URL,
    TRAVEL_MODE,
)
from .errors import GRemindError
from .events import ProximityEventBus
from .geolocation import ReplayGeolocationSource, load_trace
from .maps_client.directions import DirectionsAPI
from .models import Coordinate, Location, RouteStep
from .navigation import NavigationSession, NavigationSettings, RoutePlanner
from .notifications import (
    LoggingNotificationPresenter,
    NotificationPresenter,
    ProximityNotifier,
    PushNotificationPresenter,
)
from .tools.route_map import build_route_map
from .utils import format_distance
from .voice import RecordingAnnouncer, SubprocessVoiceAnnouncer, VoiceAnnouncer


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _parse_location(text: str) -> Location:
    """Return a :class:`Coordinate` for ``"lat,lng"`` input, else the raw address."""

    try:
        return Coordinate.parse(text)
    except ValueError:
        return text.strip()


class _TraceClock:
    """Clock driven by the replayed samples so recorded traces are never stale."""

    def __init__(self) -> None:
        self.now_ms = 0

    def millis(self) -> int:
        return self.now_ms

    def seconds(self) -> float:
        return self.now_ms / 1000.0


def _build_presenter() -> NotificationPresenter:
    if PUSH_ENDPOINT_URL:
        return PushNotificationPresenter(PUSH_ENDPOINT_URL)
    return LoggingNotificationPresenter()


def _cmd_replay(args: argparse.Namespace) -> int:
    try:
        samples = load_trace(args.trace)
    except (OSError, ValueError) as exc:
        logging.error("Failed to load trace '%s': %s", args.trace, exc)
        return 1

    source = ReplayGeolocationSource(samples)
    planner = RoutePlanner(DirectionsAPI(travel_mode=args.mode))
    bus = ProximityEventBus()
    voice: VoiceAnnouncer = (
        SubprocessVoiceAnnouncer() if args.voice else RecordingAnnouncer()
    )
    settings = NavigationSettings(proximity_m=args.proximity, voice_enabled=True)
    trace_clock = _TraceClock()
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="reroute")

    def _step_changed(index: int, step: RouteStep) -> None:
        logging.info(
            "-> step %d (%s): %s",
            index,
            format_distance(step.distance_m),
            step.instruction,
        )

    def _reroute_requested(position: Coordinate) -> None:
        logging.info("Reroute requested from %s", position)

    session = NavigationSession(
        planner,
        source,
        bus,
        settings=settings,
        voice=voice,
        on_step_changed=_step_changed,
        on_reroute_requested=_reroute_requested,
        executor=executor,
        clock=trace_clock.seconds,
        clock_ms=trace_clock.millis,
    )

    notifier = ProximityNotifier(bus, _build_presenter(), session=session).attach()

    if samples:
        trace_clock.now_ms = samples[0].timestamp_ms
    waypoints = [_parse_location(wp) for wp in args.waypoint or []]
    if not session.start(
        _parse_location(args.origin),
        _parse_location(args.destination),
        waypoints,
        task_id=args.task_id,
    ):
        executor.shutdown(wait=False)
        return 1

    route = session.route
    if route is not None:
        logging.info(
            "Route: %s over %d legs / %d steps",
            format_distance(route.distance_m),
            len(route.legs),
            len(route.steps),
        )

    for sample in samples:
        if not session.is_active:
            break
        trace_clock.now_ms = sample.timestamp_ms
        source.push(sample)

    executor.shutdown(wait=True)
    final_route = session.route
    session.stop()
    notifier.detach()

    if args.map and final_route is not None:
        build_route_map(
            final_route,
            [sample.coordinate for sample in samples],
            deviation_m=settings.deviation_m,
            output_html=args.map,
        )
        logging.info("Route map written to %s", args.map)
    return 0


def _cmd_reoptimize(args: argparse.Namespace) -> int:
    planner = RoutePlanner(DirectionsAPI(travel_mode=args.mode))
    stops: List[Location] = [_parse_location(stop) for stop in args.stops]
    try:
        ordered = planner.reoptimize(_parse_location(args.origin), stops)
    except GRemindError as exc:
        logging.error("Cannot reoptimize: %s", exc)
        return 1
    for position, stop in enumerate(ordered, start=1):
        marker = " (destination)" if position == len(ordered) else ""
        print(f"{position}. {stop}{marker}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    app = create_app()
    logging.info("Serving reoptimization endpoint on %s:%s", args.host, args.port)
    app.run(host=args.host, port=args.port)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gremind",
        description="G-Remind turn-by-turn navigation and proximity tools.",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="Replay a recorded GPS trace")
    replay.add_argument("--origin", required=True, help="'lat,lng' or address")
    replay.add_argument("--destination", required=True, help="'lat,lng' or address")
    replay.add_argument(
        "--waypoint", action="append", help="Intermediate stop (repeatable)"
    )
    replay.add_argument("--trace", type=Path, required=True, help="JSON trace file")
    replay.add_argument("--task-id", help="Task tied to the destination")
    replay.add_argument(
        "--proximity",
        type=float,
        default=DEFAULT_PROXIMITY_METERS,
        help=f"Arrival radius in metres (default: {DEFAULT_PROXIMITY_METERS:g})",
    )
    replay.add_argument("--mode", default=TRAVEL_MODE, help="Travel mode")
    replay.add_argument("--map", type=Path, help="Write an HTML route map here")
    replay.add_argument(
        "--voice", action="store_true", help="Speak instructions with pyttsx3"
    )
    replay.set_defaults(handler=_cmd_replay)

    reopt = sub.add_parser("reoptimize", help="Optimize the order of stops")
    reopt.add_argument("--origin", required=True, help="'lat,lng' or address")
    reopt.add_argument("stops", nargs="+", help="Stops; the last is the destination")
    reopt.add_argument("--mode", default=TRAVEL_MODE, help="Travel mode")
    reopt.set_defaults(handler=_cmd_reoptimize)

    serve = sub.add_parser("serve", help="Run the reoptimization HTTP endpoint")
    serve.add_argument("--host", default=API_HOST)
    serve.add_argument("--port", type=int, default=API_PORT)
    serve.set_defaults(handler=_cmd_serve)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    return args.handler(args)
