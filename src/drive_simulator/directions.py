"""Route acquisition from the Google Directions API, plus route files.

A directions response is a list of steps, each with an encoded polyline. The
polylines are exploded into points that inherit their step's average speed,
elevations are looked up in chunks, and consecutive points become
RouteSegments whose speed is a forward moving average over a few points.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Sequence

from polyline import decode as polyline_decode

from drive_simulator.elevation_api import (
    REQUEST_TIMEOUT_S,
    STATUS_OK,
    ElevationProvider,
    get_json,
    lookup_in_batches,
)
from drive_simulator.errors import InvalidArgument, ProviderStatusNotOK, ProviderUnavailable
from drive_simulator.geodesy import haversine
from drive_simulator.models import GeoPoint, RouteSegment
from drive_simulator.synthesizer import padded_windows

logger = logging.getLogger(__name__)

GOOGLE_DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

# Points per elevation request while building a route
ROUTE_CHUNK_SIZE = 250
# Points in the forward moving average of speed
SPEED_WINDOW = 5
EPS = 1e-9


@dataclass
class DirectionsStep:
    """One maneuver of a directions route."""

    start: GeoPoint
    end: GeoPoint
    distance: float  # meters
    duration: float  # seconds
    polyline: str  # encoded polyline, precision 5

    @property
    def speed(self) -> float:
        """Average speed over the step in m/s."""
        if self.duration <= 0:
            return 0.0
        return self.distance / self.duration


@dataclass
class RoutePoint:
    """A decoded polyline point carrying its step's figures."""

    point: GeoPoint
    distance: float
    duration: float
    speed: float


def _format_point(p: GeoPoint) -> str:
    return f"{p.lat},{p.lon}"


def _parse_location(loc: dict) -> GeoPoint:
    return GeoPoint(float(loc["lat"]), float(loc["lng"]))


def fetch_directions(
    origin: GeoPoint,
    destination: GeoPoint,
    api_key: str,
    timeout: float = REQUEST_TIMEOUT_S,
) -> list[DirectionsStep]:
    """Fetch driving directions between two points.

    Returns:
        Steps of the first route, all legs concatenated in travel order.

    Raises:
        ProviderUnavailable: If the service cannot be reached or the body is malformed.
        ProviderStatusNotOK: If the service reports a status other than OK.
        InvalidArgument: If the route has fewer than two steps.
    """
    data = get_json(
        GOOGLE_DIRECTIONS_URL,
        {
            "origin": _format_point(origin),
            "destination": _format_point(destination),
            "key": api_key,
        },
        timeout,
    )

    status = data.get("status", "UNKNOWN")
    if status != STATUS_OK:
        raise ProviderStatusNotOK("Google Directions", status)

    try:
        legs = data["routes"][0]["legs"]
        steps = [
            DirectionsStep(
                start=_parse_location(st["start_location"]),
                end=_parse_location(st["end_location"]),
                distance=float(st["distance"]["value"]),
                duration=float(st["duration"]["value"]),
                polyline=st["polyline"]["points"],
            )
            for leg in legs
            for st in leg["steps"]
        ]
    except (IndexError, KeyError, TypeError, ValueError) as e:
        raise ProviderUnavailable(f"Malformed directions response: {e}") from e

    if len(steps) <= 1:
        raise InvalidArgument("route", len(steps), "directions returned fewer than 2 steps")

    logger.info("Directions: %d steps", len(steps))
    return steps


def decode_step_points(steps: Sequence[DirectionsStep]) -> list[RoutePoint]:
    """Explode each step's polyline into points.

    Consecutive duplicates (a step starts where the previous one ended) are
    collapsed into one point.
    """
    points: list[RoutePoint] = []
    for step in steps:
        for lat, lon in polyline_decode(step.polyline):
            pt = GeoPoint(lat, lon)
            if points and points[-1].point == pt:
                continue
            points.append(RoutePoint(pt, step.distance, step.duration, step.speed))
    return points


def build_route_segments(
    points: Sequence[RoutePoint],
    provider: ElevationProvider,
    chunk_size: int = ROUTE_CHUNK_SIZE,
    window: int = SPEED_WINDOW,
) -> list[RouteSegment]:
    """Build route segments between consecutive route points.

    Points whose elevation chunk could not be served are dropped. Segment
    speed is the mean of the point's step speed and the next ``window - 1``
    points (padded with the last point); travel time is distance over that
    speed. The last point closes the route with a zero-length segment.
    """
    located: list[tuple[GeoPoint, float, float]] = []
    for start, response in lookup_in_batches([p.point for p in points], provider, chunk_size):
        if response is None:
            continue
        for rp, (pt, elevation) in zip(points[start : start + chunk_size], response.results):
            located.append((pt, elevation, rp.speed))

    if not located:
        return []

    speeds = [
        sum(w) / len(w)
        for w in padded_windows([speed for _, _, speed in located], window, tail=window - 1)
    ]

    segments = []
    for i, ((pt, elevation, _), (next_pt, next_elevation, _)) in enumerate(
        padded_windows(located, 2, tail=1)
    ):
        dist = haversine(pt, next_pt)
        speed = speeds[i]
        segments.append(
            RouteSegment(
                start=pt,
                end=next_pt,
                elevation=elevation,
                velocity=speed,
                delta_distance=dist,
                delta_time=dist / speed if speed > EPS else 0.0,
                delta_elevation=next_elevation - elevation,
            )
        )
    return segments


def fetch_route_segments(
    origin: GeoPoint,
    destination: GeoPoint,
    api_key: str,
    provider: ElevationProvider,
) -> list[RouteSegment]:
    """Directions, polyline decoding and elevation in one call."""
    steps = fetch_directions(origin, destination, api_key)
    points = decode_step_points(steps)
    segments = build_route_segments(points, provider)
    logger.info("Route: %d points, %d segments", len(points), len(segments))
    return segments


def save_segments(segments: Sequence[RouteSegment], path: str | Path) -> None:
    """Write route segments to a JSON route file."""
    records = []
    for seg in segments:
        record = asdict(seg)
        record["start"] = [seg.start.lat, seg.start.lon]
        record["end"] = [seg.end.lat, seg.end.lon]
        records.append(record)
    with Path(path).open("w") as f:
        json.dump({"segments": records}, f, indent=2)


def load_segments(path: str | Path) -> list[RouteSegment]:
    """Read route segments from a JSON route file.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidArgument: If the file is not a valid route file.
    """
    with Path(path).open() as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidArgument("route_file", str(path), f"not valid JSON: {e}") from e

    try:
        return [
            RouteSegment(
                start=GeoPoint(*r["start"]),
                end=GeoPoint(*r["end"]),
                elevation=float(r["elevation"]),
                velocity=float(r["velocity"]),
                delta_distance=float(r["delta_distance"]),
                delta_time=float(r["delta_time"]),
                delta_elevation=float(r["delta_elevation"]),
            )
            for r in data["segments"]
        ]
    except InvalidArgument:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidArgument("route_file", str(path), f"malformed segment: {e}") from e
