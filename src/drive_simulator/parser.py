import gpxpy

from drive_simulator.errors import InvalidArgument
from drive_simulator.geodesy import haversine
from drive_simulator.models import GeoPoint, RouteSegment

DEFAULT_SPEED = 13.9  # m/s, ~50 km/h


def _read_points(gpx) -> list[tuple[GeoPoint, float, object]]:
    points = []
    for track in gpx.tracks:
        for segment in track.segments:
            for pt in segment.points:
                points.append((GeoPoint(pt.latitude, pt.longitude), pt.elevation or 0.0, pt.time))
    if not points:
        # Planned routes are stored as <rte> rather than <trk>
        for route in gpx.routes:
            for pt in route.points:
                points.append((GeoPoint(pt.latitude, pt.longitude), pt.elevation or 0.0, pt.time))
    return points


def parse_gpx_route(filepath: str, default_speed: float = DEFAULT_SPEED) -> list[RouteSegment]:
    """Parse a GPX file into route segments between consecutive points.

    Travel time comes from the point timestamps when both ends have one and
    time advances; otherwise the segment is driven at ``default_speed``. The
    last point closes the route with a zero-length segment.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidArgument: If the file has fewer than 2 points or default_speed <= 0.
    """
    if default_speed <= 0:
        raise InvalidArgument("default_speed", default_speed, "must be > 0")

    with open(filepath, "r") as f:
        gpx = gpxpy.parse(f)

    points = _read_points(gpx)
    if len(points) < 2:
        raise InvalidArgument("gpx_file", filepath, "fewer than 2 track points")

    segments = []
    for (pt, elev, time), (next_pt, next_elev, next_time) in zip(points, points[1:] + points[-1:]):
        dist = haversine(pt, next_pt)
        elapsed = None
        if time is not None and next_time is not None:
            elapsed = (next_time - time).total_seconds()
        if elapsed is None or elapsed <= 0:
            elapsed = dist / default_speed
        segments.append(
            RouteSegment(
                start=pt,
                end=next_pt,
                elevation=elev,
                velocity=dist / elapsed if elapsed > 0 else 0.0,
                delta_distance=dist,
                delta_time=elapsed,
                delta_elevation=next_elev - elev,
            )
        )
    return segments
