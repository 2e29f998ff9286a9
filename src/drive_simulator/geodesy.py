"""Spherical-earth geodesy on the WGS84 mean radius.

All functions take and return degrees at the API boundary and work in
radians internally. The earth is modelled as a sphere of radius
``(2a + b) / 3`` built from the WGS84 semi-axes, which keeps every formula
closed-form and is accurate to well under 0.5% for driving distances.
"""

from __future__ import annotations

import math

from drive_simulator.errors import InvalidArgument
from drive_simulator.models import (
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
    GeoPoint,
)

WGS84_A = 6378137.0  # semi-major axis, meters
WGS84_B = 6356752.314245  # semi-minor axis, meters
WGS84_INVERSE_FLATTENING = 298.257223563
EARTH_RADIUS_M = (2.0 * WGS84_A + WGS84_B) / 3.0

STANDARD_GRAVITY = 9.80665  # m/s²

# Smallest travel time accepted by destination_from_velocity
MIN_TRAVEL_TIME_S = 1e-6

__all__ = [
    "EARTH_RADIUS_M",
    "MAX_LATITUDE",
    "MAX_LONGITUDE",
    "MIN_LATITUDE",
    "MIN_LONGITUDE",
    "STANDARD_GRAVITY",
    "angle_between",
    "bearing",
    "cartesian_to_geodesic",
    "cross_track_distance",
    "destination",
    "destination_from_velocity",
    "geodesic_to_cartesian",
    "gravity_latitude_model",
    "haversine",
    "interpolate",
    "midpoint",
]


def _hav(theta: float) -> float:
    h = math.sin(0.5 * theta)
    return h * h


def _normalize_longitude(lon: float) -> float:
    return (lon + 540.0) % 360.0 - 180.0


def haversine(p1: GeoPoint, p2: GeoPoint) -> float:
    """Great-circle distance between two points.

    Args:
        p1, p2: Points in degrees

    Returns:
        Distance in meters
    """
    lat1 = math.radians(p1.lat)
    lat2 = math.radians(p2.lat)
    dlat = lat2 - lat1
    dlon = math.radians(p2.lon - p1.lon)

    a = _hav(dlat) + math.cos(lat1) * math.cos(lat2) * _hav(dlon)
    return 2.0 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, a)))


def destination(origin: GeoPoint, distance_m: float, bearing_deg: float) -> GeoPoint:
    """Point reached travelling ``distance_m`` from ``origin`` on an initial bearing.

    Args:
        origin: Start point
        distance_m: Distance along the great circle in meters
        bearing_deg: Initial bearing in degrees clockwise from north

    Returns:
        Destination point, longitude normalised into [-180, 180)
    """
    lat1 = math.radians(origin.lat)
    lon1 = math.radians(origin.lon)
    brng = math.radians(bearing_deg)
    delta = distance_m / EARTH_RADIUS_M

    lat2 = math.asin(
        math.sin(lat1) * math.cos(delta) + math.cos(lat1) * math.sin(delta) * math.cos(brng)
    )
    lon2 = lon1 + math.atan2(
        math.sin(brng) * math.sin(delta) * math.cos(lat1),
        math.cos(delta) - math.sin(lat1) * math.sin(lat2),
    )
    return GeoPoint(math.degrees(lat2), _normalize_longitude(math.degrees(lon2)))


def destination_from_velocity(
    origin: GeoPoint, velocity: float, time: float, bearing_deg: float
) -> GeoPoint:
    """Point reached after travelling at ``velocity`` m/s for ``time`` seconds.

    Raises:
        InvalidArgument: If time is not positive or velocity is negative.
    """
    if time <= MIN_TRAVEL_TIME_S:
        raise InvalidArgument("time", time, f"must be > {MIN_TRAVEL_TIME_S}")
    if velocity < 0.0:
        raise InvalidArgument("velocity", velocity, "must be >= 0")
    return destination(origin, velocity * time, bearing_deg)


def bearing(start: GeoPoint, end: GeoPoint) -> float:
    """Initial great-circle bearing from ``start`` to ``end``.

    Returns:
        Bearing in degrees (0-360, where 0=North, 90=East)
    """
    lat1 = math.radians(start.lat)
    lat2 = math.radians(end.lat)
    dlon = math.radians(end.lon - start.lon)

    clat2 = math.cos(lat2)
    y = math.sin(dlon) * clat2
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * clat2 * math.cos(dlon)

    ang = math.degrees(math.atan2(y, x))
    if ang < 0.0:
        ang += 360.0
    # -0.0 and values a rounding step below 0 land exactly on 360
    return ang if ang < 360.0 else 0.0


def cross_track_distance(pt: GeoPoint, start: GeoPoint, end: GeoPoint) -> float:
    """Signed distance from ``pt`` to the great circle through ``start`` and ``end``.

    Returns:
        Meters; negative left of the path, positive right of it
    """
    delta13 = haversine(start, pt) / EARTH_RADIUS_M
    theta13 = math.radians(bearing(start, pt))
    theta12 = math.radians(bearing(start, end))
    return math.asin(math.sin(delta13) * math.sin(theta13 - theta12)) * EARTH_RADIUS_M


def geodesic_to_cartesian(pt: GeoPoint) -> tuple[float, float, float]:
    """Earth-centred Cartesian coordinates of ``pt`` on the mean sphere."""
    lat = math.radians(pt.lat)
    lon = math.radians(pt.lon)
    clat = math.cos(lat)
    return (
        EARTH_RADIUS_M * clat * math.cos(lon),
        EARTH_RADIUS_M * clat * math.sin(lon),
        EARTH_RADIUS_M * math.sin(lat),
    )


def cartesian_to_geodesic(xyz: tuple[float, float, float]) -> GeoPoint:
    """Project a Cartesian vector back onto the sphere as latitude/longitude.

    The vector does not need to lie on the sphere; only its direction is used.
    """
    x, y, z = xyz
    lat = math.atan2(z, math.hypot(x, y))
    lon = math.atan2(y, x)
    return GeoPoint(math.degrees(lat), math.degrees(lon))


def midpoint(p1: GeoPoint, p2: GeoPoint) -> GeoPoint:
    """Half-way point along the great circle between two points."""
    x1, y1, z1 = geodesic_to_cartesian(p1)
    x2, y2, z2 = geodesic_to_cartesian(p2)
    return cartesian_to_geodesic((0.5 * (x1 + x2), 0.5 * (y1 + y2), 0.5 * (z1 + z2)))


def angle_between(p1: GeoPoint, p2: GeoPoint) -> float:
    """Central angle between two points in radians (distance on the unit sphere)."""
    x1, y1, z1 = geodesic_to_cartesian(p1)
    x2, y2, z2 = geodesic_to_cartesian(p2)
    cos_angle = (x1 * x2 + y1 * y2 + z1 * z2) / (EARTH_RADIUS_M * EARTH_RADIUS_M)
    return math.acos(max(-1.0, min(1.0, cos_angle)))


def interpolate(p1: GeoPoint, p2: GeoPoint, fraction: float, eps: float = 1e-9) -> GeoPoint:
    """Point ``fraction`` of the way along the great circle from ``p1`` to ``p2``.

    Uses spherical linear interpolation. Coincident (and antipodal) points have
    no unique great circle; ``p1`` is returned for every fraction.
    """
    angle = angle_between(p1, p2)
    sin_angle = math.sin(angle)
    if sin_angle < eps:
        return p1

    a = math.sin((1.0 - fraction) * angle) / sin_angle
    b = math.sin(fraction * angle) / sin_angle

    lat1 = math.radians(p1.lat)
    lon1 = math.radians(p1.lon)
    lat2 = math.radians(p2.lat)
    lon2 = math.radians(p2.lon)
    clat1 = math.cos(lat1)
    clat2 = math.cos(lat2)

    # Polar to vector, interpolate, back to polar
    x = a * clat1 * math.cos(lon1) + b * clat2 * math.cos(lon2)
    y = a * clat1 * math.sin(lon1) + b * clat2 * math.sin(lon2)
    z = a * math.sin(lat1) + b * math.sin(lat2)

    return GeoPoint(
        math.degrees(math.atan2(z, math.sqrt(x * x + y * y))),
        math.degrees(math.atan2(y, x)),
    )


def gravity_latitude_model(latitude: float, altitude: float = 0.0) -> float:
    """Sea-level gravity at a latitude from the international gravity formula.

    Args:
        latitude: Latitude in degrees
        altitude: Height above sea level in meters. Accepted for call-site
            symmetry with the sample fields; the formula has no altitude term.

    Returns:
        Gravitational acceleration in m/s²
    """
    c2l = math.cos(2.0 * math.radians(latitude))
    return 9.780327 * (1.0026454 - 0.0026512 * c2l + 0.0000058 * c2l * c2l)
