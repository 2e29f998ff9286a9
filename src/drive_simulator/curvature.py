"""Signed radius of curvature through three consecutive route points."""

import math

from drive_simulator.geodesy import geodesic_to_cartesian
from drive_simulator.models import GeoPoint

EPS = 1e-9


def rotation_direction(p1: GeoPoint, p2: GeoPoint, p3: GeoPoint) -> float:
    """Turn direction of the path p1 -> p2 -> p3.

    Uses the planar cross product of (p2 - p1) and (p3 - p1) with longitude as
    the x axis and latitude as the y axis, so it is only meaningful for short
    triplets away from the poles and the antimeridian.

    Returns:
        -1.0 for a left turn, 1.0 for a right turn, 0.0 when collinear
    """
    cross = (p2.lon - p1.lon) * (p3.lat - p1.lat) - (p3.lon - p1.lon) * (p2.lat - p1.lat)
    if cross > 0:
        return -1.0
    if cross < 0:
        return 1.0
    return 0.0


def _unit(v: tuple[float, float, float], eps: float) -> tuple[float, float, float]:
    mag = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2]) + eps
    return v[0] / mag, v[1] / mag, v[2] / mag


def curvature_radius(p1: GeoPoint, p2: GeoPoint, p3: GeoPoint, eps: float = EPS) -> float:
    """Menger radius of curvature at p2, signed by turn direction.

    Computed on the earth-centred Cartesian projections of the points:
    curvature k = 2 sin(alpha) / d, where alpha is the angle at p2 and d the
    chord p1-p3, and radius = direction / k. Collinear or coincident points
    give 0.0 (no turn); ``eps`` keeps every denominator non-zero.

    Returns:
        Radius in meters; negative for left turns, positive for right turns
    """
    c1 = geodesic_to_cartesian(p1)
    c2 = geodesic_to_cartesian(p2)
    c3 = geodesic_to_cartesian(p3)

    u1 = _unit((c1[0] - c2[0], c1[1] - c2[1], c1[2] - c2[2]), eps)
    u2 = _unit((c3[0] - c2[0], c3[1] - c2[1], c3[2] - c2[2]), eps)

    dot = u1[0] * u2[0] + u1[1] * u2[1] + u1[2] * u2[2]
    alpha = math.acos(max(-1.0, min(1.0, dot)))

    d = math.sqrt((c1[0] - c3[0]) ** 2 + (c1[1] - c3[1]) ** 2 + (c1[2] - c3[2]) ** 2)
    k = 2.0 * math.sin(alpha) / (d + eps)

    return rotation_direction(p1, p2, p3) / (k + eps)
