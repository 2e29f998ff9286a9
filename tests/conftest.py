import pytest

from drive_simulator.elevation_api import ElevationResponse
from drive_simulator.errors import ProviderUnavailable
from drive_simulator.models import GeoPoint, RouteSegment


class StubElevationProvider:
    """Deterministic in-memory elevation service.

    Elevation is ``elevation_fn(point)``. Calls listed in ``fail_calls`` answer
    with a non-OK status and calls in ``unavailable_calls`` raise, both counted
    from 0. Every request and every served elevation is recorded.
    """

    def __init__(self, elevation_fn=None, fail_calls=(), unavailable_calls=()):
        self.elevation_fn = elevation_fn or (lambda p: 100.0)
        self.fail_calls = set(fail_calls)
        self.unavailable_calls = set(unavailable_calls)
        self.requests: list[list[GeoPoint]] = []
        self.served: list[float] = []

    def lookup(self, points):
        call = len(self.requests)
        self.requests.append(list(points))
        if call in self.unavailable_calls:
            raise ProviderUnavailable("stub offline")
        if call in self.fail_calls:
            return ElevationResponse(status="OVER_QUERY_LIMIT")
        results = [(p, self.elevation_fn(p)) for p in points]
        self.served.extend(e for _, e in results)
        return ElevationResponse(status="OK", results=results)


@pytest.fixture
def stub_provider():
    return StubElevationProvider()


@pytest.fixture
def make_provider():
    """Factory for stub providers with custom elevations or failures."""
    return StubElevationProvider


@pytest.fixture
def equator_segment():
    """One degree east along the equator in 10 seconds."""
    return RouteSegment(
        start=GeoPoint(0.0, 0.0),
        end=GeoPoint(0.0, 1.0),
        elevation=0.0,
        velocity=10.0,
        delta_distance=111195.08,
        delta_time=10.0,
        delta_elevation=0.0,
    )


@pytest.fixture
def left_turn_segments():
    """East along the equator for 10 s, then north for 10 s."""
    corner = GeoPoint(0.0, 0.01)
    return [
        RouteSegment(
            start=GeoPoint(0.0, 0.0),
            end=corner,
            elevation=0.0,
            velocity=111.2,
            delta_distance=1112.0,
            delta_time=10.0,
            delta_elevation=0.0,
        ),
        RouteSegment(
            start=corner,
            end=GeoPoint(0.01, 0.01),
            elevation=0.0,
            velocity=111.2,
            delta_distance=1112.0,
            delta_time=10.0,
            delta_elevation=0.0,
        ),
    ]
