"""Batched elevation lookup against DEM web services."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterator, Protocol, Sequence

import requests

from drive_simulator.errors import InvalidArgument, ProviderError, ProviderUnavailable
from drive_simulator.models import GeoPoint

logger = logging.getLogger(__name__)

# API endpoints
GOOGLE_ELEVATION_URL = "https://maps.googleapis.com/maps/api/elevation/json"
OPEN_TOPO_DATA_URL = "https://api.opentopodata.org/v1/{dataset}"
OPEN_ELEVATION_URL = "https://api.open-elevation.com/api/v1/lookup"

REQUEST_TIMEOUT_S = 30
STATUS_OK = "OK"

ELEVATION_APIS = ("google", "opentopodata", "open-elevation", "flat")


@dataclass
class ElevationResponse:
    """Answer to one batched lookup.

    ``results`` is aligned positionally with the requested points. The service
    may snap each location to its own grid, so the returned points can differ
    slightly from the requested ones.
    """

    status: str
    results: list[tuple[GeoPoint, float]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


class ElevationProvider(Protocol):
    def lookup(self, points: Sequence[GeoPoint]) -> ElevationResponse: ...


def _locations_param(points: Sequence[GeoPoint]) -> str:
    return "|".join(f"{p.lat},{p.lon}" for p in points)


def get_json(url: str, params: dict, timeout: float) -> dict:
    """GET a JSON document.

    Raises:
        ProviderUnavailable: If the request fails or the body is not JSON.
    """
    try:
        response = requests.get(url, params=params, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        raise ProviderUnavailable(f"Request to {url} failed: {e}") from e
    except ValueError as e:
        raise ProviderUnavailable(f"Invalid JSON from {url}: {e}") from e


def _parse_located_results(data: dict) -> list[tuple[GeoPoint, float]]:
    """Parse ``results`` entries shaped ``{"location": {"lat", "lng"}, "elevation"}``."""
    try:
        results = []
        for r in data.get("results", []):
            elev = r.get("elevation")
            results.append(
                (
                    GeoPoint(float(r["location"]["lat"]), float(r["location"]["lng"])),
                    float(elev) if elev is not None else 0.0,
                )
            )
        return results
    except (KeyError, TypeError, ValueError) as e:
        raise ProviderUnavailable(f"Malformed elevation result: {e}") from e


class GoogleElevationProvider:
    """Google Maps Elevation API."""

    def __init__(self, api_key: str, timeout: float = REQUEST_TIMEOUT_S):
        if not api_key:
            raise InvalidArgument("api_key", api_key, "Google Elevation API requires an API key")
        self.api_key = api_key
        self.timeout = timeout

    def lookup(self, points: Sequence[GeoPoint]) -> ElevationResponse:
        data = get_json(
            GOOGLE_ELEVATION_URL,
            {"locations": _locations_param(points), "key": self.api_key},
            self.timeout,
        )
        status = data.get("status", "UNKNOWN")
        if status != STATUS_OK:
            return ElevationResponse(status=status)
        return ElevationResponse(status=status, results=_parse_located_results(data))


class OpenTopoDataProvider:
    """OpenTopoData public API.

    The public instance asks for at most one request per second, so calls are
    spaced by ``min_interval`` seconds.
    """

    def __init__(
        self,
        dataset: str = "srtm30m",
        timeout: float = REQUEST_TIMEOUT_S,
        min_interval: float = 1.0,
    ):
        self.url = OPEN_TOPO_DATA_URL.format(dataset=dataset)
        self.timeout = timeout
        self.min_interval = min_interval
        self._last_request: float | None = None

    def _throttle(self) -> None:
        if self._last_request is not None:
            wait = self.min_interval - (time.monotonic() - self._last_request)
            if wait > 0:
                time.sleep(wait)
        self._last_request = time.monotonic()

    def lookup(self, points: Sequence[GeoPoint]) -> ElevationResponse:
        self._throttle()
        data = get_json(self.url, {"locations": _locations_param(points)}, self.timeout)
        status = data.get("status", "UNKNOWN")
        if status != STATUS_OK:
            return ElevationResponse(status=status)
        return ElevationResponse(status=status, results=_parse_located_results(data))


class OpenElevationProvider:
    """Open-Elevation API. It reports no status field; a parsed body counts as OK."""

    def __init__(self, timeout: float = REQUEST_TIMEOUT_S):
        self.timeout = timeout

    def lookup(self, points: Sequence[GeoPoint]) -> ElevationResponse:
        data = get_json(OPEN_ELEVATION_URL, {"locations": _locations_param(points)}, self.timeout)
        try:
            results = [
                (GeoPoint(float(r["latitude"]), float(r["longitude"])), float(r.get("elevation") or 0.0))
                for r in data.get("results", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderUnavailable(f"Malformed elevation result: {e}") from e
        return ElevationResponse(status=STATUS_OK, results=results)


class FlatElevationProvider:
    """Offline provider: every point sits at a constant elevation."""

    def __init__(self, elevation: float = 0.0):
        self.elevation = elevation

    def lookup(self, points: Sequence[GeoPoint]) -> ElevationResponse:
        return ElevationResponse(status=STATUS_OK, results=[(p, self.elevation) for p in points])


def get_elevation_provider(name: str, api_key: str | None = None) -> ElevationProvider:
    """Build an elevation provider by name.

    Args:
        name: One of "google", "opentopodata", "open-elevation" or "flat"
        api_key: Google Maps API key, required for "google"

    Raises:
        ValueError: If the name is unknown.
    """
    if name == "google":
        return GoogleElevationProvider(api_key)
    elif name == "opentopodata":
        return OpenTopoDataProvider()
    elif name == "open-elevation":
        return OpenElevationProvider()
    elif name == "flat":
        return FlatElevationProvider()
    else:
        raise ValueError(f"Unknown elevation API: {name}")


def lookup_in_batches(
    points: Sequence[GeoPoint],
    provider: ElevationProvider,
    batch_size: int,
) -> Iterator[tuple[int, ElevationResponse | None]]:
    """Look up elevations one batch at a time, in order.

    Yields ``(start_index, response)`` for each batch of ``batch_size`` points.
    ``response`` is None when the batch is unusable: the provider failed, did
    not report OK, or returned a result count that does not match the request.
    Failures are logged, never raised.
    """
    for start in range(0, len(points), batch_size):
        batch = points[start : start + batch_size]
        try:
            response = provider.lookup(batch)
        except ProviderError as e:
            logger.warning("Elevation batch at %d dropped: %s", start, e)
            yield start, None
            continue

        if not response.ok:
            logger.warning("Elevation batch at %d dropped: status %s", start, response.status)
            yield start, None
        elif len(response.results) != len(batch):
            logger.warning(
                "Elevation batch at %d dropped: %d results for %d points",
                start,
                len(response.results),
                len(batch),
            )
            yield start, None
        else:
            yield start, response
