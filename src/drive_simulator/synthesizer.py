"""Turn coarse route segments into a fixed-time-step trip with kinematics.

The pipeline runs in five stages, each a generator from one sequence to the
next:

1. dense_positions: slerp every segment into ``ceil(delta_time / dt)`` points
2. first_pass_samples: bearing, speed and distance between consecutive points
3. enrich_elevation: batched elevation lookup; failed batches are dropped
4. derive_slopes: rise over run to the next sample
5. decompose_acceleration: longitudinal, centripetal and gravity components

Finite differences keep their output aligned with their input by padding the
sequence with copies of its boundary elements before windowing
(``padded_windows``).
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Iterable, Iterator, Sequence, TypeVar

from drive_simulator.curvature import curvature_radius
from drive_simulator.elevation_api import ElevationProvider, lookup_in_batches
from drive_simulator.errors import InvalidArgument
from drive_simulator.geodesy import bearing, gravity_latitude_model, haversine, interpolate
from drive_simulator.models import GeoPoint, RouteSegment, Sample, SynthesisParams, Trip

logger = logging.getLogger(__name__)

T = TypeVar("T")


def padded_windows(items: Sequence[T], size: int, head: int = 0, tail: int = 0) -> Iterator[tuple[T, ...]]:
    """Sliding windows over ``items`` after padding its boundaries.

    The first element is repeated ``head`` times in front and the last element
    ``tail`` times at the end, so ``size - 1 == head + tail`` yields exactly one
    window per input element.

    >>> list(padded_windows([1, 2, 3], 3, head=1, tail=1))
    [(1, 1, 2), (1, 2, 3), (2, 3, 3)]
    """
    if not items:
        return
    padded = [items[0]] * head + list(items) + [items[-1]] * tail
    for i in range(len(padded) - size + 1):
        yield tuple(padded[i : i + size])


def dense_positions(segments: Sequence[RouteSegment], dt: float) -> Iterator[GeoPoint]:
    """Resample every segment along its great circle at time step ``dt``.

    Each segment contributes ``ceil(delta_time / dt)`` points at fractions
    ``i / n`` for ``i = 0 .. n-1``; the end of the last segment closes the
    sequence so that the last interpolated point has a successor.
    """
    for seg in segments:
        # round() absorbs float noise such as 10.000000000000002 steps
        nsamples = math.ceil(round(seg.delta_time / dt, 9))
        for i in range(nsamples):
            yield interpolate(seg.start, seg.end, i / nsamples)
    if segments:
        yield segments[-1].end


def first_pass_samples(positions: Sequence[GeoPoint], dt: float) -> Iterator[Sample]:
    """Provisional samples from consecutive position pairs.

    Altitude and slope are left at 0.0; yields one sample fewer than positions.
    """
    for a, b in padded_windows(positions, 2):
        dist = haversine(a, b)
        yield Sample(
            position=a,
            bearing=bearing(a, b),
            velocity=dist / dt,
            delta_distance=dist,
            altitude=0.0,
            slope=0.0,
        )


def enrich_elevation(
    samples: Sequence[Sample],
    provider: ElevationProvider,
    chunk_size: int,
) -> Iterator[Sample]:
    """Replace position and altitude with the provider's answer, batch by batch.

    Bearing, velocity and distance keep their first-pass values. Samples of a
    batch the provider could not serve are dropped.
    """
    positions = [s.position for s in samples]
    for start, response in lookup_in_batches(positions, provider, chunk_size):
        if response is None:
            continue
        for sample, (point, elevation) in zip(samples[start : start + chunk_size], response.results):
            yield replace(sample, position=point, altitude=elevation)


def derive_slopes(samples: Sequence[Sample], eps: float) -> Iterator[Sample]:
    """Slope of each sample towards its successor.

    The final sample has no successor and is not yielded. A zero-length step
    has slope 0.0.
    """
    for a, b in padded_windows(samples, 2):
        rise = b.altitude - a.altitude
        slope = rise / a.delta_distance if a.delta_distance > eps else 0.0
        yield replace(a, slope=slope)


def _centripetal(prev: Sample, cur: Sample, nxt: Sample, eps: float) -> float:
    radius = curvature_radius(prev.position, cur.position, nxt.position, eps)
    if abs(radius) <= eps:
        # straight or degenerate triplet
        return 0.0
    return cur.velocity * cur.velocity / radius


def decompose_acceleration(samples: Sequence[Sample], dt: float, eps: float) -> Iterator[Sample]:
    """Attach (ax, ay, az) to every sample.

    ax: velocity drop to the next sample per second (0.0 for the last sample)
    ay: centripetal acceleration v² / r, signed by turn direction
    az: gravity at the sample's latitude
    """
    ax = [(a.velocity - b.velocity) / dt for a, b in padded_windows(samples, 2, tail=1)]
    ay = [_centripetal(p, c, n, eps) for p, c, n in padded_windows(samples, 3, head=1, tail=1)]
    az = [gravity_latitude_model(s.position.lat, altitude=s.altitude) for s in samples]

    for sample, acceleration in zip(samples, zip(ax, ay, az)):
        yield replace(sample, acceleration=acceleration)


def synthesize_trip(
    segments: Iterable[RouteSegment],
    provider: ElevationProvider,
    fs: float = 1.0,
    params: SynthesisParams | None = None,
) -> Trip:
    """Build the sampled trip for a route.

    Args:
        segments: Route segments in travel order
        provider: Elevation lookup service
        fs: Sampling frequency in Hz, ignored when ``params`` is given
        params: Full set of synthesis constants

    Raises:
        InvalidArgument: If ``fs`` is not positive or there are no segments.
    """
    if params is None:
        params = SynthesisParams(fs=fs)
    segments = list(segments)
    if not segments:
        raise InvalidArgument("segments", segments, "at least one route segment is required")
    if provider is None:
        raise InvalidArgument("provider", provider, "an elevation provider is required")

    dt = params.dt
    positions = list(dense_positions(segments, dt))
    provisional = list(first_pass_samples(positions, dt))
    logger.debug("Resampled %d segments into %d positions", len(segments), len(provisional))

    enriched = list(enrich_elevation(provisional, provider, params.chunk_size))
    dropped = len(provisional) - len(enriched)
    if dropped:
        logger.warning("%d of %d samples dropped for missing elevation", dropped, len(provisional))

    sloped = list(derive_slopes(enriched, params.eps))
    samples = tuple(decompose_acceleration(sloped, dt, params.eps))
    logger.info("Synthesized trip: %d samples at %.3g Hz", len(samples), params.fs)

    return Trip(samples=samples, params=params)
