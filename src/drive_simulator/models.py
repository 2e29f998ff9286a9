from dataclasses import dataclass, field

from drive_simulator.errors import InvalidArgument

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0


@dataclass(frozen=True)
class GeoPoint:
    lat: float  # degrees
    lon: float  # degrees

    def __post_init__(self):
        if not MIN_LATITUDE <= self.lat <= MAX_LATITUDE:
            raise InvalidArgument("lat", self.lat, "latitude must be within [-90, 90]")
        if not MIN_LONGITUDE <= self.lon <= MAX_LONGITUDE:
            raise InvalidArgument("lon", self.lon, "longitude must be within [-180, 180]")

    def __iter__(self):
        yield self.lat
        yield self.lon


@dataclass(frozen=True)
class RouteSegment:
    start: GeoPoint
    end: GeoPoint
    elevation: float  # meters at start
    velocity: float  # m/s, average over the segment
    delta_distance: float  # meters
    delta_time: float  # seconds
    delta_elevation: float  # meters, end minus start

    def __post_init__(self):
        if self.velocity < 0:
            raise InvalidArgument("velocity", self.velocity, "must be >= 0")
        if self.delta_time < 0:
            raise InvalidArgument("delta_time", self.delta_time, "must be >= 0")


@dataclass(frozen=True)
class Sample:
    position: GeoPoint
    bearing: float  # degrees [0, 360)
    velocity: float  # m/s
    delta_distance: float  # meters to the next sample
    altitude: float  # meters
    slope: float  # rise over run
    acceleration: tuple[float, float, float] = (0.0, 0.0, 0.0)  # (ax, ay, az) m/s²


@dataclass(frozen=True)
class SynthesisParams:
    fs: float = 1.0  # sampling frequency, Hz
    chunk_size: int = 100  # points per elevation request
    eps: float = 1e-9  # guard for near-zero denominators

    def __post_init__(self):
        if not self.fs > 0:
            raise InvalidArgument("fs", self.fs, "sampling frequency must be > 0")
        if self.chunk_size < 1:
            raise InvalidArgument("chunk_size", self.chunk_size, "must be >= 1")

    @property
    def dt(self) -> float:
        return 1.0 / self.fs


@dataclass(frozen=True)
class Trip:
    samples: tuple[Sample, ...]
    params: SynthesisParams = field(default_factory=SynthesisParams)

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self):
        return iter(self.samples)

    def __getitem__(self, index):
        return self.samples[index]

    @property
    def dt(self) -> float:
        return self.params.dt

    @property
    def duration(self) -> float:
        """Seconds covered by the trip at the nominal time step."""
        return len(self.samples) * self.params.dt

    @property
    def total_distance(self) -> float:
        """Meters travelled, summed from per-sample distances."""
        return sum(s.delta_distance for s in self.samples)
