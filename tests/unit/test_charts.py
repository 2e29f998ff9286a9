import pytest

from drive_simulator.charts import generate_trip_profile
from drive_simulator.models import GeoPoint, Sample, SynthesisParams, Trip

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def make_trip(n):
    samples = tuple(
        Sample(
            position=GeoPoint(0.0, i * 0.0001),
            bearing=90.0,
            velocity=10.0 + i % 5,
            delta_distance=11.1,
            altitude=100.0 + i,
            slope=0.01,
            acceleration=(0.1 * (i % 3), -0.2, 9.78),
        )
        for i in range(n)
    )
    return Trip(samples=samples, params=SynthesisParams(fs=1.0))


class TestGenerateTripProfile:
    def test_returns_png(self):
        png = generate_trip_profile(make_trip(120))
        assert png.startswith(PNG_MAGIC)

    def test_imperial_units(self):
        assert generate_trip_profile(make_trip(30), imperial=True).startswith(PNG_MAGIC)

    def test_single_sample(self):
        assert generate_trip_profile(make_trip(1)).startswith(PNG_MAGIC)

    def test_empty_trip(self):
        with pytest.raises(ValueError, match="no samples"):
            generate_trip_profile(Trip(samples=()))
