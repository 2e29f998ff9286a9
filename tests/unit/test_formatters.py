import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import gpxpy
import pytest

from drive_simulator.formatters import (
    CSV_HEADER,
    KML_NAMESPACE,
    format_distance,
    format_duration,
    segments_to_kml,
    trip_to_csv,
    trip_to_gpx,
    trip_to_kml,
)
from drive_simulator.models import GeoPoint, RouteSegment, Sample, SynthesisParams, Trip

NS = {"kml": KML_NAMESPACE}


@pytest.fixture
def trip():
    samples = (
        Sample(GeoPoint(45.0, 9.0), 90.0, 12.5, 12.5, 120.0, 0.01, (0.5, -0.25, 9.806)),
        Sample(GeoPoint(45.0, 9.00016), 91.5, 12.0, 12.0, 120.125, 0.0, (0.0, 0.0, 9.806)),
    )
    return Trip(samples=samples, params=SynthesisParams(fs=2.0))


class TestTripToKml:
    def test_one_placemark_per_sample(self, trip):
        root = ET.fromstring(trip_to_kml(trip).encode("utf-8"))
        placemarks = root.findall("kml:Document/kml:Placemark", NS)
        assert len(placemarks) == 2

    def test_extended_data_and_coordinates(self, trip):
        root = ET.fromstring(trip_to_kml(trip).encode("utf-8"))
        placemark = root.find("kml:Document/kml:Placemark", NS)

        data = {
            d.get("name"): float(d.find("kml:value", NS).text)
            for d in placemark.findall("kml:ExtendedData/kml:Data", NS)
        }
        assert list(data) == ["bearing", "slope", "deltaDistance", "velocity", "altitude", "ax", "ay", "az"]
        assert data["velocity"] == 12.5
        assert data["ay"] == -0.25

        coords = placemark.find("kml:Point/kml:coordinates", NS).text
        assert coords == "9.0,45.0,120.0"

    def test_utf8_declaration(self, trip):
        assert trip_to_kml(trip).startswith('<?xml version="1.0" encoding="UTF-8"?>')

    def test_empty_trip(self):
        root = ET.fromstring(trip_to_kml(Trip(samples=())).encode("utf-8"))
        assert root.findall("kml:Document/kml:Placemark", NS) == []


class TestSegmentsToKml:
    def test_segment_fields(self):
        seg = RouteSegment(GeoPoint(1.0, 2.0), GeoPoint(1.0, 2.001), 50.0, 10.0, 111.0, 11.1, 3.0)
        root = ET.fromstring(segments_to_kml([seg]).encode("utf-8"))
        placemark = root.find("kml:Document/kml:Placemark", NS)
        names = [d.get("name") for d in placemark.findall("kml:ExtendedData/kml:Data", NS)]
        assert names == ["elevation", "velocity", "deltaDistance", "deltaDuration", "deltaElevation"]
        assert placemark.find("kml:Point/kml:coordinates", NS).text == "2.0,1.0,50.0"


class TestTripToCsv:
    def test_header_and_rows(self, trip):
        lines = trip_to_csv(trip).splitlines()
        assert lines[0] == ";".join(CSV_HEADER)
        assert len(lines) == 3
        assert lines[1].split(";") == ["45.0", "9.0", "90.0", "12.5", "12.5", "120.0", "0.01", "0.5", "-0.25", "9.806"]

    def test_custom_separator(self, trip):
        lines = trip_to_csv(trip, sep=",").splitlines()
        assert lines[0].startswith("latitude,longitude,bearing(deg)")
        assert len(lines[2].split(",")) == 10

    def test_empty_trip_has_header_only(self):
        assert trip_to_csv(Trip(samples=())) == ";".join(CSV_HEADER) + "\n"


class TestTripToGpx:
    def test_points_are_timestamped_by_dt(self, trip):
        start = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)
        slow_trip = Trip(samples=trip.samples, params=SynthesisParams(fs=0.5))
        gpx = gpxpy.parse(trip_to_gpx(slow_trip, start_time=start, name="Commute"))

        track = gpx.tracks[0]
        assert track.name == "Commute"
        points = track.segments[0].points
        assert len(points) == 2
        assert points[0].latitude == 45.0
        assert points[0].elevation == 120.0
        assert (points[1].time - points[0].time).total_seconds() == 2.0
        assert points[0].time == start

    def test_defaults_to_current_time(self, trip):
        gpx = gpxpy.parse(trip_to_gpx(trip))
        first = gpx.tracks[0].segments[0].points[0]
        assert first.time is not None
        assert gpx.tracks[0].name is None


class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (0, "0h 00m 00s"),
            (59.9, "0h 00m 59s"),
            (3725, "1h 02m 05s"),
            (36000, "10h 00m 00s"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestFormatDistance:
    def test_format(self):
        assert format_distance(10000) == "10.00 km (6.21 mi)"

    def test_zero(self):
        assert format_distance(0) == "0.00 km (0.00 mi)"
