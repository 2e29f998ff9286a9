import pytest

from drive_simulator.errors import InvalidArgument
from drive_simulator.geodesy import haversine
from drive_simulator.models import GeoPoint
from drive_simulator.parser import DEFAULT_SPEED, parse_gpx_route

TIMED_TRACK = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><name>Timed</name><trkseg>
    <trkpt lat="45.0" lon="9.0"><ele>100</ele><time>2024-05-01T10:00:00Z</time></trkpt>
    <trkpt lat="45.001" lon="9.0"><ele>105</ele><time>2024-05-01T10:00:10Z</time></trkpt>
    <trkpt lat="45.002" lon="9.0"><ele>103</ele><time>2024-05-01T10:00:30Z</time></trkpt>
  </trkseg></trk>
</gpx>
"""

UNTIMED_ROUTE = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <rte><name>Planned</name>
    <rtept lat="0.0" lon="0.0"></rtept>
    <rtept lat="0.0" lon="0.001"></rtept>
  </rte>
</gpx>
"""

SINGLE_POINT = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><trkseg><trkpt lat="45.0" lon="9.0"></trkpt></trkseg></trk>
</gpx>
"""


@pytest.fixture
def write_gpx(tmp_path):
    def write(content, name="route.gpx"):
        path = tmp_path / name
        path.write_text(content)
        return str(path)

    return write


class TestParseGpxRoute:
    def test_timed_track(self, write_gpx):
        segments = parse_gpx_route(write_gpx(TIMED_TRACK))

        assert len(segments) == 3
        first, second, last = segments
        assert first.start == GeoPoint(45.0, 9.0)
        assert first.end == GeoPoint(45.001, 9.0)
        assert first.delta_time == 10.0
        assert first.delta_distance == pytest.approx(haversine(first.start, first.end))
        assert first.velocity == pytest.approx(first.delta_distance / 10.0)
        assert first.elevation == 100.0
        assert first.delta_elevation == 5.0
        assert second.delta_time == 20.0
        assert second.delta_elevation == -2.0

        assert last.start == last.end
        assert last.delta_distance == 0.0
        assert last.delta_time == 0.0
        assert last.velocity == 0.0

    def test_untimed_route_uses_default_speed(self, write_gpx):
        segments = parse_gpx_route(write_gpx(UNTIMED_ROUTE), default_speed=10.0)

        assert len(segments) == 2
        seg = segments[0]
        assert seg.velocity == pytest.approx(10.0)
        assert seg.delta_time == pytest.approx(seg.delta_distance / 10.0)
        assert seg.elevation == 0.0

    def test_default_speed_constant(self, write_gpx):
        (seg, _) = parse_gpx_route(write_gpx(UNTIMED_ROUTE))
        assert seg.velocity == pytest.approx(DEFAULT_SPEED)

    def test_too_few_points(self, write_gpx):
        with pytest.raises(InvalidArgument) as exc_info:
            parse_gpx_route(write_gpx(SINGLE_POINT))
        assert exc_info.value.name == "gpx_file"

    @pytest.mark.parametrize("speed", [0.0, -5.0])
    def test_rejects_non_positive_default_speed(self, write_gpx, speed):
        with pytest.raises(InvalidArgument) as exc_info:
            parse_gpx_route(write_gpx(UNTIMED_ROUTE), default_speed=speed)
        assert exc_info.value.name == "default_speed"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_gpx_route(str(tmp_path / "nope.gpx"))
