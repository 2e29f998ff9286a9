"""Serialization of trips and routes, plus display helpers."""

import csv
import io
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from typing import Sequence

import gpxpy
import gpxpy.gpx

from drive_simulator.models import RouteSegment, Trip

KML_NAMESPACE = "http://www.opengis.net/kml/2.2"

CSV_HEADER = [
    "latitude",
    "longitude",
    "bearing(deg)",
    "velocity(m/s)",
    "deltaDistance(m)",
    "altitude(m)",
    "slope",
    "ax(m/s^2)",
    "ay(m/s^2)",
    "az(m/s^2)",
]


def _kml_document() -> tuple[ET.Element, ET.Element]:
    root = ET.Element("kml", xmlns=KML_NAMESPACE)
    return root, ET.SubElement(root, "Document")


def _add_placemark(document: ET.Element, data: list[tuple[str, float]], lon: float, lat: float, alt: float) -> None:
    placemark = ET.SubElement(document, "Placemark")
    extended = ET.SubElement(placemark, "ExtendedData")
    for name, value in data:
        item = ET.SubElement(extended, "Data", name=name)
        ET.SubElement(item, "value").text = repr(value)
    point = ET.SubElement(placemark, "Point")
    ET.SubElement(point, "coordinates").text = f"{lon!r},{lat!r},{alt!r}"


def _kml_to_string(root: ET.Element) -> str:
    ET.indent(root)
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


def trip_to_kml(trip: Trip) -> str:
    """One Placemark per sample with its kinematics as ExtendedData."""
    root, document = _kml_document()
    for s in trip:
        ax, ay, az = s.acceleration
        _add_placemark(
            document,
            [
                ("bearing", s.bearing),
                ("slope", s.slope),
                ("deltaDistance", s.delta_distance),
                ("velocity", s.velocity),
                ("altitude", s.altitude),
                ("ax", ax),
                ("ay", ay),
                ("az", az),
            ],
            s.position.lon,
            s.position.lat,
            s.altitude,
        )
    return _kml_to_string(root)


def segments_to_kml(segments: Sequence[RouteSegment]) -> str:
    """One Placemark per route segment, placed at the segment start."""
    root, document = _kml_document()
    for seg in segments:
        _add_placemark(
            document,
            [
                ("elevation", seg.elevation),
                ("velocity", seg.velocity),
                ("deltaDistance", seg.delta_distance),
                ("deltaDuration", seg.delta_time),
                ("deltaElevation", seg.delta_elevation),
            ],
            seg.start.lon,
            seg.start.lat,
            seg.elevation,
        )
    return _kml_to_string(root)


def trip_to_csv(trip: Trip, sep: str = ";") -> str:
    """Delimited text, one row per sample, with a units header."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=sep, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for s in trip:
        writer.writerow(
            [
                s.position.lat,
                s.position.lon,
                s.bearing,
                s.velocity,
                s.delta_distance,
                s.altitude,
                s.slope,
                *s.acceleration,
            ]
        )
    return buf.getvalue()


def trip_to_gpx(trip: Trip, start_time: datetime | None = None, name: str | None = None) -> str:
    """GPX track with one timestamped point per sample.

    Timestamps advance by the trip's time step from ``start_time`` (now, UTC,
    when omitted).
    """
    if start_time is None:
        start_time = datetime.now(timezone.utc).replace(microsecond=0)

    gpx = gpxpy.gpx.GPX()
    track = gpxpy.gpx.GPXTrack(name=name)
    gpx.tracks.append(track)
    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)

    for i, s in enumerate(trip):
        segment.points.append(
            gpxpy.gpx.GPXTrackPoint(
                latitude=s.position.lat,
                longitude=s.position.lon,
                elevation=s.altitude,
                time=start_time + timedelta(seconds=i * trip.dt),
            )
        )
    return gpx.to_xml()


def format_duration(seconds: float) -> str:
    """Format seconds as Xh Ym Zs string."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours}h {minutes:02d}m {secs:02d}s"


def format_distance(meters: float) -> str:
    """Format meters as km with miles in parentheses."""
    km = meters / 1000
    return f"{km:.2f} km ({km * 0.621371:.2f} mi)"
