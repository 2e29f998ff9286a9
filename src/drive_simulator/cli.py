import argparse
import logging
import sys
from pathlib import Path

from geopy.distance import geodesic

from drive_simulator import __version__, get_git_hash
from drive_simulator.charts import generate_trip_profile
from drive_simulator.config import get_api_key, load_config
from drive_simulator.directions import fetch_route_segments, load_segments, save_segments
from drive_simulator.elevation_api import ELEVATION_APIS, get_elevation_provider
from drive_simulator.errors import InvalidArgument, ProviderError
from drive_simulator.formatters import (
    format_distance,
    format_duration,
    segments_to_kml,
    trip_to_csv,
    trip_to_gpx,
    trip_to_kml,
)
from drive_simulator.models import GeoPoint, RouteSegment, SynthesisParams, Trip
from drive_simulator.parser import parse_gpx_route
from drive_simulator.synthesizer import synthesize_trip

logger = logging.getLogger(__name__)

# Default values for CLI options
DEFAULTS = {
    "fs": 1.0,
    "elevation_api": "google",
    "csv_separator": ";",
    "default_speed": 13.9,
    "imperial": False,
}


def build_parser(config: dict | None = None) -> argparse.ArgumentParser:
    """Build argument parser with defaults from config file."""
    if config is None:
        config = {}

    def get_default(key: str):
        return config.get(key, DEFAULTS[key])

    parser = argparse.ArgumentParser(
        prog="drive-simulator",
        description="Synthesize a sampled driving trip (position, speed, slope, acceleration) for a route.",
    )
    parser.add_argument("--from", dest="origin", help="Start point as LAT,LON")
    parser.add_argument("--to", dest="destination", help="End point as LAT,LON")
    parser.add_argument(
        "--route-file",
        help="Use a saved route (.json) or a GPX file (.gpx) instead of fetching directions",
    )
    parser.add_argument("--out-dir", required=True, help="Existing directory for the output files")
    parser.add_argument("--out-filename", required=True, help="Base name of the output files")
    parser.add_argument(
        "--fs",
        type=float,
        default=get_default("fs"),
        help=f"Sampling frequency in Hz (default: {DEFAULTS['fs']})",
    )
    parser.add_argument(
        "--elevation-api",
        choices=ELEVATION_APIS,
        default=get_default("elevation_api"),
        help=f"Elevation service (default: {DEFAULTS['elevation_api']})",
    )
    parser.add_argument(
        "--csv-sep",
        default=get_default("csv_separator"),
        help=f"CSV field separator (default: {DEFAULTS['csv_separator']!r})",
    )
    parser.add_argument(
        "--default-speed",
        type=float,
        default=get_default("default_speed"),
        help=f"Speed in m/s for GPX points without timestamps (default: {DEFAULTS['default_speed']})",
    )
    parser.add_argument("--gpx", action="store_true", help="Also write the trip as GPX")
    parser.add_argument("--chart", action="store_true", help="Also write a PNG trip profile")
    parser.add_argument(
        "--imperial",
        action="store_true",
        default=get_default("imperial"),
        help="Use mph for the chart speed axis",
    )
    parser.add_argument(
        "--save-route",
        action="store_true",
        help="Also write the route segments as KML, and as JSON for offline replay",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__} ({get_git_hash()})",
    )
    return parser


def parse_lat_lon(value: str, name: str) -> GeoPoint:
    """Parse a "LAT,LON" string.

    Raises:
        InvalidArgument: If the string is not two numbers or is out of range.
    """
    parts = value.split(",")
    if len(parts) != 2:
        raise InvalidArgument(name, value, "not a valid lat,lon string")
    try:
        lat, lon = float(parts[0]), float(parts[1])
    except ValueError as e:
        raise InvalidArgument(name, value, "not a valid lat,lon string") from e
    return GeoPoint(lat, lon)


def load_route(args, provider, api_key: str | None) -> list[RouteSegment]:
    """Route segments from a file or from the directions service."""
    if args.route_file:
        if args.route_file.lower().endswith(".gpx"):
            return parse_gpx_route(args.route_file, args.default_speed)
        return load_segments(args.route_file)

    origin = parse_lat_lon(args.origin, "--from")
    destination = parse_lat_lon(args.destination, "--to")
    if not api_key:
        raise InvalidArgument(
            "google_api_key", api_key, "directions need a key in the config file or GOOGLE_MAPS_API_KEY"
        )
    return fetch_route_segments(origin, destination, api_key, provider)


def print_summary(trip: Trip, written: list[Path]) -> None:
    print("=== Trip Synthesis ===")
    print(f"Samples:        {len(trip)} at {trip.params.fs:g} Hz")
    print(f"Duration:       {format_duration(trip.duration)}")
    print(f"Distance:       {format_distance(trip.total_distance)}")
    if len(trip) > 0:
        first, last = trip[0].position, trip[-1].position
        straight = geodesic((first.lat, first.lon), (last.lat, last.lon)).meters
        print(f"Straight Line:  {format_distance(straight)}")
        max_kmh = max(s.velocity for s in trip) * 3.6
        print(f"Max Speed:      {max_kmh:.1f} km/h ({max_kmh * 0.621371:.1f} mph)")
        altitudes = [s.altitude for s in trip]
        print(f"Altitude:       {min(altitudes):.0f} - {max(altitudes):.0f} m")
    for path in written:
        print(f"Wrote:          {path}")


def main(argv: list[str] | None = None) -> None:
    config = load_config()
    parser = build_parser(config)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.route_file and not (args.origin and args.destination):
        parser.error("either --route-file or both --from and --to are required")
    if len(args.csv_sep) != 1:
        parser.error(f"--csv-sep must be a single character, got {args.csv_sep!r}")
    # config file defaults bypass argparse choices
    if args.elevation_api not in ELEVATION_APIS:
        parser.error(
            f"--elevation-api must be one of {', '.join(ELEVATION_APIS)}, got {args.elevation_api!r}"
        )

    out_dir = Path(args.out_dir)
    if not out_dir.is_dir():
        print(f"Error: Output directory does not exist: {out_dir}", file=sys.stderr)
        sys.exit(1)

    api_key = get_api_key(config)
    try:
        params = SynthesisParams(fs=args.fs)
        provider = get_elevation_provider(args.elevation_api, api_key)
        segments = load_route(args, provider, api_key)
        trip = synthesize_trip(segments, provider, params=params)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        sys.exit(1)
    except InvalidArgument as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ProviderError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if len(trip) == 0:
        logger.warning("Trip is empty; no elevation batch succeeded or the route has no duration")

    outputs = {
        "kml": trip_to_kml(trip),
        "csv": trip_to_csv(trip, sep=args.csv_sep),
    }
    if args.gpx:
        outputs["gpx"] = trip_to_gpx(trip, name=args.out_filename)

    written = []
    for extension, content in outputs.items():
        path = out_dir / f"{args.out_filename}.{extension}"
        path.write_text(content, encoding="utf-8")
        written.append(path)

    if args.save_route:
        route_kml_path = out_dir / f"{args.out_filename}.route.kml"
        route_kml_path.write_text(segments_to_kml(segments), encoding="utf-8")
        written.append(route_kml_path)
        if not args.route_file:
            route_path = out_dir / f"{args.out_filename}.route.json"
            save_segments(segments, route_path)
            written.append(route_path)

    if args.chart and len(trip) > 0:
        chart_path = out_dir / f"{args.out_filename}.png"
        chart_path.write_bytes(generate_trip_profile(trip, imperial=args.imperial))
        written.append(chart_path)

    print_summary(trip, written)
