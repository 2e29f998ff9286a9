"""Trip profile chart generation."""

import io

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt

from drive_simulator.geodesy import STANDARD_GRAVITY
from drive_simulator.models import Trip


def add_speed_overlay(ax, times_min: list, speeds_kmh: list, imperial: bool = False):
    """Add speed line overlay with right Y-axis to the altitude plot.

    Args:
        ax: Primary matplotlib axis
        times_min: X-axis time values in minutes
        speeds_kmh: Speed values in km/h
        imperial: If True, use imperial units (mph)
    """
    if imperial:
        speeds = [s * 0.621371 for s in speeds_kmh]
        label = 'Speed (mph)'
        tick_interval = 10
    else:
        speeds = list(speeds_kmh)
        label = 'Speed (km/h)'
        tick_interval = 20

    ax2 = ax.twinx()
    ax2.plot(times_min, speeds, color='#2196F3', linewidth=1.2, alpha=0.7)
    ax2.set_ylabel(label, fontsize=10, color='#2196F3')
    ax2.tick_params(axis='y', labelcolor='#2196F3')

    max_speed = max(speeds) if speeds else 50
    max_tick = int(max_speed / tick_interval + 1) * tick_interval
    ax2.set_yticks(range(0, max_tick + 1, tick_interval))
    ax2.set_ylim(0, max_tick)
    ax2.spines['top'].set_visible(False)


def generate_trip_profile(trip: Trip, aspect_ratio: float = 3.0, imperial: bool = False) -> bytes:
    """Generate altitude/speed and acceleration panels for a trip.

    Args:
        trip: Synthesized trip
        aspect_ratio: Width/height ratio of each panel
        imperial: If True, use imperial units for the speed axis

    Returns PNG image as bytes.

    Raises:
        ValueError: If the trip has no samples.
    """
    if len(trip) == 0:
        raise ValueError("Trip has no samples")

    times_min = [i * trip.dt / 60 for i in range(len(trip))]
    altitudes = [s.altitude for s in trip]
    speeds_kmh = [s.velocity * 3.6 for s in trip]
    ax_long = [s.acceleration[0] for s in trip]
    ay_lat = [s.acceleration[1] for s in trip]
    az_dev = [s.acceleration[2] - STANDARD_GRAVITY for s in trip]

    panel_height = 3
    fig_width = panel_height * aspect_ratio
    fig, (ax_alt, ax_acc) = plt.subplots(
        2, 1, figsize=(fig_width, panel_height * 2), sharex=True, facecolor='white'
    )

    # Altitude area with outline
    floor = min(0.0, min(altitudes))
    ax_alt.fill_between(times_min, floor, altitudes, color='#cccccc', linewidth=0)
    ax_alt.plot(times_min, altitudes, color='#333333', linewidth=0.5)
    ax_alt.set_ylabel('Altitude (m)', fontsize=10)
    ax_alt.set_ylim(floor, max(altitudes) * 1.1 if max(altitudes) > 0 else 1.0)
    ax_alt.spines['top'].set_visible(False)
    ax_alt.grid(axis='y', alpha=0.3, linestyle='-', linewidth=0.5)
    add_speed_overlay(ax_alt, times_min, speeds_kmh, imperial)

    ax_acc.plot(times_min, ax_long, color='#ff6600', linewidth=0.8, label='ax')
    ax_acc.plot(times_min, ay_lat, color='#4a90d9', linewidth=0.8, label='ay')
    ax_acc.plot(times_min, az_dev, color='#4CAF50', linewidth=0.8, label='az - g0')
    ax_acc.axhline(y=0, color='#333333', linewidth=0.5, alpha=0.3, linestyle='--')
    ax_acc.set_ylabel('Acceleration (m/s²)', fontsize=10)
    ax_acc.set_xlabel('Time (minutes)', fontsize=10)
    ax_acc.set_xlim(0, times_min[-1] if times_min[-1] > 0 else 1.0)
    ax_acc.spines['top'].set_visible(False)
    ax_acc.spines['right'].set_visible(False)
    ax_acc.grid(axis='y', alpha=0.3, linestyle='-', linewidth=0.5)
    ax_acc.legend(loc='upper right', fontsize=8, frameon=False)

    fig.tight_layout()

    buf = io.BytesIO()
    fig.savefig(buf, format='png', dpi=100,
                facecolor='white', edgecolor='none')
    plt.close(fig)
    buf.seek(0)
    return buf.getvalue()
