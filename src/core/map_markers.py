"""Map marker styling - Pure functions.

This module decides how each event is drawn on the interactive map and
which color the dashboard uses for a magnitude. Drawing the map itself is
left to the browser's mapping library.
"""

from dataclasses import dataclass
from typing import Sequence

from src.core.aggregations import (
    MAJOR,
    STRONG,
    MODERATE,
    LIGHT,
    MINOR,
    classify_magnitude,
)
from src.core.earthquake import SeismicEvent


# Dashboard and statistics palette
MAGNITUDE_COLORS = {
    MAJOR: "#e74c3c",
    STRONG: "#f39c12",
    MODERATE: "#f1c40f",
    LIGHT: "#27ae60",
    MINOR: "#3498db",
}

# Map circle palette
MARKER_COLORS = {
    MAJOR: "#d32f2f",     # red
    STRONG: "#f57c00",    # orange
    MODERATE: "#fbc02d",  # yellow
    LIGHT: "#388e3c",     # green
    MINOR: "#1976d2",     # blue
}

MARKER_FILL_OPACITY = 0.3
MARKER_WEIGHT = 2

# Circle radius in meters per unit of magnitude
METERS_PER_MAGNITUDE = 10000


@dataclass(frozen=True)
class MapMarker:
    """Immutable description of one event circle on the map.

    Attributes:
        event_id: USGS event ID
        latitude: Circle center latitude
        longitude: Circle center longitude
        radius_m: Circle radius in meters
        color: Hex color for stroke and fill
        fill_opacity: Fill opacity (0-1)
        weight: Stroke width in pixels
        magnitude: Event magnitude, shown in the popup
        place: Location description, shown in the popup
        depth_km: Depth, shown in the popup
        time_ms: Event time, shown in the popup
        felt: Felt report count, shown in the popup
    """
    event_id: str
    latitude: float
    longitude: float
    radius_m: float
    color: str
    fill_opacity: float
    weight: int
    magnitude: float
    place: str
    depth_km: float | None
    time_ms: int
    felt: int


def get_magnitude_color(magnitude: float) -> str:
    """Get the dashboard hex color for a magnitude.

    Pure function.
    """
    return MAGNITUDE_COLORS[classify_magnitude(magnitude)]


def get_marker_color(magnitude: float) -> str:
    """Get the map circle hex color for a magnitude.

    Pure function.
    """
    return MARKER_COLORS[classify_magnitude(magnitude)]


def get_marker_radius_m(magnitude: float) -> float:
    """Circle radius in meters, proportional to magnitude.

    Pure function.
    """
    return magnitude * METERS_PER_MAGNITUDE


def create_map_marker(event: SeismicEvent) -> MapMarker | None:
    """Create the marker for a single event.

    Pure function. Events without a magnitude get no marker; zero
    coordinates are valid locations.

    Args:
        event: Event to draw

    Returns:
        MapMarker or None if the event cannot be drawn
    """
    if event.magnitude is None:
        return None

    return MapMarker(
        event_id=event.id,
        latitude=event.latitude,
        longitude=event.longitude,
        radius_m=get_marker_radius_m(event.magnitude),
        color=get_marker_color(event.magnitude),
        fill_opacity=MARKER_FILL_OPACITY,
        weight=MARKER_WEIGHT,
        magnitude=event.magnitude,
        place=event.place,
        depth_km=event.depth_km,
        time_ms=event.time_ms,
        felt=event.felt,
    )


def create_map_markers(snapshot: Sequence[SeismicEvent]) -> list[MapMarker]:
    """Create markers for every drawable event, in snapshot order.

    Pure function.
    """
    markers = []
    for event in snapshot:
        marker = create_map_marker(event)
        if marker is not None:
            markers.append(marker)
    return markers
