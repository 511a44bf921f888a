"""Earthquake data models and parsing - Pure functions.

This module handles parsing USGS GeoJSON data into typed SeismicEvent objects.
All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class SeismicEvent:
    """Immutable seismic event, one per feed record.

    Attributes:
        id: Unique USGS event ID
        magnitude: Event magnitude, None when the feed has no value
        depth_km: Depth in kilometers (third coordinate), None when absent
        latitude: Epicenter latitude
        longitude: Epicenter longitude
        place: Human-readable location description
        time_ms: Event time in milliseconds since the epoch
        felt: Number of "felt" reports, 0 when absent
        url: USGS event page URL
    """
    id: str
    magnitude: float | None
    depth_km: float | None
    latitude: float
    longitude: float
    place: str
    time_ms: int
    felt: int = 0
    url: str = ""

    @property
    def time(self) -> datetime:
        """Return the event time as a UTC datetime."""
        return datetime.fromtimestamp(self.time_ms / 1000, tz=timezone.utc)

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class EventDetails:
    """Extended properties only available from the per-event detail lookup.

    Attributes:
        event: The base event
        alert_level: PAGER alert level (green/yellow/orange/red) or None
        is_tsunami: Whether the tsunami flag is set
        significance: USGS significance score
        max_mmi: Maximum estimated instrumental intensity
        cdi: Maximum reported community intensity
        detail_url: USGS event page URL
    """
    event: SeismicEvent
    alert_level: str | None = None
    is_tsunami: bool = False
    significance: int | None = None
    max_mmi: float | None = None
    cdi: float | None = None
    detail_url: str | None = None

    @property
    def id(self) -> str:
        return self.event.id


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


def parse_event(feature: dict[str, Any]) -> SeismicEvent | None:
    """Parse a single GeoJSON feature into a SeismicEvent.

    Pure function: takes raw dict, returns typed SeismicEvent or None if invalid.
    Missing magnitude or depth is kept as None rather than dropping the event.

    Args:
        feature: GeoJSON feature dict from USGS API

    Returns:
        SeismicEvent or None if parsing fails
    """
    try:
        props = feature.get("properties") or {}
        geometry = feature.get("geometry") or {}
        coords = geometry.get("coordinates") or []

        if len(coords) < 2:
            return None

        # USGS uses milliseconds since epoch
        time_ms = props.get("time")
        if time_ms is None:
            return None

        depth = coords[2] if len(coords) > 2 else None

        return SeismicEvent(
            id=str(feature.get("id", "")),
            magnitude=_optional_float(props.get("mag")),
            depth_km=_optional_float(depth),
            longitude=float(coords[0]),
            latitude=float(coords[1]),
            place=props.get("place") or "Unknown location",
            time_ms=int(time_ms),
            felt=int(props.get("felt") or 0),
            url=props.get("url") or "",
        )
    except (AttributeError, TypeError, ValueError):
        return None


def parse_events(geojson: dict[str, Any]) -> list[SeismicEvent]:
    """Parse USGS GeoJSON response into a list of SeismicEvents.

    Pure function: skips invalid features and keeps feed order.
    A response without a features field is treated as empty.

    Args:
        geojson: Full GeoJSON FeatureCollection from USGS API

    Returns:
        List of valid SeismicEvent objects
    """
    features = geojson.get("features") or []
    events = []

    for feature in features:
        event = parse_event(feature)
        if event is not None:
            events.append(event)

    return events


def parse_event_details(geojson: dict[str, Any]) -> EventDetails | None:
    """Parse a USGS detail response into EventDetails.

    The detail endpoint returns a bare Feature for an ``eventid`` lookup;
    a FeatureCollection is also accepted, using its first feature.

    Args:
        geojson: Detail response from USGS API

    Returns:
        EventDetails or None if the response holds no parseable feature
    """
    if not isinstance(geojson, dict):
        return None

    feature = geojson
    if geojson.get("type") == "FeatureCollection" or "features" in geojson:
        features = geojson.get("features") or []
        if not features:
            return None
        feature = features[0]

    event = parse_event(feature)
    if event is None:
        return None

    props = feature.get("properties") or {}
    try:
        significance = props.get("sig")
        return EventDetails(
            event=event,
            alert_level=props.get("alert"),
            is_tsunami=bool(props.get("tsunami") or 0),
            significance=int(significance) if significance is not None else None,
            max_mmi=_optional_float(props.get("mmi")),
            cdi=_optional_float(props.get("cdi")),
            detail_url=props.get("url"),
        )
    except (TypeError, ValueError):
        return None


def with_magnitude(events: list[SeismicEvent] | tuple[SeismicEvent, ...]) -> list[SeismicEvent]:
    """Return only the events that carry a magnitude value."""
    return [e for e in events if e.magnitude is not None]
