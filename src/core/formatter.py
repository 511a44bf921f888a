"""Presentation formatting - Pure functions.

This module turns events and aggregation results into display strings and
JSON-ready dicts for the renderers. Rounding happens here, never in the
aggregations.
"""

from dataclasses import asdict
from typing import Any

from src.core.aggregations import DashboardView, SummaryStats, classify_magnitude
from src.core.earthquake import EventDetails, SeismicEvent
from src.core.map_markers import MapMarker, get_magnitude_color
from src.core.refresh import DashboardState


def _round1(value: float | None) -> float | None:
    if value is None:
        return None
    return round(value, 1)


def format_magnitude(magnitude: float | None) -> str:
    """Format a magnitude to one decimal place, or 'N/A'.

    Pure function.
    """
    if magnitude is None:
        return "N/A"
    return f"{magnitude:.1f}"


def format_depth(depth_km: float | None) -> str:
    """Format a depth in kilometers, or 'N/A'.

    Pure function.
    """
    if depth_km is None:
        return "N/A"
    return f"{depth_km:.1f} km"


def format_event_summary(event: SeismicEvent) -> str:
    """Format a one-line summary of an event.

    Pure function.

    Args:
        event: Event to summarize

    Returns:
        One-line summary string
    """
    time_str = event.time.strftime("%Y-%m-%d %H:%M:%S UTC")
    return (
        f"M{format_magnitude(event.magnitude)} - {event.place} "
        f"at {time_str} (depth: {format_depth(event.depth_km)}, "
        f"felt: {event.felt})"
    )


def event_to_dict(event: SeismicEvent) -> dict[str, Any]:
    """Convert an event to API response format.

    Pure function.
    """
    magnitude = event.magnitude
    return {
        "id": event.id,
        "magnitude": magnitude,
        "magnitude_band": classify_magnitude(magnitude) if magnitude is not None else None,
        "color": get_magnitude_color(magnitude) if magnitude is not None else None,
        "place": event.place,
        "time": event.time.isoformat(),
        "time_ms": event.time_ms,
        "latitude": event.latitude,
        "longitude": event.longitude,
        "depth_km": event.depth_km,
        "felt": event.felt,
        "url": event.url,
    }


def details_to_dict(details: EventDetails) -> dict[str, Any]:
    """Convert event details to API response format.

    Pure function.
    """
    return {
        **event_to_dict(details.event),
        "alert_level": details.alert_level,
        "is_tsunami": details.is_tsunami,
        "significance": details.significance,
        "max_mmi": details.max_mmi,
        "cdi": details.cdi,
        "detail_url": details.detail_url,
    }


def summary_to_dict(summary: SummaryStats) -> dict[str, Any]:
    """Convert summary statistics to API response format.

    Pure function. Magnitudes are rounded to one decimal place.
    """
    return {
        "total": summary.total,
        "largest_magnitude": _round1(summary.largest_magnitude),
        "largest_magnitude_color": get_magnitude_color(summary.largest_magnitude),
        "average_magnitude": _round1(summary.average_magnitude),
        "count_last_24h": summary.count_last_24h,
    }


def marker_to_dict(marker: MapMarker) -> dict[str, Any]:
    """Convert a map marker to API response format.

    Pure function.
    """
    return asdict(marker)


def status_to_dict(state: DashboardState) -> dict[str, Any]:
    """Refresh status fields the UI uses for its loading/empty state.

    Pure function.
    """
    return {
        "status": state.status.value,
        "loading": state.is_loading,
        "last_error": state.last_error,
        "last_updated": state.last_updated.isoformat() if state.last_updated else None,
    }


def dashboard_to_dict(view: DashboardView) -> dict[str, Any]:
    """Convert the full dashboard view to API response format.

    Pure function.

    Args:
        view: Aggregated dashboard view

    Returns:
        JSON-ready dict
    """
    return {
        "summary": summary_to_dict(view.summary),
        "recent_earthquakes": [event_to_dict(e) for e in view.recent],
        "magnitude_histogram": [asdict(b) for b in view.magnitude_histogram],
        "magnitude_distribution": dict(view.magnitude_distribution),
        "depth_distribution": dict(view.depth_distribution),
        "hourly_activity": [asdict(b) for b in view.hourly_activity],
    }
