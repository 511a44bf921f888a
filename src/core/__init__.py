"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Earthquake data parsing
- Feed query construction
- Snapshot aggregations
- Map marker styling
- Presentation formatting
- Refresh state transitions

All functions here are deterministic and have no I/O.
"""

from src.core.earthquake import SeismicEvent, EventDetails, parse_events, parse_event_details
from src.core.query import FilterConfig, QuerySpec, build_query, duration_for
from src.core.aggregations import (
    classify_magnitude,
    classify_depth,
    summary_stats,
    magnitude_histogram,
    magnitude_distribution,
    depth_distribution,
    hourly_activity,
    recent_events,
    build_dashboard,
)
from src.core.map_markers import create_map_markers, get_magnitude_color
from src.core.refresh import DashboardState, RefreshStatus

__all__ = [
    # Earthquake
    "SeismicEvent",
    "EventDetails",
    "parse_events",
    "parse_event_details",
    # Query
    "FilterConfig",
    "QuerySpec",
    "build_query",
    "duration_for",
    # Aggregations
    "classify_magnitude",
    "classify_depth",
    "summary_stats",
    "magnitude_histogram",
    "magnitude_distribution",
    "depth_distribution",
    "hourly_activity",
    "recent_events",
    "build_dashboard",
    # Map markers
    "create_map_markers",
    "get_magnitude_color",
    # Refresh
    "DashboardState",
    "RefreshStatus",
]
