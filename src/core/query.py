"""Feed query construction - Pure functions.

This module translates dashboard filter selections into a fully-qualified
USGS FDSN event query. Executing the query is the shell's job.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode


# USGS FDSN Event Web Service endpoints
USGS_API_BASE = "https://earthquake.usgs.gov/fdsnws/event/1/query"
USGS_COUNT_URL = "https://earthquake.usgs.gov/fdsnws/event/1/count"

TIME_RANGES: dict[str, timedelta] = {
    "hour": timedelta(hours=1),
    "day": timedelta(hours=24),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}

DEFAULT_TIME_RANGE = "day"

ALLOWED_LIMITS = (50, 100, 250, 500)


@dataclass(frozen=True)
class FilterConfig:
    """User-controlled parameters determining which events to request.

    Optional bounds are None when absent. Zero is a real value and is
    sent to the feed like any other.

    Attributes:
        time_range: One of hour, day, week, month
        min_magnitude: Minimum magnitude (0-10)
        max_magnitude: Maximum magnitude (0-10)
        limit: Maximum number of events (50, 100, 250 or 500)
        latitude: Center latitude for a radius search
        longitude: Center longitude for a radius search
        radius_km: Search radius in kilometers
        min_depth: Minimum depth in kilometers
        max_depth: Maximum depth in kilometers
    """
    time_range: str = DEFAULT_TIME_RANGE
    min_magnitude: float | None = None
    max_magnitude: float | None = None
    limit: int = 100
    latitude: float | None = None
    longitude: float | None = None
    radius_km: float | None = None
    min_depth: float | None = None
    max_depth: float | None = None


@dataclass(frozen=True)
class QuerySpec:
    """Immutable, fully-qualified feed query.

    Attributes:
        base_url: Endpoint the query targets
        params: Ordered (name, value) query parameters
    """
    base_url: str
    params: tuple[tuple[str, str], ...]

    def as_dict(self) -> dict[str, str]:
        """Return the parameters as a dict, e.g. for ``requests``."""
        return dict(self.params)

    @property
    def url(self) -> str:
        """Full request URL including the encoded query string."""
        return f"{self.base_url}?{urlencode(self.params)}"


def duration_for(time_range: str) -> timedelta:
    """Map a time range name to its window length.

    Pure function. Unrecognized names fall back to 24 hours.
    """
    return TIME_RANGES.get(time_range, TIME_RANGES[DEFAULT_TIME_RANGE])


def _format_time(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def _format_number(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _filter_params(config: FilterConfig) -> list[tuple[str, str]]:
    """Optional parameters, emitted only for fields that are present."""
    optional = [
        ("minmagnitude", config.min_magnitude),
        ("maxmagnitude", config.max_magnitude),
        ("mindepth", config.min_depth),
        ("maxdepth", config.max_depth),
        ("latitude", config.latitude),
        ("longitude", config.longitude),
        ("maxradiuskm", config.radius_km),
    ]
    return [
        (name, _format_number(value))
        for name, value in optional
        if value is not None
    ]


def _time_window(config: FilterConfig, now: datetime) -> list[tuple[str, str]]:
    start = now - duration_for(config.time_range)
    return [
        ("starttime", _format_time(start)),
        ("endtime", _format_time(now)),
    ]


def build_query(
    config: FilterConfig,
    now: datetime,
    base_url: str = USGS_API_BASE,
) -> QuerySpec:
    """Build the feed query for a filter configuration.

    Pure function: identical (config, now) always yields an identical query.

    Args:
        config: Filter selections
        now: Reference time; the window ends here
        base_url: Feed query endpoint

    Returns:
        QuerySpec ready for the USGS client
    """
    params: list[tuple[str, str]] = [
        ("format", "geojson"),
        ("limit", str(config.limit)),
    ]
    params.extend(_time_window(config, now))
    params.extend(_filter_params(config))
    params.append(("orderby", "time"))

    return QuerySpec(base_url=base_url, params=tuple(params))


def build_count_query(
    config: FilterConfig,
    now: datetime,
    count_url: str = USGS_COUNT_URL,
) -> QuerySpec:
    """Build a query for the feed's count endpoint.

    Pure function. Uses the same time window and filters as build_query,
    without result limit or ordering.
    """
    params: list[tuple[str, str]] = [("format", "geojson")]
    params.extend(_time_window(config, now))
    params.extend(_filter_params(config))

    return QuerySpec(base_url=count_url, params=tuple(params))


def build_detail_query(event_id: str, base_url: str = USGS_API_BASE) -> QuerySpec:
    """Build the lookup query for a single event's extended properties.

    Pure function.
    """
    return QuerySpec(
        base_url=base_url,
        params=(("eventid", event_id), ("format", "geojson")),
    )
