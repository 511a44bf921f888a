"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from src.core.query import (
    ALLOWED_LIMITS,
    TIME_RANGES,
    USGS_API_BASE,
    USGS_COUNT_URL,
    FilterConfig,
)


MAGNITUDE_RANGE = (0.0, 10.0)

# Filters the dashboard starts with
DEFAULT_FILTERS = FilterConfig(
    time_range="day",
    min_magnitude=1.0,
    max_magnitude=10.0,
    limit=100,
)


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        feed_base_url: USGS event query endpoint
        count_url: USGS event count endpoint
        request_timeout_seconds: Timeout for feed requests
        refresh_interval_seconds: How often the snapshot is refreshed
        recent_events_count: Length of the recent events list
        default_filters: Filters in effect at startup
    """
    feed_base_url: str = USGS_API_BASE
    count_url: str = USGS_COUNT_URL
    request_timeout_seconds: int = 30
    refresh_interval_seconds: int = 300
    recent_events_count: int = 10
    default_filters: FilterConfig = field(default_factory=lambda: DEFAULT_FILTERS)


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def _result(errors: list[ValidationError]) -> ValidationResult:
    has_critical = any(e.severity == "error" for e in errors)
    return ValidationResult(valid=not has_critical, errors=errors)


def validate_coordinates(lat: float, lon: float, field_name: str) -> list[ValidationError]:
    """Validate latitude/longitude coordinates.

    Pure function.

    Args:
        lat: Latitude value
        lon: Longitude value
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not -90 <= lat <= 90:
        errors.append(ValidationError(
            field=field_name,
            message=f"Latitude {lat} out of range [-90, 90]",
        ))

    if not -180 <= lon <= 180:
        errors.append(ValidationError(
            field=field_name,
            message=f"Longitude {lon} out of range [-180, 180]",
        ))

    return errors


def _validate_magnitude(value: float | None, field_name: str) -> list[ValidationError]:
    low, high = MAGNITUDE_RANGE
    if value is None or low <= value <= high:
        return []
    return [ValidationError(
        field=field_name,
        message=f"Magnitude {value} out of range [{low:g}, {high:g}]",
    )]


def validate_filter_config(
    filters: FilterConfig,
    field_name: str = "filters",
) -> ValidationResult:
    """Validate dashboard filter selections.

    Pure function. An unknown time range is only a warning because the
    query builder falls back to a 24-hour window.

    Args:
        filters: Filter configuration to validate
        field_name: Prefix for error field names

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if filters.time_range not in TIME_RANGES:
        errors.append(ValidationError(
            field=f"{field_name}.time_range",
            message=f"Unknown time range '{filters.time_range}', using 'day'",
            severity="warning",
        ))

    errors.extend(_validate_magnitude(filters.min_magnitude, f"{field_name}.min_magnitude"))
    errors.extend(_validate_magnitude(filters.max_magnitude, f"{field_name}.max_magnitude"))

    if (
        filters.min_magnitude is not None
        and filters.max_magnitude is not None
        and filters.min_magnitude > filters.max_magnitude
    ):
        errors.append(ValidationError(
            field=field_name,
            message=f"min_magnitude ({filters.min_magnitude}) > max_magnitude ({filters.max_magnitude})",
        ))

    if filters.limit not in ALLOWED_LIMITS:
        errors.append(ValidationError(
            field=f"{field_name}.limit",
            message=f"Limit {filters.limit} not one of {list(ALLOWED_LIMITS)}",
        ))

    # Radius search needs a full center point
    has_lat = filters.latitude is not None
    has_lon = filters.longitude is not None
    if has_lat and has_lon:
        errors.extend(validate_coordinates(
            filters.latitude, filters.longitude,
            f"{field_name}.center",
        ))
    elif has_lat or has_lon:
        errors.append(ValidationError(
            field=f"{field_name}.center",
            message="latitude and longitude must be given together",
        ))

    if filters.radius_km is not None:
        if filters.radius_km <= 0:
            errors.append(ValidationError(
                field=f"{field_name}.radius_km",
                message=f"Radius must be positive, got {filters.radius_km}",
            ))
        if not (has_lat and has_lon):
            errors.append(ValidationError(
                field=f"{field_name}.radius_km",
                message="radius_km has no effect without latitude and longitude",
                severity="warning",
            ))

    if (
        filters.min_depth is not None
        and filters.max_depth is not None
        and filters.min_depth > filters.max_depth
    ):
        errors.append(ValidationError(
            field=field_name,
            message=f"min_depth ({filters.min_depth}) > max_depth ({filters.max_depth})",
        ))

    return _result(errors)


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if config.refresh_interval_seconds <= 0:
        errors.append(ValidationError(
            field="refresh_interval_seconds",
            message=f"Refresh interval must be positive, got {config.refresh_interval_seconds}",
        ))

    if config.request_timeout_seconds <= 0:
        errors.append(ValidationError(
            field="request_timeout_seconds",
            message=f"Request timeout must be positive, got {config.request_timeout_seconds}",
        ))

    if config.recent_events_count <= 0:
        errors.append(ValidationError(
            field="recent_events_count",
            message=f"Recent events count must be positive, got {config.recent_events_count}",
        ))

    if not config.feed_base_url.startswith(("http://", "https://")):
        errors.append(ValidationError(
            field="feed_base_url",
            message=f"Feed URL must be http(s), got '{config.feed_base_url}'",
        ))

    errors.extend(validate_filter_config(config.default_filters, "default_filters").errors)

    return _result(errors)
