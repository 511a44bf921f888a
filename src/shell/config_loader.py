"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, FilterConfig) are defined in the core package
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from src.core.config import DEFAULT_FILTERS, Config, validate_config
from src.core.query import USGS_API_BASE, USGS_COUNT_URL, FilterConfig


logger = logging.getLogger(__name__)


def _resolve_value(value: Any) -> Any:
    """Resolve a ${VAR} placeholder from the environment.

    Non-string values and plain strings are returned unchanged; an unset
    variable leaves the placeholder in place.
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        env_value = os.environ.get(value[2:-1])
        if env_value:
            return env_value

    return value


def _optional_float(data: Mapping[str, Any], key: str) -> float | None:
    """Read an optional number, keeping zero distinct from absent.

    Empty strings (e.g. a cleared form field) count as absent.
    """
    value = data.get(key)
    if value is None or value == "":
        return None
    return float(value)


def parse_filter_config(
    data: Mapping[str, Any],
    defaults: FilterConfig = DEFAULT_FILTERS,
) -> FilterConfig:
    """Parse filter selections, falling back to defaults for absent keys.

    Accepts YAML dicts and request argument mappings alike. A key that is
    present with value 0 is kept as 0.

    Raises:
        ValueError: If a numeric field is not a number
    """
    def number(key: str, default: float | None) -> float | None:
        if key not in data:
            return default
        return _optional_float(data, key)

    limit = data.get("limit")

    return FilterConfig(
        time_range=str(data.get("time_range") or defaults.time_range),
        min_magnitude=number("min_magnitude", defaults.min_magnitude),
        max_magnitude=number("max_magnitude", defaults.max_magnitude),
        limit=int(limit) if limit not in (None, "") else defaults.limit,
        latitude=number("latitude", defaults.latitude),
        longitude=number("longitude", defaults.longitude),
        radius_km=number("radius_km", defaults.radius_km),
        min_depth=number("min_depth", defaults.min_depth),
        max_depth=number("max_depth", defaults.max_depth),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    filters_data = data.get("filters") or {}

    return Config(
        feed_base_url=_resolve_value(data.get("feed_base_url", USGS_API_BASE)),
        count_url=_resolve_value(data.get("count_url", USGS_COUNT_URL)),
        request_timeout_seconds=int(data.get("request_timeout_seconds", 30)),
        refresh_interval_seconds=int(data.get("refresh_interval_seconds", 300)),
        recent_events_count=int(data.get("recent_events_count", 10)),
        default_filters=parse_filter_config(filters_data),
    )


def _log_validation(config: Config) -> None:
    result = validate_config(config)
    for error in result.errors:
        if error.severity == "warning":
            logger.warning("Config warning in %s: %s", error.field, error.message)
        else:
            logger.error("Config error in %s: %s", error.field, error.message)


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)
    _log_validation(config)

    logger.info(
        "Loaded config: refresh every %ds, default time range '%s'",
        config.refresh_interval_seconds,
        config.default_filters.time_range,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        FEED_BASE_URL: USGS event query endpoint
        REQUEST_TIMEOUT_SECONDS: Feed request timeout
        REFRESH_INTERVAL_SECONDS: How often the snapshot is refreshed
        TIME_RANGE: Default time range (hour/day/week/month)
        MIN_MAGNITUDE: Default minimum magnitude
        MAX_MAGNITUDE: Default maximum magnitude
        RESULT_LIMIT: Default result limit

    Returns:
        Config object from environment
    """
    filters_data: dict[str, Any] = {}
    env_filters = {
        "TIME_RANGE": "time_range",
        "MIN_MAGNITUDE": "min_magnitude",
        "MAX_MAGNITUDE": "max_magnitude",
        "RESULT_LIMIT": "limit",
    }
    for env_name, key in env_filters.items():
        value = os.environ.get(env_name)
        if value is not None:
            filters_data[key] = value

    config = Config(
        feed_base_url=os.environ.get("FEED_BASE_URL", USGS_API_BASE),
        request_timeout_seconds=int(os.environ.get("REQUEST_TIMEOUT_SECONDS", "30")),
        refresh_interval_seconds=int(os.environ.get("REFRESH_INTERVAL_SECONDS", "300")),
        default_filters=parse_filter_config(filters_data),
    )
    _log_validation(config)

    return config


ENV_CONFIG_VARS = (
    "FEED_BASE_URL",
    "REQUEST_TIMEOUT_SECONDS",
    "REFRESH_INTERVAL_SECONDS",
    "TIME_RANGE",
    "MIN_MAGNITUDE",
    "MAX_MAGNITUDE",
    "RESULT_LIMIT",
)


def load_default_config() -> Config:
    """Load configuration from file or environment.

    CONFIG_PATH wins; otherwise any of the dashboard environment variables
    selects environment-based config; otherwise the default file path.
    """
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    elif any(os.environ.get(name) for name in ENV_CONFIG_VARS):
        return load_config_from_env()
    else:
        return load_config()
