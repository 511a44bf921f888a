#!/usr/bin/env python3
"""Terminal dashboard script.

Fetches one snapshot from USGS and prints the same summary, band counts,
hourly activity and recent list the browser dashboard shows.

Usage:
    # Last day, default filters
    python scripts/print_dashboard.py

    # Last week, M4.5 and up, 250 results
    python scripts/print_dashboard.py --time-range week --min-magnitude 4.5 --limit 250

    # Within 500 km of Tokyo
    python scripts/print_dashboard.py --latitude 35.68 --longitude 139.69 --radius-km 500

    # Only ask USGS how many events match
    python scripts/print_dashboard.py --time-range month --count

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
"""

import argparse
import os
import sys
import logging
from dataclasses import replace
from datetime import datetime, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import requests

from src.core.aggregations import build_dashboard
from src.core.config import validate_filter_config
from src.core.formatter import format_event_summary, format_magnitude
from src.core.query import ALLOWED_LIMITS, TIME_RANGES, build_count_query
from src.refresh_controller import RefreshController
from src.shell.config_loader import load_default_config

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def print_dashboard(controller: RefreshController, recent_count: int) -> None:
    """Print the aggregated views of the controller's snapshot."""
    view = build_dashboard(controller.snapshot, recent_count=recent_count)
    summary = view.summary

    logger.info("")
    logger.info("Total earthquakes:  %d", summary.total)
    logger.info("Largest magnitude:  %s", format_magnitude(summary.largest_magnitude))
    logger.info("Average magnitude:  %s", format_magnitude(summary.average_magnitude))
    logger.info("Last 24 hours:      %d", summary.count_last_24h)

    logger.info("")
    logger.info("By magnitude: %s", ", ".join(
        f"{band} {count}" for band, count in view.magnitude_distribution.items()
    ))
    logger.info("By depth:     %s", ", ".join(
        f"{band} {count}" for band, count in view.depth_distribution.items()
    ))

    if view.hourly_activity:
        logger.info("")
        logger.info("Hourly activity:")
        for bucket in view.hourly_activity:
            logger.info("  %3dh ago  %s %d", bucket.hours_ago, "#" * bucket.count, bucket.count)

    logger.info("")
    logger.info("Recent earthquakes:")
    logger.info("-" * 80)
    for i, event in enumerate(view.recent, 1):
        logger.info("  %2d. %s", i, format_event_summary(event))
        logger.info("      ID: %s", event.id)
    logger.info("-" * 80)


def main():
    parser = argparse.ArgumentParser(
        description="Print the seismic dashboard in the terminal",
    )
    parser.add_argument(
        "--time-range", "-t",
        choices=sorted(TIME_RANGES),
        help="Time window to fetch (default from config)",
    )
    parser.add_argument(
        "--min-magnitude",
        type=float,
        help="Minimum magnitude to fetch",
    )
    parser.add_argument(
        "--max-magnitude",
        type=float,
        help="Maximum magnitude to fetch",
    )
    parser.add_argument(
        "--limit", "-l",
        type=int,
        choices=ALLOWED_LIMITS,
        help="Maximum number of earthquakes",
    )
    parser.add_argument("--latitude", type=float, help="Center latitude for a radius search")
    parser.add_argument("--longitude", type=float, help="Center longitude for a radius search")
    parser.add_argument("--radius-km", type=float, help="Search radius in kilometers")
    parser.add_argument("--min-depth", type=float, help="Minimum depth in kilometers")
    parser.add_argument("--max-depth", type=float, help="Maximum depth in kilometers")
    parser.add_argument(
        "--recent",
        type=int,
        default=10,
        help="Number of recent earthquakes to list (default: 10)",
    )
    parser.add_argument(
        "--count",
        action="store_true",
        help="Only print how many earthquakes match",
    )
    args = parser.parse_args()

    config = load_default_config()

    overrides = {
        name: value
        for name, value in (
            ("time_range", args.time_range),
            ("min_magnitude", args.min_magnitude),
            ("max_magnitude", args.max_magnitude),
            ("limit", args.limit),
            ("latitude", args.latitude),
            ("longitude", args.longitude),
            ("radius_km", args.radius_km),
            ("min_depth", args.min_depth),
            ("max_depth", args.max_depth),
        )
        if value is not None
    }
    filters = replace(config.default_filters, **overrides)

    validation = validate_filter_config(filters)
    for error in validation.errors:
        logger.warning("%s: %s", error.field, error.message)
    if not validation.valid:
        return 1

    controller = RefreshController(config)

    if args.count:
        query = build_count_query(filters, datetime.now(timezone.utc), config.count_url)
        try:
            count = controller.usgs_client.fetch_count(query)
        except requests.RequestException as e:
            logger.error("Failed to fetch count: %s", e)
            return 1
        logger.info("%d earthquakes match", count)
        return 0

    logger.info("Fetching earthquakes: %s", filters)
    result = controller.set_filters(filters)
    if not result.success:
        logger.error(result.error)
        return 1

    print_dashboard(controller, args.recent)
    return 0


if __name__ == "__main__":
    sys.exit(main())
