"""Cloud Function Entry Point.

This module provides the entry point for Google Cloud Functions.
It's a thin wrapper that loads configuration, runs one fetch cycle
for the requested filters and returns the aggregated dashboard.
"""

import logging
import os
import json
from dataclasses import asdict
from typing import Any

import functions_framework
from flask import Request

from src.core.aggregations import build_dashboard
from src.core.config import validate_filter_config
from src.core.formatter import dashboard_to_dict, status_to_dict
from src.refresh_controller import RefreshController
from src.shell.config_loader import load_default_config, parse_filter_config


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@functions_framework.http
def dashboard_snapshot(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    Query arguments (time_range, min_magnitude, max_magnitude, limit,
    latitude, longitude, radius_km, min_depth, max_depth) override the
    configured default filters.

    Args:
        request: Flask request object

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Building dashboard snapshot")

    try:
        config = load_default_config()

        try:
            filters = parse_filter_config(request.args, config.default_filters)
        except ValueError as e:
            return {"status": "error", "message": f"Invalid filter value: {e}"}, 400

        validation = validate_filter_config(filters)
        if not validation.valid:
            return {
                "status": "error",
                "message": "Invalid filters",
                "errors": [asdict(e) for e in validation.critical_errors],
            }, 400

        controller = RefreshController(config)
        result = controller.set_filters(filters)
        state = controller.state

        if not result.success:
            return {
                **status_to_dict(state),
                "message": result.error,
            }, 502

        view = build_dashboard(
            state.snapshot,
            now=controller.clock(),
            recent_count=config.recent_events_count,
        )

        logger.info("Completed: %d earthquakes", view.summary.total)

        return {
            **status_to_dict(state),
            "filters": asdict(state.filters),
            **dashboard_to_dict(view),
        }, 200

    except Exception as e:
        logger.exception("Unexpected error building dashboard snapshot")
        return {
            "status": "error",
            "message": str(e),
        }, 500


# For local testing
if __name__ == "__main__":
    print("Building dashboard snapshot locally...")

    # Mock request for local testing
    class MockRequest:
        args: dict[str, str] = {}

    response, status = dashboard_snapshot(MockRequest())
    print(f"\nResponse ({status}):")
    print(json.dumps(response, indent=2))
