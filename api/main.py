"""Dashboard API - FastAPI service for the seismic dashboard.

Serves the current snapshot and its derived views to the browser map,
chart and list renderers. A single RefreshController keeps the snapshot
current; every request reads one consistent state record from it.
"""

import logging
import os
import threading
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from src.core.aggregations import (
    build_dashboard,
    depth_distribution,
    hourly_activity,
    magnitude_distribution,
    magnitude_histogram,
    recent_events,
    summary_stats,
    timeline_points,
)
from src.core.config import validate_filter_config
from src.core.formatter import (
    dashboard_to_dict,
    details_to_dict,
    event_to_dict,
    marker_to_dict,
    status_to_dict,
    summary_to_dict,
)
from src.core.map_markers import create_map_markers
from src.core.query import ALLOWED_LIMITS, FilterConfig
from src.core.refresh import DashboardState
from src.refresh_controller import RefreshController
from src.shell.config_loader import load_default_config

logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ===== Refresh Controller =====

_controller: RefreshController | None = None
_controller_lock = threading.Lock()


def _get_controller() -> RefreshController:
    """Get or create the refresh controller, starting its timer.

    The first call blocks on the initial fetch; it runs at startup, off
    the event loop.
    """
    global _controller
    with _controller_lock:
        if _controller is None:
            controller = RefreshController(load_default_config())
            controller.start()
            _controller = controller
    return _controller


@asynccontextmanager
async def lifespan(app: FastAPI):
    await run_in_threadpool(_get_controller)
    yield
    if _controller is not None:
        _controller.stop()


app = FastAPI(
    title="Seismic Dashboard API",
    description="Serves the latest USGS earthquake snapshot and its derived views",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get(
            "DASHBOARD_ORIGINS",
            "http://localhost:3000,http://localhost:3001",
        ).split(",")
    ],
    allow_credentials=True,
    allow_methods=["GET", "PUT", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# ===== Data Models =====

class FilterUpdate(BaseModel):
    time_range: str = "day"
    min_magnitude: float | None = Field(default=None, ge=0, le=10)
    max_magnitude: float | None = Field(default=None, ge=0, le=10)
    limit: int = 100
    latitude: float | None = None
    longitude: float | None = None
    radius_km: float | None = None
    min_depth: float | None = None
    max_depth: float | None = None

    def to_filter_config(self) -> FilterConfig:
        return FilterConfig(**self.model_dump())


# ===== Helper Functions =====

def _now() -> datetime:
    return _get_controller().clock()


def _envelope(state: DashboardState) -> dict[str, Any]:
    """Fields shared by every data response."""
    return {
        **status_to_dict(state),
        "filters": asdict(state.filters),
        "fetched_at": datetime.now(timezone.utc).isoformat(),
    }


# ===== Public Endpoints =====

@app.get("/api-dashboard")
def get_dashboard():
    """Summary, recent list, histograms and hourly activity in one response."""
    controller = _get_controller()
    state = controller.state

    view = build_dashboard(
        state.snapshot,
        now=_now(),
        recent_count=controller.config.recent_events_count,
    )

    return {**_envelope(state), **dashboard_to_dict(view)}


@app.get("/api-recent-earthquakes")
def get_recent_earthquakes(
    limit: int = Query(default=10, ge=1, le=max(ALLOWED_LIMITS)),
):
    """Most recent earthquakes, newest first."""
    state = _get_controller().state
    earthquakes = recent_events(state.snapshot, limit)

    return {
        **_envelope(state),
        "earthquakes": [event_to_dict(e) for e in earthquakes],
        "count": len(earthquakes),
    }


@app.get("/api-statistics")
def get_statistics():
    """Magnitude histogram and band distributions."""
    state = _get_controller().state
    snapshot = state.snapshot

    return {
        **_envelope(state),
        "summary": summary_to_dict(summary_stats(snapshot, _now())),
        "magnitude_histogram": [asdict(b) for b in magnitude_histogram(snapshot)],
        "magnitude_distribution": magnitude_distribution(snapshot),
        "depth_distribution": depth_distribution(snapshot),
    }


@app.get("/api-timeline")
def get_timeline():
    """Time/magnitude scatter points and hourly activity buckets."""
    state = _get_controller().state
    snapshot = state.snapshot

    return {
        **_envelope(state),
        "points": [event_to_dict(e) for e in timeline_points(snapshot)],
        "hourly_activity": [asdict(b) for b in hourly_activity(snapshot, _now())],
    }


@app.get("/api-map")
def get_map():
    """Circle markers for the interactive map."""
    state = _get_controller().state
    markers = create_map_markers(state.snapshot)

    return {
        **_envelope(state),
        "markers": [marker_to_dict(m) for m in markers],
        "count": len(markers),
    }


@app.get("/api-earthquakes/{event_id}")
def get_earthquake_details(event_id: str):
    """Extended properties for a selected earthquake."""
    result = _get_controller().fetch_event_details(event_id)

    if not result.success:
        raise HTTPException(status_code=502, detail=result.error)

    return {"earthquake": details_to_dict(result.details)}


@app.get("/api-filters")
def get_filters():
    """Filters currently in effect."""
    state = _get_controller().state
    return {**status_to_dict(state), "filters": asdict(state.filters)}


@app.put("/api-filters")
def update_filters(update: FilterUpdate):
    """Replace the filters and fetch a new snapshot for them."""
    filters = update.to_filter_config()

    validation = validate_filter_config(filters)
    if not validation.valid:
        raise HTTPException(
            status_code=422,
            detail=[asdict(e) for e in validation.critical_errors],
        )
    for warning in validation.warnings:
        logger.warning("Filter warning in %s: %s", warning.field, warning.message)

    controller = _get_controller()
    result = controller.set_filters(filters)
    state = controller.state

    return {
        **status_to_dict(state),
        "filters": asdict(state.filters),
        "event_count": len(state.snapshot),
        "warnings": [asdict(w) for w in validation.warnings],
        "error": result.error,
    }


@app.post("/api-refresh")
def trigger_refresh():
    """Fetch a new snapshot now with the current filters."""
    controller = _get_controller()
    result = controller.refresh()
    state = controller.state

    return {
        **status_to_dict(state),
        "event_count": len(state.snapshot),
        "error": result.error,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for Cloud Run."""
    return {"status": "healthy"}
