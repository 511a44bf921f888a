"""Refresh Controller - Wires Functional Core and Imperative Shell.

This module owns the dashboard's single state record. It issues feed
fetches through the shell, applies their results through the pure state
machine in core.refresh, and keeps a timer that refreshes the snapshot
every few minutes.

Readers get the current state by reference; it is immutable, and a new
record is swapped in whole after every transition.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from src.core.config import Config
from src.core.earthquake import EventDetails, SeismicEvent, parse_event_details, parse_events
from src.core.query import FilterConfig, build_query
from src.core.refresh import (
    DashboardState,
    FetchTicket,
    RefreshStatus,
    begin_fetch,
    change_filters,
    complete_fetch,
    fail_fetch,
    initial_state,
    is_current,
    shutdown,
)
from src.shell.usgs_client import USGSClient


logger = logging.getLogger(__name__)

DETAILS_UNAVAILABLE = "Details unavailable"


@dataclass
class RefreshResult:
    """Result of one fetch cycle.

    Attributes:
        success: Whether the feed was fetched and parsed
        applied: Whether the result replaced the state (False when stale)
        event_count: Number of events parsed
        error: Error message if failed
    """
    success: bool
    applied: bool
    event_count: int = 0
    error: str | None = None


@dataclass
class DetailResult:
    """Result of fetching a single event's extended properties.

    Attributes:
        success: Whether the details were fetched
        details: Parsed details if successful
        error: Error message if failed
    """
    success: bool
    details: EventDetails | None = None
    error: str | None = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RefreshController:
    """Keeps the dashboard snapshot current.

    This class wires together:
    - Query builder (core, pure)
    - USGS client (shell, HTTP)
    - Event parsing (core, pure)
    - Refresh state machine (core, pure)
    """

    def __init__(
        self,
        config: Config,
        usgs_client: USGSClient | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize controller with configuration.

        Args:
            config: Application configuration
            usgs_client: USGS client (created if not provided)
            clock: Returns the current UTC time (defaults to the system clock)
        """
        self.config = config
        self.usgs_client = usgs_client or USGSClient(
            base_url=config.feed_base_url,
            count_url=config.count_url,
            timeout=config.request_timeout_seconds,
        )
        self.clock = clock or _utc_now

        self._lock = threading.Lock()
        self._timer_lock = threading.Lock()
        self._state = initial_state(config.default_filters)
        self._timer: threading.Timer | None = None
        self._running = False

    @property
    def state(self) -> DashboardState:
        """Current state record (immutable)."""
        return self._state

    @property
    def snapshot(self) -> tuple[SeismicEvent, ...]:
        return self._state.snapshot

    @property
    def filters(self) -> FilterConfig:
        return self._state.filters

    @property
    def status(self) -> RefreshStatus:
        return self._state.status

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> RefreshResult:
        """Fetch immediately and start the periodic refresh timer."""
        logger.info(
            "Starting refresh controller (every %ds)",
            self.config.refresh_interval_seconds,
        )
        self._running = True
        return self.refresh()

    def stop(self) -> None:
        """Cancel the timer; results of fetches still in flight are ignored."""
        self._running = False
        with self._timer_lock:
            self._cancel_timer()
        with self._lock:
            self._state = shutdown(self._state)
        logger.info("Refresh controller stopped")

    def refresh(self) -> RefreshResult:
        """Run one fetch cycle with the filters in effect."""
        with self._lock:
            self._state, ticket = begin_fetch(self._state)
        return self._run_fetch(ticket)

    def set_filters(self, filters: FilterConfig) -> RefreshResult:
        """Swap in new filters and fetch for them.

        Any fetch still in flight for older filters becomes stale.
        """
        logger.info("Filters changed: %s", filters)
        with self._lock:
            self._state, ticket = change_filters(self._state, filters)
        return self._run_fetch(ticket)

    def _run_fetch(self, ticket: FetchTicket) -> RefreshResult:
        """Fetch, parse and apply one result.

        The lock is never held across the network call.
        """
        query = build_query(ticket.filters, self.clock(), self.config.feed_base_url)

        try:
            geojson = self.usgs_client.fetch_events(query)
            events = parse_events(geojson)
        except Exception as e:
            return self._apply_failure(ticket, f"Failed to fetch earthquakes: {e}")

        return self._apply_success(ticket, events)

    def _apply_success(
        self,
        ticket: FetchTicket,
        events: list[SeismicEvent],
    ) -> RefreshResult:
        with self._lock:
            applied = is_current(self._state, ticket)
            self._state = complete_fetch(self._state, ticket, events, self.clock())

        if not applied:
            logger.info(
                "Discarding stale result for generation %d (%d earthquakes)",
                ticket.generation,
                len(events),
            )
            return RefreshResult(success=True, applied=False, event_count=len(events))

        logger.info("Snapshot replaced with %d earthquakes", len(events))
        self._schedule_next()
        return RefreshResult(success=True, applied=True, event_count=len(events))

    def _apply_failure(self, ticket: FetchTicket, error: str) -> RefreshResult:
        with self._lock:
            applied = is_current(self._state, ticket)
            self._state = fail_fetch(self._state, ticket, error)

        if not applied:
            logger.info(
                "Ignoring failure of stale fetch for generation %d: %s",
                ticket.generation,
                error,
            )
            return RefreshResult(success=False, applied=False, error=error)

        logger.error(error)
        self._schedule_next()
        return RefreshResult(success=False, applied=True, error=error)

    def _schedule_next(self) -> None:
        """Restart the refresh timer from now."""
        if not self._running:
            return

        with self._timer_lock:
            self._cancel_timer()
            timer = threading.Timer(self.config.refresh_interval_seconds, self._on_timer)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _cancel_timer(self) -> None:
        # Caller holds _timer_lock
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        if not self._running:
            return
        logger.info("Scheduled refresh")
        self.refresh()

    def fetch_event_details(self, event_id: str) -> DetailResult:
        """Fetch extended properties for a selected event.

        Independent of the refresh cycle: failures never touch the snapshot.

        Args:
            event_id: USGS event ID

        Returns:
            DetailResult with details or an error
        """
        try:
            geojson = self.usgs_client.fetch_event_details(event_id)
            details = parse_event_details(geojson)
        except Exception as e:
            logger.error("Failed to fetch details for %s: %s", event_id, e)
            return DetailResult(success=False, error=DETAILS_UNAVAILABLE)

        if details is None:
            logger.warning("No details returned for event %s", event_id)
            return DetailResult(success=False, error=DETAILS_UNAVAILABLE)

        return DetailResult(success=True, details=details)
