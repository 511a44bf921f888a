"""Refresh state machine - Pure functions.

The dashboard holds exactly one state record: the current filters, the
current snapshot and where the fetch cycle stands. Every transition here
returns a new record; the caller swaps it in whole.

Each fetch is issued with a FetchTicket carrying the generation it was
issued under. Issuing a new fetch bumps the generation, so a result that
comes back for an older ticket is stale and leaves the state untouched.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Sequence

from src.core.earthquake import SeismicEvent
from src.core.query import FilterConfig


class RefreshStatus(str, Enum):
    """Where the fetch cycle stands."""
    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchTicket:
    """Token handed out with each fetch.

    Attributes:
        generation: State generation the fetch was issued under
        filters: Filters the fetch was built from
    """
    generation: int
    filters: FilterConfig


@dataclass(frozen=True)
class DashboardState:
    """The single owned state record.

    Attributes:
        status: Current fetch cycle status
        filters: Filters in effect
        snapshot: Events from the last successful fetch, empty after a failure
        generation: Incremented each time a fetch is issued
        last_error: Error from the last failed fetch
        last_updated: When the snapshot was last replaced by a successful fetch
    """
    status: RefreshStatus = RefreshStatus.IDLE
    filters: FilterConfig = field(default_factory=FilterConfig)
    snapshot: tuple[SeismicEvent, ...] = ()
    generation: int = 0
    last_error: str | None = None
    last_updated: datetime | None = None

    @property
    def is_loading(self) -> bool:
        return self.status == RefreshStatus.FETCHING


def initial_state(filters: FilterConfig) -> DashboardState:
    """Empty, idle state with the starting filters."""
    return DashboardState(filters=filters)


def _issue(state: DashboardState, filters: FilterConfig) -> tuple[DashboardState, FetchTicket]:
    generation = state.generation + 1
    new_state = replace(
        state,
        status=RefreshStatus.FETCHING,
        filters=filters,
        generation=generation,
    )
    return new_state, FetchTicket(generation=generation, filters=filters)


def begin_fetch(state: DashboardState) -> tuple[DashboardState, FetchTicket]:
    """Start a fetch with the filters already in effect.

    Pure function. Used for startup and timer ticks.
    """
    return _issue(state, state.filters)


def change_filters(
    state: DashboardState,
    filters: FilterConfig,
) -> tuple[DashboardState, FetchTicket]:
    """Swap in new filters and start a fetch for them.

    Pure function. Any fetch still in flight becomes stale.
    """
    return _issue(state, filters)


def is_current(state: DashboardState, ticket: FetchTicket) -> bool:
    """Whether a fetch result may still be applied."""
    return ticket.generation == state.generation


def complete_fetch(
    state: DashboardState,
    ticket: FetchTicket,
    events: Sequence[SeismicEvent],
    completed_at: datetime,
) -> DashboardState:
    """Apply a successful fetch.

    Pure function. Stale tickets leave the state unchanged.
    """
    if not is_current(state, ticket):
        return state

    return replace(
        state,
        status=RefreshStatus.READY,
        snapshot=tuple(events),
        last_error=None,
        last_updated=completed_at,
    )


def fail_fetch(
    state: DashboardState,
    ticket: FetchTicket,
    error: str,
) -> DashboardState:
    """Apply a failed fetch: the snapshot is discarded.

    Pure function. Stale tickets leave the state unchanged.
    """
    if not is_current(state, ticket):
        return state

    return replace(
        state,
        status=RefreshStatus.FAILED,
        snapshot=(),
        last_error=error,
    )


def shutdown(state: DashboardState) -> DashboardState:
    """Go idle and invalidate every fetch still in flight.

    Pure function. The snapshot is kept for any last readers.
    """
    return replace(
        state,
        status=RefreshStatus.IDLE,
        generation=state.generation + 1,
    )
