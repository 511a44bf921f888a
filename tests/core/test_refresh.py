"""Unit tests for the refresh state machine.

Pure transitions: every test builds states by hand and checks the next one.
"""

from datetime import datetime, timezone

from src.core.earthquake import SeismicEvent
from src.core.query import FilterConfig
from src.core.refresh import (
    DashboardState,
    RefreshStatus,
    begin_fetch,
    change_filters,
    complete_fetch,
    fail_fetch,
    initial_state,
    is_current,
    shutdown,
)


NOW = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)
FILTERS_A = FilterConfig(time_range="day", min_magnitude=1.0)
FILTERS_B = FilterConfig(time_range="week", min_magnitude=4.5)


def make_event(event_id: str) -> SeismicEvent:
    return SeismicEvent(
        id=event_id,
        magnitude=3.0,
        depth_km=5.0,
        latitude=0.0,
        longitude=0.0,
        place="Test",
        time_ms=1710072000000,
    )


class TestInitialState:
    """Tests for initial_state()."""

    def test_idle_and_empty(self):
        """Starts idle with no snapshot."""
        state = initial_state(FILTERS_A)

        assert state.status == RefreshStatus.IDLE
        assert state.filters == FILTERS_A
        assert state.snapshot == ()
        assert state.generation == 0
        assert state.last_error is None
        assert state.is_loading is False


class TestBeginFetch:
    """Tests for begin_fetch() and change_filters()."""

    def test_begin_fetch_bumps_generation(self):
        """Each fetch gets a fresh generation."""
        state, ticket = begin_fetch(initial_state(FILTERS_A))

        assert state.status == RefreshStatus.FETCHING
        assert state.is_loading is True
        assert state.generation == 1
        assert ticket.generation == 1
        assert ticket.filters == FILTERS_A

    def test_change_filters_swaps_filters(self):
        """New filters take effect immediately."""
        state, ticket = change_filters(initial_state(FILTERS_A), FILTERS_B)

        assert state.filters == FILTERS_B
        assert ticket.filters == FILTERS_B
        assert state.status == RefreshStatus.FETCHING

    def test_change_filters_keeps_snapshot_until_result(self):
        """The old snapshot stays visible while the new fetch runs."""
        state, ticket = begin_fetch(initial_state(FILTERS_A))
        state = complete_fetch(state, ticket, [make_event("a")], NOW)

        state, _ = change_filters(state, FILTERS_B)

        assert [e.id for e in state.snapshot] == ["a"]

    def test_does_not_mutate_input(self):
        """Transitions return new records."""
        original = initial_state(FILTERS_A)
        begin_fetch(original)

        assert original.generation == 0
        assert original.status == RefreshStatus.IDLE


class TestCompleteFetch:
    """Tests for complete_fetch()."""

    def test_replaces_snapshot(self):
        """A current result replaces the snapshot and clears errors."""
        state = DashboardState(
            status=RefreshStatus.FAILED,
            filters=FILTERS_A,
            last_error="boom",
        )
        state, ticket = begin_fetch(state)

        state = complete_fetch(state, ticket, [make_event("a"), make_event("b")], NOW)

        assert state.status == RefreshStatus.READY
        assert [e.id for e in state.snapshot] == ["a", "b"]
        assert state.last_error is None
        assert state.last_updated == NOW

    def test_stale_result_is_discarded(self):
        """A result for superseded filters never replaces the snapshot."""
        state, ticket_a = begin_fetch(initial_state(FILTERS_A))
        state, ticket_b = change_filters(state, FILTERS_B)

        after_stale = complete_fetch(state, ticket_a, [make_event("old")], NOW)

        assert after_stale is state
        assert not is_current(state, ticket_a)
        assert is_current(state, ticket_b)

        final = complete_fetch(after_stale, ticket_b, [make_event("new")], NOW)
        assert final.filters == FILTERS_B
        assert [e.id for e in final.snapshot] == ["new"]

    def test_late_stale_result_after_current(self):
        """Order of arrival does not matter, only the generation."""
        state, ticket_a = begin_fetch(initial_state(FILTERS_A))
        state, ticket_b = change_filters(state, FILTERS_B)

        state = complete_fetch(state, ticket_b, [make_event("new")], NOW)
        state = complete_fetch(state, ticket_a, [make_event("old")], NOW)

        assert [e.id for e in state.snapshot] == ["new"]
        assert state.status == RefreshStatus.READY


class TestFailFetch:
    """Tests for fail_fetch()."""

    def test_failure_empties_snapshot(self):
        """A failed fetch discards the previous snapshot."""
        state, ticket = begin_fetch(initial_state(FILTERS_A))
        state = complete_fetch(state, ticket, [make_event("a")], NOW)
        state, ticket = begin_fetch(state)

        state = fail_fetch(state, ticket, "Failed to fetch earthquakes: 503")

        assert state.status == RefreshStatus.FAILED
        assert state.snapshot == ()
        assert state.last_error == "Failed to fetch earthquakes: 503"
        assert state.is_loading is False

    def test_stale_failure_is_ignored(self):
        """A failure for superseded filters leaves the state alone."""
        state, ticket_a = begin_fetch(initial_state(FILTERS_A))
        state, ticket_b = change_filters(state, FILTERS_B)
        state = complete_fetch(state, ticket_b, [make_event("new")], NOW)

        after = fail_fetch(state, ticket_a, "timeout")

        assert after is state
        assert after.last_error is None


class TestShutdown:
    """Tests for shutdown()."""

    def test_invalidates_in_flight_fetches(self):
        """Results arriving after shutdown are stale."""
        state, ticket = begin_fetch(initial_state(FILTERS_A))

        state = shutdown(state)

        assert state.status == RefreshStatus.IDLE
        assert not is_current(state, ticket)
        assert complete_fetch(state, ticket, [make_event("a")], NOW) is state
