"""Tests for the RefreshController module.

Tests the coordination between functional core and imperative shell.
Uses mocks for shell components to test the refresh cycle.
"""

from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import requests
import responses

from src.core.config import Config
from src.core.query import FilterConfig
from src.core.refresh import RefreshStatus
from src.refresh_controller import DETAILS_UNAVAILABLE, RefreshController


NOW = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)
FILTERS_A = FilterConfig(time_range="day", min_magnitude=1.0)
FILTERS_B = FilterConfig(time_range="week", min_magnitude=4.5)


def make_feature(event_id: str, magnitude: float | None = 3.0) -> dict:
    return {
        "type": "Feature",
        "id": event_id,
        "properties": {
            "mag": magnitude,
            "place": f"Near {event_id}",
            "time": 1710070000000,
            "url": f"https://earthquake.usgs.gov/earthquakes/eventpage/{event_id}",
            "alert": "green",
            "tsunami": 0,
            "sig": 300,
        },
        "geometry": {"type": "Point", "coordinates": [-118.0, 35.0, 8.0]},
    }


def make_geojson(*event_ids: str) -> dict:
    return {"type": "FeatureCollection", "features": [make_feature(i) for i in event_ids]}


@pytest.fixture
def sample_config():
    """Create a sample configuration."""
    return Config(refresh_interval_seconds=60, default_filters=FILTERS_A)


@pytest.fixture
def mock_usgs_client():
    """Create a mock USGS client."""
    client = Mock()
    client.fetch_events.return_value = make_geojson("a1", "a2")
    return client


@pytest.fixture
def controller(sample_config, mock_usgs_client):
    """Controller with a mock client and a fixed clock."""
    return RefreshController(sample_config, usgs_client=mock_usgs_client, clock=lambda: NOW)


class TestRefresh:
    """Tests for RefreshController.refresh()."""

    def test_initial_state(self, controller):
        """Nothing is fetched until asked."""
        assert controller.status == RefreshStatus.IDLE
        assert controller.snapshot == ()
        assert controller.filters == FILTERS_A

    def test_successful_refresh_replaces_snapshot(self, controller):
        """Parsed events become the snapshot."""
        result = controller.refresh()

        assert result.success
        assert result.applied
        assert result.event_count == 2
        assert controller.status == RefreshStatus.READY
        assert [e.id for e in controller.snapshot] == ["a1", "a2"]
        assert controller.state.last_updated == NOW

    def test_query_uses_current_filters(self, controller, mock_usgs_client):
        """The query is built from the filters in effect and the clock."""
        controller.refresh()

        query = mock_usgs_client.fetch_events.call_args[0][0]
        params = query.as_dict()
        assert query.base_url == controller.config.feed_base_url
        assert params["minmagnitude"] == "1"
        assert params["endtime"] == "2024-03-10T12:00:00"

    def test_http_failure_empties_snapshot(self, controller, mock_usgs_client):
        """A failed fetch discards the previous snapshot."""
        controller.refresh()
        mock_usgs_client.fetch_events.side_effect = requests.HTTPError("503 Server Error")

        result = controller.refresh()

        assert not result.success
        assert result.applied
        assert controller.status == RefreshStatus.FAILED
        assert controller.snapshot == ()
        assert "Failed to fetch earthquakes" in controller.state.last_error

    def test_malformed_response_is_failure(self, controller, mock_usgs_client):
        """Undecodable responses fail the fetch."""
        mock_usgs_client.fetch_events.side_effect = ValueError("Expecting value")

        result = controller.refresh()

        assert not result.success
        assert controller.status == RefreshStatus.FAILED

    @pytest.mark.parametrize("payload", [None, [], "text"])
    def test_non_object_payload_is_failure(self, controller, mock_usgs_client, payload):
        """Unexpected payload shapes fail the cycle instead of escaping."""
        controller.refresh()
        mock_usgs_client.fetch_events.return_value = payload

        result = controller.refresh()

        assert not result.success
        assert result.applied
        assert controller.status == RefreshStatus.FAILED
        assert controller.snapshot == ()

    @responses.activate
    def test_null_feed_body_is_failure(self, sample_config):
        """A null body from the feed fails the cycle with the real client."""
        responses.add(responses.GET, sample_config.feed_base_url, body="null", status=200)
        controller = RefreshController(sample_config, clock=lambda: NOW)

        result = controller.refresh()

        assert not result.success
        assert controller.status == RefreshStatus.FAILED
        assert "Failed to fetch earthquakes" in controller.state.last_error

    def test_recovers_after_failure(self, controller, mock_usgs_client):
        """The next successful fetch clears the error."""
        mock_usgs_client.fetch_events.side_effect = requests.ConnectionError("down")
        controller.refresh()

        mock_usgs_client.fetch_events.side_effect = None
        controller.refresh()

        assert controller.status == RefreshStatus.READY
        assert controller.state.last_error is None
        assert len(controller.snapshot) == 2


class TestSetFilters:
    """Tests for RefreshController.set_filters()."""

    def test_swaps_filters_and_fetches(self, controller, mock_usgs_client):
        """New filters are used for the fetch."""
        controller.set_filters(FILTERS_B)

        assert controller.filters == FILTERS_B
        query = mock_usgs_client.fetch_events.call_args[0][0]
        assert query.as_dict()["minmagnitude"] == "4.5"

    def test_stale_result_never_replaces_newer(self, controller, mock_usgs_client):
        """A result for superseded filters is discarded.

        The first fetch changes filters while it is in flight; its result
        then arrives after the newer fetch has completed.
        """
        def fetch(query):
            if mock_usgs_client.fetch_events.call_count == 1:
                controller.set_filters(FILTERS_B)
                return make_geojson("stale")
            return make_geojson("fresh")

        mock_usgs_client.fetch_events.side_effect = fetch

        result = controller.refresh()

        assert result.success
        assert not result.applied
        assert controller.filters == FILTERS_B
        assert [e.id for e in controller.snapshot] == ["fresh"]
        assert controller.status == RefreshStatus.READY

    def test_stale_failure_is_ignored(self, controller, mock_usgs_client):
        """A superseded fetch that fails does not clear the newer snapshot."""
        def fetch(query):
            if mock_usgs_client.fetch_events.call_count == 1:
                controller.set_filters(FILTERS_B)
                raise requests.Timeout("timed out")
            return make_geojson("fresh")

        mock_usgs_client.fetch_events.side_effect = fetch

        result = controller.refresh()

        assert not result.success
        assert not result.applied
        assert controller.status == RefreshStatus.READY
        assert controller.state.last_error is None
        assert [e.id for e in controller.snapshot] == ["fresh"]


class TestTimer:
    """Tests for the periodic refresh timer."""

    def test_start_fetches_and_schedules(self, controller):
        """start() fetches at once and arms the timer."""
        with patch("src.refresh_controller.threading.Timer") as mock_timer:
            result = controller.start()

        assert result.success
        assert controller.running
        mock_timer.assert_called_once_with(60, controller._on_timer)
        mock_timer.return_value.start.assert_called_once()

    def test_no_timer_when_not_started(self, controller):
        """One-off fetches do not schedule refreshes."""
        with patch("src.refresh_controller.threading.Timer") as mock_timer:
            controller.refresh()

        mock_timer.assert_not_called()

    def test_failure_still_reschedules(self, controller, mock_usgs_client):
        """The cycle keeps going after a failed fetch."""
        mock_usgs_client.fetch_events.side_effect = requests.ConnectionError("down")

        with patch("src.refresh_controller.threading.Timer") as mock_timer:
            controller.start()

        mock_timer.return_value.start.assert_called_once()

    def test_unexpected_error_on_tick_keeps_timer(self, controller, mock_usgs_client):
        """A tick that hits an unexpected error still re-arms the timer."""
        with patch("src.refresh_controller.threading.Timer") as mock_timer:
            controller.start()
            mock_usgs_client.fetch_events.side_effect = AttributeError("boom")
            controller._on_timer()

        assert controller.status == RefreshStatus.FAILED
        assert mock_timer.return_value.start.call_count == 2

    def test_new_fetch_restarts_timer(self, controller):
        """Each applied fetch cancels the previous timer."""
        with patch("src.refresh_controller.threading.Timer") as mock_timer:
            first_timer = Mock()
            second_timer = Mock()
            mock_timer.side_effect = [first_timer, second_timer]

            controller.start()
            controller.set_filters(FILTERS_B)

        first_timer.cancel.assert_called_once()
        second_timer.start.assert_called_once()

    def test_stop_cancels_timer_and_invalidates(self, controller):
        """After stop, no timer remains and the state is idle."""
        with patch("src.refresh_controller.threading.Timer") as mock_timer:
            controller.start()
            generation = controller.state.generation
            controller.stop()

        mock_timer.return_value.cancel.assert_called_once()
        assert not controller.running
        assert controller.status == RefreshStatus.IDLE
        assert controller.state.generation == generation + 1

    def test_timer_tick_refreshes(self, controller, mock_usgs_client):
        """A tick runs a refresh while running."""
        with patch("src.refresh_controller.threading.Timer"):
            controller.start()
            controller._on_timer()

        assert mock_usgs_client.fetch_events.call_count == 2

    def test_timer_tick_after_stop_does_nothing(self, controller, mock_usgs_client):
        """Ticks after stop are ignored."""
        with patch("src.refresh_controller.threading.Timer"):
            controller.start()
            controller.stop()
            controller._on_timer()

        assert mock_usgs_client.fetch_events.call_count == 1


class TestFetchEventDetails:
    """Tests for RefreshController.fetch_event_details()."""

    def test_returns_details(self, controller, mock_usgs_client):
        """Details are parsed from the lookup."""
        mock_usgs_client.fetch_event_details.return_value = make_feature("d1", 6.1)

        result = controller.fetch_event_details("d1")

        assert result.success
        assert result.details.id == "d1"
        assert result.details.significance == 300
        mock_usgs_client.fetch_event_details.assert_called_once_with("d1")

    def test_failure_leaves_snapshot_untouched(self, controller, mock_usgs_client):
        """Detail failures never affect the refresh cycle."""
        controller.refresh()
        mock_usgs_client.fetch_event_details.side_effect = requests.HTTPError("404")

        result = controller.fetch_event_details("missing")

        assert not result.success
        assert result.error == DETAILS_UNAVAILABLE
        assert controller.status == RefreshStatus.READY
        assert len(controller.snapshot) == 2

    @pytest.mark.parametrize("payload", [None, [], "text"])
    def test_non_object_lookup_is_unavailable(self, controller, mock_usgs_client, payload):
        """Unexpected lookup payloads yield no details."""
        mock_usgs_client.fetch_event_details.return_value = payload

        result = controller.fetch_event_details("x")

        assert not result.success
        assert result.error == DETAILS_UNAVAILABLE

    def test_empty_lookup_is_unavailable(self, controller, mock_usgs_client):
        """An empty collection yields no details."""
        mock_usgs_client.fetch_event_details.return_value = {"features": []}

        result = controller.fetch_event_details("gone")

        assert not result.success
        assert result.error == DETAILS_UNAVAILABLE
