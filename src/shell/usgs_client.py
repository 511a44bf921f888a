"""USGS API Client - Imperative Shell.

This module handles HTTP communication with the USGS Earthquake API.
All I/O is contained here; query construction is in the core module.
"""

import logging
from typing import Any

import requests

from src.core.query import (
    USGS_API_BASE,
    USGS_COUNT_URL,
    QuerySpec,
    build_detail_query,
)


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30


class USGSClient:
    """Client for fetching earthquake data from USGS API.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str = USGS_API_BASE,
        count_url: str = USGS_COUNT_URL,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize USGS client.

        Args:
            base_url: USGS event query endpoint
            count_url: USGS event count endpoint
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.count_url = count_url
        self.timeout = timeout

    def _get_json(self, query: QuerySpec) -> dict[str, Any]:
        response = requests.get(
            query.base_url,
            params=query.as_dict(),
            timeout=self.timeout,
        )
        response.raise_for_status()

        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object from USGS, got {type(data).__name__}")
        return data

    def fetch_events(self, query: QuerySpec) -> dict[str, Any]:
        """Fetch the event feed for a query.

        This method performs HTTP I/O.

        Args:
            query: Query built by the core query builder

        Returns:
            Raw GeoJSON FeatureCollection from USGS

        Raises:
            requests.RequestException: If the request fails or returns an error status
        """
        logger.info(
            "Fetching earthquakes from USGS",
            extra={"params": query.as_dict()},
        )

        data = self._get_json(query)
        count = len(data.get("features") or [])

        logger.info(
            "Fetched %d earthquakes from USGS",
            count,
        )

        return data

    def fetch_event_details(self, event_id: str) -> dict[str, Any]:
        """Fetch extended properties for a single event.

        This method performs HTTP I/O.

        Args:
            event_id: USGS event ID

        Returns:
            Raw GeoJSON Feature for the event

        Raises:
            requests.RequestException: If the request fails or returns an error status
        """
        logger.info("Fetching details for event %s", event_id)

        return self._get_json(build_detail_query(event_id, self.base_url))

    def fetch_count(self, query: QuerySpec) -> int:
        """Fetch the number of events matching a count query.

        This method performs HTTP I/O.

        Args:
            query: Query built by the core count query builder

        Returns:
            Number of matching events

        Raises:
            requests.RequestException: If the request fails or returns an error status
        """
        data = self._get_json(query)
        count = int(data.get("count", 0))

        logger.info("USGS reports %d matching earthquakes", count)

        return count
