"""Snapshot aggregations - Pure functions.

Derived views over the current snapshot: band classification, summary
statistics, histograms, hourly activity and the recency-sorted list.

Every function here takes the snapshot read-only and returns freshly
allocated results. Events with a null magnitude are skipped by all
magnitude-based views but still count toward totals.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Sequence

from src.core.earthquake import SeismicEvent, with_magnitude


HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

# Magnitude bands, lowest first
MINOR = "minor"
LIGHT = "light"
MODERATE = "moderate"
STRONG = "strong"
MAJOR = "major"
MAGNITUDE_BANDS = (MINOR, LIGHT, MODERATE, STRONG, MAJOR)

# Depth bands, shallowest first
SHALLOW = "shallow"
INTERMEDIATE = "intermediate"
DEEP = "deep"
DEPTH_BANDS = (SHALLOW, INTERMEDIATE, DEEP)

HISTOGRAM_MIN = 0.0
HISTOGRAM_MAX = 10.0
HISTOGRAM_BINS = 20
MAX_HOURLY_BUCKETS = 24


@dataclass(frozen=True)
class SummaryStats:
    """Headline numbers for the dashboard.

    Attributes:
        total: Number of events in the snapshot
        largest_magnitude: Largest non-null magnitude, 0 if none
        average_magnitude: Mean of non-null magnitudes, 0 if none
        count_last_24h: Events that occurred less than 24 hours ago
    """
    total: int
    largest_magnitude: float
    average_magnitude: float
    count_last_24h: int


@dataclass(frozen=True)
class HistogramBin:
    """One magnitude histogram bin covering [x0, x1)."""
    x0: float
    x1: float
    count: int


@dataclass(frozen=True)
class HourlyBucket:
    """Number of events that happened a whole number of hours ago."""
    hours_ago: int
    count: int


@dataclass(frozen=True)
class DashboardView:
    """Every derived view, computed against the same reference time."""
    summary: SummaryStats
    recent: list[SeismicEvent] = field(default_factory=list)
    magnitude_histogram: list[HistogramBin] = field(default_factory=list)
    magnitude_distribution: dict[str, int] = field(default_factory=dict)
    depth_distribution: dict[str, int] = field(default_factory=dict)
    hourly_activity: list[HourlyBucket] = field(default_factory=list)


def _now_ms(now: datetime | None) -> int:
    if now is None:
        now = datetime.now(timezone.utc)
    return int(now.timestamp() * 1000)


def classify_magnitude(magnitude: float) -> str:
    """Classify a magnitude into a named band.

    Pure function. Bands are half-open and a boundary value belongs to the
    higher band, so exactly 7.0 is major and exactly 4.0 is light.
    """
    if magnitude >= 7.0:
        return MAJOR
    elif magnitude >= 6.0:
        return STRONG
    elif magnitude >= 5.0:
        return MODERATE
    elif magnitude >= 4.0:
        return LIGHT
    else:
        return MINOR


def classify_depth(depth_km: float) -> str:
    """Classify a hypocenter depth into a named band.

    Pure function. Negative depths (above sea level) count as shallow.
    """
    if depth_km >= 300:
        return DEEP
    elif depth_km >= 70:
        return INTERMEDIATE
    else:
        return SHALLOW


def summary_stats(
    snapshot: Sequence[SeismicEvent],
    now: datetime | None = None,
) -> SummaryStats:
    """Compute total, largest, average and last-24h counts.

    Pure function.

    Args:
        snapshot: Current events
        now: Reference time, defaults to the time of the call

    Returns:
        SummaryStats; all zero for an empty snapshot
    """
    now_ms = _now_ms(now)
    magnitudes = [e.magnitude for e in with_magnitude(snapshot)]

    largest = max(magnitudes) if magnitudes else 0.0
    average = sum(magnitudes) / len(magnitudes) if magnitudes else 0.0
    last_24h = sum(1 for e in snapshot if now_ms - e.time_ms < DAY_MS)

    return SummaryStats(
        total=len(snapshot),
        largest_magnitude=largest,
        average_magnitude=average,
        count_last_24h=last_24h,
    )


def magnitude_histogram(snapshot: Sequence[SeismicEvent]) -> list[HistogramBin]:
    """Bin magnitudes into 20 equal-width bins over [0, 10].

    Pure function. Bins are half-open except the last, which also holds
    magnitude 10. Magnitudes outside [0, 10] fall in no bin.
    """
    width = (HISTOGRAM_MAX - HISTOGRAM_MIN) / HISTOGRAM_BINS
    counts = [0] * HISTOGRAM_BINS

    for event in with_magnitude(snapshot):
        magnitude = event.magnitude
        if magnitude < HISTOGRAM_MIN or magnitude > HISTOGRAM_MAX:
            continue
        index = min(
            int(math.floor((magnitude - HISTOGRAM_MIN) / width)),
            HISTOGRAM_BINS - 1,
        )
        counts[index] += 1

    return [
        HistogramBin(
            x0=HISTOGRAM_MIN + i * width,
            x1=HISTOGRAM_MIN + (i + 1) * width,
            count=count,
        )
        for i, count in enumerate(counts)
    ]


def _band_counts(bands: Iterable[str], names: tuple[str, ...]) -> dict[str, int]:
    counts = Counter(bands)
    return {name: counts.get(name, 0) for name in names}


def magnitude_distribution(snapshot: Sequence[SeismicEvent]) -> dict[str, int]:
    """Count events per magnitude band, ignoring null magnitudes.

    Pure function. Keys are ordered minor to major.
    """
    return _band_counts(
        (classify_magnitude(e.magnitude) for e in with_magnitude(snapshot)),
        MAGNITUDE_BANDS,
    )


def depth_distribution(snapshot: Sequence[SeismicEvent]) -> dict[str, int]:
    """Count events per depth band, ignoring null depths.

    Pure function. Keys are ordered shallow to deep.
    """
    return _band_counts(
        (classify_depth(e.depth_km) for e in snapshot if e.depth_km is not None),
        DEPTH_BANDS,
    )


def hourly_activity(
    snapshot: Sequence[SeismicEvent],
    now: datetime | None = None,
) -> list[HourlyBucket]:
    """Count events per whole hour elapsed since they occurred.

    Pure function. Only hours that contain events get a bucket. Buckets are
    sorted ascending by hours ago and the first 24 are kept, which are the
    longest-ago ones once more than 24 distinct hours are present.
    """
    now_ms = _now_ms(now)
    counts = Counter((now_ms - e.time_ms) // HOUR_MS for e in snapshot)

    buckets = [
        HourlyBucket(hours_ago=int(hours), count=count)
        for hours, count in sorted(counts.items())
    ]
    return buckets[:MAX_HOURLY_BUCKETS]


def recent_events(
    snapshot: Sequence[SeismicEvent],
    n: int = 10,
) -> list[SeismicEvent]:
    """Return the n most recent events, newest first.

    Pure function. Sorts a copy, so the snapshot keeps its order; events
    with equal timestamps keep their snapshot order.
    """
    return sorted(snapshot, key=lambda e: e.time_ms, reverse=True)[:n]


def timeline_points(snapshot: Sequence[SeismicEvent]) -> list[SeismicEvent]:
    """Events with a magnitude, oldest first, for the time/magnitude scatter.

    Pure function.
    """
    return sorted(with_magnitude(snapshot), key=lambda e: e.time_ms)


def build_dashboard(
    snapshot: Sequence[SeismicEvent],
    now: datetime | None = None,
    recent_count: int = 10,
) -> DashboardView:
    """Compute every dashboard view against one reference time.

    Pure function.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    return DashboardView(
        summary=summary_stats(snapshot, now),
        recent=recent_events(snapshot, recent_count),
        magnitude_histogram=magnitude_histogram(snapshot),
        magnitude_distribution=magnitude_distribution(snapshot),
        depth_distribution=depth_distribution(snapshot),
        hourly_activity=hourly_activity(snapshot, now),
    )
