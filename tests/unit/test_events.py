"""Tests for kubehealer.collector.events: windowing, ordering and rendering."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from kubehealer.collector.events import (
    NO_RECENT_EVENTS,
    EventCollector,
    humanize_age,
    resolve_event_time,
    select_recent,
)
from kubehealer.models.events import RecordedEvent
from kubehealer.models.resources import ResourceSnapshot

_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


def _make_pod() -> ResourceSnapshot:
    return ResourceSnapshot(name="my-pod", namespace="default", uid="uid-1")


def _make_event(minutes_ago: float, reason: str = "BackOff", type_: str = "Warning") -> RecordedEvent:
    return RecordedEvent(
        reason=reason,
        message=f"{reason} message",
        type=type_,
        last_timestamp=_NOW - timedelta(minutes=minutes_ago),
    )


class _FakeEventQuery:
    def __init__(self, events: list[RecordedEvent] | Exception) -> None:
        self._events = events

    async def list_events(self, resource: ResourceSnapshot) -> list[RecordedEvent]:
        if isinstance(self._events, Exception):
            raise self._events
        return self._events


def _make_collector(events: list[RecordedEvent] | Exception, limit: int = 5) -> EventCollector:
    return EventCollector(_FakeEventQuery(events), limit=limit, clock=lambda: _NOW)


# ---------------------------------------------------------------------------
# Timestamp resolution
# ---------------------------------------------------------------------------


class TestResolveEventTime:
    def test_last_timestamp_preferred(self) -> None:
        event = RecordedEvent(
            reason="x",
            message="",
            last_timestamp=_NOW,
            event_time=_NOW - timedelta(minutes=5),
            first_timestamp=_NOW - timedelta(minutes=10),
        )
        assert resolve_event_time(event) == _NOW

    def test_event_time_when_last_missing(self) -> None:
        event = RecordedEvent(
            reason="x",
            message="",
            event_time=_NOW - timedelta(minutes=5),
            first_timestamp=_NOW - timedelta(minutes=10),
        )
        assert resolve_event_time(event) == _NOW - timedelta(minutes=5)

    def test_first_timestamp_last_resort(self) -> None:
        event = RecordedEvent(reason="x", message="", first_timestamp=_NOW - timedelta(minutes=10))
        assert resolve_event_time(event) == _NOW - timedelta(minutes=10)

    def test_epoch_treated_as_unknown(self) -> None:
        event = RecordedEvent(
            reason="x",
            message="",
            last_timestamp=datetime(1970, 1, 1, tzinfo=UTC),
            event_time=_NOW - timedelta(minutes=2),
        )
        assert resolve_event_time(event) == _NOW - timedelta(minutes=2)

    def test_no_timestamps(self) -> None:
        assert resolve_event_time(RecordedEvent(reason="x", message="")) is None


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestSelectRecent:
    def test_old_events_dropped_and_ascending(self) -> None:
        # 7 events spread over two hours; 3 fall outside the 1 h window
        minutes = [110, 5, 95, 40, 70, 20, 55]
        events = [_make_event(m, reason=f"E{m}") for m in minutes]

        selected = select_recent(events, _NOW)

        assert [e.reason for _, e in selected] == ["E55", "E40", "E20", "E5"]
        timestamps = [ts for ts, _ in selected]
        assert timestamps == sorted(timestamps)

    def test_limit_keeps_most_recent(self) -> None:
        events = [_make_event(m, reason=f"E{m}") for m in range(1, 11)]
        selected = select_recent(events, _NOW, limit=5)

        assert [e.reason for _, e in selected] == ["E5", "E4", "E3", "E2", "E1"]

    def test_event_exactly_at_cutoff_dropped(self) -> None:
        assert select_recent([_make_event(60)], _NOW) == []

    def test_undated_event_dropped(self) -> None:
        assert select_recent([RecordedEvent(reason="x", message="")], _NOW) == []


class TestHumanizeAge:
    def test_seconds_minutes_hours(self) -> None:
        assert humanize_age(_NOW - timedelta(seconds=30), _NOW) == "30s ago"
        assert humanize_age(_NOW - timedelta(minutes=5), _NOW) == "5m ago"
        assert humanize_age(_NOW - timedelta(hours=2), _NOW) == "2h ago"

    def test_unknown(self) -> None:
        assert humanize_age(None, _NOW) == "unknown"


# ---------------------------------------------------------------------------
# EventCollector
# ---------------------------------------------------------------------------


class TestEventCollector:
    @pytest.mark.asyncio
    async def test_renders_recent_events(self) -> None:
        events = [
            _make_event(10, reason="Scheduled", type_="Normal"),
            _make_event(2, reason="BackOff", type_="Warning"),
        ]
        lines = await _make_collector(events).recent_events(_make_pod())

        assert lines == (
            "🔹 [10m ago] Scheduled: Scheduled message",
            "🔸 [2m ago] BackOff: BackOff message",
        )

    @pytest.mark.asyncio
    async def test_no_events_placeholder(self) -> None:
        lines = await _make_collector([]).recent_events(_make_pod())
        assert lines == (NO_RECENT_EVENTS,)

    @pytest.mark.asyncio
    async def test_only_old_events_placeholder(self) -> None:
        lines = await _make_collector([_make_event(120)]).recent_events(_make_pod())
        assert lines == (NO_RECENT_EVENTS,)

    @pytest.mark.asyncio
    async def test_query_failure_placeholder(self) -> None:
        lines = await _make_collector(RuntimeError("forbidden")).recent_events(_make_pod())
        assert lines == ("failed to fetch events: forbidden",)

    @pytest.mark.asyncio
    async def test_limit_applied(self) -> None:
        events = [_make_event(m) for m in range(1, 20)]
        lines = await _make_collector(events, limit=3).recent_events(_make_pod())
        assert len(lines) == 3
