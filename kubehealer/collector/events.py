"""Recent lifecycle events for a Pod.

Events are restricted to a recency window (default 1 h), ordered by their
effective timestamp, and the most recent ``limit`` (default 5) are rendered
oldest first. Query failures yield a single explanatory line.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from kubehealer.collector.sources import EventQuery
from kubehealer.models.events import RecordedEvent
from kubehealer.models.resources import ResourceSnapshot
from kubehealer.observability.logging import get_logger
from kubehealer.observability.metrics import collector_failures_total

_logger = get_logger("collector.events")

DEFAULT_WINDOW: timedelta = timedelta(hours=1)
DEFAULT_LIMIT: int = 5
DEFAULT_TIMEOUT_S: float = 10.0

NO_RECENT_EVENTS = "no recent events"

_ICON_WARNING = "🔸"
_ICON_NORMAL = "🔹"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _known(ts: datetime | None) -> datetime | None:
    """Treat missing and zero-valued (epoch) timestamps as unknown."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    if ts <= _EPOCH:
        return None
    return ts


def resolve_event_time(event: RecordedEvent) -> datetime | None:
    """Return the event's effective timestamp.

    Priority: last observed → precise event time → first observed.
    Returns None when none of them is known.
    """
    for candidate in (event.last_timestamp, event.event_time, event.first_timestamp):
        ts = _known(candidate)
        if ts is not None:
            return ts
    return None


def humanize_age(ts: datetime | None, now: datetime) -> str:
    """Render an elapsed time as "<n>s ago", "<n>m ago" or "<n>h ago"."""
    if ts is None:
        return "unknown"
    seconds = max(0.0, (now - ts).total_seconds())
    if seconds < 60:
        return f"{seconds:.0f}s ago"
    if seconds < 3600:
        return f"{seconds / 60:.0f}m ago"
    return f"{seconds / 3600:.0f}h ago"


def select_recent(
    events: list[RecordedEvent],
    now: datetime,
    window: timedelta = DEFAULT_WINDOW,
    limit: int = DEFAULT_LIMIT,
) -> list[tuple[datetime, RecordedEvent]]:
    """Return at most ``limit`` in-window events, ascending by effective time."""
    cutoff = now - window
    dated: list[tuple[datetime, RecordedEvent]] = []
    for event in events:
        ts = resolve_event_time(event)
        if ts is None or ts <= cutoff:
            continue
        dated.append((ts, event))

    dated.sort(key=lambda pair: pair[0])
    if limit <= 0:
        return []
    return dated[-limit:]


def render_event(ts: datetime, event: RecordedEvent, now: datetime) -> str:
    icon = _ICON_WARNING if event.type == "Warning" else _ICON_NORMAL
    return f"{icon} [{humanize_age(ts, now)}] {event.reason}: {event.message}"


class EventCollector:
    """Queries, windows and renders the recent events of a Pod."""

    def __init__(
        self,
        query: EventQuery,
        window: timedelta = DEFAULT_WINDOW,
        limit: int = DEFAULT_LIMIT,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._query = query
        self._window = window
        self._limit = limit
        self._timeout_s = timeout_s
        self._clock = clock

    async def recent_events(self, resource: ResourceSnapshot) -> tuple[str, ...]:
        """Return rendered recent events; never raises."""
        try:
            async with asyncio.timeout(self._timeout_s):
                events = await self._query.list_events(resource)
        except Exception as exc:
            reason = "timed out" if isinstance(exc, TimeoutError) else str(exc) or type(exc).__name__
            collector_failures_total.labels(collector="events").inc()
            _logger.warning(
                "event_query_failed",
                pod=f"{resource.namespace}/{resource.name}",
                error=reason,
            )
            return (f"failed to fetch events: {reason}",)

        now = self._clock()
        selected = select_recent(events, now, self._window, self._limit)
        if not selected:
            return (NO_RECENT_EVENTS,)
        return tuple(render_event(ts, event, now) for ts, event in selected)
