"""Recorded Kubernetes lifecycle events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RecordedEvent:
    """A core/v1 Event referencing a Pod.

    Any of the three timestamps may be missing depending on which component
    emitted the event; see ``kubehealer.collector.events.resolve_event_time``.
    """

    reason: str
    message: str
    type: str = "Normal"
    last_timestamp: datetime | None = None
    event_time: datetime | None = None
    first_timestamp: datetime | None = None
