"""Container log tail collection and failure-signature classification.

Fetch strategy:
    - restarted container: previous incarnation first, current on failure
    - otherwise: current stream only
    - every attempt failed: one placeholder line, no signatures

A failed fetch never propagates out of ``collect``.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable

from kubehealer.collector.sources import LogFetcher
from kubehealer.models.diagnosis import LogEvidence
from kubehealer.models.resources import ResourceSnapshot
from kubehealer.observability.logging import get_logger
from kubehealer.observability.metrics import collector_failures_total

_logger = get_logger("collector.logs")

DEFAULT_TAIL_LINES: int = 50
DEFAULT_TIMEOUT_S: float = 10.0

# Ordered signature library. Order decides the position of a name in the
# result when several signatures match the same line.
LOG_SIGNATURES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Java Exception", re.compile(r"(Exception|Error):", re.IGNORECASE)),
    ("Go Panic", re.compile(r"panic:")),
    ("Python Traceback", re.compile(r"Traceback \(most recent call last\):")),
    ("Node Error", re.compile(r"ReferenceError|TypeError|SyntaxError", re.IGNORECASE)),
    ("OOM Message", re.compile(r"Kill process|Out of memory", re.IGNORECASE)),
    ("Permission Denied", re.compile(r"permission denied", re.IGNORECASE)),
    ("Common Error", re.compile(r"error|fail|fatal|exception", re.IGNORECASE)),
)


def classify_lines(
    lines: Iterable[str],
    signatures: tuple[tuple[str, re.Pattern[str]], ...] = LOG_SIGNATURES,
) -> tuple[str, ...]:
    """Return the names of signatures matching any line, each at most once.

    Names appear in first-occurrence order.
    """
    seen: dict[str, None] = {}
    for line in lines:
        for name, pattern in signatures:
            if name not in seen and pattern.search(line):
                seen[name] = None
    return tuple(seen)


class LogEvidenceCollector:
    """Fetches a bounded log tail for a container and classifies it."""

    def __init__(
        self,
        fetcher: LogFetcher,
        tail_lines: int = DEFAULT_TAIL_LINES,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._fetcher = fetcher
        self._tail_lines = tail_lines
        self._timeout_s = timeout_s

    async def collect(self, resource: ResourceSnapshot, container: str, restarted: bool) -> LogEvidence:
        """Return the log tail and matched signatures for ``container``."""
        attempts = (True, False) if restarted else (False,)
        last_error: Exception | None = None

        for previous in attempts:
            try:
                async with asyncio.timeout(self._timeout_s):
                    lines = await self._fetcher.read_log(
                        resource,
                        container,
                        previous=previous,
                        tail_lines=self._tail_lines,
                    )
            except Exception as exc:
                last_error = exc
                _logger.debug(
                    "log_fetch_failed",
                    pod=f"{resource.namespace}/{resource.name}",
                    container=container,
                    previous=previous,
                    error=_describe(exc),
                )
                continue

            return LogEvidence(lines=tuple(lines), signatures=classify_lines(lines))

        collector_failures_total.labels(collector="logs").inc()
        _logger.warning(
            "log_fetch_unavailable",
            pod=f"{resource.namespace}/{resource.name}",
            container=container,
            error=_describe(last_error),
        )
        return LogEvidence(lines=(f"unable to fetch logs: {_describe(last_error)}",))


def _describe(exc: Exception | None) -> str:
    if isinstance(exc, TimeoutError):
        return "timed out"
    return str(exc) or type(exc).__name__
