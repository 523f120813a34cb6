"""File-based persistence of diagnosis results.

Each report is written as ``<dir>/<namespace>_<pod>_auto_<YYYYmmdd_HHMMSS>.json``. The
payload is the DiagnosisResult as plain JSON plus a ``generated_at``
timestamp; presentation formats are left to downstream renderers.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from kubehealer.models.diagnosis import DiagnosisResult


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def report_filename(result: DiagnosisResult, at: datetime) -> str:
    return f"{result.namespace}_{result.name}_auto_{at.strftime('%Y%m%d_%H%M%S')}.json"


def result_to_dict(result: DiagnosisResult) -> dict[str, object]:
    return dataclasses.asdict(result)


class FileReportSink:
    """Writes one JSON file per diagnosis into ``directory``."""

    def __init__(self, directory: str | Path = "reports", clock: Callable[[], datetime] = _utcnow) -> None:
        self._directory = Path(directory)
        self._clock = clock

    async def write(self, result: DiagnosisResult) -> Path:
        """Persist ``result`` and return the path written."""
        at = self._clock()
        path = self._directory / report_filename(result, at)
        payload = result_to_dict(result)
        payload["generated_at"] = at.isoformat()
        await asyncio.to_thread(self._write_file, path, payload)
        return path

    def _write_file(self, path: Path, payload: dict[str, object]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
