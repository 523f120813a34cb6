"""Tests for kubehealer.reports.FileReportSink."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from kubehealer.models.diagnosis import ContainerDiagnosis, DiagnosisResult, Issue, IssueSeverity
from kubehealer.reports import FileReportSink, report_filename

_AT = datetime(2024, 6, 1, 12, 30, 5, tzinfo=UTC)


def _make_result(namespace: str = "default") -> DiagnosisResult:
    issue = Issue(severity=IssueSeverity.ERROR, title="Out of memory (OOMKilled)", raw_error="Exit Code: 137")
    return DiagnosisResult(
        name="my-pod",
        namespace=namespace,
        phase="Running",
        restart_count=3,
        containers=(ContainerDiagnosis(name="app", state="Waiting", issues=(issue,)),),
        recent_events=("🔸 [1m ago] BackOff: back-off",),
    )


class TestReportFilename:
    def test_format(self) -> None:
        assert report_filename(_make_result(), _AT) == "default_my-pod_auto_20240601_123005.json"


class TestFileReportSink:
    @pytest.mark.asyncio
    async def test_writes_json_report(self, tmp_path: Path) -> None:
        sink = FileReportSink(tmp_path / "reports", clock=lambda: _AT)

        path = await sink.write(_make_result())

        assert path == tmp_path / "reports" / "default_my-pod_auto_20240601_123005.json"
        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["name"] == "my-pod"
        assert payload["generated_at"] == _AT.isoformat()
        assert payload["containers"][0]["issues"][0]["severity"] == "Error"
        assert payload["recent_events"] == ["🔸 [1m ago] BackOff: back-off"]

    @pytest.mark.asyncio
    async def test_same_pod_name_in_two_namespaces_written_separately(self, tmp_path: Path) -> None:
        sink = FileReportSink(tmp_path, clock=lambda: _AT)

        first = await sink.write(_make_result("team-a"))
        second = await sink.write(_make_result("team-b"))

        assert first != second
        assert json.loads(first.read_text(encoding="utf-8"))["namespace"] == "team-a"
        assert json.loads(second.read_text(encoding="utf-8"))["namespace"] == "team-b"
        assert len(list(tmp_path.iterdir())) == 2
