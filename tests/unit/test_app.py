"""Tests for kubehealer.app.KubeHealerApp startup wiring and shutdown."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import kubernetes_asyncio.config as k8s_config
import pytest
from kubernetes_asyncio.client.exceptions import ApiException

from kubehealer.app import KubeHealerApp, _ComponentError, build_analyzer, create_core_api
from kubehealer.collector.pod_watcher import PodWatcher
from kubehealer.collector.sources import ResourceNotFoundError
from kubehealer.models.config import KubeHealerConfig, MetricsConfig, MonitorConfig


def _make_app(monkeypatch: pytest.MonkeyPatch) -> tuple[KubeHealerApp, MagicMock]:
    api = MagicMock()
    api.api_client.close = AsyncMock()

    async def fake_k8s(self: KubeHealerApp) -> None:
        self._api = api

    monkeypatch.setattr(KubeHealerApp, "_start_k8s_client", fake_k8s)
    monkeypatch.setattr(PodWatcher, "start", AsyncMock())
    monkeypatch.setattr(PodWatcher, "stop", AsyncMock())

    cfg = KubeHealerConfig(monitor=MonitorConfig(namespace="default", workers=2, queue_size=5))
    return KubeHealerApp(cfg), api


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_wires_components(self, monkeypatch: pytest.MonkeyPatch) -> None:
        app, _ = _make_app(monkeypatch)
        await app.start()
        try:
            assert app.running is True
            assert app.analyzer is not None
            assert app.monitor is not None
            assert app.queue is not None
            assert app.queue.capacity == 5
            assert app.watcher is not None
        finally:
            await app.stop()

    @pytest.mark.asyncio
    async def test_stop_closes_client(self, monkeypatch: pytest.MonkeyPatch) -> None:
        app, api = _make_app(monkeypatch)
        await app.start()
        await app.stop()

        assert app.running is False
        assert app.watcher is None
        api.api_client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_before_start_is_safe(self) -> None:
        await KubeHealerApp().stop()

    @pytest.mark.asyncio
    async def test_double_stop_is_safe(self, monkeypatch: pytest.MonkeyPatch) -> None:
        app, api = _make_app(monkeypatch)
        await app.start()
        await app.stop()
        await app.stop()

        api.api_client.close.assert_awaited_once()


class TestStartupFailures:
    @pytest.mark.asyncio
    async def test_metrics_port_in_use_is_component_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        app, _ = _make_app(monkeypatch)
        app.config = KubeHealerConfig(metrics=MetricsConfig(port=9999))
        monkeypatch.setattr("prometheus_client.start_http_server", MagicMock(side_effect=OSError("address in use")))

        with pytest.raises(_ComponentError) as exc_info:
            await app.start()

        assert exc_info.value.component == "metrics"
        assert isinstance(exc_info.value.cause, OSError)
        assert app.running is False
        await app.stop()

    @pytest.mark.asyncio
    async def test_k8s_config_failure_is_component_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            k8s_config, "load_incluster_config", MagicMock(side_effect=k8s_config.ConfigException("no sa"))
        )
        monkeypatch.setattr(k8s_config, "load_kube_config", AsyncMock(side_effect=FileNotFoundError("~/.kube")))

        with pytest.raises(_ComponentError) as exc_info:
            await create_core_api()

        assert exc_info.value.component == "k8s_client"


class TestBuildAnalyzer:
    @pytest.mark.asyncio
    async def test_diagnose_reads_pod_through_api(self) -> None:
        api = MagicMock()
        api.read_namespaced_pod = AsyncMock(side_effect=ApiException(status=404, reason="Not Found"))
        analyzer = build_analyzer(KubeHealerConfig(), api)

        with pytest.raises(ResourceNotFoundError):
            await analyzer.diagnose("payments", "api")
        api.read_namespaced_pod.assert_awaited_once_with(name="api", namespace="payments")
