"""Application bootstrap for KubeHealer monitor mode.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → metrics → K8s client → collectors
              → rules → analyzer → cooldown → queue → monitor → pod watcher

Shutdown stops components in reverse order. Each component's stop error is
caught and logged independently so one failure does not prevent the rest
from shutting down cleanly.

``create_core_api`` and ``build_analyzer`` are shared with the one-shot
``kubehealer diagnose`` command.
"""

from __future__ import annotations

import asyncio
import signal
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from kubehealer.analyst.analyzer import Analyzer
from kubehealer.collector.events import EventCollector
from kubehealer.collector.kube import KubeClient
from kubehealer.collector.logs import LogEvidenceCollector
from kubehealer.config import load_config
from kubehealer.models.config import KubeHealerConfig
from kubehealer.observability.logging import get_logger, setup_logging
from kubehealer.rules import build_rule_engine

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from kubehealer.analyst.monitor import ChangeMonitor
    from kubehealer.analyst.queue import DiagnosisQueue
    from kubehealer.collector.pod_watcher import PodWatcher

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


async def create_core_api() -> Any:
    """Return a ``CoreV1Api`` configured from in-cluster config or kubeconfig.

    Raises _ComponentError when neither source is usable.
    """
    log = get_logger("app")
    try:
        import kubernetes_asyncio.config as k8s_config
        from kubernetes_asyncio import client as k8s_client

        try:
            k8s_config.load_incluster_config()  # type: ignore[no-untyped-call]
            log.info("k8s client configured from in-cluster service account")
        except k8s_config.ConfigException:
            await k8s_config.load_kube_config()
            log.info("k8s client configured from kubeconfig")

        return k8s_client.CoreV1Api()
    except Exception as exc:
        raise _ComponentError("k8s_client", exc) from exc


def build_analyzer(cfg: KubeHealerConfig, api: Any) -> Analyzer:
    """Assemble an Analyzer over ``api`` with the collector bounds from ``cfg``."""
    kube = KubeClient(api)
    timeout_s = float(cfg.collector.call_timeout_seconds)
    return Analyzer(
        events=EventCollector(
            kube,
            window=timedelta(minutes=cfg.collector.event_window_minutes),
            limit=cfg.collector.event_limit,
            timeout_s=timeout_s,
        ),
        logs=LogEvidenceCollector(kube, tail_lines=cfg.collector.log_tail_lines, timeout_s=timeout_s),
        engine=build_rule_engine(),
        snapshots=kube,
    )


class KubeHealerApp:
    """Application root. Owns every component and coordinates their lifecycle.

    ``stop()`` on an app that was never started (or already stopped) is safe.
    """

    def __init__(self, config: KubeHealerConfig | None = None) -> None:
        self.config = config
        self._api: Any = None
        self.analyzer: Analyzer | None = None
        self.queue: DiagnosisQueue | None = None
        self.monitor: ChangeMonitor | None = None
        self.watcher: PodWatcher | None = None
        self._running = False
        self._log: FilteringBoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        if self.config is None:
            self.config = load_config()
        cfg = self.config

        setup_logging(cfg.log.level, cfg.log.format)
        self._log = get_logger("app")
        self._log.info("kubehealer starting", version=_kubehealer_version())

        if cfg.metrics.port:
            self._start_metrics_endpoint(cfg.metrics.port)

        await self._start_k8s_client()

        from kubehealer.analyst.cooldown import CooldownTracker
        from kubehealer.analyst.monitor import ChangeMonitor
        from kubehealer.analyst.queue import DiagnosisQueue
        from kubehealer.collector.pod_watcher import PodWatcher
        from kubehealer.reports import FileReportSink

        self.analyzer = build_analyzer(cfg, self._api)

        self.queue = DiagnosisQueue(capacity=cfg.monitor.queue_size, workers=cfg.monitor.workers)
        await self.queue.start()

        self.monitor = ChangeMonitor(
            analyzer=self.analyzer,
            sink=FileReportSink(cfg.report.directory),
            cooldown=CooldownTracker(cooldown_s=float(cfg.monitor.cooldown_seconds)),
            queue=self.queue,
        )

        self.watcher = PodWatcher(
            self._api,
            self.monitor,
            namespace=cfg.monitor.namespace,
            label_selector=cfg.monitor.label_selector,
            resync_seconds=float(cfg.monitor.resync_seconds),
        )
        await self.watcher.start()

        self._running = True
        self._log.info(
            "kubehealer started",
            namespace=cfg.monitor.namespace or "*",
            label_selector=cfg.monitor.label_selector,
            cooldown_s=cfg.monitor.cooldown_seconds,
        )

    def _start_metrics_endpoint(self, port: int) -> None:
        """Serve Prometheus metrics on ``port``; a bind failure is fatal."""
        assert self._log is not None
        from prometheus_client import start_http_server

        try:
            start_http_server(port)
        except OSError as exc:
            raise _ComponentError("metrics", exc) from exc
        self._log.info("metrics endpoint started", port=port)

    async def _start_k8s_client(self) -> None:
        self._api = await create_core_api()

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info(
            "kubehealer shutting down",
            tracked_pods=self.watcher.known_pods if self.watcher is not None else 0,
        )
        self._running = False

        await self._stop_component("pod_watcher", self.watcher)
        await self._stop_component("diagnosis_queue", self.queue)
        self.watcher = None
        self.queue = None

        if self._api is not None:
            try:
                await self._api.api_client.close()
            except Exception as exc:
                log.debug("k8s client close raised (non-fatal)", error=str(exc))
            self._api = None

        log.info("kubehealer stopped")
        self._log = None

    async def _stop_component(self, name: str, component: object | None) -> None:
        """Call stop() on a component if it has that method, catching all errors."""
        if component is None:
            return
        log = self._log or get_logger("app")
        stop_fn = getattr(component, "stop", None)
        if stop_fn is None:
            return
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component stop timed out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component stop raised an error", component=name, error=str(exc))


def _kubehealer_version() -> str:
    from kubehealer import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KubeHealerApp()
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_requested.set)

    try:
        await app.start()
        await stop_requested.wait()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical("fatal startup error", component=exc.component, error=str(exc.cause))
        raise SystemExit(1) from exc
    finally:
        await app.stop()


def run() -> None:
    """Run the monitor until SIGINT/SIGTERM."""
    asyncio.run(main())
