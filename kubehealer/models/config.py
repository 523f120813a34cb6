"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LogConfig:
    level: str = "info"
    format: str = "json"  # "json" or "console"


@dataclass(frozen=True)
class MonitorConfig:
    """Pod notification source and re-diagnosis scheduling."""

    namespace: str = ""
    label_selector: str = ""
    resync_seconds: int = 600
    cooldown_seconds: int = 60
    queue_size: int = 100
    workers: int = 4


@dataclass(frozen=True)
class CollectorConfig:
    """Bounds for log and event evidence gathering."""

    log_tail_lines: int = 50
    event_window_minutes: int = 60
    event_limit: int = 5
    call_timeout_seconds: int = 10


@dataclass(frozen=True)
class ReportConfig:
    directory: str = "reports"


@dataclass(frozen=True)
class MetricsConfig:
    port: int = 0  # 0 disables the /metrics endpoint


@dataclass(frozen=True)
class KubeHealerConfig:
    """Root configuration object."""

    log: LogConfig = field(default_factory=LogConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
