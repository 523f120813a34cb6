"""Environment-variable configuration loader.

Every setting is read from a ``KUBEHEALER_*`` variable. Integer settings are
clamped to their documented bounds; malformed values raise ConfigError.
"""

from __future__ import annotations

import os

from kubehealer.models.config import (
    CollectorConfig,
    KubeHealerConfig,
    LogConfig,
    MetricsConfig,
    MonitorConfig,
    ReportConfig,
)

_PREFIX = "KUBEHEALER_"

_LOG_LEVELS: frozenset[str] = frozenset({"debug", "info", "warning", "error"})
_LOG_FORMATS: frozenset[str] = frozenset({"json", "console"})


class ConfigError(ValueError):
    """Raised when an environment variable holds an invalid value."""


def _env(name: str, default: str) -> str:
    return os.environ.get(_PREFIX + name, default).strip()


def _int_env(name: str, default: int, minimum: int, maximum: int) -> int:
    """Read an integer variable and clamp it into [minimum, maximum]."""
    raw = _env(name, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{_PREFIX}{name} must be an integer, got {raw!r}") from exc
    return max(minimum, min(maximum, value))


def _log_level() -> str:
    level = _env("LOG_LEVEL", "info").lower()
    if level not in _LOG_LEVELS:
        raise ConfigError(f"{_PREFIX}LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got {level!r}")
    return level


def _log_format() -> str:
    fmt = _env("LOG_FORMAT", "json").lower()
    if fmt not in _LOG_FORMATS:
        raise ConfigError(f"{_PREFIX}LOG_FORMAT must be one of {sorted(_LOG_FORMATS)}, got {fmt!r}")
    return fmt


def load_config() -> KubeHealerConfig:
    """Build a KubeHealerConfig from the current process environment."""
    return KubeHealerConfig(
        log=LogConfig(level=_log_level(), format=_log_format()),
        monitor=MonitorConfig(
            namespace=_env("MONITOR_NAMESPACE", ""),
            label_selector=_env("MONITOR_LABEL_SELECTOR", ""),
            resync_seconds=_int_env("MONITOR_RESYNC_SECONDS", 600, 30, 86400),
            cooldown_seconds=_int_env("COOLDOWN_SECONDS", 60, 0, 3600),
            queue_size=_int_env("QUEUE_SIZE", 100, 1, 10000),
            workers=_int_env("WORKERS", 4, 1, 64),
        ),
        collector=CollectorConfig(
            log_tail_lines=_int_env("LOG_TAIL_LINES", 50, 1, 1000),
            event_window_minutes=_int_env("EVENT_WINDOW_MINUTES", 60, 1, 1440),
            event_limit=_int_env("EVENT_LIMIT", 5, 1, 100),
            call_timeout_seconds=_int_env("CALL_TIMEOUT_SECONDS", 10, 1, 120),
        ),
        report=ReportConfig(directory=_env("REPORT_DIR", "reports") or "reports"),
        metrics=MetricsConfig(port=_int_env("METRICS_PORT", 0, 0, 65535)),
    )
