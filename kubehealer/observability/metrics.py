"""Prometheus metrics for KubeHealer."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# Rule metrics
rule_matches_total = Counter(
    "kubehealer_rule_matches_total",
    "Total rule matches",
    ["rule_id"],
)

# Diagnosis metrics
diagnoses_total = Counter(
    "kubehealer_diagnoses_total",
    "Total diagnosis runs",
    ["outcome"],
)

diagnosis_duration_seconds = Histogram(
    "kubehealer_diagnosis_duration_seconds",
    "Diagnosis run duration in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# Collector metrics
collector_failures_total = Counter(
    "kubehealer_collector_failures_total",
    "Total failed event queries and log fetches",
    ["collector"],
)

# Monitor metrics
notifications_total = Counter(
    "kubehealer_notifications_total",
    "Total pod change notifications received",
    ["kind"],
)

diagnosis_suppressed_total = Counter(
    "kubehealer_diagnosis_suppressed_total",
    "Total diagnosis triggers suppressed by the cooldown window",
)

diagnosis_dropped_total = Counter(
    "kubehealer_diagnosis_dropped_total",
    "Total diagnosis triggers dropped because the queue was full",
)

diagnosis_queue_depth = Gauge(
    "kubehealer_diagnosis_queue_depth",
    "Current diagnosis queue depth",
)

# Watcher metrics
watcher_reconnects_total = Counter(
    "kubehealer_watcher_reconnects_total",
    "Total pod watcher reconnection attempts",
    ["reason"],
)

watcher_backoff_seconds = Histogram(
    "kubehealer_watcher_backoff_seconds",
    "Pod watcher backoff duration in seconds",
    buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0),
)
