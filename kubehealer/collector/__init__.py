"""Collector package for KubeHealer.

Gathers evidence for the Analyzer and delivers Pod change notifications.

Submodules
----------
sources      -- Protocols for the external snapshot/event/log/report collaborators.
logs         -- LogEvidenceCollector: log tail fetch with previous-incarnation fallback.
events       -- EventCollector: windowed, ordered, bounded recent events.
kube         -- KubeClient: kubernetes_asyncio implementation of the query protocols.
pod_watcher  -- PodWatcher: list-then-watch notification source with periodic resync.
"""
