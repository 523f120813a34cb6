"""Logging and metrics for KubeHealer."""
