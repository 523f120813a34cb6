"""Diagnosis orchestration and change-triggered scheduling."""
