"""Structured logging configuration using structlog.

JSON lines are the default for in-cluster runs; ``console`` renders
coloured key=value output for interactive use.
"""

from __future__ import annotations

import logging
import sys
from typing import cast

import structlog
from structlog.typing import FilteringBoundLogger, Processor


def setup_logging(level: str = "info", fmt: str = "json") -> None:
    """Configure structlog output to stderr at ``level`` in ``fmt`` format."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    renderer: Processor
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str, **bindings: object) -> FilteringBoundLogger:
    """Get a logger bound with a component name and optional extra context."""
    return cast(FilteringBoundLogger, structlog.get_logger(component=component, **bindings))
