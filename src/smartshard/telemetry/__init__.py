"""Telemetry integrations for smartshard."""

from smartshard.telemetry.sentry_integration import (
    init_sentry,
    is_sentry_enabled,
    record_metric_gauge,
    start_span,
)

__all__ = [
    "init_sentry",
    "is_sentry_enabled",
    "record_metric_gauge",
    "start_span",
]
