"""Sentry SDK integration for smartshard.

Error reporting, tracing and metrics are strictly OPT-IN: nothing is sent
unless ``sentry.enabled: true`` is set in ``.smartshard.yml`` (or
``SMARTSHARD_SENTRY_ENABLED=true``) together with a DSN.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from typing import TYPE_CHECKING, Any

import sentry_sdk
import sentry_sdk.metrics
from sentry_sdk.integrations.logging import LoggingIntegration

from smartshard import __version__

if TYPE_CHECKING:
    from types import TracebackType

    from smartshard.config import SentryConfig

logger = logging.getLogger(__name__)

_init_lock = threading.Lock()
_initialized: dict[str, bool] = {"value": False}

_HOME_DIR_RE = re.compile(r"/(?:home|Users)/[^/\s]+")

# Public key part of a DSN: https://<key>@<host>/<project>
_DSN_KEY_RE = re.compile(r"(https?://)[^@/\s]+@")


def init_sentry(config: SentryConfig) -> None:
    """Initialize the Sentry SDK if enabled and configured.

    Idempotent and thread-safe; calls after the first successful
    initialization are no-ops.
    """
    with _init_lock:
        if _initialized["value"]:
            return
        if not config.enabled:
            logger.debug("Sentry disabled (sentry.enabled is false)")
            return
        if not config.dsn:
            logger.warning("Sentry enabled but no DSN configured")
            return

        environment = config.environment or ("ci" if os.environ.get("CI") else "local")

        sentry_sdk.init(
            dsn=config.dsn,
            release=f"smartshard@{__version__}",
            environment=environment,
            traces_sample_rate=config.traces_sample_rate,
            send_default_pii=False,
            server_name="",
            before_send=_before_send,
            before_send_transaction=_before_send,
            in_app_include=["smartshard"],
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
        )

        _initialized["value"] = True
        logger.info(
            "Sentry initialized (env=%s, tracing=%.2f)",
            environment,
            config.traces_sample_rate,
        )


def is_sentry_enabled() -> bool:
    """Return whether Sentry has been successfully initialized."""
    return _initialized["value"]


# ---------------------------------------------------------------------------
# Privacy scrubbing
# ---------------------------------------------------------------------------


def _scrub_text(value: str) -> str:
    """Hide home directories and DSN keys in free text."""
    return _DSN_KEY_RE.sub(r"\1[REDACTED]@", _HOME_DIR_RE.sub("/~", value))


def _scrub_frames(stacktrace: dict[str, Any]) -> None:
    for frame in stacktrace.get("frames", []):
        # Locals hold test identifiers of the sharded project
        frame.pop("vars", None)
        for path_key in ("filename", "abs_path"):
            path = frame.get(path_key)
            if isinstance(path, str):
                frame[path_key] = _scrub_text(path)


def _scrub_field(key: str, value: Any) -> Any:
    if key.lower() == "dsn":
        return "[REDACTED]"
    return _scrub_text(value) if isinstance(value, str) else value


def _scrub_event(event: dict[str, Any]) -> dict[str, Any]:
    """Strip test names, local paths and the DSN from an outgoing event."""
    exception = event.get("exception")
    if isinstance(exception, dict):
        for value in exception.get("values", []):
            # Messages name the results and test list files
            if isinstance(value.get("value"), str):
                value["value"] = _scrub_text(value["value"])
            stacktrace = value.get("stacktrace")
            if isinstance(stacktrace, dict):
                _scrub_frames(stacktrace)

    breadcrumbs = event.get("breadcrumbs")
    if isinstance(breadcrumbs, dict):
        for crumb in breadcrumbs.get("values", []):
            if isinstance(crumb.get("message"), str):
                crumb["message"] = _scrub_text(crumb["message"])

    for section in ("tags", "extra"):
        data = event.get(section)
        if not isinstance(data, dict):
            continue
        event[section] = {key: _scrub_field(key, value) for key, value in data.items()}

    event.pop("server_name", None)
    return event


def _before_send(event: dict[str, Any], _hint: dict[str, Any]) -> dict[str, Any] | None:
    """Scrub sensitive data from events before sending."""
    return _scrub_event(event)


# ---------------------------------------------------------------------------
# Metrics and tracing helpers (no-op when disabled)
# ---------------------------------------------------------------------------


def record_metric_gauge(
    name: str, value: float, unit: str = "", **attrs: str | int | float
) -> None:
    """Emit a Sentry gauge metric. No-op if Sentry is disabled."""
    if not _initialized["value"]:
        return
    sentry_sdk.metrics.gauge(
        name, value, unit=unit or None, attributes=dict(attrs) if attrs else None
    )


class _NoOpSpan:
    """Context manager that does nothing when Sentry is disabled."""

    def __enter__(self) -> _NoOpSpan:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        pass

    def set_data(self, key: str, value: Any) -> None:
        """No-op data setter."""


def start_span(op: str, description: str) -> Any:
    """Start a Sentry span, or a no-op context manager when disabled."""
    if not _initialized["value"]:
        return _NoOpSpan()
    return sentry_sdk.start_span(op=op, description=description)
