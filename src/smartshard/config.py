"""Configuration parsing from ``.smartshard.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from smartshard.sharding.durations import (
    DEFAULT_TEST_TIME_SEC,
    IGNORED_TEST_TIME_SEC,
    UNLIMITED,
    Platform,
)

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".smartshard.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_TRUTHY = {True, "true", "1", "yes"}


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


@dataclass
class ShardingConfig:
    """Shard planning configuration."""

    platform: str = Platform.ANDROID.value
    """Target platform (android, ios); selects the test identity format."""

    shard_time: int = UNLIMITED
    """Target seconds per shard (-1 = no time budget)."""

    max_test_shards: int = UNLIMITED
    """Maximum number of shards (-1 = unlimited)."""

    disable_sharding: bool = False
    """Run every test in a single shard."""

    default_test_time: float = DEFAULT_TEST_TIME_SEC
    """Estimated seconds for tests with no previous result."""

    ignored_test_time: float = IGNORED_TEST_TIME_SEC
    """Estimated seconds for tests annotated as ignored."""

    results_path: str = ""
    """JUnit XML report of the previous run (relative to the project root)."""


@dataclass
class SentryConfig:
    """Sentry error monitoring configuration."""

    enabled: bool = False
    """Opt-in flag. No Sentry data sent unless True."""

    dsn: str = ""
    """Sentry DSN (Data Source Name)."""

    traces_sample_rate: float = 0.0
    """Fraction of transactions sent for tracing (0.0-1.0). 0 = disabled."""

    environment: str = ""
    """Override environment tag (auto-detected if empty)."""


@dataclass
class SmartShardConfig:
    """Complete configuration from ``.smartshard.yml``."""

    root: str
    """Project root directory."""

    sharding: ShardingConfig = field(default_factory=ShardingConfig)
    """Shard planning configuration."""

    sentry: SentryConfig = field(default_factory=SentryConfig)
    """Sentry observability configuration."""

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML, after environment variable expansion."""

    @property
    def results_file(self) -> Path | None:
        """Absolute path of the previous run's report, if configured."""
        if not self.sharding.results_path:
            return None
        path = Path(self.sharding.results_path)
        return path if path.is_absolute() else Path(self.root) / path


def _parse_sharding_config(raw: dict[str, Any]) -> ShardingConfig:
    """Parse the sharding section from raw YAML."""
    sharding_raw = raw.get("sharding", {})
    if not isinstance(sharding_raw, dict):
        sharding_raw = {}

    return ShardingConfig(
        platform=str(
            sharding_raw.get("platform", os.environ.get("SMARTSHARD_PLATFORM", "android"))
        ).lower(),
        shard_time=int(sharding_raw.get("shard_time", UNLIMITED)),
        max_test_shards=int(sharding_raw.get("max_test_shards", UNLIMITED)),
        disable_sharding=sharding_raw.get("disable_sharding", False) in _TRUTHY,
        default_test_time=float(sharding_raw.get("default_test_time", DEFAULT_TEST_TIME_SEC)),
        ignored_test_time=float(sharding_raw.get("ignored_test_time", IGNORED_TEST_TIME_SEC)),
        results_path=str(
            sharding_raw.get("results_path", os.environ.get("SMARTSHARD_RESULTS_PATH", ""))
        ),
    )


def _parse_sentry_config(raw: dict[str, Any]) -> SentryConfig:
    """Parse Sentry configuration from raw YAML."""
    sentry_raw = raw.get("sentry", {})
    if not isinstance(sentry_raw, dict):
        sentry_raw = {}

    enabled_raw = sentry_raw.get("enabled", os.environ.get("SMARTSHARD_SENTRY_ENABLED", ""))

    return SentryConfig(
        enabled=enabled_raw in _TRUTHY,
        dsn=str(sentry_raw.get("dsn", os.environ.get("SMARTSHARD_SENTRY_DSN", ""))),
        traces_sample_rate=float(
            sentry_raw.get(
                "traces_sample_rate",
                os.environ.get("SMARTSHARD_SENTRY_TRACES_SAMPLE_RATE", "0.0"),
            )
        ),
        environment=str(sentry_raw.get("environment", "")),
    )


def load_config(root: str | Path) -> SmartShardConfig:
    """Load and parse ``.smartshard.yml`` from *root*.

    Falls back to defaults and environment variables when the file is
    missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILE_NAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)

    return SmartShardConfig(
        root=str(root_path),
        sharding=_parse_sharding_config(raw),
        sentry=_parse_sentry_config(raw),
        raw=raw,
    )


def _validate_sharding_config(sharding: ShardingConfig) -> list[str]:
    """Validate shard planning settings."""
    errors: list[str] = []

    valid_platforms = [p.value for p in Platform]
    if sharding.platform not in valid_platforms:
        errors.append(
            f"sharding.platform must be one of: {', '.join(valid_platforms)} "
            f"(got: {sharding.platform})"
        )

    if sharding.shard_time < UNLIMITED or sharding.shard_time == 0:
        errors.append(
            f"sharding.shard_time must be positive or -1 for no limit (got: {sharding.shard_time})"
        )

    if sharding.max_test_shards < UNLIMITED or sharding.max_test_shards == 0:
        errors.append(
            "sharding.max_test_shards must be positive or -1 for unlimited "
            f"(got: {sharding.max_test_shards})"
        )

    if sharding.default_test_time < 0:
        errors.append(
            f"sharding.default_test_time must be non-negative (got: {sharding.default_test_time})"
        )

    if sharding.ignored_test_time < 0:
        errors.append(
            f"sharding.ignored_test_time must be non-negative (got: {sharding.ignored_test_time})"
        )

    return errors


def _validate_sentry_config(sentry: SentryConfig) -> list[str]:
    """Validate Sentry configuration."""
    errors: list[str] = []

    if sentry.enabled and not sentry.dsn:
        errors.append("sentry.dsn is required when sentry.enabled is true")

    if not 0.0 <= sentry.traces_sample_rate <= 1.0:
        errors.append(
            f"sentry.traces_sample_rate must be between 0.0 and 1.0 "
            f"(got: {sentry.traces_sample_rate})"
        )

    return errors


def validate_config(config: SmartShardConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []
    errors.extend(_validate_sharding_config(config.sharding))
    errors.extend(_validate_sentry_config(config.sentry))
    return errors
