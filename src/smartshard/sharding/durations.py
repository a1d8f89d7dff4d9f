"""Duration lookup built from a previous run's JUnit results.

The lookup keys must match the identifiers the test lister produces for
new runs, otherwise every test misses the cache and falls back to the
default time.

iOS (xctestrun ``OnlyTestIdentifiers``)::

    LoginUITests/testBasicSelection

Android (``am instrument`` test filter)::

    class com.foo.LoginTest#testBasicSelection
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from smartshard.models.junit import JUnitTestResult
    from smartshard.models.shard import TestDescriptor

logger = logging.getLogger(__name__)

# ── Constants ─────────────────────────────────────────────────────

UNLIMITED = -1
"""Sentinel accepted at public boundaries for "no limit"."""

DEFAULT_TEST_TIME_SEC = 120.0
"""Estimate for tests with no previous result to reference."""

IGNORED_TEST_TIME_SEC = 0.0
"""Estimate for tests annotated as ignored."""


class ShardingError(ValueError):
    """Fatal sharding configuration or invariant violation."""


def optional_limit(value: int) -> int | None:
    """Convert the ``-1`` sentinel into None, passing other values through."""
    return None if value == UNLIMITED else value


# ── Key formats ───────────────────────────────────────────────────


def android_key(classname: str, name: str) -> str:
    """Return the Android instrumentation identity ``class {classname}#{name}``."""
    return f"class {classname}#{name}"


def ios_key(classname: str, name: str) -> str:
    """Return the xctestrun identity ``{classname}/{name}``.

    iOS JUnit reports append ``()`` to each test name (``testFoo()``)
    while xctestrun identifiers have none, so everything from the first
    ``(`` on is dropped.
    """
    return f"{classname}/{name.split('(', 1)[0]}"


class Platform(Enum):
    """Target platform; selects the test identity key format."""

    ANDROID = "android"
    IOS = "ios"

    def identity_key(self, classname: str, name: str) -> str:
        """Format the identity key for a test on this platform."""
        if self is Platform.IOS:
            return ios_key(classname, name)
        return android_key(classname, name)

    @classmethod
    def parse(cls, value: str | Platform) -> Platform:
        """Resolve a platform from its (case-insensitive) name."""
        if isinstance(value, Platform):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            msg = f"Unknown platform {value!r} (expected one of: {choices})"
            raise ShardingError(msg) from None


def identity_key(classname: str, name: str, platform: Platform) -> str:
    """Identity key for a test, in the format used by the duration index."""
    return platform.identity_key(classname, name)


# ── Duration index ────────────────────────────────────────────────


def create_duration_index(result: JUnitTestResult, platform: Platform) -> dict[str, float]:
    """Map each test identity to its last observed time in seconds.

    Records that are empty, have no time, or have a negative time are
    skipped.  When the same key occurs more than once the last record
    wins.
    """
    durations: dict[str, float] = {}
    skipped = 0

    for suite in result.testsuites:
        for case in suite.testcases:
            if case.empty() or case.time is None or case.time < 0:
                skipped += 1
                continue
            # empty() guarantees both are set
            key = platform.identity_key(case.classname or "", case.name or "")
            durations[key] = case.time

    if skipped:
        logger.debug("Skipped %d test records without usable timing", skipped)
    return durations


def resolve_test_time(
    test: TestDescriptor,
    durations: dict[str, float],
    *,
    default_test_time: float = DEFAULT_TEST_TIME_SEC,
    ignored_test_time: float = IGNORED_TEST_TIME_SEC,
) -> tuple[float, bool]:
    """Estimate the run time of *test*.

    Returns:
        A ``(seconds, cache_hit)`` tuple.  ``cache_hit`` is False only
        when the default time was used because no history existed.
    """
    if test.ignored:
        return ignored_test_time, True
    previous = durations.get(test.identifier)
    if previous is None:
        return default_test_time, False
    return previous, True
