"""Time-balanced shard assignment.

Tests are sorted longest first and each one goes to the shard with the
least accumulated time (longest-processing-time-first).  Tests with no
previous result are estimated at the default test time; the share of
tests that had a previous result is reported as the cache hit rate.
"""

from __future__ import annotations

import heapq
import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from smartshard.models.shard import TestMethod, TestShard
from smartshard.sharding.durations import (
    DEFAULT_TEST_TIME_SEC,
    IGNORED_TEST_TIME_SEC,
    UNLIMITED,
    Platform,
    ShardingError,
    create_duration_index,
    optional_limit,
    resolve_test_time,
)
from smartshard.sharding.estimator import shard_count_by_time
from smartshard.telemetry import record_metric_gauge, start_span

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from smartshard.config import ShardingConfig
    from smartshard.models.junit import JUnitTestResult
    from smartshard.models.shard import TestDescriptor

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass
class ShardReport:
    """Summary of the estimates behind a shard assignment."""

    cache_hits: int = 0
    """Tests whose time came from the previous run (or that are ignored)."""

    total_tests: int = 0
    """Number of tests assigned."""

    shard_times: list[float] = field(default_factory=list)
    """Accumulated time of each shard, in shard order."""

    @property
    def cache_percent(self) -> float:
        """Percentage of tests with a previous result; 0 for no tests."""
        if self.total_tests == 0:
            return 0.0
        return self.cache_hits / self.total_tests * 100.0

    def lines(self) -> list[str]:
        """Human-readable two-line summary."""
        times = ", ".join(f"{_round_half_up(t)}s" for t in self.shard_times)
        return [
            f"Smart cache hit: {_round_half_up(self.cache_percent)}% "
            f"({self.cache_hits} / {self.total_tests})",
            f"Shard times: {times}",
        ]


def log_shard_report(report: ShardReport) -> None:
    """Default report sink: log both summary lines at INFO."""
    for line in report.lines():
        logger.info(line)


def string_shards(shards: Sequence[TestShard]) -> list[list[str]]:
    """Return the test identifiers of each shard."""
    return [shard.test_names for shard in shards]


def _check_forced_shard_count(forced_shard_count: int) -> None:
    if forced_shard_count < UNLIMITED or forced_shard_count == 0:
        msg = f"Invalid forced shard count value {forced_shard_count}"
        raise ShardingError(msg)


def _resolve_shard_count(test_methods: list[TestMethod], max_shards: int | None) -> int:
    if not test_methods:
        return 0
    # Ignored tests cost nothing; if nothing else is left they still need a shard.
    positive = sum(1 for method in test_methods if method.time > 0.0) or 1
    if max_shards is None or max_shards > positive:
        return positive
    return max_shards


def create_shards_by_count(
    tests: Sequence[TestDescriptor],
    durations: dict[str, float],
    max_shards: int = UNLIMITED,
    forced_shard_count: int = UNLIMITED,
    *,
    platform: Platform = Platform.ANDROID,
    default_test_time: float = DEFAULT_TEST_TIME_SEC,
    ignored_test_time: float = IGNORED_TEST_TIME_SEC,
    report: Callable[[ShardReport], None] | None = log_shard_report,
) -> list[TestShard]:
    """Assign every test to a shard, balancing estimated shard times.

    Args:
        tests: Tests selected to run.
        durations: Duration index from the previous run.
        max_shards: Configured shard cap, or ``-1`` for unlimited.
        forced_shard_count: Shard count that overrides *max_shards*, or
            ``-1`` to use *max_shards*.
        platform: Target platform, used in error guidance.
        default_test_time: Estimate for tests with no history.
        ignored_test_time: Estimate for ignored tests.
        report: Receives the cache hit / shard time summary.

    Returns:
        Shards ordered by accumulated time, least loaded first.

    Raises:
        ShardingError: If *forced_shard_count* is 0 or below ``-1``, or no
            positive shard count can be resolved.
    """
    _check_forced_shard_count(forced_shard_count)

    forced = optional_limit(forced_shard_count)
    limit = forced if forced is not None else optional_limit(max_shards)

    cache_miss = 0
    test_methods: list[TestMethod] = []
    for test in tests:
        seconds, hit = resolve_test_time(
            test,
            durations,
            default_test_time=default_test_time,
            ignored_test_time=ignored_test_time,
        )
        if not hit:
            cache_miss += 1
        test_methods.append(TestMethod(name=test.identifier, time=seconds))

    # Slowest first; sort is stable so ties keep input order
    test_methods.sort(key=lambda m: m.time, reverse=True)

    shard_count = _resolve_shard_count(test_methods, limit)
    if shard_count <= 0:
        msg = (
            "Invalid shard count. To debug try: "
            f"smartshard shards --platform {platform.value} --dump-shards shards.json\n"
            f"  max_test_shards: {max_shards}\n"
            f"  forced_shard_count: {forced_shard_count}\n"
            f"  test_count: {len(tests)}\n"
            f"  max_shards: {limit if limit is not None else UNLIMITED}\n"
            f"  shard_count: {shard_count}"
        )
        raise ShardingError(msg)

    shards = [TestShard() for _ in range(shard_count)]
    heap = [(0.0, index) for index in range(shard_count)]
    for method in test_methods:
        # Least loaded shard first; ties go to the earliest created shard
        _, index = heapq.heappop(heap)
        shards[index].add(method)
        heapq.heappush(heap, (shards[index].time, index))

    ordered = [shards[i] for i in sorted(range(shard_count), key=lambda i: (shards[i].time, i))]

    if report is not None:
        total = len(tests)
        report(
            ShardReport(
                cache_hits=total - cache_miss,
                total_tests=total,
                shard_times=[shard.time for shard in ordered],
            )
        )
    return ordered


def plan_shards(
    tests: Sequence[TestDescriptor],
    result: JUnitTestResult,
    config: ShardingConfig,
    *,
    forced_shard_count: int = UNLIMITED,
    report: Callable[[ShardReport], None] | None = log_shard_report,
) -> list[TestShard]:
    """Build shards for *tests* from a previous run and the sharding config.

    With sharding disabled every test lands in one shard.  Otherwise an
    explicit *forced_shard_count* wins; without one the count is derived
    from ``config.shard_time`` and, when that is unlimited, from
    ``config.max_test_shards``.
    """
    _check_forced_shard_count(forced_shard_count)
    platform = Platform.parse(config.platform)
    with start_span("smartshard.plan", f"shard {len(tests)} {platform.value} tests") as span:
        durations = create_duration_index(result, platform)
        span.set_data("history_size", len(durations))

        if config.disable_sharding:
            forced_shard_count = 1
        elif forced_shard_count == UNLIMITED:
            forced_shard_count = shard_count_by_time(
                tests,
                durations,
                config.shard_time,
                config.max_test_shards,
                default_test_time=config.default_test_time,
                ignored_test_time=config.ignored_test_time,
            )

        def _report(summary: ShardReport) -> None:
            record_metric_gauge(
                "smartshard.cache_hit_percent", summary.cache_percent, unit="percent"
            )
            if report is not None:
                report(summary)

        shards = create_shards_by_count(
            tests,
            durations,
            config.max_test_shards,
            forced_shard_count,
            platform=platform,
            default_test_time=config.default_test_time,
            ignored_test_time=config.ignored_test_time,
            report=_report,
        )
        span.set_data("shard_count", len(shards))
    return shards
