"""Shard count estimation from a per-shard time budget."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from smartshard.sharding.durations import (
    DEFAULT_TEST_TIME_SEC,
    IGNORED_TEST_TIME_SEC,
    UNLIMITED,
    ShardingError,
    optional_limit,
    resolve_test_time,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from smartshard.models.shard import TestDescriptor

logger = logging.getLogger(__name__)


def shard_count_by_time(
    tests: Sequence[TestDescriptor],
    durations: dict[str, float],
    shard_time: int,
    max_shards: int = UNLIMITED,
    *,
    default_test_time: float = DEFAULT_TEST_TIME_SEC,
    ignored_test_time: float = IGNORED_TEST_TIME_SEC,
) -> int:
    """Return how many shards keep each shard's estimated time within *shard_time*.

    Args:
        tests: Tests selected to run.
        durations: Duration index from the previous run.
        shard_time: Target seconds per shard, or ``-1`` for no time budget.
        max_shards: Upper bound on the shard count, or ``-1`` for unlimited.
        default_test_time: Estimate for tests with no history.
        ignored_test_time: Estimate for ignored tests.

    Returns:
        The shard count, or ``-1`` when *shard_time* is unlimited and the
        caller should decide.

    Raises:
        ShardingError: If *shard_time* is 0 or below ``-1``, or the
            resulting count is not positive.
    """
    if shard_time == UNLIMITED:
        return UNLIMITED
    if shard_time < UNLIMITED or shard_time == 0:
        msg = f"Invalid shard time {shard_time}"
        raise ShardingError(msg)

    total_time = sum(
        resolve_test_time(
            test,
            durations,
            default_test_time=default_test_time,
            ignored_test_time=ignored_test_time,
        )[0]
        for test in tests
    )

    # One shard unless the total exceeds the budget
    if total_time <= shard_time:
        return 1

    shards_by_time = math.ceil(total_time / shard_time)
    limit = optional_limit(max_shards)
    if limit is None:
        logger.debug(
            "%.1fs of tests needs %d shards of %ds", total_time, shards_by_time, shard_time
        )
        return shards_by_time

    shard_count = min(shards_by_time, limit)
    if shard_count <= 0:
        msg = f"Invalid shard count {shard_count}"
        raise ShardingError(msg)

    logger.debug(
        "%.1fs of tests needs %d shards of %ds, capped to %d",
        total_time,
        shards_by_time,
        shard_time,
        shard_count,
    )
    return shard_count
