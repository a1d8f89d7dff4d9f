"""Time-balanced test sharding from previous run durations."""

from smartshard.sharding.builder import (
    ShardReport,
    create_shards_by_count,
    log_shard_report,
    plan_shards,
    string_shards,
)
from smartshard.sharding.durations import (
    DEFAULT_TEST_TIME_SEC,
    IGNORED_TEST_TIME_SEC,
    UNLIMITED,
    Platform,
    ShardingError,
    android_key,
    create_duration_index,
    identity_key,
    ios_key,
    resolve_test_time,
)
from smartshard.sharding.estimator import shard_count_by_time
from smartshard.sharding.shard_plan import read_shard_plan, write_shard_plan

__all__ = [
    "DEFAULT_TEST_TIME_SEC",
    "IGNORED_TEST_TIME_SEC",
    "UNLIMITED",
    "Platform",
    "ShardReport",
    "ShardingError",
    "android_key",
    "create_duration_index",
    "create_shards_by_count",
    "identity_key",
    "ios_key",
    "log_shard_report",
    "plan_shards",
    "read_shard_plan",
    "resolve_test_time",
    "shard_count_by_time",
    "string_shards",
    "write_shard_plan",
]
