"""Shard plan serialization for ``--dump-shards`` and CI job fan-out."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from smartshard.models.shard import TestMethod, TestShard

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from smartshard.sharding.durations import Platform


def write_shard_plan(shards: Sequence[TestShard], output_path: Path, platform: Platform) -> None:
    """Serialize and write a shard plan to a JSON file."""
    data = _serialize_shard_plan(shards, platform)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def read_shard_plan(path: Path) -> tuple[list[TestShard], dict[str, Any]]:
    """Read a shard plan JSON file.

    Returns:
        A tuple of (shards, metadata) where metadata includes platform
        and shard_count.
    """
    data = json.loads(path.read_text(encoding="utf-8"))

    shards = [
        TestShard(
            time=float(shard["time"]),
            test_methods=[
                TestMethod(name=tm["name"], time=float(tm["time"])) for tm in shard.get("tests", [])
            ],
        )
        for shard in data.get("shards", [])
    ]

    metadata = {
        "platform": data["platform"],
        "shard_count": data["shard_count"],
    }
    return shards, metadata


def _serialize_shard_plan(shards: Sequence[TestShard], platform: Platform) -> dict[str, Any]:
    """Convert shards to a JSON-serializable dict."""
    return {
        "platform": platform.value,
        "shard_count": len(shards),
        "shards": [
            {
                "time": shard.time,
                "tests": [{"name": tm.name, "time": tm.time} for tm in shard.test_methods],
            }
            for shard in shards
        ],
    }
