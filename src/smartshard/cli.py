"""smartshard CLI — top-level command group."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console

from smartshard import __version__
from smartshard.config import (
    SentryConfig,
    ShardingConfig,
    SmartShardConfig,
    load_config,
    validate_config,
)
from smartshard.models.junit import JUnitTestResult
from smartshard.models.shard import TestDescriptor
from smartshard.parsing.junit_xml import JUnitParseError, parse_junit_xml
from smartshard.reporters.terminal import reporter
from smartshard.sharding.builder import log_shard_report, plan_shards, string_shards
from smartshard.sharding.durations import (
    UNLIMITED,
    Platform,
    ShardingError,
    create_duration_index,
)
from smartshard.sharding.estimator import shard_count_by_time
from smartshard.sharding.shard_plan import write_shard_plan
from smartshard.telemetry import init_sentry

logger = logging.getLogger(__name__)
console = Console()

_IGNORED_PREFIX = "!"
_COMMENT_PREFIX = "#"


def _read_test_list(path: Path, ignore: tuple[str, ...] = ()) -> list[TestDescriptor]:
    """Read test identifiers, one per line.

    Blank lines and ``#`` comments are skipped.  A leading ``!`` marks
    the test as ignored, as does listing it in *ignore*.
    """
    ignored_ids = set(ignore)
    tests: list[TestDescriptor] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        entry = line.strip()
        if not entry or entry.startswith(_COMMENT_PREFIX):
            continue
        ignored = entry.startswith(_IGNORED_PREFIX)
        identifier = entry.removeprefix(_IGNORED_PREFIX).strip()
        tests.append(
            TestDescriptor(identifier=identifier, ignored=ignored or identifier in ignored_ids)
        )
    return tests


def _sharding_overrides(options: dict[str, Any]) -> dict[str, Any]:
    """Collect sharding config overrides from command options."""
    platform = options.get("platform")
    results_path = options.get("results_path")
    return {
        "platform": platform.lower() if platform else None,
        "shard_time": options.get("shard_time"),
        "max_test_shards": options.get("max_test_shards"),
        # Paths on the command line are relative to the working directory
        "results_path": str(Path(results_path).resolve()) if results_path else None,
    }


def _load_sharding_config(path: str, overrides: dict[str, Any]) -> SmartShardConfig:
    """Load ``.smartshard.yml``, apply CLI overrides and validate the result."""
    try:
        config = load_config(path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    set_overrides = {key: value for key, value in overrides.items() if value is not None}
    if set_overrides:
        config = replace(config, sharding=replace(config.sharding, **set_overrides))

    errors = validate_config(config)
    if errors:
        reporter.print_error(f"Found {len(errors)} configuration error(s):")
        for idx, error in enumerate(errors, start=1):
            console.print(f"  {idx}. [red]{error}[/red]")
        raise click.Abort

    init_sentry(config.sentry)
    return config


def _load_previous_results(config: SmartShardConfig) -> JUnitTestResult:
    results_file = config.results_file
    if results_file is None:
        logger.debug("No previous results configured, using default test times")
        return JUnitTestResult()
    try:
        return parse_junit_xml(results_file)
    except (JUnitParseError, OSError) as e:
        reporter.print_error(f"Failed to read previous results {results_file}: {e}")
        raise click.Abort from e


def _config_to_dict(config: SmartShardConfig) -> dict[str, Any]:
    """Convert SmartShardConfig to dictionary for display."""
    result = asdict(config)
    result.pop("raw", None)
    if result["sentry"]["dsn"]:
        result["sentry"]["dsn"] = "***"
    return result


def _init_sentry_from_env() -> None:
    """Initialize Sentry from environment variables before config is loaded."""
    enabled_raw = os.environ.get("SMARTSHARD_SENTRY_ENABLED", "").strip().lower()
    if enabled_raw not in {"1", "true", "yes"}:
        return

    dsn = os.environ.get("SMARTSHARD_SENTRY_DSN", "").strip()
    if not dsn:
        return

    init_sentry(
        SentryConfig(
            enabled=True,
            dsn=dsn,
            traces_sample_rate=float(
                os.environ.get("SMARTSHARD_SENTRY_TRACES_SAMPLE_RATE", "0.0")
            ),
        )
    )


_path_option = click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory (where .smartshard.yml lives).",
)
_tests_option = click.option(
    "--tests",
    "tests_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="File listing test identifiers, one per line ('!' prefix = ignored).",
)
_results_option = click.option(
    "--results",
    "results_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="JUnit XML report of the previous run (overrides sharding.results_path).",
)
_platform_option = click.option(
    "--platform",
    type=click.Choice([p.value for p in Platform], case_sensitive=False),
    default=None,
    help="Target platform; selects the test identity format.",
)
_shard_time_option = click.option(
    "--shard-time",
    type=int,
    default=None,
    help="Target seconds per shard (-1 = no time budget).",
)
_max_shards_option = click.option(
    "--max-shards",
    "max_test_shards",
    type=int,
    default=None,
    help="Maximum number of shards (-1 = unlimited).",
)
_ignore_option = click.option(
    "--ignore",
    multiple=True,
    help="Test identifier to treat as ignored (repeatable).",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="smartshard")
def cli(*, verbose: bool) -> None:
    """smartshard — balance tests across shards using previous run times."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    _init_sentry_from_env()


@cli.command()
@_path_option
@_tests_option
@_results_option
@_platform_option
@_shard_time_option
@_max_shards_option
@_ignore_option
def count(**kwargs: Any) -> None:
    """Print the number of shards needed to stay within the shard time.

    Prints -1 when no shard time is configured.
    """
    config = _load_sharding_config(kwargs["path"], _sharding_overrides(kwargs))
    sharding: ShardingConfig = config.sharding
    tests = _read_test_list(Path(kwargs["tests_file"]), kwargs.get("ignore", ()))
    durations = create_duration_index(
        _load_previous_results(config), Platform.parse(sharding.platform)
    )

    try:
        shard_count = shard_count_by_time(
            tests,
            durations,
            sharding.shard_time,
            sharding.max_test_shards,
            default_test_time=sharding.default_test_time,
            ignored_test_time=sharding.ignored_test_time,
        )
    except ShardingError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    click.echo(str(shard_count))


@cli.command()
@_path_option
@_tests_option
@_results_option
@_platform_option
@_shard_time_option
@_max_shards_option
@_ignore_option
@click.option(
    "--forced-shard-count",
    type=int,
    default=UNLIMITED,
    show_default=True,
    help="Use exactly this many shards at most (-1 = derive from config).",
)
@click.option(
    "--dump-shards",
    "dump_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the shard plan as JSON to this path.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Print the shards as JSON instead of tables.",
)
def shards(**kwargs: Any) -> None:
    """Split the listed tests into time-balanced shards."""
    forced_shard_count: int = kwargs["forced_shard_count"]
    dump_path: str | None = kwargs.get("dump_path")
    as_json: bool = kwargs.get("as_json", False)

    config = _load_sharding_config(kwargs["path"], _sharding_overrides(kwargs))
    tests = _read_test_list(Path(kwargs["tests_file"]), kwargs.get("ignore", ()))
    previous = _load_previous_results(config)

    if not as_json:
        reporter.print_header("smartshard shards")
        reporter.print_info(f"Sharding {len(tests)} tests ({config.sharding.platform})")

    try:
        result = plan_shards(
            tests,
            previous,
            config.sharding,
            forced_shard_count=forced_shard_count,
            report=log_shard_report if as_json else reporter.print_shard_report,
        )
    except ShardingError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    if dump_path is not None:
        write_shard_plan(result, Path(dump_path), Platform.parse(config.sharding.platform))
        if not as_json:
            reporter.print_info(f"Shard plan written to {dump_path}")

    if as_json:
        click.echo(json.dumps(string_shards(result), indent=2))
        return

    reporter.print_shards(result)
    reporter.print_success(f"{len(tests)} tests split across {len(result)} shards")


@cli.group("config")
def config_group() -> None:
    """Inspect `.smartshard.yml` configuration."""


@config_group.command("show")
@_path_option
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
def config_show(path: str, *, as_json: bool) -> None:
    """Display the resolved configuration."""
    try:
        config = load_config(path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    config_dict = _config_to_dict(config)
    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@_path_option
def config_validate(path: str) -> None:
    """Validate `.smartshard.yml` configuration."""
    try:
        config = load_config(path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_config(config)
    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    console.print()
    raise click.Abort
