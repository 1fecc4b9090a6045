"""CLI commands for watching documents."""

import asyncio
import logging
import sys
import uuid
from pathlib import Path

import click
import structlog

from watchfetch import __version__
from watchfetch.features.config import (
    ConfigLoader,
    ConfigValidationError,
    SourceConfig,
    WatchConfig,
    format_validation_error,
)
from watchfetch.features.fetch import (
    ChangeAwareFetcher,
    Content,
    FetchConfig,
    FetchMetrics,
    FetchOptions,
    FetchOutcome,
    HttpxTransport,
    LoggingHooks,
    NotModified,
    WatchState,
)
from watchfetch.features.observability.logging import (
    bind_watch_context,
    configure_logging,
    parse_log_level,
)
from watchfetch.features.store import StateStoreError, WatchStateStore
from watchfetch.settings import AppSettings, get_settings


logger = structlog.get_logger()

COMPONENT_CLI = "cli"


def format_outcome(label: str, outcome: FetchOutcome) -> str:
    """Render an outcome as a single line of CLI output.

    Args:
        label: Source id or poll label.
        outcome: Outcome to render.

    Returns:
        Line such as ``api: content (120 bytes)``.
    """
    if isinstance(outcome, Content):
        if outcome.buffer is None:
            return f"{label}: content"
        return f"{label}: content ({outcome.body_size} bytes)"
    if isinstance(outcome, NotModified):
        return f"{label}: not-modified"
    return f"{label}: not-ok ({outcome.status_code} {outcome.error_class.value})"


def parse_header(value: str) -> tuple[str, str]:
    """Split a ``NAME:VALUE`` option into a header pair.

    Raises:
        click.BadParameter: If the value has no name or no colon.
    """
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        msg = f"Expected NAME:VALUE, got '{value}'"
        raise click.BadParameter(msg, param_hint="--header")
    return name.strip(), header_value.strip()


def _setup_logging(
    settings: AppSettings,
    verbose: bool,
    json_logs: bool | None,
    session_id: str,
) -> structlog.stdlib.BoundLogger:
    """Configure logging from settings and flags, return a bound logger."""
    level = logging.DEBUG if verbose else parse_log_level(settings.log_level)
    configure_logging(
        level=level,
        json_format=settings.json_logs if json_logs is None else json_logs,
    )
    bind_watch_context(session_id)
    return logger.bind(component=COMPONENT_CLI, session_id=session_id)  # type: ignore[no-any-return]


def _load_configuration(config_path: Path, session_id: str) -> WatchConfig:
    """Load a watch config, exit with formatted errors on failure."""
    loader = ConfigLoader(session_id=session_id)
    try:
        return loader.load(config_path)
    except ConfigValidationError as e:
        click.echo("Configuration validation failed:", err=True)
        for error in e.errors:
            formatted = format_validation_error(
                location=error["loc"],
                message=error["msg"],
                error_type=error.get("type", "unknown"),
                include_hint=True,
            )
            click.echo(f"  - {formatted}", err=True)
        sys.exit(1)


async def _check_sources(
    config: WatchConfig,
    store: WatchStateStore,
) -> list[tuple[SourceConfig, FetchOutcome]]:
    """Run one poll cycle over every enabled source, one at a time."""
    results: list[tuple[SourceConfig, FetchOutcome]] = []
    async with HttpxTransport(
        max_response_size_bytes=config.fetch.max_response_size_bytes
    ) as transport:
        fetcher = ChangeAwareFetcher(
            transport, hooks=LoggingHooks(), config=config.fetch
        )
        for source in config.enabled_sources:
            outcome = await fetcher.fetch(
                source.input,
                watch=store.get(source.id),
                options=FetchOptions(headers=source.headers),
                timeout=source.timeout_seconds,
            )
            results.append((source, outcome))
    return results


async def _watch_loop(  # noqa: PLR0913
    input_ref: str,
    fetch_config: FetchConfig,
    options: FetchOptions,
    interval: float,
    max_polls: int | None,
    timeout: float | None,
    output_path: Path | None,
) -> int:
    """Poll one input until ``max_polls`` is reached.

    Returns:
        Number of polls performed.
    """
    watch = WatchState()
    polls = 0
    async with HttpxTransport(
        max_response_size_bytes=fetch_config.max_response_size_bytes
    ) as transport:
        fetcher = ChangeAwareFetcher(transport, hooks=LoggingHooks(), config=fetch_config)
        while max_polls is None or polls < max_polls:
            if polls:
                await asyncio.sleep(interval)
            outcome = await fetcher.fetch(
                input_ref, watch=watch, options=options, timeout=timeout
            )
            polls += 1
            click.echo(format_outcome(f"poll {polls}", outcome))
            if (
                output_path is not None
                and isinstance(outcome, Content)
                and outcome.buffer is not None
            ):
                output_path.write_bytes(outcome.buffer)
    return polls


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Fetch documents only when they change."""


@cli.command()
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to the watch configuration file.",
)
def validate(config_path: Path) -> None:
    """Validate a watch configuration file."""
    session_id = str(uuid.uuid4())
    configure_logging(level=logging.WARNING, json_format=False)
    config = _load_configuration(config_path, session_id)

    click.echo("Configuration is valid!")
    click.echo(f"  Sources: {len(config.sources)}")
    click.echo(f"  Enabled: {len(config.enabled_sources)}")


@cli.command()
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to the watch configuration file.",
)
@click.option(
    "--state",
    "state_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the JSON state file (default: WATCHFETCH_STATE_PATH).",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=None,
    help="Use JSON format for logs (default: WATCHFETCH_JSON_LOGS).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def check(
    config_path: Path,
    state_path: Path | None,
    json_logs: bool | None,
    verbose: bool,
) -> None:
    """Poll every configured source once and persist watch state."""
    settings = get_settings()
    session_id = str(uuid.uuid4())
    log = _setup_logging(settings, verbose, json_logs, session_id)

    config = _load_configuration(config_path, session_id)
    store = WatchStateStore(state_path or settings.state_path)
    try:
        store.load()
    except StateStoreError as e:
        log.error("state_load_failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    results = asyncio.run(_check_sources(config, store))
    store.save()

    for source, outcome in results:
        click.echo(format_outcome(source.id, outcome))

    log.info(
        "check_complete",
        sources=len(results),
        metrics=FetchMetrics.get_instance().to_dict(),
    )


@cli.command()
@click.argument("input_ref", metavar="INPUT")
@click.option(
    "--interval",
    type=click.FloatRange(min=0.0),
    default=5.0,
    show_default=True,
    help="Seconds between polls.",
)
@click.option(
    "--max-polls",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many polls (default: run until interrupted).",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0.0, min_open=True, max=300.0),
    default=None,
    help="Request timeout in seconds (default: WATCHFETCH_DEFAULT_TIMEOUT_SECONDS).",
)
@click.option(
    "--header",
    "headers",
    multiple=True,
    help="Extra request header as NAME:VALUE. Repeatable.",
)
@click.option(
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write each changed body to this file.",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=None,
    help="Use JSON format for logs (default: WATCHFETCH_JSON_LOGS).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def watch(  # noqa: PLR0913
    input_ref: str,
    interval: float,
    max_polls: int | None,
    timeout: float | None,
    headers: tuple[str, ...],
    output_path: Path | None,
    json_logs: bool | None,
    verbose: bool,
) -> None:
    """Poll INPUT (a URL or file path) and report when it changes."""
    settings = get_settings()
    session_id = str(uuid.uuid4())
    log = _setup_logging(settings, verbose, json_logs, session_id)

    options = FetchOptions(headers=dict(parse_header(h) for h in headers))
    fetch_config = FetchConfig(default_timeout_seconds=settings.default_timeout_seconds)

    log.info("watch_started", interval=interval, max_polls=max_polls)
    try:
        polls = asyncio.run(
            _watch_loop(
                input_ref,
                fetch_config,
                options,
                interval,
                max_polls,
                timeout,
                output_path,
            )
        )
    except KeyboardInterrupt:
        log.info("watch_interrupted")
        click.echo("Stopped.", err=True)
        return

    log.info("watch_finished", polls=polls)
