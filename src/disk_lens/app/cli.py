"""Command-line interface for disk-lens."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click

from disk_lens.core.config import MainConfig, discover_config_file, load_main_config
from disk_lens.core.dispatcher import AggregateOutcome, ScanDispatcher
from disk_lens.core.exceptions import AggregationError, DiskLensError
from disk_lens.core.lister import SORT_KEYS, sort_entries
from disk_lens.types.models import Entry, ScanResult, VolumeInfo
from disk_lens.utils.formatting import format_count, format_size, format_usage_percent
from disk_lens.utils.logging import configure_logging

try:
    __version__ = version("disk-lens")
except PackageNotFoundError:
    __version__ = "unknown"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
VALID_CONFIG_EXTENSIONS = {".yaml", ".yml"}


@dataclass(slots=True)
class AppContext:
    """Objects shared by all sub-commands of one CLI invocation."""

    config: MainConfig
    dispatcher: ScanDispatcher


def validate_config_path(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: Path | None,
) -> Path | None:
    """Validate configuration file path.

    Raises:
        click.BadParameter: If the path is a directory or has the wrong extension
    """
    if value is None:
        return value

    if value.exists() and value.is_dir():
        raise click.BadParameter("Configuration path must be a file, not a directory")

    if value.suffix.lower() not in VALID_CONFIG_EXTENSIONS:
        extensions_str = ", ".join(sorted(VALID_CONFIG_EXTENSIONS))
        raise click.BadParameter(
            f"Invalid configuration file extension. Supported extensions: {extensions_str}"
        )

    return value


def validate_log_level(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: str | None,
) -> str | None:
    """Validate and normalize log level.

    Raises:
        click.BadParameter: If the level is unknown
    """
    if value is None:
        return value

    normalized_value = value.upper().strip()
    if normalized_value not in VALID_LOG_LEVELS:
        raise click.BadParameter(
            f'Invalid log level "{value}". Valid options: {", ".join(sorted(VALID_LOG_LEVELS))}'
        )

    return normalized_value


def _echo_json(payload: object) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _display_name(entry: Entry) -> str:
    # Undecodable bytes in names are shown as U+FFFD
    name = str(entry.to_dict()["name"])
    return f"{name}/" if entry.is_dir else name


def _format_entry_row(entry: Entry) -> str:
    kind = "DIR " if entry.is_dir else "FILE"
    count = format_count(entry.item_count) if entry.is_dir else ""
    return f"{kind}  {format_size(entry.size):>10}  {count:>14}  {_display_name(entry)}"


def _format_volume_row(volume: VolumeInfo) -> str:
    used = f"{format_size(volume.used_space)} / {format_size(volume.total_space)}"
    percent = format_usage_percent(volume.used_space, volume.total_space)
    return (
        f"{volume.mount_point:<24} {volume.name:<24} {volume.file_system:<8} "
        f"{used:>22} {percent:>7}  {format_size(volume.available_space)} free"
    )


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default=None,
    callback=validate_config_path,
    help="Configuration file path (.yaml or .yml). If not specified, searches standard locations.",
)
@click.option(
    "--log-level",
    "-l",
    type=str,
    default=None,
    callback=validate_log_level,
    help="Logging verbosity level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
@click.version_option(version=__version__, prog_name="disk-lens")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, log_level: str | None) -> None:
    """disk-lens - Inspect directory sizes and volume usage.

    Lists a directory instantly, then measures the real size of each
    subfolder concurrently.

    Examples:

        # Show mounted volumes
        disk-lens volumes

        # Immediate children of a directory
        disk-lens ls /var

        # Recursive size of several directories
        disk-lens du ~/Downloads ~/Videos

        # Listing with measured subfolder sizes, largest first
        disk-lens scan ~ --sort size
    """
    config_path = config if config is not None else discover_config_file()

    try:
        main_config = load_main_config(config_path) if config_path is not None else MainConfig()
    except DiskLensError as exc:
        raise click.ClickException(str(exc)) from exc

    configure_logging(
        log_level=log_level or main_config.application.log_level,
        enable_syslog=main_config.application.syslog_enabled,
    )

    ctx.obj = AppContext(
        config=main_config,
        dispatcher=ScanDispatcher(
            max_concurrency=main_config.scan.max_concurrency,
            skip_fstypes=main_config.volumes.skip_fstypes,
        ),
    )


def _dispatcher_for(app: AppContext, max_concurrency: int | None) -> ScanDispatcher:
    if max_concurrency is None:
        return app.dispatcher
    return ScanDispatcher(
        max_concurrency=max_concurrency,
        skip_fstypes=app.config.volumes.skip_fstypes,
    )


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table")
@click.pass_obj
def volumes(app: AppContext, as_json: bool) -> None:
    """Show mounted volumes with capacity and usage."""
    result = asyncio.run(app.dispatcher.list_volumes())

    if as_json:
        _echo_json([volume.to_dict() for volume in result])
        return

    for volume in result:
        click.echo(_format_volume_row(volume))
    click.echo(format_count(len(result), singular="volume"))


@cli.command(name="ls")
@click.argument("path", type=click.Path(path_type=Path), default=Path("."))
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table")
@click.pass_obj
def list_command(app: AppContext, path: Path, as_json: bool) -> None:
    """List the immediate children of PATH without measuring subfolders."""
    try:
        entries = asyncio.run(app.dispatcher.list_children(path))
    except DiskLensError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        _echo_json([entry.to_dict() for entry in entries])
        return

    for entry in entries:
        click.echo(_format_entry_row(entry))
    click.echo(format_count(len(entries)))


async def _collect_sizes(
    dispatcher: ScanDispatcher,
    paths: tuple[Path, ...],
) -> list[AggregateOutcome]:
    return [outcome async for outcome in dispatcher.aggregate_many(paths)]


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table")
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum directories measured at the same time (default: unbounded)",
)
@click.pass_obj
def du(app: AppContext, paths: tuple[Path, ...], as_json: bool, max_concurrency: int | None) -> None:
    """Measure the recursive size of each PATH concurrently.

    Unreadable or missing directories report zero rather than failing.
    """
    dispatcher = _dispatcher_for(app, max_concurrency)
    outcomes = asyncio.run(_collect_sizes(dispatcher, paths))

    # Report in the order requested, not completion order
    order = {str(path): index for index, path in enumerate(paths)}
    outcomes.sort(key=lambda item: order.get(item[0], len(order)))

    failures = [(path, outcome) for path, outcome in outcomes if isinstance(outcome, AggregationError)]

    if as_json:
        _echo_json(
            {
                path: outcome.to_dict()
                for path, outcome in outcomes
                if not isinstance(outcome, AggregationError)
            }
        )
    else:
        for path, outcome in outcomes:
            if isinstance(outcome, AggregationError):
                continue
            click.echo(f"{format_size(outcome.size):>10}  {format_count(outcome.item_count):>14}  {path}")

    for path, error in failures:
        click.echo(f"Error: {path}: {error}", err=True)
    if failures:
        raise click.exceptions.Exit(1)


@cli.command()
@click.argument("path", type=click.Path(path_type=Path), default=Path("."))
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table")
@click.option(
    "--sort",
    "sort_key",
    type=click.Choice(SORT_KEYS),
    default="size",
    show_default=True,
    help="Column to order the table by",
)
@click.option("--reverse", is_flag=True, help="Reverse the default sort direction")
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum subfolders measured at the same time (default: unbounded)",
)
@click.pass_obj
def scan(
    app: AppContext,
    path: Path,
    as_json: bool,
    sort_key: str,
    reverse: bool,
    max_concurrency: int | None,
) -> None:
    """List PATH and measure the real size of every subfolder.

    Sizes are largest first by default; names sort A to Z.
    """
    dispatcher = _dispatcher_for(app, max_concurrency)
    try:
        result: ScanResult = asyncio.run(dispatcher.scan(path))
    except DiskLensError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        _echo_json(result.to_dict())
        return

    descending = sort_key != "name"
    if reverse:
        descending = not descending

    for entry in sort_entries(result.entries, key=sort_key, descending=descending):  # pyright: ignore[reportArgumentType]  # click.Choice boundary
        click.echo(_format_entry_row(entry))
    click.echo(f"{format_count(len(result.entries))}  Total: {format_size(result.total_size)}")

    for failed_path in sorted(result.failed):
        click.echo(f"Warning: could not measure {failed_path}", err=True)
