"""Meltano crontab utility extension CLI entrypoint."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import structlog
import typer
from meltano.edk.extension import DescribeFormat
from meltano.edk.logging import default_logging_config, parse_log_level

from crontab_ext import APP_NAME, Target
from crontab_ext.config import DEFAULT_EXECUTABLE, DEFAULT_TIMEOUT, CrontabConfig
from crontab_ext.entry import Entry
from crontab_ext.errors import CrontabError
from crontab_ext.extension import Crontab
from crontab_ext.report import build_report

log = structlog.get_logger(APP_NAME)

typer.core.rich = None  # remove to enable stylized help output when `rich` is installed
app = typer.Typer(
    name="crontab",
    pretty_exceptions_enable=False,
)


@contextmanager
def _exit_on_error() -> Iterator[None]:
    try:
        yield
    except (CrontabError, ValueError) as ex:
        log.error(str(ex))
        sys.exit(1)


def _extension(ctx: typer.Context, target: Target) -> Crontab:
    return Crontab(store=target, config=ctx.obj)


@app.command()
def initialize(
    ctx: typer.Context,
    force: bool = typer.Option(False, help="Force initialization (if supported)"),
) -> None:
    """Initialize the crontab extension (no-op)."""
    try:
        Crontab(config=ctx.obj).initialize(force)
    except Exception:
        log.exception(
            "initialize failed with uncaught exception, please report to maintainer"
        )
        sys.exit(1)


@app.command(name="list")
def list_command(
    ctx: typer.Context,
    target: Target = Target.crontab,
    identity: bool = typer.Option(
        False,
        "--identity/--no-identity",
        help="Prefix each entry with its identity, as used by `remove`",
    ),
    status: bool = typer.Option(
        False,
        "--status/--no-status",
        help="Suffix each entry with the status read from its output files",
    ),
) -> None:
    """List the entries of the installed crontab."""
    with _exit_on_error():
        table = _extension(ctx, target).load()

    lines = []
    for entry in table:
        line = entry.render()
        if identity:
            line = f"{entry.identity} {line}"
        if status:
            line = f"{line} [{build_report(entry).status.value}]"
        lines.append(line)

    if lines:
        typer.echo("\n".join(lines))


@app.command()
def render(
    ctx: typer.Context,
    target: Target = Target.crontab,
) -> None:
    """Print the installed crontab as it would be rendered by this extension."""
    with _exit_on_error():
        content = _extension(ctx, target).load().render()
    if content:
        typer.echo(content, nl=False)


@app.command()
def add(
    ctx: typer.Context,
    minute: str = typer.Argument(...),
    hour: str = typer.Argument(...),
    day_of_month: str = typer.Argument(...),
    month: str = typer.Argument(...),
    day_of_week: str = typer.Argument(...),
    command: str = typer.Argument(...),
    output_file: Optional[str] = typer.Option(
        None, help="File the standard output of the command is redirected to"
    ),
    error_file: Optional[str] = typer.Option(
        None, help="File the standard error of the command is redirected to"
    ),
    append: bool = typer.Option(
        False,
        "--append",
        help="Append to the redirection files instead of truncating them",
    ),
    comment: Optional[str] = typer.Option(None, help="Trailing comment"),
    disabled: bool = typer.Option(
        False, "--disabled", help="Install the entry commented out"
    ),
    target: Target = Target.crontab,
) -> None:
    """Add an entry to the installed crontab, replacing any with its identity."""
    with _exit_on_error():
        entry = Entry(
            minute,
            hour,
            day_of_month,
            month,
            day_of_week,
            command=command,
            output_file=output_file,
            error_file=error_file,
            comment=comment,
            active=not disabled,
            append_output=append,
            append_errors=append and error_file != "&1",
        )
        _extension(ctx, target).install([entry])
    log.info("Added crontab entry", identity=entry.identity)


@app.command()
def remove(
    ctx: typer.Context,
    identities: Optional[List[str]] = typer.Argument(None),
    remove_all: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Remove all entries, rather than just the ones with the given identities",
    ),
    target: Target = Target.crontab,
) -> None:
    """Remove entries from the installed crontab by identity."""
    if not identities and not remove_all:
        log.error("Specify the identities of the entries to remove, or --all")
        sys.exit(1)
    with _exit_on_error():
        _extension(ctx, target).uninstall(set(identities or ()), remove_all)


@app.command(name="import")
def import_command(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    target: Target = Target.crontab,
) -> None:
    """Add the entries of a crontab file to the installed crontab."""
    with _exit_on_error():
        ext = _extension(ctx, target)
        ext.load()
        ext.import_file(path)
        ext.write()


@app.command()
def flush(
    ctx: typer.Context,
    target: Target = Target.crontab,
) -> None:
    """Remove all content from the installed crontab."""
    with _exit_on_error():
        _extension(ctx, target).flush()


@app.command()
def describe(
    ctx: typer.Context,
    output_format: DescribeFormat = typer.Option(
        DescribeFormat.text, "--format", help="Output format"
    ),
) -> None:
    """Describe the available commands for the crontab extension."""
    try:
        typer.echo(Crontab(config=ctx.obj).describe_formatted(output_format))
    except Exception:
        log.exception(
            "describe failed with uncaught exception, please report to maintainer"
        )
        sys.exit(1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    executable: str = typer.Option(
        DEFAULT_EXECUTABLE,
        envvar="CRONTAB_EXECUTABLE",
        help="Path or name of the crontab executable",
    ),
    user: Optional[str] = typer.Option(
        None,
        envvar="CRONTAB_USER",
        help="Manage the crontab of this user, through `sudo -u`",
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT,
        envvar="CRONTAB_TIMEOUT",
        help="Seconds to wait for the crontab executable",
    ),
    log_level: str = typer.Option("INFO", envvar="LOG_LEVEL"),
    log_timestamps: bool = typer.Option(
        False, envvar="LOG_TIMESTAMPS", help="Show timestamp in logs"
    ),
    log_levels: bool = typer.Option(
        False, "--log-levels", envvar="LOG_LEVELS", help="Show log levels"
    ),
    meltano_log_json: bool = typer.Option(
        False,
        "--meltano-log-json",
        envvar="MELTANO_LOG_JSON",
        help="Log in the meltano JSON log format",
    ),
) -> None:
    """Meltano utility extension that manages the crontab as structured entries."""
    default_logging_config(
        level=parse_log_level(log_level),
        timestamps=log_timestamps,
        levels=log_levels,
        json_format=meltano_log_json,
    )
    with _exit_on_error():
        ctx.obj = CrontabConfig(executable=executable, user=user, timeout=timeout)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
