"""Run reports derived from the files an entry redirects its output to."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from crontab_ext.entry import Entry


class Status(str, Enum):
    """Outcome of the last run of an entry, as far as its files tell."""

    unknown = "unknown"
    success = "success"
    error = "error"


class EntryReport(NamedTuple):
    """Sizes & timestamps of the redirection files of an entry."""

    status: Status
    output_size: int | None
    error_size: int | None
    last_run_time: datetime | None


def _stat(path: str | None) -> tuple[int, float] | None:
    if path is None or path.startswith("&"):
        return None
    try:
        stat = Path(path).stat()
    except FileNotFoundError:
        return None
    return stat.st_size, stat.st_mtime


def build_report(entry: Entry) -> EntryReport:
    """Build a run report for an entry.

    The status is `unknown` when neither redirection file exists, `success`
    when the error file does not exist or is empty, and `error` otherwise.
    The last run time is the most recent modification time of the two files.

    Args:
        entry: The entry to report on.

    Returns:
        The run report.
    """
    output_stat = _stat(entry.output_file)
    error_stat = _stat(entry.error_file)
    mtimes = [stat[1] for stat in (output_stat, error_stat) if stat]
    output_size = output_stat[0] if output_stat else None
    error_size = error_stat[0] if error_stat else None

    if output_size is None and error_size is None:
        status = Status.unknown
    elif not error_size:
        status = Status.success
    else:
        status = Status.error

    return EntryReport(
        status=status,
        output_size=output_size,
        error_size=error_size,
        last_run_time=(
            datetime.fromtimestamp(max(mtimes), tz=timezone.utc) if mtimes else None
        ),
    )


def _read(path: str | None) -> str | None:
    if path is None or path.startswith("&"):
        return None
    try:
        return Path(path).read_text()
    except FileNotFoundError:
        return None


def read_output(entry: Entry) -> str | None:
    """Content of the entry's output file, if it exists."""
    return _read(entry.output_file)


def read_errors(entry: Entry) -> str | None:
    """Content of the entry's error file, if it exists."""
    return _read(entry.error_file)
