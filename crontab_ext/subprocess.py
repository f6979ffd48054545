"""Convenience functions for handling subprocesses."""

from __future__ import annotations

import subprocess
from typing import Any

import structlog

from crontab_ext import APP_NAME
from crontab_ext.errors import ExternalCommandError, ExternalCommandTimeoutError

log = structlog.get_logger(APP_NAME)


def run_subprocess(
    args: tuple[str, ...],
    error_message: str,
    *,
    timeout: float,
    **kwargs: Any,
) -> subprocess.CompletedProcess[str]:
    """Helper function to run a subprocess.

    A non-zero return code is not an error here: the completed process is
    returned for the caller to inspect.

    Args:
        args: Args for the subprocess to run.
        error_message: The error message to log and raise with if the process
            could not be run or did not finish in time.
        timeout: Seconds to wait for the process to finish.
        kwargs: Keyword arguments for `subprocess.run`.

    Raises:
        ExternalCommandError: The executable could not be run.
        ExternalCommandTimeoutError: The process did not finish in time.

    Returns:
        The completed process.
    """
    log.debug("Running subprocess", args=args)
    try:
        proc = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
            **kwargs,
        )
    except subprocess.TimeoutExpired as ex:
        log.error(error_message, timeout=timeout)
        output = ex.output if isinstance(ex.output, str) else ""
        raise ExternalCommandTimeoutError(error_message, timeout, output) from ex
    except OSError as ex:
        log.error(error_message, error=str(ex))
        raise ExternalCommandError(error_message, str(ex), 127) from ex
    if proc.returncode:
        log.debug(
            "Subprocess exited with a non-zero return code",
            args=args,
            returncode=proc.returncode,
        )
    return proc
