"""Schedule store that reads & installs content using crontab."""

from __future__ import annotations

import os
import pwd
import re
from pathlib import Path

import structlog

from crontab_ext import APP_NAME
from crontab_ext.config import DEFAULT_EXECUTABLE, DEFAULT_TIMEOUT
from crontab_ext.stores.base import ScheduleStore
from crontab_ext.subprocess import run_subprocess

log = structlog.get_logger(APP_NAME)

no_crontab_pattern = re.compile(r"(?i)\bno crontab for\b")


class CrontabScheduleStore(ScheduleStore):
    """Schedule store backed by the crontab executable."""

    is_managed = True

    def __init__(
        self,
        executable: str = DEFAULT_EXECUTABLE,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the crontab schedule store.

        Args:
            executable: Path or name of the crontab executable.
            timeout: Seconds to wait for the executable.
        """
        super().__init__()
        self.executable = executable
        self.timeout = timeout

    def _command(self, user: str | None, *args: str) -> tuple[str, ...]:
        prefix = ("sudo", "-u", user) if user else ()
        return (*prefix, self.executable, *args)

    def _grant_access(self, path: Path, user: str | None) -> None:
        """Let `user` read the staged file `path`, which only we can read."""
        if not user:
            return
        try:
            uid = pwd.getpwnam(user).pw_uid
        except KeyError:
            # sudo reports the unknown user
            return
        euid = os.geteuid()
        if uid == euid:
            return
        if euid == 0:
            os.chown(path, uid, -1)
        else:
            path.chmod(0o644)
            log.warning("Staged crontab is readable by all users", user=user)

    def list_current_schedule(self, user: str | None) -> tuple[str, int, str]:
        """List the installed crontab.

        A user without a crontab has an empty schedule rather than a failed
        listing.
        """
        proc = run_subprocess(
            self._command(user, "-l"),
            "Unable to list crontab entries.",
            timeout=self.timeout,
        )
        if proc.returncode and no_crontab_pattern.search(proc.stderr):
            return "", 0, proc.stderr
        return proc.stdout, proc.returncode, proc.stderr

    def install_schedule(
        self,
        path: str | os.PathLike[str],
        user: str | None,
    ) -> tuple[int, str]:
        """Install the content of `path` as the crontab.

        When installing for another user, the file is handed over to that
        user if we run as root, and made readable by all users otherwise.
        """
        self._grant_access(Path(path), user)
        proc = run_subprocess(
            self._command(user, os.fspath(path)),
            "Unable to install new crontab.",
            timeout=self.timeout,
        )
        return proc.returncode, proc.stdout + proc.stderr
