"""Configuration of the crontab executable used by the extension."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_EXECUTABLE = "crontab"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class CrontabConfig:
    """How the crontab executable is invoked.

    Attributes:
        executable: Path or name of the crontab executable.
        user: The user whose crontab is managed. When set, the executable is
            run through `sudo -u <user>`.
        timeout: Seconds to wait for the executable before giving up.
    """

    executable: str = DEFAULT_EXECUTABLE
    user: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.executable:
            raise ValueError("The crontab executable must not be empty")
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout!r}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CrontabConfig:
        """Build the configuration from `CRONTAB_*` environment variables.

        Args:
            environ: The environment to read. Defaults to `os.environ`.

        Raises:
            ValueError: `CRONTAB_TIMEOUT` is not a positive number.

        Returns:
            The configuration.
        """
        environ = os.environ if environ is None else environ
        try:
            timeout = float(environ.get("CRONTAB_TIMEOUT", DEFAULT_TIMEOUT))
        except ValueError:
            raise ValueError(
                f"CRONTAB_TIMEOUT must be a number, got {environ['CRONTAB_TIMEOUT']!r}"
            ) from None
        return cls(
            executable=environ.get("CRONTAB_EXECUTABLE") or DEFAULT_EXECUTABLE,
            user=environ.get("CRONTAB_USER") or None,
            timeout=timeout,
        )

