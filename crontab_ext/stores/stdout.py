"""Schedule store that "installs" by printing content to stdout."""

from __future__ import annotations

import os
from pathlib import Path

from crontab_ext.stores.base import ScheduleStore


class StdoutScheduleStore(ScheduleStore):
    """Schedule store which emits the content to stdout for custom handling."""

    is_managed = False

    def list_current_schedule(self, user: str | None) -> tuple[str, int, str]:
        """
        Returns an empty schedule, because the stdout schedule store does not
        manage any installed content.
        """  # noqa
        return "", 0, ""

    def install_schedule(
        self,
        path: str | os.PathLike[str],
        user: str | None,
    ) -> tuple[int, str]:
        """Print the content of `path` to stdout."""
        print(Path(path).read_text(), end="", flush=True)
        return 0, ""
