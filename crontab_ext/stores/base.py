"""Base implementation of a schedule store."""

from __future__ import annotations

import os
from abc import ABCMeta, abstractmethod


class ScheduleStore(metaclass=ABCMeta):
    """Abstract base class for schedule stores."""

    is_managed: bool
    """Whether the store keeps the content installed into it."""

    @abstractmethod
    def list_current_schedule(self, user: str | None) -> tuple[str, int, str]:
        """List the installed schedule.

        Args:
            user: The user whose schedule is listed, or `None` for the
                current user.

        Returns:
            The schedule content, the exit code, and the error output.
        """
        ...

    @abstractmethod
    def install_schedule(
        self,
        path: str | os.PathLike[str],
        user: str | None,
    ) -> tuple[int, str]:
        """Replace the installed schedule with the content of a file.

        Args:
            path: The file holding the new schedule content.
            user: The user whose schedule is replaced, or `None` for the
                current user.

        Returns:
            The exit code and the combined output.
        """
        ...
