"""A Meltano utility extension that manages a user's crontab as structured entries."""

from enum import Enum

APP_NAME = "crontab-ext"


class Target(str, Enum):
    """Enum of schedule stores that can be used by this extension."""

    crontab = "crontab"
    stdout = "stdout"
