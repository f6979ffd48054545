"""Schedule stores: where crontab content is read from and installed to."""

from crontab_ext.stores.base import ScheduleStore
from crontab_ext.stores.crontab import CrontabScheduleStore
from crontab_ext.stores.stdout import StdoutScheduleStore

__all__ = ["ScheduleStore", "CrontabScheduleStore", "StdoutScheduleStore"]
