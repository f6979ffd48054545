"""Ordered collection of cron entries, deduplicated by entry identity."""

from __future__ import annotations

import os
import re
from contextlib import suppress
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Iterable, Iterator

import structlog

from crontab_ext import APP_NAME
from crontab_ext.entry import Entry, comment_pattern, variable_pattern
from crontab_ext.errors import (
    EmptyScheduleError,
    InvalidFieldError,
    MalformedEntryError,
)

log = structlog.get_logger(APP_NAME)

MAIL_RECEIVER_DIRECTIVE = "MAILTO"
ORIGINAL_FILE_BEGIN = "## BEGIN OF ORIGINAL FILE"
ORIGINAL_FILE_END = "## END OF ORIGINAL FILE"

mail_address_pattern = re.compile(r"^[^@\s,\"']+(?:@[^@\s,\"']+)?$")
newline_pattern = re.compile(r"\r\n|\r|\n")


class Table:
    """The entries of a crontab, in insertion order.

    Adding an entry whose identity is already present replaces the existing
    entry in place rather than appending a duplicate.
    """

    def __init__(
        self,
        entries: Iterable[Entry] = (),
        *,
        mail_receiver: str | None = None,
        environment: dict[str, str] | None = None,
    ) -> None:
        """Initialize the table.

        Args:
            entries: Entries to add to the table, in order.
            mail_receiver: Address(es) cron should mail job output to.
            environment: Other variable assignments to render before the entries.
        """
        self._entries: list[Entry] = []
        self._index: dict[str, int] = {}
        self._mail_receiver: str | None = None
        self.mail_receiver = mail_receiver
        self.environment: dict[str, str] = dict(environment or {})
        self.extend(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(tuple(self._entries))

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Entry):
            item = item.identity
        return item in self._index

    @property
    def entries(self) -> tuple[Entry, ...]:
        """The entries of the table, in insertion order."""
        return tuple(self._entries)

    @property
    def mail_receiver(self) -> str | None:
        """Comma-separated address(es) rendered as the `MAILTO` directive."""
        # noqa: DAR201
        return self._mail_receiver

    @mail_receiver.setter
    def mail_receiver(self, value: str | None) -> None:
        if not value:
            self._mail_receiver = None
            return
        for address in value.split(","):
            if not mail_address_pattern.fullmatch(address.strip()):
                raise InvalidFieldError("mail_receiver", value)
        self._mail_receiver = value

    def copy(self) -> Table:
        """Return a copy of the table which can be changed independently."""
        table = Table(self._entries, environment=self.environment)
        table._mail_receiver = self._mail_receiver
        return table

    def get(self, identity: str) -> Entry | None:
        """Get the entry with the given identity, if there is one."""
        index = self._index.get(identity)
        return None if index is None else self._entries[index]

    def add(self, entry: Entry) -> Table:
        """Add an entry, replacing any entry which shares its identity.

        Args:
            entry: The entry to add.

        Returns:
            The table itself, to allow chained calls.
        """
        index = self._index.get(entry.identity)
        if index is None:
            self._index[entry.identity] = len(self._entries)
            self._entries.append(entry)
        else:
            self._entries[index] = entry
        return self

    def extend(self, entries: Iterable[Entry]) -> Table:
        """Add each of the given entries in order."""
        for entry in entries:
            self.add(entry)
        return self

    def remove(self, entry: Entry) -> Table:
        """Remove the entry sharing the identity of `entry`, if present."""
        return self.remove_identity(entry.identity)

    def remove_identity(self, identity: str) -> Table:
        """Remove the entry with the given identity, if present."""
        if identity in self._index:
            del self._entries[self._index[identity]]
            self._reindex()
        return self

    def remove_all(self) -> Table:
        """Remove every entry. The mail receiver and environment are kept."""
        self._entries.clear()
        self._index.clear()
        return self

    def _reindex(self) -> None:
        self._index = {entry.identity: i for i, entry in enumerate(self._entries)}

    def _assign(self, name: str, value: str) -> None:
        if name == MAIL_RECEIVER_DIRECTIVE:
            # Taken as cron reads it, without validation
            self._mail_receiver = value.strip("\"'") or None
        else:
            self.environment[name] = value

    def load_from_text(self, content: str) -> Table:
        """Parse crontab content and add its entries to the table.

        Blank lines are skipped. A line starting with `#` is loaded as a
        disabled entry when the rest of it parses as one, and skipped
        otherwise. Variable assignments set the mail receiver (`MAILTO`) or
        are kept in `environment`. The load is all-or-nothing: if any line is
        malformed, the table is left unmodified.

        Args:
            content: The crontab content.

        Raises:
            EmptyScheduleError: There is no content to parse.
            MalformedEntryError: A line could not be parsed. The error names
                the 1-based line number.

        Returns:
            The table itself, to allow chained calls.
        """
        if not isinstance(content, str) or not content.strip():
            raise EmptyScheduleError("There is no entry to parse.")

        staged = self.copy()
        for line_number, line in enumerate(newline_pattern.split(content), start=1):
            if not line.strip():
                continue
            if comment_pattern.fullmatch(line):
                with suppress(MalformedEntryError):
                    staged.add(Entry.parse(line.lstrip()[1:]).disable())
                continue
            try:
                variable = variable_pattern.fullmatch(line)
                if variable:
                    staged._assign(variable["name"], variable["value"])
                else:
                    staged.add(Entry.parse(line))
            except MalformedEntryError as ex:
                raise MalformedEntryError(str(ex), line_number=line_number) from ex

        log.debug("Loaded crontab content", entries=len(staged) - len(self))
        self._entries = staged._entries
        self._index = staged._index
        self._mail_receiver = staged._mail_receiver
        self.environment = staged.environment
        return self

    def load_from_file(self, path: str | os.PathLike[str]) -> Table:
        """Parse a crontab file and add its entries to the table.

        Raises:
            FileNotFoundError: The file does not exist.
        """
        return self.load_from_text(Path(path).read_text())

    def render(self) -> str:
        """Render the table as crontab content.

        Returns:
            The `MAILTO` directive (if set), the environment assignments, and
            one line per entry, each newline-terminated.
        """
        lines = []
        if self.mail_receiver:
            lines.append(f"{MAIL_RECEIVER_DIRECTIVE}={self.mail_receiver}")
        lines.extend(f"{name}={value}" for name, value in self.environment.items())
        lines.extend(entry.render() for entry in self._entries)
        return "".join(f"{line}\n" for line in lines)

    def reconcile_on_write(
        self,
        snapshot: str | None,
        now: datetime | None = None,
    ) -> str:
        """Render the content to install in place of a live crontab.

        The previous content of the live crontab is preserved as a commented
        block after the new entries, so that overwriting it never discards it.

        Args:
            snapshot: The content of the live crontab about to be replaced.
            now: The generation timestamp. Defaults to the current UTC time.

        Returns:
            The crontab content to install.
        """
        now = now or datetime.now(timezone.utc)
        content = (
            f"## Auto generated crontab file by {APP_NAME} {format_datetime(now)}\n"
            "\n"
            f"{self.render()}"
        )
        if snapshot and snapshot.strip():
            content += "\n" + ORIGINAL_FILE_BEGIN + "\n"
            content += "".join(f"## {line}\n" for line in snapshot.splitlines())
            content += ORIGINAL_FILE_END + "\n"
        return content
