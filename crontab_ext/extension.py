"""Meltano crontab utility extension."""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator

import structlog
from meltano.edk import models
from meltano.edk.extension import ExtensionBase

import crontab_ext.stores as stores
from crontab_ext import APP_NAME, Target
from crontab_ext.config import CrontabConfig
from crontab_ext.entry import Entry
from crontab_ext.errors import ExternalCommandError
from crontab_ext.table import Table

log = structlog.get_logger(APP_NAME)


@contextmanager
def staged_file(content: str) -> Iterator[Path]:
    """Write content to a uniquely named temporary file, removed on exit.

    The file is only readable by the current user.

    Args:
        content: The content to write.

    Yields:
        The path of the temporary file.
    """
    fd, name = tempfile.mkstemp(prefix="crontemp")
    path = Path(name)
    try:
        with os.fdopen(fd, "w") as file:
            file.write(content)
        path.chmod(0o600)
        yield path
    finally:
        with suppress(FileNotFoundError):
            path.unlink()


class Crontab(ExtensionBase):
    """Meltano extension class for crontab-ext."""

    def __init__(
        self,
        *args: Any,
        store: Target | stores.ScheduleStore = Target.crontab,
        config: CrontabConfig | None = None,
        table: Table | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the crontab extension.

        Args:
            args: Positional arguments passed to the parent class.
            store: The store (or the target naming the store) which should be
                used for reading/installing crontab content.
            config: How the crontab executable is invoked. Defaults to the
                configuration read from the environment.
            table: The table to operate on. Defaults to an empty table.
            kwargs: Keyword arguments passed to the parent class.
        """
        super().__init__(*args, **kwargs)
        self.config = config or CrontabConfig.from_env()
        if isinstance(store, stores.ScheduleStore):
            self.store = store
        elif Target(store) is Target.crontab:
            self.store = stores.CrontabScheduleStore(
                self.config.executable, self.config.timeout
            )
        else:
            self.store = stores.StdoutScheduleStore()
        self.table = Table() if table is None else table

    def invoke(self, *args: Any, **kwargs: Any) -> None:
        """Invoke the underlying CLI that is being wrapped by this extension.

        Args:
            args: Ignored positional arguments.
            kwargs: Ignored keyword arguments.

        Raises:
            NotImplementedError: There is no underlying CLI for this extension.
        """
        raise NotImplementedError

    def current_content(self) -> str:
        """Content of the installed crontab.

        Raises:
            ExternalCommandError: The crontab could not be listed.

        Returns:
            The installed content, empty if there is none.
        """
        content, exit_code, stderr = self.store.list_current_schedule(self.config.user)
        if exit_code:
            raise ExternalCommandError(
                "Unable to list crontab entries.", content + stderr, exit_code
            )
        return content

    def load(self) -> Table:
        """Add the entries of the installed crontab to the table.

        Returns:
            The table.
        """
        content = self.current_content()
        if content.strip():
            self.table.load_from_text(content)
        return self.table

    def import_file(self, path: str | os.PathLike[str]) -> Table:
        """Add the entries of a crontab file to the table.

        Returns:
            The table.
        """
        return self.table.load_from_file(path)

    def _install(self, content: str) -> None:
        if not content.endswith("\n"):
            content += "\n"
        with staged_file(content) as path:
            exit_code, output = self.store.install_schedule(path, self.config.user)
        if exit_code:
            raise ExternalCommandError(
                "Unable to install new crontab.", output, exit_code
            )

    def write(self) -> str:
        """Install the table in place of the installed crontab.

        The content being replaced is kept as a commented block at the end of
        the new content.

        Raises:
            ExternalCommandError: The crontab could not be listed or installed.

        Returns:
            The installed content.
        """
        return self._write(self.table, self.current_content())

    def _write(self, table: Table, snapshot: str) -> str:
        content = table.reconcile_on_write(snapshot)
        self._install(content)
        log.info("Installed crontab", entries=len(table), user=self.config.user)
        return content

    def _update(self, change: Callable[[Table], Any]) -> str:
        # The table is only replaced once the changed content is installed
        snapshot = self.current_content()
        staged = self.table.copy()
        if snapshot.strip():
            staged.load_from_text(snapshot)
        change(staged)
        content = self._write(staged, snapshot)
        self.table = staged
        return content

    def flush(self) -> None:
        """Remove all content from the installed crontab.

        Raises:
            ValueError: The store is inappropriate for flushing.
        """
        if not self.store.is_managed:
            raise ValueError("Cannot flush an unmanaged schedule store")
        self._install("")
        log.info("Flushed crontab", user=self.config.user)

    def install(self, entries: Iterable[Entry]) -> str:
        """Add entries to the installed crontab.

        Entries sharing the identity of an installed entry replace it.

        Args:
            entries: The entries to install.

        Returns:
            The installed content.
        """
        return self._update(lambda table: table.extend(entries))

    def uninstall(self, identities: set[str], uninstall_all: bool) -> str:
        """Remove entries from the installed crontab.

        Args:
            identities: The identities of the entries to remove. Unknown
                identities are ignored.
            uninstall_all: Whether every entry should be removed.

        Raises:
            ValueError: The store is inappropriate for uninstallation.

        Returns:
            The installed content.
        """
        if not self.store.is_managed:
            raise ValueError("Cannot uninstall from an unmanaged schedule store")

        def remove(table: Table) -> None:
            if uninstall_all:
                table.remove_all()
            else:
                for identity in identities:
                    table.remove_identity(identity)

        return self._update(remove)

    def describe(self) -> models.Describe:
        """Generate a description of the commands and capabilities the ext provides.

        Returns:
            A description of the commands and capabilities the extension provides.
        """
        return models.Describe(
            commands=[
                models.ExtensionCommand(
                    name="crontab", description="extension commands"
                ),
            ]
        )
