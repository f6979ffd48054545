from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

test_dir = Path(__file__).parent

sys.path.append(str(test_dir.parent))

from crontab_ext import stores  # noqa: E402
from crontab_ext.stores.base import ScheduleStore  # noqa: E402


class FakeScheduleStore(ScheduleStore):
    """In-memory stand-in for the crontab executable."""

    is_managed = True

    def __init__(self, content: str = "") -> None:
        self.content = content
        self.list_failure: tuple[int, str] | None = None
        self.install_failure: tuple[int, str] | None = None
        self.installs: list[tuple[str, str | None]] = []

    def list_current_schedule(self, user: str | None) -> tuple[str, int, str]:
        if self.list_failure:
            exit_code, stderr = self.list_failure
            return "", exit_code, stderr
        return self.content, 0, ""

    def install_schedule(
        self,
        path: str | os.PathLike[str],
        user: str | None,
    ) -> tuple[int, str]:
        if self.install_failure:
            return self.install_failure
        self.content = Path(path).read_text()
        self.installs.append((self.content, user))
        return 0, ""


@pytest.fixture
def store() -> FakeScheduleStore:
    return FakeScheduleStore()


@pytest.fixture
def patched_store(
    store: FakeScheduleStore,
    monkeypatch: pytest.MonkeyPatch,
) -> FakeScheduleStore:
    """Make the `crontab` target of the extension use the fake store."""
    monkeypatch.setattr(stores, "CrontabScheduleStore", lambda *args: store)
    return store


@pytest.fixture
def fake_crontab(tmp_path: Path) -> Path:
    """A crontab executable keeping its content in a file next to it."""
    executable = tmp_path / "crontab"
    executable.write_text(
        "#!/bin/sh\n"
        'state="$(dirname "$0")/state"\n'
        'if [ "$1" = "-l" ]; then\n'
        '  if [ -f "$state" ]; then cat "$state"; exit 0; fi\n'
        '  echo "no crontab for tester" >&2\n'
        "  exit 1\n"
        "fi\n"
        'if grep -q "^bad" "$1"; then\n'
        '  echo "\\"$1\\":1: bad minute" >&2\n'
        "  exit 1\n"
        "fi\n"
        'cp "$1" "$state"\n'
    )
    executable.chmod(0o755)
    return executable
