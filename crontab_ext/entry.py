"""Patterns & utilities for handling cron entries."""

from __future__ import annotations

import dataclasses
import hashlib
import json
import re
from functools import cached_property
from typing import Any

from crontab_ext.errors import (
    InvalidFieldError,
    MalformedEntryError,
    MissingCommandError,
)

comment_pattern = re.compile(r"^\s*#.*$")
variable_pattern = re.compile(
    r"^\s*(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*=\s*(?P<value>.*?)\s*$"
)
field_pattern = re.compile(
    r"^(?:\*"
    r"|\*/(?P<step>[0-9]+)"
    r"|(?P<list>[0-9]+(?:-[0-9]+)?(?:,[0-9]+(?:-[0-9]+)?)*))$"
)

# `2>` starting a word, and a `>` outside of `2>`, `&>` and `>&`, either one doubled
error_marker_pattern = re.compile(r"(?:^|(?<=\s))2>(?P<append>>)?")
output_marker_pattern = re.compile(r"(?<![0-9&>])>(?P<append>>)?")
redirect_target_pattern = re.compile(r"^[^\s<>&|;()'\"`]+$")

# Inclusive bounds of the numeric values each schedule field accepts
FIELD_BOUNDS = {
    "minute": (0, 59),
    "hour": (0, 23),
    "day_of_month": (1, 31),
    "month": (1, 12),
    "day_of_week": (0, 7),
}
SCHEDULE_FIELDS = tuple(FIELD_BOUNDS)


def validate_field(name: str, value: Any) -> str:
    """Check a schedule field value against the cron field grammar.

    Accepted forms are `*`, a bare number, a comma-separated list of numbers
    and `a-b` ranges, and the step expression `*/n`.

    Args:
        name: The name of the schedule field, e.g. `minute`.
        value: The raw value of the field.

    Raises:
        InvalidFieldError: The value does not match the grammar, or one of its
            numbers is out of bounds for the field.

    Returns:
        The validated value.
    """
    if not isinstance(value, str):
        raise InvalidFieldError(name, value)
    match = field_pattern.fullmatch(value)
    if not match:
        raise InvalidFieldError(name, value)
    low, high = FIELD_BOUNDS[name]
    if match["step"] is not None:
        if int(match["step"]) < 1:
            raise InvalidFieldError(name, value)
    elif match["list"] is not None:
        for item in match["list"].split(","):
            start, _, end = item.partition("-")
            if not low <= int(start) <= int(end or start) <= high:
                raise InvalidFieldError(name, value)
    return value


def _validate_text(name: str, value: Any) -> None:
    if value is None:
        return
    if not isinstance(value, str) or "\n" in value or "\r" in value:
        raise InvalidFieldError(name, value)


def _is_redirect_target(value: str | None) -> bool:
    return value is None or bool(redirect_target_pattern.match(value))


def _split_redirections(command: str) -> dict[str, Any] | None:
    """Extract trailing `> file` and `2> file` redirections from a command.

    Returns `None` when the command redirects in a way an entry cannot
    represent; the caller keeps such a command as is.
    """
    fields: dict[str, Any] = {}
    match = error_marker_pattern.search(command)
    if match:
        target = command[match.end() :].strip()
        if not (
            _is_redirect_target(target) or (target == "&1" and not match["append"])
        ):
            return None
        fields.update(error_file=target, append_errors=bool(match["append"]))
        command = command[: match.start()]
    match = output_marker_pattern.search(command)
    if match:
        target = command[match.end() :].strip()
        if not _is_redirect_target(target):
            return None
        fields.update(output_file=target, append_output=bool(match["append"]))
        command = command[: match.start()]
    command = command.strip()
    if not command or ">" in command:
        return None
    fields["command"] = command
    return fields


@dataclasses.dataclass(frozen=True)
class Entry:
    """A single crontab line.

    Entries are immutable: use `replace`, `disable` and `enable` to derive
    modified copies. The identity of an entry is derived from its schedule
    fields and its command only, so two entries which differ in their
    redirections, comment, or active flag share an identity.
    """

    minute: str = "0"
    hour: str = "*"
    day_of_month: str = "*"
    month: str = "*"
    day_of_week: str = "*"
    command: str | None = None
    output_file: str | None = None
    error_file: str | None = None
    comment: str | None = None
    active: bool = True
    append_output: bool = False
    append_errors: bool = False

    def __post_init__(self) -> None:
        for name in SCHEDULE_FIELDS:
            validate_field(name, getattr(self, name))
        for name in ("command", "output_file", "error_file", "comment"):
            _validate_text(name, getattr(self, name))
        if self.command is not None and not self.command.strip():
            raise InvalidFieldError("command", self.command)
        if not _is_redirect_target(self.output_file):
            raise InvalidFieldError("output_file", self.output_file)
        if self.error_file == "&1":
            if self.append_errors:
                raise InvalidFieldError("error_file", "&1")
        elif not _is_redirect_target(self.error_file):
            raise InvalidFieldError("error_file", self.error_file)

    def __str__(self) -> str:
        return self.render()

    @classmethod
    def parse(cls, line: str) -> Entry:
        """Parse a crontab line into an entry.

        The five schedule fields are split on whitespace and the rest of the
        line is the command, kept verbatim. The command is then decomposed
        right-to-left: the trailing `# comment` is extracted first, then the
        `2> error_file` (or `2>> error_file`), then the `> output_file` (or
        `>> output_file`). A `#` which is part of a quoted shell argument is
        split all the same.

        Redirections are only extracted when each target is a single trailing
        word and nothing else in the command redirects. Anything else, such
        as `&> file` or `2>&1 > file`, stays part of the command.

        Args:
            line: The crontab line, without a trailing newline.

        Raises:
            MalformedEntryError: The line has fewer than five schedule fields,
                has no command, or one of its fields is invalid.

        Returns:
            The parsed entry.
        """
        parts = line.split(None, 5)
        if len(parts) < 5:
            raise MalformedEntryError(
                f"Expected 5 schedule fields and a command, got {len(parts)} "
                f"field(s) in {line!r}"
            )
        command = parts[5] if len(parts) == 6 else ""
        comment = None
        if "#" in command:
            command, _, comment = command.partition("#")
            comment = comment.strip() or None
        command = command.strip()
        if not command:
            raise MalformedEntryError(f"Missing command in {line!r}")
        redirections = _split_redirections(command)
        if redirections is None:
            redirections = {"command": command}
        if (
            redirections.get("error_file") == "&1"
            and redirections.get("output_file") is not None
        ):
            # Errors following the output is what `render` emits by default
            del redirections["error_file"]
        return cls(*parts[:5], comment=comment, **redirections)

    @property
    def schedule(self) -> tuple[str, str, str, str, str]:
        """The five schedule fields, in crontab order."""
        return (
            self.minute,
            self.hour,
            self.day_of_month,
            self.month,
            self.day_of_week,
        )

    @cached_property
    def identity(self) -> str:
        """Fingerprint of the schedule fields and the command."""
        payload = json.dumps([*self.schedule, self.command])
        return hashlib.md5(payload.encode()).hexdigest()

    def render(self) -> str:
        """Render the entry as a crontab line.

        Raises:
            MissingCommandError: The entry has no command.

        Returns:
            The crontab line, prefixed with `#` if the entry is inactive.
        """
        if self.command is None:
            raise MissingCommandError("You must specify a command to run.")
        parts = [*self.schedule, self.command]
        if self.output_file is not None:
            parts.append(f"{'>>' if self.append_output else '>'} {self.output_file}")
        if self.error_file == "&1":
            parts.append("2>&1")
        elif self.error_file is not None:
            parts.append(f"{'2>>' if self.append_errors else '2>'} {self.error_file}")
        elif self.output_file is not None:
            parts.append("2>&1")
        if self.comment is not None:
            parts.append(f"# {self.comment}")
        line = " ".join(parts).rstrip()
        return line if self.active else f"#{line}"

    def replace(self, **changes: Any) -> Entry:
        """Return a copy of the entry with the given fields changed.

        Raises:
            InvalidFieldError: A changed field does not match its grammar.
        """
        return dataclasses.replace(self, **changes)

    def disable(self) -> Entry:
        """Return a copy of the entry which renders commented out."""
        return dataclasses.replace(self, active=False)

    def enable(self) -> Entry:
        """Return a copy of the entry which renders as an active line."""
        return dataclasses.replace(self, active=True)
