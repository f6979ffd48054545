"""Errors raised while parsing, rendering, and installing crontabs."""

from __future__ import annotations


class CrontabError(Exception):
    """Base class for all errors raised by crontab-ext."""


class MalformedEntryError(CrontabError, ValueError):
    """A cron line could not be parsed."""

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"Line #{line_number} is invalid: {message}"
        super().__init__(message)
        self.line_number = line_number


class InvalidFieldError(MalformedEntryError):
    """A field value does not match its grammar."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"{field} {value!r} is incorrect")
        self.field = field
        self.value = value


class MissingCommandError(CrontabError, ValueError):
    """An entry was rendered without a command."""


class EmptyScheduleError(CrontabError, ValueError):
    """A table was loaded from content with nothing to parse."""


class ExternalCommandError(CrontabError):
    """The crontab executable exited with a non-zero return code.

    Attributes:
        output: The combined stdout/stderr captured from the command.
        exit_code: The return code of the command.
    """

    def __init__(self, message: str, output: str = "", exit_code: int = 1) -> None:
        super().__init__(f"{message} (exit code {exit_code}): {output.strip()}")
        self.output = output
        self.exit_code = exit_code


class ExternalCommandTimeoutError(ExternalCommandError):
    """The crontab executable did not finish within the configured timeout."""

    def __init__(self, message: str, timeout: float, output: str = "") -> None:
        super().__init__(f"{message} Timed out after {timeout}s", output, -1)
        self.timeout = timeout
