from __future__ import annotations

import pytest

from crontab_ext.entry import Entry, validate_field
from crontab_ext.errors import (
    InvalidFieldError,
    MalformedEntryError,
    MissingCommandError,
)


def test_defaults():
    entry = Entry(command="cmd")
    assert entry.schedule == ("0", "*", "*", "*", "*")
    assert entry.output_file is entry.error_file is entry.comment is None
    assert entry.active
    assert entry.render() == "0 * * * * cmd"
    assert str(entry) == "0 * * * * cmd"


@pytest.mark.parametrize("value", ("*", "5", "1-10", "1,2,3", "*/15", "0-5,10,20-22"))
@pytest.mark.parametrize("field", ("minute", "hour"))
def test_valid_fields(field: str, value: str):
    entry = Entry(command="cmd").replace(**{field: value})
    assert getattr(entry, field) == value
    assert value in entry.render().split(" ")


@pytest.mark.parametrize(
    ("field", "value"),
    (
        ("minute", "70"),
        ("minute", "60"),
        ("hour", "24"),
        ("day_of_month", "0"),
        ("day_of_month", "32"),
        ("month", "13"),
        ("day_of_week", "8"),
        ("minute", "a-b-c"),
        ("minute", "1-2-3"),
        ("minute", ""),
        ("hour", "10-5"),
        ("minute", "*/0"),
        ("minute", "*/"),
        ("minute", "1,,2"),
        ("month", "jan"),
        ("hour", " 1"),
        ("minute", 5),
    ),
)
def test_invalid_fields(field: str, value: str):
    with pytest.raises(InvalidFieldError) as exc_info:
        Entry(command="cmd").replace(**{field: value})
    assert exc_info.value.field == field
    assert exc_info.value.value == value
    assert field in str(exc_info.value)


def test_invalid_field_is_malformed_entry():
    assert issubclass(InvalidFieldError, MalformedEntryError)
    with pytest.raises(ValueError):
        validate_field("month", "0")


def test_render_without_command():
    with pytest.raises(MissingCommandError):
        Entry().render()


@pytest.mark.parametrize("field", ("command", "output_file", "error_file", "comment"))
def test_text_fields_reject_newlines(field: str):
    with pytest.raises(InvalidFieldError, match=field):
        Entry(command="cmd").replace(**{field: "a\nb"})


def test_parse_output_redirection():
    entry = Entry.parse("0 * * * * run.sh > /tmp/out.log")
    assert entry.command == "run.sh"
    assert entry.output_file == "/tmp/out.log"
    assert entry.error_file is None
    assert entry.render() == "0 * * * * run.sh > /tmp/out.log 2>&1"


def test_parse_comment():
    entry = Entry.parse("*/5 * * * * backup.sh # nightly")
    assert entry.comment == "nightly"
    assert entry.schedule == ("*/5", "*", "*", "*", "*")
    assert entry.command == "backup.sh"


def test_parse_all_suffixes():
    entry = Entry.parse(
        "30 2 1-15 */2 1,3,5 /usr/bin/backup --full > /var/log/b.log "
        "2> /var/log/b.err # keep # this"
    )
    assert entry.schedule == ("30", "2", "1-15", "*/2", "1,3,5")
    assert entry.command == "/usr/bin/backup --full"
    assert entry.output_file == "/var/log/b.log"
    assert entry.error_file == "/var/log/b.err"
    assert entry.comment == "keep # this"
    assert entry.render() == (
        "30 2 1-15 */2 1,3,5 /usr/bin/backup --full > /var/log/b.log "
        "2> /var/log/b.err # keep # this"
    )


def test_parse_errors_following_output_is_the_default():
    entry = Entry.parse("0 * * * * run.sh > /tmp/out.log 2>&1")
    assert entry.output_file == "/tmp/out.log"
    assert entry.error_file is None
    assert entry.render() == "0 * * * * run.sh > /tmp/out.log 2>&1"


def test_parse_errors_to_stdout_without_output_file():
    entry = Entry.parse("0 * * * * run.sh 2>&1")
    assert entry.error_file == "&1"
    assert entry.render() == "0 * * * * run.sh 2>&1"


def test_parse_error_file_only():
    entry = Entry.parse("0 * * * * run.sh 2>/dev/null")
    assert entry.command == "run.sh"
    assert entry.error_file == "/dev/null"
    assert entry.output_file is None
    assert entry.render() == "0 * * * * run.sh 2> /dev/null"


def test_parse_keeps_command_whitespace():
    entry = Entry.parse("0\t1  * * *   echo 'a    b'  |  tr a c")
    assert entry.schedule == ("0", "1", "*", "*", "*")
    assert entry.command == "echo 'a    b'  |  tr a c"
    assert entry.render() == "0 1 * * * echo 'a    b'  |  tr a c"


def test_parse_quoted_redirection_is_part_of_the_command():
    entry = Entry.parse("0 * * * * echo 'a > b'")
    assert entry.command == "echo 'a > b'"
    assert entry.output_file is None


def test_parse_splits_quoted_comment_marker():
    # A `#` inside quotes starts the comment all the same
    entry = Entry.parse("0 * * * * echo 'a # b'")
    assert entry.command == "echo 'a"
    assert entry.comment == "b'"


def test_parse_append_redirections():
    entry = Entry.parse("0 * * * * run.sh >> /tmp/out.log 2>> /tmp/err.log")
    assert entry.command == "run.sh"
    assert entry.output_file == "/tmp/out.log"
    assert entry.append_output
    assert entry.error_file == "/tmp/err.log"
    assert entry.append_errors
    assert entry.render() == "0 * * * * run.sh >> /tmp/out.log 2>> /tmp/err.log"


def test_parse_append_output_with_errors_following():
    entry = Entry.parse("0 * * * * run.sh >>/tmp/out.log 2>&1")
    assert entry.output_file == "/tmp/out.log"
    assert entry.append_output
    assert entry.error_file is None
    assert not entry.append_errors
    assert entry.render() == "0 * * * * run.sh >> /tmp/out.log 2>&1"


@pytest.mark.parametrize(
    "command",
    (
        "run.sh &> /tmp/all.log",
        "run.sh &>> /tmp/all.log",
        "run.sh 2>&1 > /dev/null",
        "run.sh 2>&1 >/dev/null",
        "run.sh 1> /tmp/out.log",
        "run.sh > /tmp/a.log | tee /tmp/b.log",
        "run.sh 2> /tmp/err.log > /tmp/out.log",
        "run.sh 2>>&1",
        "run.sh >&2",
        "run.sh >",
    ),
)
def test_parse_unsupported_redirections_stay_in_the_command(command: str):
    entry = Entry.parse(f"0 * * * * {command}")
    assert entry.command == command
    assert entry.output_file is entry.error_file is None
    assert entry.render() == f"0 * * * * {command}"
    assert Entry.parse(entry.render()) == entry


@pytest.mark.parametrize(
    "changes",
    (
        {"output_file": "/tmp/a b"},
        {"output_file": ""},
        {"output_file": "&1"},
        {"error_file": "/tmp/a;rm"},
        {"error_file": "&1", "append_errors": True},
    ),
)
def test_invalid_redirection_targets(changes: dict):
    with pytest.raises(InvalidFieldError):
        Entry(command="cmd").replace(**changes)


@pytest.mark.parametrize("command", ("", " ", "\t"))
def test_blank_command(command: str):
    with pytest.raises(InvalidFieldError, match="command"):
        Entry(command=command)


@pytest.mark.parametrize("line", ("0 * *", "", "0 * * * *", "0 * * * * # comment only"))
def test_parse_missing_parts(line: str):
    with pytest.raises(MalformedEntryError):
        Entry.parse(line)


def test_parse_invalid_field():
    with pytest.raises(InvalidFieldError) as exc_info:
        Entry.parse("0 25 * * * cmd")
    assert exc_info.value.field == "hour"
    assert exc_info.value.value == "25"


def test_parse_commented_line_is_not_schedule_data():
    with pytest.raises(MalformedEntryError):
        Entry.parse("#0 * * * * cmd")


def test_round_trip():
    entry = Entry(command="cmd")
    parsed = Entry.parse(entry.render())
    assert parsed.identity == entry.identity
    assert parsed == entry


def test_round_trip_with_suffixes():
    entry = Entry(
        "15",
        "3",
        "*",
        "*",
        "0",
        command="run.sh --flag",
        output_file="/tmp/out",
        error_file="/tmp/err",
        comment="weekly",
    )
    assert Entry.parse(entry.render()) == entry


def test_round_trip_with_append_redirections():
    entry = Entry(
        command="run.sh",
        output_file="/tmp/out",
        error_file="/tmp/err",
        append_output=True,
        append_errors=True,
    )
    assert Entry.parse(entry.render()) == entry


def test_identity_ignores_redirections_and_comment():
    a = Entry(command="cmd")
    b = Entry(command="cmd", output_file="/tmp/a", error_file="/tmp/b", comment="x")
    assert a.identity == b.identity
    assert a.identity == a.disable().identity


@pytest.mark.parametrize(
    "change",
    (
        {"minute": "1"},
        {"hour": "1"},
        {"day_of_month": "1"},
        {"month": "1"},
        {"day_of_week": "1"},
        {"command": "other"},
    ),
)
def test_identity_changes_with_schedule_and_command(change: dict[str, str]):
    entry = Entry(command="cmd")
    changed = entry.replace(**change)
    assert changed.identity != entry.identity
    # The original is left untouched
    assert entry.replace(**{k: getattr(entry, k) for k in change}) == entry


def test_disable_enable():
    entry = Entry(command="cmd2")
    disabled = entry.disable()
    assert not disabled.active
    assert disabled.render() == "#0 * * * * cmd2"
    assert disabled.enable().render() == "0 * * * * cmd2"
    assert entry.active


def test_entries_are_immutable():
    entry = Entry(command="cmd")
    with pytest.raises(AttributeError):
        entry.minute = "5"  # type: ignore[misc]
