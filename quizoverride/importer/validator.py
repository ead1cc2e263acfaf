"""Validation of a single import row.

Every rule is independent, so one row can carry several errors. Errors are
keyed by the column they belong to and are never raised.
"""

from __future__ import annotations

import datetime
import re

from quizoverride import storage
from quizoverride.core import di
from quizoverride.model import ImportMode
from quizoverride.storage import Session

TimestampFormat = "%Y-%m-%d %H:%M %z"
TimestampExample = "2024-01-01 08:00 +10:00"

FlagTokens = {"1": True, "0": False}

_count_re = re.compile(r"[0-9]+")

# the range of the integer columns ids and counts are stored in
MaxCount = 2**31 - 1


def format_timestamp(dt: datetime.datetime) -> str:
    """Render an aware datetime as `YYYY-MM-DD HH:MM +HH:MM`."""
    offset = dt.utcoffset()
    if offset is None:
        raise ValueError("cannot format a naive datetime")
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hh, mm = divmod(abs(minutes), 60)
    return f"{dt.strftime('%Y-%m-%d %H:%M')} {sign}{hh:02d}:{mm:02d}"


def parse_timestamp(text: str) -> datetime.datetime | None:
    """The datetime written in `text`, or None unless it renders back to exactly `text`."""
    try:
        dt = datetime.datetime.strptime(text, TimestampFormat)
    except ValueError:
        return None
    if format_timestamp(dt) != text:
        return None
    return dt


def parse_count(text: str) -> int | None:
    """A whole number from 0 to `MaxCount`; signs, spaces and decimals are rejected."""
    if _count_re.fullmatch(text) is None:
        return None
    # compare lengths first; int() refuses very long digit strings
    if len(text.lstrip("0")) > len(str(MaxCount)):
        return None
    value = int(text)
    return value if value <= MaxCount else None


def _count_error(label: str, text: str) -> str:
    if _count_re.fullmatch(text) is not None:
        return f"{label} must be at most {MaxCount}"
    return f"{label} must be a whole number, not {text!r}"


def parse_flag(text: str) -> bool | None:
    return FlagTokens.get(text)


def validate(
    mode: ImportMode,
    subject_id: str,
    time_open: str,
    time_close: str,
    time_limit: str,
    attempts: str,
    password: str,
    generate: str,
    course_id: int,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> dict[str, str]:
    """Check one row's cells, returning column name -> message.

    Unknown users and groups are looked up through `session`, which must
    already be in a transaction.
    """
    errors: dict[str, str] = {}
    id_field = mode.id_field

    if subject_id == "":
        errors[id_field] = f"Missing {mode.value} id"
    else:
        parsed_id = parse_count(subject_id)
        match mode:
            case ImportMode.User:
                if parsed_id is None or not storage.user.exists(parsed_id, session=session):
                    errors[id_field] = f"User {subject_id} does not exist"
            case ImportMode.Group:
                if parsed_id is None or not storage.group.exists(parsed_id, course_id=course_id, session=session):
                    errors[id_field] = f"Group {subject_id} does not exist in this course"

    opens = closes = None
    if time_open != "" and (opens := parse_timestamp(time_open)) is None:
        errors["timeopen"] = f"Invalid date/time for timeopen, expected the form {TimestampExample}"
    if time_close != "" and (closes := parse_timestamp(time_close)) is None:
        errors["timeclose"] = f"Invalid date/time for timeclose, expected the form {TimestampExample}"
    if opens is not None and closes is not None and opens > closes:
        errors["timeopen"] = "The quiz would open after it closes"

    if time_limit != "" and parse_count(time_limit) is None:
        errors["timelimit"] = _count_error("Time limit (seconds)", time_limit)

    if attempts != "" and parse_count(attempts) is None:
        errors["attempts"] = _count_error("Attempts", attempts)

    if password != "" and password != password.strip():
        errors["password"] = "Password must not begin or end with whitespace"

    if generate != "" and parse_flag(generate) is None:
        errors["generate"] = f"generate must be 1 or 0, not {generate!r}"

    return errors
