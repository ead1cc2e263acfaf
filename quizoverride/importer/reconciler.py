from __future__ import annotations

import datetime
import secrets
import string
import typing as t

from quizoverride import storage
from quizoverride.core import di
from quizoverride.model import ImportAction, ImportMode, Override, OverrideID
from quizoverride.storage import Session

from .validator import parse_count

# no whitespace, and nothing a spreadsheet would read as a formula prefix
PasswordAlphabet = string.ascii_letters + string.digits + "!#$%&*?@^_"


def reconcile(
    quiz_id: int,
    mode: ImportMode,
    subject_id: str | int | None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> OverrideID | None:
    """The id of the override this subject already has on the quiz, if any.

    An empty or non-numeric subject id has no override and is not looked up.
    """
    if isinstance(subject_id, str):
        subject_id = parse_count(subject_id)
    if subject_id is None:
        return None

    match mode:
        case ImportMode.User:
            existing = storage.override.find_one(quiz_id=quiz_id, user_id=subject_id, session=session)
        case ImportMode.Group:
            existing = storage.override.find_one(quiz_id=quiz_id, group_id=subject_id, session=session)
    return existing.override_id if existing else None


def classify(values_empty: bool, existing: OverrideID | None) -> ImportAction:
    if values_empty:
        return ImportAction.Delete if existing is not None else ImportAction.Skip
    return ImportAction.Update if existing is not None else ImportAction.Insert


def generate_password(length: int) -> str:
    return "".join(secrets.choice(PasswordAlphabet) for _ in range(length))


def materialize_password(
    password: str,
    generate: bool | None,
    errors: t.Mapping[str, str],
    length: int,
    generated: str | None = None,
) -> tuple[str | None, bool]:
    """The password to store, and whether it was synthesized.

    `generated` reuses a password synthesized earlier for the same row, so a
    confirmed preview commits the password it showed.
    """
    if generate and "generate" not in errors:
        return (generated or generate_password(length)), True
    if password == "" or "password" in errors:
        return None, False
    return password, False


def build_override(
    quiz_id: int,
    mode: ImportMode,
    subject_id: int | None,
    *,
    override_id: OverrideID | None = None,
    time_open: datetime.datetime | None = None,
    time_close: datetime.datetime | None = None,
    time_limit: int | None = None,
    attempts: int | None = None,
    password: str | None = None,
) -> Override:
    subject = {mode.subject_field: subject_id}
    return Override(
        override_id=override_id,
        quiz_id=quiz_id,
        time_open=time_open,
        time_close=time_close,
        time_limit=time_limit,
        attempts=attempts,
        password=password,
        **subject,
    )
