from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from quizoverride.core import di
from quizoverride.lib import NotSet
from quizoverride.model import ImportMode, Override, OverrideID

from . import Session
from .table import quiz_overrides


def get(override_id: OverrideID, session: Session = di.Provide["storage.persistent.session"]) -> Override | None:
    stmt = sqla.select(quiz_overrides.__table__).where(quiz_overrides.override_id == override_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Override(**row) if row else None


def find(
    *,
    quiz_id: int,
    mode: ImportMode | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Override, ...]:
    """Overrides on a quiz, optionally only the user or only the group ones, ordered by subject id."""
    stmt = sqla.select(quiz_overrides.__table__).where(quiz_overrides.quiz_id == quiz_id)
    match mode:
        case ImportMode.User:
            stmt = stmt.where(quiz_overrides.user_id.is_not(None)).order_by(quiz_overrides.user_id)
        case ImportMode.Group:
            stmt = stmt.where(quiz_overrides.group_id.is_not(None)).order_by(quiz_overrides.group_id)
        case None:
            stmt = stmt.order_by(quiz_overrides.user_id, quiz_overrides.group_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(Override(**row) for row in rows)


def _subject_clause(user_id: int | None, group_id: int | None) -> sqla.ColumnElement[bool]:
    if (user_id is None) == (group_id is None):
        raise ValueError("exactly one of user_id or group_id must be provided")
    if user_id is not None:
        return quiz_overrides.user_id == user_id
    return quiz_overrides.group_id == group_id


def find_one(
    *,
    quiz_id: int,
    user_id: int | None = None,
    group_id: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Override | None:
    """The override for one user or one group on a quiz, if any."""
    stmt = sqla.select(quiz_overrides.__table__).where(
        quiz_overrides.quiz_id == quiz_id, _subject_clause(user_id, group_id)
    )
    row = session.execute(stmt).mappings().one_or_none()
    return Override(**row) if row else None


def exists(
    *,
    quiz_id: int,
    user_id: int | None = None,
    group_id: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    stmt = sqla.select(
        sqla.exists().where(quiz_overrides.quiz_id == quiz_id, _subject_clause(user_id, group_id))
    )
    return bool(session.execute(stmt).scalar())


def create(override: Override, session: Session = di.Provide["storage.persistent.session"]) -> Override:
    """Insert `override` under a fresh id; any id it already carries is ignored."""
    _subject_clause(override.user_id, override.group_id)
    row = quiz_overrides(
        override_id=OverrideID(),
        quiz_id=override.quiz_id,
        user_id=override.user_id,
        group_id=override.group_id,
        time_open=override.time_open,
        time_close=override.time_close,
        time_limit=override.time_limit,
        attempts=override.attempts,
        password=override.password,
    )
    session.add(row)
    session.flush()
    return get(row.override_id, session=session)  # type: ignore


def update(
    override_id: OverrideID,
    *,
    time_open: datetime.datetime | None | NotSet = NotSet(),
    time_close: datetime.datetime | None | NotSet = NotSet(),
    time_limit: int | None | NotSet = NotSet(),
    attempts: int | None | NotSet = NotSet(),
    password: str | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Update the values of an override.

    None clears a value; omitted arguments are left alone.

    Raises:
        KeyError: If override_id does not correspond to an override
    """
    values: dict[str, t.Any] = {}
    if not isinstance(time_open, NotSet):
        values["time_open"] = time_open
    if not isinstance(time_close, NotSet):
        values["time_close"] = time_close
    if not isinstance(time_limit, NotSet):
        values["time_limit"] = time_limit
    if not isinstance(attempts, NotSet):
        values["attempts"] = attempts
    if not isinstance(password, NotSet):
        values["password"] = password

    if not values:
        # No-op update to verify the override exists
        values["override_id"] = override_id

    stmt = sqla.update(quiz_overrides).where(quiz_overrides.override_id == override_id).values(**values)
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Override {override_id} not found")

    session.flush()


def delete(override_id: OverrideID, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    """Delete an override.

    Returns:
        True if an override was deleted, False if not found
    """
    stmt = sqla.delete(quiz_overrides).where(quiz_overrides.override_id == override_id)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]
