from __future__ import annotations

import sqlalchemy as sqla

from quizoverride.core import di
from quizoverride.model import Group

from . import Session
from .table import groups


def get(group_id: int, session: Session = di.Provide["storage.persistent.session"]) -> Group | None:
    stmt = sqla.select(groups.__table__).where(groups.group_id == group_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Group(**row) if row else None


def exists(
    group_id: int,
    *,
    course_id: int,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Whether `group_id` is a group of `course_id`; a group of another course does not count."""
    stmt = sqla.select(sqla.exists().where(groups.group_id == group_id, groups.course_id == course_id))
    return bool(session.execute(stmt).scalar())


def find_by_name(
    name: str,
    *,
    course_id: int,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Group, ...]:
    """Groups of `course_id` named exactly `name`, ordered by id; names need not be unique."""
    stmt = (
        sqla.select(groups.__table__)
        .where(groups.course_id == course_id, groups.name == name)
        .order_by(groups.group_id)
    )
    rows = session.execute(stmt).mappings().all()
    return tuple(Group(**row) for row in rows)


def create(
    *,
    group_id: int,
    course_id: int,
    name: str,
    idnumber: str = "",
    session: Session = di.Provide["storage.persistent.session"],
) -> Group:
    session.add(groups(group_id=group_id, course_id=course_id, name=name, idnumber=idnumber))
    session.flush()
    return get(group_id, session=session)  # type: ignore[return-value]
