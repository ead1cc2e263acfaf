from __future__ import annotations

import sqlalchemy as sqla

from quizoverride.core import di
from quizoverride.model import Quiz

from . import Session
from .table import quizzes


def get(quiz_id: int, session: Session = di.Provide["storage.persistent.session"]) -> Quiz | None:
    stmt = sqla.select(quizzes.__table__).where(quizzes.quiz_id == quiz_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Quiz(**row) if row else None


def create(
    *,
    quiz_id: int,
    course_id: int,
    name: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> Quiz:
    session.add(quizzes(quiz_id=quiz_id, course_id=course_id, name=name))
    session.flush()
    return get(quiz_id, session=session)  # type: ignore[return-value]
