from __future__ import annotations

import sqlalchemy as sqla

from quizoverride.core import di
from quizoverride.model import User

from . import Session
from .table import users


def get(user_id: int, session: Session = di.Provide["storage.persistent.session"]) -> User | None:
    stmt = sqla.select(users.__table__).where(users.user_id == user_id)
    row = session.execute(stmt).mappings().one_or_none()
    return User(**row) if row else None


def exists(user_id: int, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    stmt = sqla.select(sqla.exists().where(users.user_id == user_id))
    return bool(session.execute(stmt).scalar())


def create(
    *,
    user_id: int,
    username: str,
    idnumber: str = "",
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    session.add(users(user_id=user_id, username=username, idnumber=idnumber))
    session.flush()
    return get(user_id, session=session)  # type: ignore[return-value]
