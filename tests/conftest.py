"""Pytest fixtures for quizoverride tests.

The container is booted once for the `test` environment, whose storage is an
in-memory SQLite database. Each test runs inside a transaction that is rolled
back afterwards, so fixtures and imports never leak between tests.

Usage:
    def test_insert(db_session: Session, test_quiz: Quiz, user_factory):
        user = user_factory()
        with db_session.begin():
            ...
"""

from __future__ import annotations

import datetime
import itertools
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
from sqlalchemy.orm import Session

import quizoverride
from quizoverride import storage
from quizoverride.core import QuizOverrideContainer
from quizoverride.model import DeploymentEnvironment, Group, ImportMode, Override, Quiz, User
from quizoverride.storage.table import metadata

CourseID = 2


@pytest.fixture(scope="session")
def container() -> t.Generator[QuizOverrideContainer]:
    """Boot the DI container for the test session.

    The schema is created directly from the table metadata; the in-memory
    database lives as long as the engine does.
    """
    ct = QuizOverrideContainer()
    root = Path(os.path.dirname(quizoverride.__file__)).parent

    QuizOverrideContainer.boot(
        ct,
        debug=False,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )
    metadata.create_all(ct.storage().persistent().engine())

    yield ct

    ct.shutdown_resources()


@pytest.fixture
def db_session(container: QuizOverrideContainer) -> t.Generator[Session]:
    """Provide a database session wrapped in a transaction.

    Uses join_transaction_mode="create_savepoint" so that session.begin()
    in the code under test creates savepoints, and a rollback inside it
    (as the commit executor does on failure) only undoes its own work.
    """
    engine = container.storage().persistent().engine()

    connection = engine.connect()
    transaction = connection.begin()

    session = Session(
        bind=connection,
        autobegin=False,
        join_transaction_mode="create_savepoint",
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def session_provider(container: QuizOverrideContainer, db_session: Session) -> t.Generator[Session]:
    """Make the container hand out `db_session`, for code that takes its session from DI."""
    container.storage().persistent().session.override(db_session)
    yield db_session
    container.storage().persistent().session.reset_override()


@pytest.fixture
def quiz_factory(db_session: Session) -> t.Callable[..., Quiz]:
    ids = itertools.count(100)

    def create_quiz(quiz_id: int | None = None, course_id: int = CourseID, name: str = "Midterm") -> Quiz:
        with db_session.begin():
            return storage.quiz.create(
                quiz_id=quiz_id if quiz_id is not None else next(ids),
                course_id=course_id,
                name=name,
                session=db_session,
            )

    return create_quiz


@pytest.fixture
def test_quiz(quiz_factory: t.Callable[..., Quiz]) -> Quiz:
    return quiz_factory(quiz_id=7)


@pytest.fixture
def user_factory(db_session: Session) -> t.Callable[..., User]:
    """Factory fixture for creating users; ids count up from 1000 unless given."""
    ids = itertools.count(1000)

    def create_user(user_id: int | None = None, username: str | None = None, idnumber: str = "") -> User:
        user_id = user_id if user_id is not None else next(ids)
        with db_session.begin():
            return storage.user.create(
                user_id=user_id,
                username=username or f"user{user_id}",
                idnumber=idnumber,
                session=db_session,
            )

    return create_user


@pytest.fixture
def group_factory(db_session: Session) -> t.Callable[..., Group]:
    ids = itertools.count(500)

    def create_group(
        group_id: int | None = None, course_id: int = CourseID, name: str | None = None, idnumber: str = ""
    ) -> Group:
        group_id = group_id if group_id is not None else next(ids)
        with db_session.begin():
            return storage.group.create(
                group_id=group_id,
                course_id=course_id,
                name=name or f"Group {group_id}",
                idnumber=idnumber,
                session=db_session,
            )

    return create_group


@pytest.fixture
def override_factory(db_session: Session, test_quiz: Quiz) -> t.Callable[..., Override]:
    """Factory fixture for storing overrides on `test_quiz` unless another quiz is given.

    Usage:
        override = override_factory(user_id=user.user_id, attempts=2)
    """

    def create_override(
        user_id: int | None = None,
        group_id: int | None = None,
        quiz_id: int | None = None,
        time_open: datetime.datetime | None = None,
        time_close: datetime.datetime | None = None,
        time_limit: int | None = None,
        attempts: int | None = None,
        password: str | None = None,
    ) -> Override:
        with db_session.begin():
            return storage.override.create(
                Override(
                    quiz_id=quiz_id if quiz_id is not None else test_quiz.quiz_id,
                    user_id=user_id,
                    group_id=group_id,
                    time_open=time_open,
                    time_close=time_close,
                    time_limit=time_limit,
                    attempts=attempts,
                    password=password,
                ),
                session=db_session,
            )

    return create_override


@pytest.fixture
def make_csv() -> t.Callable[..., bytes]:
    """Build upload content: the mode's header followed by `rows`.

    Usage:
        content = make_csv("42,,,,,3600,,,", mode=ImportMode.User)
    """

    def build(
        *rows: str,
        mode: ImportMode = ImportMode.User,
        header: t.Sequence[str] | None = None,
        delimiter: str = ",",
    ) -> bytes:
        lines = [delimiter.join(header if header is not None else mode.header), *rows]
        return ("\n".join(lines) + "\n").encode("utf-8")

    return build
