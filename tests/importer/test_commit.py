"""Tests for quizoverride.importer.commit module."""

from __future__ import annotations

import typing as t

import pytest
from sqlalchemy.orm import Session

from quizoverride import storage
from quizoverride.importer import CommitExecutor
from quizoverride.model import ImportAction, ImportRow, Override, OverrideID, Quiz, User


def make_row(csv_row: int, action: ImportAction, **values: t.Any) -> ImportRow:
    values.setdefault("quiz_id", 7)
    return ImportRow(csv_row=csv_row, action=action, override=Override(**values))


class TestCommit(object):
    """Tests for CommitExecutor.commit()."""

    def test_applies_every_action(
        self,
        db_session: Session,
        test_quiz: Quiz,
        user_factory: t.Callable[..., User],
        override_factory: t.Callable[..., Override],
    ) -> None:
        new, changed, removed = user_factory(), user_factory(), user_factory()
        to_update = override_factory(user_id=changed.user_id, attempts=1, password="old")
        to_delete = override_factory(user_id=removed.user_id, attempts=1)

        result = CommitExecutor(db_session).commit([
            make_row(1, ImportAction.Insert, user_id=new.user_id, time_limit=600),
            make_row(2, ImportAction.Update, override_id=to_update.override_id, user_id=changed.user_id, attempts=4),
            make_row(3, ImportAction.Delete, override_id=to_delete.override_id, user_id=removed.user_id),
        ])

        assert result.success is True
        assert (result.inserted, result.updated, result.deleted) == (1, 1, 1)
        with db_session.begin():
            inserted = storage.override.find_one(quiz_id=test_quiz.quiz_id, user_id=new.user_id, session=db_session)
            updated = storage.override.get(to_update.override_id, session=db_session)
            deleted = storage.override.get(to_delete.override_id, session=db_session)
        assert inserted is not None and inserted.time_limit == 600
        # an update replaces every value, so the old password is gone
        assert updated is not None and (updated.attempts, updated.password) == (4, None)
        assert deleted is None

    def test_failure_rolls_back_everything(
        self,
        db_session: Session,
        test_quiz: Quiz,
        user_factory: t.Callable[..., User],
    ) -> None:
        """When one row fails, rows applied before it are undone too."""
        first, second = user_factory(), user_factory()

        result = CommitExecutor(db_session).commit([
            make_row(1, ImportAction.Insert, user_id=first.user_id, attempts=1),
            make_row(2, ImportAction.Update, override_id=OverrideID(), user_id=second.user_id, attempts=1),
        ])

        assert result.success is False
        assert result.error is not None and "not found" in result.error
        with db_session.begin():
            assert storage.override.find(quiz_id=test_quiz.quiz_id, session=db_session) == ()

    def test_constraint_violation_rolls_back(
        self,
        db_session: Session,
        test_quiz: Quiz,
        user_factory: t.Callable[..., User],
        override_factory: t.Callable[..., Override],
    ) -> None:
        """Inserting for a user who has gained an override meanwhile fails the whole commit."""
        fresh, taken = user_factory(), user_factory()
        existing = override_factory(user_id=taken.user_id, attempts=1)

        result = CommitExecutor(db_session).commit([
            make_row(1, ImportAction.Insert, user_id=fresh.user_id, attempts=2),
            make_row(2, ImportAction.Insert, user_id=taken.user_id, attempts=2),
        ])

        assert result.success is False
        with db_session.begin():
            overrides = storage.override.find(quiz_id=test_quiz.quiz_id, session=db_session)
        assert [o.override_id for o in overrides] == [existing.override_id]

    def test_value_the_column_cannot_hold_rolls_back(
        self,
        db_session: Session,
        test_quiz: Quiz,
        user_factory: t.Callable[..., User],
    ) -> None:
        """An error that is not a database error still fails the commit instead of escaping."""
        first, second = user_factory(), user_factory()

        result = CommitExecutor(db_session).commit([
            make_row(1, ImportAction.Insert, user_id=first.user_id, attempts=1),
            make_row(2, ImportAction.Insert, user_id=second.user_id, time_limit=10**30),
        ])

        assert result.success is False
        assert result.error
        with db_session.begin():
            assert storage.override.find(quiz_id=test_quiz.quiz_id, session=db_session) == ()

    def test_deleting_a_missing_override_fails(self, db_session: Session, test_quiz: Quiz) -> None:
        result = CommitExecutor(db_session).commit([make_row(1, ImportAction.Delete, override_id=OverrideID())])

        assert result.success is False

    def test_skip_rows_are_refused(self, db_session: Session, user_factory: t.Callable[..., User]) -> None:
        user = user_factory()

        with pytest.raises(ValueError, match="skip"):
            CommitExecutor(db_session).commit([
                make_row(1, ImportAction.Insert, user_id=user.user_id, attempts=1),
                make_row(2, ImportAction.Skip, user_id=user.user_id),
            ])

    def test_nothing_to_do(self, db_session: Session) -> None:
        result = CommitExecutor(db_session).commit([])

        assert result.success is True
        assert (result.inserted, result.updated, result.deleted) == (0, 0, 0)
