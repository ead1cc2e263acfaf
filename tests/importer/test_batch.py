"""Tests for quizoverride.importer.batch module."""

from __future__ import annotations

import datetime
import typing as t

import pytest
from sqlalchemy.orm import Session

from quizoverride import storage
from quizoverride.importer import batch, FileReadError, ImportNotFoundError, QuizNotFoundError
from quizoverride.model import ImportID, ImportMode, Override, Quiz, User
from quizoverride.storage.table import users

Now = datetime.datetime(2024, 3, 1, 12, 0, tzinfo=datetime.UTC)


def clock(now: datetime.datetime) -> t.Callable[[], datetime.datetime]:
    return lambda: now


class TestStage(object):
    """Tests for batch.stage()."""

    def test_stages_a_good_file(
        self,
        db_session: Session,
        test_quiz: Quiz,
        make_csv: t.Callable[..., bytes],
        user_factory: t.Callable[..., User],
    ) -> None:
        user_factory(user_id=42)
        content = make_csv("42,,,,,3600,,,")

        preview = batch.stage(content, quiz_id=test_quiz.quiz_id, mode=ImportMode.User, session=db_session)

        assert preview.import_id is not None
        assert preview.can_import is True
        with db_session.begin():
            staged = storage.batch.get(preview.import_id, session=db_session)
        assert staged is not None
        assert staged.content == content
        assert (staged.delimiter, staged.encoding) == ("comma", "UTF-8")
        # nothing is written to the overrides yet
        with db_session.begin():
            assert storage.override.find(quiz_id=test_quiz.quiz_id, session=db_session) == ()

    def test_bad_header_is_not_staged(
        self, db_session: Session, test_quiz: Quiz, make_csv: t.Callable[..., bytes]
    ) -> None:
        preview = batch.stage(
            make_csv("42,,,,,3600,,,", mode=ImportMode.Group),
            quiz_id=test_quiz.quiz_id,
            mode=ImportMode.User,
            session=db_session,
        )

        assert preview.import_id is None
        assert preview.processed is False
        assert preview.header_error is not None

    def test_unreadable_file_raises(self, db_session: Session, test_quiz: Quiz) -> None:
        with pytest.raises(FileReadError):
            batch.stage(b"\xff\xfe\x00", quiz_id=test_quiz.quiz_id, mode=ImportMode.User, session=db_session)

    def test_unknown_quiz_raises(self, db_session: Session, make_csv: t.Callable[..., bytes]) -> None:
        with pytest.raises(QuizNotFoundError):
            batch.stage(make_csv("42,,,,,3600,,,"), quiz_id=404, mode=ImportMode.User, session=db_session)


class TestConfirm(object):
    """Tests for batch.confirm() and batch.preview()."""

    def test_commits_and_drops_the_batch(
        self,
        db_session: Session,
        test_quiz: Quiz,
        make_csv: t.Callable[..., bytes],
        user_factory: t.Callable[..., User],
    ) -> None:
        user_factory(user_id=42)
        staged = batch.stage(
            make_csv("42,,,,,3600,1,secret,0"), quiz_id=test_quiz.quiz_id, mode=ImportMode.User, session=db_session
        )
        assert staged.import_id is not None

        result = batch.confirm(staged.import_id, session=db_session)

        assert result.success is True
        assert result.inserted == 1
        with db_session.begin():
            stored = storage.override.find_one(quiz_id=test_quiz.quiz_id, user_id=42, session=db_session)
            assert storage.batch.get(staged.import_id, session=db_session) is None
        assert stored is not None and stored.password == "secret"

    def test_commits_the_password_that_was_shown(
        self,
        db_session: Session,
        test_quiz: Quiz,
        make_csv: t.Callable[..., bytes],
        user_factory: t.Callable[..., User],
    ) -> None:
        """A generated password is fixed at preview time and survives confirmation."""
        user_factory(user_id=42)
        staged = batch.stage(
            make_csv("42,,,,,,,,1"), quiz_id=test_quiz.quiz_id, mode=ImportMode.User, session=db_session
        )
        assert staged.import_id is not None
        shown = staged.rows[0].override.password
        assert shown is not None and len(shown) == 20

        assert batch.preview(staged.import_id, session=db_session).rows[0].override.password == shown
        assert batch.confirm(staged.import_id, session=db_session).success is True

        with db_session.begin():
            stored = storage.override.find_one(quiz_id=test_quiz.quiz_id, user_id=42, session=db_session)
        assert stored is not None and stored.password == shown

    def test_revalidates_against_current_data(
        self,
        db_session: Session,
        test_quiz: Quiz,
        make_csv: t.Callable[..., bytes],
        user_factory: t.Callable[..., User],
    ) -> None:
        """A user who disappears after the preview blocks the commit."""
        user_factory(user_id=42)
        user_factory(user_id=43)
        staged = batch.stage(
            make_csv("42,,,,,60,,,", "43,,,,,60,,,"),
            quiz_id=test_quiz.quiz_id,
            mode=ImportMode.User,
            session=db_session,
        )
        assert staged.import_id is not None and staged.can_import

        with db_session.begin():
            db_session.execute(users.__table__.delete().where(users.user_id == 43))

        assert batch.preview(staged.import_id, session=db_session).can_import is False
        result = batch.confirm(staged.import_id, session=db_session)

        assert result.success is False
        assert result.error is not None and "1 row" in result.error
        with db_session.begin():
            assert storage.override.find(quiz_id=test_quiz.quiz_id, session=db_session) == ()
            # still staged, so it can be inspected or discarded
            assert storage.batch.get(staged.import_id, session=db_session) is not None

    def test_reclassifies_against_current_data(
        self,
        db_session: Session,
        test_quiz: Quiz,
        make_csv: t.Callable[..., bytes],
        user_factory: t.Callable[..., User],
        override_factory: t.Callable[..., Override],
    ) -> None:
        """An insert becomes an update when the override appeared after the preview."""
        user = user_factory()
        staged = batch.stage(
            make_csv(f"{user.user_id},,,,,60,,,"), quiz_id=test_quiz.quiz_id, mode=ImportMode.User, session=db_session
        )
        assert staged.import_id is not None
        override_factory(user_id=user.user_id, attempts=9)

        result = batch.confirm(staged.import_id, session=db_session)

        assert (result.success, result.inserted, result.updated) == (True, 0, 1)

    def test_unknown_import(self, db_session: Session) -> None:
        with pytest.raises(ImportNotFoundError):
            batch.confirm(ImportID(), session=db_session)
        with pytest.raises(ImportNotFoundError):
            batch.preview(ImportID(), session=db_session)


class TestDiscardAndPurge(object):
    """Tests for batch.discard() and batch.purge()."""

    def test_discard(
        self,
        db_session: Session,
        test_quiz: Quiz,
        make_csv: t.Callable[..., bytes],
        user_factory: t.Callable[..., User],
    ) -> None:
        user_factory(user_id=42)
        staged = batch.stage(
            make_csv("42,,,,,60,,,"), quiz_id=test_quiz.quiz_id, mode=ImportMode.User, session=db_session
        )
        assert staged.import_id is not None

        batch.discard(staged.import_id, session=db_session)

        with pytest.raises(ImportNotFoundError):
            batch.discard(staged.import_id, session=db_session)

    def test_purge_removes_only_old_batches(
        self,
        db_session: Session,
        test_quiz: Quiz,
        make_csv: t.Callable[..., bytes],
        user_factory: t.Callable[..., User],
    ) -> None:
        user_factory(user_id=42)
        content = make_csv("42,,,,,60,,,")
        old = batch.stage(
            content,
            quiz_id=test_quiz.quiz_id,
            mode=ImportMode.User,
            utcnow=clock(Now - datetime.timedelta(hours=30)),
            session=db_session,
        )
        recent = batch.stage(
            content,
            quiz_id=test_quiz.quiz_id,
            mode=ImportMode.User,
            utcnow=clock(Now - datetime.timedelta(hours=2)),
            session=db_session,
        )
        assert old.import_id is not None and recent.import_id is not None

        # the configured default is 24 hours
        assert batch.purge(utcnow=clock(Now), session=db_session) == 1
        assert batch.purge(datetime.timedelta(hours=1), utcnow=clock(Now), session=db_session) == 1

        with db_session.begin():
            assert storage.batch.get(old.import_id, session=db_session) is None
            assert storage.batch.get(recent.import_id, session=db_session) is None
