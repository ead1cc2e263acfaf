"""Tests for quizoverride.importer.reconciler module."""

from __future__ import annotations

import typing as t

import pytest
from sqlalchemy.orm import Session

from quizoverride.importer import reconciler
from quizoverride.model import Group, ImportAction, ImportMode, Override, OverrideID, Quiz, User


class TestReconcile(object):
    """Tests for reconciler.reconcile()."""

    def test_finds_user_override(
        self,
        db_session: Session,
        test_quiz: Quiz,
        user_factory: t.Callable[..., User],
        override_factory: t.Callable[..., Override],
    ) -> None:
        user = user_factory()
        override = override_factory(user_id=user.user_id, attempts=1)

        with db_session.begin():
            found = reconciler.reconcile(test_quiz.quiz_id, ImportMode.User, str(user.user_id), session=db_session)

        assert found == override.override_id

    def test_finds_group_override(
        self,
        db_session: Session,
        test_quiz: Quiz,
        group_factory: t.Callable[..., Group],
        override_factory: t.Callable[..., Override],
    ) -> None:
        group = group_factory()
        override = override_factory(group_id=group.group_id, attempts=1)

        with db_session.begin():
            found = reconciler.reconcile(test_quiz.quiz_id, ImportMode.Group, group.group_id, session=db_session)
            as_user = reconciler.reconcile(test_quiz.quiz_id, ImportMode.User, group.group_id, session=db_session)

        assert found == override.override_id
        assert as_user is None

    def test_no_override(self, db_session: Session, test_quiz: Quiz, user_factory: t.Callable[..., User]) -> None:
        user = user_factory()

        with db_session.begin():
            assert reconciler.reconcile(test_quiz.quiz_id, ImportMode.User, user.user_id, session=db_session) is None

    @pytest.mark.parametrize("subject_id", ["", None, "abc", "-4"])
    def test_unusable_subject_is_not_looked_up(self, subject_id: str | None) -> None:
        """An empty or non-numeric id returns None without touching storage."""
        assert reconciler.reconcile(7, ImportMode.User, subject_id, session=t.cast(Session, None)) is None


class TestClassify(object):
    """Tests for reconciler.classify()."""

    @pytest.mark.parametrize(
        "values_empty,existing,expected",
        [
            (True, OverrideID(), ImportAction.Delete),
            (True, None, ImportAction.Skip),
            (False, OverrideID(), ImportAction.Update),
            (False, None, ImportAction.Insert),
        ],
    )
    def test_classify(self, values_empty: bool, existing: OverrideID | None, expected: ImportAction) -> None:
        assert reconciler.classify(values_empty, existing) is expected


class TestMaterializePassword(object):
    """Tests for reconciler.materialize_password()."""

    def test_generated(self) -> None:
        password, generated = reconciler.materialize_password("", True, {}, 20)

        assert generated is True
        assert password is not None and len(password) == 20
        assert password == password.strip()

    def test_generate_wins_over_literal(self) -> None:
        password, generated = reconciler.materialize_password("literal", True, {}, 20)

        assert generated is True
        assert password != "literal"

    def test_reuses_earlier_password(self) -> None:
        assert reconciler.materialize_password("", True, {}, 20, generated="fromthepreview") == (
            "fromthepreview",
            True,
        )

    @pytest.mark.parametrize("flag", [False, None])
    def test_literal(self, flag: bool | None) -> None:
        assert reconciler.materialize_password("secret", flag, {}, 20) == ("secret", False)

    def test_empty_is_none(self) -> None:
        assert reconciler.materialize_password("", False, {}, 20) == (None, False)

    def test_flag_with_error_is_not_honoured(self) -> None:
        assert reconciler.materialize_password("secret", None, {"generate": "bad"}, 20) == ("secret", False)

    def test_invalid_password_is_dropped(self) -> None:
        assert reconciler.materialize_password(" secret", False, {"password": "bad"}, 20) == (None, False)

    def test_generated_passwords_differ(self) -> None:
        assert len({reconciler.generate_password(20) for _ in range(10)}) == 10
        assert set(reconciler.generate_password(200)) <= set(reconciler.PasswordAlphabet)


class TestBuildOverride(object):
    """Tests for reconciler.build_override()."""

    def test_subject_column_follows_mode(self) -> None:
        user = reconciler.build_override(7, ImportMode.User, 42, attempts=1)
        group = reconciler.build_override(7, ImportMode.Group, 42, attempts=1)

        assert (user.user_id, user.group_id) == (42, None)
        assert (group.user_id, group.group_id) == (None, 42)
