"""Initial schema for quiz overrides and staged imports

Revision ID: 001_initial
Revises:
Create Date: 2026-10-16

"""

import typing as t

from alembic import op
from sqlalchemy.schema import CheckConstraint, Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import BigInteger, Enum, Integer, JSON, LargeBinary, String

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None


def upgrade() -> None:
    # Course structure, mirrored from the LMS
    op.create_table(
        "users",
        Column("user_id", Integer, primary_key=True, autoincrement=False),
        Column("username", String, unique=True, nullable=False),
        Column("idnumber", String, nullable=False, server_default=""),
    )

    op.create_table(
        "quizzes",
        Column("quiz_id", Integer, primary_key=True, autoincrement=False),
        Column("course_id", Integer, nullable=False, index=True),
        Column("name", String, nullable=False),
    )

    op.create_table(
        "groups",
        Column("group_id", Integer, primary_key=True, autoincrement=False),
        Column("course_id", Integer, nullable=False, index=True),
        Column("name", String, nullable=False),
        Column("idnumber", String, nullable=False, server_default=""),
    )

    # Overrides; times are epoch seconds
    op.create_table(
        "quiz_overrides",
        Column("override_id", String(22), primary_key=True),
        Column("quiz_id", Integer, ForeignKey("quizzes.quiz_id", ondelete="CASCADE"), nullable=False),
        Column("user_id", Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=True),
        Column("group_id", Integer, ForeignKey("groups.group_id", ondelete="CASCADE"), nullable=True),
        Column("time_open", BigInteger, nullable=True),
        Column("time_close", BigInteger, nullable=True),
        Column("time_limit", Integer, nullable=True),
        Column("attempts", Integer, nullable=True),
        Column("password", String, nullable=True),
        UniqueConstraint("quiz_id", "user_id"),
        UniqueConstraint("quiz_id", "group_id"),
        CheckConstraint("user_id IS NULL OR group_id IS NULL", name="quiz_overrides_one_subject"),
    )

    # Uploads staged between preview and commit
    op.create_table(
        "override_imports",
        Column("import_id", String(22), primary_key=True),
        Column("quiz_id", Integer, ForeignKey("quizzes.quiz_id", ondelete="CASCADE"), nullable=False),
        Column("mode", Enum("user", "group", name="importmode"), nullable=False),
        Column("delimiter", String, nullable=False),
        Column("encoding", String, nullable=False),
        Column("content", LargeBinary, nullable=False),
        Column("create_time", BigInteger, nullable=False, index=True),
        Column("passwords", JSON, nullable=False),
    )


def downgrade() -> None:
    op.drop_table("override_imports")
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS importmode")
    op.drop_table("quiz_overrides")
    op.drop_table("groups")
    op.drop_table("quizzes")
    op.drop_table("users")
