import datetime
import enum

from sqlalchemy import CheckConstraint, ForeignKey, JSON, MetaData, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass

from quizoverride.model import ImportID, ImportMode, OverrideID

from .type import EpochTimestampType, ShortUUIDKeyType, ValueEnumMapper

metadata = MetaData()


class base(MappedAsDataclass, DeclarativeBase):
    metadata = metadata
    type_annotation_map = {
        OverrideID: ShortUUIDKeyType(OverrideID),
        ImportID: ShortUUIDKeyType(ImportID),
        datetime.datetime: EpochTimestampType(),
        enum.Enum: ValueEnumMapper,
        dict[str, str]: JSON,
    }


# Course structure, owned by the LMS; we only read these


class users(base):
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    username: Mapped[str] = mapped_column(unique=True)
    idnumber: Mapped[str] = mapped_column(default="")


class quizzes(base):
    __tablename__ = "quizzes"

    quiz_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    course_id: Mapped[int] = mapped_column(index=True)
    name: Mapped[str]


class groups(base):
    __tablename__ = "groups"

    group_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    course_id: Mapped[int] = mapped_column(index=True)
    name: Mapped[str]
    idnumber: Mapped[str] = mapped_column(default="")


# Overrides


class quiz_overrides(base):
    __tablename__ = "quiz_overrides"
    __table_args__ = (
        UniqueConstraint("quiz_id", "user_id"),
        UniqueConstraint("quiz_id", "group_id"),
        CheckConstraint("user_id IS NULL OR group_id IS NULL", name="quiz_overrides_one_subject"),
    )

    override_id: Mapped[OverrideID] = mapped_column(primary_key=True)
    quiz_id: Mapped[int] = mapped_column(ForeignKey("quizzes.quiz_id", ondelete="CASCADE"))
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.user_id", ondelete="CASCADE"), default=None)
    group_id: Mapped[int | None] = mapped_column(ForeignKey("groups.group_id", ondelete="CASCADE"), default=None)
    time_open: Mapped[datetime.datetime | None] = mapped_column(default=None)
    time_close: Mapped[datetime.datetime | None] = mapped_column(default=None)
    time_limit: Mapped[int | None] = mapped_column(default=None)
    attempts: Mapped[int | None] = mapped_column(default=None)
    password: Mapped[str | None] = mapped_column(default=None)


# Staged uploads between preview and commit


class override_imports(base):
    __tablename__ = "override_imports"

    import_id: Mapped[ImportID] = mapped_column(primary_key=True)
    quiz_id: Mapped[int] = mapped_column(ForeignKey("quizzes.quiz_id", ondelete="CASCADE"))
    mode: Mapped[ImportMode]
    delimiter: Mapped[str]
    encoding: Mapped[str]
    content: Mapped[bytes]
    create_time: Mapped[datetime.datetime] = mapped_column(index=True)
    # JSON object keys are strings: csv row number -> generated password
    passwords: Mapped[dict[str, str]] = mapped_column(default_factory=dict)
