from __future__ import annotations

import enum

import pydantic as p

from .base import BaseModel, ValueObject, WithCtime
from .id import ImportID
from .override import Override

# the override-value columns, shared by both import modes, in file order
ValueColumns: tuple[str, ...] = ("timeopen", "timeclose", "timelimit", "attempts", "password", "generate")


class ImportMode(enum.Enum):
    User = "user"
    Group = "group"

    @property
    def id_field(self) -> str:
        return f"{self.value}id"

    @property
    def subject_field(self) -> str:
        """The Override attribute holding the subject id."""
        return f"{self.value}_id"

    @property
    def header(self) -> tuple[str, ...]:
        return (f"{self.value}id", f"{self.value}idnumber", f"{self.value}name", *ValueColumns)


class ImportAction(enum.Enum):
    Insert = "insert"
    Update = "update"
    Delete = "delete"
    Skip = "skip"


class ImportRow(ValueObject):
    csv_row: int
    action: ImportAction
    override: Override
    generate: bool = False
    cells: dict[str, str] = {}
    errors: dict[str, str] = {}

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class ImportBatch(WithCtime):
    """An uploaded file held between preview and commit."""

    import_id: ImportID
    quiz_id: int
    mode: ImportMode
    delimiter: str
    encoding: str
    content: bytes
    # passwords synthesized for the preview, by csv row, reused on commit
    passwords: dict[int, str] = {}


class ImportPreview(BaseModel):
    import_id: ImportID | None = None
    quiz_id: int
    mode: ImportMode
    processed: bool
    header_error: str | None = None
    rows: list[ImportRow] = []

    @p.computed_field  # type: ignore[prop-decorator]
    @property
    def can_import(self) -> bool:
        return self.processed and not any(row.has_errors for row in self.rows)

    @property
    def is_empty(self) -> bool:
        return self.processed and not self.rows


class CommitResult(BaseModel):
    success: bool
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    error: str | None = None
