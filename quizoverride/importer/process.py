from __future__ import annotations

import collections
import logging
import typing as t

from quizoverride import storage
from quizoverride.model import CommitResult, ImportAction, ImportID, ImportMode, ImportPreview, ImportRow, Quiz, \
    ValueColumns
from quizoverride.storage import Session

from . import reconciler, validator
from .commit import CommitExecutor
from .reader import CSVImportReader

logger = logging.getLogger(__name__)


class OverrideImportProcess(object):
    """Turns the rows of one uploaded file into a preview, and commits it.

    `process()` reads through `session` and expects the caller to have begun
    a transaction; `import_overrides()` opens its own, so call it outside one.

    Usage:
        with session.begin():
            ok = process.process()
        if ok and process.can_import:
            process.import_overrides()
    """

    def __init__(
        self,
        reader: CSVImportReader,
        mode: ImportMode,
        quiz: Quiz,
        *,
        session: Session,
        password_length: int = 20,
        passwords: t.Mapping[int, str] | None = None,
    ):
        self.reader = reader
        self.mode = mode
        self.quiz = quiz
        self.session = session
        self.password_length = password_length
        self.passwords = dict(passwords or {})

        self.processed = False
        self.header_error: str | None = None
        self.rows: list[ImportRow] = []
        self.commit_result: CommitResult | None = None

    @property
    def can_import(self) -> bool:
        return self.processed and not any(row.has_errors for row in self.rows)

    @property
    def commit_error(self) -> str | None:
        return self.commit_result.error if self.commit_result else None

    def validate_header(self) -> bool:
        expected, found = self.mode.header, self.reader.columns()
        if found == expected:
            return True
        self.header_error = (
            f"Incorrect header for {self.mode.value} overrides: expected {','.join(expected)}, found {','.join(found)}"
        )
        logger.warning(
            "override import header mismatch",
            extra={
                "quiz_id": self.quiz.quiz_id,
                "mode": self.mode,
                "expected": expected,
                "found": found,
            },
        )
        return False

    def process(self) -> bool:
        """Validate and classify every row.

        Returns False only when the header is wrong, in which case no row is
        read; rows with errors still count as processed.
        """
        self.rows = []
        self.header_error = None
        self.processed = False
        if not self.validate_header():
            return False

        seen: dict[int, int] = {}
        for csv_row, cells in enumerate(self.reader, start=1):
            row = self.process_row(csv_row, cells, seen)
            if row is not None:
                self.rows.append(row)
        self.processed = True

        actions = collections.Counter(row.action.value for row in self.rows)
        logger.info(
            "processed override import",
            extra={
                "quiz_id": self.quiz.quiz_id,
                "mode": self.mode,
                "rows": len(self.rows),
                "invalid": sum(1 for row in self.rows if row.has_errors),
                "actions": dict(actions),
            },
        )
        return True

    def process_row(self, csv_row: int, cells: t.Sequence[str], seen: dict[int, int]) -> ImportRow | None:
        named = dict(zip(self.mode.header, cells))
        subject = cells[0]
        values = {column: named[column] for column in ValueColumns}
        id_field = self.mode.id_field

        lookup_error = None
        if self.mode is ImportMode.Group and subject == "" and named["groupname"] != "":
            subject, lookup_error = self.resolve_group(named["groupname"])

        errors = validator.validate(
            self.mode,
            subject,
            values["timeopen"],
            values["timeclose"],
            values["timelimit"],
            values["attempts"],
            values["password"],
            values["generate"],
            self.quiz.course_id,
            session=self.session,
        )
        if lookup_error is not None:
            errors[id_field] = lookup_error

        existing = reconciler.reconcile(self.quiz.quiz_id, self.mode, subject, session=self.session)
        action = reconciler.classify(not any(values.values()), existing)
        if action is ImportAction.Skip:
            logger.debug("skipping empty row", extra={"csv_row": csv_row, id_field: subject})
            return None

        subject_id = validator.parse_count(subject) if id_field not in errors else None
        if subject_id is not None:
            if subject_id in seen:
                noun = self.mode.value.capitalize()
                errors[id_field] = f"{noun} {subject_id} already appears on row {seen[subject_id]}"
            else:
                seen[subject_id] = csv_row

        password, generated = reconciler.materialize_password(
            values["password"],
            validator.parse_flag(values["generate"]),
            errors,
            self.password_length,
            generated=self.passwords.get(csv_row),
        )
        override = reconciler.build_override(
            self.quiz.quiz_id,
            self.mode,
            subject_id if id_field not in errors else None,
            override_id=existing,
            time_open=self._typed(values, errors, "timeopen", validator.parse_timestamp),
            time_close=self._typed(values, errors, "timeclose", validator.parse_timestamp),
            time_limit=self._typed(values, errors, "timelimit", validator.parse_count),
            attempts=self._typed(values, errors, "attempts", validator.parse_count),
            password=password,
        )

        if errors:
            logger.debug("row has errors", extra={"csv_row": csv_row, "errors": errors})
        return ImportRow(
            csv_row=csv_row,
            action=action,
            override=override,
            generate=generated,
            cells=named,
            errors=errors,
        )

    def resolve_group(self, name: str) -> tuple[str, str | None]:
        """The id of the course group named `name`, as a cell, or an error when not exactly one matches."""
        found = storage.group.find_by_name(name, course_id=self.quiz.course_id, session=self.session)
        if len(found) == 1:
            return str(found[0].group_id), None
        if not found:
            return "", f"No group named {name!r} in this course"
        ids = ", ".join(str(group.group_id) for group in found)
        return "", f"{len(found)} groups are named {name!r} ({ids}); give the group id instead"

    @staticmethod
    def _typed(
        values: dict[str, str], errors: dict[str, str], column: str, parse: t.Callable[[str], t.Any]
    ) -> t.Any:
        if column in errors or values[column] == "":
            return None
        return parse(values[column])

    def preview(self, import_id: ImportID | None = None) -> ImportPreview:
        return ImportPreview(
            import_id=import_id,
            quiz_id=self.quiz.quiz_id,
            mode=self.mode,
            processed=self.processed,
            header_error=self.header_error,
            rows=self.rows,
        )

    def import_overrides(self) -> bool:
        """Commit the processed rows in one transaction.

        Refuses, returning False, when processing failed or any row has errors.
        """
        if not self.can_import:
            logger.warning(
                "refusing to import overrides",
                extra={
                    "quiz_id": self.quiz.quiz_id,
                    "processed": self.processed,
                    "header_error": self.header_error,
                },
            )
            return False
        self.commit_result = CommitExecutor(self.session).commit(self.rows)
        return self.commit_result.success
