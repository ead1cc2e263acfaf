"""Handoff between previewing an upload and committing it.

An upload is staged under an `ImportID` together with the passwords its
preview synthesized. Confirming re-reads the staged file and validates it
again against current data before anything is written.
"""

from __future__ import annotations

import datetime
import logging

from quizoverride import storage
from quizoverride.core import di, TimestampProvider
from quizoverride.core.config import ImporterSettings
from quizoverride.model import CommitResult, ImportBatch, ImportID, ImportMode, ImportPreview, Quiz
from quizoverride.storage import Session

from .errors import ImportNotFoundError, QuizNotFoundError
from .process import OverrideImportProcess
from .reader import CSVImportReader

logger = logging.getLogger(__name__)


def _get_quiz(quiz_id: int, session: Session) -> Quiz:
    quiz = storage.quiz.get(quiz_id, session=session)
    if quiz is None:
        raise QuizNotFoundError(f"Quiz {quiz_id} does not exist")
    return quiz


def _get_batch(import_id: ImportID, session: Session) -> ImportBatch:
    batch = storage.batch.get(import_id, session=session)
    if batch is None:
        raise ImportNotFoundError(f"Import {import_id} does not exist or has already been committed")
    return batch


def _process_batch(batch: ImportBatch, settings: ImporterSettings, session: Session) -> OverrideImportProcess:
    reader = CSVImportReader(batch.content, delimiter=batch.delimiter, encoding=batch.encoding)
    process = OverrideImportProcess(
        reader,
        batch.mode,
        _get_quiz(batch.quiz_id, session),
        session=session,
        password_length=settings.generated_password_length,
        passwords=batch.passwords,
    )
    process.process()
    return process


def stage(
    content: bytes,
    *,
    quiz_id: int,
    mode: ImportMode,
    delimiter: str | None = None,
    encoding: str | None = None,
    settings: ImporterSettings = di.Provide["importer"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    session: Session = di.Provide["storage.persistent.session"],
) -> ImportPreview:
    """Read an upload, preview it, and stage it for confirmation.

    Only a file whose header is right is staged; the preview of any other
    has no import id.

    Raises:
        FileReadError: If the file cannot be read as delimited text
        QuizNotFoundError: If the quiz does not exist
    """
    delimiter = delimiter or settings.delimiter
    encoding = encoding or settings.encoding
    reader = CSVImportReader(content, delimiter=delimiter, encoding=encoding)

    with session.begin():
        process = OverrideImportProcess(
            reader,
            mode,
            _get_quiz(quiz_id, session),
            session=session,
            password_length=settings.generated_password_length,
        )
        if not process.process():
            return process.preview()

        batch = storage.batch.create(
            quiz_id=quiz_id,
            mode=mode,
            delimiter=delimiter,
            encoding=encoding,
            content=content,
            passwords={row.csv_row: row.override.password for row in process.rows if row.generate},
            create_time=utcnow(),
            session=session,
        )

    logger.info(
        "staged override import",
        extra={
            "import_id": batch.import_id,
            "quiz_id": quiz_id,
            "mode": mode,
            "rows": len(process.rows),
            "can_import": process.can_import,
        },
    )
    return process.preview(batch.import_id)


def preview(
    import_id: ImportID,
    *,
    settings: ImporterSettings = di.Provide["importer"],
    session: Session = di.Provide["storage.persistent.session"],
) -> ImportPreview:
    """Validate a staged import again, as it stands against current data."""
    with session.begin():
        batch = _get_batch(import_id, session)
        process = _process_batch(batch, settings, session)
    return process.preview(import_id)


def confirm(
    import_id: ImportID,
    *,
    settings: ImporterSettings = di.Provide["importer"],
    session: Session = di.Provide["storage.persistent.session"],
) -> CommitResult:
    """Commit a staged import, then drop it.

    The staged file is validated again first; if its header no longer
    matches or any row now has errors, nothing is written.

    Raises:
        ImportNotFoundError: If there is no such staged import
    """
    with session.begin():
        batch = _get_batch(import_id, session)
        process = _process_batch(batch, settings, session)

    if process.import_overrides():
        with session.begin():
            storage.batch.delete(import_id, session=session)
    if process.commit_result is not None:
        return process.commit_result

    invalid = sum(1 for row in process.rows if row.has_errors)
    return CommitResult(
        success=False,
        error=process.header_error or f"{invalid} row(s) have errors; fix the file and upload it again",
    )


def discard(import_id: ImportID, *, session: Session = di.Provide["storage.persistent.session"]) -> None:
    """Drop a staged import without committing it.

    Raises:
        ImportNotFoundError: If there is no such staged import
    """
    with session.begin():
        if not storage.batch.delete(import_id, session=session):
            raise ImportNotFoundError(f"Import {import_id} does not exist or has already been committed")
    logger.info("discarded override import", extra={"import_id": import_id})


def purge(
    older_than: datetime.timedelta | None = None,
    *,
    settings: ImporterSettings = di.Provide["importer"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Drop staged imports older than `older_than` (default: the configured TTL)."""
    if older_than is None:
        older_than = datetime.timedelta(hours=settings.batch_ttl_hours)
    cutoff = utcnow() - older_than
    with session.begin():
        count = storage.batch.delete_older_than(cutoff, session=session)
    logger.info("purged staged override imports", extra={"count": count, "cutoff": cutoff})
    return count
