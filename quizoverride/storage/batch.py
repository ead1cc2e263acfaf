from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from quizoverride.core import di
from quizoverride.model import ImportBatch, ImportID, ImportMode

from . import Session
from .table import override_imports


def get(import_id: ImportID, session: Session = di.Provide["storage.persistent.session"]) -> ImportBatch | None:
    stmt = sqla.select(override_imports.__table__).where(override_imports.import_id == import_id)
    row = session.execute(stmt).mappings().one_or_none()
    return ImportBatch(**row) if row else None


def create(
    *,
    quiz_id: int,
    mode: ImportMode,
    delimiter: str,
    encoding: str,
    content: bytes,
    create_time: datetime.datetime,
    passwords: t.Mapping[int, str] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> ImportBatch:
    row = override_imports(
        import_id=ImportID(),
        quiz_id=quiz_id,
        mode=mode,
        delimiter=delimiter,
        encoding=encoding,
        content=content,
        passwords={str(k): v for k, v in (passwords or {}).items()},
        create_time=create_time,
    )
    session.add(row)
    session.flush()
    return get(row.import_id, session=session)  # type: ignore[return-value]


def delete(import_id: ImportID, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    """Delete a staged import.

    Returns:
        True if the import was deleted, False if not found
    """
    stmt = sqla.delete(override_imports).where(override_imports.import_id == import_id)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]


def delete_older_than(
    cutoff: datetime.datetime, session: Session = di.Provide["storage.persistent.session"]
) -> int:
    """Delete staged imports created before `cutoff`; returns how many went."""
    stmt = sqla.delete(override_imports).where(override_imports.create_time < cutoff)
    result = session.execute(stmt)
    return int(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]
