from __future__ import annotations

import collections
import logging
import typing as t

from quizoverride import storage
from quizoverride.model import CommitResult, ImportAction, ImportRow
from quizoverride.storage import Session

logger = logging.getLogger(__name__)


class CommitExecutor(object):
    """Applies a confirmed preview to storage, all rows or none."""

    def __init__(self, session: Session):
        self.session = session

    def commit(self, rows: t.Sequence[ImportRow]) -> CommitResult:
        """Apply `rows` inside one transaction.

        Row errors are not checked here. Any failure while applying a row rolls
        back every row of the call and is reported in the result, not raised.

        Raises:
            ValueError: If a skip row was passed in; nothing is applied
        """
        if skipped := [row.csv_row for row in rows if row.action is ImportAction.Skip]:
            raise ValueError(f"skip rows cannot be committed (rows {', '.join(map(str, skipped))})")

        counts: collections.Counter[ImportAction] = collections.Counter()
        try:
            with self.session.begin():
                for row in rows:
                    self.apply(row)
                    counts[row.action] += 1
        except Exception as e:
            message = e.args[0] if isinstance(e, KeyError) else str(e)
            logger.exception("override import rolled back", extra={"rows": len(rows), "error": message})
            return CommitResult(success=False, error=message)

        result = CommitResult(
            success=True,
            inserted=counts[ImportAction.Insert],
            updated=counts[ImportAction.Update],
            deleted=counts[ImportAction.Delete],
        )
        logger.info(
            "override import committed",
            extra={
                "inserted": result.inserted,
                "updated": result.updated,
                "deleted": result.deleted,
            },
        )
        return result

    def apply(self, row: ImportRow) -> None:
        override = row.override
        match row.action:
            case ImportAction.Insert:
                storage.override.create(override, session=self.session)
            case ImportAction.Update:
                if override.override_id is None:
                    raise KeyError(f"row {row.csv_row} updates an override without an id")
                storage.override.update(
                    override.override_id,
                    time_open=override.time_open,
                    time_close=override.time_close,
                    time_limit=override.time_limit,
                    attempts=override.attempts,
                    password=override.password,
                    session=self.session,
                )
            case ImportAction.Delete:
                if override.override_id is None or not storage.override.delete(
                    override.override_id, session=self.session
                ):
                    raise KeyError(f"Override {override.override_id} not found")
            case ImportAction.Skip:
                raise ValueError(f"row {row.csv_row} is a skip row")
