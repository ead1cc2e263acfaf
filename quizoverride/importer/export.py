from __future__ import annotations

import csv
import datetime
import io
import logging

from quizoverride import storage
from quizoverride.core import di
from quizoverride.model import ImportMode, Override, Quiz
from quizoverride.storage import Session

from .reader import Delimiters
from .validator import format_timestamp

logger = logging.getLogger(__name__)


def _subject_cells(override: Override, mode: ImportMode, session: Session) -> tuple[str, str, str]:
    match mode:
        case ImportMode.User:
            assert override.user_id is not None
            user = storage.user.get(override.user_id, session=session)
            return str(override.user_id), user.idnumber if user else "", user.username if user else ""
        case ImportMode.Group:
            assert override.group_id is not None
            group = storage.group.get(override.group_id, session=session)
            return str(override.group_id), group.idnumber if group else "", group.name if group else ""


def export_overrides(
    quiz: Quiz,
    mode: ImportMode,
    *,
    template: bool = False,
    delimiter: str = "comma",
    tz: datetime.tzinfo = datetime.UTC,
    session: Session = di.Provide["storage.persistent.session"],
) -> str:
    """Write the quiz's overrides as an import file.

    With `template`, only the header is written. Times are rendered in `tz`.
    The output imports back unchanged as a set of updates.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=Delimiters[delimiter], lineterminator="\n")
    writer.writerow(mode.header)
    if template:
        return buf.getvalue()

    with session.begin():
        overrides = storage.override.find(quiz_id=quiz.quiz_id, mode=mode, session=session)
        for override in overrides:
            writer.writerow((
                *_subject_cells(override, mode, session),
                format_timestamp(override.time_open.astimezone(tz)) if override.time_open else "",
                format_timestamp(override.time_close.astimezone(tz)) if override.time_close else "",
                "" if override.time_limit is None else str(override.time_limit),
                "" if override.attempts is None else str(override.attempts),
                override.password or "",
                "0",
            ))

    logger.info(
        "exported overrides",
        extra={
            "quiz_id": quiz.quiz_id,
            "mode": mode,
            "overrides": len(overrides),
        },
    )
    return buf.getvalue()
