"""Tests for quizoverride.model."""

from __future__ import annotations

import datetime

from quizoverride.model import ImportBatch, ImportID, ImportMode


class TestImportBatch(object):
    def test_carries_its_create_time(self) -> None:
        created = datetime.datetime(2024, 3, 1, 12, 0, tzinfo=datetime.UTC)

        batch = ImportBatch(
            import_id=ImportID(),
            quiz_id=7,
            mode=ImportMode.User,
            delimiter="comma",
            encoding="UTF-8",
            content=b"userid\n42\n",
            create_time=created,
            passwords={"3": "s3cret"},  # pyright: ignore[reportArgumentType]
        )

        assert batch.create_time == created
        assert batch.passwords == {3: "s3cret"}
        assert batch.model_dump()["mode"] is ImportMode.User
