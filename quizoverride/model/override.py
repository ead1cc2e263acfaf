from __future__ import annotations

import datetime

import pydantic as p

from .base import ValueObject
from .id import OverrideID


class Override(ValueObject):
    """Schedule exception for one user or one group on one quiz."""

    override_id: OverrideID | None = None
    quiz_id: int
    user_id: int | None = None
    group_id: int | None = None

    time_open: datetime.datetime | None = None
    time_close: datetime.datetime | None = None
    time_limit: int | None = p.Field(default=None, ge=0)
    attempts: int | None = p.Field(default=None, ge=0)
    password: str | None = None

    @p.model_validator(mode="after")
    def check_subject(self) -> Override:
        if self.user_id is not None and self.group_id is not None:
            raise ValueError("an override applies to a user or a group, not both")
        return self

    @property
    def subject_id(self) -> int | None:
        return self.user_id if self.user_id is not None else self.group_id
