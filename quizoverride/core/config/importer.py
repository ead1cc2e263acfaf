import typing as t

import pydantic as p

from .base import BaseSettings

DelimiterName = t.Literal["comma", "semicolon", "colon", "tab"]


class ImporterSettings(BaseSettings):
    """Defaults for override imports; the CLI may override delimiter and encoding per file."""

    delimiter: DelimiterName = "comma"
    encoding: str = "UTF-8"
    generated_password_length: int = p.Field(default=20, ge=8)
    # staged files older than this are removed by `override purge`
    batch_ttl_hours: int = p.Field(default=24, gt=0)
