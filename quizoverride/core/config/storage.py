import typing as t

import pydantic as p

from .base import BaseSettings


class DatabaseSettings(BaseSettings):
    driver: t.Literal["postgresql+psycopg", "sqlite+pysqlite"] = "postgresql+psycopg"
    host: p.IPvAnyAddress | str | None = None
    port: int | None = None
    # for sqlite this is a file path, or ":memory:"
    database: str
    echo: bool = False


class PersistentSettings(BaseSettings):
    database: DatabaseSettings


class StorageSettings(BaseSettings):
    persistent: PersistentSettings
