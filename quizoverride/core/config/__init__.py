__all__ = [
    "DatabaseSettings",
    "ImporterSettings",
    "LoggingSettings",
    "PostgresqlSecrets",
    "Secrets",
    "Settings",
    "StorageSettings",
]

from .importer import ImporterSettings
from .logging import LoggingSettings
from .secrets import PostgresqlSecrets, Secrets
from .settings import Settings
from .storage import DatabaseSettings, StorageSettings
