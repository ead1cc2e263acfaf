__all__ = [
    "BootConfiguration",
    "LoggingProvider",
    "QuizOverrideContainer",
    "Secrets",
    "Settings",
    "TimestampProvider",
    "di",
]

from . import di
from .config import Secrets, Settings
from .container import BootConfiguration, QuizOverrideContainer
from .provider import LoggingProvider, TimestampProvider
