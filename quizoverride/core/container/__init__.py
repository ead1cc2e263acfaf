__all__ = [
    "BootConfiguration",
    "QuizOverrideContainer",
    "StorageContainer",
]

from .quizoverride import BootConfiguration, QuizOverrideContainer
from .storage import StorageContainer
