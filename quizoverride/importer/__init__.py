__all__ = [
    "CSVImportReader",
    "CommitExecutor",
    "EmptyFileError",
    "FileReadError",
    "ImportNotFoundError",
    "NoDataError",
    "OverrideImportError",
    "OverrideImportProcess",
    "QuizNotFoundError",
    "export_overrides",
]

from .commit import CommitExecutor
from .errors import EmptyFileError, FileReadError, ImportNotFoundError, NoDataError, OverrideImportError, \
    QuizNotFoundError
from .export import export_overrides
from .process import OverrideImportProcess
from .reader import CSVImportReader
