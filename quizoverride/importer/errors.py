"""Exceptions for override imports.

Only structural problems are raised; per-row problems are collected on the
row instead.
"""


class OverrideImportError(Exception):
    """Error during an override import."""

    pass


class FileReadError(OverrideImportError):
    """The uploaded file could not be read as delimited text."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message if line is None else f"line {line}: {message}")
        self.line = line


class EmptyFileError(FileReadError):
    """The uploaded file has no header line."""

    pass


class NoDataError(FileReadError):
    """The uploaded file has a header but no rows."""

    pass


class ImportNotFoundError(OverrideImportError):
    """A staged import does not exist, or has already been committed or purged."""

    pass


class QuizNotFoundError(OverrideImportError):
    """The quiz an import targets does not exist."""

    pass
