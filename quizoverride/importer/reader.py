from __future__ import annotations

import codecs
import csv
import io
import logging
import typing as t

from quizoverride.core.config.importer import DelimiterName

from .errors import EmptyFileError, FileReadError, NoDataError

logger = logging.getLogger(__name__)

Delimiters: dict[str, str] = {
    "comma": ",",
    "semicolon": ";",
    "colon": ":",
    "tab": "\t",
}


class CSVImportReader(object):
    """Delimited text held in memory, split into a header and rows.

    The whole file is parsed up front so that structural problems surface
    before any row is looked at. Cells are returned exactly as written;
    only header names are trimmed.
    """

    def __init__(self, content: bytes, *, delimiter: DelimiterName | str = "comma", encoding: str = "UTF-8"):
        if delimiter not in Delimiters:
            raise FileReadError(f"unknown delimiter {delimiter!r}, expected one of {', '.join(Delimiters)}")
        self.delimiter = delimiter
        self.encoding = encoding

        text = self._decode(content, encoding)
        lines = [line for line in self._split(text, Delimiters[delimiter]) if line[1]]
        if not lines:
            raise EmptyFileError("the file is empty")

        _, header = lines[0]
        self._columns = tuple(name.strip() for name in header)
        self._rows: list[tuple[str, ...]] = []
        for lineno, cells in lines[1:]:
            if len(cells) != len(self._columns):
                raise FileReadError(
                    f"expected {len(self._columns)} fields, found {len(cells)}",
                    line=lineno,
                )
            self._rows.append(tuple(cells))
        if not self._rows:
            raise NoDataError("the file has a header but no rows")

        logger.debug(
            "read import file",
            extra={
                "delimiter": delimiter,
                "encoding": encoding,
                "columns": self._columns,
                "rows": len(self._rows),
            },
        )

    @staticmethod
    def _decode(content: bytes, encoding: str) -> str:
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise FileReadError(f"unknown encoding {encoding!r}") from e
        try:
            text = content.decode(encoding)
        except UnicodeDecodeError as e:
            raise FileReadError(f"the file is not valid {encoding}: {e.reason} at byte {e.start}") from e
        return text.removeprefix("\ufeff")

    @staticmethod
    def _split(text: str, delimiter: str) -> t.Iterator[tuple[int, list[str]]]:
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
        try:
            for cells in reader:
                yield reader.line_num, cells
        except csv.Error as e:
            raise FileReadError(str(e), line=reader.line_num) from e

    def columns(self) -> tuple[str, ...]:
        return self._columns

    def __iter__(self) -> t.Iterator[tuple[str, ...]]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)
