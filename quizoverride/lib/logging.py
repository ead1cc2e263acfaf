import logging
import string
import sys
import textwrap
import typing as t

import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]

from . import json
from .json import JSONEncoder, JSONValue

ReservedKeys = frozenset({
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "log_color",
    "message",
    "module",
    "msecs",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
})


class LogJSONEncoder(JSONEncoder):
    def default(self, o: t.Any) -> JSONValue:
        try:
            return super().default(o)
        except TypeError:
            return repr(o)


class ExtraFormatter(logging.Formatter):
    """Delegates to `base`, then appends the record's `extra` fields as JSON.

    Configured through dictConfig, e.g.::

        (): quizoverride.lib.logging.ExtraFormatter
        base: ext://colorlog.ColoredFormatter
    """

    def __init__(
        self,
        base: type[logging.Formatter],
        format: str | None = None,
        datefmt: str | None = None,
        indent: bool | None = None,
        style: t.Literal["%", "{", "$"] = "%",
        validate: bool = True,
        **kwargs: t.Any,
    ):
        self.base = base(format, datefmt=datefmt, style=style, validate=validate, **kwargs)
        self.indent = bool(indent)

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if "\n" in msg:
            # hang continuation lines under the first one
            formatted = self.base.format(record)
            idx = formatted.find(msg)
            indent = " " * len([c for c in formatted[:idx] if c in string.printable])
            line, *lines = msg.splitlines()
            body = textwrap.indent("\n".join(lines), prefix=indent)
            record.msg = record.message = f"{line}\n{body}"
            record.args = None
        message = self.base.format(record)

        d = record.__dict__
        extra = {k: d[k] for k in d.keys() - ReservedKeys}
        if not extra:
            return message

        js = json.dumps(extra, sort_keys=True, indent=(4 if self.indent else None), cls=LogJSONEncoder)
        do_color = not getattr(self.base, "no_color", False)
        if do_color and sys.stderr.isatty():
            js = pygments.highlight(js, JsonLexer(), Terminal256Formatter())
        return message + " " + js.strip()

    def __getattr__(self, name: str) -> t.Any:
        return getattr(self.base, name)
