from __future__ import annotations

import base64
import datetime
import enum
import json as pyjson
import pathlib
import typing as t

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]


def encode_bytes(obj: bytes) -> str:
    return base64.b64encode(obj).decode("utf8")


def encode_set(obj: set[t.Any]) -> list[t.Any]:
    return list(obj)


def encode_datetime(obj: datetime.date) -> str:
    return obj.isoformat()


def encode_enum(obj: enum.Enum) -> JSONValue:
    return obj.value


def encode_path(obj: pathlib.Path) -> str:
    return str(obj)


_encoders: dict[type, t.Callable[[t.Any], JSONValue]] = {
    bytes: encode_bytes,
    datetime.date: encode_datetime,
    enum.Enum: encode_enum,
    pathlib.Path: encode_path,
    set: encode_set,
    frozenset: encode_set,
}


class JSONEncoder(pyjson.JSONEncoder):
    """stdlib-compatible encoder that also understands pydantic models"""

    def get_encoders(self) -> dict[type, t.Callable[[t.Any], JSONValue]]:
        return _encoders

    def default(self, o: t.Any) -> JSONValue:
        if hasattr(o, "model_dump"):
            return o.model_dump(mode="json")

        encoders = self.get_encoders()
        for tp in encoders:
            if isinstance(o, tp):
                return encoders[tp](o)

        return pyjson.JSONEncoder.default(self, o)


def dumps(obj: t.Any, *, indent: int | str | None = None, sort_keys: bool = False, **kw: t.Any) -> str:
    kw.setdefault("cls", JSONEncoder)
    return pyjson.dumps(obj, indent=indent, sort_keys=sort_keys, **kw)


def loads(s: str | bytes | bytearray, **kw: t.Any) -> t.Any:
    return pyjson.loads(s, **kw)
