"""Helpers for narrowing untyped JSON/TOML payloads.

Used wherever relsync ingests data it does not control: the persisted
release store, the config file and the GitHub releases API.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def as_obj_list(obj: object) -> ObjList | None:
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value, stripped.

    Returns None if missing, not a str, or empty after stripping.
    """
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_int(table: Mapping[str, object], key: str) -> int | None:
    """Get an int value; bools are rejected even though they subclass int."""
    value = table.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def get_str_list(table: Mapping[str, object], key: str) -> list[str] | None:
    """Get a list made only of strings, or None."""
    items = as_obj_list(table.get(key))
    if items is None:
        return None
    if not all(isinstance(item, str) for item in items):
        return None
    return [cast(str, item) for item in items]


def get_command_list(table: Mapping[str, object], key: str) -> list[list[str]] | None:
    """Get a list of argv lists (``[["composer", "install"], ...]``), or None."""
    items = as_obj_list(table.get(key))
    if items is None:
        return None
    out: list[list[str]] = []
    for item in items:
        argv = as_obj_list(item)
        if argv is None or not argv or not all(isinstance(a, str) for a in argv):
            return None
        out.append([cast(str, a) for a in argv])
    return out
