"""
Type-tag and pattern checks used by type rules.

A type rule names either a pseudotype ("str", "number", "mapping", ...), a class
(bare builtin name, or dotted path into a module that is already imported), or,
as a last resort, a regular expression that string values must fully match.
None of these helpers raise for a name that cannot be resolved or a pattern
that does not compile, and none of them import modules.
"""

from __future__ import annotations

import builtins
import re
import sys
from collections.abc import Iterable, Mapping, Sequence
from functools import lru_cache
from numbers import Number
from typing import Any, Callable


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, bytes, bool, int, float))


PSEUDOTYPES: dict[str, Callable[[Any], bool]] = {
    "str": lambda v: isinstance(v, str),
    "string": lambda v: isinstance(v, str),
    "bytes": lambda v: isinstance(v, bytes),
    "int": _is_int,
    "integer": _is_int,
    "float": lambda v: isinstance(v, float),
    "number": _is_number,
    "numeric": _is_number,
    "bool": lambda v: isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "list": lambda v: isinstance(v, list),
    "tuple": lambda v: isinstance(v, tuple),
    "dict": lambda v: isinstance(v, dict),
    "set": lambda v: isinstance(v, (set, frozenset)),
    "mapping": lambda v: isinstance(v, Mapping),
    "sequence": lambda v: isinstance(v, Sequence) and not isinstance(v, (str, bytes)),
    "iterable": lambda v: isinstance(v, Iterable),
    "callable": callable,
    "scalar": _is_scalar,
    "none": lambda v: v is None,
    "null": lambda v: v is None,
    "mixed": lambda v: True,
    "any": lambda v: True,
}


def resolve_class(name: str) -> type | None:
    """
    Resolve a class from a bare builtin name or a dotted path into a module
    that is already imported. Never imports anything.

    Returns None when the name does not resolve to a class.
    """
    name = (name or "").strip()
    if not name:
        return None

    if "." not in name:
        found = getattr(builtins, name, None)
        return found if isinstance(found, type) else None

    module_name, _, attr = name.rpartition(".")
    module = sys.modules.get(module_name)
    if module is None:
        return None
    found = getattr(module, attr, None)
    return found if isinstance(found, type) else None


def type_matches(value: Any, name: str) -> bool:
    """Check value against a pseudotype tag, falling back to class lookup."""
    check = PSEUDOTYPES.get(name.strip().lower())
    if check is not None:
        return bool(check(value))

    cls = resolve_class(name)
    return cls is not None and isinstance(value, cls)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error:
        return None


def pattern_matches(pattern: str | re.Pattern[str], value: Any) -> bool:
    """
    Check whether a string value fully matches a pattern.

    Non-string values never match. A pattern that does not compile is a
    non-match, not an error.
    """
    if not isinstance(value, str):
        return False
    compiled = pattern if isinstance(pattern, re.Pattern) else _compile(pattern)
    if compiled is None:
        return False
    return compiled.fullmatch(value) is not None
