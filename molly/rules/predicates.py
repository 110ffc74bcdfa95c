from __future__ import annotations

from collections.abc import Sized
from numbers import Number
from typing import Any, Callable

from ..sentinel import ABSENT
from .types import pattern_matches


PredicateFn = Callable[..., bool]


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def predicate_is_present(value: Any) -> bool:
    return value is not ABSENT


def predicate_is_absent(value: Any) -> bool:
    return value is ABSENT


def predicate_non_empty(value: Any) -> bool:
    if value is ABSENT or value is None:
        return False
    if isinstance(value, Sized):
        return len(value) > 0
    return True


def predicate_min_length(value: Any, length: int) -> bool:
    return isinstance(value, Sized) and len(value) >= length


def predicate_max_length(value: Any, length: int) -> bool:
    return isinstance(value, Sized) and len(value) <= length


def predicate_between(value: Any, low: Any, high: Any) -> bool:
    if not _is_number(value):
        return False
    return low <= value <= high


def predicate_positive(value: Any) -> bool:
    return _is_number(value) and value > 0


def predicate_non_negative(value: Any) -> bool:
    return _is_number(value) and value >= 0


def predicate_matches(value: Any, pattern: str) -> bool:
    return pattern_matches(pattern, value)


PREDICATES: dict[str, PredicateFn] = {
    "is_present": predicate_is_present,
    "is_absent": predicate_is_absent,
    "non_empty": predicate_non_empty,
    "min_length": predicate_min_length,
    "max_length": predicate_max_length,
    "between": predicate_between,
    "positive": predicate_positive,
    "non_negative": predicate_non_negative,
    "matches": predicate_matches,
}


def get_predicate(name: str) -> PredicateFn | None:
    """Look up a named predicate (case-insensitive, None-safe)."""
    return PREDICATES.get((name or "").strip().lower())
