"""
Rule variants.

Raw rule declarations (callables, tuples, sets, strings, booleans) are coerced
once into one of these variants; the engine then dispatches on the variant
instead of probing the raw value at every check.
"""

from __future__ import annotations

import re
from collections.abc import Set as AbstractSet
from dataclasses import dataclass
from typing import Any, Callable, Union


@dataclass(frozen=True)
class CallableRule:
    """Passes if predicate(value, *args) is truthy."""

    predicate: Callable[..., Any]
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class MembershipRule:
    """Passes if the value is one of the listed values."""

    values: tuple[Any, ...]


@dataclass(frozen=True)
class TypeRule:
    """
    Passes if the value is an instance of the named class, satisfies the named
    pseudotype, or (strings only) fully matches the target as a pattern.
    """

    target: str | type | re.Pattern[str]


@dataclass(frozen=True)
class ConstantRule:
    """Ends evaluation: True passes the whole rule list, False fails it."""

    value: bool


@dataclass(frozen=True)
class UnknownRule:
    """A declaration with no interpretation; always fails."""

    raw: Any


Rule = Union[CallableRule, MembershipRule, TypeRule, ConstantRule, UnknownRule]

_VARIANTS = (CallableRule, MembershipRule, TypeRule, ConstantRule, UnknownRule)


def _callable_leading(raw: Any) -> bool:
    return (
        isinstance(raw, (list, tuple))
        and len(raw) > 0
        and callable(raw[0])
        and not isinstance(raw[0], type)
    )


def coerce_rule(raw: Any) -> Rule:
    """
    Interpret one raw declaration.

    Priority: callable (alone or leading a tuple/list of extra args), then
    membership collection, then type name / class / compiled pattern, then boolean.
    Class objects are callable but always read as type rules.
    """
    if isinstance(raw, _VARIANTS):
        return raw

    if isinstance(raw, (type, re.Pattern)):
        return TypeRule(raw)

    if callable(raw):
        return CallableRule(raw)

    if _callable_leading(raw):
        return CallableRule(raw[0], tuple(raw[1:]))

    if isinstance(raw, (list, tuple, AbstractSet)):
        return MembershipRule(tuple(raw))

    if isinstance(raw, str):
        return TypeRule(raw)

    if isinstance(raw, bool):
        return ConstantRule(raw)

    return UnknownRule(raw)


def coerce_rules(raw: Any) -> tuple[Rule, ...]:
    """A list is a list of rules; anything else is a single rule."""
    if isinstance(raw, tuple) and raw and all(isinstance(r, _VARIANTS) for r in raw):
        return raw
    if isinstance(raw, list):
        return tuple(coerce_rule(r) for r in raw)
    return (coerce_rule(raw),)
