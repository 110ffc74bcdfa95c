from __future__ import annotations

import re
from typing import Any

from .schema import (
    CallableRule,
    ConstantRule,
    MembershipRule,
    Rule,
    TypeRule,
    UnknownRule,
    coerce_rules,
)
from .types import pattern_matches, type_matches


def strict_equal(a: Any, b: Any) -> bool:
    """
    Equality that does not cross types (1 != 1.0 != True), at any depth.

    Lists and tuples compare item by item, mappings key by key (keys strictly
    too), and sets element by element.
    """
    if a is b:
        return True
    if type(a) is not type(b):
        return False

    if isinstance(a, (list, tuple)):
        return len(a) == len(b) and all(strict_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, dict):
        if len(a) != len(b):
            return False
        keys = {k: k for k in b}
        for key, value in a.items():
            if key not in keys or not strict_equal(key, keys[key]):
                return False
            if not strict_equal(value, b[key]):
                return False
        return True

    if isinstance(a, (set, frozenset)):
        return len(a) == len(b) and all(any(strict_equal(x, y) for y in b) for x in a)

    return bool(a == b)


def _member_equal(candidate: Any, value: Any) -> bool:
    from ..model import Model

    if isinstance(candidate, Model) or isinstance(value, Model):
        return isinstance(candidate, Model) and candidate.same(value)
    return strict_equal(candidate, value)


def _check_type(value: Any, target: str | type | re.Pattern[str]) -> bool:
    if isinstance(target, type):
        return isinstance(value, target)
    if isinstance(target, re.Pattern):
        return pattern_matches(target, value)
    return type_matches(value, target) or pattern_matches(target, value)


def check_rule(value: Any, rule: Rule) -> bool:
    """Check a single (already coerced) rule."""
    if isinstance(rule, CallableRule):
        return bool(rule.predicate(value, *rule.args))

    if isinstance(rule, MembershipRule):
        return any(_member_equal(candidate, value) for candidate in rule.values)

    if isinstance(rule, TypeRule):
        return _check_type(value, rule.target)

    if isinstance(rule, ConstantRule):
        return rule.value

    if isinstance(rule, UnknownRule):
        return False

    raise TypeError(f"not a rule: {rule!r}")


def evaluate(value: Any, rules: Any) -> bool:
    """
    Check a value against one or more rules.

    Every rule must pass, in declared order; the first failure ends evaluation.
    A boolean rule ends evaluation with its own value, so `True` accepts the
    value regardless of later rules and `False` rejects it. An empty list of
    rules accepts anything.
    """
    for rule in coerce_rules(rules):
        if isinstance(rule, ConstantRule):
            return rule.value
        if not check_rule(value, rule):
            return False
    return True
