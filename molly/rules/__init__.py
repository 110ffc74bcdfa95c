"""Declarative rule evaluation (rules as data, predicates as code)."""

from .engine import check_rule, evaluate, strict_equal
from .predicates import PREDICATES, get_predicate
from .schema import (
    CallableRule,
    ConstantRule,
    MembershipRule,
    Rule,
    TypeRule,
    UnknownRule,
    coerce_rule,
    coerce_rules,
)
from .types import pattern_matches, resolve_class, type_matches

__all__ = [
    "evaluate",
    "check_rule",
    "strict_equal",
    "PREDICATES",
    "get_predicate",
    "Rule",
    "CallableRule",
    "MembershipRule",
    "TypeRule",
    "ConstantRule",
    "UnknownRule",
    "coerce_rule",
    "coerce_rules",
    "pattern_matches",
    "resolve_class",
    "type_matches",
]
