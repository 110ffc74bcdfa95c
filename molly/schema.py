"""
Per-model schema descriptors.

A Schema is built once for each Model subclass, when the class is defined, and
shared by every instance of that class. It records the literal, identity and
enumerable property names, the coerced rule table, and one PropertySpec per
known property naming the custom handlers (if any) registered for it.

Handlers are registered with decorators rather than discovered by method name:

    class Person(Model):
        NAMES = ("first", "last")

        @accessor("full_name")
        def _full_name(self):
            return f"{self._get_literal('first')} {self._get_literal('last')}"
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable

from .errors import SchemaError
from .rules.schema import Rule, coerce_rules

logger = logging.getLogger(__name__)

_HOOKS_ATTR = "__molly_hooks__"


def _hook(kind: str, name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    if not isinstance(name, str) or not name:
        raise SchemaError(f"{kind} requires a property name")

    def decorate(fn: Callable[..., Any]) -> Callable[..., Any]:
        hooks = getattr(fn, _HOOKS_ATTR, ())
        setattr(fn, _HOOKS_ATTR, (*hooks, (kind, name)))
        return fn

    return decorate


def accessor(name: str):
    """Register a method computing the value of `name` (called with no arguments)."""
    return _hook("accessor", name)


def mutator(name: str):
    """Register a method storing a value for `name`; it must validate before storing."""
    return _hook("mutator", name)


def unsetter(name: str):
    """Register a method restoring `name` to its empty state."""
    return _hook("unsetter", name)


def validator(name: str):
    """Register a method deciding validity of a candidate value for `name`."""
    return _hook("validator", name)


@dataclass(frozen=True)
class PropertySpec:
    name: str
    accessor: Callable[..., Any] | None = None
    mutator: Callable[..., Any] | None = None
    unsetter: Callable[..., Any] | None = None
    validator: Callable[..., Any] | None = None
    rules: tuple[Rule, ...] | None = None
    literal: bool = False
    enumerable: bool = False


@dataclass(frozen=True)
class Schema:
    model: str
    names: tuple[str, ...]
    keys: tuple[str, ...] = ()
    enums: tuple[str, ...] = ()
    properties: Mapping[str, PropertySpec] = field(default_factory=lambda: MappingProxyType({}))

    def lookup(self, name: str) -> PropertySpec | None:
        return self.properties.get(name)

    def is_literal(self, name: str) -> bool:
        return name in self.properties and self.properties[name].literal

    def is_enumerable(self, name: str) -> bool:
        return name in self.properties and self.properties[name].enumerable

    def rules_for(self, name: str) -> tuple[Rule, ...] | None:
        spec = self.properties.get(name)
        return spec.rules if spec is not None else None


def _name_list(value: Any, label: str, model: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise SchemaError(f"{model}.{label} must be a list of property names")

    names = tuple(value)
    for n in names:
        if not isinstance(n, str) or not n:
            raise SchemaError(f"{model}.{label} contains an invalid property name: {n!r}")

    seen: set[str] = set()
    dupes = [n for n in names if n in seen or seen.add(n)]
    if dupes:
        raise SchemaError(f"{model}.{label} declares {', '.join(dupes)} more than once")
    return names


def _collect_hooks(cls: type) -> dict[str, dict[str, Callable[..., Any]]]:
    """
    Find registered handlers along the MRO.

    A subclass registration for the same (kind, property) overrides the base's.
    Redefining a base handler's attribute replaces all of that attribute's
    registrations with the new definition's (none, if it is undecorated).
    """
    found: dict[tuple[str, str], tuple[str, Callable[..., Any]]] = {}
    for klass in reversed(cls.__mro__):
        local: set[tuple[str, str]] = set()
        for attr, raw in vars(klass).items():
            shadowed = [key for key, (owner, _) in found.items() if owner == attr]
            for key in shadowed:
                del found[key]

            for kind, prop in getattr(raw, _HOOKS_ATTR, ()):
                if (kind, prop) in local:
                    raise SchemaError(f"{klass.__name__} registers more than one {kind} for {prop!r}")
                local.add((kind, prop))
                found[(kind, prop)] = (attr, raw)

    hooks: dict[str, dict[str, Callable[..., Any]]] = {}
    for (kind, prop), (_, fn) in found.items():
        hooks.setdefault(prop, {})[kind] = fn
    return hooks


def build_schema(cls: type) -> Schema:
    """Build the schema for a model class from its NAMES/KEYS/ENUMS/RULES and handlers."""
    model = cls.__name__
    names = _name_list(getattr(cls, "NAMES", ()), "NAMES", model)
    keys = _name_list(getattr(cls, "KEYS", ()), "KEYS", model)
    declared_enums = getattr(cls, "ENUMS", None)
    enums = names if declared_enums is None else _name_list(declared_enums, "ENUMS", model)

    stray_keys = [k for k in keys if k not in names]
    if stray_keys:
        raise SchemaError(f"{model}.KEYS must be literal properties: {', '.join(stray_keys)}")

    hooks = _collect_hooks(cls)

    stray_enums = [e for e in enums if e not in names and "accessor" not in hooks.get(e, {})]
    if stray_enums:
        raise SchemaError(f"{model}.ENUMS must be literal or have an accessor: {', '.join(stray_enums)}")

    raw_rules = getattr(cls, "RULES", None) or {}
    if not isinstance(raw_rules, Mapping):
        raise SchemaError(f"{model}.RULES must be a mapping of property name to rules")

    known = set(names) | set(enums) | set(hooks)
    stray_rules = [r for r in raw_rules if r not in known]
    if stray_rules:
        raise SchemaError(f"{model}.RULES names unknown properties: {', '.join(map(str, stray_rules))}")

    ordered = list(names) + [e for e in enums if e not in names] + [h for h in hooks if h not in names and h not in enums]
    properties: dict[str, PropertySpec] = {}
    for name in ordered:
        handlers = hooks.get(name, {})
        properties[name] = PropertySpec(
            name=name,
            accessor=handlers.get("accessor"),
            mutator=handlers.get("mutator"),
            unsetter=handlers.get("unsetter"),
            validator=handlers.get("validator"),
            rules=coerce_rules(raw_rules[name]) if name in raw_rules else None,
            literal=name in names,
            enumerable=name in enums,
        )

    schema = Schema(
        model=model,
        names=names,
        keys=keys,
        enums=enums,
        properties=MappingProxyType(properties),
    )
    logger.debug(
        "built schema for %s: names=%s keys=%s enums=%s handlers=%s",
        model,
        names,
        keys,
        enums,
        sorted(hooks),
    )
    return schema
