"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from molly import ABSENT, InvalidPropertyValue, Model, accessor, mutator, unsetter, validator
from molly.rules.predicates import predicate_min_length


class Point(Model):
    """Two literals, no identity keys."""

    NAMES = ("x", "y")
    RULES = {"x": "int", "y": "int"}


class Person(Model):
    """Identity by email, one computed enumerable property with its own mutator."""

    NAMES = ("first", "last", "email", "age")
    KEYS = ("email",)
    ENUMS = ("first", "last", "email", "full_name")
    RULES = {
        "first": ["str", (predicate_min_length, 1)],
        "last": ["str", (predicate_min_length, 1)],
        "email": ["str", r"[^@\s]+@[^@\s]+"],
        "age": [(lambda v: v is ABSENT or isinstance(v, int)), (lambda v: v is ABSENT or 0 <= v <= 150)],
        "full_name": "str",
    }

    @accessor("full_name")
    def _full_name(self):
        first = self._get_literal("first")
        last = self._get_literal("last")
        if first is ABSENT or last is ABSENT:
            return ABSENT
        return f"{first} {last}"

    @mutator("full_name")
    def _set_full_name(self, value):
        self._require_valid("full_name", value)
        first, _, last = value.partition(" ")
        self._require_valid("first", first)
        self._require_valid("last", last)
        self._set_literal("first", first)
        self._set_literal("last", last)

    @unsetter("full_name")
    def _unset_full_name(self):
        self._set_literal("first", ABSENT)
        self._set_literal("last", ABSENT)


class Reading(Model):
    """Custom validator that owns the decision for `celsius`."""

    NAMES = ("sensor", "celsius")
    KEYS = ("sensor",)
    RULES = {
        "sensor": "str",
        # Never consulted while the validator below is registered.
        "celsius": False,
    }

    @validator("celsius")
    def _valid_celsius(self, value):
        return isinstance(value, (int, float)) and not isinstance(value, bool) and value >= -273.15


class Account(Model):
    """A write-only virtual property and a non-enumerable literal."""

    NAMES = ("owner", "secret_hash")
    KEYS = ("owner",)
    ENUMS = ("owner",)
    RULES = {
        "owner": "str",
        "secret_hash": "str",
    }

    @mutator("password")
    def _set_password(self, value):
        if not isinstance(value, str) or len(value) < 4:
            raise InvalidPropertyValue(property="password", value="***")
        self._set_literal("secret_hash", f"hash:{len(value)}")


@pytest.fixture
def point() -> Point:
    return Point({"x": 1, "y": 2})


@pytest.fixture
def person() -> Person:
    return Person({"first": "Ada", "last": "Lovelace", "email": "ada@example.org", "age": 36})


@pytest.fixture
def reading() -> Reading:
    return Reading({"sensor": "t-1", "celsius": 21.5})
