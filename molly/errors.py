"""
Error taxonomy for modelable objects.

Every failure a model raises is a ModelableError; callers can catch the base
class or a specific kind. NoSuchProperty inherits both access directions so
that code catching "not readable" or "not writable" also sees unknown names.
"""

from __future__ import annotations

from typing import Any


class ModelableError(Exception):
    """Base class for model access, validation and serialization failures."""

    default_message = "modelable error"

    def __init__(self, message: str | None = None, *, property: str | None = None, **context: Any) -> None:
        self.property = property
        self.context = context
        super().__init__(message or self._format())

    def _format(self) -> str:
        if self.property is None:
            return self.default_message
        return f"{self.default_message}: {self.property!r}"


class PropertyNotReadable(ModelableError):
    default_message = "property not readable"


class PropertyNotWritable(ModelableError):
    default_message = "property not writable"


class NoSuchProperty(PropertyNotReadable, PropertyNotWritable):
    default_message = "no such property"


class InvalidPropertyValue(ModelableError):
    default_message = "invalid property value"

    def __init__(self, message: str | None = None, *, property: str | None = None, value: Any = None, **context: Any) -> None:
        self.value = value
        super().__init__(message, property=property, value=value, **context)

    def _format(self) -> str:
        return f"invalid value for {self.property!r}: {self.value!r}"


class InvalidSerialization(ModelableError):
    default_message = "invalid modelable serialization"

    def __init__(
        self,
        message: str | None = None,
        *,
        expected: list[str] | None = None,
        actual: list[str] | None = None,
        **context: Any,
    ) -> None:
        self.expected = list(expected or [])
        self.actual = list(actual or [])
        super().__init__(message, expected=self.expected, actual=self.actual, **context)

    def _format(self) -> str:
        if not self.expected and not self.actual:
            return self.default_message
        missing = sorted(set(self.expected) - set(self.actual))
        extra = sorted(set(self.actual) - set(self.expected))
        return f"{self.default_message} (missing={missing}, unexpected={extra})"


class SchemaError(ValueError):
    """A model declaration or schema document is malformed."""
