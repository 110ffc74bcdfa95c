"""
Base class for declarative domain models (data objects).

A model declares its schema as class attributes:

- NAMES: literal property names, stored on each instance.
- KEYS:  literal properties that identify the model. Instances with the same key
         values are the same entity. With no keys, every instance is distinct.
- ENUMS: literal and/or computed properties exposed on iteration, in order.
         Defaults to NAMES.
- RULES: validation rules per property (see molly.rules.engine.evaluate).

Everything else (access, validation, equality, iteration, serialization) is
derived from that schema. Per-property exceptions to the generic behaviour are
registered with the accessor/mutator/unsetter/validator decorators; a registered
handler always wins over the generic path for its property, and its result (or
exception) is final.
"""

from __future__ import annotations

import json
import logging
import weakref
from collections.abc import Mapping
from enum import IntFlag
from typing import Any, ClassVar, Sequence, TypeVar

from .codec import DEFAULT_CODEC, Codec, get_codec
from .errors import (
    InvalidPropertyValue,
    InvalidSerialization,
    NoSuchProperty,
    PropertyNotReadable,
    PropertyNotWritable,
)
from .rules.engine import evaluate, strict_equal
from .schema import PropertySpec, Schema, build_schema
from .sentinel import ABSENT

logger = logging.getLogger(__name__)

M = TypeVar("M", bound="Model")

# Model classes by module-qualified name, for restoring nested models.
_MODELS: weakref.WeakValueDictionary[str, type[Model]] = weakref.WeakValueDictionary()


class State(IntFlag):
    """Validity snapshot of a model instance (bitmask)."""

    INCOMPLETE = 1  # some invalid property holds no value
    INVALID = 1 << 1  # some invalid property holds a value
    VALID = 1 << 2


class PropertyIterator:
    """
    Cursor over a model's enumerable (name, value) pairs.

    Each call to iter(model) gets its own cursor, so nested or interleaved
    traversals of one instance do not disturb each other.
    """

    def __init__(self, model: Model) -> None:
        self._model = model
        self._names = model.__schema__.enums
        self._position = 0

    def __iter__(self) -> PropertyIterator:
        return self

    def __next__(self) -> tuple[str, Any]:
        if self._position >= len(self._names):
            raise StopIteration
        name = self._names[self._position]
        self._position += 1
        return name, self._model.get(name)

    def rewind(self) -> None:
        self._position = 0


class Model:
    NAMES: ClassVar[Sequence[str]] = ()
    KEYS: ClassVar[Sequence[str]] = ()
    ENUMS: ClassVar[Sequence[str] | None] = None
    RULES: ClassVar[Mapping[str, Any]] = {}

    __schema__: ClassVar[Schema]

    # Mutable, compared structurally.
    __hash__ = None  # type: ignore[assignment]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__schema__ = build_schema(cls)
        _MODELS[model_name(cls)] = cls

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._literals: dict[str, Any] = {name: ABSENT for name in self.__schema__.names}
        if data is None:
            return
        if not isinstance(data, Mapping):
            raise TypeError(f"{type(self).__name__} expects a mapping, got {type(data).__name__}")
        for name, value in data.items():
            self.set(name, value)

    # ==================================================================
    # Schema introspection
    # ==================================================================

    @classmethod
    def literal_properties(cls) -> list[str]:
        return list(cls.__schema__.names)

    @classmethod
    def identifiable_properties(cls) -> list[str]:
        return list(cls.__schema__.keys)

    @classmethod
    def enumerable_properties(cls) -> list[str]:
        """Property names in the order iteration and to_dict() produce them."""
        return list(cls.__schema__.enums)

    def _spec(self, name: str) -> PropertySpec:
        spec = self.__schema__.lookup(name)
        if spec is None:
            raise NoSuchProperty(property=name, model=type(self).__name__)
        return spec

    # ==================================================================
    # Property access
    # ==================================================================

    def get(self, name: str) -> Any:
        """
        Read a property.

        Computed properties call their accessor. Literal properties return the
        stored value, or ABSENT if none has been set.

        Raises:
            NoSuchProperty: name is unknown to the schema
            PropertyNotReadable: name is known but write-only
        """
        spec = self._spec(name)
        if spec.accessor is not None:
            return spec.accessor(self)
        if spec.literal or spec.enumerable:
            return self._literals.get(name, ABSENT)
        raise PropertyNotReadable(property=name, model=type(self).__name__)

    def set(self, name: str, value: Any) -> None:
        """
        Write a property.

        A registered mutator handles the write itself (and must validate).
        Otherwise the value is validated and stored on the literal as given.

        Raises:
            NoSuchProperty: name is unknown to the schema
            PropertyNotWritable: name is neither literal nor has a mutator
            InvalidPropertyValue: value fails validation
        """
        spec = self._spec(name)
        if spec.mutator is not None:
            spec.mutator(self, value)
            return

        if not spec.literal:
            raise PropertyNotWritable(property=name, model=type(self).__name__)

        if not self.validate(name, value):
            logger.debug("rejected %s.%s = %r", type(self).__name__, name, value)
            raise InvalidPropertyValue(property=name, value=value, model=type(self).__name__)

        self._literals[name] = value

    def unset(self, name: str) -> None:
        """
        Restore a property to its empty state.

        Uses a registered unsetter if there is one; otherwise writes ABSENT,
        which must itself pass validation.
        """
        spec = self._spec(name)
        if spec.unsetter is not None:
            spec.unsetter(self)
            return
        if spec.mutator is None and not spec.literal:
            raise PropertyNotWritable(property=name, model=type(self).__name__)
        self.set(name, ABSENT)

    def validate(self, name: str, value: Any) -> bool:
        """
        Check whether `value` would be a valid value for `name`.

        A registered validator decides alone (declared rules are not consulted
        unless the validator applies them via _rules_pass). Otherwise declared
        rules are evaluated; a known property without rules accepts any value.

        Raises:
            NoSuchProperty: name is unknown to the schema
            PropertyNotWritable: name is only a read-only, non-enumerable computed property
        """
        spec = self._spec(name)
        if spec.validator is not None:
            return bool(spec.validator(self, value))
        if spec.rules is not None:
            return evaluate(value, spec.rules)
        if spec.literal or spec.enumerable or spec.mutator is not None:
            return True
        raise PropertyNotWritable(property=name, model=type(self).__name__)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        spec = self.__schema__.lookup(name)
        return spec is not None and (spec.enumerable or spec.accessor is not None)

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __delitem__(self, name: str) -> None:
        self.unset(name)

    # ==================================================================
    # Literal storage (for use by handlers)
    # ==================================================================

    def _get_literal(self, name: str) -> Any:
        if name not in self._literals:
            raise NoSuchProperty(property=name, model=type(self).__name__)
        return self._literals[name]

    def _set_literal(self, name: str, value: Any) -> None:
        """Store a literal without validation."""
        if name not in self._literals:
            raise NoSuchProperty(property=name, model=type(self).__name__)
        self._literals[name] = value

    def _rules_pass(self, name: str, value: Any) -> bool:
        """Apply the declared RULES for a property, ignoring any validator."""
        rules = self.__schema__.rules_for(name)
        return True if rules is None else evaluate(value, rules)

    def _require_valid(self, name: str, value: Any) -> None:
        """Raise InvalidPropertyValue unless validate(name, value) passes."""
        if not self.validate(name, value):
            logger.debug("rejected %s.%s = %r", type(self).__name__, name, value)
            raise InvalidPropertyValue(property=name, value=value, model=type(self).__name__)

    # ==================================================================
    # Equality, identity, state
    # ==================================================================

    def equals(self, other: Any) -> bool:
        """Same concrete type and every literal strictly equal."""
        if type(other) is not type(self):
            return False
        return all(strict_equal(self._literals[n], other._literals[n]) for n in self.__schema__.names)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return self.equals(other)

    def same(self, other: Any) -> bool:
        """
        Whether `other` represents the same entity, judged by KEYS only.

        A model without KEYS has no notion of identity: no instance is the
        same as any other, or as itself.
        """
        keys = self.__schema__.keys
        if not keys or type(other) is not type(self):
            return False
        return all(strict_equal(self._literals[k], other._literals[k]) for k in keys)

    def identity(self) -> dict[str, Any]:
        return {key: self._literals[key] for key in self.__schema__.keys}

    def state(self, *, first_only: bool = False) -> State:
        """
        Validate every literal as currently stored.

        Returns VALID, or a combination of INCOMPLETE (an invalid literal is
        ABSENT) and INVALID (an invalid literal holds a value). With
        first_only=True, stops at the first invalid literal and reports only
        its cause.
        """
        state = State(0)
        for name in self.__schema__.names:
            value = self._literals[name]
            if self.validate(name, value):
                continue
            state |= State.INCOMPLETE if value is ABSENT else State.INVALID
            if first_only:
                break
        return state or State.VALID

    def is_incomplete(self) -> bool:
        return State.INCOMPLETE in self.state()

    def is_invalid(self) -> bool:
        return State.INVALID in self.state()

    def is_valid(self) -> bool:
        return self.state() == State.VALID

    # ==================================================================
    # Enumeration and JSON projection
    # ==================================================================

    def __iter__(self) -> PropertyIterator:
        return PropertyIterator(self)

    def items(self) -> PropertyIterator:
        return PropertyIterator(self)

    def to_dict(self) -> dict[str, Any]:
        """Enumerable properties as a name -> value mapping, in ENUMS order."""
        return {name: value for name, value in self}

    @classmethod
    def from_dict(cls: type[M], data: Mapping[str, Any]) -> M:
        """
        Build an instance by writing each entry in order.

        Entries for read-only computed properties (accessor, no mutator) are
        skipped, so that the output of to_dict() can be read back.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"{cls.__name__}.from_dict expects a mapping, got {type(data).__name__}")
        instance = cls()
        for name, value in data.items():
            spec = cls.__schema__.lookup(name)
            if spec is not None and spec.accessor is not None and spec.mutator is None and not spec.literal:
                continue
            instance.set(name, value)
        return instance

    def to_json(self, **kwargs: Any) -> str:
        """JSON text of to_dict(); ABSENT becomes null, nested models their to_dict()."""
        return json.dumps(self.to_dict(), default=_json_default, **kwargs)

    @classmethod
    def from_json(cls: type[M], text: str) -> M:
        return cls.from_dict(json.loads(text))

    # ==================================================================
    # Literal serialization
    # ==================================================================

    def serialize(self, codec: Codec | str | None = None) -> str:
        """Encode exactly the literal properties (no computed ones)."""
        return _codec(codec).encode(dict(self._literals))

    @classmethod
    def deserialize(cls: type[M], text: str, codec: Codec | str | None = None) -> M:
        """
        Restore an instance from serialize() output.

        The restored names must equal NAMES exactly. Values are stored as given,
        without validation; call state() to check them.
        """
        instance = cls.__new__(cls)
        instance._restore(_codec(codec).decode(text))
        return instance

    def _restore(self, data: Any) -> None:
        names = self.__schema__.names
        actual = list(data) if isinstance(data, Mapping) else []
        if not isinstance(data, Mapping) or set(actual) != set(names):
            logger.debug(
                "serialized keys %s do not match %s.NAMES %s",
                actual,
                type(self).__name__,
                list(names),
            )
            raise InvalidSerialization(expected=list(names), actual=actual, model=type(self).__name__)
        self._literals = {name: data[name] for name in names}

    def __getstate__(self) -> dict[str, Any]:
        return dict(self._literals)

    def __setstate__(self, state: Any) -> None:
        self._restore(state)

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={value!r}" for name, value in self._literals.items())
        return f"{type(self).__name__}({fields})"


def model_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def model_class(name: str) -> type[Model] | None:
    """The most recently defined Model subclass with this module-qualified name."""
    return _MODELS.get(name)


Model.__schema__ = build_schema(Model)
_MODELS[model_name(Model)] = Model


def _codec(codec: Codec | str | None) -> Codec:
    if codec is None:
        return DEFAULT_CODEC
    if isinstance(codec, str):
        return get_codec(codec)
    return codec


def _json_default(value: Any) -> Any:
    if value is ABSENT:
        return None
    if isinstance(value, Model):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
