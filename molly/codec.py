"""
Literal serialization codecs.

A codec turns a model's literal name -> value mapping into text and back. Values
that JSON and YAML cannot express natively are written as single-key tagged
mappings and restored on decode:

    {"$absent": true}                        the absence sentinel
    {"$tuple": [...]}                        tuple
    {"$set": [...]} / {"$frozenset": [...]}  set / frozenset
    {"$dict": [[key, value], ...]}           mapping with a non-string or "$" key
    {"$model": "pkg.mod.Name", "literals": {...}}   nested model

Plain mappings never carry a "$" key, so a decoded mapping with one is always
a tag.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

import yaml

from .errors import InvalidSerialization
from .sentinel import ABSENT

ABSENT_TAG = "$absent"
TUPLE_TAG = "$tuple"
SET_TAG = "$set"
FROZENSET_TAG = "$frozenset"
DICT_TAG = "$dict"
MODEL_TAG = "$model"


class Codec(Protocol):
    def encode(self, data: dict[str, Any]) -> str:
        ...

    def decode(self, text: str) -> dict[str, Any]:
        ...


def _plain_key(key: Any) -> bool:
    return isinstance(key, str) and not key.startswith("$")


def pack(value: Any) -> Any:
    """Rewrite a literal value into JSON/YAML-safe data, tagging what would be lost."""
    from .model import Model, model_name

    if value is ABSENT:
        return {ABSENT_TAG: True}
    if isinstance(value, Model):
        return {MODEL_TAG: model_name(type(value)), "literals": pack(value.__getstate__())}
    if isinstance(value, tuple):
        return {TUPLE_TAG: [pack(v) for v in value]}
    if isinstance(value, frozenset):
        return {FROZENSET_TAG: [pack(v) for v in value]}
    if isinstance(value, set):
        return {SET_TAG: [pack(v) for v in value]}
    if isinstance(value, list):
        return [pack(v) for v in value]
    if isinstance(value, dict):
        if all(_plain_key(k) for k in value):
            return {k: pack(v) for k, v in value.items()}
        return {DICT_TAG: [[pack(k), pack(v)] for k, v in value.items()]}
    return value


def unpack(data: Any) -> Any:
    """Inverse of pack()."""
    if isinstance(data, list):
        return [unpack(v) for v in data]
    if not isinstance(data, dict):
        return data
    if all(_plain_key(k) for k in data):
        return {k: unpack(v) for k, v in data.items()}
    if set(data) == {MODEL_TAG, "literals"}:
        return _unpack_model(data[MODEL_TAG], data["literals"])
    if len(data) != 1:
        raise InvalidSerialization(f"malformed tagged value: {sorted(map(str, data))}")

    (tag, payload), = data.items()
    if tag == ABSENT_TAG and payload is True:
        return ABSENT
    if not isinstance(payload, list):
        raise InvalidSerialization(f"malformed tagged value: {tag!r}")
    try:
        if tag == TUPLE_TAG:
            return tuple(unpack(v) for v in payload)
        if tag == SET_TAG:
            return {unpack(v) for v in payload}
        if tag == FROZENSET_TAG:
            return frozenset(unpack(v) for v in payload)
        if tag == DICT_TAG:
            return {unpack(k): unpack(v) for k, v in payload}
    except (TypeError, ValueError) as e:
        raise InvalidSerialization(f"malformed tagged value {tag!r}: {e}") from e
    raise InvalidSerialization(f"unknown tag: {tag!r}")


def _unpack_model(name: Any, literals: Any) -> Any:
    from .model import model_class

    cls = model_class(name) if isinstance(name, str) else None
    if cls is None:
        raise InvalidSerialization(f"unknown model type: {name!r}")
    instance = cls.__new__(cls)
    instance.__setstate__(unpack(literals))
    return instance


def _require_mapping(data: Any, text: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidSerialization(
            f"serialized data must be a mapping, got {type(data).__name__}",
            serialized=text,
        )
    return data


class JsonCodec:
    """Compact JSON text."""

    def encode(self, data: dict[str, Any]) -> str:
        return json.dumps(pack(data), separators=(",", ":"))

    def decode(self, text: str) -> dict[str, Any]:
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise InvalidSerialization(f"failed to parse serialized JSON: {e}", serialized=text) from e
        return _require_mapping(unpack(data), text)


class YamlCodec:
    """Block-style YAML text, written and read with the safe dumper and loader."""

    def encode(self, data: dict[str, Any]) -> str:
        return yaml.safe_dump(pack(data), sort_keys=False, allow_unicode=True)

    def decode(self, text: str) -> dict[str, Any]:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise InvalidSerialization(f"failed to parse serialized YAML: {e}", serialized=text) from e
        return _require_mapping(unpack(data), text)


DEFAULT_CODEC: Codec = JsonCodec()


def get_codec(name: str) -> Codec:
    """Look up a codec by name ("json" or "yaml")."""
    key = (name or "").strip().lower()
    if key == "json":
        return JsonCodec()
    if key in {"yaml", "yml"}:
        return YamlCodec()
    raise ValueError(f"unknown codec: {name!r}")
