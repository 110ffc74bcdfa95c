from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

import yaml

from .errors import SchemaError
from .model import Model
from .rules.predicates import get_predicate
from .rules.schema import CallableRule, MembershipRule, Rule, TypeRule, coerce_rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelDef:
    model: str
    names: tuple[str, ...]
    keys: tuple[str, ...] = ()
    enums: tuple[str, ...] | None = None
    rules: dict[str, list[Rule]] = field(default_factory=dict)
    description: str | None = None


def _str_list(value: Any, label: str, model: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
        raise SchemaError(f"{model}: {label} must be a list of property names")
    return tuple(v.strip() for v in value)


def _data_rule(raw: Any, prop: str, model: str) -> Rule:
    """
    Interpret one rule written as data.

    Strings are type names or patterns, booleans are constants, and tables
    select a named predicate, a membership list, an explicit type, or a pattern.
    """
    if isinstance(raw, (str, bool)):
        return coerce_rule(raw)

    if not isinstance(raw, dict):
        raise SchemaError(f"{model}.{prop}: unsupported rule {raw!r}")

    if "predicate" in raw:
        name = str(raw.get("predicate", "")).strip()
        fn = get_predicate(name)
        if fn is None:
            raise SchemaError(f"{model}.{prop}: unknown predicate {name!r}")
        args = raw.get("args", [])
        if not isinstance(args, list):
            raise SchemaError(f"{model}.{prop}: predicate args must be a list")
        return CallableRule(fn, tuple(args))

    if "one_of" in raw:
        values = raw["one_of"]
        if not isinstance(values, list):
            raise SchemaError(f"{model}.{prop}: one_of must be a list")
        return MembershipRule(tuple(values))

    if "type" in raw:
        return TypeRule(str(raw["type"]).strip())

    if "pattern" in raw:
        try:
            return TypeRule(re.compile(str(raw["pattern"])))
        except re.error as e:
            raise SchemaError(f"{model}.{prop}: invalid pattern: {e}") from e

    raise SchemaError(f"{model}.{prop}: rule table needs one of predicate, one_of, type, pattern")


def parse_schema(data: Mapping[str, Any]) -> ModelDef:
    """Build a ModelDef from an already-parsed schema document."""
    if not isinstance(data, Mapping):
        raise SchemaError("schema document must be a mapping")

    model = str(data.get("model", "")).strip()
    if not model or not model.isidentifier():
        raise SchemaError("model is required and must be a valid class name")

    if "names" not in data:
        raise SchemaError(f"{model}: names is required")
    names = _str_list(data.get("names"), "names", model)
    keys = _str_list(data.get("keys", []), "keys", model)

    enums_raw = data.get("enums")
    enums = None if enums_raw is None else _str_list(enums_raw, "enums", model)

    rules_raw = data.get("rules", {}) or {}
    if not isinstance(rules_raw, Mapping):
        raise SchemaError(f"{model}: rules must be a table of property name to rules")

    rules: dict[str, list[Rule]] = {}
    for prop, raw in rules_raw.items():
        entries = raw if isinstance(raw, list) else [raw]
        rules[str(prop)] = [_data_rule(entry, str(prop), model) for entry in entries]

    description = data.get("description")
    return ModelDef(
        model=model,
        names=names,
        keys=keys,
        enums=enums,
        rules=rules,
        description=description if isinstance(description, str) else None,
    )


def load_schema(path: str | Path) -> ModelDef:
    """
    Load a model schema from a TOML or YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        SchemaError: If the file cannot be parsed or describes an invalid schema
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".toml":
        with open(path, "rb") as f:
            try:
                data = tomllib.load(f)
            except Exception as e:
                raise SchemaError(f"Failed to parse schema TOML: {e}") from e
    elif suffix in {".yaml", ".yml"}:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise SchemaError(f"Failed to parse schema YAML: {e}") from e
    else:
        raise SchemaError(f"Unsupported schema file type: {path.suffix or path.name}")

    definition = parse_schema(data)
    logger.debug("loaded schema %s from %s", definition.model, path)
    return definition


def declare_model(source: ModelDef | Mapping[str, Any] | str | Path, base: type[Model] = Model) -> type[Model]:
    """Create a Model subclass from a schema file, document, or ModelDef."""
    if isinstance(source, ModelDef):
        definition = source
    elif isinstance(source, Mapping):
        definition = parse_schema(source)
    else:
        definition = load_schema(source)

    namespace: dict[str, Any] = {
        "__module__": __name__,
        "__doc__": definition.description,
        "NAMES": definition.names,
        "KEYS": definition.keys,
        "ENUMS": definition.enums,
        "RULES": {prop: list(rules) for prop, rules in definition.rules.items()},
    }
    return type(definition.model, (base,), namespace)
