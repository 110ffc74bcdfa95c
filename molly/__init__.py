"""molly - declarative schemas, validation and serialization for data objects."""

__version__ = "0.1.0"

from .codec import Codec, JsonCodec, YamlCodec
from .errors import (
    InvalidPropertyValue,
    InvalidSerialization,
    ModelableError,
    NoSuchProperty,
    PropertyNotReadable,
    PropertyNotWritable,
    SchemaError,
)
from .load import ModelDef, declare_model, load_schema, parse_schema
from .model import Model, PropertyIterator, State
from .rules import evaluate
from .schema import PropertySpec, Schema, accessor, mutator, unsetter, validator
from .sentinel import ABSENT, is_absent

__all__ = [
    "__version__",
    # Models
    "Model",
    "State",
    "PropertyIterator",
    "ABSENT",
    "is_absent",
    # Handlers
    "accessor",
    "mutator",
    "unsetter",
    "validator",
    # Schema
    "Schema",
    "PropertySpec",
    "ModelDef",
    "parse_schema",
    "load_schema",
    "declare_model",
    # Rules
    "evaluate",
    # Codecs
    "Codec",
    "JsonCodec",
    "YamlCodec",
    # Errors
    "ModelableError",
    "NoSuchProperty",
    "PropertyNotReadable",
    "PropertyNotWritable",
    "InvalidPropertyValue",
    "InvalidSerialization",
    "SchemaError",
]
