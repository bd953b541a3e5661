"""schemacast: compile named structural schemas into strict decoders."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("schemacast")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from schemacast.api import Decoder, DecodeResult, ValidationIssue, ValidationResult, validate_schemas
from schemacast.builtins import BUILTIN_CASTERS
from schemacast.codes import ErrorCode
from schemacast.kernel.builders import CasterBuilder, ClassBuilder
from schemacast.kernel.descriptor import GenericRef, Property, Schema, array_of
from schemacast.kernel.errors import (
    ConstructionError,
    CyclicDefinitionError,
    DuplicateNameError,
    EmptySchemaError,
    ForwardReferenceError,
    IllegalTypeError,
    InvalidSchemaError,
    SchemaCastError,
    UnknownFactoryError,
    UnknownTypeError,
)

__all__ = [
    "__version__",
    "Decoder",
    "DecodeResult",
    "validate_schemas",
    "ValidationIssue",
    "ValidationResult",
    "BUILTIN_CASTERS",
    "ErrorCode",
    "Schema",
    "Property",
    "GenericRef",
    "array_of",
    "ClassBuilder",
    "CasterBuilder",
    "SchemaCastError",
    "InvalidSchemaError",
    "DuplicateNameError",
    "CyclicDefinitionError",
    "ForwardReferenceError",
    "UnknownTypeError",
    "EmptySchemaError",
    "IllegalTypeError",
    "UnknownFactoryError",
    "ConstructionError",
]
