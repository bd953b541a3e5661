"""Error code constants for schemacast setup-time errors.

These constants prevent stringly-typed error codes and let client code
match on the kind of structural failure without parsing messages.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Structural (setup-time) error and preflight warning codes."""

    # Registry
    DUPLICATE_NAME = "DUPLICATE_NAME"
    CYCLIC_DEFINITION = "CYCLIC_DEFINITION"
    FORWARD_REFERENCE = "FORWARD_REFERENCE"
    UNKNOWN_TYPE = "UNKNOWN_TYPE"

    # Compiler
    EMPTY_SCHEMA = "EMPTY_SCHEMA"
    ILLEGAL_TYPE = "ILLEGAL_TYPE"
    UNKNOWN_FACTORY = "UNKNOWN_FACTORY"
    INVALID_STRUCTURE = "INVALID_STRUCTURE"

    # Decode-time fatal (constructor bug, never malformed input)
    CONSTRUCTION_FAILED = "CONSTRUCTION_FAILED"

    # Warnings (non-blocking, validate_schemas only)
    ATTRS_SYNTHESIZED = "ATTRS_SYNTHESIZED"
