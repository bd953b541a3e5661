"""Setup-time structural errors raised while building casters.

These indicate a misconfigured schema graph and are meant to halt startup.
None of them derive from ValueError: pydantic turns ValueError raised inside
validators into validation failures, and these must never be mistaken for
malformed input.
"""

from typing import Optional, Sequence

from schemacast.codes import ErrorCode


class SchemaCastError(Exception):
    """Base exception for schemacast structural errors."""

    code: ErrorCode = ErrorCode.INVALID_STRUCTURE

    def __init__(self, message: str, location: Optional[str] = None):
        self.message = message
        self.location = location
        super().__init__(self._format())

    def _format(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message

    def locate(self, location: str) -> "SchemaCastError":
        """Attribute the error to a compile location (``Schema.property``).

        Only the innermost location is kept; outer callers leave an already
        located error untouched so nested literals report their full path.
        """
        if self.location is None:
            self.location = location
            self.args = (self._format(),)
        return self


class InvalidSchemaError(SchemaCastError):
    """Raised when schema data does not describe a schema at all."""

    code = ErrorCode.INVALID_STRUCTURE

    def __init__(self, name: str, detail: str):
        self.name = name
        super().__init__(f"invalid schema '{name}': {detail}")


class DuplicateNameError(SchemaCastError):
    """Raised when a type name is registered twice."""

    code = ErrorCode.DUPLICATE_NAME

    def __init__(self, name: str, kind: str = "type"):
        self.name = name
        super().__init__(f"{kind} '{name}' already registered")


class CyclicDefinitionError(SchemaCastError):
    """Raised when a type refers to itself before its registration completes."""

    code = ErrorCode.CYCLIC_DEFINITION

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"type '{name}' depends on itself; recursive definitions are not supported"
        )


class ForwardReferenceError(SchemaCastError):
    """Raised when a declared type is referenced before it is registered."""

    code = ErrorCode.FORWARD_REFERENCE

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"depends on '{name}' but it's not registered yet "
            f"(try to move '{name}' before this type)"
        )


class UnknownTypeError(SchemaCastError):
    """Raised when a type name was never declared nor registered."""

    code = ErrorCode.UNKNOWN_TYPE

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"decoder for '{name}' not registered")


class EmptySchemaError(SchemaCastError):
    """Raised when a schema or literal has no properties to validate."""

    code = ErrorCode.EMPTY_SCHEMA

    def __init__(self, name: Optional[str] = None):
        self.name = name
        super().__init__(
            f"type '{name or '<literal>'}' is an empty interface which is not supported"
        )


class IllegalTypeError(SchemaCastError):
    """Raised when a type descriptor is not one the compiler understands."""

    code = ErrorCode.ILLEGAL_TYPE

    def __init__(self, descriptor: object, detail: Optional[str] = None):
        self.descriptor = descriptor
        message = f"illegal decoder type {descriptor!r}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class UnknownFactoryError(SchemaCastError):
    """Raised when a generic refers to a factory tag nobody registered."""

    code = ErrorCode.UNKNOWN_FACTORY

    def __init__(self, tag: str, known: Sequence[str] = ()):
        self.tag = tag
        self.known = list(known)
        message = f"no generic factory registered for '{tag}'"
        if self.known:
            message += f" (registered: {', '.join(self.known)})"
        super().__init__(message)


class ConstructionError(SchemaCastError):
    """Raised when a builder's constructor fails on already validated data.

    This is a bug in the constructor, not malformed input, so it escapes
    ``Decoder.decode`` instead of being reported through ``on_error``.
    """

    code = ErrorCode.CONSTRUCTION_FAILED

    def __init__(self, class_name: str, cause: BaseException):
        self.class_name = class_name
        self.cause = cause
        super().__init__(f"constructor for '{class_name}' failed: {cause}")
