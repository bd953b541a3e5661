"""Public API for schemacast.

High-level entry points: the Decoder facade (setup once, decode many times)
and a non-raising preflight over a batch of schemas. Application code should
use these instead of wiring kernel modules together by hand.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from schemacast.codes import ErrorCode
from schemacast.kernel.casters import Caster, report_errors
from schemacast.kernel.compiler import ATTRS_KEYWORD
from schemacast.kernel.descriptor import GenericRef, Schema, TypeRef, array_of, as_generic_ref
from schemacast.kernel.errors import IllegalTypeError, SchemaCastError
from schemacast.kernel.factories import Factory
from schemacast.kernel.registry import Registrable, Registry, declared_names, parse_schema

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[List[str]], Any]


class DecodeResult(BaseModel):
    """Outcome of one decode: the value on success, display errors otherwise."""
    ok: bool
    value: Any = None
    errors: List[str] = Field(default_factory=list)


class Decoder:
    """Registers schemas, builders and casters, then decodes data against them.

    Construction is the setup phase: ``factories`` and ``casters`` are
    registered first, every schema/builder name is declared, then each item
    is registered in the order given (dependencies before dependents).
    Any structural error raises out of the constructor.

    After setup the decoder is read-only apart from its generic-caster memo,
    so decode calls may run from several threads.
    """

    def __init__(
        self,
        schemas: Iterable[Registrable] = (),
        casters: Optional[Mapping[str, Caster]] = None,
        factories: Optional[Mapping[str, Factory]] = None,
    ):
        self.registry = Registry()
        self._generic_casters: Dict[GenericRef, Caster] = {}
        for tag, factory in (factories or {}).items():
            self.registry.register_factory(tag, factory)
        if casters:
            self.registry.register_casters(casters)
        items = list(schemas)
        self.registry.declare_all(name for item in items for name in declared_names(item))
        for item in items:
            self.registry.register(item)
        logger.debug("Decoder ready with %d types", len(self.registry.names()))

    def register(self, item: Registrable) -> Caster:
        """Register one more schema or builder after construction."""
        return self.registry.register(item)

    def register_factory(self, tag: str, factory: Factory) -> None:
        self.registry.register_factory(tag, factory)

    def caster(self, type_ref: TypeRef) -> Caster:
        """Resolve a type name or generic reference to its caster.

        Generic references resolve their argument first, then apply the
        outer factory: ``Array<Array<User>>`` is ``array(array(User))``.

        Raises:
            UnknownTypeError: If a name was never registered.
            UnknownFactoryError: If a generic tag has no factory.
            IllegalTypeError: If ``type_ref`` is neither a name nor a generic.
        """
        if isinstance(type_ref, str):
            return self.registry.resolve(type_ref)
        generic = self._generic_ref(type_ref)
        cached = self._generic_casters.get(generic)
        if cached is None:
            argument = self.caster(generic.arg)
            cached = self.registry.factories.apply(generic.tag, argument)
            self._generic_casters[generic] = cached
        return cached

    def try_decode(self, type_ref: TypeRef, data: Any) -> DecodeResult:
        """Decode ``data`` and report the outcome without raising on bad input.

        Raises:
            SchemaCastError: For an unresolvable ``type_ref`` or a failing
                builder constructor. Malformed ``data`` never raises.
        """
        caster = self.caster(type_ref)
        label = self._label(type_ref)
        try:
            value = caster.validate(data)
        except ValidationError as e:
            errors = report_errors(e, data, root=label)
            logger.debug("Decoding %s failed with %d error(s)", label, len(errors))
            return DecodeResult(ok=False, errors=errors)
        return DecodeResult(ok=True, value=value)

    def decode(self, type_ref: TypeRef, data: Any, on_error: Optional[ErrorCallback] = None) -> Any:
        """Decode ``data`` as ``type_ref``; return None when it does not match.

        On failure ``on_error`` (if given) receives one message per problem,
        e.g. ``User.houses: Input should be a valid list (got 'x')``.
        """
        result = self.try_decode(type_ref, data)
        if result.ok:
            return result.value
        if on_error is not None:
            on_error(result.errors)
        return None

    def decode_array(self, type_name: str, data: Any, on_error: Optional[ErrorCallback] = None) -> Any:
        """Same as ``decode(array_of(type_name), data, on_error)``."""
        return self.decode(array_of(type_name), data, on_error)

    def encode(self, type_ref: TypeRef, value: Any) -> Any:
        """Re-serialize a decoded value into JSON-compatible data.

        Constructed instances are encoded in their structural shape;
        synthesized ``attrs`` are dropped.
        """
        return self.caster(type_ref).encode(value)

    @staticmethod
    def _generic_ref(type_ref: Union[GenericRef, Mapping[str, Any]]) -> GenericRef:
        try:
            return as_generic_ref(type_ref)
        except ValidationError as e:
            raise IllegalTypeError(type_ref, "expected a type name or {'tag': ..., 'arg': ...}") from e

    def _label(self, type_ref: TypeRef) -> str:
        if isinstance(type_ref, str):
            return type_ref
        return self._generic_ref(type_ref).label


class ValidationIssue(BaseModel):
    """A single preflight issue (error or warning)."""
    code: str  # ErrorCode value, e.g. "FORWARD_REFERENCE", "EMPTY_SCHEMA"
    message: str
    element_id: Optional[str] = None  # Type name the issue belongs to
    location: Optional[str] = None  # Dotted compile path, e.g. "User.address.city"


class ValidationResult(BaseModel):
    """Result of a preflight check."""
    ok: bool  # True if no errors (warnings don't block)
    errors: List[ValidationIssue]  # Blocking issues
    warnings: List[ValidationIssue]  # Non-blocking issues


def _issue(error: SchemaCastError, element_id: Optional[str]) -> ValidationIssue:
    return ValidationIssue(
        code=error.code.value,
        message=str(error),
        element_id=element_id,
        location=error.location,
    )


def validate_schemas(
    schemas: Iterable[Registrable],
    casters: Optional[Mapping[str, Caster]] = None,
) -> ValidationResult:
    """
    Pure preflight over a batch of schemas and builders.

    Performs the same registration a Decoder does, but collects every
    structural error instead of stopping at the first. An item that fails
    stays unregistered, so later items referencing it report a forward
    reference as well.

    Args:
        schemas: Schemas, builders or raw schema mappings, in registration order
        casters: Optional hand-written casters registered before the schemas

    Returns:
        ValidationResult with errors and warnings.
    """
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
    registry = Registry()
    warned = set()

    for name, caster in (casters or {}).items():
        try:
            registry.register_casters({name: caster})
        except SchemaCastError as e:
            errors.append(_issue(e, name))

    items = list(schemas)
    registry.declare_all(name for item in items for name in declared_names(item))

    for item in items:
        names = declared_names(item)
        element_id = names[-1] if names else None
        if isinstance(item, Mapping):
            try:
                item = parse_schema(item)
            except SchemaCastError as e:
                errors.append(_issue(e, element_id))
                continue

        schema = item if isinstance(item, Schema) else getattr(item, "schema", None)
        if schema is not None and schema.name not in warned and schema.get_property(ATTRS_KEYWORD) is not None:
            warned.add(schema.name)
            warnings.append(ValidationIssue(
                code=ErrorCode.ATTRS_SYNTHESIZED.value,
                message=(
                    f"Property '{ATTRS_KEYWORD}' of '{schema.name}' is never read from input; "
                    f"decoded values carry an empty '{ATTRS_KEYWORD}' object"
                ),
                element_id=schema.name,
                location=f"{schema.name}.{ATTRS_KEYWORD}",
            ))

        try:
            registry.register(item)
        except SchemaCastError as e:
            errors.append(_issue(e, element_id))

    return ValidationResult(ok=not errors, errors=errors, warnings=warnings)
