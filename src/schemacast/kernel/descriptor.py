"""Pydantic models for schemas and the type descriptors of their properties.

A descriptor is one of seven kinds, told apart by its ``kind`` field:

- ``primitive``: string, number, boolean or null
- ``reference``: another registered type, by name
- ``array``: list of an element type
- ``union``: any of several member types
- ``literal``: anonymous inline object type
- ``generic`` / ``parameterized``: a factory tag applied to a type argument

Raw data may spell a primitive as a bare string (``"string"``) or ``None``.
"""

from typing import Annotated, Any, Literal, Mapping, Tuple, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
)

PRIMITIVE_NAMES = ("string", "number", "boolean", "null")


def _expand_shorthand(value: Any) -> Any:
    """Expand bare primitive names (and None) into primitive descriptors."""
    if value is None:
        return {"kind": "primitive", "name": "null"}
    if isinstance(value, str):
        return {"kind": "primitive", "name": value}
    return value


def _reject_duplicate_names(properties: Tuple["Property", ...]) -> Tuple["Property", ...]:
    seen = set()
    duplicates = set()
    for prop in properties:
        if prop.name in seen:
            duplicates.add(prop.name)
        seen.add(prop.name)
    if duplicates:
        raise ValueError(f"Duplicate property names not allowed: {sorted(duplicates)}")
    return properties


class _Descriptor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class PrimitiveType(_Descriptor):
    """A scalar JSON type."""
    kind: Literal["primitive"] = "primitive"
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if v not in PRIMITIVE_NAMES:
            raise ValueError(f"Primitive must be one of {list(PRIMITIVE_NAMES)}, got '{v}'")
        return v


class ReferenceType(_Descriptor):
    """A named type registered elsewhere (schema, builder or custom caster)."""
    kind: Literal["reference"] = "reference"
    name: str = Field(..., min_length=1)


class ArrayType(_Descriptor):
    """A homogeneous list: ``string[]`` → ArrayType(element=PrimitiveType("string"))."""
    kind: Literal["array"] = "array"
    element: "TypeDescriptor"


class UnionType(_Descriptor):
    """Any of several member types; input matching any one of them is accepted."""
    kind: Literal["union"] = "union"
    members: Tuple["TypeDescriptor", ...] = Field(..., min_length=1)


class LiteralType(_Descriptor):
    """An anonymous inline object type."""
    kind: Literal["literal"] = "literal"
    properties: Tuple["Property", ...]

    @field_validator("properties")
    @classmethod
    def validate_properties(cls, v):
        return _reject_duplicate_names(v)


class GenericType(_Descriptor):
    """A type parameter bound to a registered factory of the same name."""
    kind: Literal["generic"] = "generic"
    parameter_name: str = Field(..., min_length=1)
    parameter_type: "TypeDescriptor"


class ParameterizedType(_Descriptor):
    """A generic applied to an argument: ``Array<User>`` → self_type="Array"."""
    kind: Literal["parameterized"] = "parameterized"
    self_type: str = Field(..., min_length=1)
    type_argument: "TypeDescriptor"


TypeDescriptor = Annotated[
    Union[
        PrimitiveType,
        ReferenceType,
        ArrayType,
        UnionType,
        LiteralType,
        GenericType,
        ParameterizedType,
    ],
    BeforeValidator(_expand_shorthand),
]


class Property(_Descriptor):
    """A schema field."""
    name: str = Field(..., min_length=1)
    type: TypeDescriptor
    optional: bool = False


class Schema(BaseModel):
    """A named structural type: an ordered list of properties.

    Accepts ``props`` as an alias of ``properties`` so schema data produced
    by older extraction tooling loads unchanged.
    """
    name: str = Field(..., min_length=1)
    properties: Tuple[Property, ...] = Field(
        default=(),
        validation_alias=AliasChoices("properties", "props"),
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("properties")
    @classmethod
    def validate_properties(cls, v):
        """Reject duplicate property names; a later one would silently win."""
        return _reject_duplicate_names(v)

    def get_property(self, name: str) -> Property | None:
        """Get property by name."""
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


class GenericRef(BaseModel):
    """An ad hoc generic type used at decode time: ``Array<Array<User>>``.

    ``arg`` is either a registered type name or another GenericRef.
    """
    tag: str = Field(..., min_length=1)
    arg: Union[str, "GenericRef"]

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def label(self) -> str:
        inner = self.arg if isinstance(self.arg, str) else self.arg.label
        return f"{self.tag}<{inner}>"


for _model in (ArrayType, UnionType, LiteralType, GenericType, ParameterizedType, Property, GenericRef):
    _model.model_rebuild()


TypeRef = Union[str, GenericRef, Mapping[str, Any]]


def prop(name: str, type: Any, optional: bool = False) -> Property:
    """Build a Property; ``type`` may be a descriptor, raw dict or primitive name."""
    return Property(name=name, type=type, optional=optional)


def ref(name: str) -> ReferenceType:
    return ReferenceType(name=name)


def list_of(element: Any) -> ArrayType:
    return ArrayType(element=element)


def one_of(*members: Any) -> UnionType:
    return UnionType(members=members)


def literal(*properties: Property) -> LiteralType:
    return LiteralType(properties=properties)


def schema(name: str, *properties: Property) -> Schema:
    return Schema(name=name, properties=properties)


def array_of(arg: Union[str, GenericRef]) -> GenericRef:
    """Shorthand for ``GenericRef(tag="Array", arg=arg)``."""
    return GenericRef(tag="Array", arg=arg)


def as_generic_ref(type_ref: Union[GenericRef, Mapping[str, Any]]) -> GenericRef:
    """Normalise a mapping such as ``{"tag": "Array", "arg": "User"}``."""
    if isinstance(type_ref, GenericRef):
        return type_ref
    return GenericRef.model_validate(type_ref)
