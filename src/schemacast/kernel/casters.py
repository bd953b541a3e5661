"""Primitive caster library built on pydantic.

A Caster wraps a typing annotation that pydantic can validate and serialize.
Composition happens on annotations (``TypedDict`` objects, ``List``,
``Union``, ``Annotated`` validators), so a composed caster is compiled by
pydantic into a single validator the first time it is used.

Validation always runs in strict mode: JSON-ish input is checked, never
coerced (``"107"`` is not a number, ``1`` is not a boolean).
"""

from functools import cached_property
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import (
    AfterValidator,
    ConfigDict,
    PlainSerializer,
    PlainValidator,
    TypeAdapter,
    ValidationError,
    WrapSerializer,
    with_config,
)
from pydantic_core import PydanticCustomError
from typing_extensions import Annotated, NotRequired, TypedDict


class Caster:
    """Compiled validator/encoder for one type."""

    def __init__(self, annotation: Any, name: str, synthesized: Tuple[str, ...] = ()):
        self.annotation = annotation
        self.name = name
        # Keys injected after validation (see ObjectCaster)
        self.synthesized = synthesized

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    @cached_property
    def adapter(self) -> TypeAdapter:
        return TypeAdapter(self.annotation)

    def validate(self, data: Any) -> Any:
        """Decode ``data`` into a typed value.

        Raises:
            pydantic.ValidationError: If ``data`` does not match.
        """
        return self.adapter.validate_python(data, strict=True)

    def encode(self, value: Any) -> Any:
        """Re-serialize a decoded value into JSON-compatible data."""
        return self.adapter.dump_python(value, mode="json")

    def is_valid(self, data: Any) -> bool:
        try:
            self.validate(data)
        except ValidationError:
            return False
        return True


def _check_number(value: Any) -> Any:
    # bool is an int subclass but never a JSON number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PydanticCustomError("number_type", "Input should be a valid number")
    return value


STRING = Caster(str, "string")
NUMBER = Caster(Annotated[Any, PlainValidator(_check_number)], "number")
BOOLEAN = Caster(bool, "boolean")
NULL = Caster(None, "null")

PRIMITIVES: Dict[str, Caster] = {
    "string": STRING,
    "number": NUMBER,
    "boolean": BOOLEAN,
    "null": NULL,
}


def _synthesizer(keys: Tuple[str, ...]) -> Callable[[dict], dict]:
    def synthesize(value: dict) -> dict:
        for key in keys:
            value[key] = {}
        return value
    return synthesize


def _stripper(keys: Tuple[str, ...]) -> Callable[[Any, Any], Any]:
    def strip(value: Any, handler: Any) -> Any:
        if isinstance(value, dict):
            value = {k: v for k, v in value.items() if k not in keys}
        return handler(value)
    return strip


class ObjectCaster(Caster):
    """Object caster: required keys must be present, optional keys may be absent.

    Keys not declared are kept as they are. ``synthesized`` keys are never
    read from input; each is set to a fresh empty dict after validation and
    dropped again on encode.
    """

    def __init__(
        self,
        name: str,
        required: Mapping[str, Caster],
        optional: Mapping[str, Caster],
        synthesized: Tuple[str, ...] = (),
    ):
        self.required = dict(required)
        self.optional = dict(optional)
        fields: Dict[str, Any] = {key: c.annotation for key, c in self.required.items()}
        fields.update({key: NotRequired[c.annotation] for key, c in self.optional.items()})
        typed_dict = with_config(ConfigDict(extra="allow"))(TypedDict(name, fields))
        annotation: Any = typed_dict
        if synthesized:
            annotation = Annotated[
                typed_dict,
                AfterValidator(_synthesizer(synthesized)),
                WrapSerializer(_stripper(synthesized)),
            ]
        super().__init__(annotation, name, synthesized)

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(self.required) + tuple(self.optional)


def object_type(fields: Mapping[str, Caster], name: str, synthesized: Tuple[str, ...] = ()) -> ObjectCaster:
    """Object whose keys are all required."""
    return ObjectCaster(name, fields, {}, synthesized)


def partial(fields: Mapping[str, Caster], name: str, synthesized: Tuple[str, ...] = ()) -> ObjectCaster:
    """Object whose keys may all be absent."""
    return ObjectCaster(name, {}, fields, synthesized)


def intersection(left: Caster, right: Caster, name: Optional[str] = None) -> ObjectCaster:
    """Merge two object casters into one that enforces both."""
    if not isinstance(left, ObjectCaster) or not isinstance(right, ObjectCaster):
        raise TypeError(f"intersection only merges object casters, got {left!r} and {right!r}")
    overlap = set(left.keys) & set(right.keys)
    if overlap:
        raise TypeError(f"intersection of {left.name} and {right.name} redeclares {sorted(overlap)}")
    synthesized = left.synthesized + tuple(k for k in right.synthesized if k not in left.synthesized)
    return ObjectCaster(
        name or f"{left.name} & {right.name}",
        {**left.required, **right.required},
        {**left.optional, **right.optional},
        synthesized,
    )


class UnionCaster(Caster):
    """Accepts input matching any member.

    Nested unions are flattened and identical members collapse. When input
    fails every member, one error per member failure is reported, in member
    order.
    """

    def __init__(self, members: Sequence[Caster], name: Optional[str] = None):
        self.members = tuple(members)
        annotation = Union[tuple(m.annotation for m in self.members)]
        super().__init__(annotation, name or " | ".join(m.name for m in self.members))


def union(*members: Caster, name: Optional[str] = None) -> Caster:
    flat: List[Caster] = []
    for member in members:
        for caster in member.members if isinstance(member, UnionCaster) else (member,):
            if all(caster.annotation != seen.annotation for seen in flat):
                flat.append(caster)
    if not flat:
        raise TypeError("union needs at least one member")
    if len(flat) == 1:
        return flat[0]
    return UnionCaster(flat, name)


def array(element: Caster, name: Optional[str] = None) -> Caster:
    return Caster(List[element.annotation], name or f"Array<{element.name}>")


def refine(base: Caster, predicate: Callable[[Any], bool], name: str) -> Caster:
    """Branded refinement: ``base`` values for which ``predicate`` holds.

    Example: ``refine(NUMBER, lambda n: -90 <= n <= 90, "Latitude")``.
    """
    def check(value: Any) -> Any:
        if not predicate(value):
            raise PydanticCustomError(
                "refinement_failed",
                "Input should be a valid {type_name}",
                {"type_name": name},
            )
        return value

    return Caster(Annotated[base.annotation, AfterValidator(check)], name, base.synthesized)


def transform(
    base: Caster,
    decode: Callable[[Any], Any],
    encode: Callable[[Any], Any],
    name: str,
) -> Caster:
    """Caster that validates with ``base``, then maps the value through ``decode``.

    ``encode`` maps decoded values back to what ``base`` accepts. ``decode``
    may raise ``PydanticCustomError``/``ValueError`` to reject input; any
    other exception propagates out of ``validate``.
    """
    return Caster(
        Annotated[base.annotation, AfterValidator(decode), PlainSerializer(encode)],
        name,
        base.synthesized,
    )


def _preview(value: Any, limit: int = 60) -> str:
    try:
        text = repr(value)
    except Exception:
        text = f"<unrepresentable {type(value).__name__}>"
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _input_path(loc: Tuple[Union[str, int], ...], data: Any, missing: bool) -> List[str]:
    """Follow an error location through the input, dropping union branch labels."""
    path: List[str] = []
    node = data
    last = len(loc) - 1
    for index, segment in enumerate(loc):
        if isinstance(node, dict) and segment in node:
            node = node[segment]
            path.append(str(segment))
        elif isinstance(node, list) and isinstance(segment, int) and 0 <= segment < len(node):
            node = node[segment]
            path.append(str(segment))
        elif missing and index == last:
            path.append(str(segment))
    return path


def report_errors(error: ValidationError, data: Any, root: str = "") -> List[str]:
    """Translate a ValidationError into one display string per failure.

    Each string names the dotted path into ``data`` (prefixed by ``root``)
    and the expectation that was violated, e.g.
    ``User.houses: Input should be a valid list (got 'x')``.
    """
    messages = []
    for detail in error.errors(include_url=False):
        missing = detail["type"] == "missing"
        path = _input_path(detail["loc"], data, missing)
        location = ".".join([root, *path] if root else path) or "<root>"
        message = f"{location}: {detail['msg']}"
        if not missing:
            message += f" (got {_preview(detail.get('input'))})"
        messages.append(message)
    return messages
