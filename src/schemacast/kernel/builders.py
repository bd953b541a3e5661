"""Builders: registration variants beyond plain schemas.

- ClassBuilder: decode with a schema, then build a domain object from the
  validated data through an explicit factory function.
- CasterBuilder: store a hand-written caster under a name, bypassing
  schema compilation (bounded ranges, enum membership, parsed dates).
"""

from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from pydantic import BaseModel

from .casters import Caster, transform
from .descriptor import Schema
from .errors import ConstructionError


@dataclass(frozen=True)
class ClassBuilder:
    """Constructs ``class_name`` instances from data validated by ``schema``.

    ``construct`` receives the validated structural value (a dict). Encoding
    a constructed instance goes the other way: ``deconstruct`` (or, when not
    given, ``structural_view``) recovers the structural value, which is then
    encoded with the schema's caster. Construction is one-directional; the
    instance itself is never re-validated.
    """
    schema: Schema
    class_name: str
    construct: Callable[[Any], Any]
    deconstruct: Optional[Callable[[Any], Any]] = None

    @property
    def names(self) -> Tuple[str, str]:
        return (self.schema.name, self.class_name)


@dataclass(frozen=True)
class CasterBuilder:
    """A raw caster registered verbatim under ``type_name``."""
    type_name: str
    caster: Caster

    @property
    def names(self) -> Tuple[str]:
        return (self.type_name,)


def structural_view(obj: Any, keys: Iterable[str]) -> Dict[str, Any]:
    """Best-effort structural value of a constructed object, limited to ``keys``.

    Handles mappings, pydantic models, dataclasses and plain objects.
    """
    if isinstance(obj, Mapping):
        data = dict(obj)
    elif isinstance(obj, BaseModel):
        data = obj.model_dump(by_alias=True)
    elif is_dataclass(obj) and not isinstance(obj, type):
        data = asdict(obj)
    else:
        data = vars(obj)
    wanted = set(keys)
    return {key: value for key, value in data.items() if key in wanted}


def constructing_caster(builder: ClassBuilder, base: Caster) -> Caster:
    """Layer ``builder.construct`` on top of the schema caster ``base``.

    Any exception raised by the constructor is re-raised as
    ConstructionError. It is never reported as a validation failure.
    """
    keys = tuple(p.name for p in builder.schema.properties if p.name not in base.synthesized)

    def construct(value: Any) -> Any:
        try:
            return builder.construct(value)
        except Exception as e:
            raise ConstructionError(builder.class_name, e) from e

    def deconstruct(instance: Any) -> Any:
        if builder.deconstruct is not None:
            data = builder.deconstruct(instance)
        else:
            data = structural_view(instance, keys)
        return base.encode(data)

    return transform(base, construct, deconstruct, builder.class_name)
