"""Schema registry: named casters built in a single topological pass.

Each name moves through three states, once:

    PENDING   declared by declare_all(), not registered yet
    RESOLVING registration in progress (a reference back to it is a cycle)
    RESOLVED  caster compiled and stored

This is the usual white/gray/black marking of a depth-first build, applied
to registration order: dependencies must be registered before dependents,
and self-referential types are rejected rather than resolved.
"""

import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from pydantic import PydanticSchemaGenerationError, ValidationError

from .builders import CasterBuilder, ClassBuilder, constructing_caster
from .casters import Caster
from .compiler import CasterCompiler
from .descriptor import Schema
from .errors import (
    CyclicDefinitionError,
    DuplicateNameError,
    ForwardReferenceError,
    IllegalTypeError,
    InvalidSchemaError,
    UnknownTypeError,
)
from .factories import Factory, FactoryRegistry

logger = logging.getLogger(__name__)


class EntryState(str, Enum):
    """Registration state of a type name."""
    PENDING = "PENDING"
    RESOLVING = "RESOLVING"
    RESOLVED = "RESOLVED"


Registrable = Union[Schema, ClassBuilder, CasterBuilder, Mapping[str, Any]]


def parse_schema(data: Mapping[str, Any]) -> Schema:
    """Validate raw schema data (e.g. parsed JSON) into a Schema.

    Raises:
        IllegalTypeError: If a property's type descriptor is malformed,
            located at ``<Schema>.<property>``.
        InvalidSchemaError: For any other structural problem.
    """
    raw_name = data.get("name")
    name = raw_name if isinstance(raw_name, str) and raw_name else "<unnamed>"
    try:
        return Schema.model_validate(data)
    except ValidationError as e:
        first = e.errors(include_url=False)[0]
        loc = first["loc"]
        if len(loc) >= 3 and loc[0] in ("properties", "props") and loc[2] == "type":
            raw_prop = data[loc[0]][loc[1]]
            raw_type = raw_prop.get("type")
            prop_name = raw_prop.get("name", loc[1])
            raise IllegalTypeError(raw_type, first["msg"]).locate(f"{name}.{prop_name}") from e
        where = ".".join(str(part) for part in loc)
        detail = f"{where}: {first['msg']}" if where else first["msg"]
        raise InvalidSchemaError(name, detail) from e


def declared_names(item: Registrable) -> Tuple[str, ...]:
    """Names an item will occupy once registered."""
    if isinstance(item, (ClassBuilder, CasterBuilder)):
        return item.names
    if isinstance(item, Schema):
        return (item.name,)
    name = item.get("name")
    return (name,) if isinstance(name, str) else ()


class Registry:
    """Owns every schema, builder and caster registered for a Decoder.

    Setup (declare_all/register) is single-writer and must complete before
    decoding starts; afterwards the registry is only read.
    """

    def __init__(self) -> None:
        self._states: Dict[str, EntryState] = {}
        self._casters: Dict[str, Caster] = {}
        self._schemas: Dict[str, Schema] = {}
        self._attrs: Set[str] = set()
        self.factories = FactoryRegistry()
        self._compiler = CasterCompiler(self.resolve, self.factories)

    @property
    def casters(self) -> Mapping[str, Caster]:
        """Read-only view of resolved casters by name."""
        return MappingProxyType(self._casters)

    def declare_all(self, names: Iterable[str]) -> None:
        """Mark names PENDING so early references read as "not registered yet".

        Run once over the whole batch before registering any of it.
        """
        for name in names:
            if name not in self._states:
                self._states[name] = EntryState.PENDING

    def register(self, item: Registrable) -> Caster:
        """Register a schema, builder or raw schema mapping; return its caster.

        Raises:
            DuplicateNameError: If the name is RESOLVING or RESOLVED already.
            SchemaCastError: Any compile failure (see CasterCompiler.compile).
        """
        if isinstance(item, Mapping):
            item = parse_schema(item)
        if isinstance(item, Schema):
            return self._register_schema(item)
        if isinstance(item, ClassBuilder):
            return self._register_class_builder(item)
        if isinstance(item, CasterBuilder):
            return self._enter(item.type_name, lambda: item.caster)
        raise TypeError(f"cannot register {type(item).__name__}; expected Schema, ClassBuilder or CasterBuilder")

    def register_casters(self, casters: Mapping[str, Caster]) -> None:
        """Register hand-written casters, one CasterBuilder per entry."""
        for name, caster in casters.items():
            self.register(CasterBuilder(name, caster))

    def register_factory(self, tag: str, factory: Factory) -> None:
        self.factories.register(tag, factory)

    def resolve(self, name: str) -> Caster:
        """Return the caster stored under ``name``.

        Raises:
            CyclicDefinitionError: ``name`` is being registered right now.
            ForwardReferenceError: ``name`` is declared but not registered yet.
            UnknownTypeError: ``name`` was never declared.
        """
        state = self._states.get(name)
        if state is EntryState.RESOLVED:
            return self._casters[name]
        if state is EntryState.RESOLVING:
            raise CyclicDefinitionError(name)
        if state is EntryState.PENDING:
            raise ForwardReferenceError(name)
        raise UnknownTypeError(name)

    def state(self, name: str) -> Optional[EntryState]:
        return self._states.get(name)

    def has(self, name: str) -> bool:
        """Whether ``name`` is resolved and ready for decoding."""
        return self._states.get(name) is EntryState.RESOLVED

    def names(self) -> List[str]:
        """Resolved names, in registration order."""
        return list(self._casters)

    def has_attrs(self, name: str) -> bool:
        """Whether decoded values of ``name`` carry a synthesized ``attrs`` field."""
        return name in self._attrs

    def get_schema(self, name: str) -> Optional[Schema]:
        return self._schemas.get(name)

    def _register_schema(self, schema: Schema) -> Caster:
        caster = self._enter(schema.name, lambda: self._compiler.compile(schema.properties, schema.name))
        self._schemas[schema.name] = schema
        return caster

    def _register_class_builder(self, builder: ClassBuilder) -> Caster:
        schema = builder.schema
        if self.has(schema.name) and self._schemas.get(schema.name) == schema:
            base = self._casters[schema.name]
        else:
            base = self._register_schema(schema)
        return self._enter(builder.class_name, lambda: constructing_caster(builder, base))

    def _enter(self, name: str, build: Callable[[], Caster]) -> Caster:
        previous = self._states.get(name)
        if previous in (EntryState.RESOLVING, EntryState.RESOLVED):
            raise DuplicateNameError(name)
        self._states[name] = EntryState.RESOLVING
        try:
            caster = build()
            self._prepare(caster)
        except Exception:
            # A failed entry never reaches RESOLVED; put back what was there.
            if previous is None:
                del self._states[name]
            else:
                self._states[name] = previous
            raise
        self._casters[name] = caster
        self._states[name] = EntryState.RESOLVED
        if caster.synthesized:
            self._attrs.add(name)
        logger.debug("Registered %s as %r", name, caster)
        return caster

    @staticmethod
    def _prepare(caster: Caster) -> None:
        """Build the pydantic validator now so decoding never mutates a caster."""
        try:
            caster.adapter
        except PydanticSchemaGenerationError as e:
            raise IllegalTypeError(caster.annotation, str(e)) from e
