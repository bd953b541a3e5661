"""Compile schema properties into casters, resolving references recursively."""

import logging
from functools import reduce
from typing import Callable, Dict, List, Optional, Sequence

from . import casters as c
from .descriptor import (
    ArrayType,
    GenericType,
    LiteralType,
    ParameterizedType,
    PrimitiveType,
    Property,
    ReferenceType,
    UnionType,
)
from .errors import EmptySchemaError, IllegalTypeError, SchemaCastError
from .factories import FactoryRegistry

logger = logging.getLogger(__name__)

# Reserved property: synthesized after decode, never read from input
ATTRS_KEYWORD = "attrs"

LITERAL_NAME = "<literal>"


class CasterCompiler:
    """Turns property lists and type descriptors into casters.

    References are resolved through ``resolve`` (normally
    ``Registry.resolve``), so a referenced type must already be registered.
    """

    def __init__(self, resolve: Callable[[str], c.Caster], factories: FactoryRegistry):
        self._resolve = resolve
        self._factories = factories

    def compile(self, properties: Sequence[Property], context_name: Optional[str] = None) -> c.Caster:
        """Compile ``properties`` into an object caster named ``context_name``.

        Required and optional properties become the two halves of an
        intersection when both are present. A property named ``attrs`` is
        not compiled; it is synthesized as an empty dict after decode.

        Raises:
            EmptySchemaError: If nothing is left to validate.
            SchemaCastError: Any failure inside a property, located at
                ``<context_name>.<property>``.
        """
        context = context_name or LITERAL_NAME
        required: Dict[str, c.Caster] = {}
        optional: Dict[str, c.Caster] = {}
        synthesized: List[str] = []

        for prop in properties:
            if prop.name == ATTRS_KEYWORD:
                synthesized.append(prop.name)
                continue
            location = f"{context}.{prop.name}"
            try:
                caster = self.compile_type(prop.type, location)
            except SchemaCastError as e:
                raise e.locate(location)
            if prop.optional:
                optional[prop.name] = caster
            else:
                required[prop.name] = caster

        attrs = tuple(synthesized)
        logger.debug(
            "Compiled %s: %d required, %d optional, synthesized=%s",
            context, len(required), len(optional), list(attrs),
        )
        if required and optional:
            return c.intersection(
                c.object_type(required, context, attrs),
                c.partial(optional, context),
                name=context,
            )
        if required:
            return c.object_type(required, context, attrs)
        if optional:
            return c.partial(optional, context, attrs)
        raise EmptySchemaError(context_name)

    def compile_type(self, descriptor: object, location: str) -> c.Caster:
        """Compile one type descriptor; ``location`` names literal sub-objects."""
        if isinstance(descriptor, PrimitiveType):
            caster = c.PRIMITIVES.get(descriptor.name)
            if caster is None:
                raise IllegalTypeError(descriptor.name)
            return caster
        if isinstance(descriptor, ReferenceType):
            return self._resolve(descriptor.name)
        if isinstance(descriptor, ArrayType):
            return c.array(self.compile_type(descriptor.element, location))
        if isinstance(descriptor, LiteralType):
            return self.compile(descriptor.properties, location)
        if isinstance(descriptor, UnionType):
            members = [self.compile_type(member, location) for member in descriptor.members]
            return reduce(c.union, members)
        if isinstance(descriptor, GenericType):
            argument = self.compile_type(descriptor.parameter_type, location)
            return self._factories.apply(descriptor.parameter_name, argument)
        if isinstance(descriptor, ParameterizedType):
            argument = self.compile_type(descriptor.type_argument, location)
            return self._factories.apply(descriptor.self_type, argument)
        raise IllegalTypeError(descriptor)
