"""Generic factories: named higher-order caster constructors ("Array of X")."""

from typing import Callable, Dict, List

from .casters import Caster, array
from .errors import DuplicateNameError, UnknownFactoryError

Factory = Callable[[Caster], Caster]

ARRAY_TAG = "Array"


class FactoryRegistry:
    """Mapping from a factory tag to a ``Caster -> Caster`` function."""

    def __init__(self) -> None:
        self._factories: Dict[str, Factory] = {ARRAY_TAG: array}

    def register(self, tag: str, factory: Factory) -> None:
        """Register ``factory`` under ``tag``.

        Raises:
            DuplicateNameError: If ``tag`` is already taken.
        """
        if tag in self._factories:
            raise DuplicateNameError(tag, kind="factory")
        self._factories[tag] = factory

    def get_all_tags(self) -> List[str]:
        return sorted(self._factories)

    def apply(self, tag: str, argument: Caster) -> Caster:
        """Apply the factory registered for ``tag`` to an already resolved caster."""
        factory = self._factories.get(tag)
        if factory is None:
            raise UnknownFactoryError(tag, self.get_all_tags())
        return factory(argument)
