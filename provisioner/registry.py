"""
Registry for dispatching task refs to executor/resource pairs.

The registry maps resource type keys to the executor class that performs
their actions and the resource class that validates their attributes.

Lifecycle:
1. Build: register() every type during process initialization
2. Freeze: freeze() closes registration; the registry is read-only afterwards
3. Lookup: any number of runs resolve refs concurrently without locking

Ref matching:
    A ref is {action}_{type}. The type suffix is matched against registered
    keys on token boundaries ("create_dns_record" matches both "dns_record"
    and "record"). The longest matching key wins; two keys of equal length
    matching the same ref is an ambiguity error.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from provisioner.errors import (
    DuplicateRegistrationError,
    RegistryAmbiguityError,
    UnknownResourceTypeError,
)
from provisioner.executors.base import Executor
from provisioner.resources.base import Resource
from provisioner.schemas import Ref, is_valid_type_key


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    """A registered resource type."""
    type_key: str
    executor: type[Executor]
    resource: type[Resource]


class Registry:
    """
    Registry of resource types.

    Usage:
        registry = Registry()
        registry.register("server", ServerExecutor, ServerResource)
        registry.freeze()

        action, entry = registry.resolve("create_server")
        # action == "create", entry.executor is ServerExecutor

        # Or use the factory with built-in types
        registry = Registry.create_default()
    """

    def __init__(self) -> None:
        """Initialize an empty, writable registry."""
        self._entries: dict[str, RegistryEntry] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(
        self,
        type_key: str,
        executor: type[Executor],
        resource: type[Resource],
    ) -> RegistryEntry:
        """
        Bind a type key to an executor and resource implementation.

        Args:
            type_key: Resource type key (lowercase tokens joined by "_")
            executor: Executor subclass performing the type's actions
            resource: Resource subclass validating the type's attributes

        Returns:
            The new RegistryEntry

        Raises:
            DuplicateRegistrationError: If the key is already bound or the
                registry is frozen
            ValueError: If the key or implementations are invalid
        """
        if self._frozen:
            raise DuplicateRegistrationError(
                f"Registry is frozen; cannot register '{type_key}' after initialization"
            )
        if not is_valid_type_key(type_key):
            raise ValueError(
                f"Invalid type key {type_key!r}: use lowercase tokens joined by '_' "
                f"and avoid reserved words"
            )
        if type_key in self._entries:
            raise DuplicateRegistrationError(f"Type key already registered: {type_key}")
        if not (isinstance(executor, type) and issubclass(executor, Executor)):
            raise ValueError(f"Executor for '{type_key}' must be an Executor subclass")
        if not (isinstance(resource, type) and issubclass(resource, Resource)):
            raise ValueError(f"Resource for '{type_key}' must be a Resource subclass")

        entry = RegistryEntry(type_key=type_key, executor=executor, resource=resource)
        self._entries[type_key] = entry
        logger.debug(
            "Registered %s -> %s / %s", type_key, executor.__name__, resource.__name__
        )
        return entry

    def freeze(self) -> "Registry":
        """Close registration. Returns self for chaining."""
        self._frozen = True
        logger.debug("Registry frozen with types: %s", self.type_keys())
        return self

    def type_keys(self) -> list[str]:
        return sorted(self._entries)

    def has(self, type_key: str) -> bool:
        return type_key in self._entries

    def get(self, type_key: str) -> RegistryEntry:
        """
        Get the entry for an exact type key.

        Raises:
            UnknownResourceTypeError: If the key is not registered
        """
        if type_key not in self._entries:
            raise UnknownResourceTypeError(type_key, self.type_keys())
        return self._entries[type_key]

    def _match(self, ref: Ref) -> RegistryEntry:
        candidates = [key for key in self._entries if ref.matches(key)]
        if not candidates:
            raise UnknownResourceTypeError(ref.value, self.type_keys())

        longest = max(len(key) for key in candidates)
        best = sorted(key for key in candidates if len(key) == longest)
        if len(best) > 1:
            raise RegistryAmbiguityError(ref.value, best)
        return self._entries[best[0]]

    def lookup(self, ref: str) -> RegistryEntry:
        """
        Find the entry a ref dispatches to.

        Raises:
            UnknownResourceTypeError: If the ref is malformed or no key matches
            RegistryAmbiguityError: If several keys match equally well
        """
        return self.resolve(ref)[1]

    def resolve(self, ref: str) -> tuple[str, RegistryEntry]:
        """
        Split a ref into its action and the entry it dispatches to.

        Returns:
            Tuple of (action, entry)
        """
        try:
            parsed = Ref.parse(ref)
        except ValueError as e:
            raise UnknownResourceTypeError(ref, self.type_keys()) from e
        return parsed.action, self._match(parsed)

    @classmethod
    def create_default(cls, freeze: bool = True) -> "Registry":
        """
        Create a registry holding the built-in resource types.

        Args:
            freeze: Freeze the registry before returning it. Pass False to
                    register additional types first, then call freeze().

        Returns:
            Configured Registry
        """
        from provisioner.executors.mock import MockExecutor
        from provisioner.resources.mock import MockResource

        registry = cls()
        registry.register(MockResource.type_key, MockExecutor, MockResource)

        if freeze:
            registry.freeze()
        return registry


def build_registry(
    entries: list[tuple[str, type[Executor], type[Resource]]],
    include_defaults: bool = True,
) -> Registry:
    """
    Build and freeze a registry in one initialization step.

    Args:
        entries: (type_key, executor, resource) triples
        include_defaults: Also register the built-in types

    Returns:
        A frozen Registry
    """
    registry = Registry.create_default(freeze=False) if include_defaults else Registry()
    for type_key, executor, resource in entries:
        registry.register(type_key, executor, resource)
    return registry.freeze()


_default_registry: Optional[Registry] = None


def get_default_registry() -> Registry:
    """Get the process-wide default registry, initializing if needed."""
    global _default_registry
    if _default_registry is None:
        _default_registry = Registry.create_default()
    return _default_registry
