"""
Field store - ordered state threaded through one job run.

A FieldStore starts from a job's initial fields and accumulates every
attribute set produced by the tasks that ran before. It belongs to exactly
one run and is only written by the execution contract after a task reaches
its merged state.
"""

import copy
from typing import Any, Iterator, Mapping, Optional

from .errors import FieldTypeError


class _NotFound:
    """Sentinel returned by lookups for names that are not set."""

    _instance: Optional["_NotFound"] = None

    def __new__(cls) -> "_NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()

# Types allowed to cross the field store boundary
WIRE_TYPES = (str, int, float, bool, list, dict, type(None))


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge two mappings, recursing where both sides hold a mapping.

    Neither input is modified. On a key present in both, the override side
    wins unless both values are mappings, in which case they are merged
    key by key.

    Args:
        base: Lower-precedence mapping
        override: Higher-precedence mapping

    Returns:
        A new merged dictionary
    """
    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def check_wire_value(name: str, value: Any) -> None:
    """
    Check that a value only contains field wire types.

    Raises:
        FieldTypeError: If the value (or anything nested in it) is not a wire type
    """
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise FieldTypeError(f"Field '{name}' has a non-string key: {key!r}")
            check_wire_value(f"{name}.{key}", item)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            check_wire_value(f"{name}[{index}]", item)
    elif not isinstance(value, WIRE_TYPES):
        raise FieldTypeError(
            f"Field '{name}' has unsupported type {type(value).__name__}"
        )


class FieldStore:
    """
    Ordered key -> value mapping scoped to one job run.

    Keys are unique; writing an existing key replaces its value in place
    (last write wins). Snapshots are deep copies so a task can never
    mutate the store behind the execution contract's back.

    Usage:
        store = FieldStore({"host": "db1"})
        store.lookup("host")          # "db1"
        store.lookup("missing")       # NOT_FOUND
        store.merge({"instance_id": "i-123"})
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._fields: dict[str, Any] = {}
        if initial:
            self.merge(initial)

    def lookup(self, name: str) -> Any:
        """Return the value for name, or NOT_FOUND if it is not set."""
        return self._fields.get(name, NOT_FOUND)

    def get(self, name: str, default: Any = None) -> Any:
        return self._fields.get(name, default)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FieldStore({self._fields!r})"

    def keys(self) -> list[str]:
        return list(self._fields)

    def snapshot(self) -> dict[str, Any]:
        """Return a deep copy of the current fields."""
        return copy.deepcopy(self._fields)

    def merge(self, values: Mapping[str, Any]) -> None:
        """
        Deep-merge values into the store.

        Args:
            values: Mapping of field name to wire value

        Raises:
            FieldTypeError: If a value is not a field wire type
        """
        for name, value in values.items():
            check_wire_value(name, value)
        self._fields = deep_merge(self._fields, values)
