"""
Template resolution for task parameters.

Two placeholder forms are recognised inside string values:

- ${name}   replaced in place by the string form of the field; any number
            of these may be embedded in surrounding text
- $f:name   the whole value is replaced by the field exactly as stored,
            keeping its type (list stays list, mapping stays mapping)

Names may use dots to reach into mapping fields (${server.ip}). Mappings
and lists are resolved leaf by leaf; other literals pass through unchanged.
"""

import copy
import json
import re
from typing import Any, Callable, Mapping, Union

from .errors import TemplateError, UnresolvedFieldError
from .fields import NOT_FOUND, FieldStore


NAME = r"[A-Za-z_][A-Za-z0-9_\-]*(?:\.[A-Za-z0-9_\-]+)*"

# ${name} anywhere inside a string
INTERPOLATION_PATTERN = re.compile(r"\$\{([^}]*)\}")

# $f:name as the entire value
FIELD_REF_PREFIX = "$f:"
FIELD_REF_PATTERN = re.compile(rf"\$f:({NAME})")

NAME_PATTERN = re.compile(rf"{NAME}")

Lookup = Callable[[str], Any]
LookupSource = Union[Lookup, FieldStore, Mapping[str, Any]]


def _as_lookup(source: LookupSource) -> Lookup:
    if isinstance(source, FieldStore):
        return source.lookup
    if isinstance(source, Mapping):
        return lambda name: source.get(name, NOT_FOUND)
    return source


def _lookup_path(lookup: Lookup, name: str) -> Any:
    """
    Look up a field by name, falling back to a dotted path.

    "server.ip" first tries a field literally named "server.ip", then
    walks field "server" -> key "ip".
    """
    value = lookup(name)
    if value is not NOT_FOUND or "." not in name:
        return value

    head, *rest = name.split(".")
    value = lookup(head)
    for part in rest:
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        else:
            return NOT_FOUND
    return value


def stringify(value: Any) -> str:
    """
    Canonical string form of a field value.

    Strings are returned as-is, numbers and booleans use their literal
    form (true/false), lists and mappings use compact JSON with sorted keys.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    return str(value)


def has_placeholders(value: Any) -> bool:
    """Check if a raw value contains any placeholder markers."""
    if isinstance(value, str):
        return FIELD_REF_PREFIX in value or INTERPOLATION_PATTERN.search(value) is not None
    elif isinstance(value, Mapping):
        return any(has_placeholders(v) for v in value.values())
    elif isinstance(value, (list, tuple)):
        return any(has_placeholders(v) for v in value)
    return False


def _resolve_field_ref(value: str, lookup: Lookup) -> Any:
    match = FIELD_REF_PATTERN.fullmatch(value)
    if not match:
        raise TemplateError(
            f"'$f:' must be followed by a field name and be the entire value: {value!r}"
        )
    name = match.group(1)
    resolved = _lookup_path(lookup, name)
    if resolved is NOT_FOUND:
        raise UnresolvedFieldError(name)
    return copy.deepcopy(resolved)


def _resolve_string(value: str, lookup: Lookup) -> Any:
    if value.startswith(FIELD_REF_PREFIX):
        return _resolve_field_ref(value, lookup)

    if FIELD_REF_PREFIX in value:
        raise TemplateError(
            f"'$f:' reference must be the entire value, not part of a string: {value!r}"
        )

    def substitute(match: re.Match) -> str:
        name = match.group(1).strip()
        if not NAME_PATTERN.fullmatch(name):
            raise TemplateError(f"Invalid placeholder '${{{match.group(1)}}}' in {value!r}")
        resolved = _lookup_path(lookup, name)
        # A null field is as good as unset when it has to become text
        if resolved is NOT_FOUND or resolved is None:
            raise UnresolvedFieldError(name)
        return stringify(resolved)

    return INTERPOLATION_PATTERN.sub(substitute, value)


def resolve(value: Any, source: LookupSource) -> Any:
    """
    Recursively resolve placeholders in a raw value.

    Args:
        value: Raw value (str, mapping, list, or any literal)
        source: Lookup function returning a value or NOT_FOUND, or a
                FieldStore / mapping to look names up in

    Returns:
        The resolved value

    Raises:
        UnresolvedFieldError: If a placeholder names a field that is not set
        TemplateError: If a placeholder is malformed or misplaced
    """
    lookup = _as_lookup(source)
    return _resolve(value, lookup)


def _resolve(value: Any, lookup: Lookup) -> Any:
    if isinstance(value, str):
        return _resolve_string(value, lookup)
    elif isinstance(value, Mapping):
        return {k: _resolve(v, lookup) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [_resolve(v, lookup) for v in value]
    else:
        return value
