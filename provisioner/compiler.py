"""
Compiler - Transform an author declaration into a Definition.

The compiler checks structure only:
- every task ref follows the {action}_{type} grammar
- params are a mapping of string names to field wire values
- placeholders are well formed ($f: only as a whole value)

It never resolves placeholders. A ${name} may refer to a field that an
earlier task in the same run produces, which is unknown until execution.

Accepted task declaration forms:
- Task instances
- (ref, params) pairs
- {"ref": ..., "params": {...}} mappings
- single-key {ref: params} mappings
"""

import copy
from typing import Any, Iterable, Mapping, Optional

from .errors import DefinitionError, TemplateError
from .fields import check_wire_value
from .schemas import Definition, Task, is_valid_ref
from .templates import FIELD_REF_PREFIX, FIELD_REF_PATTERN, INTERPOLATION_PATTERN, NAME_PATTERN


def _check_placeholders(value: Any, where: str) -> None:
    """
    Check placeholder syntax in a raw value without resolving it.

    Raises:
        TemplateError: If a placeholder is malformed or misplaced
    """
    if isinstance(value, str):
        if value.startswith(FIELD_REF_PREFIX):
            if not FIELD_REF_PATTERN.fullmatch(value):
                raise TemplateError(f"{where}: malformed field reference {value!r}")
        elif FIELD_REF_PREFIX in value:
            raise TemplateError(
                f"{where}: '$f:' reference must be the entire value: {value!r}"
            )
        for match in INTERPOLATION_PATTERN.finditer(value):
            if not NAME_PATTERN.fullmatch(match.group(1).strip()):
                raise TemplateError(f"{where}: invalid placeholder {match.group(0)!r}")
    elif isinstance(value, Mapping):
        for k, v in value.items():
            _check_placeholders(v, f"{where}.{k}")
    elif isinstance(value, (list, tuple)):
        for i, v in enumerate(value):
            _check_placeholders(v, f"{where}[{i}]")


def _split_declaration(index: int, entry: Any) -> tuple[Any, Any]:
    """Return (ref, params) for one task declaration."""
    if isinstance(entry, Task):
        return entry.ref, entry.params

    if isinstance(entry, (list, tuple)):
        if len(entry) != 2:
            raise DefinitionError(
                f"Task {index}: expected a (ref, params) pair, got {len(entry)} items"
            )
        return entry[0], entry[1]

    if isinstance(entry, Mapping):
        if "ref" in entry:
            unknown = set(entry) - {"ref", "params"}
            if unknown:
                raise DefinitionError(f"Task {index}: unknown keys {sorted(unknown)}")
            return entry["ref"], entry.get("params")
        if len(entry) == 1:
            ((ref, params),) = entry.items()
            return ref, params

    raise DefinitionError(
        f"Task {index}: cannot read declaration of type {type(entry).__name__}"
    )


def compile_task(index: int, entry: Any) -> Task:
    """
    Compile a single task declaration.

    Args:
        index: Position in the declaration (for error messages)
        entry: The declaration in any accepted form

    Returns:
        The compiled Task, with params deep-copied and unresolved

    Raises:
        DefinitionError: If the declaration is malformed
    """
    ref, params = _split_declaration(index, entry)

    if not is_valid_ref(ref):
        raise DefinitionError(
            f"Task {index}: malformed ref {ref!r} "
            f"(expected lowercase '{{action}}_{{type}}')"
        )

    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise DefinitionError(
            f"Task {index} ({ref}): params must be a mapping, "
            f"got {type(params).__name__}"
        )

    for name, value in params.items():
        if not isinstance(name, str):
            raise DefinitionError(f"Task {index} ({ref}): param name {name!r} is not a string")
        try:
            check_wire_value(name, value)
            _check_placeholders(value, f"Task {index} ({ref}) param '{name}'")
        except (TypeError, TemplateError) as e:
            raise DefinitionError(str(e)) from e

    return Task(ref=ref, params=copy.deepcopy(dict(params)))


def compile_definition(
    name: str,
    declarations: Iterable[Any],
    description: Optional[str] = None,
) -> Definition:
    """
    Compile an ordered declaration into an immutable Definition.

    Args:
        name: Definition name
        declarations: Ordered task declarations
        description: Optional free text

    Returns:
        Definition with the same tasks in the same order

    Raises:
        DefinitionError: If the name or any declaration is malformed
    """
    if not isinstance(name, str) or not name.strip():
        raise DefinitionError(f"Definition name must be a non-empty string, got {name!r}")

    if isinstance(declarations, (str, bytes, Mapping)) or declarations is None:
        raise DefinitionError(f"Definition '{name}': tasks must be an ordered list")

    tasks = tuple(compile_task(i, entry) for i, entry in enumerate(declarations))

    return Definition(name=name, tasks=tasks, description=description)
