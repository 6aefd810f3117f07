"""
Definition schema - the compiled, declarative task list.

A Definition is immutable. Its tasks keep their params exactly as authored,
placeholders included; resolution happens per task at execution time against
the live field store.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .ref import Ref


@dataclass(frozen=True)
class Task:
    """
    One step of a definition.

    Only the attribute bindings are frozen; params is a plain dict that
    callers treat as read-only. compile_task stores a deep copy of what was
    declared, and the execution contract never writes to it.

    Attributes:
        ref: Action + resource type reference (e.g. "create_server")
        params: Declared parameter name -> raw value (may hold ${...} / $f: markers)
    """
    ref: str
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def parsed_ref(self) -> Ref:
        return Ref.parse(self.ref)

    @property
    def action(self) -> str:
        return self.parsed_ref.action

    def to_dict(self) -> dict[str, Any]:
        return {"ref": self.ref, "params": self.params}


@dataclass(frozen=True)
class Definition:
    """
    A named, ordered sequence of tasks.

    One definition may be launched by many jobs.

    Attributes:
        name: Unique definition name
        tasks: Ordered tuple of tasks
        description: Optional free text from the declaration
    """
    name: str
    tasks: tuple[Task, ...] = field(default_factory=tuple)
    description: Optional[str] = None

    def __len__(self) -> int:
        return len(self.tasks)

    def refs(self) -> list[str]:
        return [t.ref for t in self.tasks]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON/YAML output."""
        return {
            "name": self.name,
            **({"description": self.description} if self.description else {}),
            "tasks": [t.to_dict() for t in self.tasks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Definition":
        """
        Deserialize from dictionary.

        Goes through the compiler so declarations read from disk get the
        same checks as ones built in code.
        """
        from provisioner.compiler import compile_definition

        return compile_definition(
            data["name"],
            data.get("tasks", []),
            description=data.get("description"),
        )
