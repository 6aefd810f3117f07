"""
Job schema - a launch request.

A Job binds a definition name to the initial content of the field store.
It is created once per launch and never changed afterwards.
"""

import copy
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Job:
    """
    Only the attribute bindings are frozen; fields is a plain dict that
    callers treat as read-only. Each run starts from initial_fields(), a deep
    copy, so running a job never changes it.

    Attributes:
        name: Job name (used in logs)
        definition_name: Name of the definition to run
        fields: Initial field store content
    """
    name: str
    definition_name: str
    fields: dict[str, Any] = field(default_factory=dict)

    def initial_fields(self) -> dict[str, Any]:
        """Return a copy of the initial fields for a new run."""
        return copy.deepcopy(self.fields)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "definition_name": self.definition_name,
            "fields": self.fields,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Job":
        return cls(
            name=data["name"],
            definition_name=data["definition_name"],
            fields=dict(data.get("fields", {})),
        )
