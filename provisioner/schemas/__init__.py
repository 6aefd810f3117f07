"""
provisioner.schemas - Data structures for definitions and runs.

Job -> Definition -> Task

Lifecycle:
1. Definition: compiled from an author declaration, params left unresolved
2. Job: launch request naming a definition plus the initial fields
3. Task: one step, resolved and executed against the live field store
"""

from .ref import (
    Ref,
    SEPARATOR,
    NOOP_ACTION,
    RESERVED_WORDS,
    is_valid_ref,
    is_valid_type_key,
)
from .definition import (
    Definition,
    Task,
)
from .job import Job

__all__ = [
    # Ref grammar
    "Ref",
    "SEPARATOR",
    "NOOP_ACTION",
    "RESERVED_WORDS",
    "is_valid_ref",
    "is_valid_type_key",
    # Definition
    "Definition",
    "Task",
    # Job
    "Job",
]
