"""
provisioner - Declarative infrastructure task compiler and executor

Compiles ordered task declarations into definitions and runs each task
against a registered executor, threading fields from one task to the next.
"""

__version__ = "0.1.0"


__all__ = [
    "compile_definition",
    "FieldStore",
    "Registry",
    "TaskRunner",
    "JobExecutor",
    "run_task",
]

from .compiler import compile_definition
from .fields import FieldStore
from .registry import Registry
from .executor import JobExecutor, TaskRunner, run_task
