"""
Executors perform the actions of a resource type.

Usage:
    from provisioner.executors import Executor

    class ServerExecutor(Executor):
        actions = ("create",)

        def create(self):
            self.require_attributes("image")
            return {"instance_id": "i-123"}
"""

from provisioner.executors.base import (
    Executor,
    MissingAttributesError,
    UnknownActionError,
    join_names,
)
from provisioner.executors.mock import MockExecutor

__all__ = [
    "Executor",
    "MissingAttributesError",
    "UnknownActionError",
    "join_names",
    "MockExecutor",
]
