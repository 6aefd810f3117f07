"""
Mock executor.

Echoes its message back as an output field. Useful for dry runs of
definitions and for exercising the execution contract end to end.
"""

from typing import Any

from provisioner.executors.base import Executor


class MockExecutor(Executor):
    actions = ("run", "fail")

    def run(self) -> dict[str, Any]:
        return {"output": self.resource.get("message", "")}

    def fail(self) -> dict[str, Any]:
        self.require_attributes("message")
        raise RuntimeError(self.resource["message"])
