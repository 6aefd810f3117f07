"""
Base executor and common implementations.

An executor performs the actions of one resource type. It is built per task
with the validated resource, runs exactly one action, and returns the
attribute mapping that action produced.

Actions are plain methods named after the action. The `actions` class
attribute lists which of them may be invoked from a ref; `nothing` is always
allowed.
"""

import logging
from typing import Any, ClassVar, Mapping, Sequence, Union

from provisioner.resources.base import Resource
from provisioner.schemas import NOOP_ACTION


logger = logging.getLogger(__name__)


def join_names(names: list[str]) -> str:
    """Join names as prose: "a", "a and b", "a, b and c"."""
    if len(names) == 1:
        return names[0]
    return f"{', '.join(names[:-1])} and {names[-1]}"


class MissingAttributesError(ValueError):
    """Raised by require_attributes when an action lacks inputs."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        verb = "is" if len(missing) == 1 else "are"
        super().__init__(f"{join_names(missing)} {verb} required for this operation")


class UnknownActionError(ValueError):
    """Raised when a ref names an action the executor does not allow."""

    def __init__(self, action: str, allowed: list[str]):
        self.action = action
        self.allowed = allowed
        super().__init__(f"Unknown action '{action}'. Allowed: {allowed}")


class Executor:
    """
    Base class for resource executors.

    Subclasses declare the actions they allow and implement one method per
    action. Each action reads self.resource and returns a mapping of
    attributes to merge back (None counts as an empty mapping).

    Example:
        class ServerExecutor(Executor):
            actions = ("create", "destroy")

            def create(self):
                self.require_attributes("image", "size")
                instance = self.client.launch(self.resource["image"], self.resource["size"])
                return {"instance_id": instance.id}
    """

    actions: ClassVar[tuple[str, ...]] = ()

    def __init__(self, resource: Resource):
        self.resource = resource

    @classmethod
    def allowed_actions(cls) -> list[str]:
        allowed = [NOOP_ACTION]
        for action in cls.actions:
            if action not in allowed:
                allowed.append(action)
        return allowed

    def require_attributes(self, *names: Union[str, Sequence[str]]) -> None:
        """
        Fail unless every named attribute is set on the resource.

        Names may be passed individually or as lists:
        require_attributes("host", "user") and
        require_attributes(["host", "user"]) are equivalent.

        Raises:
            MissingAttributesError: Listing the missing names, e.g.
                "host and user are required for this operation"
        """
        flat: list[str] = []
        for name in names:
            if isinstance(name, (list, tuple)):
                flat.extend(name)
            else:
                flat.append(name)
        missing = self.resource.missing(flat)
        if missing:
            raise MissingAttributesError(missing)

    def perform(self, action: str) -> dict[str, Any]:
        """
        Run an action by name.

        Returns:
            The attribute mapping produced by the action

        Raises:
            UnknownActionError: If the action is not allowed
            TypeError: If the action returns something other than a mapping
            Exception: Whatever the action itself raises
        """
        allowed = self.allowed_actions()
        if action not in allowed or not callable(getattr(self, action, None)):
            raise UnknownActionError(action, allowed)

        result = getattr(self, action)()
        if result is None:
            return {}
        if not isinstance(result, Mapping):
            raise TypeError(
                f"Action '{action}' returned {type(result).__name__}, expected a mapping"
            )
        return dict(result)

    def nothing(self) -> dict[str, Any]:
        """No-op action available on every resource type."""
        logger.debug("Doing nothing for %s", self.resource.type_key or type(self.resource).__name__)
        return {}
