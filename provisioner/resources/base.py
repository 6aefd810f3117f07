"""
Resource base class - validated working state for one task invocation.

Each resource type declares an explicit schema: named, typed attributes and
which of them are required. A Resource instance is built fresh for every
task from the merged field store and task params, validated, handed to the
executor, and discarded once its attributes are merged back.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, NamedTuple, Optional

from provisioner.fields import deep_merge


TYPE_NAMES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "list",
    dict: "mapping",
}


@dataclass(frozen=True)
class Attribute:
    """
    A declared resource attribute.

    Attributes:
        name: Attribute name
        type: Expected wire type (str, int, float, bool, list or dict)
        required: Whether validation fails when the attribute is missing
    """
    name: str
    type: type = str
    required: bool = False

    def accepts(self, value: Any) -> bool:
        """Check a present value against the declared type."""
        if self.type is bool:
            return isinstance(value, bool)
        if self.type is int:
            return isinstance(value, int) and not isinstance(value, bool)
        if self.type is float:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self.type is list:
            return isinstance(value, (list, tuple))
        if self.type is dict:
            return isinstance(value, Mapping)
        return isinstance(value, self.type)

    @property
    def type_name(self) -> str:
        return TYPE_NAMES.get(self.type, self.type.__name__)


class ResourceError(NamedTuple):
    """One entry in a resource's error list."""
    field: str
    message: str
    trace_id: Optional[str] = None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


class Resource:
    """
    Base class for resource types.

    Subclasses declare:
        type_key: Registry key (e.g. "server", "dns_record")
        schema: Tuple of Attribute declarations

    Undeclared attributes are carried along untouched so fields produced by
    earlier tasks keep flowing forward.

    Example:
        class ServerResource(Resource):
            type_key = "server"
            schema = (
                Attribute("image", str, required=True),
                Attribute("size", str),
                Attribute("tags", list),
            )
    """

    type_key: ClassVar[str] = ""
    schema: ClassVar[tuple[Attribute, ...]] = ()

    def __init__(self, attributes: Optional[Mapping[str, Any]] = None):
        self.attributes: dict[str, Any] = dict(attributes or {})
        self.errors: list[ResourceError] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(attributes={self.attributes!r}, errors={self.errors!r})"

    @classmethod
    def required_attributes(cls) -> list[str]:
        return [a.name for a in cls.schema if a.required]

    def __getitem__(self, name: str) -> Any:
        return self.attributes[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def has(self, name: str) -> bool:
        """True if the attribute is set to a non-blank value."""
        return name in self.attributes and not _is_blank(self.attributes[name])

    def missing(self, names) -> list[str]:
        """Return the subset of names that are not set, in the given order."""
        return [name for name in names if not self.has(name)]

    def update(self, values: Mapping[str, Any]) -> None:
        """Deep-merge values into the attributes."""
        self.attributes = deep_merge(self.attributes, values)

    def add_error(self, field: str, message: str, trace_id: Optional[str] = None) -> None:
        self.errors.append(ResourceError(field, message, trace_id))

    def error_pairs(self) -> list[tuple[str, str]]:
        return [(e.field, e.message) for e in self.errors]

    def validate(self) -> bool:
        """
        Run the schema checks, appending to the error list.

        - (name, "is required") for each missing required attribute
        - (name, "must be a <type>") for each present attribute of the wrong type

        Returns:
            True if no errors were recorded
        """
        for name in self.missing(self.required_attributes()):
            self.add_error(name, "is required")

        for attribute in self.schema:
            value = self.attributes.get(attribute.name)
            if _is_blank(value):
                continue
            if not attribute.accepts(value):
                article = "an" if attribute.type_name[0] in "aeiou" else "a"
                self.add_error(attribute.name, f"must be {article} {attribute.type_name}")

        return not self.errors

    @property
    def valid(self) -> bool:
        return not self.errors
