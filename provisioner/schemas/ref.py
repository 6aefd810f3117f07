"""
Ref grammar for task references.

A ref names both the action to run and the resource type to run it on:

    {action}_{type}

The separator is "_". The leading token is the action; every token after it
forms the type suffix, which the registry matches against registered type
keys (create_dns_record -> action "create", type suffix "dns_record").

Tokens are lowercase: [a-z][a-z0-9]*. A ref needs at least two tokens.
Type keys use the same token grammar and may not be a reserved action name.
"""

import re
from dataclasses import dataclass


SEPARATOR = "_"

TOKEN = r"[a-z][a-z0-9]*"

REF_PATTERN = re.compile(rf"{TOKEN}(?:{SEPARATOR}{TOKEN})+")
TYPE_KEY_PATTERN = re.compile(rf"{TOKEN}(?:{SEPARATOR}{TOKEN})*")

# Action available on every resource type
NOOP_ACTION = "nothing"

RESERVED_WORDS = frozenset({NOOP_ACTION})


def is_valid_ref(ref: str) -> bool:
    return isinstance(ref, str) and REF_PATTERN.fullmatch(ref) is not None


def is_valid_type_key(type_key: str) -> bool:
    return (
        isinstance(type_key, str)
        and TYPE_KEY_PATTERN.fullmatch(type_key) is not None
        and type_key not in RESERVED_WORDS
    )


@dataclass(frozen=True)
class Ref:
    """
    A parsed task ref.

    Attributes:
        value: The full ref string
        action: Leading token (the action name)
        type_suffix: Remaining tokens joined by the separator
    """
    value: str
    action: str
    type_suffix: str

    @classmethod
    def parse(cls, ref: str) -> "Ref":
        """
        Parse a ref string.

        Raises:
            ValueError: If the ref does not follow the grammar
        """
        if not is_valid_ref(ref):
            raise ValueError(
                f"Invalid ref {ref!r}: expected '{{action}}{SEPARATOR}{{type}}' "
                f"made of lowercase tokens"
            )
        action, type_suffix = ref.split(SEPARATOR, 1)
        return cls(value=ref, action=action, type_suffix=type_suffix)

    def matches(self, type_key: str) -> bool:
        """Check if type_key is a token-aligned suffix of the type suffix."""
        return (
            self.type_suffix == type_key
            or self.type_suffix.endswith(SEPARATOR + type_key)
        )

    def __str__(self) -> str:
        return self.value
