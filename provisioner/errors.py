"""
Error classes for provisioner.

Every failure that can abort a task derives from ProvisionerError so the
workflow runtime can catch the whole family at its boundary:

- DefinitionError: malformed declaration, raised at compile time
- FieldTypeError: a value outside the field wire types reached the field store
- RegistryError family: registration and dispatch failures
- TemplateError / UnresolvedFieldError: placeholder resolution failures
- ValidationError: a resource failed its required-attribute checks
- ActionExecutionError: anything raised while an action ran

Error handling contract:
- Errors are exceptions, not values
- Nothing in the core retries; the caller decides what happens next
"""

from typing import Any, Optional


class ProvisionerError(Exception):
    """Base exception for provisioner."""
    pass


class ConfigError(ProvisionerError):
    """Configuration file is missing, unreadable or invalid."""
    pass


class DefinitionError(ProvisionerError):
    """Raised when a declaration cannot be compiled into a Definition."""
    pass


class DefinitionNotFoundError(DefinitionError):
    """Raised when a named definition does not exist in the library."""
    pass


class FieldTypeError(ProvisionerError, TypeError):
    """Raised when a value is not one of the field wire types."""
    pass


class RegistryError(ProvisionerError):
    """Base class for registration and dispatch failures."""
    pass


class DuplicateRegistrationError(RegistryError):
    """
    Raised when a type key is bound twice, or when registration is
    attempted after the registry has been frozen.
    """
    pass


class UnknownResourceTypeError(RegistryError):
    """Raised when no registered type key matches a ref."""

    def __init__(self, ref: str, type_keys: Optional[list[str]] = None):
        self.ref = ref
        self.type_keys = type_keys or []
        super().__init__(
            f"No resource type registered for ref '{ref}'. "
            f"Registered: {self.type_keys}"
        )


class RegistryAmbiguityError(RegistryError):
    """Raised when more than one type key matches a ref equally well."""

    def __init__(self, ref: str, candidates: list[str]):
        self.ref = ref
        self.candidates = candidates
        super().__init__(f"Ref '{ref}' matches several type keys: {candidates}")


class TemplateError(ProvisionerError):
    """Raised when a template string is malformed."""
    pass


class UnresolvedFieldError(TemplateError):
    """Raised when a placeholder names a field absent from the field store."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Field '{name}' is not set")


class ValidationError(ProvisionerError):
    """
    Raised when a resource fails validation.

    Attributes:
        ref: The task ref being run
        errors: Full list of (attribute, message) pairs
        resource: The resource that failed
    """

    def __init__(self, ref: str, errors: list[tuple[str, str]], resource: Any = None):
        self.ref = ref
        self.errors = errors
        self.resource = resource
        details = ", ".join(f"{name} {message}" for name, message in errors)
        super().__init__(f"Task '{ref}' failed validation: {details}")


class ActionExecutionError(ProvisionerError):
    """
    Raised when an action fails.

    Wraps any exception raised while the action ran, including
    require_attributes failures.

    Attributes:
        ref: The task ref being run
        action: The action name
        cause: The original exception
        trace_id: Reference recorded on the resource error list and logs
        resource: The resource the action ran against, if one was built
    """

    def __init__(
        self,
        ref: str,
        action: str,
        cause: BaseException,
        trace_id: Optional[str] = None,
        resource: Any = None,
    ):
        self.ref = ref
        self.action = action
        self.cause = cause
        self.trace_id = trace_id
        self.resource = resource
        super().__init__(f"Task '{ref}' action '{action}' failed: {cause}")
