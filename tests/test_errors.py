"""Tests for provisioner error classes.

Tests cover:
- Error hierarchy rooted at ProvisionerError
- Attributes carried by structured errors
"""

import pytest

from provisioner.errors import (
    ActionExecutionError,
    ConfigError,
    DefinitionError,
    DefinitionNotFoundError,
    DuplicateRegistrationError,
    ProvisionerError,
    RegistryAmbiguityError,
    RegistryError,
    TemplateError,
    UnknownResourceTypeError,
    UnresolvedFieldError,
    ValidationError,
)


class TestHierarchy:
    """Every error can be caught as ProvisionerError at the runtime boundary."""

    @pytest.mark.parametrize("error_cls", [
        ConfigError,
        DefinitionError,
        DefinitionNotFoundError,
        RegistryError,
        TemplateError,
    ])
    def test_simple_errors(self, error_cls):
        with pytest.raises(ProvisionerError):
            raise error_cls("boom")

    def test_registry_family(self):
        assert issubclass(DuplicateRegistrationError, RegistryError)
        assert issubclass(UnknownResourceTypeError, RegistryError)
        assert issubclass(RegistryAmbiguityError, RegistryError)

    def test_unresolved_field_is_template_error(self):
        assert issubclass(UnresolvedFieldError, TemplateError)

    def test_not_found_is_definition_error(self):
        assert issubclass(DefinitionNotFoundError, DefinitionError)


class TestStructuredErrors:
    """Tests for errors that carry details."""

    def test_unknown_resource_type(self):
        error = UnknownResourceTypeError("create_thing", ["mock", "server"])
        assert error.ref == "create_thing"
        assert "create_thing" in str(error)
        assert error.type_keys == ["mock", "server"]

    def test_ambiguity_lists_candidates(self):
        error = RegistryAmbiguityError("create_x", ["a", "b"])
        assert error.candidates == ["a", "b"]

    def test_unresolved_field(self):
        error = UnresolvedFieldError("host")
        assert error.name == "host"
        assert str(error) == "Field 'host' is not set"

    def test_validation_error_carries_all_errors(self):
        errors = [("image", "is required"), ("count", "must be an integer")]
        error = ValidationError("create_server", errors)
        assert error.errors == errors
        assert "image is required" in str(error)
        assert "count must be an integer" in str(error)

    def test_action_execution_error(self):
        cause = ConnectionError("down")
        error = ActionExecutionError("create_server", "create", cause, trace_id="abc")
        assert error.cause is cause
        assert error.action == "create"
        assert error.trace_id == "abc"
        assert "down" in str(error)
