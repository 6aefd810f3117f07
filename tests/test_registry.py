"""Tests for provisioner.registry module.

Tests registration, freezing, ref parsing, and longest-match dispatch.
"""

import pytest

from conftest import (
    DnsRecordResource,
    RecordExecutor,
    RecordResource,
    ServerExecutor,
    ServerResource,
)
from provisioner.errors import (
    DuplicateRegistrationError,
    RegistryAmbiguityError,
    UnknownResourceTypeError,
)
from provisioner.executors import MockExecutor
from provisioner.registry import Registry, build_registry, get_default_registry
from provisioner.resources import MockResource
from provisioner.schemas import Ref


class TestRef:
    """Tests for the ref grammar."""

    def test_parse(self):
        ref = Ref.parse("create_dns_record")
        assert ref.action == "create"
        assert ref.type_suffix == "dns_record"
        assert str(ref) == "create_dns_record"

    @pytest.mark.parametrize("value", ["server", "Create_server", "create__server", "create_server_"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            Ref.parse(value)

    def test_matches_on_token_boundaries(self):
        ref = Ref.parse("create_dns_record")
        assert ref.matches("dns_record")
        assert ref.matches("record")
        assert not ref.matches("cord")
        assert not ref.matches("create_dns_record")


class TestRegister:
    """Tests for Registry.register and freeze."""

    def test_register_and_get(self):
        registry = Registry()
        entry = registry.register("server", ServerExecutor, ServerResource)
        assert registry.get("server") is entry
        assert entry.executor is ServerExecutor
        assert entry.resource is ServerResource
        assert registry.has("server")
        assert registry.type_keys() == ["server"]

    def test_duplicate_rejected(self):
        registry = Registry()
        registry.register("server", ServerExecutor, ServerResource)
        with pytest.raises(DuplicateRegistrationError, match="already registered"):
            registry.register("server", ServerExecutor, ServerResource)

    def test_frozen_registry_rejects_writes(self):
        registry = Registry().freeze()
        assert registry.frozen
        with pytest.raises(DuplicateRegistrationError, match="frozen"):
            registry.register("server", ServerExecutor, ServerResource)

    @pytest.mark.parametrize("type_key", ["", "Server", "dns-record", "nothing", "_x"])
    def test_invalid_type_key(self, type_key):
        with pytest.raises(ValueError, match="Invalid type key"):
            Registry().register(type_key, ServerExecutor, ServerResource)

    def test_implementations_checked(self):
        with pytest.raises(ValueError, match="Executor subclass"):
            Registry().register("server", object, ServerResource)
        with pytest.raises(ValueError, match="Resource subclass"):
            Registry().register("server", ServerExecutor, dict)

    def test_get_unknown(self):
        with pytest.raises(UnknownResourceTypeError):
            Registry().get("server")


class TestLookup:
    """Tests for ref dispatch."""

    def test_action_and_entry(self, registry):
        action, entry = registry.resolve("create_server")
        assert action == "create"
        assert entry.type_key == "server"

    def test_longest_match_wins(self, registry):
        assert registry.lookup("create_dns_record").resource is DnsRecordResource

    def test_shorter_key_still_matches_other_prefixes(self, registry):
        assert registry.lookup("create_txt_record").resource is RecordResource

    def test_multi_token_action_suffix(self, registry):
        # Only the leading token is the action; "web_server" ends with "server"
        action, entry = registry.resolve("create_web_server")
        assert action == "create"
        assert entry.type_key == "server"

    def test_unknown_type(self, registry):
        with pytest.raises(UnknownResourceTypeError, match="create_database"):
            registry.lookup("create_database")

    def test_malformed_ref_is_unknown(self, registry):
        with pytest.raises(UnknownResourceTypeError):
            registry.lookup("server")

    def test_equal_length_matches_are_ambiguous(self, monkeypatch):
        registry = Registry()
        registry.register("server", ServerExecutor, ServerResource)
        registry.register("router", RecordExecutor, RecordResource)
        registry.freeze()
        monkeypatch.setattr(Ref, "matches", lambda self, key: True)
        with pytest.raises(RegistryAmbiguityError) as exc_info:
            registry.lookup("create_server")
        assert exc_info.value.candidates == ["router", "server"]


class TestFactories:
    """Tests for create_default, build_registry and get_default_registry."""

    def test_create_default(self):
        registry = Registry.create_default()
        assert registry.frozen
        entry = registry.lookup("run_mock")
        assert entry.executor is MockExecutor
        assert entry.resource is MockResource

    def test_create_default_unfrozen(self):
        registry = Registry.create_default(freeze=False)
        registry.register("server", ServerExecutor, ServerResource)
        assert registry.type_keys() == ["mock", "server"]

    def test_build_registry(self):
        registry = build_registry([("server", ServerExecutor, ServerResource)])
        assert registry.frozen
        assert registry.type_keys() == ["mock", "server"]

    def test_build_registry_without_defaults(self):
        registry = build_registry([("server", ServerExecutor, ServerResource)], include_defaults=False)
        assert registry.type_keys() == ["server"]

    def test_default_registry_is_shared(self):
        assert get_default_registry() is get_default_registry()
