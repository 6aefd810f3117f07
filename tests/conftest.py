import logging

import pytest

from provisioner.executors import Executor
from provisioner.fields import FieldStore
from provisioner.registry import Registry
from provisioner.resources import Attribute, Resource


class SshResource(Resource):
    type_key = "ssh"
    schema = (
        Attribute("host", str, required=True),
        Attribute("user", str, required=True),
        Attribute("tags", list),
    )


class SshExecutor(Executor):
    actions = ("connect", "exec")

    def connect(self):
        return {"session": f"{self.resource['user']}@{self.resource['host']}"}

    def exec(self):
        self.require_attributes("command", "session")
        return {"stdout": f"ran {self.resource['command']}"}


class ServerResource(Resource):
    type_key = "server"
    schema = (
        Attribute("image", str, required=True),
        Attribute("size", str),
        Attribute("count", int),
    )


class ServerExecutor(Executor):
    actions = ("create", "destroy", "explode", "garble")

    def create(self):
        return {"instance_id": "i-123", "status": "running"}

    def destroy(self):
        self.require_attributes("instance_id")
        return {"status": "terminated"}

    def explode(self):
        raise ConnectionError("provider unreachable")

    def garble(self):
        return ["not", "a", "mapping"]


class RecordResource(Resource):
    type_key = "record"
    schema = (Attribute("value", str, required=True),)


class DnsRecordResource(Resource):
    type_key = "dns_record"
    schema = (
        Attribute("zone", str, required=True),
        Attribute("value", str, required=True),
    )


class RecordExecutor(Executor):
    actions = ("create",)

    def create(self):
        return {"record_kind": type(self.resource).__name__}


@pytest.fixture
def registry() -> Registry:
    """Frozen registry with the built-in types plus ssh, server and DNS records."""
    registry = Registry.create_default(freeze=False)
    registry.register("ssh", SshExecutor, SshResource)
    registry.register("server", ServerExecutor, ServerResource)
    registry.register("record", RecordExecutor, RecordResource)
    registry.register("dns_record", RecordExecutor, DnsRecordResource)
    return registry.freeze()


@pytest.fixture
def store() -> FieldStore:
    return FieldStore({"host": "db1", "user": "root", "taglist": ["a", "b"]})


@pytest.fixture(autouse=True)
def reset_provisioner_logger():
    """CLI tests install handlers on the package logger; drop them afterwards."""
    yield
    logger = logging.getLogger("provisioner")
    logger.handlers = []
    logger.setLevel(logging.NOTSET)
