"""Mock resource, used for dry runs and tests."""

from provisioner.resources.base import Attribute, Resource


class MockResource(Resource):
    type_key = "mock"
    schema = (
        Attribute("message", str),
    )
