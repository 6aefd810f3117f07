"""
Resource types.

Usage:
    from provisioner.resources import Attribute, Resource

    class ServerResource(Resource):
        type_key = "server"
        schema = (Attribute("image", str, required=True),)
"""

from provisioner.resources.base import Attribute, Resource, ResourceError
from provisioner.resources.mock import MockResource

__all__ = [
    "Attribute",
    "Resource",
    "ResourceError",
    "MockResource",
]
