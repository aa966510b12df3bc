"""Generic component client: only ``do_command``."""

from __future__ import annotations

from viam.gen.component.generic.v1 import generic_pb2 as generic_pb

from ..resource import ResourceClient
from ..schema import service


class GenericClient(ResourceClient):
    SERVICE = service(generic_pb, "GenericService")
    SUBTYPE = "generic"
