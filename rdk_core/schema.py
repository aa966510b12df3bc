"""Method tables for the remote API's gRPC services.

Message classes come from the generated ``viam.gen`` modules shipped with
``viam-sdk``.  A :class:`Service` is read off one of those modules' service
descriptors, so adapters can build requests by method name and a channel
can build a stub without the generated (grpclib) stub classes::

    from viam.gen.component.motor.v1 import motor_pb2

    MotorService = service(motor_pb2, "MotorService")
    MotorService["SetPower"].request(name="left", power_pct=0.5)
"""

from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType

from google.protobuf import message_factory
from google.protobuf.descriptor import ServiceDescriptor


@dataclass(frozen=True)
class Method:
    """A single remote method: its message classes and call shape."""

    name: str
    request: type
    response: type
    server_streaming: bool = False


@dataclass(frozen=True)
class Service:
    """Method table for one remote service.

    This is what a channel needs to produce a stub, and what
    :class:`~rdk_core.resource.ResourceClient` uses to build requests.
    """

    full_name: str
    methods: dict[str, Method]

    @classmethod
    def from_descriptor(cls, descriptor: ServiceDescriptor) -> Service:
        methods = {
            m.name: Method(
                m.name,
                message_factory.GetMessageClass(m.input_type),
                message_factory.GetMessageClass(m.output_type),
                server_streaming=m.server_streaming,
            )
            for m in descriptor.methods
        }
        return cls(descriptor.full_name, methods)

    def path(self, method: str) -> str:
        return f"/{self.full_name}/{method}"

    def __getitem__(self, method: str) -> Method:
        return self.methods[method]


def service(module: ModuleType, name: str) -> Service:
    """Method table for service *name* declared in generated *module*."""
    return Service.from_descriptor(module.DESCRIPTOR.services_by_name[name])
