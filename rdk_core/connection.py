"""Pooled ``grpc.aio`` connections to robots.

Both the MCP server and application code use ``RobotConnection.get(addr)``
to obtain a shared connection, then hand it to any adapter as its channel::

    conn = RobotConnection.get("192.168.1.50")
    motor = MotorClient(conn, "left-wheel")
    await motor.set_power(0.4)
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import grpc
from viam.gen.common.v1.common_pb2 import ResourceName
from viam.gen.robot.v1 import robot_pb2
from viam.version_metadata import API_VERSION

from rdk_core.error_handling import ResourceNotFoundError
from rdk_core.interceptors import ClientHeaderInterceptor, TimeoutInterceptor
from rdk_core.schema import Service

logger = logging.getLogger(__name__)

SDK_VERSION = "0.1.0"
CLIENT_HEADER = "viam-client"
DEFAULT_PORT = 8080

RobotService = Service.from_descriptor(robot_pb2.DESCRIPTOR.services_by_name["RobotService"])


class ServiceStub:
    """One ``grpc.aio`` multicallable per method of a :class:`Service`.

    Equivalent to a generated ``*Stub`` class, built from the method table.
    """

    def __init__(self, channel: grpc.aio.Channel, service: Service):
        self.service = service
        for name, method in service.methods.items():
            factory = channel.unary_stream if method.server_streaming else channel.unary_unary
            setattr(
                self,
                name,
                factory(
                    service.path(name),
                    request_serializer=method.request.SerializeToString,
                    response_deserializer=method.response.FromString,
                ),
            )


class RobotConnection:
    """Pooled connection to a single robot.

    Usage::

        conn = RobotConnection.get("192.168.1.50:8080")
        result = await conn.ping()   # {"ok": True, "resources": 12}
        names = await conn.resource_names()
    """

    _pool: dict[str, RobotConnection] = {}
    _pool_lock = threading.Lock()

    def __init__(self, target: str, timeout: float = 10.0, secure: bool = False):
        self.target = self._normalise_target(target)
        self.timeout = timeout
        self.secure = secure
        self._channel: Optional[grpc.aio.Channel] = None
        self._channel_lock = threading.Lock()
        self._stubs: dict[str, ServiceStub] = {}
        self._resolver_ready = False
        self._resources: dict[str, list[ResourceName]] = {}

    # ── Pool management ──────────────────────────────────────────────

    @classmethod
    def get(cls, target: str, timeout: float = 10.0, secure: bool = False) -> RobotConnection:
        """Get or create a pooled connection for *target*."""
        key = cls._normalise_target(target)
        with cls._pool_lock:
            if key not in cls._pool:
                cls._pool[key] = cls(key, timeout, secure)
            return cls._pool[key]

    @classmethod
    def remove(cls, target: str) -> Optional[RobotConnection]:
        """Remove a connection from the pool and return it for closing."""
        key = cls._normalise_target(target)
        with cls._pool_lock:
            return cls._pool.pop(key, None)

    @classmethod
    def clear_pool(cls) -> None:
        """Drop every pooled connection. Useful in tests."""
        with cls._pool_lock:
            cls._pool.clear()

    # ── Channel access ───────────────────────────────────────────────

    @property
    def channel(self) -> grpc.aio.Channel:
        """Return the underlying channel, creating it lazily."""
        self._ensure_channel()
        assert self._channel is not None
        return self._channel

    def stub(self, service: Service) -> ServiceStub:
        stub = self._stubs.get(service.full_name)
        if stub is None:
            stub = ServiceStub(self.channel, service)
            self._stubs[service.full_name] = stub
        return stub

    async def close(self) -> None:
        with self._channel_lock:
            channel, self._channel = self._channel, None
            self._stubs.clear()
        if channel is not None:
            await channel.close()
            logger.info("Closed channel to %s", self.target)

    # ── Robot queries ────────────────────────────────────────────────

    async def resource_names(self) -> list[ResourceName]:
        response = await self.stub(RobotService).ResourceNames(
            robot_pb2.ResourceNamesRequest()
        )
        return list(response.resources)

    async def ping(self) -> dict:
        """Verify connectivity by listing the robot's resources."""
        try:
            resources = await self.resource_names()
            return {"ok": True, "target": self.target, "resources": len(resources)}
        except grpc.RpcError as exc:
            code = exc.code()
            return {"ok": False, "error": f"{code.name}: {exc.details() or ''}"}

    # ── Resolver ─────────────────────────────────────────────────────

    async def ensure_resolver(self) -> bool:
        """Fetch the resource list once and index it by short name."""
        if self._resolver_ready:
            return True
        try:
            resources = await self.resource_names()
        except grpc.RpcError as exc:
            logger.warning("Resolver init failed for %s: %s", self.target, exc)
            return False
        self._resources = {}
        for resource in resources:
            self._resources.setdefault(resource.name, []).append(resource)
        self._resolver_ready = True
        logger.info("Resolver ready for %s (%d resources)", self.target, len(resources))
        return True

    def resolve(self, name: str, subtype: Optional[str] = None) -> ResourceName:
        """Resolve a short resource name to its full :class:`ResourceName`.

        *subtype* disambiguates when several resources share a name.
        """
        for resource in self._resources.get(name, ()):
            if subtype is None or resource.subtype == subtype:
                return resource
        logger.warning("Resource not found: %s (subtype=%s)", name, subtype)
        raise ResourceNotFoundError(name if subtype is None else f"{subtype}/{name}")

    # ── Internal ─────────────────────────────────────────────────────

    def _ensure_channel(self) -> None:
        if self._channel is not None:
            return
        with self._channel_lock:
            if self._channel is not None:
                return
            interceptors = [
                TimeoutInterceptor(self.timeout),
                ClientHeaderInterceptor(
                    CLIENT_HEADER, f"python;v{SDK_VERSION};{API_VERSION}"
                ),
            ]
            if self.secure:
                logger.info("Opening TLS channel to %s", self.target)
                self._channel = grpc.aio.secure_channel(
                    self.target,
                    grpc.ssl_channel_credentials(),
                    interceptors=interceptors,
                )
            else:
                logger.info("Opening channel to %s", self.target)
                self._channel = grpc.aio.insecure_channel(
                    self.target, interceptors=interceptors
                )

    @staticmethod
    def _normalise_target(target: str) -> str:
        """Ensure target includes a port."""
        if ":" not in target:
            return f"{target}:{DEFAULT_PORT}"
        return target
