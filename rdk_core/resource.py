"""Generic adapters binding a service method table to a channel.

Every concrete client in :mod:`rdk_core.components`, :mod:`rdk_core.services`
and :mod:`rdk_core.app` is a thin subclass that names its
:class:`~rdk_core.schema.Service` and turns keyword arguments into
request fields.  Dispatch, logging and the request hook live here once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, ClassVar, Mapping, Optional, Protocol

from google.protobuf import json_format
from google.protobuf.message import Message

from .schema import Service
from .utils import dict_to_struct, do_command_from_client

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Anything that can hand out a stub for a service method table.

    :class:`~rdk_core.connection.RobotConnection` is the production
    implementation; tests use an in-memory fake.
    """

    def stub(self, service: Service) -> Any: ...


@dataclass(frozen=True)
class Options:
    """Per-client options.

    Attributes:
        request_logger: Called with every outgoing request message, once,
            before it is sent.
    """

    request_logger: Optional[Callable[[Message], None]] = None


def log_requests(
    log: logging.Logger = logger, level: int = logging.DEBUG
) -> Callable[[Message], None]:
    """Build a ``request_logger`` hook that writes each request to *log*."""

    def hook(request: Message) -> None:
        log.log(
            level,
            "%s %s",
            request.DESCRIPTOR.full_name,
            json_format.MessageToDict(request, preserving_proto_field_name=True),
        )

    return hook


def _set_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


class _Dispatcher:
    _options: Options

    async def _unary(self, stub, service: Service, method: str, request: Message):
        if self._options.request_logger is not None:
            self._options.request_logger(request)
        logger.debug("%s %s", service.path(method), self._label())
        return await getattr(stub, method)(request)

    async def _server_stream(
        self,
        stub,
        service: Service,
        method: str,
        request: Message,
        stop_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[Message]:
        if self._options.request_logger is not None:
            self._options.request_logger(request)
        logger.debug("%s %s (stream)", service.path(method), self._label())
        call = getattr(stub, method)(request)
        finished = False
        try:
            async for response in call:
                yield response
                if stop_event is not None and stop_event.is_set():
                    logger.debug("%s stopped by caller", service.path(method))
                    break
            else:
                finished = True
        finally:
            # Any exit short of completion ends the RPC.
            if not finished:
                call.cancel()

    def _label(self) -> str:
        return ""


class ResourceClient(_Dispatcher):
    """Adapter for one named resource on a robot.

    Subclasses set :attr:`SERVICE` and, where upstream deviates from the
    usual ``name`` field, :attr:`NAME_FIELD`.

    Construction performs no I/O; ``channel.stub()`` only prepares callables.
    """

    SERVICE: ClassVar[Service]
    SUBTYPE: ClassVar[str] = ""
    NAME_FIELD: ClassVar[str] = "name"

    def __init__(self, channel: Channel, name: str, options: Optional[Options] = None):
        self.name = name
        self._options = options or Options()
        self._stub = channel.stub(self.SERVICE)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    def _label(self) -> str:
        return self.name

    def _request(
        self, method: str, *, extra: Optional[Mapping[str, Any]] = None, **fields: Any
    ) -> Message:
        request_cls = self.SERVICE[method].request
        declared = request_cls.DESCRIPTOR.fields_by_name
        fields = _set_fields(fields)
        # A few requests (board analog readers, interrupts) name the resource differently.
        if self.NAME_FIELD in declared:
            fields.setdefault(self.NAME_FIELD, self.name)
        request = request_cls(**fields)
        if "extra" in declared:
            request.extra.CopyFrom(dict_to_struct(extra))
        return request

    async def _call(
        self, method: str, *, extra: Optional[Mapping[str, Any]] = None, **fields: Any
    ):
        request = self._request(method, extra=extra, **fields)
        return await self._unary(self._stub, self.SERVICE, method, request)

    def _stream(
        self,
        method: str,
        *,
        extra: Optional[Mapping[str, Any]] = None,
        stop_event: Optional[asyncio.Event] = None,
        **fields: Any,
    ) -> AsyncIterator[Message]:
        request = self._request(method, extra=extra, **fields)
        return self._server_stream(self._stub, self.SERVICE, method, request, stop_event)

    async def do_command(self, command: Mapping[str, Any]) -> dict[str, Any]:
        """Send a free-form command to the resource and return its reply."""
        return await do_command_from_client(
            self._stub, self.name, command, self._options.request_logger
        )


class AppServiceClient(_Dispatcher):
    """Adapter for a cloud app service.  No resource name and no ``extra``."""

    SERVICE: ClassVar[Service]

    def __init__(self, channel: Channel, options: Optional[Options] = None):
        self._options = options or Options()
        self._stub = channel.stub(self.SERVICE)

    async def _call(self, method: str, **fields: Any):
        return await self._call_on(self._stub, self.SERVICE, method, **fields)

    async def _call_on(self, stub, service: Service, method: str, **fields: Any):
        request = service[method].request(**_set_fields(fields))
        return await self._unary(stub, service, method, request)

    def _stream(
        self, method: str, *, stop_event: Optional[asyncio.Event] = None, **fields: Any
    ) -> AsyncIterator[Message]:
        request = self.SERVICE[method].request(**_set_fields(fields))
        return self._server_stream(self._stub, self.SERVICE, method, request, stop_event)
