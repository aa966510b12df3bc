"""``grpc.aio`` client interceptors installed on every robot channel.

Neither the channel nor the adapters set per-call deadlines, so a unary
call against a robot that dropped off the network can hang forever.
:class:`TimeoutInterceptor` supplies a default.  Streams are long-lived by
nature and are left alone.
"""

from __future__ import annotations

import grpc


class TimeoutInterceptor(grpc.aio.UnaryUnaryClientInterceptor):
    """Add a default timeout to unary-unary calls that have none."""

    def __init__(self, default_timeout: float = 10.0):
        self._default_timeout = default_timeout

    async def intercept_unary_unary(self, continuation, client_call_details, request):
        if client_call_details.timeout is None:
            client_call_details = grpc.aio.ClientCallDetails(
                method=client_call_details.method,
                timeout=self._default_timeout,
                metadata=client_call_details.metadata,
                credentials=client_call_details.credentials,
                wait_for_ready=client_call_details.wait_for_ready,
            )
        return await continuation(client_call_details, request)


class ClientHeaderInterceptor(
    grpc.aio.UnaryUnaryClientInterceptor, grpc.aio.UnaryStreamClientInterceptor
):
    """Attach a fixed metadata header (client identification) to every call."""

    def __init__(self, key: str, value: str):
        self._key = key
        self._value = value

    def _with_header(self, details: grpc.aio.ClientCallDetails) -> grpc.aio.ClientCallDetails:
        metadata = grpc.aio.Metadata()
        for key, value in details.metadata or ():
            metadata.add(key, value)
        metadata.add(self._key, self._value)
        return grpc.aio.ClientCallDetails(
            method=details.method,
            timeout=details.timeout,
            metadata=metadata,
            credentials=details.credentials,
            wait_for_ready=details.wait_for_ready,
        )

    async def intercept_unary_unary(self, continuation, client_call_details, request):
        return await continuation(self._with_header(client_call_details), request)

    async def intercept_unary_stream(self, continuation, client_call_details, request):
        return await continuation(self._with_header(client_call_details), request)
