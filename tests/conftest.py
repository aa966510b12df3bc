"""Shared fixtures: an in-memory channel standing in for a robot."""

from __future__ import annotations

import pytest

from rdk_core.connection import RobotConnection


class FakeCall:
    """Server-stream call: async-iterable over scripted chunks, cancellable."""

    def __init__(self, channel: FakeChannel, method: str, chunks):
        self._channel = channel
        self._method = method
        self._chunks = list(chunks)
        self.cancelled = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self._chunks:
            if self.cancelled:
                return
            if isinstance(chunk, Exception):
                raise chunk
            self._channel.events.append(("recv", self._method))
            yield chunk

    def cancel(self) -> bool:
        self.cancelled = True
        self._channel.events.append(("cancel", self._method))
        return True


class FakeStub:
    def __init__(self, channel: FakeChannel, service):
        for name, method in service.methods.items():
            if method.server_streaming:
                setattr(self, name, self._stream(channel, name))
            else:
                setattr(self, name, self._unary(channel, name, method))

    @staticmethod
    def _unary(channel, name, method):
        async def call(request):
            channel.record(name, request)
            response = channel.responses.get(name)
            if isinstance(response, Exception):
                raise response
            return response if response is not None else method.response()

        return call

    @staticmethod
    def _stream(channel, name):
        def call(request):
            channel.record(name, request)
            call_ = FakeCall(channel, name, channel.responses.get(name, ()))
            channel.calls[name] = call_
            return call_

        return call


class FakeChannel:
    """Records every request and replays scripted responses.

    ``responses[method]`` is a response message (or exception) for unary
    methods, and a list of chunks for streaming ones.  Unscripted unary
    methods answer with an empty response.
    """

    def __init__(self):
        self.requests: list[tuple[str, object]] = []
        self.events: list[tuple[str, str]] = []
        self.responses: dict[str, object] = {}
        self.calls: dict[str, FakeCall] = {}
        self.stubs: dict[str, FakeStub] = {}

    def stub(self, service) -> FakeStub:
        if service.full_name not in self.stubs:
            self.stubs[service.full_name] = FakeStub(self, service)
        return self.stubs[service.full_name]

    def respond(self, method: str, response) -> None:
        self.responses[method] = response

    def record(self, method: str, request) -> None:
        self.requests.append((method, request))
        self.events.append(("send", method))

    @property
    def last_request(self):
        return self.requests[-1][1]


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture(autouse=True)
def _clean_pool():
    """Ensure each test starts with an empty connection pool."""
    RobotConnection.clear_pool()
    yield
    RobotConnection.clear_pool()
