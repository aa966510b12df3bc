"""Tests for rdk_core.resource: the per-operation contract shared by every adapter."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import grpc
import pytest
from viam.gen.common.v1.common_pb2 import DoCommandResponse
from viam.gen.component.board.v1 import board_pb2 as board_pb

from rdk_core.components import BoardClient, InputControllerClient, MotorClient
from rdk_core.resource import Options, log_requests
from rdk_core.utils import dict_to_struct, struct_to_dict


def _make_rpc_error(code: grpc.StatusCode, details: str = "") -> grpc.RpcError:
    """Create a mock gRPC RpcError."""
    exc = grpc.RpcError()
    exc.code = MagicMock(return_value=code)
    exc.details = MagicMock(return_value=details)
    return exc


class TestConstruction:
    def test_no_io_on_construct(self, channel):
        MotorClient(channel, "motor-1")
        assert channel.requests == []
        assert channel.events == []

    def test_repr(self, channel):
        assert repr(MotorClient(channel, "motor-1")) == "MotorClient('motor-1')"

    def test_default_options(self, channel):
        motor = MotorClient(channel, "motor-1")
        assert motor._options.request_logger is None


class TestRequestBuilding:
    @pytest.mark.asyncio
    async def test_name_and_typed_fields(self, channel):
        await MotorClient(channel, "motor-1").set_power(0.5)

        method, request = channel.requests[0]
        assert method == "SetPower"
        assert request.DESCRIPTOR.full_name == "viam.component.motor.v1.SetPowerRequest"
        assert request.name == "motor-1"
        assert request.power_pct == 0.5
        assert struct_to_dict(request.extra) == {}

    @pytest.mark.asyncio
    async def test_extra_is_encoded_as_struct(self, channel):
        await MotorClient(channel, "motor-1").set_power(0.5, extra={"ramp": True, "k": 2})

        assert struct_to_dict(channel.last_request.extra) == {"ramp": True, "k": 2.0}

    @pytest.mark.asyncio
    async def test_omitted_extra_equals_empty_extra(self, channel):
        motor = MotorClient(channel, "motor-1")
        await motor.go_for(60, 2)
        await motor.go_for(60, 2, extra={})

        first, second = (r for _, r in channel.requests)
        assert first.SerializeToString(deterministic=True) == second.SerializeToString(
            deterministic=True
        )

    @pytest.mark.asyncio
    async def test_custom_name_field(self, channel):
        await InputControllerClient(channel, "gamepad").get_events()

        request = channel.last_request
        assert request.controller == "gamepad"
        assert "name" not in request.DESCRIPTOR.fields_by_name

    @pytest.mark.asyncio
    async def test_request_without_name_field(self, channel):
        await BoardClient(channel, "board-1").read_analog_reader("a1")

        request = channel.last_request
        assert request.board_name == "board-1"
        assert request.analog_reader_name == "a1"

    @pytest.mark.asyncio
    async def test_request_without_extra_field(self, channel):
        await MotorClient(channel, "motor-1").is_moving()

        request = channel.last_request
        assert "extra" not in request.DESCRIPTOR.fields_by_name
        assert request.name == "motor-1"


class TestRequestLogger:
    @pytest.mark.asyncio
    async def test_called_once_before_dispatch(self, channel):
        def hook(request):
            channel.events.append(("log", request.DESCRIPTOR.name))

        motor = MotorClient(channel, "motor-1", Options(request_logger=hook))
        await motor.stop()

        assert channel.events == [("log", "StopRequest"), ("send", "Stop")]

    @pytest.mark.asyncio
    async def test_receives_the_sent_request(self, channel):
        seen = []
        motor = MotorClient(channel, "motor-1", Options(request_logger=seen.append))
        await motor.set_rpm(30)

        assert seen == [channel.last_request]

    @pytest.mark.asyncio
    async def test_log_requests_hook(self, channel, caplog):
        log = logging.getLogger("tests.requests")
        motor = MotorClient(channel, "motor-1", Options(request_logger=log_requests(log, logging.INFO)))

        with caplog.at_level(logging.INFO, logger="tests.requests"):
            await motor.set_power(0.25)

        assert "viam.component.motor.v1.SetPowerRequest" in caplog.text
        assert "motor-1" in caplog.text


class TestErrors:
    @pytest.mark.asyncio
    async def test_rpc_error_propagates_unchanged(self, channel):
        error = _make_rpc_error(grpc.StatusCode.UNAVAILABLE, "robot offline")
        channel.respond("Stop", error)

        with pytest.raises(grpc.RpcError) as exc_info:
            await MotorClient(channel, "motor-1").stop()
        assert exc_info.value is error
        assert len(channel.requests) == 1


class TestDoCommand:
    @pytest.mark.asyncio
    async def test_round_trip(self, channel):
        channel.respond(
            "DoCommand", DoCommandResponse(result=dict_to_struct({"status": "done", "n": 3}))
        )

        result = await MotorClient(channel, "motor-1").do_command({"cmd": "calibrate"})

        assert result == {"status": "done", "n": 3.0}
        method, request = channel.requests[0]
        assert method == "DoCommand"
        assert request.DESCRIPTOR.full_name == "viam.common.v1.DoCommandRequest"
        assert request.name == "motor-1"
        assert struct_to_dict(request.command) == {"cmd": "calibrate"}

    @pytest.mark.asyncio
    async def test_absent_result_is_empty_dict(self, channel):
        result = await MotorClient(channel, "motor-1").do_command({})
        assert result == {}

    @pytest.mark.asyncio
    async def test_uses_request_logger(self, channel):
        seen = []
        motor = MotorClient(channel, "motor-1", Options(request_logger=seen.append))
        await motor.do_command({"a": 1})

        assert len(seen) == 1
        assert seen[0].DESCRIPTOR.name == "DoCommandRequest"


class TestServerStream:
    @staticmethod
    def _ticks(*chunks):
        return [
            c if isinstance(c, Exception) else board_pb.StreamTicksResponse(pin_name="i1", time=c)
            for c in chunks
        ]

    @pytest.mark.asyncio
    async def test_completed_stream_is_not_cancelled(self, channel):
        channel.respond("StreamTicks", self._ticks(1, 2))
        await BoardClient(channel, "board-1").stream_ticks(["i1"], [])

        assert channel.calls["StreamTicks"].cancelled is False
        assert ("cancel", "StreamTicks") not in channel.events

    @pytest.mark.asyncio
    async def test_server_error_cancels_call(self, channel):
        error = _make_rpc_error(grpc.StatusCode.INTERNAL, "boom")
        channel.respond("StreamTicks", self._ticks(1, error))
        queue = []

        with pytest.raises(grpc.RpcError):
            await BoardClient(channel, "board-1").stream_ticks(["i1"], queue)

        assert len(queue) == 1
        assert channel.calls["StreamTicks"].cancelled is True

    @pytest.mark.asyncio
    async def test_abandoned_stream_cancels_call(self, channel):
        channel.respond("StreamTicks", self._ticks(1, 2, 3))
        stream = BoardClient(channel, "board-1")._stream("StreamTicks", pin_names=["i1"])

        first = await stream.__anext__()
        await stream.aclose()

        assert first.time == 1
        assert channel.events.count(("cancel", "StreamTicks")) == 1
