"""Tests for rdk_core.connection: pool, normalisation, stubs, ping, resolver."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import grpc
import pytest
from viam.gen.common.v1.common_pb2 import ResourceName
from viam.version_metadata import API_VERSION

from rdk_core.components import MotorClient
from rdk_core.connection import CLIENT_HEADER, SDK_VERSION, RobotConnection, ServiceStub
from rdk_core.error_handling import ResourceNotFoundError
from rdk_core.interceptors import ClientHeaderInterceptor, TimeoutInterceptor
from rdk_core.services import SlamClient

MotorService = MotorClient.SERVICE
SLAMService = SlamClient.SERVICE


def _resource(name: str, subtype: str, type_: str = "component") -> ResourceName:
    return ResourceName(namespace="rdk", type=type_, subtype=subtype, name=name)


def _make_rpc_error(code: grpc.StatusCode, details: str = "") -> grpc.RpcError:
    exc = grpc.RpcError()
    exc.code = MagicMock(return_value=code)
    exc.details = MagicMock(return_value=details)
    return exc


class TestNormaliseTarget:
    def test_adds_default_port(self):
        assert RobotConnection._normalise_target("192.168.1.1") == "192.168.1.1:8080"

    def test_preserves_explicit_port(self):
        assert RobotConnection._normalise_target("10.0.0.1:9999") == "10.0.0.1:9999"

    def test_mdns_hostname(self):
        assert RobotConnection._normalise_target("rover.local") == "rover.local:8080"


class TestPool:
    def test_same_target_returns_same_instance(self):
        assert RobotConnection.get("1.2.3.4") is RobotConnection.get("1.2.3.4")

    def test_different_target_returns_different(self):
        assert RobotConnection.get("1.2.3.4") is not RobotConnection.get("5.6.7.8")

    def test_port_normalised_for_pool_key(self):
        assert RobotConnection.get("1.2.3.4") is RobotConnection.get("1.2.3.4:8080")

    def test_remove_returns_connection(self):
        conn = RobotConnection.get("1.2.3.4")
        assert RobotConnection.remove("1.2.3.4") is conn
        assert "1.2.3.4:8080" not in RobotConnection._pool
        assert RobotConnection.remove("1.2.3.4") is None

    def test_clear_pool(self):
        RobotConnection.get("1.2.3.4")
        RobotConnection.get("5.6.7.8")
        RobotConnection.clear_pool()
        assert len(RobotConnection._pool) == 0

    def test_get_does_not_open_channel(self):
        conn = RobotConnection.get("1.2.3.4")
        assert conn._channel is None


class TestChannel:
    @patch("rdk_core.connection.grpc.aio.insecure_channel")
    def test_lazy_insecure_channel_with_interceptors(self, mock_open):
        conn = RobotConnection.get("1.2.3.4", timeout=3.0)

        channel = conn.channel
        assert conn.channel is channel
        mock_open.assert_called_once()
        args, kwargs = mock_open.call_args
        assert args == ("1.2.3.4:8080",)
        kinds = [type(i) for i in kwargs["interceptors"]]
        assert kinds == [TimeoutInterceptor, ClientHeaderInterceptor]

    @patch("rdk_core.connection.grpc.aio.insecure_channel")
    def test_client_header_carries_api_version(self, mock_open):
        RobotConnection.get("1.2.3.4").channel
        header = mock_open.call_args.kwargs["interceptors"][1]
        assert header._key == CLIENT_HEADER == "viam-client"
        assert header._value == f"python;v{SDK_VERSION};{API_VERSION}"

    @patch("rdk_core.connection.grpc.ssl_channel_credentials")
    @patch("rdk_core.connection.grpc.aio.secure_channel")
    def test_secure_channel(self, mock_secure, mock_creds):
        conn = RobotConnection("robot.example.com:443", secure=True)
        conn.channel
        mock_secure.assert_called_once()
        assert mock_secure.call_args.args == (
            "robot.example.com:443",
            mock_creds.return_value,
        )

    @patch("rdk_core.connection.grpc.aio.insecure_channel")
    def test_stub_cached_per_service(self, mock_open):
        conn = RobotConnection.get("1.2.3.4")
        assert conn.stub(MotorService) is conn.stub(MotorService)
        assert conn.stub(MotorService) is not conn.stub(SLAMService)

    @pytest.mark.asyncio
    async def test_close(self):
        conn = RobotConnection.get("1.2.3.4")
        channel = MagicMock()
        channel.close = AsyncMock()
        conn._channel = channel

        await conn.close()

        channel.close.assert_awaited_once()
        assert conn._channel is None

    @pytest.mark.asyncio
    async def test_close_without_channel(self):
        await RobotConnection.get("1.2.3.4").close()


class TestServiceStub:
    def test_unary_methods(self):
        channel = MagicMock()
        stub = ServiceStub(channel, MotorService)

        paths = [c.args[0] for c in channel.unary_unary.call_args_list]
        assert "/viam.component.motor.v1.MotorService/SetPower" in paths
        assert "/viam.component.motor.v1.MotorService/DoCommand" in paths
        channel.unary_stream.assert_not_called()
        assert stub.SetPower is channel.unary_unary.return_value

    def test_streaming_methods(self):
        channel = MagicMock()
        ServiceStub(channel, SLAMService)

        stream_paths = [c.args[0] for c in channel.unary_stream.call_args_list]
        assert sorted(stream_paths) == [
            "/viam.service.slam.v1.SLAMService/GetInternalState",
            "/viam.service.slam.v1.SLAMService/GetPointCloudMap",
        ]

    def test_serializers(self):
        channel = MagicMock()
        ServiceStub(channel, MotorService)
        kwargs = channel.unary_unary.call_args.kwargs
        method = MotorService[channel.unary_unary.call_args.args[0].rsplit("/", 1)[1]]
        assert kwargs["request_serializer"] == method.request.SerializeToString
        assert kwargs["response_deserializer"] == method.response.FromString


class TestPing:
    @pytest.mark.asyncio
    async def test_ping_success(self):
        conn = RobotConnection.get("1.2.3.4")
        with patch.object(
            conn, "resource_names", AsyncMock(return_value=[_resource("m", "motor")] * 3)
        ):
            result = await conn.ping()

        assert result == {"ok": True, "target": "1.2.3.4:8080", "resources": 3}

    @pytest.mark.asyncio
    async def test_ping_grpc_error(self):
        conn = RobotConnection.get("1.2.3.4")
        error = _make_rpc_error(grpc.StatusCode.UNAVAILABLE, "Connection refused")
        with patch.object(conn, "resource_names", AsyncMock(side_effect=error)):
            result = await conn.ping()

        assert result["ok"] is False
        assert result["error"] == "UNAVAILABLE: Connection refused"


class TestResolver:
    @pytest.mark.asyncio
    async def test_ensure_resolver_idempotent(self):
        conn = RobotConnection.get("1.2.3.4")
        fetch = AsyncMock(return_value=[_resource("left", "motor")])
        with patch.object(conn, "resource_names", fetch):
            assert await conn.ensure_resolver() is True
            assert await conn.ensure_resolver() is True

        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_resolve_by_name_and_subtype(self):
        conn = RobotConnection.get("1.2.3.4")
        motor = _resource("wheel", "motor")
        encoder = _resource("wheel", "encoder")
        with patch.object(conn, "resource_names", AsyncMock(return_value=[motor, encoder])):
            await conn.ensure_resolver()

        assert conn.resolve("wheel") == motor
        assert conn.resolve("wheel", subtype="encoder") == encoder

    @pytest.mark.asyncio
    async def test_resolve_unknown_raises(self):
        conn = RobotConnection.get("1.2.3.4")
        with patch.object(conn, "resource_names", AsyncMock(return_value=[])):
            await conn.ensure_resolver()

        with pytest.raises(ResourceNotFoundError):
            conn.resolve("ghost")
        with pytest.raises(LookupError):
            conn.resolve("ghost", subtype="camera")

    @pytest.mark.asyncio
    async def test_ensure_resolver_failure(self):
        conn = RobotConnection.get("1.2.3.4")
        error = _make_rpc_error(grpc.StatusCode.UNAVAILABLE)
        with patch.object(conn, "resource_names", AsyncMock(side_effect=error)):
            assert await conn.ensure_resolver() is False
        assert conn._resolver_ready is False
