"""Provisioning client for a smart machine's setup agent."""

from __future__ import annotations

from typing import Optional

from viam.gen.provisioning.v1 import provisioning_pb2 as provisioning_pb

from ..resource import AppServiceClient
from ..schema import service

CloudConfig = provisioning_pb.CloudConfig


class ProvisioningClient(AppServiceClient):
    SERVICE = service(provisioning_pb, "ProvisioningService")

    async def get_smart_machine_status(self) -> provisioning_pb.GetSmartMachineStatusResponse:
        return await self._call("GetSmartMachineStatus")

    async def set_network_credentials(self, type: str, ssid: str, psk: str) -> None:
        await self._call("SetNetworkCredentials", type=type, ssid=ssid, psk=psk)

    async def set_smart_machine_credentials(self, cloud: Optional[CloudConfig] = None) -> None:
        await self._call("SetSmartMachineCredentials", cloud=cloud)

    async def get_network_list(self) -> list[provisioning_pb.NetworkInfo]:
        return list((await self._call("GetNetworkList")).networks)
