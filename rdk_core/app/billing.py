"""Billing client."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from viam.gen.app.v1 import billing_pb2 as billing_pb

from ..resource import AppServiceClient
from ..schema import service
from ..utils import message_to_dict, timestamp_to_datetime


class BillingClient(AppServiceClient):
    SERVICE = service(billing_pb, "BillingService")

    async def get_current_month_usage(self, org_id: str) -> dict[str, Any]:
        """Usage costs so far this month.

        The dict form of the response, plus ``start``/``end`` as
        :class:`~datetime.datetime` when the server reported them.
        """
        response = await self._call("GetCurrentMonthUsage", org_id=org_id)
        usage = message_to_dict(response)
        usage["start"] = (
            timestamp_to_datetime(response.start_date) if response.HasField("start_date") else None
        )
        usage["end"] = (
            timestamp_to_datetime(response.end_date) if response.HasField("end_date") else None
        )
        return usage

    async def get_org_billing_information(
        self, org_id: str
    ) -> billing_pb.GetOrgBillingInformationResponse:
        return await self._call("GetOrgBillingInformation", org_id=org_id)

    async def get_invoices_summary(self, org_id: str) -> billing_pb.GetInvoicesSummaryResponse:
        return await self._call("GetInvoicesSummary", org_id=org_id)

    async def get_invoice_pdf(
        self, invoice_id: str, org_id: str, *, stop_event: Optional[asyncio.Event] = None
    ) -> bytes:
        chunks = []
        async for response in self._stream(
            "GetInvoicePdf", id=invoice_id, org_id=org_id, stop_event=stop_event
        ):
            chunks.append(response.chunk)
        return b"".join(chunks)
