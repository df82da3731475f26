"""Order, capture and refund calls forwarded to the payment processor."""

from time import perf_counter
from typing import Any
from urllib.parse import quote

import httpx

from relaypay.common.config import settings
from relaypay.common.logging import capture_id_ctx, logger, order_id_ctx
from relaypay.common.metrics import processor_request_duration_seconds, processor_requests_total
from relaypay.services.checkout.credentials import CredentialProvider
from relaypay.services.checkout.relay import relay
from relaypay.services.checkout.schemas import RelayResult, build_order_payload


class CheckoutService:
    """Gateway for the processor's order and refund endpoints.

    Each operation requests its own access token from the credential provider,
    makes exactly one processor call and relays the response.
    """

    def __init__(
        self,
        credential_provider: CredentialProvider,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.credential_provider = credential_provider
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    async def _post(self, operation: str, path: str, payload: dict[str, Any] | None = None) -> RelayResult:
        # Token failures raise here, before any processor call is made.
        access_token = (await self.credential_provider.acquire_token()).unwrap()
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {access_token}",
        }
        start = perf_counter()
        async with httpx.AsyncClient(transport=self.transport) as client:
            if payload is None:
                resp = await client.post(f"{self.base_url}{path}", headers=headers)
            else:
                resp = await client.post(f"{self.base_url}{path}", headers=headers, json=payload)
        processor_request_duration_seconds.labels(
            service=settings.service_name,
            operation=operation,
        ).observe(max(0.0, perf_counter() - start))
        processor_requests_total.labels(
            service=settings.service_name,
            operation=operation,
            status_code=str(resp.status_code),
        ).inc()
        logger.info("processor responded operation=%s status_code=%s", operation, resp.status_code)
        return relay(resp)

    async def create_order(self, cart: Any) -> RelayResult:
        """Create a fixed-amount capture order. The cart is logged, not charged."""

        logger.info("shopping cart information passed from the frontend: %s", cart)
        return await self._post("create_order", "/v2/checkout/orders", build_order_payload())

    async def capture_order(self, order_id: str) -> RelayResult:
        """Capture payment for a previously created order."""

        order_id_ctx.set(order_id)
        logger.info("capturing order order_id=%s", order_id)
        return await self._post("capture_order", f"/v2/checkout/orders/{quote(order_id, safe='')}/capture")

    async def refund_transaction(self, capture_id: str) -> RelayResult:
        """Refund a completed capture in full."""

        capture_id_ctx.set(capture_id)
        logger.info("refunding capture capture_id=%s", capture_id)
        return await self._post("refund_transaction", f"/v2/payments/captures/{quote(capture_id, safe='')}/refund")
