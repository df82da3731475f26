"""Request/response schemas for the checkout relay endpoints."""

from typing import Any

from pydantic import BaseModel


ORDER_INTENT = "CAPTURE"
ORDER_CURRENCY = "USD"
ORDER_VALUE = "100.00"


class RelayResult(BaseModel):
    """Processor response body paired with its HTTP status code."""

    body: Any
    status_code: int


class ErrorResponse(BaseModel):
    error: str


def build_order_payload() -> dict[str, Any]:
    """Order body sent to the processor. Always a fixed-amount USD capture order."""

    return {
        "intent": ORDER_INTENT,
        "purchase_units": [
            {
                "amount": {
                    "currency_code": ORDER_CURRENCY,
                    "value": ORDER_VALUE,
                },
            },
        ],
    }
