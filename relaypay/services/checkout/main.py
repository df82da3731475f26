"""Public HTTP surface for the storefront checkout.

Each API route forwards to the payment processor through `CheckoutService` and
relays the processor's status and body verbatim. Any failure is logged and
answered with a fixed per-route 500 body.
"""

import json
from pathlib import Path
from typing import Any
from time import perf_counter
from uuid import uuid4

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Path as PathParam, Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from relaypay.common.config import ProcessorCredentials, settings
from relaypay.common.logging import configure_logging, logger, trace_id_ctx
from relaypay.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
    route_failures_total,
)
from relaypay.common.startup import log_startup_config
from relaypay.common.tracing import instrument_app, setup_tracing
from relaypay.services.checkout.credentials import CredentialProvider, TokenCache
from relaypay.services.checkout.schemas import ErrorResponse, RelayResult
from relaypay.services.checkout.service import CheckoutService

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    [
        "SERVICE_NAME",
        "PORT",
        "CLIENT_ID",
        "CLIENT_SECRET",
        "PROCESSOR_BASE_URL",
        "TOKEN_CACHE_ENABLED",
    ],
)
service = CheckoutService(
    CredentialProvider(
        ProcessorCredentials.from_settings(settings),
        settings.processor_base_url,
        cache=TokenCache() if settings.token_cache_enabled else None,
    ),
    settings.processor_base_url,
)

app = FastAPI(title="Checkout Relay")
instrument_app(app)


def get_checkout_service() -> CheckoutService:
    return service


@app.middleware("http")
async def context_and_metrics_middleware(request: Request, call_next):
    """Bind a trace id and record request count and latency for every HTTP call."""

    trace_id = request.headers.get("x-correlation-id") or str(uuid4())
    trace_id_ctx.set(trace_id)
    start = perf_counter()
    route = "unmatched"
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        response.headers["x-correlation-id"] = trace_id
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


def _relayed(result: RelayResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body)


def _failed(route: str, message: str) -> JSONResponse:
    route_failures_total.labels(service=settings.service_name, route=route).inc()
    return JSONResponse(status_code=500, content=ErrorResponse(error=message).model_dump())


async def _read_cart(request: Request) -> Any:
    """Pull `cart` out of a JSON or form body; any other body carries no cart.

    Only malformed JSON is rejected.
    """

    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("application/x-www-form-urlencoded"):
        form = await request.form()
        return form.get("cart")
    if not content_type.startswith("application/json"):
        return None
    body = await request.body()
    if not body.strip():
        return None
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail="malformed JSON body") from exc
    if isinstance(payload, dict):
        return payload.get("cart")
    return None


@app.post("/api/orders")
async def create_order(
    request: Request,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """Create an order with the processor and relay its response."""

    cart = await _read_cart(request)
    try:
        result = await checkout.create_order(cart)
    except Exception as exc:
        logger.exception("Failed to create order: %s", exc)
        return _failed("/api/orders", "Failed to create order.")
    return _relayed(result)


@app.post("/api/orders/{orderID}/capture")
async def capture_order(
    order_id: str = PathParam(alias="orderID"),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """Capture a created order and relay the processor's response."""

    try:
        result = await checkout.capture_order(order_id)
    except Exception as exc:
        logger.exception("Failed to capture order: %s", exc)
        return _failed("/api/orders/{orderID}/capture", "Failed to capture order.")
    return _relayed(result)


@app.post("/api/captures/{capture_id}/refund")
async def refund_capture(
    capture_id: str,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """Refund a capture and relay the processor's response."""

    try:
        result = await checkout.refund_transaction(capture_id)
    except Exception as exc:
        logger.exception("Failed to refund: %s", exc)
        return _failed("/api/captures/{capture_id}/refund", "Failed to refund order.")
    return _relayed(result)


@app.get("/")
def index():
    """Storefront entry page; `index.html` in the static directory wins over `index_file`."""

    index_path = Path(settings.static_dir) / "index.html"
    if not index_path.is_file():
        index_path = Path(settings.index_file)
    if not index_path.is_file():
        raise HTTPException(status_code=404, detail="index page not found")
    return FileResponse(index_path)


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


# Registered last so the API routes above take precedence.
if Path(settings.static_dir).is_dir():
    app.mount("/", StaticFiles(directory=settings.static_dir), name="static")


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
