"""Normalize processor HTTP responses into `RelayResult`."""

import httpx

from relaypay.common.errors import UpstreamParseError
from relaypay.services.checkout.schemas import RelayResult


def relay(response: httpx.Response) -> RelayResult:
    """Pair the parsed JSON body with the status code.

    Raises `UpstreamParseError` with the raw body text as its message when the
    body is not JSON.
    """

    try:
        body = response.json()
    except ValueError as exc:
        raise UpstreamParseError(response.text) from exc
    return RelayResult(body=body, status_code=response.status_code)
