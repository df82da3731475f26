"""Fixtures faking the payment processor with `httpx.MockTransport`."""

import json

import httpx
import pytest

from relaypay.common.config import ProcessorCredentials
from relaypay.services.checkout.credentials import CredentialProvider
from relaypay.services.checkout.service import CheckoutService

BASE_URL = "https://processor.test"


class FakeProcessor:
    """Records every request and answers from a per-path table."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, httpx.Response] = {
            "/v1/oauth2/token": httpx.Response(200, json={"access_token": "A21AA-token", "expires_in": 32400}),
        }

    def respond(self, path: str, response: httpx.Response) -> None:
        self.routes[path] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get(request.url.path)
        if response is None:
            return httpx.Response(404, json={"name": "RESOURCE_NOT_FOUND"})
        return httpx.Response(
            response.status_code,
            content=response.content,
            headers=response.headers,
        )

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def json_body(self, path: str):
        for request in self.requests:
            if request.url.path == path:
                return json.loads(request.content)
        raise AssertionError(f"no request to {path}")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def credentials():
    return ProcessorCredentials(client_id="client-id", client_secret="client-secret")


@pytest.fixture
def checkout(processor, credentials):
    transport = processor.transport
    return CheckoutService(
        CredentialProvider(credentials, BASE_URL, transport=transport),
        BASE_URL,
        transport=transport,
    )
