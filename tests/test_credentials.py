"""Unit tests for client-credentials token acquisition."""

import asyncio
import base64

import httpx
import pytest

from relaypay.common.config import ProcessorCredentials
from relaypay.common.errors import MissingCredentialsError, UpstreamAuthError
from relaypay.services.checkout.credentials import (
    CredentialProvider,
    TokenCache,
    TokenResult,
    basic_auth_value,
)

from conftest import BASE_URL


def test_basic_auth_value_encodes_pair():
    expected = base64.b64encode(b"id:secret").decode("ascii")
    assert basic_auth_value("id", "secret") == f"Basic {expected}"


def test_acquire_token_returns_access_token(processor, credentials):
    provider = CredentialProvider(credentials, BASE_URL, transport=processor.transport)

    result = asyncio.run(provider.acquire_token())

    assert result.ok
    assert result.token == "A21AA-token"
    request = processor.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/oauth2/token"
    assert request.headers["authorization"] == basic_auth_value("client-id", "client-secret")
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert request.content == b"grant_type=client_credentials"


@pytest.mark.parametrize(
    "credentials",
    [
        ProcessorCredentials(),
        ProcessorCredentials(client_id="client-id"),
        ProcessorCredentials(client_secret="client-secret"),
        ProcessorCredentials(client_id="", client_secret="client-secret"),
    ],
)
def test_missing_credentials_do_not_raise(processor, credentials):
    """Missing config is reported in the result, and no token call is made."""

    provider = CredentialProvider(credentials, BASE_URL, transport=processor.transport)

    result = asyncio.run(provider.acquire_token())

    assert not result.ok
    assert isinstance(result.error, MissingCredentialsError)
    assert processor.requests == []


def test_non_json_token_response_is_auth_error(processor, credentials):
    processor.respond("/v1/oauth2/token", httpx.Response(502, text="Bad Gateway"))
    provider = CredentialProvider(credentials, BASE_URL, transport=processor.transport)

    result = asyncio.run(provider.acquire_token())

    assert isinstance(result.error, UpstreamAuthError)
    assert str(result.error) == "Bad Gateway"


def test_error_token_response_is_auth_error(processor, credentials):
    processor.respond(
        "/v1/oauth2/token",
        httpx.Response(401, json={"error": "invalid_client", "error_description": "Client Authentication failed"}),
    )
    provider = CredentialProvider(credentials, BASE_URL, transport=processor.transport)

    result = asyncio.run(provider.acquire_token())

    assert isinstance(result.error, UpstreamAuthError)
    assert "Client Authentication failed" in str(result.error)


def test_transport_failure_is_auth_error(credentials):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = CredentialProvider(credentials, BASE_URL, transport=httpx.MockTransport(handler))

    result = asyncio.run(provider.acquire_token())

    assert isinstance(result.error, UpstreamAuthError)


def test_unwrap_raises_carried_error():
    error = MissingCredentialsError()

    with pytest.raises(MissingCredentialsError):
        TokenResult(error=error).unwrap()
    assert TokenResult(token="t").unwrap() == "t"


def test_cache_reuses_token_until_expiry(processor, credentials):
    now = [1000.0]
    cache = TokenCache(skew_seconds=60, clock=lambda: now[0])
    provider = CredentialProvider(credentials, BASE_URL, transport=processor.transport, cache=cache)

    first = asyncio.run(provider.acquire_token())
    second = asyncio.run(provider.acquire_token())
    assert first.token == second.token == "A21AA-token"
    assert processor.paths().count("/v1/oauth2/token") == 1

    now[0] += 32400 - 60
    asyncio.run(provider.acquire_token())
    assert processor.paths().count("/v1/oauth2/token") == 2


def test_cache_is_keyed_by_credential_pair(credentials):
    cache = TokenCache(clock=lambda: 0.0)
    cache.put(credentials, "token-a", 3600)

    assert cache.get(credentials) == "token-a"
    assert cache.get(ProcessorCredentials(client_id="other", client_secret="client-secret")) is None


def test_cache_skips_tokens_without_expiry(credentials):
    cache = TokenCache(clock=lambda: 0.0)
    cache.put(credentials, "token-a", None)
    cache.put(credentials, "token-b", 30)

    assert cache.get(credentials) is None


@pytest.mark.parametrize("expires_in", ["soon", [3600], {"seconds": 3600}])
def test_unusable_expires_in_returns_token_uncached(processor, credentials, expires_in):
    processor.respond("/v1/oauth2/token", httpx.Response(200, json={"access_token": "t", "expires_in": expires_in}))
    cache = TokenCache(clock=lambda: 0.0)
    provider = CredentialProvider(credentials, BASE_URL, transport=processor.transport, cache=cache)

    result = asyncio.run(provider.acquire_token())

    assert result.token == "t"
    assert cache.get(credentials) is None
