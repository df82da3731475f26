"""Client-credentials token acquisition against the processor's OAuth endpoint."""

import base64
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from relaypay.common.config import ProcessorCredentials, settings
from relaypay.common.errors import MissingCredentialsError, ProcessorError, UpstreamAuthError
from relaypay.common.logging import logger
from relaypay.common.metrics import token_requests_total

TOKEN_PATH = "/v1/oauth2/token"


def basic_auth_value(client_id: str, client_secret: str) -> str:
    """Build the `Authorization` header value for the client-credentials grant."""

    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return f"Basic {base64.b64encode(raw).decode('ascii')}"


@dataclass(frozen=True)
class TokenResult:
    """Outcome of one token acquisition: a token, or the error that prevented it."""

    token: str | None = None
    error: ProcessorError | None = None

    @property
    def ok(self) -> bool:
        return self.token is not None

    def unwrap(self) -> str:
        if self.token is None:
            raise self.error or UpstreamAuthError("access token unavailable")
        return self.token


class TokenCache:
    """In-process access token cache keyed by credential pair.

    Entries expire `skew_seconds` before the processor's `expires_in`.
    """

    def __init__(self, skew_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.skew_seconds = skew_seconds
        self.clock = clock
        self._entries: dict[tuple[str | None, str | None], tuple[str, float]] = {}

    @staticmethod
    def _key(credentials: ProcessorCredentials) -> tuple[str | None, str | None]:
        return credentials.client_id, credentials.client_secret

    def get(self, credentials: ProcessorCredentials) -> str | None:
        entry = self._entries.get(self._key(credentials))
        if entry is None:
            return None
        token, expires_at = entry
        if self.clock() >= expires_at:
            del self._entries[self._key(credentials)]
            return None
        return token

    def put(self, credentials: ProcessorCredentials, token: str, expires_in: Any) -> None:
        if not expires_in:
            return
        try:
            lifetime = float(expires_in)
        except (TypeError, ValueError):
            logger.warning("token not cached, unusable expires_in=%r", expires_in)
            return
        expires_at = self.clock() + lifetime - self.skew_seconds
        if expires_at <= self.clock():
            return
        self._entries[self._key(credentials)] = (token, expires_at)

    def clear(self) -> None:
        self._entries.clear()


class CredentialProvider:
    """Exchanges the configured client id/secret for a bearer token.

    Never raises: every failure is logged and reported through `TokenResult`.
    """

    def __init__(
        self,
        credentials: ProcessorCredentials,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        cache: TokenCache | None = None,
    ) -> None:
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.cache = cache

    def _failed(self, error: ProcessorError) -> TokenResult:
        logger.error("token_acquisition_failed error_type=%s error=%s", type(error).__name__, error)
        token_requests_total.labels(service=settings.service_name, outcome="failure").inc()
        return TokenResult(error=error)

    async def acquire_token(self) -> TokenResult:
        if not self.credentials.complete:
            return self._failed(MissingCredentialsError())

        if self.cache is not None:
            cached = self.cache.get(self.credentials)
            if cached is not None:
                token_requests_total.labels(service=settings.service_name, outcome="cached").inc()
                return TokenResult(token=cached)

        headers = {
            "Authorization": basic_auth_value(self.credentials.client_id, self.credentials.client_secret),
        }
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                resp = await client.post(
                    f"{self.base_url}{TOKEN_PATH}",
                    data={"grant_type": "client_credentials"},
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            return self._failed(UpstreamAuthError(f"token request failed: {exc!r}"))

        try:
            data = resp.json()
        except ValueError:
            return self._failed(UpstreamAuthError(resp.text))

        token = data.get("access_token") if isinstance(data, dict) else None
        if resp.status_code >= 400 or not isinstance(token, str) or not token:
            detail = data
            if isinstance(data, dict):
                detail = data.get("error_description") or data.get("error") or data
            return self._failed(UpstreamAuthError(f"token endpoint status={resp.status_code} detail={detail}"))

        if self.cache is not None:
            self.cache.put(self.credentials, token, data.get("expires_in"))
        token_requests_total.labels(service=settings.service_name, outcome="success").inc()
        return TokenResult(token=token)
