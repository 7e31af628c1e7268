"""OAuth2 client-credentials token cache.

One provider instance is shared by every request in the process. The token is
refreshed ``skew_seconds`` before it expires. Two threads racing on an expired
token may both fetch one; the lock only keeps the cached value consistent.
"""

import threading
import time
from collections.abc import Callable

import httpx
import structlog

from payments.gateway.port import PaymentGatewayError

logger = structlog.get_logger(__name__)


class ClientCredentialsTokenProvider:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str,
        http_client: httpx.Client,
        skew_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        provider: str = "paypal",
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.skew_seconds = skew_seconds
        self.provider = provider
        self._http = http_client
        self._clock = clock
        self._lock = threading.Lock()
        self._token: str | None = None
        self._expires_at: float = 0.0

    def _is_fresh(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at - self.skew_seconds

    def get_token(self) -> str:
        with self._lock:
            if self._is_fresh():
                return self._token

        token, expires_in = self._fetch()

        with self._lock:
            self._token = token
            self._expires_at = self._clock() + expires_in
            return token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0

    def _fetch(self) -> tuple[str, float]:
        try:
            response = self._http.post(
                self.token_url,
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise PaymentGatewayError("Token request timed out", reason="timeout", provider=self.provider) from e
        except httpx.HTTPError as e:
            raise PaymentGatewayError(f"Token request failed: {e}", reason="unreachable", provider=self.provider) from e

        if response.status_code != 200:
            logger.error("OAuth token request rejected", provider=self.provider, status_code=response.status_code)
            raise PaymentGatewayError(
                f"Token request rejected with {response.status_code}",
                reason="auth_failed",
                provider=self.provider,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise PaymentGatewayError("Token response is not JSON", reason="invalid_response", provider=self.provider) from e
        token = body.get("access_token")
        if not token:
            raise PaymentGatewayError("Token response has no access_token", reason="auth_failed", provider=self.provider)
        return token, float(body.get("expires_in", 0))
