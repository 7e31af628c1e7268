"""Payment provider configuration read from the environment."""

import os
from dataclasses import dataclass

PAYPAL_SANDBOX_URL = "https://api-m.sandbox.paypal.com"
PAYPAL_LIVE_URL = "https://api-m.paypal.com"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class GatewaySettings:
    # "fake" for development and tests, "live" for the real providers
    adapter: str = "fake"
    environment: str = "development"
    http_timeout: float = 10.0

    stripe_api_key: str | None = None
    stripe_webhook_secret: str | None = None

    paypal_client_id: str | None = None
    paypal_client_secret: str | None = None
    paypal_base_url: str = PAYPAL_SANDBOX_URL
    paypal_webhook_id: str | None = None

    # Accept webhooks without signature verification when no secret is configured.
    # Never honoured in production.
    webhook_allow_unsigned: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def unsigned_webhooks_permitted(self) -> bool:
        return self.webhook_allow_unsigned and not self.is_production

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        return cls(
            adapter=os.environ.get("PAYMENT_GATEWAY_ADAPTER", "fake").lower(),
            environment=os.environ.get("PROTEAN_ENV", "development").lower(),
            http_timeout=float(os.environ.get("PAYMENT_HTTP_TIMEOUT", "10")),
            stripe_api_key=os.environ.get("STRIPE_SECRET_KEY") or None,
            stripe_webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET") or None,
            paypal_client_id=os.environ.get("PAYPAL_CLIENT_ID") or None,
            paypal_client_secret=os.environ.get("PAYPAL_CLIENT_SECRET") or None,
            paypal_base_url=os.environ.get("PAYPAL_BASE_URL", PAYPAL_SANDBOX_URL).rstrip("/"),
            paypal_webhook_id=os.environ.get("PAYPAL_WEBHOOK_ID") or None,
            webhook_allow_unsigned=_env_bool("WEBHOOK_ALLOW_UNSIGNED"),
        )
