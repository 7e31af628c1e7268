"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations per provider:
- FakeGateway for development and testing (PAYMENT_GATEWAY_ADAPTER=fake)
- StripeGateway and PayPalGateway in production (PAYMENT_GATEWAY_ADAPTER=live)

Checkout picks the provider from the payment method: cards go through
Stripe's hosted checkout, the redirect wallet is PayPal.
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway, PaymentGatewayError
from payments.settings import GatewaySettings

STRIPE = "stripe"
PAYPAL = "paypal"

METHOD_PROVIDERS = {
    "card": STRIPE,
    "wallet_redirect": PAYPAL,
}

_gateways: dict[str, PaymentGateway] = {}
_settings: GatewaySettings | None = None


def get_gateway_settings() -> GatewaySettings:
    global _settings
    if _settings is None:
        _settings = GatewaySettings.from_env()
    return _settings


def set_gateway_settings(settings: GatewaySettings) -> None:
    global _settings
    _settings = settings
    _gateways.clear()


def _build(provider: str, settings: GatewaySettings) -> PaymentGateway:
    if settings.adapter == "fake":
        return FakeGateway(provider=provider)

    if provider == STRIPE:
        from payments.gateway.stripe_adapter import StripeGateway

        if not settings.stripe_api_key:
            raise PaymentGatewayError("STRIPE_SECRET_KEY is not configured", reason="not_configured", provider=STRIPE)
        return StripeGateway(
            api_key=settings.stripe_api_key,
            webhook_secret=settings.stripe_webhook_secret,
            timeout=settings.http_timeout,
        )

    if provider == PAYPAL:
        from payments.gateway.paypal_adapter import PayPalGateway

        if not (settings.paypal_client_id and settings.paypal_client_secret):
            raise PaymentGatewayError(
                "PAYPAL_CLIENT_ID / PAYPAL_CLIENT_SECRET are not configured", reason="not_configured", provider=PAYPAL
            )
        return PayPalGateway(
            client_id=settings.paypal_client_id,
            client_secret=settings.paypal_client_secret,
            base_url=settings.paypal_base_url,
            webhook_id=settings.paypal_webhook_id,
            timeout=settings.http_timeout,
        )

    raise ValueError(f"Unknown payment provider: {provider}")


def get_gateway(provider: str) -> PaymentGateway:
    """Return the gateway for ``provider`` (singleton per provider)."""
    if provider not in _gateways:
        _gateways[provider] = _build(provider, get_gateway_settings())
    return _gateways[provider]


def gateway_for_method(payment_method: str) -> PaymentGateway:
    provider = METHOD_PROVIDERS.get(payment_method)
    if provider is None:
        raise ValueError(f"Payment method {payment_method} has no payment provider")
    return get_gateway(provider)


def set_gateway(provider: str, gateway: PaymentGateway) -> None:
    """Override the gateway for one provider (useful for tests)."""
    _gateways[provider] = gateway


def reset_gateways() -> None:
    """Reset to default gateways and re-read settings on next use."""
    global _settings
    _gateways.clear()
    _settings = None
