"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement, so
the checkout and reconciliation code never deals with a provider SDK or
wire format directly.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


class PaymentGatewayError(Exception):
    """The provider could not set up or complete a payment.

    Raised for authentication failures, provider rejections, missing redirect
    links and timeouts alike; ``reason`` carries a short machine-readable cause.
    """

    def __init__(self, message: str, reason: str = "provider_error", provider: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.provider = provider


class WebhookPayloadError(ValueError):
    """A webhook body could not be parsed into a provider event."""


class ProviderEventKind(Enum):
    PAYMENT_SUCCEEDED = "payment_succeeded"
    SESSION_EXPIRED = "session_expired"
    PAYMENT_FAILED = "payment_failed"
    UNHANDLED = "unhandled"


@dataclass(frozen=True)
class LineItem:
    title: str
    quantity: int
    unit_price_cents: int


@dataclass(frozen=True)
class PaymentRequest:
    """Everything a provider needs to collect payment for one order."""

    order_id: str
    order_number: str
    amount_cents: int
    currency: str
    line_items: tuple[LineItem, ...]
    return_url: str
    cancel_url: str
    customer_email: str | None = None
    shipping_cents: int = 0
    discount_cents: int = 0


@dataclass(frozen=True)
class PaymentSession:
    """A provider-side checkout the customer is redirected to."""

    provider: str
    provider_ref: str
    redirect_url: str


@dataclass(frozen=True)
class ProviderEvent:
    """A provider callback normalised to what reconciliation acts on."""

    provider: str
    kind: ProviderEventKind
    event_type: str
    event_id: str | None = None
    provider_ref: str | None = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    provider: str = "unknown"

    @abstractmethod
    def create_payment(self, request: PaymentRequest) -> PaymentSession:
        """Create a provider-side checkout for the order.

        Raises:
            PaymentGatewayError: the provider did not return a usable session.
        """
        ...

    @property
    @abstractmethod
    def verification_configured(self) -> bool:
        """Whether this adapter holds the secret needed to verify webhooks."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, headers: Mapping[str, str]) -> bool:
        """Verify that a webhook payload is authentically from the provider."""
        ...

    @abstractmethod
    def parse_event(self, payload: str) -> ProviderEvent:
        """Parse a webhook body.

        Raises:
            WebhookPayloadError: the body is not a well-formed provider event.
        """
        ...

    def capture(self, provider_ref: str) -> ProviderEvent:
        """Complete an approved payment, for providers that need a capture step."""
        raise PaymentGatewayError(f"{self.provider} payments need no capture", reason="unsupported", provider=self.provider)


def reject_non_positive(request: PaymentRequest, provider: str) -> None:
    if request.amount_cents <= 0:
        raise PaymentGatewayError(
            f"Refusing to create a {provider} payment for a non-positive amount",
            reason="non_positive_amount",
            provider=provider,
        )


def header_value(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup that works for plain dicts too."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None
