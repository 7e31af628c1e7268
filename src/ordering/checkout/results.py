"""Checkout request and result types."""

from dataclasses import dataclass, field
from enum import Enum

from ordering.checkout.pricing import CartLine


class CheckoutAction(Enum):
    # Send the browser to the provider's hosted page
    REDIRECT = "redirect"
    # Show bank details; the order waits for the transfer
    BANK_TRANSFER = "bank_transfer"
    # Nothing left to pay
    COMPLETED = "completed"


@dataclass(frozen=True)
class CustomerIdentity:
    """Who is buying: a registered account or a guest, never both."""

    customer_id: str | None = None
    guest_email: str | None = None
    email: str | None = None
    name: str | None = None

    @property
    def contact_email(self) -> str | None:
        return self.email or self.guest_email


@dataclass(frozen=True)
class CheckoutRequest:
    lines: list[CartLine]
    customer: CustomerIdentity
    payment_method: str
    idempotency_key: str
    shipping_address: dict | None = None
    billing_address: dict | None = None
    referral_code: str | None = None
    coupon_code: str | None = None
    # What the browser displayed; only compared, never stored
    client_total_cents: int | None = None


@dataclass(frozen=True)
class BankTransferInstructions:
    recipient: str
    iban: str
    bic: str
    bank_name: str
    amount_cents: int
    currency: str
    reference: str


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    order_number: str
    status: str
    payment_method: str
    total_cents: int
    currency: str
    action: CheckoutAction
    redirect_url: str | None = None
    bank_transfer: BankTransferInstructions | None = None
    replayed: bool = field(default=False, compare=False)
