"""Checkout configuration read from the environment.

Values are read once into an immutable ``CheckoutSettings`` and handed to the
services that need them. Tests swap in their own instance via
``set_settings()``.
"""

import os
from dataclasses import dataclass, field


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw not in (None, "") else default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw not in (None, "") else default


@dataclass(frozen=True)
class BankAccount:
    """Recipient account printed on bank-transfer instructions."""

    recipient: str
    iban: str
    bic: str
    bank_name: str


@dataclass(frozen=True)
class CheckoutSettings:
    currency: str = "EUR"
    order_number_prefix: str = "ALN"
    # Flat shipping fee, waived when the discounted subtotal reaches the threshold
    shipping_fee_cents: int = 0
    free_shipping_threshold_cents: int | None = 5000
    storefront_url: str = "http://localhost:8000"
    admin_email: str = "orders@localhost"
    idempotency_window_seconds: int = 24 * 60 * 60
    default_commission_rate: float = 2.5
    payback_rate: float = 5.0
    bank_account: BankAccount = field(
        default_factory=lambda: BankAccount(
            recipient="ALDENAIR",
            iban="DE00 0000 0000 0000 0000 00",
            bic="XXXXDEXXXXX",
            bank_name="Example Bank",
        )
    )

    @classmethod
    def from_env(cls) -> "CheckoutSettings":
        defaults = cls()
        return cls(
            currency=os.environ.get("CHECKOUT_CURRENCY", defaults.currency),
            order_number_prefix=os.environ.get("ORDER_NUMBER_PREFIX", defaults.order_number_prefix),
            shipping_fee_cents=_env_int("SHIPPING_FEE_CENTS", defaults.shipping_fee_cents),
            free_shipping_threshold_cents=_env_int(
                "FREE_SHIPPING_THRESHOLD_CENTS", defaults.free_shipping_threshold_cents
            ),
            storefront_url=os.environ.get("STOREFRONT_URL", defaults.storefront_url).rstrip("/"),
            admin_email=os.environ.get("ADMIN_EMAIL", defaults.admin_email),
            idempotency_window_seconds=_env_int("IDEMPOTENCY_WINDOW_SECONDS", defaults.idempotency_window_seconds),
            default_commission_rate=_env_float("DEFAULT_COMMISSION_RATE", defaults.default_commission_rate),
            payback_rate=_env_float("PAYBACK_RATE", defaults.payback_rate),
            bank_account=BankAccount(
                recipient=os.environ.get("BANK_RECIPIENT", defaults.bank_account.recipient),
                iban=os.environ.get("BANK_IBAN", defaults.bank_account.iban),
                bic=os.environ.get("BANK_BIC", defaults.bank_account.bic),
                bank_name=os.environ.get("BANK_NAME", defaults.bank_account.bank_name),
            ),
        )


_current_settings: CheckoutSettings | None = None


def get_settings() -> CheckoutSettings:
    """Return the active settings, reading the environment on first use."""
    global _current_settings
    if _current_settings is None:
        _current_settings = CheckoutSettings.from_env()
    return _current_settings


def set_settings(settings: CheckoutSettings) -> None:
    global _current_settings
    _current_settings = settings


def reset_settings() -> None:
    global _current_settings
    _current_settings = None
