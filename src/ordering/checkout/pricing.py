"""Server-side pricing of a cart.

The browser only sends product/variant ids and quantities. Every price used
for an order comes from the catalog at checkout time, and the authoritative
total is always the one computed here.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from protean.exceptions import ValidationError

from ordering.catalog.port import CatalogPort


@dataclass(frozen=True)
class CartLine:
    product_id: str
    variant_id: str
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    variant_id: str
    title: str
    quantity: int
    unit_price_cents: int

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    def as_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "title": self.title,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
        }


@dataclass(frozen=True)
class PriceBreakdown:
    lines: tuple[PricedLine, ...]
    subtotal_cents: int
    discount_cents: int
    shipping_cents: int
    total_cents: int
    coupon_code: str | None = None


def format_cents(cents: int) -> str:
    """Render minor units as a fixed two-decimal amount, e.g. 4900 -> "49.00"."""
    return f"{Decimal(cents) / Decimal(100):.2f}"


def shipping_for(discounted_subtotal_cents: int, fee_cents: int, free_threshold_cents: int | None) -> int:
    if free_threshold_cents is not None and discounted_subtotal_cents >= free_threshold_cents:
        return 0
    return fee_cents


def price_lines(lines: list[CartLine], catalog: CatalogPort) -> list[PricedLine]:
    if not lines:
        raise ValidationError({"empty_cart": ["Cart has no items"]})

    priced = []
    for line in lines:
        if line.quantity is None or line.quantity < 1:
            raise ValidationError({"invalid_quantity": [f"Quantity for variant {line.variant_id} must be at least 1"]})

        quote = catalog.resolve_variant(line.product_id, line.variant_id)
        if quote is None:
            raise ValidationError({"unknown_variant": [f"Variant {line.variant_id} of {line.product_id} does not exist"]})
        if not quote.sellable:
            raise ValidationError({"unsellable_variant": [f"Variant {line.variant_id} is not available for sale"]})

        priced.append(
            PricedLine(
                product_id=str(line.product_id),
                variant_id=str(line.variant_id),
                title=quote.title,
                quantity=line.quantity,
                unit_price_cents=quote.unit_price_cents,
            )
        )
    return priced


def compute_authoritative_total(
    lines: list[CartLine],
    catalog: CatalogPort,
    shipping_fee_cents: int = 0,
    free_shipping_threshold_cents: int | None = None,
    coupon=None,
    at: datetime | None = None,
) -> PriceBreakdown:
    """Price the cart from catalog data, apply the coupon, then shipping.

    Shipping is free once the discounted subtotal reaches the threshold.
    """
    priced = price_lines(lines, catalog)
    subtotal = sum(line.line_total_cents for line in priced)
    discount = coupon.discount_for(subtotal, at) if coupon is not None else 0
    shipping = shipping_for(subtotal - discount, shipping_fee_cents, free_shipping_threshold_cents)

    return PriceBreakdown(
        lines=tuple(priced),
        subtotal_cents=subtotal,
        discount_cents=discount,
        shipping_cents=shipping,
        total_cents=subtotal - discount + shipping,
        coupon_code=coupon.code if coupon is not None else None,
    )


def parse_amount_cents(amount: str) -> int:
    """Parse a decimal amount such as "79.90" into minor units."""
    try:
        value = Decimal(str(amount).strip())
    except (ArithmeticError, ValueError) as e:
        raise ValidationError({"invalid_amount": [f"{amount!r} is not an amount"]}) from e
    if not value.is_finite() or value != value.quantize(Decimal("0.01")):
        raise ValidationError({"invalid_amount": [f"{amount!r} is not an amount"]})
    return int(value * 100)
