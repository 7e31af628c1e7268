"""Coupon aggregate (CQRS) — a discount code customers enter at checkout.

A coupon takes either a percentage or a fixed amount off the order subtotal.
The discount never exceeds the subtotal, so a coupon can bring an order to
zero but never below it.
"""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from ordering.domain import ordering


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=100, unique=True)
    discount_type = String(choices=DiscountType, required=True)
    percent_off = Float(min_value=0.0, max_value=100.0)
    amount_off_cents = Integer(min_value=0)
    min_order_cents = Integer(default=0, min_value=0)
    valid_until = DateTime()
    max_uses = Integer(min_value=1)  # None means unlimited
    current_uses = Integer(default=0, min_value=0)
    active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def discount_matches_type(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.percent_off is None:
            raise ValidationError({"percent_off": ["Percentage coupons need percent_off"]})
        if self.discount_type == DiscountType.FIXED.value and self.amount_off_cents is None:
            raise ValidationError({"amount_off_cents": ["Fixed coupons need amount_off_cents"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        percent_off=None,
        amount_off_cents=None,
        min_order_cents=0,
        valid_until=None,
        max_uses=None,
    ):
        return cls(
            code=code.strip().upper(),
            discount_type=discount_type,
            percent_off=percent_off,
            amount_off_cents=amount_off_cents,
            min_order_cents=min_order_cents,
            valid_until=valid_until,
            max_uses=max_uses,
            current_uses=0,
            active=True,
            created_at=datetime.now(UTC),
        )

    def _reject(self, reason):
        raise ValidationError({"invalid_coupon": [f"Coupon {self.code} {reason}"]})

    def assert_applicable(self, subtotal_cents, at=None):
        now = at or datetime.now(UTC)
        if not self.active:
            self._reject("is not active")
        if self.valid_until is not None and self.valid_until < now:
            self._reject("has expired")
        if self.max_uses is not None and self.current_uses >= self.max_uses:
            self._reject("has reached its usage limit")
        if subtotal_cents < (self.min_order_cents or 0):
            self._reject("requires a higher order amount")

    def discount_for(self, subtotal_cents, at=None) -> int:
        """Discount in minor units for the given subtotal, capped at the subtotal."""
        self.assert_applicable(subtotal_cents, at)

        if self.discount_type == DiscountType.PERCENTAGE.value:
            raw = (Decimal(subtotal_cents) * Decimal(str(self.percent_off)) / Decimal(100)).quantize(
                Decimal(1), rounding=ROUND_HALF_UP
            )
            discount = int(raw)
        else:
            discount = self.amount_off_cents

        return min(discount, subtotal_cents)

    def redeem(self):
        if self.max_uses is not None and self.current_uses >= self.max_uses:
            self._reject("has reached its usage limit")
        self.current_uses = self.current_uses + 1

    def deactivate(self):
        self.active = False
