"""CommissionRecord aggregate (CQRS) — one partner commission per attributed order.

The amount is computed once, when the order is placed, from the partner's
rate at that moment and the commissionable base (subtotal minus discount,
shipping excluded). The record becomes eligible for payout once the order
is paid; approving or rejecting the payout is an admin action.
"""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


class CommissionStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def compute_commission_cents(base_cents: int, rate_percent: float) -> int:
    """``rate_percent`` of ``base_cents``, rounded half-up to the minor unit."""
    amount = Decimal(base_cents) * Decimal(str(rate_percent)) / Decimal(100)
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@ordering.aggregate
class CommissionRecord:
    partner_id = Identifier(required=True)
    order_id = Identifier(required=True, unique=True)
    order_number = String(required=True, max_length=50)
    rate = Float(required=True, min_value=0.0)
    base_cents = Integer(required=True, min_value=0)
    amount_cents = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="EUR")
    status = String(choices=CommissionStatus, default=CommissionStatus.PENDING.value)
    eligible = Boolean(default=False)
    eligible_at = DateTime()
    created_at = DateTime()

    @classmethod
    def accrue(cls, partner_id, order_id, order_number, rate, base_cents, currency="EUR"):
        return cls(
            partner_id=partner_id,
            order_id=order_id,
            order_number=order_number,
            rate=rate,
            base_cents=base_cents,
            amount_cents=compute_commission_cents(base_cents, rate),
            currency=currency,
            status=CommissionStatus.PENDING.value,
            eligible=False,
            created_at=datetime.now(UTC),
        )

    def mark_eligible(self) -> bool:
        """Flag the commission as earned. Returns False if it already was."""
        if self.eligible:
            return False
        if CommissionStatus(self.status) == CommissionStatus.REJECTED:
            raise ValidationError({"status": ["A rejected commission cannot become eligible"]})
        self.eligible = True
        self.eligible_at = datetime.now(UTC)
        return True
