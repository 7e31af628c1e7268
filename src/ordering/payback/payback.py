"""PaybackEarning aggregate — store credit a registered customer earns on a paid order.

One earning per order, computed from the order total (shipping included) at
the payback rate in force when the payment lands. Earnings start pending;
redeeming or paying them out happens outside the storefront.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.commission.commission import compute_commission_cents
from ordering.domain import ordering


class PaybackStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@ordering.aggregate
class PaybackEarning:
    customer_id = Identifier(required=True)
    order_id = Identifier(required=True, unique=True)
    order_number = String(required=True, max_length=50)
    rate = Float(required=True, min_value=0.0)
    base_cents = Integer(required=True, min_value=0)
    amount_cents = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="EUR")
    status = String(choices=PaybackStatus, default=PaybackStatus.PENDING.value)
    created_at = DateTime()

    @classmethod
    def earn(cls, customer_id, order_id, order_number, rate, base_cents, currency="EUR"):
        return cls(
            customer_id=customer_id,
            order_id=order_id,
            order_number=order_number,
            rate=rate,
            base_cents=base_cents,
            amount_cents=compute_commission_cents(base_cents, rate),
            currency=currency,
            status=PaybackStatus.PENDING.value,
            created_at=datetime.now(UTC),
        )
