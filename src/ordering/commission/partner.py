"""Partner aggregate (CQRS) — a referral partner who earns commission on orders.

Only approved partners earn commission. The rate is a percentage of the
commissionable order amount and is read at checkout time; later rate changes
never touch commissions already recorded.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String

from ordering.domain import ordering
from ordering.settings import get_settings


class PartnerStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@ordering.aggregate
class Partner:
    code = String(required=True, max_length=50, unique=True)
    name = String(max_length=255)
    email = String(max_length=254)
    status = String(choices=PartnerStatus, default=PartnerStatus.PENDING.value)
    commission_rate = Float(default=2.5, min_value=0.0, max_value=100.0)
    pending_earnings_cents = Integer(default=0, min_value=0)
    total_earnings_cents = Integer(default=0, min_value=0)
    created_at = DateTime()

    @classmethod
    def register(cls, code, name=None, email=None, commission_rate=None):
        if commission_rate is None:
            commission_rate = get_settings().default_commission_rate
        return cls(
            code=code.strip().upper(),
            name=name,
            email=email,
            status=PartnerStatus.PENDING.value,
            commission_rate=commission_rate,
            created_at=datetime.now(UTC),
        )

    @property
    def is_approved(self) -> bool:
        return self.status == PartnerStatus.APPROVED.value

    def approve(self):
        if PartnerStatus(self.status) == PartnerStatus.APPROVED:
            return
        self.status = PartnerStatus.APPROVED.value

    def reject(self):
        self.status = PartnerStatus.REJECTED.value

    def credit_pending_earnings(self, amount_cents):
        if amount_cents < 0:
            raise ValidationError({"amount_cents": ["Earnings cannot be negative"]})
        self.pending_earnings_cents = (self.pending_earnings_cents or 0) + amount_cents
