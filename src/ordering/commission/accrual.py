"""Commission accrual — command, handler and the shared accrual routine.

``accrue_commission()`` runs inside whichever unit of work is active, so the
order-creation handler calls it directly to write the order and its
commission together. The ``AccrueCommission`` command exposes the same
operation on its own.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.commission.commission import CommissionRecord
from ordering.commission.partner import Partner
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


def find_approved_partner(referral_code: str | None) -> Partner | None:
    """Look up the partner behind a referral code; unknown or unapproved codes give None."""
    if not referral_code:
        return None
    repo = current_domain.repository_for(Partner)
    partner = repo._dao.query.filter(code=referral_code.strip().upper()).all().first
    if partner is None or not partner.is_approved:
        logger.info("Referral code ignored", referral_code=referral_code, found=partner is not None)
        return None
    return partner


def find_commission_for_order(order_id: str) -> CommissionRecord | None:
    repo = current_domain.repository_for(CommissionRecord)
    return repo._dao.query.filter(order_id=str(order_id)).all().first


def accrue_commission(
    partner_id: str,
    order_id: str,
    order_number: str,
    rate: float,
    base_cents: int,
    currency: str = "EUR",
) -> CommissionRecord | None:
    """Record the commission for an order, at most once.

    Returns the existing record on a repeated call, and None when the amount
    rounds to zero.
    """
    existing = find_commission_for_order(order_id)
    if existing is not None:
        return existing

    record = CommissionRecord.accrue(
        partner_id=partner_id,
        order_id=order_id,
        order_number=order_number,
        rate=rate,
        base_cents=base_cents,
        currency=currency,
    )
    if record.amount_cents <= 0:
        logger.info("Commission amount is zero, nothing recorded", order_id=str(order_id))
        return None

    current_domain.repository_for(CommissionRecord).add(record)
    logger.info(
        "Commission accrued",
        partner_id=str(partner_id),
        order_id=str(order_id),
        amount_cents=record.amount_cents,
        rate=rate,
    )
    return record


@ordering.command(part_of="CommissionRecord")
class AccrueCommission:
    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    partner_id = Identifier(required=True)
    base_cents = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="EUR")


@ordering.command_handler(part_of=CommissionRecord)
class AccrueCommissionHandler:
    @handle(AccrueCommission)
    def accrue(self, command):
        partner = current_domain.repository_for(Partner).get(command.partner_id)
        record = accrue_commission(
            partner_id=str(partner.id),
            order_id=str(command.order_id),
            order_number=command.order_number,
            rate=partner.commission_rate,
            base_cents=command.base_cents,
            currency=command.currency or "EUR",
        )
        return str(record.id) if record else None
