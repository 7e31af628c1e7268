"""Commission eligibility — a commission is earned once its order is paid.

MarkCommissionEligible flags the record and credits the partner's pending
earnings. OrderEventsHandler issues it when an Order reports OrderPaid; the
order store only raises that event on the winning transition, and the record
itself refuses a second flag, so a partner is credited once per order.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.commission.accrual import find_commission_for_order
from ordering.commission.commission import CommissionRecord
from ordering.commission.partner import Partner
from ordering.domain import ordering
from ordering.order.events import OrderPaid

logger = structlog.get_logger(__name__)


@ordering.command(part_of="CommissionRecord")
class MarkCommissionEligible:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=CommissionRecord)
class MarkCommissionEligibleHandler:
    @handle(MarkCommissionEligible)
    def mark_eligible(self, command):
        return mark_commission_eligible(str(command.order_id))


def mark_commission_eligible(order_id: str) -> bool:
    record = find_commission_for_order(order_id)
    if record is None:
        return False

    if not record.mark_eligible():
        logger.info("Commission already eligible", order_id=order_id)
        return False

    partner_repo = current_domain.repository_for(Partner)
    partner = partner_repo.get(record.partner_id)
    partner.credit_pending_earnings(record.amount_cents)

    current_domain.repository_for(CommissionRecord).add(record)
    partner_repo.add(partner)

    logger.info(
        "Commission eligible",
        order_id=order_id,
        partner_id=str(record.partner_id),
        amount_cents=record.amount_cents,
    )
    return True


@ordering.event_handler(part_of=CommissionRecord, stream_category="ordering::order")
class OrderEventsHandler:
    """Reacts to Order events on behalf of the commission ledger."""

    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        if not event.partner_id:
            return
        mark_commission_eligible(str(event.order_id))
