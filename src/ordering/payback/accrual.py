"""Payback accrual — credit the customer once their order is paid.

Guests earn nothing; a customer account is the only place the credit can
land. A repeated OrderPaid for the same order finds the existing earning and
leaves it alone.
"""

import structlog
from protean import handle
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import OrderPaid
from ordering.payback.payback import PaybackEarning
from ordering.settings import get_settings

logger = structlog.get_logger(__name__)


def find_payback_for_order(order_id: str) -> PaybackEarning | None:
    repo = current_domain.repository_for(PaybackEarning)
    return repo._dao.query.filter(order_id=str(order_id)).all().first


def accrue_payback(
    customer_id: str | None,
    order_id: str,
    order_number: str,
    total_cents: int,
    currency: str = "EUR",
    rate: float | None = None,
) -> PaybackEarning | None:
    """Record the payback for a paid order.

    Returns the existing earning on a repeated call, and None for guest
    orders or when the amount rounds to zero.
    """
    if not customer_id:
        return None

    existing = find_payback_for_order(order_id)
    if existing is not None:
        return existing

    if rate is None:
        rate = get_settings().payback_rate
    earning = PaybackEarning.earn(
        customer_id=customer_id,
        order_id=order_id,
        order_number=order_number,
        rate=rate,
        base_cents=total_cents,
        currency=currency,
    )
    if earning.amount_cents <= 0:
        logger.info("Payback amount is zero, nothing recorded", order_id=str(order_id))
        return None

    current_domain.repository_for(PaybackEarning).add(earning)
    logger.info(
        "Payback earned",
        customer_id=str(customer_id),
        order_id=str(order_id),
        amount_cents=earning.amount_cents,
        rate=rate,
    )
    return earning


@ordering.event_handler(part_of=PaybackEarning, stream_category="ordering::order")
class PaybackOrderEventsHandler:
    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        accrue_payback(
            customer_id=str(event.customer_id) if event.customer_id else None,
            order_id=str(event.order_id),
            order_number=event.order_number,
            total_cents=event.total_cents,
            currency=event.currency,
        )
