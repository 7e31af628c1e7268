"""Payment status commands — provider session attachment and terminal transitions.

Every status write goes through OrderRepository.transition_status(), which
only reports True to the caller that actually moved the order. Handlers
return that flag so webhook reconciliation can tell a first delivery from a
duplicate.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class RecordPaymentSession:
    order_id = Identifier(required=True)
    payment_provider = String(required=True, max_length=50)
    provider_ref = String(required=True, max_length=255)
    redirect_url = String(max_length=2048)


@ordering.command(part_of="Order")
class ConfirmOrderPayment:
    """A provider reported the payment for ``provider_ref`` as completed."""

    provider_ref = String(required=True, max_length=255)
    provider_event_id = String(max_length=255)


@ordering.command(part_of="Order")
class ExpireOrder:
    """A provider reported the checkout session for ``provider_ref`` as expired."""

    provider_ref = String(required=True, max_length=255)
    provider_event_id = String(max_length=255)


@ordering.command(part_of="Order")
class ConfirmBankTransfer:
    """Staff matched an incoming bank transfer to the order."""

    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(RecordPaymentSession)
    def record_payment_session(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_session(
            payment_provider=command.payment_provider,
            provider_ref=command.provider_ref,
            redirect_url=command.redirect_url,
        )
        repo.add(order)

    @handle(ConfirmOrderPayment)
    def confirm_payment(self, command):
        return _transition_by_provider_ref(
            command.provider_ref,
            OrderStatus.PENDING.value,
            OrderStatus.PAID.value,
            command.provider_event_id,
        )

    @handle(ExpireOrder)
    def expire(self, command):
        return _transition_by_provider_ref(
            command.provider_ref,
            OrderStatus.PENDING.value,
            OrderStatus.EXPIRED.value,
            command.provider_event_id,
        )

    @handle(ConfirmBankTransfer)
    def confirm_bank_transfer(self, command):
        repo = current_domain.repository_for(Order)
        return repo.transition_status(
            str(command.order_id),
            OrderStatus.PENDING_PAYMENT.value,
            OrderStatus.PAID.value,
        )


def _transition_by_provider_ref(provider_ref, expected, new, provider_event_id=None) -> bool:
    repo = current_domain.repository_for(Order)
    order = repo.get_by_provider_ref(provider_ref)
    if order is None:
        logger.warning(
            "No order for provider reference",
            provider_ref=provider_ref,
            provider_event_id=provider_event_id,
        )
        return False

    transitioned = repo.transition_status(str(order.id), expected, new)
    logger.info(
        "Order status reconciled",
        order_number=order.order_number,
        target=new,
        transitioned=transitioned,
        provider_event_id=provider_event_id,
    )
    return transitioned
