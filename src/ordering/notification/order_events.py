"""Order event handler — Notifications react to Order events.

OrderPlaced sends the order-received confirmation and the admin alert, plus
payment instructions for bank transfers. OrderPaid sends the payment
confirmation; it is raised only on the transition into paid, so the
customer gets exactly one. OrderShipped sends the shipping notice.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from ordering.domain import ordering
from ordering.notification.notification import Notification
from ordering.notification.senders import (
    send_admin_new_order,
    send_bank_transfer_instructions,
    send_order_confirmation,
    send_payment_confirmation,
    send_shipping_notice,
)
from ordering.order.events import OrderPaid, OrderPlaced, OrderShipped
from ordering.order.order import Order, PaymentMethod
from ordering.settings import get_settings

logger = structlog.get_logger(__name__)


def _load_order(order_id):
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        logger.error("Order for notification not found", order_id=str(order_id))
        return None


@ordering.event_handler(part_of=Notification, stream_category="ordering::order")
class OrderNotificationsHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        order = _load_order(event.order_id)
        if order is None:
            return

        settings = get_settings()
        send_order_confirmation(order, source_event_type="Ordering.OrderPlaced.v1")
        send_admin_new_order(order, settings.admin_email, source_event_type="Ordering.OrderPlaced.v1")

        if order.payment_method == PaymentMethod.BANK_TRANSFER.value:
            send_bank_transfer_instructions(
                order,
                settings.bank_account,
                source_event_type="Ordering.OrderPlaced.v1",
            )

    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        order = _load_order(event.order_id)
        if order is None:
            return
        send_payment_confirmation(order, source_event_type="Ordering.OrderPaid.v1")

    @handle(OrderShipped)
    def on_order_shipped(self, event: OrderShipped) -> None:
        order = _load_order(event.order_id)
        if order is None:
            return
        send_shipping_notice(order, source_event_type="Ordering.OrderShipped.v1")
