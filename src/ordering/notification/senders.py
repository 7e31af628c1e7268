"""Transactional emails about an order, each callable on its own."""

from notifications.kinds import NotificationType, RecipientType

from ordering.checkout.pricing import format_cents
from ordering.notification.delivery import send_notification
from ordering.order.order import Order
from ordering.settings import BankAccount


def _order_context(order: Order) -> dict:
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "payment_method": order.payment_method,
        "status": order.status,
        "total": format_cents(order.total_cents),
        "currency": order.currency,
    }


def send_order_confirmation(order: Order, source_event_type: str | None = None) -> str | None:
    context = _order_context(order)
    context["lines"] = [
        f"{item.quantity} x {item.title} @ {format_cents(item.unit_price_cents)} {order.currency}"
        for item in order.items
    ]
    return send_notification(
        recipient=order.customer_email,
        notification_type=NotificationType.ORDER_CONFIRMATION.value,
        context=context,
        order_id=str(order.id),
        source_event_type=source_event_type,
    )


def send_payment_confirmation(order: Order, source_event_type: str | None = None) -> str | None:
    return send_notification(
        recipient=order.customer_email,
        notification_type=NotificationType.PAYMENT_CONFIRMATION.value,
        context=_order_context(order),
        order_id=str(order.id),
        source_event_type=source_event_type,
    )


def send_shipping_notice(order: Order, source_event_type: str | None = None) -> str | None:
    context = _order_context(order)
    context["tracking_number"] = order.tracking_number
    context["carrier"] = order.carrier
    return send_notification(
        recipient=order.customer_email,
        notification_type=NotificationType.SHIPPING_NOTICE.value,
        context=context,
        order_id=str(order.id),
        source_event_type=source_event_type,
    )


def send_bank_transfer_instructions(
    order: Order,
    bank_account: BankAccount,
    source_event_type: str | None = None,
) -> str | None:
    context = _order_context(order)
    context.update(
        recipient=bank_account.recipient,
        iban=bank_account.iban,
        bic=bank_account.bic,
        bank_name=bank_account.bank_name,
    )
    return send_notification(
        recipient=order.customer_email,
        notification_type=NotificationType.BANK_TRANSFER_INSTRUCTIONS.value,
        context=context,
        order_id=str(order.id),
        source_event_type=source_event_type,
    )


def send_admin_new_order(order: Order, admin_email: str, source_event_type: str | None = None) -> str | None:
    return send_notification(
        recipient=admin_email,
        notification_type=NotificationType.ADMIN_NEW_ORDER.value,
        context=_order_context(order),
        recipient_type=RecipientType.INTERNAL.value,
        order_id=str(order.id),
        source_event_type=source_event_type,
    )
