"""Template registry — maps NotificationType to template classes.

Each template knows its default channels and how to render content
from event context data.
"""

from notifications.kinds import NotificationType
from notifications.templates.admin_new_order import AdminNewOrderTemplate
from notifications.templates.bank_transfer_instructions import (
    BankTransferInstructionsTemplate,
)
from notifications.templates.order_confirmation import OrderConfirmationTemplate
from notifications.templates.payment_confirmation import PaymentConfirmationTemplate
from notifications.templates.shipping_notice import ShippingNoticeTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.ORDER_CONFIRMATION.value: OrderConfirmationTemplate,
    NotificationType.PAYMENT_CONFIRMATION.value: PaymentConfirmationTemplate,
    NotificationType.SHIPPING_NOTICE.value: ShippingNoticeTemplate,
    NotificationType.BANK_TRANSFER_INSTRUCTIONS.value: BankTransferInstructionsTemplate,
    NotificationType.ADMIN_NEW_ORDER.value: AdminNewOrderTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
