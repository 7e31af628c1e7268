"""Shipping notice template — sent when a tracking number is recorded."""

from notifications.kinds import NotificationChannel, NotificationType


class ShippingNoticeTemplate:
    notification_type = NotificationType.SHIPPING_NOTICE.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        tracking_number = context.get("tracking_number", "N/A")
        carrier = context.get("carrier")
        via = f" with {carrier}" if carrier else ""
        return {
            "subject": f"Your order {order_number} has shipped",
            "body": (
                f"Your order {order_number} is on its way{via}.\n\n"
                f"Tracking number: {tracking_number}"
            ),
        }
