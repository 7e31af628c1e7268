"""Admin alert — a new order was placed."""

from notifications.kinds import NotificationChannel, NotificationType


class AdminNewOrderTemplate:
    notification_type = NotificationType.ADMIN_NEW_ORDER.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        total = context.get("total", "0.00")
        currency = context.get("currency", "EUR")
        return {
            "subject": f"New order {order_number} ({total} {currency})",
            "body": (
                f"Order {order_number} was placed by {context.get('customer_email', 'unknown')}.\n"
                f"Payment method: {context.get('payment_method', 'unknown')}\n"
                f"Status: {context.get('status', 'unknown')}\n"
                f"Total: {total} {currency}"
            ),
        }
