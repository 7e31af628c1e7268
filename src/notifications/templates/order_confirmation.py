"""Order confirmation template — sent when an order has been received."""

from notifications.kinds import NotificationChannel, NotificationType


class OrderConfirmationTemplate:
    notification_type = NotificationType.ORDER_CONFIRMATION.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        customer_name = context.get("customer_name") or "there"
        total = context.get("total", "0.00")
        currency = context.get("currency", "EUR")
        lines = "\n".join(f"  {line}" for line in context.get("lines", []))
        return {
            "subject": f"Order confirmation - {order_number}",
            "body": (
                f"Hello {customer_name},\n\n"
                f"we have received your order {order_number}.\n\n"
                f"{lines}\n\n"
                f"Order total: {total} {currency}\n\n"
                "We'll let you know as soon as your payment is confirmed."
            ),
        }
