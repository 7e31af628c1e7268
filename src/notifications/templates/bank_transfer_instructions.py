"""Bank transfer instructions — tells the customer where to send the money.

The order number is the payment reference; it is printed exactly as stored
so the incoming transfer can be matched to the order.
"""

from notifications.kinds import NotificationChannel, NotificationType


class BankTransferInstructionsTemplate:
    notification_type = NotificationType.BANK_TRANSFER_INSTRUCTIONS.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context["order_number"]
        total = context.get("total", "0.00")
        currency = context.get("currency", "EUR")
        return {
            "subject": f"Payment details for order {order_number}",
            "body": (
                f"Please transfer {total} {currency} to:\n\n"
                f"  Recipient: {context.get('recipient', '')}\n"
                f"  IBAN: {context.get('iban', '')}\n"
                f"  BIC: {context.get('bic', '')}\n"
                f"  Bank: {context.get('bank_name', '')}\n"
                f"  Reference: {order_number}\n\n"
                "Please use the order number as the payment reference. "
                "We ship as soon as the transfer arrives."
            ),
        }
