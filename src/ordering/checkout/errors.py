"""Checkout failures that happen after the order was saved."""


class PaymentInitiationError(Exception):
    """The order exists but the payment provider could not be set up.

    Carries the order number so the client can show it and the customer can
    retry with the same checkout token or contact support.
    """

    def __init__(self, order_id: str, order_number: str, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.order_id = order_id
        self.order_number = order_number
        self.reason = reason
