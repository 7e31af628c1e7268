"""Domain events for the Order aggregate.

Events are raised only when a state change has actually been persisted, so
handlers can treat each one as a fact that happened exactly once:
- OrderPlaced fans out the order-received emails and admin alert
- OrderPaid drives the payment confirmation and commission eligibility
- OrderShipped sends the shipping notice
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A new order was persisted together with its line items."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier()
    customer_email = String(required=True)
    customer_name = String()
    payment_method = String(required=True)
    status = String(required=True)
    subtotal_cents = Integer(required=True)
    discount_cents = Integer(default=0)
    shipping_cents = Integer(default=0)
    total_cents = Integer(required=True)
    currency = String(required=True)
    partner_id = Identifier()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentSessionRecorded:
    """A payment provider accepted the order and returned a session/order reference."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_provider = String(required=True)
    provider_ref = String(required=True)
    recorded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    """The order moved to paid (provider confirmation, or a free order)."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_email = String(required=True)
    customer_name = String()
    payment_method = String(required=True)
    payment_provider = String()
    provider_ref = String()
    total_cents = Integer(required=True)
    currency = String(required=True)
    partner_id = Identifier()
    customer_id = Identifier()
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderExpired:
    """The provider's checkout session expired before payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    provider_ref = String()
    expired_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderShipped:
    """A tracking number was recorded for a paid order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_email = String(required=True)
    customer_name = String()
    carrier = String()
    tracking_number = String(required=True)
    shipped_at = DateTime(required=True)


@ordering.event(part_of="Order")
class AdminNotesUpdated:
    """Internal notes on an order were changed by staff."""

    __version__ = 1

    order_id = Identifier(required=True)
    admin_notes = Text()
    updated_at = DateTime(required=True)
