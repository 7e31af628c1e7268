"""Order aggregate (CQRS) — the persisted result of a checkout.

The Order is a standard aggregate (not event sourced). Its money figures are
frozen at creation; afterwards only the payment status, the provider
reference, shipment tracking and admin notes may change.

State Machine (4 states):
    PENDING → PAID            (provider confirmed the payment)
    PENDING → EXPIRED         (provider session expired)
    PENDING_PAYMENT → PAID    (bank transfer confirmed by staff)
Free orders are created directly in PAID.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    AdminNotesUpdated,
    OrderExpired,
    OrderPaid,
    OrderPlaced,
    OrderShipped,
    PaymentSessionRecorded,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    EXPIRED = "expired"


class PaymentMethod(Enum):
    CARD = "card"
    WALLET_REDIRECT = "wallet_redirect"
    BANK_TRANSFER = "bank_transfer"
    FREE = "free"


# Methods that move real money and therefore need a positive amount
PAID_METHODS = {
    PaymentMethod.CARD.value,
    PaymentMethod.WALLET_REDIRECT.value,
    PaymentMethod.BANK_TRANSFER.value,
}

_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.EXPIRED},
    OrderStatus.PENDING_PAYMENT: {OrderStatus.PAID},
    OrderStatus.PAID: set(),  # Terminal
    OrderStatus.EXPIRED: set(),  # Terminal
}


def initial_status_for(payment_method: str) -> str:
    """Status a freshly placed order starts in, given its payment method."""
    if payment_method == PaymentMethod.BANK_TRANSFER.value:
        return OrderStatus.PENDING_PAYMENT.value
    if payment_method == PaymentMethod.FREE.value:
        return OrderStatus.PAID.value
    return OrderStatus.PENDING.value


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Address:
    """Shipping or billing address as entered at checkout.

    Snapshotted onto the order; later edits to a customer's address book do
    not touch it.
    """

    name = String(required=True, max_length=255)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A purchased variant with the price it was sold at."""

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=0)
    line_total_cents = Integer(required=True, min_value=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, required=True)
    items = HasMany(OrderItem)

    # Customer: registered account XOR guest email
    customer_id = Identifier()
    guest_email = String(max_length=254)
    customer_email = String(required=True, max_length=254)
    customer_name = String(max_length=255)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)

    # Money, in minor units
    subtotal_cents = Integer(required=True, min_value=0)
    discount_cents = Integer(default=0, min_value=0)
    shipping_cents = Integer(default=0, min_value=0)
    total_cents = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="EUR")

    # Attribution
    referral_code = String(max_length=50)
    partner_id = Identifier()
    coupon_code = String(max_length=100)

    idempotency_key = String(max_length=255, unique=True)

    # Payment provider correlation
    payment_provider = String(max_length=50)
    provider_ref = String(max_length=255)
    payment_redirect_url = String(max_length=2048)

    # Post-payment
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)
    admin_notes = Text()

    created_at = DateTime()
    updated_at = DateTime()
    paid_at = DateTime()

    @invariant.post
    def exactly_one_customer_identity(self):
        if bool(self.customer_id) == bool(self.guest_email):
            raise ValidationError(
                {"customer_identity": ["An order needs either a customer account or a guest email, not both"]}
            )

    @invariant.post
    def totals_must_add_up(self):
        expected = (self.subtotal_cents or 0) - (self.discount_cents or 0) + (self.shipping_cents or 0)
        if self.total_cents != expected:
            raise ValidationError({"total_cents": ["Total must equal subtotal - discount + shipping"]})
        if self.items and sum(item.line_total_cents for item in self.items) != self.subtotal_cents:
            raise ValidationError({"subtotal_cents": ["Subtotal must equal the sum of the line totals"]})

    @invariant.post
    def amount_must_match_payment_method(self):
        if self.payment_method == PaymentMethod.FREE.value and self.total_cents != 0:
            raise ValidationError({"payment_required": ["Only fully discounted orders can be placed as free"]})
        if self.payment_method in PAID_METHODS and (self.total_cents or 0) <= 0:
            raise ValidationError({"non_positive_amount": ["Order total must be positive for this payment method"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number,
        items_data,
        pricing,
        payment_method,
        customer_email,
        customer_id=None,
        guest_email=None,
        customer_name=None,
        shipping_address=None,
        billing_address=None,
        currency="EUR",
        idempotency_key=None,
        referral_code=None,
        partner_id=None,
        coupon_code=None,
    ):
        """Create a new order with its line items.

        ``items_data`` is a list of dicts with product_id, variant_id, title,
        quantity and unit_price_cents. ``pricing`` holds subtotal_cents,
        discount_cents, shipping_cents and total_cents.
        """
        now = datetime.now(UTC)
        status = initial_status_for(payment_method)
        billing = billing_address or shipping_address

        items = [
            OrderItem(
                product_id=item["product_id"],
                variant_id=item["variant_id"],
                title=item["title"],
                quantity=item["quantity"],
                unit_price_cents=item["unit_price_cents"],
                line_total_cents=item["unit_price_cents"] * item["quantity"],
            )
            for item in items_data
        ]

        order = cls(
            order_number=order_number,
            status=status,
            payment_method=payment_method,
            items=items,
            customer_id=customer_id,
            guest_email=guest_email,
            customer_email=customer_email,
            customer_name=customer_name,
            shipping_address=Address(**shipping_address) if shipping_address else None,
            billing_address=Address(**billing) if billing else None,
            subtotal_cents=pricing["subtotal_cents"],
            discount_cents=pricing.get("discount_cents", 0),
            shipping_cents=pricing.get("shipping_cents", 0),
            total_cents=pricing["total_cents"],
            currency=currency,
            referral_code=referral_code,
            partner_id=partner_id,
            coupon_code=coupon_code,
            idempotency_key=idempotency_key,
            created_at=now,
            updated_at=now,
            paid_at=now if status == OrderStatus.PAID.value else None,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=str(customer_id) if customer_id else None,
                customer_email=customer_email,
                customer_name=customer_name,
                payment_method=payment_method,
                status=status,
                subtotal_cents=order.subtotal_cents,
                discount_cents=order.discount_cents,
                shipping_cents=order.shipping_cents,
                total_cents=order.total_cents,
                currency=currency,
                partner_id=str(partner_id) if partner_id else None,
                placed_at=now,
            )
        )
        if status == OrderStatus.PAID.value:
            order._raise_paid(now)

        return order

    # -------------------------------------------------------------------
    # Payment correlation
    # -------------------------------------------------------------------
    def record_payment_session(self, payment_provider, provider_ref, redirect_url=None):
        """Attach the provider's session/order reference. It is set only once."""
        if self.provider_ref:
            if self.provider_ref == provider_ref:
                return
            raise ValidationError({"provider_ref": ["A payment session is already attached to this order"]})
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": [f"Cannot attach a payment session to a {self.status} order"]})

        now = datetime.now(UTC)
        self.payment_provider = payment_provider
        self.provider_ref = provider_ref
        self.payment_redirect_url = redirect_url
        self.updated_at = now

        self.raise_(
            PaymentSessionRecorded(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_provider=payment_provider,
                provider_ref=provider_ref,
                recorded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate state machine transition."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def transition_to(self, status: str) -> None:
        target = OrderStatus(status)
        if target == OrderStatus.PAID:
            self.mark_paid()
        elif target == OrderStatus.EXPIRED:
            self.mark_expired()
        else:
            self._assert_can_transition(target)

    def mark_paid(self, paid_at=None):
        self._assert_can_transition(OrderStatus.PAID)

        now = paid_at or datetime.now(UTC)
        self.status = OrderStatus.PAID.value
        self.paid_at = now
        self.updated_at = now
        self._raise_paid(now)

    def _raise_paid(self, paid_at):
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_email=self.customer_email,
                customer_name=self.customer_name,
                payment_method=self.payment_method,
                payment_provider=self.payment_provider,
                provider_ref=self.provider_ref,
                total_cents=self.total_cents,
                currency=self.currency,
                partner_id=str(self.partner_id) if self.partner_id else None,
                customer_id=str(self.customer_id) if self.customer_id else None,
                paid_at=paid_at,
            )
        )

    def mark_expired(self):
        self._assert_can_transition(OrderStatus.EXPIRED)

        now = datetime.now(UTC)
        self.status = OrderStatus.EXPIRED.value
        self.updated_at = now

        self.raise_(
            OrderExpired(
                order_id=str(self.id),
                order_number=self.order_number,
                provider_ref=self.provider_ref,
                expired_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Post-payment administration
    # -------------------------------------------------------------------
    def record_shipment(self, tracking_number, carrier=None):
        if OrderStatus(self.status) != OrderStatus.PAID:
            raise ValidationError({"status": ["Only paid orders can be shipped"]})

        now = datetime.now(UTC)
        self.tracking_number = tracking_number
        self.carrier = carrier
        self.updated_at = now

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_email=self.customer_email,
                customer_name=self.customer_name,
                carrier=carrier,
                tracking_number=tracking_number,
                shipped_at=now,
            )
        )

    def update_admin_notes(self, admin_notes):
        now = datetime.now(UTC)
        self.admin_notes = admin_notes
        self.updated_at = now

        self.raise_(AdminNotesUpdated(order_id=str(self.id), admin_notes=admin_notes, updated_at=now))
