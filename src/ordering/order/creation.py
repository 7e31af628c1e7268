"""Order creation — command and handler.

The handler writes the order header, its line items, the coupon redemption
and any referral commission in one unit of work: either all of them are
stored or none is.
"""

import json

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.commission.accrual import accrue_commission, find_approved_partner
from ordering.coupon.coupon import Coupon
from ordering.coupon.management import find_coupon
from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class CreateOrder:
    order_number = String(required=True, max_length=50)
    items = Text(required=True)  # JSON: list of priced item dicts
    payment_method = String(required=True, max_length=30)
    customer_email = String(required=True, max_length=254)
    customer_id = Identifier()
    guest_email = String(max_length=254)
    customer_name = String(max_length=255)
    shipping_address = Text()  # JSON: address dict
    billing_address = Text()  # JSON: address dict
    subtotal_cents = Integer(required=True)
    discount_cents = Integer(default=0)
    shipping_cents = Integer(default=0)
    total_cents = Integer(required=True)
    currency = String(max_length=3, default="EUR")
    idempotency_key = String(max_length=255)
    referral_code = String(max_length=50)
    coupon_code = String(max_length=100)


def _loads(value):
    if value is None or value == "":
        return None
    return json.loads(value) if isinstance(value, str) else value


@ordering.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        partner = find_approved_partner(command.referral_code)

        order = Order.create(
            order_number=command.order_number,
            items_data=_loads(command.items),
            pricing={
                "subtotal_cents": command.subtotal_cents,
                "discount_cents": command.discount_cents or 0,
                "shipping_cents": command.shipping_cents or 0,
                "total_cents": command.total_cents,
            },
            payment_method=command.payment_method,
            customer_email=command.customer_email,
            customer_id=command.customer_id,
            guest_email=command.guest_email,
            customer_name=command.customer_name,
            shipping_address=_loads(command.shipping_address),
            billing_address=_loads(command.billing_address),
            currency=command.currency or "EUR",
            idempotency_key=command.idempotency_key,
            referral_code=command.referral_code,
            partner_id=str(partner.id) if partner else None,
            coupon_code=command.coupon_code,
        )
        current_domain.repository_for(Order).create_order(order)

        if command.coupon_code:
            coupon = find_coupon(command.coupon_code)
            if coupon is not None:
                coupon.redeem()
                current_domain.repository_for(Coupon).add(coupon)

        if partner is not None:
            accrue_commission(
                partner_id=str(partner.id),
                order_id=str(order.id),
                order_number=order.order_number,
                rate=partner.commission_rate,
                base_cents=order.subtotal_cents - order.discount_cents,
                currency=order.currency,
            )

        return str(order.id)
