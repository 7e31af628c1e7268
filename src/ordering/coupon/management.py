"""Coupon management — command and handler."""

from protean import handle
from protean.fields import DateTime, Float, Integer, String
from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon
from ordering.domain import ordering


@ordering.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=100)
    discount_type = String(required=True)
    percent_off = Float()
    amount_off_cents = Integer()
    min_order_cents = Integer(default=0)
    valid_until = DateTime()
    max_uses = Integer()


@ordering.command_handler(part_of=Coupon)
class CouponCommandHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        coupon = Coupon.create(
            code=command.code,
            discount_type=command.discount_type,
            percent_off=command.percent_off,
            amount_off_cents=command.amount_off_cents,
            min_order_cents=command.min_order_cents or 0,
            valid_until=command.valid_until,
            max_uses=command.max_uses,
        )
        current_domain.repository_for(Coupon).add(coupon)
        return str(coupon.id)


def find_coupon(code: str) -> Coupon | None:
    repo = current_domain.repository_for(Coupon)
    return repo._dao.query.filter(code=code.strip().upper()).all().first
