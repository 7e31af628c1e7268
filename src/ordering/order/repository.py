"""Order Store — the only place order status is written.

Wraps the default repository with lookups by the identifiers the outside
world knows an order by (order number, provider reference, checkout token)
and a guarded status transition used by webhook reconciliation.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.repository(part_of=Order)
class OrderRepository:
    def get_by_order_number(self, order_number: str) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def get_by_provider_ref(self, provider_ref: str) -> Order | None:
        if not provider_ref:
            return None
        return self._dao.query.filter(provider_ref=provider_ref).all().first

    def get_by_idempotency_key(self, idempotency_key: str) -> Order | None:
        return self._dao.query.filter(idempotency_key=idempotency_key).all().first

    def order_number_exists(self, order_number: str) -> bool:
        return self.get_by_order_number(order_number) is not None

    def create_order(self, order: Order) -> Order:
        if self.order_number_exists(order.order_number):
            raise ValidationError({"order_number": [f"Order number {order.order_number} is already taken"]})
        return self.add(order)

    def transition_status(self, order_id: str, expected: str, new: str) -> bool:
        """Move an order from ``expected`` to ``new``.

        Returns False, leaving the order untouched, when the order is missing
        or no longer in ``expected``. Only a True result means this caller
        performed the transition and may trigger its side effects.
        """
        try:
            order = self.get(order_id)
        except ObjectNotFoundError:
            logger.warning("Status transition for unknown order", order_id=str(order_id))
            return False

        if order.status != expected:
            logger.info(
                "Status transition skipped",
                order_id=str(order_id),
                expected=expected,
                actual=order.status,
                target=new,
            )
            return False

        order.transition_to(new)
        self.add(order)
        return True
