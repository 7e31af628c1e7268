"""Checkout orchestration — from a cart to an order and a payment action.

CheckoutService is an application service rather than a single command
handler: the order must be committed before any payment provider sees its
order number, and a provider failure must leave that order in place. The
sequence is:

1. validate the request and price the cart from the catalog
2. replay the original result if the checkout token was seen before
3. write order, line items, coupon redemption and commission in one unit
   of work (CreateOrder)
4. run the payment path for the method and attach the provider reference
"""

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog
from payments.gateway import gateway_for_method
from payments.gateway.port import LineItem, PaymentGatewayError, PaymentRequest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.catalog import get_catalog
from ordering.catalog.port import CatalogPort
from ordering.checkout.errors import PaymentInitiationError
from ordering.checkout.pricing import PriceBreakdown, compute_authoritative_total
from ordering.checkout.results import (
    BankTransferInstructions,
    CheckoutAction,
    CheckoutRequest,
    CheckoutResult,
)
from ordering.coupon.management import find_coupon
from ordering.order.creation import CreateOrder
from ordering.order.numbering import generate_order_number
from ordering.order.order import (
    PAID_METHODS,
    Order,
    OrderStatus,
    PaymentMethod,
)
from ordering.order.payment import RecordPaymentSession
from ordering.settings import CheckoutSettings, get_settings

logger = structlog.get_logger(__name__)

_ORDER_NUMBER_ATTEMPTS = 5


class CheckoutService:
    def __init__(
        self,
        catalog: CatalogPort | None = None,
        settings: CheckoutSettings | None = None,
        gateway_resolver: Callable | None = None,
        clock: Callable[[], datetime] | None = None,
        order_number_factory: Callable[[str], str] | None = None,
    ) -> None:
        self._catalog = catalog
        self._settings = settings
        self._gateway_resolver = gateway_resolver or gateway_for_method
        self._clock = clock or (lambda: datetime.now(UTC))
        self._order_number_factory = order_number_factory or (lambda prefix: generate_order_number(prefix))

    @property
    def catalog(self) -> CatalogPort:
        return self._catalog or get_catalog()

    @property
    def settings(self) -> CheckoutSettings:
        return self._settings or get_settings()

    # -------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------
    def place_order(self, request: CheckoutRequest) -> CheckoutResult:
        """Validate, persist and start payment for a checkout attempt.

        Raises:
            ValidationError: the request was rejected; nothing was stored.
            PaymentInitiationError: the order was stored but the provider
                could not be set up.
        """
        self._validate_request(request)

        repo = current_domain.repository_for(Order)
        existing = repo.get_by_idempotency_key(request.idempotency_key)
        if existing is not None:
            return self._replay(existing)

        breakdown = self._price(request)
        self._check_amount(request, breakdown)

        try:
            order = self._create_order(request, breakdown)
        except ValidationError as exc:
            # A concurrent submission with the same token committed first
            if "idempotency_key" not in exc.messages:
                raise
            existing = repo.get_by_idempotency_key(request.idempotency_key)
            if existing is None:
                raise
            logger.info("Concurrent checkout with the same token", order_number=existing.order_number)
            return self._replay(existing)

        logger.info(
            "Order placed",
            order_number=order.order_number,
            payment_method=order.payment_method,
            total_cents=order.total_cents,
            status=order.status,
        )
        return self._dispatch_payment(order)

    # -------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------
    def _validate_request(self, request: CheckoutRequest) -> None:
        if not request.idempotency_key:
            raise ValidationError({"idempotency_key": ["A checkout token is required"]})

        valid_methods = {method.value for method in PaymentMethod}
        if request.payment_method not in valid_methods:
            raise ValidationError({"payment_method": [f"Unsupported payment method: {request.payment_method}"]})

        customer = request.customer
        if bool(customer.customer_id) == bool(customer.guest_email):
            raise ValidationError(
                {"customer_identity": ["Provide either a customer account or a guest email, not both"]}
            )
        if not customer.contact_email:
            raise ValidationError({"customer_identity": ["A contact email address is required"]})

        if not request.lines:
            raise ValidationError({"empty_cart": ["Cart has no items"]})

    def _price(self, request: CheckoutRequest) -> PriceBreakdown:
        coupon = None
        if request.coupon_code:
            coupon = find_coupon(request.coupon_code)
            if coupon is None:
                raise ValidationError({"invalid_coupon": [f"Unknown coupon {request.coupon_code}"]})

        settings = self.settings
        breakdown = compute_authoritative_total(
            request.lines,
            self.catalog,
            shipping_fee_cents=settings.shipping_fee_cents,
            free_shipping_threshold_cents=settings.free_shipping_threshold_cents,
            coupon=coupon,
            at=self._clock(),
        )

        if request.client_total_cents is not None and request.client_total_cents != breakdown.total_cents:
            logger.warning(
                "Client total does not match server total",
                client_total_cents=request.client_total_cents,
                total_cents=breakdown.total_cents,
            )
            raise ValidationError({"total_mismatch": ["Cart total has changed, please review your order"]})

        return breakdown

    def _check_amount(self, request: CheckoutRequest, breakdown: PriceBreakdown) -> None:
        if request.payment_method in PAID_METHODS and breakdown.total_cents <= 0:
            raise ValidationError(
                {"non_positive_amount": [f"Nothing to pay with {request.payment_method}; total is zero"]}
            )
        if request.payment_method == PaymentMethod.FREE.value and breakdown.total_cents != 0:
            raise ValidationError({"payment_required": ["This order has an amount to pay"]})

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def _allocate_order_number(self) -> str:
        repo = current_domain.repository_for(Order)
        prefix = self.settings.order_number_prefix
        for _ in range(_ORDER_NUMBER_ATTEMPTS):
            candidate = self._order_number_factory(prefix)
            if not repo.order_number_exists(candidate):
                return candidate
            logger.warning("Order number collision, regenerating", order_number=candidate)
        raise RuntimeError("Could not allocate a unique order number")

    def _create_order(self, request: CheckoutRequest, breakdown: PriceBreakdown) -> Order:
        for _ in range(_ORDER_NUMBER_ATTEMPTS):
            order_number = self._allocate_order_number()
            try:
                order_id = current_domain.process(
                    self._create_command(order_number, request, breakdown), asynchronous=False
                )
            except ValidationError as exc:
                # Taken between the availability check and the write
                if "order_number" not in exc.messages:
                    raise
                logger.warning("Order number taken concurrently, regenerating", order_number=order_number)
                continue
            return current_domain.repository_for(Order).get(order_id)
        raise RuntimeError("Could not allocate a unique order number")

    def _create_command(self, order_number: str, request: CheckoutRequest, breakdown: PriceBreakdown) -> CreateOrder:
        customer = request.customer
        return CreateOrder(
            order_number=order_number,
            items=json.dumps([line.as_dict() for line in breakdown.lines]),
            payment_method=request.payment_method,
            customer_email=customer.contact_email,
            customer_id=customer.customer_id,
            guest_email=customer.guest_email,
            customer_name=customer.name,
            shipping_address=json.dumps(request.shipping_address) if request.shipping_address else None,
            billing_address=json.dumps(request.billing_address) if request.billing_address else None,
            subtotal_cents=breakdown.subtotal_cents,
            discount_cents=breakdown.discount_cents,
            shipping_cents=breakdown.shipping_cents,
            total_cents=breakdown.total_cents,
            currency=self.settings.currency,
            idempotency_key=request.idempotency_key,
            referral_code=request.referral_code,
            coupon_code=breakdown.coupon_code,
        )

    # -------------------------------------------------------------------
    # Idempotent replay
    # -------------------------------------------------------------------
    def _replay(self, order: Order) -> CheckoutResult:
        created_at = order.created_at
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)

        window = timedelta(seconds=self.settings.idempotency_window_seconds)
        if created_at is not None and self._clock() - created_at > window:
            raise ValidationError(
                {"idempotency_key_expired": ["This checkout token has expired, please start a new checkout"]}
            )

        logger.info("Checkout replayed", order_number=order.order_number, idempotency_key=order.idempotency_key)
        return self._dispatch_payment(order, replayed=True)

    # -------------------------------------------------------------------
    # Payment paths
    # -------------------------------------------------------------------
    def _result(self, order: Order, action: CheckoutAction, replayed: bool, **extra) -> CheckoutResult:
        return CheckoutResult(
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            payment_method=order.payment_method,
            total_cents=order.total_cents,
            currency=order.currency,
            action=action,
            replayed=replayed,
            **extra,
        )

    def bank_transfer_instructions(self, order: Order) -> BankTransferInstructions:
        account = self.settings.bank_account
        return BankTransferInstructions(
            recipient=account.recipient,
            iban=account.iban,
            bic=account.bic,
            bank_name=account.bank_name,
            amount_cents=order.total_cents,
            currency=order.currency,
            reference=order.order_number,
        )

    def _dispatch_payment(self, order: Order, replayed: bool = False) -> CheckoutResult:
        if order.payment_method == PaymentMethod.BANK_TRANSFER.value:
            return self._result(
                order,
                CheckoutAction.BANK_TRANSFER,
                replayed,
                bank_transfer=self.bank_transfer_instructions(order),
            )

        if order.status == OrderStatus.PAID.value:
            return self._result(order, CheckoutAction.COMPLETED, replayed)

        if order.provider_ref:
            return self._result(order, CheckoutAction.REDIRECT, replayed, redirect_url=order.payment_redirect_url)

        session = self._start_provider_payment(order)
        current_domain.process(
            RecordPaymentSession(
                order_id=str(order.id),
                payment_provider=session.provider,
                provider_ref=session.provider_ref,
                redirect_url=session.redirect_url,
            ),
            asynchronous=False,
        )
        order = current_domain.repository_for(Order).get(order.id)
        return self._result(order, CheckoutAction.REDIRECT, replayed, redirect_url=session.redirect_url)

    def _payment_request(self, order: Order) -> PaymentRequest:
        base = self.settings.storefront_url
        return PaymentRequest(
            order_id=str(order.id),
            order_number=order.order_number,
            amount_cents=order.total_cents,
            currency=order.currency,
            line_items=tuple(
                LineItem(title=item.title, quantity=item.quantity, unit_price_cents=item.unit_price_cents)
                for item in order.items
            ),
            return_url=f"{base}/checkout/success?order={order.order_number}",
            cancel_url=f"{base}/checkout/cancel?order={order.order_number}",
            customer_email=order.customer_email,
            shipping_cents=order.shipping_cents,
            discount_cents=order.discount_cents,
        )

    def _start_provider_payment(self, order: Order):
        try:
            gateway = self._gateway_resolver(order.payment_method)
            return gateway.create_payment(self._payment_request(order))
        except PaymentGatewayError as e:
            logger.error(
                "Payment initiation failed",
                order_number=order.order_number,
                provider=e.provider,
                reason=e.reason,
                error=str(e),
            )
            raise PaymentInitiationError(
                order_id=str(order.id),
                order_number=order.order_number,
                message=str(e),
                reason=e.reason,
            ) from e
