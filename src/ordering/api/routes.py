"""FastAPI routes for the Ordering domain — checkout and order administration."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    BankTransferSchema,
    CheckoutRequestSchema,
    CheckoutResponse,
    OrderItemSchema,
    OrderSummaryResponse,
    RecordShipmentRequest,
    StatusResponse,
    UpdateAdminNotesRequest,
)
from ordering.checkout.errors import PaymentInitiationError
from ordering.checkout.pricing import CartLine, format_cents, parse_amount_cents
from ordering.checkout.results import CheckoutRequest, CheckoutResult, CustomerIdentity
from ordering.checkout.service import CheckoutService
from ordering.order.administration import RecordShipment, UpdateAdminNotes
from ordering.order.order import Order
from ordering.order.payment import ConfirmBankTransfer


def _validation_error(exc: ValidationError) -> HTTPException:
    messages = exc.messages if isinstance(exc.messages, dict) else {"error": [str(exc.messages)]}
    code = next(iter(messages), "invalid_request")
    first = messages.get(code) or [""]
    return HTTPException(
        status_code=400,
        detail={"code": code, "message": first[0] if isinstance(first, list) else str(first), "errors": messages},
    )


def _to_response(result: CheckoutResult) -> CheckoutResponse:
    bank = result.bank_transfer
    return CheckoutResponse(
        order_id=result.order_id,
        order_number=result.order_number,
        status=result.status,
        payment_method=result.payment_method,
        total=format_cents(result.total_cents),
        currency=result.currency,
        action=result.action.value,
        redirect_url=result.redirect_url,
        bank_transfer=(
            BankTransferSchema(
                recipient=bank.recipient,
                iban=bank.iban,
                bic=bank.bic,
                bank_name=bank.bank_name,
                amount=format_cents(bank.amount_cents),
                currency=bank.currency,
                reference=bank.reference,
            )
            if bank
            else None
        ),
        replayed=result.replayed,
    )


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
def place_order(body: CheckoutRequestSchema):
    """Place an order from the submitted cart and start its payment."""
    try:
        request = CheckoutRequest(
            lines=[CartLine(product_id=i.product_id, variant_id=i.variant_id, quantity=i.quantity) for i in body.items],
            customer=CustomerIdentity(
                customer_id=body.customer.customer_id,
                guest_email=body.customer.guest_email,
                email=body.customer.email,
                name=body.customer.name,
            ),
            payment_method=body.payment_method,
            idempotency_key=body.idempotency_key,
            shipping_address=body.shipping_address.model_dump(),
            billing_address=body.billing_address.model_dump() if body.billing_address else None,
            referral_code=body.referral_code,
            coupon_code=body.coupon_code,
            client_total_cents=parse_amount_cents(body.client_total) if body.client_total is not None else None,
        )
        result = CheckoutService().place_order(request)
    except ValidationError as exc:
        raise _validation_error(exc) from exc
    except PaymentInitiationError as exc:
        return JSONResponse(
            status_code=502,
            content={
                "code": "payment_initiation_failed",
                "order_number": exc.order_number,
                "order_id": exc.order_id,
                "message": "Your order was saved but the payment could not be started.",
            },
        )

    return _to_response(result)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{order_number}", response_model=OrderSummaryResponse)
async def get_order(order_number: str) -> OrderSummaryResponse:
    order = current_domain.repository_for(Order).get_by_order_number(order_number)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    return OrderSummaryResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        payment_method=order.payment_method,
        subtotal=format_cents(order.subtotal_cents),
        discount=format_cents(order.discount_cents or 0),
        shipping=format_cents(order.shipping_cents or 0),
        total=format_cents(order.total_cents),
        currency=order.currency,
        items=[
            OrderItemSchema(
                product_id=str(item.product_id),
                variant_id=str(item.variant_id),
                title=item.title,
                quantity=item.quantity,
                unit_price=format_cents(item.unit_price_cents),
                line_total=format_cents(item.line_total_cents),
            )
            for item in order.items
        ],
        tracking_number=order.tracking_number,
    )


@order_router.put("/{order_id}/shipment", response_model=StatusResponse)
def record_shipment(order_id: str, body: RecordShipmentRequest) -> StatusResponse:
    """Record the tracking number of a paid order and notify the customer."""
    command = RecordShipment(order_id=order_id, tracking_number=body.tracking_number, carrier=body.carrier)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="shipped")


@order_router.put("/{order_id}/admin-notes", response_model=StatusResponse)
async def update_admin_notes(order_id: str, body: UpdateAdminNotesRequest) -> StatusResponse:
    current_domain.process(UpdateAdminNotes(order_id=order_id, admin_notes=body.admin_notes), asynchronous=False)
    return StatusResponse(status="updated")


@order_router.post("/{order_id}/bank-transfer/confirm", response_model=StatusResponse)
def confirm_bank_transfer(order_id: str) -> StatusResponse:
    """Mark a bank-transfer order as paid once the money has arrived."""
    transitioned = current_domain.process(ConfirmBankTransfer(order_id=order_id), asynchronous=False)
    return StatusResponse(status="paid" if transitioned else "unchanged")
