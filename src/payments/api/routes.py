"""FastAPI routes for the Payments edge — provider webhooks and captures."""

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from protean.utils.globals import current_domain

from ordering.order.order import Order
from ordering.order.reconciliation import WebhookReconciler, WebhookRejected
from payments.api.schemas import (
    CapturePaymentRequest,
    CaptureResponse,
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    WebhookResponse,
)
from payments.gateway import METHOD_PROVIDERS, PAYPAL, get_gateway, get_gateway_settings
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGatewayError

logger = structlog.get_logger(__name__)

KNOWN_PROVIDERS = set(METHOD_PROVIDERS.values())

# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhooks/{provider}", response_model=WebhookResponse)
async def receive_webhook(provider: str, request: Request) -> WebhookResponse:
    """Receive a provider callback.

    The raw body is handed to the gateway untouched, since signatures are
    computed over the exact bytes the provider sent.
    """
    if provider not in KNOWN_PROVIDERS:
        raise HTTPException(status_code=404, detail=f"Unknown payment provider: {provider}")

    payload = await request.body()
    try:
        reconciler = WebhookReconciler(get_gateway(provider), get_gateway_settings())
    except PaymentGatewayError as exc:
        logger.error("Webhook gateway unavailable", provider=provider, reason=exc.reason, error=str(exc))
        raise HTTPException(status_code=503, detail={"code": exc.reason, "message": str(exc)}) from exc

    # Verification and reconciliation may call the provider and send email
    try:
        outcome = await run_in_threadpool(reconciler.handle, payload, request.headers)
    except WebhookRejected as exc:
        raise HTTPException(status_code=400, detail={"code": exc.reason, "message": str(exc)}) from exc

    return WebhookResponse(status=outcome.value)


@payment_router.post("/paypal/capture", response_model=CaptureResponse)
def capture_paypal_order(body: CapturePaymentRequest) -> CaptureResponse:
    """Capture an approved PayPal order after the buyer returns to the shop."""
    repo = current_domain.repository_for(Order)
    order = repo.get_by_provider_ref(body.remote_order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    try:
        gateway = get_gateway(PAYPAL)
        event = gateway.capture(body.remote_order_id)
    except PaymentGatewayError as exc:
        logger.error(
            "PayPal capture failed",
            order_number=order.order_number,
            reason=exc.reason,
            error=str(exc),
        )
        raise HTTPException(
            status_code=502,
            detail={"code": "capture_failed", "order_number": order.order_number, "message": str(exc)},
        ) from exc

    outcome = WebhookReconciler(gateway, get_gateway_settings()).reconcile(event)
    order = repo.get(order.id)
    return CaptureResponse(order_number=order.order_number, status=order.status, outcome=outcome.value)


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only).

    This endpoint is only available when PROTEAN_ENV is not 'production'.
    It allows toggling success/failure behavior for manual API testing.
    """
    if get_gateway_settings().is_production:
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    if body.provider not in KNOWN_PROVIDERS:
        raise HTTPException(status_code=404, detail=f"Unknown payment provider: {body.provider}")

    gateway = get_gateway(body.provider)
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
    )
    return GatewayConfigResponse(
        provider=body.provider,
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )
