"""PayPal redirect-wallet adapter (Orders v2 API).

Flow: create an order with intent CAPTURE, send the customer to its
``approve`` link, capture the order when the customer returns. Webhooks are
verified by asking PayPal to check the transmission headers against the
configured webhook id.
"""

import json
from collections.abc import Mapping

import httpx
import structlog

from payments.gateway.credentials import ClientCredentialsTokenProvider
from payments.gateway.port import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentRequest,
    PaymentSession,
    ProviderEvent,
    ProviderEventKind,
    WebhookPayloadError,
    header_value,
    reject_non_positive,
)
from payments.settings import PAYPAL_SANDBOX_URL

logger = structlog.get_logger(__name__)

_TRANSMISSION_HEADERS = {
    "auth_algo": "PayPal-Auth-Algo",
    "cert_url": "PayPal-Cert-Url",
    "transmission_id": "PayPal-Transmission-Id",
    "transmission_sig": "PayPal-Transmission-Sig",
    "transmission_time": "PayPal-Transmission-Time",
}

_EVENT_KINDS = {
    "CHECKOUT.ORDER.COMPLETED": ProviderEventKind.PAYMENT_SUCCEEDED,
    "PAYMENT.CAPTURE.COMPLETED": ProviderEventKind.PAYMENT_SUCCEEDED,
    "PAYMENT.CAPTURE.DENIED": ProviderEventKind.PAYMENT_FAILED,
    "CHECKOUT.ORDER.VOIDED": ProviderEventKind.SESSION_EXPIRED,
}


def format_amount(cents: int) -> str:
    return f"{cents // 100}.{cents % 100:02d}"


class PayPalGateway(PaymentGateway):
    provider = "paypal"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = PAYPAL_SANDBOX_URL,
        webhook_id: str | None = None,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
        token_provider: ClientCredentialsTokenProvider | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.webhook_id = webhook_id
        self._http = http_client or httpx.Client(timeout=timeout)
        self._tokens = token_provider or ClientCredentialsTokenProvider(
            client_id=client_id,
            client_secret=client_secret,
            token_url=f"{self.base_url}/v1/oauth2/token",
            http_client=self._http,
        )

    # -------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------
    def _post(self, path: str, payload: dict, request_id: str | None = None) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self._tokens.get_token()}",
            "Content-Type": "application/json",
        }
        if request_id:
            headers["PayPal-Request-Id"] = request_id

        try:
            response = self._http.post(f"{self.base_url}{path}", json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise PaymentGatewayError(f"PayPal {path} timed out", reason="timeout", provider=self.provider) from e
        except httpx.HTTPError as e:
            raise PaymentGatewayError(f"PayPal {path} failed: {e}", reason="unreachable", provider=self.provider) from e

        if response.status_code == 401:
            self._tokens.invalidate()
        return response

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if response.status_code >= 400:
            logger.error(
                "PayPal request rejected",
                action=action,
                status_code=response.status_code,
                body=response.text[:500],
            )
            reason = "auth_failed" if response.status_code == 401 else "provider_rejected"
            raise PaymentGatewayError(
                f"PayPal {action} rejected with {response.status_code}",
                reason=reason,
                provider=self.provider,
            )

    def _json(self, response: httpx.Response, action: str) -> dict:
        try:
            return response.json()
        except ValueError as e:
            logger.error("PayPal returned a non-JSON body", action=action, status_code=response.status_code)
            raise PaymentGatewayError(
                f"PayPal {action} returned an unreadable response",
                reason="invalid_response",
                provider=self.provider,
            ) from e

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def create_payment(self, request: PaymentRequest) -> PaymentSession:
        reject_non_positive(request, self.provider)

        payload = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": request.order_number,
                    "custom_id": request.order_id,
                    "description": f"Order {request.order_number}",
                    "amount": {
                        "currency_code": request.currency.upper(),
                        "value": format_amount(request.amount_cents),
                    },
                }
            ],
            "application_context": {
                "return_url": request.return_url,
                "cancel_url": request.cancel_url,
                "user_action": "PAY_NOW",
                "shipping_preference": "NO_SHIPPING",
            },
        }

        response = self._post("/v2/checkout/orders", payload, request_id=f"order-{request.order_id}")
        self._raise_for_status(response, "create order")

        body = self._json(response, "create order")
        approve_url = next(
            (link["href"] for link in body.get("links", []) if link.get("rel") in ("approve", "payer-action")),
            None,
        )
        if not body.get("id") or not approve_url:
            raise PaymentGatewayError("PayPal order has no approval link", reason="missing_redirect", provider=self.provider)

        logger.info("PayPal order created", order_number=request.order_number, paypal_order_id=body["id"])
        return PaymentSession(provider=self.provider, provider_ref=body["id"], redirect_url=approve_url)

    def capture(self, provider_ref: str) -> ProviderEvent:
        response = self._post(f"/v2/checkout/orders/{provider_ref}/capture", {}, request_id=f"capture-{provider_ref}")
        self._raise_for_status(response, "capture")

        body = self._json(response, "capture")
        status = body.get("status")
        kind = ProviderEventKind.PAYMENT_SUCCEEDED if status == "COMPLETED" else ProviderEventKind.UNHANDLED
        return ProviderEvent(
            provider=self.provider,
            kind=kind,
            event_type=f"capture.{status}",
            event_id=body.get("id"),
            provider_ref=body.get("id", provider_ref),
            raw=body,
        )

    # -------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------
    @property
    def verification_configured(self) -> bool:
        return bool(self.webhook_id)

    def verify_webhook_signature(self, payload: str, headers: Mapping[str, str]) -> bool:
        if not self.webhook_id:
            return False

        transmission = {field: header_value(headers, header) for field, header in _TRANSMISSION_HEADERS.items()}
        if not all(transmission.values()):
            return False

        try:
            webhook_event = json.loads(payload)
        except ValueError:
            return False

        try:
            response = self._post(
                "/v1/notifications/verify-webhook-signature",
                {**transmission, "webhook_id": self.webhook_id, "webhook_event": webhook_event},
            )
        except PaymentGatewayError as e:
            logger.warning("PayPal signature check unavailable", error=str(e))
            return False

        if response.status_code != 200:
            return False
        try:
            return self._json(response, "verify signature").get("verification_status") == "SUCCESS"
        except PaymentGatewayError:
            return False

    def parse_event(self, payload: str) -> ProviderEvent:
        try:
            body = json.loads(payload)
            event_type = body["event_type"]
            resource = body["resource"]
        except (ValueError, TypeError, KeyError) as e:
            raise WebhookPayloadError(f"Malformed PayPal event: {e}") from e

        if event_type.startswith("PAYMENT.CAPTURE."):
            related = resource.get("supplementary_data", {}).get("related_ids", {})
            provider_ref = related.get("order_id")
        else:
            provider_ref = resource.get("id")

        return ProviderEvent(
            provider=self.provider,
            kind=_EVENT_KINDS.get(event_type, ProviderEventKind.UNHANDLED),
            event_type=event_type,
            event_id=body.get("id"),
            provider_ref=provider_ref,
            raw=body,
        )
