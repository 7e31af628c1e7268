"""Pydantic request/response schemas for the Payments API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CapturePaymentRequest(BaseModel):
    # The provider's order id returned on the approval redirect (PayPal "token")
    remote_order_id: str = Field(min_length=1)


class ConfigureGatewayRequest(BaseModel):
    provider: str = "stripe"
    should_succeed: bool = True
    failure_reason: str = "Payment provider unavailable"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class WebhookResponse(BaseModel):
    status: str


class CaptureResponse(BaseModel):
    order_number: str
    status: str
    outcome: str


class GatewayConfigResponse(BaseModel):
    provider: str
    gateway: str
    should_succeed: bool
    failure_reason: str
