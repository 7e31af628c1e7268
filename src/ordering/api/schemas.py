"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field, model_validator


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartLineSchema(BaseModel):
    product_id: str
    variant_id: str
    quantity: int


class AddressSchema(BaseModel):
    name: str
    street: str
    city: str
    postal_code: str
    country: str
    state: str | None = None


class CustomerSchema(BaseModel):
    customer_id: str | None = None
    guest_email: str | None = None
    email: str | None = None
    name: str | None = None


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CheckoutRequestSchema(BaseModel):
    items: list[CartLineSchema]
    customer: CustomerSchema
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    payment_method: str
    referral_code: str | None = None
    coupon_code: str | None = None
    idempotency_key: str = Field(min_length=1, max_length=255)
    # Amount the client displayed, as a decimal string or number, e.g. "49.00"
    client_total: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "variant_id": "50ml", "quantity": 1}],
                    "customer": {"guest_email": "guest@example.com", "name": "Jane Doe"},
                    "shipping_address": {
                        "name": "Jane Doe",
                        "street": "Hauptstr. 1",
                        "city": "Berlin",
                        "postal_code": "10115",
                        "country": "DE",
                    },
                    "payment_method": "bank_transfer",
                    "idempotency_key": "9f6a0c1e-checkout-1",
                    "client_total": "49.00",
                }
            ]
        }
    }

    @model_validator(mode="before")
    @classmethod
    def _stringify_total(cls, data):
        if isinstance(data, dict) and isinstance(data.get("client_total"), int | float):
            data = {**data, "client_total": f"{data['client_total']:.2f}"}
        return data


class RecordShipmentRequest(BaseModel):
    tracking_number: str = Field(min_length=1)
    carrier: str | None = None


class UpdateAdminNotesRequest(BaseModel):
    admin_notes: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class BankTransferSchema(BaseModel):
    recipient: str
    iban: str
    bic: str
    bank_name: str
    amount: str
    currency: str
    reference: str


class CheckoutResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_method: str
    total: str
    currency: str
    action: str
    redirect_url: str | None = None
    bank_transfer: BankTransferSchema | None = None
    replayed: bool = False


class OrderItemSchema(BaseModel):
    product_id: str
    variant_id: str
    title: str
    quantity: int
    unit_price: str
    line_total: str


class OrderSummaryResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_method: str
    subtotal: str
    discount: str
    shipping: str
    total: str
    currency: str
    items: list[OrderItemSchema]
    tracking_number: str | None = None


class StatusResponse(BaseModel):
    status: str
