"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), kept separate from
internal Protean aggregates and value objects.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    name: str | None = None
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str
    phone: str | None = None


class CartLineSchema(BaseModel):
    cart_item_id: str
    product_id: str
    selected_options: dict[str, str] = {}
    quantity: int
    unit_price_snapshot: float | None = None


class BreakdownSchema(BaseModel):
    subtotal: float
    discount: float
    discounted_subtotal: float
    shipping_cost: float
    tax: float
    total: float
    currency: str


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    selected_options: dict[str, str] | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "tee-classic",
                    "quantity": 2,
                    "selected_options": {"size": "M", "color": "Black"},
                }
            ]
        }
    }


class UpdateCartQuantityRequest(BaseModel):
    quantity: int  # zero or less removes the line


class ApplyCouponRequest(BaseModel):
    coupon_code: str


class ShippingMethodRequest(BaseModel):
    shipping_method: str


class CartResponse(BaseModel):
    items: list[CartLineSchema]
    saved_for_later: list[CartLineSchema]
    item_count: int
    coupon_code: str | None = None
    shipping_method: str
    pricing: BreakdownSchema


class AddToCartResponse(CartResponse):
    cart_item_id: str


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class StartCheckoutRequest(BaseModel):
    customer_id: str | None = None


class ShippingInfoRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    saved_address: AddressSchema | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "first_name": "Ada",
                    "last_name": "Lovelace",
                    "address": "12 Analytical Way",
                    "city": "Springfield",
                    "state": "IL",
                    "zip": "62701",
                }
            ]
        }
    }


class PaymentDetailsRequest(BaseModel):
    card_number: str = ""
    name_on_card: str = ""
    expiry: str = ""
    cvc: str = ""


class GoToStepRequest(BaseModel):
    step: int | None = None  # omitted: one step back


class CheckoutResponse(BaseModel):
    checkout_id: str
    step: int
    step_name: str
    payment_method: str | None = None
    payment_intent_id: str | None = None
    client_secret: str | None = None
    order_id: str | None = None
    pricing: BreakdownSchema


class PlaceOrderResponse(BaseModel):
    order_id: str | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineSchema(BaseModel):
    product_id: str
    title: str
    thumbnail: str | None = None
    quantity: int
    price_at_purchase: float
    selected_options: dict[str, str] = {}


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str | None = None
    status: str
    items: list[OrderLineSchema]
    pricing: BreakdownSchema
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    shipping_method: str | None = None
    coupon_code: str | None = None
    payment_method: str | None = None
    payment_intent_id: str | None = None
    carrier: str | None = None
    tracking_number: str | None = None
    cancellation_reason: str | None = None
    created_at: str | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]


class RecordShipmentRequest(BaseModel):
    carrier: str | None = None
    tracking_number: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None
