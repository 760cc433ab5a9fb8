"""FastAPI routes for the Ordering domain: cart, checkout and orders.

Shoppers are identified by the ``X-Session-Id`` header. The Storefront that
owns the collaborators is taken from ``app.state.storefront``.
"""

from fastapi import APIRouter, Depends, Header, Request
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddToCartRequest,
    AddToCartResponse,
    ApplyCouponRequest,
    CancelOrderRequest,
    CartResponse,
    CheckoutResponse,
    GoToStepRequest,
    OrderListResponse,
    OrderResponse,
    PaymentDetailsRequest,
    PlaceOrderResponse,
    RecordShipmentRequest,
    ShippingInfoRequest,
    ShippingMethodRequest,
    StartCheckoutRequest,
    StatusResponse,
    UpdateCartQuantityRequest,
)
from ordering.checkout.session import PaymentDetails
from ordering.order.cancellation import CancelOrder
from ordering.order.fulfillment import MarkProcessing, RecordDelivery, RecordShipment
from ordering.order.history import get_order, orders_for_customer
from ordering.shared.address import Address
from ordering.storefront import ShopperSession, Storefront
from ordering.utils.logging import add_context


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_storefront(request: Request) -> Storefront:
    return request.app.state.storefront


async def get_shopper(
    x_session_id: str = Header(..., min_length=1),
    storefront: Storefront = Depends(get_storefront),
) -> ShopperSession:
    add_context(shopper_id=x_session_id)
    return storefront.session(x_session_id)


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------
def _breakdown(breakdown) -> dict:
    return {
        "subtotal": breakdown.subtotal,
        "discount": breakdown.discount,
        "discounted_subtotal": breakdown.discounted_subtotal,
        "shipping_cost": breakdown.shipping_cost,
        "tax": breakdown.tax,
        "total": breakdown.total,
        "currency": breakdown.currency,
    }


def _line(line) -> dict:
    return {
        "cart_item_id": line.cart_item_id,
        "product_id": line.product_id,
        "selected_options": line.selected_options,
        "quantity": line.quantity,
        "unit_price_snapshot": line.unit_price_snapshot,
    }


def _cart(shopper: ShopperSession) -> dict:
    return {
        "items": [_line(line) for line in shopper.store.lines],
        "saved_for_later": [_line(line) for line in shopper.store.saved_lines],
        "item_count": shopper.store.item_count,
        "coupon_code": shopper.pricing.coupon_code,
        "shipping_method": shopper.pricing.shipping_method.value,
        "pricing": _breakdown(shopper.breakdown),
    }


def _checkout(shopper: ShopperSession) -> CheckoutResponse:
    flow = shopper.current_checkout()
    session = flow.session
    return CheckoutResponse(
        checkout_id=str(session.id),
        step=flow.step.value,
        step_name=flow.step.name,
        payment_method=session.payment_method,
        payment_intent_id=session.payment_intent_id,
        client_secret=session.client_secret,
        order_id=session.order_id,
        pricing=_breakdown(shopper.breakdown),
    )


def _address(address) -> dict | None:
    if address is None:
        return None
    return {
        "name": address.name,
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "postal_code": address.postal_code,
        "country": address.country,
        "phone": address.phone,
    }


def _order(order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        customer_id=order.customer_id,
        status=order.status,
        items=[
            {
                "product_id": str(item.product_id),
                "title": item.title,
                "thumbnail": item.thumbnail,
                "quantity": item.quantity,
                "price_at_purchase": item.price_at_purchase,
                "selected_options": item.options,
            }
            for item in order.items
        ],
        pricing=_breakdown(order.pricing),
        shipping_address=_address(order.shipping_address),
        billing_address=_address(order.billing_address),
        shipping_method=order.shipping_method,
        coupon_code=order.coupon_code,
        payment_method=order.payment_method,
        payment_intent_id=order.payment_intent_id,
        carrier=order.carrier,
        tracking_number=order.tracking_number,
        cancellation_reason=order.cancellation_reason,
        created_at=order.created_at.isoformat() if order.created_at else None,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def view_cart(shopper: ShopperSession = Depends(get_shopper)) -> CartResponse:
    return CartResponse(**_cart(shopper))


@cart_router.post("/items", status_code=201, response_model=AddToCartResponse)
async def add_cart_item(body: AddToCartRequest, shopper: ShopperSession = Depends(get_shopper)) -> AddToCartResponse:
    cart_item_id = shopper.add_product(body.product_id, body.quantity, selected_options=body.selected_options)
    return AddToCartResponse(cart_item_id=cart_item_id, **_cart(shopper))


@cart_router.put("/items/{cart_item_id}", response_model=CartResponse)
async def update_cart_item_quantity(
    cart_item_id: str, body: UpdateCartQuantityRequest, shopper: ShopperSession = Depends(get_shopper)
) -> CartResponse:
    shopper.update_quantity(cart_item_id, body.quantity)
    return CartResponse(**_cart(shopper))


@cart_router.delete("/items/{cart_item_id}", response_model=CartResponse)
async def remove_cart_item(cart_item_id: str, shopper: ShopperSession = Depends(get_shopper)) -> CartResponse:
    shopper.remove_item(cart_item_id)
    return CartResponse(**_cart(shopper))


@cart_router.post("/items/{cart_item_id}/save-for-later", response_model=CartResponse)
async def save_cart_item_for_later(cart_item_id: str, shopper: ShopperSession = Depends(get_shopper)) -> CartResponse:
    shopper.save_for_later(cart_item_id)
    return CartResponse(**_cart(shopper))


@cart_router.post("/saved/{cart_item_id}/move-to-cart", response_model=CartResponse)
async def move_saved_item_to_cart(cart_item_id: str, shopper: ShopperSession = Depends(get_shopper)) -> CartResponse:
    shopper.move_to_cart(cart_item_id)
    return CartResponse(**_cart(shopper))


@cart_router.delete("/saved/{cart_item_id}", response_model=CartResponse)
async def remove_saved_item(cart_item_id: str, shopper: ShopperSession = Depends(get_shopper)) -> CartResponse:
    shopper.remove_saved(cart_item_id)
    return CartResponse(**_cart(shopper))


@cart_router.post("/coupon", response_model=CartResponse)
async def apply_coupon(body: ApplyCouponRequest, shopper: ShopperSession = Depends(get_shopper)) -> CartResponse:
    shopper.apply_coupon(body.coupon_code)
    return CartResponse(**_cart(shopper))


@cart_router.delete("/coupon", response_model=CartResponse)
async def remove_coupon(shopper: ShopperSession = Depends(get_shopper)) -> CartResponse:
    shopper.remove_coupon()
    return CartResponse(**_cart(shopper))


@cart_router.put("/shipping-method", response_model=CartResponse)
async def set_shipping_method(
    body: ShippingMethodRequest, shopper: ShopperSession = Depends(get_shopper)
) -> CartResponse:
    shopper.set_shipping_method(body.shipping_method)
    return CartResponse(**_cart(shopper))


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def start_checkout(
    body: StartCheckoutRequest | None = None, shopper: ShopperSession = Depends(get_shopper)
) -> CheckoutResponse:
    shopper.start_checkout(customer_id=body.customer_id if body else None)
    return _checkout(shopper)


@checkout_router.get("", response_model=CheckoutResponse)
async def view_checkout(shopper: ShopperSession = Depends(get_shopper)) -> CheckoutResponse:
    return _checkout(shopper)


@checkout_router.put("/shipping", response_model=CheckoutResponse)
async def update_shipping(
    body: ShippingInfoRequest, shopper: ShopperSession = Depends(get_shopper)
) -> CheckoutResponse:
    flow = shopper.current_checkout()
    fields = body.model_dump(exclude_unset=True, exclude={"saved_address"})
    if fields:
        flow.update_shipping_info(**fields)
    if "saved_address" in body.model_fields_set:
        saved = body.saved_address
        flow.select_address(Address(**saved.model_dump()) if saved else None)
    return _checkout(shopper)


@checkout_router.post("/payment", response_model=CheckoutResponse)
async def proceed_to_payment(shopper: ShopperSession = Depends(get_shopper)) -> CheckoutResponse:
    await shopper.current_checkout().proceed_to_payment()
    return _checkout(shopper)


@checkout_router.post("/review", response_model=CheckoutResponse)
async def proceed_to_review(
    body: PaymentDetailsRequest, shopper: ShopperSession = Depends(get_shopper)
) -> CheckoutResponse:
    await shopper.current_checkout().proceed_to_review(PaymentDetails(**body.model_dump()))
    return _checkout(shopper)


@checkout_router.post("/back", response_model=CheckoutResponse)
async def go_back(
    body: GoToStepRequest | None = None, shopper: ShopperSession = Depends(get_shopper)
) -> CheckoutResponse:
    flow = shopper.current_checkout()
    if body is not None and body.step is not None:
        flow.go_to(body.step)
    else:
        flow.go_back()
    return _checkout(shopper)


@checkout_router.post("/place", status_code=201, response_model=PlaceOrderResponse)
async def place_order(shopper: ShopperSession = Depends(get_shopper)) -> PlaceOrderResponse:
    order_id = await shopper.place_order()
    return PlaceOrderResponse(order_id=order_id)


@checkout_router.delete("", response_model=StatusResponse)
async def abandon_checkout(shopper: ShopperSession = Depends(get_shopper)) -> StatusResponse:
    shopper.abandon_checkout()
    return StatusResponse()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{order_id}", response_model=OrderResponse)
async def view_order(order_id: str) -> OrderResponse:
    return _order(get_order(order_id))


@order_router.put("/{order_id}/processing", response_model=StatusResponse)
async def mark_processing(order_id: str) -> StatusResponse:
    command = MarkProcessing(order_id=order_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/ship", response_model=StatusResponse)
async def record_shipment(order_id: str, body: RecordShipmentRequest | None = None) -> StatusResponse:
    command = RecordShipment(
        order_id=order_id,
        carrier=body.carrier if body else None,
        tracking_number=body.tracking_number if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/deliver", response_model=StatusResponse)
async def record_delivery(order_id: str) -> StatusResponse:
    command = RecordDelivery(order_id=order_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest | None = None) -> StatusResponse:
    command = CancelOrder(order_id=order_id, reason=body.reason if body else None)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


customer_router = APIRouter(prefix="/customers", tags=["orders"])


@customer_router.get("/{customer_id}/orders", response_model=OrderListResponse)
async def list_customer_orders(customer_id: str) -> OrderListResponse:
    return OrderListResponse(orders=[_order(order) for order in orders_for_customer(customer_id)])
