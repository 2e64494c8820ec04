import logging
from flask import Blueprint, current_app, request
from flask_limiter.util import get_remote_address
from pydantic import ValidationError
from extensions import limiter
from app.version import API_PREFIX
from app.metrics import ORDERS_SUBMITTED
from app.routes.cart import open_cart, MAX_CART_KEY_LENGTH
from app.routes.delivery import quote_for
from app.services.catalog import SqlCatalog, SqlOrderStore
from app.services.checkout import (
    CheckoutForm,
    CheckoutValidationError,
    ServiceQuoteForm,
    assemble_order,
    assemble_service_quote,
    render_whatsapp_message,
    validate_checkout,
    whatsapp_url,
)
from app.tasks.notifications import dispatch_submission
from app.utils import ok, error, field_errors, validation_error_response

orders_bp = Blueprint("orders", __name__, url_prefix=API_PREFIX)
logger = logging.getLogger(__name__)


def _checkout_limit():
    return current_app.config["CHECKOUT_LIMIT_PER_IP"]


def _notify(kind, payload):
    try:
        dispatch_submission(kind, payload)
    except Exception as e:
        # The submission is already stored; staff still see it in the admin list.
        logger.warning("Could not notify webhook about %s: %s", kind, e, exc_info=True)


def _handoff(order):
    message = render_whatsapp_message(order)
    return message, whatsapp_url(current_app.config["WHATSAPP_PHONE"], message)


@orders_bp.route("/orders/checkout", methods=["POST"])
@limiter.limit(_checkout_limit, key_func=get_remote_address, error_message="Too many orders from this IP")
def checkout():
    """Turn a cart into a stored order and a WhatsApp hand-off link.
    ---
    tags: [Orders]
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [cart_key, customer_name, phone]
          properties:
            cart_key: {type: string}
            customer_name: {type: string}
            phone: {type: string}
            email: {type: string}
            delivery_method: {type: string, enum: [pickup, shipping]}
            zone: {type: string, enum: [capital, national]}
            shipping_agency: {type: string, enum: [MRW, ZOOM]}
            shipping_address: {type: string}
            shipping_city: {type: string}
            recipient_name: {type: string}
            recipient_id: {type: string}
            recipient_phone: {type: string}
            same_as_customer: {type: boolean}
            distance_km: {type: number}
            notes: {type: string}
    responses:
      201:
        description: Order stored
      400:
        description: Missing or invalid fields
      503:
        description: Store unavailable
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    cart_key = str(payload.get("cart_key") or "")
    if not cart_key or len(cart_key) > MAX_CART_KEY_LENGTH:
        return validation_error_response({"cart_key": "This field is required"})
    try:
        form = CheckoutForm.model_validate(payload)
    except ValidationError as ve:
        return validation_error_response(field_errors(ve))

    cart = open_cart(cart_key)
    items = cart.snapshot()
    errors = validate_checkout(form.resolved(), items)
    if errors:
        return validation_error_response(errors, message=str(CheckoutValidationError(errors)))

    quote = quote_for(form.delivery_method, form.zone,
                      destination=form.destination, distance_km=form.distance_km)
    try:
        order = assemble_order(form, items, quote)
    except CheckoutValidationError as e:
        return validation_error_response(e.errors, message=str(e))

    order_id = SqlOrderStore().create_order(order)
    ORDERS_SUBMITTED.labels(order.kind, order.delivery_method).inc()
    logger.info("Order %s stored as #%s (%d items)", order.order_code, order_id, len(order.items))
    cart.clear_cart()

    _notify("order", {"id": order_id, **order.model_dump(mode="json")})
    message, link = _handoff(order)
    return ok({
        "order_id": order_id,
        "order_code": order.order_code,
        "items": [item.model_dump(mode="json") for item in order.items],
        "subtotal": float(order.subtotal),
        "delivery": quote.to_dict(),
        "delivery_fee": float(order.delivery_fee),
        "total": float(order.total),
        "message": message,
        "whatsapp_url": link,
    }, message="Order placed successfully", status=201)


@orders_bp.route("/quotes", methods=["POST"])
@limiter.limit(_checkout_limit, key_func=get_remote_address, error_message="Too many requests from this IP")
def request_quote():
    """Quote request for a service or a single catalog product.
    ---
    tags: [Orders]
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [customer_name, phone, email]
          properties:
            customer_name: {type: string}
            phone: {type: string}
            email: {type: string}
            service_name: {type: string}
            product_id: {type: string}
            variant: {type: string}
            quantity: {type: integer}
            notes: {type: string}
    responses:
      201:
        description: Quote request stored
      400:
        description: Missing or invalid fields
      404:
        description: Product not found
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    try:
        form = ServiceQuoteForm.model_validate(payload)
    except ValidationError as ve:
        return validation_error_response(field_errors(ve))

    if form.product_id:
        product = SqlCatalog().fetch_product(form.product_id)
        if product is None:
            return error("Product not found", status=404)
        form = form.model_copy(update={"product_name": product.name})
    try:
        order = assemble_service_quote(form)
    except CheckoutValidationError as e:
        return validation_error_response(e.errors, message=str(e))

    order_id = SqlOrderStore().create_order(order)
    ORDERS_SUBMITTED.labels(order.kind, "none").inc()
    _notify("quote", {"id": order_id, **order.model_dump(mode="json")})
    message, link = _handoff(order)
    return ok({
        "order_id": order_id,
        "order_code": order.order_code,
        "message": message,
        "whatsapp_url": link,
    }, message="Quote request received", status=201)
