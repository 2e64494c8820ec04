from flask import Blueprint, abort, current_app, request
from app.version import API_PREFIX
from app.schemas.cart import (
    AddToCartRequest,
    CartItem,
    RemoveFromCartRequest,
    SelectedVariant,
    UpdateQuantityRequest,
)
from app.services.cart_store import CartStore, SqlCartSlot, DEFAULT_SLOT_NAME, line_key, item_key
from app.services.catalog import SqlCatalog
from app.utils import ok, error, validate_schema

cart_bp = Blueprint("cart", __name__, url_prefix=f"{API_PREFIX}/cart")

MAX_CART_KEY_LENGTH = 100


def open_cart(cart_key: str) -> CartStore:
    slot_name = current_app.config.get("CART_SLOT_NAME", DEFAULT_SLOT_NAME)
    return CartStore.open(SqlCartSlot(cart_key, name=slot_name))


def _line_from_catalog(product, data: AddToCartRequest):
    """Build the cart line with the catalog's current price, or return an error message."""
    variant = None
    if data.variant_name:
        variant = product.find_variant(data.variant_name)
        if variant is None or not variant.active:
            return None, f"Variant {data.variant_name!r} is not available"
    elif product.has_variants and product.variants:
        return None, "Select a variant for this product"
    if data.color and product.colors and data.color not in product.colors:
        return None, f"Color {data.color!r} is not available"

    item = CartItem(
        product_id=product.id,
        product_name=product.name,
        sku=product.sku,
        image=(variant.image_url if variant and variant.image_url else product.image_url),
        price=variant.price if variant else product.price,
        quantity=data.quantity,
        min_quantity_unit=product.min_quantity_unit,
        selected_variant=(
            SelectedVariant(name=variant.name, price=variant.price, sku=variant.sku) if variant else None
        ),
        selected_color=data.color or None,
    )
    return item, None


@cart_bp.url_value_preprocessor
def _check_cart_key(endpoint, values):
    key = (values or {}).get("cart_key", "")
    if not key or len(key) > MAX_CART_KEY_LENGTH:
        abort(400, description="Invalid cart key")


@cart_bp.route("/<cart_key>", methods=["GET"])
def view_cart(cart_key):
    """Current cart lines with count and total.
    ---
    tags: [Cart]
    parameters:
      - in: path
        name: cart_key
        type: string
        required: true
    responses:
      200:
        description: Cart state
    """
    return ok(open_cart(cart_key).to_dict())


@cart_bp.route("/<cart_key>/add", methods=["POST"])
@validate_schema(AddToCartRequest)
def add_to_cart(cart_key):
    """Add a product (optionally a variant and color) to the cart.
    ---
    tags: [Cart]
    parameters:
      - in: path
        name: cart_key
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          required: [product_id]
          properties:
            product_id: {type: string}
            quantity: {type: integer, minimum: 1}
            variant_name: {type: string}
            color: {type: string}
    responses:
      200:
        description: Updated cart
      404:
        description: Product not found
      409:
        description: Not enough stock
    """
    data = request.validated_data
    product = SqlCatalog().fetch_product(data.product_id)
    if product is None or not product.active:
        return error("Product not available", status=404)
    item, problem = _line_from_catalog(product, data)
    if problem:
        return error(problem, status=400)

    cart = open_cart(cart_key)
    key = item_key(item)
    in_cart = sum(line.quantity for line in cart.items if item_key(line) == key)
    available = product.effective_stock(data.variant_name)
    if in_cart + item.quantity > available:
        return error(f"Only {available} unit(s) available", status=409)

    cart.add_to_cart(item)
    return ok(cart.to_dict(), message="Item added to cart")


@cart_bp.route("/<cart_key>/update", methods=["POST"])
@validate_schema(UpdateQuantityRequest)
def update_cart_quantity(cart_key):
    """Set a line's quantity; zero or less removes the line.
    ---
    tags: [Cart]
    responses:
      200:
        description: Updated cart
      404:
        description: Line not in cart and quantity is positive
    """
    data = request.validated_data
    cart = open_cart(cart_key)
    key = line_key(data.product_id, data.variant_name, data.color)
    if data.quantity > 0 and not any(item_key(line) == key for line in cart.items):
        return error("Item not found in cart", status=404)
    cart.update_quantity(data.product_id, data.quantity, data.variant_name, data.color)
    return ok(cart.to_dict(), message="Cart quantity updated")


@cart_bp.route("/<cart_key>/remove", methods=["POST"])
@validate_schema(RemoveFromCartRequest)
def remove_item(cart_key):
    """Remove one line from the cart.
    ---
    tags: [Cart]
    responses:
      200:
        description: Updated cart
    """
    data = request.validated_data
    cart = open_cart(cart_key)
    cart.remove_from_cart(data.product_id, data.variant_name, data.color)
    return ok(cart.to_dict(), message="Item removed")


@cart_bp.route("/<cart_key>/clear", methods=["POST"])
def clear_cart(cart_key):
    """Empty the cart.
    ---
    tags: [Cart]
    responses:
      200:
        description: Empty cart
    """
    cart = open_cart(cart_key)
    cart.clear_cart()
    return ok(cart.to_dict(), message="Cart cleared")
