import logging
from flask import Blueprint, current_app, request
from app.version import API_PREFIX
from app.services.catalog import SqlCatalog, SqlOrderStore, SqlContactStore
from app.services.fulfillment import OrderFulfillmentReconciler, OrderNotFound, StaleOrderError
from app.utils import ok, error

admin_bp = Blueprint("admin", __name__, url_prefix=f"{API_PREFIX}/admin")
logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 500


def _attended_filter():
    raw = request.args.get("attended")
    if raw is None:
        return None
    return raw.lower() in ("1", "true", "yes")


def _limit():
    try:
        return max(1, min(int(request.args.get("limit", 100)), MAX_LIST_LIMIT))
    except ValueError:
        return 100


def build_reconciler():
    return OrderFulfillmentReconciler(
        SqlCatalog(),
        SqlOrderStore(),
        parent_with_variant=bool(current_app.config.get("RECONCILE_PARENT_WITH_VARIANT")),
    )


@admin_bp.route("/orders", methods=["GET"])
def list_orders():
    """Submitted orders and quote requests, newest first.
    ---
    tags: [Admin]
    parameters:
      - in: query
        name: attended
        type: boolean
      - in: query
        name: limit
        type: integer
    responses:
      200:
        description: Order list
    """
    orders = SqlOrderStore().list_orders(attended=_attended_filter(), limit=_limit())
    return ok([o.to_dict() for o in orders])


@admin_bp.route("/orders/<int:order_id>/attended", methods=["POST"])
def toggle_order_attended(order_id):
    """Mark an order attended or pending and reconcile stock.
    ---
    tags: [Admin]
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            attended: {type: boolean}
            expected_version: {type: integer}
    responses:
      200:
        description: Reconciliation result, with a warning when some lines failed
      404:
        description: Order not found
      409:
        description: Order changed concurrently
    """
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return error("Request body must be a JSON object", status=400)
    attended = payload.get("attended")
    if attended is not None and not isinstance(attended, bool):
        return error("attended must be a boolean", status=400)
    expected_version = payload.get("expected_version")
    if expected_version is not None and (isinstance(expected_version, bool) or not isinstance(expected_version, int)):
        return error("expected_version must be an integer", status=400)

    try:
        result = build_reconciler().toggle_order_attended(
            order_id, attended=attended, expected_version=expected_version
        )
    except OrderNotFound as e:
        return error(str(e), status=404)
    except StaleOrderError as e:
        return error(str(e), status=409)

    data = result.to_dict()
    order = SqlOrderStore().fetch_order(order_id)
    data["order"] = order.to_dict() if order else None
    if result.partial_failure:
        return ok(data, message=result.warning)
    if not result.applied:
        return ok(data, message=f"Order already {result.new_state}")
    return ok(data, message=f"Order marked {result.new_state}")


@admin_bp.route("/contacts", methods=["GET"])
def list_contacts():
    """
    ---
    tags: [Admin]
    responses:
      200:
        description: Contact requests, newest first
    """
    contacts = SqlContactStore().list_contacts(attended=_attended_filter(), limit=_limit())
    return ok([c.to_dict() for c in contacts])


@admin_bp.route("/contacts/<int:contact_id>/attended", methods=["POST"])
def toggle_contact_attended(contact_id):
    """Flip a contact request's attended flag; stock is never touched.
    ---
    tags: [Admin]
    responses:
      200:
        description: Updated contact
      404:
        description: Contact not found
    """
    contact = SqlContactStore().toggle_attended(contact_id)
    if contact is None:
        return error("Contact not found", status=404)
    return ok(contact.to_dict(), message="Contact updated")
