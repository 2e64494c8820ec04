from flask import Blueprint, current_app, request
from app.version import API_PREFIX
from app.schemas.delivery import DeliveryQuoteRequest
from app.services.delivery import CAPITAL, SHIPPING, DeliveryQuoteSession, quote_delivery_fee
from app.utils import ok, validate_schema

delivery_bp = Blueprint("delivery", __name__, url_prefix=f"{API_PREFIX}/delivery")


def configured_resolver():
    """The app's distance resolver, or ``None`` when no API key is set.

    Without a key nothing is attempted, so the quote uses the zone text
    without an "unavailable" note.
    """
    resolver = current_app.extensions.get("distance_resolver")
    if resolver is None or not resolver.api_key:
        return None
    return resolver


def quote_for(method, zone, destination=None, distance_km=None, resolve=True):
    if method == SHIPPING and zone == CAPITAL and distance_km is None and resolve and destination:
        resolver = configured_resolver()
        if resolver is not None:
            session = DeliveryQuoteSession(resolver, executor=current_app.extensions["distance_executor"])
            session.select(method, zone, destination)
            return session.request_distance_quote().result()
    return quote_delivery_fee(method, zone, distance_km=distance_km, destination=destination)


@delivery_bp.route("/quote", methods=["POST"])
@validate_schema(DeliveryQuoteRequest)
def delivery_quote():
    """Delivery fee and tier for a method, zone and destination.
    ---
    tags: [Delivery]
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            method: {type: string, enum: [pickup, shipping]}
            zone: {type: string, enum: [capital, national]}
            destination: {type: string}
            distance_km: {type: number}
            resolve_distance: {type: boolean}
    responses:
      200:
        description: Delivery quote
    """
    data = request.validated_data
    quote = quote_for(
        data.method,
        data.zone,
        destination=data.destination,
        distance_km=data.distance_km,
        resolve=data.resolve_distance,
    )
    return ok(quote.to_dict())
