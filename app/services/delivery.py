"""Delivery fee calculation.

Fees for the capital zone come from the driving distance to the store when it
is known, otherwise from keywords found in the destination text. National
shipments are paid on delivery and pickups are free.
"""
import logging
import math
import threading
import unicodedata
from concurrent.futures import Future, ThreadPoolExecutor
from decimal import Decimal
from typing import Callable, Optional

from pydantic import BaseModel

from app.metrics import DELIVERY_QUOTES

logger = logging.getLogger(__name__)

PICKUP = "pickup"
SHIPPING = "shipping"
CAPITAL = "capital"
NATIONAL = "national"

# (inclusive upper bound in km, fee, label); the last tier has no upper bound
DISTANCE_TIERS = (
    (12, Decimal("4"), "0-12km"),
    (15, Decimal("5"), "12-15km"),
    (20, Decimal("6"), "15-20km"),
    (30, Decimal("7"), "20-30km"),
    (None, Decimal("10"), "+30km"),
)

STANDARD_FEE = Decimal("5")
STANDARD_LABEL = "Estándar"
NATIONAL_LABEL = "Nacional"
NATIONAL_NOTE = "cobro a destino"
PICKUP_LABEL = "Retiro en tienda"
ESTIMATE_UNAVAILABLE_NOTE = "distance estimate unavailable"

# Sectors of the capital grouped by distance from the store, matched in order.
ZONE_KEYWORDS = (
    ("0-12km", Decimal("4"), (
        "chacao", "altamira", "los palos grandes", "la castellana", "el rosal",
        "las mercedes", "sabana grande", "chacaito", "bello monte", "la florida",
        "campo alegre", "los caobos", "san bernardino", "la candelaria", "parque central",
    )),
    ("15-20km", Decimal("6"), (
        "el paraiso", "montalban", "los chaguaramos", "santa monica", "el cafetal",
        "la trinidad", "prados del este", "baruta", "los ruices", "boleita",
        "la urbina", "macaracuay", "petare", "la california",
    )),
    ("20-30km", Decimal("7"), (
        "la vega", "caricuao", "antimano", "el valle", "coche", "propatria",
        "los magallanes", "la pastora", "el hatillo", "la dolorita", "filas de mariche",
    )),
    ("+30km", Decimal("10"), (
        "guarenas", "guatire", "los teques", "san antonio de los altos", "la guaira",
        "maiquetia", "catia la mar", "charallave", "ocumare", "el junquito", "carrizal",
        "santa teresa",
    )),
)


class DeliveryQuote(BaseModel):
    method: str = SHIPPING
    zone: Optional[str] = None
    distance_km: Optional[float] = None
    tier: str
    fee: Decimal
    note: Optional[str] = None

    def to_dict(self):
        return {
            "method": self.method,
            "zone": self.zone,
            "distance_km": self.distance_km,
            "tier": self.tier,
            "fee": float(self.fee),
            "note": self.note,
        }


def _usable_distance(distance_km) -> Optional[float]:
    if distance_km is None:
        return None
    try:
        value = float(distance_km)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def _fold(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text.lower())
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def fee_for_distance(distance_km: float):
    """Return ``(fee, label)`` for a driving distance in the capital zone."""
    for upper, fee, label in DISTANCE_TIERS:
        if upper is None or distance_km <= upper:
            return fee, label
    raise AssertionError("unreachable: last tier is unbounded")


def fee_for_zone_text(destination: Optional[str]):
    """Return ``(fee, label)`` from keywords in a free-text destination."""
    text = _fold(destination or "")
    if text:
        for label, fee, keywords in ZONE_KEYWORDS:
            if any(keyword in text for keyword in keywords):
                return fee, label
    return STANDARD_FEE, STANDARD_LABEL


def quote_delivery_fee(method: str = SHIPPING, zone: str = CAPITAL, distance_km=None,
                       destination: Optional[str] = None, resolution_failed: bool = False) -> DeliveryQuote:
    if method == PICKUP:
        DELIVERY_QUOTES.labels("pickup").inc()
        return DeliveryQuote(method=PICKUP, zone=zone, tier=PICKUP_LABEL, fee=Decimal("0"))

    if zone == NATIONAL:
        DELIVERY_QUOTES.labels("national").inc()
        return DeliveryQuote(method=method, zone=NATIONAL, tier=NATIONAL_LABEL,
                             fee=Decimal("0"), note=NATIONAL_NOTE)

    distance = _usable_distance(distance_km)
    if distance is not None:
        fee, label = fee_for_distance(distance)
        DELIVERY_QUOTES.labels("distance").inc()
        return DeliveryQuote(method=method, zone=zone, distance_km=distance, tier=label, fee=fee)

    fee, label = fee_for_zone_text(destination)
    DELIVERY_QUOTES.labels("zone_text").inc()
    note = ESTIMATE_UNAVAILABLE_NOTE if (resolution_failed or distance_km is not None) else None
    return DeliveryQuote(method=method, zone=zone, tier=label, fee=fee, note=note)


class DeliveryQuoteSession:
    """Tracks one customer's delivery selection while distances resolve.

    Each selection change bumps a generation counter. A distance that comes
    back for an older generation is dropped, so a slow lookup can never
    overwrite the quote for the zone the customer picked afterwards.
    """

    def __init__(self, resolver: Optional[Callable[[str], Optional[float]]] = None, executor=None):
        self._resolver = resolver
        self._executor = executor or ThreadPoolExecutor(max_workers=1)
        self._lock = threading.Lock()
        self._generation = 0
        self.method = SHIPPING
        self.zone = CAPITAL
        self.destination: Optional[str] = None
        self.quote = quote_delivery_fee(self.method, self.zone)

    @property
    def generation(self) -> int:
        return self._generation

    def select(self, method: str = SHIPPING, zone: str = CAPITAL, destination: Optional[str] = None) -> DeliveryQuote:
        """Change the selection and return the immediate (non-distance) quote."""
        with self._lock:
            self._generation += 1
            self.method, self.zone, self.destination = method, zone, destination
            self.quote = quote_delivery_fee(method, zone, destination=destination)
            return self.quote

    def request_distance_quote(self) -> Future:
        """Resolve the distance off-thread; the future yields the applied quote or ``None`` if stale."""
        with self._lock:
            generation = self._generation
            method, zone, destination = self.method, self.zone, self.destination
            current = self.quote
        if self._resolver is None or method == PICKUP or zone == NATIONAL or not destination:
            done: Future = Future()
            done.set_result(current)
            return done
        return self._executor.submit(self._resolve_and_apply, generation, destination)

    def _resolve_and_apply(self, generation: int, destination: str) -> Optional[DeliveryQuote]:
        try:
            distance = self._resolver(destination)
        except Exception as e:
            logger.warning("Distance lookup crashed: %s", e)
            distance = None
        return self.apply_distance(generation, distance)

    def apply_distance(self, generation: int, distance_km: Optional[float]) -> Optional[DeliveryQuote]:
        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale distance for generation %s (current %s)",
                            generation, self._generation)
                return None
            self.quote = quote_delivery_fee(
                self.method,
                self.zone,
                distance_km=distance_km,
                destination=self.destination,
                resolution_failed=distance_km is None,
            )
            return self.quote

    def close(self) -> None:
        self._executor.shutdown(wait=False)
