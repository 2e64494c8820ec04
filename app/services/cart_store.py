"""Shopping cart store.

The cart is an ordered list of :class:`CartItem` lines. A line is identified
by ``(product_id, variant name, color)``; absent and empty variant/color are
the same identity. The whole list is written to a durable slot after every
mutation and read back once when the store is opened.
"""
import json
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from app.schemas.cart import CartItem
from models import db
from models.cart import StoredCart

logger = logging.getLogger(__name__)

DEFAULT_SLOT_NAME = "shopping_cart"
_NONE = ""

_items_adapter = TypeAdapter(List[CartItem])

LineKey = Tuple[str, str, str]


def line_key(product_id: str, variant_name: Optional[str] = None, color: Optional[str] = None) -> LineKey:
    return (str(product_id), variant_name or _NONE, color or _NONE)


def item_key(item: CartItem) -> LineKey:
    variant_name = item.selected_variant.name if item.selected_variant else None
    return line_key(item.product_id, variant_name, item.selected_color)


class MemoryCartSlot:
    """Process-local slot, used for previews and tests."""

    def __init__(self, raw: Optional[str] = None):
        self.raw = raw
        self.saves = 0

    def load(self) -> Optional[str]:
        return self.raw

    def save(self, raw: str) -> None:
        self.raw = raw
        self.saves += 1


class SqlCartSlot:
    """Slot stored as one ``stored_cart`` row keyed by ``<name>:<session key>``."""

    def __init__(self, session_key: str, name: str = DEFAULT_SLOT_NAME):
        self.key = f"{name}:{session_key}"

    def load(self) -> Optional[str]:
        row = db.session.get(StoredCart, self.key)
        return row.payload if row else None

    def save(self, raw: str) -> None:
        row = db.session.get(StoredCart, self.key)
        if row is None:
            row = StoredCart(key=self.key, payload=raw)
            db.session.add(row)
        else:
            row.payload = raw
        db.session.commit()


class CartStore:
    def __init__(self, slot):
        self.slot = slot
        self._items: List[CartItem] = []
        self.is_open = False

    @classmethod
    def open(cls, slot) -> "CartStore":
        store = cls(slot)
        store.load()
        return store

    # ------------------- Persistence -------------------

    def load(self) -> None:
        raw = self.slot.load()
        if not raw:
            self._items = []
            return
        try:
            self._items = _items_adapter.validate_json(raw)
        except (ValidationError, ValueError) as e:
            logger.warning("Stored cart is unreadable, starting empty: %s", e)
            self._items = []

    def save(self) -> None:
        payload = [item.model_dump(mode="json") for item in self._items]
        self.slot.save(json.dumps(payload))

    # ------------------- Mutations -------------------

    def add_to_cart(self, item: CartItem) -> None:
        key = item_key(item)
        for idx, existing in enumerate(self._items):
            if item_key(existing) == key:
                merged = existing.model_copy(update={"quantity": existing.quantity + item.quantity})
                self._items = self._items[:idx] + [merged] + self._items[idx + 1:]
                break
        else:
            self._items = self._items + [item.model_copy(deep=True)]
        self.is_open = True
        self.save()

    def remove_from_cart(self, product_id: str, variant_name: Optional[str] = None, color: Optional[str] = None) -> None:
        key = line_key(product_id, variant_name, color)
        self._items = [item for item in self._items if item_key(item) != key]
        self.save()

    def update_quantity(self, product_id: str, quantity: int, variant_name: Optional[str] = None, color: Optional[str] = None) -> None:
        if quantity <= 0:
            self.remove_from_cart(product_id, variant_name, color)
            return
        key = line_key(product_id, variant_name, color)
        self._items = [
            item.model_copy(update={"quantity": quantity}) if item_key(item) == key else item
            for item in self._items
        ]
        self.save()

    def clear_cart(self) -> None:
        self._items = []
        self.save()

    # ------------------- Derived state -------------------

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    @property
    def cart_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def cart_total(self) -> Decimal:
        return sum((item.price * item.quantity for item in self._items), Decimal("0"))

    def snapshot(self) -> List[CartItem]:
        """Deep copies of the current lines, safe to freeze into an order."""
        return [item.model_copy(deep=True) for item in self._items]

    def to_dict(self):
        return {
            "items": [item.model_dump(mode="json") for item in self._items],
            "count": self.cart_count,
            "total": float(self.cart_total),
        }
