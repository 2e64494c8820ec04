"""Order attendance and stock reconciliation.

Marking an order attended takes its frozen line items out of stock; marking
it pending again puts them back. Stock writes are independent per line and
best effort: a failed line is reported, the remaining lines are still
attempted and the attendance flag still changes, so staff can fix stock by
hand from the returned outcomes.
"""
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ValidationError

from app.metrics import STOCK_RECONCILIATION_FAILURES
from app.schemas.cart import CartItem
from app.telemetry import get_tracer

logger = logging.getLogger(__name__)

PENDING = "pending"
ATTENDED = "attended"


class OrderNotFound(Exception):
    pass


class StaleOrderError(Exception):
    pass


def state_of(attended) -> str:
    return ATTENDED if attended else PENDING


def apply_delta(current: Optional[int], delta: int) -> int:
    """New stock after ``delta``; decrements floor at zero, increments are unbounded."""
    value = (current or 0) + delta
    return max(0, value) if delta < 0 else value


class LineOutcome(BaseModel):
    index: int
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    variant_name: Optional[str] = None
    quantity: int = 0
    ok: bool
    changes: Dict[str, List[int]] = {}  # pool -> [before, after]
    error: Optional[str] = None

    @property
    def label(self) -> str:
        name = self.product_name or self.product_id or f"line {self.index + 1}"
        return f"{name} [{self.variant_name}]" if self.variant_name else name


class ReconciliationResult(BaseModel):
    order_id: int
    previous_state: str
    new_state: str
    applied: bool
    outcomes: List[LineOutcome] = []

    @property
    def failed_lines(self) -> List[LineOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def partial_failure(self) -> bool:
        return bool(self.failed_lines)

    @property
    def warning(self) -> Optional[str]:
        if not self.partial_failure:
            return None
        names = ", ".join(o.label for o in self.failed_lines)
        return f"Order marked {self.new_state} but stock may be inconsistent for: {names}"

    def to_dict(self):
        data = self.model_dump()
        data["partial_failure"] = self.partial_failure
        data["warning"] = self.warning
        return data


class OrderFulfillmentReconciler:
    def __init__(self, catalog, orders, parent_with_variant: bool = False):
        self.catalog = catalog
        self.orders = orders
        self.parent_with_variant = parent_with_variant

    def toggle_order_attended(self, order_id, attended: Optional[bool] = None,
                              expected_version: Optional[int] = None) -> ReconciliationResult:
        """Move an order to ``attended`` (or flip it when ``attended`` is None).

        Requesting the state the order is already in applies nothing. The flag
        is claimed with a compare-and-set on the order version before any stock
        moves, so two admins racing on the same order cannot both apply deltas.
        """
        order = self.orders.fetch_order(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found")
        if expected_version is not None and int(expected_version) != order.version:
            raise StaleOrderError(f"Order {order_id} changed (version {order.version})")

        current = bool(order.attended)
        requested = (not current) if attended is None else bool(attended)
        if requested == current:
            logger.info("Order %s already %s, nothing to reconcile", order_id, state_of(current))
            return ReconciliationResult(order_id=order.id, previous_state=state_of(current),
                                        new_state=state_of(current), applied=False)

        if not self.orders.update_order_attended(order.id, requested, order.version):
            raise StaleOrderError(f"Order {order_id} was updated concurrently")

        with get_tracer().start_as_current_span("order.reconcile_stock") as span:
            span.set_attribute("order.id", order.id)
            span.set_attribute("order.new_state", state_of(requested))
            outcomes = [
                self._reconcile_line(index, raw, decrement=requested)
                for index, raw in enumerate(order.items or [])
            ]
            span.set_attribute("order.failed_lines", sum(1 for o in outcomes if not o.ok))
        result = ReconciliationResult(order_id=order.id, previous_state=state_of(current),
                                      new_state=state_of(requested), applied=True, outcomes=outcomes)
        if result.partial_failure:
            STOCK_RECONCILIATION_FAILURES.inc(len(result.failed_lines))
            logger.warning(result.warning)
        else:
            logger.info("Order %s marked %s, %d line(s) reconciled",
                        order.id, result.new_state, len(outcomes))
        return result

    def _reconcile_line(self, index: int, raw, decrement: bool) -> LineOutcome:
        try:
            item = raw if isinstance(raw, CartItem) else CartItem.model_validate(raw)
        except ValidationError as e:
            logger.error("Order line %s is not a valid cart item: %s", index, e)
            return LineOutcome(index=index, ok=False, error="invalid line item")

        variant_name = item.selected_variant.name if item.selected_variant else None
        outcome = LineOutcome(index=index, product_id=item.product_id, product_name=item.product_name,
                              variant_name=variant_name, quantity=item.quantity, ok=False)
        delta = -item.quantity if decrement else item.quantity
        try:
            product = self.catalog.fetch_product(item.product_id)
            if product is None:
                outcome.error = "product not found"
                return outcome

            fields: Dict = {}
            changes: Dict[str, List[int]] = {}
            variant = product.find_variant(variant_name) if variant_name else None
            has_variant_pool = variant is not None and variant.stock is not None
            if has_variant_pool:
                new_stock = apply_delta(variant.stock, delta)
                fields["variants"] = {variant.name: new_stock}
                changes[f"variant:{variant.name}"] = [variant.stock, new_stock]
            if not has_variant_pool or self.parent_with_variant:
                new_stock = apply_delta(product.stock, delta)
                fields["stock"] = new_stock
                changes["product"] = [product.stock or 0, new_stock]

            self.catalog.update_product(product.id, fields)
        except Exception as e:
            logger.error("Stock update failed for product %s: %s", item.product_id, e, exc_info=True)
            outcome.error = str(e) or e.__class__.__name__
            return outcome

        outcome.ok = True
        outcome.changes = changes
        return outcome
