import json
import logging
from decimal import Decimal

from app.schemas.cart import CartItem, SelectedVariant
from app.services.cart_store import CartStore, MemoryCartSlot, item_key, line_key


def _item(**overrides):
    data = {"product_id": "101", "product_name": "Hilo", "price": Decimal("15.50"), "quantity": 3}
    data.update(overrides)
    return CartItem(**data)


def _open(raw=None):
    slot = MemoryCartSlot(raw)
    return CartStore.open(slot), slot


def test_adding_same_line_twice_merges_quantity():
    store, _ = _open()
    store.add_to_cart(_item())
    store.add_to_cart(_item(quantity=2))
    assert len(store.items) == 1
    assert store.items[0].quantity == 5
    assert store.cart_count == 5
    assert store.cart_total == Decimal("77.50")
    assert store.is_open is True


def test_variant_and_color_make_separate_lines():
    store, _ = _open()
    store.add_to_cart(_item())
    store.add_to_cart(_item(selected_color="Rojo", quantity=1))
    store.add_to_cart(_item(
        price=Decimal("4.00"),
        quantity=1,
        selected_variant=SelectedVariant(name="L", price=Decimal("4.00")),
    ))
    assert len(store.items) == 3
    assert store.cart_count == 5
    assert store.cart_total == Decimal("15.50") * 3 + Decimal("15.50") + Decimal("4.00")


def test_absent_and_empty_variant_or_color_are_one_line():
    store, _ = _open()
    store.add_to_cart(_item(selected_color=None))
    store.add_to_cart(_item(selected_color="", quantity=1))
    assert len(store.items) == 1
    assert store.items[0].quantity == 4
    assert line_key("101") == line_key("101", "", "") == item_key(_item(selected_color=""))


def test_merge_replaces_line_instead_of_mutating_it():
    store, _ = _open()
    store.add_to_cart(_item())
    before = store.items
    store.add_to_cart(_item(quantity=2))
    assert before[0].quantity == 3
    assert store.items[0].quantity == 5


def test_added_item_is_copied():
    store, _ = _open()
    item = _item()
    store.add_to_cart(item)
    item.quantity = 99
    assert store.items[0].quantity == 3


def test_update_quantity_replaces_value():
    store, _ = _open()
    store.add_to_cart(_item())
    store.update_quantity("101", 7)
    assert store.items[0].quantity == 7
    assert store.cart_total == Decimal("108.50")


def test_update_quantity_zero_or_negative_removes_line():
    store, _ = _open()
    store.add_to_cart(_item())
    store.add_to_cart(_item(product_id="202", quantity=1))
    store.update_quantity("101", 0)
    assert [i.product_id for i in store.items] == ["202"]
    store.update_quantity("202", -3)
    assert store.items == []
    assert store.cart_total == Decimal("0")


def test_update_quantity_targets_variant_line_only():
    store, _ = _open()
    store.add_to_cart(_item())
    store.add_to_cart(_item(
        price=Decimal("4.00"), quantity=1,
        selected_variant=SelectedVariant(name="L", price=Decimal("4.00")),
    ))
    store.update_quantity("101", 2, variant_name="L")
    quantities = {item_key(i): i.quantity for i in store.items}
    assert quantities[line_key("101")] == 3
    assert quantities[line_key("101", "L")] == 2


def test_remove_missing_line_is_noop():
    store, _ = _open()
    store.add_to_cart(_item())
    store.remove_from_cart("999")
    store.remove_from_cart("101", color="Azul")
    assert store.cart_count == 3


def test_clear_cart():
    store, _ = _open()
    store.add_to_cart(_item())
    store.clear_cart()
    assert store.items == []
    assert store.cart_count == 0


def test_every_mutation_is_saved():
    store, slot = _open()
    store.add_to_cart(_item())
    store.update_quantity("101", 4)
    store.remove_from_cart("nope")
    store.clear_cart()
    assert slot.saves == 4
    assert json.loads(slot.raw) == []


def test_reopen_restores_lines():
    store, slot = _open()
    store.add_to_cart(_item(selected_color="Rojo"))
    store.add_to_cart(_item(product_id="202", price=Decimal("2.25"), quantity=2))
    reopened = CartStore.open(slot)
    assert [item_key(i) for i in reopened.items] == [item_key(i) for i in store.items]
    assert reopened.cart_total == store.cart_total


def test_unparseable_slot_starts_empty(caplog):
    caplog.set_level(logging.WARNING)
    store, _ = _open("{not json")
    assert store.items == []
    assert any("unreadable" in r.getMessage() for r in caplog.records)


def test_schema_invalid_slot_starts_empty():
    raw = json.dumps([{"product_id": "1", "price": "-1", "quantity": 0}])
    store, _ = _open(raw)
    assert store.items == []
    assert store.cart_total == Decimal("0")


def test_snapshot_is_detached_from_store():
    store, _ = _open()
    store.add_to_cart(_item(selected_variant=SelectedVariant(name="L", price=Decimal("15.50"))))
    frozen = store.snapshot()
    store.update_quantity("101", 1, variant_name="L")
    frozen[0].selected_variant.name = "XL"
    assert frozen[0].quantity == 3
    assert store.items[0].selected_variant.name == "L"


def test_to_dict_reports_totals():
    store, _ = _open()
    store.add_to_cart(_item())
    data = store.to_dict()
    assert data["count"] == 3
    assert data["total"] == 46.5
    assert data["items"][0]["price"] == "15.50"
