from prometheus_client import REGISTRY

from app.version import API_PREFIX
from models import db
from models.catalog import Product

ADMIN = f'{API_PREFIX}/admin'


def _stock(client, product_id, variant=None):
    data = client.get(f'{API_PREFIX}/products/{product_id}').get_json()['data']
    if variant is None:
        return data['stock']
    return next(v['stock'] for v in data['variants'] if v['name'] == variant)


def _place_order(client, seed_product):
    seed_product(id='A', name='Hilo', price=2, stock=5)
    seed_product(id='B', name='Tela', price=5, stock=5, variants=[{'name': 'L', 'price': 5, 'stock': 3}])
    client.post(f'{API_PREFIX}/cart/adm/add', json={'product_id': 'A', 'quantity': 2})
    client.post(f'{API_PREFIX}/cart/adm/add', json={'product_id': 'B', 'variant_name': 'L', 'quantity': 1})
    resp = client.post(f'{API_PREFIX}/orders/checkout', json={'cart_key': 'adm', 'customer_name': 'Ana', 'phone': '0414'})
    assert resp.status_code == 201
    return resp.get_json()['data']['order_id']


def _toggle(client, order_id, **body):
    return client.post(f'{ADMIN}/orders/{order_id}/attended', json=body)


def test_attending_order_reconciles_stock(client, seed_product):
    order_id = _place_order(client, seed_product)
    resp = _toggle(client, order_id, attended=True)
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['applied'] is True
    assert data['new_state'] == 'attended'
    assert data['order']['attended'] is True
    assert data['order']['version'] == 2
    assert _stock(client, 'A') == 3
    assert _stock(client, 'B') == 5
    assert _stock(client, 'B', 'L') == 2


def test_repeating_the_same_state_is_a_noop(client, seed_product):
    order_id = _place_order(client, seed_product)
    _toggle(client, order_id, attended=True)
    resp = _toggle(client, order_id, attended=True)
    assert resp.get_json()['data']['applied'] is False
    assert resp.get_json()['message'] == 'Order already attended'
    assert _stock(client, 'A') == 3


def test_flip_back_restores_stock(client, seed_product):
    order_id = _place_order(client, seed_product)
    _toggle(client, order_id)
    resp = _toggle(client, order_id)
    assert resp.get_json()['data']['new_state'] == 'pending'
    assert _stock(client, 'A') == 5
    assert _stock(client, 'B', 'L') == 3


def test_parent_pool_switch(app, client, seed_product):
    app.config['RECONCILE_PARENT_WITH_VARIANT'] = True
    order_id = _place_order(client, seed_product)
    _toggle(client, order_id, attended=True)
    assert _stock(client, 'B') == 4
    assert _stock(client, 'B', 'L') == 2


def test_partial_failure_still_flips_and_warns(app, client, seed_product):
    order_id = _place_order(client, seed_product)
    db.session.delete(db.session.get(Product, 'B'))
    db.session.commit()
    before = REGISTRY.get_sample_value('stock_reconciliation_failures_total') or 0

    resp = _toggle(client, order_id, attended=True)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['data']['partial_failure'] is True
    assert 'Tela [L]' in body['message']
    assert body['data']['order']['attended'] is True
    assert _stock(client, 'A') == 3
    assert REGISTRY.get_sample_value('stock_reconciliation_failures_total') == before + 1


def test_stale_version_conflict(client, seed_product):
    order_id = _place_order(client, seed_product)
    resp = _toggle(client, order_id, attended=True, expected_version=9)
    assert resp.status_code == 409
    assert _stock(client, 'A') == 5
    ok = _toggle(client, order_id, attended=True, expected_version=1)
    assert ok.status_code == 200


def test_unknown_order_404(client):
    assert _toggle(client, 999, attended=True).status_code == 404


def test_bad_payload_400(client, seed_product):
    order_id = _place_order(client, seed_product)
    assert _toggle(client, order_id, attended='yes').status_code == 400
    assert _toggle(client, order_id, expected_version=True).status_code == 400
    resp = client.post(f'{ADMIN}/orders/{order_id}/attended', json=[True])
    assert resp.status_code == 400
    assert _stock(client, 'A') == 5


def test_list_orders_filters_by_attended(client, seed_product):
    order_id = _place_order(client, seed_product)
    client.post('/__seed/order', json={'items': []})
    _toggle(client, order_id, attended=True)
    attended = client.get(f'{ADMIN}/orders?attended=true').get_json()['data']
    pending = client.get(f'{ADMIN}/orders?attended=false').get_json()['data']
    assert [o['id'] for o in attended] == [order_id]
    assert len(pending) == 1
    assert len(client.get(f'{ADMIN}/orders?limit=1').get_json()['data']) == 1


def test_seeded_order_with_missing_product(client, seed_product):
    seed_product(id='A', price=2, stock=5)
    items = [
        {'product_id': 'A', 'product_name': 'Hilo', 'price': '2.00', 'quantity': 1},
        {'product_id': 'X', 'product_name': 'Borrado', 'price': '2.00', 'quantity': 1},
    ]
    order_id = client.post('/__seed/order', json={'items': items}).get_json()['data']['order_id']
    data = _toggle(client, order_id, attended=True).get_json()['data']
    assert [o['ok'] for o in data['outcomes']] == [True, False]
    assert data['outcomes'][1]['error'] == 'product not found'


def test_contact_attendance_toggle(client):
    client.post(f'{API_PREFIX}/contact', json={'name': 'A', 'email': 'a@b.c', 'phone': '1', 'message': 'hola'})
    contact_id = client.get(f'{ADMIN}/contacts').get_json()['data'][0]['id']
    resp = client.post(f'{ADMIN}/contacts/{contact_id}/attended')
    assert resp.get_json()['data']['attended'] is True
    resp = client.post(f'{ADMIN}/contacts/{contact_id}/attended')
    assert resp.get_json()['data']['attended'] is False
    assert client.post(f'{ADMIN}/contacts/999/attended').status_code == 404
