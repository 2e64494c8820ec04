from app.version import API_PREFIX


def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    json_data = response.get_json()
    assert json_data.get('status') == 'ok'


def test_metrics_endpoint_exposes_domain_counters(client):
    client.post(f'{API_PREFIX}/delivery/quote', json={'method': 'pickup'})
    body = client.get('/metrics').get_data(as_text=True)
    assert 'stock_reconciliation_failures_total' in body
    assert 'delivery_quotes_total{source="pickup"}' in body
    assert 'orders_submitted_total' in body


def test_api_docs_cover_versioned_routes(client):
    spec = client.get('/apispec.json').get_json()
    assert f'{API_PREFIX}/orders/checkout' in spec['paths']
    assert f'{API_PREFIX}/admin/orders/{{order_id}}/attended' in spec['paths']
    assert '/health' not in spec['paths']


def test_security_and_request_id_headers(client):
    resp = client.get('/health', headers={'X-Request-ID': 'my-fixed-id-123'})
    assert resp.headers['X-Request-ID'] == 'my-fixed-id-123'
    assert resp.headers['X-Content-Type-Options'] == 'nosniff'
    assert resp.headers['X-Frame-Options'] == 'DENY'
    exposed = resp.headers['Access-Control-Expose-Headers']
    assert 'X-Request-ID' in exposed
    assert 'traceparent' in exposed


def test_generated_request_id(client):
    rid = client.get('/health').headers['X-Request-ID']
    assert len(rid) == 32
