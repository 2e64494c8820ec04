import json
import logging

from flask import g

from app.logging import JsonFormatter, MaskingFilter, RequestIdFilter


def _record(msg, level=logging.INFO, args=None):
    return logging.LogRecord("storefront.test", level, __file__, 1, msg, args, None)


def test_request_id_filter_uses_current_request(app):
    with app.test_request_context('/'):
        g.request_id = 'rid-abc'
        record = _record('hello')
        RequestIdFilter().filter(record)
    assert record.request_id == 'rid-abc'


def test_request_id_filter_outside_request():
    record = _record('hello')
    RequestIdFilter().filter(record)
    assert record.request_id == 'n/a'


def test_customer_fields_masked_in_info(monkeypatch):
    monkeypatch.setenv('APP_ENV', 'testing')
    record = _record({
        'phone': '04141234567',
        'email': 'ana@example.com',
        'recipient_id': 'V-123',
        'cedula': 'V-123',
        'order_code': 'K4821',
    })
    MaskingFilter().filter(record)
    assert record.msg['phone'] == '[REDACTED]'
    assert record.msg['email'] == '[REDACTED]'
    assert record.msg['recipient_id'] == '[REDACTED]'
    assert record.msg['cedula'] == '[REDACTED]'
    assert record.msg['order_code'] == 'K4821'


def test_customer_fields_visible_in_debug_outside_production(monkeypatch):
    monkeypatch.setenv('APP_ENV', 'development')
    record = _record({'phone': '0414'}, level=logging.DEBUG)
    MaskingFilter().filter(record)
    assert record.msg['phone'] == '0414'


def test_customer_fields_masked_in_debug_in_production(monkeypatch):
    monkeypatch.setenv('APP_ENV', 'production')
    record = _record({'phone': '0414'}, level=logging.DEBUG)
    MaskingFilter().filter(record)
    assert record.msg['phone'] == '[REDACTED]'


def test_json_formatter_output():
    record = _record('order %s stored', args=('K4821',))
    RequestIdFilter().filter(record)
    out = json.loads(JsonFormatter().format(record))
    assert out['message'] == 'order K4821 stored'
    assert out['level'] == 'INFO'
    assert out['request_id'] == 'n/a'
    assert out['trace_id'] == 'n/a'


def test_log_endpoint(client):
    resp = client.get('/__log', headers={'X-Request-ID': 'rid-xyz'})
    assert resp.status_code == 200
    assert resp.headers['X-Request-ID'] == 'rid-xyz'
