import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from models import db


@pytest.fixture(scope='session')
def app_instance():
    os.environ.setdefault('APP_ENV', 'testing')
    os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
    from app import create_app
    from app.config import TestingConfig
    # Built once: prometheus collectors live in the process-wide registry
    app = create_app(TestingConfig)
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI='sqlite:///:memory:',
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        WEBHOOK_URL='',
        DISTANCE_MATRIX_API_KEY=None,
        CHECKOUT_LIMIT_PER_IP='1000 per hour',
    )
    return app


@pytest.fixture(scope='function')
def app(app_instance):
    import extensions
    snapshot = dict(app_instance.config)
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        extensions.limiter.reset()
        yield app_instance
        db.session.remove()
        db.drop_all()
    app_instance.config.clear()
    app_instance.config.update(snapshot)


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture()
def seed_product(client):
    def _seed(**payload):
        resp = client.post('/__seed/product', json=payload)
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()['data']
    return _seed
