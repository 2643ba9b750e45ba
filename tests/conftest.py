import os
import sys
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault('APP_ENV', 'testing')
from models import db
from models.product import Product


@pytest.fixture(scope='session')
def app_instance():
    os.environ['APP_ENV'] = 'testing'
    from app import create_app
    app = create_app()
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI='sqlite:///:memory:',
        SQLALCHEMY_TRACK_MODIFICATIONS=False
    )
    return app


@pytest.fixture(scope='function')
def app(app_instance):
    gateway = app_instance.extensions['payment_gateway']
    gateway.fail = False
    gateway.requests.clear()
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        yield app_instance
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture()
def gateway(app):
    return app.extensions['payment_gateway']


@pytest.fixture()
def login(client):
    """Issue a token through the stub gate; returns (user_id, auth headers)."""

    def _login(role='customer', **fields):
        resp = client.post('/__auth/login_stub', json={'role': role, **fields})
        data = resp.get_json()['data']
        return data['user_id'], {'Authorization': f"Bearer {data['access']}"}

    return _login


@pytest.fixture()
def make_product(app):
    def _make(name='Widget', price='10.00', stock=100, seller_id=None, category=None):
        product = Product(
            name=name,
            price=Decimal(str(price)),
            stock=stock,
            seller_id=seller_id,
            category=category,
        )
        db.session.add(product)
        db.session.commit()
        return product.id

    return _make
