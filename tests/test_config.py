"""Tests for configuration selection and production validation."""
import importlib

import pytest


def load_config(monkeypatch, env):
    for key, value in env.items():
        if value is None:
            monkeypatch.delenv(key, raising=False)
        else:
            monkeypatch.setenv(key, value)
    import app.config as config
    return importlib.reload(config)


@pytest.fixture(autouse=True)
def _restore_config_module():
    yield
    import app.config as config
    importlib.reload(config)


def test_testing_config_uses_memory_db(monkeypatch):
    config = load_config(monkeypatch, {'APP_ENV': 'testing', 'TEST_DATABASE_URL': None})
    cls = config.get_config_class()
    assert cls.TESTING is True
    assert cls.SQLALCHEMY_DATABASE_URI == 'sqlite:///:memory:'
    assert cls.PAYMENT_GATEWAY == 'fake'


def test_development_defaults(monkeypatch):
    config = load_config(monkeypatch, {
        'APP_ENV': 'development',
        'DATABASE_URL': None,
        'PAYMENT_GATEWAY': None,
    })
    cls = config.get_config_class()
    assert cls.DEBUG is True
    assert cls.SQLALCHEMY_DATABASE_URI == 'sqlite:///dev.db'
    assert cls.PAYMENT_GATEWAY == 'fake'


def test_tunables_read_from_environment(monkeypatch):
    config = load_config(monkeypatch, {
        'APP_ENV': 'development',
        'CART_CONFLICT_RETRIES': '5',
        'PENDING_CREATION_STALE_MINUTES': '30',
        'PAYMENT_CURRENCY': 'USD',
    })
    cls = config.get_config_class()
    assert cls.CART_CONFLICT_RETRIES == 5
    assert cls.PENDING_CREATION_STALE_MINUTES == 30
    assert cls.PAYMENT_CURRENCY == 'USD'


def test_production_requires_gateway_credentials(monkeypatch):
    config = load_config(monkeypatch, {
        'APP_ENV': 'production',
        'SECRET_KEY': 's',
        'DATABASE_URL': 'postgresql://db/cart',
        'JWT_SECRET': 'j',
        'PAYMENT_GATEWAY': 'razorpay',
        'RAZORPAY_KEY_ID': None,
        'RAZORPAY_KEY_SECRET': None,
    })
    with pytest.raises(RuntimeError) as exc:
        config.get_config_class()
    assert 'RAZORPAY_KEY_ID' in str(exc.value)
    assert 'RAZORPAY_KEY_SECRET' in str(exc.value)


def test_production_config_accepted_when_complete(monkeypatch):
    config = load_config(monkeypatch, {
        'APP_ENV': 'production',
        'SECRET_KEY': 's',
        'DATABASE_URL': 'postgresql://db/cart',
        'JWT_SECRET': 'j',
        'PAYMENT_GATEWAY': 'razorpay',
        'RAZORPAY_KEY_ID': 'rzp_test',
        'RAZORPAY_KEY_SECRET': 'shh',
    })
    assert config.get_config_class() is config.ProductionConfig
