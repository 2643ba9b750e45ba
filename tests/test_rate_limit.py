from app import create_app
from app.config import TestingConfig
from app.version import API_PREFIX
from extensions import limiter


class RateLimitedConfig(TestingConfig):
    RATELIMIT_ENABLED = True
    ORDER_LIMIT_PER_IP = "2 per minute"


def test_order_creation_rate_limit(monkeypatch):
    # the limiter is process-global; put its switch back for the other apps
    monkeypatch.setattr(limiter, "enabled", getattr(limiter, "enabled", False), raising=False)
    app = create_app(RateLimitedConfig)
    client = app.test_client()
    with app.app_context():
        login = client.post("/__auth/login_stub", json={"role": "customer"}).get_json()["data"]
    hdr = {"Authorization": f"Bearer {login['access']}"}
    codes = [
        client.post(f"{API_PREFIX}/orders", json={"payment_method": "cod"}, headers=hdr).status_code
        for _ in range(3)
    ]
    assert codes[:2] == [400, 400]
    assert codes[2] == 429
