"""Pytest configuration for the order relay tests."""

import os

# Keep the module-level app in order_relay.main from writing webhook.log or
# picking up deployment settings from the environment running the tests.
os.environ["LOG_FILE"] = ""
os.environ["APP_ENV"] = "production"
os.environ.pop("ALLOW_INSECURE_TLS", None)

import httpx
import pytest

from order_relay.config import Settings

API_URL = "http://accounting.test/transactions"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it handled."""

    def __init__(self, handler=None):
        self.requests = []

        def _record(request):
            self.requests.append(request)
            if handler is None:
                return httpx.Response(201, json={"transactionId": "tx_1", "status": "recorded"})
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def settings():
    return Settings(api_url=API_URL, log_file="")


@pytest.fixture
def dev_settings():
    return Settings(api_url=API_URL, log_file="", environment="development")


@pytest.fixture
def transport():
    return RecordingTransport()


def order_body(orderid="ORD-1", **overrides):
    """Builds a realistic webhook body as a dict."""
    body = {
        "ma_email": "buyer@example.com",
        "formid": "form-42",
        "payment": {
            "amount": 11,
            "orderid": orderid,
            "products": [
                {"name": "A", "quantity": 2, "price": 3, "amount": 6},
                {
                    "name": "B",
                    "quantity": 1,
                    "price": 5,
                    "amount": 5,
                    "options": [{"option": "Color", "variant": "Red"}],
                },
            ],
        },
    }
    body.update(overrides)
    return body
