"""Tests for the per-request workflow (validate, classify, map, forward)."""

import json
import logging
from datetime import date, datetime, timezone

import httpx
import pytest

from conftest import RecordingTransport, order_body
from order_relay.clients import AccountingClient
from order_relay.workflow import handle_order, health_status

TODAY = date(2026, 3, 7)


class ExplodingClient:
    """Stands in for AccountingClient and fails with an unexpected error."""
    endpoint_url = "http://accounting.test/transactions"

    def __init__(self):
        self.calls = 0

    async def send_transaction(self, record):
        self.calls += 1
        raise RuntimeError("socket exploded")


async def _handle(body, settings, transport):
    raw = body if isinstance(body, bytes) else json.dumps(body).encode()
    client = AccountingClient(settings, transport=transport)
    try:
        return await handle_order(raw, client, settings, today=TODAY)
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_success_forwards_record(settings, transport):
    response = await _handle(order_body(orderid="ORD-5"), settings, transport)

    assert response.status_code == 200
    assert response.content == {
        "status": "success",
        "message": "Order received and saved successfully",
        "orderId": "ORD-5",
        "apiResponse": {"transactionId": "tx_1", "status": "recorded"},
    }
    assert len(transport.requests) == 1
    forwarded = json.loads(transport.requests[0].content)
    assert forwarded["id"] == "ORD-5"
    assert forwarded["items"] == "A – 2x3=6;B (Color: Red) – 1x5=5;"
    assert forwarded["date"] == "07.03.2026"


@pytest.mark.asyncio
@pytest.mark.parametrize("extra", [
    {},
    {"payment": {"orderid": "ORD-1", "amount": 3}},
    {"ma_email": "buyer@example.com", "formname": "Cart"},
])
async def test_probe_is_acknowledged_and_not_forwarded(settings, transport, extra):
    body = dict(extra, test="test")

    response = await _handle(body, settings, transport)

    assert response.status_code == 200
    assert response.content == {"status": "test", "message": "Test data received successfully"}
    assert transport.requests == []


@pytest.mark.asyncio
async def test_invalid_probe_is_still_a_validation_error(settings, transport):
    response = await _handle({"test": "test", "ma_email": "nope"}, settings, transport)

    assert response.status_code == 400
    assert transport.requests == []


@pytest.mark.asyncio
async def test_schema_violation_lists_details(settings, transport):
    body = order_body()
    body["payment"]["products"][0]["quantity"] = -2

    response = await _handle(body, settings, transport)

    assert response.status_code == 400
    assert response.content["error"] == "Invalid request data"
    assert response.content["details"]
    assert response.content["details"][0].startswith("payment.products[0].quantity:")
    assert transport.requests == []


@pytest.mark.asyncio
async def test_malformed_json_is_a_validation_error(settings, transport):
    response = await _handle(b"{not json", settings, transport)

    assert response.status_code == 400
    assert response.content["error"] == "Invalid request data"
    assert response.content["details"]


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {},
    {"ma_email": "buyer@example.com"},
    {"payment": {"amount": 10}},
    order_body(orderid=""),
    order_body(orderid=None),
])
async def test_missing_order_id_is_rejected_without_forwarding(settings, transport, body):
    response = await _handle(body, settings, transport)

    assert response.status_code == 400
    assert response.content == {"error": "Invalid order data", "message": "Missing order ID"}
    assert transport.requests == []


@pytest.mark.asyncio
async def test_delivery_failure_hides_details_in_production(settings):
    transport = RecordingTransport(lambda request: httpx.Response(502, json={"errorCode": "ledger_unavailable"}))

    response = await _handle(order_body(), settings, transport)

    assert response.status_code == 500
    assert response.content == {
        "status": "error",
        "error": "Internal server error",
        "message": "Error processing order",
    }


@pytest.mark.asyncio
async def test_delivery_failure_exposes_details_in_development(dev_settings):
    transport = RecordingTransport(lambda request: httpx.Response(502, json={"errorCode": "ledger_unavailable"}))

    response = await _handle(order_body(), dev_settings, transport)

    assert response.status_code == 500
    assert response.content["details"] == {"errorCode": "ledger_unavailable"}


@pytest.mark.asyncio
async def test_delivery_failure_is_logged_with_order_id(settings, caplog):
    transport = RecordingTransport(lambda request: httpx.Response(503))

    with caplog.at_level(logging.ERROR, logger="order_relay"):
        await _handle(order_body(orderid="ORD-LOG"), settings, transport)

    messages = [r.getMessage() for r in caplog.records if r.name == "order_relay.workflow"]
    assert any("[Order: ORD-LOG]" in m and "accounting.test" in m for m in messages)


@pytest.mark.asyncio
async def test_unexpected_error_becomes_generic_500(settings):
    client = ExplodingClient()

    response = await handle_order(json.dumps(order_body()).encode(), client, settings, today=TODAY)

    assert client.calls == 1
    assert response.status_code == 500
    assert "details" not in response.content
    assert "socket exploded" not in json.dumps(response.content)


@pytest.mark.asyncio
async def test_unexpected_error_details_in_development(dev_settings):
    response = await handle_order(json.dumps(order_body()).encode(), ExplodingClient(), dev_settings, today=TODAY)

    assert response.status_code == 500
    assert response.content["details"] == "socket exploded"


@pytest.mark.asyncio
async def test_identical_payloads_are_forwarded_twice(settings, transport):
    body = order_body(orderid="ORD-DUP")

    first = await _handle(body, settings, transport)
    second = await _handle(body, settings, transport)

    assert first.status_code == second.status_code == 200
    assert len(transport.requests) == 2
    assert [json.loads(r.content)["id"] for r in transport.requests] == ["ORD-DUP", "ORD-DUP"]


@pytest.mark.asyncio
async def test_raw_payload_is_not_logged(settings, transport, caplog):
    with caplog.at_level(logging.DEBUG, logger="order_relay"):
        await _handle(order_body(), settings, transport)

    text = "\n".join(r.getMessage() for r in caplog.records)
    assert "buyer@example.com" not in text
    assert "Color" not in text
    assert "ORD-1" in text


def test_health_status_timestamp():
    body = health_status(datetime(2026, 3, 7, 12, 30, 5, 123456, tzinfo=timezone.utc))

    assert body == {"status": "ok", "timestamp": "2026-03-07T12:30:05.123Z"}


def test_health_status_defaults_to_now():
    body = health_status()
    parsed = datetime.fromisoformat(body["timestamp"].replace("Z", "+00:00"))

    assert body["status"] == "ok"
    assert abs((datetime.now(timezone.utc) - parsed).total_seconds()) < 5


@pytest.mark.asyncio
async def test_non_finite_amount_is_a_client_error(settings, transport):
    raw = json.dumps(order_body()).replace('"amount": 11', '"amount": 1e400', 1).encode()

    response = await _handle(raw, settings, transport)

    assert response.status_code == 400
    assert response.content["details"][0].startswith("payment.amount:")
    assert transport.requests == []


@pytest.mark.asyncio
async def test_email_is_forwarded_unchanged(settings, transport):
    await _handle(order_body(ma_email="Buyer@EXAMPLE.Com"), settings, transport)

    assert json.loads(transport.requests[0].content)["email"] == "Buyer@EXAMPLE.Com"


@pytest.mark.asyncio
async def test_absent_fields_are_left_out_of_the_forwarded_record(settings, transport):
    body = order_body()
    del body["ma_email"]
    del body["payment"]["amount"]

    await _handle(body, settings, transport)

    forwarded = json.loads(transport.requests[0].content)
    assert "email" not in forwarded
    assert "total" not in forwarded
    assert forwarded["id"] == "ORD-1"
