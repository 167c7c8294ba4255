"""
workflow.py — Core Request Logic of the Order Relay

This module contains the per-request workflow for an incoming order webhook.
Each request is processed independently; nothing is shared between requests
except the read-only settings and the HTTP client.

Workflow Overview:
1. Validate the raw body against the permissive order schema
2. Decide once whether the request is a probe or a real order
3. Map the payload onto a Transaction Record
4. Reject records without an order id
5. Forward the record to the accounting API (one attempt)
6. Convert every failure into a generic error response
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from .clients import AccountingClient
from .config import Settings
from .errors import DeliveryError, MissingOrderIdError
from .mapper import create_transaction_record
from .models import OrderPayload, ProbeRequest, classify
from .validation import validate_payload

log = logging.getLogger(__name__)


@dataclass
class HandlerResponse:
    """HTTP status code and JSON body produced by the workflow."""
    status_code: int
    content: Dict[str, Any]


def health_status(now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Builds the health check body.

    Returns:
        dict: {"status": "ok", "timestamp": "<ISO 8601 UTC with milliseconds>"}
    """
    now = now or datetime.now(timezone.utc)
    timestamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return {"status": "ok", "timestamp": timestamp}


def _describe_body(raw: bytes) -> str:
    """Summarizes a body for logging without its contents (no email, no products)."""
    try:
        data = json.loads(raw)
    except ValueError:
        return f"{len(raw)} bytes, not valid JSON"
    if not isinstance(data, dict):
        return f"{len(raw)} bytes, JSON {type(data).__name__}"
    payment = data.get("payment")
    order_id = payment.get("orderid") if isinstance(payment, dict) else None
    return f"{len(raw)} bytes, keys={sorted(data)}, orderid={order_id!r}"


def _error_response(exc: Exception, settings: Settings) -> HandlerResponse:
    content = {
        "status": "error",
        "error": "Internal server error",
        "message": "Error processing order",
    }
    if settings.is_development:
        content["details"] = exc.error if isinstance(exc, DeliveryError) else str(exc)
    return HandlerResponse(500, content)


async def _process_order(payload: OrderPayload, client: AccountingClient, today: Optional[date]) -> HandlerResponse:
    record = create_transaction_record(payload, today=today)
    if not record.id:
        raise MissingOrderIdError("Missing order ID")

    log_prefix = f"[Order: {record.id}]"
    log.info(f"{log_prefix} Processing order.")

    result = await client.send_transaction(record)
    if not result.success:
        raise DeliveryError(result.error, order_id=record.id)

    log.info(f"{log_prefix} Order processed successfully.")
    return HandlerResponse(200, {
        "status": "success",
        "message": "Order received and saved successfully",
        "orderId": record.id,
        "apiResponse": result.data,
    })


async def handle_order(
        raw: bytes,
        client: AccountingClient,
        settings: Settings,
        today: Optional[date] = None,
) -> HandlerResponse:
    """
    Executes the complete workflow for a single POSTed webhook body.

    Args:
        raw (bytes): The request body as received.
        client (AccountingClient): Client for the downstream accounting API.
        settings (Settings): Process configuration (error-detail exposure).
        today (date, optional): Mapping date override.

    Returns:
        HandlerResponse: One of
            - 200 test acknowledgment (probe request, nothing forwarded)
            - 400 invalid request data (schema violations, itemized)
            - 400 invalid order data (no order id, nothing forwarded)
            - 200 success with the downstream response
            - 500 generic error (delivery failure or unexpected exception)
    """
    try:
        log.info(f"Webhook received: {_describe_body(raw)}")
        validation = validate_payload(raw)
        if not validation.is_valid:
            log.warning(f"Validation failed: {validation.errors}")
            return HandlerResponse(400, {
                "error": "Invalid request data",
                "details": validation.errors,
            })

        request = classify(validation.payload)
        if isinstance(request, ProbeRequest):
            log.info("Test request received.")
            return HandlerResponse(200, {
                "status": "test",
                "message": "Test data received successfully",
            })

        return await _process_order(request.payload, client, today)

    except MissingOrderIdError as e:
        log.error(f"Invalid order data: {e}")
        return HandlerResponse(400, {
            "error": "Invalid order data",
            "message": str(e),
        })
    except DeliveryError as e:
        log.error(
            f"[Order: {e.order_id}] Order processing failed: delivery to "
            f"{client.endpoint_url or '<unset API_URL>'} failed: {e.error}"
        )
        return _error_response(e, settings)
    except Exception as e:
        log.critical(f"Order processing failed with an unexpected error: {e}", exc_info=True)
        return _error_response(e, settings)
