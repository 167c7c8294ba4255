"""
This module provides the communication client for the downstream accounting API (REST).
The client encapsulates the HTTP protocol logic, error handling and connection management.

Exactly one delivery attempt is made per Transaction Record. There is no retry,
no backoff and no idempotency key: a repeated webhook is forwarded again.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .config import Settings
from .models import TransactionRecord

log = logging.getLogger(__name__)


@dataclass
class ForwardResult:
    """
    Result of one delivery attempt.

    Attributes:
        success (bool): True when the endpoint answered with a 2xx status.
        data: Decoded response body on success.
        error: Remote error body, or a local description of the failure.
    """
    success: bool
    data: Any = None
    error: Any = None


def _decode_body(response: httpx.Response):
    """Returns the response body as JSON when possible, otherwise as text (None if empty)."""
    try:
        return response.json()
    except ValueError:
        return response.text or None


# --- Accounting Client (REST) ---
class AccountingClient:
    """
    Client for the downstream accounting API.
    Posts Transaction Records and turns every failure into a ForwardResult.
    """
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initializes the HTTP client with the configured timeout and TLS policy.

        Args:
            settings (Settings): Process configuration.
            transport (httpx.AsyncBaseTransport, optional): Replacement transport, used by tests.
        """
        self.endpoint_url = settings.api_url
        self.timeout_ms = settings.api_timeout_ms
        self.timeout_seconds = settings.api_timeout_seconds

        if not settings.verify_tls:
            log.warning(
                f"INSECURE: TLS certificate verification is DISABLED for {self.endpoint_url or '<unset API_URL>'} "
                f"(ALLOW_INSECURE_TLS). Never run this configuration outside development."
            )

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.api_timeout_seconds),
            verify=settings.verify_tls,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self):
        """Closes the HTTP client session."""
        await self.client.aclose()

    async def send_transaction(self, record: TransactionRecord) -> ForwardResult:
        """
        Posts a Transaction Record to the accounting API.

        Args:
            record (TransactionRecord): The record to deliver.

        Returns:
            ForwardResult: success with the response body, or failure carrying the
            remote error body (if any) or a local error description.
        """
        order_id = record.id
        if not self.endpoint_url:
            log.error(f"[Order: {order_id}] API request skipped: API_URL is not configured.")
            return ForwardResult(success=False, error="Downstream endpoint URL is not configured")

        try:
            # httpx timeouts are per phase; wait_for bounds the whole exchange.
            response = await asyncio.wait_for(
                self.client.post(self.endpoint_url, json=record.model_dump(exclude_none=True)),
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            log.error(
                f"[Order: {order_id}] API request to {self.endpoint_url} timed out "
                f"after {self.timeout_ms} ms ({e.__class__.__name__})."
            )
            return ForwardResult(success=False, error=f"Request timed out after {self.timeout_ms} ms")
        except httpx.HTTPStatusError as e:
            remote_error = _decode_body(e.response)
            log.error(
                f"[Order: {order_id}] API request to {self.endpoint_url} failed "
                f"with HTTP {e.response.status_code}: {remote_error}"
            )
            return ForwardResult(
                success=False,
                error=remote_error or f"Downstream API returned HTTP {e.response.status_code}",
            )
        except httpx.HTTPError as e:
            log.error(f"[Order: {order_id}] API request to {self.endpoint_url} failed: {e!r}")
            return ForwardResult(success=False, error=str(e) or e.__class__.__name__)

        log.info(f"[Order: {order_id}] API request to {self.endpoint_url} successful (HTTP {response.status_code}).")
        return ForwardResult(success=True, data=_decode_body(response))
