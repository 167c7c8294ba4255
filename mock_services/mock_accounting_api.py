"""
mock_accounting_api.py — Mock Implementation of the Accounting API (REST)

This module provides a simulated downstream accounting API for running the order
relay locally. It exposes a simple FastAPI application that accepts Transaction
Records the way the real endpoint does.

Simulation Scenarios:
    • Successful booking (HTTP 201)
    • Rejected transaction (HTTP 422), id starts with "reject_"
    • Ledger outage (HTTP 502), id starts with "fail_"

Endpoints:
    POST /transactions — Handles incoming Transaction Records.

Port:
    Default: 8001 (HTTP)

Point the relay at it with API_URL=http://localhost:8001/transactions.
"""

import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

app = FastAPI(title="Mock Accounting API")
log = logging.getLogger(__name__)


class TransactionIn(BaseModel):
    """
    Represents a Transaction Record as received from the order relay.

    Attributes:
        total (float): Order total.
        date (str): Booking date, DD.MM.YYYY.
        email (str): Buyer email.
        id (str): Order identifier.
        items (str): Product summary.
    """
    total: Optional[float] = None
    date: str
    email: Optional[str] = None
    id: str
    items: str = ""


@app.post("/transactions", status_code=201)
def record_transaction(transaction: TransactionIn):
    """
    Books a transaction.

    This endpoint simulates different outcomes based on the order `id`:
        - Starts with "fail_"   → Ledger unavailable (HTTP 502)
        - Starts with "reject_" → Transaction rejected (HTTP 422)
        - Any other id          → Transaction recorded

    Returns:
        dict: transactionId, status ("recorded") and receivedAt (UTC timestamp).

    Raises:
        HTTPException(502): If the simulated ledger is unavailable.
        HTTPException(422): If the transaction is rejected.
    """
    log.info(f"[ACC] Transaction received for order {transaction.id}")

    if transaction.id.startswith("fail_"):
        log.warning(f"[ACC] Ledger unavailable for {transaction.id}.")
        raise HTTPException(
            status_code=502,
            detail={"errorCode": "ledger_unavailable", "message": "Ledger is not reachable."}
        )

    if transaction.id.startswith("reject_"):
        log.warning(f"[ACC] Transaction {transaction.id} rejected.")
        raise HTTPException(
            status_code=422,
            detail={"errorCode": "transaction_rejected", "message": "Transaction rejected."}
        )

    log.info(f"[ACC] Transaction {transaction.id} recorded.")
    return {
        "transactionId": f"tx_{uuid.uuid4()}",
        "status": "recorded",
        "receivedAt": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8001)
