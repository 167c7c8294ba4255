"""
models.py — Data Models for the Order Relay

This module defines the incoming order payload sent by the form/payment provider and
the flat Transaction Record forwarded to the accounting API. It uses Pydantic models
to validate incoming data.

The payload schema is permissive: every field is optional and unknown fields are
ignored. It is also strict: a string is never coerced into a number (or vice versa),
so a structurally wrong value is reported instead of silently converted.

Models:
    - ProductOption: A named product customization (e.g. Color: Red).
    - Product: A single product line of the order.
    - Payment: Payment block holding the amount, order id and products.
    - OrderPayload: The complete webhook body.
    - TransactionRecord: The normalized record sent downstream.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

PROBE_MARKER = "test"


class _PayloadModel(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", allow_inf_nan=False)


class ProductOption(_PayloadModel):
    """
    Represents a named customization of a product.

    Attributes:
        option (str): Name of the option, e.g. "Color".
        variant (str): Selected value, e.g. "Red".
    """
    option: Optional[str] = None
    variant: Optional[str] = None


class Product(_PayloadModel):
    """
    Represents a single product line in an order.

    Attributes:
        name (str): Product name.
        quantity (float): Ordered quantity. Must be at least 1.
        price (float): Unit price. Must not be negative.
        amount (float): Line total as reported by the provider. Must not be negative.
        options (List[ProductOption]): Selected customizations, in order.
    """
    name: Optional[str] = None
    quantity: Optional[float] = Field(None, ge=1)
    price: Optional[float] = Field(None, ge=0)
    amount: Optional[float] = Field(None, ge=0)
    options: Optional[List[ProductOption]] = None


class Payment(_PayloadModel):
    """
    Represents the payment block of an order notification.

    Attributes:
        amount (float): Order total.
        orderid (str): Provider-side order identifier.
        products (List[Product]): Product lines. Must not be empty when present.
    """
    amount: Optional[float] = None
    orderid: Optional[str] = None
    products: Optional[List[Product]] = Field(None, min_length=1)


class OrderPayload(_PayloadModel):
    """
    Represents the raw webhook body after validation.

    Attributes:
        test (str): Probe marker. The literal "test" marks a connectivity check.
        payment (Payment): Payment details.
        ma_email (str): Buyer email address.
    """
    test: Optional[str] = None
    payment: Optional[Payment] = None
    ma_email: Optional[str] = None

    @field_validator("ma_email")
    @classmethod
    def _check_email(cls, value: Optional[str]):
        # Checked only; the address is forwarded exactly as received.
        if value is not None:
            try:
                validate_email(value, check_deliverability=False)
            except EmailNotValidError as e:
                raise ValueError(f"value is not a valid email address: {e}") from e
        return value


class TransactionRecord(BaseModel):
    """
    Represents the flat transaction forwarded to the accounting API.

    Attributes:
        total (float): Order total taken from payment.amount.
        date (str): Mapping date, formatted DD.MM.YYYY.
        email (str): Buyer email taken from ma_email.
        id (str): Order id taken from payment.orderid.
        items (str): Concatenated product lines.
    """
    total: Optional[float] = None
    date: str
    email: Optional[str] = None
    id: Optional[str] = None
    items: str = ""

    @field_serializer("total")
    def _serialize_total(self, total: Optional[float]):
        if isinstance(total, float) and total.is_integer():
            return int(total)
        return total


@dataclass(frozen=True)
class ProbeRequest:
    """A connectivity check from the provider. Never mapped or forwarded."""
    payload: OrderPayload


@dataclass(frozen=True)
class OrderRequest:
    """A real order notification that is mapped and forwarded."""
    payload: OrderPayload


def classify(payload: OrderPayload) -> Union[ProbeRequest, OrderRequest]:
    """
    Decides whether a validated payload is a probe or a real order.

    Args:
        payload (OrderPayload): Validated payload.

    Returns:
        ProbeRequest if `test` equals "test", otherwise OrderRequest.
    """
    if payload.test == PROBE_MARKER:
        return ProbeRequest(payload)
    return OrderRequest(payload)
