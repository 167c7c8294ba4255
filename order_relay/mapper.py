"""
mapper.py — Maps a validated order payload onto a Transaction Record.

Product lines are rendered as plain text and concatenated without a separator:

    <name>[ (<option>: <variant>, ...)] – <quantity>x<price>=<amount>;

The line totals are passed through as reported; no arithmetic check is made.
"""

from datetime import date as date_type
from typing import Optional

from .models import OrderPayload, Product, ProductOption, TransactionRecord

DATE_FORMAT = "%d.%m.%Y"
LINE_SEPARATOR = " – "


def format_number(value) -> str:
    """Renders a number the way it appears in JSON: 3.0 becomes '3', 2.5 stays '2.5'."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_option(option: ProductOption) -> str:
    return f"{option.option or ''}: {option.variant or ''}"


def format_product_line(product: Product) -> str:
    """
    Renders one product as a line of the `items` summary.

    Args:
        product (Product): Validated product.

    Returns:
        str: e.g. "B (Color: Red) – 1x5=5;"
    """
    options_text = ""
    if product.options:
        options_text = f" ({', '.join(format_option(o) for o in product.options)})"
    quantity_price = (
        f"{LINE_SEPARATOR}{format_number(product.quantity)}"
        f"x{format_number(product.price)}={format_number(product.amount)};"
    )
    return f"{product.name or ''}{options_text}{quantity_price}"


def create_transaction_record(payload: OrderPayload, today: Optional[date_type] = None) -> TransactionRecord:
    """
    Builds the Transaction Record for a validated payload.

    Args:
        payload (OrderPayload): Validated order payload.
        today (date, optional): Mapping date. Defaults to the server's local date.

    Returns:
        TransactionRecord: The record to forward. `id` is None when the payload
        carries no order id; the caller decides what to do with such a record.
    """
    today = today or date_type.today()
    payment = payload.payment
    products = payment.products if payment and payment.products else []

    return TransactionRecord(
        total=payment.amount if payment else None,
        date=today.strftime(DATE_FORMAT),
        email=payload.ma_email,
        id=payment.orderid if payment else None,
        items="".join(format_product_line(p) for p in products),
    )
