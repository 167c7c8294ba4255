"""
validation.py — Validation of incoming webhook bodies.

The raw body is parsed and validated in a single step so that malformed JSON,
non-object bodies and schema violations are all reported the same way: as a
list of human-readable messages, one per violated constraint.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from pydantic import ValidationError

from .models import OrderPayload


@dataclass
class ValidationResult:
    """
    Outcome of validating a webhook body.

    Exactly one of `payload` and `errors` is meaningful: a valid body yields the
    normalized payload and an empty error list.
    """
    payload: Optional[OrderPayload] = None
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.payload is not None and not self.errors


def _format_location(loc) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def format_errors(exc: ValidationError) -> List[str]:
    """
    Turns a Pydantic ValidationError into messages like
    `payment.products[0].quantity: Input should be greater than or equal to 1`.
    """
    messages = []
    for error in exc.errors(include_url=False):
        location = _format_location(error.get("loc", ()))
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages


def validate_payload(raw: Union[bytes, str]) -> ValidationResult:
    """
    Parses and validates a raw webhook body.

    Args:
        raw (bytes | str): The request body as received.

    Returns:
        ValidationResult: The normalized payload, or every violation found.
    """
    try:
        payload = OrderPayload.model_validate_json(raw)
    except ValidationError as e:
        return ValidationResult(errors=format_errors(e))
    return ValidationResult(payload=payload)
