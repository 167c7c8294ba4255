"""
errors.py — Exception types raised inside the order relay.

Client input problems (HTTP 400), downstream delivery problems (HTTP 500) and
startup configuration problems are kept apart so the handler can map each one
to the right response.
"""


class OrderRelayError(Exception):
    """Base class for all order relay errors."""


class ConfigurationError(OrderRelayError):
    """Raised at startup when the settings cannot be used."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("Invalid configuration: " + "; ".join(self.errors))


class MissingOrderIdError(OrderRelayError):
    """Raised when a mapped Transaction Record has no order id."""


class DeliveryError(OrderRelayError):
    """
    Raised when the Transaction Record could not be delivered downstream.

    Attributes:
        error: Remote error body (dict or text) when the endpoint returned one,
            otherwise a local description of the failure.
        order_id: Order id of the record that was being delivered.
    """

    def __init__(self, error, order_id=None):
        self.error = error
        self.order_id = order_id
        super().__init__(error if isinstance(error, str) else "Downstream API returned an error")
