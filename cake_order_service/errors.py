"""
errors.py — Error Taxonomy for the Cake Order Service

Every failure that can reach a caller is an `OrderServiceError` carrying a short,
machine-readable `code` and the HTTP status it maps to. The API layer turns these
into `{"success": false, "error": code}` bodies; nothing else about the failure
(stack traces, collaborator responses, secrets) is returned to the client.

`NotificationError` is the exception to the rule: it is raised by the mail and
ledger steps, caught at the point of call and only ever logged.
"""


class OrderServiceError(Exception):
    """Base class for all errors surfaced to API callers."""
    code = "internal_error"
    status_code = 500

    def __init__(self, message: str = None):
        super().__init__(message or self.code)
        self.message = message or self.code


class PricingError(OrderServiceError):
    """Base price or weight is absent, zero, negative or non-numeric."""
    code = "invalid_price_data"
    status_code = 400


class InvalidPayloadError(OrderServiceError):
    """The order request is missing customer identity or pricing inputs."""
    code = "invalid_payload"
    status_code = 400


class CapacityExceededError(OrderServiceError):
    """The requested delivery date has no booking slots left."""
    code = "date_fully_booked"
    status_code = 409


class GatewayUnavailableError(OrderServiceError):
    """The payment gateway could not be reached or rejected the order."""
    code = "gateway_unavailable"
    status_code = 502


class MissingFieldsError(OrderServiceError):
    """A payment callback lacks one of the ids, the signature or the order data."""
    code = "missing_fields"
    status_code = 400


class InvalidSignatureError(OrderServiceError):
    """The payment callback signature does not match the gateway secret."""
    code = "invalid_signature"
    status_code = 400


class NotificationError(OrderServiceError):
    """An email or ledger side effect failed. Logged, never returned."""
    code = "notification_failed"
    status_code = 500
