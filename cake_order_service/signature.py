"""Payment callback signature check (HMAC-SHA256 over "<order id>|<payment id>")."""

import hashlib
import hmac


def generate_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Returns the hex HMAC-SHA256 digest the gateway sends for this order/payment pair."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, provided_signature: str, secret: str) -> bool:
    """
    Checks a gateway signature in constant time.

    Returns False for any missing or non-string input instead of raising, so callers
    can treat every failure the same way.
    """
    values = (order_id, payment_id, provided_signature, secret)
    if not all(isinstance(value, str) and value for value in values):
        return False

    expected = generate_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected.encode("ascii"), provided_signature.encode("utf-8"))
