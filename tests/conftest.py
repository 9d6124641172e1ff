import os

# Must be set before cake_order_service.main is imported.
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "test_secret")
os.environ["LOG_FILE"] = ""

import pytest

from cake_order_service.config import Settings
from cake_order_service.errors import NotificationError
from cake_order_service.models import OrderIntent, PaymentConfirmation
from cake_order_service.signature import generate_signature

KEY_SECRET = "test_secret"
GATEWAY_ORDER_ID = "order_Q1w2e3r4t5y6u7"
PAYMENT_ID = "pay_A1s2d3f4g5h6j7"


class FakeGateway:
    """Gateway stand-in that records every order request."""

    def __init__(self, error: Exception = None, response: dict = None):
        self.calls = []
        self.error = error
        self.response = response

    def create_order(self, amount_minor_units, currency, receipt_id, notes=None):
        self.calls.append({
            "amount": amount_minor_units,
            "currency": currency,
            "receipt": receipt_id,
            "notes": notes,
        })
        if self.error:
            raise self.error
        if self.response is not None:
            return self.response
        return {"id": GATEWAY_ORDER_ID, "amount": amount_minor_units, "currency": currency}


class FakeMail:
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def send(self, message):
        self.sent.append(message)
        if self.fail:
            raise NotificationError("SMTP relay refused connection")


class FakeLedger:
    def __init__(self, fail: bool = False):
        self.rows = []
        self.fail = fail

    def append_row(self, row_values):
        self.rows.append(row_values)
        if self.fail:
            raise RuntimeError("Sheets API quota exceeded")
        return {"updates": {"updatedRows": 1}}


def order_payload(**overrides) -> dict:
    payload = {
        "weight": 1,
        "flavour1": "Belgian Chocolate",
        "flavour1PricePerKg": 1000,
        "mix": False,
        "customer": {
            "name": "Asha Rao",
            "phone": "+91 98450 12345",
            "email": "asha@example.com",
            "address": "12 MG Road, Bengaluru",
        },
        "deliveryDate": "2026-10-24",
        "deliverySlot": "Evening",
        "message": "Happy Birthday Kiran",
    }
    payload.update(overrides)
    return payload


def confirmation_payload(order_id=GATEWAY_ORDER_ID, payment_id=PAYMENT_ID, signature=None, **order_overrides) -> dict:
    return {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": signature or generate_signature(order_id, payment_id, KEY_SECRET),
        "orderData": order_payload(**order_overrides),
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret=KEY_SECRET,
        from_email="orders@kappucake.test",
        admin_email="admin@kappucake.test",
        log_file="",
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def mail() -> FakeMail:
    return FakeMail()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def order() -> OrderIntent:
    return OrderIntent(**order_payload())


@pytest.fixture
def confirmation() -> PaymentConfirmation:
    return PaymentConfirmation(**confirmation_payload())
