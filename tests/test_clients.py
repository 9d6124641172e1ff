import base64
import json
import smtplib
from unittest.mock import MagicMock

import httpx
import pytest

from cake_order_service.clients import MailClient, PaymentGatewayClient, SheetsLedgerClient
from cake_order_service.errors import NotificationError


# --- PaymentGatewayClient ---

def make_gateway(handler) -> PaymentGatewayClient:
    return PaymentGatewayClient(
        base_url="https://gateway.test",
        key_id="rzp_test_key",
        key_secret="test_secret",
        transport=httpx.MockTransport(handler),
    )


def test_gateway_order_request_shape() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_abc", "amount": 109900, "currency": "INR"})

    client = make_gateway(handler)
    order = client.create_order(109900, "INR", "rcpt_1", notes={"delivery_date": "2026-10-24"})
    client.close()

    assert order["id"] == "order_abc"
    assert seen["path"] == "/v1/orders"
    expected_auth = base64.b64encode(b"rzp_test_key:test_secret").decode()
    assert seen["auth"] == f"Basic {expected_auth}"
    assert seen["body"] == {
        "amount": 109900,
        "currency": "INR",
        "receipt": "rcpt_1",
        "payment_capture": 1,
        "notes": {"delivery_date": "2026-10-24"},
    }


def test_gateway_error_status_is_raised() -> None:
    client = make_gateway(lambda request: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(httpx.HTTPStatusError):
        client.create_order(109900, "INR", "rcpt_1")


def test_gateway_non_json_body_is_raised() -> None:
    client = make_gateway(lambda request: httpx.Response(200, text="<html>bad gateway</html>"))

    with pytest.raises(ValueError):
        client.create_order(109900, "INR", "rcpt_1")


def test_gateway_connection_error_is_raised() -> None:
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_gateway(handler)

    with pytest.raises(httpx.ConnectError):
        client.create_order(109900, "INR", "rcpt_1")


# --- MailClient ---

class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None, fail_login=False):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.fail_login = fail_login
        self.logged_in = None
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def login(self, user, password):
        if self.fail_login:
            raise smtplib.SMTPAuthenticationError(535, b"Authentication failed")
        self.logged_in = (user, password)

    def send_message(self, message):
        self.messages.append(message)


MESSAGE = {
    "from": "orders@kappucake.test",
    "to": "asha@example.com",
    "subject": "KappuCake — Order received (pay_1)",
    "text": "Thank you",
    "html": "<p>Thank you</p>",
}


def test_mail_is_sent_with_text_and_html() -> None:
    FakeSMTP.instances.clear()
    client = MailClient("smtp.test", 465, user="orders@kappucake.test", password="pw", smtp_factory=FakeSMTP)

    client.send(MESSAGE)

    smtp = FakeSMTP.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.test", 465)
    assert smtp.logged_in == ("orders@kappucake.test", "pw")
    sent = smtp.messages[0]
    assert sent["To"] == "asha@example.com"
    assert sent["Subject"] == MESSAGE["subject"]
    assert sent.get_body(preferencelist=("html",)).get_content().strip() == "<p>Thank you</p>"


def test_unconfigured_mail_raises_notification_error() -> None:
    client = MailClient("smtp.test", 465, smtp_factory=FakeSMTP)

    with pytest.raises(NotificationError):
        client.send(MESSAGE)


def test_message_without_recipient_raises_notification_error() -> None:
    client = MailClient("smtp.test", 465, user="u", password="p", smtp_factory=FakeSMTP)

    with pytest.raises(NotificationError):
        client.send({**MESSAGE, "to": None})


def test_smtp_failure_is_raised() -> None:
    def factory(host, port, timeout=None):
        return FakeSMTP(host, port, timeout=timeout, fail_login=True)

    client = MailClient("smtp.test", 465, user="u", password="p", smtp_factory=factory)

    with pytest.raises(smtplib.SMTPAuthenticationError):
        client.send(MESSAGE)


# --- SheetsLedgerClient ---

def test_ledger_appends_one_row() -> None:
    service = MagicMock()
    client = SheetsLedgerClient(sheet_id="sheet-123", range_="Orders!A1", service=service)

    client.append_row(["2026-10-18T09:30:00+00:00", "Asha Rao"])

    service.spreadsheets.return_value.values.return_value.append.assert_called_once_with(
        spreadsheetId="sheet-123",
        range="Orders!A1",
        valueInputOption="USER_ENTERED",
        insertDataOption="INSERT_ROWS",
        body={"values": [["2026-10-18T09:30:00+00:00", "Asha Rao"]]},
    )


def test_unconfigured_ledger_raises_notification_error() -> None:
    client = SheetsLedgerClient(sheet_id=None)

    with pytest.raises(NotificationError):
        client.append_row(["row"])
