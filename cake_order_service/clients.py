"""
This module provides communication clients for the external systems used by the order service:
- Payment Gateway (Razorpay Orders REST API)
- Mail relay (SMTP over implicit TLS)
- Spreadsheet ledger (Google Sheets API)
Each class encapsulates its protocol logic, error handling, and connection management.
Clients log failures and re-raise them; the workflow decides what a failure means.
"""

import smtplib
from email.message import EmailMessage

import httpx
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .errors import NotificationError
from .logging_config import get_logger

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

log = get_logger(__name__)


# --- Payment Gateway Client (REST) ---
class PaymentGatewayClient:
    """
    Client for the payment gateway's order API.
    Creates gateway orders that the storefront checkout then collects payment for.
    """
    def __init__(self, base_url: str, key_id: str, key_secret: str, timeout: float = 8.0,
                 transport: httpx.BaseTransport = None):
        """
        Initializes the HTTP client with basic-auth credentials and timeout configuration.

        Args:
            base_url (str): Gateway API root, e.g. "https://api.razorpay.com".
            key_id (str): Gateway key id.
            key_secret (str): Gateway key secret.
            timeout (float): Read timeout in seconds; connecting is capped at 5 seconds.
            transport (httpx.BaseTransport): Optional transport, used by tests.
        """
        timeout_config = httpx.Timeout(5.0, read=timeout)
        self.client = httpx.Client(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeout=timeout_config,
            transport=transport,
        )

    def close(self):
        """Closes the HTTP client session."""
        self.client.close()

    def create_order(self, amount_minor_units: int, currency: str, receipt_id: str,
                     notes: dict = None) -> dict:
        """
        Creates a new order with the payment gateway.

        Args:
            amount_minor_units (int): Amount to collect, in paise.
            currency (str): ISO currency code (e.g. 'INR').
            receipt_id (str): Merchant receipt reference.
            notes (dict): Optional key/value notes stored with the order.

        Returns:
            dict: Gateway order containing at least 'id', 'amount' and 'currency'.

        Raises:
            httpx.TimeoutException: If the gateway does not respond in time.
            httpx.HTTPStatusError: If the gateway returns an error status (4xx or 5xx).
            httpx.TransportError: If the gateway cannot be reached.
            ValueError: If the gateway answers with a body that is not JSON.
        """
        payload = {
            "amount": amount_minor_units,
            "currency": currency,
            "receipt": receipt_id,
            "payment_capture": 1,
        }
        if notes:
            payload["notes"] = notes

        try:
            response = self.client.post("/v1/orders", json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException:
            log.error(f"[Receipt: {receipt_id}] Payment gateway timeout while creating order.")
            raise
        except httpx.HTTPStatusError as e:
            log.error(f"[Receipt: {receipt_id}] Payment gateway rejected order (HTTP {e.response.status_code}).")
            raise
        except httpx.TransportError as e:
            log.error(f"[Receipt: {receipt_id}] Payment gateway unreachable: {e}")
            raise
        except ValueError as e:
            log.error(f"[Receipt: {receipt_id}] Payment gateway returned a non-JSON body: {e}")
            raise


# --- Mail Client (SMTP) ---
class MailClient:
    """
    Sends plain-text + HTML messages through an SMTP relay.
    A new connection is opened per message.
    """
    def __init__(self, host: str, port: int, user: str = None, password: str = None,
                 timeout: float = 10.0, smtp_factory=smtplib.SMTP_SSL):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout
        self.smtp_factory = smtp_factory

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password)

    def send(self, message: dict):
        """
        Sends one message.

        Args:
            message (dict): 'from', 'to', 'subject', 'text' and optional 'html'.

        Raises:
            NotificationError: If mail is not configured or the message has no recipient.
            smtplib.SMTPException / OSError: If the relay rejects the message or cannot be reached.
        """
        if not self.configured:
            raise NotificationError("SMTP credentials are not configured.")
        if not message.get("to"):
            raise NotificationError("Message has no recipient.")

        email = EmailMessage()
        email["From"] = message.get("from") or self.user
        email["To"] = message["to"]
        email["Subject"] = message["subject"]
        email.set_content(message.get("text", ""))
        if message.get("html"):
            email.add_alternative(message["html"], subtype="html")

        try:
            with self.smtp_factory(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.login(self.user, self.password)
                smtp.send_message(email)
            log.info(f"[Mail] Sent '{message['subject']}' to {message['to']}.")
        except (smtplib.SMTPException, OSError) as e:
            log.error(f"[Mail] Sending '{message['subject']}' to {message['to']} failed: {e}")
            raise


# --- Ledger Client (Google Sheets) ---
class SheetsLedgerClient:
    """
    Appends confirmed orders as rows to a Google Sheet.
    The Sheets service is built lazily from a service-account key file.
    """
    def __init__(self, sheet_id: str = None, range_: str = "Orders!A1",
                 service_account_file: str = None, service=None):
        self.sheet_id = sheet_id
        self.range = range_
        self.service_account_file = service_account_file
        self._service = service

    @property
    def configured(self) -> bool:
        return bool(self.sheet_id and (self._service or self.service_account_file))

    def _get_service(self):
        if self._service is None:
            credentials = service_account.Credentials.from_service_account_file(
                self.service_account_file,
                scopes=SHEETS_SCOPES,
            )
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return self._service

    def append_row(self, row_values: list) -> dict:
        """
        Appends one row below the last filled row of the configured range.

        Raises:
            NotificationError: If no sheet or credentials are configured.
            googleapiclient.errors.HttpError: If the Sheets API rejects the append.
        """
        if not self.configured:
            raise NotificationError("Ledger sheet is not configured.")

        try:
            return self._get_service().spreadsheets().values().append(
                spreadsheetId=self.sheet_id,
                range=self.range,
                valueInputOption="USER_ENTERED",
                insertDataOption="INSERT_ROWS",
                body={"values": [row_values]},
            ).execute()
        except HttpError as e:
            log.error(f"[Ledger] Append to sheet failed (HTTP {e.resp.status}): {e}")
            raise
