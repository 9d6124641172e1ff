"""
workflow.py — Core Orchestration Logic for Cake Orders

This module contains the two request workflows of the service. It coordinates the
pricing engine, the signature check and the external collaborators in the correct
sequence.

Workflow Overview:
1. create_order: validate → price server-side → reserve delivery date → open gateway order
2. confirm_payment: verify signature → re-price → notify customer, admin and ledger

Validation, capacity, gateway and signature failures end a workflow immediately with an
`OrderServiceError`. Notification failures never do: each side effect runs on its own,
its outcome is recorded and logged, and the payment stays confirmed.
"""

import time
from typing import Callable, List, Optional

import httpx
from pydantic import ValidationError

from .capacity import CapacityChecker, ReservationStatus
from .clients import MailClient, PaymentGatewayClient, SheetsLedgerClient
from .config import Settings
from .emails import build_admin_email, build_customer_email, build_ledger_row
from .errors import (
    CapacityExceededError,
    GatewayUnavailableError,
    InvalidPayloadError,
    InvalidSignatureError,
    MissingFieldsError,
    NotificationError,
    PricingError,
)
from .logging_config import get_logger
from .models import (
    ConfirmationResult,
    CreateOrderResponse,
    Customer,
    GatewayOrder,
    NotificationOutcome,
    OrderIntent,
    PaymentConfirmation,
    parse_delivery_date,
)
from .pricing import compute_price
from .signature import verify_signature

log = get_logger(__name__)


def _validate_order(order: OrderIntent):
    customer = order.customer
    if customer is None or not (customer.name and customer.phone and customer.email):
        raise InvalidPayloadError("Customer name, phone and email are required.")
    if order.weight is None or order.flavour1PricePerKg is None:
        raise InvalidPayloadError("Weight and flavour price per kg are required.")


def create_order(order: OrderIntent, gateway: PaymentGatewayClient, currency: str,
                 capacity: Optional[CapacityChecker] = None) -> CreateOrderResponse:
    """
    Prices an order on the server and opens the matching payment gateway order.

    Any amount the storefront sends along is ignored for charging; the gateway
    order always carries the amount computed by `compute_price`.

    Args:
        order (OrderIntent): The order as submitted by the storefront.
        gateway (PaymentGatewayClient): Client used to open the gateway order.
        currency (str): Currency code for the gateway order.
        capacity (CapacityChecker): Optional per-day booking limit.

    Returns:
        CreateOrderResponse: Gateway order handle plus the amount in rupees for display.

    Raises:
        InvalidPayloadError: If customer identity, weight or flavour price is missing or invalid,
            or the delivery date is not a recognised date.
        CapacityExceededError: If the delivery date is fully booked.
        GatewayUnavailableError: If the gateway cannot be reached or rejects the order.
    """
    _validate_order(order)
    delivery_day = None
    if order.deliveryDate:
        try:
            delivery_day = parse_delivery_date(order.deliveryDate)
        except ValueError as e:
            raise InvalidPayloadError(str(e)) from e

    try:
        price = compute_price(order.to_price_request())
    except PricingError as e:
        raise InvalidPayloadError(e.message) from e

    receipt_id = f"rcpt_{int(time.time() * 1000)}"
    log_prefix = f"[Receipt: {receipt_id}]"
    log.info(f"{log_prefix} Priced {order.weight} kg cake at ₹{price.finalAmountRupees} "
             f"(discount {price.discountPercent}%).")
    if order.amount is not None and order.amount != price.finalAmountRupees:
        log.info(f"{log_prefix} Client estimate ₹{order.amount} ignored in favour of server price.")

    reserved_date = None
    if capacity is not None and delivery_day is not None:
        if capacity.reserve(delivery_day) == ReservationStatus.CAPACITY_EXCEEDED:
            raise CapacityExceededError(f"No slots left for {delivery_day.isoformat()}.")
        reserved_date = delivery_day

    notes = {
        "customer_name": order.customer.name,
        "customer_phone": order.customer.phone,
        "delivery_date": delivery_day.isoformat() if delivery_day else "",
    }
    try:
        gateway_order = GatewayOrder(**gateway.create_order(
            amount_minor_units=price.finalAmountMinorUnits,
            currency=currency,
            receipt_id=receipt_id,
            notes=notes,
        ))
    except (httpx.HTTPError, ValidationError, TypeError, ValueError) as e:
        log.error(f"{log_prefix} Gateway order could not be created: {e}")
        if reserved_date:
            capacity.release(reserved_date)
        raise GatewayUnavailableError("Payment gateway could not create the order.") from e

    log.info(f"[Order: {gateway_order.id}] Gateway order created for {gateway_order.amount} "
             f"{gateway_order.currency} ({receipt_id}).")
    return CreateOrderResponse(order=gateway_order, amountRupees=price.finalAmountRupees)


def _run_notification(log_prefix: str, channel: str, step: Callable[[], object]) -> NotificationOutcome:
    try:
        step()
        return NotificationOutcome(channel=channel, ok=True)
    except Exception as e:
        log.error(f"{log_prefix} Notification '{channel}' failed, resend manually: {e}")
        return NotificationOutcome(channel=channel, ok=False, error=str(e))


def confirm_payment(confirmation: PaymentConfirmation, settings: Settings,
                    mail: MailClient, ledger: SheetsLedgerClient) -> ConfirmationResult:
    """
    Verifies a payment callback and, only if it is authentic, notifies everyone involved.

    The workflow:
        1. Rejects the callback if an id, the signature or the order data is missing.
        2. Checks the HMAC signature against the gateway key secret.
        3. Recomputes the price from the order data (client amounts are not trusted).
        4. Sends the customer mail, the admin mail and the ledger row. Each step is
           attempted regardless of the others; failures are logged and recorded in the
           result but do not change it.

    Args:
        confirmation (PaymentConfirmation): Callback payload from the storefront.
        settings (Settings): Gateway secret, sender and admin addresses, shop name.
        mail (MailClient): Mail collaborator.
        ledger (SheetsLedgerClient): Spreadsheet collaborator.

    Returns:
        ConfirmationResult: Always `confirmed=True`, with the outcome of each notification.

    Raises:
        MissingFieldsError: If any required callback field is absent.
        InvalidSignatureError: If the signature does not match.
    """
    order_id = confirmation.razorpay_order_id
    payment_id = confirmation.razorpay_payment_id
    order = confirmation.orderData
    if not (order_id and payment_id and confirmation.razorpay_signature and order):
        raise MissingFieldsError("Order id, payment id, signature and order data are required.")

    log_prefix = f"[Order: {order_id}]"
    secret = settings.razorpay_key_secret.get_secret_value()
    if not verify_signature(order_id, payment_id, confirmation.razorpay_signature, secret):
        log.warning(f"{log_prefix} SECURITY: signature mismatch for payment {payment_id}. Rejected.")
        raise InvalidSignatureError("Payment signature verification failed.")

    log.info(f"{log_prefix} Payment {payment_id} verified.")

    if order.customer is None:
        order = order.model_copy(update={"customer": Customer()})

    amount_rupees = None
    try:
        amount_rupees = compute_price(order.to_price_request()).finalAmountRupees
    except PricingError as e:
        log.warning(f"{log_prefix} Could not re-price verified order, notifying without amount: {e}")

    sender = settings.sender_email

    def send_customer_mail():
        mail.send(build_customer_email(order, payment_id, amount_rupees, sender, settings.shop_name))

    def send_admin_mail():
        if not settings.admin_email:
            raise NotificationError("ADMIN_EMAIL is not configured.")
        mail.send(build_admin_email(order, order_id, payment_id, amount_rupees, sender, settings.admin_email))

    def append_ledger_row():
        ledger.append_row(build_ledger_row(order, order_id, payment_id, amount_rupees))

    outcomes: List[NotificationOutcome] = [
        _run_notification(log_prefix, "customer-mail", send_customer_mail),
        _run_notification(log_prefix, "admin-mail", send_admin_mail),
        _run_notification(log_prefix, "ledger", append_ledger_row),
    ]

    summary = ", ".join(f"{o.channel}={'ok' if o.ok else 'failed'}" for o in outcomes)
    log.info(f"{log_prefix} Payment {payment_id} confirmed. Notifications: {summary}.")
    return ConfirmationResult(amountRupees=amount_rupees, notifications=outcomes)
