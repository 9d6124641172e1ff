"""
emails.py — Customer/Admin Messages and Ledger Rows

Turns a verified order into the payloads handed to the mail and spreadsheet
collaborators. Everything a customer typed is HTML-escaped before it is placed in
an HTML body.
"""

from datetime import datetime, timezone
from html import escape
from typing import List, Optional

from .models import OrderIntent

PLACEHOLDER = "—"


def _text(value) -> str:
    if value is None or value == "":
        return PLACEHOLDER
    return str(value)


def _amount(amount_rupees: Optional[int]) -> str:
    return f"₹{amount_rupees}" if amount_rupees is not None else PLACEHOLDER


def _schedule(order: OrderIntent) -> str:
    parts = [part for part in (order.deliverySlot, order.preferredTime) if part]
    return ", ".join(parts) if parts else PLACEHOLDER


def order_summary(order: OrderIntent, amount_rupees: Optional[int]) -> List[tuple]:
    """Label/value pairs shared by the customer and admin messages."""
    customer = order.customer
    return [
        ("Name", _text(customer.name)),
        ("Phone", _text(customer.phone)),
        ("Delivery date", _text(order.deliveryDate)),
        ("Delivery slot", _schedule(order)),
        ("Address", _text(customer.address)),
        ("Flavour", order.flavour_label),
        ("Weight", f"{_text(order.weight)} kg"),
        ("Message", _text(order.message)),
        ("Amount paid", _amount(amount_rupees)),
    ]


def _html_list(summary: List[tuple]) -> str:
    items = "\n".join(
        f"<li><strong>{escape(label)}:</strong> {escape(value)}</li>" for label, value in summary
    )
    return f"<ul>\n{items}\n</ul>"


def build_customer_email(order: OrderIntent, payment_id: str, amount_rupees: Optional[int],
                         sender: str, shop_name: str) -> dict:
    """
    Builds the confirmation mail sent to the customer.

    Returns:
        dict: Message with 'from', 'to', 'subject', 'text' and 'html' keys.
    """
    summary = order_summary(order, amount_rupees)
    name = _text(order.customer.name)
    text_lines = "\n".join(f"- {label}: {value}" for label, value in summary)

    text = (
        f"Hi {name},\n\n"
        f"Thank you! We have received your payment and order (Payment ID: {payment_id}).\n\n"
        f"Order details:\n{text_lines}\n\n"
        f"We will contact you within 24 hours with final confirmation.\n\n"
        f"Regards,\n{shop_name}\n"
    )
    html = (
        f"<p>Hi <strong>{escape(name)}</strong>,</p>\n"
        f"<p>Thank you! We have received your payment and order "
        f"(Payment ID: <strong>{escape(payment_id)}</strong>).</p>\n"
        f"<h4>Order details</h4>\n{_html_list(summary)}\n"
        f"<p>We will contact you within 24 hours with final confirmation.</p>\n"
        f"<p>Regards,<br/>{escape(shop_name)}</p>"
    )
    return {
        "from": sender,
        "to": order.customer.email,
        "subject": f"{shop_name} — Order received ({payment_id})",
        "text": text,
        "html": html,
    }


def build_admin_email(order: OrderIntent, order_id: str, payment_id: str,
                      amount_rupees: Optional[int], sender: str, admin_email: str) -> dict:
    """Builds the operator notification: the customer summary plus contact and gateway ids."""
    summary = order_summary(order, amount_rupees) + [
        ("Email", _text(order.customer.email)),
        ("Gateway order ID", order_id),
        ("Payment ID", payment_id),
    ]
    text = "New paid order:\n" + "\n".join(f"- {label}: {value}" for label, value in summary)
    html = f"<h4>New paid order</h4>\n{_html_list(summary)}"
    return {
        "from": sender,
        "to": admin_email,
        "subject": f"New order {payment_id} — {_text(order.customer.name)}",
        "text": text,
        "html": html,
    }


def build_ledger_row(order: OrderIntent, order_id: str, payment_id: str,
                     amount_rupees: Optional[int], now: datetime = None) -> List[str]:
    """
    Flattens a confirmed order into one spreadsheet row.

    Columns: timestamp, name, phone, email, address, flavour 1, flavour 2, mix,
    weight (kg), delivery date, slot, preferred time, message, amount (₹),
    gateway order id, gateway payment id.
    """
    now = now or datetime.now(timezone.utc)
    customer = order.customer
    return [
        now.isoformat(timespec="seconds"),
        customer.name or "",
        customer.phone or "",
        customer.email or "",
        customer.address or "",
        order.flavour1 or "",
        order.flavour2 or "",
        "Yes" if order.mix else "No",
        str(order.weight) if order.weight is not None else "",
        order.deliveryDate or "",
        order.deliverySlot or "",
        order.preferredTime or "",
        order.message or "",
        str(amount_rupees) if amount_rupees is not None else "",
        order_id,
        payment_id,
    ]
