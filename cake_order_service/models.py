"""
models.py — Data Models for Cake Orders

This module defines the data structures used for pricing, order creation and payment
confirmation. It uses Pydantic models to ensure type safety and validation of incoming
data. Field names follow the JSON wire format used by the storefront.

Models:
    - PriceRequest: Server-trusted pricing inputs for one cake.
    - PriceBreakdown: Derived, immutable result of the pricing engine.
    - Customer: Contact details of the person placing the order.
    - OrderIntent: The complete order as submitted by the storefront.
    - PaymentConfirmation: The gateway callback payload posted back after checkout.
    - GatewayOrder / CreateOrderResponse: Order handle returned to the storefront.
    - NotificationOutcome / ConfirmationResult: Result of a verified payment.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def coerce_decimal(value: Any) -> Optional[Decimal]:
    """
    Converts a loosely typed JSON value into a Decimal.

    Numbers and numeric strings are accepted. Anything else (missing values, booleans,
    empty or non-numeric strings, NaN, infinity) yields None so that the pricing engine
    can reject it as a missing field.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float, str)):
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not number.is_finite():
        return None
    return number


DELIVERY_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")


def parse_delivery_date(value: str) -> date:
    """
    Parses a storefront delivery date such as "2026-10-24" or "24/10/2026".

    Raises:
        ValueError: If the value matches none of the accepted formats.
    """
    text = value.strip()
    for fmt in DELIVERY_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised delivery date: {value!r}")


class PriceRequest(BaseModel):
    """
    Pricing inputs for one cake.

    Attributes:
        unitPriceBase (Decimal): Price per kg of the primary flavour, in rupees.
        unitPriceSecondary (Decimal): Price per kg of the second flavour, if any.
        isMixed (bool): Whether the cake mixes two flavours.
        weightKg (Decimal): Cake weight in kilograms.
    """
    model_config = ConfigDict(frozen=True)

    unitPriceBase: Optional[Decimal] = None
    unitPriceSecondary: Optional[Decimal] = None
    isMixed: bool = False
    weightKg: Optional[Decimal] = None

    @field_validator("unitPriceBase", "unitPriceSecondary", "weightKg", mode="before")
    @classmethod
    def _lenient_number(cls, value):
        return coerce_decimal(value)


class PriceBreakdown(BaseModel):
    """
    Result of the pricing engine. Recomputed for every request, never taken from a client.

    Attributes:
        finalAmountMinorUnits (int): Amount to charge, in paise.
        rawSubtotal (Decimal): Unit price times weight.
        afterMarkup (Decimal): Subtotal including the profit margin.
        discountPercent (int): Volume discount applied, 0-100.
        amountSaved (Decimal): Rupees taken off by the volume discount.
    """
    model_config = ConfigDict(frozen=True)

    finalAmountMinorUnits: int = Field(..., ge=0)
    rawSubtotal: Decimal
    afterMarkup: Decimal
    discountPercent: int = Field(..., ge=0, le=100)
    amountSaved: Decimal

    @property
    def finalAmountRupees(self) -> int:
        return self.finalAmountMinorUnits // 100


class Customer(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class OrderIntent(BaseModel):
    """
    An order as submitted by the storefront.

    Any price the client shows the customer (`amount`) is accepted for logging only;
    the charge is always recomputed from the per-kg prices and the weight.
    """
    weight: Optional[Decimal] = None
    flavour1: Optional[str] = None
    flavour2: Optional[str] = None
    flavour1PricePerKg: Optional[Decimal] = None
    flavour2PricePerKg: Optional[Decimal] = None
    mix: bool = False
    customer: Optional[Customer] = None
    deliveryDate: Optional[str] = None
    deliverySlot: Optional[str] = None
    preferredTime: Optional[str] = None
    message: Optional[str] = None
    amount: Optional[Decimal] = None

    @field_validator("weight", "flavour1PricePerKg", "flavour2PricePerKg", "amount", mode="before")
    @classmethod
    def _lenient_number(cls, value):
        return coerce_decimal(value)

    def to_price_request(self) -> PriceRequest:
        return PriceRequest(
            unitPriceBase=self.flavour1PricePerKg,
            unitPriceSecondary=self.flavour2PricePerKg,
            isMixed=self.mix,
            weightKg=self.weight,
        )

    @property
    def flavour_label(self) -> str:
        """Flavour names joined for display, e.g. 'Chocolate + Vanilla'."""
        names = [name for name in (self.flavour1, self.flavour2) if name]
        return " + ".join(names) if names else "—"


class PaymentConfirmation(BaseModel):
    """
    Callback payload posted by the storefront after the gateway checkout succeeded.

    All fields are optional at parse time so that absent fields are reported as
    `missing_fields` rather than as a generic payload error.
    """
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    orderData: Optional[OrderIntent] = None


class GatewayOrder(BaseModel):
    id: str
    amount: int
    currency: str


class CreateOrderResponse(BaseModel):
    success: bool = True
    order: GatewayOrder
    amountRupees: int


class NotificationOutcome(BaseModel):
    """Result of one best-effort side effect (customer mail, admin mail, ledger)."""
    channel: str
    ok: bool
    error: Optional[str] = None


class ConfirmationResult(BaseModel):
    confirmed: bool = True
    amountRupees: Optional[int] = None
    notifications: List[NotificationOutcome] = Field(default_factory=list)
