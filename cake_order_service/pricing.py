"""
pricing.py — Server-Side Cake Pricing

The amount charged for a cake is derived here and only here. The storefront shows the
customer an estimate computed with the same rules, but the order sent to the payment
gateway always uses the value returned by `compute_price`.

Pricing Steps:
1. Base unit price (averaged plus a mix premium for two-flavour cakes)
2. Subtotal for the requested weight
3. Profit margin
4. Volume discount by weight tier
5. Rounding up to a charm price ending in 29, 49, 79 or 99
6. Conversion to paise
"""

from decimal import ROUND_HALF_UP, Decimal, DecimalException

from .errors import PricingError
from .models import PriceBreakdown, PriceRequest

MIX_PREMIUM = Decimal("0.10")
PROFIT_MARGIN = Decimal("0.09")
CHARM_ENDINGS = (29, 49, 79, 99)

_ONE = Decimal("1")
_CENT = Decimal("0.01")


def discount_for_weight(weight_kg: Decimal) -> int:
    """
    Returns the volume discount in percent for a cake weight.

    Tiers (boundaries are exact):
        weight >= 7          → 5
        5 <= weight < 7      → 7
        3 < weight <= 4.5    → 8
        2.5 <= weight <= 3   → 9
        anything else        → 0
    """
    if weight_kg >= 7:
        return 5
    if 5 <= weight_kg < 7:
        return 7
    if 3 < weight_kg <= Decimal("4.5"):
        return 8
    if Decimal("2.5") <= weight_kg <= 3:
        return 9
    return 0


def round_to_charm_price(value: int, endings=CHARM_ENDINGS) -> int:
    """
    Snaps a whole-rupee amount upward to the next price ending in one of `endings`.

    The endings are tried in order within the amount's hundred-block; if all of them
    are below the amount, the first ending of the next hundred-block is used. The
    result is therefore never below `value`.

    Examples:
        1090 → 1099, 1000 → 1029, 1150 → 1179, 1199 → 1199, 1250 → 1279
    """
    hundred = (value // 100) * 100
    for ending in endings:
        candidate = hundred + ending
        if candidate >= value:
            return candidate
    return hundred + 100 + endings[0]


def compute_price(request: PriceRequest) -> PriceBreakdown:
    """
    Computes the charge for one cake.

    Args:
        request (PriceRequest): Per-kg prices, mix flag and weight.

    Returns:
        PriceBreakdown: The final amount in paise plus the intermediate figures.

    Raises:
        PricingError: If the base price or weight is missing, zero, negative, non-numeric
            or too large to price.
    """
    base_price = request.unitPriceBase
    weight = request.weightKg
    if base_price is None or weight is None or base_price <= 0 or weight <= 0:
        raise PricingError("Base price per kg and weight must be positive numbers.")

    secondary = request.unitPriceSecondary
    mixed = request.isMixed and secondary is not None and secondary > 0

    discount_percent = discount_for_weight(weight)

    # Amounts beyond the decimal context range or precision trap here.
    try:
        if mixed:
            unit_price = (base_price + secondary) / 2 * (_ONE + MIX_PREMIUM)
        else:
            unit_price = base_price
        raw_subtotal = unit_price * weight
        after_markup = raw_subtotal * (_ONE + PROFIT_MARGIN)
        discounted = after_markup * (_ONE - Decimal(discount_percent) / 100)
        whole_rupees = int(discounted.quantize(_ONE, rounding=ROUND_HALF_UP))
        raw_subtotal = raw_subtotal.quantize(_CENT, rounding=ROUND_HALF_UP)
        amount_saved = (after_markup - discounted).quantize(_CENT, rounding=ROUND_HALF_UP)
        after_markup = after_markup.quantize(_CENT, rounding=ROUND_HALF_UP)
    except DecimalException as e:
        raise PricingError("Base price or weight is out of range.") from e

    final_rupees = round_to_charm_price(whole_rupees)

    return PriceBreakdown(
        finalAmountMinorUnits=final_rupees * 100,
        rawSubtotal=raw_subtotal,
        afterMarkup=after_markup,
        discountPercent=discount_percent,
        amountSaved=amount_saved,
    )
