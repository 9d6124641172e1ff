from decimal import Decimal

import pytest

from cake_order_service.errors import PricingError
from cake_order_service.models import PriceRequest
from cake_order_service.pricing import compute_price, discount_for_weight, round_to_charm_price

CHARM_ENDINGS = {29, 49, 79, 99}


def price(base, weight, secondary=None, mixed=False):
    return compute_price(PriceRequest(
        unitPriceBase=base,
        unitPriceSecondary=secondary,
        isMixed=mixed,
        weightKg=weight,
    ))


def test_one_kilo_plain_cake() -> None:
    breakdown = price(1000, 1)

    assert breakdown.rawSubtotal == Decimal("1000.00")
    assert breakdown.afterMarkup == Decimal("1090.00")
    assert breakdown.discountPercent == 0
    assert breakdown.amountSaved == Decimal("0.00")
    assert breakdown.finalAmountMinorUnits == 109900
    assert breakdown.finalAmountRupees == 1099


def test_discounted_three_kilo_cake() -> None:
    # 3000 * 1.09 = 3270, 9% off = 2975.70 -> 2976 -> 2979
    breakdown = price(1000, 3)

    assert breakdown.discountPercent == 9
    assert breakdown.amountSaved == Decimal("294.30")
    assert breakdown.finalAmountMinorUnits == 297900


def test_heavy_cake_gets_five_percent() -> None:
    # 3500 * 1.09 = 3815, 5% off = 3624.25 -> 3624 -> 3629
    breakdown = price(500, 7)

    assert breakdown.discountPercent == 5
    assert breakdown.amountSaved == Decimal("190.75")
    assert breakdown.finalAmountMinorUnits == 362900


def test_mixed_flavours_average_plus_premium() -> None:
    # (800 + 1000) / 2 * 1.10 = 990 per kg, 1980 * 1.09 = 2158.2 -> 2158 -> 2179
    breakdown = price(800, 2, secondary=1000, mixed=True)

    assert breakdown.rawSubtotal == Decimal("1980.00")
    assert breakdown.finalAmountMinorUnits == 217900


@pytest.mark.parametrize(
    "weight, expected",
    [
        ("2.5", 9),
        ("3.0", 9),
        ("3.01", 8),
        ("4.5", 8),
        ("4.51", 0),
        ("4.99", 0),
        ("5.0", 7),
        ("6.99", 7),
        ("7.0", 5),
        ("12", 5),
        ("2.49", 0),
        ("1", 0),
        ("0.5", 0),
    ],
)
def test_discount_tiers(weight, expected) -> None:
    assert discount_for_weight(Decimal(weight)) == expected
    assert price(1000, weight).discountPercent == expected


@pytest.mark.parametrize(
    "base, weight",
    [(1000, 1), (999, "0.5"), (450, 2), (1250, "2.5"), (720, "3.01"), (880, "4.75"), (650, 6), (1199, 10)],
)
def test_final_amount_is_a_charm_price(base, weight) -> None:
    first = price(base, weight)
    second = price(base, weight)

    assert first == second
    assert first.finalAmountMinorUnits % 100 == 0
    assert (first.finalAmountMinorUnits // 100) % 100 in CHARM_ENDINGS


@pytest.mark.parametrize("base, weight", [(1000, 1), (937, "2.5"), (1111, 5), (620, "7.25")])
def test_mixing_equal_prices_matches_single_flavour_with_premium(base, weight) -> None:
    mixed = price(base, weight, secondary=base, mixed=True)
    single = price(Decimal(base) * Decimal("1.10"), weight)

    assert mixed.finalAmountMinorUnits == single.finalAmountMinorUnits
    assert mixed.rawSubtotal == single.rawSubtotal


def test_mix_flag_without_second_price_uses_primary() -> None:
    assert price(1000, 1, mixed=True) == price(1000, 1)


def test_second_price_ignored_when_not_mixed() -> None:
    assert price(1000, 1, secondary=2000, mixed=False) == price(1000, 1)


def test_charged_price_never_undercuts_fair_price() -> None:
    breakdown = price(1000, 3)
    fair = breakdown.afterMarkup - breakdown.amountSaved

    assert Decimal(breakdown.finalAmountRupees) >= fair.to_integral_value()


@pytest.mark.parametrize(
    "base, weight",
    [(None, 1), (1000, None), (0, 1), (1000, 0), (-500, 1), (1000, -2), ("abc", 1), (1000, ""), (True, 1)],
)
def test_missing_or_invalid_inputs_are_rejected(base, weight) -> None:
    with pytest.raises(PricingError):
        price(base, weight)


@pytest.mark.parametrize(
    "value, expected",
    [(1090, 1099), (1000, 1029), (1029, 1029), (1030, 1049), (1150, 1179), (1199, 1199), (1100, 1129), (100, 129), (0, 29)],
)
def test_round_to_charm_price(value, expected) -> None:
    assert round_to_charm_price(value) == expected


def test_charm_rounding_rolls_into_next_hundred() -> None:
    assert round_to_charm_price(1150, endings=(29, 49)) == 1229


@pytest.mark.parametrize(
    "base, weight",
    [(1000, "1e40"), ("1e40", 1), (1000, "1e999999999"), ("9" * 40, 2)],
)
def test_amounts_beyond_decimal_precision_are_rejected(base, weight) -> None:
    with pytest.raises(PricingError):
        price(base, weight)
