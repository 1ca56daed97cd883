from decimal import Decimal

import pytest

from src.core.currency import (
    InvalidMoneyValue,
    Money,
    MoneyContext,
    MoneyDivisionByZero,
    currency,
    sum_money,
)
from src.core.exceptions import ValidationException


def test_float_inputs_add_exactly():
    """0.1 + 0.2 vaut exactement 0.30, sans dérive binaire."""
    total = Money(0.1).add(0.2)
    assert total.amount == Decimal("0.3")
    assert total.eq("0.30")
    assert total.to_display_string() == "0.30"


def test_half_up_rounding_at_boundary_only():
    assert Money("10.125").to_stored_decimal() == Decimal("10.13")
    assert Money("10.124").to_stored_decimal() == Decimal("10.12")
    assert Money("-10.125").to_stored_decimal() == Decimal("-10.13")
    # La valeur exacte est conservée jusqu'au stockage
    assert Money("10.125").amount == Decimal("10.125")


def test_chained_operations_stay_exact():
    # 3 × 33.335 = 100.005 -> 100.01 au stockage, pas 3 × 33.34
    assert Money("33.335").multiply(3).to_stored_decimal() == Decimal("100.01")
    assert Money(100).divide(3).multiply(3).eq(100)


def test_negative_zero_is_normalized():
    assert Money("-0.001").to_display_string() == "0.00"
    assert Money("-0.001").is_zero()


def test_equality_is_to_the_cent():
    assert Money("1.004") == Money("1.00")
    assert Money("1.005") != Money("1.00")
    assert Money("19.99") == Decimal("19.99")


def test_equality_with_unparseable_value_is_false():
    assert (Money(1) == "abc") is False
    assert Money(1) != "abc"
    assert Money(0) != float("nan")
    # Les méthodes explicites restent strictes
    with pytest.raises(InvalidMoneyValue):
        Money(1).eq("abc")


def test_operators_and_sum():
    values = [Money("10.10"), Money("20.20"), Money("0.05")]
    assert sum(values).eq("30.35")
    assert sum_money(values).eq("30.35")
    assert sum_money([]).is_zero()
    assert (Money(5) - 7).is_negative()
    assert (2 * Money("1.50")).eq(3)
    assert -Money(3) == Money(-3)
    assert Money(1) < Money("1.01")
    assert Money(2) >= 2


def test_division_by_zero_is_a_validation_error():
    with pytest.raises(MoneyDivisionByZero) as exc_info:
        Money(10).divide(0)
    assert isinstance(exc_info.value, ValidationException)
    assert isinstance(exc_info.value, ZeroDivisionError)


@pytest.mark.parametrize("bad_value", ["abc", "", float("nan"), float("inf"), "Infinity", True, None, [1]])
def test_invalid_inputs_are_rejected(bad_value):
    with pytest.raises(InvalidMoneyValue):
        Money(bad_value)


def test_context_is_carried_by_value():
    """Le contexte appartient à la valeur, jamais au contexte décimal global."""
    three_places = MoneyContext(places=3)
    value = currency("1.2345", three_places)
    assert value.to_stored_decimal() == Decimal("1.235")
    assert value.add(1).context is three_places
    assert Money("1.2345").to_stored_decimal() == Decimal("1.23")


def test_to_number_is_display_only():
    assert Money("12.345").to_number() == 12.35
    assert str(Money("7")) == "7.00"
    assert repr(Money("7")) == "Money('7')"
