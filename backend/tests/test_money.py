"""
金額純函式單元測試。
測試：兩位小數 half-up、float 以十進位字面值進位、非數值一律視為 0。
"""
from decimal import Decimal
import pytest

from construlog.services.money import clamp_non_negative, round2, to_decimal, to_non_negative


@pytest.mark.parametrize(
    "value, expected",
    [
        (2.345, Decimal("2.35")),
        (1500.555, Decimal("1500.56")),
        (1.005, Decimal("1.01")),
        ("10", Decimal("10.00")),
        (Decimal("0.125"), Decimal("0.13")),
        (0, Decimal("0.00")),
    ],
)
def test_round2_half_up(value, expected):
    assert round2(value) == expected


def test_round2_keeps_two_decimal_exponent():
    """結果一律兩位小數（序列化後為 80.00 而非 80）"""
    assert str(round2(Decimal("80"))) == "80.00"


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("-120"), Decimal("-120.00")),
        (Decimal("-2.345"), Decimal("-2.34")),
        ("-100.005", Decimal("-100.00")),
        (-0.005, Decimal("0.00")),
        (Decimal("-2.346"), Decimal("-2.35")),
    ],
)
def test_round2_negative_tie_rounds_toward_positive(value, expected):
    """floor(x * 100 + 0.5) / 100：負數同距往 0 方向"""
    assert round2(value) == expected


@pytest.mark.parametrize("value", ["1e27", "1e40", Decimal("-9.99e35"), 10 ** 30])
def test_round2_beyond_precision_is_zero(value):
    """超過 Decimal 精度無法取到分位時視為 0，不拋錯"""
    assert round2(value) == Decimal("0.00")


@pytest.mark.parametrize("value", [None, "", "   ", "abc", "12abc", float("nan"), float("inf"), "Infinity", True])
def test_to_decimal_malformed_is_zero(value):
    assert to_decimal(value) == Decimal("0")


def test_to_decimal_accepts_comma_separator():
    assert to_decimal("12,5") == Decimal("12.5")
    assert to_decimal(" 7.25 ") == Decimal("7.25")


def test_to_decimal_float_uses_decimal_literal():
    assert to_decimal(0.1) == Decimal("0.1")


def test_to_non_negative():
    assert to_non_negative("-5") == Decimal("0")
    assert to_non_negative("8") == Decimal("8")
    assert to_non_negative("x") == Decimal("0")


def test_clamp_non_negative():
    assert clamp_non_negative(Decimal("-0.01")) == Decimal("0")
    assert clamp_non_negative(Decimal("300.00")) == Decimal("300.00")
