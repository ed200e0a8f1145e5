"""
金額共用純函式：兩位小數四捨五入（同距往正無限大）與寬鬆數值轉換。

- 所有金額、數量一律 Decimal；float 先轉 str 再轉 Decimal，取其十進位字面值
  （round2(2.345) == 2.35、round2(1500.555) == 1500.56）；
  負數同距往 0 方向（round2(-2.345) == -2.34）。
- 非數值輸入（None、空字串、文字、NaN、Infinity）一律視為 0，不拋錯。
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_DOWN, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """寬鬆轉換為 Decimal；無法解析者回傳 0。接受逗號小數點（"12,5" → 12.5）。"""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float)):
        d = Decimal(str(value))
    else:
        s = str(value).strip().replace(",", ".")
        if not s:
            return ZERO
        try:
            d = Decimal(s)
        except InvalidOperation:
            return ZERO
    if not d.is_finite():
        return ZERO
    return d


def to_non_negative(value: Any) -> Decimal:
    """薪資、比例、預支用：負數視同格式錯誤，回傳 0。"""
    d = to_decimal(value)
    return d if d >= 0 else ZERO


def round2(value: Any) -> Decimal:
    """floor(x * 100 + 0.5) / 100：同距時一律往正無限大進位（-2.345 → -2.34）。
    超過精度無法取到分位者與非數值同樣視為 0。"""
    d = to_decimal(value)
    rounding = ROUND_HALF_UP if d >= 0 else ROUND_HALF_DOWN
    try:
        return d.quantize(CENT, rounding=rounding)
    except InvalidOperation:
        return ZERO.quantize(CENT)


def clamp_non_negative(value: Decimal) -> Decimal:
    return value if value > 0 else ZERO
