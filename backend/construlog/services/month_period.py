"""
月份區間純函式（薪資月結、月份切換用）。

- 月份一律 1~12。
- 產值紀錄以日曆日判斷所屬月份，不含時區換算。
- 切換月份跨年時自動進位/退位（1 月往前為上一年 12 月）。
"""
from calendar import monthrange
from datetime import date
from typing import Tuple


def first_day_of_month(year: int, month: int) -> date:
    """指定年月的第一天"""
    return date(year, month, 1)


def last_day_of_month(year: int, month: int) -> date:
    """指定年月的最後一天"""
    _, last = monthrange(year, month)
    return date(year, month, last)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """(當月首日, 當月末日)，皆含"""
    return first_day_of_month(year, month), last_day_of_month(year, month)


def is_in_month(d: date, year: int, month: int) -> bool:
    return d.year == year and d.month == month


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """往前/往後 delta 個月，回傳 (year, month)"""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1
