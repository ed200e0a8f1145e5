"""
月薪資結算（Pagamento Extra）。

每位員工、每個中間值都先 round2 再帶入下一步（逐步四捨五入，非最後一次四捨五入）：
    monthly_production = round2(當月產值合計)
    advance            = round2(當月預支)
    fgts_value         = round2(gross_salary * fgts_percent / 100)
    inss_value         = round2(gross_salary * inss_percent / 100)
    cash_payment       = round2(monthly_production - net_salary - fgts_value - inss_value - advance)
    total_to_receive   = round2(net_salary + cash_payment)
cash_payment 可為負（扣款大於產值）；原值保留，顯示與全隊提領合計時以 0 計。
"""
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Sequence

from construlog.schemas import (
    PAYROLL_NUMBER_FIELDS,
    AdvanceKey,
    Employee,
    MonthRef,
    PayrollLine,
    PayrollSummary,
    ProductionEntry,
)
from construlog.services.employee_registry import get_employee
from construlog.services.money import ZERO, clamp_non_negative, round2, to_non_negative
from construlog.services.month_period import is_in_month, shift_month

HUNDRED = Decimal("100")


class InvalidPayrollFieldError(ValueError):
    pass


def advance_key(employee_id: str, year: int, month: int) -> AdvanceKey:
    return AdvanceKey(employee_id, year, month)


def compute_payroll_line(
    emp: Employee,
    entries: Sequence[ProductionEntry],
    advances: Mapping[AdvanceKey, Decimal],
    year: int,
    month: int,
) -> PayrollLine:
    """entries 須已過濾為該員工當月紀錄"""
    monthly_production = round2(sum((p.total_value for p in entries), ZERO))
    advance = round2(advances.get(advance_key(emp.id, year, month), ZERO))
    fgts_value = round2(emp.gross_salary * emp.fgts_percent / HUNDRED)
    inss_value = round2(emp.gross_salary * emp.inss_percent / HUNDRED)
    cash_payment = round2(monthly_production - emp.net_salary - fgts_value - inss_value - advance)
    total_to_receive = round2(emp.net_salary + cash_payment)
    return PayrollLine(
        employee_id=emp.id,
        name=emp.name,
        role=emp.role,
        site=emp.site,
        active=emp.active,
        gross_salary=emp.gross_salary,
        net_salary=emp.net_salary,
        fgts_percent=emp.fgts_percent,
        inss_percent=emp.inss_percent,
        monthly_production=monthly_production,
        advance=advance,
        fgts_value=fgts_value,
        inss_value=inss_value,
        cash_payment=cash_payment,
        cash_payment_display=clamp_non_negative(cash_payment),
        total_to_receive_in_cash=total_to_receive,
    )


def compute_payroll(
    employees: Sequence[Employee],
    production: Sequence[ProductionEntry],
    advances: Mapping[AdvanceKey, Decimal],
    year: int,
    month: int,
) -> List[PayrollLine]:
    """依員工順序回傳每人當月結算；純函式，同樣輸入必得同樣結果。"""
    by_employee: Dict[str, List[ProductionEntry]] = {}
    for p in production:
        if is_in_month(p.date, year, month):
            by_employee.setdefault(p.employee_id, []).append(p)
    return [
        compute_payroll_line(emp, by_employee.get(emp.id, []), advances, year, month)
        for emp in employees
    ]


def total_cash_to_withdraw(lines: Sequence[PayrollLine]) -> Decimal:
    """全隊需提領現金：只加總正的 cash_payment"""
    return round2(sum((clamp_non_negative(line.cash_payment) for line in lines), ZERO))


def build_payroll_summary(
    employees: Sequence[Employee],
    production: Sequence[ProductionEntry],
    advances: Mapping[AdvanceKey, Decimal],
    year: int,
    month: int,
) -> PayrollSummary:
    lines = compute_payroll(employees, production, advances, year, month)
    prev_y, prev_m = shift_month(year, month, -1)
    next_y, next_m = shift_month(year, month, 1)
    return PayrollSummary(
        year=year,
        month=month,
        lines=lines,
        total_cash_to_withdraw=total_cash_to_withdraw(lines),
        previous=MonthRef(year=prev_y, month=prev_m),
        next=MonthRef(year=next_y, month=next_m),
    )


def update_payroll_field(
    employees: Sequence[Employee],
    employee_id: str,
    field: str,
    value: Any,
) -> List[Employee]:
    """就地修改單一薪資欄位（寫入前 round2；非數值或負數視為 0）"""
    if field not in PAYROLL_NUMBER_FIELDS:
        raise InvalidPayrollFieldError(field)
    get_employee(employees, employee_id)
    new_value = round2(to_non_negative(value))
    return [e.model_copy(update={field: new_value}) if e.id == employee_id else e for e in employees]


def set_advance(
    advances: Mapping[AdvanceKey, Decimal],
    employee_id: str,
    year: int,
    month: int,
    value: Any,
) -> Dict[AdvanceKey, Decimal]:
    """設定該員工該月預支（覆寫，不累加）"""
    updated = dict(advances)
    updated[advance_key(employee_id, year, month)] = round2(to_non_negative(value))
    return updated
