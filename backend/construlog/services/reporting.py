"""報表彙總：依服務、依員工的產值合計，最近紀錄與首頁當日統計。每次呼叫皆從頭計算。"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Sequence

from construlog.schemas import DashboardSummary, Employee, ProductionEntry, ReportItem
from construlog.services.employee_registry import index_by_id, resolve_employee_name
from construlog.services.money import ZERO

TOP_EMPLOYEES = 8


def _sum_by(keys_and_values) -> List[ReportItem]:
    summary: Dict[str, Decimal] = {}
    for name, value in keys_and_values:
        summary[name] = summary.get(name, ZERO) + value
    return [ReportItem(name=name, value=value) for name, value in summary.items()]


def by_service(production: Sequence[ProductionEntry]) -> List[ReportItem]:
    """依服務合計，順序為首次出現順序"""
    return _sum_by((p.service_type, p.total_value) for p in production)


def by_employee(
    production: Sequence[ProductionEntry],
    employees: Sequence[Employee],
    limit: int = TOP_EMPLOYEES,
) -> List[ReportItem]:
    """依員工姓名合計，由高到低取前 limit 名；同額維持首次出現順序"""
    index = index_by_id(employees)
    items = _sum_by((resolve_employee_name(index, p.employee_id), p.total_value) for p in production)
    items.sort(key=lambda item: item.value, reverse=True)
    return items[:limit]


def recent_entries(production: Sequence[ProductionEntry], limit: int = 10) -> List[ProductionEntry]:
    """最後新增的 limit 筆，新到舊（首頁取 5、報表取 10）"""
    if limit <= 0:
        return []
    return list(reversed(production[-limit:]))


def dashboard_summary(production: Sequence[ProductionEntry], today: date) -> DashboardSummary:
    """首頁當日統計。最近紀錄另由 recent_entries 提供：取最後新增的 N 筆、新到舊，
    而非集合前 N 筆反轉。"""
    todays = [p for p in production if p.date == today]
    return DashboardSummary(
        today=today,
        entries_today=len(todays),
        workers_today=len({p.employee_id for p in todays}),
        quantity_today=sum((p.quantity for p in todays), ZERO),
        total_entries=len(production),
    )
