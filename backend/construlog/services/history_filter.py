"""產值歷史查詢：條件皆為 AND，未填的條件視為全部符合；結果新到舊（與新增順序相反），不分頁。"""
from typing import List, Sequence

from construlog.schemas import Employee, HistoryFilters, ProductionEntry
from construlog.services.employee_registry import index_by_id


def _matches_search(entry: ProductionEntry, employee_name: str, needle: str) -> bool:
    # 員工姓名、工地、樓層、服務名稱任一包含即可（不分大小寫）
    return (
        needle in employee_name.lower()
        or needle in entry.site.lower()
        or needle in (entry.pavimento or "").lower()
        or needle in entry.service_type.lower()
    )


def filter_entries(
    production: Sequence[ProductionEntry],
    employees: Sequence[Employee],
    filters: HistoryFilters,
) -> List[ProductionEntry]:
    index = index_by_id(employees)
    needle = (filters.search or "").strip().lower()
    out = []
    for p in production:
        if needle:
            # 懸空參照不以 Desconhecido 比對，等同無姓名
            emp = index.get(p.employee_id)
            name = emp.name if emp else ""
            if not _matches_search(p, name, needle):
                continue
        if filters.employee_id and p.employee_id != filters.employee_id:
            continue
        if filters.service_type and p.service_type != filters.service_type:
            continue
        if filters.date_start and p.date < filters.date_start:
            continue
        if filters.date_end and p.date > filters.date_end:
            continue
        out.append(p)
    out.reverse()
    return out
