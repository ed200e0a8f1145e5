"""員工名冊純函式：登錄、編輯、刪除、啟用切換、姓名搜尋與 employee_id 解析。
皆回傳新的 list，不修改傳入集合；由呼叫端整包寫回。"""
import uuid
from typing import Dict, List, Mapping, Optional, Sequence

from construlog.config import settings
from construlog.schemas import Employee, EmployeeCreate, EmployeeUpdate
from construlog.services.money import to_non_negative

# 找不到員工時的顯示名稱（產值仍計入各項合計）
UNKNOWN_EMPLOYEE_NAME = "Desconhecido"


class EmployeeValidationError(ValueError):
    """登錄員工缺姓名或工地"""


class EmployeeNotFoundError(LookupError):
    pass


def index_by_id(employees: Sequence[Employee]) -> Dict[str, Employee]:
    return {e.id: e for e in employees}


def resolve_employee_name(index: Mapping[str, Employee], employee_id: str) -> str:
    emp = index.get(employee_id)
    return emp.name if emp else UNKNOWN_EMPLOYEE_NAME


def get_employee(employees: Sequence[Employee], employee_id: str) -> Employee:
    for e in employees:
        if e.id == employee_id:
            return e
    raise EmployeeNotFoundError(employee_id)


def active_employees(employees: Sequence[Employee]) -> List[Employee]:
    """可被選為產值紀錄對象的員工"""
    return [e for e in employees if e.active]


def search_employees(employees: Sequence[Employee], term: Optional[str]) -> List[Employee]:
    if not term or not term.strip():
        return list(employees)
    needle = term.strip().lower()
    return [e for e in employees if needle in e.name.lower()]


def register_employee(employees: Sequence[Employee], data: EmployeeCreate) -> List[Employee]:
    name = (data.name or "").strip()
    site = (data.site or "").strip()
    if not name or not site:
        raise EmployeeValidationError("Nome e obra são obrigatórios.")
    fgts = data.fgts_percent if data.fgts_percent is not None else to_non_negative(settings.default_fgts_percent)
    inss = data.inss_percent if data.inss_percent is not None else to_non_negative(settings.default_inss_percent)
    emp = Employee(
        id=uuid.uuid4().hex,
        name=name,
        role=data.role,
        site=site,
        active=True,
        gross_salary=data.gross_salary,
        net_salary=data.net_salary,
        fgts_percent=fgts,
        inss_percent=inss,
    )
    return [*employees, emp]


def update_employee(employees: Sequence[Employee], employee_id: str, changes: EmployeeUpdate) -> List[Employee]:
    """合併有傳的欄位；id 不變。姓名/工地不可改成空白。"""
    update_data = {k: v for k, v in changes.model_dump(exclude_unset=True).items() if v is not None}
    for k in ("name", "site"):
        if k in update_data:
            value = update_data[k].strip()
            if not value:
                raise EmployeeValidationError("Nome e obra são obrigatórios.")
            update_data[k] = value
    get_employee(employees, employee_id)
    return [e.model_copy(update=update_data) if e.id == employee_id else e for e in employees]


def toggle_active(employees: Sequence[Employee], employee_id: str) -> List[Employee]:
    current = get_employee(employees, employee_id)
    return [e.model_copy(update={"active": not current.active}) if e.id == employee_id else e for e in employees]


def delete_employee(employees: Sequence[Employee], employee_id: str) -> List[Employee]:
    """刪除員工；其產值紀錄保留，之後顯示為 Desconhecido。"""
    get_employee(employees, employee_id)
    return [e for e in employees if e.id != employee_id]
