"""
員工名冊純函式單元測試。
覆蓋：登錄（預設 FGTS/INSS %、必填）、編輯、啟用切換、刪除後產值顯示 Desconhecido、搜尋。
"""
from decimal import Decimal
import pytest

from construlog.config import settings
from construlog.schemas import EmployeeCreate, EmployeeUpdate
from construlog.services.employee_registry import (
    UNKNOWN_EMPLOYEE_NAME,
    EmployeeNotFoundError,
    EmployeeValidationError,
    active_employees,
    delete_employee,
    get_employee,
    index_by_id,
    register_employee,
    resolve_employee_name,
    search_employees,
    toggle_active,
    update_employee,
)


def _register(employees, **overrides):
    data = {"name": "José Silva", "site": "Torre A", "role": "Servente"}
    data.update(overrides)
    return register_employee(employees, EmployeeCreate(**data))


def test_register_uses_default_percents_and_is_active():
    employees = _register([])
    emp = employees[0]
    assert emp.id
    assert emp.active is True
    assert emp.role == "Servente"
    assert emp.fgts_percent == Decimal(str(settings.default_fgts_percent))
    assert emp.inss_percent == Decimal(str(settings.default_inss_percent))
    assert emp.gross_salary == Decimal("0")


def test_register_coerces_salary_input():
    emp = _register([], gross_salary="abc", net_salary="-10", fgts_percent="7,5")[0]
    assert emp.gross_salary == Decimal("0")
    assert emp.net_salary == Decimal("0")
    assert emp.fgts_percent == Decimal("7.5")


def test_register_requires_name_and_site():
    with pytest.raises(EmployeeValidationError):
        _register([], name="   ")
    with pytest.raises(EmployeeValidationError):
        _register([], site="")


def test_register_assigns_distinct_ids():
    employees = _register(_register([]), name="Outro")
    assert len({e.id for e in employees}) == 2


def test_update_merges_given_fields_only():
    employees = _register([])
    emp_id = employees[0].id
    updated = update_employee(employees, emp_id, EmployeeUpdate(site=" Torre B ", net_salary="900.5"))
    emp = updated[0]
    assert emp.id == emp_id
    assert emp.name == "José Silva"
    assert emp.site == "Torre B"
    assert emp.net_salary == Decimal("900.5")


def test_update_rejects_blank_name_and_unknown_id():
    employees = _register([])
    with pytest.raises(EmployeeValidationError):
        update_employee(employees, employees[0].id, EmployeeUpdate(name=" "))
    with pytest.raises(EmployeeNotFoundError):
        update_employee(employees, "missing", EmployeeUpdate(name="X"))


def test_toggle_active_and_active_list():
    employees = _register(_register([]), name="Outro")
    emp_id = employees[0].id
    toggled = toggle_active(employees, emp_id)
    assert get_employee(toggled, emp_id).active is False
    assert [e.name for e in active_employees(toggled)] == ["Outro"]
    assert get_employee(toggle_active(toggled, emp_id), emp_id).active is True


def test_delete_leaves_dangling_name_placeholder():
    employees = _register([])
    emp_id = employees[0].id
    assert resolve_employee_name(index_by_id(employees), emp_id) == "José Silva"
    remaining = delete_employee(employees, emp_id)
    assert remaining == []
    assert resolve_employee_name(index_by_id(remaining), emp_id) == UNKNOWN_EMPLOYEE_NAME
    with pytest.raises(EmployeeNotFoundError):
        delete_employee(remaining, emp_id)


def test_search_by_partial_name_case_insensitive():
    employees = _register(_register([]), name="Maria Souza")
    assert [e.name for e in search_employees(employees, "sou")] == ["Maria Souza"]
    assert len(search_employees(employees, "  ")) == 2
    assert len(search_employees(employees, None)) == 2
