"""員工名冊 API：列表/搜尋、登錄、編輯、刪除、啟用切換。每次寫入皆整包覆寫員工集合。"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from construlog.database import get_db
from construlog import crud, schemas
from construlog.services import employee_registry as registry
from construlog.services.employee_registry import EmployeeNotFoundError, EmployeeValidationError

router = APIRouter(prefix="/api/employees", tags=["employees"])

NOT_FOUND_DETAIL = "Funcionário não encontrado"


@router.get("", response_model=List[schemas.Employee])
async def list_employees(
    search: Optional[str] = Query(None, description="搜尋姓名（部分符合）"),
    active_only: bool = Query(False, description="只列啟用中員工（新增產值時選單用）"),
    db: AsyncSession = Depends(get_db),
):
    employees = await crud.load_employees(db)
    if active_only:
        employees = registry.active_employees(employees)
    return registry.search_employees(employees, search)


@router.get("/{employee_id}", response_model=schemas.Employee)
async def get_employee(employee_id: str, db: AsyncSession = Depends(get_db)):
    employees = await crud.load_employees(db)
    try:
        return registry.get_employee(employees, employee_id)
    except EmployeeNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)


@router.post("", response_model=schemas.Employee, status_code=201)
async def create_employee(data: schemas.EmployeeCreate, db: AsyncSession = Depends(get_db)):
    employees = await crud.load_employees(db)
    try:
        updated = registry.register_employee(employees, data)
    except EmployeeValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    await crud.save_employees(db, updated)
    return updated[-1]


@router.patch("/{employee_id}", response_model=schemas.Employee)
async def update_employee(
    employee_id: str,
    data: schemas.EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
):
    employees = await crud.load_employees(db)
    try:
        updated = registry.update_employee(employees, employee_id, data)
    except EmployeeNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    except EmployeeValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    await crud.save_employees(db, updated)
    return registry.get_employee(updated, employee_id)


@router.post("/{employee_id}/toggle-active", response_model=schemas.Employee)
async def toggle_employee_active(employee_id: str, db: AsyncSession = Depends(get_db)):
    employees = await crud.load_employees(db)
    try:
        updated = registry.toggle_active(employees, employee_id)
    except EmployeeNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    await crud.save_employees(db, updated)
    return registry.get_employee(updated, employee_id)


@router.delete("/{employee_id}", status_code=204)
async def delete_employee(employee_id: str, db: AsyncSession = Depends(get_db)):
    """刪除員工；產值紀錄保留（之後顯示為 Desconhecido）"""
    employees = await crud.load_employees(db)
    try:
        updated = registry.delete_employee(employees, employee_id)
    except EmployeeNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    await crud.save_employees(db, updated)
