"""產值紀錄 API：歷史查詢（多條件篩選）、新增、編輯、刪除。每次寫入皆整包覆寫產值集合。"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from construlog.database import get_db
from construlog import crud, schemas
from construlog.services.employee_registry import index_by_id, resolve_employee_name
from construlog.services.history_filter import filter_entries
from construlog.services.production_entry import (
    ProductionEntryNotFoundError,
    ProductionValidationError,
    create_or_update_entry,
    delete_entry,
    find_entry,
)

router = APIRouter(prefix="/api/production", tags=["production"])

NOT_FOUND_DETAIL = "Registro de produção não encontrado"


def _validation_detail(e: ProductionValidationError) -> dict:
    return {"message": str(e), "missing_fields": e.missing_fields}


def production_to_read(entry: schemas.ProductionEntry, index) -> schemas.ProductionRead:
    return schemas.ProductionRead(
        **entry.model_dump(),
        employee_name=resolve_employee_name(index, entry.employee_id),
    )


@router.get("", response_model=List[schemas.ProductionRead])
async def list_production(
    search: Optional[str] = Query(None, description="姓名/工地/樓層/服務 關鍵字"),
    employee_id: Optional[str] = Query(None),
    service_type: Optional[str] = Query(None),
    date_start: Optional[date] = Query(None, description="起日（含）"),
    date_end: Optional[date] = Query(None, description="訖日（含）"),
    db: AsyncSession = Depends(get_db),
):
    """歷史列表，新到舊"""
    employees = await crud.load_employees(db)
    production = await crud.load_production(db)
    filters = schemas.HistoryFilters(
        search=search,
        employee_id=employee_id,
        service_type=service_type,
        date_start=date_start,
        date_end=date_end,
    )
    index = index_by_id(employees)
    return [production_to_read(p, index) for p in filter_entries(production, employees, filters)]


@router.get("/{entry_id}", response_model=schemas.ProductionRead)
async def get_production_entry(entry_id: str, db: AsyncSession = Depends(get_db)):
    employees = await crud.load_employees(db)
    production = await crud.load_production(db)
    try:
        entry = find_entry(production, entry_id)
    except ProductionEntryNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    return production_to_read(entry, index_by_id(employees))


@router.post("", response_model=schemas.ProductionEntry, status_code=201)
async def create_production_entry(data: schemas.ProductionDraft, db: AsyncSession = Depends(get_db)):
    production = await crud.load_production(db)
    try:
        updated = create_or_update_entry(production, data)
    except ProductionValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e))
    await crud.save_production(db, updated)
    return updated[-1]


@router.put("/{entry_id}", response_model=schemas.ProductionEntry)
async def update_production_entry(
    entry_id: str,
    data: schemas.ProductionDraft,
    db: AsyncSession = Depends(get_db),
):
    """編輯（含日期）；單價、總額依服務與數量重算"""
    production = await crud.load_production(db)
    try:
        updated = create_or_update_entry(production, data, editing_id=entry_id)
    except ProductionValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e))
    except ProductionEntryNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    await crud.save_production(db, updated)
    return find_entry(updated, entry_id)


@router.delete("/{entry_id}", status_code=204)
async def delete_production_entry(entry_id: str, db: AsyncSession = Depends(get_db)):
    production = await crud.load_production(db)
    try:
        updated = delete_entry(production, entry_id)
    except ProductionEntryNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    await crud.save_production(db, updated)
