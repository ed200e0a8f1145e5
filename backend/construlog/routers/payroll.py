"""薪資月結 API（Folha de Pagamento）：月結明細、薪資欄位就地修改、當月預支、Excel 匯出。"""
from fastapi import APIRouter, Depends, HTTPException, Path
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from construlog.database import get_db
from construlog import crud, schemas
from construlog.services.employee_registry import EmployeeNotFoundError, get_employee
from construlog.services.payroll_engine import (
    InvalidPayrollFieldError,
    build_payroll_summary,
    set_advance,
    update_payroll_field,
)
from construlog.services.payroll_export import build_payroll_excel
from construlog.utils.http_headers import XLSX_MEDIA_TYPE, build_content_disposition

router = APIRouter(prefix="/api/payroll", tags=["payroll"])

NOT_FOUND_DETAIL = "Funcionário não encontrado"


async def _summary(db: AsyncSession, year: int, month: int) -> schemas.PayrollSummary:
    employees = await crud.load_employees(db)
    production = await crud.load_production(db)
    advances = await crud.load_advances(db)
    return build_payroll_summary(employees, production, advances, year, month)


@router.get("/{year}/{month}", response_model=schemas.PayrollSummary)
async def get_payroll(
    year: int = Path(..., ge=1900, le=9999),
    month: int = Path(..., ge=1, le=12, description="月份 1~12"),
    db: AsyncSession = Depends(get_db),
):
    """當月每人結算與全隊需提領現金合計；附上一月/下一月供切換"""
    return await _summary(db, year, month)


@router.patch("/employees/{employee_id}", response_model=schemas.Employee)
async def update_employee_payroll_field(
    employee_id: str,
    body: schemas.PayrollFieldUpdate,
    db: AsyncSession = Depends(get_db),
):
    """修改單一薪資欄位（Salário Bruto / S. Líquido / FGTS % / INSS %），寫入前四捨五入至兩位"""
    employees = await crud.load_employees(db)
    try:
        updated = update_payroll_field(employees, employee_id, body.field, body.value)
    except InvalidPayrollFieldError:
        raise HTTPException(status_code=400, detail=f"Campo inválido: {body.field}")
    except EmployeeNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    await crud.save_employees(db, updated)
    return get_employee(updated, employee_id)


@router.put("/{year}/{month}/advances/{employee_id}", response_model=schemas.MonthlyAdvance)
async def put_advance(
    employee_id: str,
    body: schemas.AdvanceUpdate,
    year: int = Path(..., ge=1900, le=9999),
    month: int = Path(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db),
):
    """設定當月預支（Vale / Adiantamento）；同員工同月覆寫，不累加"""
    employees = await crud.load_employees(db)
    try:
        get_employee(employees, employee_id)
    except EmployeeNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    advances = await crud.load_advances(db)
    updated = set_advance(advances, employee_id, year, month, body.amount)
    await crud.save_advances(db, updated)
    key = schemas.AdvanceKey(employee_id, year, month)
    return schemas.MonthlyAdvance(employee_id=employee_id, year=year, month=month, amount=updated[key])


@router.get("/{year}/{month}/export")
async def export_payroll_excel(
    year: int = Path(..., ge=1900, le=9999),
    month: int = Path(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db),
):
    summary = await _summary(db, year, month)
    content = build_payroll_excel(summary)
    filename = f"Folha_de_Pagamento_{year}_{month:02d}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": build_content_disposition(filename)},
    )
