"""報表：依服務/依員工產值合計、最近紀錄、首頁當日統計 - 可匯出 Excel"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from construlog.database import get_db
from construlog import crud, schemas
from construlog.routers.production import production_to_read
from construlog.services.employee_registry import index_by_id
from construlog.services.payroll_export import build_reports_excel
from construlog.services.reporting import by_employee, by_service, dashboard_summary, recent_entries
from construlog.utils.http_headers import XLSX_MEDIA_TYPE, build_content_disposition

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/by-service", response_model=List[schemas.ReportItem])
async def report_by_service(db: AsyncSession = Depends(get_db)):
    return by_service(await crud.load_production(db))


@router.get("/by-employee", response_model=List[schemas.ReportItem])
async def report_by_employee(db: AsyncSession = Depends(get_db)):
    """產值前 8 名員工"""
    production = await crud.load_production(db)
    employees = await crud.load_employees(db)
    return by_employee(production, employees)


@router.get("/recent", response_model=List[schemas.ProductionRead])
async def report_recent(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    production = await crud.load_production(db)
    index = index_by_id(await crud.load_employees(db))
    return [production_to_read(p, index) for p in recent_entries(production, limit)]


@router.get("/dashboard", response_model=schemas.DashboardSummary)
async def report_dashboard(
    today: Optional[date] = Query(None, description="預設為今天"),
    db: AsyncSession = Depends(get_db),
):
    production = await crud.load_production(db)
    return dashboard_summary(production, today or date.today())


@router.get("/export")
async def export_reports_excel(db: AsyncSession = Depends(get_db)):
    """匯出依服務、依員工兩張工作表"""
    production = await crud.load_production(db)
    employees = await crud.load_employees(db)
    content = build_reports_excel(by_service(production), by_employee(production, employees))
    filename = f"Relatório_de_Produção_{date.today().isoformat()}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": build_content_disposition(filename)},
    )
