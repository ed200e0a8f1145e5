"""
Excel 匯出與備份/還原測試。
覆蓋：月結 Excel 版面、報表工作表、備份檔可完整還原、錯誤列不寫入、排程備份保留份數、檔名白名單。
"""
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
import os
import pytest
from fastapi import HTTPException, UploadFile
from openpyxl import Workbook, load_workbook
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from construlog.config import settings
from construlog.database import Base
from construlog import crud
from construlog.routers import backup_restore
from construlog.schemas import AdvanceKey, Employee, ProductionEntry, ReportItem
from construlog.services.backup_job import (
    build_backup_buffer,
    get_backup_path,
    list_backup_files,
    parse_backup_workbook,
    run_scheduled_backup,
)
from construlog.services.payroll_engine import build_payroll_summary
from construlog.services.payroll_export import PAYROLL_HEADERS, build_payroll_excel, build_reports_excel
from construlog.utils.http_headers import ascii_fallback, build_content_disposition


@pytest.fixture
async def async_session():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield session_factory
    await engine.dispose()


def _employees():
    return [
        Employee(id="e1", name="João", site="Torre A", gross_salary="1000", net_salary="800"),
        Employee(id="e2", name="Maria", site="Torre B", gross_salary="1000", net_salary="800", active=False),
    ]


def _production():
    return [
        ProductionEntry(
            id="p1", date=date(2025, 3, 5), employee_id="e1", site="Torre A", pavimento="1º",
            service_type="Alvenaria Interna", unit_price=Decimal("10.00"), quantity=Decimal("127"),
            unit="m²", total_value=Decimal("1270.00"), created_at=datetime(2025, 3, 5, 10, 0),
        ),
        ProductionEntry(
            id="p2", date=date(2025, 3, 6), employee_id="e2", site="Torre B", pavimento="2º",
            service_type="Verga", unit_price=Decimal("20.00"), quantity=Decimal("42.5"),
            unit="un", total_value=Decimal("850.00"), observations="Sala 2",
            created_at=datetime(2025, 3, 6, 11, 30),
        ),
    ]


def _advances():
    return {AdvanceKey("e1", 2025, 3): Decimal("25.50")}


# ---------- 月結 / 報表 Excel ----------


def test_payroll_excel_layout():
    summary = build_payroll_summary(_employees(), _production(), {}, 2025, 3)
    wb = load_workbook(BytesIO(build_payroll_excel(summary)))
    ws = wb.active
    assert ws.title == "Folha 03-2025"
    assert [c.value for c in ws[1]] == PAYROLL_HEADERS
    assert ws.cell(row=2, column=1).value == "João"
    # João：1270 - 800 - 80 - 90 = 300；Maria：850 - 970 = -120，顯示為 0
    assert ws.cell(row=2, column=12).value == 300
    assert ws.cell(row=3, column=12).value == 0
    assert ws.cell(row=5, column=1).value == "Total a sacar em dinheiro"
    assert ws.cell(row=5, column=12).value == 300


def test_reports_excel_sheets():
    content = build_reports_excel([ReportItem(name="Reboco", value=Decimal("12.5"))], [])
    wb = load_workbook(BytesIO(content))
    assert wb.sheetnames == ["Por Serviço", "Por Funcionário"]
    assert wb["Por Serviço"].cell(row=2, column=2).value == 12.5
    assert wb["Por Funcionário"].cell(row=2, column=1).value == "Sem dados"


def test_content_disposition_keeps_accented_name():
    header = build_content_disposition("Relatório_de_Produção_2025-03-10.xlsx")
    assert 'filename="Relatorio_de_Producao_2025-03-10.xlsx"' in header
    assert "filename*=UTF-8''Relat%C3%B3rio_de_Produ%C3%A7%C3%A3o_2025-03-10.xlsx" in header
    assert ascii_fallback("Março") == "Marco"


# ---------- 備份 / 還原 ----------


def test_backup_workbook_round_trip():
    buf, filename = build_backup_buffer(_employees(), _production(), _advances())
    assert filename.startswith("construlog_backup_") and filename.endswith(".xlsx")
    contents = parse_backup_workbook(buf.getvalue())
    assert contents.errors == []
    assert contents.employees == _employees()
    assert contents.production == _production()
    assert contents.advances == _advances()


def test_backup_parse_recomputes_total_and_reports_bad_rows():
    buf, _ = build_backup_buffer(_employees(), _production(), _advances())
    wb = load_workbook(buf)
    ws = wb["production"]
    ws.cell(row=2, column=10, value="9999")          # total_value 被竄改
    ws.cell(row=3, column=2, value="not-a-date")
    out = BytesIO()
    wb.save(out)

    contents = parse_backup_workbook(out.getvalue())
    assert [p.total_value for p in contents.production] == [Decimal("1270.00")]
    assert len(contents.errors) == 1
    assert contents.errors[0].startswith("production 第 3 列")


def test_backup_without_employees_sheet_is_error():
    wb = Workbook()
    wb.active.title = "outra"
    out = BytesIO()
    wb.save(out)
    contents = parse_backup_workbook(out.getvalue())
    assert contents.errors
    assert contents.employees == []


@pytest.mark.asyncio
async def test_restore_overwrites_all_collections(async_session):
    buf, filename = build_backup_buffer(_employees(), _production(), _advances())
    async with async_session() as db:
        await crud.save_employees(db, [Employee(id="old", name="Antigo", site="X")])
        result = await backup_restore.restore_backup(
            file=UploadFile(file=BytesIO(buf.getvalue()), filename=filename), confirm="yes", db=db
        )
        assert result["restored_employees"] == 2
        assert result["restored_production"] == 2
        assert result["restored_advances"] == 1
        assert await crud.load_employees(db) == _employees()
        assert await crud.load_advances(db) == _advances()


@pytest.mark.asyncio
async def test_restore_requires_confirmation_and_xlsx(async_session):
    buf, filename = build_backup_buffer(_employees(), [], {})
    async with async_session() as db:
        with pytest.raises(HTTPException) as exc_info:
            await backup_restore.restore_backup(
                file=UploadFile(file=BytesIO(buf.getvalue()), filename=filename), confirm="no", db=db
            )
        assert exc_info.value.status_code == 400
        with pytest.raises(HTTPException) as exc_info:
            await backup_restore.restore_backup(
                file=UploadFile(file=BytesIO(b"a,b"), filename="dados.csv"), confirm="yes", db=db
            )
        assert exc_info.value.status_code == 400
        with pytest.raises(HTTPException) as exc_info:
            await backup_restore.restore_backup(
                file=UploadFile(file=BytesIO(b"not a zip"), filename="dados.xlsx"), confirm="yes", db=db
            )
        assert exc_info.value.status_code == 400
        assert await crud.load_employees(db) == []


@pytest.mark.asyncio
async def test_scheduled_backup_writes_file_and_prunes(async_session, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "backup_dir", tmp_path)
    monkeypatch.setattr(settings, "backup_retention_count", 2)
    for name in ("construlog_backup_20240101_000000.xlsx", "construlog_backup_20240102_000000.xlsx"):
        (tmp_path / name).write_bytes(b"old")
        os.utime(tmp_path / name, (1_700_000_000, 1_700_000_000))

    async with async_session() as db:
        await crud.save_employees(db, _employees())
        await db.commit()

    filename = await run_scheduled_backup(session_factory=async_session)
    assert filename is not None
    files = [f["filename"] for f in list_backup_files()]
    assert len(files) == 2
    assert filename in files
    assert get_backup_path(filename) == tmp_path / filename
    assert not (tmp_path / ".construlog_backup.lock").exists()
    assert parse_backup_workbook((tmp_path / filename).read_bytes()).employees == _employees()


def test_backup_path_whitelist(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "backup_dir", tmp_path)
    (tmp_path / "construlog_backup_20250101_120000.xlsx").write_bytes(b"x")
    assert get_backup_path("construlog_backup_20250101_120000.xlsx") is not None
    assert get_backup_path("../construlog.db") is None
    assert get_backup_path("construlog_backup_20250101_999999.xlsx") is None
