"""資料自動備份：三個集合寫成 Excel、存入 backup_dir、僅保留最近 N 份。含檔案鎖防多實例重複執行。
同一份 Excel 亦供手動下載與還原（parse_backup_workbook）。"""
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from openpyxl import Workbook, load_workbook
from pydantic import ValidationError

from construlog.config import settings, BASE_DIR
from construlog import crud
from construlog.schemas import AdvanceKey, Employee, MonthlyAdvance, ProductionEntry
from construlog.services.production_entry import compute_total

logger = logging.getLogger(__name__)

# 白名單：僅允許本系統產出的備份檔名（防路徑穿越）
BACKUP_FILENAME_PATTERN = re.compile(r"^construlog_backup_\d{8}_\d{6}\.xlsx$")

EMPLOYEE_COLUMNS = [
    "id", "name", "role", "site", "active",
    "gross_salary", "net_salary", "fgts_percent", "inss_percent",
]
PRODUCTION_COLUMNS = [
    "id", "date", "employee_id", "site", "pavimento", "service_type",
    "unit_price", "quantity", "unit", "total_value", "observations", "created_at",
]
ADVANCE_COLUMNS = ["employee_id", "year", "month", "amount"]


@dataclass
class BackupContents:
    employees: List[Employee] = field(default_factory=list)
    production: List[ProductionEntry] = field(default_factory=list)
    advances: Dict[AdvanceKey, Decimal] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)


def _cell_value(v) -> str:
    if v is None:
        return ""
    if isinstance(v, bool):
        return "1" if v else "0"
    return str(v)


def _write_sheet(ws, columns: List[str], rows: List[dict]) -> None:
    for col, name in enumerate(columns, 1):
        ws.cell(row=1, column=col, value=name)
    for r, row in enumerate(rows, 2):
        for c, name in enumerate(columns, 1):
            ws.cell(row=r, column=c, value=_cell_value(row.get(name)))


def build_backup_buffer(
    employees: Sequence[Employee],
    production: Sequence[ProductionEntry],
    advances: Mapping[AdvanceKey, Decimal],
) -> tuple[BytesIO, str]:
    """依三個集合產生完整備份 Excel，回傳 (BytesIO, 檔名)。"""
    wb = Workbook()
    ws_emp = wb.active
    ws_emp.title = "employees"
    _write_sheet(ws_emp, EMPLOYEE_COLUMNS, [e.model_dump(mode="json") for e in employees])
    ws_prod = wb.create_sheet("production")
    _write_sheet(ws_prod, PRODUCTION_COLUMNS, [p.model_dump(mode="json") for p in production])
    ws_adv = wb.create_sheet("advances")
    _write_sheet(ws_adv, ADVANCE_COLUMNS, [a.model_dump(mode="json") for a in crud.advances_to_rows(advances)])

    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    filename = f"construlog_backup_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return buf, filename


def _read_rows(ws, columns: List[str]) -> List[tuple[int, dict]]:
    """第一列為標題；依標題名稱對應欄位，整列空白略過。回傳 (Excel 列號, dict)。"""
    rows = ws.iter_rows(values_only=True)
    header = next(rows, None) or ()
    positions = {str(h).strip(): i for i, h in enumerate(header) if h is not None}
    out = []
    for r, values in enumerate(rows, 2):
        if values is None or all(v is None or str(v).strip() == "" for v in values):
            continue
        row = {}
        for name in columns:
            i = positions.get(name)
            v = values[i] if i is not None and i < len(values) else None
            row[name] = "" if v is None else str(v).strip()
        out.append((r, row))
    return out


def _parse_bool(v: str) -> bool:
    return v.strip() in ("1", "true", "True", "yes", "Y")


def parse_backup_workbook(content: bytes) -> BackupContents:
    """解析 build_backup_buffer 產出之 Excel。無法解析的列記入 errors，不中斷。
    產值紀錄的 total_value 依單價與數量重算。"""
    result = BackupContents()
    wb = load_workbook(BytesIO(content), read_only=True, data_only=True)
    if "employees" not in wb.sheetnames:
        result.errors.append("Excel 須包含 employees 工作表。")
        return result

    for r, row in _read_rows(wb["employees"], EMPLOYEE_COLUMNS):
        row["active"] = _parse_bool(row["active"])
        try:
            result.employees.append(Employee.model_validate(row))
        except ValidationError as e:
            result.errors.append(f"employees 第 {r} 列：{e.errors()[0].get('msg')}")

    if "production" in wb.sheetnames:
        for r, row in _read_rows(wb["production"], PRODUCTION_COLUMNS):
            try:
                entry = ProductionEntry.model_validate(row)
            except ValidationError as e:
                result.errors.append(f"production 第 {r} 列：{e.errors()[0].get('msg')}")
                continue
            total = compute_total(entry.quantity, entry.unit_price)
            if total != entry.total_value:
                logger.warning("備份第 %d 列產值總額 %s 與重算 %s 不符，以重算為準", r, entry.total_value, total)
                entry = entry.model_copy(update={"total_value": total})
            result.production.append(entry)

    if "advances" in wb.sheetnames:
        rows = []
        for r, row in _read_rows(wb["advances"], ADVANCE_COLUMNS):
            try:
                rows.append(MonthlyAdvance.model_validate(row))
            except ValidationError as e:
                result.errors.append(f"advances 第 {r} 列：{e.errors()[0].get('msg')}")
        result.advances = crud.rows_to_advances(rows)
    wb.close()
    return result


LOCK_FILENAME = ".construlog_backup.lock"
# 鎖檔超過此秒數視為前次執行中斷留下的殘檔
LOCK_STALE_SECONDS = 600


def _backup_dir() -> Path:
    """backup_dir 可為絕對路徑，或相對 backend/（BASE_DIR）"""
    p = Path(settings.backup_dir)
    return p if p.is_absolute() else BASE_DIR / p


def _backup_files(backup_dir: Path) -> List[Path]:
    """本系統產出的備份檔，新到舊"""
    files = [f for f in backup_dir.glob("construlog_backup_*.xlsx") if BACKUP_FILENAME_PATTERN.match(f.name)]
    return sorted(files, key=lambda f: (f.stat().st_mtime, f.name), reverse=True)


def _prune_old_backups(backup_dir: Path, keep: int) -> None:
    for old in _backup_files(backup_dir)[keep:]:
        try:
            old.unlink()
            logger.info("刪除舊備份 %s", old.name)
        except OSError as e:
            logger.warning("無法刪除舊備份 %s：%s", old.name, e)


def _try_lock(backup_dir: Path) -> bool:
    """建立鎖檔；已存在且未逾時則回傳 False（另一實例執行中）"""
    lock = backup_dir / LOCK_FILENAME
    try:
        lock.touch(exist_ok=False)
        return True
    except FileExistsError:
        age = time.time() - lock.stat().st_mtime
        if age <= LOCK_STALE_SECONDS:
            return False
        logger.warning("備份鎖已存在 %d 秒，視為殘檔並接手", int(age))
        lock.touch()
        return True


def _unlock(backup_dir: Path) -> None:
    (backup_dir / LOCK_FILENAME).unlink(missing_ok=True)


async def run_scheduled_backup(session_factory=None) -> Optional[str]:
    """排程備份一次：讀三個集合寫成 Excel 並清理舊檔。回傳檔名；另一實例執行中則回傳 None。"""
    if session_factory is None:
        from construlog.database import AsyncSessionLocal as session_factory
    backup_dir = _backup_dir()
    backup_dir.mkdir(parents=True, exist_ok=True)
    if not _try_lock(backup_dir):
        logger.info("另一個備份正在執行，略過本次")
        return None
    try:
        async with session_factory() as db:
            employees = await crud.load_employees(db)
            production = await crud.load_production(db)
            advances = await crud.load_advances(db)
        buf, filename = build_backup_buffer(employees, production, advances)
        (backup_dir / filename).write_bytes(buf.getvalue())
        logger.info("已寫入備份 %s（員工 %d、產值 %d、預支 %d）", filename, len(employees), len(production), len(advances))
        _prune_old_backups(backup_dir, settings.backup_retention_count)
        return filename
    finally:
        _unlock(backup_dir)


def list_backup_files() -> List[dict]:
    backup_dir = _backup_dir()
    if not backup_dir.is_dir():
        return []
    out = []
    for f in _backup_files(backup_dir):
        stat = f.stat()
        out.append({
            "filename": f.name,
            "created_at": datetime.fromtimestamp(stat.st_mtime).isoformat(),
            "size": stat.st_size,
        })
    return out


def get_backup_path(filename: str) -> Optional[Path]:
    """檔名須符合 BACKUP_FILENAME_PATTERN，否則回傳 None（不可帶路徑）"""
    if not filename or not BACKUP_FILENAME_PATTERN.match(filename):
        return None
    path = _backup_dir() / filename
    return path if path.is_file() else None
