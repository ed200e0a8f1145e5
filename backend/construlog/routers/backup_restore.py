"""資料備份與還原（災難復原）：員工、產值紀錄、每月預支三個集合。"""
import zipfile

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from fastapi.responses import FileResponse, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from construlog.database import get_db
from construlog import crud
from construlog.services.backup_job import (
    build_backup_buffer,
    get_backup_path,
    list_backup_files,
    parse_backup_workbook,
)
from construlog.utils.http_headers import XLSX_MEDIA_TYPE, build_content_disposition

router = APIRouter(prefix="/api/backup", tags=["backup-restore"])


@router.get("/export")
async def export_backup(db: AsyncSession = Depends(get_db)):
    """匯出完整資料為 Excel（employees / production / advances 各一 Sheet）。檔名 construlog_backup_YYYYMMDD_HHMMSS.xlsx。"""
    employees = await crud.load_employees(db)
    production = await crud.load_production(db)
    advances = await crud.load_advances(db)
    buf, filename = build_backup_buffer(employees, production, advances)
    return StreamingResponse(
        buf,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": build_content_disposition(filename)},
    )


@router.get("/history")
async def backup_history():
    """列出排程備份檔，依時間由新到舊。"""
    return list_backup_files()


@router.get("/download/{filename}")
async def download_backup(filename: str):
    """下載指定歷史備份檔。檔名須符合白名單 construlog_backup_YYYYMMDD_HHMMSS.xlsx，防路徑穿越。"""
    path = get_backup_path(filename)
    if not path:
        raise HTTPException(status_code=404, detail="Backup não encontrado ou nome de arquivo inválido.")
    return FileResponse(path, filename=path.name, media_type=XLSX_MEDIA_TYPE)


@router.post("/restore")
async def restore_backup(
    file: UploadFile = File(...),
    confirm: str = Form(..., description="輸入 yes 確認覆蓋現有資料"),
    db: AsyncSession = Depends(get_db),
):
    """上傳本系統匯出的 Excel，整包覆寫三個集合。需二次確認（confirm=yes）；任一列無法解析則不寫入。"""
    if confirm.strip().lower() != "yes":
        raise HTTPException(status_code=400, detail="Confirme a restauração digitando yes.")

    if not file.filename or not file.filename.lower().endswith(".xlsx"):
        raise HTTPException(status_code=400, detail="Envie um arquivo .xlsx.")

    content = await file.read()
    try:
        contents = parse_backup_workbook(content)
    except (zipfile.BadZipFile, OSError, ValueError, KeyError) as e:
        raise HTTPException(status_code=400, detail=f"Falha ao ler o arquivo: {e}")
    if contents.errors:
        raise HTTPException(status_code=400, detail={"message": "Backup inválido", "errors": contents.errors})

    await crud.save_employees(db, contents.employees)
    await crud.save_production(db, contents.production)
    await crud.save_advances(db, contents.advances)
    return {
        "message": "Restauração concluída",
        "restored_employees": len(contents.employees),
        "restored_production": len(contents.production),
        "restored_advances": len(contents.advances),
    }
