"""Construlog - 工地產值與薪資月結 API"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from construlog import config as app_config
from construlog.database import init_db
from construlog.routers import (
    backup_restore,
    catalog,
    employees,
    payroll,
    production,
    reports,
)
from construlog.services.backup_job import run_scheduled_backup

logger = logging.getLogger(__name__)
_scheduler: AsyncIOScheduler | None = None


async def _daily_backup_job():
    try:
        await run_scheduled_backup()
    except Exception:
        logger.exception("每日資料備份排程執行失敗")


def _parse_schedule_time(value: str) -> tuple[int, int]:
    """HH:MM → (hour, minute)；格式錯誤時回傳 (0, 0)"""
    try:
        parts = value.strip().split(":")
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 else 0
    except (ValueError, IndexError):
        logger.warning("backup_schedule_time 格式錯誤：%r，改用 00:00", value)
        return 0, 0
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        logger.warning("backup_schedule_time 超出範圍：%r，改用 00:00", value)
        return 0, 0
    return hour, minute


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    global _scheduler
    _scheduler = AsyncIOScheduler()
    hour, minute = _parse_schedule_time(app_config.settings.backup_schedule_time)
    _scheduler.add_job(
        _daily_backup_job,
        "cron",
        hour=hour,
        minute=minute,
        id="construlog_daily_backup",
        replace_existing=True,
    )
    _scheduler.start()
    yield
    if _scheduler:
        _scheduler.shutdown(wait=False)


app = FastAPI(
    title=app_config.settings.app_name,
    description="Controle de produção e folha de pagamento de obra",
    version="1.0.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=app_config.settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(employees.router)
app.include_router(catalog.router)
app.include_router(production.router)
app.include_router(payroll.router)
app.include_router(reports.router)
app.include_router(backup_restore.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """未預期錯誤記錄後回 500；HTTPException 交回 FastAPI 處理"""
    if isinstance(exc, HTTPException):
        raise exc
    logger.error("未處理的錯誤：%s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": str(exc) or "Erro interno do servidor"})


@app.get("/")
def home():
    return {"message": "Construlog em execução"}
