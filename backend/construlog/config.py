"""應用設定與環境變數"""
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings

# 後端專案根目錄（backend/），相對路徑以此為基準，不受工作目錄影響
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    app_name: str = "Construlog - Controle de Produção"
    debug: bool = False
    # SQLite 範例：sqlite+aiosqlite:///./construlog.db
    database_url: str = "sqlite+aiosqlite:///./construlog.db"
    # 服務價目表 YAML；未設時讀 backend/config/service_catalog.yaml，檔案不存在則用內建預設
    service_catalog_path: Optional[Path] = None
    # 新進員工預設扣繳比例（%）
    default_fgts_percent: float = 8
    default_inss_percent: float = 9
    # 自動備份：存放目錄（相對專案根或絕對路徑）、保留份數、每日執行時間（HH:MM）
    backup_dir: Path = Path("server/backup/construlog")
    backup_retention_count: int = 30
    backup_schedule_time: str = "00:00"
    cors_origins: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    class Config:
        env_file = str(BASE_DIR / ".env")


settings = Settings()
