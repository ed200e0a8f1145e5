"""資料庫模型 - 本機 key-value 儲存。
員工、產值紀錄、每月預支三個集合各以一個 key 存整包 JSON；讀取一律整包、寫入一律整包覆寫。"""
from datetime import datetime
from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from construlog.database import Base


class StoredCollection(Base):
    """整包集合（JSON）；key 例：construlog_employees / construlog_production / construlog_advances"""
    __tablename__ = "stored_collections"

    key: Mapped[str] = mapped_column(String(60), primary_key=True, comment="集合鍵")
    payload: Mapped[str] = mapped_column(Text, comment="JSON 陣列；金額以字串保存以確保精度")
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
