"""持久層：員工、產值紀錄、每月預支三個集合整包讀寫。
沒有查詢能力；呼叫端一律讀全部、算出新集合、整包覆寫。金額以字串寫入 JSON 以保留精度。"""
import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from construlog.models import StoredCollection
from construlog.schemas import AdvanceKey, Employee, MonthlyAdvance, ProductionEntry

logger = logging.getLogger(__name__)

EMPLOYEES_KEY = "construlog_employees"
PRODUCTION_KEY = "construlog_production"
ADVANCES_KEY = "construlog_advances"
COLLECTION_KEYS = (EMPLOYEES_KEY, PRODUCTION_KEY, ADVANCES_KEY)


async def _load_payload(db: AsyncSession, key: str) -> Optional[Any]:
    row = await db.get(StoredCollection, key)
    if row is None or not row.payload:
        return None
    return json.loads(row.payload)


async def _save_payload(db: AsyncSession, key: str, payload: Any) -> None:
    text = json.dumps(payload, ensure_ascii=False)
    row = await db.get(StoredCollection, key)
    if row is None:
        db.add(StoredCollection(key=key, payload=text))
    else:
        row.payload = text
    await db.flush()


# ---------- 員工 ----------
async def load_employees(db: AsyncSession) -> List[Employee]:
    data = await _load_payload(db, EMPLOYEES_KEY)
    return [Employee.model_validate(item) for item in data or []]


async def save_employees(db: AsyncSession, employees: Sequence[Employee]) -> None:
    await _save_payload(db, EMPLOYEES_KEY, [e.model_dump(mode="json") for e in employees])
    logger.info("寫入員工 %d 筆", len(employees))


# ---------- 產值紀錄 ----------
async def load_production(db: AsyncSession) -> List[ProductionEntry]:
    data = await _load_payload(db, PRODUCTION_KEY)
    return [ProductionEntry.model_validate(item) for item in data or []]


async def save_production(db: AsyncSession, entries: Sequence[ProductionEntry]) -> None:
    await _save_payload(db, PRODUCTION_KEY, [p.model_dump(mode="json") for p in entries])
    logger.info("寫入產值紀錄 %d 筆", len(entries))


# ---------- 每月預支 ----------
def advances_to_rows(advances: Mapping[AdvanceKey, Decimal]) -> List[MonthlyAdvance]:
    return [
        MonthlyAdvance(employee_id=k.employee_id, year=k.year, month=k.month, amount=amount)
        for k, amount in advances.items()
    ]


def rows_to_advances(rows: Sequence[MonthlyAdvance]) -> Dict[AdvanceKey, Decimal]:
    return {row.key: row.amount for row in rows}


async def load_advances(db: AsyncSession) -> Dict[AdvanceKey, Decimal]:
    data = await _load_payload(db, ADVANCES_KEY)
    return rows_to_advances([MonthlyAdvance.model_validate(item) for item in data or []])


async def save_advances(db: AsyncSession, advances: Mapping[AdvanceKey, Decimal]) -> None:
    rows = advances_to_rows(advances)
    await _save_payload(db, ADVANCES_KEY, [r.model_dump(mode="json") for r in rows])
    logger.info("寫入預支 %d 筆", len(rows))
