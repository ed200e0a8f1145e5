"""
產值紀錄寫入路徑（新增 / 編輯 / 刪除）。

- 必填：employee_id、site（工地）、pavimento（樓層）、quantity > 0；缺任一項整筆不存。
- 服務在價目表內：單價、單位一律取價目表（Outros (Manual) 單價為 0）；
  價目表外的自填服務名稱才採用表單單價與單位。
- total_value 一律重算 round2(quantity * unit_price)，不接受外部傳入值。
- 編輯保留 id、created_at 與在集合中的位置。
"""
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple

from construlog.schemas import ProductionDraft, ProductionEntry, ServiceSelection
from construlog.services.money import round2, to_decimal
from construlog.services.service_catalog import default_service, find_service

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Preencha os campos obrigatórios (Funcionário, Obra, Pavimento e Quantidade)."


class ProductionValidationError(ValueError):
    """必填欄位缺漏；missing_fields 列出所有缺漏欄位"""

    def __init__(self, missing_fields: Sequence[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(REQUIRED_FIELDS_MESSAGE)


class ProductionEntryNotFoundError(LookupError):
    pass


class UnknownServiceError(LookupError):
    pass


def compute_total(quantity: Any, unit_price: Any) -> Decimal:
    return round2(to_decimal(quantity) * to_decimal(unit_price))


def select_service(name: str, quantity: Any = 0) -> ServiceSelection:
    """表單選服務：帶出價目表單價與單位，並以目前數量試算總額"""
    service = find_service(name)
    if service is None:
        raise UnknownServiceError(name)
    qty = to_decimal(quantity)
    return ServiceSelection(
        service_type=service.name,
        unit_price=service.price,
        unit=service.unit,
        quantity=qty,
        total_value=compute_total(qty, service.price),
    )


def missing_required_fields(draft: ProductionDraft) -> List[str]:
    missing = []
    if not draft.employee_id.strip():
        missing.append("employee_id")
    if not draft.site.strip():
        missing.append("site")
    if not draft.pavimento.strip():
        missing.append("pavimento")
    if draft.quantity <= 0:
        missing.append("quantity")
    return missing


def _resolve_pricing(service_type: str, draft: ProductionDraft) -> Tuple[Decimal, str]:
    service = find_service(service_type)
    if service is not None:
        return service.price, service.unit
    return draft.unit_price, draft.unit or "un"


def _entry_fields(draft: ProductionDraft) -> dict:
    service_type = (draft.service_type or "").strip() or default_service().name
    unit_price, unit = _resolve_pricing(service_type, draft)
    return {
        "date": draft.date,
        "employee_id": draft.employee_id.strip(),
        "site": draft.site.strip(),
        "pavimento": draft.pavimento.strip(),
        "service_type": service_type,
        "unit_price": unit_price,
        "quantity": draft.quantity,
        "unit": unit,
        "total_value": compute_total(draft.quantity, unit_price),
        "observations": draft.observations,
    }


def create_or_update_entry(
    existing: Sequence[ProductionEntry],
    draft: ProductionDraft,
    editing_id: Optional[str] = None,
) -> List[ProductionEntry]:
    """回傳新的集合；editing_id 有值時就地替換該筆，否則新增於尾端。"""
    missing = missing_required_fields(draft)
    if missing:
        raise ProductionValidationError(missing)
    fields = _entry_fields(draft)

    if editing_id:
        if not any(p.id == editing_id for p in existing):
            raise ProductionEntryNotFoundError(editing_id)
        logger.info("更新產值紀錄 %s（%s x %s）", editing_id, fields["quantity"], fields["unit_price"])
        return [p.model_copy(update=fields) if p.id == editing_id else p for p in existing]

    entry = ProductionEntry(id=uuid.uuid4().hex, created_at=datetime.now(), **fields)
    logger.info("新增產值紀錄 %s：%s %s", entry.id, entry.service_type, entry.total_value)
    return [*existing, entry]


def delete_entry(existing: Sequence[ProductionEntry], entry_id: str) -> List[ProductionEntry]:
    if not any(p.id == entry_id for p in existing):
        raise ProductionEntryNotFoundError(entry_id)
    return [p for p in existing if p.id != entry_id]


def find_entry(existing: Sequence[ProductionEntry], entry_id: str) -> ProductionEntry:
    for p in existing:
        if p.id == entry_id:
            return p
    raise ProductionEntryNotFoundError(entry_id)
