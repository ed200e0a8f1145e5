"""
服務價目表：依 config/service_catalog.yaml 載入，可由設定 service_catalog_path 指定其他檔案。
檔案不存在時用內建預設（與 YAML 同）。順序即表單下拉順序，第一項為預設服務。
"""
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import yaml

from construlog.config import BASE_DIR, settings
from construlog.schemas import ServicePrice

logger = logging.getLogger(__name__)

MANUAL_SERVICE_NAME = "Outros (Manual)"


def _default_services() -> list:
    """內建預設（與 YAML 同），無檔案時使用"""
    return [
        {"name": "Alvenaria Interna", "price": "10.00", "unit": "m²"},
        {"name": "Alvenaria Shaft", "price": "14.00", "unit": "m²"},
        {"name": "Alvenaria Externa", "price": "12.00", "unit": "m²"},
        {"name": "Capiaço", "price": "7.00", "unit": "ml"},
        {"name": "Chapisco", "price": "1.00", "unit": "m²"},
        {"name": "Contrapiso – Escol", "price": "5.00", "unit": "m²"},
        {"name": "Contrapiso – Hermes", "price": "6.00", "unit": "m²"},
        {"name": "Marcação de Alvenaria – Porto", "price": "250.00", "unit": "un"},
        {"name": "Marcação de Alvenaria – Hermes", "price": "150.00", "unit": "un"},
        {"name": "Reboco", "price": "7.00", "unit": "m²"},
        {"name": "Reboco Shaft", "price": "8.50", "unit": "m²"},
        {"name": "Verga", "price": "20.00", "unit": "un"},
        {"name": MANUAL_SERVICE_NAME, "price": "0.00", "unit": "un"},
    ]


def _catalog_path() -> Path:
    if settings.service_catalog_path:
        p = Path(settings.service_catalog_path)
        return p if p.is_absolute() else BASE_DIR / p
    return BASE_DIR / "config" / "service_catalog.yaml"


def _load_raw_services() -> list:
    path = _catalog_path()
    if not path.exists():
        if settings.service_catalog_path:
            logger.warning("找不到服務價目表 %s，改用內建預設", path)
        return _default_services()
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return data.get("services") or _default_services()


@lru_cache(maxsize=1)
def get_services() -> List[ServicePrice]:
    return [ServicePrice.model_validate(s) for s in _load_raw_services()]


def find_service(name: Optional[str]) -> Optional[ServicePrice]:
    if not name:
        return None
    for s in get_services():
        if s.name == name:
            return s
    return None


def default_service() -> ServicePrice:
    return get_services()[0]
