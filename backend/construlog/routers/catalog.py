"""服務價目表、單位、職務（表單下拉用）"""
from fastapi import APIRouter, HTTPException, Query

from construlog import schemas
from construlog.services.production_entry import UnknownServiceError, select_service
from construlog.services.service_catalog import get_services

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("", response_model=schemas.CatalogRead)
def get_catalog():
    return schemas.CatalogRead(services=get_services(), units=list(schemas.UNITS), roles=list(schemas.ROLES))


@router.get("/preview", response_model=schemas.ServiceSelection)
def preview_service(
    service_type: str = Query(..., description="服務名稱"),
    quantity: str = Query("0", description="數量；非數值視為 0"),
):
    """選擇服務後帶出單價、單位與試算總額"""
    try:
        return select_service(service_type, quantity)
    except UnknownServiceError:
        raise HTTPException(status_code=404, detail=f"Serviço desconhecido: {service_type}")
