"""API 請求/回應結構與領域紀錄 - Pydantic（員工 / 產值紀錄 / 每月預支 / 薪資結果）"""
from datetime import date, datetime
from decimal import Decimal

# 別名：欄位名 date 與型別 date 會觸發 Pydantic 的 field name clashing，改用 DateType 註解
DateType = date
from typing import Any, List, Literal, NamedTuple, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from construlog.services.money import to_decimal, to_non_negative


# ---------- 列舉 ----------
ROLES = ("Pedreiro", "Servente", "Encarregado", "Carpinteiro", "Armador", "Eletricista", "Encanador")
UNITS = ("m²", "m³", "un", "diária", "ml")

Role = Literal["Pedreiro", "Servente", "Encarregado", "Carpinteiro", "Armador", "Eletricista", "Encanador"]
UnitType = Literal["m²", "m³", "un", "diária", "ml"]

PAYROLL_NUMBER_FIELDS = ("gross_salary", "net_salary", "fgts_percent", "inss_percent")


# ---------- 服務價目 ----------
class ServicePrice(BaseModel):
    name: str
    price: Decimal
    unit: UnitType
    model_config = ConfigDict(frozen=True)


class ServiceSelection(BaseModel):
    """選擇服務後帶出的單價、單位與試算總額（表單預覽用）"""
    service_type: str
    unit_price: Decimal
    unit: UnitType
    quantity: Decimal
    total_value: Decimal


class CatalogRead(BaseModel):
    services: List[ServicePrice]
    units: List[str]
    roles: List[str]


# ---------- 員工 ----------
class Employee(BaseModel):
    """員工紀錄。id 永久不變；產值紀錄以 employee_id 弱參照。"""
    id: str
    name: str
    role: Role = "Pedreiro"
    site: str
    active: bool = True
    gross_salary: Decimal = Decimal("0")
    net_salary: Decimal = Decimal("0")
    fgts_percent: Decimal = Decimal("8")
    inss_percent: Decimal = Decimal("9")
    model_config = ConfigDict(frozen=True)

    @field_validator(*PAYROLL_NUMBER_FIELDS, mode="before")
    def coerce_payroll_numbers(cls, v: Any) -> Decimal:
        return to_non_negative(v)


class EmployeeCreate(BaseModel):
    name: str = Field("", description="姓名（必填）")
    role: Role = "Pedreiro"
    site: str = Field("", description="所屬工地（必填）")
    gross_salary: Decimal = Decimal("0")
    net_salary: Decimal = Decimal("0")
    fgts_percent: Optional[Decimal] = Field(None, description="FGTS %；未填用系統預設")
    inss_percent: Optional[Decimal] = Field(None, description="INSS %；未填用系統預設")

    @field_validator("gross_salary", "net_salary", mode="before")
    def coerce_salary(cls, v: Any) -> Decimal:
        return to_non_negative(v)

    @field_validator("fgts_percent", "inss_percent", mode="before")
    def coerce_percent(cls, v: Any) -> Optional[Decimal]:
        if v is None:
            return None
        return to_non_negative(v)


class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[Role] = None
    site: Optional[str] = None
    active: Optional[bool] = None
    gross_salary: Optional[Decimal] = None
    net_salary: Optional[Decimal] = None
    fgts_percent: Optional[Decimal] = None
    inss_percent: Optional[Decimal] = None

    @field_validator(*PAYROLL_NUMBER_FIELDS, mode="before")
    def coerce_payroll_numbers(cls, v: Any) -> Optional[Decimal]:
        if v is None:
            return None
        return to_non_negative(v)


# ---------- 產值紀錄 ----------
class ProductionEntry(BaseModel):
    """每日產值紀錄；total_value = round2(quantity * unit_price)，只在寫入路徑重算。"""
    id: str
    date: DateType
    employee_id: str
    site: str
    pavimento: str
    service_type: str
    unit_price: Decimal
    quantity: Decimal
    unit: UnitType
    total_value: Decimal
    observations: str = ""
    created_at: datetime
    model_config = ConfigDict(frozen=True)


class ProductionDraft(BaseModel):
    """新增/編輯表單內容。total_value 不收，一律由單價與數量重算。"""
    date: DateType = Field(default_factory=date.today)
    employee_id: str = ""
    site: str = ""
    pavimento: str = Field("", description="樓層（必填）")
    service_type: Optional[str] = Field(None, description="價目表服務名稱；未填用第一項")
    unit_price: Decimal = Field(Decimal("0"), description="僅非價目表服務採用")
    quantity: Decimal = Decimal("0")
    unit: Optional[UnitType] = None
    observations: str = ""

    @field_validator("unit_price", "quantity", mode="before")
    def coerce_numbers(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @field_validator("employee_id", "site", "pavimento", "observations", mode="before")
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else v


# ---------- 每月預支 ----------
class AdvanceKey(NamedTuple):
    """預支複合鍵；month 為 1~12"""
    employee_id: str
    year: int
    month: int


class MonthlyAdvance(BaseModel):
    employee_id: str
    year: int
    month: int = Field(..., ge=1, le=12)
    amount: Decimal

    @property
    def key(self) -> AdvanceKey:
        return AdvanceKey(self.employee_id, self.year, self.month)


class AdvanceUpdate(BaseModel):
    amount: Any = None


class PayrollFieldUpdate(BaseModel):
    field: str = Field(..., description="gross_salary / net_salary / fgts_percent / inss_percent")
    value: Any = None


# ---------- 薪資 ----------
class PayrollLine(BaseModel):
    employee_id: str
    name: str
    role: str
    site: str
    active: bool
    gross_salary: Decimal
    net_salary: Decimal
    fgts_percent: Decimal
    inss_percent: Decimal
    monthly_production: Decimal
    advance: Decimal
    fgts_value: Decimal
    inss_value: Decimal
    cash_payment: Decimal = Field(..., description="產值獎金（可為負，僅顯示與加總時以 0 計）")
    cash_payment_display: Decimal
    total_to_receive_in_cash: Decimal


class MonthRef(BaseModel):
    year: int
    month: int


class PayrollSummary(BaseModel):
    year: int
    month: int
    lines: List[PayrollLine]
    total_cash_to_withdraw: Decimal
    previous: MonthRef
    next: MonthRef


# ---------- 查詢 / 報表 ----------
class HistoryFilters(BaseModel):
    search: Optional[str] = None
    employee_id: Optional[str] = None
    service_type: Optional[str] = None
    date_start: Optional[DateType] = None
    date_end: Optional[DateType] = None


class ReportItem(BaseModel):
    name: str
    value: Decimal


class DashboardSummary(BaseModel):
    today: DateType
    entries_today: int
    workers_today: int
    quantity_today: Decimal
    total_entries: int


class ProductionRead(ProductionEntry):
    """歷史列表列：附上解析後的員工姓名"""
    employee_name: str
