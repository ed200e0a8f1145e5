"""薪資月結與產值報表匯出 Excel（欄位與前端畫面一致）。"""
import io
from decimal import Decimal
from typing import Any, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side

from construlog.schemas import PayrollSummary, ReportItem


# 表頭（與前端「Folha de Pagamento」卡片欄位一致）
PAYROLL_HEADERS = [
    "Funcionário", "Função", "Obra", "Salário Bruto", "S. Líquido", "FGTS (%)", "INSS (%)",
    "Vale / Adiant.", "Produção Total", "Desconto FGTS", "Desconto INSS",
    "Pagamento Extra", "Total Geral",
]
REPORT_HEADERS = ["Nome", "Valor (R$)"]


def _money(v: Decimal) -> float:
    return float(v)


def _write_headers(ws, row_idx: int, headers: List[str]) -> None:
    thin = Side(style="thin")
    header_font = Font(bold=True)
    header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for col, h in enumerate(headers, start=1):
        cell = ws.cell(row=row_idx, column=col, value=h)
        cell.font = header_font
        cell.alignment = header_alignment
        cell.border = Border(top=thin, bottom=thin, left=thin, right=thin)


def _apply_default_width(ws, columns: int, width: int = 16) -> None:
    for col in range(1, columns + 1):
        ws.column_dimensions[ws.cell(row=1, column=col).column_letter].width = width


def _to_bytes(wb: Workbook) -> bytes:
    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()


def build_payroll_excel(summary: PayrollSummary) -> bytes:
    """
    一位員工一列；Pagamento Extra 顯示值（負數以 0 計），最後一列為全隊提領合計。
    """
    wb = Workbook()
    ws = wb.active
    ws.title = f"Folha {summary.month:02d}-{summary.year}"

    _write_headers(ws, 1, PAYROLL_HEADERS)
    row_idx = 2
    for line in summary.lines:
        values: List[Any] = [
            line.name, line.role, line.site,
            _money(line.gross_salary), _money(line.net_salary),
            _money(line.fgts_percent), _money(line.inss_percent),
            _money(line.advance), _money(line.monthly_production),
            _money(line.fgts_value), _money(line.inss_value),
            _money(line.cash_payment_display), _money(line.total_to_receive_in_cash),
        ]
        for col, v in enumerate(values, start=1):
            ws.cell(row=row_idx, column=col, value=v)
        row_idx += 1
    row_idx += 1
    ws.cell(row=row_idx, column=1, value="Total a sacar em dinheiro").font = Font(bold=True)
    ws.cell(row=row_idx, column=12, value=_money(summary.total_cash_to_withdraw)).font = Font(bold=True)
    _apply_default_width(ws, len(PAYROLL_HEADERS))
    return _to_bytes(wb)


def _write_report_sheet(ws, items: Sequence[ReportItem]) -> None:
    _write_headers(ws, 1, REPORT_HEADERS)
    if not items:
        ws.cell(row=2, column=1, value="Sem dados")
    for row_idx, item in enumerate(items, start=2):
        ws.cell(row=row_idx, column=1, value=item.name)
        ws.cell(row=row_idx, column=2, value=_money(item.value))
    ws.column_dimensions["A"].width = 36
    ws.column_dimensions["B"].width = 16


def build_reports_excel(services: Sequence[ReportItem], employees: Sequence[ReportItem]) -> bytes:
    """兩個工作表：Por Serviço（依服務）、Por Funcionário（依員工前幾名）"""
    wb = Workbook()
    ws_service = wb.active
    ws_service.title = "Por Serviço"
    _write_report_sheet(ws_service, services)
    ws_employee = wb.create_sheet(title="Por Funcionário")
    _write_report_sheet(ws_employee, employees)
    return _to_bytes(wb)
