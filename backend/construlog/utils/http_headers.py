"""
HTTP header 工具：RFC 5987 Content-Disposition 支援含重音的檔名（如 Produção、Março）。
Starlette/FastAPI 的 header 僅支援 latin-1；以 filename (ASCII fallback) + filename*=UTF-8''...
讓瀏覽器優先顯示原檔名。
"""
import unicodedata
from urllib.parse import quote

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def ascii_fallback(filename: str) -> str:
    """去除重音並以 _ 取代非 ASCII 字元：Produção_2025.xlsx → Producao_2025.xlsx"""
    normalized = unicodedata.normalize("NFKD", filename)
    out = []
    for ch in normalized:
        if unicodedata.combining(ch):
            continue
        out.append(ch if ch.isascii() and ch not in '"\\' else "_")
    return "".join(out)


def build_content_disposition(unicode_filename: str) -> str:
    """組出 RFC 5987 的 Content-Disposition 字串，供 Response headers 使用。"""
    ascii_part = f'attachment; filename="{ascii_fallback(unicode_filename)}"'
    encoded = quote(unicode_filename, safe="")
    return f"{ascii_part}; filename*=UTF-8''{encoded}"
