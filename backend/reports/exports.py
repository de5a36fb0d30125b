"""Flat-record exports (CSV, XLSX and tabular PDF).

Every exporter receives rows already filtered and ordered by the list that
produced them and keeps that order. Column order is the key order of the
first row.
"""

from __future__ import annotations

import logging
from datetime import date
from io import BytesIO
from typing import Any, Mapping, Sequence

from django.conf import settings
from django.http import HttpResponse
from django.template.loader import render_to_string
from django.utils import timezone
from openpyxl import Workbook

from .weasyprint_utils import LANDSCAPE_PAGE_CSS, render_pdf_bytes_from_html

logger = logging.getLogger(__name__)

FORMAT_CSV = "csv"
FORMAT_XLSX = "xlsx"
FORMAT_PDF = "pdf"
EXPORT_FORMATS = (FORMAT_CSV, FORMAT_XLSX, FORMAT_PDF)

CONTENT_TYPES = {
    FORMAT_CSV: "text/csv; charset=utf-8",
    FORMAT_XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    FORMAT_PDF: "application/pdf",
}

CSV_DELIMITER = ","
XLSX_SHEET_TITLE = "Datos"
PDF_EMPTY_MESSAGE = "No hay datos para exportar"
PDF_HEADER_FILL = "#153E5C"


def export_headers(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    if not rows:
        return []
    return list(rows[0].keys())


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        # Only the delimiter triggers quoting; embedded quotes are left as-is.
        return f'"{value}"' if CSV_DELIMITER in value else value
    return str(value)


def rows_to_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    headers = export_headers(rows)
    if not headers:
        return ""
    lines = [CSV_DELIMITER.join(headers)]
    for row in rows:
        lines.append(CSV_DELIMITER.join(_csv_cell(row.get(header)) for header in headers))
    return "\n".join(lines)


def rows_to_xlsx(rows: Sequence[Mapping[str, Any]]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = XLSX_SHEET_TITLE

    headers = export_headers(rows)
    if headers:
        sheet.append(headers)
        for row in rows:
            sheet.append([row.get(header) for header in headers])

    output = BytesIO()
    workbook.save(output)
    return output.getvalue()


def format_export_date(day: date) -> str:
    return day.strftime("%d/%m/%Y")


def rows_to_pdf(rows: Sequence[Mapping[str, Any]], title: str, *, generated_on: date | None = None) -> bytes:
    headers = export_headers(rows)
    html = render_to_string(
        "reports/table_export.html",
        {
            "organization": getattr(settings, "CNE_ORGANIZATION_NAME", ""),
            "title": title,
            "generated_on": format_export_date(generated_on or timezone.localdate()),
            "headers": headers,
            "rows": [["" if row.get(header) is None else row.get(header) for header in headers] for row in rows],
            "empty_message": PDF_EMPTY_MESSAGE,
            "header_fill": PDF_HEADER_FILL,
        },
    )
    return render_pdf_bytes_from_html(html=html, extra_css=LANDSCAPE_PAGE_CSS)


def build_export_response(
    rows: Sequence[Mapping[str, Any]],
    *,
    file_format: str,
    filename: str,
    title: str,
) -> HttpResponse:
    if file_format == FORMAT_CSV:
        body: bytes = rows_to_csv(rows).encode("utf-8")
    elif file_format == FORMAT_XLSX:
        body = rows_to_xlsx(rows)
    elif file_format == FORMAT_PDF:
        body = rows_to_pdf(rows, title)
    else:
        raise ValueError(f"Formato de exportación no soportado: {file_format}")

    response = HttpResponse(body, content_type=CONTENT_TYPES[file_format])
    response["Content-Disposition"] = f'attachment; filename="{filename}.{file_format}"'
    logger.info("export generated", extra={"export_format": file_format, "export_filename": filename, "rows": len(rows)})
    return response
