"""
ibge_portal/reports/generators.py
Binary report builders used by the exporter.

  build_xlsx(rows, title, subtitle) → .xlsx bytes (openpyxl)
  build_pdf(rows, title, subtitle)  → .pdf bytes  (reportlab)

Both take the same uniform row dicts the CSV path uses: columns are the
keys of the first row.
"""

import json
from io import BytesIO
from typing import Any, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas


def columns_of(rows: Sequence[dict]) -> list[str]:
    return list(rows[0].keys()) if rows else []


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _xlsx_value(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return cell_text(value)


def build_xlsx(rows: Sequence[dict], title: str, subtitle: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Relatório"

    ws.append([title])
    ws["A1"].font = Font(bold=True, size=14)
    ws.append([subtitle])
    ws.append([])

    cols = columns_of(rows)
    ws.append(cols)
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append([_xlsx_value(row.get(c)) for c in cols])

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def build_pdf(rows: Sequence[dict], title: str, subtitle: str) -> bytes:
    buffer = BytesIO()
    pagesize = landscape(A4)
    c = canvas.Canvas(buffer, pagesize=pagesize)
    width, height = pagesize

    left_margin = 40
    line_height = 14
    cols = columns_of(rows)
    col_width = (width - 2 * left_margin) / max(len(cols), 1)
    max_chars = max(int(col_width / 5), 4)

    y = height - 50

    def draw_row(values: list[str], font: str) -> None:
        nonlocal y
        if y < 40:
            c.showPage()
            y = height - 40
        c.setFont(font, 8)
        for i, text in enumerate(values):
            if len(text) > max_chars:
                text = text[:max_chars - 1] + "…"
            c.drawString(left_margin + i * col_width, y, text)
        y -= line_height

    c.setFont("Helvetica-Bold", 16)
    c.drawString(left_margin, y, title)
    y -= 20
    c.setFont("Helvetica", 10)
    c.setFillColorRGB(0.4, 0.4, 0.4)
    c.drawString(left_margin, y, subtitle)
    c.setFillColorRGB(0, 0, 0)
    y -= line_height * 2

    if cols:
        draw_row(cols, "Helvetica-Bold")
        c.setStrokeColorRGB(0.7, 0.7, 0.7)
        c.line(left_margin, y + line_height - 3, width - left_margin, y + line_height - 3)
        for row in rows:
            draw_row([cell_text(row.get(col)) for col in cols], "Helvetica")
    else:
        c.setFont("Helvetica", 10)
        c.drawString(left_margin, y, "Nenhum dado disponível")

    c.save()
    return buffer.getvalue()
