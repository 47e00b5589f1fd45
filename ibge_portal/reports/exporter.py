"""
ibge_portal/reports/exporter.py
═══════════════════════════════════════════════════════════════════════════════
Serializes uniform report rows into a downloadable representation.

  json  → {"geradoEm", "total", "dados"}            application/json
  csv   → header + rows, "\\n" separated            text/csv
  xlsx  → generators.build_xlsx (alias "excel")     spreadsheetml
  pdf   → generators.build_pdf                      application/pdf

CSV rules: header is the key list of the first row; a string containing a
comma is wrapped in double quotes; nothing else is escaped (embedded quotes
and newlines pass through as-is).

The format is resolved before any serialization work, so an unsupported
format fails without producing anything.
═══════════════════════════════════════════════════════════════════════════════
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from ibge_portal.core.config import BRT, EXPORT_FORMATS
from ibge_portal.core.errors import UnsupportedFormatError
from ibge_portal.reports import generators
from ibge_portal.reports.generators import cell_text

log = logging.getLogger("exporter")

DEFAULT_TITLE = "Relatório de Dados IBGE"


@dataclass(frozen=True)
class ExportResult:
    body: bytes
    content_type: str
    extension: str


def _csv_cell(value: Any) -> str:
    text = cell_text(value)
    if isinstance(value, (str, dict, list)) and "," in text:
        return f'"{text}"'
    return text


def to_csv(rows: Sequence[dict]) -> str:
    if not rows:
        return ""
    header = list(rows[0].keys())
    lines = [",".join(header)]
    for row in rows:
        lines.append(",".join(_csv_cell(row.get(key)) for key in header))
    return "\n".join(lines)


def to_json(rows: Sequence[dict], generated_at: Optional[datetime] = None) -> str:
    generated_at = generated_at or datetime.now(timezone.utc)
    envelope = {"geradoEm": generated_at.isoformat(), "total": len(rows), "dados": list(rows)}
    return json.dumps(envelope, ensure_ascii=False, default=str)


def default_subtitle(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"Gerado em {now.astimezone(BRT).strftime('%d/%m/%Y %H:%M:%S')}"


def _export_json(rows, title, subtitle) -> ExportResult:
    return ExportResult(to_json(rows).encode("utf-8"), "application/json", "json")


def _export_csv(rows, title, subtitle) -> ExportResult:
    return ExportResult(to_csv(rows).encode("utf-8"), "text/csv; charset=utf-8", "csv")


def _export_xlsx(rows, title, subtitle) -> ExportResult:
    return ExportResult(
        generators.build_xlsx(rows, title, subtitle),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "xlsx",
    )


def _export_pdf(rows, title, subtitle) -> ExportResult:
    return ExportResult(generators.build_pdf(rows, title, subtitle), "application/pdf", "pdf")


_EXPORTERS: dict[str, Callable[..., ExportResult]] = {
    "json":  _export_json,
    "csv":   _export_csv,
    "xlsx":  _export_xlsx,
    "excel": _export_xlsx,
    "pdf":   _export_pdf,
}


def resolve_format(fmt: Optional[str]) -> str:
    """Lower-cased known format, else UnsupportedFormatError."""
    key = (fmt or "").strip().lower()
    if key not in _EXPORTERS:
        raise UnsupportedFormatError(fmt or "", EXPORT_FORMATS)
    return key


def export(rows: Sequence[dict], fmt: str,
           title: str = DEFAULT_TITLE, subtitle: Optional[str] = None) -> ExportResult:
    key = resolve_format(fmt)
    log.info(f"Exporting {len(rows)} rows as {key}")
    return _EXPORTERS[key](rows, title, subtitle or default_subtitle())


def attachment_headers(filename: str, result: ExportResult) -> dict[str, str]:
    return {
        "Content-Type":        result.content_type,
        "Content-Disposition": f"attachment; filename={filename}.{result.extension}",
    }
