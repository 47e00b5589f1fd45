"""
ibge_portal/routers/relatorios.py
═══════════════════════════════════════════════════════════════════════════════
Endpoints:
  GET  /api/relatorios/modelos               → report templates
  GET  /api/relatorios/informacoes           → export formats + indicator catalogue
  GET  /api/relatorios/predefinidos          → canned reports
  POST /api/relatorios/predefinidos/{id}     → run a canned report
  POST /api/relatorios/personalizado         → custom multi-indicator report
  GET  /api/relatorios/{tipo}?formato=csv    → typed report download

Custom and canned reports go through the IndicatorCollector: indicators are
fetched concurrently, failures are reported per indicator, and the request
only fails (404) when no indicator returned any data.
json → envelope response; csv/xlsx/pdf → attachment via the exporter.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel

from ibge_portal.core.config import (
    EXPORT_FORMATS, INDICATOR_CATALOGUE, PREDEFINED_REPORTS, REPORT_CATEGORIES,
    REPORT_TEMPLATES, Settings,
)
from ibge_portal.core.errors import NotFoundError, ValidationError
from ibge_portal.core.http_client import IBGEClient
from ibge_portal.reports.collector import IndicatorCollector, flatten_results, has_data
from ibge_portal.reports.exporter import (
    DEFAULT_TITLE, attachment_headers, default_subtitle, export, resolve_format,
)
from ibge_portal.reports.typed import fetch_report_rows, report_type
from ibge_portal.routers.deps import get_collector, get_ibge, get_settings

log = logging.getLogger("relatorios_router")
router = APIRouter(prefix="/api/relatorios", tags=["relatorios"])

NO_DATA = "Não foram encontrados dados para os parâmetros informados"


class CustomReportRequest(BaseModel):
    indicadores: Optional[list[str]] = None
    localidades: Optional[list[str]] = None
    periodos:    Optional[list[str]] = None
    formato:     str = "json"


class PredefinedReportRequest(BaseModel):
    localidades: Optional[list[str]] = None
    formato:     str = "json"


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def _require_list(values: Optional[list[str]], message: str) -> list[str]:
    cleaned = [v.strip() for v in (values or []) if v and v.strip()]
    if not cleaned:
        raise ValidationError(message)
    return cleaned


def _file_response(rows: list[dict], fmt: str, filename: str, title: str = DEFAULT_TITLE) -> Response:
    result = export(rows, fmt, title=title, subtitle=default_subtitle())
    headers = attachment_headers(filename, result)
    return Response(content=result.body, media_type=result.content_type, headers=headers)


async def _run_collection(collector: IndicatorCollector, indicadores: list[str],
                          localidades: list[str], periodos: Optional[list[str]]):
    results = await collector.collect(indicadores, localidades, periodos)
    if not any(has_data(r) for r in results):
        log.warning("No indicator returned data")
        raise NotFoundError(NO_DATA)
    return results


# ── Catalogue endpoints ───────────────────────────────────────────────────────

@router.get("/modelos")
async def list_modelos():
    return {"success": True, "count": len(REPORT_TEMPLATES), "data": REPORT_TEMPLATES}


@router.get("/informacoes")
async def get_informacoes():
    return {
        "success": True,
        "data": {
            "formatosExportacao": EXPORT_FORMATS,
            "tiposRelatorios":    REPORT_CATEGORIES,
            "indicadores":        INDICATOR_CATALOGUE,
        },
    }


@router.get("/predefinidos")
async def list_predefinidos():
    data = [
        {
            "id":           rid,
            "titulo":       cfg["titulo"],
            "descricao":    cfg["descricao"],
            "indicadores":  cfg["indicadores"],
            "atualizadoEm": cfg["atualizadoEm"],
        }
        for rid, cfg in PREDEFINED_REPORTS.items()
    ]
    return {"success": True, "count": len(data), "data": data}


# ── Collector-backed reports ──────────────────────────────────────────────────

@router.post("/predefinidos/{report_id}")
async def run_predefinido(
    report_id: str,
    body: PredefinedReportRequest,
    collector: IndicatorCollector = Depends(get_collector),
):
    fmt = resolve_format(body.formato)
    localidades = _require_list(body.localidades, "Pelo menos uma localidade deve ser fornecida")

    cfg = PREDEFINED_REPORTS.get(report_id)
    if cfg is None:
        raise NotFoundError(f'Relatório predefinido com ID "{report_id}" não encontrado')

    log.info(f"Running predefined report '{cfg['titulo']}' ({report_id})")
    results = await _run_collection(collector, cfg["indicadores"], localidades, cfg["periodos"])

    if fmt == "json":
        return {
            "success":   True,
            "titulo":    cfg["titulo"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "parametros": {
                "id":          report_id,
                "indicadores": cfg["indicadores"],
                "localidades": localidades,
                "periodos":    cfg["periodos"],
            },
            "data": [r.as_dict() for r in results],
        }
    return _file_response(flatten_results(results), fmt, f"relatorio_{report_id}_{_today()}", cfg["titulo"])


@router.post("/personalizado")
async def run_personalizado(
    body: CustomReportRequest,
    collector: IndicatorCollector = Depends(get_collector),
):
    indicadores = _require_list(body.indicadores, "Pelo menos um indicador deve ser fornecido")
    localidades = _require_list(body.localidades, "Pelo menos uma localidade deve ser fornecida")
    fmt = resolve_format(body.formato)
    periodos = [p for p in (body.periodos or []) if p] or None

    log.info(f"Custom report: {len(indicadores)} indicators, {len(localidades)} localities")
    results = await _run_collection(collector, indicadores, localidades, periodos)

    if fmt == "json":
        return {
            "success":   True,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "parametros": {
                "indicadores": indicadores,
                "localidades": localidades,
                "periodos":    periodos,
            },
            "data": [r.as_dict() for r in results],
        }
    return _file_response(flatten_results(results), fmt, f"relatorio_personalizado_{_today()}")


# ── Typed report download ─────────────────────────────────────────────────────

@router.get("/{tipo}")
async def download_report(
    tipo: str,
    request: Request,
    formato: str = Query("csv", description="csv | xlsx | pdf | json"),
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    cfg = report_type(tipo)
    fmt = resolve_format(formato)
    params = {k: v for k, v in request.query_params.items() if k != "formato"}

    rows = await fetch_report_rows(client, settings.agregados_url, tipo, params)
    if not rows:
        raise NotFoundError(NO_DATA)

    title = f"Relatório {cfg['label']}"
    return _file_response(rows, fmt, f"relatorio_{tipo}_{_today()}", title)
