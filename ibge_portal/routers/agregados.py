"""
ibge_portal/routers/agregados.py
═══════════════════════════════════════════════════════════════════════════════
Endpoints:
  GET /api/agregados                         → formatted catalogue
  GET /api/agregados/categorias              → curated starting points (static)
  GET /api/agregados/busca?termo=&assunto=   → catalogue search, paginated
  GET /api/agregados/indicadores?indicador=  → raw values + pt-BR formatting
  GET /api/agregados/{codigo}                → normalized records
  GET /api/agregados/{codigo}/metadados      → upstream passthrough
  GET /api/agregados/{codigo}/periodos       → upstream passthrough
  GET /api/agregados/{codigo}/variaveis      → upstream passthrough

Everything here sits behind the response cache (see Settings.cache_rules).
═══════════════════════════════════════════════════════════════════════════════
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ibge_portal.core.config import AGGREGATE_CATEGORIES, Settings
from ibge_portal.core.errors import ValidationError
from ibge_portal.core.http_client import IBGEClient
from ibge_portal.reports.normalizer import normalize_records
from ibge_portal.routers.deps import get_ibge, get_settings
from ibge_portal.sources.agregados import (
    LATEST_PERIOD, fetch_catalogue, fetch_descriptor, fetch_values,
    flatten_catalogue, format_catalogue_entry, format_ptbr, matches_term, validate_code,
)

router = APIRouter(prefix="/api/agregados", tags=["agregados"])


@router.get("")
async def list_agregados(
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    catalogue = flatten_catalogue(await fetch_catalogue(client, settings.agregados_url))
    data = [format_catalogue_entry(a) for a in catalogue]
    return {"success": True, "count": len(data), "data": data}


@router.get("/categorias")
async def list_categorias():
    return {"success": True, "count": len(AGGREGATE_CATEGORIES), "data": AGGREGATE_CATEGORIES}


@router.get("/busca")
async def buscar_agregados(
    termo:   Optional[str] = Query(None),
    assunto: Optional[str] = Query(None),
    offset:  int           = Query(0, ge=0),
    limit:   int           = Query(20, ge=1, le=200),
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    if not termo and not assunto:
        raise ValidationError("É necessário fornecer um termo de busca ou assunto")
    if termo and len(termo.strip()) < 3:
        raise ValidationError("O termo de busca deve ter pelo menos 3 caracteres")

    params = {"assunto": assunto} if assunto else None
    catalogue = flatten_catalogue(await fetch_catalogue(client, settings.agregados_url, params))
    if termo:
        catalogue = [a for a in catalogue if matches_term(a, termo.strip())]

    return {
        "success": True,
        "count":   len(catalogue),
        "limit":   limit,
        "offset":  offset,
        "data":    catalogue[offset:offset + limit],
    }


@router.get("/indicadores")
async def indicadores_por_periodo(
    indicador:  Optional[str] = Query(None),
    periodo:    Optional[str] = Query(None),
    localidade: Optional[str] = Query(None),
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    if not indicador:
        raise ValidationError('Parâmetro "indicador" é obrigatório')
    codigo = validate_code(indicador)

    data = await fetch_values(client, settings.agregados_url, codigo,
                              localidades=localidade or "BR", periodos=periodo or LATEST_PERIOD)
    if isinstance(data, list):
        data = [
            {**item, "valorFormatado": format_ptbr(item.get("valor"))} if isinstance(item, dict) else item
            for item in data
        ]
    return {"success": True, "data": data}


@router.get("/{codigo}")
async def get_agregado(
    codigo: str,
    localidades: str           = Query("BR", description="Ex: BR, N3[33], N6[3304557]"),
    periodos:    str           = Query(LATEST_PERIOD),
    variaveis:   Optional[str] = Query(None),
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    codigo = validate_code(codigo)
    raw = await fetch_values(client, settings.agregados_url, codigo,
                             localidades=localidades, periodos=periodos, variaveis=variaveis)
    records = [r.as_row() for r in normalize_records(raw)]
    return {"success": True, "count": len(records), "data": records}


@router.get("/{codigo}/metadados")
async def get_metadados(
    codigo: str,
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    data = await fetch_descriptor(client, settings.agregados_url, validate_code(codigo), "metadados")
    return {"success": True, "data": data}


@router.get("/{codigo}/periodos")
async def get_periodos(
    codigo: str,
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    data = await fetch_descriptor(client, settings.agregados_url, validate_code(codigo), "periodos")
    return {"success": True, "count": len(data) if isinstance(data, list) else None, "data": data}


@router.get("/{codigo}/variaveis")
async def get_variaveis(
    codigo: str,
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    data = await fetch_descriptor(client, settings.agregados_url, validate_code(codigo), "variaveis")
    return {"success": True, "count": len(data) if isinstance(data, list) else None, "data": data}
