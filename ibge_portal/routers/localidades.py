"""
ibge_portal/routers/localidades.py
Endpoints:
  GET  /api/localidades/estados                  → all states (cached 1h)
  GET  /api/localidades/estados/{uf}/municipios  → municipalities of a state (cached 1h)
  GET  /api/localidades/regioes                  → macro-regions (cached 1h)
  GET  /api/localidades/cache/stats              → response cache statistics
  POST /api/localidades/cache/clear[?key=...]    → drop one key or the whole cache
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ibge_portal.core.cache import ResponseCache
from ibge_portal.core.config import Settings
from ibge_portal.core.http_client import IBGEClient
from ibge_portal.routers.deps import get_ibge, get_response_cache, get_settings
from ibge_portal.sources.localidades import (
    fetch_estados, fetch_municipios, fetch_regioes, validate_uf,
)

router = APIRouter(prefix="/api/localidades", tags=["localidades"])


@router.get("/estados")
async def get_estados(
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    estados = await fetch_estados(client, settings.localidades_url)
    return {"success": True, "count": len(estados), "data": estados}


@router.get("/estados/{uf}/municipios")
async def get_municipios(
    uf: str,
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    municipios = await fetch_municipios(client, settings.localidades_url, validate_uf(uf))
    return {"success": True, "count": len(municipios), "data": municipios}


@router.get("/regioes")
async def get_regioes(
    client:   IBGEClient = Depends(get_ibge),
    settings: Settings   = Depends(get_settings),
):
    regioes = await fetch_regioes(client, settings.localidades_url)
    return {"success": True, "count": len(regioes), "data": regioes}


@router.get("/cache/stats")
async def cache_stats(cache: ResponseCache = Depends(get_response_cache)):
    return {"success": True, "data": cache.stats()}


@router.post("/cache/clear")
async def cache_clear(
    key: Optional[str] = Query(None, description="Exact cache key (path + query) to drop"),
    cache: ResponseCache = Depends(get_response_cache),
):
    if key:
        removed = cache.delete(key)
        return {"success": True, "message": f"Cache limpo para {key}", "removed": int(removed)}
    removed = cache.clear()
    return {"success": True, "message": "Cache limpo", "removed": removed}
