"""
ibge_portal/routers/sincronizacao.py
Endpoints:
  POST /api/sincronizacao/localidades   → full locality sync (bearer token)
  POST /api/sincronizacao/indicadores   → indicator sync (bearer token)
  GET  /api/sincronizacao/status        → last runs + repository totals
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ibge_portal.core.auth import require_bearer_token
from ibge_portal.core.errors import ValidationError
from ibge_portal.routers.deps import get_sync_service
from ibge_portal.services.sync import SyncService

router = APIRouter(prefix="/api/sincronizacao", tags=["sincronizacao"])


class IndicatorSyncRequest(BaseModel):
    indicadores: Optional[list[str]] = None


@router.post("/localidades", dependencies=[Depends(require_bearer_token)])
async def sincronizar_localidades(sync: SyncService = Depends(get_sync_service)):
    return await sync.sync_localidades()


@router.post("/indicadores", dependencies=[Depends(require_bearer_token)])
async def sincronizar_indicadores(
    body: IndicatorSyncRequest,
    sync: SyncService = Depends(get_sync_service),
):
    indicadores = [i for i in (body.indicadores or []) if i and i.strip()]
    if not indicadores:
        raise ValidationError("É necessário fornecer uma lista de indicadores")
    return await sync.sync_indicadores(indicadores)


@router.get("/status")
async def status(sync: SyncService = Depends(get_sync_service)):
    return {"success": True, "data": sync.status()}
