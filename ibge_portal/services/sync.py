"""
ibge_portal/services/sync.py
═══════════════════════════════════════════════════════════════════════════════
Locality + indicator sync into the in-memory repository.

  1. ONE sync at a time (asyncio.Lock; a second request gets 409, never queues)
  2. Localities: states → regions → municipalities per state
  3. Municipalities are fetched state by state through a FixedDelayPacer
     (SYNC_DELAY_S between states) to keep upstream load low
  4. A failing state is logged and skipped; the others still sync
  5. Indicators are synced one by one; an unsupported or failing indicator
     is reported inline and does not stop the rest
  6. The response cache is cleared after every sync
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Optional, Sequence

from ibge_portal.core.cache import ResponseCache
from ibge_portal.core.config import SYNC_INDICATOR_PATHS, Settings
from ibge_portal.core.errors import SyncInProgressError
from ibge_portal.core.http_client import IBGEClient
from ibge_portal.core.pacing import FixedDelayPacer
from ibge_portal.services.repository import Estado, LocalityRepository, Municipio, Regiao
from ibge_portal.sources.localidades import (
    fetch_estados, fetch_municipios, fetch_regioes, municipio_estado_id,
)

log = logging.getLogger("sync")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SyncService:
    def __init__(self, client: IBGEClient, settings: Settings, repository: LocalityRepository,
                 cache: ResponseCache, pacer: Optional[FixedDelayPacer] = None):
        self.client     = client
        self.settings   = settings
        self.repository = repository
        self.cache      = cache
        self.pacer      = pacer or FixedDelayPacer(delay_s=settings.sync_delay_s)
        self._lock      = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def _acquire_guard(self) -> None:
        if self._lock.locked():
            log.warning("Sync already running, rejecting request")
            raise SyncInProgressError("Já existe uma sincronização em andamento")

    # ── Localities ────────────────────────────────────────────────────────────

    async def sync_localidades(self) -> dict:
        self._acquire_guard()
        async with self._lock:
            t0 = time.time()
            log.info("Starting locality sync")
            try:
                estados = await fetch_estados(self.client, self.settings.localidades_url)
                log.info(f"Fetched {len(estados)} states")
                for e in estados:
                    regiao = e.get("regiao") or {}
                    self.repository.upsert_estado(
                        Estado(id=e["id"], sigla=e.get("sigla", ""), nome=e.get("nome", ""),
                               regiao_id=regiao.get("id"))
                    )

                regioes = await fetch_regioes(self.client, self.settings.localidades_url)
                log.info(f"Fetched {len(regioes)} regions")
                for r in regioes:
                    self.repository.upsert_regiao(
                        Regiao(id=r["id"], sigla=r.get("sigla", ""), nome=r.get("nome", ""))
                    )

                municipios = await self._sync_municipios(estados)
            except Exception as ex:
                self.repository.record_sync("localidades", "erro", 0, error=str(ex))
                raise

            self.repository.record_sync("localidades", "completo", municipios)
            self.cache.clear()
            log.info(f"Locality sync complete in {time.time() - t0:.1f}s")
            return {
                "success":   True,
                "message":   "Sincronização de localidades concluída com sucesso",
                "stats":     {"regioes": len(regioes), "estados": len(estados), "municipios": municipios},
                "timestamp": _now_iso(),
            }

    async def _sync_municipios(self, estados: Sequence[dict]) -> int:
        total = 0
        async for estado in self.pacer.each(estados):
            sigla = estado.get("sigla", estado.get("id"))
            try:
                municipios = await fetch_municipios(
                    self.client, self.settings.localidades_url, estado["id"]
                )
            except Exception as ex:
                log.error(f"Municipalities of {sigla} failed (continuing): {ex}")
                continue

            for m in municipios:
                self.repository.upsert_municipio(
                    Municipio(id=m["id"], nome=m.get("nome", ""),
                              estado_id=municipio_estado_id(m, fallback=estado["id"]))
                )
            total += len(municipios)
            log.info(f"State {sigla}: {len(municipios)} municipalities")
        return total

    # ── Indicators ────────────────────────────────────────────────────────────

    async def _sync_indicator(self, indicador: str) -> dict:
        path = SYNC_INDICATOR_PATHS[indicador]
        if path is None:
            count = 0
        else:
            data = await self.client.get_json(f"{self.settings.ibge_base_url}{path}")
            count = len(data) if isinstance(data, list) else (1 if data else 0)
        self.repository.record_sync(indicador, "completo", count)
        return {"success": True, "count": count, "message": f"{count} registros de {indicador} sincronizados"}

    async def sync_indicadores(self, indicadores: Sequence[str]) -> dict:
        self._acquire_guard()
        async with self._lock:
            log.info(f"Starting sync of {len(indicadores)} indicators")
            resultados: dict[str, dict] = {}
            for indicador in indicadores:
                key = indicador.lower()
                if key not in SYNC_INDICATOR_PATHS:
                    resultados[indicador] = {"success": False, "error": f"Indicador não suportado: {indicador}"}
                    continue
                try:
                    resultados[key] = await self._sync_indicator(key)
                except Exception as ex:
                    log.error(f"Indicator sync {indicador} failed: {ex}")
                    self.repository.record_sync(key, "erro", 0, error=str(ex))
                    resultados[key] = {"success": False, "error": str(ex) or "Erro desconhecido"}

            self.cache.clear()
            return {
                "success":    True,
                "message":    "Sincronização de indicadores concluída",
                "resultados": resultados,
                "timestamp":  _now_iso(),
            }

    def status(self) -> dict:
        return {
            "emAndamento": self.running,
            "ultimas":     self.repository.sync_summary(),
            "totais":      self.repository.counts(),
        }
