"""
ibge_portal/main.py  ·  IBGE Data Portal API
═══════════════════════════════════════════════════════════════════════════════
create_app() wires everything onto app.state:

  settings        → Settings (environment)
  ibge            → IBGEClient over one shared httpx.AsyncClient
  response_cache  → ResponseCache behind ResponseCacheMiddleware
  collector       → IndicatorCollector (custom + predefined reports)
  repository      → in-memory LocalityRepository
  sync            → SyncService (bearer-gated sync endpoints)

In production the built frontend (FRONTEND_BUILD_DIR) is served from "/".
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ibge_portal.core.cache import ResponseCache
from ibge_portal.core.cache_middleware import ResponseCacheMiddleware
from ibge_portal.core.config import Settings
from ibge_portal.core.errors import register_error_handlers
from ibge_portal.core.http_client import IBGEClient, build_http_client
from ibge_portal.reports.collector import IndicatorCollector
from ibge_portal.routers import agregados, localidades, relatorios, sincronizacao
from ibge_portal.services.repository import LocalityRepository
from ibge_portal.services.sync import SyncService

VERSION = "1.0.0"

log = logging.getLogger("main")


def _configure_logging(production: bool) -> None:
    # JSON lines in production, human-readable locally
    if production:
        logging.basicConfig(
            level=logging.INFO,
            format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
            stream=sys.stdout,
        )
    else:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )


def create_app(settings: Optional[Settings] = None,
               http_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    settings = settings or Settings()
    _configure_logging(settings.is_production)

    ibge  = IBGEClient(http_client or build_http_client(settings.upstream_timeout_s))
    cache = ResponseCache()
    repository = LocalityRepository()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(f"IBGE Data Portal API v{VERSION} starting ({settings.environment})")
        for warning in settings.validate():
            log.warning(warning)
        yield
        log.info("Shutting down...")
        await ibge.aclose()

    app = FastAPI(
        title="IBGE Data Portal API",
        description=(
            "Proxy/cache backend for IBGE statistics: localities, SIDRA aggregates, "
            "typed and custom reports exported as JSON, CSV, XLSX or PDF."
        ),
        version=VERSION,
        lifespan=lifespan,
    )

    app.state.settings       = settings
    app.state.ibge           = ibge
    app.state.response_cache = cache
    app.state.collector      = IndicatorCollector(ibge, settings.ibge_base_url)
    app.state.repository     = repository
    app.state.sync           = SyncService(ibge, settings, repository, cache)

    # Last added runs first: CORS → security headers → response cache → routes
    app.add_middleware(ResponseCacheMiddleware, store=cache, rules=settings.cache_rules)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app, show_details=not settings.is_production)

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(localidades.router)
    app.include_router(agregados.router)
    app.include_router(relatorios.router)
    app.include_router(sincronizacao.router)

    @app.get("/health", tags=["meta"])
    async def health():
        return {
            "status":      "healthy",
            "version":     VERSION,
            "environment": settings.environment,
            "cache":       cache.stats(),
            "sync":        app.state.sync.status(),
        }

    frontend = settings.frontend_build_dir
    if settings.is_production and os.path.isdir(frontend):
        log.info(f"Serving frontend from {frontend}")
        app.mount("/", StaticFiles(directory=frontend, html=True), name="frontend")
    else:
        @app.get("/", tags=["meta"])
        async def root():
            return {
                "status":  "online",
                "version": VERSION,
                "endpoints": {
                    "estados":      "/api/localidades/estados",
                    "municipios":   "/api/localidades/estados/{uf}/municipios",
                    "regioes":      "/api/localidades/regioes",
                    "cache_stats":  "/api/localidades/cache/stats",
                    "cache_clear":  "/api/localidades/cache/clear",
                    "agregados":    "/api/agregados",
                    "busca":        "/api/agregados/busca?termo={termo}",
                    "agregado":     "/api/agregados/{codigo}",
                    "modelos":      "/api/relatorios/modelos",
                    "predefinidos": "/api/relatorios/predefinidos",
                    "relatorio":    "/api/relatorios/{tipo}?formato=csv",
                    "custom":       "/api/relatorios/personalizado",
                    "sync_status":  "/api/sincronizacao/status",
                    "health":       "/health",
                    "docs":         "/docs",
                },
            }

    return app


def run() -> None:
    settings = Settings()
    uvicorn.run("ibge_portal.main:create_app", factory=True, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
