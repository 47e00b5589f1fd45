"""Request-scoped accessors for the objects create_app() puts on app.state."""

from fastapi import Request

from ibge_portal.core.cache import ResponseCache
from ibge_portal.core.config import Settings
from ibge_portal.core.http_client import IBGEClient
from ibge_portal.reports.collector import IndicatorCollector
from ibge_portal.services.sync import SyncService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ibge(request: Request) -> IBGEClient:
    return request.app.state.ibge


def get_response_cache(request: Request) -> ResponseCache:
    return request.app.state.response_cache


def get_collector(request: Request) -> IndicatorCollector:
    return request.app.state.collector


def get_sync_service(request: Request) -> SyncService:
    return request.app.state.sync
