"""
ibge_portal/core/cache_middleware.py
═══════════════════════════════════════════════════════════════════════════
HTTP response cache in front of the routers.

  GET + rule match + valid entry → replay status/headers/body, X-Cache: HIT
  GET + rule match + no entry    → run the route, X-Cache: MISS,
                                   store the response if status < 400
  anything else                  → pass through, store untouched

Key = path + "?" + raw query string, verbatim (parameter order matters).
═══════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from ibge_portal.core.cache import ResponseCache

log = logging.getLogger("cache")

CACHE_HEADER = "X-Cache"


def cache_key(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def ttl_for(path: str, rules: list[tuple[str, int]]) -> Optional[int]:
    """TTL of the first rule whose prefix matches path, else None."""
    for prefix, ttl in rules:
        if path == prefix or path.startswith(prefix.rstrip("/") + "/"):
            return ttl
    return None


class ResponseCacheMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, store: ResponseCache, rules: list[tuple[str, int]]):
        super().__init__(app)
        self.store = store
        self.rules = rules

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "GET":
            return await call_next(request)

        ttl = ttl_for(request.url.path, self.rules)
        if ttl is None:
            return await call_next(request)

        key = cache_key(request)
        entry = self.store.get(key)
        if entry is not None:
            log.debug(f"Hit for {key}")
            response = Response(content=entry.payload, status_code=entry.status, headers=entry.headers)
            response.headers[CACHE_HEADER] = "HIT"
            return response

        log.debug(f"Miss for {key}")
        response = await call_next(request)
        body = b"".join([chunk async for chunk in response.body_iterator])
        headers = {k: v for k, v in response.headers.items() if k.lower() != CACHE_HEADER.lower()}

        if response.status_code < 400:
            self.store.put(key, body, response.status_code, headers, ttl)

        fresh = Response(content=body, status_code=response.status_code, headers=headers)
        fresh.headers[CACHE_HEADER] = "MISS"
        return fresh
