"""
ibge_portal/core/http_client.py
Async httpx client for the IBGE servicodados API.
  • IBGEClient.get_json() → parsed JSON or UpstreamError
  • One client per application (app.state.ibge), closed on shutdown
  • Single attempt per call, no retries
"""

import logging
from typing import Any, Optional

import httpx

from ibge_portal.core.errors import UpstreamError

log = logging.getLogger("ibge_client")

_LIMITS  = httpx.Limits(max_connections=20, max_keepalive_connections=10)
_HEADERS = {"Accept": "application/json"}


def build_http_client(timeout_s: Optional[float] = 30.0,
                      transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    timeout = httpx.Timeout(timeout_s, connect=min(timeout_s, 15.0)) if timeout_s else httpx.Timeout(None)
    return httpx.AsyncClient(
        headers=_HEADERS,
        timeout=timeout,
        follow_redirects=True,
        limits=_LIMITS,
        transport=transport,
    )


def _upstream_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error")
        if msg:
            return str(msg)
    return "Erro na API externa"


class IBGEClient:
    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    async def get_json(self, url: str, params: Optional[dict] = None) -> Any:
        """GET url and return the decoded JSON body.

        Raises UpstreamError with the upstream status for non-2xx answers,
        and with 504 for transport failures or undecodable bodies.
        """
        log.info(f"GET {url}" + (f" {params}" if params else ""))
        try:
            resp = await self._http.get(url, params=params)
        except httpx.HTTPError as ex:
            log.warning(f"IBGE request failed ({url}): {ex!r}")
            raise UpstreamError(
                "Não foi possível se comunicar com o servidor externo. "
                "Verifique sua conexão ou tente novamente mais tarde.",
                url=url,
            ) from ex

        if not resp.is_success:
            log.warning(f"IBGE HTTP {resp.status_code} for {url}")
            raise UpstreamError(_upstream_message(resp), status_code=resp.status_code, url=url)

        try:
            return resp.json()
        except ValueError as ex:
            log.warning(f"IBGE returned non-JSON body for {url}")
            raise UpstreamError("Resposta inválida da API externa", url=url) from ex

    async def aclose(self) -> None:
        if not self._http.is_closed:
            await self._http.aclose()
