"""
ibge_portal/sources/localidades.py
═══════════════════════════════════════════════════════════════════════════════
IBGE localities API (v1).

Endpoints used:
  {base}/estados                   → 27 federative units
  {base}/regioes                   → 5 macro-regions
  {base}/estados/{uf}/municipios   → municipalities of one state (id or sigla)

Responses are returned as-is (lists of dicts); reshaping for storage lives
in services/sync.py.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import re

from ibge_portal.core.errors import UpstreamError, ValidationError
from ibge_portal.core.http_client import IBGEClient

log = logging.getLogger("localidades")

_UF_RE = re.compile(r"^(\d{2}|[A-Za-z]{2})$")


def validate_uf(uf: str) -> str:
    """Accept a 2-digit state code or a 2-letter sigla."""
    uf = (uf or "").strip()
    if not _UF_RE.match(uf):
        raise ValidationError(f"UF inválida: '{uf}'. Use a sigla (ex: RJ) ou o código (ex: 33)")
    return uf.upper()


def _as_list(data, url: str) -> list[dict]:
    if not isinstance(data, list):
        raise UpstreamError("Resposta inesperada da API de localidades", status_code=502, url=url)
    return data


async def fetch_estados(client: IBGEClient, base_url: str) -> list[dict]:
    url = f"{base_url}/estados"
    return _as_list(await client.get_json(url, params={"orderBy": "nome"}), url)


async def fetch_regioes(client: IBGEClient, base_url: str) -> list[dict]:
    url = f"{base_url}/regioes"
    return _as_list(await client.get_json(url), url)


async def fetch_municipios(client: IBGEClient, base_url: str, uf: str | int) -> list[dict]:
    url = f"{base_url}/estados/{uf}/municipios"
    return _as_list(await client.get_json(url), url)


def municipio_estado_id(municipio: dict, fallback: int | None = None) -> int | None:
    """UF id of a municipality. Some IBGE rows have a null microrregiao."""
    try:
        return municipio["microrregiao"]["mesorregiao"]["UF"]["id"]
    except (KeyError, TypeError):
        pass
    try:
        return municipio["regiao-imediata"]["regiao-intermediaria"]["UF"]["id"]
    except (KeyError, TypeError):
        return fallback
