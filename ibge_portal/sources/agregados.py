"""
ibge_portal/sources/agregados.py
═══════════════════════════════════════════════════════════════════════════════
IBGE SIDRA aggregates API (v3).

Endpoints used:
  {agg}                                                   → catalogue
  {agg}/{codigo}/metadados | /periodos | /variaveis       → descriptors
  {agg}/{codigo}/periodos/{p}/variaveis[/{v}]?localidades= → values

A 404 from upstream on a single aggregate becomes NotFoundError; other
upstream failures propagate as UpstreamError.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import re
from typing import Any, Optional

from ibge_portal.core.errors import NotFoundError, UpstreamError, ValidationError
from ibge_portal.core.http_client import IBGEClient

log = logging.getLogger("agregados")

_CODE_RE = re.compile(r"^\d+$")
LATEST_PERIOD = "ultimo"


def validate_code(codigo: str) -> str:
    codigo = (codigo or "").strip()
    if not _CODE_RE.match(codigo):
        raise ValidationError("Código do agregado é obrigatório e deve ser numérico")
    return codigo


async def _get_aggregate(client: IBGEClient, url: str, params: Optional[dict] = None) -> Any:
    try:
        return await client.get_json(url, params=params)
    except UpstreamError as ex:
        if ex.upstream_status == 404:
            raise NotFoundError(
                "Agregado não encontrado: o código especificado não existe ou não está disponível"
            ) from ex
        raise


def values_url(agg_url: str, codigo: str, periodos: str = LATEST_PERIOD,
               variaveis: Optional[str] = None) -> str:
    url = f"{agg_url}/{codigo}/periodos/{periodos or LATEST_PERIOD}/variaveis"
    if variaveis:
        url += f"/{variaveis}"
    return url


async def fetch_values(client: IBGEClient, agg_url: str, codigo: str,
                       localidades: str = "BR", periodos: str = LATEST_PERIOD,
                       variaveis: Optional[str] = None) -> Any:
    url = values_url(agg_url, codigo, periodos, variaveis)
    return await _get_aggregate(client, url, params={"localidades": localidades or "BR"})


async def fetch_catalogue(client: IBGEClient, agg_url: str, params: Optional[dict] = None) -> list:
    data = await client.get_json(agg_url, params=params)
    return data if isinstance(data, list) else []


async def fetch_descriptor(client: IBGEClient, agg_url: str, codigo: str, kind: str) -> Any:
    """kind is one of metadados / periodos / variaveis."""
    return await _get_aggregate(client, f"{agg_url}/{codigo}/{kind}")


def flatten_catalogue(data: list) -> list[dict]:
    """The v3 catalogue groups aggregates by survey; older dumps are flat."""
    out: list[dict] = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        if isinstance(entry.get("agregados"), list):
            survey = entry.get("nome", "")
            for agg in entry["agregados"]:
                if isinstance(agg, dict):
                    out.append({**agg, "pesquisa": agg.get("pesquisa", survey)})
        else:
            out.append(entry)
    return out


def format_catalogue_entry(agg: dict) -> dict:
    assunto = agg.get("assunto")
    periodicidade = agg.get("periodicidade")
    return {
        "id":                agg.get("id"),
        "nome":              agg.get("nome", ""),
        "periodos":          len(periodicidade) if isinstance(periodicidade, (list, dict)) else 0,
        "assunto":           (assunto.get("nome") if isinstance(assunto, dict) else assunto) or "Não categorizado",
        "ultimaAtualizacao": agg.get("dataAtualizacao"),
    }


def matches_term(agg: dict, termo: str) -> bool:
    termo = termo.lower()
    nome = str(agg.get("nome") or "").lower()
    descricao = str(agg.get("descricao") or "").lower()
    return termo in nome or termo in descricao


def format_ptbr(value: Any) -> Any:
    """1234567.5 → '1.234.567,5'. Non-numbers are returned unchanged."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    text = f"{value:,}" if isinstance(value, int) else f"{value:,.15g}"
    return text.replace(",", "\x00").replace(".", ",").replace("\x00", ".")
