"""
ibge_portal/reports/typed.py
═══════════════════════════════════════════════════════════════════════════════
Data for GET /api/relatorios/{tipo}.

  demografico   → 1301                     ?localidade= &ano=
  economico     → pib 1378 | renda 4115 | desemprego 6381   ?indicador= &periodo=
  educacao      → fundamental 2579 | medio 2580 | superior 2581 | todos
  saude         → expectativa_vida 3175 | mortalidade 3320  ?indicador=
  habitacao     → 5938
  personalizado → ?agregados=a,b (sequential, first failure aborts)

Every row gets a tipo_relatorio column; qualified types also carry their
qualifier (indicador / nivel_ensino). Unknown qualifiers fall back to the
type's default aggregate.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import Mapping

from ibge_portal.core.config import REPORT_TYPES
from ibge_portal.core.errors import InternalError, NotFoundError, ValidationError
from ibge_portal.core.http_client import IBGEClient
from ibge_portal.reports.normalizer import ReportRecord, normalize_records
from ibge_portal.sources.agregados import LATEST_PERIOD, fetch_values, validate_code

log = logging.getLogger("typed_reports")

DEFAULT_LOCALITY = "BR"


def report_type(tipo: str) -> dict:
    cfg = REPORT_TYPES.get(tipo)
    if cfg is None:
        raise NotFoundError(
            f"Tipo de relatório inválido: {tipo}. Os tipos válidos são: {', '.join(REPORT_TYPES)}"
        )
    return cfg


async def _records(client: IBGEClient, agg_url: str, codigo: str,
                   localidade: str, periodo: str = LATEST_PERIOD) -> list[ReportRecord]:
    raw = await fetch_values(client, agg_url, codigo, localidades=localidade, periodos=periodo)
    return normalize_records(raw)


async def fetch_report_rows(client: IBGEClient, agg_url: str, tipo: str,
                            params: Mapping[str, str]) -> list[dict]:
    cfg        = report_type(tipo)
    label      = cfg["label"]
    localidade = params.get("localidade") or DEFAULT_LOCALITY
    periodo    = params.get(cfg.get("period_param", ""), "") or LATEST_PERIOD

    if "list_param" in cfg:
        raw_list = params.get(cfg["list_param"]) or ""
        codes = [validate_code(c) for c in raw_list.split(",") if c.strip()]
        if not codes:
            raise ValidationError(f'Parâmetro "{cfg["list_param"]}" é obrigatório para este relatório')
        records: list[ReportRecord] = []
        for codigo in codes:
            records.extend(await _records(client, agg_url, codigo, localidade))
        return [r.with_extra(tipo_relatorio=label).as_row() for r in records]

    if "aggregate" in cfg:
        records = await _records(client, agg_url, cfg["aggregate"], localidade, periodo)
        return [r.with_extra(tipo_relatorio=label).as_row() for r in records]

    aggregates = cfg.get("aggregates")
    if not aggregates:
        raise InternalError(f"Relatório '{tipo}' sem agregados configurados")

    qualifier = params.get(cfg["qualifier"]) or cfg["default"]
    column    = cfg.get("qualifier_column", cfg["qualifier"])

    if qualifier in aggregates:
        wanted = [qualifier]
    else:
        if qualifier != cfg["default"]:
            log.info(f"Unknown {cfg['qualifier']} '{qualifier}' for {tipo}, using default")
        wanted = cfg.get("combined") or [cfg["default"]]

    rows: list[dict] = []
    for name in wanted:
        records = await _records(client, agg_url, aggregates[name], localidade, periodo)
        rows.extend(r.with_extra(tipo_relatorio=label, **{column: name}).as_row() for r in records)
    return rows
