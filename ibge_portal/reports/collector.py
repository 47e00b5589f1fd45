"""
ibge_portal/reports/collector.py
═══════════════════════════════════════════════════════════════════════════════
Multi-source collection for custom reports.

  collect(ids, localities, periods) → [Success | Failure, ...]

One upstream request per indicator, all in flight at once. A failing
indicator becomes a Failure in its own slot; the others are unaffected.
Output order always matches input order. No retries.

Endpoint shapes:
  /populacao/estimativa/{loc1|loc2}?periodo={p1|p2}
  /<other>?localidades={loc1|loc2}&periodos={p1|p2}
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar, Union

from ibge_portal.core.config import INDICATOR_ENDPOINTS
from ibge_portal.core.http_client import IBGEClient

log = logging.getLogger("collector")

T = TypeVar("T")


@dataclass(frozen=True)
class IndicatorQuerySpec:
    indicator_id: str
    locality_codes: tuple[str, ...]
    period_codes: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class Success:
    indicator_id: str
    data: Any

    ok = True

    def as_dict(self) -> dict:
        return {"indicador": self.indicator_id, "dados": self.data}


@dataclass(frozen=True)
class Failure:
    indicator_id: str
    error_message: str

    ok = False

    def as_dict(self) -> dict:
        return {"indicador": self.indicator_id, "erro": self.error_message, "dados": []}


IndicatorResult = Union[Success, Failure]


async def collect_all(
    items: Sequence[T],
    fetch: Callable[[T], Awaitable[Any]],
    key: Callable[[T], str] = str,
) -> list[IndicatorResult]:
    """Run fetch(item) for every item concurrently and settle them all.

    Each slot becomes Success(key(item), value) or Failure(key(item), msg).
    """

    async def _settle(item: T) -> IndicatorResult:
        name = key(item)
        try:
            return Success(name, await fetch(item))
        except Exception as ex:
            log.error(f"Indicator {name} failed: {ex}")
            return Failure(name, str(ex) or type(ex).__name__)

    return list(await asyncio.gather(*(_settle(item) for item in items)))


def endpoint_for(indicator_id: str) -> str:
    return INDICATOR_ENDPOINTS.get(indicator_id, f"/indicadores/{indicator_id}")


def build_request(base_url: str, spec: IndicatorQuerySpec) -> tuple[str, dict]:
    """Return (url, params) for one indicator query."""
    endpoint   = endpoint_for(spec.indicator_id)
    localities = "|".join(spec.locality_codes)
    periods    = "|".join(spec.period_codes) if spec.period_codes else ""

    if "populacao" in endpoint:
        url = f"{base_url}{endpoint}/{localities}"
        params = {"periodo": periods} if periods else {}
    else:
        url = f"{base_url}{endpoint}"
        params = {"localidades": localities}
        if periods:
            params["periodos"] = periods
    return url, params


class IndicatorCollector:
    def __init__(self, client: IBGEClient, base_url: str):
        self.client   = client
        self.base_url = base_url

    async def fetch(self, spec: IndicatorQuerySpec) -> Any:
        url, params = build_request(self.base_url, spec)
        return await self.client.get_json(url, params=params or None)

    async def collect(
        self,
        indicator_ids: Sequence[str],
        locality_codes: Sequence[str],
        period_codes: Optional[Sequence[str]] = None,
    ) -> list[IndicatorResult]:
        localities = tuple(locality_codes)
        periods    = tuple(period_codes) if period_codes else None
        specs = [IndicatorQuerySpec(i, localities, periods) for i in indicator_ids]

        log.info(f"Collecting {len(specs)} indicators for {len(localities)} localities")
        results = await collect_all(specs, self.fetch, key=lambda s: s.indicator_id)
        failed  = sum(1 for r in results if not r.ok)
        if failed:
            log.warning(f"{failed}/{len(results)} indicators failed")
        return results


def has_data(result: IndicatorResult) -> bool:
    """A Success whose body is not structurally empty."""
    if not isinstance(result, Success):
        return False
    data = result.data
    if data is None:
        return False
    if isinstance(data, (list, dict, str)):
        return len(data) > 0
    return True


def flatten_results(results: Sequence[IndicatorResult]) -> list[dict]:
    """Tabular rows for file exports: one row per record of each Success.

    Failures are left out; nested values are kept as-is and rendered by
    the exporter.
    """
    rows: list[dict] = []
    for result in results:
        if not isinstance(result, Success):
            continue
        data = result.data
        records = data if isinstance(data, list) else [data]
        for record in records:
            if isinstance(record, dict):
                rows.append({"indicador": result.indicator_id, **record})
            else:
                rows.append({"indicador": result.indicator_id, "valor": record})
    return rows
