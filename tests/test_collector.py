# tests/test_collector.py

import asyncio
import time

import httpx
import pytest

from ibge_portal.core.http_client import IBGEClient
from ibge_portal.reports.collector import (
    Failure, IndicatorCollector, IndicatorQuerySpec, Success, build_request,
    collect_all, flatten_results, has_data,
)

BASE = "https://ibge.test/api/v1"


def _collector(handler) -> IndicatorCollector:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return IndicatorCollector(IBGEClient(http), BASE)


def test_build_request_population_uses_path_segment():
    url, params = build_request(BASE, IndicatorQuerySpec("populacao", ("BR", "33"), ("2021", "2022")))
    assert url == f"{BASE}/populacao/estimativa/BR|33"
    assert params == {"periodo": "2021|2022"}


def test_build_request_other_indicators_use_query():
    url, params = build_request(BASE, IndicatorQuerySpec("pib", ("33", "35")))
    assert url == f"{BASE}/economia/pib/municipal"
    assert params == {"localidades": "33|35"}

    url, params = build_request(BASE, IndicatorQuerySpec("escolas", ("BR",), ("2022",)))
    assert url == f"{BASE}/indicadores/escolas"
    assert params == {"localidades": "BR", "periodos": "2022"}


@pytest.mark.asyncio
async def test_failure_is_isolated_and_order_kept():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/economia/pib/municipal"):
            return httpx.Response(500, json={"message": "falhou"})
        return httpx.Response(200, json=[{"valor": 1}])

    results = await _collector(handler).collect(["populacao", "pib", "alfabetizacao"], ["BR"])

    assert [r.indicator_id for r in results] == ["populacao", "pib", "alfabetizacao"]
    assert isinstance(results[0], Success)
    assert isinstance(results[1], Failure)
    assert results[1].error_message == "falhou"
    assert isinstance(results[2], Success)
    assert results[1].as_dict() == {"indicador": "pib", "erro": "falhou", "dados": []}


@pytest.mark.asyncio
async def test_indicators_are_fetched_concurrently():
    delay = 0.2

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(delay)
        return httpx.Response(200, json=[{"valor": 1}])

    t0 = time.perf_counter()
    results = await _collector(handler).collect(["a", "b", "c", "d"], ["BR"])
    elapsed = time.perf_counter() - t0

    assert all(r.ok for r in results)
    assert elapsed < delay * 4 * 0.75


@pytest.mark.asyncio
async def test_collect_all_settles_every_item():
    async def fetch(n: int):
        if n == 2:
            raise ValueError("two")
        return n * 10

    results = await collect_all([1, 2, 3], fetch)
    assert [r.ok for r in results] == [True, False, True]
    assert results[0].data == 10
    assert results[1].error_message == "two"


@pytest.mark.asyncio
async def test_empty_request_list():
    results = await collect_all([], lambda x: x)
    assert results == []


def test_has_data():
    assert has_data(Success("a", [{"x": 1}]))
    assert has_data(Success("a", 0))
    assert not has_data(Success("a", []))
    assert not has_data(Success("a", {}))
    assert not has_data(Success("a", None))
    assert not has_data(Failure("a", "boom"))


def test_flatten_results_skips_failures():
    rows = flatten_results([
        Success("populacao", [{"localidade": "BR", "valor": 203}]),
        Failure("pib", "boom"),
        Success("escolas", 42),
    ])
    assert rows == [
        {"indicador": "populacao", "localidade": "BR", "valor": 203},
        {"indicador": "escolas", "valor": 42},
    ]
