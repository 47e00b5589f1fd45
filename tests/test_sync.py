# tests/test_sync.py

import httpx
import pytest

from ibge_portal.core.cache import ResponseCache
from ibge_portal.core.errors import SyncInProgressError
from ibge_portal.core.http_client import IBGEClient
from ibge_portal.core.pacing import FixedDelayPacer
from ibge_portal.services.repository import LocalityRepository
from ibge_portal.services.sync import SyncService

from conftest import ESTADOS, FakeIBGE

MUNICIPIOS_RJ = [
    {"id": 3304557, "nome": "Rio de Janeiro",
     "microrregiao": {"mesorregiao": {"UF": {"id": 33}}}},
    {"id": 3303302, "nome": "Niterói", "microrregiao": None,
     "regiao-imediata": {"regiao-intermediaria": {"UF": {"id": 33}}}},
]
MUNICIPIOS_SP = [
    {"id": 3550308, "nome": "São Paulo", "microrregiao": None},
]


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


@pytest.fixture
def upstream(fake_ibge) -> FakeIBGE:
    fake_ibge.add("/api/v1/localidades/estados/33/municipios", MUNICIPIOS_RJ)
    fake_ibge.add("/api/v1/localidades/estados/35/municipios", MUNICIPIOS_SP)
    return fake_ibge


def _service(settings, upstream, sleep=None):
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    cache = ResponseCache()
    pacer = FixedDelayPacer(delay_s=0.2, sleep=sleep or RecordingSleep())
    return SyncService(IBGEClient(http), settings, LocalityRepository(), cache, pacer=pacer)


@pytest.mark.asyncio
async def test_pacer_sleeps_only_between_batches():
    sleep = RecordingSleep()
    pacer = FixedDelayPacer(delay_s=0.5, batch_size=2, sleep=sleep)
    batches = [b async for b in pacer.batches(range(5))]

    assert batches == [[0, 1], [2, 3], [4]]
    assert sleep.calls == [0.5, 0.5]


def test_pacer_rejects_bad_config():
    with pytest.raises(ValueError):
        FixedDelayPacer(delay_s=-1)
    with pytest.raises(ValueError):
        FixedDelayPacer(batch_size=0)


@pytest.mark.asyncio
async def test_locality_sync_counts_and_pacing(settings, upstream):
    sleep = RecordingSleep()
    service = _service(settings, upstream, sleep)
    service.cache.put("/api/localidades/estados", b"[]", 200, {}, ttl_s=60)

    result = await service.sync_localidades()

    assert result["success"] is True
    assert result["stats"] == {"regioes": 2, "estados": 2, "municipios": 3}
    # one pause between the two states
    assert sleep.calls == [0.2]
    assert len(service.cache) == 0

    repo = service.repository
    assert repo.counts() == {"regioes": 2, "estados": 2, "municipios": 3}
    estado_of = {m.nome: m.estado_id for m in repo._municipios.values()}
    assert estado_of["Rio de Janeiro"] == 33
    assert estado_of["Niterói"] == 33
    # no UF path in the row: falls back to the state being synced
    assert estado_of["São Paulo"] == 35
    assert repo.sync_summary()["localidades"]["count"] == 3


@pytest.mark.asyncio
async def test_failing_state_is_skipped(settings, upstream):
    upstream.add("/api/v1/localidades/estados/35/municipios", {"message": "erro"}, status=503)
    service = _service(settings, upstream)

    result = await service.sync_localidades()

    assert result["stats"]["municipios"] == 2
    assert service.repository.counts()["estados"] == len(ESTADOS)


@pytest.mark.asyncio
async def test_concurrent_sync_is_rejected(settings, upstream):
    service = _service(settings, upstream)
    async with service._lock:
        assert service.status()["emAndamento"] is True
        with pytest.raises(SyncInProgressError):
            await service.sync_localidades()
        with pytest.raises(SyncInProgressError):
            await service.sync_indicadores(["pib"])


@pytest.mark.asyncio
async def test_indicator_sync_reports_each_indicator(settings, upstream):
    upstream.add("/api/v1/projecoes/populacao", {"projecao": {"populacao": 1}})
    service = _service(settings, upstream)

    result = await service.sync_indicadores(["populacao", "educacao", "pib", "inexistente"])
    res = result["resultados"]

    assert res["populacao"] == {"success": True, "count": 1,
                                "message": "1 registros de populacao sincronizados"}
    assert res["educacao"]["success"] is True
    assert res["educacao"]["count"] == 0
    assert res["pib"]["success"] is False
    assert res["inexistente"] == {"success": False, "error": "Indicador não suportado: inexistente"}
    assert service.repository.sync_summary()["pib"]["status"] == "erro"
