# tests/conftest.py
# Shared fixtures: a fake IBGE upstream behind httpx.MockTransport and an
# app built through create_app() with that transport injected.

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from ibge_portal.core.config import Settings
from ibge_portal.main import create_app

IBGE_V1  = "https://ibge.test/api/v1"
IBGE_AGG = "https://ibge.test/api/v3/agregados"
API_KEY  = "test-key"

ESTADOS = [
    {"id": 33, "sigla": "RJ", "nome": "Rio de Janeiro", "regiao": {"id": 3, "sigla": "SE", "nome": "Sudeste"}},
    {"id": 35, "sigla": "SP", "nome": "São Paulo", "regiao": {"id": 3, "sigla": "SE", "nome": "Sudeste"}},
]
REGIOES = [
    {"id": 3, "sigla": "SE", "nome": "Sudeste"},
    {"id": 4, "sigla": "S", "nome": "Sul"},
]


class FakeIBGE:
    """Path-keyed canned responses; unknown paths answer 404."""

    def __init__(self):
        self.routes: dict[str, tuple[int, object]] = {}
        self.calls: list[httpx.Request] = []

    def add(self, path: str, payload=None, status: int = 200) -> None:
        self.routes[path] = (status, payload)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.calls]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        status, payload = self.routes.get(request.url.path, (404, {"message": "Not found"}))
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, (bytes, str)):
            return httpx.Response(status, content=payload)
        return httpx.Response(status, content=json.dumps(payload).encode(),
                              headers={"Content-Type": "application/json"})


@pytest.fixture
def fake_ibge() -> FakeIBGE:
    fake = FakeIBGE()
    fake.add("/api/v1/localidades/estados", ESTADOS)
    fake.add("/api/v1/localidades/regioes", REGIOES)
    return fake


@pytest.fixture
def settings() -> Settings:
    s = Settings()
    s.ibge_base_url = IBGE_V1
    s.agregados_url = IBGE_AGG
    s.environment   = "development"
    s.api_key       = API_KEY
    s.sync_delay_s  = 0
    return s


@pytest.fixture
def app(settings, fake_ibge):
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_ibge.handler))
    return create_app(settings, http_client=http)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {API_KEY}"}
