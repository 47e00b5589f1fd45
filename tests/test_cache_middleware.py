# tests/test_cache_middleware.py

from ibge_portal.core.cache_middleware import ttl_for
from ibge_portal.core.config import Settings


def test_second_get_is_served_from_cache(client, fake_ibge):
    first = client.get("/api/localidades/estados")
    second = client.get("/api/localidades/estados")

    assert first.status_code == 200
    assert first.headers["X-Cache"] == "MISS"
    assert second.headers["X-Cache"] == "HIT"
    assert second.status_code == first.status_code == 200
    assert second.headers["content-type"] == first.headers["content-type"]
    assert second.content == first.content
    assert fake_ibge.paths().count("/api/v1/localidades/estados") == 1


def test_clear_forces_refetch(client, fake_ibge):
    client.get("/api/localidades/estados")
    r = client.post("/api/localidades/cache/clear")
    assert r.status_code == 200
    assert r.json()["removed"] == 1

    again = client.get("/api/localidades/estados")
    assert again.headers["X-Cache"] == "MISS"
    assert fake_ibge.paths().count("/api/v1/localidades/estados") == 2


def test_clear_single_key(client):
    client.get("/api/localidades/estados")
    client.get("/api/localidades/regioes")

    r = client.post("/api/localidades/cache/clear", params={"key": "/api/localidades/regioes"})
    assert r.json()["removed"] == 1
    assert client.get("/api/localidades/estados").headers["X-Cache"] == "HIT"
    assert client.get("/api/localidades/regioes").headers["X-Cache"] == "MISS"


def test_error_responses_are_not_cached(client, fake_ibge):
    fake_ibge.add("/api/v1/localidades/estados", {"message": "boom"}, status=500)
    first = client.get("/api/localidades/estados")
    second = client.get("/api/localidades/estados")

    assert first.status_code == 500
    assert second.headers["X-Cache"] == "MISS"
    assert client.get("/api/localidades/cache/stats").json()["data"]["totalEntries"] == 0


def test_query_order_yields_distinct_keys(client, fake_ibge):
    fake_ibge.add("/api/v3/agregados/1301/periodos/ultimo/variaveis", [])
    client.get("/api/agregados/1301?localidades=BR&periodos=ultimo")
    r = client.get("/api/agregados/1301?periodos=ultimo&localidades=BR")

    assert r.headers["X-Cache"] == "MISS"
    assert client.get("/api/localidades/cache/stats").json()["data"]["totalEntries"] == 2


def test_post_and_unmatched_paths_bypass_cache(client, auth_headers):
    r = client.get("/api/sincronizacao/status")
    assert "X-Cache" not in r.headers

    r = client.post("/api/relatorios/personalizado", json={"indicadores": [], "localidades": ["BR"]})
    assert "X-Cache" not in r.headers


def test_ttl_rules():
    settings = Settings()
    settings.cache_default_ttl_s = 300
    rules = settings.cache_rules
    assert ttl_for("/api/localidades/estados", rules) == 3600
    assert ttl_for("/api/localidades/estados/RJ/municipios", rules) == 3600
    assert ttl_for("/api/agregados/busca", rules) == 1800
    assert ttl_for("/api/agregados/indicadores", rules) == 300
    assert ttl_for("/api/agregados/1301", rules) == 1800
    assert ttl_for("/api/relatorios/demografico", rules) == 300
    assert ttl_for("/api/localidades/cache/stats", rules) is None
    assert ttl_for("/api/agregadosx", rules) is None


def test_default_ttl_fills_short_lived_rules():
    settings = Settings()
    settings.cache_default_ttl_s = 42
    rules = settings.cache_rules
    assert ttl_for("/api/relatorios/saude", rules) == 42
    assert ttl_for("/api/relatorios/modelos", rules) == 3600


def test_cached_download_replays_attachment_headers(client, fake_ibge):
    fake_ibge.add("/api/v3/agregados/5938/periodos/ultimo/variaveis", [{"id": "1", "valor": 10}])
    first = client.get("/api/relatorios/habitacao?formato=csv")
    second = client.get("/api/relatorios/habitacao?formato=csv")

    assert second.headers["X-Cache"] == "HIT"
    assert second.status_code == 200
    assert second.headers["content-type"] == first.headers["content-type"]
    assert second.headers["content-disposition"] == first.headers["content-disposition"]
    assert second.content == first.content
