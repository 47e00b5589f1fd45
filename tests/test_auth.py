# tests/test_auth.py

def test_missing_token_is_401(client):
    r = client.post("/api/sincronizacao/localidades")
    assert r.status_code == 401
    assert r.json() == {
        "success": False,
        "error": "Token de autorização não fornecido",
        "source": "auth",
    }


def test_non_bearer_scheme_is_401(client):
    r = client.post("/api/sincronizacao/localidades", headers={"Authorization": "Basic abc"})
    assert r.status_code == 401


def test_wrong_token_is_403(client):
    r = client.post("/api/sincronizacao/localidades", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 403
    assert r.json()["error"] == "Token de autorização inválido"


def test_indicator_sync_requires_token(client):
    r = client.post("/api/sincronizacao/indicadores", json={"indicadores": ["pib"]})
    assert r.status_code == 401


def test_valid_token_runs_sync(client, fake_ibge, auth_headers):
    fake_ibge.add("/api/v1/localidades/estados/33/municipios", [{"id": 1, "nome": "A"}])
    fake_ibge.add("/api/v1/localidades/estados/35/municipios", [{"id": 2, "nome": "B"}])

    r = client.post("/api/sincronizacao/localidades", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["stats"] == {"regioes": 2, "estados": 2, "municipios": 2}

    status = client.get("/api/sincronizacao/status").json()["data"]
    assert status["emAndamento"] is False
    assert status["totais"]["municipios"] == 2
    assert status["ultimas"]["localidades"]["status"] == "completo"


def test_indicator_sync_needs_a_list(client, auth_headers):
    r = client.post("/api/sincronizacao/indicadores", json={}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["source"] == "validation"
