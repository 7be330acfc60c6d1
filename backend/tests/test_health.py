"""Verificação de que a aplicação está no ar."""


def test_health(client):
    """GET /health devolve 200 e status ok."""
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data.get("status") == "ok"
