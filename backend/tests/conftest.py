"""Fixtures dos testes da API: banco SQLite em memória, novo a cada teste."""
import os

# Precisa vir antes de importar caixa: o engine é criado no import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import pytest
from fastapi.testclient import TestClient

ADMIN_EMAIL = "admin@caixa.local"
ADMIN_PASSWORD = "admin123"
VISTORIADOR_PASSWORD = "senha123"


@pytest.fixture
def client(request):
    """Cliente de teste; o lifespan cria as tabelas, o catálogo e o admin."""
    from caixa.main import app
    raise_errors = request.node.get_closest_marker("server_errors") is None
    with TestClient(app, raise_server_exceptions=raise_errors) as c:
        yield c


def login(client, email, password):
    r = client.post("/auth/login", data={"username": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def store(client, admin_headers):
    r = client.post("/stores", json={"name": "Loja Centro"}, headers=admin_headers)
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture
def vistoriador(client, admin_headers, store):
    r = client.post(
        "/users",
        json={
            "name": "Ana Souza",
            "email": "ana@caixa.local",
            "role": "vistoriador",
            "store_id": store["id"],
            "password": VISTORIADOR_PASSWORD,
        },
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture
def vistoriador_headers(client, vistoriador):
    return login(client, vistoriador["email"], VISTORIADOR_PASSWORD)


@pytest.fixture
def service_types(client, admin_headers):
    """Catálogo semeado, indexado pelo código."""
    r = client.get("/service-types", headers=admin_headers)
    assert r.status_code == 200
    return {st["code"]: st for st in r.json()}
