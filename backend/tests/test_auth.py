"""Login, usuário atual, troca de senha e restrição por papel."""
ADMIN_EMAIL = "admin@caixa.local"
ADMIN_PASSWORD = "admin123"


def test_login_returns_token(client):
    """POST /auth/login com dados corretos devolve access_token."""
    r = client.post("/auth/login", data={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 200
    data = r.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "admin"


def test_login_email_is_case_insensitive(client):
    r = client.post("/auth/login", data={"username": ADMIN_EMAIL.upper(), "password": ADMIN_PASSWORD})
    assert r.status_code == 200


def test_login_wrong_password(client):
    r = client.post("/auth/login", data={"username": ADMIN_EMAIL, "password": "errada"})
    assert r.status_code == 401


def test_me_requires_auth(client):
    """GET /auth/me sem token devolve 401."""
    r = client.get("/auth/me")
    assert r.status_code == 401


def test_me_admin_menu(client, admin_headers):
    r = client.get("/auth/me", headers=admin_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["email"] == ADMIN_EMAIL
    ids = [m["id"] for m in data["menu_items"]]
    assert "monthly_closure" in ids
    assert "users" in ids
    assert ids[-1] == "logout"


def test_me_vistoriador_menu(client, vistoriador_headers, store):
    r = client.get("/auth/me", headers=vistoriador_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["role"] == "vistoriador"
    assert data["store_id"] == store["id"]
    ids = [m["id"] for m in data["menu_items"]]
    assert "dashboard" in ids
    assert "receivables" in ids
    assert "admin" not in ids


def test_vistoriador_cannot_reach_admin_routes(client, vistoriador_headers):
    assert client.get("/analytics/metrics", headers=vistoriador_headers).status_code == 403
    assert client.get("/admin/fixed-expenses", headers=vistoriador_headers).status_code == 403
    r = client.post("/stores", json={"name": "Outra"}, headers=vistoriador_headers)
    assert r.status_code == 403


def test_change_password(client, vistoriador, vistoriador_headers):
    r = client.post(
        "/auth/change-password",
        json={"old_password": "senha123", "new_password": "nova-senha"},
        headers=vistoriador_headers,
    )
    assert r.status_code == 200
    r = client.post("/auth/login", data={"username": vistoriador["email"], "password": "nova-senha"})
    assert r.status_code == 200


def test_change_password_too_short(client, admin_headers):
    r = client.post(
        "/auth/change-password",
        json={"old_password": ADMIN_PASSWORD, "new_password": "123"},
        headers=admin_headers,
    )
    assert r.status_code == 400


def test_duplicate_user_email(client, admin_headers, vistoriador):
    r = client.post(
        "/users",
        json={"name": "Outra Ana", "email": "ANA@caixa.local", "password": "x123456"},
        headers=admin_headers,
    )
    assert r.status_code == 400


def test_inactive_user_cannot_login(client, admin_headers, vistoriador):
    r = client.patch(f"/users/{vistoriador['id']}", json={"is_active": False}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["is_active"] is False
    r = client.post("/auth/login", data={"username": vistoriador["email"], "password": "senha123"})
    assert r.status_code == 401
