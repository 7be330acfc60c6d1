"""Fechamento mensal, despesas fixas/variáveis e indicadores do painel."""
import pytest


@pytest.fixture
def closure(client, admin_headers, store, service_types):
    payload = {
        "store_id": store["id"],
        "month": "2025-03",
        "services": [
            {"service_type_id": service_types["CARRO"]["id"], "quantity": 10},
            {"service_type_id": service_types["MOTO"]["id"], "quantity": 2, "unit_price_cents": 9000},
            {"service_type_id": service_types["CAMINHAO"]["id"], "quantity": 0},
        ],
        "expenses": [
            {"title": "Aluguel", "amount_cents": 150000, "source": "fixa"},
            {"title": "Café", "amount_cents": 2000, "source": "avulsa"},
            {"title": "", "amount_cents": 100},
        ],
    }
    r = client.put("/admin/monthly-closure", json=payload, headers=admin_headers)
    assert r.status_code == 200, r.text
    return r.json()


def test_empty_month_offers_templates(client, admin_headers, store):
    r = client.post(
        "/admin/expense-templates",
        json={"name": "Internet", "default_amount_cents": 12000, "preferred_day": 5},
        headers=admin_headers,
    )
    assert r.status_code == 200
    client.post(
        "/admin/expense-templates",
        json={"name": "Inativo", "default_amount_cents": 1, "is_active": False},
        headers=admin_headers,
    )
    r = client.get(
        "/admin/monthly-closure", params={"store_id": store["id"], "month": "2025-03"}, headers=admin_headers
    )
    assert r.status_code == 200
    data = r.json()
    assert data["cash_box_id"] is None
    assert data["month"] == "2025-03-01"
    assert [e["title"] for e in data["default_expenses"]] == ["Internet"]
    assert len(data["service_types"]) == 10


def test_invalid_month(client, admin_headers, store):
    r = client.get(
        "/admin/monthly-closure", params={"store_id": store["id"], "month": "março"}, headers=admin_headers
    )
    assert r.status_code == 400


def test_closure_saved(closure, service_types):
    assert closure["cash_box_id"] is not None
    prices = {s["service_type_id"]: s["unit_price_cents"] for s in closure["services"]}
    assert prices == {service_types["CARRO"]["id"]: 12000, service_types["MOTO"]["id"]: 9000}
    by_source = {(e["source"], e["title"]) for e in closure["expenses"]}
    assert by_source == {("avulsa", "Café"), ("fixa", "Aluguel")}
    assert closure["default_expenses"] == []


def test_closure_replaced_on_second_save(client, admin_headers, store, service_types, closure):
    payload = {
        "store_id": store["id"],
        "month": "2025-03-01",
        "services": [{"service_type_id": service_types["CARRO"]["id"], "quantity": 5}],
        "expenses": [{"title": "Aluguel novo", "amount_cents": 160000, "source": "fixa"}],
    }
    r = client.put("/admin/monthly-closure", json=payload, headers=admin_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["cash_box_id"] == closure["cash_box_id"]
    assert len(data["services"]) == 1
    assert [e["title"] for e in data["expenses"]] == ["Aluguel novo"]

    fixed = client.get(
        "/admin/fixed-expenses", params={"start": "2025-03-01", "end": "2025-03-31"}, headers=admin_headers
    ).json()
    assert [f["title"] for f in fixed] == ["Aluguel novo"]


def test_summary_and_dashboard(client, admin_headers, store, closure):
    params = {"start": "2025-03-01", "end": "2025-03-31", "store_id": store["id"]}
    r = client.get("/analytics/monthly-summary", params=params, headers=admin_headers)
    assert r.status_code == 200
    data = r.json()
    assert len(data["items"]) == 1
    month = data["items"][0]
    assert month["month_key"] == "2025-03"
    assert month["gross"] == 120000 + 18000
    assert month["expenses_variable"] == 2000
    assert month["fixed_expenses"] == 150000
    assert month["net_after_fixed"] == 138000 - 2000 - 150000
    assert data["totals"]["gross"] == 138000

    metrics = client.get("/analytics/metrics", params=params, headers=admin_headers).json()
    assert metrics["total_quantity"] == 12
    assert metrics["fixed_expenses_total_cents"] == 150000

    dre = client.get("/analytics/dre", params=params, headers=admin_headers).json()
    assert dre["status"] == "critico"

    waterfall = client.get("/analytics/charts/waterfall", params=params, headers=admin_headers).json()
    assert waterfall["loja"] == "Loja Centro"

    pareto = client.get("/analytics/charts/pareto", params=params, headers=admin_headers).json()
    assert pareto[0]["servico"] == "Carro"

    for chart in ("margin", "trend", "heatmap"):
        assert client.get(f"/analytics/charts/{chart}", params=params, headers=admin_headers).status_code == 200


def test_export_csv(client, admin_headers, store, closure):
    r = client.get(
        "/analytics/export",
        params={"start": "2025-03-01", "end": "2025-03-31", "store_id": store["id"]},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert r.content.startswith("\ufeff".encode("utf-8"))
    text = r.content.decode("utf-8-sig")
    assert '"março de 2025";"1380,00"' in text


def test_variable_expenses(client, admin_headers, closure):
    params = {"start": "2025-03-01", "end": "2025-03-31"}
    rows = client.get("/admin/variable-expenses", params=params, headers=admin_headers).json()
    assert [r["title"] for r in rows] == ["Café"]

    r = client.post(
        "/admin/variable-expenses",
        json={"cash_box_id": closure["cash_box_id"], "title": "Papel", "amount_cents": 3000},
        headers=admin_headers,
    )
    assert r.status_code == 200
    created = r.json()
    assert created["date"] == "2025-03-01"

    rows = client.get(
        "/admin/variable-expenses", params={**params, "view_mode": "top5"}, headers=admin_headers
    ).json()
    assert [r["title"] for r in rows] == ["Papel", "Café"]

    r = client.put(
        f"/admin/variable-expenses/{created['id']}",
        json={"title": "Papel A4", "amount_cents": 1000},
        headers=admin_headers,
    )
    assert r.json()["title"] == "Papel A4"
    assert client.delete(f"/admin/variable-expenses/{created['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/admin/variable-expenses/{created['id']}", headers=admin_headers).status_code == 404


def test_fixed_expense_upsert(client, admin_headers, store):
    r = client.put(
        "/admin/fixed-expenses",
        json={"store_id": store["id"], "month_year": "2025-04-17", "title": "Luz", "amount_cents": 30000},
        headers=admin_headers,
    )
    assert r.status_code == 200
    created = r.json()
    assert created["month_year"] == "2025-04-01"

    r = client.put(
        "/admin/fixed-expenses",
        json={"id": created["id"], "store_id": store["id"], "month_year": "2025-04", "title": "Luz", "amount_cents": 31000},
        headers=admin_headers,
    )
    assert r.json()["amount_cents"] == 31000
    assert client.delete(f"/admin/fixed-expenses/{created['id']}", headers=admin_headers).status_code == 200


def test_closure_conflicts_with_regular_box(client, admin_headers, store, service_types):
    r = client.post(
        "/cash-boxes",
        json={"date": "2025-03-01", "note": "Caixa do admin", "store_id": store["id"]},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    payload = {
        "store_id": store["id"],
        "month": "2025-03",
        "services": [{"service_type_id": service_types["CARRO"]["id"], "quantity": 1}],
        "expenses": [],
    }
    r = client.put("/admin/monthly-closure", json=payload, headers=admin_headers)
    assert r.status_code == 409
    assert "Já existe um caixa" in r.json()["detail"]


def test_delete_closure_keeps_fixed(client, admin_headers, closure):
    r = client.delete(f"/admin/monthly-closure/{closure['cash_box_id']}", headers=admin_headers)
    assert r.status_code == 200
    fixed = client.get(
        "/admin/fixed-expenses", params={"start": "2025-03-01", "end": "2025-03-31"}, headers=admin_headers
    ).json()
    assert [f["title"] for f in fixed] == ["Aluguel"]
    r = client.delete(f"/admin/monthly-closure/{closure['cash_box_id']}", headers=admin_headers)
    assert r.status_code == 404
