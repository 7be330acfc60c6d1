"""A receber: criação junto com o caixa, busca, pagamento e baixa pelo admin."""
import pytest

from caixa.models import ReceivableStatus
from caixa.services.receivable_status import can_transition


@pytest.fixture
def receivable(client, vistoriador_headers, service_types):
    payload = {
        "date": "2025-03-10",
        "note": "Caixa com fiado",
        "services": [{"service_type_id": service_types["CARRO"]["id"], "quantity": 1, "unit_price_cents": 12000}],
        "receivables": [
            {
                "customer_name": "  José Araújo ",
                "plate": "XYZ9K88",
                "service_type_id": service_types["CARRO"]["id"],
                "original_amount_cents": 12000,
                "due_date": "2025-03-20",
            },
            {"customer_name": "Maria", "original_amount_cents": 5000},
        ],
    }
    r = client.post("/cash-boxes", json=payload, headers=vistoriador_headers)
    assert r.status_code == 200, r.text
    rows = client.get("/receivables", params={"q": "jose"}, headers=vistoriador_headers).json()
    assert len(rows) == 1
    return rows[0]


def test_transitions():
    assert can_transition(ReceivableStatus.ABERTO, ReceivableStatus.PAGO_PENDENTE_BAIXA)
    assert not can_transition(ReceivableStatus.ABERTO, ReceivableStatus.BAIXADO)
    assert can_transition(ReceivableStatus.PAGO_PENDENTE_BAIXA, ReceivableStatus.BAIXADO)
    assert not can_transition(ReceivableStatus.PAGO_PENDENTE_BAIXA, ReceivableStatus.PAGO_PENDENTE_BAIXA)
    assert not can_transition(ReceivableStatus.BAIXADO, ReceivableStatus.PAGO_PENDENTE_BAIXA)


def test_receivable_fields(receivable):
    assert receivable["customer_name"] == "José Araújo"
    assert receivable["service_name"] == "Carro"
    assert receivable["due_date"] == "2025-03-20"
    assert receivable["paid_cents"] == 0
    assert receivable["payments"] == []


def test_search_by_plate_and_due_range(client, vistoriador_headers, receivable):
    rows = client.get("/receivables", params={"q": "xyz9"}, headers=vistoriador_headers).json()
    assert [r["id"] for r in rows] == [receivable["id"]]
    rows = client.get(
        "/receivables",
        params={"due_from": "2025-03-15", "due_to": "2025-03-25"},
        headers=vistoriador_headers,
    ).json()
    assert [r["id"] for r in rows] == [receivable["id"]]


def test_patch_receivable(client, vistoriador_headers, receivable):
    r = client.patch(
        f"/receivables/{receivable['id']}",
        json={"plate": "", "original_amount_cents": 10000},
        headers=vistoriador_headers,
    )
    assert r.status_code == 200
    data = r.json()
    assert data["plate"] is None
    assert data["original_amount_cents"] == 10000
    assert data["customer_name"] == "José Araújo"


def test_payment_and_write_off(client, vistoriador_headers, admin_headers, receivable):
    rid = receivable["id"]

    r = client.post(f"/receivables/{rid}/write-off", headers=admin_headers)
    assert r.status_code == 400

    r = client.post(
        f"/receivables/{rid}/payments",
        json={"paid_on": "2025-03-15", "amount_cents": 12000, "method": "pix"},
        headers=vistoriador_headers,
    )
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["status"] == "pago_pendente_baixa"
    assert data["paid_cents"] == 12000
    assert [p["paid_on"] for p in data["payments"]] == ["2025-03-15"]

    # já pago, aguardando baixa: não aceita outro pagamento
    r = client.post(
        f"/receivables/{rid}/payments",
        json={"paid_on": "2025-03-18", "amount_cents": 5000},
        headers=vistoriador_headers,
    )
    assert r.status_code == 400

    r = client.post(f"/receivables/{rid}/write-off", headers=vistoriador_headers)
    assert r.status_code == 403

    r = client.post(f"/receivables/{rid}/write-off", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "baixado"

    r = client.post(
        f"/receivables/{rid}/payments",
        json={"paid_on": "2025-03-19", "amount_cents": 100},
        headers=vistoriador_headers,
    )
    assert r.status_code == 400

    active = client.get("/receivables", params={"active": True}, headers=vistoriador_headers).json()
    assert rid not in [r["id"] for r in active]


def test_payment_must_be_positive(client, vistoriador_headers, receivable):
    r = client.post(
        f"/receivables/{receivable['id']}/payments",
        json={"paid_on": "2025-03-15", "amount_cents": 0},
        headers=vistoriador_headers,
    )
    assert r.status_code == 422


def test_missing_receivable(client, admin_headers):
    assert client.post("/receivables/999/write-off", headers=admin_headers).status_code == 404
    r = client.patch("/receivables/999", json={"plate": "A"}, headers=admin_headers)
    assert r.status_code == 404
