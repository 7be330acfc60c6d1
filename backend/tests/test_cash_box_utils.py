"""Formulário do caixa: ordem dos serviços, preço padrão, normalização e totais."""
from datetime import date

import pytest
from pydantic import ValidationError

from caixa.models import CashBox, CashBoxElectronicEntry, CashBoxExpense, CashBoxService, PaymentMethod, ServiceType
from caixa.schemas.cash_box import (
    CashBoxForm,
    CashBoxFormDraft,
    ElectronicEntryLine,
    ExpenseLine,
    ReceivableLine,
    ServiceLine,
)
from caixa.services.cash_box_utils import (
    build_ordered_service_types,
    calculate_cash_box_totals,
    compute_box_totals,
    get_service_default_price,
    map_cash_box_to_form,
    normalize_cash_box_form,
)


@pytest.fixture
def catalog():
    return [
        ServiceType(id=1, code="MOTO", name="Moto", default_price_cents=10000, counts_in_gross=True),
        ServiceType(id=2, code="CARRO", name="Carro", default_price_cents=12000, counts_in_gross=True),
        ServiceType(id=3, code="GUINCHO", name="Guincho", default_price_cents=5000, counts_in_gross=True),
        ServiceType(id=4, code="PESQUISA", name="Pesquisa", default_price_cents=0, counts_in_gross=True),
        ServiceType(id=5, code="REV_RETORNO", name="Revistoria Retorno", default_price_cents=0, counts_in_gross=False),
        ServiceType(id=6, code="CARRO", name="Carro duplicado", default_price_cents=1, counts_in_gross=True),
    ]


def test_ordered_service_types(catalog):
    """Códigos conhecidos na ordem fixa, desconhecidos no fim, sem repetição."""
    ordered = build_ordered_service_types(catalog)
    assert [st.id for st in ordered] == [2, 1, 4, 5, 3]


def test_default_price_fallback(catalog):
    by_code = {st.code: st for st in catalog}
    assert get_service_default_price(by_code["MOTO"]) == 10000
    assert get_service_default_price(by_code["PESQUISA"]) == 6000
    assert get_service_default_price(by_code["REV_RETORNO"]) == 0


def test_normalize_empty_form(catalog):
    form = normalize_cash_box_form(catalog)
    assert [s.service_type_id for s in form.services] == [2, 1, 4, 5, 3]
    assert all(s.quantity == 0 for s in form.services)
    assert form.services[2].unit_price_cents == 6000
    assert [e.method for e in form.electronic_entries] == [PaymentMethod.PIX, PaymentMethod.CARTAO]
    assert form.note == ""


def test_normalize_keeps_filled_lines(catalog):
    draft = CashBoxFormDraft(
        date=date(2025, 3, 10),
        note="Manhã",
        services=[ServiceLine(service_type_id=1, quantity=3, unit_price_cents=9000)],
        electronic_entries=[ElectronicEntryLine(method=PaymentMethod.CARTAO, amount_cents=500)],
    )
    form = normalize_cash_box_form(catalog, draft)
    moto = next(s for s in form.services if s.service_type_id == 1)
    assert moto.quantity == 3
    assert moto.unit_price_cents == 9000
    assert form.electronic_entries[0].amount_cents == 0
    assert form.electronic_entries[1].amount_cents == 500
    assert form.date == date(2025, 3, 10)


def test_calculate_totals(catalog):
    totals = calculate_cash_box_totals(
        services=[
            ServiceLine(service_type_id=2, quantity=2, unit_price_cents=12000),
            ServiceLine(service_type_id=5, quantity=3, unit_price_cents=0),
            ServiceLine(service_type_id=99, quantity=1, unit_price_cents=50000),
        ],
        electronic_entries=[
            ElectronicEntryLine(method=PaymentMethod.PIX, amount_cents=5000),
            ElectronicEntryLine(method=PaymentMethod.CARTAO, amount_cents=3000),
        ],
        expenses=[ExpenseLine(title="Lanche", amount_cents=1500)],
        receivables=[ReceivableLine(customer_name="João", original_amount_cents=2000)],
        service_types=catalog,
    )
    assert totals.gross == 24000
    assert totals.return_quantity == 3
    assert totals.electronic_total == 8000
    assert totals.net == 22500
    assert totals.cash == 24000 - 1500 - 2000 - 8000


def test_compute_box_totals_and_form(catalog):
    by_id = {st.id: st for st in catalog}
    box = CashBox(
        id=1,
        store_id=1,
        vistoriador_id=1,
        date=date(2025, 3, 10),
        note="Tarde",
        services=[
            CashBoxService(service_type_id=1, quantity=2, unit_price_cents=10000, service_type=by_id[1]),
            CashBoxService(service_type_id=5, quantity=1, unit_price_cents=0, service_type=by_id[5]),
        ],
        electronic_entries=[CashBoxElectronicEntry(method=PaymentMethod.PIX, amount_cents=7000)],
        expenses=[CashBoxExpense(title="Gasolina", amount_cents=4000)],
    )
    totals = compute_box_totals(box)
    assert totals.gross == 20000
    assert totals.return_quantity == 1
    assert totals.cash == 20000 - 4000 - 7000

    form = map_cash_box_to_form(box, catalog)
    assert form.note == "Tarde"
    assert len(form.services) == 5
    assert form.expenses[0].title == "Gasolina"
    assert form.receivables == []


def test_form_requires_note():
    with pytest.raises(ValidationError):
        CashBoxForm(date=date(2025, 3, 10), note="   ")


def test_negative_values_rejected():
    with pytest.raises(ValidationError):
        ServiceLine(service_type_id=1, quantity=-1, unit_price_cents=100)
    with pytest.raises(ValidationError):
        ServiceLine(service_type_id=0, quantity=1, unit_price_cents=100)
    with pytest.raises(ValidationError):
        ReceivableLine(customer_name="  ", original_amount_cents=100)
