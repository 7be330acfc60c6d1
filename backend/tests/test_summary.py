"""Resumo mensal: soma do bruto, mês só com despesa fixa e ordem decrescente."""
from datetime import date

from caixa.models import (
    CashBox,
    CashBoxElectronicEntry,
    CashBoxExpense,
    CashBoxService,
    ExpenseSource,
    MonthlyExpense,
    PaymentMethod,
    ServiceType,
)
from caixa.schemas.analytics import MonthlySummary
from caixa.services.summary import apply_view_mode, overall_totals, summarize_cash_boxes

CARRO = ServiceType(id=1, code="CARRO", name="Carro", default_price_cents=12000, counts_in_gross=True)
RETORNO = ServiceType(id=2, code="REV_RETORNO", name="Revistoria Retorno", default_price_cents=0, counts_in_gross=False)


def make_box(day, services=(), pix=0, cartao=0, expenses=()):
    box = CashBox(store_id=1, vistoriador_id=1, date=day, note="Caixa")
    box.services = [
        CashBoxService(service_type_id=st.id if st else 99, quantity=q, unit_price_cents=p, service_type=st)
        for st, q, p in services
    ]
    entries = []
    if pix:
        entries.append(CashBoxElectronicEntry(method=PaymentMethod.PIX, amount_cents=pix))
    if cartao:
        entries.append(CashBoxElectronicEntry(method=PaymentMethod.CARTAO, amount_cents=cartao))
    box.electronic_entries = entries
    box.expenses = [CashBoxExpense(title=t, amount_cents=a) for t, a in expenses]
    return box


def fixed(month, amount, title="Aluguel"):
    return MonthlyExpense(store_id=1, month_year=month, title=title, amount_cents=amount, source=ExpenseSource.FIXA)


def test_gross_is_sum_of_counted_services():
    boxes = [
        make_box(date(2025, 3, 3), services=[(CARRO, 2, 12000), (RETORNO, 4, 5000)], pix=3000),
        make_box(date(2025, 3, 20), services=[(CARRO, 1, 12000), (None, 1, 700)], cartao=1000, expenses=[("Café", 500)]),
        make_box(date(2025, 4, 1), services=[(CARRO, 3, 11000)]),
    ]
    items = summarize_cash_boxes(boxes, [])
    expected = 0
    for box in boxes:
        for s in box.services:
            if s.service_type is None or s.service_type.counts_in_gross:
                expected += s.unit_price_cents * s.quantity
    assert sum(i.gross for i in items) == expected

    march = next(i for i in items if i.month_key == "2025-03")
    assert march.gross == 24000 + 12000 + 700
    assert march.pix == 3000
    assert march.cartao == 1000
    assert march.expenses_variable == 500
    assert march.net == march.gross - 500
    assert march.month_label == "março de 2025"


def test_month_with_only_fixed_expenses_has_row():
    boxes = [make_box(date(2025, 3, 3), services=[(CARRO, 1, 12000)])]
    items = summarize_cash_boxes(boxes, [fixed(date(2025, 3, 1), 1000), fixed(date(2025, 5, 1), 80000)])
    may = next(i for i in items if i.month_key == "2025-05")
    assert may.gross == 0
    assert may.fixed_expenses == 80000
    assert may.net_after_fixed == -80000
    march = next(i for i in items if i.month_key == "2025-03")
    assert march.net_after_fixed == 12000 - 1000


def test_sorted_by_month_desc():
    boxes = [
        make_box(date(2024, 12, 31), services=[(CARRO, 1, 100)]),
        make_box(date(2025, 2, 1), services=[(CARRO, 1, 100)]),
        make_box(date(2025, 1, 15), services=[(CARRO, 1, 100)]),
    ]
    items = summarize_cash_boxes(boxes, [fixed(date(2025, 3, 1), 10)])
    keys = [i.month_key for i in items]
    assert keys == ["2025-03", "2025-02", "2025-01", "2024-12"]


def test_empty_input():
    assert summarize_cash_boxes([], []) == []


def test_overall_totals():
    items = summarize_cash_boxes(
        [make_box(date(2025, 3, 3), services=[(CARRO, 1, 12000)], expenses=[("Café", 200)])],
        [fixed(date(2025, 4, 1), 5000)],
    )
    totals = overall_totals(items)
    assert totals.gross == 12000
    assert totals.expenses_variable == 200
    assert totals.fixed_expenses == 5000
    assert totals.net_after_fixed == 12000 - 200 - 5000


def test_apply_view_mode():
    rows = [fixed(date(2025, 1, 1), amount, title=str(amount)) for amount in (300, 100, 900, 500, 200, 800, 700)]
    assert [r.amount_cents for r in apply_view_mode(rows, "top5")] == [900, 800, 700, 500, 300]
    assert [r.amount_cents for r in apply_view_mode(rows, "lowest")][:2] == [100, 200]
    assert apply_view_mode(rows, "highest")[0].amount_cents == 900
    assert apply_view_mode(rows, "all") == rows
    assert len(apply_view_mode(rows, "top10")) == 7


def test_summary_row_shape():
    item = summarize_cash_boxes([make_box(date(2025, 3, 3))], [])[0]
    assert isinstance(item, MonthlySummary)
    assert item.gross == 0
