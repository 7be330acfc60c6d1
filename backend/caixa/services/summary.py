"""Resumo mensal dos caixas: faturamento, PIX/cartão, despesas variáveis e fixas."""
from typing import Dict, Iterable, List, TypeVar

from caixa.core.dates import month_key, month_label
from caixa.models import CashBox, MonthlyExpense, PaymentMethod
from caixa.schemas.analytics import MonthlySummary, OverallTotals

VIEW_MODES = ("all", "top5", "top10", "highest", "lowest")

T = TypeVar("T")


def _service_total(service) -> int:
    total = getattr(service, "total_cents", None)
    if total is not None:
        return total
    return (service.unit_price_cents or 0) * (service.quantity or 0)


def _empty_month(label: str) -> dict:
    return {"label": label, "gross": 0, "pix": 0, "cartao": 0, "expenses_variable": 0, "net": 0}


def summarize_cash_boxes(
    cash_boxes: Iterable[CashBox],
    fixed_expenses: Iterable[MonthlyExpense],
) -> List[MonthlySummary]:
    """
    Agrupa os caixas por mês (YYYY-MM) e soma as despesas fixas do mês.

    Serviço sem tipo carregado conta no bruto. Mês só com despesa fixa
    também gera linha (zerada). Resultado do mês mais recente para o mais antigo.
    """
    months: Dict[str, dict] = {}

    for box in cash_boxes:
        key = month_key(box.date)
        current = months.setdefault(key, _empty_month(month_label(box.date)))

        box_gross = 0
        for service in box.services or []:
            service_type = service.service_type
            counts_in_gross = True if service_type is None else service_type.counts_in_gross
            if counts_in_gross:
                box_gross += _service_total(service)

        entries = box.electronic_entries or []
        box_pix = sum(e.amount_cents for e in entries if e.method == PaymentMethod.PIX)
        box_cartao = sum(e.amount_cents for e in entries if e.method == PaymentMethod.CARTAO)
        box_expenses = sum(x.amount_cents or 0 for x in box.expenses or [])

        current["gross"] += box_gross
        current["pix"] += box_pix
        current["cartao"] += box_cartao
        current["expenses_variable"] += box_expenses
        current["net"] += box_gross - box_expenses

    fixed_by_month: Dict[str, int] = {}
    for expense in fixed_expenses:
        key = month_key(expense.month_year)
        fixed_by_month[key] = fixed_by_month.get(key, 0) + (expense.amount_cents or 0)
        months.setdefault(key, _empty_month(month_label(expense.month_year)))

    items = []
    for key, values in months.items():
        fixed = fixed_by_month.get(key, 0)
        items.append(
            MonthlySummary(
                month_key=key,
                month_label=values["label"],
                gross=values["gross"],
                pix=values["pix"],
                cartao=values["cartao"],
                expenses_variable=values["expenses_variable"],
                net=values["net"],
                fixed_expenses=fixed,
                net_after_fixed=values["net"] - fixed,
            )
        )
    items.sort(key=lambda s: s.month_key, reverse=True)
    return items


def overall_totals(summaries: Iterable[MonthlySummary]) -> OverallTotals:
    totals = OverallTotals()
    for s in summaries:
        totals.gross += s.gross
        totals.pix += s.pix
        totals.cartao += s.cartao
        totals.expenses_variable += s.expenses_variable
        totals.net += s.net
        totals.fixed_expenses += s.fixed_expenses
        totals.net_after_fixed += s.net_after_fixed
    return totals


def apply_view_mode(items: List[T], mode: str) -> List[T]:
    """Recorte das listas de despesas: top5/top10, todos ordenados ou como vieram."""
    sorted_desc = sorted(items, key=lambda i: i.amount_cents, reverse=True)
    if mode == "top5":
        return sorted_desc[:5]
    if mode == "top10":
        return sorted_desc[:10]
    if mode == "highest":
        return sorted_desc
    if mode == "lowest":
        return sorted(items, key=lambda i: i.amount_cents)
    return list(items)
