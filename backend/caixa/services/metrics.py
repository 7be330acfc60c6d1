"""Métricas do painel: serviços, lojas, despesas agrupadas e desempenho por mês."""
import unicodedata
from typing import Dict, Iterable, Optional

from caixa.core.dates import month_key, month_label
from caixa.core.money import round_half_up
from caixa.models import CashBox, CashBoxExpense, MonthlyExpense, ServiceType, Store
from caixa.schemas.analytics import (
    AdminMetrics,
    ExpenseAggregate,
    PeriodPerformance,
    ServiceAggregate,
    StoreAggregate,
)

SEVERAL_STORES = "Diversas lojas"
SEVERAL_PERIODS = "Múltiplos períodos"


def normalize_text(value: str) -> str:
    """Minúsculas e sem acentos."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).lower()


def matches_search_term(search: Optional[str], *targets: Optional[str]) -> bool:
    """Todos os termos da busca precisam aparecer em um mesmo alvo."""
    tokens = normalize_text(search or "").split()
    if not tokens:
        return True
    for target in targets:
        if not target:
            continue
        normalized = normalize_text(target)
        if all(token in normalized for token in tokens):
            return True
    return False


def _add_expense(
    aggregates: Dict[str, ExpenseAggregate],
    key: str,
    amount: int,
    store_name: str,
    label: str,
) -> None:
    aggregate = aggregates.get(key)
    if aggregate is None:
        aggregate = ExpenseAggregate(id=key, name=key, store_name=store_name, month_label=label)
        aggregates[key] = aggregate
    aggregate.total_cents += amount
    aggregate.occurrences += 1
    if aggregate.store_name != store_name:
        aggregate.store_name = SEVERAL_STORES
    if aggregate.month_label != label:
        aggregate.month_label = SEVERAL_PERIODS


def compute_admin_metrics(
    cash_boxes: Iterable[CashBox],
    fixed_expenses: Iterable[MonthlyExpense],
    variable_expenses: Iterable[CashBoxExpense],
    service_types: Iterable[ServiceType] = (),
    stores: Iterable[Store] = (),
) -> AdminMetrics:
    service_type_by_id = {st.id: st for st in service_types}
    store_names = {s.id: s.name for s in stores}

    services: Dict[int, ServiceAggregate] = {}
    store_ranking: Dict[int, StoreAggregate] = {}
    monthly: Dict[str, PeriodPerformance] = {}
    variable_top: Dict[str, ExpenseAggregate] = {}
    fixed_top: Dict[str, ExpenseAggregate] = {}
    total_variable = 0
    total_fixed = 0

    def month_of(value) -> PeriodPerformance:
        key = month_key(value)
        if key not in monthly:
            monthly[key] = PeriodPerformance(month_key=key, label=month_label(value))
        return monthly[key]

    for box in cash_boxes:
        period = month_of(box.date)
        for service in box.services or []:
            quantity = service.quantity or 0
            if quantity <= 0:
                continue
            service_type = service_type_by_id.get(service.service_type_id) or service.service_type
            name = (service_type.name or service_type.code) if service_type else "Serviço"
            code = (service_type.code or service_type.name) if service_type else None
            total = service.total_cents

            aggregate = services.get(service.service_type_id)
            if aggregate is None:
                aggregate = ServiceAggregate(id=service.service_type_id, name=name, code=code)
                services[service.service_type_id] = aggregate
            aggregate.quantity += quantity
            aggregate.value_cents += total
            aggregate.avg_value_cents = round_half_up(aggregate.value_cents / aggregate.quantity)

            if box.store_id:
                store = store_ranking.get(box.store_id)
                if store is None:
                    store = StoreAggregate(store_id=box.store_id, name=store_names.get(box.store_id, "Loja"))
                    store_ranking[box.store_id] = store
                store.value_cents += total
                store.quantity += quantity

            period.service_cents += total
            period.service_quantity += quantity

    for expense in variable_expenses:
        amount = expense.amount_cents or 0
        if amount <= 0:
            continue
        total_variable += amount
        box = expense.cash_box
        period = month_of(box.date)
        period.variable_cents += amount
        _add_expense(
            variable_top,
            expense.title.strip() or "Despesa variável",
            amount,
            store_names.get(box.store_id, "Loja"),
            period.label,
        )

    for expense in fixed_expenses:
        amount = expense.amount_cents or 0
        if amount <= 0:
            continue
        total_fixed += amount
        period = month_of(expense.month_year)
        period.fixed_cents += amount
        _add_expense(
            fixed_top,
            expense.title.strip() or "Despesa fixa",
            amount,
            store_names.get(expense.store_id, "Loja"),
            period.label,
        )

    services_list = sorted(services.values(), key=lambda a: a.value_cents, reverse=True)
    total_value = sum(a.value_cents for a in services_list)
    total_quantity = sum(a.quantity for a in services_list)

    for period in monthly.values():
        period.net_cents = period.service_cents - period.variable_cents - period.fixed_cents
    performance = sorted(monthly.values(), key=lambda p: p.net_cents, reverse=True)

    return AdminMetrics(
        total_quantity=total_quantity,
        total_value_cents=total_value,
        avg_ticket_cents=round_half_up(total_value / total_quantity) if total_quantity else 0,
        services=services_list,
        top_by_quantity=max(services_list, key=lambda a: a.quantity) if services_list else None,
        top_by_value=services_list[0] if services_list else None,
        store_ranking=sorted(store_ranking.values(), key=lambda s: s.value_cents, reverse=True),
        variable_expenses_total_cents=total_variable,
        fixed_expenses_total_cents=total_fixed,
        net_result_cents=total_value - total_variable - total_fixed,
        variable_expenses_top=sorted(variable_top.values(), key=lambda a: a.total_cents, reverse=True),
        fixed_expenses_top=sorted(fixed_top.values(), key=lambda a: a.total_cents, reverse=True),
        monthly_performance=performance,
        best_period=performance[0] if performance else None,
        worst_period=performance[-1] if performance else None,
        top_periods=performance[:3],
        bottom_periods=list(reversed(performance))[:3],
    )
