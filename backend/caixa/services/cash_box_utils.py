"""Formulário de caixa: ordem dos serviços, preço padrão, normalização e totais."""
import datetime as dt
from typing import Iterable, List, Optional, Sequence

from caixa.core.dates import today
from caixa.models import CashBox, PaymentMethod, ServiceType
from caixa.schemas.cash_box import (
    CashBoxFormDraft,
    CashBoxTotals,
    ElectronicEntryLine,
    ExpenseLine,
    ReceivableLine,
    ServiceLine,
)

# Ordem fixa dos serviços na tela do caixa
SERVICE_CODE_ORDER = (
    "CARRO",
    "MOTO",
    "CAMINHONETE",
    "CAMINHAO",
    "PESQUISA",
    "CAUTELAR_MOTO",
    "CAUTELAR_CARRO",
    "CAUTELAR_CAMINHAO_CAMINHONETE",
    "REVISTORIA_MULTA",
    "REV_RETORNO",
)

# Pesquisa começa em R$ 60,00 enquanto o preço padrão do banco estiver zerado
SERVICE_PRICE_FALLBACKS = {
    "PESQUISA": 6000,
}

ELECTRONIC_METHOD_ORDER = (PaymentMethod.PIX, PaymentMethod.CARTAO)


def build_ordered_service_types(service_types: Optional[Iterable[ServiceType]]) -> List[ServiceType]:
    """Remove códigos repetidos; conhecidos na ordem fixa, os demais depois, na ordem recebida."""
    by_code = {}
    for service_type in service_types or []:
        by_code.setdefault(service_type.code, service_type)
    primary = [by_code[code] for code in SERVICE_CODE_ORDER if code in by_code]
    extras = [st for code, st in by_code.items() if code not in SERVICE_CODE_ORDER]
    return primary + extras


def get_service_default_price(service_type: ServiceType) -> int:
    default_price = service_type.default_price_cents or 0
    if default_price > 0:
        return default_price
    return SERVICE_PRICE_FALLBACKS.get(service_type.code, 0)


def _ensure_electronic_entries(entries: Optional[Iterable[ElectronicEntryLine]]) -> List[ElectronicEntryLine]:
    existing = {PaymentMethod(e.method): e.amount_cents for e in entries or []}
    return [
        ElectronicEntryLine(method=method, amount_cents=existing.get(method, 0))
        for method in ELECTRONIC_METHOD_ORDER
    ]


def normalize_cash_box_form(
    service_types: Optional[Iterable[ServiceType]],
    data: Optional[CashBoxFormDraft] = None,
) -> CashBoxFormDraft:
    """
    Uma linha de serviço por tipo (na ordem de exibição) e sempre PIX + cartão.
    Quantidade/preço já informados são mantidos; o resto vem zerado com o preço padrão.
    """
    existing_services = {s.service_type_id: s for s in (data.services if data else [])}
    services = []
    for service_type in build_ordered_service_types(service_types):
        current = existing_services.get(service_type.id)
        services.append(
            ServiceLine(
                service_type_id=service_type.id,
                quantity=current.quantity if current else 0,
                unit_price_cents=(
                    current.unit_price_cents if current else get_service_default_price(service_type)
                ),
            )
        )
    return CashBoxFormDraft(
        date=data.date if data else today(),
        note=data.note if data else "",
        services=services,
        electronic_entries=_ensure_electronic_entries(data.electronic_entries if data else None),
        expenses=list(data.expenses) if data else [],
        receivables=list(data.receivables) if data else [],
    )


def map_cash_box_to_form(cash_box: CashBox, service_types: Iterable[ServiceType]) -> CashBoxFormDraft:
    """Caixa salvo -> formulário normalizado (recebíveis não voltam para o formulário)."""
    draft = CashBoxFormDraft(
        date=cash_box.date,
        note=cash_box.note or "",
        services=[
            ServiceLine(
                service_type_id=s.service_type_id,
                quantity=s.quantity,
                unit_price_cents=s.unit_price_cents,
            )
            for s in cash_box.services or []
        ],
        electronic_entries=[
            ElectronicEntryLine(method=e.method, amount_cents=e.amount_cents)
            for e in cash_box.electronic_entries or []
        ],
        expenses=[
            ExpenseLine(title=x.title, amount_cents=x.amount_cents)
            for x in cash_box.expenses or []
        ],
        receivables=[],
    )
    return normalize_cash_box_form(service_types, draft)


def calculate_cash_box_totals(
    services: Sequence[ServiceLine],
    electronic_entries: Sequence[ElectronicEntryLine],
    expenses: Sequence[ExpenseLine],
    receivables: Sequence[ReceivableLine],
    service_types: Iterable[ServiceType],
) -> CashBoxTotals:
    """
    Totais do formulário em centavos.

    Serviço sem tipo conhecido é ignorado. Serviço que não entra no bruto
    (revistoria de retorno) só soma na quantidade de retornos.
    net = bruto - despesas; cash (dinheiro na gaveta) = bruto - despesas - a receber - eletrônico.
    """
    type_by_id = {st.id: st for st in service_types}
    gross = 0
    return_quantity = 0
    for service in services:
        service_type = type_by_id.get(service.service_type_id)
        if service_type is None:
            continue
        if service_type.counts_in_gross:
            gross += service.quantity * service.unit_price_cents
        elif service.quantity > 0:
            return_quantity += service.quantity

    pix = sum(e.amount_cents for e in electronic_entries if e.method == PaymentMethod.PIX)
    cartao = sum(e.amount_cents for e in electronic_entries if e.method == PaymentMethod.CARTAO)
    electronic_total = pix + cartao
    expenses_total = sum(x.amount_cents or 0 for x in expenses)
    receivables_total = sum(r.original_amount_cents or 0 for r in receivables)

    return CashBoxTotals(
        gross=gross,
        return_quantity=return_quantity,
        pix=pix,
        cartao=cartao,
        electronic_total=electronic_total,
        expenses_total=expenses_total,
        receivables_total=receivables_total,
        net=gross - expenses_total,
        cash=gross - expenses_total - receivables_total - electronic_total,
    )


def compute_box_totals(cash_box: CashBox, receivables_total: int = 0) -> CashBoxTotals:
    """Totais de um caixa já salvo (usa total_cents de cada serviço)."""
    gross = 0
    return_quantity = 0
    for service in cash_box.services or []:
        service_type = service.service_type
        if service_type is None or service_type.counts_in_gross:
            gross += service.total_cents
        elif service.quantity > 0:
            return_quantity += service.quantity
    entries = cash_box.electronic_entries or []
    pix = sum(e.amount_cents for e in entries if e.method == PaymentMethod.PIX)
    cartao = sum(e.amount_cents for e in entries if e.method == PaymentMethod.CARTAO)
    expenses_total = sum(x.amount_cents for x in cash_box.expenses or [])
    electronic_total = pix + cartao
    return CashBoxTotals(
        gross=gross,
        return_quantity=return_quantity,
        pix=pix,
        cartao=cartao,
        electronic_total=electronic_total,
        expenses_total=expenses_total,
        receivables_total=receivables_total,
        net=gross - expenses_total,
        cash=gross - expenses_total - receivables_total - electronic_total,
    )


def form_template(service_types: Iterable[ServiceType], on_date: Optional[dt.date] = None) -> CashBoxFormDraft:
    """Formulário vazio já normalizado para um novo caixa."""
    draft = normalize_cash_box_form(service_types)
    if on_date is not None:
        draft.date = on_date
    return draft
