"""
Fechamento mensal: o admin lança o mês inteiro de uma loja de uma vez.

O fechamento é um caixa datado no dia 1 do mês com a nota "Fechamento mensal".
Despesas avulsas ficam no próprio caixa; despesas fixas vão para monthly_expenses
(source = fixa) do mesmo mês, substituindo as que já existiam.
"""
import datetime as dt
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from caixa.core.dates import parse_month
from caixa.core.exceptions import ConflictError, NotFoundError
from caixa.core.logging_config import get_logger
from caixa.models import (
    CashBox,
    CashBoxExpense,
    CashBoxService,
    ExpenseSource,
    MonthlyExpense,
)
from caixa.schemas.cash_box import ServiceTypeResponse
from caixa.schemas.expense import (
    ClosureExpenseLine,
    ClosureServiceLine,
    MonthlyClosurePayload,
    MonthlyClosureResponse,
)
from caixa.services.admin_service import fetch_expense_templates
from caixa.services.cash_box_service import (
    DUPLICATE_MESSAGE,
    delete_children,
    fetch_cash_box,
    fetch_service_types,
    with_children,
)
from caixa.services.cash_box_utils import build_ordered_service_types, get_service_default_price

logger = get_logger(__name__)

CLOSURE_NOTE = "Fechamento mensal"


async def _find_closure(db: AsyncSession, store_id: int, month: dt.date) -> Optional[CashBox]:
    q = with_children(
        select(CashBox).where(
            CashBox.store_id == store_id,
            CashBox.date == month,
            CashBox.note == CLOSURE_NOTE,
        )
    ).order_by(CashBox.id).execution_options(populate_existing=True)
    result = await db.execute(q)
    return result.scalars().first()


async def _fixed_expenses(db: AsyncSession, store_id: int, month: dt.date) -> List[MonthlyExpense]:
    result = await db.execute(
        select(MonthlyExpense)
        .where(
            MonthlyExpense.store_id == store_id,
            MonthlyExpense.month_year == month,
            MonthlyExpense.source == ExpenseSource.FIXA,
        )
        .order_by(MonthlyExpense.title)
    )
    return list(result.scalars().all())


async def fetch_monthly_closure(db: AsyncSession, store_id: int, month) -> MonthlyClosureResponse:
    month = parse_month(month)
    box = await _find_closure(db, store_id, month)
    fixed = await _fixed_expenses(db, store_id, month)
    service_types = build_ordered_service_types(await fetch_service_types(db))

    services = []
    expenses = []
    if box is not None:
        services = [
            ClosureServiceLine(
                service_type_id=s.service_type_id,
                quantity=s.quantity,
                unit_price_cents=s.unit_price_cents,
            )
            for s in box.services
        ]
        expenses = [
            ClosureExpenseLine(title=x.title, amount_cents=x.amount_cents, source=ExpenseSource.AVULSA)
            for x in box.expenses
        ]
    expenses += [
        ClosureExpenseLine(title=x.title, amount_cents=x.amount_cents, source=ExpenseSource.FIXA)
        for x in fixed
    ]

    default_expenses = []
    if box is None and not fixed:
        templates = await fetch_expense_templates(db, store_id=store_id, only_active=True)
        default_expenses = [
            ClosureExpenseLine(
                title=t.name,
                amount_cents=t.default_amount_cents,
                source=ExpenseSource.FIXA,
            )
            for t in templates
        ]

    return MonthlyClosureResponse(
        store_id=store_id,
        month=month,
        cash_box_id=box.id if box else None,
        services=services,
        expenses=expenses,
        default_expenses=default_expenses,
        service_types=[ServiceTypeResponse.model_validate(st) for st in service_types],
    )


async def upsert_monthly_closure(
    db: AsyncSession,
    payload: MonthlyClosurePayload,
    actor_id: int,
) -> int:
    """Cria ou substitui o fechamento do mês; devolve o id do caixa."""
    month = parse_month(payload.month)
    vistoriador_id = payload.vistoriador_id or actor_id
    types_by_id = {st.id: st for st in await fetch_service_types(db)}

    box = await _find_closure(db, payload.store_id, month)
    existing = box is not None
    if existing:
        box.vistoriador_id = vistoriador_id
    else:
        box = CashBox(
            store_id=payload.store_id,
            date=month,
            vistoriador_id=vistoriador_id,
            note=CLOSURE_NOTE,
        )
        db.add(box)
    try:
        await db.flush()
    except IntegrityError:
        # caixa comum do mesmo vistoriador já ocupa o dia 1
        await db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)
    if existing:
        await delete_children(db, box.id)
        db.expire(box, ["services", "electronic_entries", "expenses"])

    rows = []
    for line in payload.services:
        service_type = types_by_id.get(line.service_type_id)
        if service_type is None or line.quantity <= 0:
            continue
        price = line.unit_price_cents
        if price is None:
            price = get_service_default_price(service_type)
        rows.append(
            CashBoxService(
                cash_box_id=box.id,
                service_type_id=service_type.id,
                unit_price_cents=price,
                quantity=line.quantity,
            )
        )

    await db.execute(
        delete(MonthlyExpense).where(
            MonthlyExpense.store_id == payload.store_id,
            MonthlyExpense.month_year == month,
            MonthlyExpense.source == ExpenseSource.FIXA,
        )
    )
    for line in payload.expenses:
        title = line.title.strip()
        if not title or line.amount_cents <= 0:
            continue
        if line.source == ExpenseSource.FIXA:
            rows.append(
                MonthlyExpense(
                    store_id=payload.store_id,
                    month_year=month,
                    title=title,
                    amount_cents=line.amount_cents,
                    source=ExpenseSource.FIXA,
                    created_by_user_id=actor_id,
                )
            )
        else:
            rows.append(CashBoxExpense(cash_box_id=box.id, title=title, amount_cents=line.amount_cents))

    db.add_all(rows)
    await db.flush()
    logger.info(
        "Fechamento mensal salvo: loja=%s mês=%s caixa=%s (%s lançamentos)",
        payload.store_id,
        month,
        box.id,
        len(rows),
    )
    return box.id


async def delete_monthly_closure(db: AsyncSession, cash_box_id: int) -> None:
    """Apaga o caixa do fechamento; despesas fixas do mês permanecem."""
    box = await fetch_cash_box(db, cash_box_id)
    if box is None or box.note != CLOSURE_NOTE:
        raise NotFoundError("Fechamento mensal não encontrado")
    await db.delete(box)
    await db.flush()
    logger.info("Fechamento mensal %s excluído", cash_box_id)
