"""Consultas e cadastros da área administrativa."""
import datetime as dt
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from caixa.config import settings
from caixa.core.dates import parse_month
from caixa.core.exceptions import NotFoundError
from caixa.core.logging_config import get_logger
from caixa.models import (
    AuditLog,
    CashBox,
    CashBoxExpense,
    ExpenseSource,
    FixedExpenseTemplate,
    MonthlyExpense,
    Store,
    User,
    UserRole,
)
from caixa.schemas.expense import (
    ExpenseTemplateCreate,
    ExpenseTemplateUpdate,
    FixedExpenseUpsert,
    VariableExpenseCreate,
    VariableExpenseUpdate,
)
from caixa.services.cash_box_service import with_children

logger = get_logger(__name__)


async def fetch_stores(db: AsyncSession) -> List[Store]:
    result = await db.execute(select(Store).order_by(Store.name))
    return list(result.scalars().all())


async def fetch_users(db: AsyncSession, store_id: Optional[int] = None) -> List[User]:
    q = select(User).where(
        User.is_active == True,
        User.role.in_([UserRole.ADMIN, UserRole.VISTORIADOR]),
    )
    if store_id:
        q = q.where(User.store_id == store_id)
    result = await db.execute(q.order_by(User.name))
    return list(result.scalars().all())


async def fetch_cash_boxes_by_range(
    db: AsyncSession,
    start: dt.date,
    end: dt.date,
    store_id: Optional[int] = None,
    vistoriador_id: Optional[int] = None,
) -> List[CashBox]:
    """Caixas entre start e end (inclusive), mais recentes primeiro, no máximo 500."""
    q = with_children(select(CashBox).where(CashBox.date >= start, CashBox.date <= end))
    if store_id:
        q = q.where(CashBox.store_id == store_id)
    if vistoriador_id:
        q = q.where(CashBox.vistoriador_id == vistoriador_id)
    q = q.order_by(CashBox.date.desc()).limit(settings.cash_box_query_limit)
    result = await db.execute(q)
    return list(result.scalars().all())


# --- despesas fixas (monthly_expenses com source = fixa) ---


async def fetch_fixed_expenses(
    db: AsyncSession,
    start: dt.date,
    end: dt.date,
    store_id: Optional[int] = None,
) -> List[MonthlyExpense]:
    q = select(MonthlyExpense).where(
        MonthlyExpense.source == ExpenseSource.FIXA,
        MonthlyExpense.month_year >= parse_month(start),
        MonthlyExpense.month_year <= end,
    )
    if store_id:
        q = q.where(MonthlyExpense.store_id == store_id)
    q = q.order_by(MonthlyExpense.month_year.desc(), MonthlyExpense.title.asc())
    result = await db.execute(q)
    return list(result.scalars().all())


async def upsert_fixed_expense(
    db: AsyncSession,
    data: FixedExpenseUpsert,
    user_id: Optional[int] = None,
) -> MonthlyExpense:
    if data.id:
        result = await db.execute(
            select(MonthlyExpense).where(
                MonthlyExpense.id == data.id, MonthlyExpense.source == ExpenseSource.FIXA
            )
        )
        expense = result.scalar_one_or_none()
        if expense is None:
            raise NotFoundError("Despesa fixa não encontrada")
    else:
        expense = MonthlyExpense(source=ExpenseSource.FIXA, created_by_user_id=user_id)
        db.add(expense)
    expense.store_id = data.store_id
    expense.month_year = parse_month(data.month_year)
    expense.title = data.title.strip()
    expense.amount_cents = data.amount_cents
    await db.flush()
    await db.refresh(expense)
    logger.info("Despesa fixa %s salva (%s, %s)", expense.id, expense.title, expense.month_year)
    return expense


async def delete_fixed_expense(db: AsyncSession, expense_id: int) -> None:
    result = await db.execute(select(MonthlyExpense).where(MonthlyExpense.id == expense_id))
    expense = result.scalar_one_or_none()
    if expense is None:
        raise NotFoundError("Despesa fixa não encontrada")
    await db.delete(expense)
    await db.flush()
    logger.info("Despesa fixa %s excluída", expense_id)


# --- despesas variáveis (cash_box_expenses) ---


async def fetch_variable_expenses(
    db: AsyncSession,
    start: dt.date,
    end: dt.date,
    store_id: Optional[int] = None,
    vistoriador_id: Optional[int] = None,
) -> List[CashBoxExpense]:
    q = (
        select(CashBoxExpense)
        .join(CashBox, CashBoxExpense.cash_box_id == CashBox.id)
        .where(CashBox.date >= start, CashBox.date <= end)
        .options(selectinload(CashBoxExpense.cash_box))
    )
    if store_id:
        q = q.where(CashBox.store_id == store_id)
    if vistoriador_id:
        q = q.where(CashBox.vistoriador_id == vistoriador_id)
    q = q.order_by(CashBox.date.desc(), CashBoxExpense.title.asc())
    result = await db.execute(q)
    return list(result.scalars().all())


async def _get_variable_expense(db: AsyncSession, expense_id: int) -> CashBoxExpense:
    result = await db.execute(
        select(CashBoxExpense)
        .where(CashBoxExpense.id == expense_id)
        .options(selectinload(CashBoxExpense.cash_box))
    )
    expense = result.scalar_one_or_none()
    if expense is None:
        raise NotFoundError("Despesa não encontrada")
    return expense


async def create_variable_expense(db: AsyncSession, data: VariableExpenseCreate) -> CashBoxExpense:
    box = (await db.execute(select(CashBox.id).where(CashBox.id == data.cash_box_id))).scalar_one_or_none()
    if box is None:
        raise NotFoundError("Caixa não encontrado")
    expense = CashBoxExpense(
        cash_box_id=data.cash_box_id,
        title=data.title.strip(),
        amount_cents=data.amount_cents,
    )
    db.add(expense)
    await db.flush()
    logger.info("Despesa variável %s criada no caixa %s", expense.id, data.cash_box_id)
    return await _get_variable_expense(db, expense.id)


async def update_variable_expense(
    db: AsyncSession, expense_id: int, data: VariableExpenseUpdate
) -> CashBoxExpense:
    expense = await _get_variable_expense(db, expense_id)
    expense.title = data.title.strip()
    expense.amount_cents = data.amount_cents
    await db.flush()
    logger.info("Despesa variável %s atualizada", expense_id)
    return expense


async def delete_variable_expense(db: AsyncSession, expense_id: int) -> None:
    expense = await _get_variable_expense(db, expense_id)
    await db.delete(expense)
    await db.flush()
    logger.info("Despesa variável %s excluída", expense_id)


# --- modelos de despesa fixa ---


async def fetch_expense_templates(
    db: AsyncSession,
    store_id: Optional[int] = None,
    only_active: bool = False,
) -> List[FixedExpenseTemplate]:
    """Modelos da loja e os globais (store_id nulo)."""
    q = select(FixedExpenseTemplate)
    if store_id:
        q = q.where(
            or_(FixedExpenseTemplate.store_id == store_id, FixedExpenseTemplate.store_id.is_(None))
        )
    if only_active:
        q = q.where(FixedExpenseTemplate.is_active == True)
    result = await db.execute(q.order_by(FixedExpenseTemplate.name))
    return list(result.scalars().all())


async def create_expense_template(db: AsyncSession, data: ExpenseTemplateCreate) -> FixedExpenseTemplate:
    template = FixedExpenseTemplate(
        store_id=data.store_id,
        name=data.name.strip(),
        default_amount_cents=data.default_amount_cents,
        preferred_day=data.preferred_day,
        is_active=data.is_active,
    )
    db.add(template)
    await db.flush()
    await db.refresh(template)
    return template


async def update_expense_template(
    db: AsyncSession, template_id: int, data: ExpenseTemplateUpdate
) -> FixedExpenseTemplate:
    result = await db.execute(select(FixedExpenseTemplate).where(FixedExpenseTemplate.id == template_id))
    template = result.scalar_one_or_none()
    if template is None:
        raise NotFoundError("Modelo de despesa não encontrado")
    if data.name is not None:
        template.name = data.name.strip()
    if data.default_amount_cents is not None:
        template.default_amount_cents = data.default_amount_cents
    if data.preferred_day is not None:
        template.preferred_day = data.preferred_day
    if data.is_active is not None:
        template.is_active = data.is_active
    await db.flush()
    await db.refresh(template)
    return template


async def delete_expense_template(db: AsyncSession, template_id: int) -> None:
    result = await db.execute(select(FixedExpenseTemplate).where(FixedExpenseTemplate.id == template_id))
    template = result.scalar_one_or_none()
    if template is None:
        raise NotFoundError("Modelo de despesa não encontrado")
    await db.delete(template)
    await db.flush()


async def record_audit(
    db: AsyncSession,
    actor_id: Optional[int],
    action: str,
    entity: str,
    entity_id: Optional[int] = None,
    payload: Optional[dict] = None,
) -> None:
    db.add(
        AuditLog(
            actor_user_id=actor_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            payload=payload,
        )
    )
    await db.flush()
