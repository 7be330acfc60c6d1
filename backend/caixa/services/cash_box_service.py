"""
Acesso a dados do caixa diário.

Cada função corresponde a operações diretas nas tabelas. A criação do caixa
não é transacional: o caixa é gravado primeiro e, se os lançamentos falharem,
o caixa é apagado (melhor esforço) e o erro original é relançado.
"""
import datetime as dt
from typing import List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from caixa.config import settings
from caixa.core.dates import today
from caixa.core.exceptions import ConflictError, NotFoundError
from caixa.core.logging_config import get_logger
from caixa.models import (
    CashBox,
    CashBoxElectronicEntry,
    CashBoxExpense,
    CashBoxService,
    Receivable,
    ReceivableStatus,
    ServiceType,
)
from caixa.schemas.cash_box import CashBoxForm, CashBoxTotals
from caixa.services.cash_box_utils import compute_box_totals

logger = get_logger(__name__)

DUPLICATE_MESSAGE = "Já existe um caixa desta loja para este vistoriador nesta data"


def with_children(stmt):
    return stmt.options(
        selectinload(CashBox.services).selectinload(CashBoxService.service_type),
        selectinload(CashBox.electronic_entries),
        selectinload(CashBox.expenses),
    )


async def fetch_cash_box(db: AsyncSession, cash_box_id: int) -> Optional[CashBox]:
    """Caixa com serviços (e tipo), entradas eletrônicas e despesas; None se não existir."""
    q = with_children(select(CashBox).where(CashBox.id == cash_box_id)).execution_options(
        populate_existing=True
    )
    result = await db.execute(q)
    return result.scalar_one_or_none()


async def persist_children(db: AsyncSession, cash_box_id: int, data: CashBoxForm) -> None:
    """Grava só linhas com conteúdo: quantidade > 0, valor > 0, despesa com título."""
    rows = []
    for service in data.services:
        if service.quantity > 0 and service.service_type_id:
            rows.append(
                CashBoxService(
                    cash_box_id=cash_box_id,
                    service_type_id=service.service_type_id,
                    unit_price_cents=service.unit_price_cents,
                    quantity=service.quantity,
                )
            )
    for entry in data.electronic_entries:
        if entry.amount_cents > 0:
            rows.append(
                CashBoxElectronicEntry(
                    cash_box_id=cash_box_id,
                    method=entry.method,
                    amount_cents=entry.amount_cents,
                )
            )
    for expense in data.expenses:
        title = expense.title.strip()
        if title and expense.amount_cents > 0:
            rows.append(
                CashBoxExpense(cash_box_id=cash_box_id, title=title, amount_cents=expense.amount_cents)
            )
    if rows:
        db.add_all(rows)
        await db.flush()


async def delete_children(db: AsyncSession, cash_box_id: int) -> None:
    await db.execute(delete(CashBoxService).where(CashBoxService.cash_box_id == cash_box_id))
    await db.execute(
        delete(CashBoxElectronicEntry).where(CashBoxElectronicEntry.cash_box_id == cash_box_id)
    )
    await db.execute(delete(CashBoxExpense).where(CashBoxExpense.cash_box_id == cash_box_id))


async def insert_receivables(
    db: AsyncSession,
    data: CashBoxForm,
    store_id: Optional[int],
    user_id: int,
) -> List[Receivable]:
    if not store_id or not data.receivables:
        return []
    rows = [
        Receivable(
            store_id=store_id,
            created_by_user_id=user_id,
            customer_name=r.customer_name.strip(),
            plate=(r.plate or "").strip() or None,
            service_type_id=r.service_type_id or None,
            original_amount_cents=r.original_amount_cents,
            due_date=r.due_date or today(),
            status=ReceivableStatus.ABERTO,
        )
        for r in data.receivables
    ]
    db.add_all(rows)
    await db.flush()
    return rows


async def create_cash_box(
    db: AsyncSession,
    data: CashBoxForm,
    store_id: int,
    vistoriador_id: int,
) -> int:
    box = CashBox(
        store_id=store_id,
        date=data.date,
        vistoriador_id=vistoriador_id,
        note=data.note.strip(),
    )
    db.add(box)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)
    cash_box_id = box.id
    await db.commit()

    try:
        await persist_children(db, cash_box_id, data)
        await insert_receivables(db, data, store_id, vistoriador_id)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.warning("Falha ao gravar lançamentos do caixa %s, removendo o caixa", cash_box_id)
        try:
            orphan = await fetch_cash_box(db, cash_box_id)
            if orphan is not None:
                await db.delete(orphan)
                await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Não foi possível remover o caixa %s", cash_box_id)
        raise

    logger.info(
        "Caixa %s criado: loja=%s data=%s vistoriador=%s",
        cash_box_id,
        store_id,
        data.date,
        vistoriador_id,
    )
    return cash_box_id


async def update_cash_box(
    db: AsyncSession,
    cash_box_id: int,
    data: CashBoxForm,
    store_id: Optional[int],
    vistoriador_id: int,
) -> None:
    result = await db.execute(select(CashBox).where(CashBox.id == cash_box_id))
    box = result.scalar_one_or_none()
    if box is None:
        raise NotFoundError("Caixa não encontrado")
    box.date = data.date
    box.note = data.note.strip()
    box.vistoriador_id = vistoriador_id
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)

    await delete_children(db, cash_box_id)
    db.expire(box, ["services", "electronic_entries", "expenses"])
    await persist_children(db, cash_box_id, data)
    await insert_receivables(db, data, store_id, vistoriador_id)
    logger.info("Caixa %s atualizado", cash_box_id)


async def delete_cash_box(db: AsyncSession, cash_box_id: int) -> None:
    box = await fetch_cash_box(db, cash_box_id)
    if box is None:
        raise NotFoundError("Caixa não encontrado")
    await db.delete(box)
    await db.flush()
    logger.info("Caixa %s excluído", cash_box_id)


async def fetch_service_types(db: AsyncSession) -> List[ServiceType]:
    result = await db.execute(select(ServiceType).order_by(ServiceType.name))
    return list(result.scalars().all())


async def list_cash_boxes(
    db: AsyncSession,
    start: dt.date,
    end: dt.date,
    store_id: Optional[int] = None,
    vistoriador_id: Optional[int] = None,
) -> List[Tuple[CashBox, CashBoxTotals]]:
    """Histórico: caixas do período (mais recentes primeiro) com os totais de cada um."""
    q = with_children(
        select(CashBox)
        .where(CashBox.date >= start, CashBox.date <= end)
        .options(selectinload(CashBox.store), selectinload(CashBox.vistoriador))
    )
    if store_id:
        q = q.where(CashBox.store_id == store_id)
    if vistoriador_id:
        q = q.where(CashBox.vistoriador_id == vistoriador_id)
    q = q.order_by(CashBox.date.desc(), CashBox.id.desc()).limit(settings.cash_box_query_limit)
    result = await db.execute(q)
    return [(box, compute_box_totals(box)) for box in result.scalars().all()]
