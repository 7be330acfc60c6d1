"""A receber: consulta com filtros, edição, registro de pagamento e baixa."""
import datetime as dt
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from caixa.config import settings
from caixa.core.exceptions import InvalidTransitionError, NotFoundError
from caixa.core.logging_config import get_logger
from caixa.models import Receivable, ReceivablePayment, ReceivableStatus
from caixa.schemas.receivable import (
    ReceivablePaymentCreate,
    ReceivablePaymentResponse,
    ReceivableResponse,
    ReceivableUpdate,
)
from caixa.services.metrics import matches_search_term
from caixa.services.receivable_status import can_transition

logger = get_logger(__name__)


def _with_relations(stmt):
    return stmt.options(
        selectinload(Receivable.payments),
        selectinload(Receivable.service_type),
    ).execution_options(populate_existing=True)


def paid_cents(receivable: Receivable) -> int:
    return sum(p.amount_cents for p in receivable.payments or [])


def to_response(receivable: Receivable) -> ReceivableResponse:
    return ReceivableResponse(
        id=receivable.id,
        store_id=receivable.store_id,
        created_by_user_id=receivable.created_by_user_id,
        customer_name=receivable.customer_name,
        plate=receivable.plate,
        service_type_id=receivable.service_type_id,
        service_name=receivable.service_type.name if receivable.service_type else None,
        original_amount_cents=receivable.original_amount_cents,
        paid_cents=paid_cents(receivable),
        due_date=receivable.due_date,
        status=receivable.status,
        created_at=receivable.created_at,
        payments=[ReceivablePaymentResponse.model_validate(p) for p in receivable.payments or []],
    )


async def list_receivables(
    db: AsyncSession,
    store_id: Optional[int] = None,
    active_only: bool = False,
    due_from: Optional[dt.date] = None,
    due_to: Optional[dt.date] = None,
    search: Optional[str] = None,
) -> List[Receivable]:
    """Mais recentes primeiro; a busca (cliente, placa, serviço) ignora acentos."""
    q = _with_relations(select(Receivable))
    if store_id:
        q = q.where(Receivable.store_id == store_id)
    if active_only:
        q = q.where(Receivable.status != ReceivableStatus.BAIXADO)
    if due_from:
        q = q.where(Receivable.due_date >= due_from)
    if due_to:
        q = q.where(Receivable.due_date <= due_to)
    q = q.order_by(Receivable.created_at.desc(), Receivable.id.desc()).limit(
        settings.receivables_query_limit
    )
    result = await db.execute(q)
    rows = list(result.scalars().all())
    if search:
        rows = [
            r
            for r in rows
            if matches_search_term(
                search,
                r.customer_name,
                r.plate,
                r.service_type.name if r.service_type else None,
            )
        ]
    return rows


async def get_receivable(db: AsyncSession, receivable_id: int) -> Optional[Receivable]:
    result = await db.execute(_with_relations(select(Receivable).where(Receivable.id == receivable_id)))
    return result.scalar_one_or_none()


async def _require(db: AsyncSession, receivable_id: int) -> Receivable:
    receivable = await get_receivable(db, receivable_id)
    if receivable is None:
        raise NotFoundError("Recebível não encontrado")
    return receivable


async def update_receivable(db: AsyncSession, receivable_id: int, data: ReceivableUpdate) -> Receivable:
    receivable = await _require(db, receivable_id)
    changes = data.model_dump(exclude_unset=True)
    if "customer_name" in changes and changes["customer_name"] is not None:
        receivable.customer_name = changes["customer_name"].strip()
    if "plate" in changes:
        receivable.plate = (changes["plate"] or "").strip() or None
    if "service_type_id" in changes:
        receivable.service_type_id = changes["service_type_id"] or None
    if "original_amount_cents" in changes:
        receivable.original_amount_cents = changes["original_amount_cents"]
    if "due_date" in changes:
        receivable.due_date = changes["due_date"]
    await db.flush()
    logger.info("Recebível %s atualizado: %s", receivable_id, sorted(changes))
    return await _require(db, receivable_id)


async def register_payment(
    db: AsyncSession,
    receivable_id: int,
    data: ReceivablePaymentCreate,
    user_id: int,
) -> Receivable:
    """Registra o pagamento e deixa o recebível aguardando baixa do admin."""
    receivable = await _require(db, receivable_id)
    new_status = ReceivableStatus.PAGO_PENDENTE_BAIXA
    if not can_transition(receivable.status, new_status):
        raise InvalidTransitionError(receivable.status.value, new_status.value)
    db.add(
        ReceivablePayment(
            receivable_id=receivable.id,
            paid_on=data.paid_on,
            amount_cents=data.amount_cents,
            method=data.method,
            recorded_by_user_id=user_id,
        )
    )
    receivable.status = new_status
    await db.flush()
    logger.info("Pagamento de %s centavos no recebível %s", data.amount_cents, receivable_id)
    return await _require(db, receivable_id)


async def confirm_write_off(db: AsyncSession, receivable_id: int) -> Receivable:
    receivable = await _require(db, receivable_id)
    if not can_transition(receivable.status, ReceivableStatus.BAIXADO):
        raise InvalidTransitionError(receivable.status.value, ReceivableStatus.BAIXADO.value)
    receivable.status = ReceivableStatus.BAIXADO
    await db.flush()
    logger.info("Recebível %s baixado", receivable_id)
    return receivable
