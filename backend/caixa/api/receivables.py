from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from caixa.api.auth import RequireAdmin, RequireAnyAuth, UserInfo
from caixa.core.database import get_db
from caixa.core.exceptions import InvalidTransitionError, NotFoundError
from caixa.core.permissions import can_access_store, lacks_store_scope, scoped_store_id
from caixa.schemas.receivable import ReceivablePaymentCreate, ReceivableResponse, ReceivableUpdate
from caixa.services.admin_service import record_audit
from caixa.services.receivable_service import (
    confirm_write_off,
    get_receivable,
    list_receivables,
    register_payment,
    to_response,
    update_receivable,
)

router = APIRouter(prefix="/receivables", tags=["receivables"])


async def _check_access(db: AsyncSession, receivable_id: int, user: UserInfo) -> None:
    receivable = await get_receivable(db, receivable_id)
    if receivable is None:
        raise HTTPException(status_code=404, detail="Recebível não encontrado")
    if not can_access_store(user.role, user.store_id, receivable.store_id):
        raise HTTPException(status_code=403, detail="Recebível de outra loja")


@router.get("", response_model=list[ReceivableResponse])
async def get_receivables(
    store_id: Optional[int] = Query(None),
    active: bool = Query(False, description="Só os ainda não baixados"),
    due_from: Optional[date] = Query(None),
    due_to: Optional[date] = Query(None),
    q: Optional[str] = Query(None, description="Cliente, placa ou serviço"),
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAnyAuth),
):
    if lacks_store_scope(current_user.role, current_user.store_id):
        return []
    rows = await list_receivables(
        db,
        store_id=scoped_store_id(current_user.role, current_user.store_id, store_id),
        active_only=active,
        due_from=due_from,
        due_to=due_to,
        search=q,
    )
    return [to_response(r) for r in rows]


@router.patch("/{receivable_id}", response_model=ReceivableResponse)
async def patch_receivable(
    receivable_id: int,
    data: ReceivableUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAnyAuth),
):
    await _check_access(db, receivable_id, current_user)
    receivable = await update_receivable(db, receivable_id, data)
    await record_audit(
        db, current_user.id, "update", "receivable", receivable_id, {"fields": sorted(data.model_fields_set)}
    )
    return to_response(receivable)


@router.post("/{receivable_id}/payments", response_model=ReceivableResponse)
async def post_payment(
    receivable_id: int,
    data: ReceivablePaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAnyAuth),
):
    await _check_access(db, receivable_id, current_user)
    try:
        receivable = await register_payment(db, receivable_id, data, current_user.id)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await record_audit(
        db, current_user.id, "payment", "receivable", receivable_id, {"amount_cents": data.amount_cents}
    )
    return to_response(receivable)


@router.post("/{receivable_id}/write-off", response_model=ReceivableResponse)
async def write_off(
    receivable_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    """Baixa: o admin confirma que o pagamento registrado entrou."""
    try:
        receivable = await confirm_write_off(db, receivable_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await record_audit(db, current_user.id, "write_off", "receivable", receivable_id)
    return to_response(receivable)
