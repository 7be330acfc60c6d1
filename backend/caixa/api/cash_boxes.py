from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from caixa.api.auth import RequireAnyAuth, UserInfo
from caixa.core.database import get_db
from caixa.core.dates import default_range
from caixa.core.exceptions import ConflictError, NotFoundError
from caixa.core.logging_config import get_logger
from caixa.core.permissions import can_access_store, is_admin, lacks_store_scope, scoped_store_id
from caixa.models import CashBox
from caixa.schemas.cash_box import (
    CashBoxCreate,
    CashBoxDetailResponse,
    CashBoxFormDraft,
    CashBoxListItem,
    CashBoxPreviewRequest,
    CashBoxResponse,
    CashBoxTotals,
)
from caixa.services.admin_service import record_audit
from caixa.services.cash_box_service import (
    create_cash_box,
    delete_cash_box,
    fetch_cash_box,
    fetch_service_types,
    list_cash_boxes,
    update_cash_box,
)
from caixa.services.cash_box_utils import (
    calculate_cash_box_totals,
    compute_box_totals,
    form_template,
    map_cash_box_to_form,
)

router = APIRouter(prefix="/cash-boxes", tags=["cash-boxes"])
logger = get_logger(__name__)


def _owner(data: CashBoxCreate, user: UserInfo):
    """Loja e vistoriador do lançamento: vistoriador lança sempre no próprio nome."""
    if is_admin(user.role):
        store_id = data.store_id or user.store_id
        vistoriador_id = data.vistoriador_id or user.id
    else:
        store_id = user.store_id
        vistoriador_id = user.id
    if not store_id:
        raise HTTPException(status_code=400, detail="Selecione a loja do caixa")
    return store_id, vistoriador_id


async def _detail(db: AsyncSession, box: CashBox) -> CashBoxDetailResponse:
    service_types = await fetch_service_types(db)
    base = CashBoxResponse.model_validate(box)
    return CashBoxDetailResponse(
        **base.model_dump(),
        totals=compute_box_totals(box),
        form=map_cash_box_to_form(box, service_types),
    )


async def _get_accessible(db: AsyncSession, cash_box_id: int, user: UserInfo) -> CashBox:
    box = await fetch_cash_box(db, cash_box_id)
    if box is None:
        raise HTTPException(status_code=404, detail="Caixa não encontrado")
    if not can_access_store(user.role, user.store_id, box.store_id):
        raise HTTPException(status_code=403, detail="Caixa de outra loja")
    return box


@router.get("", response_model=list[CashBoxListItem])
async def get_cash_boxes(
    start: Optional[date] = Query(None, description="Data inicial (YYYY-MM-DD)"),
    end: Optional[date] = Query(None, description="Data final (YYYY-MM-DD)"),
    store_id: Optional[int] = Query(None),
    vistoriador_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAnyAuth),
):
    """Histórico de caixas; sem datas, os últimos 30 dias."""
    if lacks_store_scope(current_user.role, current_user.store_id):
        return []
    default_start, default_end = default_range()
    rows = await list_cash_boxes(
        db,
        start or default_start,
        end or default_end,
        store_id=scoped_store_id(current_user.role, current_user.store_id, store_id),
        vistoriador_id=vistoriador_id,
    )
    return [
        CashBoxListItem(
            id=box.id,
            store_id=box.store_id,
            store_name=box.store.name if box.store else None,
            date=box.date,
            vistoriador_id=box.vistoriador_id,
            vistoriador_name=box.vistoriador.name if box.vistoriador else None,
            note=box.note,
            totals=totals,
        )
        for box, totals in rows
    ]


@router.get("/form-template", response_model=CashBoxFormDraft)
async def get_form_template(
    on_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _user: UserInfo = Depends(RequireAnyAuth),
):
    """Formulário vazio: uma linha por serviço com preço padrão, PIX e cartão zerados."""
    return form_template(await fetch_service_types(db), on_date)


@router.post("/totals", response_model=CashBoxTotals)
async def preview_totals(
    data: CashBoxPreviewRequest,
    db: AsyncSession = Depends(get_db),
    _user: UserInfo = Depends(RequireAnyAuth),
):
    service_types = await fetch_service_types(db)
    return calculate_cash_box_totals(
        data.services,
        data.electronic_entries,
        data.expenses,
        data.receivables,
        service_types,
    )


@router.get("/{cash_box_id}", response_model=CashBoxDetailResponse)
async def get_cash_box(
    cash_box_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAnyAuth),
):
    box = await _get_accessible(db, cash_box_id, current_user)
    return await _detail(db, box)


@router.post("", response_model=CashBoxDetailResponse)
async def post_cash_box(
    data: CashBoxCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAnyAuth),
):
    store_id, vistoriador_id = _owner(data, current_user)
    try:
        cash_box_id = await create_cash_box(db, data, store_id, vistoriador_id)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    await record_audit(db, current_user.id, "create", "cash_box", cash_box_id, {"date": data.date.isoformat()})
    logger.info("Caixa criado id=%s loja=%s data=%s", cash_box_id, store_id, data.date)
    box = await fetch_cash_box(db, cash_box_id)
    return await _detail(db, box)


@router.put("/{cash_box_id}", response_model=CashBoxDetailResponse)
async def put_cash_box(
    cash_box_id: int,
    data: CashBoxCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAnyAuth),
):
    box = await _get_accessible(db, cash_box_id, current_user)
    if is_admin(current_user.role):
        vistoriador_id = data.vistoriador_id or box.vistoriador_id
    else:
        vistoriador_id = current_user.id
    try:
        await update_cash_box(db, cash_box_id, data, box.store_id, vistoriador_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    await record_audit(db, current_user.id, "update", "cash_box", cash_box_id, {"date": data.date.isoformat()})
    box = await fetch_cash_box(db, cash_box_id)
    return await _detail(db, box)


@router.delete("/{cash_box_id}")
async def remove_cash_box(
    cash_box_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAnyAuth),
):
    await _get_accessible(db, cash_box_id, current_user)
    await delete_cash_box(db, cash_box_id)
    await record_audit(db, current_user.id, "delete", "cash_box", cash_box_id)
    logger.info("Caixa removido id=%s", cash_box_id)
    return {"ok": True}
