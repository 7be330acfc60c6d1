"""Área do admin: despesas fixas e variáveis, modelos de despesa e fechamento mensal."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from caixa.api.auth import RequireAdmin, UserInfo
from caixa.core.database import get_db
from caixa.core.dates import default_range, month_end, month_start
from caixa.core.exceptions import ConflictError, NotFoundError
from caixa.models import CashBoxExpense
from caixa.schemas.expense import (
    ExpenseTemplateCreate,
    ExpenseTemplateResponse,
    ExpenseTemplateUpdate,
    FixedExpenseResponse,
    FixedExpenseUpsert,
    MonthlyClosurePayload,
    MonthlyClosureResponse,
    VariableExpenseCreate,
    VariableExpenseResponse,
    VariableExpenseUpdate,
)
from caixa.services import admin_service
from caixa.services.monthly_closure import (
    delete_monthly_closure,
    fetch_monthly_closure,
    upsert_monthly_closure,
)
from caixa.services.summary import VIEW_MODES, apply_view_mode

router = APIRouter(prefix="/admin", tags=["admin"])


def _variable_to_response(expense: CashBoxExpense) -> VariableExpenseResponse:
    box = expense.cash_box
    return VariableExpenseResponse(
        id=expense.id,
        cash_box_id=expense.cash_box_id,
        title=expense.title,
        amount_cents=expense.amount_cents,
        date=box.date,
        store_id=box.store_id,
        vistoriador_id=box.vistoriador_id,
    )


def _not_found(e: NotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


def _check_view_mode(view_mode: str) -> None:
    if view_mode not in VIEW_MODES:
        raise HTTPException(status_code=400, detail=f"Visualização inválida: {view_mode}")


# --- despesas fixas ---


@router.get("/fixed-expenses", response_model=list[FixedExpenseResponse])
async def get_fixed_expenses(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    store_id: Optional[int] = Query(None),
    view_mode: str = Query("all", description="all | top5 | top10 | highest | lowest"),
    db: AsyncSession = Depends(get_db),
    _user: UserInfo = Depends(RequireAdmin),
):
    """Sem período: o mês atual."""
    _check_view_mode(view_mode)
    rows = await admin_service.fetch_fixed_expenses(
        db,
        start or month_start(),
        end or month_end(),
        store_id=store_id,
    )
    return apply_view_mode(rows, view_mode)


@router.put("/fixed-expenses", response_model=FixedExpenseResponse)
async def put_fixed_expense(
    data: FixedExpenseUpsert,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    try:
        expense = await admin_service.upsert_fixed_expense(db, data, current_user.id)
    except NotFoundError as e:
        raise _not_found(e)
    await admin_service.record_audit(
        db, current_user.id, "upsert", "fixed_expense", expense.id, {"amount_cents": expense.amount_cents}
    )
    return expense


@router.delete("/fixed-expenses/{expense_id}")
async def remove_fixed_expense(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    try:
        await admin_service.delete_fixed_expense(db, expense_id)
    except NotFoundError as e:
        raise _not_found(e)
    await admin_service.record_audit(db, current_user.id, "delete", "fixed_expense", expense_id)
    return {"ok": True}


# --- despesas variáveis (lançadas nos caixas) ---


@router.get("/variable-expenses", response_model=list[VariableExpenseResponse])
async def get_variable_expenses(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    store_id: Optional[int] = Query(None),
    vistoriador_id: Optional[int] = Query(None),
    view_mode: str = Query("all", description="all | top5 | top10 | highest | lowest"),
    db: AsyncSession = Depends(get_db),
    _user: UserInfo = Depends(RequireAdmin),
):
    _check_view_mode(view_mode)
    default_start, default_end = default_range()
    rows = await admin_service.fetch_variable_expenses(
        db,
        start or default_start,
        end or default_end,
        store_id=store_id,
        vistoriador_id=vistoriador_id,
    )
    return apply_view_mode([_variable_to_response(x) for x in rows], view_mode)


@router.post("/variable-expenses", response_model=VariableExpenseResponse)
async def post_variable_expense(
    data: VariableExpenseCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    try:
        expense = await admin_service.create_variable_expense(db, data)
    except NotFoundError as e:
        raise _not_found(e)
    await admin_service.record_audit(
        db, current_user.id, "create", "variable_expense", expense.id, {"cash_box_id": data.cash_box_id}
    )
    return _variable_to_response(expense)


@router.put("/variable-expenses/{expense_id}", response_model=VariableExpenseResponse)
async def put_variable_expense(
    expense_id: int,
    data: VariableExpenseUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    try:
        expense = await admin_service.update_variable_expense(db, expense_id, data)
    except NotFoundError as e:
        raise _not_found(e)
    await admin_service.record_audit(db, current_user.id, "update", "variable_expense", expense_id)
    return _variable_to_response(expense)


@router.delete("/variable-expenses/{expense_id}")
async def remove_variable_expense(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    try:
        await admin_service.delete_variable_expense(db, expense_id)
    except NotFoundError as e:
        raise _not_found(e)
    await admin_service.record_audit(db, current_user.id, "delete", "variable_expense", expense_id)
    return {"ok": True}


# --- modelos de despesa fixa ---


@router.get("/expense-templates", response_model=list[ExpenseTemplateResponse])
async def get_expense_templates(
    store_id: Optional[int] = Query(None),
    active: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    _user: UserInfo = Depends(RequireAdmin),
):
    return await admin_service.fetch_expense_templates(db, store_id=store_id, only_active=active)


@router.post("/expense-templates", response_model=ExpenseTemplateResponse)
async def post_expense_template(
    data: ExpenseTemplateCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    template = await admin_service.create_expense_template(db, data)
    await admin_service.record_audit(db, current_user.id, "create", "expense_template", template.id)
    return template


@router.patch("/expense-templates/{template_id}", response_model=ExpenseTemplateResponse)
async def patch_expense_template(
    template_id: int,
    data: ExpenseTemplateUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    try:
        template = await admin_service.update_expense_template(db, template_id, data)
    except NotFoundError as e:
        raise _not_found(e)
    await admin_service.record_audit(db, current_user.id, "update", "expense_template", template_id)
    return template


@router.delete("/expense-templates/{template_id}")
async def remove_expense_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    try:
        await admin_service.delete_expense_template(db, template_id)
    except NotFoundError as e:
        raise _not_found(e)
    await admin_service.record_audit(db, current_user.id, "delete", "expense_template", template_id)
    return {"ok": True}


# --- fechamento mensal ---


@router.get("/monthly-closure", response_model=MonthlyClosureResponse)
async def get_monthly_closure(
    store_id: int = Query(...),
    month: str = Query(..., description="YYYY-MM"),
    db: AsyncSession = Depends(get_db),
    _user: UserInfo = Depends(RequireAdmin),
):
    try:
        return await fetch_monthly_closure(db, store_id, month)
    except ValueError:
        raise HTTPException(status_code=400, detail="Mês inválido, use YYYY-MM")


@router.put("/monthly-closure", response_model=MonthlyClosureResponse)
async def put_monthly_closure(
    payload: MonthlyClosurePayload,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    try:
        cash_box_id = await upsert_monthly_closure(db, payload, current_user.id)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    await admin_service.record_audit(
        db,
        current_user.id,
        "upsert",
        "monthly_closure",
        cash_box_id,
        {"store_id": payload.store_id, "month": payload.month.isoformat()},
    )
    return await fetch_monthly_closure(db, payload.store_id, payload.month)


@router.delete("/monthly-closure/{cash_box_id}")
async def remove_monthly_closure(
    cash_box_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    try:
        await delete_monthly_closure(db, cash_box_id)
    except NotFoundError as e:
        raise _not_found(e)
    await admin_service.record_audit(db, current_user.id, "delete", "monthly_closure", cash_box_id)
    return {"ok": True}
