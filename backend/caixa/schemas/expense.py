"""Despesas fixas, variáveis, modelos de despesa fixa e fechamento mensal."""
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from caixa.core.dates import parse_month
from caixa.models import ExpenseSource
from caixa.schemas.cash_box import ServiceTypeResponse


class FixedExpenseUpsert(BaseModel):
    id: Optional[int] = None
    store_id: int
    month_year: dt.date
    title: str = Field(..., min_length=1, max_length=200)
    amount_cents: int = Field(..., ge=1, description="Valor deve ser maior que zero")

    @field_validator("month_year", mode="before")
    @classmethod
    def _first_day(cls, v):
        return parse_month(v)


class FixedExpenseResponse(BaseModel):
    id: int
    store_id: int
    month_year: dt.date
    title: str
    amount_cents: int

    class Config:
        from_attributes = True


class VariableExpenseCreate(BaseModel):
    cash_box_id: int
    title: str = Field(..., min_length=1, max_length=200)
    amount_cents: int = Field(..., ge=1)


class VariableExpenseUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    amount_cents: int = Field(..., ge=1)


class VariableExpenseResponse(BaseModel):
    id: int
    cash_box_id: int
    title: str
    amount_cents: int
    date: dt.date
    store_id: int
    vistoriador_id: int


class ExpenseTemplateCreate(BaseModel):
    store_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=200)
    default_amount_cents: int = Field(..., ge=0)
    preferred_day: Optional[int] = Field(None, ge=1, le=31)
    is_active: bool = True


class ExpenseTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    default_amount_cents: Optional[int] = Field(None, ge=0)
    preferred_day: Optional[int] = Field(None, ge=1, le=31)
    is_active: Optional[bool] = None


class ExpenseTemplateResponse(BaseModel):
    id: int
    store_id: Optional[int] = None
    name: str
    default_amount_cents: int
    preferred_day: Optional[int] = None
    is_active: bool

    class Config:
        from_attributes = True


class ClosureServiceLine(BaseModel):
    service_type_id: int
    quantity: int = Field(0, ge=0)
    unit_price_cents: Optional[int] = Field(None, ge=0)


class ClosureExpenseLine(BaseModel):
    title: str
    amount_cents: int = Field(0, ge=0)
    source: ExpenseSource = ExpenseSource.AVULSA


class MonthlyClosurePayload(BaseModel):
    store_id: int
    month: dt.date
    vistoriador_id: Optional[int] = None
    services: List[ClosureServiceLine] = Field(default_factory=list)
    expenses: List[ClosureExpenseLine] = Field(default_factory=list)

    @field_validator("month", mode="before")
    @classmethod
    def _first_day(cls, v):
        return parse_month(v)


class MonthlyClosureResponse(BaseModel):
    store_id: int
    month: dt.date
    cash_box_id: Optional[int] = None
    services: List[ClosureServiceLine]
    expenses: List[ClosureExpenseLine]
    default_expenses: List[ClosureExpenseLine]
    service_types: List[ServiceTypeResponse]
