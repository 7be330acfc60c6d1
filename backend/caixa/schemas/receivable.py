import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field

from caixa.models import PaymentMethod, ReceivableStatus


class ReceivablePaymentCreate(BaseModel):
    paid_on: dt.date
    amount_cents: int = Field(..., ge=1, description="Valor deve ser maior que zero")
    method: Optional[PaymentMethod] = None


class ReceivableUpdate(BaseModel):
    customer_name: Optional[str] = Field(None, min_length=1, max_length=200)
    plate: Optional[str] = Field(None, max_length=20)
    service_type_id: Optional[int] = None
    original_amount_cents: Optional[int] = Field(None, ge=0)
    due_date: Optional[dt.date] = None


class ReceivablePaymentResponse(BaseModel):
    id: int
    paid_on: dt.date
    amount_cents: int
    method: Optional[PaymentMethod] = None
    recorded_by_user_id: int

    class Config:
        from_attributes = True


class ReceivableResponse(BaseModel):
    id: int
    store_id: int
    created_by_user_id: int
    customer_name: str
    plate: Optional[str] = None
    service_type_id: Optional[int] = None
    service_name: Optional[str] = None
    original_amount_cents: Optional[int] = None
    paid_cents: int = 0
    due_date: Optional[dt.date] = None
    status: ReceivableStatus
    created_at: dt.datetime
    payments: List[ReceivablePaymentResponse] = []
