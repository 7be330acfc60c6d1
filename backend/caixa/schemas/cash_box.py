import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from caixa.models import PaymentMethod


class ServiceLine(BaseModel):
    """Linha de serviço do formulário: quantidade × preço unitário."""
    service_type_id: int = Field(..., ge=1, description="Selecione um serviço")
    quantity: int = Field(0, ge=0)
    unit_price_cents: int = Field(0, ge=0)


class ElectronicEntryLine(BaseModel):
    method: PaymentMethod
    amount_cents: int = Field(0, ge=0)


class ExpenseLine(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    amount_cents: int = Field(0, ge=0)


class ReceivableLine(BaseModel):
    """Cliente que ficou devendo, lançado junto com o caixa."""
    customer_name: str = Field(..., min_length=1, max_length=200)
    plate: Optional[str] = Field(None, max_length=20)
    service_type_id: Optional[int] = None
    original_amount_cents: int = Field(0, ge=0)
    due_date: Optional[dt.date] = None

    @field_validator("customer_name")
    @classmethod
    def _strip_customer(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Informe o cliente")
        return v


class CashBoxLines(BaseModel):
    services: List[ServiceLine] = Field(default_factory=list)
    electronic_entries: List[ElectronicEntryLine] = Field(default_factory=list)
    expenses: List[ExpenseLine] = Field(default_factory=list)
    receivables: List[ReceivableLine] = Field(default_factory=list)


class CashBoxFormDraft(CashBoxLines):
    """Formulário normalizado devolvido ao front (nome do caixa pode estar vazio)."""
    date: dt.date
    note: str = ""


class CashBoxForm(CashBoxFormDraft):
    note: str = Field(..., description="Nome do caixa")

    @field_validator("note")
    @classmethod
    def _note_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Informe o nome do caixa")
        return v


class CashBoxCreate(CashBoxForm):
    """Admin pode lançar para outra loja/vistoriador; vistoriador usa os próprios."""
    store_id: Optional[int] = None
    vistoriador_id: Optional[int] = None


class CashBoxTotals(BaseModel):
    gross: int
    return_quantity: int
    pix: int
    cartao: int
    electronic_total: int
    expenses_total: int
    receivables_total: int
    net: int
    cash: int


class ServiceTypeResponse(BaseModel):
    id: int
    code: str
    name: str
    default_price_cents: int
    counts_in_gross: bool

    class Config:
        from_attributes = True


class CashBoxServiceResponse(BaseModel):
    id: int
    service_type_id: int
    unit_price_cents: int
    quantity: int
    total_cents: int
    service_type: Optional[ServiceTypeResponse] = None

    class Config:
        from_attributes = True


class ElectronicEntryResponse(BaseModel):
    id: int
    method: PaymentMethod
    amount_cents: int

    class Config:
        from_attributes = True


class CashBoxExpenseResponse(BaseModel):
    id: int
    title: str
    amount_cents: int

    class Config:
        from_attributes = True


class CashBoxResponse(BaseModel):
    id: int
    store_id: int
    date: dt.date
    vistoriador_id: int
    note: Optional[str] = None
    created_at: dt.datetime
    services: List[CashBoxServiceResponse] = []
    electronic_entries: List[ElectronicEntryResponse] = []
    expenses: List[CashBoxExpenseResponse] = []

    class Config:
        from_attributes = True


class CashBoxDetailResponse(CashBoxResponse):
    totals: CashBoxTotals
    form: CashBoxFormDraft


class CashBoxListItem(BaseModel):
    """Linha do histórico: caixa com totais já calculados."""
    id: int
    store_id: int
    store_name: Optional[str] = None
    date: dt.date
    vistoriador_id: int
    vistoriador_name: Optional[str] = None
    note: Optional[str] = None
    totals: CashBoxTotals


class CashBoxPreviewRequest(CashBoxLines):
    pass
