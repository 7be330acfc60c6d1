"""Caixa diário da loja e seus lançamentos: serviços, entradas eletrônicas e despesas."""
import enum
import datetime as dt
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from caixa.core.database import Base, enum_values
from caixa.core.dates import utcnow


class PaymentMethod(str, enum.Enum):
    PIX = "pix"
    CARTAO = "cartao"


class CashBox(Base):
    """Um caixa por loja, dia e vistoriador."""
    __tablename__ = "cash_boxes"
    __table_args__ = (
        UniqueConstraint("store_id", "date", "vistoriador_id", name="uq_cash_boxes_store_date_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    vistoriador_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    store = relationship("Store")
    vistoriador = relationship("User")
    services = relationship(
        "CashBoxService", back_populates="cash_box", cascade="all, delete-orphan"
    )
    electronic_entries = relationship(
        "CashBoxElectronicEntry", back_populates="cash_box", cascade="all, delete-orphan"
    )
    expenses = relationship(
        "CashBoxExpense", back_populates="cash_box", cascade="all, delete-orphan"
    )


class CashBoxService(Base):
    __tablename__ = "cash_box_services"
    __table_args__ = (
        CheckConstraint("unit_price_cents >= 0", name="ck_cash_box_services_price"),
        CheckConstraint("quantity >= 0", name="ck_cash_box_services_quantity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    cash_box_id: Mapped[int] = mapped_column(ForeignKey("cash_boxes.id", ondelete="CASCADE"), nullable=False, index=True)
    service_type_id: Mapped[int] = mapped_column(ForeignKey("service_types.id", ondelete="RESTRICT"), nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    cash_box = relationship("CashBox", back_populates="services")
    service_type = relationship("ServiceType")

    @property
    def total_cents(self) -> int:
        return (self.unit_price_cents or 0) * (self.quantity or 0)


class CashBoxElectronicEntry(Base):
    """Entrada eletrônica (PIX ou cartão), não passa pela gaveta."""
    __tablename__ = "cash_box_electronic_entries"
    __table_args__ = (CheckConstraint("amount_cents >= 0", name="ck_electronic_entries_amount"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    cash_box_id: Mapped[int] = mapped_column(ForeignKey("cash_boxes.id", ondelete="CASCADE"), nullable=False, index=True)
    method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod, name="payment_method", values_callable=enum_values), nullable=False
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    cash_box = relationship("CashBox", back_populates="electronic_entries")


class CashBoxExpense(Base):
    """Despesa variável (avulsa) lançada no caixa do dia."""
    __tablename__ = "cash_box_expenses"
    __table_args__ = (CheckConstraint("amount_cents >= 0", name="ck_cash_box_expenses_amount"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    cash_box_id: Mapped[int] = mapped_column(ForeignKey("cash_boxes.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    cash_box = relationship("CashBox", back_populates="expenses")
