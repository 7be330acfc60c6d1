"""A receber: dívidas de clientes por loja e os pagamentos registrados."""
import enum
from datetime import date, datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from caixa.core.database import Base, enum_values
from caixa.core.dates import utcnow
from caixa.models.cash_box import PaymentMethod


class ReceivableStatus(str, enum.Enum):
    ABERTO = "aberto"
    PAGO_PENDENTE_BAIXA = "pago_pendente_baixa"
    BAIXADO = "baixado"


class Receivable(Base):
    __tablename__ = "receivables"
    __table_args__ = (
        CheckConstraint("original_amount_cents >= 0", name="ck_receivables_amount"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    plate: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    service_type_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("service_types.id", ondelete="SET NULL"), nullable=True
    )
    original_amount_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[ReceivableStatus] = mapped_column(
        Enum(ReceivableStatus, name="receivable_status", values_callable=enum_values),
        default=ReceivableStatus.ABERTO,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    service_type = relationship("ServiceType")
    payments = relationship(
        "ReceivablePayment",
        back_populates="receivable",
        cascade="all, delete-orphan",
        order_by="ReceivablePayment.paid_on.desc()",
    )


class ReceivablePayment(Base):
    __tablename__ = "receivable_payments"
    __table_args__ = (CheckConstraint("amount_cents >= 0", name="ck_receivable_payments_amount"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    receivable_id: Mapped[int] = mapped_column(ForeignKey("receivables.id", ondelete="CASCADE"), nullable=False, index=True)
    paid_on: Mapped[date] = mapped_column(Date, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[Optional[PaymentMethod]] = mapped_column(
        Enum(PaymentMethod, name="payment_method", values_callable=enum_values), nullable=True
    )
    recorded_by_user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    receivable = relationship("Receivable", back_populates="payments")
