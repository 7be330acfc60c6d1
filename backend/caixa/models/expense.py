"""Despesas mensais (fixas/avulsas) e modelos de despesa fixa."""
import enum
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from caixa.core.database import Base, enum_values
from caixa.core.dates import utcnow


class ExpenseSource(str, enum.Enum):
    FIXA = "fixa"
    AVULSA = "avulsa"


class MonthlyExpense(Base):
    __tablename__ = "monthly_expenses"
    __table_args__ = (CheckConstraint("amount_cents >= 0", name="ck_monthly_expenses_amount"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    month_year: Mapped[date] = mapped_column(Date, nullable=False, index=True)  # sempre dia 1
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[ExpenseSource] = mapped_column(
        Enum(ExpenseSource, name="expense_source", values_callable=enum_values), nullable=False
    )
    created_by_user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class FixedExpenseTemplate(Base):
    """Despesa fixa recorrente (aluguel, internet...). store_id NULL vale para todas as lojas."""
    __tablename__ = "fixed_expense_templates"
    __table_args__ = (
        CheckConstraint("default_amount_cents >= 0", name="ck_fixed_templates_amount"),
        CheckConstraint("preferred_day >= 1 AND preferred_day <= 31", name="ck_fixed_templates_day"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    store_id: Mapped[Optional[int]] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), nullable=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    default_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    preferred_day: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
