"""Tipos de serviço (vistoria de carro, moto, cautelar...) com preço padrão."""
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from caixa.core.database import Base
from caixa.core.dates import utcnow


class ServiceType(Base):
    __tablename__ = "service_types"
    __table_args__ = (CheckConstraint("default_price_cents >= 0", name="ck_service_types_price"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    default_price_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Revistoria de retorno não entra no faturamento bruto, só na contagem
    counts_in_gross: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
