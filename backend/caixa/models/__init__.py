from caixa.core.database import Base
from caixa.models.store import Store
from caixa.models.user import User, UserRole
from caixa.models.service_type import ServiceType
from caixa.models.cash_box import (
    CashBox,
    CashBoxElectronicEntry,
    CashBoxExpense,
    CashBoxService,
    PaymentMethod,
)
from caixa.models.receivable import Receivable, ReceivablePayment, ReceivableStatus
from caixa.models.expense import ExpenseSource, FixedExpenseTemplate, MonthlyExpense
from caixa.models.audit_log import AuditLog

__all__ = [
    "AuditLog",
    "Base",
    "CashBox",
    "CashBoxElectronicEntry",
    "CashBoxExpense",
    "CashBoxService",
    "ExpenseSource",
    "FixedExpenseTemplate",
    "MonthlyExpense",
    "PaymentMethod",
    "Receivable",
    "ReceivablePayment",
    "ReceivableStatus",
    "ServiceType",
    "Store",
    "User",
    "UserRole",
]
