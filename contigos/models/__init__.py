"""
Data Models Package

This package contains all Pydantic models used in Contigos.
All data flowing into and out of the allocation engine conforms to these schemas.
"""

from contigos.models.budget import (
    RECORD_TYPES,
    SETTINGS_ID,
    ArithmeticInconsistency,
    BudgetSettings,
    BudgetSnapshot,
    CalculationResults,
    DailyAllowance,
    Expense,
    Income,
    Partner,
    Payer,
    PrivateExpense,
    RecordKind,
)
from contigos.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "RECORD_TYPES",
    "SETTINGS_ID",
    "ArithmeticInconsistency",
    "BudgetSettings",
    "BudgetSnapshot",
    "CalculationResults",
    "DailyAllowance",
    "Expense",
    "Income",
    "Partner",
    "Payer",
    "PrivateExpense",
    "RecordKind",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
