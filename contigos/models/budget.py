"""
Core Data Models for Contigos

These models define the records that flow into and out of the
allocation engine. They are designed to:
1. Be immutable once created (the engine reads a snapshot, never mutates it)
2. Restrict attribution fields to closed enums
3. Be serializable for storage and logging

DESIGN DECISION: Amounts are plain floats. Rounding happens only at the
presentation boundary (see contigos.formatting), never in between.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


# Settings are a singleton, stored under this key
SETTINGS_ID = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Partner(str, Enum):
    """One of the two partners. Incomes and private expenses belong to one."""
    PARTNER1 = "Partner1"
    PARTNER2 = "Partner2"


class Payer(str, Enum):
    """
    Who paid a shared expense.

    A partner paying directly counts as a direct payment towards their
    share; the joint account paying counts towards the account's need.
    """
    PARTNER1 = "Partner1"
    PARTNER2 = "Partner2"
    SHARED_ACCOUNT = "Gemeinschaftskonto"


class RecordKind(str, Enum):
    """Kinds of list records kept in storage."""
    INCOME = "income"
    EXPENSE = "expense"
    PRIVATE_EXPENSE = "private_expense"


# =============================================================================
# INPUT RECORDS
# =============================================================================

class BudgetSettings(BaseModel):
    """
    The singleton settings record.

    Exactly one exists at any time; storage upserts it under SETTINGS_ID.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(
        default=SETTINGS_ID,
        description="Fixed singleton key",
    )
    restgeld_vormonat: float = Field(
        default=0.0,
        allow_inf_nan=False,
        description="Leftover joint-account balance from last month (may be negative)",
    )
    comida_betrag: float = Field(
        default=0.0,
        ge=0,
        allow_inf_nan=False,
        description="Fixed monthly food budget paid from the joint account",
    )
    ahorros_betrag: float = Field(
        default=0.0,
        ge=0,
        allow_inf_nan=False,
        description="Fixed monthly savings paid from the joint account",
    )
    tagesgeldkonto_betrag: float = Field(
        default=0.0,
        allow_inf_nan=False,
        description="Current savings account balance",
    )
    gemeinschaftskonto_aktuell: float = Field(
        default=0.0,
        allow_inf_nan=False,
        description="Current joint account balance",
    )
    updated_at: datetime = Field(default_factory=_utcnow)


class _BudgetRecord(BaseModel):
    """Fields shared by every list record."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    KIND: ClassVar[RecordKind]

    id: UUID = Field(default_factory=uuid4)
    beschreibung: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Short description",
    )
    betrag: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Amount in EUR",
    )
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Income(_BudgetRecord):
    """An income position attributed to one partner."""
    KIND: ClassVar[RecordKind] = RecordKind.INCOME

    quelle: Partner


class Expense(_BudgetRecord):
    """A shared expense, already spent against the shared budget."""
    KIND: ClassVar[RecordKind] = RecordKind.EXPENSE

    bezahlt_von: Payer


class PrivateExpense(_BudgetRecord):
    """
    A private expense of one partner.

    Not part of the cost split; it only reduces that partner's
    remaining free money.
    """
    KIND: ClassVar[RecordKind] = RecordKind.PRIVATE_EXPENSE

    person: Partner


RECORD_TYPES: dict[RecordKind, type[_BudgetRecord]] = {
    RecordKind.INCOME: Income,
    RecordKind.EXPENSE: Expense,
    RecordKind.PRIVATE_EXPENSE: PrivateExpense,
}


class BudgetSnapshot(BaseModel):
    """Everything one calculation reads, loaded together from storage."""
    model_config = ConfigDict(frozen=True)

    settings: BudgetSettings = Field(default_factory=BudgetSettings)
    incomes: tuple[Income, ...] = ()
    expenses: tuple[Expense, ...] = ()
    private_expenses: tuple[PrivateExpense, ...] = ()


# =============================================================================
# ENGINE OUTPUT
# =============================================================================

class CalculationResults(BaseModel):
    """
    Every figure derived by the allocation engine.

    All fields default to zero, so CalculationResults() is the result
    for a household without income.
    """
    model_config = ConfigDict(frozen=True)

    PERCENTAGE_FIELDS: ClassVar[tuple[str, ...]] = (
        "p1_anteil_prozent",
        "p2_anteil_prozent",
    )
    RATIO_FIELDS: ClassVar[tuple[str, ...]] = ("p1_ratio", "p2_ratio")

    # Incomes
    p1_einkommen: float = 0.0
    p2_einkommen: float = 0.0
    gesamteinkommen: float = 0.0
    p1_ratio: float = 0.0
    p2_ratio: float = 0.0
    p1_anteil_prozent: float = 0.0
    p2_anteil_prozent: float = 0.0

    # Costs and shares
    gesamtkosten: float = 0.0
    p1_gesamtanteil_kosten: float = 0.0
    p2_gesamtanteil_kosten: float = 0.0

    # Direct payments by each partner
    p1_direktzahlungen: float = 0.0
    p2_direktzahlungen: float = 0.0

    # Joint account need
    gk_dyn_ausgaben: float = 0.0
    bedarf_gk: float = 0.0

    # Previous month remainder allocation
    p1_anteil_restgeld: float = 0.0
    p2_anteil_restgeld: float = 0.0

    # Final transfer amounts (main results)
    finale_ueberweisung_p1: float = 0.0
    finale_ueberweisung_p2: float = 0.0

    # Remaining free amounts
    verbleibt_p1: float = 0.0
    verbleibt_p2: float = 0.0

    # Control calculations
    kontrolle_einzahlung_noetig: float = 0.0
    kontrolle_summe_ueberweisungen: float = 0.0

    # Savings
    aktuelles_tagesgeldkonto: float = 0.0
    neues_tagesgeldkonto: float = 0.0

    @classmethod
    def money_fields(cls) -> tuple[str, ...]:
        """Names of all fields holding an amount of money."""
        skip = set(cls.PERCENTAGE_FIELDS) | set(cls.RATIO_FIELDS)
        return tuple(name for name in cls.model_fields if name not in skip)


class ArithmeticInconsistency(BaseModel):
    """
    Diagnostic raised by the control check.

    Never blocks a calculation; it is shown to the user as a warning.
    """
    model_config = ConfigDict(frozen=True)

    expected: float = Field(..., description="Deposit the joint account needs")
    actual: float = Field(..., description="Sum of both transfers")
    difference: float
    tolerance: float

    @property
    def message(self) -> str:
        return (
            f"Control check failed: needed deposit {self.expected:.2f} "
            f"differs from the sum of transfers {self.actual:.2f} "
            f"by {self.difference:.2f}"
        )


class DailyAllowance(BaseModel):
    """How much of the joint account balance is available per day."""
    model_config = ConfigDict(frozen=True)

    per_day: float
    remaining_days: int = Field(ge=0)
    days_in_month: int = Field(ge=28, le=31)
    month: date = Field(..., description="First day of the month")
