"""
Allocation Engine

Derives every figure of a month from the current settings, shared
expenses and incomes:

    income ratio -> cost share -> minus direct payments
                 -> minus share of last month's remainder
                 = transfer to the joint account

DESIGN DECISION: The engine is a pure function. It owns no state,
reads an immutable snapshot and recomputes everything on each call,
so it can be called from any request context without locking.

It is also total: missing collections count as empty, amounts that
are not finite numbers count as zero. Bad input is rejected earlier
by contigos.validation; this only keeps a display from crashing.
"""

import math
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from contigos.models.budget import (
    BudgetSettings,
    CalculationResults,
    Expense,
    Income,
    Partner,
    Payer,
)


def _get(record: Any, name: str, default: Any = None) -> Any:
    """Read a field from a model or a plain mapping."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def as_amount(value: Any) -> float:
    """Coerce a stored amount to float; anything unusable becomes 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _as_enum(value: Any, enum_cls: type) -> Optional[Any]:
    try:
        return enum_cls(value)
    except (TypeError, ValueError):
        return None


def calculate_income_totals(
    incomes: Optional[Iterable[Income]],
) -> tuple[float, float]:
    """Sum incomes per partner. Returns (partner1, partner2)."""
    p1_total = 0.0
    p2_total = 0.0
    for income in incomes or ():
        quelle = _as_enum(_get(income, "quelle"), Partner)
        amount = as_amount(_get(income, "betrag"))
        if quelle is Partner.PARTNER1:
            p1_total += amount
        elif quelle is Partner.PARTNER2:
            p2_total += amount
    return p1_total, p2_total


def _split_expenses(
    expenses: Iterable[Expense],
) -> tuple[float, float, float, float]:
    """
    Returns (total, paid by partner 1, paid by partner 2, paid by joint account).

    An expense with an unknown payer still counts towards the total;
    the control check will then flag the mismatch.
    """
    total = p1_paid = p2_paid = shared_paid = 0.0
    for expense in expenses:
        amount = as_amount(_get(expense, "betrag"))
        total += amount
        payer = _as_enum(_get(expense, "bezahlt_von"), Payer)
        if payer is Payer.PARTNER1:
            p1_paid += amount
        elif payer is Payer.PARTNER2:
            p2_paid += amount
        elif payer is Payer.SHARED_ACCOUNT:
            shared_paid += amount
    return total, p1_paid, p2_paid, shared_paid


def compute_results(
    settings: Optional[BudgetSettings],
    expenses: Optional[Iterable[Expense]],
    incomes: Optional[Iterable[Income]],
) -> CalculationResults:
    """
    Calculate cost shares, transfers and control totals.

    Args:
        settings: The singleton settings record (None counts as all zero)
        expenses: Shared expenses of the month
        incomes: Income positions of both partners

    Returns:
        CalculationResults. All zero when there is no income at all.
    """
    expenses = list(expenses or ())
    p1_einkommen, p2_einkommen = calculate_income_totals(incomes)

    restgeld_vormonat = as_amount(_get(settings, "restgeld_vormonat", 0))
    comida_betrag = as_amount(_get(settings, "comida_betrag", 0))
    ahorros_betrag = as_amount(_get(settings, "ahorros_betrag", 0))
    aktuelles_tagesgeldkonto = as_amount(_get(settings, "tagesgeldkonto_betrag", 0))

    gesamteinkommen = p1_einkommen + p2_einkommen
    if gesamteinkommen == 0:
        return CalculationResults()

    # p2 is derived from p1 so the two always add up to one
    p1_ratio = p1_einkommen / gesamteinkommen
    p2_ratio = 1 - p1_ratio

    sum_expenses, p1_direktzahlungen, p2_direktzahlungen, gk_dyn_ausgaben = (
        _split_expenses(expenses)
    )

    gesamtkosten = comida_betrag + ahorros_betrag + sum_expenses
    p1_gesamtanteil_kosten = gesamtkosten * p1_ratio
    p2_gesamtanteil_kosten = gesamtkosten * p2_ratio

    # Fixed costs are always paid from the joint account
    bedarf_gk = comida_betrag + ahorros_betrag + gk_dyn_ausgaben

    p1_anteil_restgeld = restgeld_vormonat * p1_ratio
    p2_anteil_restgeld = restgeld_vormonat * p2_ratio

    # Negative means the partner overpaid and gets money back
    finale_ueberweisung_p1 = (
        p1_gesamtanteil_kosten - p1_direktzahlungen - p1_anteil_restgeld
    )
    finale_ueberweisung_p2 = (
        p2_gesamtanteil_kosten - p2_direktzahlungen - p2_anteil_restgeld
    )

    verbleibt_p1 = p1_einkommen - p1_direktzahlungen - finale_ueberweisung_p1
    verbleibt_p2 = p2_einkommen - p2_direktzahlungen - finale_ueberweisung_p2

    # Two independent paths to the same number
    kontrolle_einzahlung_noetig = bedarf_gk - restgeld_vormonat
    kontrolle_summe_ueberweisungen = finale_ueberweisung_p1 + finale_ueberweisung_p2

    return CalculationResults(
        p1_einkommen=p1_einkommen,
        p2_einkommen=p2_einkommen,
        gesamteinkommen=gesamteinkommen,
        p1_ratio=p1_ratio,
        p2_ratio=p2_ratio,
        p1_anteil_prozent=p1_ratio * 100,
        p2_anteil_prozent=p2_ratio * 100,
        gesamtkosten=gesamtkosten,
        p1_gesamtanteil_kosten=p1_gesamtanteil_kosten,
        p2_gesamtanteil_kosten=p2_gesamtanteil_kosten,
        p1_direktzahlungen=p1_direktzahlungen,
        p2_direktzahlungen=p2_direktzahlungen,
        gk_dyn_ausgaben=gk_dyn_ausgaben,
        bedarf_gk=bedarf_gk,
        p1_anteil_restgeld=p1_anteil_restgeld,
        p2_anteil_restgeld=p2_anteil_restgeld,
        finale_ueberweisung_p1=finale_ueberweisung_p1,
        finale_ueberweisung_p2=finale_ueberweisung_p2,
        verbleibt_p1=verbleibt_p1,
        verbleibt_p2=verbleibt_p2,
        kontrolle_einzahlung_noetig=kontrolle_einzahlung_noetig,
        kontrolle_summe_ueberweisungen=kontrolle_summe_ueberweisungen,
        aktuelles_tagesgeldkonto=aktuelles_tagesgeldkonto,
        neues_tagesgeldkonto=aktuelles_tagesgeldkonto + ahorros_betrag,
    )
