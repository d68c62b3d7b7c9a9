"""
Derived figures for the overview page.

These build on CalculationResults and are not used by the engine itself.
"""

import calendar
from collections.abc import Iterable
from datetime import date
from typing import Optional

from contigos.calculations.engine import as_amount
from contigos.models.budget import (
    CalculationResults,
    DailyAllowance,
    Partner,
    PrivateExpense,
)


def calculate_private_totals(
    private_expenses: Optional[Iterable[PrivateExpense]],
) -> tuple[float, float]:
    """Sum private expenses per partner. Returns (partner1, partner2)."""
    p1_total = 0.0
    p2_total = 0.0
    for expense in private_expenses or ():
        if expense.person is Partner.PARTNER1:
            p1_total += as_amount(expense.betrag)
        elif expense.person is Partner.PARTNER2:
            p2_total += as_amount(expense.betrag)
    return p1_total, p2_total


def remaining_after_private(
    results: CalculationResults,
    private_expenses: Optional[Iterable[PrivateExpense]],
) -> tuple[float, float]:
    """Free money of each partner once their private expenses are paid."""
    p1_private, p2_private = calculate_private_totals(private_expenses)
    return results.verbleibt_p1 - p1_private, results.verbleibt_p2 - p2_private


def monthly_savings(results: CalculationResults) -> float:
    return results.neues_tagesgeldkonto - results.aktuelles_tagesgeldkonto


def savings_rate(results: CalculationResults) -> float:
    """
    Monthly savings as a percentage of the money used this month.

    Money used is total income minus what both partners keep free.
    """
    money_used = results.gesamteinkommen - results.verbleibt_p1 - results.verbleibt_p2
    if money_used <= 0:
        return 0.0
    return monthly_savings(results) / money_used * 100


def daily_allowance(
    balance: float,
    year: int,
    month: int,
    today: Optional[date] = None,
) -> DailyAllowance:
    """
    Spread the joint account balance over the days left in a month.

    For the current month the remaining days include today; any other
    month counts all of its days.
    """
    today = today or date.today()
    days_in_month = calendar.monthrange(year, month)[1]

    if (year, month) == (today.year, today.month):
        remaining_days = days_in_month - today.day + 1
    else:
        remaining_days = days_in_month

    per_day = as_amount(balance) / remaining_days if remaining_days > 0 else 0.0

    return DailyAllowance(
        per_day=per_day,
        remaining_days=remaining_days,
        days_in_month=days_in_month,
        month=date(year, month, 1),
    )
