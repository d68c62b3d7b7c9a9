"""
Control Check

The engine derives the money the joint account needs twice:
once from the account's side (need minus last month's remainder),
once from the partners' side (sum of both transfers). For valid
input both agree up to floating point noise. A gap means a bug in
the arithmetic or in the data (e.g. an expense with an unknown payer).

The check is diagnostic only. It never changes results.
"""

from typing import Optional

from contigos.models.budget import ArithmeticInconsistency, CalculationResults


CONTROL_TOLERANCE = 0.01


def control_difference(results: CalculationResults) -> float:
    return results.kontrolle_einzahlung_noetig - results.kontrolle_summe_ueberweisungen


def is_control_calculation_valid(
    results: CalculationResults,
    tolerance: float = CONTROL_TOLERANCE,
) -> bool:
    """True if needed deposit and sum of transfers differ by less than a cent."""
    return abs(control_difference(results)) < tolerance


def check_control(
    results: CalculationResults,
    tolerance: float = CONTROL_TOLERANCE,
) -> Optional[ArithmeticInconsistency]:
    """Return a diagnostic if the control check fails, None otherwise."""
    if is_control_calculation_valid(results, tolerance):
        return None
    return ArithmeticInconsistency(
        expected=results.kontrolle_einzahlung_noetig,
        actual=results.kontrolle_summe_ueberweisungen,
        difference=control_difference(results),
        tolerance=tolerance,
    )
