"""Allocation engine and derived figures."""

from contigos.calculations.control import (
    CONTROL_TOLERANCE,
    check_control,
    control_difference,
    is_control_calculation_valid,
)
from contigos.calculations.engine import (
    as_amount,
    calculate_income_totals,
    compute_results,
)
from contigos.calculations.summary import (
    calculate_private_totals,
    daily_allowance,
    monthly_savings,
    remaining_after_private,
    savings_rate,
)

__all__ = [
    "CONTROL_TOLERANCE",
    "as_amount",
    "calculate_income_totals",
    "calculate_private_totals",
    "check_control",
    "compute_results",
    "control_difference",
    "daily_allowance",
    "is_control_calculation_valid",
    "monthly_savings",
    "remaining_after_private",
    "savings_rate",
]
