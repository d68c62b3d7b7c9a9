"""
Display Formatting

Rounding happens here and only here: amounts to 2 decimal places,
percentages to 1. The engine keeps full float precision.
"""

from typing import Union

from contigos.models.budget import CalculationResults, Partner, Payer


AMOUNT_DECIMALS = 2
PERCENT_DECIMALS = 1

DEFAULT_PARTNER_NAMES = ("Partner 1", "Partner 2")


def round_amount(amount: float, decimals: int = AMOUNT_DECIMALS) -> float:
    # + 0.0 turns -0.0 into 0.0
    return round(float(amount), decimals) + 0.0


def round_percentage(percentage: float, decimals: int = PERCENT_DECIMALS) -> float:
    return round(float(percentage), decimals) + 0.0


def format_currency(amount: float) -> str:
    """German locale EUR, e.g. -1234.5 -> '-1.234,50 €'."""
    rounded = round_amount(amount)
    text = f"{abs(rounded):,.2f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{text} €"


def format_currency_fixed(amount: float, decimals: int = AMOUNT_DECIMALS) -> str:
    """Plain fixed-point amount, e.g. 725.6553 -> '725.66 €'."""
    return f"{round_amount(amount, decimals):.{decimals}f} €"


def format_percentage(percentage: float, decimals: int = PERCENT_DECIMALS) -> str:
    return f"{round_percentage(percentage, decimals):.{decimals}f}%"


def amounts_are_equal(
    amount1: float,
    amount2: float,
    tolerance: float = 0.01,
) -> bool:
    return abs(amount1 - amount2) < tolerance


def payer_display_name(
    payer: Union[Payer, Partner, str],
    names: tuple[str, str] = DEFAULT_PARTNER_NAMES,
) -> str:
    """Human name for a payer or partner."""
    payer = Payer(payer)
    if payer is Payer.PARTNER1:
        return names[0]
    elif payer is Payer.PARTNER2:
        return names[1]
    elif payer is Payer.SHARED_ACCOUNT:
        return "Gemeinschaftskonto"
    raise ValueError(f"Unknown payer: {payer}")


def format_results(results: CalculationResults) -> dict[str, str]:
    """Every field of the results, ready to display."""
    formatted = {
        name: format_currency(getattr(results, name))
        for name in CalculationResults.money_fields()
    }
    for name in CalculationResults.PERCENTAGE_FIELDS:
        formatted[name] = format_percentage(getattr(results, name))
    for name in CalculationResults.RATIO_FIELDS:
        formatted[name] = f"{getattr(results, name):.4f}"
    return formatted
