"""
Tests for display rounding and formatting.
"""

import pytest

from contigos.formatting import (
    amounts_are_equal,
    format_currency,
    format_currency_fixed,
    format_percentage,
    format_results,
    payer_display_name,
    round_amount,
    round_percentage,
)
from contigos.models.budget import CalculationResults, Partner, Payer


class TestRounding:
    """Rounding is the only place precision is dropped."""

    def test_round_amount(self):
        assert round_amount(725.7536) == 725.75
        assert round_amount(524.2464) == 524.25

    def test_round_removes_negative_zero(self):
        assert str(round_amount(-0.001)) == "0.0"

    def test_round_percentage(self):
        assert round_percentage(58.0603) == 58.1


class TestFormatting:
    """Currency and percentage strings."""

    @pytest.mark.parametrize(
        "amount, expected",
        [
            (0, "0,00 €"),
            (1234.5, "1.234,50 €"),
            (725.7536, "725,75 €"),
            (-1234567.891, "-1.234.567,89 €"),
            (1_000_000, "1.000.000,00 €"),
        ],
    )
    def test_format_currency(self, amount, expected):
        assert format_currency(amount) == expected

    def test_format_currency_fixed(self):
        assert format_currency_fixed(725.7536) == "725.75 €"
        assert format_currency_fixed(1250) == "1250.00 €"
        assert format_currency_fixed(3.14159, decimals=3) == "3.142 €"

    def test_format_percentage(self):
        assert format_percentage(58.0603) == "58.1%"
        assert format_percentage(41.9397) == "41.9%"
        assert format_percentage(100) == "100.0%"

    def test_amounts_are_equal(self):
        assert amounts_are_equal(1250.0, 1250.009)
        assert not amounts_are_equal(1250.0, 1250.01 + 1e-9)
        assert amounts_are_equal(10.0, 10.5, tolerance=1.0)


class TestPayerDisplayName:
    """Every payer has a display name."""

    def test_default_names(self):
        assert payer_display_name(Payer.PARTNER1) == "Partner 1"
        assert payer_display_name(Payer.PARTNER2) == "Partner 2"
        assert payer_display_name(Payer.SHARED_ACCOUNT) == "Gemeinschaftskonto"

    def test_custom_names_and_partner_values(self):
        names = ("Ana", "Ben")
        assert payer_display_name(Partner.PARTNER1, names) == "Ana"
        assert payer_display_name("Partner2", names) == "Ben"

    def test_unknown_payer(self):
        with pytest.raises(ValueError):
            payer_display_name("Nachbar")


class TestFormatResults:
    """All result fields come out formatted."""

    def test_every_field_is_formatted(self):
        results = CalculationResults(
            finale_ueberweisung_p1=725.7536,
            p1_anteil_prozent=58.0603,
            p1_ratio=0.580603,
        )
        formatted = format_results(results)

        assert set(formatted) == set(CalculationResults.model_fields)
        assert formatted["finale_ueberweisung_p1"] == "725,75 €"
        assert formatted["p1_anteil_prozent"] == "58.1%"
        assert formatted["p1_ratio"] == "0.5806"
        assert formatted["verbleibt_p2"] == "0,00 €"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
