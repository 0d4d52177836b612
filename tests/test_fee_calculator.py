"""
Unit Tests for Fee Calculator

Tests verify calculations against known expected values.
"""

from decimal import Decimal

import pytest

from revshare.calculators.fees import FeeCalculator, floor_money, quantize_money, validate_gross
from revshare.config import FeeRates
from revshare.errors import InvalidInput


class TestQuantizeMoney:
    """Test the money rounding utilities."""

    def test_rounds_down_below_half(self):
        assert quantize_money(Decimal("0.004")) == Decimal("0.00")

    def test_rounds_up_at_half(self):
        # 0.005 rounds to 0.01 (ROUND_HALF_UP)
        assert quantize_money(Decimal("0.005")) == Decimal("0.01")

    def test_preserves_exact_cents(self):
        assert quantize_money(Decimal("123.45")) == Decimal("123.45")

    def test_floor_never_rounds_up(self):
        assert floor_money(Decimal("3.339")) == Decimal("3.33")
        assert floor_money(Decimal("0.025")) == Decimal("0.02")


class TestFeeRates:
    """Default fee schedule."""

    def test_default_rates(self):
        rates = FeeRates()
        assert rates.platform_fee_rate == Decimal("0.05")
        assert rates.processing_fee_rate == Decimal("0.029")
        assert rates.tax_rate == Decimal("0.10")

    def test_rate_above_one_rejected(self):
        with pytest.raises(ValueError, match="tax_rate"):
            FeeRates(tax_rate=Decimal("1.5"))

    def test_negative_rate_rejected(self):
        with pytest.raises(ValueError, match="platform_fee_rate"):
            FeeRates(platform_fee_rate=Decimal("-0.01"))


class TestFeeCalculation:
    """Platform 5%, processing 2.9%, tax 10% on gross."""

    @pytest.fixture
    def calculator(self):
        return FeeCalculator()

    def test_fees_on_1000(self, calculator):
        """$1,000 → $50 + $29 + $100"""
        fees = calculator.calculate(Decimal("1000"))
        assert fees.platform_fee == Decimal("50.00")
        assert fees.processing_fee == Decimal("29.00")
        assert fees.tax == Decimal("100.00")
        assert fees.total == Decimal("179.00")

    def test_net_distribution_on_1000(self, calculator):
        """$1,000 - $179 = $821"""
        fees = calculator.calculate(Decimal("1000"))
        assert calculator.net_distribution(Decimal("1000"), fees) == Decimal("821.00")

    def test_fees_round_per_component(self, calculator):
        """$333.33 → $16.67 + $9.67 + $33.33"""
        fees = calculator.calculate(Decimal("333.33"))
        assert fees.platform_fee == Decimal("16.67")
        assert fees.processing_fee == Decimal("9.67")
        assert fees.tax == Decimal("33.33")
        assert calculator.net_distribution(Decimal("333.33"), fees) == Decimal("273.66")

    def test_zero_gross(self, calculator):
        fees = calculator.calculate(Decimal("0"))
        assert fees.total == Decimal("0")
        assert calculator.net_distribution(Decimal("0"), fees) == Decimal("0")

    def test_custom_rates(self):
        calculator = FeeCalculator(FeeRates(platform_fee_rate=Decimal("0.10"), tax_rate=Decimal("0")))
        fees = calculator.calculate(Decimal("200"))
        assert fees.platform_fee == Decimal("20.00")
        assert fees.processing_fee == Decimal("5.80")
        assert fees.tax == Decimal("0")


class TestValidateGross:
    """Gross revenue is untrusted input."""

    def test_accepts_int_float_and_string(self):
        assert validate_gross(1000) == Decimal("1000")
        assert validate_gross(99.5) == Decimal("99.5")
        assert validate_gross("12.34") == Decimal("12.34")

    def test_accepts_zero(self):
        assert validate_gross(0) == Decimal("0")

    @pytest.mark.parametrize("value", [-1, "-0.01", float("nan"), float("inf"), "NaN", "abc", None, True])
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidInput):
            validate_gross(value)

    @pytest.mark.parametrize("value", [1e30, "1e15", "12345678901234567890"])
    def test_rejects_amounts_beyond_decimal_precision(self, value):
        with pytest.raises(InvalidInput, match="too large"):
            validate_gross(value)

    def test_accepts_largest_supported_amount(self):
        """999,999,999,999,999.99 still quantizes to cents."""
        gross = validate_gross("999999999999999.99")
        fees = FeeCalculator().calculate(gross)
        assert fees.platform_fee == Decimal("50000000000000.00")
