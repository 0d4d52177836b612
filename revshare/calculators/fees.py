"""
Fee Calculator for the Settlement Engine

Computes platform, processing and tax fees on a gross revenue amount.
All use Decimal for precision with ROUND_HALF_UP rounding.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

from ..config import FeeRates
from ..errors import InvalidInput
from ..models import HUNDRED, ZERO, FeeBreakdown, to_decimal

CENT = Decimal('0.01')


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def floor_money(value: Decimal) -> Decimal:
    """Truncate to whole cents. Never rounds a payout up."""
    return value.quantize(CENT, rounding=ROUND_DOWN)


def percentage_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """Unrounded share of amount for a 0-100 percentage."""
    return amount * percentage / HUNDRED


def validate_gross(value, name: str = "gross_revenue") -> Decimal:
    """
    Validate a gross amount coming from a caller.

    Rejects missing, non-numeric, NaN, infinite, oversized and negative values.
    """
    gross = to_decimal(value, name)
    if gross < 0:
        raise InvalidInput(f"{name} cannot be negative, got: {gross}")
    return gross


class FeeCalculator:
    """Calculates the fee breakdown for one settlement."""

    def __init__(self, rates: FeeRates | None = None):
        self.rates = rates or FeeRates()

    def calculate(self, gross: Decimal) -> FeeBreakdown:
        """Calculate all fees and return a FeeBreakdown."""
        return FeeBreakdown(
            platform_fee=self._calculate_platform(gross),
            processing_fee=self._calculate_processing(gross),
            tax=self._calculate_tax(gross),
        )

    def net_distribution(self, gross: Decimal, fees: FeeBreakdown) -> Decimal:
        """
        Gross minus all fees.

        Reporting figure only: participant splits are computed against gross.
        """
        return quantize_money(gross - fees.total)

    def _calculate_platform(self, gross: Decimal) -> Decimal:
        """Platform fee (5% by default)."""
        return self._apply(gross, self.rates.platform_fee_rate)

    def _calculate_processing(self, gross: Decimal) -> Decimal:
        """Payment processing fee (2.9% by default)."""
        return self._apply(gross, self.rates.processing_fee_rate)

    def _calculate_tax(self, gross: Decimal) -> Decimal:
        """Flat tax (10% by default)."""
        return self._apply(gross, self.rates.tax_rate)

    @staticmethod
    def _apply(gross: Decimal, rate: Decimal) -> Decimal:
        if rate == 0:
            return ZERO
        return quantize_money(gross * rate)
