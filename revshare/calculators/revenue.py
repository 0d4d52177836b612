"""
Revenue Calculator

Turns a collaboration and a gross revenue amount into one split line per
participant plus the fee breakdown. Pure: nothing is persisted here.
"""

from decimal import Decimal

from ..errors import EmptySplitSet
from ..models import Collaboration, RevenueShareCalculation, RevenueShareSplit, SplitLine
from .bonus import StaticBonusPolicy
from .fees import FeeCalculator, percentage_of, quantize_money, validate_gross


class RevenueCalculator:
    """Calculates per-participant revenue shares."""

    def __init__(self, fee_calculator: FeeCalculator | None = None, bonus_policy=None):
        self.fee_calculator = fee_calculator or FeeCalculator()
        self.bonus_policy = bonus_policy or StaticBonusPolicy()

    def calculate(self, collaboration: Collaboration, gross_revenue) -> RevenueShareCalculation:
        """
        Calculate the revenue share for one settlement.

        Per split:
        1. base_amount = gross × percentage / 100
        2. amount = max(base_amount, minimum_guarantee)
        3. bonus from the bonus policy
        4. total = amount + bonus + fixed_amount

        Splits are computed against GROSS revenue. Fees reduce
        net_distribution for reporting only.

        Split percentages are trusted here; the registry validates them on
        every write.
        """
        gross = validate_gross(gross_revenue)

        if not collaboration.revenue_share:
            raise EmptySplitSet(f"Collaboration {collaboration.id} has no revenue-share rules")

        lines = [self._calculate_line(split, collaboration, gross) for split in collaboration.revenue_share]

        fees = self.fee_calculator.calculate(gross)

        return RevenueShareCalculation(
            total_revenue=gross,
            splits=lines,
            fees=fees,
            net_distribution=self.fee_calculator.net_distribution(gross, fees),
        )

    def _calculate_line(self, split: RevenueShareSplit, collaboration: Collaboration, gross: Decimal) -> SplitLine:
        base_amount = quantize_money(percentage_of(gross, split.percentage))

        # Guarantee only touches this participant's line
        amount = base_amount
        if split.minimum_guarantee is not None and amount < split.minimum_guarantee:
            amount = quantize_money(split.minimum_guarantee)

        bonus = quantize_money(self.bonus_policy.bonus_for(split, collaboration))
        fixed_amount = quantize_money(split.fixed_amount) if split.fixed_amount is not None else Decimal("0")

        return SplitLine(
            participant_id=split.participant_id,
            percentage=split.percentage,
            base_amount=base_amount,
            amount=amount,
            bonus=bonus,
            fixed_amount=fixed_amount,
        )
