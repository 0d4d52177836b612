"""
Performance Bonus Policies

The calculator asks a bonus policy for each split's bonus. The default policy
pays the static `performance_bonus` fixed on the split when the collaboration
was created. TargetBonusPolicy is the opt-in alternative that derives bonuses
from the collaboration's recorded performance.
"""

from dataclasses import dataclass
from decimal import Decimal

from ..errors import InvalidInput
from ..models import ZERO, Collaboration, RevenueShareSplit

BONUS_METRICS = ("total_views", "total_engagement", "revenue_generated")


class StaticBonusPolicy:
    """Pays the split's pre-agreed performance_bonus, or nothing."""

    def bonus_for(self, split: RevenueShareSplit, collaboration: Collaboration) -> Decimal:
        return split.performance_bonus or ZERO


@dataclass(frozen=True)
class PerformanceBonusRule:
    """Pay `bonus` to a participant once `metric` reaches `target`."""

    participant_id: str
    metric: str
    target: Decimal
    bonus: Decimal
    description: str = ""

    def __post_init__(self):
        if self.metric not in BONUS_METRICS:
            raise InvalidInput(f"Unknown bonus metric: {self.metric}. Must be one of {BONUS_METRICS}")
        if self.target < 0 or self.bonus < 0:
            raise InvalidInput(f"Bonus target and amount cannot be negative: {self}")

    def is_met(self, collaboration: Collaboration) -> bool:
        return Decimal(getattr(collaboration.performance, self.metric)) >= self.target


class TargetBonusPolicy:
    """
    Derives bonuses from CollaborationPerformance against declared targets.

    Every met rule for a participant is paid; the split's static
    performance_bonus is ignored under this policy.
    """

    def __init__(self, rules: list[PerformanceBonusRule]):
        self.rules = list(rules)

    def bonus_for(self, split: RevenueShareSplit, collaboration: Collaboration) -> Decimal:
        total = ZERO
        for rule in self.rules:
            if rule.participant_id == split.participant_id and rule.is_met(collaboration):
                total += rule.bonus
        return total
