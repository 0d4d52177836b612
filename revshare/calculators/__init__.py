"""
Calculators Package

Provides all calculation components for settlements and marketplace sales.
"""

from .bonus import PerformanceBonusRule, StaticBonusPolicy, TargetBonusPolicy
from .fees import FeeCalculator
from .revenue import RevenueCalculator
from .template import TemplateRevenueSplitter, split_amount

__all__ = [
    "FeeCalculator",
    "RevenueCalculator",
    "StaticBonusPolicy",
    "TargetBonusPolicy",
    "PerformanceBonusRule",
    "TemplateRevenueSplitter",
    "split_amount",
]
