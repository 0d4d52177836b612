"""
REVENUE-SHARE SETTLEMENT ENGINE

Percentage allocation, guarantees, bonuses and fee reporting for multi-party
collaborations, with an idempotent distribution ledger.
"""

from .config import EngineConfig, FeeRates
from .errors import SettlementError
from .models import Collaboration, Distribution, RevenueShareCalculation
from .processor import SettlementProcessor

__all__ = [
    'SettlementProcessor',
    'EngineConfig',
    'FeeRates',
    'SettlementError',
    'Collaboration',
    'Distribution',
    'RevenueShareCalculation',
]
