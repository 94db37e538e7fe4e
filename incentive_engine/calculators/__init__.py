"""
Calculators Package

Provides all calculation components for incentive processing.
"""

from .cumulative import CumulativeMonthlyEngine, CumulativeTrackEngine, FixedTargetTrackEngine
from .daily import DailyIncentiveCalculator
from .discounts import DiscountRedistributor
from .payout import InMemoryPayoutStore, InsufficientBalanceError, PayoutLedger, PayoutStore
from .rules import RuleResolver, RuleVersionLog
from .sync import SalesFactBuilder
from .target import TargetEvaluator, quantize_money

__all__ = [
    "RuleVersionLog",
    "RuleResolver",
    "DiscountRedistributor",
    "TargetEvaluator",
    "quantize_money",
    "DailyIncentiveCalculator",
    "CumulativeTrackEngine",
    "CumulativeMonthlyEngine",
    "FixedTargetTrackEngine",
    "PayoutStore",
    "InMemoryPayoutStore",
    "InsufficientBalanceError",
    "PayoutLedger",
    "SalesFactBuilder",
]
