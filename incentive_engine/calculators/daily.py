"""
Daily Incentive Calculator

Evaluates one staff member's single day against the daily rule that was
frozen onto the sales fact at sync time.

Target   = salary * multiplier / days in the calendar month
Achieved = included categories (net service) + review bonuses
Base     = net service sale (service_only) or achieved (total)
"""

import logging
from decimal import Decimal

from ..models import (
    ZERO,
    DailySalesFact,
    NotCalculableReason,
    RuleBase,
    RuleType,
    SalesInclusion,
    Staff,
    TrackResult,
    days_in_month,
)
from .target import TargetEvaluator

logger = logging.getLogger(__name__)


def included_sales(fact: DailySalesFact, inclusion: SalesInclusion) -> Decimal:
    """Sum of the sale categories a rule counts, using the net service sale."""
    total = ZERO
    if inclusion.include_service:
        total += fact.net_service_sale
    if inclusion.include_product:
        total += fact.product_sale
    if inclusion.include_package:
        total += fact.package_sale
    if inclusion.include_gift_card:
        total += fact.gift_card_sale
    return total


class DailyIncentiveCalculator:
    """Produces the daily-track result for one staff/day."""

    def __init__(self):
        self.evaluator = TargetEvaluator()

    def compute_daily(self, staff: Staff, fact: DailySalesFact | None) -> TrackResult:
        """
        Never falls back to a live rule lookup: a fact without a usable snapshot
        is reported as not calculable.
        """
        if not staff.has_salary:
            return TrackResult.not_calculable(RuleType.DAILY, NotCalculableReason.MISSING_SALARY)
        if fact is None:
            return TrackResult.not_calculable(RuleType.DAILY, NotCalculableReason.NO_SALES_DATA)

        rule = fact.applied_rule
        if rule is None or rule.salary_multiplier <= 0:
            return TrackResult.not_calculable(RuleType.DAILY, NotCalculableReason.MISSING_RULE_SNAPSHOT)

        target = staff.salary * rule.salary_multiplier / days_in_month(fact.day)

        inclusion = rule.sales_inclusion
        achieved = (
            included_sales(fact, inclusion)
            + fact.reviews_with_name * inclusion.review_name_bonus
            + fact.reviews_with_photo * inclusion.review_photo_bonus
        )
        base = fact.net_service_sale if rule.base == RuleBase.SERVICE_ONLY else achieved

        evaluation = self.evaluator.evaluate(
            achieved_value=achieved,
            target_value=target,
            rate=rule.incentive_rate,
            double_rate=rule.double_incentive_rate,
            base_value=base,
        )

        logger.debug(
            "Daily %s %s: target=%s achieved=%s incentive=%s",
            staff.staff_id,
            fact.day,
            target,
            achieved,
            evaluation.incentive_amount,
        )

        return TrackResult(
            track=RuleType.DAILY,
            target_value=target,
            achieved_value=achieved,
            incentive_amount=evaluation.incentive_amount,
            target_met=evaluation.target_met,
            applied_rate=evaluation.applied_rate,
        )
