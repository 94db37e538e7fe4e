"""
Cumulative Track Engines

The monthly, package and gift card tracks are step functions over the
month-to-date running total. A day's incentive is the difference between
the cumulative incentive up to that day and up to the day before:

    delta(d) = cumulative(d) - cumulative(d - 1)

Each endpoint resolves its own rule version, so a mid-month rule change
never alters days that were already settled. The deltas of a month always
add up to cumulative(month end) exactly.
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable

from ..models import (
    ZERO,
    DailySalesFact,
    IncentiveRuleVersion,
    NotCalculableReason,
    RuleBase,
    RuleType,
    Staff,
    TrackResult,
    end_of_day,
)
from .daily import included_sales
from .rules import RuleResolver
from .target import TargetEvaluator

logger = logging.getLogger(__name__)


class CumulativeTrackEngine:
    """
    Shared delta-over-cumulative logic. Subclasses define the target and
    what counts as achieved/base for their track.
    """

    track: str = ""
    requires_salary: bool = False

    def __init__(self, resolver: RuleResolver):
        self.resolver = resolver
        self.evaluator = TargetEvaluator()

    def target_for(self, staff: Staff, rule: IncentiveRuleVersion) -> Decimal:
        raise NotImplementedError

    def sales_for(self, fact: DailySalesFact, rule: IncentiveRuleVersion) -> tuple[Decimal, Decimal]:
        """Return (achieved, base) contributed by one day's fact."""
        raise NotImplementedError

    def compute_delta_for_day(
        self,
        staff: Staff,
        day: date,
        facts: Iterable[DailySalesFact]
    ) -> TrackResult:
        """
        Incentive attributed to `day`. Facts may cover the whole month;
        only those of this staff member up to `day` are used.
        """
        if self.requires_salary and not staff.has_salary:
            return TrackResult.not_calculable(self.track, NotCalculableReason.MISSING_SALARY)

        facts = list(facts)
        today = self._evaluate_cumulative(staff, day, facts)
        if today is None:
            return TrackResult.not_calculable(self.track, NotCalculableReason.NO_ACTIVE_RULE)

        previous_amount = ZERO
        if day.day > 1:
            previous = self._evaluate_cumulative(staff, day - timedelta(days=1), facts)
            if previous is not None:
                previous_amount = previous.incentive_amount

        delta = today.incentive_amount - previous_amount
        logger.debug(
            "%s %s %s: cumulative=%s previous=%s delta=%s",
            self.track,
            staff.staff_id,
            day,
            today.incentive_amount,
            previous_amount,
            delta,
        )

        return TrackResult(
            track=self.track,
            target_value=today.target_value,
            achieved_value=today.achieved_value,
            incentive_amount=delta,
            target_met=today.target_met,
            applied_rate=today.applied_rate,
        )

    def cumulative_incentive(
        self,
        staff: Staff,
        upto: date,
        facts: Iterable[DailySalesFact]
    ) -> Decimal:
        """Month-to-date incentive up to and including `upto`; zero without a rule."""
        if self.requires_salary and not staff.has_salary:
            return ZERO
        result = self._evaluate_cumulative(staff, upto, list(facts))
        return result.incentive_amount if result is not None else ZERO

    def resolution_timestamp(self, upto: date, month_facts: list[DailySalesFact]) -> datetime:
        """
        Sync time of the latest fact on or before `upto`, or the end of
        `upto` when the month has no fact yet.
        """
        if not month_facts:
            return end_of_day(upto)
        latest = max(month_facts, key=lambda f: f.day)
        return latest.resolution_timestamp

    def _evaluate_cumulative(
        self,
        staff: Staff,
        upto: date,
        facts: list[DailySalesFact]
    ) -> TrackResult | None:
        month_start = upto.replace(day=1)
        month_facts = [
            f for f in facts
            if f.staff_id == staff.staff_id and month_start <= f.day <= upto
        ]

        rule = self.resolver.resolve(self.track, self.resolution_timestamp(upto, month_facts))
        if rule is None:
            return None

        achieved = ZERO
        base = ZERO
        for fact in month_facts:
            fact_achieved, fact_base = self.sales_for(fact, rule)
            achieved += fact_achieved
            base += fact_base

        target = self.target_for(staff, rule)
        evaluation = self.evaluator.evaluate(
            achieved_value=achieved,
            target_value=target,
            rate=rule.incentive_rate,
            double_rate=rule.double_incentive_rate,
            base_value=base,
        )
        return TrackResult(
            track=self.track,
            target_value=target,
            achieved_value=achieved,
            incentive_amount=evaluation.incentive_amount,
            target_met=evaluation.target_met,
            applied_rate=evaluation.applied_rate,
        )


class CumulativeMonthlyEngine(CumulativeTrackEngine):
    """Monthly track: target = salary * multiplier over the month-to-date sales."""

    track = RuleType.MONTHLY
    requires_salary = True

    def target_for(self, staff: Staff, rule: IncentiveRuleVersion) -> Decimal:
        return staff.salary * rule.target.salary_multiplier

    def sales_for(self, fact: DailySalesFact, rule: IncentiveRuleVersion) -> tuple[Decimal, Decimal]:
        # No review bonus on the monthly track
        achieved = included_sales(fact, rule.sales_inclusion)
        base = fact.net_service_sale if rule.base == RuleBase.SERVICE_ONLY else achieved
        return achieved, base


class FixedTargetTrackEngine(CumulativeTrackEngine):
    """Package and gift card tracks: absolute monthly target on one category."""

    _CATEGORY = {
        RuleType.PACKAGE: "package_sale",
        RuleType.GIFT_CARD: "gift_card_sale",
    }

    def __init__(self, resolver: RuleResolver, track: str):
        if track not in self._CATEGORY:
            raise ValueError(f"Fixed target track must be package or giftCard, got: {track}")
        super().__init__(resolver)
        self.track = track

    def target_for(self, staff: Staff, rule: IncentiveRuleVersion) -> Decimal:
        return rule.target.absolute_value or ZERO

    def sales_for(self, fact: DailySalesFact, rule: IncentiveRuleVersion) -> tuple[Decimal, Decimal]:
        value = getattr(fact, self._CATEGORY[self.track])
        return value, value
