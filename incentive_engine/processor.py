"""
Incentive Aggregator - Main Orchestrator

Composes the four incentive tracks for a staff member:
1. Load the month's sales facts and invoices
2. Redistribute manual discounts (once per staff/day)
3. Daily track from the frozen rule snapshot
4. Monthly, package and gift card tracks as cumulative deltas
5. Sum calculable tracks, keeping the not-calculable reasons
"""

import logging
from collections import Counter
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict

from .calculators import (
    CumulativeMonthlyEngine,
    DailyIncentiveCalculator,
    DiscountRedistributor,
    FixedTargetTrackEngine,
    InMemoryPayoutStore,
    PayoutLedger,
    RuleResolver,
    RuleVersionLog,
)
from .models import (
    ZERO,
    DailySalesFact,
    DayIncentives,
    IncentiveInput,
    MonthSummary,
    RangeResult,
    RuleType,
    Staff,
    month_end,
    parse_date,
    to_decimal,
)
from .output import OutputBuilder
from .sources import InMemorySalesFactProvider, SalesFactProvider
from .validators import InputValidator

logger = logging.getLogger(__name__)


class IncentiveAggregator:
    """
    Computes per-day incentives across all tracks.

    Stateless between calls: every figure is recomputed from the facts the
    provider returns, so requests for different staff can run in parallel.
    """

    def __init__(self, resolver: RuleResolver, provider: SalesFactProvider):
        self.resolver = resolver
        self.provider = provider
        self.redistributor = DiscountRedistributor()
        self.daily_calculator = DailyIncentiveCalculator()
        self.monthly_engine = CumulativeMonthlyEngine(resolver)
        self.package_engine = FixedTargetTrackEngine(resolver, RuleType.PACKAGE)
        self.gift_card_engine = FixedTargetTrackEngine(resolver, RuleType.GIFT_CARD)

    def compute_total_for_day(self, staff: Staff, day: date) -> DayIncentives:
        result = self._compute_day(staff, day, self._month_facts(staff, day))
        self._log_not_calculable(staff, [result])
        return result

    def compute_range(self, staff: Staff, start: date, end: date) -> RangeResult:
        """Per-day breakdown for an inclusive date range, possibly spanning months."""
        if end < start:
            raise ValueError(f"Range end {end} is before start {start}")

        result = RangeResult(staff_id=staff.staff_id, start=start, end=end)
        month_facts: dict[tuple[int, int], list[DailySalesFact]] = {}

        day = start
        while day <= end:
            key = (day.year, day.month)
            if key not in month_facts:
                month_facts[key] = self._month_facts(staff, day)
            result.days.append(self._compute_day(staff, day, month_facts[key]))
            day += timedelta(days=1)

        self._log_not_calculable(staff, result.days)
        return result

    def month_summary(self, staff: Staff, year: int, month: int) -> dict[str, MonthSummary]:
        """
        Per-track totals for a calendar month.

        Daily achieved values are summed; cumulative tracks report the
        month-end running total, which is their last calculable figure.
        """
        first = date(year, month, 1)
        breakdown = self.compute_range(staff, first, month_end(first))

        summaries = {}
        for track in RuleType.ALL:
            calculable = [d.tracks[track] for d in breakdown.days if d.tracks[track].calculable]
            if track == RuleType.DAILY:
                achieved = sum((t.achieved_value for t in calculable), ZERO)
            else:
                achieved = calculable[-1].achieved_value if calculable else ZERO
            summaries[track] = MonthSummary(
                track=track,
                total_achieved=achieved,
                total_incentive=breakdown.track_total(track),
                days_calculated=len(calculable),
            )
        return summaries

    def earned_to_date(self, staff: Staff, as_of: date) -> Decimal:
        """All incentives earned in every month with sales, up to `as_of`."""
        earned = ZERO
        for year, month in self.provider.sales_months(staff.staff_id):
            first = date(year, month, 1)
            if first > as_of:
                continue
            earned += self.compute_range(staff, first, min(month_end(first), as_of)).total
        return earned

    def _month_facts(self, staff: Staff, day: date) -> list[DailySalesFact]:
        first = day.replace(day=1)
        last = month_end(day)
        facts = self.provider.daily_sales(staff.staff_id, first, last)
        return self.redistributor.apply(facts, self.provider.invoices(first, last))

    def _compute_day(self, staff: Staff, day: date, facts: list[DailySalesFact]) -> DayIncentives:
        fact = next((f for f in facts if f.day == day), None)
        return DayIncentives(
            staff_id=staff.staff_id,
            day=day,
            daily=self.daily_calculator.compute_daily(staff, fact),
            monthly=self.monthly_engine.compute_delta_for_day(staff, day, facts),
            package=self.package_engine.compute_delta_for_day(staff, day, facts),
            gift_card=self.gift_card_engine.compute_delta_for_day(staff, day, facts),
        )

    def _log_not_calculable(self, staff: Staff, days: list[DayIncentives]) -> None:
        reasons = Counter()
        for day in days:
            for track, reason in day.not_calculable_reasons.items():
                reasons[(track, reason)] += 1
        if reasons:
            logger.warning(
                "Not calculable for staff=%s: %s",
                staff.staff_id,
                ", ".join(f"{track}/{reason} x{count}" for (track, reason), count in sorted(reasons.items())),
            )


class IncentiveService:
    """
    Dict-in / dict-out facade for API layers.

    Each call carries the full read-only projection for one staff member
    (staff, rules, daily_sales, invoices, payouts).
    """

    def __init__(self):
        self.validator = InputValidator()
        self.output_builder = OutputBuilder()

    def calculate_day_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        input_data, aggregator = self._prepare(data)
        result = aggregator.compute_total_for_day(input_data.staff, parse_date(data["date"]))
        return self.output_builder.day(result)

    def calculate_range_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        input_data, aggregator = self._prepare(data)
        result = aggregator.compute_range(
            input_data.staff,
            parse_date(data["start_date"]),
            parse_date(data["end_date"]),
        )
        return self.output_builder.range(result)

    def month_summary_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        input_data, aggregator = self._prepare(data)
        summaries = aggregator.month_summary(input_data.staff, int(data["year"]), int(data["month"]))
        return self.output_builder.month_summary(input_data.staff.staff_id, summaries)

    def available_balance_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        input_data, aggregator = self._prepare(data)
        ledger = PayoutLedger(InMemoryPayoutStore(input_data.payouts), aggregator)
        balance = ledger.available_balance(input_data.staff, self._as_of(data))
        return self.output_builder.balance(input_data.staff.staff_id, balance)

    def request_payout_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Raises InsufficientBalanceError when the amount exceeds the balance."""
        input_data, aggregator = self._prepare(data)
        ledger = PayoutLedger(InMemoryPayoutStore(input_data.payouts), aggregator)
        as_of = self._as_of(data)

        payout = ledger.request_payout(
            input_data.staff,
            to_decimal(data.get("amount"), default=None),
            data.get("reason", ""),
            as_of,
        )
        return {
            "payout": self.output_builder.payout(payout),
            "available_balance": self.output_builder.balance(
                input_data.staff.staff_id,
                ledger.available_balance(input_data.staff, as_of),
            ),
        }

    def _prepare(self, data: Dict[str, Any]) -> tuple[IncentiveInput, IncentiveAggregator]:
        input_data = IncentiveInput.from_dict(data)
        self.validator.validate(input_data)

        log = RuleVersionLog.from_versions(input_data.rules)
        resolver = RuleResolver(log, input_data.tenant_id)
        provider = InMemorySalesFactProvider(input_data.daily_sales, input_data.invoices)
        return input_data, IncentiveAggregator(resolver, provider)

    @staticmethod
    def _as_of(data: Dict[str, Any]) -> date:
        return parse_date(data["as_of"]) if data.get("as_of") else date.today()
