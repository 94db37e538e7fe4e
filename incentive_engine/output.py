"""
Output Builder

Turns result dataclasses into JSON-ready API responses.
"""

from decimal import Decimal

from .models import (
    AvailableBalance,
    DayIncentives,
    IncentivePayout,
    MonthSummary,
    RangeResult,
    RuleType,
    TrackResult,
)


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return round(float(value), 2)


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


class OutputBuilder:
    """Builds the output responses."""

    def track(self, result: TrackResult) -> dict:
        if not result.calculable:
            # No figures: "no data" must not read as "target missed"
            return {"calculable": False, "reason": result.reason}
        return {
            "calculable": True,
            "target_value": to_money(result.target_value),
            "achieved_value": to_money(result.achieved_value),
            "incentive_amount": to_money(result.incentive_amount),
            "target_met": result.target_met,
            "applied_rate": float(result.applied_rate),
        }

    def day(self, result: DayIncentives) -> dict:
        return {
            "staff_id": result.staff_id,
            "date": result.day.isoformat(),
            "daily": self.track(result.daily),
            "monthly": self.track(result.monthly),
            "package": self.track(result.package),
            "gift_card": self.track(result.gift_card),
            "total": to_money(result.total),
        }

    def range(self, result: RangeResult) -> dict:
        return {
            "staff_id": result.staff_id,
            "start_date": result.start.isoformat(),
            "end_date": result.end.isoformat(),
            "days": [self.day(d) for d in result.days],
            "totals": {
                "daily": to_money(result.track_total(RuleType.DAILY)),
                "monthly": to_money(result.track_total(RuleType.MONTHLY)),
                "package": to_money(result.track_total(RuleType.PACKAGE)),
                "gift_card": to_money(result.track_total(RuleType.GIFT_CARD)),
                "total": to_money(result.total),
            },
        }

    def month_summary(self, staff_id: str, summaries: dict[str, MonthSummary]) -> dict:
        return {
            "staff_id": staff_id,
            "tracks": {
                track: {
                    "total_achieved": to_money(s.total_achieved),
                    "total_incentive": to_money(s.total_incentive),
                    "days_calculated": s.days_calculated,
                }
                for track, s in summaries.items()
            },
        }

    def balance(self, staff_id: str, balance: AvailableBalance) -> dict:
        return {
            "staff_id": staff_id,
            "earned_to_date": to_money(balance.earned_to_date),
            "committed": to_money(balance.committed),
            "balance": to_money(balance.balance),
        }

    def payout(self, payout: IncentivePayout) -> dict:
        return {
            "id": payout.payout_id,
            "staff_id": payout.staff_id,
            "amount": to_money(payout.amount),
            "reason": payout.reason,
            "status": payout.status,
            "created_at": _iso(payout.created_at),
            "processed_at": _iso(payout.processed_at),
        }
