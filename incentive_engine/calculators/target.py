"""
Target Evaluator

Evaluates one rule against one achieved value. Shared by every track.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..models import TargetEvaluation


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half up."""
    return value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


class TargetEvaluator:
    """Pure single-rate / double-rate step function."""

    def evaluate(
        self,
        achieved_value: Decimal,
        target_value: Decimal,
        rate: Decimal,
        double_rate: Decimal,
        base_value: Decimal
    ) -> TargetEvaluation:
        """
        Tiers:
        - achieved < target            -> unmet, no incentive
        - target <= achieved < 2*target -> rate applies to base
        - achieved >= 2*target         -> double rate applies to base

        A non-positive target can never be met.
        """
        if target_value <= 0 or achieved_value < target_value:
            return TargetEvaluation(
                incentive_amount=Decimal('0'),
                target_met=False,
                applied_rate=Decimal('0'),
            )

        applied_rate = double_rate if achieved_value >= target_value * 2 else rate

        return TargetEvaluation(
            incentive_amount=quantize_money(base_value * applied_rate),
            target_met=True,
            applied_rate=applied_rate,
        )
