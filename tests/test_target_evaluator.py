"""Tests for the target evaluator shared by every track."""

from decimal import Decimal

import pytest

from incentive_engine.calculators import TargetEvaluator, quantize_money


class TestTargetEvaluator:

    @pytest.fixture
    def evaluator(self):
        return TargetEvaluator()

    def evaluate(self, evaluator, achieved, target=100, base=None):
        return evaluator.evaluate(
            achieved_value=Decimal(str(achieved)),
            target_value=Decimal(str(target)),
            rate=Decimal("0.05"),
            double_rate=Decimal("0.10"),
            base_value=Decimal(str(base if base is not None else achieved)),
        )

    def test_below_target_pays_nothing(self, evaluator):
        result = self.evaluate(evaluator, 99.99)

        assert result.target_met is False
        assert result.incentive_amount == Decimal("0")
        assert result.applied_rate == Decimal("0")

    def test_exactly_target_applies_rate(self, evaluator):
        result = self.evaluate(evaluator, 100)

        assert result.target_met is True
        assert result.applied_rate == Decimal("0.05")
        assert result.incentive_amount == Decimal("5.00")

    def test_between_target_and_double(self, evaluator):
        result = self.evaluate(evaluator, 150)

        assert result.applied_rate == Decimal("0.05")
        assert result.incentive_amount == Decimal("7.50")

    def test_exactly_double_target_applies_double_rate(self, evaluator):
        result = self.evaluate(evaluator, 200)

        assert result.applied_rate == Decimal("0.10")
        assert result.incentive_amount == Decimal("20.00")

    def test_rate_applies_to_base_not_achieved(self, evaluator):
        result = self.evaluate(evaluator, 150, base=80)

        assert result.incentive_amount == Decimal("4.00")

    @pytest.mark.parametrize("target", [0, -10])
    def test_non_positive_target_never_met(self, evaluator, target):
        result = self.evaluate(evaluator, 500, target=target)

        assert result.target_met is False
        assert result.incentive_amount == Decimal("0")

    def test_amount_rounded_half_up_to_cents(self, evaluator):
        # 10.10 * 0.05 = 0.505
        result = self.evaluate(evaluator, 150, base=Decimal("10.10"))

        assert result.incentive_amount == Decimal("0.51")

    def test_amount_never_decreases_with_achieved(self, evaluator):
        amounts = [self.evaluate(evaluator, achieved).incentive_amount for achieved in range(0, 401, 5)]

        assert amounts == sorted(amounts)

    def test_same_inputs_same_result(self, evaluator):
        assert self.evaluate(evaluator, 173) == self.evaluate(evaluator, 173)


class TestQuantizeMoney:

    def test_rounds_half_up(self):
        assert quantize_money(Decimal("2.345")) == Decimal("2.35")
        assert quantize_money(Decimal("2.344")) == Decimal("2.34")

    def test_keeps_two_places(self):
        assert str(quantize_money(Decimal("7"))) == "7.00"
