"""
Input Validation for the Staff Incentive Engine

Validates all input data before processing begins.
Raises ValueError with clear messages for any constraint violations.

Missing configuration (no salary, no rule, no snapshot) is NOT a validation
error: those days are reported as not calculable by the calculators.
"""

from decimal import Decimal

from .models import (
    DailySalesFact,
    IncentiveInput,
    IncentiveRuleVersion,
    Invoice,
    PayoutStatus,
    RuleBase,
    RuleSnapshot,
    RuleType,
    SalesInclusion,
    Staff,
)


class InputValidator:
    """Validates incentive input according to business rules."""

    def validate(self, input_data: IncentiveInput) -> None:
        """
        Run all validations. Raises ValueError if any check fails.
        """
        self.validate_staff(input_data.staff)
        for rule in input_data.rules:
            self.validate_rule(rule)
        for fact in input_data.daily_sales:
            self.validate_fact(fact)
        for invoice in input_data.invoices:
            self.validate_invoice(invoice)
        for payout in input_data.payouts:
            if payout.status not in PayoutStatus.ALL:
                raise ValueError(f"Invalid payout status: {payout.status}")
            if payout.amount < 0:
                raise ValueError(f"payout amount cannot be negative: {payout}")

    def validate_staff(self, staff: Staff) -> None:
        if not staff.staff_id:
            raise ValueError("staff id is required")
        if staff.salary is not None and staff.salary < 0:
            raise ValueError(f"salary cannot be negative, got: {staff.salary}")

    def validate_rule(self, rule: IncentiveRuleVersion) -> None:
        """Validate a single rule version."""
        if rule.rule_type not in RuleType.ALL:
            raise ValueError(
                f"Invalid rule type: {rule.rule_type}. Must be one of {', '.join(RuleType.ALL)}"
            )

        self._validate_terms(
            rule.rule_type,
            rule.base,
            rule.incentive_rate,
            rule.double_incentive_rate,
            rule.sales_inclusion,
        )

        if rule.rule_type in RuleType.SALARY_BASED:
            multiplier = rule.target.salary_multiplier
            if multiplier is None or multiplier <= 0:
                raise ValueError(f"{rule.rule_type} rule requires a positive salary_multiplier")
        else:
            absolute = rule.target.absolute_value
            if absolute is None or absolute <= 0:
                raise ValueError(f"{rule.rule_type} rule requires a positive absolute_value")

    def validate_snapshot(self, snapshot: RuleSnapshot) -> None:
        """A frozen daily rule must satisfy the same terms as a daily rule."""
        self._validate_terms(
            "applied_rule",
            snapshot.base,
            snapshot.incentive_rate,
            snapshot.double_incentive_rate,
            snapshot.sales_inclusion,
        )
        if snapshot.salary_multiplier <= 0:
            raise ValueError("applied_rule requires a positive salary_multiplier")

    def _validate_terms(
        self,
        label: str,
        base: str,
        rate: Decimal,
        double_rate: Decimal,
        inclusion: SalesInclusion
    ) -> None:
        if base not in RuleBase.ALL:
            raise ValueError(f"Invalid base: {base}. Must be 'total' or 'service_only'")

        if not (0 <= rate <= 1):
            raise ValueError(f"{label} incentive_rate must be between 0 and 1, got: {rate}")
        if not (0 <= double_rate <= 1):
            raise ValueError(
                f"{label} double_incentive_rate must be between 0 and 1, got: {double_rate}"
            )
        # A lower double rate would make crossing 2x target reduce the payout
        if double_rate < rate:
            raise ValueError(
                f"{label} double_incentive_rate ({double_rate}) cannot be lower "
                f"than incentive_rate ({rate})"
            )

        if inclusion.review_name_bonus < 0 or inclusion.review_photo_bonus < 0:
            raise ValueError("review bonus amounts cannot be negative")

    def validate_fact(self, fact: DailySalesFact) -> None:
        for name in ("service_sale", "product_sale", "package_sale", "gift_card_sale"):
            if getattr(fact, name) < 0:
                raise ValueError(f"{name} cannot be negative: {fact.staff_id} on {fact.day}")
        if fact.reviews_with_name < 0 or fact.reviews_with_photo < 0:
            raise ValueError(f"review counts cannot be negative: {fact.staff_id} on {fact.day}")
        if fact.applied_rule is not None:
            try:
                self.validate_snapshot(fact.applied_rule)
            except ValueError as exc:
                raise ValueError(f"{exc}: {fact.staff_id} on {fact.day}") from None

    def validate_invoice(self, invoice: Invoice) -> None:
        if invoice.manual_discount < 0:
            raise ValueError(
                f"manual_discount cannot be negative on invoice {invoice.invoice_id}"
            )
        for item in invoice.line_items:
            if item.final_price < 0:
                raise ValueError(
                    f"final_price cannot be negative on invoice {invoice.invoice_id}"
                )

    def validate_payout_request(self, amount: Decimal, reason: str) -> None:
        if amount is None or amount <= 0:
            raise ValueError(f"payout amount must be positive, got: {amount}")
        if not reason or not reason.strip():
            raise ValueError("a reason is required for a payout request")
