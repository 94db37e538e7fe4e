"""Tests for manual discount redistribution across staff."""

from datetime import date
from decimal import Decimal

import pytest

from incentive_engine.calculators import DiscountRedistributor
from incentive_engine.models import DailySalesFact, Invoice, InvoiceLineItem

DAY = date(2025, 6, 10)


def line(item_type, price, staff_id=None):
    return InvoiceLineItem(item_type=item_type, final_price=Decimal(str(price)), staff_id=staff_id)


def invoice(lines, discount, day=DAY, invoice_id="inv-1"):
    return Invoice(invoice_id=invoice_id, day=day, line_items=tuple(lines), manual_discount=Decimal(str(discount)))


class TestInvoiceShares:

    @pytest.fixture
    def redistributor(self):
        return DiscountRedistributor()

    def test_proportional_to_service_value(self, redistributor):
        shares = redistributor.invoice_shares(
            invoice([line("service", 300, "A"), line("service", 700, "B")], 100)
        )

        assert shares == {"A": Decimal("30"), "B": Decimal("70")}

    def test_shares_add_up_to_discount(self, redistributor):
        shares = redistributor.invoice_shares(
            invoice([line("service", 100, "A"), line("service", 100, "B"), line("service", 100, "C")], 100)
        )

        assert abs(sum(shares.values()) - Decimal("100")) < Decimal("0.01")

    def test_multiple_lines_for_same_staff(self, redistributor):
        shares = redistributor.invoice_shares(
            invoice([line("service", 200, "A"), line("service", 100, "A"), line("service", 700, "B")], 100)
        )

        assert shares["A"] == Decimal("30")

    def test_products_and_fees_absorb_nothing(self, redistributor):
        shares = redistributor.invoice_shares(
            invoice([line("service", 500, "A"), line("product", 500, "B"), line("fee", 50, "B")], 100)
        )

        assert shares == {"A": Decimal("100")}

    def test_no_service_value_is_skipped(self, redistributor):
        shares = redistributor.invoice_shares(invoice([line("product", 500, "A")], 100))

        assert shares == {}

    def test_no_discount_no_shares(self, redistributor):
        assert redistributor.invoice_shares(invoice([line("service", 500, "A")], 0)) == {}

    def test_share_never_exceeds_service_value(self, redistributor):
        shares = redistributor.invoice_shares(
            invoice([line("service", 200, "A"), line("product", 1000, "B")], 500)
        )

        assert shares == {"A": Decimal("200")}

    def test_unassigned_service_line_keeps_its_part(self, redistributor):
        shares = redistributor.invoice_shares(
            invoice([line("service", 300, "A"), line("service", 700)], 100)
        )

        assert shares == {"A": Decimal("30")}


class TestRedistribute:

    @pytest.fixture
    def redistributor(self):
        return DiscountRedistributor()

    def test_sums_across_invoices(self, redistributor):
        shares = redistributor.redistribute([
            invoice([line("service", 300, "A"), line("service", 700, "B")], 100, invoice_id="inv-1"),
            invoice([line("service", 500, "A")], 20, invoice_id="inv-2"),
        ])

        assert shares == {"A": Decimal("50"), "B": Decimal("70")}

    def test_apply_sets_net_service_sale(self, redistributor):
        facts = [
            DailySalesFact(staff_id="A", day=DAY, service_sale=Decimal("300")),
            DailySalesFact(staff_id="B", day=DAY, service_sale=Decimal("700")),
        ]
        invoices = [invoice([line("service", 300, "A"), line("service", 700, "B")], 100)]

        result = redistributor.apply(facts, invoices)

        assert [f.net_service_sale for f in result] == [Decimal("270"), Decimal("630")]
        assert [f.service_sale for f in result] == [Decimal("300"), Decimal("700")]

    def test_apply_only_uses_same_day_invoices(self, redistributor):
        facts = [DailySalesFact(staff_id="A", day=DAY, service_sale=Decimal("300"))]
        invoices = [invoice([line("service", 300, "A")], 100, day=date(2025, 6, 11))]

        result = redistributor.apply(facts, invoices)

        assert result[0].net_service_sale == Decimal("300")

    def test_net_equals_gross_without_invoice_data(self, redistributor):
        fact = DailySalesFact(staff_id="A", day=DAY, service_sale=Decimal("300"))

        assert redistributor.apply([fact], []) == [fact]

    def test_discount_applied_only_once(self, redistributor):
        facts = [DailySalesFact(staff_id="A", day=DAY, service_sale=Decimal("300"))]
        invoices = [invoice([line("service", 300, "A")], 100)]
        once = redistributor.apply(facts, invoices)

        with pytest.raises(ValueError, match="already applied"):
            redistributor.apply(once, invoices)
