"""
Discount Redistributor

Spreads invoice-level manual discounts over the staff members who performed
the services on that invoice, in proportion to their service line value.

Example: discount 100 on an invoice with service lines A=300 and B=700
    A's share = 100 * 300 / 1000 = 30
    B's share = 100 * 700 / 1000 = 70
"""

import logging
from collections import defaultdict
from dataclasses import replace
from decimal import Decimal
from typing import Iterable

from ..models import ZERO, DailySalesFact, Invoice, ItemType

logger = logging.getLogger(__name__)


class DiscountRedistributor:
    """Converts manual invoice discounts into per-staff discount shares."""

    def invoice_shares(self, invoice: Invoice) -> dict[str, Decimal]:
        """
        Share of one invoice's manual discount per staff member.

        Products and fees never absorb manual discount. The distributable
        amount is capped at the invoice's service value, so no share can
        exceed the staff member's own service lines.
        """
        if invoice.manual_discount <= 0:
            return {}

        service_lines = [i for i in invoice.line_items if i.item_type == ItemType.SERVICE]
        total_service_value = sum((i.final_price for i in service_lines), ZERO)

        if total_service_value <= 0:
            logger.debug(
                "Invoice %s: discount %s not attributable, no service value",
                invoice.invoice_id,
                invoice.manual_discount,
            )
            return {}

        staff_service_value: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for item in service_lines:
            # Unassigned service lines absorb their part without attributing it
            if item.staff_id is not None:
                staff_service_value[item.staff_id] += item.final_price

        distributable = min(invoice.manual_discount, total_service_value)
        return {
            staff_id: distributable * value / total_service_value
            for staff_id, value in staff_service_value.items()
        }

    def redistribute(self, invoices: Iterable[Invoice]) -> dict[str, Decimal]:
        """Sum discount shares per staff across the given invoices."""
        shares: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for invoice in invoices:
            for staff_id, share in self.invoice_shares(invoice).items():
                shares[staff_id] += share
        return dict(shares)

    def apply(
        self,
        facts: Iterable[DailySalesFact],
        invoices: Iterable[Invoice]
    ) -> list[DailySalesFact]:
        """
        Return copies of the facts with discount_share filled in from the
        invoices of the same day.

        Facts with no invoice data keep a zero share (net equals gross).
        Raises ValueError for a fact whose share has already been applied.
        """
        invoices_by_day: dict = defaultdict(list)
        for invoice in invoices:
            invoices_by_day[invoice.day].append(invoice)

        shares_by_day = {day: self.redistribute(day_invoices) for day, day_invoices in invoices_by_day.items()}

        result = []
        for fact in facts:
            if fact.discount_share != 0:
                raise ValueError(
                    f"Discount already applied to sales of {fact.staff_id} on {fact.day}"
                )
            share = shares_by_day.get(fact.day, {}).get(fact.staff_id, ZERO)
            if share > fact.service_sale:
                logger.debug(
                    "Capping discount share %s of %s on %s at service sale %s",
                    share,
                    fact.staff_id,
                    fact.day,
                    fact.service_sale,
                )
                share = fact.service_sale
            result.append(replace(fact, discount_share=share) if share else fact)
        return result
