"""
Sales Fact Builder

The sync step that owns DailySalesFact rows. Aggregates invoice line items
per staff and freezes the daily rule in effect at sync time onto each fact.
"""

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable

from ..models import (
    ZERO,
    DailySalesFact,
    Invoice,
    ItemType,
    RuleType,
    end_of_day,
)
from .rules import RuleResolver

logger = logging.getLogger(__name__)

# Line item type -> fact field
_SALE_FIELDS = {
    ItemType.SERVICE: "service_sale",
    ItemType.PRODUCT: "product_sale",
    ItemType.PACKAGE: "package_sale",
    ItemType.GIFT_CARD: "gift_card_sale",
}


class SalesFactBuilder:
    """Builds daily sales facts from invoices."""

    def __init__(self, resolver: RuleResolver):
        self.resolver = resolver

    def build_for_day(
        self,
        day: date,
        invoices: Iterable[Invoice],
        synced_at: datetime,
        existing: Iterable[DailySalesFact] = ()
    ) -> list[DailySalesFact]:
        """
        Rebuild every staff member's fact for `day`.

        Review counts are carried over from existing facts of the same
        staff/day; staff with an existing fact but no lines today are reset
        to zero sales. Fees and unassigned lines are ignored.
        """
        sales: dict[str, dict[str, Decimal]] = defaultdict(lambda: defaultdict(lambda: ZERO))
        customers: dict[str, set] = defaultdict(set)

        for invoice in invoices:
            if invoice.day != day:
                continue
            for item in invoice.line_items:
                field_name = _SALE_FIELDS.get(item.item_type)
                if field_name is None or item.staff_id is None:
                    continue
                sales[item.staff_id][field_name] += item.final_price
                if invoice.customer_id is not None:
                    customers[item.staff_id].add(invoice.customer_id)

        previous = {f.staff_id: f for f in existing if f.day == day}

        rule = self.resolver.resolve(RuleType.DAILY, synced_at)
        snapshot = rule.snapshot() if rule is not None else None
        if snapshot is None:
            logger.warning("No daily rule active at %s, facts for %s stored without snapshot", synced_at, day)

        facts = []
        for staff_id in sorted(set(sales) | set(previous)):
            fact = DailySalesFact(
                staff_id=staff_id,
                day=day,
                customer_count=len(customers[staff_id]),
                applied_rule=snapshot,
                synced_at=synced_at,
                **sales.get(staff_id, {}),
            )
            if staff_id in previous:
                old = previous[staff_id]
                fact = replace(
                    fact,
                    reviews_with_name=old.reviews_with_name,
                    reviews_with_photo=old.reviews_with_photo,
                )
            facts.append(fact)

        logger.info(
            "Synced %d sales facts for %s (daily rule v%s)",
            len(facts),
            day,
            snapshot.source_version_id if snapshot else "-",
        )
        return facts

    def backfill(
        self,
        start: date,
        end: date,
        invoices: Iterable[Invoice],
        existing: Iterable[DailySalesFact] = ()
    ) -> list[DailySalesFact]:
        """Re-sync a historical range, resolving each day at its own end of day."""
        if end < start:
            raise ValueError(f"Backfill end {end} is before start {start}")

        invoices = list(invoices)
        existing = list(existing)
        facts = []
        day = start
        while day <= end:
            facts.extend(self.build_for_day(day, invoices, end_of_day(day), existing))
            day += timedelta(days=1)
        return facts
