"""
Sales Fact Sources

The engine never fetches data from a store itself. It reads sales facts and
invoices through a SalesFactProvider; the API layer passes an in-memory one
built from the request payload.
"""

from datetime import date
from typing import Iterable, Protocol

from .models import DailySalesFact, Invoice


class SalesFactProvider(Protocol):
    def daily_sales(self, staff_id: str, start: date, end: date) -> list[DailySalesFact]:
        ...

    def invoices(self, start: date, end: date) -> list[Invoice]:
        ...

    def sales_months(self, staff_id: str) -> list[tuple[int, int]]:
        """(year, month) pairs in which the staff member has any sales fact."""
        ...


class InMemorySalesFactProvider:
    """SalesFactProvider over lists already loaded in memory."""

    def __init__(self, daily_sales: Iterable[DailySalesFact] = (), invoices: Iterable[Invoice] = ()):
        self._daily_sales = list(daily_sales)
        self._invoices = list(invoices)

    def daily_sales(self, staff_id: str, start: date, end: date) -> list[DailySalesFact]:
        return sorted(
            (f for f in self._daily_sales if f.staff_id == staff_id and start <= f.day <= end),
            key=lambda f: f.day,
        )

    def invoices(self, start: date, end: date) -> list[Invoice]:
        return [i for i in self._invoices if start <= i.day <= end]

    def sales_months(self, staff_id: str) -> list[tuple[int, int]]:
        return sorted({(f.day.year, f.day.month) for f in self._daily_sales if f.staff_id == staff_id})
