"""
Payout Ledger

Tracks earned incentives against payout claims.

Available balance = earned to date - sum(approved + pending payouts)

Requests for one staff member are serialised by the store they are written
to, so the balance check and the write of the new pending payout happen as
one unit.
"""

import logging
import threading
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Protocol

from ..models import (
    ZERO,
    AvailableBalance,
    IncentivePayout,
    PayoutStatus,
    Staff,
)
from ..validators import InputValidator
from .target import quantize_money

logger = logging.getLogger(__name__)


class PayoutStore(Protocol):
    """Where payout records live. Approval and rejection happen elsewhere."""

    def list_for_staff(self, staff_id: str) -> list[IncentivePayout]:
        ...

    def add(self, payout: IncentivePayout) -> None:
        ...

    def lock_for(self, staff_id: str):
        """Context manager held across one staff member's balance check and write."""
        ...


class InMemoryPayoutStore:
    """Payout store backed by a list, used by the API layer and tests."""

    def __init__(self, payouts: Iterable[IncentivePayout] = ()):
        self._payouts = list(payouts)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def list_for_staff(self, staff_id: str) -> list[IncentivePayout]:
        return [p for p in self._payouts if p.staff_id == staff_id]

    def add(self, payout: IncentivePayout) -> None:
        self._payouts.append(payout)

    def lock_for(self, staff_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(staff_id, threading.Lock())


class InsufficientBalanceError(ValueError):
    """A payout request exceeds the available balance."""

    def __init__(self, requested: Decimal, balance: AvailableBalance):
        self.requested = requested
        self.balance = balance
        super().__init__(
            f"Requested payout {requested} exceeds available balance {balance.balance}"
        )


class PayoutLedger:
    """
    Computes claimable balances and records payout requests.

    `earnings` is anything with an `earned_to_date(staff, as_of)` method,
    normally the IncentiveAggregator.
    """

    def __init__(self, store: PayoutStore, earnings):
        self.store = store
        self.earnings = earnings
        self.validator = InputValidator()

    def available_balance(self, staff: Staff, as_of: date) -> AvailableBalance:
        earned = self.earnings.earned_to_date(staff, as_of)
        committed = sum(
            (
                p.amount
                for p in self.store.list_for_staff(staff.staff_id)
                if p.status in PayoutStatus.COMMITTED
            ),
            ZERO,
        )
        return AvailableBalance(earned_to_date=earned, committed=committed)

    def request_payout(
        self,
        staff: Staff,
        amount: Decimal,
        reason: str,
        as_of: date,
    ) -> IncentivePayout:
        """
        Create a pending payout.

        Raises:
            ValueError: amount is not positive or reason is empty
            InsufficientBalanceError: amount exceeds the available balance
        """
        self.validator.validate_payout_request(amount, reason)
        amount = quantize_money(amount)

        with self.store.lock_for(staff.staff_id):
            balance = self.available_balance(staff, as_of)
            if amount > balance.balance:
                logger.warning(
                    "Payout of %s rejected for staff=%s, available balance %s",
                    amount,
                    staff.staff_id,
                    balance.balance,
                )
                raise InsufficientBalanceError(amount, balance)

            payout = IncentivePayout(
                payout_id=str(uuid.uuid4()),
                staff_id=staff.staff_id,
                amount=amount,
                reason=reason.strip(),
                status=PayoutStatus.PENDING,
                created_at=datetime.now(timezone.utc).replace(tzinfo=None),
            )
            self.store.add(payout)

        logger.info(
            "Created pending payout %s of %s for staff=%s",
            payout.payout_id,
            amount,
            staff.staff_id,
        )
        return payout

