"""
Domain Models for the Staff Incentive Engine

These dataclasses provide type-safe representations of all business entities.
All monetary values use Decimal for precision.
"""

from calendar import monthrange
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation

ZERO = Decimal("0")


# =============================================================================
# CONSTANTS
# =============================================================================


class RuleType:
    """The four independent incentive tracks."""

    DAILY = "daily"
    MONTHLY = "monthly"
    PACKAGE = "package"
    GIFT_CARD = "giftCard"

    ALL = (DAILY, MONTHLY, PACKAGE, GIFT_CARD)
    SALARY_BASED = (DAILY, MONTHLY)
    FIXED_TARGET = (PACKAGE, GIFT_CARD)


class RuleBase:
    """What the incentive rate is multiplied against."""

    TOTAL = "total"
    SERVICE_ONLY = "service_only"

    ALL = (TOTAL, SERVICE_ONLY)


# Older rule payloads used camelCase names for the base
_LEGACY_BASES = {
    "totalSaleValue": RuleBase.TOTAL,
    "serviceSaleOnly": RuleBase.SERVICE_ONLY,
}


class ItemType:
    SERVICE = "service"
    PRODUCT = "product"
    PACKAGE = "package"
    GIFT_CARD = "giftCard"
    FEE = "fee"


class NotCalculableReason:
    """Why a track produced no figure for a staff/day."""

    MISSING_SALARY = "missing_salary"
    MISSING_RULE_SNAPSHOT = "missing_rule_snapshot"
    NO_ACTIVE_RULE = "no_active_rule"
    NO_SALES_DATA = "no_sales_data"


class PayoutStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL = (PENDING, APPROVED, REJECTED)
    # Statuses that reduce the claimable balance
    COMMITTED = (APPROVED, PENDING)


# =============================================================================
# PARSING HELPERS
# =============================================================================


def to_decimal(value, default: Decimal = ZERO) -> Decimal:
    """Raises ValueError for anything that is not a finite number."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"Invalid number: {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid number: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"Invalid number: {value!r}")
    return result


def parse_date(value) -> date:
    """Accept a date, a datetime or a YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()


def parse_timestamp(value) -> datetime:
    """
    Accept a datetime or an ISO-8601 string.

    Aware timestamps are converted to naive UTC so that every timestamp in the
    engine compares against every other one.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def days_in_month(day: date) -> int:
    return monthrange(day.year, day.month)[1]


def month_end(day: date) -> date:
    return day.replace(day=days_in_month(day))


# =============================================================================
# RULE MODELS
# =============================================================================


@dataclass(frozen=True)
class RuleTarget:
    """
    Either a salary multiplier (daily/monthly) or an absolute monthly
    value (package/gift card).
    """

    salary_multiplier: Decimal | None = None
    absolute_value: Decimal | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "RuleTarget":
        multiplier = data.get("salary_multiplier", data.get("multiplier"))
        absolute = data.get("absolute_value", data.get("targetValue"))
        return cls(
            salary_multiplier=to_decimal(multiplier, default=None),
            absolute_value=to_decimal(absolute, default=None),
        )


@dataclass(frozen=True)
class SalesInclusion:
    """Which sale categories count toward the achieved value."""

    include_service: bool = True
    include_product: bool = False
    include_package: bool = False
    include_gift_card: bool = False
    review_name_bonus: Decimal = ZERO  # daily only
    review_photo_bonus: Decimal = ZERO  # daily only

    @classmethod
    def from_dict(cls, data: dict) -> "SalesInclusion":
        return cls(
            include_service=data.get("service", True),
            include_product=data.get("product", False),
            include_package=data.get("package", False),
            include_gift_card=data.get("gift_card", False),
            review_name_bonus=to_decimal(data.get("review_name_bonus")),
            review_photo_bonus=to_decimal(data.get("review_photo_bonus")),
        )


@dataclass(frozen=True)
class RuleSnapshot:
    """
    Frozen copy of a daily rule's fields, stored on a sales fact when it is
    synchronised. Later rule edits never reach it.
    """

    salary_multiplier: Decimal
    incentive_rate: Decimal
    double_incentive_rate: Decimal
    sales_inclusion: SalesInclusion = field(default_factory=SalesInclusion)
    base: str = RuleBase.TOTAL
    source_version_id: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "RuleSnapshot":
        target = RuleTarget.from_dict(data.get("target", {}))
        return cls(
            salary_multiplier=target.salary_multiplier or ZERO,
            incentive_rate=to_decimal(data["incentive_rate"]),
            double_incentive_rate=to_decimal(data.get("double_incentive_rate")),
            sales_inclusion=SalesInclusion.from_dict(data.get("sales_inclusion", {})),
            base=_LEGACY_BASES.get(data.get("base"), data.get("base", RuleBase.TOTAL)),
            source_version_id=data.get("source_version_id"),
        )


@dataclass(frozen=True)
class IncentiveRuleVersion:
    """One immutable version of a rule; edits create a new version."""

    tenant_id: str
    rule_type: str
    effective_from: datetime
    target: RuleTarget
    incentive_rate: Decimal
    double_incentive_rate: Decimal
    sales_inclusion: SalesInclusion = field(default_factory=SalesInclusion)
    base: str = RuleBase.TOTAL
    version_id: int = 0  # 0 = not yet assigned by the version log

    def snapshot(self) -> RuleSnapshot:
        return RuleSnapshot(
            salary_multiplier=self.target.salary_multiplier or ZERO,
            incentive_rate=self.incentive_rate,
            double_incentive_rate=self.double_incentive_rate,
            sales_inclusion=self.sales_inclusion,
            base=self.base,
            source_version_id=self.version_id,
        )

    @classmethod
    def from_dict(cls, data: dict, tenant_id: str = "") -> "IncentiveRuleVersion":
        return cls(
            tenant_id=str(data.get("tenant_id", tenant_id)),
            rule_type=data["type"],
            effective_from=parse_timestamp(data["effective_from"]),
            target=RuleTarget.from_dict(data.get("target", {})),
            incentive_rate=to_decimal(data["incentive_rate"]),
            double_incentive_rate=to_decimal(data.get("double_incentive_rate")),
            sales_inclusion=SalesInclusion.from_dict(data.get("sales_inclusion", {})),
            base=_LEGACY_BASES.get(data.get("base"), data.get("base", RuleBase.TOTAL)),
            version_id=int(data.get("version_id", 0)),
        )


# =============================================================================
# SALES FACT MODELS
# =============================================================================


@dataclass(frozen=True)
class Staff:
    staff_id: str
    salary: Decimal | None = None
    name: str = ""

    @property
    def has_salary(self) -> bool:
        return self.salary is not None and self.salary > 0

    @classmethod
    def from_dict(cls, data: dict) -> "Staff":
        salary = data.get("salary")
        return cls(
            staff_id=str(data["id"]),
            salary=to_decimal(salary, default=None),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class DailySalesFact:
    """
    Gross sales of one staff member on one day, plus the daily rule snapshot
    frozen at sync time.

    discount_share is the staff member's part of the day's manual invoice
    discounts. It is zero on facts as they come from the sync process and is
    filled in exactly once by the DiscountRedistributor.
    """

    staff_id: str
    day: date
    service_sale: Decimal = ZERO
    product_sale: Decimal = ZERO
    package_sale: Decimal = ZERO
    gift_card_sale: Decimal = ZERO
    reviews_with_name: int = 0
    reviews_with_photo: int = 0
    customer_count: int = 0
    applied_rule: RuleSnapshot | None = None
    synced_at: datetime | None = None
    discount_share: Decimal = ZERO

    @property
    def net_service_sale(self) -> Decimal:
        return self.service_sale - self.discount_share

    @property
    def resolution_timestamp(self) -> datetime:
        """Instant at which rules are resolved for this fact."""
        return self.synced_at or end_of_day(self.day)

    def with_reviews(self, reviews_with_name: int, reviews_with_photo: int) -> "DailySalesFact":
        return replace(
            self,
            reviews_with_name=reviews_with_name,
            reviews_with_photo=reviews_with_photo,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "DailySalesFact":
        snapshot = data.get("applied_rule")
        synced_at = data.get("synced_at")
        return cls(
            staff_id=str(data["staff_id"]),
            day=parse_date(data["date"]),
            service_sale=to_decimal(data.get("service_sale")),
            product_sale=to_decimal(data.get("product_sale")),
            package_sale=to_decimal(data.get("package_sale")),
            gift_card_sale=to_decimal(data.get("gift_card_sale")),
            reviews_with_name=int(data.get("reviews_with_name", 0)),
            reviews_with_photo=int(data.get("reviews_with_photo", 0)),
            customer_count=int(data.get("customer_count", 0)),
            applied_rule=RuleSnapshot.from_dict(snapshot) if snapshot else None,
            synced_at=parse_timestamp(synced_at) if synced_at else None,
        )


@dataclass(frozen=True)
class InvoiceLineItem:
    item_type: str
    final_price: Decimal
    staff_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "InvoiceLineItem":
        staff_id = data.get("staff_id")
        return cls(
            item_type=data["item_type"],
            final_price=to_decimal(data["final_price"]),
            staff_id=str(staff_id) if staff_id is not None else None,
        )


@dataclass(frozen=True)
class Invoice:
    """Read-only invoice projection used for sync and discount redistribution."""

    invoice_id: str
    day: date
    line_items: tuple[InvoiceLineItem, ...] = ()
    manual_discount: Decimal = ZERO
    customer_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Invoice":
        customer = data.get("customer_id")
        return cls(
            invoice_id=str(data.get("id", "")),
            day=parse_date(data["date"]),
            line_items=tuple(InvoiceLineItem.from_dict(i) for i in data.get("line_items", [])),
            manual_discount=to_decimal(data.get("manual_discount")),
            customer_id=str(customer) if customer is not None else None,
        )


# =============================================================================
# PAYOUT MODELS
# =============================================================================


@dataclass
class IncentivePayout:
    """A claim request against earned incentives."""

    payout_id: str
    staff_id: str
    amount: Decimal
    reason: str = ""
    status: str = PayoutStatus.PENDING
    created_at: datetime | None = None
    processed_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "IncentivePayout":
        created = data.get("created_at")
        processed = data.get("processed_at")
        return cls(
            payout_id=str(data.get("id", "")),
            staff_id=str(data["staff_id"]),
            amount=to_decimal(data["amount"]),
            reason=data.get("reason", ""),
            status=data.get("status", PayoutStatus.PENDING),
            created_at=parse_timestamp(created) if created else None,
            processed_at=parse_timestamp(processed) if processed else None,
        )


# =============================================================================
# COMPLETE INPUT
# =============================================================================


@dataclass
class IncentiveInput:
    """Read-only projection of everything needed for one staff member."""

    tenant_id: str
    staff: Staff
    rules: list[IncentiveRuleVersion] = field(default_factory=list)
    daily_sales: list[DailySalesFact] = field(default_factory=list)
    invoices: list[Invoice] = field(default_factory=list)
    payouts: list[IncentivePayout] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "IncentiveInput":
        tenant_id = str(data.get("tenant_id", ""))
        return cls(
            tenant_id=tenant_id,
            staff=Staff.from_dict(data["staff"]),
            rules=[IncentiveRuleVersion.from_dict(r, tenant_id) for r in data.get("rules", [])],
            daily_sales=[DailySalesFact.from_dict(s) for s in data.get("daily_sales", [])],
            invoices=[Invoice.from_dict(i) for i in data.get("invoices", [])],
            payouts=[IncentivePayout.from_dict(p) for p in data.get("payouts", [])],
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass(frozen=True)
class TargetEvaluation:
    """Result of evaluating one rule against one achieved value."""

    incentive_amount: Decimal = ZERO
    target_met: bool = False
    applied_rate: Decimal = ZERO


@dataclass
class TrackResult:
    """
    Per-track figure for one staff/day.

    A non-calculable result keeps its reason so reports can tell
    "no data" apart from "target missed".
    """

    track: str
    calculable: bool = True
    reason: str | None = None
    target_value: Decimal = ZERO
    achieved_value: Decimal = ZERO
    incentive_amount: Decimal = ZERO
    target_met: bool = False
    applied_rate: Decimal = ZERO

    @classmethod
    def not_calculable(cls, track: str, reason: str) -> "TrackResult":
        return cls(track=track, calculable=False, reason=reason)


@dataclass
class DayIncentives:
    """All four tracks for one staff/day."""

    staff_id: str
    day: date
    daily: TrackResult
    monthly: TrackResult
    package: TrackResult
    gift_card: TrackResult

    @property
    def tracks(self) -> dict[str, TrackResult]:
        return {
            RuleType.DAILY: self.daily,
            RuleType.MONTHLY: self.monthly,
            RuleType.PACKAGE: self.package,
            RuleType.GIFT_CARD: self.gift_card,
        }

    @property
    def total(self) -> Decimal:
        return sum(
            (t.incentive_amount for t in self.tracks.values() if t.calculable),
            ZERO,
        )

    @property
    def not_calculable_reasons(self) -> dict[str, str]:
        return {name: t.reason for name, t in self.tracks.items() if not t.calculable}


@dataclass
class RangeResult:
    staff_id: str
    start: date
    end: date
    days: list[DayIncentives] = field(default_factory=list)

    def track_total(self, track: str) -> Decimal:
        return sum(
            (d.tracks[track].incentive_amount for d in self.days if d.tracks[track].calculable),
            ZERO,
        )

    @property
    def total(self) -> Decimal:
        return sum((d.total for d in self.days), ZERO)


@dataclass
class MonthSummary:
    track: str
    total_achieved: Decimal = ZERO
    total_incentive: Decimal = ZERO
    days_calculated: int = 0


@dataclass
class AvailableBalance:
    earned_to_date: Decimal = ZERO
    committed: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        return self.earned_to_date - self.committed
